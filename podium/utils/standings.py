"""
Leaderboard aggregation.

Sums awarded points per user and ranks users with standard competition
ranking ("1224"): equal totals share a rank and the next rank skips by the
number of tied entries.

Ordering is fully deterministic: total points descending, then earliest
account creation, then user id ascending. The tie-break only affects listing
order; tied totals always share a rank.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

_EPOCH_END = datetime.max.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ScoredPick:
    """Points awarded to one user for one event"""

    user_id: int
    event_id: int
    points: object  # None while the event is unscored


@dataclass(frozen=True)
class Participant:
    user_id: int
    username: str = ""
    created_at: datetime = None


@dataclass(frozen=True)
class StandingsEntry:
    rank: int
    user_id: int
    username: str
    total_points: int
    predictions_count: int

    def to_dict(self):
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "username": self.username,
            "total_points": self.total_points,
            "predictions_count": self.predictions_count,
        }


def _aware(dt):
    if dt is None:
        return _EPOCH_END
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def build_standings(scored_picks, users=None, participants=None):
    """
    Aggregate scored picks into ranked standings.

    Args:
        scored_picks: iterable of ScoredPick; picks with points None are skipped
        users: optional {user_id: Participant} used for names and tie-breaks
        participants: optional iterable of user ids that must appear even
            without a scored pick (listed with zero points)

    Returns:
        list of StandingsEntry, best first
    """
    users = users or {}
    totals = {}
    counts = {}

    for pick in scored_picks:
        if pick.points is None:
            continue
        totals[pick.user_id] = totals.get(pick.user_id, 0) + pick.points
        counts[pick.user_id] = counts.get(pick.user_id, 0) + 1

    for user_id in participants or ():
        totals.setdefault(user_id, 0)
        counts.setdefault(user_id, 0)

    def sort_key(user_id):
        user = users.get(user_id)
        created_at = user.created_at if user else None
        return (-totals[user_id], _aware(created_at), user_id)

    standings = []
    previous_total = None
    rank = 0
    for index, user_id in enumerate(sorted(totals, key=sort_key)):
        if totals[user_id] != previous_total:
            rank = index + 1
            previous_total = totals[user_id]

        user = users.get(user_id)
        standings.append(
            StandingsEntry(
                rank=rank,
                user_id=user_id,
                username=user.username if user else "",
                total_points=totals[user_id],
                predictions_count=counts[user_id],
            )
        )

    return standings
