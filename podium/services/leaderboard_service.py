"""
Leaderboard queries.

Reads persisted prediction points for a scope and hands them to the pure
aggregator in podium/utils/standings.py.
"""

import logging
from dataclasses import dataclass

from podium import db
from podium.errors import NotFoundError
from podium.models import Event, Prediction, Season, Tier, User, UserStatistics
from podium.utils.cache_utils import cached_query
from podium.utils.standings import Participant, ScoredPick, build_standings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaderboardScope:
    """One season of a tier, every season of a tier, or global (both None)"""

    tier_id: int = None
    season_id: int = None

    @classmethod
    def for_season(cls, season):
        return cls(tier_id=season.tier_id, season_id=season.id)

    @classmethod
    def for_tier(cls, tier):
        return cls(tier_id=tier.id)

    @classmethod
    def global_scope(cls):
        return cls()

    @property
    def name(self):
        if self.season_id is not None:
            return "season"
        if self.tier_id is not None:
            return "tier"
        return "global"

    def to_dict(self):
        return {"scope": self.name, "tier_id": self.tier_id, "season_id": self.season_id}


def get_scored_picks(scope):
    """Scored predictions inside a scope"""
    query = (
        db.session.query(
            Prediction.user_id, Prediction.event_id, Prediction.points_earned
        )
        .join(Event, Prediction.event_id == Event.id)
        .join(Season, Event.season_id == Season.id)
        .filter(Prediction.points_earned.isnot(None))
    )

    if scope.season_id is not None:
        query = query.filter(Event.season_id == scope.season_id)
    if scope.tier_id is not None:
        query = query.filter(Season.tier_id == scope.tier_id)

    return [
        ScoredPick(user_id=user_id, event_id=event_id, points=points)
        for user_id, event_id, points in query.all()
    ]


def _load_participants(user_ids):
    if not user_ids:
        return {}
    users = User.query.filter(User.id.in_(user_ids)).all()
    return {
        user.id: Participant(
            user_id=user.id, username=user.username, created_at=user.created_at
        )
        for user in users
    }


@cached_query("leaderboard", timeout=300)
def get_leaderboard(scope, all_participants=False):
    """
    Ranked standings for a scope.

    Args:
        scope: LeaderboardScope
        all_participants: when True every active user is listed, users
            without a scored prediction appear with zero points

    Returns:
        list of StandingsEntry
    """
    picks = get_scored_picks(scope)

    participants = None
    if all_participants:
        participants = [user.id for user in User.query.filter_by(is_active=True)]

    user_ids = {pick.user_id for pick in picks} | set(participants or ())
    standings = build_standings(
        picks, users=_load_participants(user_ids), participants=participants
    )

    logger.debug(
        f"Built {scope.name} leaderboard with {len(standings)} entries from "
        f"{len(picks)} scored predictions"
    )
    return standings


def season_leaderboard(season_id, all_participants=False):
    season = db.session.get(Season, season_id)
    if season is None:
        raise NotFoundError("Season not found")
    return get_leaderboard(LeaderboardScope.for_season(season), all_participants)


def tier_leaderboard(tier_id, all_participants=False):
    tier = db.session.get(Tier, tier_id)
    if tier is None:
        raise NotFoundError("Tier not found")
    return get_leaderboard(LeaderboardScope.for_tier(tier), all_participants)


def global_leaderboard(all_participants=False):
    return get_leaderboard(LeaderboardScope.global_scope(), all_participants)


def get_user_statistics(season_id, user_id):
    """Stored statistics for a user, or the empty shape if none exist yet"""
    stats = UserStatistics.query.filter_by(season_id=season_id, user_id=user_id).first()
    if stats is None:
        return UserStatistics.empty_dict(season_id, user_id)
    return stats.to_dict()
