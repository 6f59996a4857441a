"""
Scoring Engine for Podium

This module handles scoring of a single prediction against an event result.
For leaderboard aggregation see podium/utils/standings.py; for persistence
(reading results, writing awarded points) see podium/services/results_service.py.

Scoring is applied per predicted slot. For the competitor predicted at each
position we look up where that competitor actually finished:

    offset 0            -> exact position points
    offset 1            -> one-off points
    offset 2            -> two-off points
    any other offset    -> in-podium points (unreachable with three slots)
    not in the podium   -> 0

Slots are scored independently and the prediction total is their sum.
"""

from dataclasses import dataclass
from enum import Enum

POSITIONS = (1, 2, 3)


class MatchType(Enum):
    EXACT = "exact"
    ONE_OFF = "one_off"
    TWO_OFF = "two_off"
    IN_PODIUM = "in_podium"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class Podium:
    """Competitor identifiers for finishing positions 1, 2 and 3.

    Used for both predicted and actual podiums. A position may be None
    (an incomplete result) and identifiers are not checked for uniqueness.
    """

    first: object = None
    second: object = None
    third: object = None

    @classmethod
    def from_sequence(cls, competitors):
        """Build a podium from an ordered [1st, 2nd, 3rd] sequence"""
        competitors = list(competitors)[: len(POSITIONS)]
        competitors += [None] * (len(POSITIONS) - len(competitors))
        return cls(*competitors)

    @classmethod
    def from_positions(cls, positions):
        """Build a podium from a {position: competitor} mapping"""
        return cls(*(positions.get(position) for position in POSITIONS))

    def competitor_at(self, position):
        return self.as_dict()[position]

    def position_of(self, competitor):
        """Actual finishing position of a competitor, None if not on the podium"""
        if competitor is None:
            return None
        for position, entry in self.items():
            if entry == competitor:
                return position
        return None

    def items(self):
        return self.as_dict().items()

    def as_dict(self):
        return {1: self.first, 2: self.second, 3: self.third}

    def as_list(self):
        return [self.first, self.second, self.third]

    @property
    def is_complete(self):
        return all(entry is not None for entry in self.as_list())


@dataclass(frozen=True)
class ScoringRule:
    """Point values for one (tier, season)"""

    exact_position_points: int
    one_off_points: int
    two_off_points: int
    in_podium_points: int

    def points_for(self, match_type):
        return {
            MatchType.EXACT: self.exact_position_points,
            MatchType.ONE_OFF: self.one_off_points,
            MatchType.TWO_OFF: self.two_off_points,
            MatchType.IN_PODIUM: self.in_podium_points,
            MatchType.NO_MATCH: 0,
        }[match_type]


@dataclass(frozen=True)
class SlotScore:
    position: int
    competitor: object
    actual_position: object
    match_type: MatchType
    points: int


def classify_match(predicted_position, actual_position):
    """Classify one predicted slot given where the competitor actually finished"""
    if actual_position is None:
        return MatchType.NO_MATCH

    offset = abs(predicted_position - actual_position)
    if offset == 0:
        return MatchType.EXACT
    if offset == 1:
        return MatchType.ONE_OFF
    if offset == 2:
        return MatchType.TWO_OFF
    return MatchType.IN_PODIUM


def score_breakdown(predicted, actual, rule):
    """Score every predicted slot independently.

    Returns:
        list of SlotScore, one per position 1..3
    """
    slots = []
    for position, competitor in predicted.items():
        actual_position = actual.position_of(competitor)
        match_type = classify_match(position, actual_position)
        slots.append(
            SlotScore(
                position=position,
                competitor=competitor,
                actual_position=actual_position,
                match_type=match_type,
                points=rule.points_for(match_type),
            )
        )
    return slots


def score_prediction(predicted, actual, rule):
    """
    Calculate points for a single prediction.

    Args:
        predicted: Podium the user predicted
        actual: Podium recorded as the event result
        rule: ScoringRule for the event's tier and season

    Returns:
        Non-negative integer sum of the three slot awards
    """
    return sum(slot.points for slot in score_breakdown(predicted, actual, rule))


def count_matches(slots):
    """Tally slot classifications, e.g. for per-user statistics"""
    counts = {match_type: 0 for match_type in MatchType}
    for slot in slots:
        counts[slot.match_type] += 1
    return counts
