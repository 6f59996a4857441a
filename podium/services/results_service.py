"""
Recording event results and scoring predictions.

Flow: results are recorded -> every prediction of the event is scored ->
awarded points are written back on each prediction -> leaderboards are read
from the persisted points.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from podium import db
from podium.errors import (
    EventNotResulted,
    NotFoundError,
    PointsRuleNotFound,
    ValidationError,
)
from podium.models import Competitor, Event, EventResult, PointsRule, Prediction
from podium.utils.cache_utils import invalidate_leaderboards
from podium.utils.scoring import POSITIONS, Podium, score_prediction

logger = logging.getLogger(__name__)


@dataclass
class ScoringSummary:
    event_id: int
    predictions_scored: int = 0
    total_points: int = 0
    points_by_user: dict = field(default_factory=dict)

    def to_dict(self):
        return {
            "event_id": self.event_id,
            "predictions_scored": self.predictions_scored,
            "total_points": self.total_points,
            "points_by_user": self.points_by_user,
        }


def get_rule_for_event(event):
    """Explicit (tier, season) lookup of the rule that scores an event"""
    rule = PointsRule.lookup(event.tier_id, event.season_id)
    if rule is None:
        raise PointsRuleNotFound(event.tier_id, event.season_id)
    return rule.to_scoring_rule()


def _validate_podium(event, competitor_ids):
    competitor_ids = list(competitor_ids)
    if len(competitor_ids) != len(POSITIONS) or any(
        cid is None for cid in competitor_ids
    ):
        raise ValidationError("Results need exactly three positions (P1, P2, P3)")

    known = {c.id for c in Competitor.query.filter(Competitor.id.in_(competitor_ids))}
    missing = [cid for cid in competitor_ids if cid not in known]
    if missing:
        raise ValidationError(f"Unknown competitor(s): {missing}")

    roster = event.season.competitor_ids()
    if roster:
        outside = [cid for cid in competitor_ids if cid not in roster]
        if outside:
            raise ValidationError(
                f"Competitor(s) {outside} are not entered in this season"
            )

    return competitor_ids


def score_event(event):
    """
    Score every prediction of an event against its recorded result.

    Raises:
        EventNotResulted: the event has no recorded result
        PointsRuleNotFound: no rule for the event's (tier, season)
    """
    actual = event.get_result_podium()
    if actual is None:
        raise EventNotResulted(event.id)

    rule = get_rule_for_event(event)

    summary = ScoringSummary(event_id=event.id)
    for prediction in event.predictions.all():
        points = score_prediction(prediction.podium, actual, rule)
        prediction.set_points(points)

        summary.predictions_scored += 1
        summary.total_points += points
        summary.points_by_user[prediction.user_id] = points

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to store points for event {event.id}: {e}")
        raise

    invalidate_leaderboards()

    logger.info(
        f"Scored {summary.predictions_scored} predictions for event {event.id} "
        f"({summary.total_points} points awarded)"
    )
    return summary


def record_results(event, competitor_ids):
    """
    Store an event's podium and score its predictions.

    Args:
        event: Event being resulted
        competitor_ids: [1st, 2nd, 3rd] competitor ids

    Returns:
        ScoringSummary
    """
    if event is None:
        raise NotFoundError("Event not found")

    competitor_ids = _validate_podium(event, competitor_ids)

    # Fail before writing anything when the season has no rule
    get_rule_for_event(event)

    existing = {row.position: row for row in event.results.all()}
    for position, competitor_id in zip(POSITIONS, competitor_ids):
        row = existing.get(position)
        if row is None:
            row = EventResult(event_id=event.id, position=position)
            db.session.add(row)
        row.competitor_id = competitor_id

    event.is_completed = True
    db.session.flush()

    logger.info(
        f"Recorded results for event {event.id}: "
        f"{Podium.from_sequence(competitor_ids).as_dict()}"
    )

    return score_event(event)


def rescore_event(event_id):
    """Explicit re-score; supersedes previously awarded points"""
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return score_event(event)


def get_unscored_predictions(season_id=None):
    """Predictions of completed events that have no points yet"""
    query = Prediction.query.join(Event).filter(
        Event.is_completed.is_(True), Prediction.points_earned.is_(None)
    )
    if season_id is not None:
        query = query.filter(Event.season_id == season_id)
    return query.all()
