import pytest
from conftest import make_event, make_user, predict

from podium import db
from podium.errors import (
    EventNotResulted,
    NotFoundError,
    PointsRuleNotFound,
    ValidationError,
)
from podium.models import Competitor, EventResult, Prediction, Season
from podium.services import results_service


@pytest.fixture
def scored_setup(world):
    a, b, c, d, e, f = world["drivers"]
    event = make_event(world["season"])
    users = [make_user(name) for name in ("ann", "ben", "cat", "dan")]
    predict(users[0], event, [a, b, c])
    predict(users[1], event, [b, a, c])
    predict(users[2], event, [c, b, a])
    predict(users[3], event, [d, e, f])
    return event, users


def test_record_results_scores_every_prediction(world, scored_setup):
    event, users = scored_setup
    a, b, c = world["drivers"][:3]

    summary = results_service.record_results(event, [a.id, b.id, c.id])

    assert summary.predictions_scored == 4
    assert summary.points_by_user == {
        users[0].id: 75,
        users[1].id: 55,
        users[2].id: 45,
        users[3].id: 0,
    }
    assert summary.total_points == 175
    assert event.is_completed
    assert event.get_result_podium().as_list() == [a.id, b.id, c.id]

    stored = {p.user_id: p.points_earned for p in Prediction.query.all()}
    assert stored == summary.points_by_user


def test_scoring_without_result_is_rejected(world, scored_setup):
    event, _ = scored_setup

    with pytest.raises(EventNotResulted):
        results_service.score_event(event)

    assert all(p.points_earned is None for p in Prediction.query.all())


def test_missing_rule_is_reported_before_anything_is_written(world):
    a, b, c = world["drivers"][:3]
    next_season = Season.create_season(world["tier"], 2026)
    db.session.commit()
    event = make_event(next_season)

    with pytest.raises(PointsRuleNotFound) as excinfo:
        results_service.record_results(event, [a.id, b.id, c.id])

    assert excinfo.value.season_id == next_season.id
    assert excinfo.value.status_code == 409
    assert EventResult.query.filter_by(event_id=event.id).count() == 0


def test_rescore_supersedes_previous_points(world, scored_setup):
    event, users = scored_setup
    a, b, c = world["drivers"][:3]
    results_service.record_results(event, [a.id, b.id, c.id])

    prediction = Prediction.query.filter_by(user_id=users[0].id).first()
    prediction.points_earned = 999
    db.session.commit()

    results_service.rescore_event(event.id)

    assert prediction.points_earned == 75


def test_correcting_results_replaces_the_podium(world, scored_setup):
    event, users = scored_setup
    a, b, c = world["drivers"][:3]
    results_service.record_results(event, [a.id, b.id, c.id])

    results_service.record_results(event, [b.id, a.id, c.id])

    assert EventResult.query.filter_by(event_id=event.id).count() == 3
    assert event.get_result_podium().as_list() == [b.id, a.id, c.id]
    ben = Prediction.query.filter_by(user_id=users[1].id).first()
    assert ben.points_earned == 75


def test_results_need_three_known_entrants(world, scored_setup):
    event, _ = scored_setup
    a, b, c = world["drivers"][:3]

    with pytest.raises(ValidationError):
        results_service.record_results(event, [a.id, b.id])

    with pytest.raises(ValidationError):
        results_service.record_results(event, [a.id, b.id, 9999])

    outsider = Competitor(name="Guest")
    db.session.add(outsider)
    db.session.commit()
    with pytest.raises(ValidationError):
        results_service.record_results(event, [a.id, b.id, outsider.id])


def test_unknown_event(app):
    with pytest.raises(NotFoundError):
        results_service.record_results(None, [1, 2, 3])

    with pytest.raises(NotFoundError):
        results_service.rescore_event(12345)


def test_unscored_predictions_of_completed_events(world, scored_setup):
    event, _ = scored_setup
    a, b, c = world["drivers"][:3]
    assert results_service.get_unscored_predictions() == []

    results_service.record_results(event, [a.id, b.id, c.id])
    Prediction.query.first().points_earned = None
    db.session.commit()

    pending = results_service.get_unscored_predictions(world["season"].id)
    assert len(pending) == 1
