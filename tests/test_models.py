import pytest
from conftest import make_event, make_user, predict

from podium import db
from podium.errors import NotFoundError, PredictionClosed, ValidationError
from podium.models import Competitor, FavoriteSeason, PointsRule, Prediction, Season
from podium.services import results_service


def test_points_rule_is_scoped_to_tier_and_season(world):
    season = world["season"]
    rule = PointsRule.lookup(season.tier_id, season.id)

    assert rule is not None
    assert rule.to_scoring_rule().exact_position_points == 25
    assert PointsRule.lookup(season.tier_id, season.id + 1) is None


@pytest.mark.parametrize(
    "values",
    [
        (-1, 15, 10, 5),
        (25, 15, None, 5),
        (25, "many", 10, 5),
        (7.9, 15, 10, 5),
        (25, True, 10, 5),
    ],
)
def test_points_rule_rejects_invalid_values(world, values):
    season = Season.create_season(world["tier"], 2030)
    db.session.flush()

    with pytest.raises(ValidationError):
        PointsRule.create_rule(season, *values)


def test_points_rule_allows_zero_values(world):
    season = Season.create_season(world["tier"], 2030)
    db.session.flush()

    rule = PointsRule.create_rule(season, 10, 0, 0, 0)
    db.session.commit()

    assert rule.to_dict()["one_off_points"] == 0


def test_points_rule_is_write_once(world):
    with pytest.raises(ValidationError) as excinfo:
        PointsRule.create_rule(world["season"], 1, 1, 1, 1)

    assert excinfo.value.status_code == 409


def test_prediction_needs_three_different_entrants(world):
    a, b, c = world["drivers"][:3]
    event = make_event(world["season"])
    user = make_user("ann")

    with pytest.raises(ValidationError):
        Prediction.submit(user.id, event, [a.id, a.id, c.id])

    with pytest.raises(ValidationError):
        Prediction.submit(user.id, event, [a.id, b.id])

    with pytest.raises(ValidationError):
        Prediction.submit(user.id, event, [a.id, b.id, 4242])


def test_prediction_limited_to_season_roster(world):
    a, b = world["drivers"][:2]
    outsider = Competitor(name="Guest")
    db.session.add(outsider)
    db.session.commit()
    event = make_event(world["season"])
    user = make_user("ann")

    with pytest.raises(ValidationError):
        Prediction.submit(user.id, event, [a.id, b.id, outsider.id])


def test_prediction_closed_after_cutoff(world):
    a, b, c = world["drivers"][:3]
    event = make_event(world["season"], open_for_predictions=False)
    user = make_user("ann")

    assert not event.is_prediction_open
    with pytest.raises(PredictionClosed):
        Prediction.submit(user.id, event, [a.id, b.id, c.id])

    with pytest.raises(NotFoundError):
        Prediction.submit(user.id, None, [a.id, b.id, c.id])


def test_updating_a_prediction_keeps_one_row_and_clears_points(world):
    a, b, c, d = world["drivers"][:4]
    event = make_event(world["season"])
    user = make_user("ann")

    first = predict(user, event, [a, b, c])
    first.points_earned = 30
    db.session.commit()

    second, created = Prediction.submit(user.id, event, [d.id, b.id, c.id])
    db.session.commit()

    assert not created
    assert second.id == first.id
    assert second.points_earned is None
    assert second.podium.as_list() == [d.id, b.id, c.id]
    assert Prediction.query.count() == 1


def test_completed_event_closes_predictions(world):
    a, b, c = world["drivers"][:3]
    event = make_event(world["season"])
    results_service.record_results(event, [a.id, b.id, c.id])

    assert not event.is_prediction_open
    assert event.to_dict(include_result=True)["result"] == {1: a.id, 2: b.id, 3: c.id}


def test_season_activation_is_exclusive_per_tier(world):
    season = world["season"]
    season.activate()
    db.session.commit()

    later = Season.create_season(world["tier"], 2026)
    db.session.flush()
    later.activate()
    db.session.commit()

    assert later.is_active
    assert not db.session.get(Season, season.id).is_active


def test_favorite_seasons_are_capped(world):
    ann = make_user("ann")
    seasons = [world["season"]]
    for year in range(2026, 2031):
        seasons.append(Season.create_season(world["tier"], year))
    db.session.flush()

    for season in seasons[: FavoriteSeason.MAX_FAVORITES]:
        FavoriteSeason.add(ann.id, season.id)
    db.session.commit()

    with pytest.raises(ValidationError):
        FavoriteSeason.add(ann.id, seasons[-1].id)

    assert FavoriteSeason.remove(ann.id, seasons[0].id)
    FavoriteSeason.add(ann.id, seasons[-1].id)
    db.session.commit()

    assert [f.season_id for f in FavoriteSeason.for_user(ann.id)] == [
        season.id for season in seasons[1:]
    ]
    assert not FavoriteSeason.remove(ann.id, seasons[0].id)
