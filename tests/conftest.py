from datetime import datetime, timedelta, timezone

import pytest
from flask import g
from flask.testing import FlaskClient

from podium import create_app, db
from podium.models import (
    AuthSession,
    Competitor,
    Event,
    PointsRule,
    Prediction,
    Season,
    Sport,
    Tier,
    User,
)


class ApiClient(FlaskClient):
    """Test client that resolves the bearer token on every request

    The app context pushed by the app fixture outlives each request, so the
    user flask_login cached on g is dropped first.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def app():
    app = create_app("testing")
    app.test_client_class = ApiClient
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(username, is_admin=False, created_at=None):
    user = User.create_user(username, f"{username}@example.com", is_admin=is_admin)
    if created_at is not None:
        user.created_at = created_at
    db.session.commit()
    return user


def auth_headers(user):
    session = AuthSession.start(user, 30)
    db.session.commit()
    return {"Authorization": f"Bearer {session.token}"}


def make_event(season, name="Grand Prix", round_number=1, open_for_predictions=True):
    now = datetime.now(timezone.utc)
    offset = timedelta(days=2) if open_for_predictions else timedelta(days=-1)
    event = Event(
        season_id=season.id,
        name=name,
        round=round_number,
        event_date=now + offset,
        prediction_cutoff=now + offset - timedelta(hours=1),
    )
    db.session.add(event)
    db.session.commit()
    return event


def predict(user, event, competitors):
    prediction, _ = Prediction.submit(user.id, event, [c.id for c in competitors])
    db.session.commit()
    return prediction


@pytest.fixture
def world(app):
    """One sport, tier and season with a 25/15/10/5 rule and six entrants"""
    sport = Sport(name="motorsport", display_name="Motorsport")
    db.session.add(sport)
    db.session.flush()

    tier = Tier(sport_id=sport.id, name="Formula 1", short_name="F1")
    db.session.add(tier)
    db.session.flush()

    season = Season.create_season(tier, 2025)
    db.session.flush()

    drivers = []
    for number, name in enumerate(["Alpha", "Bravo", "Charlie", "Delta", "Echo", "Fox"]):
        driver = Competitor(sport_id=sport.id, name=name, number=str(number + 1))
        db.session.add(driver)
        db.session.flush()
        season.add_competitor(driver)
        drivers.append(driver)

    rule = PointsRule.create_rule(season, 25, 15, 10, 5)
    db.session.commit()

    return {
        "sport": sport,
        "tier": tier,
        "season": season,
        "rule": rule,
        "drivers": drivers,
    }
