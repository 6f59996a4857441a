import importlib

import pytest
from click.testing import CliRunner

from podium import db
from podium.models import Competitor, Event, PointsRule, Season, User


@pytest.fixture
def manage(monkeypatch):
    monkeypatch.setenv("FLASK_CONFIG", "testing")
    import manage as module

    module = importlib.reload(module)
    with module.app.app_context():
        yield module
        db.session.remove()
        db.drop_all()


def run(manage, *args):
    result = CliRunner().invoke(manage.cli, [str(arg) for arg in args])
    assert result.exit_code == 0, result.output
    return result.output


def test_season_setup_and_results(manage):
    run(manage, "catalog", "add-sport", "motorsport", "--display-name", "Motorsport")
    run(manage, "catalog", "add-tier", 1, "Formula 1", "--short-name", "F1")
    output = run(manage, "catalog", "add-season", 1, 2025, "--activate", "--best-results", 20)
    assert "Activated" in output

    for name in ("Alpha", "Bravo", "Charlie"):
        run(manage, "catalog", "add-competitor", name, "--season-id", 1)
    run(
        manage,
        "catalog",
        "add-event",
        1,
        "Opening Round",
        "--round",
        1,
        "--date",
        "2030-03-01 14:00",
    )

    season = db.session.get(Season, 1)
    assert season.is_active
    assert season.best_results_number == 20
    assert season.competitor_ids() == {c.id for c in Competitor.query.all()}

    output = run(manage, "results", "record", 1, 1, 2, 3)
    assert "No points rule" in output
    assert not db.session.get(Event, 1).is_completed

    run(manage, "rules", "set", 1, 25, 15, 10, 5)
    assert PointsRule.lookup(season.tier_id, season.id).exact_position_points == 25
    assert "already exists" in run(manage, "rules", "set", 1, 1, 1, 1, 1)
    assert "Exact position: 25" in run(manage, "rules", "show", 1)

    output = run(manage, "results", "record", 1, 1, 2, 3)
    assert "Scored 0 predictions" in output
    assert db.session.get(Event, 1).is_completed

    assert "No scored predictions" in run(manage, "leaderboard", "--season-id", 1)
    assert "Completed" in run(manage, "stats", "recalculate", 1)


def test_user_commands_and_status(manage):
    run(manage, "user", "create-admin", "boss", "boss@example.com")
    assert "already exists" in run(manage, "user", "create-admin", "boss", "x@example.com")

    admin = User.query.filter_by(username="boss").first()
    assert admin.is_admin

    assert "boss" in run(manage, "user", "list-users")
    assert "Podium Status" in run(manage, "status")


def test_create_admin_shows_in_cached_standings(manage):
    assert "No scored predictions" in run(manage, "leaderboard", "--all-participants")

    run(manage, "user", "create-admin", "boss", "boss@example.com")

    assert "boss" in run(manage, "leaderboard", "--all-participants")


def test_activate_season(manage):
    run(manage, "catalog", "add-sport", "motorsport")
    run(manage, "catalog", "add-tier", 1, "Formula 1")
    run(manage, "catalog", "add-season", 1, 2025, "--activate")
    run(manage, "catalog", "add-season", 1, 2026)

    assert "Activated" in run(manage, "catalog", "activate", 2)
    assert "not found" in run(manage, "catalog", "activate", 9)

    assert Season.get_active_for_tier(1).year == 2026
    assert not db.session.get(Season, 1).is_active
