from datetime import datetime, timedelta, timezone

import pytest
from conftest import make_event, make_user, predict

from podium import db
from podium.errors import JobAlreadyRunning, NotFoundError
from podium.models import StatisticsJob, UserStatistics
from podium.services import results_service, statistics_service


def test_best_results_points():
    assert statistics_service.best_results_points([10, 75, 40], 2) == 115
    assert statistics_service.best_results_points([10, 75, 40], 5) == 125
    assert statistics_service.best_results_points([10, 75, 40], None) is None
    assert statistics_service.best_results_points([10, 75, 40], 0) is None


@pytest.fixture
def resulted_season(world):
    a, b, c, d = world["drivers"][:4]
    season = world["season"]
    season.best_results_number = 1
    db.session.commit()

    ann = make_user("ann")
    ben = make_user("ben")

    first = make_event(season, "Opening Round", 1)
    predict(ann, first, [a, b, c])
    predict(ben, first, [b, a, d])

    second = make_event(season, "Second Round", 2)
    predict(ann, second, [c, b, a])

    results_service.record_results(first, [a.id, b.id, c.id])
    results_service.record_results(second, [a.id, b.id, c.id])
    return ann, ben


def test_recalculation_runs_to_completion(world, resulted_season):
    ann, ben = resulted_season

    job = statistics_service.start_recalculation(world["season"].id)

    assert job.status == StatisticsJob.COMPLETED
    assert job.total_users == 2
    assert job.processed_users == 2
    assert job.is_finished

    stats = UserStatistics.query.filter_by(user_id=ann.id).first()
    assert stats.total_points == 120
    assert stats.best_results_points == 75
    assert stats.predictions_count == 2
    assert stats.exact_matches == 4
    assert stats.two_off_matches == 2
    assert stats.one_off_matches == 0

    stats = UserStatistics.query.filter_by(user_id=ben.id).first()
    assert stats.total_points == 30
    assert stats.one_off_matches == 2
    assert stats.in_podium_matches == 0


def test_recalculation_is_repeatable(world, resulted_season):
    statistics_service.start_recalculation(world["season"].id)
    statistics_service.start_recalculation(world["season"].id)

    assert UserStatistics.query.count() == 2
    assert StatisticsJob.query.count() == 2


def test_job_lookup(world, resulted_season):
    job = statistics_service.start_recalculation(world["season"].id)

    assert statistics_service.get_job(job.id).to_dict()["job_id"] == job.id

    with pytest.raises(NotFoundError):
        statistics_service.get_job("missing")


def test_recalculation_for_unknown_season(app):
    with pytest.raises(NotFoundError):
        statistics_service.start_recalculation(404)


def test_recalculation_refused_while_season_job_unfinished(world, resulted_season):
    running = StatisticsJob(season_id=world["season"].id, status=StatisticsJob.RUNNING)
    db.session.add(running)
    db.session.commit()

    with pytest.raises(JobAlreadyRunning) as excinfo:
        statistics_service.start_recalculation(world["season"].id)

    assert excinfo.value.status_code == 409
    assert excinfo.value.job_id == running.id
    assert StatisticsJob.query.count() == 1


def test_stale_job_does_not_block_recalculation(world, resulted_season):
    stale = StatisticsJob(
        season_id=world["season"].id,
        status=StatisticsJob.PENDING,
        started_at=datetime.now(timezone.utc) - timedelta(hours=3),
    )
    db.session.add(stale)
    db.session.commit()

    job = statistics_service.start_recalculation(world["season"].id)

    assert job.status == StatisticsJob.COMPLETED
    assert stale.status == StatisticsJob.FAILED
    assert "Abandoned" in stale.error_message
