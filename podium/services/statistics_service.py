"""
Season statistics recalculation.

A StatisticsJob rebuilds UserStatistics rows for every user with scored
predictions in a season: total points, match-type counts and, when the season
counts only its best N results, the best-N points.
"""

import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from podium import db
from podium.errors import JobAlreadyRunning, NotFoundError
from podium.models import Event, Prediction, Season, StatisticsJob, UserStatistics
from podium.services.results_service import get_rule_for_event
from podium.utils.scoring import MatchType, count_matches, score_breakdown
from podium.utils.timezone_utils import ensure_utc, get_utc_time

logger = logging.getLogger(__name__)


def start_recalculation(season_id):
    """Create a job for a season and hand it to the scheduler"""
    from podium.services.scheduler_service import scheduler_service

    season = db.session.get(Season, season_id)
    if season is None:
        raise NotFoundError("Season not found")

    # One job per season at a time
    timeout = timedelta(
        minutes=current_app.config.get("STATISTICS_JOB_TIMEOUT_MINUTES", 60)
    )
    for existing in StatisticsJob.unfinished_for_season(season_id):
        if ensure_utc(existing.started_at) > get_utc_time() - timeout:
            raise JobAlreadyRunning(existing)
        existing.mark_failed("Abandoned: did not finish in time")
        logger.warning(f"Marked stale statistics job {existing.id} as failed")

    job = StatisticsJob(season_id=season_id, status=StatisticsJob.PENDING)
    db.session.add(job)
    db.session.commit()

    logger.info(f"Queued statistics job {job.id} for season {season_id}")
    scheduler_service.submit_statistics_job(job.id)
    return job


def get_job(job_id):
    job = db.session.get(StatisticsJob, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def best_results_points(points, best_results_number):
    """Sum of the best N event scores, None when the season counts everything"""
    if not best_results_number or best_results_number <= 0:
        return None
    return sum(sorted(points, reverse=True)[:best_results_number])


def calculate_user_statistics(season, predictions):
    """
    Statistics for one user's scored predictions in a season.

    Args:
        season: Season the predictions belong to
        predictions: the user's scored Prediction rows

    Returns:
        dict of UserStatistics column values
    """
    totals = {match_type: 0 for match_type in MatchType}
    points = []

    for prediction in predictions:
        points.append(prediction.points_earned)

        actual = prediction.event.get_result_podium()
        if actual is None:
            continue
        rule = get_rule_for_event(prediction.event)
        for match_type, count in count_matches(
            score_breakdown(prediction.podium, actual, rule)
        ).items():
            totals[match_type] += count

    return {
        "total_points": sum(points),
        "best_results_points": best_results_points(points, season.best_results_number),
        "predictions_count": len(predictions),
        "exact_matches": totals[MatchType.EXACT],
        "one_off_matches": totals[MatchType.ONE_OFF],
        "two_off_matches": totals[MatchType.TWO_OFF],
        "in_podium_matches": totals[MatchType.IN_PODIUM],
    }


def process_job(job_id):
    """Run a statistics job to completion, recording progress as it goes"""
    job = db.session.get(StatisticsJob, job_id)
    if job is None:
        logger.error(f"Statistics job {job_id} not found")
        return None

    try:
        season = db.session.get(Season, job.season_id)

        predictions = (
            Prediction.query.join(Event)
            .filter(
                Event.season_id == job.season_id,
                Prediction.points_earned.isnot(None),
            )
            .all()
        )

        by_user = {}
        for prediction in predictions:
            by_user.setdefault(prediction.user_id, []).append(prediction)

        job.mark_running(len(by_user))
        db.session.commit()

        for user_id, user_predictions in by_user.items():
            values = calculate_user_statistics(season, user_predictions)

            stats = UserStatistics.get_or_create(job.season_id, user_id)
            for column, value in values.items():
                setattr(stats, column, value)
            stats.last_updated = get_utc_time()

            job.processed_users += 1
            db.session.commit()

        job.mark_completed()
        db.session.commit()
        logger.info(
            f"Statistics job {job.id} completed for {job.processed_users} users"
        )

    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Statistics job {job_id} failed with database error: {e}")
        job = db.session.get(StatisticsJob, job_id)
        job.mark_failed(str(e))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.exception(f"Statistics job {job_id} failed: {e}")
        job = db.session.get(StatisticsJob, job_id)
        job.mark_failed(str(e))
        db.session.commit()

    return job
