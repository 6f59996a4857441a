"""
Podium Background Scheduler Service

Runs statistics recalculation jobs and periodic maintenance using APScheduler.
When the scheduler is disabled (tests, CLI) submitted jobs run inline.
"""

import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from podium import db

logger = logging.getLogger(__name__)


class SchedulerService:
    """Manages background jobs for statistics and maintenance"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app

        if app.config.get("SCHEDULER_ENABLED", True) and not app.config.get(
            "TESTING", False
        ):
            self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")
            atexit.register(self.shutdown)
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        self.scheduler.shutdown(wait=False)
        self.is_running = False
        logger.info("Scheduler stopped")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        """Add core scheduled jobs"""

        # Score completed events whose predictions were left unscored
        self.scheduler.add_job(
            func=self._score_pending_events,
            trigger=IntervalTrigger(minutes=10),
            id="score_pending_events",
            name="Score Pending Events",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=120,
        )

        # Daily maintenance (3 AM UTC)
        self.scheduler.add_job(
            func=self._daily_maintenance,
            trigger=CronTrigger(hour=3, minute=0),
            id="daily_maintenance",
            name="Purge Expired Codes and Sessions",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )

        logger.info("Core scheduled jobs added")

    def submit_statistics_job(self, job_id):
        """Run a statistics job in the background, or inline when not running"""
        if not self.is_running:
            self._run_statistics_job(job_id)
            return

        self.scheduler.add_job(
            func=self._run_statistics_job,
            args=[job_id],
            id=f"statistics_{job_id}",
            name=f"Statistics Recalculation {job_id}",
            max_instances=1,
        )
        logger.info(f"Scheduled statistics job {job_id}")

    def _run_statistics_job(self, job_id):
        from podium.services.statistics_service import process_job

        if self.is_running:
            with self.app.app_context():
                process_job(job_id)
        else:
            process_job(job_id)

    def _score_pending_events(self):
        """Re-score completed events that still have unscored predictions"""
        from podium.errors import PodiumError
        from podium.services.results_service import get_unscored_predictions, score_event

        with self.app.app_context():
            pending = get_unscored_predictions()
            events = {prediction.event for prediction in pending}

            for event in events:
                try:
                    score_event(event)
                except PodiumError as e:
                    db.session.rollback()
                    logger.warning(f"Could not score event {event.id}: {e.message}")

            if events:
                logger.info(f"Scored {len(events)} pending events")

    def _daily_maintenance(self):
        """Purge used or expired one-time codes and ended sessions"""
        from podium.models import AuthSession, OneTimeCode

        with self.app.app_context():
            purged = OneTimeCode.purge_expired() + AuthSession.purge_expired()
            db.session.commit()
            logger.info(f"Daily maintenance purged {purged} records")


# Global scheduler instance
scheduler_service = SchedulerService()
