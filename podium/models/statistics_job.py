import uuid
from datetime import datetime, timezone

from podium import db
from podium.utils.timezone_utils import ensure_utc


class StatisticsJob(db.Model):
    """Progress record for a season statistics recalculation"""

    __tablename__ = "statistics_jobs"

    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=False)
    status = db.Column(db.String(20), default=PENDING, nullable=False)
    total_users = db.Column(db.Integer, default=0)
    processed_users = db.Column(db.Integer, default=0)
    started_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    completed_at = db.Column(db.DateTime, nullable=True)
    error_message = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f"<StatisticsJob {self.id} season={self.season_id} {self.status}>"

    @staticmethod
    def unfinished_for_season(season_id):
        """Pending or running jobs of a season, newest first"""
        return (
            StatisticsJob.query.filter(
                StatisticsJob.season_id == season_id,
                StatisticsJob.status.in_((StatisticsJob.PENDING, StatisticsJob.RUNNING)),
            )
            .order_by(StatisticsJob.started_at.desc())
            .all()
        )

    @property
    def is_finished(self):
        return self.status in (self.COMPLETED, self.FAILED)

    def mark_running(self, total_users):
        self.status = self.RUNNING
        self.total_users = total_users
        self.processed_users = 0

    def mark_completed(self):
        self.status = self.COMPLETED
        self.completed_at = datetime.now(timezone.utc)

    def mark_failed(self, message):
        self.status = self.FAILED
        self.completed_at = datetime.now(timezone.utc)
        self.error_message = message

    def to_dict(self):
        return {
            "job_id": self.id,
            "season_id": self.season_id,
            "status": self.status,
            "total_users": self.total_users,
            "processed_users": self.processed_users,
            "started_at": ensure_utc(self.started_at).isoformat() if self.started_at else None,
            "completed_at": (
                ensure_utc(self.completed_at).isoformat() if self.completed_at else None
            ),
            "error_message": self.error_message,
        }
