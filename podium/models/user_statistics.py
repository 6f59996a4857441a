from datetime import datetime, timezone

from podium import db
from podium.utils.timezone_utils import ensure_utc


class UserStatistics(db.Model):
    """Per-season statistics for a user, rebuilt by a StatisticsJob"""

    __tablename__ = "user_statistics"

    id = db.Column(db.Integer, primary_key=True)
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    total_points = db.Column(db.Integer, default=0)
    best_results_points = db.Column(db.Integer, nullable=True)
    predictions_count = db.Column(db.Integer, default=0)
    exact_matches = db.Column(db.Integer, default=0)
    one_off_matches = db.Column(db.Integer, default=0)
    two_off_matches = db.Column(db.Integer, default=0)
    in_podium_matches = db.Column(db.Integer, default=0)

    last_updated = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("season_id", "user_id", name="unique_season_user_stats"),
    )

    @staticmethod
    def get_or_create(season_id, user_id):
        stats = UserStatistics.query.filter_by(
            season_id=season_id, user_id=user_id
        ).first()
        if stats is None:
            stats = UserStatistics(season_id=season_id, user_id=user_id)
            db.session.add(stats)
        return stats

    @staticmethod
    def empty_dict(season_id, user_id):
        """Shape returned for a user with no predictions yet"""
        return {
            "season_id": season_id,
            "user_id": user_id,
            "username": "",
            "total_points": 0,
            "best_results_points": None,
            "predictions_count": 0,
            "exact_matches": 0,
            "one_off_matches": 0,
            "two_off_matches": 0,
            "in_podium_matches": 0,
            "last_updated": None,
        }

    def to_dict(self):
        return {
            "season_id": self.season_id,
            "user_id": self.user_id,
            "username": self.user.username if self.user else "",
            "total_points": self.total_points,
            "best_results_points": self.best_results_points,
            "predictions_count": self.predictions_count,
            "exact_matches": self.exact_matches,
            "one_off_matches": self.one_off_matches,
            "two_off_matches": self.two_off_matches,
            "in_podium_matches": self.in_podium_matches,
            "last_updated": (
                ensure_utc(self.last_updated).isoformat() if self.last_updated else None
            ),
        }
