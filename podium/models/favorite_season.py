from datetime import datetime, timezone

from podium import db
from podium.errors import NotFoundError, ValidationError
from podium.models.season import Season
from podium.utils.timezone_utils import ensure_utc


class FavoriteSeason(db.Model):
    """A season a user pinned for quick access"""

    __tablename__ = "favorite_seasons"

    MAX_FAVORITES = 5

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship(
        "User",
        backref=db.backref("favorite_seasons", lazy="dynamic", cascade="all, delete-orphan"),
    )
    season = db.relationship("Season")

    __table_args__ = (
        db.UniqueConstraint("user_id", "season_id", name="unique_user_favorite_season"),
    )

    def __repr__(self):
        return f"<FavoriteSeason user={self.user_id} season={self.season_id}>"

    @staticmethod
    def for_user(user_id):
        return (
            FavoriteSeason.query.filter_by(user_id=user_id)
            .order_by(FavoriteSeason.created_at, FavoriteSeason.id)
            .all()
        )

    @staticmethod
    def is_favorite(user_id, season_id):
        return (
            FavoriteSeason.query.filter_by(user_id=user_id, season_id=season_id).first()
            is not None
        )

    @staticmethod
    def add(user_id, season_id):
        if db.session.get(Season, season_id) is None:
            raise NotFoundError("Season not found")
        if FavoriteSeason.is_favorite(user_id, season_id):
            raise ValidationError("Season is already a favorite")
        count = FavoriteSeason.query.filter_by(user_id=user_id).count()
        if count >= FavoriteSeason.MAX_FAVORITES:
            raise ValidationError(
                f"You can have at most {FavoriteSeason.MAX_FAVORITES} favorite seasons"
            )

        favorite = FavoriteSeason(user_id=user_id, season_id=season_id)
        db.session.add(favorite)
        return favorite

    @staticmethod
    def remove(user_id, season_id):
        """Delete a favorite; returns False when it did not exist"""
        favorite = FavoriteSeason.query.filter_by(
            user_id=user_id, season_id=season_id
        ).first()
        if favorite is None:
            return False
        db.session.delete(favorite)
        return True

    def to_dict(self):
        data = self.season.to_dict()
        data["favorited_at"] = ensure_utc(self.created_at).isoformat() if self.created_at else None
        return data
