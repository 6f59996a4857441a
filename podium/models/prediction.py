from datetime import datetime, timezone

from podium import db
from podium.errors import NotFoundError, PredictionClosed, ValidationError
from podium.utils.scoring import Podium
from podium.utils.timezone_utils import ensure_utc


class Prediction(db.Model):
    __tablename__ = "predictions"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)

    # Predicted podium
    first_place_id = db.Column(
        db.Integer, db.ForeignKey("competitors.id"), nullable=False
    )
    second_place_id = db.Column(
        db.Integer, db.ForeignKey("competitors.id"), nullable=False
    )
    third_place_id = db.Column(
        db.Integer, db.ForeignKey("competitors.id"), nullable=False
    )

    # Results (set when the event result is recorded, None until then)
    points_earned = db.Column(db.Integer, nullable=True)
    scored_at = db.Column(db.DateTime, nullable=True)

    # Timestamps
    submitted_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    first_place = db.relationship("Competitor", foreign_keys=[first_place_id])
    second_place = db.relationship("Competitor", foreign_keys=[second_place_id])
    third_place = db.relationship("Competitor", foreign_keys=[third_place_id])

    __table_args__ = (
        db.UniqueConstraint("user_id", "event_id", name="unique_user_event_prediction"),
        db.Index("idx_prediction_event", "event_id"),
        db.Index("idx_prediction_user", "user_id"),
    )

    def __repr__(self):
        return f"<Prediction user_id={self.user_id} event_id={self.event_id}>"

    @property
    def podium(self):
        return Podium(self.first_place_id, self.second_place_id, self.third_place_id)

    @property
    def is_scored(self):
        return self.points_earned is not None

    def set_points(self, points):
        """Replace awarded points; a re-score supersedes the previous value"""
        self.points_earned = points
        self.scored_at = datetime.now(timezone.utc)

    @staticmethod
    def submit(user_id, event, competitor_ids):
        """Create or update a user's prediction for an event

        Args:
            user_id: ID of the predicting user
            event: Event being predicted
            competitor_ids: [1st, 2nd, 3rd] competitor ids

        Returns:
            tuple: (prediction, created)
        """
        from .competitor import Competitor

        if event is None:
            raise NotFoundError("Event not found")

        if not event.is_prediction_open:
            raise PredictionClosed("Event no longer accepts predictions")

        competitor_ids = list(competitor_ids)
        if len(competitor_ids) != 3 or any(cid is None for cid in competitor_ids):
            raise ValidationError("A prediction needs exactly three competitors")

        if len(set(competitor_ids)) != 3:
            raise ValidationError("All three competitors must be different")

        known = {
            c.id for c in Competitor.query.filter(Competitor.id.in_(competitor_ids))
        }
        missing = [cid for cid in competitor_ids if cid not in known]
        if missing:
            raise ValidationError(f"Unknown competitor(s): {missing}")

        roster = event.season.competitor_ids()
        if roster:
            outside = [cid for cid in competitor_ids if cid not in roster]
            if outside:
                raise ValidationError(
                    f"Competitor(s) {outside} are not entered in this season"
                )

        prediction = Prediction.query.filter_by(
            user_id=user_id, event_id=event.id
        ).first()
        created = prediction is None
        if created:
            prediction = Prediction(user_id=user_id, event_id=event.id)
            db.session.add(prediction)

        (
            prediction.first_place_id,
            prediction.second_place_id,
            prediction.third_place_id,
        ) = competitor_ids

        # A changed prediction is unscored until results are recorded again
        prediction.points_earned = None
        prediction.scored_at = None

        return prediction, created

    @staticmethod
    def get_for_user_season(user_id, season_id):
        from .event import Event

        return (
            Prediction.query.join(Event)
            .filter(Prediction.user_id == user_id, Event.season_id == season_id)
            .order_by(Event.round)
            .all()
        )

    def to_dict(self):
        """Convert prediction to dictionary for API responses"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_id": self.event_id,
            "podium": {
                1: self.first_place.to_dict() if self.first_place else None,
                2: self.second_place.to_dict() if self.second_place else None,
                3: self.third_place.to_dict() if self.third_place else None,
            },
            "points_earned": self.points_earned,
            "scored_at": ensure_utc(self.scored_at).isoformat() if self.scored_at else None,
            "submitted_at": (
                ensure_utc(self.submitted_at).isoformat() if self.submitted_at else None
            ),
        }
