from datetime import datetime, timezone

from podium import db
from podium.utils.scoring import POSITIONS, Podium
from podium.utils.timezone_utils import ensure_utc, format_event_time, get_utc_time


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    location = db.Column(db.String(120))
    round = db.Column(db.Integer, default=1)

    event_date = db.Column(db.DateTime, nullable=False)
    prediction_cutoff = db.Column(db.DateTime, nullable=False)

    # Status
    is_active = db.Column(db.Boolean, default=True)
    is_completed = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    results = db.relationship(
        "EventResult",
        backref="event",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="EventResult.position",
    )
    predictions = db.relationship(
        "Prediction", backref="event", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_event_season", "season_id"),
        db.Index("idx_event_date", "event_date"),
    )

    def __repr__(self):
        return f"<Event {self.name} (round {self.round})>"

    @property
    def tier_id(self):
        return self.season.tier_id if self.season else None

    @property
    def is_prediction_open(self):
        """Predictions are accepted until the cutoff while the event is live"""
        if not self.is_active or self.is_completed:
            return False
        return get_utc_time() < ensure_utc(self.prediction_cutoff)

    @staticmethod
    def upcoming_for_season(season_id):
        """Live events of a season that have not started yet, soonest first"""
        now = get_utc_time()
        events = (
            Event.query.filter_by(season_id=season_id, is_active=True, is_completed=False)
            .order_by(Event.event_date)
            .all()
        )
        return [event for event in events if ensure_utc(event.event_date) > now]

    def get_result_podium(self):
        """Recorded result as a Podium, or None when no result exists"""
        rows = self.results.all()
        if not rows:
            return None
        return Podium.from_positions({row.position: row.competitor_id for row in rows})

    def to_dict(self, include_result=False):
        data = {
            "id": self.id,
            "season_id": self.season_id,
            "name": self.name,
            "location": self.location,
            "round": self.round,
            "event_date": ensure_utc(self.event_date).isoformat(),
            "event_date_local": format_event_time(self.event_date),
            "prediction_cutoff": ensure_utc(self.prediction_cutoff).isoformat(),
            "is_active": self.is_active,
            "is_completed": self.is_completed,
            "is_prediction_open": self.is_prediction_open,
        }
        if include_result:
            podium = self.get_result_podium()
            data["result"] = podium.as_dict() if podium else None
        return data


class EventResult(db.Model):
    """One finishing position of an event's recorded podium"""

    __tablename__ = "event_results"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False)
    competitor_id = db.Column(
        db.Integer, db.ForeignKey("competitors.id"), nullable=False
    )
    recorded_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    competitor = db.relationship("Competitor")

    __table_args__ = (
        db.UniqueConstraint("event_id", "position", name="unique_event_position"),
        db.CheckConstraint(
            f"position >= {POSITIONS[0]} AND position <= {POSITIONS[-1]}",
            name="valid_result_position",
        ),
    )

    def to_dict(self):
        return {
            "position": self.position,
            "competitor": self.competitor.to_dict() if self.competitor else None,
            "recorded_at": (
                ensure_utc(self.recorded_at).isoformat() if self.recorded_at else None
            ),
        }
