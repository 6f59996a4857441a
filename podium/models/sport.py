from datetime import datetime, timezone

from podium import db


class Sport(db.Model):
    __tablename__ = "sports"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(120))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    tiers = db.relationship(
        "Tier", backref="sport", lazy="dynamic", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Sport {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name or self.name,
            "is_active": self.is_active,
        }


class Tier(db.Model):
    """A competition level within a sport, e.g. Formula 1 or Formula 2"""

    __tablename__ = "tiers"

    id = db.Column(db.Integer, primary_key=True)
    sport_id = db.Column(db.Integer, db.ForeignKey("sports.id"), nullable=False)
    name = db.Column(db.String(80), nullable=False)
    short_name = db.Column(db.String(20))
    display_order = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    seasons = db.relationship(
        "Season", backref="tier", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.UniqueConstraint("sport_id", "name", name="unique_sport_tier_name"),
    )

    def __repr__(self):
        return f"<Tier {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "sport_id": self.sport_id,
            "name": self.name,
            "short_name": self.short_name,
            "display_order": self.display_order,
            "is_active": self.is_active,
        }
