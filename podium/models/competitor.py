from datetime import datetime, timezone

from podium import db


class Competitor(db.Model):
    __tablename__ = "competitors"

    id = db.Column(db.Integer, primary_key=True)
    sport_id = db.Column(db.Integer, db.ForeignKey("sports.id"), nullable=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    short_name = db.Column(db.String(20))
    number = db.Column(db.String(10))
    team = db.Column(db.String(120))
    country = db.Column(db.String(80))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Competitor {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "number": self.number,
            "team": self.team,
            "country": self.country,
        }
