from datetime import datetime, timezone

from podium import db


class Season(db.Model):
    __tablename__ = "seasons"

    id = db.Column(db.Integer, primary_key=True)
    tier_id = db.Column(db.Integer, db.ForeignKey("tiers.id"), nullable=False)
    year = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(80), nullable=False)  # e.g., "2025 Formula 1"

    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)

    # Count only the best N event scores in per-user statistics (None = all)
    best_results_number = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    events = db.relationship(
        "Event", backref="season", lazy="dynamic", cascade="all, delete-orphan"
    )
    roster = db.relationship(
        "SeasonCompetitor",
        backref="season",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("tier_id", "year", name="unique_tier_season_year"),
        db.Index("idx_season_active", "is_active"),
    )

    def __repr__(self):
        return f"<Season {self.tier_id}/{self.year}>"

    @staticmethod
    def create_season(tier, year, name=None, start_date=None, end_date=None):
        """Create a new season for a tier"""
        season = Season(
            tier_id=tier.id,
            year=year,
            name=name or f"{year} {tier.name}",
            start_date=start_date,
            end_date=end_date,
        )
        db.session.add(season)
        return season

    def activate(self):
        """Activate this season (deactivates the tier's other seasons)"""
        Season.query.filter(
            Season.tier_id == self.tier_id, Season.id != self.id
        ).update({"is_active": False})
        self.is_active = True

    @staticmethod
    def get_active_for_tier(tier_id):
        return Season.query.filter_by(tier_id=tier_id, is_active=True).first()

    def competitor_ids(self):
        """Ids of competitors on this season's roster"""
        return {entry.competitor_id for entry in self.roster}

    def add_competitor(self, competitor):
        if competitor.id in self.competitor_ids():
            return None
        entry = SeasonCompetitor(season_id=self.id, competitor_id=competitor.id)
        db.session.add(entry)
        return entry

    def to_dict(self):
        return {
            "id": self.id,
            "tier_id": self.tier_id,
            "year": self.year,
            "name": self.name,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "best_results_number": self.best_results_number,
            "is_active": self.is_active,
        }


class SeasonCompetitor(db.Model):
    """A competitor taking part in a season"""

    __tablename__ = "season_competitors"

    id = db.Column(db.Integer, primary_key=True)
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=False)
    competitor_id = db.Column(
        db.Integer, db.ForeignKey("competitors.id"), nullable=False
    )
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    competitor = db.relationship("Competitor")

    __table_args__ = (
        db.UniqueConstraint(
            "season_id", "competitor_id", name="unique_season_competitor"
        ),
    )
