from datetime import datetime, timezone

from podium import db
from podium.errors import ValidationError
from podium.utils.scoring import ScoringRule


class PointsRule(db.Model):
    """Point values used to score every event of one (tier, season)"""

    __tablename__ = "points_rules"

    id = db.Column(db.Integer, primary_key=True)
    tier_id = db.Column(db.Integer, db.ForeignKey("tiers.id"), nullable=False)
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=False)

    exact_position_points = db.Column(db.Integer, nullable=False)
    one_off_points = db.Column(db.Integer, nullable=False)
    two_off_points = db.Column(db.Integer, nullable=False)
    in_podium_points = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    season = db.relationship("Season", backref=db.backref("points_rule", uselist=False))

    __table_args__ = (
        db.UniqueConstraint("tier_id", "season_id", name="unique_tier_season_rule"),
    )

    def __repr__(self):
        return (
            f"<PointsRule tier={self.tier_id} season={self.season_id} "
            f"{self.exact_position_points}/{self.one_off_points}/"
            f"{self.two_off_points}/{self.in_podium_points}>"
        )

    @staticmethod
    def lookup(tier_id, season_id):
        """Rule for a (tier, season), None if it has not been configured"""
        return PointsRule.query.filter_by(tier_id=tier_id, season_id=season_id).first()

    @staticmethod
    def create_rule(season, exact, one_off, two_off, in_podium):
        """Create the season's rule; rules are write-once"""
        values = {
            "exact_position_points": exact,
            "one_off_points": one_off,
            "two_off_points": two_off,
            "in_podium_points": in_podium,
        }
        for field, value in values.items():
            # 7.9 or True must not be truncated to 7 or 1
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{field} must be a non-negative integer")

        if PointsRule.lookup(season.tier_id, season.id):
            raise ValidationError(
                f"Points rule already exists for season {season.id}", status_code=409
            )

        rule = PointsRule(
            tier_id=season.tier_id,
            season_id=season.id,
            **values,
        )
        db.session.add(rule)
        return rule

    def to_scoring_rule(self):
        return ScoringRule(
            exact_position_points=self.exact_position_points,
            one_off_points=self.one_off_points,
            two_off_points=self.two_off_points,
            in_podium_points=self.in_podium_points,
        )

    def to_dict(self):
        return {
            "tier_id": self.tier_id,
            "season_id": self.season_id,
            "exact_position_points": self.exact_position_points,
            "one_off_points": self.one_off_points,
            "two_off_points": self.two_off_points,
            "in_podium_points": self.in_podium_points,
        }
