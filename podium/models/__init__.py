from podium import db  # noqa: F401 - imported for model imports

from .auth_session import AuthSession, OneTimeCode
from .competitor import Competitor
from .event import Event, EventResult
from .favorite_season import FavoriteSeason
from .points_rule import PointsRule
from .prediction import Prediction
from .season import Season, SeasonCompetitor
from .sport import Sport, Tier
from .statistics_job import StatisticsJob
from .user import User
from .user_statistics import UserStatistics

__all__ = [
    "User",
    "AuthSession",
    "OneTimeCode",
    "Sport",
    "Tier",
    "Season",
    "SeasonCompetitor",
    "Competitor",
    "Event",
    "EventResult",
    "FavoriteSeason",
    "PointsRule",
    "Prediction",
    "UserStatistics",
    "StatisticsJob",
]
