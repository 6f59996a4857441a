"""
Domain errors for the Podium application.

Services raise these; the Flask error handler registered in create_app()
turns them into JSON responses with the matching status code.
"""


class PodiumError(Exception):
    """Base class for errors the API reports to clients"""

    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class ValidationError(PodiumError):
    """Rejected input (bad podium, negative points, unknown competitor...)"""


class NotFoundError(PodiumError):
    status_code = 404


class EventNotResulted(PodiumError):
    """Scoring was requested for an event that has no recorded result"""

    status_code = 409

    def __init__(self, event_id):
        super().__init__(f"Event {event_id} has no recorded result yet")
        self.event_id = event_id


class PointsRuleNotFound(PodiumError):
    """No points rule exists for the (tier, season) being scored"""

    status_code = 409

    def __init__(self, tier_id, season_id):
        super().__init__(
            f"No points rule configured for tier {tier_id}, season {season_id}"
        )
        self.tier_id = tier_id
        self.season_id = season_id


class PredictionClosed(PodiumError):
    status_code = 409


class AuthenticationError(PodiumError):
    status_code = 401


class JobAlreadyRunning(PodiumError):
    """A season already has a statistics job that has not finished"""

    status_code = 409

    def __init__(self, job):
        super().__init__(
            f"Statistics job {job.id} for season {job.season_id} is still {job.status}"
        )
        self.job_id = job.id

    def to_dict(self):
        return {"error": self.message, "job_id": self.job_id}


class IdentityNotVerified(PodiumError):
    """A signed-in user gave a wrong password or code for an account change"""

    status_code = 403
