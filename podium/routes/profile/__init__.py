from flask import Blueprint

bp = Blueprint("profile", __name__)

from podium.routes.profile import routes  # noqa: F401, E402
