import logging
import os

from flask import Flask, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
login_manager = LoginManager()
cache = Cache()
migrate = Migrate()


def get_real_ip():
    """
    Get the real client IP address, accounting for reverse proxies.
    Checks X-Forwarded-For, X-Real-IP, and falls back to remote_addr.
    """
    if request.headers.get("X-Forwarded-For"):
        # Leftmost entry is the original client
        return request.headers.get("X-Forwarded-For").split(",")[0].strip()
    if request.headers.get("X-Real-IP"):
        return request.headers.get("X-Real-IP")
    return get_remote_address()


def _limiter_storage_uri():
    """Use Redis for shared rate limiting across workers when it is reachable"""
    redis_url = os.environ.get("REDIS_URL") or os.environ.get("CACHE_REDIS_URL")
    if not redis_url:
        return "memory://"

    import redis

    try:
        redis.Redis.from_url(redis_url).ping()
    except redis.exceptions.ConnectionError as e:
        logger.warning(f"Redis not available for rate limiter, using memory storage: {e}")
        return "memory://"

    logger.info(f"Rate limiter using Redis storage at {redis_url}")
    return redis_url


limiter = Limiter(
    key_func=get_real_ip,
    default_limits=["10000 per day", "1000 per hour"],
    storage_uri=_limiter_storage_uri(),
)


def create_app(config_name=None):
    app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    cache.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    from podium.routes.auth import bp as auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    from podium.routes.api import bp as api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    from podium.routes.profile import bp as profile_bp

    app.register_blueprint(profile_bp, url_prefix="/api/profile")

    from podium.routes.admin import bp as admin_bp

    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    register_error_handlers(app)

    from podium.utils.logging_config import setup_logging

    setup_logging(app)

    with app.app_context():
        db.create_all()

    # Background statistics jobs
    from podium.services.scheduler_service import scheduler_service

    scheduler_service.init_app(app)

    logger.info(f"Podium starting with '{config_name}' configuration")

    return app


def register_error_handlers(app):
    """Translate domain and HTTP errors into JSON responses"""
    from podium.errors import PodiumError

    @app.after_request
    def after_request(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if not app.config.get("DEBUG"):
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response

    @app.errorhandler(PodiumError)
    def handle_podium_error(error):
        db.session.rollback()
        app.logger.info(
            f"{type(error).__name__}: {error.message} - Path: {request.path}"
        )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if error.code >= 500:
            db.session.rollback()
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error(f"Internal error on {request.path}: {error}")
        return jsonify({"error": "Internal server error"}), 500


from podium import models  # noqa: F401, E402 - imported for model registration
