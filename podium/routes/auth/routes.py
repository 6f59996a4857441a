import logging

from flask import current_app, jsonify
from flask_login import current_user, login_required

from podium import db, limiter, login_manager
from podium.errors import AuthenticationError, ValidationError
from podium.forms.auth import (
    RegistrationForm,
    SendCodeForm,
    SessionForm,
    SignInForm,
    VerifyCodeForm,
)
from podium.models import AuthSession, User
from podium.routes.auth import bp
from podium.routes.decorators import add_security_headers, bearer_token
from podium.services import auth_service

logger = logging.getLogger(__name__)


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(request):
    session = AuthSession.validate(bearer_token())
    if session is None:
        return None
    return session.user


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Authentication required"}), 401


@bp.route("/register", methods=["POST"])
@limiter.limit("5 per hour")
@add_security_headers
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    user = auth_service.register_user(form.email.data, form.username.data)
    return jsonify({"user": user.to_dict()}), 201


@bp.route("/send-code", methods=["POST"])
@limiter.limit("5 per minute")
@add_security_headers
def send_code():
    form = SendCodeForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    auth_service.send_sign_in_code(form.email.data)
    return jsonify(
        {
            "message": "A sign-in code has been sent",
            "expires_in_minutes": current_app.config.get("ONE_TIME_CODE_MINUTES", 10),
        }
    )


@bp.route("/verify-code", methods=["POST"])
@limiter.limit("10 per minute")
@add_security_headers
def verify_code():
    form = VerifyCodeForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    user, session = auth_service.verify_sign_in_code(form.email.data, form.code.data)
    return jsonify({"user": user.to_dict(), "session": session.to_dict()})


@bp.route("/signin", methods=["POST"])
@limiter.limit("10 per minute")
@add_security_headers
def signin():
    form = SignInForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    user, session = auth_service.sign_in_with_password(form.email.data, form.password.data)
    return jsonify({"user": user.to_dict(), "session": session.to_dict()})


@bp.route("/validate-session", methods=["POST"])
@add_security_headers
def validate_session():
    token = bearer_token()
    if token is None:
        form = SessionForm()
        if not form.validate_on_submit():
            raise AuthenticationError("No session provided")
        token = form.session_id.data

    session = auth_service.validate_session(token)
    return jsonify({"user": session.user.to_dict(), "session": session.to_dict()})


@bp.route("/signout", methods=["POST"])
@login_required
def signout():
    auth_service.sign_out(bearer_token())
    logger.info(f"Session closed for {current_user.username}")
    return jsonify({"success": True})
