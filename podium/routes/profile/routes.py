import logging

from flask import current_app, jsonify
from flask_login import current_user, login_required

from podium import limiter
from podium.errors import ValidationError
from podium.forms.auth import (
    AuthMethodForm,
    EmailChangeForm,
    EmailConfirmForm,
    PasswordForm,
    UsernameForm,
)
from podium.routes.decorators import add_security_headers
from podium.routes.profile import bp
from podium.services import profile_service

logger = logging.getLogger(__name__)


def _validated(form_class):
    form = form_class()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())
    return form


def _code_sent(message):
    return jsonify(
        {
            "message": message,
            "expires_in_minutes": current_app.config.get("ONE_TIME_CODE_MINUTES", 10),
        }
    )


@bp.route("", methods=["GET"])
@login_required
@add_security_headers
def profile():
    return jsonify(current_user.to_profile_dict())


@bp.route("/username", methods=["POST"])
@login_required
@add_security_headers
def change_username():
    form = _validated(UsernameForm)
    user = profile_service.change_username(
        current_user, form.new_username.data, form.password.data, form.code.data
    )
    return jsonify(user.to_profile_dict())


@bp.route("/auth-method", methods=["POST"])
@login_required
@add_security_headers
def set_auth_method():
    form = _validated(AuthMethodForm)
    user = profile_service.set_auth_method(
        current_user, form.method.data, form.password.data, form.code.data
    )
    return jsonify(user.to_profile_dict())


@bp.route("/password", methods=["POST"])
@login_required
@limiter.limit("10 per hour")
@add_security_headers
def change_password():
    form = _validated(PasswordForm)
    user = profile_service.change_password(
        current_user, form.new_password.data, form.old_password.data, form.code.data
    )
    return jsonify(user.to_profile_dict())


@bp.route("/password/send-code", methods=["POST"])
@login_required
@limiter.limit("5 per minute")
def send_password_code():
    profile_service.send_identity_code(current_user)
    return _code_sent("A verification code has been sent to your email")


@bp.route("/email/send-code", methods=["POST"])
@login_required
@limiter.limit("5 per minute")
@add_security_headers
def send_email_code():
    form = _validated(EmailChangeForm)
    profile_service.request_email_change(current_user, form.new_email.data)
    return _code_sent("A verification code has been sent to the new address")


@bp.route("/email/confirm", methods=["POST"])
@login_required
@limiter.limit("10 per minute")
@add_security_headers
def confirm_email():
    form = _validated(EmailConfirmForm)
    user = profile_service.confirm_email_change(
        current_user, form.new_email.data, form.code.data
    )
    return jsonify(user.to_profile_dict())
