"""
Account changes made by a signed-in user: username, email, password and the
preferred sign-in method. Each change is confirmed with the current password
or a one-time code.
"""

import logging

from podium import db
from podium.errors import IdentityNotVerified, ValidationError
from podium.models import OneTimeCode, User
from podium.services.auth_service import USERNAME_PATTERN, issue_code, verify_identity
from podium.utils.cache_utils import invalidate_leaderboards

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def send_identity_code(user):
    """Email a code the user can quote instead of their password"""
    return issue_code(user, purpose="verification")


def change_username(user, new_username, password=None, code=None):
    new_username = (new_username or "").strip()
    if not USERNAME_PATTERN.match(new_username):
        raise ValidationError(
            "Username must be 3-80 characters of letters, numbers, dots, "
            "underscores or hyphens"
        )

    existing = User.query.filter_by(normalized_username=new_username.lower()).first()
    if existing is not None and existing.id != user.id:
        raise ValidationError("Username is already taken", status_code=409)

    verify_identity(user, password, code)

    old_username = user.username
    user.set_username(new_username)
    db.session.commit()

    # Standings carry usernames
    invalidate_leaderboards()
    logger.info(f"User {user.id} renamed from {old_username} to {new_username}")
    return user


def set_auth_method(user, method, password=None, code=None):
    if method not in User.AUTH_METHODS:
        raise ValidationError(f"Method must be one of {', '.join(User.AUTH_METHODS)}")
    if method in ("Password", "Both") and not user.has_password:
        raise ValidationError("Set a password before enabling password sign-in")

    verify_identity(user, password, code)

    user.preferred_auth_method = method
    db.session.commit()
    logger.info(f"User {user.id} now signs in with {method}")
    return user


def change_password(user, new_password, old_password=None, code=None):
    """
    Set or replace the user's password.

    Replacing a password needs the old one. A first password is confirmed
    with a one-time code instead.
    """
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    if user.has_password:
        if not old_password:
            raise ValidationError("Current password is required")
        if not user.check_password(old_password):
            raise IdentityNotVerified("Current password is incorrect")
    else:
        if not code:
            raise ValidationError("Verification code is required")
        verify_identity(user, code=code)

    user.set_password(new_password)
    db.session.commit()
    logger.info(f"User {user.id} changed their password")
    return user


def request_email_change(user, new_email):
    """Send a confirmation code to the new address"""
    new_email = (new_email or "").strip().lower()
    if new_email == user.email:
        raise ValidationError("That is already your email address")

    existing = User.query.filter_by(email=new_email).first()
    if existing is not None:
        raise ValidationError("Email is already registered", status_code=409)

    return issue_code(user, email=new_email, purpose="verification")


def confirm_email_change(user, new_email, code):
    new_email = (new_email or "").strip().lower()

    record = OneTimeCode.redeem(new_email, (code or "").strip())
    if record is None or record.user_id != user.id:
        db.session.rollback()
        raise ValidationError("Invalid or expired code")

    if User.query.filter(User.email == new_email, User.id != user.id).first():
        db.session.rollback()
        raise ValidationError("Email is already registered", status_code=409)

    old_email = user.email
    user.email = new_email
    user.is_verified = True
    db.session.commit()

    logger.info(f"User {user.id} changed email from {old_email} to {new_email}")
    return user
