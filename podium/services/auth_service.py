"""
Sign-in with one-time email codes and bearer session tokens.
"""

import logging
import re

from flask import current_app

from podium import db
from podium.errors import AuthenticationError, IdentityNotVerified, ValidationError
from podium.models import AuthSession, OneTimeCode, User
from podium.utils.cache_utils import invalidate_leaderboards
from podium.utils.email_service import EmailService

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{3,80}$")


def register_user(email, username):
    """Create an account; email and username are unique case-insensitively"""
    email = (email or "").strip().lower()
    username = (username or "").strip()

    if "@" not in email:
        raise ValidationError("A valid email address is required")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            "Username must be 3-80 characters of letters, numbers, dots, "
            "underscores or hyphens"
        )
    if User.query.filter_by(email=email).first():
        raise ValidationError("Email is already registered", status_code=409)
    if User.query.filter_by(normalized_username=username.lower()).first():
        raise ValidationError("Username is already taken", status_code=409)

    user = User.create_user(username, email)
    db.session.commit()
    # Standings that list every participant must pick up the new account
    invalidate_leaderboards()
    logger.info(f"Registered user {user.id} ({username})")
    return user


def send_sign_in_code(identifier):
    """Issue a one-time code for a user found by email or username and email it"""
    user = User.find_by_email_or_username(identifier)
    if user is None:
        raise ValidationError("User not found. Please sign up first.", status_code=404)
    if not user.is_active:
        raise AuthenticationError("This account has been deactivated")

    code = issue_code(user)
    return user, code


def issue_code(user, email=None, purpose="sign-in"):
    """Issue a one-time code for a user and email it; returns the plain code"""
    email = email or user.email
    minutes = current_app.config.get("ONE_TIME_CODE_MINUTES", 10)
    _, code = OneTimeCode.issue(user, minutes, email=email)
    db.session.commit()

    email_service = EmailService()
    if email_service.is_configured:
        if purpose == "sign-in":
            email_service.send_sign_in_code(email, code, minutes)
        else:
            email_service.send_verification_code(email, code, minutes)
    elif current_app.debug:
        logger.info(f"{purpose} code for {email}: {code}")
    else:
        logger.warning(f"{purpose} code for user {user.id} issued but mail is not configured")

    return code


def verify_sign_in_code(email, code):
    """Exchange a valid code for a new session"""
    record = OneTimeCode.redeem(email or "", (code or "").strip())
    if record is None:
        db.session.rollback()
        raise AuthenticationError("Invalid or expired code")

    user = db.session.get(User, record.user_id)
    # Codes sent to a pending new address only confirm that address
    if user is None or not user.is_active or user.email != record.email:
        db.session.rollback()
        raise AuthenticationError("Invalid or expired code")

    user.is_verified = True
    user.update_last_login()
    session = AuthSession.start(user, current_app.config.get("SESSION_DAYS", 30))
    db.session.commit()

    logger.info(f"User {user.id} signed in with a one-time code")
    return user, session


def validate_session(token):
    session = AuthSession.validate(token)
    if session is None:
        raise AuthenticationError("Session is invalid or expired")
    session.touch()
    db.session.commit()
    return session


def sign_out(token):
    session = AuthSession.query.filter_by(token=token).first()
    if session is not None:
        session.end()
        db.session.commit()
        logger.info(f"User {session.user_id} signed out")


def sign_in_with_password(identifier, password):
    """Start a session for a user signing in with a password"""
    user = User.find_by_email_or_username(identifier)
    if user is None or not user.check_password(password):
        raise AuthenticationError("Invalid username or password")
    if not user.is_active:
        raise AuthenticationError("This account has been deactivated")
    if not user.allows_password_sign_in:
        raise AuthenticationError("Password sign-in is not enabled for this account")

    user.update_last_login()
    session = AuthSession.start(user, current_app.config.get("SESSION_DAYS", 30))
    db.session.commit()

    logger.info(f"User {user.id} signed in with a password")
    return user, session


def verify_identity(user, password=None, code=None):
    """
    Confirm a signed-in user before an account change.

    A password is checked when given and the account has one; otherwise a
    one-time code sent to the user's current address is redeemed.
    """
    if password and user.has_password:
        if not user.check_password(password):
            raise IdentityNotVerified("Password is incorrect")
        return

    if code:
        record = OneTimeCode.redeem(user.email, code.strip())
        if record is None or record.user_id != user.id:
            raise IdentityNotVerified("Invalid or expired code")
        return

    raise ValidationError("Please provide your password or verification code")
