import secrets
from datetime import datetime, timedelta, timezone

from werkzeug.security import check_password_hash, generate_password_hash

from podium import db
from podium.utils.timezone_utils import ensure_utc, get_utc_time


class OneTimeCode(db.Model):
    """Six-digit sign-in code sent by email. Stored hashed, single use."""

    __tablename__ = "one_time_codes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    email = db.Column(db.String(120), nullable=False, index=True)
    code_hash = db.Column(db.String(255), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @staticmethod
    def generate_code():
        return f"{secrets.randbelow(1_000_000):06d}"

    @staticmethod
    def issue(user, minutes, email=None):
        """Create a code for a user; returns (record, plain code)

        The code is bound to the user's address unless another one is given,
        as when confirming a new email address.
        """
        code = OneTimeCode.generate_code()
        record = OneTimeCode(
            user_id=user.id,
            email=(email or user.email).strip().lower(),
            code_hash=generate_password_hash(code),
            expires_at=get_utc_time() + timedelta(minutes=minutes),
        )
        db.session.add(record)
        return record, code

    @property
    def is_expired(self):
        return ensure_utc(self.expires_at) <= get_utc_time()

    def matches(self, code):
        return check_password_hash(self.code_hash, code)

    @staticmethod
    def redeem(email, code):
        """Mark the matching unused, unexpired code as used and return it"""
        candidates = (
            OneTimeCode.query.filter_by(email=email.strip().lower(), is_used=False)
            .order_by(OneTimeCode.created_at.desc())
            .all()
        )
        for record in candidates:
            if not record.is_expired and record.matches(code):
                record.is_used = True
                return record
        return None

    @staticmethod
    def purge_expired():
        """Delete used or expired codes; returns number removed"""
        now = get_utc_time()
        stale = [
            record
            for record in OneTimeCode.query.all()
            if record.is_used or ensure_utc(record.expires_at) <= now
        ]
        for record in stale:
            db.session.delete(record)
        return len(stale)


class AuthSession(db.Model):
    """Bearer token issued after a successful sign-in"""

    __tablename__ = "auth_sessions"

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(100), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime, nullable=False)
    last_activity = db.Column(db.DateTime)

    @staticmethod
    def start(user, days):
        session = AuthSession(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            expires_at=get_utc_time() + timedelta(days=days),
            last_activity=get_utc_time(),
        )
        db.session.add(session)
        return session

    @staticmethod
    def validate(token):
        """Return the active, unexpired session for a token, or None"""
        if not token:
            return None
        session = AuthSession.query.filter_by(token=token, is_active=True).first()
        if session is None or ensure_utc(session.expires_at) <= get_utc_time():
            return None
        if session.user is None or not session.user.is_active:
            return None
        return session

    def touch(self):
        self.last_activity = get_utc_time()

    def end(self):
        self.is_active = False

    @staticmethod
    def purge_expired():
        now = get_utc_time()
        stale = [
            session
            for session in AuthSession.query.all()
            if not session.is_active or ensure_utc(session.expires_at) <= now
        ]
        for session in stale:
            db.session.delete(session)
        return len(stale)

    def to_dict(self):
        return {
            "token": self.token,
            "user_id": self.user_id,
            "expires_at": ensure_utc(self.expires_at).isoformat(),
        }
