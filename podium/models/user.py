from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from podium import db
from podium.utils.timezone_utils import ensure_utc


class User(UserMixin, db.Model):
    __tablename__ = "users"

    AUTH_METHODS = ("Email", "Password", "Both")

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    # Lowercase copy for case-insensitive lookups
    normalized_username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)

    # Optional; accounts created by code sign-in have none
    password_hash = db.Column(db.String(255), nullable=True)
    preferred_auth_method = db.Column(db.String(20), default="Email", nullable=False)

    # Account status
    is_active = db.Column(db.Boolean, default=True)
    is_verified = db.Column(db.Boolean, default=False)
    is_admin = db.Column(db.Boolean, default=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    last_login = db.Column(db.DateTime)

    predictions = db.relationship(
        "Prediction", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    sessions = db.relationship(
        "AuthSession", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (db.Index("idx_user_created_at", "created_at"),)

    def __repr__(self):
        return f"<User {self.username}>"

    @staticmethod
    def find_by_email_or_username(identifier):
        """Look a user up by email (contains '@') or username, case-insensitively"""
        identifier = (identifier or "").strip().lower()
        if not identifier:
            return None
        if "@" in identifier:
            return User.query.filter_by(email=identifier).first()
        return User.query.filter_by(normalized_username=identifier).first()

    @staticmethod
    def create_user(username, email, is_admin=False):
        user = User(
            username=username.strip(),
            normalized_username=username.strip().lower(),
            email=email.strip().lower(),
            is_admin=is_admin,
        )
        db.session.add(user)
        return user

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        if not self.password_hash or not password:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def has_password(self):
        return bool(self.password_hash)

    @property
    def allows_password_sign_in(self):
        return self.has_password and self.preferred_auth_method in ("Password", "Both")

    def set_username(self, username):
        self.username = username.strip()
        self.normalized_username = self.username.lower()

    def update_last_login(self):
        self.last_login = datetime.now(timezone.utc)

    def to_dict(self):
        """Convert user to dictionary for API responses"""
        return {
            "id": self.id,
            "username": self.username,
            "is_active": self.is_active,
            "is_admin": self.is_admin,
            "created_at": (
                ensure_utc(self.created_at).isoformat() if self.created_at else None
            ),
        }

    def to_profile_dict(self):
        """Account details shown only to the user themselves"""
        return {
            **self.to_dict(),
            "email": self.email,
            "is_verified": self.is_verified,
            "preferred_auth_method": self.preferred_auth_method,
            "has_password": self.has_password,
            "last_login": (
                ensure_utc(self.last_login).isoformat() if self.last_login else None
            ),
        }
