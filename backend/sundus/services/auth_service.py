# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every POS action must be attributable. Uses bcrypt for password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12 unless BCRYPT_ROUNDS overrides it)
- Minimum 8 characters, upper + lower case, digit and special char
- Session tokens managed separately (see session_service.py)
- Every login attempt against a known account lands in login_history
"""

import bcrypt
import re
from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import User, LoginHistory
from sundus.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


@dataclass
class AuthResult:
    """
    Outcome of a credential check.

    status: "ok", "unknown" (no such user), "inactive", "bad_password"
    """
    status: str
    user: User | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def find_login_user(identifier: str) -> User | None:
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    return db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier),
        User.deleted_at.is_(None),
    ).first()


def authenticate(identifier: str, password: str) -> AuthResult:
    """
    Check credentials for a username or email.

    Updates last_login_at on success. Does not record login history;
    the caller does that with request metadata.
    """
    user = find_login_user(identifier)
    if not user:
        return AuthResult("unknown")

    if not user.is_active:
        return AuthResult("inactive", user)

    if not verify_password(password, user.password_hash):
        return AuthResult("bad_password", user)

    user.last_login_at = utcnow()
    db.session.commit()
    return AuthResult("ok", user)


def _device_from_user_agent(user_agent: str | None) -> str | None:
    if not user_agent:
        return None
    return user_agent.split(") ")[-1][:255] or None


def record_login(
    user: User,
    *,
    success: bool,
    ip_address: str | None,
    user_agent: str | None,
) -> LoginHistory:
    entry = LoginHistory(
        user_id=user.id,
        ip_address=ip_address,
        user_agent=user_agent,
        device=_device_from_user_agent(user_agent),
        status="success" if success else "failed",
        login_time=utcnow(),
    )
    db.session.add(entry)
    db.session.commit()
    return entry
