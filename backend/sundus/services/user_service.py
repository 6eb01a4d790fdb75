# Overview: Service-layer operations for staff accounts; encapsulates business logic and database work.

"""
User Service

Account administration for admins. Passwords always pass through
auth_service.hash_password (strength check + bcrypt). Deactivating or
deleting an account revokes its sessions in the same commit.
"""

from __future__ import annotations

from ..extensions import db
from ..models import LoginHistory, User, USER_ROLES
from ..validation import ConflictError, ValidationError, EMAIL_RE
from .auth_service import hash_password, PasswordValidationError
from .session_service import revoke_all_user_sessions
from sundus.time_utils import utcnow


class UserError(Exception):
    """Raised for user operation errors."""
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def _live():
    return db.session.query(User).filter(User.deleted_at.is_(None))


def _clean(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ValidationError("Expected a string value")
    s = str(value).strip()
    return s or None


def _check_unique(*, username: str | None, email: str | None, exclude_id: str | None = None) -> None:
    conditions = []
    if username:
        conditions.append(User.username == username)
    if email:
        conditions.append(User.email == email)
    if not conditions:
        return

    query = db.session.query(User).filter(db.or_(*conditions))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    clash = query.first()
    if clash is not None:
        which = "username" if username and clash.username == username else "email"
        raise ConflictError(f"Duplicate value for {which}. Email and username must be unique.")


def _check_role(role: str) -> None:
    if role not in USER_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(USER_ROLES)}")


def list_users(*, role: str | None = None, include_inactive: bool = True) -> list[User]:
    query = _live()
    if role:
        query = query.filter(User.role == role)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.username.asc()).all()


def get_user(user_id: str) -> User:
    user = _live().filter(User.id == user_id).first()
    if user is None:
        raise UserError("User not found", status=404)
    return user


def create_user(
    *,
    username,
    email,
    password,
    full_name=None,
    phone=None,
    role="user",
    is_active=True,
) -> User:
    username = _clean(username)
    email = _clean(email)
    if not username or not email or not password:
        raise ValidationError("username, email and password are required")
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email")
    role = _clean(role) or "user"
    _check_role(role)
    _check_unique(username=username, email=email)

    try:
        password_hash = hash_password(str(password))
    except PasswordValidationError as e:
        raise ValidationError(str(e))

    user = User(
        username=username,
        email=email,
        password_hash=password_hash,
        full_name=_clean(full_name),
        phone=_clean(phone),
        role=role,
        is_active=bool(is_active),
    )
    db.session.add(user)
    db.session.commit()
    return user


def update_user(user_id: str, payload: dict) -> User:
    user = get_user(user_id)

    username = _clean(payload.get("username")) if "username" in payload else None
    email = _clean(payload.get("email")) if "email" in payload else None
    if "username" in payload and not username:
        raise ValidationError("username cannot be blank")
    if "email" in payload:
        if not email or not EMAIL_RE.match(email):
            raise ValidationError("Invalid email")
    _check_unique(
        username=username if username != user.username else None,
        email=email if email != user.email else None,
        exclude_id=user.id,
    )

    if username:
        user.username = username
    if email:
        user.email = email
    if "fullName" in payload:
        user.full_name = _clean(payload.get("fullName"))
    if "phone" in payload:
        user.phone = _clean(payload.get("phone"))
    if payload.get("role") is not None:
        _check_role(payload["role"])
        user.role = payload["role"]
    if payload.get("password"):
        try:
            user.password_hash = hash_password(str(payload["password"]))
        except PasswordValidationError as e:
            raise ValidationError(str(e))
        revoke_all_user_sessions(user.id, reason="Password changed")
    if "isActive" in payload and payload["isActive"] is not None:
        user.is_active = bool(payload["isActive"])
        if not user.is_active:
            revoke_all_user_sessions(user.id, reason="Account deactivated")

    db.session.commit()
    return user


def delete_user(user_id: str, *, acting_user_id: str) -> None:
    """Soft delete; sales keep their creator link."""
    if user_id == acting_user_id:
        raise UserError("You cannot delete your own account")
    user = get_user(user_id)
    user.deleted_at = utcnow()
    user.is_active = False
    revoke_all_user_sessions(user.id, reason="Account deleted")
    db.session.commit()


def toggle_status(user_id: str, *, acting_user_id: str) -> User:
    if user_id == acting_user_id:
        raise UserError("You cannot deactivate your own account")
    user = get_user(user_id)
    user.is_active = not user.is_active
    if not user.is_active:
        revoke_all_user_sessions(user.id, reason="Account deactivated")
    db.session.commit()
    return user


def login_history(user_id: str, *, limit: int = 50) -> list[LoginHistory]:
    get_user(user_id)
    return (
        db.session.query(LoginHistory)
        .filter(LoginHistory.user_id == user_id)
        .order_by(LoginHistory.login_time.desc(), LoginHistory.id.desc())
        .limit(limit)
        .all()
    )
