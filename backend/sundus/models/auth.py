from __future__ import annotations

import uuid

from ..extensions import db
from sundus.time_utils import to_utc_z

USER_ROLES = ("admin", "manager", "cashier", "user", "storekeeper", "accountant", "staff")

# Roles that receive staff-wide notifications (new online orders, status changes)
STAFF_ROLES = ("admin", "manager", "cashier", "staff")


def _uuid() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """
    Staff accounts for the POS and the admin screens.

    WHY: Every POS sale is attributable to the cashier who rang it up.
    Online orders are placed anonymously and carry no user.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="user", index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    login_history = db.relationship(
        "LoginHistory",
        back_populates="user",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="desc(LoginHistory.login_time)",
    )

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "fullName": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "isActive": self.is_active,
            "lastLogin": to_utc_z(self.last_login_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_summary(self) -> dict:
        return {"id": self.id, "username": self.username, "fullName": self.full_name, "email": self.email}


class LoginHistory(db.Model):
    """Append-only record of login attempts (successful and failed)."""
    __tablename__ = "login_history"
    __table_args__ = (
        db.Index("ix_login_history_user_time", "user_id", "login_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.Text, nullable=True)
    device = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="success", index=True)  # success, failed
    login_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    user = db.relationship("User", back_populates="login_history")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "device": self.device,
            "status": self.status,
            "loginTime": to_utc_z(self.login_time),
        }


class SessionToken(db.Model):
    """
    Opaque bearer session.

    SECURITY: Only the SHA-256 of the token is stored; the plaintext is
    returned once at login.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "createdAt": to_utc_z(self.created_at),
            "lastUsedAt": to_utc_z(self.last_used_at),
            "expiresAt": to_utc_z(self.expires_at),
            "isRevoked": self.is_revoked,
        }
