from __future__ import annotations

from ..extensions import db
from sundus.time_utils import to_utc_z

NOTIFICATION_TYPES = ("new_order", "order_status", "order_status_admin", "system")


class Notification(db.Model):
    """
    Staff-facing system event.

    user_id NULL means the row is addressed to all staff (the shared
    online-orders feed); otherwise it belongs to one user.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_read", "user_id", "is_read"),
        db.Index("ix_notifications_related", "related_type", "related_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    type = db.Column(db.String(32), nullable=False, default="system", index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    related_id = db.Column(db.String(64), nullable=True)
    related_type = db.Column(db.String(32), nullable=True)
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "relatedId": self.related_id,
            "relatedType": self.related_type,
            "isRead": self.is_read,
            "createdAt": to_utc_z(self.created_at),
        }
