# Overview: Service-layer operations for staff notifications; encapsulates business logic and database work.

"""
Notification Service

Notifications are written inside the caller's transaction: create_* adds the
row to the session and flushes, but never commits. The order flow relies on
this so a sale and its "new order" notification land (or roll back) together.

Addressing:
- user_id set: the row belongs to that user
- user_id NULL: the row is addressed to all staff
"""

from __future__ import annotations

from ..extensions import db
from ..models import Notification, NOTIFICATION_TYPES, User


class NotificationError(Exception):
    """Raised for notification operation errors."""
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def create_system_notification(
    kind: str,
    title: str,
    message: str,
    related_id: str | int | None = None,
    related_type: str | None = None,
    user_id: str | None = None,
) -> Notification:
    """Add a notification to the current transaction (no commit)."""
    if kind not in NOTIFICATION_TYPES:
        raise NotificationError(f"Invalid notification type: {kind}")

    notification = Notification(
        user_id=user_id,
        type=kind,
        title=title,
        message=message,
        related_id=str(related_id) if related_id is not None else None,
        related_type=related_type,
        is_read=False,
    )
    db.session.add(notification)
    db.session.flush()
    return notification


def _visible_to(user: User):
    """Rows a user may see: their own, plus staff-wide rows for staff roles."""
    query = db.session.query(Notification)
    if user.is_staff:
        return query.filter(db.or_(Notification.user_id == user.id, Notification.user_id.is_(None)))
    return query.filter(Notification.user_id == user.id)


def list_notifications(
    user: User,
    *,
    is_read: bool | None = None,
    kind: str | None = None,
    related_id: str | None = None,
    related_type: str | None = None,
    limit: int = 50,
    offset: int = 0,
    all_users: bool = False,
) -> tuple[list[Notification], int]:
    """Returns (page, total) newest first."""
    query = db.session.query(Notification) if all_users else _visible_to(user)

    if is_read is not None:
        query = query.filter(Notification.is_read.is_(is_read))
    if kind:
        query = query.filter(Notification.type == kind)
    if related_id:
        query = query.filter(Notification.related_id == str(related_id))
    if related_type:
        query = query.filter(Notification.related_type == related_type)

    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def list_online_order_notifications(*, limit: int = 50, offset: int = 0) -> tuple[list[Notification], int]:
    query = db.session.query(Notification).filter(Notification.type == "new_order")
    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def unread_count(user: User) -> int:
    return _visible_to(user).filter(Notification.is_read.is_(False)).count()


def unread_online_orders_count() -> int:
    return db.session.query(Notification).filter(
        Notification.type == "new_order",
        Notification.is_read.is_(False),
    ).count()


def _get_visible(user: User, notification_id: int) -> Notification:
    notification = _visible_to(user).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotificationError("Notification not found", status=404)
    return notification


def mark_as_read(user: User, notification_id: int) -> Notification:
    notification = _get_visible(user, notification_id)
    notification.is_read = True
    db.session.commit()
    return notification


def mark_all_as_read(user: User) -> int:
    rows = _visible_to(user).filter(Notification.is_read.is_(False)).all()
    for row in rows:
        row.is_read = True
    db.session.commit()
    return len(rows)


def delete_notification(user: User, notification_id: int) -> None:
    notification = _get_visible(user, notification_id)
    db.session.delete(notification)
    db.session.commit()


def delete_own_notifications(user: User) -> int:
    """Delete rows addressed to this user; staff-wide rows are left for the others."""
    count = (
        db.session.query(Notification)
        .filter(Notification.user_id == user.id)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return count
