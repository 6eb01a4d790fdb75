# Overview: Flask API routes for staff notifications; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..services import notification_service
from ..services.notification_service import NotificationError
from ..decorators import require_auth, require_role


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/v1/notifications")


def _page_args() -> tuple[int, int]:
    limit = request.args.get("limit", 50, type=int)
    offset = request.args.get("offset", 0, type=int)
    return min(max(limit, 1), 200), max(offset, 0)


def _page(rows, total, limit, offset):
    return jsonify({
        "success": True,
        "count": len(rows),
        "total": total,
        "limit": limit,
        "offset": offset,
        "data": [n.to_dict() for n in rows],
    }), 200


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    """
    Own notifications; staff also see rows addressed to all staff.

    Query params: isRead, type, relatedId, relatedType, limit, offset
    """
    raw_read = request.args.get("isRead")
    is_read = None if raw_read in (None, "") else raw_read.lower() in ("1", "true")
    limit, offset = _page_args()

    rows, total = notification_service.list_notifications(
        g.current_user,
        is_read=is_read,
        kind=request.args.get("type") or None,
        related_id=request.args.get("relatedId") or None,
        related_type=request.args.get("relatedType") or None,
        limit=limit,
        offset=offset,
    )
    return _page(rows, total, limit, offset)


@notifications_bp.get("/admin")
@require_auth
@require_role("admin")
def list_all_notifications_route():
    limit, offset = _page_args()
    rows, total = notification_service.list_notifications(
        g.current_user,
        kind=request.args.get("type") or None,
        limit=limit,
        offset=offset,
        all_users=True,
    )
    return _page(rows, total, limit, offset)


@notifications_bp.get("/online-orders")
@require_auth
@require_role("admin", "cashier")
def online_order_notifications_route():
    limit, offset = _page_args()
    rows, total = notification_service.list_online_order_notifications(limit=limit, offset=offset)
    return _page(rows, total, limit, offset)


@notifications_bp.get("/unread-count")
@require_auth
def unread_count_route():
    return jsonify({"success": True, "data": {"count": notification_service.unread_count(g.current_user)}}), 200


@notifications_bp.get("/unread-online-orders-count")
@require_auth
def unread_online_orders_count_route():
    return jsonify({"success": True, "data": {"count": notification_service.unread_online_orders_count()}}), 200


@notifications_bp.route("/<int:notification_id>/read", methods=["PUT", "PATCH"])
@require_auth
def mark_read_route(notification_id: int):
    try:
        notification = notification_service.mark_as_read(g.current_user, notification_id)
    except NotificationError as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    return jsonify({"success": True, "data": notification.to_dict()}), 200


@notifications_bp.put("/mark-all-read")
@require_auth
def mark_all_read_route():
    count = notification_service.mark_all_as_read(g.current_user)
    return jsonify({"success": True, "data": {"updated": count}}), 200


@notifications_bp.delete("/<int:notification_id>")
@require_auth
def delete_notification_route(notification_id: int):
    try:
        notification_service.delete_notification(g.current_user, notification_id)
    except NotificationError as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    return jsonify({"success": True, "message": "Notification deleted"}), 200


@notifications_bp.delete("")
@require_auth
def delete_own_notifications_route():
    count = notification_service.delete_own_notifications(g.current_user)
    return jsonify({"success": True, "data": {"deleted": count}}), 200
