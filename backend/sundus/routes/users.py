# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User administration routes.

SECURITY:
- Account management requires the admin or staff role
- /profile endpoints are for any signed-in user, about themselves
"""

from flask import Blueprint, request, jsonify, g

from ..services import user_service
from ..services.user_service import UserError
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_role


users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")

ADMIN_ROLES = ("admin", "staff")


def _json_error(exc: Exception):
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc)}), 400
    if isinstance(exc, ConflictError):
        return jsonify({"success": False, "message": str(exc)}), 409
    if isinstance(exc, UserError):
        return jsonify({"success": False, "message": str(exc)}), exc.status
    raise exc


@users_bp.get("/profile")
@require_auth
def profile_route():
    return jsonify({"success": True, "data": g.current_user.to_dict()}), 200


@users_bp.get("/profile/login-history")
@require_auth
def own_login_history_route():
    limit = min(max(request.args.get("limit", 50, type=int), 1), 200)
    rows = user_service.login_history(g.current_user.id, limit=limit)
    return jsonify({"success": True, "count": len(rows), "data": [r.to_dict() for r in rows]}), 200


@users_bp.get("")
@require_auth
@require_role(*ADMIN_ROLES)
def list_users_route():
    users = user_service.list_users(role=request.args.get("role") or None)
    return jsonify({"success": True, "count": len(users), "data": [u.to_dict() for u in users]}), 200


@users_bp.get("/<user_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def get_user_route(user_id: str):
    try:
        user = user_service.get_user(user_id)
    except UserError as e:
        return _json_error(e)
    return jsonify({"success": True, "data": user.to_dict()}), 200


@users_bp.post("")
@require_auth
@require_role(*ADMIN_ROLES)
def create_user_route():
    """
    Body: {username, email, password, fullName?, phone?, role?, isActive?}
    """
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.create_user(
            username=data.get("username"),
            email=data.get("email"),
            password=data.get("password"),
            full_name=data.get("fullName"),
            phone=data.get("phone"),
            role=data.get("role") or "user",
            is_active=data.get("isActive", True),
        )
    except (ValidationError, ConflictError, UserError) as e:
        return _json_error(e)
    return jsonify({"success": True, "data": user.to_dict()}), 201


@users_bp.put("/<user_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def update_user_route(user_id: str):
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_user(user_id, data)
    except (ValidationError, ConflictError, UserError) as e:
        return _json_error(e)
    return jsonify({"success": True, "data": user.to_dict()}), 200


@users_bp.delete("/<user_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def delete_user_route(user_id: str):
    try:
        user_service.delete_user(user_id, acting_user_id=g.current_user.id)
    except UserError as e:
        return _json_error(e)
    return jsonify({"success": True, "message": "User deleted"}), 200


@users_bp.patch("/<user_id>/toggle-status")
@require_auth
@require_role(*ADMIN_ROLES)
def toggle_status_route(user_id: str):
    try:
        user = user_service.toggle_status(user_id, acting_user_id=g.current_user.id)
    except UserError as e:
        return _json_error(e)
    state = "activated" if user.is_active else "deactivated"
    return jsonify({"success": True, "data": user.to_dict(), "message": f"User {state}"}), 200


@users_bp.get("/<user_id>/login-history")
@require_auth
@require_role(*ADMIN_ROLES)
def login_history_route(user_id: str):
    limit = min(max(request.args.get("limit", 50, type=int), 1), 200)
    try:
        rows = user_service.login_history(user_id, limit=limit)
    except UserError as e:
        return _json_error(e)
    return jsonify({"success": True, "count": len(rows), "data": [r.to_dict() for r in rows]}), 200
