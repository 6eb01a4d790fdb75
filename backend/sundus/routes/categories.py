# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request

from ..services import category_service
from ..models import Category
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_role

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "display_order", "is_active"},
    required_on_create={"name"},
    aliases={"displayOrder": "display_order", "isActive": "is_active"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/v1/categories")


@categories_bp.get("")
def list_categories_route():
    """Public; the online menu uses it for its tabs. ?active=true limits to active ones."""
    raw = request.args.get("active")
    active = None if not raw else raw.lower() in ("1", "true", "yes")
    categories = category_service.list_categories(active=active)
    return {"success": True, "count": len(categories), "data": [c.to_dict() for c in categories]}


@categories_bp.get("/<int:category_id>")
def get_category_route(category_id: int):
    category = category_service.get_category(category_id)
    if category is None:
        return {"success": False, "message": "Category not found"}, 404
    return {"success": True, "data": category.to_dict()}


@categories_bp.post("")
@require_auth
@require_role("admin", "manager")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        category = category_service.create_category(patch=patch)
    except ValidationError as e:
        return {"success": False, "message": str(e)}, 400
    except ConflictError as e:
        return {"success": False, "message": str(e)}, 409
    return {"success": True, "data": category.to_dict()}, 201


@categories_bp.put("/reorder")
@require_auth
@require_role("admin", "manager")
def reorder_categories_route():
    """Body: {"ids": [3, 1, 2]} - display_order follows list position."""
    payload = request.get_json(silent=True) or {}
    try:
        categories = category_service.reorder_categories(payload.get("ids"))
    except ValidationError as e:
        return {"success": False, "message": str(e)}, 400
    return {"success": True, "data": [c.to_dict() for c in categories]}


@categories_bp.put("/<int:category_id>")
@require_auth
@require_role("admin", "manager")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        category = category_service.update_category(category_id=category_id, patch=patch)
    except ValidationError as e:
        return {"success": False, "message": str(e)}, 400
    except ConflictError as e:
        return {"success": False, "message": str(e)}, 409
    if category is None:
        return {"success": False, "message": "Category not found"}, 404
    return {"success": True, "data": category.to_dict()}


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_role("admin", "manager")
def delete_category_route(category_id: int):
    try:
        deleted = category_service.delete_category(category_id=category_id)
    except ConflictError as e:
        return {"success": False, "message": str(e)}, 409
    if not deleted:
        return {"success": False, "message": "Category not found"}, 404
    return {"success": True, "message": "Category deleted"}
