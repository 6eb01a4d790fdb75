# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

SECURITY:
- /online is public (the customer-facing menu)
- Read operations require authentication
- Write operations require the admin or manager role
"""
from flask import Blueprint, request

from ..services import products_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_role

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "price", "cost", "sku", "barcode", "is_generated_barcode",
        "category_id", "image_url", "is_active", "available_online",
    },
    required_on_create={"name", "price"},
    aliases={
        "categoryId": "category_id",
        "imageUrl": "image_url",
        "isActive": "is_active",
        "availableOnline": "available_online",
        "isGeneratedBarcode": "is_generated_barcode",
    },
)

products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


def _flag(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.lower() in ("1", "true", "yes")


@products_bp.get("/online")
def online_menu_route():
    """Active products visible on the online menu (no authentication)."""
    result = products_service.list_online_menu()
    return {"success": True, "count": result["count"], "data": result["items"]}


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List products ordered by name.

    Query params:
    - categoryId: int (optional)
    - active: bool (optional)
    - online: bool (optional) - available_online
    - search: str (optional) - matches name, sku or barcode
    """
    result = products_service.list_products(
        category_id=request.args.get("categoryId", type=int),
        active=_flag("active"),
        online=_flag("online"),
        search=request.args.get("search") or None,
    )
    return {"success": True, "count": result["count"], "data": result["items"]}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    if product is None:
        return {"success": False, "message": "Product not found"}, 404
    return {"success": True, "data": product.to_dict()}


@products_bp.post("")
@require_auth
@require_role("admin", "manager")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch)
    except ValidationError as e:
        return {"success": False, "message": str(e)}, 400
    except ConflictError as e:
        return {"success": False, "message": str(e)}, 409

    return {"success": True, "data": created}, 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role("admin", "manager")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"success": False, "message": str(e)}, 400
    except ConflictError as e:
        return {"success": False, "message": str(e)}, 409

    if not updated:
        return {"success": False, "message": "Product not found"}, 404

    return {"success": True, "data": updated}, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin", "manager")
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id=product_id)
    except ConflictError as e:
        return {"success": False, "message": str(e)}, 409

    if not deleted:
        return {"success": False, "message": "Product not found"}, 404

    return {"success": True, "message": "Product deleted"}, 200
