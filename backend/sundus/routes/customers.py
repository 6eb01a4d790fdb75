# Overview: Flask API routes for customers; parses input and returns JSON responses.

"""
Customer API routes.

find-or-create is public (used by the online checkout); the rest requires
a signed-in user.
"""

from flask import Blueprint, request, jsonify

from ..models import Customer
from ..services import customer_service
from ..services.customer_service import CustomerError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_email,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "email", "phone", "address", "city", "state",
        "postal_code", "country", "notes", "is_active",
    },
    required_on_create={"name"},
    aliases={"postalCode": "postal_code", "isActive": "is_active"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/v1/customers")


def _error(e, status: int):
    return jsonify({"success": False, "message": str(e)}), status


@customers_bp.post("/find-or-create")
def find_or_create_route():
    """
    Body: {name?, email?, phone?}; email or phone is required.
    """
    payload = request.get_json(silent=True) or {}

    def _field(key):
        value = payload.get(key)
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value).strip() or None

    email = _field("email")
    try:
        enforce_rules_email({"email": email})
        customer = customer_service.find_or_create(
            name=_field("name"),
            email=email,
            phone=_field("phone"),
        )
    except (CustomerError, ValidationError) as e:
        return _error(e, 400)

    return jsonify({"success": True, "data": customer.to_dict()}), 200


@customers_bp.get("")
@require_auth
def list_customers_route():
    """Query params: search, includeInactive"""
    include_inactive = request.args.get("includeInactive", "false").lower() in ("1", "true")
    customers = customer_service.list_customers(
        search=request.args.get("search") or None,
        include_inactive=include_inactive,
    )
    return jsonify({
        "success": True,
        "count": len(customers),
        "data": [c.to_dict() for c in customers],
    }), 200


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    customer = customer_service.get_customer(customer_id)
    if customer is None:
        return _error("Customer not found", 404)
    return jsonify({"success": True, "data": customer.to_dict()}), 200


@customers_bp.post("")
@require_auth
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_email(patch)
        customer = customer_service.create_customer(patch=patch)
    except ValidationError as e:
        return _error(e, 400)
    except ConflictError as e:
        return _error(e, 409)

    return jsonify({"success": True, "data": customer.to_dict()}), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_email(patch)
        customer = customer_service.update_customer(customer_id=customer_id, patch=patch)
    except ValidationError as e:
        return _error(e, 400)
    except ConflictError as e:
        return _error(e, 409)
    except CustomerError as e:
        return _error(e, e.status)

    return jsonify({"success": True, "data": customer.to_dict()}), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id=customer_id)
    except CustomerError as e:
        return _error(e, e.status)
    return jsonify({"success": True, "message": "Customer deleted"}), 200


@customers_bp.get("/<int:customer_id>/sales")
@require_auth
def customer_sales_route(customer_id: int):
    try:
        sales = customer_service.customer_sales(customer_id)
    except CustomerError as e:
        return _error(e, e.status)
    return jsonify({
        "success": True,
        "count": len(sales),
        "data": [s.to_dict() for s in sales],
    }), 200
