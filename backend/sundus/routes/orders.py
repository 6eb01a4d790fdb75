# Overview: Flask API routes for online orders; parses input and returns JSON responses.

"""
Online order API routes

POST /with-image is public: customers check out without an account. A
staff token, when present, stamps the order with that user. Everything
else here is for signed-in staff.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import order_service
from ..services.order_intake import IntakeError, parse_order_request
from ..services.order_service import OrderError
from ..services.upload_service import UploadError
from ..decorators import require_auth, optional_auth


orders_bp = Blueprint("orders", __name__, url_prefix="/api/v1/orders")


def _request_body():
    if request.is_json:
        return request.get_json(silent=True)
    if request.form:
        return request.form.to_dict()
    if request.files:
        return {}
    return None


@orders_bp.post("/with-image")
@optional_auth
def create_order_with_image_route():
    """
    Create an online order, optionally with a payment receipt image.

    Body: multipart form with an `orderData` JSON field plus an optional
    `transactionImage` file, or the same order data as a JSON body.
    """
    try:
        intake = parse_order_request(_request_body(), request.files)
    except IntakeError as e:
        body = {"success": False, "message": str(e)}
        if e.error:
            body["error"] = e.error
        return jsonify(body), 400

    user = g.current_user
    user_id = user.id if user is not None and user.is_staff else None

    try:
        sale = order_service.create_order(intake, user_id=user_id)
    except (OrderError, UploadError) as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    except Exception as e:
        current_app.logger.exception("Failed to create online order")
        return jsonify({
            "success": False,
            "message": "Server error while creating the order",
            "error": str(e),
        }), 500

    return jsonify({
        "success": True,
        "data": {
            "id": sale.id,
            "orderNumber": sale.id,
            "status": "pending",
            "message": "Order created successfully",
        }
    }), 201


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    List orders with customer, creator and items, newest first.

    Query params: status, source, limit
    """
    try:
        orders = order_service.list_orders(
            status=request.args.get("status") or None,
            source=request.args.get("source") or None,
            limit=request.args.get("limit", type=int),
        )
    except OrderError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    return jsonify({
        "success": True,
        "count": len(orders),
        "data": [o.to_dict(include_items=True, include_relations=True) for o in orders],
    }), 200


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(order_id)
    except OrderError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    return jsonify({
        "success": True,
        "data": order.to_dict(include_items=True, include_relations=True),
    }), 200


def _set_status(order_id: str, status):
    try:
        order = order_service.update_order_status(order_id, status)
    except OrderError as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"success": False, "message": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "data": order.to_dict(),
        "message": f"Order status updated to {order.status}",
    }), 200


@orders_bp.put("/<order_id>/status")
@require_auth
def update_order_status_route(order_id: str):
    data = request.get_json(silent=True) or {}
    return _set_status(order_id, data.get("status"))


@orders_bp.post("/<order_id>/accept")
@require_auth
def accept_order_route(order_id: str):
    return _set_status(order_id, "accepted")
