# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""POS sales API routes"""

import io

from flask import Blueprint, request, jsonify, g, current_app, send_file

from ..services import invoice_service, sales_service, settings_service
from ..services.sales_service import SaleError
from ..services.reporting_service import ReportError, parse_range
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/v1/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Ring up a POS sale.

    Body: {customerId?, items: [{productId, quantity, unitPrice?, discount?}],
           paymentMethod?, paymentStatus?, taxAmount?, discountAmount?, notes?}
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.create_sale(data, g.current_user.id)
        sale = sales_service.get_sale(sale.id)
        return jsonify({
            "success": True,
            "data": sale.to_dict(include_items=True, include_relations=True),
        }), 201

    except SaleError as e:
        return jsonify({"success": False, "message": str(e), "details": e.details}), e.status
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"success": False, "message": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Query params: status, source, startDate, endDate, customerId, limit, offset
    """
    try:
        start, end = parse_range(request.args.get("startDate"), request.args.get("endDate"))
        sales, total = sales_service.list_sales(
            status=request.args.get("status") or None,
            source=request.args.get("source") or None,
            start=start,
            end=end,
            customer_id=request.args.get("customerId", type=int),
            limit=request.args.get("limit", type=int),
            offset=max(request.args.get("offset", 0, type=int), 0),
        )
    except (SaleError, ReportError) as e:
        return jsonify({"success": False, "message": str(e)}), 400

    return jsonify({
        "success": True,
        "count": len(sales),
        "total": total,
        "data": [s.to_dict(include_items=True, include_relations=True) for s in sales],
    }), 200


@sales_bp.get("/<sale_id>")
@require_auth
def get_sale_route(sale_id: str):
    try:
        sale = sales_service.get_sale(sale_id)
    except SaleError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    return jsonify({
        "success": True,
        "data": sale.to_dict(include_items=True, include_relations=True),
    }), 200


@sales_bp.put("/<sale_id>")
@require_auth
def update_sale_route(sale_id: str):
    """Only paymentStatus and paymentMethod are accepted."""
    try:
        sale = sales_service.update_sale(sale_id, request.get_json(silent=True) or {})
    except SaleError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    return jsonify({
        "success": True,
        "data": sale.to_dict(include_items=True, include_relations=True),
    }), 200


@sales_bp.post("/<sale_id>/cancel")
@require_auth
def cancel_sale_route(sale_id: str):
    try:
        sale = sales_service.cancel_sale(sale_id)
    except SaleError as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return jsonify({"success": False, "message": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "data": sale.to_dict(include_items=True),
        "message": "Sale cancelled successfully",
    }), 200


@sales_bp.get("/customer/<int:customer_id>")
@require_auth
def sales_by_customer_route(customer_id: int):
    try:
        sales = sales_service.sales_for_customer(customer_id)
    except SaleError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    return jsonify({
        "success": True,
        "count": len(sales),
        "data": [s.to_dict(include_relations=True) for s in sales],
    }), 200


@sales_bp.get("/<sale_id>/invoice")
@require_auth
def sale_invoice_route(sale_id: str):
    """
    PDF invoice for a POS sale or online order.

    Query params: tableId (added to the QR link), qr=true|false (overrides
    the store's receipt_show_online_order_qr setting)
    """
    try:
        sale = sales_service.get_sale(sale_id)
    except SaleError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    qr = request.args.get("qr")
    try:
        pdf = invoice_service.render_invoice(
            sale,
            settings_service.get_settings(),
            table_id=request.args.get("tableId") or None,
            include_qr=None if qr is None else qr.lower() in ("1", "true"),
        )
    except Exception:
        current_app.logger.exception("Failed to render invoice for sale %s", sale_id)
        return jsonify({"success": False, "message": "Failed to generate invoice"}), 500

    return send_file(
        io.BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=request.args.get("download", "false").lower() in ("1", "true"),
        download_name=f"invoice-{invoice_service.invoice_number(sale)}.pdf",
    )
