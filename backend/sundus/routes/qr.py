# Overview: Flask API routes for online-order QR codes; parses input and returns JSON or PNG responses.

import io

from flask import Blueprint, request, jsonify, current_app, send_file

from ..services import invoice_service
from ..services.invoice_service import InvoiceError


qr_bp = Blueprint("qr", __name__, url_prefix="/api/v1/qr")


@qr_bp.get("")
def order_qr_route():
    """
    QR code linking to the public ordering page for an invoice (and table).

    Query params: invoiceId (required), tableId, format=json|png
    """
    invoice_id = (request.args.get("invoiceId") or "").strip()
    table_id = (request.args.get("tableId") or "").strip() or None
    try:
        if request.args.get("format") == "png":
            png = invoice_service.qr_png(invoice_service.order_url(invoice_id, table_id))
            return send_file(io.BytesIO(png), mimetype="image/png", download_name=f"order-{invoice_id}.png")
        data = invoice_service.order_qr_data_url(invoice_id, table_id)
    except InvoiceError as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    except Exception:
        current_app.logger.exception("Failed to generate order QR code")
        return jsonify({"success": False, "message": "Failed to generate QR code"}), 500

    return jsonify({"success": True, "data": data}), 200
