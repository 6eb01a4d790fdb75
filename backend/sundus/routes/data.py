# Overview: Flask API routes for data maintenance.

from flask import Blueprint, jsonify, g, current_app

from ..services import maintenance_service
from ..decorators import require_auth, require_role


data_bp = Blueprint("data", __name__, url_prefix="/api/v1/data")


@data_bp.post("/clear-all")
@require_auth
@require_role("admin")
def clear_all_route():
    """
    Wipe notifications, sales and customers (catalog, settings and users stay).

    All-or-nothing: one transaction.
    """
    try:
        counts = maintenance_service.clear_transactional_data()
    except Exception:
        current_app.logger.exception("Failed to clear transactional data")
        return jsonify({"success": False, "message": "Failed to clear data"}), 500

    current_app.logger.warning("Transactional data cleared by user %s: %s", g.current_user.id, counts)
    return jsonify({"success": True, "data": counts, "message": "All data cleared"}), 200
