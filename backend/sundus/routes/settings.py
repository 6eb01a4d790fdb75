from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app

from ..decorators import require_auth, require_role
from ..services import settings_service
from ..models import Setting
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_settings,
    ValidationError,
)


SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields=set(settings_service.SETTINGS_MUTABLE_FIELDS),
)

settings_bp = Blueprint("settings", __name__, url_prefix="/api/v1/settings")


def _json_error(exc: Exception):
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc)}), 400
    current_app.logger.exception("Settings request failed")
    return jsonify({"success": False, "message": "Internal server error"}), 500


@settings_bp.get("")
def get_settings_route():
    """
    Store settings (public: the online checkout shows store name, currency and
    mobile-money numbers). Defaults are created on first access.
    """
    settings = settings_service.get_settings()
    return jsonify({"success": True, "data": settings.to_dict()})


@settings_bp.put("")
@require_auth
@require_role("admin", "manager")
def update_settings_route():
    """Partial update; only keys present in the body change."""
    payload = request.get_json(silent=True)
    try:
        patch = validate_payload(model=Setting, payload=payload, policy=SETTINGS_POLICY, partial=True)
        enforce_rules_settings(patch)
        settings = settings_service.update_settings(patch)
    except Exception as exc:
        return _json_error(exc)
    return jsonify({"success": True, "data": settings.to_dict(), "message": "Settings updated"})


@settings_bp.get("/online-orders/status")
def online_orders_status_route():
    settings = settings_service.get_settings()
    return jsonify({"success": True, "data": settings_service.online_ordering_status(settings)})
