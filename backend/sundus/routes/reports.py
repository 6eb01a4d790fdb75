from flask import Blueprint, jsonify, request

from sundus.decorators import require_auth, require_role
from sundus.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/v1/reports")

REPORT_ROLES = ("admin", "manager")


def _range_args() -> dict:
    return {"start": request.args.get("startDate"), "end": request.args.get("endDate")}


def _limit_arg(default: int = 10) -> int:
    raw = request.args.get("limit")
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise reporting_service.ReportError("Limit must be between 1 and 100")


@reports_bp.get("/sales")
@require_auth
@require_role(*REPORT_ROLES)
def sales_report():
    try:
        report = reporting_service.sales_report(**_range_args())
        return jsonify({"success": True, "data": report}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400


@reports_bp.get("/revenue")
@require_auth
@require_role(*REPORT_ROLES)
def revenue_report():
    try:
        report = reporting_service.revenue_report(
            group_by=request.args.get("groupBy", "day"),
            **_range_args(),
        )
        return jsonify({"success": True, "data": report}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400


@reports_bp.get("/top-products")
@require_auth
@require_role(*REPORT_ROLES)
def top_products_report():
    try:
        report = reporting_service.top_products(limit=_limit_arg(), **_range_args())
        return jsonify({"success": True, "data": report}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400


@reports_bp.get("/sales-by-category")
@require_auth
@require_role(*REPORT_ROLES)
def sales_by_category_report():
    try:
        report = reporting_service.sales_by_category(**_range_args())
        return jsonify({"success": True, "data": report}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400


@reports_bp.get("/customers")
@require_auth
@require_role(*REPORT_ROLES)
def customers_report():
    try:
        report = reporting_service.customers_report(limit=_limit_arg(), **_range_args())
        return jsonify({"success": True, "data": report}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400
