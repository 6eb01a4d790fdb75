# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from sundus.extensions import db
from sundus.models import Category, Customer, Product, Sale, SaleItem
from sundus.money import money_to_json
from sundus.time_utils import end_of_day, is_date_only, parse_iso_datetime, to_utc_z

GROUPINGS = ("day", "week", "month")

_SQLITE_FORMATS = {"day": "%Y-%m-%d", "week": "%Y-W%W", "month": "%Y-%m"}
_PG_FORMATS = {"day": "YYYY-MM-DD", "week": 'IYYY-"W"IW', "month": "YYYY-MM"}


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """A date-only end covers the whole of that day."""
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("startDate and endDate must be valid dates")
    if end_dt is not None and is_date_only(end):
        end_dt = end_of_day(end_dt)
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("startDate must be before endDate")
    return start_dt, end_dt


def _counted_sales(query, start_dt: datetime | None, end_dt: datetime | None):
    """Cancelled and deleted sales never count towards revenue."""
    query = query.filter(Sale.status != "cancelled", Sale.deleted_at.is_(None))
    if start_dt:
        query = query.filter(Sale.sale_date >= start_dt)
    if end_dt:
        query = query.filter(Sale.sale_date <= end_dt)
    return query


def _period_expr(group_by: str):
    dialect = db.session.get_bind().dialect.name
    if dialect == "sqlite":
        return func.strftime(_SQLITE_FORMATS[group_by], Sale.sale_date)
    return func.to_char(Sale.sale_date, _PG_FORMATS[group_by])


def _range_dict(start_dt, end_dt) -> dict:
    return {"startDate": to_utc_z(start_dt), "endDate": to_utc_z(end_dt)}


def sales_report(*, start: str | None, end: str | None) -> dict:
    start_dt, end_dt = parse_range(start, end)

    totals = _counted_sales(
        db.session.query(
            func.count(Sale.id).label("count"),
            func.coalesce(func.sum(Sale.subtotal), 0).label("subtotal"),
            func.coalesce(func.sum(Sale.tax_amount), 0).label("tax"),
            func.coalesce(func.sum(Sale.discount_amount), 0).label("discount"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("total"),
        ),
        start_dt, end_dt,
    ).one()

    def _breakdown(column):
        rows = _counted_sales(
            db.session.query(
                column.label("key"),
                func.count(Sale.id).label("count"),
                func.coalesce(func.sum(Sale.total_amount), 0).label("total"),
            ),
            start_dt, end_dt,
        ).group_by(column).order_by(column).all()
        return [
            {"key": row.key, "count": int(row.count), "total": money_to_json(row.total)}
            for row in rows
        ]

    count = int(totals.count or 0)
    total = totals.total or 0
    return {
        **_range_dict(start_dt, end_dt),
        "count": count,
        "subtotal": money_to_json(totals.subtotal),
        "tax": money_to_json(totals.tax),
        "discount": money_to_json(totals.discount),
        "total": money_to_json(total),
        "average": round(float(total) / count, 2) if count else 0.0,
        "byPaymentMethod": _breakdown(Sale.payment_method),
        "bySource": _breakdown(Sale.source),
    }


def revenue_report(*, start: str | None, end: str | None, group_by: str = "day") -> dict:
    if group_by not in GROUPINGS:
        raise ReportError("groupBy must be day, week, or month")
    start_dt, end_dt = parse_range(start, end)

    period = _period_expr(group_by).label("period")
    rows = _counted_sales(
        db.session.query(
            period,
            func.count(Sale.id).label("count"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
        ),
        start_dt, end_dt,
    ).group_by("period").order_by("period").all()

    return {
        **_range_dict(start_dt, end_dt),
        "groupBy": group_by,
        "rows": [
            {"period": row.period, "count": int(row.count), "revenue": money_to_json(row.revenue)}
            for row in rows
        ],
    }


def top_products(*, start: str | None, end: str | None, limit: int = 10) -> dict:
    if not 1 <= limit <= 100:
        raise ReportError("Limit must be between 1 and 100")
    start_dt, end_dt = parse_range(start, end)

    quantity = func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity")
    rows = _counted_sales(
        db.session.query(
            Product.id.label("product_id"),
            Product.name.label("name"),
            quantity,
            func.coalesce(func.sum(SaleItem.total_price), 0).label("revenue"),
        )
        .select_from(SaleItem)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .join(Product, SaleItem.product_id == Product.id),
        start_dt, end_dt,
    ).group_by(Product.id, Product.name).order_by(quantity.desc(), Product.name.asc()).limit(limit).all()

    return {
        **_range_dict(start_dt, end_dt),
        "rows": [
            {
                "productId": row.product_id,
                "name": row.name,
                "quantity": money_to_json(row.quantity),
                "revenue": money_to_json(row.revenue),
            }
            for row in rows
        ],
    }


def sales_by_category(*, start: str | None, end: str | None) -> dict:
    start_dt, end_dt = parse_range(start, end)

    revenue = func.coalesce(func.sum(SaleItem.total_price), 0).label("revenue")
    rows = _counted_sales(
        db.session.query(
            Category.id.label("category_id"),
            Category.name.label("name"),
            func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity"),
            revenue,
        )
        .select_from(SaleItem)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .join(Product, SaleItem.product_id == Product.id)
        .outerjoin(Category, Product.category_id == Category.id),
        start_dt, end_dt,
    ).group_by(Category.id, Category.name).order_by(revenue.desc()).all()

    return {
        **_range_dict(start_dt, end_dt),
        "rows": [
            {
                "categoryId": row.category_id,
                "name": row.name or "Uncategorized",
                "quantity": money_to_json(row.quantity),
                "revenue": money_to_json(row.revenue),
            }
            for row in rows
        ],
    }


def customers_report(*, start: str | None, end: str | None, limit: int = 10) -> dict:
    if not 1 <= limit <= 100:
        raise ReportError("Limit must be between 1 and 100")
    start_dt, end_dt = parse_range(start, end)

    spent = func.coalesce(func.sum(Sale.total_amount), 0).label("spent")
    rows = _counted_sales(
        db.session.query(
            Customer.id.label("customer_id"),
            Customer.name.label("name"),
            Customer.phone.label("phone"),
            func.count(Sale.id).label("visits"),
            spent,
            func.max(Sale.sale_date).label("last_visit"),
        )
        .select_from(Sale)
        .join(Customer, Sale.customer_id == Customer.id),
        start_dt, end_dt,
    ).group_by(Customer.id, Customer.name, Customer.phone).order_by(spent.desc()).limit(limit).all()

    total_customers = _counted_sales(
        db.session.query(func.count(func.distinct(Sale.customer_id))).filter(Sale.customer_id.isnot(None)),
        start_dt, end_dt,
    ).scalar()

    return {
        **_range_dict(start_dt, end_dt),
        "totalCustomers": int(total_customers or 0),
        "topCustomers": [
            {
                "customerId": row.customer_id,
                "name": row.name,
                "phone": row.phone,
                "visits": int(row.visits),
                "totalSpent": money_to_json(row.spent),
                "lastVisit": to_utc_z(row.last_visit) if isinstance(row.last_visit, datetime) else row.last_visit,
            }
            for row in rows
        ],
    }
