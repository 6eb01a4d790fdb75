# Overview: Service-layer operations for POS sales; encapsulates business logic and database work.

"""
POS Sales Service

Cashier checkouts are created complete in one call: lines are priced from
the catalog unless the register overrides the unit price, a receipt number
is reserved from the store settings, and the sale and its items commit
together.

Online orders share the sales table but go through order_service.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import (
    Customer, Product, Sale, SaleItem, Setting, SETTINGS_ROW_ID,
    PAYMENT_METHODS, PAYMENT_STATUSES, SALE_STATUSES, SALE_SOURCES,
)
from ..money import decimal_or_zero, parse_decimal, quantize_money
from .concurrency import lock_for_update, run_with_retry
from .settings_service import get_settings, next_receipt_number


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, status: int = 400, details: dict | None = None):
        super().__init__(message)
        self.status = status
        self.details = details or {}


def _int_id(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _parse_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise SaleError("Sale must include at least one item")

    parsed = []
    for item in items:
        if not isinstance(item, dict):
            raise SaleError("Each item must have a valid productId and positive quantity")
        product_id = _int_id(item.get("productId"))
        quantity = parse_decimal(item.get("quantity"))
        if not product_id or quantity is None or quantity <= 0:
            raise SaleError("Each item must have a valid productId and positive quantity")

        product = db.session.get(Product, product_id)
        if product is None:
            raise SaleError(f"Product with ID {product_id} not found")

        unit_price = parse_decimal(item.get("unitPrice"))
        if not unit_price:
            unit_price = product.price
        discount = decimal_or_zero(item.get("discount"))
        if unit_price < 0 or discount < 0:
            raise SaleError("Item price and discount cannot be negative")

        line_subtotal = quantize_money(unit_price * quantity - discount)
        parsed.append({
            "product_id": product.id,
            "quantity": quantity,
            "unit_price": unit_price,
            "discount": discount,
            "subtotal": line_subtotal,
            "total_price": line_subtotal,
            "notes": item.get("notes") or None,
        })
    return parsed


def create_sale(payload: dict, user_id: str | None) -> Sale:
    """
    Create a completed POS sale with its items.

    subtotal = sum of (unit price * quantity - line discount)
    total = subtotal + taxAmount - discountAmount
    """
    raw_customer_id = payload.get("customerId")
    customer_id = _int_id(raw_customer_id)
    if raw_customer_id and customer_id is None:
        raise SaleError("Customer not found")
    if customer_id:
        customer = db.session.get(Customer, customer_id)
        if customer is None or customer.deleted_at is not None:
            raise SaleError("Customer not found")

    lines = _parse_items(payload.get("items"))

    payment_method = payload.get("paymentMethod") or "cash"
    payment_status = payload.get("paymentStatus") or "paid"
    if payment_method not in PAYMENT_METHODS:
        raise SaleError(f"Invalid payment method: {payment_method}")
    if payment_status not in PAYMENT_STATUSES:
        raise SaleError(f"Invalid payment status: {payment_status}")

    tax_amount = decimal_or_zero(payload.get("taxAmount"))
    discount_amount = decimal_or_zero(payload.get("discountAmount"))
    if tax_amount < 0 or discount_amount < 0:
        raise SaleError("taxAmount and discountAmount cannot be negative")

    subtotal = quantize_money(sum((line["subtotal"] for line in lines), Decimal("0")))
    total = quantize_money(subtotal + tax_amount - discount_amount)
    if subtotal < 0 or total < 0:
        raise SaleError("Sale total cannot be negative")

    try:
        get_settings(commit=False)
        settings = lock_for_update(
            db.session.query(Setting).filter(Setting.id == SETTINGS_ROW_ID)
        ).first()
        receipt_number = next_receipt_number(settings)

        sale = Sale(
            customer_id=customer_id or None,
            user_id=user_id,
            subtotal=subtotal,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total,
            payment_method=payment_method,
            payment_status=payment_status,
            status="completed",
            source="pos",
            notes=payload.get("notes") or None,
            receipt_number=receipt_number,
        )
        db.session.add(sale)
        db.session.flush()

        db.session.add_all([SaleItem(sale_id=sale.id, **line) for line in lines])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return sale


def _with_relations(query):
    return query.options(
        joinedload(Sale.customer),
        joinedload(Sale.created_by),
        selectinload(Sale.items).joinedload(SaleItem.product),
    )


def list_sales(
    *,
    status: str | None = None,
    source: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    customer_id: int | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list[Sale], int]:
    """Returns (page, total) ordered by sale date, newest first."""
    if status and status not in SALE_STATUSES:
        raise SaleError("Invalid status value")
    if source and source not in SALE_SOURCES:
        raise SaleError("Invalid source value")

    query = db.session.query(Sale).filter(Sale.deleted_at.is_(None))
    if status:
        query = query.filter(Sale.status == status)
    if source:
        query = query.filter(Sale.source == source)
    if start is not None:
        query = query.filter(Sale.sale_date >= start)
    if end is not None:
        query = query.filter(Sale.sale_date <= end)
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)

    total = query.count()
    query = _with_relations(query).order_by(Sale.sale_date.desc(), Sale.created_at.desc())
    if offset:
        query = query.offset(offset)
    if limit is not None and limit > 0:
        query = query.limit(limit)
    return query.all(), total


def get_sale(sale_id: str) -> Sale:
    sale = (
        _with_relations(db.session.query(Sale))
        .filter(Sale.id == sale_id, Sale.deleted_at.is_(None))
        .first()
    )
    if sale is None:
        raise SaleError("Sale not found", status=404)
    return sale


def update_sale(sale_id: str, payload: dict) -> Sale:
    """Only payment status and payment method can change after checkout."""
    sale = get_sale(sale_id)

    if "paymentStatus" in payload:
        if payload["paymentStatus"] not in PAYMENT_STATUSES:
            raise SaleError(f"Invalid payment status: {payload['paymentStatus']}")
        sale.payment_status = payload["paymentStatus"]
    if "paymentMethod" in payload:
        if payload["paymentMethod"] not in PAYMENT_METHODS:
            raise SaleError(f"Invalid payment method: {payload['paymentMethod']}")
        sale.payment_method = payload["paymentMethod"]

    db.session.commit()
    return sale


def cancel_sale(sale_id: str) -> Sale:
    def _op():
        sale = lock_for_update(
            db.session.query(Sale).filter(Sale.id == sale_id, Sale.deleted_at.is_(None))
        ).first()
        if sale is None:
            raise SaleError("Sale not found", status=404)
        if sale.status == "cancelled":
            raise SaleError("Sale is already cancelled")

        sale.status = "cancelled"
        sale.payment_status = "refunded"
        db.session.commit()
        return sale

    try:
        return run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise


def sales_for_customer(customer_id: int) -> list[Sale]:
    customer = db.session.get(Customer, customer_id)
    if customer is None or customer.deleted_at is not None:
        raise SaleError("Customer not found", status=404)

    return (
        db.session.query(Sale)
        .options(joinedload(Sale.created_by))
        .filter(Sale.customer_id == customer_id, Sale.deleted_at.is_(None))
        .order_by(Sale.sale_date.desc())
        .all()
    )
