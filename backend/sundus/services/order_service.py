# Overview: Service-layer operations for online orders; encapsulates business logic and database work.

"""
Online Order Service

create_order() is the checkout transaction. Given a normalized OrderIntake it:
1. resolves the buyer by phone (find-or-create)
2. stores the payment receipt image, if one was uploaded
3. inserts the Sale (pending / online) and all of its SaleItems
4. adds a "new_order" notification for staff
5. commits once

Any exception after the first write rolls back every row and removes the
stored receipt, whether it went to local disk or to Cloudinary. Input
problems are rejected by order_intake before this module writes anything.

KNOWN GAPS (kept as-is):
- the client-supplied total is accepted without comparing it to the
  server-computed subtotal
- two identical submissions for a new phone number can both miss the
  lookup and create two customers; nothing de-duplicates submissions
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Product, Sale, SaleItem, SALE_STATUSES, SALE_SOURCES
from . import customer_service, notification_service, upload_service
from .concurrency import lock_for_update, run_with_retry
from .order_intake import OrderIntake


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def _check_products_exist(intake: OrderIntake) -> None:
    wanted = {line.product_id for line in intake.lines}
    found = {
        pid for (pid,) in db.session.query(Product.id).filter(Product.id.in_(wanted)).all()
    }
    missing = sorted(wanted - found)
    if missing:
        raise OrderError(f"Product not found: {', '.join(str(m) for m in missing)}")


def _store_receipt(intake: OrderIntake) -> tuple[str | None, upload_service.StoredImage | None]:
    if intake.receipt_file is not None:
        stored = upload_service.store_image(
            intake.receipt_file,
            folder="transactions",
            prefix="transaction_",
            check_type=False,
        )
        return stored.name, stored
    return intake.receipt_name, None


def create_order(intake: OrderIntake, *, user_id: str | None = None) -> Sale:
    """
    Persist an online order and its lines in one transaction.

    user_id is stamped only when a staff member places the order; anonymous
    checkouts leave it NULL.
    """
    for discarded in intake.discarded_customer_ids:
        current_app.logger.warning("Ignoring client-supplied customer id %r on online order", discarded)

    _check_products_exist(intake)

    stored = None
    try:
        customer, created = customer_service.resolve_order_customer(intake.customer)

        transaction_image, stored = _store_receipt(intake)

        contact = intake.customer
        sale = Sale(
            customer_id=customer.id,
            user_id=user_id,
            subtotal=intake.subtotal,
            tax_amount=intake.tax,
            discount_amount=intake.discount,
            total_amount=intake.total,
            payment_method=intake.payment_method,
            payment_status=intake.payment_status,
            status="pending",
            source="online",
            notes=intake.notes,
            transaction_image=transaction_image,
            delivery_address=intake.delivery_address,
            customer_name=contact.raw_name,
            customer_phone=contact.phone,
            customer_email=contact.email,
        )
        db.session.add(sale)
        db.session.flush()

        db.session.add_all([
            SaleItem(
                sale_id=sale.id,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount=line.discount,
                subtotal=line.subtotal,
                total_price=line.line_total,
                notes=line.notes,
            )
            for line in intake.lines
        ])
        db.session.flush()

        notification_service.create_system_notification(
            "new_order",
            "New online order",
            f"New online order received #{sale.id}",
            related_id=sale.id,
            related_type="sale",
        )

        db.session.commit()
    except Exception:
        db.session.rollback()
        upload_service.discard_stored(stored)
        raise

    current_app.logger.info(
        "Online order %s created for customer %s (new customer: %s)",
        sale.id, customer.id, created,
    )
    return sale


def _with_relations(query):
    return query.options(
        joinedload(Sale.customer),
        joinedload(Sale.created_by),
        selectinload(Sale.items).joinedload(SaleItem.product),
    )


def list_orders(*, status: str | None = None, source: str | None = None, limit: int | None = None) -> list[Sale]:
    if status and status not in SALE_STATUSES:
        raise OrderError("Invalid status value")
    if source and source not in SALE_SOURCES:
        raise OrderError("Invalid source value")

    query = _with_relations(db.session.query(Sale)).filter(Sale.deleted_at.is_(None))
    if status:
        query = query.filter(Sale.status == status)
    if source:
        query = query.filter(Sale.source == source)
    query = query.order_by(Sale.created_at.desc(), Sale.sale_date.desc())
    if limit is not None and limit > 0:
        query = query.limit(limit)
    return query.all()


def get_order(order_id: str) -> Sale:
    order = (
        _with_relations(db.session.query(Sale))
        .filter(Sale.id == order_id, Sale.deleted_at.is_(None))
        .first()
    )
    if order is None:
        raise OrderError("Order not found", status=404)
    return order


def update_order_status(order_id: str, status: str) -> Sale:
    """
    Move an order to a new status and notify.

    The creating user (when there is one) gets an "order_status" row and
    staff get an "order_status_admin" row, in the same transaction as the
    status change.
    """
    if status not in SALE_STATUSES:
        raise OrderError("Invalid status value")

    def _op():
        order = lock_for_update(
            db.session.query(Sale).filter(Sale.id == order_id, Sale.deleted_at.is_(None))
        ).first()
        if order is None:
            raise OrderError("Order not found", status=404)

        order.status = status
        message = f"Order #{order.id} status updated to {status}"

        if order.user_id:
            notification_service.create_system_notification(
                "order_status",
                "Order Status Update",
                message,
                related_id=order.id,
                related_type="order",
                user_id=order.user_id,
            )

        notification_service.create_system_notification(
            "order_status_admin",
            "Order Status Updated",
            message,
            related_id=order.id,
            related_type="order",
        )

        db.session.commit()
        return order

    try:
        return run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise
