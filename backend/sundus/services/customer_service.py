# Overview: Service-layer operations for customers; encapsulates business logic and database work.

"""
Customer Service

Two entry points create customers without staff involvement:
- resolve_order_customer(): phone-keyed find-or-create used inside the
  online order transaction (never commits)
- find_or_create(): the public checkout lookup keyed by email or phone

Everything else is staff CRUD. Deletes are soft (deleted_at) so past sales
keep their customer link.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Customer, Sale
from ..validation import EMAIL_RE, ConflictError, ValidationError
from sundus.time_utils import utcnow

CUSTOMER_MUTABLE_FIELDS = {
    "name", "email", "phone", "address", "city", "state",
    "postal_code", "country", "notes", "is_active",
}

WALK_IN_CUSTOMER_NAME = "Walk-in Customer"


class CustomerError(Exception):
    """Raised for customer operation errors."""
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def _live():
    return db.session.query(Customer).filter(Customer.deleted_at.is_(None))


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    # The unique index covers soft-deleted rows too
    query = db.session.query(Customer.id).filter(Customer.email == email)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    return query.first() is not None


def _usable_email(email: str | None) -> str | None:
    if email and not EMAIL_RE.match(email):
        current_app.logger.warning(
            "Customer email %r is not a valid address; storing the new customer without it",
            email,
        )
        return None
    if email and _email_taken(email):
        current_app.logger.warning(
            "Customer email %s already belongs to another customer; storing the new customer without it",
            email,
        )
        return None
    return email


def _new_customer(*, name: str, phone: str | None, email: str | None, address: str | None) -> Customer:
    customer = Customer(
        name=name,
        phone=phone,
        email=_usable_email(email),
        address=address,
        is_active=True,
    )
    db.session.add(customer)
    db.session.flush()
    return customer


def find_by_phone(phone: str) -> Customer | None:
    return (
        _live()
        .filter(Customer.phone == phone.strip())
        .order_by(Customer.id.asc())
        .first()
    )


def resolve_order_customer(contact) -> tuple[Customer, bool]:
    """
    Find-or-create the buyer of an online order by exact phone match.

    Runs inside the caller's transaction (flush, no commit). Returns
    (customer, created). After the lookup the row is read back by primary
    key, soft-deleted rows included; if that read misses, a fallback row is
    created and used instead.
    """
    customer = find_by_phone(contact.phone)
    created = False
    if customer is None:
        customer = _new_customer(
            name=contact.name,
            phone=contact.phone,
            email=contact.email,
            address=contact.address,
        )
        created = True

    verified = db.session.get(Customer, customer.id, populate_existing=True)
    if verified is None:
        fallback = _new_customer(
            name=contact.name,
            phone=contact.phone,
            email=contact.email,
            address=contact.address,
        )
        current_app.logger.warning(
            "Customer %s vanished after find-or-create; created fallback customer %s",
            customer.id, fallback.id,
        )
        return fallback, True

    return verified, created


def find_or_create(*, name: str | None, email: str | None, phone: str | None) -> Customer:
    """Public checkout lookup: match on email or phone, fill in blanks, create if absent."""
    if not email and not phone:
        raise CustomerError("Email or phone is required")

    conditions = []
    if email:
        conditions.append(Customer.email == email)
    if phone:
        conditions.append(Customer.phone == phone)

    customer = _live().filter(db.or_(*conditions)).order_by(Customer.id.asc()).first()

    if customer is None:
        customer = _new_customer(
            name=name or WALK_IN_CUSTOMER_NAME,
            phone=phone,
            email=email,
            address=None,
        )
    else:
        if name and not customer.name:
            customer.name = name
        if email and not customer.email and not _email_taken(email, exclude_id=customer.id):
            customer.email = email
        if phone and not customer.phone:
            customer.phone = phone

    db.session.commit()
    return customer


def list_customers(*, search: str | None = None, include_inactive: bool = False) -> list[Customer]:
    query = _live()
    if not include_inactive:
        query = query.filter(Customer.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Customer.name.ilike(like),
            Customer.email.ilike(like),
            Customer.phone.ilike(like),
        ))
    return query.order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int) -> Customer | None:
    return _live().filter(Customer.id == customer_id).first()


def require_customer(customer_id: int) -> Customer:
    customer = get_customer(customer_id)
    if customer is None:
        raise CustomerError("Customer not found", status=404)
    return customer


def apply_customer_patch(customer: Customer, patch: dict) -> None:
    for k, v in patch.items():
        if k not in CUSTOMER_MUTABLE_FIELDS:
            continue
        setattr(customer, k, v)


def create_customer(*, patch: dict) -> Customer:
    email = patch.get("email")
    if email and _email_taken(email):
        raise ConflictError("A customer with this email already exists")

    customer = Customer(is_active=True)
    apply_customer_patch(customer, patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(*, customer_id: int, patch: dict) -> Customer:
    customer = require_customer(customer_id)

    if "name" in patch and not patch["name"]:
        raise ValidationError("name cannot be blank")

    email = patch.get("email")
    if email and email != customer.email and _email_taken(email, exclude_id=customer.id):
        raise ConflictError("A customer with this email already exists")

    apply_customer_patch(customer, patch)
    db.session.commit()
    return customer


def delete_customer(*, customer_id: int) -> None:
    """Soft delete; sales keep pointing at the row."""
    customer = require_customer(customer_id)
    customer.deleted_at = utcnow()
    customer.is_active = False
    db.session.commit()


def customer_sales(customer_id: int) -> list[Sale]:
    require_customer(customer_id)
    return (
        db.session.query(Sale)
        .filter(Sale.customer_id == customer_id, Sale.deleted_at.is_(None))
        .order_by(Sale.created_at.desc())
        .all()
    )
