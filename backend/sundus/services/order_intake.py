# Overview: Boundary normalization for online orders; turns the raw request into one canonical shape.

"""
Order Intake

The online checkout posts either multipart form data (an `orderData` field
holding a JSON string next to the receipt image) or a plain JSON body. The
web client has also shipped several spellings of the same fields over time
(productId / id / product_id, unitPrice / price, cartItems / items).

parse_order_request() resolves all of that once and returns an OrderIntake.
Everything downstream of it works with canonical names only.

Every check here runs before the order transaction writes anything, so an
IntakeError always means "nothing was persisted".
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from werkzeug.datastructures import FileStorage, MultiDict

from ..models import PAYMENT_STATUSES
from ..money import decimal_or_zero, parse_decimal, quantize_money
from ..validation import ValidationError

DEFAULT_CUSTOMER_NAME = "New customer"

_PAYMENT_METHOD_ALIASES = {
    "cash": "cash",
    "cashOnDelivery": "cash",
    "mobileMoney": "mobile_payment",
    "mobile_payment": "mobile_payment",
    "online": "online",
}


class IntakeError(ValidationError):
    """400-level problem with an online order payload."""
    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        self.error = error


@dataclass(frozen=True)
class CustomerContact:
    phone: str
    name: str
    email: str | None
    address: str | None

    # Raw values as typed, kept as the order's contact snapshot
    raw_name: str | None = None


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal
    total_price: Decimal | None
    notes: str | None

    @property
    def subtotal(self) -> Decimal:
        return quantize_money(self.quantity * self.unit_price)

    @property
    def line_total(self) -> Decimal:
        # A client-supplied line total is trusted unless it is zero
        if self.total_price:
            return quantize_money(self.total_price)
        return quantize_money(self.subtotal - self.discount)


@dataclass
class OrderIntake:
    customer: CustomerContact
    lines: list[OrderLine]
    payment_method: str
    payment_status: str
    tax: Decimal
    discount: Decimal
    client_total: Decimal | None
    notes: str | None
    delivery_address: str | None
    receipt_file: FileStorage | None = None
    receipt_name: str | None = None
    discarded_customer_ids: list[Any] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return quantize_money(sum((line.subtotal for line in self.lines), Decimal("0")))

    @property
    def total(self) -> Decimal:
        if self.client_total is not None:
            return quantize_money(self.client_total)
        return quantize_money(self.subtotal + self.tax - self.discount)

    @property
    def has_receipt(self) -> bool:
        return self.receipt_file is not None or bool(self.receipt_name)


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    s = str(value).strip()
    return s or None


def normalize_payment_method(value: Any) -> str:
    """cash / cashOnDelivery -> cash, mobileMoney / mobile_payment -> mobile_payment, online -> online, else cash."""
    raw = str(value or "").strip()
    return _PAYMENT_METHOD_ALIASES.get(raw, "cash")


def _extract_order_data(body: Any) -> dict:
    if body is None:
        raise IntakeError("Order data (orderData) is missing")

    if isinstance(body, dict) and "orderData" in body:
        raw = body["orderData"]
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise IntakeError("Malformed order data (orderData)", error=str(e))
        order_data = raw
    else:
        order_data = body

    if not order_data or not isinstance(order_data, dict):
        raise IntakeError("Order data (orderData) is missing")
    return order_data


def _product_ref(item: dict) -> int:
    for key in ("productId", "id", "product_id"):
        value = item.get(key)
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            break
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise IntakeError(f"Invalid product reference: {value}")
    raise IntakeError("Every order item needs a product reference")


def _parse_line(item: Any) -> OrderLine:
    if not isinstance(item, dict):
        raise IntakeError("Order items must be objects")

    product_id = _product_ref(item)
    quantity = decimal_or_zero(item.get("quantity"))
    raw_price = item.get("unitPrice")
    if raw_price is None:
        raw_price = item.get("price")
    unit_price = decimal_or_zero(raw_price)
    discount = decimal_or_zero(item.get("discount"))

    if quantity < 0:
        raise IntakeError("Item quantity cannot be negative")
    if unit_price < 0:
        raise IntakeError("Item price cannot be negative")
    if discount < 0:
        raise IntakeError("Item discount cannot be negative")

    return OrderLine(
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
        total_price=parse_decimal(item.get("totalPrice")),
        notes=_text(item.get("notes")),
    )


def _receipt_source(order_data: dict, files: MultiDict | None) -> tuple[FileStorage | None, str | None]:
    if files:
        array_style = [f for f in files.getlist("transactionImage") if f and f.filename]
        if array_style:
            return array_style[0], None
        for f in files.values():
            if f and f.filename:
                return f, None

    provided = order_data.get("transaction_image") or order_data.get("transactionImage")
    if provided and isinstance(provided, str):
        name = os.path.basename(provided.strip().replace("\\", "/"))
        if name:
            return None, name
    return None, None


def _non_negative(order_data: dict, key: str) -> Decimal | None:
    value = parse_decimal(order_data.get(key))
    if value is not None and value < 0:
        raise IntakeError(f"{key} cannot be negative")
    return value


def parse_order_request(body: Any, files: MultiDict | None = None) -> OrderIntake:
    """
    Normalize a checkout request.

    body is the parsed JSON body or the form fields as a dict; files is
    request.files. Raises IntakeError for any client input problem.
    """
    order_data = _extract_order_data(body)

    customer_data = order_data.get("customerData")
    if not isinstance(customer_data, dict) or not _text(customer_data.get("phone")):
        raise IntakeError("Customer data or phone number is missing")

    # Caller-supplied customer ids are never trusted
    discarded = [v for v in (customer_data.get("id"), order_data.get("customerId")) if v]

    items = order_data.get("cartItems")
    if not isinstance(items, list) or not items:
        items = order_data.get("items")
    if not isinstance(items, list) or not items:
        raise IntakeError("The order must contain at least one item")
    lines = [_parse_line(item) for item in items]

    payment_method = normalize_payment_method(
        order_data.get("paymentMethod") or customer_data.get("paymentMethod")
    )
    payment_status = _text(order_data.get("paymentStatus")) or "pending"
    if payment_status not in PAYMENT_STATUSES:
        raise IntakeError(f"Invalid payment status: {payment_status}")

    receipt_file, receipt_name = _receipt_source(order_data, files)
    if payment_method == "mobile_payment" and receipt_file is None and not receipt_name:
        raise IntakeError("A payment receipt image is required for mobile money payments")

    tax = _non_negative(order_data, "tax") or Decimal("0")
    discount = _non_negative(order_data, "discount") or Decimal("0")
    client_total = _non_negative(order_data, "total")

    address = _text(customer_data.get("address"))
    contact = CustomerContact(
        phone=_text(customer_data.get("phone")),
        name=_text(customer_data.get("name")) or DEFAULT_CUSTOMER_NAME,
        email=_text(customer_data.get("email")),
        address=address,
        raw_name=_text(customer_data.get("name")),
    )

    intake = OrderIntake(
        customer=contact,
        lines=lines,
        payment_method=payment_method,
        payment_status=payment_status,
        tax=tax,
        discount=discount,
        client_total=client_total,
        notes=_text(order_data.get("notes")),
        delivery_address=_text(order_data.get("deliveryAddress")) or address,
        receipt_file=receipt_file,
        receipt_name=receipt_name,
        discarded_customer_ids=discarded,
    )

    if intake.total < 0:
        raise IntakeError("Order total cannot be negative")
    return intake
