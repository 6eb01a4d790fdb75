from __future__ import annotations

import uuid

from ..extensions import db
from sundus.money import money_to_json
from sundus.time_utils import to_utc_z

PAYMENT_METHODS = ("cash", "credit_card", "debit_card", "mobile_payment", "other", "online")
PAYMENT_STATUSES = ("pending", "paid", "partially_paid", "refunded")
SALE_STATUSES = ("pending", "accepted", "rejected", "completed", "cancelled")
SALE_SOURCES = ("pos", "online")


def _uuid() -> str:
    return str(uuid.uuid4())


def receipt_image_url(image: str | None) -> str | None:
    """Public URL for a stored receipt: hosted URLs pass through, local names map under /uploads/."""
    if not image:
        return None
    img = str(image)
    if img.startswith(("http://", "https://", "/uploads/")):
        return img
    if img.startswith("uploads/"):
        return "/" + img
    return f"/uploads/{img}"


class Sale(db.Model):
    """
    One commercial transaction: a POS checkout or an online order.

    Online orders start as pending and are moved through
    accepted/rejected/completed/cancelled by staff. Customer contact
    fields are denormalized at creation time so the order keeps what the
    buyer typed even if the customer record changes later.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("subtotal >= 0", name="ck_sales_subtotal_non_negative"),
        db.CheckConstraint("tax_amount >= 0", name="ck_sales_tax_non_negative"),
        db.CheckConstraint("discount_amount >= 0", name="ck_sales_discount_non_negative"),
        db.CheckConstraint("total_amount >= 0", name="ck_sales_total_non_negative"),
        db.Index("ix_sales_status_created", "status", "created_at"),
        db.Index("ix_sales_source_created", "source", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    # Amounts in store currency
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    payment_method = db.Column(db.String(20), nullable=False, default="cash")
    payment_status = db.Column(db.String(20), nullable=False, default="paid", index=True)
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)
    source = db.Column(db.String(8), nullable=False, default="pos")

    notes = db.Column(db.Text, nullable=True)
    receipt_number = db.Column(db.String(64), nullable=True, unique=True)
    transaction_image = db.Column(db.String(512), nullable=True)
    delivery_address = db.Column(db.Text, nullable=True)

    # Snapshot of the buyer's contact details as submitted
    customer_name = db.Column(db.String(200), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("Customer", back_populates="sales")
    created_by = db.relationship("User")
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    def to_dict(self, *, include_items: bool = False, include_relations: bool = False) -> dict:
        data = {
            "id": self.id,
            "saleDate": to_utc_z(self.sale_date),
            "subtotal": money_to_json(self.subtotal),
            "taxAmount": money_to_json(self.tax_amount),
            "discountAmount": money_to_json(self.discount_amount),
            "totalAmount": money_to_json(self.total_amount),
            "paymentMethod": self.payment_method,
            "paymentStatus": self.payment_status,
            "status": self.status,
            "source": self.source,
            "notes": self.notes,
            "receiptNumber": self.receipt_number,
            "transactionImage": self.transaction_image,
            "transactionImageUrl": receipt_image_url(self.transaction_image),
            "deliveryAddress": self.delivery_address,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "customerId": self.customer_id,
            "userId": self.user_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict(include_product=include_relations) for item in self.items]
        if include_relations:
            data["customer"] = self.customer.to_dict() if self.customer else None
            data["createdBy"] = self.created_by.to_summary() if self.created_by else None
        return data


class SaleItem(db.Model):
    """One product line of a sale; written in bulk with its parent and never edited afterwards."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Numeric(10, 2), nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self, *, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "quantity": money_to_json(self.quantity),
            "unitPrice": money_to_json(self.unit_price),
            "discount": money_to_json(self.discount),
            "subtotal": money_to_json(self.subtotal),
            "totalPrice": money_to_json(self.total_price),
            "notes": self.notes,
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data
