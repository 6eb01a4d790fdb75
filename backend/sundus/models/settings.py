from __future__ import annotations

from ..extensions import db
from sundus.time_utils import to_utc_z

SETTINGS_ROW_ID = 1


class Setting(db.Model):
    """
    Store-wide configuration, kept as a single row (id = 1).

    Covers store identity, currency/tax, invoice and receipt printing,
    accepted payment methods, mobile-money numbers, and the online-ordering
    availability window.
    """
    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)

    store_name = db.Column(db.String(200), nullable=False, default="My Store")
    currency_code = db.Column(db.String(10), nullable=False, default="UGX")
    currency_symbol = db.Column(db.String(10), nullable=False, default="UGX")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(120), nullable=True)
    postal_code = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(120), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    logo_url = db.Column(db.String(512), nullable=True)
    language = db.Column(db.String(10), nullable=False, default="ar")

    # Invoice numbering and layout
    invoice_prefix = db.Column(db.String(20), nullable=False, default="INV")
    invoice_suffix = db.Column(db.String(20), nullable=False, default="")
    invoice_next_number = db.Column(db.Integer, nullable=False, default=1001)
    invoice_show_logo = db.Column(db.Boolean, nullable=False, default=True)
    invoice_show_tax_number = db.Column(db.Boolean, nullable=False, default=True)
    invoice_show_signature = db.Column(db.Boolean, nullable=False, default=True)
    invoice_footer_text = db.Column(db.Text, nullable=True, default="Thank you for your business!")
    invoice_terms_and_conditions = db.Column(
        db.Text,
        nullable=True,
        default="All sales are final. Returns accepted within 30 days with receipt.",
    )

    # Receipt printing
    receipt_show_logo = db.Column(db.Boolean, nullable=False, default=True)
    receipt_show_tax_details = db.Column(db.Boolean, nullable=False, default=True)
    receipt_print_automatically = db.Column(db.Boolean, nullable=False, default=False)
    receipt_show_online_order_qr = db.Column(db.Boolean, nullable=False, default=False)
    receipt_footer_text = db.Column(db.Text, nullable=True, default="Thank you for shopping with us!")

    # Payment methods
    accept_cash = db.Column(db.Boolean, nullable=False, default=True)
    accept_credit_cards = db.Column(db.Boolean, nullable=False, default=True)
    accept_debit_cards = db.Column(db.Boolean, nullable=False, default=True)
    accept_mobile_payments = db.Column(db.Boolean, nullable=False, default=False)
    default_payment_method = db.Column(db.String(20), nullable=False, default="cash")
    mtn_phone_number = db.Column(db.String(32), nullable=True)
    airtel_phone_number = db.Column(db.String(32), nullable=True)
    mobile_pin_digits = db.Column(db.Integer, nullable=False, default=4)

    # Online ordering availability; days are 0 (Sunday) .. 6 (Saturday)
    online_orders_enabled = db.Column(db.Boolean, nullable=False, default=True)
    online_orders_start_time = db.Column(db.String(8), nullable=True)
    online_orders_end_time = db.Column(db.String(8), nullable=True)
    online_orders_days = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        data = {}
        for col in self.__table__.columns:
            value = getattr(self, col.key)
            if col.key in ("created_at", "updated_at"):
                value = to_utc_z(value)
            elif col.key == "tax_rate" and value is not None:
                value = float(value)
            data[col.key] = value
        return data
