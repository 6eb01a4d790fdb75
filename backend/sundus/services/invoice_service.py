# Overview: Service-layer operations for printable invoices and online-order QR codes.

"""
Invoice Service

render_invoice() turns a sale into an A4 PDF: store header, buyer, item
table, totals and, when the store enables it, a QR code that opens the
online ordering page for that invoice. The same QR payload is available on
its own through order_qr_data_url() for table cards and receipts printed
elsewhere.
"""

from __future__ import annotations

import base64
import io
from urllib.parse import urlencode
from xml.sax.saxutils import escape

import qrcode
from flask import current_app
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import HRFlowable

from ..models import Sale, Setting
from sundus.money import money_to_json

PAGE_MARGIN = 20 * mm
QR_SIZE = 45 * mm


class InvoiceError(Exception):
    """Raised for invoice and QR generation errors."""
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def order_url(invoice_id: str, table_id: str | None = None) -> str:
    """Link printed in the QR code: the public ordering page for this invoice."""
    if not invoice_id:
        raise InvoiceError("invoiceId is required")
    params = {"invoice": invoice_id}
    if table_id:
        params["table"] = table_id
    base = (current_app.config.get("ORDER_BASE_URL") or "").rstrip("/")
    return f"{base}/order?{urlencode(params)}"


def qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    buffer = io.BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buffer, format="PNG")
    return buffer.getvalue()


def order_qr_data_url(invoice_id: str, table_id: str | None = None) -> dict:
    url = order_url(invoice_id, table_id)
    encoded = base64.b64encode(qr_png(url)).decode("ascii")
    return {"url": url, "qrData": f"data:image/png;base64,{encoded}"}


def invoice_number(sale: Sale) -> str:
    # Online orders carry no receipt number; their id is the order number
    return sale.receipt_number or sale.id


def _money(value, symbol: str) -> str:
    return f"{symbol} {money_to_json(value) or 0:,.2f}".strip()


def _text(value) -> str:
    return escape(str(value)) if value is not None else ""


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "store": ParagraphStyle("Store", parent=base["Heading1"], fontSize=18, alignment=1, spaceAfter=4),
        "title": ParagraphStyle("Title", parent=base["Heading2"], fontSize=14, alignment=1, spaceAfter=10),
        "body": ParagraphStyle("Body", parent=base["Normal"], fontSize=10, spaceAfter=3),
        "right": ParagraphStyle("Right", parent=base["Normal"], fontSize=10, alignment=2, spaceAfter=3),
        "total": ParagraphStyle(
            "Total", parent=base["Normal"], fontSize=12, alignment=2, fontName="Helvetica-Bold", spaceBefore=4,
        ),
        "center": ParagraphStyle("Center", parent=base["Normal"], fontSize=9, alignment=1, spaceAfter=2),
    }


def _header(sale: Sale, settings: Setting, styles: dict) -> list:
    elements = [Paragraph(_text(settings.store_name), styles["store"])]
    contact = [settings.address, settings.city, settings.phone, settings.email]
    line = " | ".join(_text(part) for part in contact if part)
    if line:
        elements.append(Paragraph(line, styles["center"]))
    elements.append(Paragraph("Invoice", styles["title"]))

    elements.append(Paragraph(f"Invoice #: {_text(invoice_number(sale))}", styles["body"]))
    if sale.sale_date is not None:
        elements.append(Paragraph(f"Date: {sale.sale_date:%Y-%m-%d %H:%M}", styles["body"]))
    elements.append(Paragraph(f"Status: {_text(sale.status)} ({_text(sale.source)})", styles["body"]))
    elements.append(Spacer(1, 8))
    return elements


def _buyer(sale: Sale, styles: dict) -> list:
    customer = sale.customer
    name = sale.customer_name or (customer.name if customer else None)
    phone = sale.customer_phone or (customer.phone if customer else None)
    if not (name or phone):
        return []

    elements = [Paragraph("<b>Customer</b>", styles["body"])]
    if name:
        elements.append(Paragraph(f"Name: {_text(name)}", styles["body"]))
    if phone:
        elements.append(Paragraph(f"Phone: {_text(phone)}", styles["body"]))
    if sale.delivery_address:
        elements.append(Paragraph(f"Deliver to: {_text(sale.delivery_address)}", styles["body"]))
    elements.append(Spacer(1, 8))
    return elements


def _items_table(sale: Sale, symbol: str) -> list:
    data = [["#", "Item", "Qty", "Unit price", "Amount"]]
    for i, item in enumerate(sale.items, start=1):
        name = item.product.name if item.product else f"Product {item.product_id}"
        data.append([
            str(i),
            name,
            f"{money_to_json(item.quantity):g}",
            _money(item.unit_price, symbol),
            _money(item.total_price, symbol),
        ])

    table = Table(data, colWidths=[10 * mm, 70 * mm, 20 * mm, 35 * mm, 35 * mm], repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    return [table, Spacer(1, 10)]


def _totals(sale: Sale, symbol: str, styles: dict) -> list:
    elements = [
        Paragraph(f"Subtotal: {_money(sale.subtotal, symbol)}", styles["right"]),
        Paragraph(f"Tax: {_money(sale.tax_amount, symbol)}", styles["right"]),
    ]
    if sale.discount_amount:
        elements.append(Paragraph(f"Discount: -{_money(sale.discount_amount, symbol)}", styles["right"]))
    elements.append(HRFlowable(width="40%", thickness=1, color=colors.black, hAlign="RIGHT"))
    elements.append(Paragraph(f"Total: {_money(sale.total_amount, symbol)}", styles["total"]))
    elements.append(Paragraph(f"Payment: {_text(sale.payment_method)} ({_text(sale.payment_status)})", styles["right"]))
    elements.append(Spacer(1, 12))
    return elements


def _qr_block(sale: Sale, table_id: str | None, styles: dict) -> list:
    image = Image(io.BytesIO(qr_png(order_url(invoice_number(sale), table_id))), width=QR_SIZE, height=QR_SIZE)
    image.hAlign = "CENTER"
    return [
        Paragraph("Scan to order online", styles["center"]),
        image,
        Spacer(1, 8),
    ]


def _footer(settings: Setting, styles: dict) -> list:
    elements = [HRFlowable(width="100%", thickness=1, color=colors.black), Spacer(1, 6)]
    for text in (settings.invoice_footer_text, settings.invoice_terms_and_conditions):
        if text:
            elements.append(Paragraph(_text(text), styles["center"]))
    return elements


def render_invoice(sale: Sale, settings: Setting, *, table_id: str | None = None, include_qr: bool | None = None) -> bytes:
    """
    Render an A4 PDF invoice for a sale.

    include_qr defaults to the store's receipt_show_online_order_qr setting.
    """
    if include_qr is None:
        include_qr = bool(settings.receipt_show_online_order_qr)

    styles = _styles()
    symbol = settings.currency_symbol or settings.currency_code or ""

    story = []
    story.extend(_header(sale, settings, styles))
    story.extend(_buyer(sale, styles))
    story.extend(_items_table(sale, symbol))
    story.extend(_totals(sale, symbol, styles))
    if include_qr:
        story.extend(_qr_block(sale, table_id, styles))
    story.extend(_footer(settings, styles))

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=f"Invoice {invoice_number(sale)}",
        author=settings.store_name,
    )
    doc.build(story)
    return buffer.getvalue()
