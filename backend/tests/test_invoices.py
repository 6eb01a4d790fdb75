"""
Invoice PDF and online-order QR code tests.

Verifies:
- POS sales and online orders render as PDF invoices
- The QR block follows the store setting unless the request overrides it
- The QR endpoint links to the public ordering page
"""

from sundus.extensions import db
from sundus.services import invoice_service, settings_service


def _pos_sale(client, headers):
    resp = client.post("/api/v1/sales", json={"items": [{"productId": 7, "quantity": 2}]}, headers=headers)
    assert resp.status_code == 201
    return resp.json["data"]


def _online_order(client, name="Amal"):
    resp = client.post("/api/v1/orders/with-image", json={"orderData": {
        "customerData": {"phone": "5551234", "name": name, "address": "12 Nile Road"},
        "cartItems": [{"productId": 7, "quantity": 1, "unitPrice": 3}],
    }})
    assert resp.status_code == 201
    return resp.json["data"]


def _record_qr(monkeypatch):
    calls = []
    real = invoice_service.qr_png

    def _qr_png(data):
        calls.append(data)
        return real(data)

    monkeypatch.setattr(invoice_service, "qr_png", _qr_png)
    return calls


class TestSaleInvoice:

    def test_pos_sale_invoice_is_pdf(self, client, cashier_headers, product):
        sale = _pos_sale(client, cashier_headers)

        resp = client.get(f"/api/v1/sales/{sale['id']}/invoice?download=true", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")
        disposition = resp.headers["Content-Disposition"]
        assert "attachment" in disposition
        assert f"invoice-{sale['receiptNumber']}.pdf" in disposition

    def test_online_order_invoice_uses_order_id(self, client, cashier_headers, product):
        order = _online_order(client, name="Tom & Jerry <Cafe>")

        resp = client.get(f"/api/v1/sales/{order['id']}/invoice?download=true", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.data.startswith(b"%PDF")
        assert f"invoice-{order['id']}.pdf" in resp.headers["Content-Disposition"]

    def test_qr_follows_store_setting(self, client, cashier_headers, product, monkeypatch):
        sale = _pos_sale(client, cashier_headers)
        calls = _record_qr(monkeypatch)

        client.get(f"/api/v1/sales/{sale['id']}/invoice", headers=cashier_headers)
        assert calls == []

        settings = settings_service.get_settings()
        settings.receipt_show_online_order_qr = True
        db.session.commit()

        resp = client.get(f"/api/v1/sales/{sale['id']}/invoice?tableId=4", headers=cashier_headers)
        assert resp.status_code == 200
        assert calls == [f"http://localhost:3000/order?invoice={sale['receiptNumber']}&table=4"]

    def test_qr_query_overrides_setting(self, client, cashier_headers, product, monkeypatch):
        sale = _pos_sale(client, cashier_headers)
        calls = _record_qr(monkeypatch)

        resp = client.get(f"/api/v1/sales/{sale['id']}/invoice?qr=true", headers=cashier_headers)
        assert resp.status_code == 200
        assert len(calls) == 1

    def test_missing_sale(self, client, cashier_headers):
        assert client.get("/api/v1/sales/nope/invoice", headers=cashier_headers).status_code == 404

    def test_requires_auth(self, client, product):
        order = _online_order(client)
        assert client.get(f"/api/v1/sales/{order['id']}/invoice").status_code == 401


class TestOrderQr:

    def test_json_data_url(self, client):
        resp = client.get("/api/v1/qr?invoiceId=INV1001&tableId=4")
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["url"] == "http://localhost:3000/order?invoice=INV1001&table=4"
        assert data["qrData"].startswith("data:image/png;base64,")

    def test_png(self, client):
        resp = client.get("/api/v1/qr?invoiceId=INV1001&format=png")
        assert resp.status_code == 200
        assert resp.mimetype == "image/png"
        assert resp.data.startswith(b"\x89PNG")

    def test_base_url_from_config(self, app, client, monkeypatch):
        monkeypatch.setitem(app.config, "ORDER_BASE_URL", "https://order.example.com/")
        resp = client.get("/api/v1/qr?invoiceId=A1")
        assert resp.json["data"]["url"] == "https://order.example.com/order?invoice=A1"

    def test_invoice_id_required(self, client):
        resp = client.get("/api/v1/qr")
        assert resp.status_code == 400
        assert resp.json["success"] is False
