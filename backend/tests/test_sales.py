"""
POS sales tests.

Verifies:
- Checkout totals, catalog pricing and receipt numbering
- Validation failures write nothing
- Payment updates and cancellation
"""

from decimal import Decimal

import pytest

from sundus.extensions import db
from sundus.models import Customer, Sale, SaleItem
from sundus.services import settings_service


def _sale(client, headers, **overrides):
    body = {"items": [{"productId": 7, "quantity": 2}]}
    body.update(overrides)
    return client.post("/api/v1/sales", json=body, headers=headers)


class TestCreateSale:

    def test_priced_from_catalog(self, client, cashier_user, cashier_headers, product):
        resp = _sale(client, cashier_headers)
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["subtotal"] == 6.0
        assert data["totalAmount"] == 6.0
        assert data["status"] == "completed"
        assert data["source"] == "pos"
        assert data["paymentStatus"] == "paid"
        assert data["userId"] == cashier_user.id
        assert data["createdBy"]["username"] == "cashier"

    def test_totals_with_overrides(self, client, cashier_headers, product, second_product):
        resp = _sale(
            client, cashier_headers,
            items=[
                {"productId": 7, "quantity": 1, "unitPrice": 2.5},
                {"productId": 8, "quantity": 2, "discount": 1},
            ],
            taxAmount=1.5,
            discountAmount=0.5,
        )
        data = resp.json["data"]
        # 2.50 + (4.50 * 2 - 1) = 10.50; + 1.50 - 0.50 = 11.50
        assert data["subtotal"] == 10.5
        assert data["totalAmount"] == 11.5

    def test_receipt_numbers_follow_settings(self, client, cashier_headers, product):
        settings = settings_service.get_settings()
        settings.invoice_prefix = "SND-"
        settings.invoice_suffix = "-A"
        settings.invoice_next_number = 41
        db.session.commit()

        first = _sale(client, cashier_headers).json["data"]["receiptNumber"]
        second = _sale(client, cashier_headers).json["data"]["receiptNumber"]
        assert (first, second) == ("SND-41-A", "SND-42-A")
        assert settings_service.get_settings().invoice_next_number == 43

    def test_with_customer(self, client, cashier_headers, product):
        customer = Customer(name="Regular", phone="555")
        db.session.add(customer)
        db.session.commit()

        resp = _sale(client, cashier_headers, customerId=customer.id)
        assert resp.json["data"]["customer"]["name"] == "Regular"

    @pytest.mark.parametrize("overrides", [
        {"items": []},
        {"items": [{"productId": 7, "quantity": 0}]},
        {"items": [{"productId": 999, "quantity": 1}]},
        {"items": [{"productId": 7, "quantity": 1, "discount": -1}]},
        {"paymentMethod": "barter"},
        {"paymentStatus": "maybe"},
        {"taxAmount": -1},
        {"discountAmount": 100},
        {"customerId": 12345},
    ])
    def test_rejected(self, client, cashier_headers, product, overrides):
        resp = _sale(client, cashier_headers, **overrides)
        assert resp.status_code == 400
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0

    def test_requires_auth(self, client, product):
        assert _sale(client, {}).status_code == 401


class TestSaleLifecycle:

    @pytest.fixture
    def sale_id(self, client, cashier_headers, product):
        return _sale(client, cashier_headers).json["data"]["id"]

    def test_list_with_filters(self, client, cashier_headers, sale_id):
        resp = client.get("/api/v1/sales?source=pos&status=completed", headers=cashier_headers)
        assert resp.json["total"] == 1
        assert resp.json["data"][0]["id"] == sale_id

        resp = client.get("/api/v1/sales?source=online", headers=cashier_headers)
        assert resp.json["total"] == 0

        assert client.get("/api/v1/sales?status=lost", headers=cashier_headers).status_code == 400

    def test_date_range(self, client, cashier_headers, sale_id):
        resp = client.get("/api/v1/sales?startDate=2000-01-01&endDate=2000-01-31", headers=cashier_headers)
        assert resp.json["total"] == 0

        resp = client.get("/api/v1/sales?startDate=2000-02-01&endDate=2000-01-01", headers=cashier_headers)
        assert resp.status_code == 400

    def test_update_payment(self, client, cashier_headers, sale_id):
        resp = client.put(f"/api/v1/sales/{sale_id}", json={"paymentStatus": "partially_paid"}, headers=cashier_headers)
        assert resp.json["data"]["paymentStatus"] == "partially_paid"

        resp = client.put(f"/api/v1/sales/{sale_id}", json={"paymentMethod": "cheque"}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_cancel(self, client, cashier_headers, sale_id):
        resp = client.post(f"/api/v1/sales/{sale_id}/cancel", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "cancelled"
        assert resp.json["data"]["paymentStatus"] == "refunded"

        again = client.post(f"/api/v1/sales/{sale_id}/cancel", headers=cashier_headers)
        assert again.status_code == 400

    def test_unknown_sale(self, client, cashier_headers):
        assert client.get("/api/v1/sales/nope", headers=cashier_headers).status_code == 404
        assert client.post("/api/v1/sales/nope/cancel", headers=cashier_headers).status_code == 404

    def test_sales_for_customer(self, client, cashier_headers, product):
        customer = Customer(name="Regular", phone="555")
        db.session.add(customer)
        db.session.commit()
        _sale(client, cashier_headers, customerId=customer.id)

        resp = client.get(f"/api/v1/sales/customer/{customer.id}", headers=cashier_headers)
        assert resp.json["count"] == 1
        assert client.get("/api/v1/sales/customer/999", headers=cashier_headers).status_code == 404

    def test_item_amounts(self, client, cashier_headers, sale_id):
        item = db.session.query(SaleItem).filter_by(sale_id=sale_id).one()
        assert item.unit_price == Decimal("3.00")
        assert item.total_price == Decimal("6.00")
