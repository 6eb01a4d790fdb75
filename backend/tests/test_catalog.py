"""Products and categories."""

from decimal import Decimal

from sundus.extensions import db
from sundus.models import Category, Product, Sale, SaleItem


# =============================================================================
# PRODUCTS
# =============================================================================


class TestProducts:

    def test_create_product(self, client, admin_headers, category):
        resp = client.post("/api/v1/products", json={
            "name": "Mocha",
            "price": "3.75",
            "categoryId": category.id,
            "sku": "MOC-001",
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["price"] == 3.75
        assert resp.json["data"]["category"] == "Coffee"

    def test_cashier_cannot_write(self, client, cashier_headers):
        resp = client.post("/api/v1/products", json={"name": "Mocha", "price": 3}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_validation(self, client, admin_headers):
        assert client.post("/api/v1/products", json={"name": "X"}, headers=admin_headers).status_code == 400
        assert client.post("/api/v1/products", json={"name": "X", "price": -1}, headers=admin_headers).status_code == 400
        assert client.post("/api/v1/products", json={"name": "X", "price": "abc"}, headers=admin_headers).status_code == 400
        assert client.post("/api/v1/products", json={"name": "X", "price": 1, "categoryId": 999}, headers=admin_headers).status_code == 400
        assert client.post("/api/v1/products", json={"name": "X", "price": 1, "colour": "red"}, headers=admin_headers).status_code == 400

    def test_duplicate_sku(self, client, admin_headers, product):
        resp = client.post("/api/v1/products", json={"name": "Latte 2", "price": 3, "sku": "LAT-001"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_update_product(self, client, admin_headers, product):
        resp = client.put(f"/api/v1/products/{product.id}", json={"price": 3.25, "availableOnline": False}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["price"] == 3.25
        assert resp.json["data"]["availableOnline"] is False

        assert client.put("/api/v1/products/999", json={"price": 1}, headers=admin_headers).status_code == 404

    def test_list_and_search(self, client, cashier_headers, product, second_product):
        resp = client.get("/api/v1/products", headers=cashier_headers)
        assert [p["name"] for p in resp.json["data"]] == ["Honey Cake", "Latte"]

        resp = client.get("/api/v1/products?search=lat", headers=cashier_headers)
        assert resp.json["count"] == 1

    def test_listing_requires_auth(self, client):
        assert client.get("/api/v1/products").status_code == 401

    def test_online_menu_is_public(self, client, product, second_product):
        second_product.available_online = False
        db.session.commit()

        resp = client.get("/api/v1/products/online")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json["data"]] == [7]

    def test_delete_unsold_product(self, client, admin_headers, product):
        assert client.delete(f"/api/v1/products/{product.id}", headers=admin_headers).status_code == 200
        assert db.session.get(Product, 7) is None

    def test_delete_sold_product_conflicts(self, client, admin_headers, product):
        sale = Sale(subtotal=Decimal("3"), total_amount=Decimal("3"))
        db.session.add(sale)
        db.session.flush()
        db.session.add(SaleItem(
            sale_id=sale.id, product_id=product.id, quantity=1,
            unit_price=Decimal("3"), subtotal=Decimal("3"), total_price=Decimal("3"),
        ))
        db.session.commit()

        assert client.delete(f"/api/v1/products/{product.id}", headers=admin_headers).status_code == 409


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:

    def test_listing_is_public(self, client, category):
        resp = client.get("/api/v1/categories")
        assert resp.status_code == 200
        assert resp.json["data"][0]["name"] == "Coffee"

        assert client.get(f"/api/v1/categories/{category.id}").status_code == 200
        assert client.get("/api/v1/categories/999").status_code == 404

    def test_create_appends_to_end(self, client, admin_headers, category):
        resp = client.post("/api/v1/categories", json={"name": "Pastries"}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["displayOrder"] == category.display_order + 1

    def test_duplicate_name(self, client, admin_headers, category):
        resp = client.post("/api/v1/categories", json={"name": "Coffee"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_reorder(self, client, admin_headers, category):
        tea = Category(name="Tea", display_order=5)
        db.session.add(tea)
        db.session.commit()

        resp = client.put("/api/v1/categories/reorder", json={"ids": [tea.id, category.id]}, headers=admin_headers)
        assert resp.status_code == 200
        assert [c["name"] for c in resp.json["data"]] == ["Tea", "Coffee"]

        assert client.put("/api/v1/categories/reorder", json={"ids": [tea.id, 999]}, headers=admin_headers).status_code == 400
        assert client.put("/api/v1/categories/reorder", json={"ids": []}, headers=admin_headers).status_code == 400

    def test_delete_category_in_use(self, client, admin_headers, product):
        resp = client.delete(f"/api/v1/categories/{product.category_id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_empty_category(self, client, admin_headers, category):
        assert client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers).status_code == 404
