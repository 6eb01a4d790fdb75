"""Customer CRUD and the public find-or-create lookup."""

from sundus.extensions import db
from sundus.models import Customer


class TestFindOrCreate:

    def test_creates_when_absent(self, client):
        resp = client.post("/api/v1/customers/find-or-create", json={"phone": "555", "name": "Huda"})
        assert resp.status_code == 200
        assert resp.json["data"]["name"] == "Huda"
        assert db.session.query(Customer).count() == 1

    def test_walk_in_name(self, client):
        resp = client.post("/api/v1/customers/find-or-create", json={"email": "w@example.com"})
        assert resp.json["data"]["name"] == "Walk-in Customer"

    def test_matches_phone_and_fills_blanks(self, client):
        db.session.add(Customer(name="Huda", phone="555"))
        db.session.commit()

        resp = client.post("/api/v1/customers/find-or-create", json={"phone": "555", "email": "h@example.com"})
        assert resp.json["data"]["email"] == "h@example.com"
        assert db.session.query(Customer).count() == 1

    def test_needs_email_or_phone(self, client):
        assert client.post("/api/v1/customers/find-or-create", json={"name": "X"}).status_code == 400
        assert client.post("/api/v1/customers/find-or-create", json={"email": "bad"}).status_code == 400


class TestCustomerCrud:

    def test_create_and_get(self, client, cashier_headers):
        resp = client.post("/api/v1/customers", json={"name": "Omar", "phone": "777", "postalCode": "11111"}, headers=cashier_headers)
        assert resp.status_code == 201
        customer_id = resp.json["data"]["id"]
        assert resp.json["data"]["postalCode"] == "11111"

        resp = client.get(f"/api/v1/customers/{customer_id}", headers=cashier_headers)
        assert resp.json["data"]["phone"] == "777"

    def test_create_requires_name(self, client, cashier_headers):
        assert client.post("/api/v1/customers", json={"phone": "1"}, headers=cashier_headers).status_code == 400

    def test_duplicate_email(self, client, cashier_headers):
        client.post("/api/v1/customers", json={"name": "A", "email": "a@example.com"}, headers=cashier_headers)
        resp = client.post("/api/v1/customers", json={"name": "B", "email": "a@example.com"}, headers=cashier_headers)
        assert resp.status_code == 409

    def test_update(self, client, cashier_headers):
        customer = Customer(name="Omar")
        db.session.add(customer)
        db.session.commit()

        resp = client.put(f"/api/v1/customers/{customer.id}", json={"city": "Khartoum"}, headers=cashier_headers)
        assert resp.json["data"]["city"] == "Khartoum"

        assert client.put(f"/api/v1/customers/{customer.id}", json={"name": ""}, headers=cashier_headers).status_code == 400
        assert client.put("/api/v1/customers/999", json={"city": "X"}, headers=cashier_headers).status_code == 404

    def test_search(self, client, cashier_headers):
        db.session.add_all([Customer(name="Omar", phone="777"), Customer(name="Salma", phone="888")])
        db.session.commit()

        resp = client.get("/api/v1/customers?search=sal", headers=cashier_headers)
        assert [c["name"] for c in resp.json["data"]] == ["Salma"]

    def test_soft_delete_hides_customer(self, client, cashier_headers):
        customer = Customer(name="Omar", phone="777")
        db.session.add(customer)
        db.session.commit()

        assert client.delete(f"/api/v1/customers/{customer.id}", headers=cashier_headers).status_code == 200
        assert db.session.get(Customer, customer.id).deleted_at is not None
        assert client.get(f"/api/v1/customers/{customer.id}", headers=cashier_headers).status_code == 404
        assert client.get("/api/v1/customers?includeInactive=true", headers=cashier_headers).json["count"] == 0

    def test_soft_deleted_phone_gets_new_customer_on_order(self, client, cashier_headers, product):
        old = Customer(name="Old", phone="5551234")
        db.session.add(old)
        db.session.commit()
        client.delete(f"/api/v1/customers/{old.id}", headers=cashier_headers)

        resp = client.post("/api/v1/orders/with-image", json={"orderData": {
            "customerData": {"phone": "5551234", "name": "New"},
            "cartItems": [{"productId": 7, "quantity": 1, "unitPrice": 3}],
        }})
        assert resp.status_code == 201
        assert db.session.query(Customer).filter_by(phone="5551234").count() == 2

    def test_customer_sales(self, client, cashier_headers, product):
        client.post("/api/v1/orders/with-image", json={"orderData": {
            "customerData": {"phone": "5551234"},
            "cartItems": [{"productId": 7, "quantity": 1, "unitPrice": 3}],
        }})
        customer = db.session.query(Customer).one()

        resp = client.get(f"/api/v1/customers/{customer.id}/sales", headers=cashier_headers)
        assert resp.json["count"] == 1
        assert resp.json["data"][0]["source"] == "online"
