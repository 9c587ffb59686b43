"""Integration tests for Cart API endpoints via TestClient."""

import pytest
from fastapi.testclient import TestClient
from ordering.api.app import create_app

CUSTOMER = {"X-User-Id": "user-api-001"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}


@pytest.fixture()
def client():
    return TestClient(create_app())


def _add_item(client, product_id="prod-latte", quantity=1, headers=CUSTOMER, **extra):
    response = client.post("/cart/items", json={"product_id": product_id, "quantity": quantity, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["item_id"]


class TestCartEndpoints:
    def test_missing_identity_header(self, client):
        assert client.get("/cart").status_code == 401

    def test_empty_cart(self, client):
        response = client.get("/cart", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json() == {"cart": None}

    def test_add_item_and_read_cart(self, client):
        _add_item(
            client,
            quantity=2,
            customization={"size": "large", "sugar_level": "50%"},
            add_on_ids=["addon-shot"],
        )
        cart = client.get("/cart", headers=CUSTOMER).json()["cart"]
        assert cart["store_id"] == "store-001"
        assert cart["items"][0]["unit_price"] == 5.75
        assert cart["items"][0]["customization"]["size"] == "large"

    def test_summary(self, client):
        _add_item(client, quantity=2)
        summary = client.get("/cart/summary", headers=CUSTOMER).json()
        assert summary["item_count"] == 2
        assert summary["subtotal"] == 10.00
        assert summary["total"] == 13.50

    def test_quantity_must_be_positive(self, client):
        response = client.post("/cart/items", json={"product_id": "prod-latte", "quantity": 0}, headers=CUSTOMER)
        assert response.status_code == 422

    def test_unknown_product_is_404(self, client):
        response = client.post("/cart/items", json={"product_id": "prod-ghost"}, headers=CUSTOMER)
        assert response.status_code == 404
        assert response.json()["error"] == "ProductNotFoundError"

    def test_other_store_is_400(self, client):
        _add_item(client)
        response = client.post("/cart/items", json={"product_id": "prod-mocha"}, headers=CUSTOMER)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot add items from different stores"

    def test_update_and_remove_item(self, client):
        item_id = _add_item(client)
        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 4}, headers=CUSTOMER)
        assert response.status_code == 200
        assert client.get("/cart/summary", headers=CUSTOMER).json()["item_count"] == 4

        response = client.delete(f"/cart/items/{item_id}", headers=CUSTOMER)
        assert response.status_code == 200
        assert client.get("/cart/summary", headers=CUSTOMER).json()["item_count"] == 0

    def test_clear_without_cart_is_404(self, client):
        assert client.delete("/cart", headers=CUSTOMER).status_code == 404

    def test_address_and_notes(self, client):
        _add_item(client)
        assert client.patch("/cart/address", json={"address_id": "addr-1"}, headers=CUSTOMER).status_code == 200
        assert client.patch("/cart/notes", json={"notes": "Less ice"}, headers=CUSTOMER).status_code == 200
        cart = client.get("/cart", headers=CUSTOMER).json()["cart"]
        assert cart["delivery_address_id"] == "addr-1"
        assert cart["notes"] == "Less ice"

    def test_validate(self, client, catalog):
        _add_item(client)
        assert client.post("/cart/validate", headers=CUSTOMER).json() == {"valid": True, "issues": []}

        catalog.set_price("prod-latte", 5.40)
        body = client.post("/cart/validate", headers=CUSTOMER).json()
        assert body["valid"] is False
        assert body["issues"][0]["code"] == "price_changed"
        assert body["issues"][0]["current_price"] == 5.40


class TestAbandonedCartMaintenance:
    def test_requires_admin(self, client):
        assert client.post("/cart/maintenance/abandoned", headers=CUSTOMER).status_code == 403

    def test_abandons_expired_carts(self, client):
        _add_item(client)
        response = client.post(
            "/cart/maintenance/abandoned",
            json={"as_of": "2099-01-01T00:00:00Z"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json() == {"abandoned_count": 1}
        assert client.get("/cart", headers=CUSTOMER).json() == {"cart": None}


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "domain": "ordering"}
