"""
Integration tests for saved carts, the contact form and newsletter sign-up.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def shopper(client: TestClient, auth_headers):
    registered = client.post(
        "/api/v1/auth/register",
        json={"name": "Hina Raza", "email": "hina@example.com", "password": "lahore-2026"},
    ).json()["data"]
    return {
        "id": registered["id"],
        "headers": auth_headers(registered["id"], "hina@example.com", "customer", name="Hina Raza"),
    }


def add_to_cart(client: TestClient, shopper, product_id: int, quantity: int = 1):
    return client.post(
        "/api/v1/cart/items",
        json={"product_id": product_id, "quantity": quantity},
        headers=shopper["headers"],
    )


def checkout_details(checkout_payload):
    details = checkout_payload()
    details.pop("items")
    details["customer_email"] = "hina@example.com"
    return details


class TestCart:
    def test_new_cart_is_empty(self, client: TestClient, shopper):
        response = client.get("/api/v1/cart", headers=shopper["headers"])
        assert response.status_code == 200
        cart = response.json()["data"]
        assert cart["items"] == []
        assert cart["total_items"] == 0
        assert cart["total_amount"] == 0.0

    def test_adding_same_product_tops_up_quantity(self, client: TestClient, catalog, shopper):
        add_to_cart(client, shopper, catalog["mug_id"], 2)
        add_to_cart(client, shopper, catalog["mug_id"], 1)
        response = add_to_cart(client, shopper, catalog["lamp_id"])
        assert response.status_code == 200

        cart = response.json()["data"]
        assert [(i["product_id"], i["quantity"]) for i in cart["items"]] == [
            (catalog["mug_id"], 3),
            (catalog["lamp_id"], 1),
        ]
        assert cart["total_items"] == 4
        assert cart["total_amount"] == 3500.0
        mug = cart["items"][0]
        assert mug["title"] == "Ceramic Mug"
        assert mug["in_stock"] is True
        assert mug["available"] is True

    def test_cannot_add_more_than_stock(self, client: TestClient, catalog, shopper):
        add_to_cart(client, shopper, catalog["lamp_id"], 3)

        response = add_to_cart(client, shopper, catalog["lamp_id"], 3)
        assert response.status_code == 400
        assert response.json()["message"] == "Only 5 items available in stock"

    def test_unknown_product_is_404(self, client: TestClient, catalog, shopper):
        assert add_to_cart(client, shopper, 9999).status_code == 404

    def test_update_quantity_and_remove_with_zero(self, client: TestClient, catalog, shopper):
        add_to_cart(client, shopper, catalog["mug_id"], 2)
        add_to_cart(client, shopper, catalog["lamp_id"])

        updated = client.patch(
            f"/api/v1/cart/items/{catalog['mug_id']}",
            json={"quantity": 5},
            headers=shopper["headers"],
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["total_items"] == 6

        too_many = client.patch(
            f"/api/v1/cart/items/{catalog['lamp_id']}",
            json={"quantity": 6},
            headers=shopper["headers"],
        )
        assert too_many.status_code == 400

        removed = client.patch(
            f"/api/v1/cart/items/{catalog['lamp_id']}",
            json={"quantity": 0},
            headers=shopper["headers"],
        )
        assert [i["product_id"] for i in removed.json()["data"]["items"]] == [catalog["mug_id"]]

        missing = client.patch(
            f"/api/v1/cart/items/{catalog['lamp_id']}",
            json={"quantity": 1},
            headers=shopper["headers"],
        )
        assert missing.status_code == 404
        assert missing.json()["message"] == "Item not found in cart"

    def test_remove_and_clear(self, client: TestClient, catalog, shopper):
        add_to_cart(client, shopper, catalog["mug_id"])
        add_to_cart(client, shopper, catalog["lamp_id"])

        removed = client.delete(
            f"/api/v1/cart/items/{catalog['mug_id']}", headers=shopper["headers"]
        )
        assert removed.status_code == 200
        assert removed.json()["data"]["total_items"] == 1

        cleared = client.delete("/api/v1/cart", headers=shopper["headers"])
        assert cleared.status_code == 200
        assert cleared.json()["data"]["items"] == []
        assert client.get("/api/v1/cart", headers=shopper["headers"]).json()["data"]["items"] == []

    def test_cart_is_for_customers(self, client: TestClient, admin_headers):
        assert client.get("/api/v1/cart").status_code == 401
        assert client.get("/api/v1/cart", headers=admin_headers).status_code == 403


class TestCartCheckout:
    def test_checkout_places_order_and_empties_cart(
        self, client: TestClient, catalog, shopper, checkout_payload
    ):
        add_to_cart(client, shopper, catalog["mug_id"], 2)
        add_to_cart(client, shopper, catalog["lamp_id"])

        response = client.post(
            "/api/v1/cart/checkout",
            json=checkout_details(checkout_payload),
            headers=shopper["headers"],
        )
        assert response.status_code == 201

        order = response.json()["data"]
        assert order["user_id"] == shopper["id"]
        assert order["total_amount"] == 3000.0
        assert order["shipping_cost"] == 250.0
        assert len(order["items"]) == 2

        assert client.get("/api/v1/cart", headers=shopper["headers"]).json()["data"]["items"] == []
        mine = client.get("/api/v1/orders", headers=shopper["headers"]).json()["data"]
        assert [o["id"] for o in mine] == [order["id"]]

        # Stock was taken by the order
        assert add_to_cart(client, shopper, catalog["lamp_id"], 5).status_code == 400

    def test_empty_cart_cannot_check_out(self, client: TestClient, catalog, shopper, checkout_payload):
        client.get("/api/v1/cart", headers=shopper["headers"])

        response = client.post(
            "/api/v1/cart/checkout",
            json=checkout_details(checkout_payload),
            headers=shopper["headers"],
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    def test_failed_checkout_keeps_cart(self, client: TestClient, catalog, shopper, checkout_payload):
        add_to_cart(client, shopper, catalog["lamp_id"], 5)
        # Someone else buys a lamp first
        guest = client.post("/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 1)))
        assert guest.status_code == 201

        response = client.post(
            "/api/v1/cart/checkout",
            json=checkout_details(checkout_payload),
            headers=shopper["headers"],
        )
        assert response.status_code == 409

        cart = client.get("/api/v1/cart", headers=shopper["headers"]).json()["data"]
        assert cart["total_items"] == 5
        assert cart["items"][0]["in_stock"] is False


class TestContactMessages:
    def test_submission_is_listed_for_admin(self, client: TestClient, admin_headers):
        response = client.post(
            "/api/v1/contact",
            json={
                "name": "Usman Tariq",
                "email": "Usman@Example.com",
                "subject": "Card was charged twice",
                "message": "My card shows two charges for one order.",
                "inquiry_type": "billing",
            },
        )
        assert response.status_code == 201
        contact_id = response.json()["data"]["id"]

        listed = client.get(
            "/api/v1/admin/contacts", params={"status": "new"}, headers=admin_headers
        ).json()["data"]
        assert [c["id"] for c in listed] == [contact_id]
        assert listed[0]["email"] == "usman@example.com"
        assert listed[0]["priority"] == "high"

        by_body = client.get(
            "/api/v1/admin/contacts", params={"search": "two charges"}, headers=admin_headers
        ).json()["data"]
        assert [c["id"] for c in by_body] == [contact_id]

    def test_short_message_is_rejected(self, client: TestClient):
        response = client.post(
            "/api/v1/contact",
            json={
                "name": "Usman Tariq",
                "email": "usman@example.com",
                "subject": "Hello",
                "message": "Hi",
            },
        )
        assert response.status_code == 422

    def test_assign_then_resolve(self, client: TestClient, admin_headers):
        contact_id = client.post(
            "/api/v1/contact",
            json={
                "name": "Usman Tariq",
                "email": "usman@example.com",
                "subject": "Wholesale pricing",
                "message": "Do you offer wholesale rates for shawls?",
                "inquiry_type": "business",
            },
        ).json()["data"]["id"]
        url = f"/api/v1/admin/contacts/{contact_id}"

        assigned = client.patch(url, json={"assigned_to": 1}, headers=admin_headers)
        assert assigned.json()["data"]["status"] == "in_progress"
        assert assigned.json()["data"]["priority"] == "medium"

        resolved = client.patch(
            url,
            json={"status": "resolved", "admin_response": "Yes, for orders of 20 or more."},
            headers=admin_headers,
        )
        assert resolved.status_code == 200
        data = resolved.json()["data"]
        assert data["resolved_by"] == 1
        assert data["resolved_at"] is not None
        assert data["admin_response"] == "Yes, for orders of 20 or more."

        stats = client.get("/api/v1/admin/contacts/stats", headers=admin_headers).json()["data"]
        assert stats["total"] == 1
        assert stats["resolved"] == 1

        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.get(url, headers=admin_headers).status_code == 404

    def test_admin_views_need_admin(self, client: TestClient, customer_headers):
        response = client.get("/api/v1/admin/contacts", headers=customer_headers)
        assert response.status_code == 403


class TestNewsletter:
    def test_duplicate_subscription_is_rejected(self, client: TestClient):
        first = client.post("/api/v1/newsletter/subscribe", json={"email": "reader@example.com"})
        assert first.status_code == 201

        again = client.post("/api/v1/newsletter/subscribe", json={"email": "Reader@example.com"})
        assert again.status_code == 400
        assert again.json()["message"] == "This email is already subscribed to our newsletter"

    def test_unsubscribe_then_resubscribe(self, client: TestClient, admin_headers):
        client.post("/api/v1/newsletter/subscribe", json={"email": "reader@example.com"})

        left = client.post("/api/v1/newsletter/unsubscribe", json={"email": "reader@example.com"})
        assert left.status_code == 200
        gone = client.post("/api/v1/newsletter/unsubscribe", json={"email": "reader@example.com"})
        assert gone.status_code == 404

        inactive = client.get(
            "/api/v1/admin/newsletter/subscriptions",
            params={"is_active": "false"},
            headers=admin_headers,
        ).json()["data"]
        assert [s["email"] for s in inactive] == ["reader@example.com"]

        back = client.post(
            "/api/v1/newsletter/subscribe",
            json={"email": "reader@example.com", "source": "popup"},
        )
        assert back.status_code == 201

        stats = client.get("/api/v1/admin/newsletter/stats", headers=admin_headers).json()["data"]
        assert stats == {"active": 1, "unsubscribed": 0, "total": 1}

    def test_admin_can_delete_subscription(self, client: TestClient, admin_headers):
        client.post("/api/v1/newsletter/subscribe", json={"email": "reader@example.com"})
        listed = client.get(
            "/api/v1/admin/newsletter/subscriptions", headers=admin_headers
        ).json()["data"]

        url = f"/api/v1/admin/newsletter/subscriptions/{listed[0]['id']}"
        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.delete(url, headers=admin_headers).status_code == 404
