"""
Integration tests for checkout, item cancellation and vendor forwarding.
"""

from fastapi.testclient import TestClient


class TestCheckoutAndCancellation:
    def test_guest_checkout_snapshots_prices(self, client: TestClient, catalog, checkout_payload):
        response = client.post(
            "/api/v1/orders",
            json=checkout_payload((catalog["mug_id"], 2), (catalog["lamp_id"], 1)),
        )
        assert response.status_code == 201

        order = response.json()["data"]
        assert order["user_id"] is None
        assert order["status"] == "pending"
        assert order["order_type"] == "mixed"
        assert order["total_amount"] == 3000.0
        # Highest item shipping applies below the free-shipping threshold
        assert order["shipping_cost"] == 250.0
        assert order["grand_total"] == 3250.0
        assert {item["title"] for item in order["items"]} == {"Ceramic Mug", "Brass Table Lamp"}

    def test_checkout_rejects_insufficient_stock(self, client: TestClient, catalog, checkout_payload):
        response = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 6))
        )
        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert "Insufficient stock" in body["message"]

    def test_cancelling_items_reduces_total(
        self, client: TestClient, catalog, checkout_payload, customer_headers
    ):
        order = client.post(
            "/api/v1/orders",
            json=checkout_payload((catalog["mug_id"], 2), (catalog["lamp_id"], 1)),
        ).json()["data"]
        mug_item = next(i for i in order["items"] if i["product_id"] == catalog["mug_id"])

        response = client.post(
            f"/api/v1/orders/{order['id']}/cancel-items",
            json={"item_ids": [mug_item["id"]], "reason": "Ordered by mistake"},
            headers=customer_headers,
        )
        assert response.status_code == 200

        result = response.json()["data"]
        assert result["cancelled_items"] == [mug_item["id"]]
        assert result["refund_amount"] == 1000.0
        assert result["remaining_total"] == order["total_amount"] - 500.0 * 2
        assert result["order_status"] == "partially_cancelled"

        detail = client.get(f"/api/v1/orders/{order['id']}", headers=customer_headers)
        assert detail.status_code == 200
        assert detail.json()["data"]["total_amount"] == 2000.0

    def test_cancel_items_requires_owner(
        self, client: TestClient, catalog, checkout_payload, auth_headers
    ):
        order = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["mug_id"], 1))
        ).json()["data"]

        response = client.post(
            f"/api/v1/orders/{order['id']}/cancel-items",
            json={"item_ids": [order["items"][0]["id"]]},
            headers=auth_headers(99, "someone.else@example.com", "customer"),
        )
        assert response.status_code == 403

    def test_cancel_items_requires_authentication(self, client: TestClient, catalog, checkout_payload):
        order = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["mug_id"], 1))
        ).json()["data"]

        response = client.post(
            f"/api/v1/orders/{order['id']}/cancel-items",
            json={"item_ids": [order["items"][0]["id"]]},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"


class TestVendorForwarding:
    def test_forwarded_order_blocks_item_cancellation(
        self, client: TestClient, catalog, checkout_payload, admin_headers, customer_headers
    ):
        order = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 1))
        ).json()["data"]

        forward = client.post(f"/api/v1/admin/orders/{order['id']}/forward", headers=admin_headers)
        assert forward.status_code == 200
        forwarded = forward.json()["data"]
        assert forwarded["order_status"] == "processing"
        assert len(forwarded["vendor_orders"]) == 1
        assert forwarded["vendor_orders"][0]["vendor_id"] == catalog["vendor_id"]
        assert forwarded["vendor_orders"][0]["order_number"] == f"{order['order_number']}-V1"

        response = client.post(
            f"/api/v1/orders/{order['id']}/cancel-items",
            json={"item_ids": [order["items"][0]["id"]]},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert "already been forwarded" in response.json()["message"]

    def test_forwarding_twice_conflicts(
        self, client: TestClient, catalog, checkout_payload, admin_headers
    ):
        order = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 1))
        ).json()["data"]

        first = client.post(f"/api/v1/admin/orders/{order['id']}/forward", headers=admin_headers)
        assert first.status_code == 200
        second = client.post(f"/api/v1/admin/orders/{order['id']}/forward", headers=admin_headers)
        assert second.status_code == 409

    def test_marketplace_only_order_has_nothing_to_forward(
        self, client: TestClient, catalog, checkout_payload, admin_headers
    ):
        order = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["mug_id"], 1))
        ).json()["data"]

        response = client.post(f"/api/v1/admin/orders/{order['id']}/forward", headers=admin_headers)
        assert response.status_code == 400

    def test_forward_requires_admin(
        self, client: TestClient, catalog, checkout_payload, customer_headers
    ):
        order = client.post(
            "/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 1))
        ).json()["data"]

        response = client.post(
            f"/api/v1/admin/orders/{order['id']}/forward", headers=customer_headers
        )
        assert response.status_code == 403
