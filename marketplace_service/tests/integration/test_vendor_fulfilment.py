"""
Integration tests for vendor fulfilment, per-vendor cancellation and
commission reversal.
"""

from fastapi.testclient import TestClient


def place_and_forward(client: TestClient, payload, admin_headers):
    order = client.post("/api/v1/orders", json=payload).json()["data"]
    forward = client.post(f"/api/v1/admin/orders/{order['id']}/forward", headers=admin_headers)
    assert forward.status_code == 200
    return order, forward.json()["data"]["vendor_orders"][0]


def vendor_ledger(client: TestClient, vendor_id: int, admin_headers):
    response = client.get(
        "/api/v1/admin/commissions", params={"vendor_id": vendor_id}, headers=admin_headers
    )
    assert response.status_code == 200
    ledgers = response.json()["data"]
    assert len(ledgers) == 1
    return ledgers[0]


class TestVendorFulfilment:
    def test_ship_then_deliver_drives_parent_order(
        self, client: TestClient, catalog, checkout_payload, admin_headers, customer_headers, auth_headers
    ):
        vendor = auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor")
        order, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )

        shipped = client.patch(
            f"/api/v1/vendor/orders/{vendor_order['id']}/status",
            json={"status": "shipped", "tracking_number": "TCS-88123"},
            headers=vendor,
        )
        assert shipped.status_code == 200
        assert shipped.json()["data"]["status"] == "shipped"
        assert shipped.json()["data"]["tracking_number"] == "TCS-88123"
        parent = client.get(f"/api/v1/orders/{order['id']}", headers=customer_headers)
        assert parent.json()["data"]["status"] == "shipped"

        delivered = client.patch(
            f"/api/v1/vendor/orders/{vendor_order['id']}/status",
            json={"status": "delivered"},
            headers=vendor,
        )
        assert delivered.status_code == 200
        assert delivered.json()["data"]["delivered_at"] is not None
        parent = client.get(f"/api/v1/orders/{order['id']}", headers=customer_headers)
        assert parent.json()["data"]["status"] == "delivered"

    def test_vendor_cannot_skip_shipping(
        self, client: TestClient, catalog, checkout_payload, admin_headers, auth_headers
    ):
        _, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )

        response = client.patch(
            f"/api/v1/vendor/orders/{vendor_order['id']}/status",
            json={"status": "delivered"},
            headers=auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor"),
        )
        assert response.status_code == 400
        assert "Invalid status transition" in response.json()["message"]

    def test_other_vendor_cannot_update(
        self, client: TestClient, catalog, checkout_payload, admin_headers, auth_headers
    ):
        _, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )

        response = client.patch(
            f"/api/v1/vendor/orders/{vendor_order['id']}/status",
            json={"status": "shipped"},
            headers=auth_headers(catalog["vendor_id"] + 100, "other@example.com", "vendor"),
        )
        assert response.status_code == 404


class TestPerVendorCancellation:
    def test_customer_cancel_refunds_and_reverses_commission(
        self, client: TestClient, catalog, checkout_payload, admin_headers, customer_headers
    ):
        order, vendor_order = place_and_forward(
            client,
            checkout_payload((catalog["mug_id"], 2), (catalog["lamp_id"], 1)),
            admin_headers,
        )
        assert vendor_order["commission_amount"] == 450.0
        assert order["shipping_cost"] == 250.0

        response = client.post(
            f"/api/v1/orders/vendor-orders/{vendor_order['id']}/cancel",
            json={"reason": "Found it cheaper"},
            headers=customer_headers,
        )
        assert response.status_code == 200

        result = response.json()["data"]
        assert result["refund_amount"] == 2000.0
        assert result["remaining_total"] == 1000.0
        assert result["order_status"] == "partially_cancelled"
        assert result["vendor_order"]["status"] == "cancelled"
        assert result["vendor_order"]["cancelled_by"] == "customer"
        assert result["vendor_order"]["commission_reversed"] is True

        # Only the mug is left, so its shipping is what the order now carries
        parent = client.get(f"/api/v1/orders/{order['id']}", headers=customer_headers).json()["data"]
        assert parent["total_amount"] == 1000.0
        assert parent["shipping_cost"] == 150.0
        assert parent["grand_total"] == 1150.0

        ledger = vendor_ledger(client, catalog["vendor_id"], admin_headers)
        assert ledger["total_orders"] == 0
        assert ledger["total_commission"] == 0.0
        assert sorted(t["kind"] for t in ledger["transactions"]) == ["commission", "reversal"]

    def test_cancelled_stock_is_back_on_sale(
        self, client: TestClient, catalog, checkout_payload, admin_headers, customer_headers
    ):
        _, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )
        # Four lamps left; five only fit once the cancelled one is returned
        too_many = client.post("/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 5)))
        assert too_many.status_code == 409

        cancel = client.post(
            f"/api/v1/orders/vendor-orders/{vendor_order['id']}/cancel",
            json={},
            headers=customer_headers,
        )
        assert cancel.status_code == 200
        assert cancel.json()["data"]["order_status"] == "cancelled"

        response = client.post("/api/v1/orders", json=checkout_payload((catalog["lamp_id"], 5)))
        assert response.status_code == 201

    def test_second_cancellation_does_not_reverse_again(
        self, client: TestClient, catalog, checkout_payload, admin_headers, customer_headers
    ):
        order, vendor_order = place_and_forward(
            client,
            checkout_payload((catalog["mug_id"], 1), (catalog["lamp_id"], 1)),
            admin_headers,
        )
        first = client.post(
            f"/api/v1/orders/vendor-orders/{vendor_order['id']}/cancel",
            json={},
            headers=customer_headers,
        )
        assert first.status_code == 200

        again = client.post(
            f"/api/v1/orders/vendor-orders/{vendor_order['id']}/cancel",
            json={},
            headers=customer_headers,
        )
        assert again.status_code == 400

        # Cancelling the rest of the order skips the already cancelled vendor order
        admin_cancel = client.patch(
            f"/api/v1/admin/orders/{order['id']}/status",
            json={"status": "cancelled", "admin_notes": "Customer unreachable"},
            headers=admin_headers,
        )
        assert admin_cancel.status_code == 200

        ledger = vendor_ledger(client, catalog["vendor_id"], admin_headers)
        assert ledger["total_commission"] == 0.0
        assert sorted(t["kind"] for t in ledger["transactions"]) == ["commission", "reversal"]

    def test_customer_cannot_cancel_shipped_vendor_order(
        self, client: TestClient, catalog, checkout_payload, admin_headers, customer_headers, auth_headers
    ):
        _, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )
        client.patch(
            f"/api/v1/vendor/orders/{vendor_order['id']}/status",
            json={"status": "shipped"},
            headers=auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor"),
        )

        response = client.post(
            f"/api/v1/orders/vendor-orders/{vendor_order['id']}/cancel",
            json={},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot cancel a shipped vendor order"


class TestAdminCancellation:
    def test_admin_cancel_cancels_forwarded_vendor_orders(
        self, client: TestClient, catalog, checkout_payload, admin_headers, auth_headers
    ):
        order, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )

        response = client.patch(
            f"/api/v1/admin/orders/{order['id']}/status",
            json={"status": "cancelled", "admin_notes": "Payment never arrived"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert response.json()["data"]["shipping_cost"] == 0.0

        detail = client.get(
            f"/api/v1/vendor/orders/{vendor_order['id']}",
            headers=auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor"),
        ).json()["data"]
        assert detail["status"] == "cancelled"
        assert detail["cancelled_by"] == "admin"
        assert detail["commission_reversed"] is True

    def test_admin_cannot_cancel_after_vendor_shipped(
        self, client: TestClient, catalog, checkout_payload, admin_headers, auth_headers
    ):
        order, vendor_order = place_and_forward(
            client, checkout_payload((catalog["lamp_id"], 1)), admin_headers
        )
        client.patch(
            f"/api/v1/vendor/orders/{vendor_order['id']}/status",
            json={"status": "shipped"},
            headers=auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor"),
        )

        response = client.patch(
            f"/api/v1/admin/orders/{order['id']}/status",
            json={"status": "cancelled"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "already shipped" in response.json()["message"]
