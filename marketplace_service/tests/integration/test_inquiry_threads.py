from fastapi.testclient import TestClient


def _open_inquiry(client: TestClient, vendor_id: int) -> dict:
    response = client.post(
        "/api/v1/inquiries",
        json={
            "vendor_id": vendor_id,
            "customer_name": "Ayesha Khan",
            "customer_email": "ayesha@example.com",
            "subject": "Lamp shade colours",
            "message": "Does the brass lamp come with a white shade?",
            "category": "product_inquiry",
        },
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestInquiryThreads:
    def test_guest_inquiry_starts_open(self, client: TestClient, catalog):
        inquiry = _open_inquiry(client, catalog["vendor_id"])

        assert inquiry["inquiry_id"].startswith("INQ-")
        assert inquiry["status"] == "open"
        assert inquiry["first_response_at"] is None
        assert len(inquiry["messages"]) == 1
        assert inquiry["messages"][0]["sender"] == "customer"

    def test_inquiry_for_unknown_vendor(self, client: TestClient, catalog):
        response = client.post(
            "/api/v1/inquiries",
            json={
                "vendor_id": 9999,
                "customer_name": "Ayesha Khan",
                "customer_email": "ayesha@example.com",
                "subject": "Hello there",
                "message": "Anyone home?",
            },
        )
        assert response.status_code == 404

    def test_first_response_is_recorded_once(self, client: TestClient, catalog, auth_headers):
        inquiry = _open_inquiry(client, catalog["vendor_id"])
        vendor_headers = auth_headers(
            catalog["vendor_id"], "vendor@example.com", "vendor", name="Lahore Crafts"
        )
        url = f"/api/v1/vendor/inquiries/{inquiry['inquiry_id']}/messages"

        first = client.post(url, json={"content": "Yes, white and beige."}, headers=vendor_headers)
        assert first.status_code == 200
        first_data = first.json()["data"]
        assert first_data["status"] == "in_progress"
        assert first_data["first_response_at"] is not None
        assert first_data["messages"][-1]["sender_name"] == "Lahore Crafts"

        second = client.post(url, json={"content": "Both ship in two days."}, headers=vendor_headers)
        assert second.status_code == 200
        second_data = second.json()["data"]
        assert len(second_data["messages"]) == 3
        assert second_data["first_response_at"] == first_data["first_response_at"]

    def test_other_vendor_cannot_see_inquiry(self, client: TestClient, catalog, auth_headers):
        inquiry = _open_inquiry(client, catalog["vendor_id"])

        response = client.get(
            f"/api/v1/vendor/inquiries/{inquiry['inquiry_id']}",
            headers=auth_headers(catalog["vendor_id"] + 100, "other@example.com", "vendor"),
        )
        assert response.status_code == 404

    def test_closed_inquiry_rejects_replies(self, client: TestClient, catalog, auth_headers):
        inquiry = _open_inquiry(client, catalog["vendor_id"])
        vendor_headers = auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor")
        base = f"/api/v1/vendor/inquiries/{inquiry['inquiry_id']}"

        closed = client.patch(f"{base}/status", json={"status": "closed"}, headers=vendor_headers)
        assert closed.status_code == 200
        assert closed.json()["data"]["status"] == "closed"

        reply = client.post(f"{base}/messages", json={"content": "Hello?"}, headers=vendor_headers)
        assert reply.status_code == 400
