"""
Integration tests for accounts, vendor access and product moderation.
"""

from fastapi.testclient import TestClient

PASSWORD = "lahore-2026"


def register_vendor(client: TestClient, email: str, business_name: str = "Peshawar Weaves"):
    response = client.post(
        "/api/v1/vendors/auth/register",
        json={"business_name": business_name, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201
    return response.json()["data"]


def vendor_login(client: TestClient, email: str):
    response = client.post(
        "/api/v1/vendors/auth/login", json={"email": email, "password": PASSWORD}
    )
    # Tests authenticate with explicit headers; drop the session cookie
    client.cookies.clear()
    return response


class TestCustomerAccounts:
    def test_register_login_and_me(self, client: TestClient):
        registered = client.post(
            "/api/v1/auth/register",
            json={"name": "Zara Ahmed", "email": "Zara@Example.com", "password": PASSWORD},
        )
        assert registered.status_code == 201
        user = registered.json()["data"]
        assert user["email"] == "zara@example.com"
        assert user["role"] == "customer"
        assert "password_hash" not in user

        login = client.post(
            "/api/v1/auth/login", json={"email": "zara@example.com", "password": PASSWORD}
        )
        assert login.status_code == 200
        token = login.json()["data"]["access_token"]
        assert login.json()["data"]["token_type"] == "bearer"
        client.cookies.clear()

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["data"]["id"] == user["id"]

    def test_wrong_password_is_rejected(self, client: TestClient):
        client.post(
            "/api/v1/auth/register",
            json={"name": "Zara Ahmed", "email": "zara@example.com", "password": PASSWORD},
        )

        response = client.post(
            "/api/v1/auth/login", json={"email": "zara@example.com", "password": "not-it"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_duplicate_email_is_rejected(self, client: TestClient):
        payload = {"name": "Zara Ahmed", "email": "zara@example.com", "password": PASSWORD}
        assert client.post("/api/v1/auth/register", json=payload).status_code == 201

        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["message"] == "Email already registered"

    def test_vendor_email_cannot_become_customer(self, client: TestClient):
        register_vendor(client, "weaves@example.com")

        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Zara Ahmed", "email": "weaves@example.com", "password": PASSWORD},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Email already registered"


class TestVendorAccess:
    def test_pending_vendor_can_sign_in(self, client: TestClient):
        vendor = register_vendor(client, "weaves@example.com")
        assert vendor["status"] == "pending"

        response = vendor_login(client, "weaves@example.com")
        assert response.status_code == 200
        assert response.json()["data"]["vendor"]["id"] == vendor["id"]

    def test_suspended_vendor_is_refused(self, client: TestClient, admin_headers):
        vendor = register_vendor(client, "weaves@example.com")
        suspended = client.patch(
            f"/api/v1/admin/vendors/{vendor['id']}/status",
            json={"status": "suspended"},
            headers=admin_headers,
        )
        assert suspended.status_code == 200

        response = vendor_login(client, "weaves@example.com")
        assert response.status_code == 403
        assert response.json()["message"] == "Vendor account is suspended"

    def test_rejected_vendor_is_refused(self, client: TestClient, admin_headers):
        vendor = register_vendor(client, "weaves@example.com")
        client.patch(
            f"/api/v1/admin/vendors/{vendor['id']}/status",
            json={"status": "rejected"},
            headers=admin_headers,
        )

        response = vendor_login(client, "weaves@example.com")
        assert response.status_code == 403
        assert response.json()["message"] == "Vendor account is rejected"


class TestProductModeration:
    def test_vendor_edit_sends_product_back_to_review(
        self, client: TestClient, catalog, admin_headers, auth_headers
    ):
        vendor = auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor")
        created = client.post(
            "/api/v1/vendor/products",
            json={"name": "Onyx Coaster Set", "price": "1200", "stock": 6},
            headers=vendor,
        )
        assert created.status_code == 201
        product = created.json()["data"]
        assert product["approval_status"] == "pending"
        assert product["vendor_id"] == catalog["vendor_id"]
        assert client.get(f"/api/v1/products/{product['slug']}").status_code == 404

        approved = client.patch(
            f"/api/v1/admin/products/{product['id']}/approval",
            json={"approval_status": "approved"},
            headers=admin_headers,
        )
        assert approved.json()["data"]["approval_status"] == "approved"
        assert client.get(f"/api/v1/products/{product['slug']}").status_code == 200

        edited = client.put(
            f"/api/v1/vendor/products/{product['id']}", json={"stock": 8}, headers=vendor
        )
        assert edited.status_code == 200
        assert edited.json()["data"]["stock"] == 8
        assert edited.json()["data"]["approval_status"] == "pending"
        assert client.get(f"/api/v1/products/{product['slug']}").status_code == 404

    def test_admin_edit_keeps_approval(self, client: TestClient, catalog, admin_headers):
        response = client.put(
            f"/api/v1/admin/products/{catalog['mug_id']}",
            json={"stock": 3},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["approval_status"] == "approved"

    def test_rejection_needs_a_reason(self, client: TestClient, catalog, admin_headers):
        response = client.patch(
            f"/api/v1/admin/products/{catalog['lamp_id']}/approval",
            json={"approval_status": "rejected"},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestProductUpdateValidation:
    def test_null_for_required_column_is_a_validation_error(
        self, client: TestClient, catalog, admin_headers
    ):
        for field in ("name", "price", "shipping_cost", "stock", "is_active"):
            response = client.put(
                f"/api/v1/admin/products/{catalog['mug_id']}",
                json={field: None},
                headers=admin_headers,
            )
            assert response.status_code == 422, field
            errors = response.json()["error"]["details"]["validation_errors"]
            assert errors[0]["field"] == f"body.{field}"

    def test_null_for_optional_column_clears_it(self, client: TestClient, catalog, admin_headers):
        response = client.put(
            f"/api/v1/admin/products/{catalog['mug_id']}",
            json={"brand": None},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["brand"] is None


class TestProductImageOwnership:
    def test_delete_leaves_files_the_product_did_not_upload(
        self, client: TestClient, catalog, upload_storage, auth_headers
    ):
        banner = upload_storage.root / "homepage" / "admin-banner.png"
        banner.parent.mkdir(parents=True, exist_ok=True)
        banner.write_bytes(b"banner")

        vendor = auth_headers(catalog["vendor_id"], "vendor@example.com", "vendor")
        created = client.post(
            "/api/v1/vendor/products",
            json={
                "name": "Borrowed Picture",
                "price": "900",
                "image": "homepage/admin-banner.png",
                "images": ["/uploads/homepage/admin-banner.png"],
            },
            headers=vendor,
        )
        assert created.status_code == 201

        deleted = client.delete(
            f"/api/v1/vendor/products/{created.json()['data']['id']}", headers=vendor
        )
        assert deleted.status_code == 200
        assert deleted.json()["data"]["removed_files"] == []
        assert banner.read_bytes() == b"banner"

    def test_pointing_an_update_at_a_file_does_not_claim_it(
        self, client: TestClient, catalog, upload_storage, admin_headers
    ):
        banner = upload_storage.root / "homepage" / "admin-banner.png"
        banner.parent.mkdir(parents=True, exist_ok=True)
        banner.write_bytes(b"banner")

        product_url = f"/api/v1/admin/products/{catalog['mug_id']}"
        client.put(product_url, json={"image": "homepage/admin-banner.png"}, headers=admin_headers)

        deleted = client.delete(product_url, headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json()["data"]["removed_files"] == []
        assert banner.is_file()
