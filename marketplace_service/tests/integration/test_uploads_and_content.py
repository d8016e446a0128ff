"""
Integration tests for uploaded files: storing, serving and cleaning up.
"""

import io

from fastapi.testclient import TestClient
from PIL import Image


def png_bytes(size=(200, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 120, 40)).save(buffer, "PNG")
    return buffer.getvalue()


class TestVisitPlaces:
    def test_create_and_delete_removes_image(
        self, client: TestClient, upload_storage, admin_headers
    ):
        response = client.post(
            "/api/v1/admin/visit-places",
            data={"name": "Badshahi Mosque", "description": "Mughal era mosque in Lahore."},
            files={"image": ("mosque.png", png_bytes(), "image/png")},
            headers=admin_headers,
        )
        assert response.status_code == 201
        place = response.json()["data"]
        assert place["image"].startswith("visit-places/badshahi-mosque-")

        image_path = upload_storage.resolve(place["image"])
        assert image_path.is_file()
        assert image_path.with_suffix(".webp").is_file()

        listed = client.get("/api/v1/visit-places").json()["data"]
        assert [p["id"] for p in listed] == [place["id"]]

        deleted = client.delete(f"/api/v1/admin/visit-places/{place['id']}", headers=admin_headers)
        assert deleted.status_code == 200
        assert not image_path.exists()
        assert not image_path.with_suffix(".webp").exists()
        assert client.get("/api/v1/visit-places").json()["data"] == []

    def test_create_requires_image_type(self, client: TestClient, admin_headers):
        response = client.post(
            "/api/v1/admin/visit-places",
            data={"name": "Lahore Fort", "description": "A citadel."},
            files={"image": ("notes.txt", b"not an image", "text/plain")},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestProductImages:
    def test_deleting_product_removes_uploaded_images(
        self, client: TestClient, catalog, upload_storage, admin_headers
    ):
        product_url = f"/api/v1/admin/products/{catalog['mug_id']}"
        uploaded = client.post(
            f"{product_url}/images?watermark=false",
            files={"file": ("mug.png", png_bytes((400, 300)), "image/png")},
            headers=admin_headers,
        )
        assert uploaded.status_code == 200
        image = uploaded.json()["data"]["image"]
        assert image.startswith("products/home-decor-ceramic-mug-")

        image_path = upload_storage.resolve(image)
        assert image_path.is_file()

        deleted = client.delete(product_url, headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json()["data"]["removed_files"] == [image]
        assert not image_path.exists()
        assert not list(image_path.parent.glob(f"{image_path.stem}*"))

        assert client.get("/api/v1/products/ceramic-mug").status_code == 404


class TestServeUploads:
    def test_serves_stored_file_with_cache_headers(
        self, client: TestClient, upload_storage, test_settings
    ):
        target = upload_storage.root / "homepage" / "banner.png"
        target.write_bytes(png_bytes((20, 20)))

        response = client.get("/uploads/homepage/banner.png")
        assert response.status_code == 200
        assert response.content == target.read_bytes()
        assert response.headers["cache-control"] == (
            f"public, max-age={test_settings.STATIC_CACHE_MAX_AGE}"
        )

    def test_missing_file_falls_back_to_placeholder(self, client: TestClient, upload_storage):
        placeholder = upload_storage.root / "products" / "placeholder-image.jpg"
        Image.new("RGB", (10, 10)).save(placeholder, "JPEG")

        response = client.get("/uploads/products/gone.jpg")
        assert response.status_code == 200
        assert response.headers["x-placeholder-image"] == "true"
        assert response.content == placeholder.read_bytes()

    def test_missing_file_without_placeholder_is_404(self, client: TestClient, upload_storage):
        response = client.get("/uploads/products/gone.jpg")
        assert response.status_code == 404
        assert response.json()["success"] is False
