import io

import pytest
from fastapi import HTTPException, UploadFile
from PIL import Image
from starlette.datastructures import Headers

from marketplace_service.app.services.storage_service import UploadStorage


def upload(filename: str, content: bytes, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def jpeg_bytes(size=(640, 480)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (240, 200, 90)).save(buffer, "JPEG")
    return buffer.getvalue()


@pytest.fixture
def storage(tmp_path) -> UploadStorage:
    storage = UploadStorage(str(tmp_path / "uploads"))
    storage.ensure_directories()
    return storage


class TestResolve:
    def test_resolves_inside_root(self, storage):
        assert storage.resolve("products/a.jpg") == storage.root / "products" / "a.jpg"

    def test_rejects_traversal(self, storage):
        assert storage.resolve("../secrets.txt") is None
        assert storage.resolve("products/../../etc/passwd") is None

    def test_relative_from_url(self, storage):
        assert storage.relative_from_url("/uploads/products/a.jpg") == "products/a.jpg"
        assert storage.relative_from_url("products/a.jpg") == "products/a.jpg"


class TestSaveAndDelete:
    async def test_save_writes_seo_named_file_and_variants(self, storage):
        stored = await storage.save_image(
            upload("IMG_0042.JPG", jpeg_bytes(), "image/jpeg"),
            "products",
            "Brass Table Lamp",
            category="Lighting",
        )

        assert stored["path"].startswith("products/lighting-brass-table-lamp-")
        assert stored["path"].endswith(".jpg")
        assert stored["variants"] == [300, 600]
        path = storage.resolve(stored["path"])
        assert path.is_file()
        assert path.with_suffix(".webp").is_file()

    async def test_delete_removes_generated_files(self, storage):
        stored = await storage.save_image(
            upload("lamp.jpg", jpeg_bytes(), "image/jpeg"), "products", "Lamp"
        )
        path = storage.resolve(stored["path"])
        assert len(list(path.parent.glob(f"{path.stem}*"))) > 1

        assert storage.delete(f"/uploads/{stored['path']}") is True
        assert list(path.parent.glob(f"{path.stem}*")) == []

    async def test_receipts_are_not_optimised(self, storage):
        stored = await storage.save_image(
            upload("receipt.jpg", jpeg_bytes(), "image/jpeg"),
            "receipts",
            "ORD-123",
            optimize=False,
        )
        path = storage.resolve(stored["path"])
        assert not path.with_suffix(".webp").exists()
        assert "variants" not in stored

    async def test_rejects_unknown_kind(self, storage):
        with pytest.raises(HTTPException) as exc_info:
            await storage.save_image(upload("a.jpg", jpeg_bytes(), "image/jpeg"), "avatars", "A")
        assert exc_info.value.status_code == 400

    async def test_rejects_non_image(self, storage):
        with pytest.raises(HTTPException) as exc_info:
            await storage.save_image(
                upload("a.pdf", b"%PDF-1.4", "application/pdf"), "products", "A"
            )
        assert exc_info.value.status_code == 400

    async def test_rejects_empty_file(self, storage):
        with pytest.raises(HTTPException) as exc_info:
            await storage.save_image(upload("a.jpg", b"", "image/jpeg"), "products", "A")
        assert exc_info.value.detail == "Uploaded file is empty"

    def test_delete_missing_file(self, storage):
        assert storage.delete("products/nothing-here.jpg") is False
        assert storage.delete(None) is False
        assert storage.delete_many(["products/x.jpg", None, ""]) == []
