"""
Pytest configuration and fixtures for Marketplace Service tests.
"""

import asyncio
import os
import tempfile
from decimal import Decimal
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

# Set up test environment before the settings singleton is created
_TEST_ROOT = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/unused.db"
os.environ["UPLOADS_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "marketplace-test-secret"
os.environ.pop("SENDGRID_API_KEY", None)

from marketplace_service.app.core import database  # noqa: E402
from marketplace_service.app.core.database import MarketplaceDatabaseManager  # noqa: E402
from marketplace_service.app.core.settings import get_settings  # noqa: E402
from marketplace_service.app.main import app  # noqa: E402
from marketplace_service.app.models.catalog import Category, Product  # noqa: E402
from marketplace_service.app.models.user import Vendor, VendorStatus  # noqa: E402
from marketplace_service.app.services import storage_service  # noqa: E402
from marketplace_service.app.services.storage_service import UploadStorage  # noqa: E402
from marketplace_service.app.utils.jwt_handler import JWTHandler  # noqa: E402


def run_async(coro):
    """Run a coroutine from a synchronous test."""
    return asyncio.run(coro)


@pytest.fixture
def test_settings():
    return get_settings()


@pytest.fixture
def test_database_manager(tmp_path, monkeypatch) -> MarketplaceDatabaseManager:
    """A fresh SQLite database per test, swapped in for the app's manager."""
    manager = MarketplaceDatabaseManager(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}"
    )
    monkeypatch.setattr(database, "database_manager", manager)
    return manager


@pytest.fixture
def upload_storage(tmp_path, monkeypatch) -> UploadStorage:
    storage = UploadStorage(str(tmp_path / "uploads"))
    storage.ensure_directories()
    monkeypatch.setattr(storage_service, "_storage", storage)
    return storage


@pytest.fixture
def client(test_database_manager, upload_storage):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def jwt_handler(test_settings) -> JWTHandler:
    return JWTHandler(test_settings.SECRET_KEY, test_settings.ALGORITHM)


@pytest.fixture
def auth_headers(jwt_handler):
    """Build an Authorization header for any role."""

    def _headers(subject_id: int, email: str, role: str, name: str = "") -> Dict[str, str]:
        token = jwt_handler.create_access_token(subject_id, email, role, name=name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers(1, "admin@example.com", "admin", name="Admin")


@pytest.fixture
def customer_headers(auth_headers):
    return auth_headers(7, "ayesha@example.com", "customer", name="Ayesha Khan")


async def _seed_catalog(manager: MarketplaceDatabaseManager) -> Dict[str, Any]:
    await manager.create_tables()
    async with manager.async_session_maker() as session:
        vendor = Vendor(
            business_name="Lahore Crafts",
            slug="lahore-crafts",
            email="vendor@example.com",
            password_hash="not-a-real-hash",
            status=VendorStatus.APPROVED,
        )
        category = Category(name="Home Decor", slug="home-decor")
        session.add_all([vendor, category])
        await session.flush()

        mug = Product(
            name="Ceramic Mug",
            slug="ceramic-mug",
            description="Hand glazed ceramic mug.",
            price=Decimal("500.00"),
            shipping_cost=Decimal("150.00"),
            stock=10,
            category_id=category.id,
        )
        lamp = Product(
            name="Brass Table Lamp",
            slug="brass-table-lamp",
            description="Hand beaten brass lamp with a linen shade.",
            price=Decimal("2000.00"),
            shipping_cost=Decimal("250.00"),
            stock=5,
            category_id=category.id,
            vendor_id=vendor.id,
        )
        session.add_all([mug, lamp])
        await session.commit()
        return {
            "vendor_id": vendor.id,
            "category_id": category.id,
            "mug_id": mug.id,
            "lamp_id": lamp.id,
        }


@pytest.fixture
def catalog(test_database_manager) -> Dict[str, Any]:
    """One approved vendor, a marketplace product and a vendor product."""
    return run_async(_seed_catalog(test_database_manager))


@pytest.fixture
def checkout_payload():
    def _payload(*items) -> Dict[str, Any]:
        return {
            "customer_name": "Ayesha Khan",
            "customer_email": "ayesha@example.com",
            "customer_phone": "03001234567",
            "shipping_address": "12 Mall Road",
            "city": "Lahore",
            "payment_method": "cod",
            "items": [
                {"product_id": product_id, "quantity": quantity}
                for product_id, quantity in items
            ],
        }

    return _payload
