"""
Unit tests for request bucketing and the rate limiting middleware.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace_service.app.core.settings import get_settings
from marketplace_service.app.middleware.error import setup_marketplace_error_handling
from marketplace_service.app.middleware.security.rate_limiting import (
    RateLimiter,
    limit_type_for,
    setup_marketplace_rate_limiting,
)


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("POST", "/api/v1/auth/login", "auth"),
        ("POST", "/api/v1/vendors/auth/login", "auth"),
        ("POST", "/api/v1/orders", "orders"),
        ("GET", "/api/v1/orders", "general"),
        ("POST", "/api/v1/inquiries", "inquiries"),
        ("POST", "/api/v1/cart/checkout", "orders"),
        ("POST", "/api/v1/cart/items", "general"),
        ("POST", "/api/v1/contact", "inquiries"),
        ("POST", "/api/v1/newsletter/subscribe", "inquiries"),
        ("GET", "/api/v1/products", "general"),
    ],
)
def test_limit_type_for(method, path, expected):
    assert limit_type_for(method, path) == expected


async def test_unreachable_redis_allows_requests():
    client = MagicMock()
    client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
    limiter = RateLimiter(get_settings())

    with patch(
        "marketplace_service.app.middleware.security.rate_limiting.aioredis.from_url",
        return_value=client,
    ):
        allowed, info = await limiter.check("general", "ip:127.0.0.1")

    assert allowed is True
    assert info == {}
    assert limiter.redis_client is None


class StubLimiter(RateLimiter):
    """Allows the first `budget` requests."""

    def __init__(self, settings, budget: int):
        super().__init__(settings)
        self.budget = budget
        self.seen = []

    async def check(self, limit_type, client_id):
        self.seen.append((limit_type, client_id))
        used = len(self.seen)
        if used > self.budget:
            return False, {"limit": self.budget, "remaining": 0, "reset_time": 0}
        return True, {"limit": self.budget, "remaining": self.budget - used, "reset_time": 0}


@pytest.fixture
def limited_app():
    settings = get_settings().model_copy(update={"RATE_LIMIT_ENABLED": True})
    limiter = StubLimiter(settings, budget=1)
    app = FastAPI()
    setup_marketplace_error_handling(app)
    setup_marketplace_rate_limiting(app, rate_limiter=limiter)

    @app.get("/api/v1/products")
    async def products():
        return {"success": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app, limiter


def test_requests_over_the_limit_get_429(limited_app):
    app, limiter = limited_app
    client = TestClient(app)

    first = client.get("/api/v1/products", headers={"X-Forwarded-For": "10.0.0.5, 10.0.0.1"})
    second = client.get("/api/v1/products", headers={"X-Forwarded-For": "10.0.0.5"})

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "0"
    assert second.status_code == 429
    assert second.json()["error"]["type"] == "rate_limit_exceeded"
    assert "Retry-After" in second.headers
    assert limiter.seen == [("general", "ip:10.0.0.5"), ("general", "ip:10.0.0.5")]


def test_health_is_exempt(limited_app):
    app, limiter = limited_app
    client = TestClient(app)

    for _ in range(3):
        assert client.get("/health").status_code == 200
    assert limiter.seen == []
