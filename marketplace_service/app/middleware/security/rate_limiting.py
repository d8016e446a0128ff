"""
Redis sliding-window rate limiting for the Marketplace Service.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, cast

import redis.asyncio as aioredis
from fastapi import FastAPI, Request, Response, status
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.settings import MarketplaceSettings, get_settings
from ...utils.logging import setup_marketplace_logging
from ..error.error_handler import MarketplaceErrorHandler

settings = get_settings()
logger = setup_marketplace_logging("marketplace_rate_limiting", log_level=settings.LOG_LEVEL)

EXEMPT_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json", "/uploads")


def limit_type_for(method: str, path: str) -> str:
    """Which bucket a request counts against."""
    if path.startswith("/api/v1/auth") or path.startswith("/api/v1/vendors/auth"):
        return "auth"
    if method == "POST" and (
        path.startswith("/api/v1/orders") or path == "/api/v1/cart/checkout"
    ):
        return "orders"
    if path.startswith("/api/v1/inquiries") and method in ("POST", "PUT", "PATCH"):
        return "inquiries"
    # Public forms share the inquiry budget
    if path.startswith(("/api/v1/contact", "/api/v1/newsletter")) and method == "POST":
        return "inquiries"
    return "general"


class RateLimiter:
    """Redis-based rate limiter with sliding window"""

    def __init__(self, settings: MarketplaceSettings):
        self.settings = settings
        self.redis_client: Optional[aioredis.Redis] = None
        self._initialized = False
        self.limits: Dict[str, Tuple[int, int]] = {
            "general": (settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW),
            "auth": (settings.RATE_LIMIT_AUTH_REQUESTS, 900),
            "orders": (settings.RATE_LIMIT_ORDER_REQUESTS, 3600),
            "inquiries": (settings.RATE_LIMIT_INQUIRY_REQUESTS, 3600),
        }

    async def initialize(self) -> None:
        """Connect once; an unreachable Redis leaves the limiter disabled."""
        self._initialized = True
        try:
            client = aioredis.from_url(
                self.settings.REDIS_URL, encoding="utf-8", decode_responses=True
            )
            await client.ping()
            self.redis_client = client
            logger.info("Rate limiter Redis connection established")
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiting disabled, Redis unavailable: {e}")
            self.redis_client = None

    async def close(self) -> None:
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
        self._initialized = False

    async def is_allowed(
        self, key: str, limit: int, window: int, identifier: str
    ) -> Tuple[bool, Dict[str, Any]]:
        """
        Check if request is allowed under rate limit
        Returns (allowed, info_dict)
        """
        if not self._initialized:
            await self.initialize()
        if not self.redis_client:
            return True, {}

        try:
            now = time.time()
            member = f"{now}:{identifier}"
            pipe = self.redis_client.pipeline()
            pipe.zremrangebyscore(key, 0, now - window)
            pipe.zcard(key)
            pipe.zadd(key, {member: now})
            pipe.expire(key, window + 10)
            results = cast(list, await pipe.execute())
            current_count = int(results[1])

            if current_count >= limit:
                await self.redis_client.zrem(key, member)
                oldest = await self.redis_client.zrange(key, 0, 0, withscores=True)
                reset_time = int(oldest[0][1]) + window if oldest else int(now) + window
                return False, {"limit": limit, "remaining": 0, "reset_time": reset_time}

            return True, {
                "limit": limit,
                "remaining": limit - current_count - 1,
                "reset_time": int(now) + window,
            }

        except (RedisError, OSError) as e:
            logger.error(f"Rate limiter error: {e}")
            return True, {}

    async def check(self, limit_type: str, client_id: str) -> Tuple[bool, Dict[str, Any]]:
        limit, window = self.limits[limit_type]
        return await self.is_allowed(
            key=f"rate_limit:{limit_type}:{client_id}",
            limit=limit,
            window=window,
            identifier=client_id,
        )


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware using Redis"""

    def __init__(self, app: Any, rate_limiter: RateLimiter):
        super().__init__(app)
        self.rate_limiter = rate_limiter

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        if (
            not self.rate_limiter.settings.RATE_LIMIT_ENABLED
            or path.startswith(EXEMPT_PREFIXES)
        ):
            return await call_next(request)

        limit_type = limit_type_for(request.method, path)
        user_id = getattr(request.state, "user_id", None)
        client_id = f"user:{user_id}" if user_id else f"ip:{self._get_client_ip(request)}"

        allowed, info = await self.rate_limiter.check(limit_type, client_id)
        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "client_id": client_id,
                    "limit_type": limit_type,
                    "limit": info.get("limit"),
                    "path": path,
                },
            )
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                error_type="rate_limit_exceeded",
                message="Too many requests, please try again later",
                details={"limit_type": limit_type},
                headers={
                    "X-RateLimit-Limit": str(info["limit"]),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(info["reset_time"]),
                    "Retry-After": str(max(0, info["reset_time"] - int(time.time()))),
                },
            )

        response = await call_next(request)
        if info:
            response.headers["X-RateLimit-Limit"] = str(info["limit"])
            response.headers["X-RateLimit-Remaining"] = str(info["remaining"])
            response.headers["X-RateLimit-Reset"] = str(info["reset_time"])
        return response

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"


def setup_marketplace_rate_limiting(
    app: FastAPI, rate_limiter: Optional[RateLimiter] = None
) -> RateLimiter:
    limiter = rate_limiter or RateLimiter(get_settings())
    app.add_middleware(RateLimitingMiddleware, rate_limiter=limiter)
    logger.info(
        "Marketplace rate limiting configured",
        extra={
            "enabled": limiter.settings.RATE_LIMIT_ENABLED,
            "limits": {name: list(value) for name, value in limiter.limits.items()},
        },
    )
    return limiter
