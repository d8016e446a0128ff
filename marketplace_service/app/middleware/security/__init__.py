"""
Security middleware for the Marketplace Service.
"""

from .correlation import CORRELATION_HEADER, CorrelationIdMiddleware
from .rate_limiting import (
    RateLimiter,
    RateLimitingMiddleware,
    limit_type_for,
    setup_marketplace_rate_limiting,
)

__all__ = [
    "CORRELATION_HEADER",
    "CorrelationIdMiddleware",
    "RateLimiter",
    "RateLimitingMiddleware",
    "limit_type_for",
    "setup_marketplace_rate_limiting",
]
