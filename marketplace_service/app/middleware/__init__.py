"""
Marketplace Service middleware package.
"""

from .auth import setup_marketplace_auth_middleware
from .error import setup_marketplace_error_handling
from .security import CorrelationIdMiddleware, setup_marketplace_rate_limiting

__all__ = [
    "CorrelationIdMiddleware",
    "setup_marketplace_auth_middleware",
    "setup_marketplace_error_handling",
    "setup_marketplace_rate_limiting",
]
