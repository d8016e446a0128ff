"""
Authentication for the Marketplace Service.
"""

from .auth_middleware import (
    AuthenticatedUser,
    MarketplaceAuthMiddleware,
    admin_user,
    authenticated_user,
    customer_user,
    customer_or_guest,
    setup_marketplace_auth_middleware,
    vendor_user,
)

__all__ = [
    "AuthenticatedUser",
    "MarketplaceAuthMiddleware",
    "admin_user",
    "authenticated_user",
    "customer_user",
    "customer_or_guest",
    "setup_marketplace_auth_middleware",
    "vendor_user",
]
