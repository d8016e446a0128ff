"""
Error handling for the Marketplace Service.
"""

from .error_handler import MarketplaceErrorHandler, setup_marketplace_error_handling

__all__ = ["MarketplaceErrorHandler", "setup_marketplace_error_handling"]
