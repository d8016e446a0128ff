from .base import MarketplaceBase, MarketplaceBaseModel
from .cart import Cart, CartItem
from .catalog import Category, Product
from .commission import CommissionTransaction, MonthlyCommission
from .contact import ContactMessage, NewsletterSubscription
from .content import (
    HomepageBanner,
    HomepageCard,
    HomepageCategory,
    PaymentAccount,
    VisitPlace,
)
from .inquiry import CustomerInquiry, InquiryMessage, InquiryNote
from .order import Order, OrderItem
from .user import User, Vendor
from .vendor_order import VendorOrder

__all__ = [
    "MarketplaceBase",
    "MarketplaceBaseModel",
    "Cart",
    "CartItem",
    "Category",
    "Product",
    "CommissionTransaction",
    "MonthlyCommission",
    "ContactMessage",
    "NewsletterSubscription",
    "HomepageBanner",
    "HomepageCard",
    "HomepageCategory",
    "PaymentAccount",
    "VisitPlace",
    "CustomerInquiry",
    "InquiryMessage",
    "InquiryNote",
    "Order",
    "OrderItem",
    "User",
    "Vendor",
    "VendorOrder",
]
