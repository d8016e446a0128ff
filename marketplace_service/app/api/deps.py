"""
FastAPI dependency injection for the Marketplace Service

Provides database sessions, service instances, authentication and
correlation ID lookups for the routers.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db_session
from ..middleware.auth import (
    admin_user,
    authenticated_user,
    customer_or_guest,
    customer_user,
    vendor_user,
)
from ..services.auth_service import AuthService
from ..services.cart_service import CartService
from ..services.catalog_service import CategoryService, ProductService
from ..services.commission_service import CommissionService
from ..services.contact_service import ContactService, NewsletterService
from ..services.content_service import (
    HomepageService,
    PaymentAccountService,
    VisitPlaceService,
)
from ..services.inquiry_service import InquiryService
from ..services.notification_service import NotificationService, get_notification_service
from ..services.order_service import OrderService
from ..services.seo_service import SeoService
from ..services.storage_service import UploadStorage, get_upload_storage
from ..services.vendor_order_service import OrderForwardingService, VendorOrderService

# =====================================================
# DATABASE DEPENDENCIES
# =====================================================


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide async database session"""
    async for session in get_db_session():
        yield session


# =====================================================
# SERVICE DEPENDENCIES
# =====================================================


def get_storage() -> UploadStorage:
    return get_upload_storage()


def get_notifications() -> NotificationService:
    return get_notification_service()


def get_auth_service(session: AsyncSession = Depends(get_async_session)) -> AuthService:
    return AuthService(session)


def get_category_service(
    session: AsyncSession = Depends(get_async_session),
    storage: UploadStorage = Depends(get_storage),
) -> CategoryService:
    return CategoryService(session, storage)


def get_product_service(
    session: AsyncSession = Depends(get_async_session),
    storage: UploadStorage = Depends(get_storage),
) -> ProductService:
    return ProductService(session, storage)


def get_order_service(
    session: AsyncSession = Depends(get_async_session),
    notifications: NotificationService = Depends(get_notifications),
) -> OrderService:
    """Provide OrderService with database and email notifications"""
    return OrderService(session, notifications)


def get_forwarding_service(
    session: AsyncSession = Depends(get_async_session),
    notifications: NotificationService = Depends(get_notifications),
) -> OrderForwardingService:
    return OrderForwardingService(session, notifications)


def get_vendor_order_service(
    session: AsyncSession = Depends(get_async_session),
    notifications: NotificationService = Depends(get_notifications),
) -> VendorOrderService:
    return VendorOrderService(session, notifications)


def get_cart_service(
    session: AsyncSession = Depends(get_async_session),
    notifications: NotificationService = Depends(get_notifications),
) -> CartService:
    return CartService(session, notifications)


def get_commission_service(
    session: AsyncSession = Depends(get_async_session),
) -> CommissionService:
    return CommissionService(session)


def get_inquiry_service(
    session: AsyncSession = Depends(get_async_session),
    notifications: NotificationService = Depends(get_notifications),
) -> InquiryService:
    return InquiryService(session, notifications)


def get_contact_service(
    session: AsyncSession = Depends(get_async_session),
    notifications: NotificationService = Depends(get_notifications),
) -> ContactService:
    return ContactService(session, notifications)


def get_newsletter_service(
    session: AsyncSession = Depends(get_async_session),
) -> NewsletterService:
    return NewsletterService(session)


def get_homepage_service(
    session: AsyncSession = Depends(get_async_session),
    storage: UploadStorage = Depends(get_storage),
) -> HomepageService:
    return HomepageService(session, storage)


def get_payment_account_service(
    session: AsyncSession = Depends(get_async_session),
) -> PaymentAccountService:
    return PaymentAccountService(session)


def get_visit_place_service(
    session: AsyncSession = Depends(get_async_session),
    storage: UploadStorage = Depends(get_storage),
) -> VisitPlaceService:
    return VisitPlaceService(session, storage)


def get_seo_service(
    session: AsyncSession = Depends(get_async_session),
    storage: UploadStorage = Depends(get_storage),
) -> SeoService:
    return SeoService(session, storage)


# =====================================================
# AUTHENTICATION & REQUEST CONTEXT DEPENDENCIES
# =====================================================


def get_correlation_id(request: Request) -> Optional[str]:
    """Correlation ID from the request headers, or the one the middleware minted"""
    return request.headers.get("X-Correlation-ID") or getattr(
        request.state, "correlation_id", None
    )


def subject_id(current_user: Dict[str, Any]) -> int:
    """Numeric id of the authenticated user or vendor."""
    return int(current_user["user_id"])


def client_details(request: Request) -> Dict[str, Optional[str]]:
    """Caller address and user agent, stored with public form submissions"""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


# =====================================================
# COMMON DEPENDENCY ALIASES
# =====================================================

# Core dependencies
CorrelationIdDep = Depends(get_correlation_id)
ClientDetailsDep = Depends(client_details)
DatabaseDep = Depends(get_async_session)
StorageDep = Depends(get_storage)

# Authentication dependencies (identity resolved by the auth middleware)
CurrentUserDep = Depends(authenticated_user)
AdminUserDep = Depends(admin_user)
VendorUserDep = Depends(vendor_user)
CustomerUserDep = Depends(customer_user)
OptionalUserDep = Depends(customer_or_guest)

# Service dependencies aliases
AuthServiceDep = Depends(get_auth_service)
CategoryServiceDep = Depends(get_category_service)
ProductServiceDep = Depends(get_product_service)
OrderServiceDep = Depends(get_order_service)
ForwardingServiceDep = Depends(get_forwarding_service)
VendorOrderServiceDep = Depends(get_vendor_order_service)
CartServiceDep = Depends(get_cart_service)
CommissionServiceDep = Depends(get_commission_service)
InquiryServiceDep = Depends(get_inquiry_service)
ContactServiceDep = Depends(get_contact_service)
NewsletterServiceDep = Depends(get_newsletter_service)
HomepageServiceDep = Depends(get_homepage_service)
PaymentAccountServiceDep = Depends(get_payment_account_service)
VisitPlaceServiceDep = Depends(get_visit_place_service)
SeoServiceDep = Depends(get_seo_service)
