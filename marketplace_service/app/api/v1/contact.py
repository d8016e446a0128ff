"""Contact-us form and newsletter sign-up, with their admin views."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, status

from ...schemas.contact import (
    CONTACT_STATUSES,
    CONTACT_TYPES,
    PRIORITIES,
    ContactCreate,
    ContactResponse,
    ContactUpdate,
    NewsletterResponse,
    NewsletterSubscribe,
    NewsletterUnsubscribe,
)
from ...services.contact_service import ContactService, NewsletterService
from ...utils.responses import build_pagination, success_response
from ..deps import (
    AdminUserDep,
    ClientDetailsDep,
    ContactServiceDep,
    NewsletterServiceDep,
    subject_id,
)

router = APIRouter()


def contact_payload(message) -> Dict[str, Any]:
    return ContactResponse.model_validate(message).model_dump()


def subscription_payload(subscription) -> Dict[str, Any]:
    return NewsletterResponse.model_validate(subscription).model_dump()


@router.post("/contact", status_code=status.HTTP_201_CREATED)
async def submit_contact(
    data: ContactCreate,
    client: Dict[str, Optional[str]] = ClientDetailsDep,
    service: ContactService = ContactServiceDep,
) -> Dict[str, Any]:
    message = await service.submit(data, **client)
    return success_response(
        {"id": message.id, "submitted_at": message.created_at},
        "Thank you! Your message has been sent. We will respond within 24 hours.",
    )


@router.post("/newsletter/subscribe", status_code=status.HTTP_201_CREATED)
async def subscribe(
    data: NewsletterSubscribe,
    client: Dict[str, Optional[str]] = ClientDetailsDep,
    service: NewsletterService = NewsletterServiceDep,
) -> Dict[str, Any]:
    subscription = await service.subscribe(data, **client)
    return success_response(
        {"email": subscription.email, "subscribed_at": subscription.subscribed_at},
        "Successfully subscribed to newsletter",
    )


@router.post("/newsletter/unsubscribe")
async def unsubscribe(
    data: NewsletterUnsubscribe,
    service: NewsletterService = NewsletterServiceDep,
) -> Dict[str, Any]:
    await service.unsubscribe(data.email)
    return success_response(message="Successfully unsubscribed from newsletter")


# Admin


@router.get("/admin/contacts")
async def list_contacts(
    status_filter: Optional[str] = Query(None, alias="status", pattern=CONTACT_STATUSES),
    inquiry_type: Optional[str] = Query(None, pattern=CONTACT_TYPES),
    priority: Optional[str] = Query(None, pattern=PRIORITIES),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: ContactService = ContactServiceDep,
) -> Dict[str, Any]:
    messages, total = await service.list_messages(
        status=status_filter,
        inquiry_type=inquiry_type,
        priority=priority,
        search=search,
        page=page,
        limit=limit,
    )
    return success_response(
        [contact_payload(m) for m in messages],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/admin/contacts/stats")
async def contact_stats(
    admin: Dict[str, Any] = AdminUserDep,
    service: ContactService = ContactServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.stats())


@router.get("/admin/contacts/{message_id}")
async def get_contact(
    message_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: ContactService = ContactServiceDep,
) -> Dict[str, Any]:
    return success_response(contact_payload(await service.get(message_id)))


@router.patch("/admin/contacts/{message_id}")
async def update_contact(
    message_id: int,
    data: ContactUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: ContactService = ContactServiceDep,
) -> Dict[str, Any]:
    message, replied = await service.update(message_id, data, admin_id=subject_id(admin))
    return success_response(
        contact_payload(message),
        "Contact updated and response email sent" if replied else "Contact updated",
    )


@router.delete("/admin/contacts/{message_id}")
async def delete_contact(
    message_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: ContactService = ContactServiceDep,
) -> Dict[str, Any]:
    await service.delete(message_id)
    return success_response(message="Contact deleted")


@router.get("/admin/newsletter/subscriptions")
async def list_subscriptions(
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: NewsletterService = NewsletterServiceDep,
) -> Dict[str, Any]:
    subscriptions, total = await service.list_subscriptions(
        is_active=is_active, search=search, page=page, limit=limit
    )
    return success_response(
        [subscription_payload(s) for s in subscriptions],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/admin/newsletter/stats")
async def newsletter_stats(
    admin: Dict[str, Any] = AdminUserDep,
    service: NewsletterService = NewsletterServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.stats())


@router.delete("/admin/newsletter/subscriptions/{subscription_id}")
async def delete_subscription(
    subscription_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: NewsletterService = NewsletterServiceDep,
) -> Dict[str, Any]:
    await service.delete(subscription_id)
    return success_response(message="Newsletter subscription deleted")
