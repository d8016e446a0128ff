"""Contact-us messages and newsletter subscriptions"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.base import utcnow
from ..models.contact import (
    ContactMessage,
    ContactStatus,
    ContactType,
    NewsletterSubscription,
)
from ..repository.contact_repository import ContactRepository, NewsletterRepository
from ..schemas.contact import ContactCreate, ContactUpdate, NewsletterSubscribe
from ..utils.logging import setup_marketplace_logging as setup_logging
from .notification_service import NotificationService, get_notification_service

settings = get_settings()
logger = setup_logging("contact_service", log_level=settings.LOG_LEVEL)


class ContactService:
    def __init__(
        self,
        session: AsyncSession,
        notification_service: Optional[NotificationService] = None,
    ):
        self.repository = ContactRepository(session)
        self.notification_service = notification_service or get_notification_service()

    async def submit(
        self,
        data: ContactCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ContactMessage:
        message = await self.repository.create(
            name=data.name,
            email=data.email.lower(),
            phone=data.phone.strip() if data.phone else None,
            subject=data.subject,
            message=data.message,
            inquiry_type=data.inquiry_type,
            priority="high" if data.inquiry_type in ContactType.URGENT else "medium",
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
        )
        logger.info(
            "Contact message received",
            extra={
                "contact_id": message.id,
                "inquiry_type": message.inquiry_type,
                "priority": message.priority,
            },
        )
        return message

    async def get(self, message_id: int) -> ContactMessage:
        message = await self.repository.get(message_id)
        if not message:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found"
            )
        return message

    async def list_messages(self, **filters) -> Tuple[List[ContactMessage], int]:
        return await self.repository.list_messages(**filters)

    async def stats(self) -> Dict[str, int]:
        counts = await self.repository.status_counts()
        return {
            "total": sum(counts.values()),
            **{state: counts.get(state, 0) for state in ContactStatus.ALL},
        }

    async def update(
        self, message_id: int, data: ContactUpdate, admin_id: Optional[int] = None
    ) -> Tuple[ContactMessage, bool]:
        """
        Apply an admin update; returns the message and whether a reply was emailed.

        Resolving stamps who resolved it and when. Assigning a new message
        moves it to in_progress.
        """
        message = await self.get(message_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "status" in changes:
            message.status = changes["status"]
            if message.status == ContactStatus.RESOLVED:
                message.resolved_at = utcnow()
                message.resolved_by = admin_id
        if "priority" in changes:
            message.priority = changes["priority"]
        if "admin_notes" in changes:
            message.admin_notes = changes["admin_notes"]
        if "assigned_to" in changes:
            message.assigned_to = changes["assigned_to"]
            if message.status == ContactStatus.NEW:
                message.status = ContactStatus.IN_PROGRESS
        if "admin_response" in changes:
            message.admin_response = changes["admin_response"]

        message = await self.repository.save(message)
        replied = False
        if "admin_response" in changes:
            replied = await self.notification_service.notify_contact_reply(message)

        logger.info(
            "Contact message updated",
            extra={
                "contact_id": message.id,
                "fields": sorted(changes),
                "status": message.status,
                "replied": replied,
                "admin_id": admin_id,
            },
        )
        return message, replied

    async def delete(self, message_id: int) -> None:
        message = await self.get(message_id)
        await self.repository.delete(message)
        logger.info("Contact message deleted", extra={"contact_id": message_id})


class NewsletterService:
    def __init__(self, session: AsyncSession):
        self.repository = NewsletterRepository(session)

    async def subscribe(
        self,
        data: NewsletterSubscribe,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> NewsletterSubscription:
        """Subscribe an address; a lapsed subscription is reactivated."""
        email = data.email.lower().strip()
        subscription = await self.repository.get_by_email(email)
        if subscription and subscription.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This email is already subscribed to our newsletter",
            )

        if subscription is None:
            subscription = await self.repository.add(
                NewsletterSubscription(
                    email=email,
                    source=data.source,
                    ip_address=ip_address,
                    user_agent=user_agent[:500] if user_agent else None,
                )
            )
        else:
            subscription.is_active = True
            subscription.source = data.source
            subscription.subscribed_at = utcnow()
            subscription.unsubscribed_at = None
            subscription = await self.repository.save(subscription)

        logger.info(
            "Newsletter subscription added",
            extra={"subscription_id": subscription.id, "source": subscription.source},
        )
        return subscription

    async def unsubscribe(self, email: str) -> NewsletterSubscription:
        subscription = await self.repository.get_by_email(email.strip())
        if not subscription or not subscription.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Email not found in newsletter subscriptions",
            )
        subscription.is_active = False
        subscription.unsubscribed_at = utcnow()
        subscription = await self.repository.save(subscription)
        logger.info(
            "Newsletter subscription cancelled", extra={"subscription_id": subscription.id}
        )
        return subscription

    async def list_subscriptions(self, **filters) -> Tuple[List[NewsletterSubscription], int]:
        return await self.repository.list_subscriptions(**filters)

    async def stats(self) -> Dict[str, Any]:
        return await self.repository.counts()

    async def delete(self, subscription_id: int) -> None:
        subscription = await self.repository.get(subscription_id)
        if not subscription:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Newsletter subscription not found",
            )
        await self.repository.delete(subscription)
