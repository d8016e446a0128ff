"""Repositories for contact form messages and newsletter subscriptions"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.contact import ContactMessage, NewsletterSubscription


class ContactRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, **fields) -> ContactMessage:
        message = ContactMessage(**fields)
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def get(self, message_id: int) -> Optional[ContactMessage]:
        result = await self.db.execute(
            select(ContactMessage).where(ContactMessage.id == message_id)
        )
        return result.scalar_one_or_none()

    async def list_messages(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        inquiry_type: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[ContactMessage], int]:
        query = select(ContactMessage)
        if status:
            query = query.where(ContactMessage.status == status)
        if inquiry_type:
            query = query.where(ContactMessage.inquiry_type == inquiry_type)
        if priority:
            query = query.where(ContactMessage.priority == priority)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    ContactMessage.name.ilike(pattern),
                    ContactMessage.email.ilike(pattern),
                    ContactMessage.subject.ilike(pattern),
                    ContactMessage.message.ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def status_counts(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(ContactMessage.status, func.count()).group_by(ContactMessage.status)
        )
        return {status: count for status, count in result.all()}

    async def save(self, message: ContactMessage) -> ContactMessage:
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def delete(self, message: ContactMessage) -> None:
        await self.db.delete(message)
        await self.db.commit()


class NewsletterRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[NewsletterSubscription]:
        result = await self.db.execute(
            select(NewsletterSubscription).where(
                func.lower(NewsletterSubscription.email) == email.lower()
            )
        )
        return result.scalar_one_or_none()

    async def get(self, subscription_id: int) -> Optional[NewsletterSubscription]:
        result = await self.db.execute(
            select(NewsletterSubscription).where(NewsletterSubscription.id == subscription_id)
        )
        return result.scalar_one_or_none()

    async def add(self, subscription: NewsletterSubscription) -> NewsletterSubscription:
        self.db.add(subscription)
        return await self.save(subscription)

    async def list_subscriptions(
        self,
        page: int = 1,
        limit: int = 20,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[NewsletterSubscription], int]:
        query = select(NewsletterSubscription)
        if is_active is not None:
            query = query.where(NewsletterSubscription.is_active.is_(is_active))
        if search:
            query = query.where(NewsletterSubscription.email.ilike(f"%{search}%"))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(
                NewsletterSubscription.subscribed_at.desc(), NewsletterSubscription.id.desc()
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def counts(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(NewsletterSubscription.is_active, func.count()).group_by(
                NewsletterSubscription.is_active
            )
        )
        by_state = {bool(active): count for active, count in result.all()}
        return {
            "active": by_state.get(True, 0),
            "unsubscribed": by_state.get(False, 0),
            "total": sum(by_state.values()),
        }

    async def save(self, subscription: NewsletterSubscription) -> NewsletterSubscription:
        await self.db.commit()
        await self.db.refresh(subscription)
        return subscription

    async def delete(self, subscription: NewsletterSubscription) -> None:
        await self.db.delete(subscription)
        await self.db.commit()
