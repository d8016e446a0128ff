"""Repository for simple admin-managed content tables"""

from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import MarketplaceBaseModel

ContentModel = TypeVar("ContentModel", bound=MarketplaceBaseModel)


class ContentRepository(Generic[ContentModel]):
    """CRUD for banners, cards, homepage categories, payment accounts and visit places."""

    def __init__(self, db: AsyncSession, model: Type[ContentModel]):
        self.db = db
        self.model = model

    async def create(self, **fields) -> ContentModel:
        record = self.model(**fields)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def get(self, record_id: int) -> Optional[ContentModel]:
        result = await self.db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def find_one(self, **filters) -> Optional[ContentModel]:
        result = await self.db.execute(select(self.model).filter_by(**filters))
        return result.scalars().first()

    async def list_all(self, active_only: bool = False) -> List[ContentModel]:
        query = select(self.model)
        if active_only and hasattr(self.model, "is_active"):
            query = query.where(self.model.is_active.is_(True))
        if hasattr(self.model, "sort_order"):
            query = query.order_by(self.model.sort_order.asc(), self.model.id.asc())
        else:
            query = query.order_by(self.model.created_at.desc(), self.model.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update(self, record: ContentModel, **fields) -> ContentModel:
        for field, value in fields.items():
            setattr(record, field, value)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete(self, record: ContentModel) -> None:
        await self.db.delete(record)
        await self.db.commit()
