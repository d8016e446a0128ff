"""Customer inquiry repository"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.inquiry import CustomerInquiry

INQUIRY_SORT_FIELDS = {
    "created_at": CustomerInquiry.created_at,
    "last_activity_at": CustomerInquiry.last_activity_at,
    "priority": CustomerInquiry.priority,
    "status": CustomerInquiry.status,
}


class InquiryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, inquiry: CustomerInquiry) -> None:
        self.db.add(inquiry)

    async def commit(self) -> None:
        await self.db.commit()

    async def refresh(self, inquiry: CustomerInquiry) -> CustomerInquiry:
        await self.db.refresh(inquiry)
        return inquiry

    async def count_all(self) -> int:
        return await self.db.scalar(select(func.count(CustomerInquiry.id))) or 0

    async def get_by_inquiry_id(self, inquiry_id: str) -> Optional[CustomerInquiry]:
        result = await self.db.execute(
            select(CustomerInquiry).where(CustomerInquiry.inquiry_id == inquiry_id)
        )
        return result.scalar_one_or_none()

    async def list_inquiries(
        self,
        vendor_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        customer_email: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[CustomerInquiry], int]:
        query = select(CustomerInquiry)
        if vendor_id is not None:
            query = query.where(CustomerInquiry.vendor_id == vendor_id)
        if customer_id is not None and customer_email:
            query = query.where(
                or_(
                    CustomerInquiry.customer_id == customer_id,
                    func.lower(CustomerInquiry.customer_email) == customer_email.lower(),
                )
            )
        if status:
            query = query.where(CustomerInquiry.status == status)
        if priority:
            query = query.where(CustomerInquiry.priority == priority)
        if category:
            query = query.where(CustomerInquiry.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    CustomerInquiry.subject.ilike(pattern),
                    CustomerInquiry.customer_name.ilike(pattern),
                    CustomerInquiry.customer_email.ilike(pattern),
                    CustomerInquiry.inquiry_id.ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        column = INQUIRY_SORT_FIELDS.get(sort_by, CustomerInquiry.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        result = await self.db.execute(
            query.order_by(ordering, CustomerInquiry.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def list_for_vendor_by_ids(
        self, vendor_id: int, inquiry_ids: List[str]
    ) -> List[CustomerInquiry]:
        result = await self.db.execute(
            select(CustomerInquiry).where(
                CustomerInquiry.vendor_id == vendor_id,
                CustomerInquiry.inquiry_id.in_(inquiry_ids),
            )
        )
        return list(result.scalars().all())

    async def list_for_vendor_since(
        self, vendor_id: int, since: Optional[datetime] = None
    ) -> List[CustomerInquiry]:
        query = select(CustomerInquiry).where(CustomerInquiry.vendor_id == vendor_id)
        if since is not None:
            query = query.where(CustomerInquiry.created_at >= since)
        result = await self.db.execute(query.order_by(CustomerInquiry.created_at))
        return list(result.scalars().all())

    async def status_counts(self, vendor_id: int) -> Dict[str, Any]:
        result = await self.db.execute(
            select(CustomerInquiry.status, func.count(CustomerInquiry.id))
            .where(CustomerInquiry.vendor_id == vendor_id)
            .group_by(CustomerInquiry.status)
        )
        return {status: count for status, count in result.all()}
