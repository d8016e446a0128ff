"""Order and vendor order repositories"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.order import Order, OrderItem
from ..models.vendor_order import VendorOrder


class OrderRepository:
    """Repository for customer orders and their line items"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, order: Order) -> None:
        self.db.add(order)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    async def refresh(self, order: Order) -> Order:
        await self.db.refresh(order)
        return order

    async def get_order_by_id(self, order_id: int) -> Optional[Order]:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_order_by_number(self, order_number: str) -> Optional[Order]:
        result = await self.db.execute(
            select(Order).where(Order.order_number == order_number)
        )
        return result.scalar_one_or_none()

    async def order_number_exists(self, order_number: str) -> bool:
        total = await self.db.scalar(
            select(func.count(Order.id)).where(Order.order_number == order_number)
        )
        return bool(total)

    async def list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[int] = None,
        customer_email: Optional[str] = None,
        status: Optional[str] = None,
        order_type: Optional[str] = None,
        search: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> Tuple[List[Order], int]:
        query = select(Order)

        if user_id is not None and customer_email:
            # Orders placed while logged in, or as a guest with the same email
            query = query.where(
                or_(
                    Order.user_id == user_id,
                    func.lower(Order.customer_email) == customer_email.lower(),
                )
            )
        elif user_id is not None:
            query = query.where(Order.user_id == user_id)
        if status:
            query = query.where(Order.status == status)
        if order_type:
            query = query.where(Order.order_type == order_type)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Order.order_number.ilike(pattern),
                    Order.customer_name.ilike(pattern),
                    Order.customer_email.ilike(pattern),
                )
            )
        if created_from:
            query = query.where(Order.created_at >= created_from)
        if created_to:
            query = query.where(Order.created_at <= created_to)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def get_items_by_ids(self, order_id: int, item_ids: List[int]) -> List[OrderItem]:
        result = await self.db.execute(
            select(OrderItem).where(
                OrderItem.order_id == order_id, OrderItem.id.in_(item_ids)
            )
        )
        return list(result.scalars().all())


class VendorOrderRepository:
    """Repository for per-vendor sub-orders"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, vendor_order: VendorOrder) -> None:
        self.db.add(vendor_order)

    async def get_vendor_order_by_id(self, vendor_order_id: int) -> Optional[VendorOrder]:
        result = await self.db.execute(
            select(VendorOrder).where(VendorOrder.id == vendor_order_id)
        )
        return result.scalar_one_or_none()

    async def get_for_parent(self, parent_order_id: int) -> List[VendorOrder]:
        result = await self.db.execute(
            select(VendorOrder)
            .where(VendorOrder.parent_order_id == parent_order_id)
            .order_by(VendorOrder.id)
        )
        return list(result.scalars().all())

    async def count_for_parent(self, parent_order_id: int) -> int:
        total = await self.db.scalar(
            select(func.count(VendorOrder.id)).where(
                VendorOrder.parent_order_id == parent_order_id
            )
        )
        return total or 0

    async def list_for_vendor(
        self,
        vendor_id: int,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[VendorOrder], int]:
        query = select(VendorOrder).where(VendorOrder.vendor_id == vendor_id)
        if status:
            query = query.where(VendorOrder.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    VendorOrder.order_number.ilike(pattern),
                    VendorOrder.customer_name.ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(VendorOrder.forwarded_at.desc(), VendorOrder.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def vendor_status_counts(self, vendor_id: int) -> dict:
        result = await self.db.execute(
            select(VendorOrder.status, func.count(VendorOrder.id))
            .where(VendorOrder.vendor_id == vendor_id)
            .group_by(VendorOrder.status)
        )
        return {status: count for status, count in result.all()}
