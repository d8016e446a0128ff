"""Monthly commission ledger repository"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.commission import CommissionTransaction, MonthlyCommission, TransactionKind


class CommissionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_create_month(
        self, vendor_id: int, year: int, month: int
    ) -> MonthlyCommission:
        """Return the vendor's ledger row for the month, adding it if missing."""
        result = await self.db.execute(
            select(MonthlyCommission).where(
                MonthlyCommission.vendor_id == vendor_id,
                MonthlyCommission.year == year,
                MonthlyCommission.month == month,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = MonthlyCommission(
                vendor_id=vendor_id,
                year=year,
                month=month,
                total_orders=0,
                total_sales=Decimal("0"),
                total_commission=Decimal("0"),
                paid_commission=Decimal("0"),
                pending_commission=Decimal("0"),
                transactions=[],
            )
            self.db.add(record)
            await self.db.flush()
        return record

    async def get_by_id(self, commission_id: int) -> Optional[MonthlyCommission]:
        result = await self.db.execute(
            select(MonthlyCommission).where(MonthlyCommission.id == commission_id)
        )
        return result.scalar_one_or_none()

    async def find_commission_month(
        self, vendor_order_id: int
    ) -> Optional[MonthlyCommission]:
        """Ledger month that booked the commission for a vendor order."""
        result = await self.db.execute(
            select(MonthlyCommission)
            .join(
                CommissionTransaction,
                CommissionTransaction.monthly_commission_id == MonthlyCommission.id,
            )
            .where(
                CommissionTransaction.vendor_order_id == vendor_order_id,
                CommissionTransaction.kind == TransactionKind.COMMISSION,
            )
        )
        return result.scalars().first()

    async def list_months(
        self,
        vendor_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        payment_status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[MonthlyCommission], int]:
        query = select(MonthlyCommission)
        if vendor_id is not None:
            query = query.where(MonthlyCommission.vendor_id == vendor_id)
        if year is not None:
            query = query.where(MonthlyCommission.year == year)
        if month is not None:
            query = query.where(MonthlyCommission.month == month)
        if payment_status:
            query = query.where(MonthlyCommission.payment_status == payment_status)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(
                MonthlyCommission.year.desc(),
                MonthlyCommission.month.desc(),
                MonthlyCommission.vendor_id.asc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def totals(
        self,
        vendor_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Dict[str, Any]:
        query = select(
            func.coalesce(func.sum(MonthlyCommission.total_orders), 0),
            func.coalesce(func.sum(MonthlyCommission.total_sales), 0),
            func.coalesce(func.sum(MonthlyCommission.total_commission), 0),
            func.coalesce(func.sum(MonthlyCommission.paid_commission), 0),
            func.coalesce(func.sum(MonthlyCommission.pending_commission), 0),
            func.count(func.distinct(MonthlyCommission.vendor_id)),
        )
        if vendor_id is not None:
            query = query.where(MonthlyCommission.vendor_id == vendor_id)
        if year is not None:
            query = query.where(MonthlyCommission.year == year)
        if month is not None:
            query = query.where(MonthlyCommission.month == month)

        row = (await self.db.execute(query)).one()
        return {
            "total_orders": int(row[0]),
            "total_sales": float(row[1]),
            "total_commission": float(row[2]),
            "paid_commission": float(row[3]),
            "pending_commission": float(row[4]),
            "vendor_count": int(row[5]),
        }
