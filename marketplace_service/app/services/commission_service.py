"""
Vendor commission accounting: calculation helpers and the monthly ledger.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Union

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.base import utcnow
from ..models.commission import CommissionTransaction, MonthlyCommission, TransactionKind
from ..models.user import Vendor
from ..models.vendor_order import VendorOrder
from ..repository.commission_repository import CommissionRepository
from ..schemas.commission import MonthlyCommissionResponse
from ..utils.logging import setup_marketplace_logging as setup_logging

logger = setup_logging("commission_service", log_level=get_settings().LOG_LEVEL)

CENTS = Decimal("0.01")
Number = Union[int, float, str, Decimal]


def to_money(value: Number) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def is_valid_commission_rate(rate: Number) -> bool:
    try:
        return Decimal("0") <= Decimal(str(rate)) <= Decimal("1")
    except ArithmeticError:
        return False


def calculate_commission(amount: Number, rate: Number) -> Decimal:
    """Marketplace share of a sale."""
    if not is_valid_commission_rate(rate):
        raise ValueError(f"Invalid commission rate: {rate}")
    return to_money(Decimal(str(amount)) * Decimal(str(rate)))


def calculate_vendor_earnings(amount: Number, rate: Number) -> Decimal:
    """What the vendor keeps after commission."""
    return to_money(Decimal(str(amount)) - calculate_commission(amount, rate))


def resolve_commission_rate(vendor: Optional[Vendor]) -> Decimal:
    """Vendor-specific override, falling back to the marketplace rate."""
    if vendor is not None and vendor.commission_rate is not None:
        return Decimal(str(vendor.commission_rate))
    return Decimal(str(get_settings().COMMISSION_RATE))


class CommissionService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.commission_repository = CommissionRepository(session)

    async def record_commission(self, vendor_order: VendorOrder) -> MonthlyCommission:
        """
        Book a forwarded vendor order into its month's ledger.

        Does not commit; the caller owns the transaction.
        """
        booked_at = vendor_order.forwarded_at or utcnow()
        ledger = await self.commission_repository.get_or_create_month(
            vendor_order.vendor_id, booked_at.year, booked_at.month
        )

        ledger.total_orders += 1
        ledger.total_sales = to_money(Decimal(ledger.total_sales) + Decimal(vendor_order.total_amount))
        ledger.total_commission = to_money(
            Decimal(ledger.total_commission) + Decimal(vendor_order.commission_amount)
        )
        ledger.transactions.append(
            CommissionTransaction(
                kind=TransactionKind.COMMISSION,
                order_id=vendor_order.parent_order_id,
                vendor_order_id=vendor_order.id,
                order_number=vendor_order.order_number,
                sale_amount=to_money(vendor_order.total_amount),
                amount=to_money(vendor_order.commission_amount),
            )
        )
        ledger.recalculate_pending()

        logger.info(
            "Commission recorded",
            extra={
                "vendor_id": vendor_order.vendor_id,
                "vendor_order_number": vendor_order.order_number,
                "commission_amount": str(vendor_order.commission_amount),
                "ledger_month": f"{ledger.year}-{ledger.month:02d}",
            },
        )
        return ledger

    async def reverse_commission(
        self, vendor_order: VendorOrder, reason: Optional[str] = None
    ) -> bool:
        """
        Undo the commission booked for a vendor order.

        Runs at most once per vendor order; returns False when there was
        nothing to reverse. Does not commit.
        """
        if vendor_order.commission_reversed or not Decimal(vendor_order.commission_amount):
            return False

        ledger = await self.commission_repository.find_commission_month(vendor_order.id)
        if ledger is None:
            booked_at = vendor_order.forwarded_at or utcnow()
            ledger = await self.commission_repository.get_or_create_month(
                vendor_order.vendor_id, booked_at.year, booked_at.month
            )

        ledger.total_orders = max(0, ledger.total_orders - 1)
        ledger.total_sales = to_money(
            max(Decimal("0"), Decimal(ledger.total_sales) - Decimal(vendor_order.total_amount))
        )
        ledger.total_commission = to_money(
            max(
                Decimal("0"),
                Decimal(ledger.total_commission) - Decimal(vendor_order.commission_amount),
            )
        )
        ledger.transactions.append(
            CommissionTransaction(
                kind=TransactionKind.REVERSAL,
                order_id=vendor_order.parent_order_id,
                vendor_order_id=vendor_order.id,
                order_number=vendor_order.order_number,
                sale_amount=to_money(vendor_order.total_amount),
                amount=-to_money(vendor_order.commission_amount),
                note=reason,
            )
        )
        ledger.recalculate_pending()
        vendor_order.commission_reversed = True

        logger.info(
            "Commission reversed",
            extra={
                "vendor_id": vendor_order.vendor_id,
                "vendor_order_number": vendor_order.order_number,
                "commission_amount": str(vendor_order.commission_amount),
                "reason": reason,
            },
        )
        return True

    async def mark_paid(
        self,
        commission_id: int,
        amount: Decimal,
        payment_method: str,
        payment_reference: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> MonthlyCommission:
        """Record a commission payment received from a vendor."""
        ledger = await self.commission_repository.get_by_id(commission_id)
        if not ledger:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Commission record not found",
            )

        amount = to_money(amount)
        if amount > Decimal(ledger.pending_commission):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Payment exceeds pending commission of {ledger.pending_commission}",
            )

        ledger.paid_commission = to_money(Decimal(ledger.paid_commission) + amount)
        ledger.last_payment_at = utcnow()
        ledger.payment_method = payment_method
        ledger.payment_reference = payment_reference
        if admin_notes:
            ledger.admin_notes = admin_notes
        ledger.transactions.append(
            CommissionTransaction(
                kind=TransactionKind.PAYMENT,
                amount=amount,
                sale_amount=Decimal("0"),
                note=payment_reference,
            )
        )
        ledger.recalculate_pending()

        await self.session.commit()
        await self.session.refresh(ledger)

        logger.info(
            "Commission payment recorded",
            extra={
                "commission_id": commission_id,
                "vendor_id": ledger.vendor_id,
                "amount": str(amount),
                "payment_status": ledger.payment_status,
            },
        )
        return ledger

    async def list_commissions(self, **filters):
        return await self.commission_repository.list_months(**filters)

    async def summary(
        self,
        vendor_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Dict[str, Any]:
        totals = await self.commission_repository.totals(
            vendor_id=vendor_id, year=year, month=month
        )
        totals["commission_rate"] = get_settings().COMMISSION_RATE
        totals["vendor_earnings"] = round(
            totals["total_sales"] - totals["total_commission"], 2
        )
        return totals


def convert_commission_response(ledger: MonthlyCommission) -> Dict[str, Any]:
    response = MonthlyCommissionResponse.model_validate(ledger)
    response.vendor_name = ledger.vendor.business_name if ledger.vendor else None
    return response.model_dump()
