from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import MarketplaceBaseModel
from .user import Vendor


class CommissionPaymentStatus:
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class TransactionKind:
    COMMISSION = "commission"
    REVERSAL = "reversal"
    PAYMENT = "payment"


class MonthlyCommission(MarketplaceBaseModel):
    """Per-vendor commission ledger for one calendar month."""

    __tablename__ = "monthly_commissions"
    __table_args__ = (
        UniqueConstraint("vendor_id", "year", "month", name="uq_commission_month"),
    )

    vendor_id: Mapped[int] = mapped_column(
        ForeignKey("vendors.id", ondelete="CASCADE"), index=True
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_sales: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    total_commission: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    paid_commission: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    pending_commission: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), default=CommissionPaymentStatus.PENDING, nullable=False
    )
    last_payment_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    vendor: Mapped[Optional[Vendor]] = relationship(lazy="selectin")
    transactions: Mapped[List["CommissionTransaction"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CommissionTransaction.id",
    )

    def recalculate_pending(self) -> None:
        self.pending_commission = Decimal(self.total_commission) - Decimal(
            self.paid_commission
        )
        if self.pending_commission <= 0 and Decimal(self.total_commission) > 0:
            self.payment_status = CommissionPaymentStatus.PAID
        elif Decimal(self.paid_commission) > 0:
            self.payment_status = CommissionPaymentStatus.PARTIAL
        else:
            self.payment_status = CommissionPaymentStatus.PENDING


class CommissionTransaction(MarketplaceBaseModel):
    __tablename__ = "commission_transactions"

    monthly_commission_id: Mapped[int] = mapped_column(
        ForeignKey("monthly_commissions.id", ondelete="CASCADE"), index=True
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    order_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    vendor_order_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )
    order_number: Mapped[str | None] = mapped_column(String(60), nullable=True)
    sale_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    # Negative for reversals
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
