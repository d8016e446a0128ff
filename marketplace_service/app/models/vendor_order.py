from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import MarketplaceBaseModel
from .user import Vendor


class VendorOrderStatus:
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    ALL = (PROCESSING, SHIPPED, DELIVERED, CANCELLED)
    # Statuses in which the vendor has earned the commission
    COMMISSIONABLE = (PROCESSING, SHIPPED, DELIVERED)


class VendorOrder(MarketplaceBaseModel):
    """One vendor's share of a forwarded customer order."""

    __tablename__ = "vendor_orders"
    __table_args__ = (
        UniqueConstraint("parent_order_id", "vendor_id", name="uq_vendor_order_parent"),
    )

    parent_order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), index=True
    )
    order_number: Mapped[str] = mapped_column(String(60), unique=True, index=True)
    vendor_id: Mapped[int] = mapped_column(
        ForeignKey("vendors.id", ondelete="CASCADE"), index=True
    )

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)

    # Snapshot of the parent items handled by this vendor; `order_item_id`
    # links each entry back to the parent line
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)

    items_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    commission_reversed: Mapped[bool] = mapped_column(default=False, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=VendorOrderStatus.PROCESSING, nullable=False, index=True
    )
    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vendor_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    cancelled_by: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    forwarded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    vendor: Mapped[Optional[Vendor]] = relationship(lazy="selectin")

    @property
    def order_item_ids(self) -> list[int]:
        return [entry["order_item_id"] for entry in self.items or []]
