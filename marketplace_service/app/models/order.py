from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import MarketplaceBaseModel


class OrderStatus:
    """Order and order item status constants"""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    PARTIALLY_CANCELLED = "partially_cancelled"

    ALL = (PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED, PARTIALLY_CANCELLED)
    ITEM_STATUSES = (PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED)


class OrderType:
    ADMIN_ONLY = "admin_only"
    VENDOR_ONLY = "vendor_only"
    MIXED = "mixed"


class PaymentStatus:
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class Order(MarketplaceBaseModel):
    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Customer snapshot; guests check out without an account
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), index=True)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)

    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_accounts.id", ondelete="SET NULL"), nullable=True
    )
    payment_receipt: Mapped[str | None] = mapped_column(String(500), nullable=True)
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(30), default=OrderStatus.PENDING, nullable=False, index=True
    )
    order_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Sum of price * quantity over non-cancelled items
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )

    is_forwarded_to_vendors: Mapped[bool] = mapped_column(default=False)
    forwarded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    cancelled_by: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )

    @property
    def grand_total(self) -> Decimal:
        return Decimal(self.total_amount) + Decimal(self.shipping_cost or 0)

    @property
    def active_items(self) -> List["OrderItem"]:
        return [item for item in self.items if item.status != OrderStatus.CANCELLED]


class OrderItem(MarketplaceBaseModel):
    __tablename__ = "order_items"

    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    vendor_id: Mapped[int | None] = mapped_column(
        ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    shipping: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category_names: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    attributes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=OrderStatus.PENDING, nullable=False
    )
    cancelled_by: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    order: Mapped[Optional[Order]] = relationship(back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity
