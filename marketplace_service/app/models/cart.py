from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import MarketplaceBaseModel
from .catalog import Product


class Cart(MarketplaceBaseModel):
    """One saved cart per customer account."""

    __tablename__ = "carts"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True
    )

    items: Mapped[List["CartItem"]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.id",
    )

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


class CartItem(MarketplaceBaseModel):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "product_id"),)

    cart_id: Mapped[int] = mapped_column(
        ForeignKey("carts.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE")
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Price when the line was added; checkout charges the live price
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    attributes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    cart: Mapped[Optional[Cart]] = relationship(back_populates="items")
    product: Mapped[Optional[Product]] = relationship(lazy="selectin")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity
