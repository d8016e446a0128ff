"""
Order business rules shared by checkout, cancellation, forwarding and the
vendor portal. Nothing here touches the database.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException, status

from ..core.settings import get_settings
from ..models.order import Order, OrderItem, OrderStatus, OrderType
from ..models.vendor_order import VendorOrderStatus

# Customers may not cancel once goods are on their way
CUSTOMER_LOCKED_STATUSES = (
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
)

ADMIN_TRANSITIONS: Dict[str, List[str]] = {
    OrderStatus.PENDING: [OrderStatus.PROCESSING, OrderStatus.CANCELLED],
    OrderStatus.PROCESSING: [OrderStatus.SHIPPED, OrderStatus.CANCELLED],
    OrderStatus.PARTIALLY_CANCELLED: [
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.SHIPPED: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [],  # Final state
    OrderStatus.CANCELLED: [],  # Final state
}

VENDOR_TRANSITIONS: Dict[str, List[str]] = {
    VendorOrderStatus.PROCESSING: [VendorOrderStatus.SHIPPED, VendorOrderStatus.CANCELLED],
    VendorOrderStatus.SHIPPED: [VendorOrderStatus.DELIVERED],
    VendorOrderStatus.DELIVERED: [],
    VendorOrderStatus.CANCELLED: [],
}


class OrderBusinessRules:
    """Checkout limits and shipping policy"""

    def __init__(self):
        settings = get_settings()
        self.free_shipping_threshold = Decimal(str(settings.FREE_SHIPPING_THRESHOLD))
        self.max_order_items = settings.MAX_ORDER_ITEMS
        self.max_item_quantity = settings.MAX_ITEM_QUANTITY

    def calculate_shipping(
        self, subtotal: Decimal, item_shipping: Iterable[Decimal]
    ) -> Decimal:
        """Most expensive item shipping, waived above the free-shipping threshold."""
        if subtotal >= self.free_shipping_threshold:
            return Decimal("0")
        return max((Decimal(str(s)) for s in item_shipping), default=Decimal("0"))


def validate_transition(
    transitions: Dict[str, List[str]], current_status: str, new_status: str
) -> None:
    if new_status not in transitions.get(current_status, []):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status transition from {current_status} to {new_status}",
        )


def classify_order_type(vendor_ids: Iterable[Optional[int]]) -> str:
    vendor_ids = list(vendor_ids)
    has_vendor = any(v is not None for v in vendor_ids)
    has_marketplace = any(v is None for v in vendor_ids)
    if has_vendor and has_marketplace:
        return OrderType.MIXED
    return OrderType.VENDOR_ONLY if has_vendor else OrderType.ADMIN_ONLY


def resolve_parent_status(item_statuses: Iterable[str]) -> str:
    """
    Aggregate line statuses into the order status.

    All cancelled -> cancelled. Otherwise the least advanced live line wins;
    a live order that lost some lines before shipping is partially_cancelled.
    """
    statuses = list(item_statuses)
    live = [s for s in statuses if s != OrderStatus.CANCELLED]
    if not live:
        return OrderStatus.CANCELLED

    if all(s == OrderStatus.DELIVERED for s in live):
        aggregate = OrderStatus.DELIVERED
    elif all(s in (OrderStatus.SHIPPED, OrderStatus.DELIVERED) for s in live):
        aggregate = OrderStatus.SHIPPED
    elif all(
        s in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED)
        for s in live
    ):
        aggregate = OrderStatus.PROCESSING
    else:
        aggregate = OrderStatus.PENDING

    has_cancelled = len(live) < len(statuses)
    if has_cancelled and aggregate in (OrderStatus.PENDING, OrderStatus.PROCESSING):
        return OrderStatus.PARTIALLY_CANCELLED
    return aggregate


def cancel_order_item(
    order: Order,
    item: OrderItem,
    cancelled_by: str,
    reason: Optional[str],
    now: datetime,
) -> Decimal:
    """
    Mark one line cancelled and take its value off the order total.

    Returns the refunded amount (zero if the line was already cancelled).
    """
    if item.status == OrderStatus.CANCELLED:
        return Decimal("0")

    refund = Decimal(item.price) * item.quantity
    item.status = OrderStatus.CANCELLED
    item.cancelled_by = cancelled_by
    item.cancelled_at = now
    item.cancellation_reason = reason
    order.total_amount = max(Decimal("0"), Decimal(order.total_amount) - refund)
    return refund


def refresh_order_status(order: Order, now: datetime) -> str:
    """Recompute `order.status` from its lines; returns the previous status."""
    previous = order.status
    order.status = resolve_parent_status(item.status for item in order.items)

    if order.status == OrderStatus.DELIVERED and not order.delivered_at:
        order.delivered_at = now
    if order.status == OrderStatus.CANCELLED and not order.cancelled_at:
        order.cancelled_at = now
    return previous


def recalculate_shipping(order: Order, rules: OrderBusinessRules) -> Decimal:
    """Shipping for the lines still live after a cancellation."""
    live = order.active_items
    order.shipping_cost = rules.calculate_shipping(
        Decimal(order.total_amount), (item.shipping for item in live)
    )
    return order.shipping_cost
