"""
Unit tests for order status aggregation, cancellation arithmetic and shipping.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi import HTTPException

from marketplace_service.app.models.order import Order, OrderItem, OrderStatus, OrderType
from marketplace_service.app.services.order_rules import (
    ADMIN_TRANSITIONS,
    VENDOR_TRANSITIONS,
    OrderBusinessRules,
    cancel_order_item,
    classify_order_type,
    refresh_order_status,
    resolve_parent_status,
    validate_transition,
)

NOW = datetime(2026, 5, 4, 12, 0)


def make_order(*lines) -> Order:
    items = [
        OrderItem(
            id=index + 1,
            title=f"Item {index + 1}",
            price=Decimal(price),
            quantity=quantity,
            shipping=Decimal("0"),
            status=OrderStatus.PENDING,
        )
        for index, (price, quantity) in enumerate(lines)
    ]
    total = sum((item.line_total for item in items), Decimal("0"))
    return Order(status=OrderStatus.PENDING, total_amount=total, items=items)


class TestResolveParentStatus:
    @pytest.mark.parametrize(
        "statuses,expected",
        [
            (["pending", "pending"], "pending"),
            (["processing", "pending"], "pending"),
            (["processing", "shipped"], "processing"),
            (["shipped", "delivered"], "shipped"),
            (["delivered", "delivered"], "delivered"),
            (["cancelled", "cancelled"], "cancelled"),
            (["cancelled", "pending"], "partially_cancelled"),
            (["cancelled", "processing"], "partially_cancelled"),
            (["cancelled", "shipped"], "shipped"),
            (["cancelled", "delivered"], "delivered"),
        ],
    )
    def test_aggregation(self, statuses, expected):
        assert resolve_parent_status(statuses) == expected


class TestCancelOrderItem:
    def test_total_drops_by_cancelled_lines(self):
        order = make_order(("500.00", 2), ("2000.00", 1), ("120.50", 3))
        original_total = order.total_amount

        refund = cancel_order_item(order, order.items[0], "customer", "Changed mind", NOW)
        refund += cancel_order_item(order, order.items[2], "customer", "Changed mind", NOW)

        assert refund == Decimal("1361.50")
        assert order.total_amount == original_total - Decimal("500.00") * 2 - Decimal("120.50") * 3
        assert order.items[0].status == OrderStatus.CANCELLED
        assert order.items[0].cancelled_by == "customer"
        assert order.items[0].cancelled_at == NOW

    def test_cancelling_twice_refunds_nothing(self):
        order = make_order(("100.00", 1), ("50.00", 1))
        cancel_order_item(order, order.items[0], "admin", None, NOW)

        assert cancel_order_item(order, order.items[0], "admin", None, NOW) == Decimal("0")
        assert order.total_amount == Decimal("50.00")

    def test_refresh_marks_fully_cancelled_order(self):
        order = make_order(("100.00", 1))
        cancel_order_item(order, order.items[0], "customer", None, NOW)

        previous = refresh_order_status(order, NOW)

        assert previous == OrderStatus.PENDING
        assert order.status == OrderStatus.CANCELLED
        assert order.cancelled_at == NOW
        assert order.total_amount == Decimal("0")


class TestTransitions:
    def test_valid_admin_transition(self):
        validate_transition(ADMIN_TRANSITIONS, "pending", "processing")

    @pytest.mark.parametrize(
        "current,new",
        [("pending", "delivered"), ("delivered", "cancelled"), ("cancelled", "pending")],
    )
    def test_invalid_admin_transition(self, current, new):
        with pytest.raises(HTTPException) as exc_info:
            validate_transition(ADMIN_TRANSITIONS, current, new)
        assert exc_info.value.status_code == 400

    def test_vendor_orders_cannot_skip_shipping(self):
        with pytest.raises(HTTPException):
            validate_transition(VENDOR_TRANSITIONS, "processing", "delivered")


class TestOrderTypeAndShipping:
    def test_classify_order_type(self):
        assert classify_order_type([None, None]) == OrderType.ADMIN_ONLY
        assert classify_order_type([3, 4]) == OrderType.VENDOR_ONLY
        assert classify_order_type([None, 4]) == OrderType.MIXED

    def test_highest_item_shipping_below_threshold(self, test_settings):
        rules = OrderBusinessRules()
        below = Decimal(str(test_settings.FREE_SHIPPING_THRESHOLD)) - 1
        assert rules.calculate_shipping(below, [Decimal("150"), Decimal("250")]) == Decimal("250")

    def test_free_shipping_at_threshold(self, test_settings):
        rules = OrderBusinessRules()
        threshold = Decimal(str(test_settings.FREE_SHIPPING_THRESHOLD))
        assert rules.calculate_shipping(threshold, [Decimal("250")]) == Decimal("0")
