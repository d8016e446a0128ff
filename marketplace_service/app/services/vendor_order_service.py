"""
Vendor order forwarding and the vendor side of fulfilment.

Forwarding splits a customer order into one VendorOrder per vendor. From then
on the parent order's status is derived from its lines, which follow their
vendor order.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.base import utcnow
from ..models.order import Order, OrderItem, OrderStatus
from ..models.user import VendorStatus
from ..models.vendor_order import VendorOrder, VendorOrderStatus
from ..repository.catalog_repository import ProductRepository
from ..repository.order_repository import OrderRepository, VendorOrderRepository
from ..repository.user_repository import VendorRepository
from ..schemas.order import VendorOrderResponse, VendorOrderStatusUpdate
from ..utils.logging import setup_marketplace_logging as setup_logging
from .commission_service import (
    CommissionService,
    calculate_commission,
    resolve_commission_rate,
    to_money,
)
from .notification_service import NotificationService, get_notification_service
from .order_rules import (
    VENDOR_TRANSITIONS,
    OrderBusinessRules,
    cancel_order_item,
    recalculate_shipping,
    refresh_order_status,
    validate_transition,
)
from .order_service import is_order_owner, restore_stock

settings = get_settings()
logger = setup_logging("vendor_order_service", log_level=settings.LOG_LEVEL)


def build_vendor_order_items(items: List[OrderItem]) -> List[Dict[str, Any]]:
    return [
        {
            "order_item_id": item.id,
            "product_id": item.product_id,
            "title": item.title,
            "price": float(item.price),
            "quantity": item.quantity,
            "shipping": float(item.shipping),
            "image": item.image,
            "attributes": item.attributes,
            "line_total": float(item.line_total),
        }
        for item in items
    ]


def vendor_order_response(vendor_order: VendorOrder) -> Dict[str, Any]:
    response = VendorOrderResponse.model_validate(vendor_order).model_dump()
    response["vendor_name"] = (
        vendor_order.vendor.business_name if vendor_order.vendor else None
    )
    return response


class OrderForwardingService:
    """Admin action splitting an order into per-vendor sub-orders"""

    def __init__(
        self,
        session: AsyncSession,
        notification_service: Optional[NotificationService] = None,
    ):
        self.session = session
        self.order_repository = OrderRepository(session)
        self.vendor_order_repository = VendorOrderRepository(session)
        self.vendor_repository = VendorRepository(session)
        self.commission_service = CommissionService(session)
        self.notification_service = notification_service or get_notification_service()
        self.business_rules = OrderBusinessRules()

    def _vendor_totals(self, items: List[OrderItem]) -> Tuple[Decimal, Decimal, Decimal]:
        items_total = sum((item.line_total for item in items), Decimal("0"))
        shipping = self.business_rules.calculate_shipping(
            items_total, (item.shipping for item in items)
        )
        return to_money(items_total), to_money(shipping), to_money(items_total + shipping)

    async def forward_order(
        self,
        order_id: int,
        vendor_ids: Optional[List[int]] = None,
        admin_notes: Optional[str] = None,
        admin_id: Optional[int] = None,
    ) -> Tuple[Order, List[VendorOrder]]:
        """
        Create one VendorOrder per vendor for the order's live vendor lines.

        `vendor_ids` limits forwarding to those vendors; vendors that already
        have a sub-order for this order are never forwarded twice.
        """
        order = await self.order_repository.get_order_by_id(order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Order not found"
            )
        if order.status in (OrderStatus.CANCELLED, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot forward a {order.status} order",
            )

        existing = await self.vendor_order_repository.get_for_parent(order.id)
        already_forwarded = {vendor_order.vendor_id for vendor_order in existing}

        groups: "OrderedDict[int, List[OrderItem]]" = OrderedDict()
        for item in order.active_items:
            if item.vendor_id is None:
                continue
            if vendor_ids and item.vendor_id not in vendor_ids:
                continue
            groups.setdefault(item.vendor_id, []).append(item)

        if not groups:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Order has no vendor items to forward",
            )
        pending_groups = OrderedDict(
            (vendor_id, items)
            for vendor_id, items in groups.items()
            if vendor_id not in already_forwarded
        )
        if not pending_groups:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Order has already been forwarded to vendors",
            )

        vendors = {
            vendor.id: vendor
            for vendor in await self.vendor_repository.get_vendors_by_ids(list(pending_groups))
        }
        for vendor_id in pending_groups:
            vendor = vendors.get(vendor_id)
            if vendor is None or vendor.status != VendorStatus.APPROVED:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Vendor {vendor_id} is not active",
                )

        now = utcnow()
        created: List[VendorOrder] = []
        sequence = len(existing)
        for vendor_id, items in pending_groups.items():
            sequence += 1
            vendor = vendors[vendor_id]
            items_total, shipping, total = self._vendor_totals(items)
            rate = resolve_commission_rate(vendor)

            vendor_order = VendorOrder(
                parent_order_id=order.id,
                order_number=f"{order.order_number}-V{sequence}",
                vendor_id=vendor_id,
                customer_name=order.customer_name,
                customer_email=order.customer_email,
                customer_phone=order.customer_phone,
                shipping_address=order.shipping_address,
                city=order.city,
                items=build_vendor_order_items(items),
                items_total=items_total,
                shipping_cost=shipping,
                total_amount=total,
                commission_rate=rate,
                commission_amount=calculate_commission(total, rate),
                status=VendorOrderStatus.PROCESSING,
                admin_notes=admin_notes,
                forwarded_at=now,
            )
            self.vendor_order_repository.add(vendor_order)
            for item in items:
                item.status = OrderStatus.PROCESSING
            created.append(vendor_order)

        # Commission transactions reference the vendor order ids
        await self.session.flush()
        for vendor_order in created:
            await self.commission_service.record_commission(vendor_order)

        order.is_forwarded_to_vendors = True
        order.forwarded_at = order.forwarded_at or now
        if admin_notes:
            order.admin_notes = admin_notes
        previous_status = refresh_order_status(order, now)

        await self.order_repository.commit()
        await self.order_repository.refresh(order)
        for vendor_order in created:
            await self.session.refresh(vendor_order)

        logger.info(
            "Order forwarded to vendors",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "vendor_order_numbers": [vo.order_number for vo in created],
                "admin_id": admin_id,
                "order_status": order.status,
            },
        )

        for vendor_order in created:
            await self.notification_service.notify_vendor_order_forwarded(
                vendors[vendor_order.vendor_id], vendor_order
            )
        await self.notification_service.notify_order_status_changed(order, previous_status)
        return order, created


class VendorOrderService:
    """Vendor portal fulfilment and per-vendor cancellation"""

    def __init__(
        self,
        session: AsyncSession,
        notification_service: Optional[NotificationService] = None,
    ):
        self.session = session
        self.order_repository = OrderRepository(session)
        self.vendor_order_repository = VendorOrderRepository(session)
        self.product_repository = ProductRepository(session)
        self.commission_service = CommissionService(session)
        self.notification_service = notification_service or get_notification_service()
        self.business_rules = OrderBusinessRules()

    async def get_vendor_order(self, vendor_order_id: int) -> VendorOrder:
        vendor_order = await self.vendor_order_repository.get_vendor_order_by_id(
            vendor_order_id
        )
        if not vendor_order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Vendor order not found"
            )
        return vendor_order

    async def get_for_vendor(self, vendor_order_id: int, vendor_id: int) -> VendorOrder:
        vendor_order = await self.get_vendor_order(vendor_order_id)
        if vendor_order.vendor_id != vendor_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Vendor order not found"
            )
        return vendor_order

    async def list_for_vendor(self, vendor_id: int, **filters):
        return await self.vendor_order_repository.list_for_vendor(vendor_id, **filters)

    async def vendor_dashboard(self, vendor_id: int) -> Dict[str, Any]:
        counts = await self.vendor_order_repository.vendor_status_counts(vendor_id)
        return {
            "total": sum(counts.values()),
            **{state: counts.get(state, 0) for state in VendorOrderStatus.ALL},
        }

    async def _parent(self, vendor_order: VendorOrder) -> Order:
        order = await self.order_repository.get_order_by_id(vendor_order.parent_order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Order not found"
            )
        return order

    def _parent_items(self, order: Order, vendor_order: VendorOrder) -> List[OrderItem]:
        item_ids = set(vendor_order.order_item_ids)
        return [item for item in order.items if item.id in item_ids]

    async def _cancel(
        self,
        vendor_order: VendorOrder,
        order: Order,
        cancelled_by: str,
        reason: Optional[str],
    ) -> Decimal:
        """Cancel a vendor order and its parent lines. Does not commit."""
        now = utcnow()
        if vendor_order.status in VendorOrderStatus.COMMISSIONABLE:
            await self.commission_service.reverse_commission(vendor_order, reason)

        vendor_order.status = VendorOrderStatus.CANCELLED
        vendor_order.cancelled_by = cancelled_by
        vendor_order.cancelled_at = now
        vendor_order.cancellation_reason = reason

        items = [
            item
            for item in self._parent_items(order, vendor_order)
            if item.status != OrderStatus.CANCELLED
        ]
        refund = Decimal("0")
        for item in items:
            refund += cancel_order_item(order, item, cancelled_by, reason, now)
        await restore_stock(self.product_repository, items)
        recalculate_shipping(order, self.business_rules)
        return refund

    async def update_status(
        self, vendor_order_id: int, vendor_id: int, data: VendorOrderStatusUpdate
    ) -> VendorOrder:
        vendor_order = await self.get_for_vendor(vendor_order_id, vendor_id)
        validate_transition(VENDOR_TRANSITIONS, vendor_order.status, data.status)
        order = await self._parent(vendor_order)
        old_status = vendor_order.status
        now = utcnow()

        if data.status == VendorOrderStatus.CANCELLED:
            await self._cancel(vendor_order, order, "vendor", data.reason)
        else:
            vendor_order.status = data.status
            if data.status == VendorOrderStatus.SHIPPED:
                vendor_order.shipped_at = now
            if data.status == VendorOrderStatus.DELIVERED:
                vendor_order.delivered_at = now
            for item in self._parent_items(order, vendor_order):
                if item.status != OrderStatus.CANCELLED:
                    item.status = data.status

        if data.tracking_number:
            vendor_order.tracking_number = data.tracking_number
        if data.vendor_notes:
            vendor_order.vendor_notes = data.vendor_notes

        previous_parent_status = refresh_order_status(order, now)
        await self.order_repository.commit()
        await self.session.refresh(vendor_order)
        await self.order_repository.refresh(order)

        logger.info(
            "Vendor order status updated",
            extra={
                "vendor_order_id": vendor_order.id,
                "vendor_order_number": vendor_order.order_number,
                "vendor_id": vendor_id,
                "old_status": old_status,
                "new_status": vendor_order.status,
                "parent_status": order.status,
            },
        )
        await self.notification_service.notify_order_status_changed(
            order,
            previous_parent_status,
            tracking_number=vendor_order.tracking_number,
            reason=data.reason,
        )
        return vendor_order

    async def cancel_by_customer(
        self,
        vendor_order_id: int,
        reason: Optional[str],
        current_user: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Cancel one vendor's part of an order on the customer's behalf."""
        vendor_order = await self.get_vendor_order(vendor_order_id)
        order = await self._parent(vendor_order)
        if not is_order_owner(order, current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: You can only cancel your own orders",
            )
        if vendor_order.status in (
            VendorOrderStatus.SHIPPED,
            VendorOrderStatus.DELIVERED,
            VendorOrderStatus.CANCELLED,
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot cancel a {vendor_order.status} vendor order",
            )

        refund = await self._cancel(vendor_order, order, "customer", reason)
        now = utcnow()
        previous_status = refresh_order_status(order, now)
        if order.status == OrderStatus.CANCELLED:
            order.cancelled_by = "customer"
            order.cancellation_reason = reason

        await self.order_repository.commit()
        await self.session.refresh(vendor_order)
        await self.order_repository.refresh(order)

        logger.info(
            "Vendor order cancelled by customer",
            extra={
                "vendor_order_id": vendor_order.id,
                "vendor_order_number": vendor_order.order_number,
                "order_id": order.id,
                "refund_amount": str(refund),
                "remaining_total": str(order.total_amount),
                "order_status": order.status,
            },
        )
        await self.notification_service.notify_order_status_changed(
            order, previous_status, reason=reason
        )
        return {
            "vendor_order": vendor_order_response(vendor_order),
            "refund_amount": float(refund),
            "remaining_total": float(order.total_amount),
            "order_status": order.status,
        }

    async def list_vendors_for_forwarding(self, order: Order) -> List[Dict[str, Any]]:
        """Vendors with live lines on the order and whether they were forwarded."""
        forwarded = {
            vendor_order.vendor_id
            for vendor_order in await self.vendor_order_repository.get_for_parent(order.id)
        }
        counts: Dict[int, int] = {}
        for item in order.active_items:
            if item.vendor_id is not None:
                counts[item.vendor_id] = counts.get(item.vendor_id, 0) + 1
        return [
            {"vendor_id": vendor_id, "item_count": count, "forwarded": vendor_id in forwarded}
            for vendor_id, count in counts.items()
        ]
