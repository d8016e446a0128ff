"""
Checkout, customer order views, cancellation and admin status updates.
"""

import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.base import utcnow
from ..models.catalog import ApprovalStatus, Product
from ..models.content import PaymentAccount
from ..models.order import Order, OrderItem, OrderStatus, PaymentStatus
from ..models.user import UserRole, VendorStatus
from ..models.vendor_order import VendorOrder, VendorOrderStatus
from ..repository.catalog_repository import ProductRepository
from ..repository.content_repository import ContentRepository
from ..repository.order_repository import OrderRepository, VendorOrderRepository
from ..schemas.order import (
    CheckoutRequest,
    OrderResponse,
    OrderStatusUpdate,
    PaymentStatusUpdate,
    VendorOrderResponse,
)
from ..utils.logging import setup_marketplace_logging as setup_logging
from .commission_service import CommissionService
from .notification_service import NotificationService, get_notification_service
from .order_rules import (
    ADMIN_TRANSITIONS,
    CUSTOMER_LOCKED_STATUSES,
    OrderBusinessRules,
    cancel_order_item,
    classify_order_type,
    recalculate_shipping,
    refresh_order_status,
    validate_transition,
)

settings = get_settings()
logger = setup_logging("order_service", log_level=settings.LOG_LEVEL)

MANUAL_PAYMENT_METHODS = ("bank_transfer", "jazzcash", "easypaisa")
FORWARDED_ORDER_MESSAGE = (
    "Cannot cancel items. Order has already been forwarded to vendors. "
    "Please use individual part cancellation instead."
)


def generate_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex[:12].upper()}"


def current_user_id(current_user: Optional[Dict[str, Any]]) -> Optional[int]:
    if not current_user or not current_user.get("user_id"):
        return None
    return int(current_user["user_id"])


def is_order_owner(order: Order, current_user: Optional[Dict[str, Any]]) -> bool:
    """Customers own orders placed on their account or with their email."""
    if not current_user or current_user.get("role") != UserRole.CUSTOMER:
        return False
    if order.user_id is not None and order.user_id == current_user_id(current_user):
        return True
    email = (current_user.get("token_data") or {}).get("email") or ""
    return bool(email) and order.customer_email.lower() == email.lower()


async def restore_stock(
    product_repository: ProductRepository, items: List[OrderItem]
) -> None:
    """Put cancelled quantities back on the shelf. Does not commit."""
    products = await product_repository.get_products_by_ids(
        [item.product_id for item in items if item.product_id]
    )
    for item in items:
        product = products.get(item.product_id)
        if product is not None:
            product.stock += item.quantity


class OrderService:
    """Service for handling order business logic"""

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

    # Checkout

    async def _unique_order_number(self) -> str:
        order_number = generate_order_number()
        while await self.order_repository.order_number_exists(order_number):
            order_number = generate_order_number()
        return order_number

    def _ensure_purchasable(self, product: Optional[Product], product_id: int, quantity: int) -> Product:
        if (
            product is None
            or not product.is_active
            or product.approval_status != ApprovalStatus.APPROVED
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {product_id} is not available",
            )
        if product.vendor is not None and product.vendor.status != VendorStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {product_id} is not available",
            )
        if quantity > self.business_rules.max_item_quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Maximum quantity per item is {self.business_rules.max_item_quantity}",
            )
        if product.stock < quantity:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Insufficient stock for '{product.name}': {product.stock} available",
            )
        return product

    async def create_order(
        self, data: CheckoutRequest, current_user: Optional[Dict[str, Any]] = None
    ) -> Order:
        """
        Place an order for a customer or a guest.

        Prices, titles and shipping are snapshotted from the products and stock
        is decremented in the same transaction.
        """
        if len(data.items) > self.business_rules.max_order_items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Orders are limited to {self.business_rules.max_order_items} items",
            )

        if data.payment_method in MANUAL_PAYMENT_METHODS and data.payment_account_id:
            account = await ContentRepository(self.session, PaymentAccount).get(
                data.payment_account_id
            )
            if not account or not account.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Selected payment account is not available",
                )

        products = await self.product_repository.get_products_by_ids(
            [line.product_id for line in data.items]
        )

        items: List[OrderItem] = []
        for line in data.items:
            product = self._ensure_purchasable(
                products.get(line.product_id), line.product_id, line.quantity
            )
            items.append(
                OrderItem(
                    product_id=product.id,
                    vendor_id=product.vendor_id,
                    title=product.name,
                    price=Decimal(product.price),
                    quantity=line.quantity,
                    shipping=Decimal(product.shipping_cost or 0),
                    image=product.image,
                    category_names=[product.category.name] if product.category else [],
                    attributes=line.attributes,
                    status=OrderStatus.PENDING,
                )
            )

        subtotal = sum((item.line_total for item in items), Decimal("0"))
        shipping_cost = self.business_rules.calculate_shipping(
            subtotal, (item.shipping for item in items)
        )

        order = Order(
            order_number=await self._unique_order_number(),
            user_id=current_user_id(current_user)
            if current_user and current_user.get("role") == UserRole.CUSTOMER
            else None,
            customer_name=data.customer_name,
            customer_email=data.customer_email.lower(),
            customer_phone=data.customer_phone,
            shipping_address=data.shipping_address,
            city=data.city,
            payment_method=data.payment_method,
            payment_account_id=data.payment_account_id,
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.PENDING,
            order_type=classify_order_type(item.vendor_id for item in items),
            total_amount=subtotal,
            shipping_cost=shipping_cost,
            notes=data.notes,
            items=items,
        )

        for line in data.items:
            products[line.product_id].stock -= line.quantity

        self.order_repository.add(order)
        await self.order_repository.commit()
        await self.order_repository.refresh(order)

        logger.info(
            "Order created successfully",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "user_id": order.user_id,
                "order_type": order.order_type,
                "total_amount": str(order.total_amount),
                "shipping_cost": str(order.shipping_cost),
                "item_count": len(items),
            },
        )
        return order

    # Customer views

    async def get_order(self, order_id: int) -> Order:
        order = await self.order_repository.get_order_by_id(order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Order not found"
            )
        return order

    async def get_order_for_user(
        self, order_id: int, current_user: Dict[str, Any]
    ) -> Order:
        order = await self.get_order(order_id)
        if current_user.get("role") != UserRole.ADMIN and not is_order_owner(
            order, current_user
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: You can only view your own orders",
            )
        return order

    async def list_user_orders(
        self, current_user: Dict[str, Any], **filters
    ) -> Tuple[List[Order], int]:
        email = (current_user.get("token_data") or {}).get("email")
        return await self.order_repository.list_orders(
            user_id=current_user_id(current_user), customer_email=email, **filters
        )

    async def list_orders(self, **filters) -> Tuple[List[Order], int]:
        return await self.order_repository.list_orders(**filters)

    async def track_order(self, order_number: str, email: str) -> Order:
        """Guest tracking; a wrong email looks the same as a wrong number."""
        order = await self.order_repository.get_order_by_number(order_number.strip().upper())
        if not order or order.customer_email.lower() != email.strip().lower():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Order not found"
            )
        return order

    async def get_vendor_orders(self, order_id: int) -> List[VendorOrder]:
        return await self.vendor_order_repository.get_for_parent(order_id)

    # Cancellation

    async def cancel_items(
        self,
        order_id: int,
        item_ids: Optional[List[int]],
        reason: Optional[str],
        current_user: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Cancel lines of an order that has not been split across vendors.

        `item_ids=None` cancels every remaining line.
        """
        order = await self.get_order(order_id)
        if not is_order_owner(order, current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: You can only cancel your own orders",
            )
        if order.status in CUSTOMER_LOCKED_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot cancel items of a {order.status} order",
            )
        if await self.vendor_order_repository.count_for_parent(order.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=FORWARDED_ORDER_MESSAGE,
            )

        if item_ids is None:
            item_ids = [item.id for item in order.active_items]
        requested = set(item_ids)
        items = [item for item in order.items if item.id in requested]
        missing = requested - {item.id for item in items}
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Order items not found: {sorted(missing)}",
            )
        already = [item.id for item in items if item.status == OrderStatus.CANCELLED]
        if already:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Items already cancelled: {already}",
            )

        now = utcnow()
        refund = Decimal("0")
        for item in items:
            refund += cancel_order_item(order, item, "customer", reason, now)
        await restore_stock(self.product_repository, items)
        recalculate_shipping(order, self.business_rules)

        previous_status = refresh_order_status(order, now)
        if order.status == OrderStatus.CANCELLED:
            order.cancelled_by = "customer"
            order.cancellation_reason = reason

        await self.order_repository.commit()
        await self.order_repository.refresh(order)

        logger.info(
            "Order items cancelled",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "cancelled_item_ids": sorted(requested),
                "refund_amount": str(refund),
                "remaining_total": str(order.total_amount),
                "order_status": order.status,
            },
        )
        await self.notification_service.notify_order_status_changed(
            order, previous_status, reason=reason
        )

        return {
            "cancelled_items": [item.id for item in items],
            "refund_amount": float(refund),
            "remaining_total": float(order.total_amount),
            "order_status": order.status,
            "order": self.to_response(order),
        }

    async def cancel_order(
        self, order_id: int, reason: Optional[str], current_user: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self.cancel_items(order_id, None, reason, current_user)

    # Admin

    async def update_order_status(
        self, order_id: int, data: OrderStatusUpdate, admin_id: Optional[int] = None
    ) -> Order:
        """
        Move an order (or its marketplace-handled lines) through the lifecycle.

        Lines already forwarded to vendors follow their vendor order instead;
        cancelling a forwarded order cancels the vendor orders that have not
        shipped and reverses their commissions.
        """
        order = await self.get_order(order_id)
        validate_transition(ADMIN_TRANSITIONS, order.status, data.status)

        vendor_orders = await self.vendor_order_repository.get_for_parent(order.id)
        forwarded_item_ids = {
            item_id for vendor_order in vendor_orders for item_id in vendor_order.order_item_ids
        }
        now = utcnow()

        if data.status == OrderStatus.CANCELLED:
            shipped = [
                vo.order_number
                for vo in vendor_orders
                if vo.status in (VendorOrderStatus.SHIPPED, VendorOrderStatus.DELIVERED)
            ]
            if shipped:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Vendor orders already shipped: {', '.join(shipped)}",
                )
            reason = data.admin_notes or "Cancelled by admin"
            for vendor_order in vendor_orders:
                if vendor_order.status == VendorOrderStatus.CANCELLED:
                    continue
                await self.commission_service.reverse_commission(vendor_order, reason)
                vendor_order.status = VendorOrderStatus.CANCELLED
                vendor_order.cancelled_by = "admin"
                vendor_order.cancelled_at = now
                vendor_order.cancellation_reason = reason

            cancelled = [item for item in order.items if item.status != OrderStatus.CANCELLED]
            for item in cancelled:
                cancel_order_item(order, item, "admin", reason, now)
            await restore_stock(self.product_repository, cancelled)
            order.cancelled_by = "admin"
            order.cancellation_reason = reason
            order.shipping_cost = Decimal("0")
        else:
            handled = [
                item
                for item in order.active_items
                if item.id not in forwarded_item_ids
            ]
            if not handled:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Order status is driven by its vendor orders",
                )
            for item in handled:
                item.status = data.status

        previous_status = refresh_order_status(order, now)
        if data.status == OrderStatus.DELIVERED and order.payment_method == "cod":
            order.payment_status = PaymentStatus.PAID
        if data.admin_notes:
            order.admin_notes = data.admin_notes

        await self.order_repository.commit()
        await self.order_repository.refresh(order)

        logger.info(
            "Order status updated",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "old_status": previous_status,
                "new_status": order.status,
                "admin_id": admin_id,
            },
        )
        await self.notification_service.notify_order_status_changed(
            order, previous_status, reason=data.admin_notes
        )
        return order

    async def update_payment_status(self, order_id: int, data: PaymentStatusUpdate) -> Order:
        order = await self.get_order(order_id)
        order.payment_status = data.payment_status
        await self.order_repository.commit()
        await self.order_repository.refresh(order)
        logger.info(
            "Payment status updated",
            extra={"order_id": order.id, "payment_status": order.payment_status},
        )
        return order

    async def attach_payment_receipt(
        self, order_id: int, receipt_path: str, current_user: Dict[str, Any]
    ) -> Order:
        order = await self.get_order(order_id)
        if not is_order_owner(order, current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: You can only update your own orders",
            )
        order.payment_receipt = receipt_path
        await self.order_repository.commit()
        await self.order_repository.refresh(order)
        return order

    # Responses

    def to_response(self, order: Order) -> Dict[str, Any]:
        return OrderResponse.model_validate(order).model_dump()

    async def to_detail_response(self, order: Order) -> Dict[str, Any]:
        response = self.to_response(order)
        response["vendor_orders"] = [
            VendorOrderResponse.model_validate(vendor_order).model_dump()
            for vendor_order in await self.get_vendor_orders(order.id)
        ]
        return response
