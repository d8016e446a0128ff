from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from ...schemas.order import ForwardOrderRequest, OrderStatusUpdate, PaymentStatusUpdate
from ...services.order_service import OrderService
from ...services.vendor_order_service import (
    OrderForwardingService,
    VendorOrderService,
    vendor_order_response,
)
from ...utils.logging import setup_marketplace_logging
from ...utils.responses import build_pagination, success_response
from ..deps import (
    AdminUserDep,
    CorrelationIdDep,
    ForwardingServiceDep,
    OrderServiceDep,
    VendorOrderServiceDep,
    subject_id,
)

logger = setup_marketplace_logging("admin_orders_api")
router = APIRouter(prefix="/admin/orders")


@router.get("")
async def list_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    order_type: Optional[str] = Query(None, pattern="^(admin_only|vendor_only|mixed)$"),
    search: Optional[str] = Query(None, max_length=100),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    orders, total = await service.list_orders(
        status=status_filter,
        order_type=order_type,
        search=search,
        created_from=created_from,
        created_to=created_to,
        page=page,
        limit=limit,
    )
    return success_response(
        [service.to_response(o) for o in orders],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    order = await service.get_order(order_id)
    return success_response(await service.to_detail_response(order))


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    order = await service.update_order_status(order_id, data, admin_id=subject_id(admin))
    logger.info(
        f"Order {order.order_number} moved to {order.status}",
        extra={"correlation_id": correlation_id},
    )
    return success_response(service.to_response(order), "Order status updated")


@router.patch("/{order_id}/payment")
async def update_payment_status(
    order_id: int,
    data: PaymentStatusUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    order = await service.update_payment_status(order_id, data)
    return success_response(service.to_response(order), "Payment status updated")


@router.get("/{order_id}/forwarding")
async def forwarding_candidates(
    order_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    orders: OrderService = OrderServiceDep,
    vendor_orders: VendorOrderService = VendorOrderServiceDep,
) -> Dict[str, Any]:
    """Vendors on the order and whether each has been forwarded already"""
    order = await orders.get_order(order_id)
    return success_response(await vendor_orders.list_vendors_for_forwarding(order))


@router.post("/{order_id}/forward")
async def forward_order(
    order_id: int,
    data: Optional[ForwardOrderRequest] = None,
    admin: Dict[str, Any] = AdminUserDep,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: OrderForwardingService = ForwardingServiceDep,
) -> Dict[str, Any]:
    data = data or ForwardOrderRequest()
    order, created = await service.forward_order(
        order_id,
        vendor_ids=data.vendor_ids,
        admin_notes=data.admin_notes,
        admin_id=subject_id(admin),
    )
    logger.info(
        f"Order {order.order_number} forwarded to {len(created)} vendor(s)",
        extra={"correlation_id": correlation_id},
    )
    return success_response(
        {
            "order_id": order.id,
            "order_status": order.status,
            "vendor_orders": [vendor_order_response(vo) for vo in created],
        },
        f"Order forwarded to {len(created)} vendor(s)",
    )
