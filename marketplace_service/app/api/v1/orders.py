"""Checkout, order history, tracking and customer cancellations."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status

from ...schemas.order import CancelItemsRequest, CancelRequest, CheckoutRequest
from ...services.order_service import OrderService, is_order_owner
from ...services.storage_service import UploadStorage
from ...services.vendor_order_service import VendorOrderService
from ...utils.logging import setup_marketplace_logging
from ...utils.responses import build_pagination, success_response
from ..deps import (
    CorrelationIdDep,
    CurrentUserDep,
    OptionalUserDep,
    OrderServiceDep,
    StorageDep,
    VendorOrderServiceDep,
)

logger = setup_marketplace_logging("orders_api")
router = APIRouter(prefix="/orders")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    data: CheckoutRequest,
    current_user: Optional[Dict[str, Any]] = OptionalUserDep,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    """Place an order as a signed-in customer or a guest"""
    order = await service.create_order(data, current_user)
    logger.info(
        f"Order placed: {order.order_number}",
        extra={"correlation_id": correlation_id, "order_id": order.id},
    )
    return success_response(service.to_response(order), "Order placed successfully")


@router.get("")
async def list_my_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Dict[str, Any] = CurrentUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    orders, total = await service.list_user_orders(
        current_user, status=status_filter, page=page, limit=limit
    )
    return success_response(
        [service.to_response(o) for o in orders],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/track")
async def track_order(
    order_number: str = Query(..., min_length=5),
    email: str = Query(..., min_length=3),
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    order = await service.track_order(order_number, email)
    return success_response(await service.to_detail_response(order))


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    order = await service.get_order_for_user(order_id, current_user)
    return success_response(await service.to_detail_response(order))


@router.post("/{order_id}/cancel-items")
async def cancel_order_items(
    order_id: int,
    data: CancelItemsRequest,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    result = await service.cancel_items(order_id, data.item_ids, data.reason, current_user)
    return success_response(result, f"{len(result['cancelled_items'])} item(s) cancelled")


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    data: CancelRequest,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    result = await service.cancel_order(order_id, data.reason, current_user)
    return success_response(result, "Order cancelled")


@router.post("/vendor-orders/{vendor_order_id}/cancel")
async def cancel_vendor_part(
    vendor_order_id: int,
    data: CancelRequest,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: VendorOrderService = VendorOrderServiceDep,
) -> Dict[str, Any]:
    """Cancel one vendor's part of a forwarded order"""
    result = await service.cancel_by_customer(vendor_order_id, data.reason, current_user)
    return success_response(result, "Vendor order cancelled")


@router.post("/{order_id}/receipt")
async def upload_payment_receipt(
    order_id: int,
    file: UploadFile = File(...),
    current_user: Dict[str, Any] = CurrentUserDep,
    service: OrderService = OrderServiceDep,
    storage: UploadStorage = StorageDep,
) -> Dict[str, Any]:
    order = await service.get_order(order_id)
    if not is_order_owner(order, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: You can only update your own orders",
        )
    stored = await storage.save_image(file, "receipts", order.order_number, optimize=False)
    previous = order.payment_receipt
    order = await service.attach_payment_receipt(order_id, stored["path"], current_user)
    if previous and previous != order.payment_receipt:
        storage.delete(previous)
    return success_response(service.to_response(order), "Receipt uploaded")
