from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from ...schemas.order import VendorOrderStatusUpdate
from ...services.vendor_order_service import VendorOrderService, vendor_order_response
from ...utils.responses import build_pagination, success_response
from ..deps import VendorOrderServiceDep, VendorUserDep, subject_id

router = APIRouter(prefix="/vendor/orders")


@router.get("")
async def list_vendor_orders(
    status_filter: Optional[str] = Query(
        None, alias="status", pattern="^(processing|shipped|delivered|cancelled)$"
    ),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: VendorOrderService = VendorOrderServiceDep,
) -> Dict[str, Any]:
    vendor_orders, total = await service.list_for_vendor(
        subject_id(current_vendor),
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
    )
    return success_response(
        [vendor_order_response(vo) for vo in vendor_orders],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{vendor_order_id}")
async def get_vendor_order(
    vendor_order_id: int,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: VendorOrderService = VendorOrderServiceDep,
) -> Dict[str, Any]:
    vendor_order = await service.get_for_vendor(vendor_order_id, subject_id(current_vendor))
    return success_response(vendor_order_response(vendor_order))


@router.patch("/{vendor_order_id}/status")
async def update_vendor_order_status(
    vendor_order_id: int,
    data: VendorOrderStatusUpdate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: VendorOrderService = VendorOrderServiceDep,
) -> Dict[str, Any]:
    vendor_order = await service.update_status(
        vendor_order_id, subject_id(current_vendor), data
    )
    return success_response(
        vendor_order_response(vendor_order), f"Order marked {vendor_order.status}"
    )
