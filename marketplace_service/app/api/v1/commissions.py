from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from ...schemas.commission import CommissionPaymentRequest
from ...services.commission_service import CommissionService, convert_commission_response
from ...utils.responses import build_pagination, success_response
from ..deps import AdminUserDep, CommissionServiceDep, VendorUserDep, subject_id

router = APIRouter()

PAYMENT_STATUS_PATTERN = "^(pending|partial|paid)$"


@router.get("/admin/commissions")
async def list_commissions(
    vendor_id: Optional[int] = Query(None, gt=0),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    payment_status: Optional[str] = Query(None, pattern=PAYMENT_STATUS_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: CommissionService = CommissionServiceDep,
) -> Dict[str, Any]:
    ledgers, total = await service.list_commissions(
        vendor_id=vendor_id,
        year=year,
        month=month,
        payment_status=payment_status,
        page=page,
        limit=limit,
    )
    return success_response(
        [convert_commission_response(ledger) for ledger in ledgers],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/admin/commissions/summary")
async def commission_summary(
    vendor_id: Optional[int] = Query(None, gt=0),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    admin: Dict[str, Any] = AdminUserDep,
    service: CommissionService = CommissionServiceDep,
) -> Dict[str, Any]:
    return success_response(
        await service.summary(vendor_id=vendor_id, year=year, month=month)
    )


@router.post("/admin/commissions/{commission_id}/payments")
async def record_commission_payment(
    commission_id: int,
    data: CommissionPaymentRequest,
    admin: Dict[str, Any] = AdminUserDep,
    service: CommissionService = CommissionServiceDep,
) -> Dict[str, Any]:
    ledger = await service.mark_paid(
        commission_id,
        data.amount,
        data.payment_method,
        payment_reference=data.payment_reference,
        admin_notes=data.admin_notes,
    )
    return success_response(convert_commission_response(ledger), "Payment recorded")


@router.get("/vendor/commissions")
async def my_commissions(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: CommissionService = CommissionServiceDep,
) -> Dict[str, Any]:
    vendor_id = subject_id(current_vendor)
    ledgers, total = await service.list_commissions(
        vendor_id=vendor_id, year=year, page=page, limit=limit
    )
    return success_response(
        {
            "summary": await service.summary(vendor_id=vendor_id, year=year),
            "history": [convert_commission_response(ledger) for ledger in ledgers],
        },
        pagination=build_pagination(page, limit, total),
    )
