"""
Customer inquiry threads.

Customers (or guests) open threads under `/inquiries`; vendors work their
inbox under `/vendor/inquiries`.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, status

from ...schemas.inquiry import (
    InquiryAssign,
    InquiryBulkUpdate,
    InquiryCreate,
    InquiryFeedback,
    InquiryNoteCreate,
    InquiryReply,
    InquiryStatusUpdate,
)
from ...services.inquiry_service import InquiryService, convert_inquiry_response
from ...utils.responses import build_pagination, success_response
from ..deps import (
    CurrentUserDep,
    InquiryServiceDep,
    OptionalUserDep,
    VendorUserDep,
    subject_id,
)

router = APIRouter()

STATUS_PATTERN = "^(open|in_progress|waiting_customer|resolved|closed)$"
PRIORITY_PATTERN = "^(low|medium|high|urgent)$"


def vendor_display_name(current_vendor: Dict[str, Any]) -> str:
    return (current_vendor.get("token_data") or {}).get("name") or "Vendor"


# Customer side


@router.post("/inquiries", status_code=status.HTTP_201_CREATED)
async def create_inquiry(
    data: InquiryCreate,
    current_user: Optional[Dict[str, Any]] = OptionalUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.create_inquiry(data, current_user)
    return success_response(convert_inquiry_response(inquiry), "Inquiry submitted")


@router.get("/inquiries")
async def list_my_inquiries(
    status_filter: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Dict[str, Any] = CurrentUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiries, total = await service.list_customer_inquiries(
        current_user, status=status_filter, page=page, limit=limit
    )
    return success_response(
        [convert_inquiry_response(i) for i in inquiries],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/inquiries/{inquiry_id}")
async def get_my_inquiry(
    inquiry_id: str,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.open_for_customer(inquiry_id, current_user)
    return success_response(convert_inquiry_response(inquiry))


@router.post("/inquiries/{inquiry_id}/messages")
async def customer_reply(
    inquiry_id: str,
    data: InquiryReply,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.customer_reply(inquiry_id, current_user, data)
    return success_response(convert_inquiry_response(inquiry), "Reply sent")


@router.post("/inquiries/{inquiry_id}/feedback")
async def submit_feedback(
    inquiry_id: str,
    data: InquiryFeedback,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.submit_feedback(inquiry_id, current_user, data)
    return success_response(convert_inquiry_response(inquiry), "Thank you for your feedback")


# Vendor inbox


@router.get("/vendor/inquiries")
async def list_vendor_inquiries(
    status_filter: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    priority: Optional[str] = Query(None, pattern=PRIORITY_PATTERN),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("created_at", pattern="^(created_at|last_activity_at|priority|status)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiries, total = await service.list_vendor_inquiries(
        subject_id(current_vendor),
        status=status_filter,
        priority=priority,
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return success_response(
        [convert_inquiry_response(i, include_notes=True) for i in inquiries],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/vendor/inquiries/stats")
async def inquiry_stats(
    days: int = Query(30, ge=1, le=365),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.stats(subject_id(current_vendor), days=days))


@router.post("/vendor/inquiries/bulk")
async def bulk_update_inquiries(
    data: InquiryBulkUpdate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    result = await service.bulk_update(
        subject_id(current_vendor), data, vendor_display_name(current_vendor)
    )
    return success_response(result, f"{result['modified']} inquiries updated")


@router.get("/vendor/inquiries/{inquiry_id}")
async def get_vendor_inquiry(
    inquiry_id: str,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.open_for_vendor(inquiry_id, subject_id(current_vendor))
    return success_response(convert_inquiry_response(inquiry, include_notes=True))


@router.post("/vendor/inquiries/{inquiry_id}/messages")
async def vendor_reply(
    inquiry_id: str,
    data: InquiryReply,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.vendor_reply(
        inquiry_id,
        subject_id(current_vendor),
        vendor_display_name(current_vendor),
        data,
    )
    return success_response(
        convert_inquiry_response(inquiry, include_notes=True), "Reply sent"
    )


@router.patch("/vendor/inquiries/{inquiry_id}/status")
async def update_inquiry_status(
    inquiry_id: str,
    data: InquiryStatusUpdate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.update_status(
        inquiry_id,
        subject_id(current_vendor),
        data,
        vendor_display_name(current_vendor),
    )
    return success_response(
        convert_inquiry_response(inquiry, include_notes=True), "Status updated"
    )


@router.patch("/vendor/inquiries/{inquiry_id}/assign")
async def assign_inquiry(
    inquiry_id: str,
    data: InquiryAssign,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.assign(inquiry_id, subject_id(current_vendor), data.assigned_to)
    return success_response(
        convert_inquiry_response(inquiry, include_notes=True), "Inquiry assigned"
    )


@router.post("/vendor/inquiries/{inquiry_id}/notes")
async def add_internal_note(
    inquiry_id: str,
    data: InquiryNoteCreate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: InquiryService = InquiryServiceDep,
) -> Dict[str, Any]:
    inquiry = await service.add_note(
        inquiry_id,
        subject_id(current_vendor),
        data.note,
        vendor_display_name(current_vendor),
    )
    return success_response(
        convert_inquiry_response(inquiry, include_notes=True), "Note added"
    )
