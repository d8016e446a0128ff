"""
Customer inquiry threads between shoppers and vendors.

Every mutation is committed immediately.
"""

import secrets
import time
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.base import utcnow
from ..models.inquiry import (
    CustomerInquiry,
    InquiryCategory,
    InquiryMessage,
    InquiryNote,
    InquiryPriority,
    InquiryStatus,
    MessageSender,
)
from ..models.user import UserRole, VendorStatus
from ..repository.inquiry_repository import InquiryRepository
from ..repository.user_repository import VendorRepository
from ..schemas.inquiry import (
    InquiryBulkUpdate,
    InquiryCreate,
    InquiryFeedback,
    InquiryReply,
    InquiryResponse,
    InquiryStatusUpdate,
    VendorInquiryResponse,
)
from ..utils.logging import setup_marketplace_logging as setup_logging
from .notification_service import NotificationService, get_notification_service

settings = get_settings()
logger = setup_logging("inquiry_service", log_level=settings.LOG_LEVEL)

INQUIRY_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    InquiryStatus.OPEN: (
        InquiryStatus.IN_PROGRESS,
        InquiryStatus.WAITING_CUSTOMER,
        InquiryStatus.RESOLVED,
        InquiryStatus.CLOSED,
    ),
    InquiryStatus.IN_PROGRESS: (
        InquiryStatus.WAITING_CUSTOMER,
        InquiryStatus.RESOLVED,
        InquiryStatus.CLOSED,
    ),
    InquiryStatus.WAITING_CUSTOMER: (
        InquiryStatus.IN_PROGRESS,
        InquiryStatus.RESOLVED,
        InquiryStatus.CLOSED,
    ),
    InquiryStatus.RESOLVED: (InquiryStatus.CLOSED, InquiryStatus.IN_PROGRESS),
    InquiryStatus.CLOSED: (),
}

BULK_ACTIONS = ("status", "priority", "assign")


def generate_message_id() -> str:
    return f"MSG-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def generate_inquiry_id(sequence: int) -> str:
    # The random tail keeps ids apart when two inquiries share a count
    return f"INQ-{int(time.time() * 1000)}-{sequence:04d}-{secrets.token_hex(3).upper()}"


def minutes_between(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() // 60))


def apply_status(
    inquiry: CustomerInquiry,
    new_status: str,
    actor: str,
    now: datetime,
    resolution_summary: Optional[str] = None,
) -> None:
    """Set the status and keep the resolution fields consistent with it."""
    inquiry.status = new_status
    if new_status in InquiryStatus.FINISHED:
        if resolution_summary:
            inquiry.resolution_summary = resolution_summary
        if not inquiry.resolved_at:
            inquiry.resolved_at = now
            inquiry.resolved_by = actor
            inquiry.resolution_time = minutes_between(inquiry.created_at, now)
    elif inquiry.resolved_at:
        # Reopened
        inquiry.resolved_at = None
        inquiry.resolved_by = None
        inquiry.resolution_time = None
    inquiry.last_activity_at = now


def _average(values: List[float]) -> Optional[float]:
    return round(sum(values) / len(values), 2) if values else None


class InquiryService:
    def __init__(
        self,
        session: AsyncSession,
        notification_service: Optional[NotificationService] = None,
    ):
        self.session = session
        self.repository = InquiryRepository(session)
        self.vendor_repository = VendorRepository(session)
        self.notification_service = notification_service or get_notification_service()

    async def _generate_inquiry_id(self) -> str:
        count = await self.repository.count_all()
        return generate_inquiry_id(count + 1)

    async def _save(self, inquiry: CustomerInquiry) -> CustomerInquiry:
        await self.repository.commit()
        return await self.repository.refresh(inquiry)

    async def _get(self, inquiry_id: str) -> CustomerInquiry:
        inquiry = await self.repository.get_by_inquiry_id(inquiry_id)
        if not inquiry:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Inquiry not found"
            )
        return inquiry

    async def get_for_vendor(self, inquiry_id: str, vendor_id: int) -> CustomerInquiry:
        inquiry = await self._get(inquiry_id)
        if inquiry.vendor_id != vendor_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Inquiry not found"
            )
        return inquiry

    async def get_for_customer(
        self, inquiry_id: str, current_user: Dict[str, Any]
    ) -> CustomerInquiry:
        inquiry = await self._get(inquiry_id)
        email = (current_user.get("token_data") or {}).get("email") or ""
        owns = (
            inquiry.customer_id is not None
            and str(inquiry.customer_id) == str(current_user.get("user_id"))
        ) or (email and inquiry.customer_email.lower() == email.lower())
        if current_user.get("role") != UserRole.CUSTOMER or not owns:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: You can only view your own inquiries",
            )
        return inquiry

    async def create_inquiry(
        self, data: InquiryCreate, current_user: Optional[Dict[str, Any]] = None
    ) -> CustomerInquiry:
        """Open a thread with a vendor; the message becomes its first entry."""
        vendor = await self.vendor_repository.get_vendor_by_id(data.vendor_id)
        if not vendor or vendor.status != VendorStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found"
            )

        customer_id = None
        if current_user and current_user.get("role") == UserRole.CUSTOMER:
            customer_id = int(current_user["user_id"])

        now = utcnow()
        inquiry = CustomerInquiry(
            inquiry_id=await self._generate_inquiry_id(),
            customer_id=customer_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email.lower(),
            customer_phone=data.customer_phone,
            vendor_id=vendor.id,
            subject=data.subject,
            category=data.category,
            priority=data.priority,
            related_product_id=data.related_product_id,
            related_order_id=data.related_order_id,
            status=InquiryStatus.OPEN,
            source=data.source,
            last_activity_at=now,
            messages=[
                InquiryMessage(
                    message_id=generate_message_id(),
                    sender=MessageSender.CUSTOMER,
                    sender_name=data.customer_name,
                    content=data.message,
                    timestamp=now,
                )
            ],
        )
        self.repository.add(inquiry)
        inquiry = await self._save(inquiry)

        logger.info(
            "Inquiry created",
            extra={
                "inquiry_id": inquiry.inquiry_id,
                "vendor_id": inquiry.vendor_id,
                "customer_id": customer_id,
                "category": inquiry.category,
                "priority": inquiry.priority,
            },
        )
        return inquiry

    async def list_vendor_inquiries(self, vendor_id: int, **filters):
        return await self.repository.list_inquiries(vendor_id=vendor_id, **filters)

    async def list_customer_inquiries(self, current_user: Dict[str, Any], **filters):
        email = (current_user.get("token_data") or {}).get("email")
        return await self.repository.list_inquiries(
            customer_id=int(current_user["user_id"]), customer_email=email, **filters
        )

    async def open_for_vendor(self, inquiry_id: str, vendor_id: int) -> CustomerInquiry:
        """Vendor detail view; marks the customer's messages read."""
        inquiry = await self.get_for_vendor(inquiry_id, vendor_id)
        return await self._mark_read(inquiry, MessageSender.CUSTOMER)

    async def open_for_customer(
        self, inquiry_id: str, current_user: Dict[str, Any]
    ) -> CustomerInquiry:
        inquiry = await self.get_for_customer(inquiry_id, current_user)
        return await self._mark_read(inquiry, MessageSender.VENDOR)

    async def _mark_read(self, inquiry: CustomerInquiry, sender: str) -> CustomerInquiry:
        unread = [m for m in inquiry.messages if m.sender == sender and not m.is_read]
        if not unread:
            return inquiry
        for message in unread:
            message.is_read = True
        return await self._save(inquiry)

    async def vendor_reply(
        self,
        inquiry_id: str,
        vendor_id: int,
        vendor_name: str,
        data: InquiryReply,
    ) -> CustomerInquiry:
        inquiry = await self.get_for_vendor(inquiry_id, vendor_id)
        if inquiry.status == InquiryStatus.CLOSED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reply to a closed inquiry",
            )

        now = utcnow()
        inquiry.messages.append(
            InquiryMessage(
                message_id=generate_message_id(),
                sender=MessageSender.VENDOR,
                sender_name=vendor_name,
                content=data.content,
                attachments=data.attachments,
                timestamp=now,
            )
        )
        if inquiry.first_response_at is None:
            inquiry.first_response_at = now
        if inquiry.status == InquiryStatus.OPEN:
            inquiry.status = InquiryStatus.IN_PROGRESS
        inquiry.last_activity_at = now
        inquiry = await self._save(inquiry)

        logger.info(
            "Vendor replied to inquiry",
            extra={
                "inquiry_id": inquiry.inquiry_id,
                "vendor_id": vendor_id,
                "inquiry_status": inquiry.status,
                "response_minutes": inquiry.response_time,
            },
        )
        await self.notification_service.notify_inquiry_reply(inquiry, vendor_name, data.content)
        return inquiry

    async def customer_reply(
        self, inquiry_id: str, current_user: Dict[str, Any], data: InquiryReply
    ) -> CustomerInquiry:
        inquiry = await self.get_for_customer(inquiry_id, current_user)
        if inquiry.status == InquiryStatus.CLOSED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reply to a closed inquiry",
            )

        now = utcnow()
        inquiry.messages.append(
            InquiryMessage(
                message_id=generate_message_id(),
                sender=MessageSender.CUSTOMER,
                sender_name=inquiry.customer_name,
                content=data.content,
                attachments=data.attachments,
                timestamp=now,
            )
        )
        if inquiry.status in (InquiryStatus.WAITING_CUSTOMER, InquiryStatus.RESOLVED):
            apply_status(inquiry, InquiryStatus.IN_PROGRESS, inquiry.customer_name, now)
        inquiry.last_activity_at = now
        return await self._save(inquiry)

    async def update_status(
        self,
        inquiry_id: str,
        vendor_id: int,
        data: InquiryStatusUpdate,
        actor: str,
    ) -> CustomerInquiry:
        inquiry = await self.get_for_vendor(inquiry_id, vendor_id)
        if data.status not in INQUIRY_TRANSITIONS.get(inquiry.status, ()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition from {inquiry.status} to {data.status}",
            )
        old_status = inquiry.status
        apply_status(inquiry, data.status, actor, utcnow(), data.resolution_summary)
        inquiry = await self._save(inquiry)

        logger.info(
            "Inquiry status updated",
            extra={
                "inquiry_id": inquiry.inquiry_id,
                "old_status": old_status,
                "new_status": inquiry.status,
                "resolution_time": inquiry.resolution_time,
            },
        )
        return inquiry

    async def assign(
        self, inquiry_id: str, vendor_id: int, assigned_to: str
    ) -> CustomerInquiry:
        inquiry = await self.get_for_vendor(inquiry_id, vendor_id)
        now = utcnow()
        inquiry.assigned_to = assigned_to
        inquiry.assigned_at = now
        inquiry.last_activity_at = now
        return await self._save(inquiry)

    async def add_note(
        self, inquiry_id: str, vendor_id: int, note: str, added_by: str
    ) -> CustomerInquiry:
        inquiry = await self.get_for_vendor(inquiry_id, vendor_id)
        inquiry.internal_notes.append(InquiryNote(note=note, added_by=added_by))
        inquiry.last_activity_at = utcnow()
        return await self._save(inquiry)

    async def submit_feedback(
        self, inquiry_id: str, current_user: Dict[str, Any], data: InquiryFeedback
    ) -> CustomerInquiry:
        inquiry = await self.get_for_customer(inquiry_id, current_user)
        if inquiry.status not in InquiryStatus.FINISHED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Feedback can only be given once the inquiry is resolved",
            )
        if inquiry.feedback_rating is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Feedback has already been submitted",
            )

        now = utcnow()
        inquiry.feedback_rating = data.rating
        inquiry.feedback_comment = data.comment
        inquiry.feedback_submitted_at = now
        inquiry.last_activity_at = now
        inquiry = await self._save(inquiry)

        logger.info(
            "Inquiry feedback submitted",
            extra={"inquiry_id": inquiry.inquiry_id, "rating": data.rating},
        )
        return inquiry

    async def stats(self, vendor_id: int, days: int = 30) -> Dict[str, Any]:
        """Volume, speed and satisfaction figures for a vendor's inbox."""
        now = utcnow()
        since = (now - timedelta(days=days - 1)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        counts = await self.repository.status_counts(vendor_id)
        inquiries = await self.repository.list_for_vendor_since(vendor_id)

        response_times = [
            float(i.response_time) for i in inquiries if i.response_time is not None
        ]
        resolution_times = [
            float(i.resolution_time) for i in inquiries if i.resolution_time is not None
        ]
        ratings = [float(i.feedback_rating) for i in inquiries if i.feedback_rating]

        categories = Counter(i.category for i in inquiries)
        daily = Counter(
            i.created_at.strftime("%Y-%m-%d") for i in inquiries if i.created_at >= since
        )
        trend = [
            {
                "date": (since + timedelta(days=offset)).strftime("%Y-%m-%d"),
                "count": daily.get((since + timedelta(days=offset)).strftime("%Y-%m-%d"), 0),
            }
            for offset in range(days)
        ]

        return {
            "total": sum(counts.values()),
            "by_status": {state: counts.get(state, 0) for state in InquiryStatus.ALL},
            "open": sum(
                counts.get(state, 0)
                for state in (
                    InquiryStatus.OPEN,
                    InquiryStatus.IN_PROGRESS,
                    InquiryStatus.WAITING_CUSTOMER,
                )
            ),
            "resolved": sum(counts.get(state, 0) for state in InquiryStatus.FINISHED),
            "avg_response_minutes": _average(response_times),
            "avg_resolution_minutes": _average(resolution_times),
            "avg_rating": _average(ratings),
            "feedback_count": len(ratings),
            "unread_messages": sum(i.unread_messages_count for i in inquiries),
            "category_breakdown": {
                category: categories.get(category, 0) for category in InquiryCategory.ALL
            },
            "daily_trend": trend,
        }

    async def bulk_update(
        self, vendor_id: int, data: InquiryBulkUpdate, actor: str
    ) -> Dict[str, int]:
        if not data.inquiry_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="No inquiries selected"
            )
        if data.action not in BULK_ACTIONS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid action. Use one of: {', '.join(BULK_ACTIONS)}",
            )
        if data.action == "status" and data.value not in InquiryStatus.ALL:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status value"
            )
        if data.action == "priority" and data.value not in InquiryPriority.ALL:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid priority value"
            )

        inquiries = await self.repository.list_for_vendor_by_ids(vendor_id, data.inquiry_ids)
        now = utcnow()
        modified = 0
        for inquiry in inquiries:
            if data.action == "status":
                # Illegal transitions are left untouched
                if data.value not in INQUIRY_TRANSITIONS.get(inquiry.status, ()):
                    continue
                apply_status(inquiry, data.value, actor, now)
            elif data.action == "priority":
                if inquiry.priority == data.value:
                    continue
                inquiry.priority = data.value
                inquiry.last_activity_at = now
            else:
                inquiry.assigned_to = data.value
                inquiry.assigned_at = now
                inquiry.last_activity_at = now
            modified += 1

        await self.repository.commit()
        logger.info(
            "Inquiries bulk updated",
            extra={
                "vendor_id": vendor_id,
                "action": data.action,
                "matched": len(inquiries),
                "modified": modified,
            },
        )
        return {"matched": len(inquiries), "modified": modified}


def convert_inquiry_response(
    inquiry: CustomerInquiry, include_notes: bool = False
) -> Dict[str, Any]:
    schema = VendorInquiryResponse if include_notes else InquiryResponse
    return schema.model_validate(inquiry).model_dump()
