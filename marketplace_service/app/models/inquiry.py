from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import MarketplaceBaseModel


class InquiryStatus:
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_CUSTOMER = "waiting_customer"
    RESOLVED = "resolved"
    CLOSED = "closed"

    ALL = (OPEN, IN_PROGRESS, WAITING_CUSTOMER, RESOLVED, CLOSED)
    FINISHED = (RESOLVED, CLOSED)


class InquiryCategory:
    ALL = (
        "product_inquiry",
        "order_support",
        "shipping",
        "return_refund",
        "technical",
        "billing",
        "general",
    )


class InquiryPriority:
    ALL = ("low", "medium", "high", "urgent")


class MessageSender:
    CUSTOMER = "customer"
    VENDOR = "vendor"


class CustomerInquiry(MarketplaceBaseModel):
    __tablename__ = "customer_inquiries"

    inquiry_id: Mapped[str] = mapped_column(String(40), unique=True, index=True)

    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), index=True)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    vendor_id: Mapped[int] = mapped_column(
        ForeignKey("vendors.id", ondelete="CASCADE"), index=True
    )

    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(30), default="general")
    priority: Mapped[str] = mapped_column(String(10), default="medium", index=True)
    related_product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    related_order_id: Mapped[int | None] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20), default=InquiryStatus.OPEN, nullable=False, index=True
    )

    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    resolution_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # Minutes between creation and resolution
    resolution_time: Mapped[int | None] = mapped_column(Integer, nullable=True)

    feedback_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    feedback_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    source: Mapped[str] = mapped_column(String(20), default="website")
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    first_response_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    last_activity_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    messages: Mapped[List["InquiryMessage"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InquiryMessage.id",
    )
    internal_notes: Mapped[List["InquiryNote"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InquiryNote.id",
    )

    @property
    def response_time(self) -> Optional[int]:
        """Minutes until the vendor first answered."""
        if not self.first_response_at:
            return None
        return int((self.first_response_at - self.created_at).total_seconds() // 60)

    @property
    def total_resolution_time(self) -> Optional[int]:
        if not self.resolved_at:
            return None
        return int((self.resolved_at - self.created_at).total_seconds() // 60)

    @property
    def unread_messages_count(self) -> int:
        """Unread customer messages, as seen by the vendor."""
        return sum(
            1
            for message in self.messages
            if message.sender == MessageSender.CUSTOMER and not message.is_read
        )

    @property
    def last_message(self) -> Optional["InquiryMessage"]:
        return self.messages[-1] if self.messages else None


class InquiryMessage(MarketplaceBaseModel):
    __tablename__ = "inquiry_messages"

    inquiry_pk: Mapped[int] = mapped_column(
        ForeignKey("customer_inquiries.id", ondelete="CASCADE"), index=True
    )
    message_id: Mapped[str] = mapped_column(String(40), unique=True)
    sender: Mapped[str] = mapped_column(String(10), nullable=False)
    sender_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(String(2000), nullable=False)
    attachments: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_read: Mapped[bool] = mapped_column(default=False, nullable=False)


class InquiryNote(MarketplaceBaseModel):
    __tablename__ = "inquiry_notes"

    inquiry_pk: Mapped[int] = mapped_column(
        ForeignKey("customer_inquiries.id", ondelete="CASCADE"), index=True
    )
    note: Mapped[str] = mapped_column(Text, nullable=False)
    added_by: Mapped[str] = mapped_column(String(255), nullable=False)
