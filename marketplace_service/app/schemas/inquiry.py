from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models.inquiry import InquiryCategory, InquiryPriority, InquiryStatus


class InquiryCreate(BaseModel):
    vendor_id: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=2, max_length=255)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=50)
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    category: str = "general"
    priority: str = "medium"
    related_product_id: Optional[int] = Field(None, gt=0)
    related_order_id: Optional[int] = Field(None, gt=0)
    source: str = Field("website", max_length=20)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if v not in InquiryCategory.ALL:
            raise ValueError(f"category must be one of {', '.join(InquiryCategory.ALL)}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v not in InquiryPriority.ALL:
            raise ValueError(f"priority must be one of {', '.join(InquiryPriority.ALL)}")
        return v


class InquiryReply(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    attachments: Optional[List[Dict[str, Any]]] = None


class InquiryStatusUpdate(BaseModel):
    status: str
    resolution_summary: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in InquiryStatus.ALL:
            raise ValueError("Invalid status value")
        return v


class InquiryAssign(BaseModel):
    assigned_to: str = Field(..., min_length=1, max_length=255)


class InquiryNoteCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=2000)


class InquiryFeedback(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class InquiryBulkUpdate(BaseModel):
    inquiry_ids: List[str] = Field(default_factory=list)
    action: str
    value: str


class InquiryMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    message_id: str
    sender: str
    sender_name: str
    content: str
    attachments: Optional[List[Dict[str, Any]]] = None
    timestamp: datetime
    is_read: bool


class InquiryNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    note: str
    added_by: str
    created_at: datetime


class InquiryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    inquiry_id: str
    customer_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    vendor_id: int
    subject: str
    category: str
    priority: str
    related_product_id: Optional[int] = None
    related_order_id: Optional[int] = None
    status: str
    assigned_to: Optional[str] = None
    assigned_at: Optional[datetime] = None
    resolution_summary: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_time: Optional[int] = None
    feedback_rating: Optional[int] = None
    feedback_comment: Optional[str] = None
    source: str
    tags: Optional[List[str]] = None
    first_response_at: Optional[datetime] = None
    last_activity_at: datetime
    response_time: Optional[int] = None
    unread_messages_count: int
    messages: List[InquiryMessageResponse]
    created_at: datetime


class VendorInquiryResponse(InquiryResponse):
    internal_notes: List[InquiryNoteResponse]
