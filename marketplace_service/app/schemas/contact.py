from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

CONTACT_TYPES = "^(general|support|business|technical|billing|feedback)$"
CONTACT_STATUSES = "^(new|in_progress|resolved|closed)$"
PRIORITIES = "^(low|medium|high|urgent)$"


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    subject: str = Field(..., min_length=5, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)
    inquiry_type: str = Field("general", pattern=CONTACT_TYPES)

    @field_validator("name", "subject", "message")
    @classmethod
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError("field cannot be empty or whitespace only")
        return v.strip()


class ContactUpdate(BaseModel):
    status: Optional[str] = Field(None, pattern=CONTACT_STATUSES)
    priority: Optional[str] = Field(None, pattern=PRIORITIES)
    admin_notes: Optional[str] = None
    admin_response: Optional[str] = Field(None, max_length=5000)
    assigned_to: Optional[int] = Field(None, gt=0)


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    inquiry_type: str
    status: str
    priority: str
    assigned_to: Optional[int] = None
    admin_notes: Optional[str] = None
    admin_response: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class NewsletterSubscribe(BaseModel):
    email: EmailStr
    source: str = Field("website_footer", pattern="^(website_footer|popup|checkout|manual)$")


class NewsletterUnsubscribe(BaseModel):
    email: EmailStr


class NewsletterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    is_active: bool
    source: str
    subscribed_at: datetime
    unsubscribed_at: Optional[datetime] = None
