from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BannerCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = None
    link: Optional[str] = None
    button_text: Optional[str] = Field(None, max_length=100)
    sort_order: int = 0
    is_active: bool = True


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = None
    link: Optional[str] = None
    button_text: Optional[str] = Field(None, max_length=100)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("title", "sort_order", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class BannerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    subtitle: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    button_text: Optional[str] = None
    sort_order: int
    is_active: bool


class CardCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    category_id: Optional[int] = Field(None, gt=0)
    sort_order: int = 0
    is_active: bool = True


class CardUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    category_id: Optional[int] = Field(None, gt=0)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("title", "sort_order", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class CardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    category_id: Optional[int] = None
    sort_order: int
    is_active: bool


class HomepageCategoryCreate(BaseModel):
    category_id: int = Field(..., gt=0)
    display_name: Optional[str] = Field(None, max_length=255)
    image: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class HomepageCategoryUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=255)
    image: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("sort_order", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class HomepageCategoryResponse(BaseModel):
    id: int
    category_id: int
    name: str
    slug: Optional[str] = None
    image: Optional[str] = None
    sort_order: int
    is_active: bool


class PaymentAccountCreate(BaseModel):
    account_type: str = Field(..., pattern="^(bank|jazzcash|easypaisa|other)$")
    account_title: str = Field(..., min_length=2, max_length=255)
    account_number: str = Field(..., min_length=4, max_length=100)
    bank_name: Optional[str] = Field(None, max_length=255)
    iban: Optional[str] = Field(None, max_length=64)
    instructions: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class PaymentAccountUpdate(BaseModel):
    account_type: Optional[str] = Field(None, pattern="^(bank|jazzcash|easypaisa|other)$")
    account_title: Optional[str] = Field(None, min_length=2, max_length=255)
    account_number: Optional[str] = Field(None, min_length=4, max_length=100)
    bank_name: Optional[str] = Field(None, max_length=255)
    iban: Optional[str] = Field(None, max_length=64)
    instructions: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator(
        "account_type", "account_title", "account_number", "sort_order", "is_active"
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class PaymentAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_type: str
    account_title: str
    account_number: str
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    instructions: Optional[str] = None
    sort_order: int
    is_active: bool


class VisitPlaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    image: str
    created_at: datetime
    updated_at: datetime
