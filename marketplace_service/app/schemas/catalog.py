from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = Field(None, gt=0)
    image: Optional[str] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("name cannot be empty or whitespace only")
        return v.strip()


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = Field(None, gt=0)
    image: Optional[str] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("name", "sort_order", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    image: Optional[str] = None
    image_alt: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    sort_order: int
    is_active: bool


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, max_length=255)
    price: Decimal = Field(..., gt=0, description="Unit price (must be positive)")
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    stock: int = Field(0, ge=0)
    category_id: Optional[int] = Field(None, gt=0)
    images: Optional[List[str]] = []
    tags: Optional[List[str]] = []
    alt_text: Optional[str] = Field(None, max_length=255)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty or whitespace only")
        return v.strip()


class ProductCreate(ProductBase):
    image: Optional[str] = None


class AdminProductCreate(ProductCreate):
    vendor_id: Optional[int] = Field(None, gt=0)
    is_featured: bool = False
    is_premium: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, max_length=255)
    price: Optional[Decimal] = Field(None, gt=0)
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, gt=0)
    image: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    alt_text: Optional[str] = Field(None, max_length=255)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "price", "shipping_cost", "stock", "is_active")
    @classmethod
    def reject_null(cls, v):
        # Omit a field to leave it unchanged; these columns are NOT NULL
        if v is None:
            raise ValueError("field cannot be null")
        return v


class ProductApprovalUpdate(BaseModel):
    approval_status: str = Field(..., pattern="^(approved|rejected)$")
    rejection_reason: Optional[str] = None


class ProductHighlightUpdate(BaseModel):
    is_featured: Optional[bool] = None
    is_premium: Optional[bool] = None
    featured_order: Optional[int] = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    brand: Optional[str] = None
    price: float
    shipping_cost: float
    stock: int
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    image: Optional[str] = None
    images: List[str] = []
    alt_text: Optional[str] = None
    seo_keywords: List[str] = []
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    tags: List[str] = []
    is_active: bool
    is_featured: bool
    is_premium: bool
    approval_status: str
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
