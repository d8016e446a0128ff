from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CheckoutItem(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0, le=99)
    attributes: Optional[Dict[str, Any]] = None


class CheckoutDetails(BaseModel):
    """Who is buying and how they pay"""

    customer_name: str = Field(..., min_length=2, max_length=255)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=5, max_length=50)
    shipping_address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2, max_length=100)
    payment_method: str = Field(..., pattern="^(cod|bank_transfer|jazzcash|easypaisa)$")
    payment_account_id: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None


class CheckoutRequest(CheckoutDetails):
    items: List[CheckoutItem] = Field(..., min_length=1)

    @field_validator("items")
    @classmethod
    def validate_unique_products(cls, v):
        product_ids = [item.product_id for item in v]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Each product may only appear once per order")
        return v


class CancelItemsRequest(BaseModel):
    item_ids: List[int] = Field(..., min_length=1)
    reason: Optional[str] = Field(None, max_length=500)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class OrderStatusUpdate(BaseModel):
    status: str
    admin_notes: Optional[str] = None


class PaymentStatusUpdate(BaseModel):
    payment_status: str = Field(..., pattern="^(pending|paid|refunded)$")


class ForwardOrderRequest(BaseModel):
    vendor_ids: Optional[List[int]] = None
    admin_notes: Optional[str] = None


class VendorOrderStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(processing|shipped|delivered|cancelled)$")
    tracking_number: Optional[str] = Field(None, max_length=100)
    vendor_notes: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=500)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    vendor_id: Optional[int] = None
    title: str
    price: float
    quantity: int
    shipping: float
    image: Optional[str] = None
    status: str
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    city: str
    payment_method: str
    payment_status: str
    status: str
    order_type: str
    total_amount: float
    shipping_cost: float
    grand_total: float
    is_forwarded_to_vendors: bool
    forwarded_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: datetime


class VendorOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_order_id: int
    order_number: str
    vendor_id: int
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    city: str
    items: List[Dict[str, Any]]
    items_total: float
    shipping_cost: float
    total_amount: float
    commission_rate: float
    commission_amount: float
    commission_reversed: bool
    status: str
    tracking_number: Optional[str] = None
    vendor_notes: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    forwarded_at: datetime
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
