from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .order import CheckoutDetails


class CartItemAdd(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1, le=99)
    attributes: Optional[Dict[str, Any]] = None


class CartItemUpdate(BaseModel):
    # Zero removes the line
    quantity: int = Field(..., ge=0, le=99)


class CartCheckoutRequest(CheckoutDetails):
    pass


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    title: Optional[str] = None
    slug: Optional[str] = None
    image: Optional[str] = None
    vendor_id: Optional[int] = None
    price: float
    current_price: Optional[float] = None
    quantity: int
    line_total: float
    shipping: float = 0
    stock: int = 0
    in_stock: bool = False
    available: bool = False
    attributes: Optional[Dict[str, Any]] = None


class CartResponse(BaseModel):
    id: int
    items: List[CartItemResponse] = []
    total_items: int
    total_amount: float
