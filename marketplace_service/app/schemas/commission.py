from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommissionPaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: str = Field(..., min_length=2, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=100)
    admin_notes: Optional[str] = None


class CommissionTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    order_id: Optional[int] = None
    vendor_order_id: Optional[int] = None
    order_number: Optional[str] = None
    sale_amount: float
    amount: float
    note: Optional[str] = None
    created_at: datetime


class MonthlyCommissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: int
    vendor_name: Optional[str] = None
    year: int
    month: int
    total_orders: int
    total_sales: float
    total_commission: float
    paid_commission: float
    pending_commission: float
    payment_status: str
    last_payment_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    admin_notes: Optional[str] = None
    transactions: List[CommissionTransactionResponse] = []
