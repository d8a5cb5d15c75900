from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock
from dcc_sfa.schemas.line_item import LineItemIn, LineItemResponse

ORDER_STATUSES = ("draft", "pending", "confirmed", "processing", "shipped", "delivered", "cancelled")


class OrderBase(BaseModel):
    customer_id: int
    salesperson_id: Optional[int] = None
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    status: str = Field("draft", pattern="^(" + "|".join(ORDER_STATUSES) + ")$")
    priority: str = Field("medium", max_length=20)
    order_type: str = Field("regular", max_length=20)
    payment_method: str = Field("cash", max_length=50)
    payment_terms: Optional[str] = Field(None, max_length=100)
    shipping_amount: float = Field(0, ge=0)
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    approval_status: str = Field("pending", max_length=20)


class OrderCreate(OrderBase):
    order_number: Optional[str] = Field(None, max_length=50, description="Generated as ORD-YYYYMMDD-0001 when omitted")
    items: List[LineItemIn] = Field(..., min_length=1)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class OrderUpdate(BaseModel):
    customer_id: Optional[int] = None
    salesperson_id: Optional[int] = None
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    status: Optional[str] = Field(None, pattern="^(" + "|".join(ORDER_STATUSES) + ")$")
    priority: Optional[str] = None
    order_type: Optional[str] = None
    payment_method: Optional[str] = None
    payment_terms: Optional[str] = None
    shipping_amount: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    approval_status: Optional[str] = None
    # None keeps the current lines; a list replaces them
    items: Optional[List[LineItemIn]] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class OrderResponse(OrderBase, AuditFields):
    id: int
    order_number: str
    subtotal: float = 0
    discount_amount: float = 0
    tax_amount: float = 0
    total_amount: float = 0
    customer: Optional[RefBlock] = None
    salesperson: Optional[RefBlock] = None
    items: List[LineItemResponse] = []
