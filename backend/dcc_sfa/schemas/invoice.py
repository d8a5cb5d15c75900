from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock
from dcc_sfa.schemas.line_item import LineItemIn, LineItemResponse


class InvoiceBase(BaseModel):
    parent_id: Optional[int] = Field(None, description="Order ID")
    customer_id: int
    invoice_date: datetime
    due_date: Optional[datetime] = None
    status: str = Field(..., max_length=20)
    payment_method: str = Field(..., max_length=50)
    shipping_amount: float = Field(0, ge=0)
    amount_paid: float = Field(0, ge=0)
    notes: Optional[str] = None
    billing_address: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    invoice_number: Optional[str] = Field(None, max_length=50, description="Generated as INV-<ms> when omitted")
    # header amounts are taken as given when no items are sent
    subtotal: float = Field(0, ge=0)
    discount_amount: float = Field(0, ge=0)
    tax_amount: float = Field(0, ge=0)
    total_amount: float = Field(0, ge=0)
    balance_due: Optional[float] = None
    items: List[LineItemIn] = Field(default_factory=list)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class InvoiceUpdate(BaseModel):
    parent_id: Optional[int] = None
    customer_id: Optional[int] = None
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: Optional[str] = Field(None, max_length=20)
    payment_method: Optional[str] = Field(None, max_length=50)
    shipping_amount: Optional[float] = Field(None, ge=0)
    amount_paid: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    billing_address: Optional[str] = None
    # None keeps the current lines; a list replaces them
    items: Optional[List[LineItemIn]] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class InvoiceResponse(InvoiceBase, AuditFields):
    id: int
    invoice_number: str
    subtotal: float = 0
    discount_amount: float = 0
    tax_amount: float = 0
    total_amount: float = 0
    balance_due: float = 0
    customer: Optional[RefBlock] = None
    order: Optional[RefBlock] = None
    items: List[LineItemResponse] = []
