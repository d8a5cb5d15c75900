from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock
from dcc_sfa.schemas.line_item import LineItemIn, LineItemResponse


class CreditNoteBase(BaseModel):
    parent_id: int = Field(..., description="Order ID")
    customer_id: int
    credit_note_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: str = Field("draft", max_length=20)
    reason: Optional[str] = None
    payment_method: str = Field("credit", max_length=50)
    shipping_amount: float = Field(0, ge=0)
    amount_applied: float = Field(0, ge=0)
    notes: Optional[str] = None
    billing_address: Optional[str] = None


class CreditNoteCreate(CreditNoteBase):
    credit_note_number: Optional[str] = Field(None, max_length=50, description="Generated as CN-00001 when omitted")
    subtotal: float = Field(0, ge=0)
    discount_amount: float = Field(0, ge=0)
    tax_amount: float = Field(0, ge=0)
    total_amount: float = Field(0, ge=0)
    balance_due: Optional[float] = None
    items: List[LineItemIn] = Field(default_factory=list)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class CreditNoteUpsert(CreditNoteCreate):
    """Create when id is absent; otherwise update the note and reconcile its lines by id"""
    id: Optional[int] = None
    log_inst: Optional[int] = None


class CreditNoteUpdate(BaseModel):
    credit_note_number: Optional[str] = Field(None, max_length=50)
    parent_id: Optional[int] = None
    customer_id: Optional[int] = None
    credit_note_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: Optional[str] = Field(None, max_length=20)
    reason: Optional[str] = None
    payment_method: Optional[str] = None
    shipping_amount: Optional[float] = Field(None, ge=0)
    amount_applied: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    billing_address: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class CreditNoteResponse(CreditNoteBase, AuditFields):
    id: int
    credit_note_number: str
    subtotal: float = 0
    discount_amount: float = 0
    tax_amount: float = 0
    total_amount: float = 0
    balance_due: float = 0
    customer: Optional[RefBlock] = None
    order: Optional[RefBlock] = None
    items: List[LineItemResponse] = []
