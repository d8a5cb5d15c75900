from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock, audit_fields, naive_utc


class PaymentBase(BaseModel):
    customer_id: int
    payment_date: datetime
    collected_by: int
    method: str = Field(..., min_length=1, max_length=50)
    reference_number: Optional[str] = Field(None, max_length=100)
    total_amount: float = Field(..., gt=0)
    notes: Optional[str] = None

    @validator("payment_date")
    def strip_timezone(cls, v):
        return naive_utc(v)


class PaymentCreate(PaymentBase):
    payment_number: Optional[str] = Field(None, max_length=50, description="Generated as PAY-<ms> when omitted")
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class PaymentLineIn(BaseModel):
    payment_id: int
    amount_applied: float = Field(..., gt=0)
    notes: Optional[str] = None


class PaymentLineUpdate(BaseModel):
    amount_applied: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None
    log_inst: Optional[int] = None


class PaymentLineResponse(AuditFields):
    id: int
    payment_id: int
    invoice_id: int
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    amount_applied: float
    notes: Optional[str] = None
    payment_number: Optional[str] = None
    payment_date: Optional[datetime] = None
    method: Optional[str] = None


class PaymentResponse(PaymentBase, AuditFields):
    id: int
    payment_number: str
    amount_applied: float = 0
    unapplied_amount: float = 0
    customer: Optional[RefBlock] = None
    collector: Optional[RefBlock] = None
    lines: List[PaymentLineResponse] = []


def applied_amount(payment, exclude_line_id: Optional[int] = None) -> float:
    """Sum of the payment's active lines, optionally leaving one line out"""
    return round(sum(
        float(line.amount_applied or 0) for line in payment.lines
        if line.is_active == "Y" and line.id != exclude_line_id
    ), 2)


def payment_line_response(line) -> PaymentLineResponse:
    payment = line.payment
    return PaymentLineResponse(
        id=line.id,
        payment_id=line.parent_id,
        invoice_id=line.invoice_id,
        invoice_number=line.invoice_number,
        invoice_date=line.invoice_date,
        amount_applied=line.amount_applied or 0,
        notes=line.notes,
        payment_number=payment.payment_number if payment else None,
        payment_date=payment.payment_date if payment else None,
        method=payment.method if payment else None,
        **audit_fields(line),
    )
