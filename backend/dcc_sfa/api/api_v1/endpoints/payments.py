"""
Customer payment API

Payments are recorded here and applied to invoices under
/invoices/{id}/payments.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Customer, Payment, User
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.payment import PaymentCreate, PaymentResponse, applied_amount, payment_line_response
from dcc_sfa.services.audit import create_audit_log, request_ip, stamp_create, touch
from dcc_sfa.services.numbering import generate_payment_number
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def build_payment_response(payment: Payment) -> PaymentResponse:
    applied = applied_amount(payment)
    return PaymentResponse(
        id=payment.id,
        payment_number=payment.payment_number,
        customer_id=payment.customer_id,
        payment_date=payment.payment_date,
        collected_by=payment.collected_by,
        method=payment.method,
        reference_number=payment.reference_number,
        total_amount=payment.total_amount or 0,
        notes=payment.notes,
        amount_applied=applied,
        unapplied_amount=round(float(payment.total_amount or 0) - applied, 2),
        customer=ref(payment.customer),
        collector=ref(payment.collector, code_attr="email"),
        lines=[payment_line_response(line) for line in payment.lines if line.is_active == "Y"],
        **audit_fields(payment),
    )


async def get_payment(db: AsyncSession, payment_id: int) -> Payment:
    payment = await db.get(Payment, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get("", response_model=ListEnvelope[PaymentResponse])
async def list_payments(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    customer_id: Optional[int] = Query(None)) -> Any:
    """List payments"""
    conditions = []
    condition = search_filter(search, Payment.payment_number, Payment.reference_number)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Payment.is_active == is_active)
    if customer_id:
        conditions.append(Payment.customer_id == customer_id)

    result = await paginate(db, Payment, conditions, page, limit)
    return {
        "success": True,
        "message": "Payments retrieved successfully",
        "data": [build_payment_response(p) for p in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Payment, "payments"),
    }


@router.get("/{payment_id}", response_model=DataEnvelope[PaymentResponse])
async def get_payment_detail(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "read"))),
    payment_id: int) -> Any:
    """Get one payment with the invoices it is applied to"""
    payment = await get_payment(db, payment_id)
    return {"message": "Payment fetched successfully", "data": build_payment_response(payment)}


@router.post("", response_model=DataEnvelope[PaymentResponse], status_code=201)
async def create_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "create"))),
    request: Request,
    payment_in: PaymentCreate) -> Any:
    """Record a customer payment"""
    data = payment_in.model_dump()
    if not await db.get(Customer, data["customer_id"]):
        raise HTTPException(status_code=400, detail="Customer not found")
    if not await db.get(User, data["collected_by"]):
        raise HTTPException(status_code=400, detail="Collector not found")
    if data.get("payment_number"):
        existing = await db.execute(select(Payment.id).where(Payment.payment_number == data["payment_number"]))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Payment number already exists")
    else:
        data["payment_number"] = await generate_payment_number(db, Payment)

    payment = Payment(**data, **stamp_create(current_user.id))
    db.add(payment)
    await db.flush()
    await create_audit_log(
        db, current_user.id, "create", "payment",
        resource_id=payment.id, resource_name=payment.payment_number,
        description=f"Recorded payment {payment.payment_number} of {payment.total_amount}",
        ip_address=request_ip(request),
    )
    await db.commit()

    payment = await db.get(Payment, payment.id, populate_existing=True)
    logger.info(f"💰 Payment {payment.payment_number} recorded, amount {payment.total_amount}")
    return {"message": "Payment created successfully", "data": build_payment_response(payment)}


@router.delete("/{payment_id}", response_model=MessageResponse)
async def delete_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "delete"))),
    payment_id: int) -> Any:
    """Deactivate a payment that is not applied to any invoice"""
    payment = await get_payment(db, payment_id)
    applied_lines = [line for line in payment.lines if line.is_active == "Y"]
    if applied_lines:
        raise HTTPException(
            status_code=400,
            detail=f"Payment is applied to {len(applied_lines)} invoice(s); remove those lines first",
        )
    payment.is_active = "N"
    touch(payment, current_user.id)
    await db.commit()
    return {"message": "Payment deleted successfully"}
