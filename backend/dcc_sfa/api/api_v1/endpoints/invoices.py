"""
Invoice API

An invoice and its items are written in one transaction. When items are sent
the header amounts are derived from them; item edits under /{id}/items
re-derive the header as well. Payment lines under /{id}/payments move
amount_paid, and balance_due follows.
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Customer, Invoice, InvoiceItem, Order, Payment, PaymentLine
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from dcc_sfa.schemas.line_item import LineItemIn, LineItemResponse, LineItemUpdate, line_item_response
from dcc_sfa.schemas.payment import (
    PaymentLineIn,
    PaymentLineResponse,
    PaymentLineUpdate,
    applied_amount,
    payment_line_response,
)
from dcc_sfa.services.audit import apply_update, create_audit_log, request_ip, stamp_create, touch
from dcc_sfa.services.line_items import build_line_items, line_total, sync_totals
from dcc_sfa.services.numbering import generate_invoice_number
from dcc_sfa.services.pagination import paginate, search_filter

logger = logging.getLogger(__name__)

router = APIRouter()


def build_invoice_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        parent_id=invoice.parent_id,
        customer_id=invoice.customer_id,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        status=invoice.status or "draft",
        payment_method=invoice.payment_method or "cash",
        subtotal=invoice.subtotal or 0,
        discount_amount=invoice.discount_amount or 0,
        tax_amount=invoice.tax_amount or 0,
        shipping_amount=invoice.shipping_amount or 0,
        total_amount=invoice.total_amount or 0,
        amount_paid=invoice.amount_paid or 0,
        balance_due=invoice.balance_due or 0,
        notes=invoice.notes,
        billing_address=invoice.billing_address,
        customer=ref(invoice.customer),
        order=ref(invoice.order, name_attr="order_number", code_attr="order_number"),
        items=[line_item_response(i) for i in invoice.items if i.is_active == "Y"],
        **audit_fields(invoice),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("customer_id") is not None and not await db.get(Customer, data["customer_id"]):
        raise HTTPException(status_code=400, detail="Customer not found")
    if data.get("parent_id") is not None and not await db.get(Order, data["parent_id"]):
        raise HTTPException(status_code=400, detail="Order not found")


async def invoice_stats(db: AsyncSession) -> dict:
    row = (await db.execute(
        select(
            func.count(Invoice.id),
            func.coalesce(func.sum(Invoice.total_amount), 0),
            func.coalesce(func.sum(Invoice.amount_paid), 0),
            func.coalesce(func.sum(Invoice.balance_due), 0),
        )
    )).one()
    return {
        "total_invoices": row[0] or 0,
        "total_amount": float(row[1] or 0),
        "amount_paid": float(row[2] or 0),
        "balance_due": float(row[3] or 0),
    }


async def _get_invoice(db: AsyncSession, invoice_id: int) -> Invoice:
    invoice = await db.get(Invoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get("", response_model=ListEnvelope[InvoiceResponse])
async def list_invoices(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None)) -> Any:
    """List invoices"""
    conditions = []
    condition = search_filter(search, Invoice.invoice_number, Invoice.notes)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Invoice.is_active == is_active)
    if status:
        conditions.append(Invoice.status == status)
    if customer_id:
        conditions.append(Invoice.customer_id == customer_id)

    result = await paginate(db, Invoice, conditions, page, limit)
    return {
        "success": True,
        "message": "Invoices retrieved successfully",
        "data": [build_invoice_response(i) for i in result.data],
        "pagination": result.pagination,
        "stats": await invoice_stats(db),
    }


@router.get("/{invoice_id}", response_model=DataEnvelope[InvoiceResponse])
async def get_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "read"))),
    invoice_id: int) -> Any:
    """Get one invoice with its items"""
    invoice = await _get_invoice(db, invoice_id)
    return {"message": "Invoice fetched successfully", "data": build_invoice_response(invoice)}


@router.post("", response_model=DataEnvelope[InvoiceResponse], status_code=201)
async def create_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "create"))),
    request: Request,
    invoice_in: InvoiceCreate) -> Any:
    """Create an invoice and its items in one transaction"""
    data = invoice_in.model_dump()
    items = data.pop("items")
    await _check_references(db, data)
    if data.get("invoice_number"):
        existing = await db.execute(select(Invoice.id).where(Invoice.invoice_number == data["invoice_number"]))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Invoice number already exists")
    else:
        data["invoice_number"] = await generate_invoice_number(db, Invoice)
    if data.get("balance_due") is None:
        data["balance_due"] = round(data["total_amount"] - data["amount_paid"], 2)

    invoice = Invoice(**data, **stamp_create(current_user.id))
    db.add(invoice)
    await db.flush()
    await build_line_items(db, InvoiceItem, "invoice_id", invoice.id, items, current_user.id)
    await sync_totals(db, invoice, InvoiceItem, "invoice_id", "amount_paid")
    await create_audit_log(
        db, current_user.id, "create", "invoice",
        resource_id=invoice.id, resource_name=invoice.invoice_number,
        description=f"Created invoice {invoice.invoice_number} with {len(items)} item(s)",
        new_value={"total_amount": float(invoice.total_amount or 0), "status": invoice.status},
        ip_address=request_ip(request),
    )
    await db.commit()

    invoice = await db.get(Invoice, invoice.id, populate_existing=True)
    logger.info(f"🧾 Invoice {invoice.invoice_number} created, total {invoice.total_amount}")
    return {"message": "Invoice created successfully", "data": build_invoice_response(invoice)}


@router.put("/{invoice_id}", response_model=DataEnvelope[InvoiceResponse])
async def update_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    request: Request,
    invoice_id: int,
    invoice_in: InvoiceUpdate) -> Any:
    """Update an invoice; an items list replaces the current items"""
    invoice = await _get_invoice(db, invoice_id)

    data = invoice_in.model_dump(exclude_unset=True)
    items = data.pop("items", None)
    await _check_references(db, data)
    old_value = {"status": invoice.status, "total_amount": float(invoice.total_amount or 0)}
    apply_update(invoice, data, current_user.id)
    if items is not None:
        await db.execute(delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id))
        await build_line_items(db, InvoiceItem, "invoice_id", invoice_id, items, current_user.id)
    await sync_totals(db, invoice, InvoiceItem, "invoice_id", "amount_paid", keep_header=items is None)
    await create_audit_log(
        db, current_user.id, "update", "invoice",
        resource_id=invoice.id, resource_name=invoice.invoice_number,
        description=f"Updated invoice {invoice.invoice_number}",
        old_value=old_value,
        new_value={"status": invoice.status, "total_amount": float(invoice.total_amount or 0)},
        ip_address=request_ip(request),
    )
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    return {"message": "Invoice updated successfully", "data": build_invoice_response(invoice)}


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "delete"))),
    request: Request,
    invoice_id: int) -> Any:
    """Delete an invoice with its items and payment lines"""
    invoice = await _get_invoice(db, invoice_id)
    number = invoice.invoice_number

    await db.execute(delete(PaymentLine).where(PaymentLine.invoice_id == invoice_id))
    await db.execute(delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id))
    await db.execute(delete(Invoice).where(Invoice.id == invoice_id))
    await create_audit_log(
        db, current_user.id, "delete", "invoice",
        resource_id=invoice_id, resource_name=number,
        description=f"Deleted invoice {number}",
        ip_address=request_ip(request),
    )
    await db.commit()
    logger.info(f"🗑️ Invoice {number} deleted by user {current_user.id}")
    return {"message": "Invoice deleted successfully"}


@router.get("/{invoice_id}/items", response_model=DataEnvelope[List[LineItemResponse]])
async def list_invoice_items(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "read"))),
    invoice_id: int) -> Any:
    """Items of one invoice"""
    invoice = await _get_invoice(db, invoice_id)
    return {
        "message": "Invoice items retrieved successfully",
        "data": [line_item_response(i) for i in invoice.items if i.is_active == "Y"],
    }


@router.post("/{invoice_id}/items", response_model=DataEnvelope[InvoiceResponse], status_code=201)
async def add_invoice_item(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    invoice_id: int,
    item_in: LineItemIn) -> Any:
    """Add an item and re-derive the invoice totals"""
    invoice = await _get_invoice(db, invoice_id)
    await build_line_items(db, InvoiceItem, "invoice_id", invoice_id, [item_in.model_dump()], current_user.id)
    touch(invoice, current_user.id)
    await sync_totals(db, invoice, InvoiceItem, "invoice_id", "amount_paid")
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    return {"message": "Invoice item added successfully", "data": build_invoice_response(invoice)}


@router.put("/{invoice_id}/items/{item_id}", response_model=DataEnvelope[InvoiceResponse])
async def update_invoice_item(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    invoice_id: int,
    item_id: int,
    item_in: LineItemUpdate) -> Any:
    """Update an item and re-derive the invoice totals"""
    invoice = await _get_invoice(db, invoice_id)
    item = await db.get(InvoiceItem, item_id)
    if not item or item.invoice_id != invoice_id:
        raise HTTPException(status_code=404, detail="Invoice item not found")

    apply_update(item, item_in.model_dump(exclude_unset=True), current_user.id)
    item.total_amount = line_total(item.quantity, item.unit_price, item.discount_amount, item.tax_amount)
    touch(invoice, current_user.id)
    await sync_totals(db, invoice, InvoiceItem, "invoice_id", "amount_paid")
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    return {"message": "Invoice item updated successfully", "data": build_invoice_response(invoice)}


@router.delete("/{invoice_id}/items/{item_id}", response_model=DataEnvelope[InvoiceResponse])
async def delete_invoice_item(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    invoice_id: int,
    item_id: int) -> Any:
    """Remove an item and re-derive the invoice totals"""
    invoice = await _get_invoice(db, invoice_id)
    item = await db.get(InvoiceItem, item_id)
    if not item or item.invoice_id != invoice_id:
        raise HTTPException(status_code=404, detail="Invoice item not found")

    await db.delete(item)
    touch(invoice, current_user.id)
    await sync_totals(db, invoice, InvoiceItem, "invoice_id", "amount_paid", keep_header=False)
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    return {"message": "Invoice item deleted successfully", "data": build_invoice_response(invoice)}


async def _get_payment_line(db: AsyncSession, invoice_id: int, line_id: int) -> PaymentLine:
    line = await db.get(PaymentLine, line_id)
    if not line or line.invoice_id != invoice_id:
        raise HTTPException(status_code=404, detail="Payment line not found")
    return line


def _check_unapplied(payment: Payment, amount: float, exclude_line_id: Optional[int] = None):
    available = round(float(payment.total_amount or 0) - applied_amount(payment, exclude_line_id), 2)
    if amount > available:
        raise HTTPException(
            status_code=400,
            detail=f"Amount applied exceeds the unapplied payment amount ({available:.2f})",
        )


def _check_balance(invoice: Invoice, delta: float):
    balance = round(float(invoice.total_amount or 0) - float(invoice.amount_paid or 0), 2)
    if delta > balance:
        raise HTTPException(
            status_code=400,
            detail=f"Amount applied exceeds the invoice balance due ({balance:.2f})",
        )


async def _settle(db: AsyncSession, invoice: Invoice, delta: float, user_id: int):
    """Move amount_paid by delta and re-derive balance_due"""
    invoice.amount_paid = max(round(float(invoice.amount_paid or 0) + delta, 2), 0)
    touch(invoice, user_id)
    await sync_totals(db, invoice, InvoiceItem, "invoice_id", "amount_paid")


@router.get("/{invoice_id}/payments", response_model=DataEnvelope[List[PaymentLineResponse]])
async def list_invoice_payments(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "read"))),
    invoice_id: int) -> Any:
    """Payment lines applied to one invoice, newest first"""
    await _get_invoice(db, invoice_id)
    result = await db.execute(
        select(PaymentLine).where(
            PaymentLine.invoice_id == invoice_id, PaymentLine.is_active == "Y"
        ).order_by(PaymentLine.id.desc())
    )
    return {
        "message": "Payment lines retrieved successfully",
        "data": [payment_line_response(line) for line in result.scalars().all()],
    }


@router.post("/{invoice_id}/payments", response_model=DataEnvelope[InvoiceResponse], status_code=201)
async def add_invoice_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    request: Request,
    invoice_id: int,
    line_in: PaymentLineIn) -> Any:
    """Apply part of a payment to the invoice"""
    invoice = await _get_invoice(db, invoice_id)
    payment = await db.get(Payment, line_in.payment_id)
    if not payment or payment.is_active != "Y":
        raise HTTPException(status_code=404, detail="Payment not found")
    if payment.customer_id != invoice.customer_id:
        raise HTTPException(status_code=400, detail="Payment belongs to a different customer")
    _check_unapplied(payment, line_in.amount_applied)
    _check_balance(invoice, line_in.amount_applied)

    db.add(PaymentLine(
        parent_id=payment.id,
        invoice_id=invoice_id,
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        amount_applied=line_in.amount_applied,
        notes=line_in.notes,
        **stamp_create(current_user.id),
    ))
    await _settle(db, invoice, line_in.amount_applied, current_user.id)
    await create_audit_log(
        db, current_user.id, "payment", "invoice",
        resource_id=invoice.id, resource_name=invoice.invoice_number,
        description=f"Applied {line_in.amount_applied:.2f} from payment {payment.payment_number}",
        new_value={"amount_paid": float(invoice.amount_paid), "balance_due": float(invoice.balance_due or 0)},
        ip_address=request_ip(request),
    )
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    logger.info(f"💰 Payment {payment.payment_number} applied to invoice {invoice.invoice_number}")
    return {"message": "Payment line created successfully", "data": build_invoice_response(invoice)}


@router.put("/{invoice_id}/payments/{line_id}", response_model=DataEnvelope[InvoiceResponse])
async def update_invoice_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    invoice_id: int,
    line_id: int,
    line_in: PaymentLineUpdate) -> Any:
    """Change the amount applied by a payment line"""
    invoice = await _get_invoice(db, invoice_id)
    line = await _get_payment_line(db, invoice_id, line_id)

    data = line_in.model_dump(exclude_unset=True)
    if data.get("amount_applied") is None:
        data.pop("amount_applied", None)
    else:
        _check_unapplied(line.payment, data["amount_applied"], exclude_line_id=line.id)
        _check_balance(invoice, data["amount_applied"] - float(line.amount_applied or 0))
    previous = float(line.amount_applied or 0)
    apply_update(line, data, current_user.id)
    await _settle(db, invoice, float(line.amount_applied or 0) - previous, current_user.id)
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    return {"message": "Payment line updated successfully", "data": build_invoice_response(invoice)}


@router.delete("/{invoice_id}/payments/{line_id}", response_model=DataEnvelope[InvoiceResponse])
async def delete_invoice_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("invoice", "update"))),
    invoice_id: int,
    line_id: int) -> Any:
    """Remove a payment line; its amount comes off amount_paid"""
    invoice = await _get_invoice(db, invoice_id)
    line = await _get_payment_line(db, invoice_id, line_id)
    amount = float(line.amount_applied or 0)

    await db.delete(line)
    await _settle(db, invoice, -amount, current_user.id)
    await db.commit()

    invoice = await db.get(Invoice, invoice_id, populate_existing=True)
    return {"message": "Payment line deleted successfully", "data": build_invoice_response(invoice)}
