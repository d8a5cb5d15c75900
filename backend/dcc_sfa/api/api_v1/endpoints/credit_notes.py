"""
Credit note API

A credit note is raised against an order (parent_id). POST /upsert creates a
note, or updates one and reconciles its lines by id, in one transaction.
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import CreditNote, CreditNoteItem, Customer, Order
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.credit_note import (
    CreditNoteCreate,
    CreditNoteResponse,
    CreditNoteUpdate,
    CreditNoteUpsert,
)
from dcc_sfa.schemas.line_item import LineItemResponse, line_item_response
from dcc_sfa.services.audit import apply_update, create_audit_log, request_ip, stamp_create
from dcc_sfa.services.line_items import build_line_items, line_values, sync_totals
from dcc_sfa.services.numbering import generate_credit_note_number
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def build_credit_note_response(note: CreditNote) -> CreditNoteResponse:
    return CreditNoteResponse(
        id=note.id,
        credit_note_number=note.credit_note_number,
        parent_id=note.parent_id,
        customer_id=note.customer_id,
        credit_note_date=note.credit_note_date,
        due_date=note.due_date,
        status=note.status or "draft",
        reason=note.reason,
        payment_method=note.payment_method or "credit",
        subtotal=note.subtotal or 0,
        discount_amount=note.discount_amount or 0,
        tax_amount=note.tax_amount or 0,
        shipping_amount=note.shipping_amount or 0,
        total_amount=note.total_amount or 0,
        amount_applied=note.amount_applied or 0,
        balance_due=note.balance_due or 0,
        notes=note.notes,
        billing_address=note.billing_address,
        customer=ref(note.customer),
        order=ref(note.order, name_attr="order_number", code_attr="order_number"),
        items=[line_item_response(i) for i in note.items if i.is_active == "Y"],
        **audit_fields(note),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("customer_id") is not None and not await db.get(Customer, data["customer_id"]):
        raise HTTPException(status_code=400, detail="Customer not found")
    if data.get("parent_id") is not None and not await db.get(Order, data["parent_id"]):
        raise HTTPException(status_code=400, detail="Order not found")


async def _ensure_number_free(db: AsyncSession, number: str, exclude_id: int = None):
    query = select(CreditNote.id).where(CreditNote.credit_note_number == number)
    if exclude_id:
        query = query.where(CreditNote.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Credit note number already exists")


async def _get_note(db: AsyncSession, note_id: int) -> CreditNote:
    note = await db.get(CreditNote, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Credit note not found")
    return note


async def _create_note(db: AsyncSession, data: dict, items: List[dict], user_id: int) -> CreditNote:
    await _check_references(db, data)
    if data.get("credit_note_number"):
        await _ensure_number_free(db, data["credit_note_number"])
    else:
        data["credit_note_number"] = await generate_credit_note_number(db, CreditNote)
    if data.get("credit_note_date") is None:
        data.pop("credit_note_date", None)
    if data.get("balance_due") is None:
        data["balance_due"] = round(data["total_amount"] - data["amount_applied"], 2)

    note = CreditNote(**data, **stamp_create(user_id))
    db.add(note)
    await db.flush()
    await build_line_items(db, CreditNoteItem, "credit_note_id", note.id, items, user_id)
    await sync_totals(db, note, CreditNoteItem, "credit_note_id", "amount_applied")
    return note


async def _reconcile_items(db: AsyncSession, note: CreditNote, items: List[dict], user_id: int):
    """Lines with a known id are updated, lines without an id are added, the rest are removed"""
    result = await db.execute(select(CreditNoteItem).where(CreditNoteItem.credit_note_id == note.id))
    existing = {item.id: item for item in result.scalars().all()}

    unknown = [item["id"] for item in items if item.get("id") and item["id"] not in existing]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Credit note item not found: {', '.join(str(i) for i in unknown)}",
        )

    kept = {item["id"] for item in items if item.get("id")}
    for item_id, row in existing.items():
        if item_id not in kept:
            await db.delete(row)

    new_items = []
    for item in items:
        if item.get("id"):
            values = await line_values(db, item)
            apply_update(existing[item["id"]], values, user_id)
        else:
            new_items.append(item)
    await build_line_items(db, CreditNoteItem, "credit_note_id", note.id, new_items, user_id)


@router.get("", response_model=ListEnvelope[CreditNoteResponse])
async def list_credit_notes(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None)) -> Any:
    """List credit notes"""
    conditions = []
    condition = search_filter(search, CreditNote.credit_note_number, CreditNote.reason, CreditNote.notes)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(CreditNote.is_active == is_active)
    if status:
        conditions.append(CreditNote.status == status)
    if customer_id:
        conditions.append(CreditNote.customer_id == customer_id)

    result = await paginate(db, CreditNote, conditions, page, limit)
    stats = await status_stats(db, CreditNote, "credit_notes")
    stats["total_amount"] = float(
        (await db.execute(select(func.coalesce(func.sum(CreditNote.total_amount), 0)))).scalar() or 0
    )
    return {
        "success": True,
        "message": "Credit notes retrieved successfully",
        "data": [build_credit_note_response(n) for n in result.data],
        "pagination": result.pagination,
        "stats": stats,
    }


@router.get("/{note_id}", response_model=DataEnvelope[CreditNoteResponse])
async def get_credit_note(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "read"))),
    note_id: int) -> Any:
    """Get one credit note with its lines"""
    note = await _get_note(db, note_id)
    return {"message": "Credit note fetched successfully", "data": build_credit_note_response(note)}


@router.get("/{note_id}/items", response_model=DataEnvelope[List[LineItemResponse]])
async def list_credit_note_items(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "read"))),
    note_id: int) -> Any:
    """Lines of one credit note"""
    note = await _get_note(db, note_id)
    return {
        "message": "Credit note items retrieved successfully",
        "data": [line_item_response(i) for i in note.items if i.is_active == "Y"],
    }


@router.post("", response_model=DataEnvelope[CreditNoteResponse], status_code=201)
async def create_credit_note(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "create"))),
    request: Request,
    note_in: CreditNoteCreate) -> Any:
    """Create a credit note and its lines"""
    data = note_in.model_dump()
    items = data.pop("items")
    note = await _create_note(db, data, items, current_user.id)
    await create_audit_log(
        db, current_user.id, "create", "credit_note",
        resource_id=note.id, resource_name=note.credit_note_number,
        description=f"Created credit note {note.credit_note_number}",
        ip_address=request_ip(request),
    )
    await db.commit()

    note = await db.get(CreditNote, note.id, populate_existing=True)
    logger.info(f"📝 Credit note {note.credit_note_number} created, total {note.total_amount}")
    return {"message": "Credit note created successfully", "data": build_credit_note_response(note)}


@router.post("/upsert", response_model=DataEnvelope[CreditNoteResponse])
async def upsert_credit_note(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "create"), ("credit-note", "update"))),
    request: Request,
    note_in: CreditNoteUpsert) -> Any:
    """Create a credit note, or update it and reconcile its lines by id"""
    data = note_in.model_dump()
    items = data.pop("items")
    note_id = data.pop("id")

    if not note_id:
        data.pop("log_inst")
        note = await _create_note(db, data, items, current_user.id)
        action, message = "create", "Credit note created successfully"
    else:
        note = await _get_note(db, note_id)
        await _check_references(db, data)
        if data.get("credit_note_number") and data["credit_note_number"] != note.credit_note_number:
            await _ensure_number_free(db, data["credit_note_number"], exclude_id=note_id)
        if not data.get("credit_note_number"):
            data.pop("credit_note_number")
        if data.get("credit_note_date") is None:
            data.pop("credit_note_date")
        if data.get("balance_due") is None:
            data.pop("balance_due")
        apply_update(note, data, current_user.id)
        await _reconcile_items(db, note, items, current_user.id)
        await sync_totals(db, note, CreditNoteItem, "credit_note_id", "amount_applied")
        action, message = "update", "Credit note updated successfully"

    await create_audit_log(
        db, current_user.id, action, "credit_note",
        resource_id=note.id, resource_name=note.credit_note_number,
        description=f"Upserted credit note {note.credit_note_number} with {len(items)} item(s)",
        ip_address=request_ip(request),
    )
    await db.commit()

    note = await db.get(CreditNote, note.id, populate_existing=True)
    return {"message": message, "data": build_credit_note_response(note)}


@router.put("/{note_id}", response_model=DataEnvelope[CreditNoteResponse])
async def update_credit_note(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "update"))),
    request: Request,
    note_id: int,
    note_in: CreditNoteUpdate) -> Any:
    """Update the credit note header"""
    note = await _get_note(db, note_id)
    data = note_in.model_dump(exclude_unset=True)
    await _check_references(db, data)
    if data.get("credit_note_number") and data["credit_note_number"] != note.credit_note_number:
        await _ensure_number_free(db, data["credit_note_number"], exclude_id=note_id)
    apply_update(note, data, current_user.id)
    await sync_totals(db, note, CreditNoteItem, "credit_note_id", "amount_applied")
    await create_audit_log(
        db, current_user.id, "update", "credit_note",
        resource_id=note.id, resource_name=note.credit_note_number,
        description=f"Updated credit note {note.credit_note_number}",
        ip_address=request_ip(request),
    )
    await db.commit()

    note = await db.get(CreditNote, note_id, populate_existing=True)
    return {"message": "Credit note updated successfully", "data": build_credit_note_response(note)}


@router.delete("/{note_id}", response_model=MessageResponse)
async def delete_credit_note(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("credit-note", "delete"))),
    request: Request,
    note_id: int) -> Any:
    """Delete a credit note and its lines"""
    note = await _get_note(db, note_id)
    number = note.credit_note_number

    await db.execute(delete(CreditNoteItem).where(CreditNoteItem.credit_note_id == note_id))
    await db.execute(delete(CreditNote).where(CreditNote.id == note_id))
    await create_audit_log(
        db, current_user.id, "delete", "credit_note",
        resource_id=note_id, resource_name=number,
        description=f"Deleted credit note {number}",
        ip_address=request_ip(request),
    )
    await db.commit()
    logger.info(f"🗑️ Credit note {number} deleted by user {current_user.id}")
    return {"message": "Credit note deleted successfully"}
