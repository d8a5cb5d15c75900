"""
Sales order API

An order and its lines are written in one transaction; header totals are
derived from the lines.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Customer, Order, OrderItem, User
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.line_item import line_item_response
from dcc_sfa.schemas.order import OrderCreate, OrderResponse, OrderUpdate
from dcc_sfa.services.audit import apply_update, stamp_create
from dcc_sfa.services.line_items import build_line_items, sync_totals
from dcc_sfa.services.numbering import generate_order_number
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def build_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer_id=order.customer_id,
        salesperson_id=order.salesperson_id,
        order_date=order.order_date,
        delivery_date=order.delivery_date,
        status=order.status or "draft",
        priority=order.priority or "medium",
        order_type=order.order_type or "regular",
        payment_method=order.payment_method or "cash",
        payment_terms=order.payment_terms,
        subtotal=order.subtotal or 0,
        discount_amount=order.discount_amount or 0,
        tax_amount=order.tax_amount or 0,
        shipping_amount=order.shipping_amount or 0,
        total_amount=order.total_amount or 0,
        notes=order.notes,
        shipping_address=order.shipping_address,
        approval_status=order.approval_status or "pending",
        customer=ref(order.customer),
        salesperson=ref(order.salesperson),
        items=[line_item_response(i) for i in order.items if i.is_active == "Y"],
        **audit_fields(order),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("customer_id") is not None and not await db.get(Customer, data["customer_id"]):
        raise HTTPException(status_code=400, detail="Customer not found")
    if data.get("salesperson_id") is not None and not await db.get(User, data["salesperson_id"]):
        raise HTTPException(status_code=400, detail="Salesperson not found")


@router.get("", response_model=ListEnvelope[OrderResponse])
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("order", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None)) -> Any:
    """List orders"""
    conditions = []
    condition = search_filter(search, Order.order_number, Order.notes)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Order.is_active == is_active)
    if status:
        conditions.append(Order.status == status)
    if customer_id:
        conditions.append(Order.customer_id == customer_id)

    result = await paginate(db, Order, conditions, page, limit)
    return {
        "success": True,
        "message": "Orders retrieved successfully",
        "data": [build_order_response(o) for o in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Order, "orders"),
    }


@router.get("/{order_id}", response_model=DataEnvelope[OrderResponse])
async def get_order(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("order", "read"))),
    order_id: int) -> Any:
    """Get one order with its lines"""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"message": "Order fetched successfully", "data": build_order_response(order)}


@router.post("", response_model=DataEnvelope[OrderResponse], status_code=201)
async def create_order(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("order", "create"))),
    order_in: OrderCreate) -> Any:
    """Create an order with its lines"""
    data = order_in.model_dump()
    items = data.pop("items")
    await _check_references(db, data)
    if data.get("order_number"):
        existing = await db.execute(select(Order.id).where(Order.order_number == data["order_number"]))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Order number already exists")
    else:
        data["order_number"] = await generate_order_number(db, Order)
    if data.get("order_date") is None:
        data.pop("order_date")

    order = Order(**data, **stamp_create(current_user.id))
    db.add(order)
    await db.flush()
    await build_line_items(db, OrderItem, "order_id", order.id, items, current_user.id)
    await sync_totals(db, order, OrderItem, "order_id")
    await db.commit()

    order = await db.get(Order, order.id, populate_existing=True)
    logger.info(f"🧾 Order {order.order_number} created, total {order.total_amount}")
    return {"message": "Order created successfully", "data": build_order_response(order)}


@router.put("/{order_id}", response_model=DataEnvelope[OrderResponse])
async def update_order(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("order", "update"))),
    order_id: int,
    order_in: OrderUpdate) -> Any:
    """Update an order; an items list replaces the current lines"""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    data = order_in.model_dump(exclude_unset=True)
    items = data.pop("items", None)
    await _check_references(db, data)
    apply_update(order, data, current_user.id)
    if items is not None:
        await db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        await build_line_items(db, OrderItem, "order_id", order_id, items, current_user.id)
    await sync_totals(db, order, OrderItem, "order_id", keep_header=items is None)
    await db.commit()

    order = await db.get(Order, order_id, populate_existing=True)
    return {"message": "Order updated successfully", "data": build_order_response(order)}


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("order", "delete"))),
    order_id: int) -> Any:
    """Delete an order and its lines"""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    await db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
    await db.execute(delete(Order).where(Order.id == order_id))
    await db.commit()
    logger.info(f"🗑️ Order {order_id} deleted by user {current_user.id}")
    return {"message": "Order deleted successfully"}
