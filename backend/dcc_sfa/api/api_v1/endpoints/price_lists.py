"""
Price list API

A price list and its items are written in one transaction.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import PriceList, PriceListItem
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, naive_utc, ref
from dcc_sfa.schemas.product import (
    PriceListCreate,
    PriceListItemIn,
    PriceListItemResponse,
    PriceListResponse,
    PriceListUpdate,
)
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.line_items import resolve_product
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_price_list_item_response(item: PriceListItem) -> PriceListItemResponse:
    return PriceListItemResponse(
        id=item.id,
        pricelist_id=item.pricelist_id,
        product_id=item.product_id,
        unit_price=item.unit_price or 0,
        uom=item.uom,
        discount_percent=item.discount_percent or 0,
        effective_from=item.effective_from,
        effective_to=item.effective_to,
        product=ref(item.product),
        **audit_fields(item),
    )


def build_price_list_response(price_list: PriceList) -> PriceListResponse:
    return PriceListResponse(
        id=price_list.id,
        name=price_list.name,
        description=price_list.description,
        currency_code=price_list.currency_code or "USD",
        valid_from=price_list.valid_from,
        valid_to=price_list.valid_to,
        items=[build_price_list_item_response(i) for i in price_list.items if i.is_active == "Y"],
        **audit_fields(price_list),
    )


def _check_validity(valid_from, valid_to):
    valid_from, valid_to = naive_utc(valid_from), naive_utc(valid_to)
    if valid_from and valid_to and valid_to < valid_from:
        raise HTTPException(status_code=400, detail="valid_to must not be before valid_from")


async def _add_items(db: AsyncSession, pricelist_id: int, items: List[dict], user_id: int):
    for item in items:
        item.pop("id", None)
        product = await resolve_product(db, item["product_id"])
        if not item.get("uom"):
            item["uom"] = product.unit_of_measurement
        db.add(PriceListItem(pricelist_id=pricelist_id, **item, **stamp_create(user_id)))


async def _get_price_list(db: AsyncSession, price_list_id: int) -> PriceList:
    price_list = await db.get(PriceList, price_list_id)
    if not price_list:
        raise HTTPException(status_code=404, detail="Price list not found")
    return price_list


@router.get("", response_model=ListEnvelope[PriceListResponse])
async def list_price_lists(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive")) -> Any:
    """List price lists"""
    conditions = []
    condition = search_filter(search, PriceList.name, PriceList.description)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(PriceList.is_active == is_active)

    result = await paginate(db, PriceList, conditions, page, limit)
    return {
        "success": True,
        "message": "Price lists retrieved successfully",
        "data": [build_price_list_response(p) for p in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, PriceList, "price_lists"),
    }


@router.get("/{price_list_id}", response_model=DataEnvelope[PriceListResponse])
async def get_price_list(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "read"))),
    price_list_id: int) -> Any:
    """Get one price list with its items"""
    price_list = await _get_price_list(db, price_list_id)
    return {"message": "Price list fetched successfully", "data": build_price_list_response(price_list)}


@router.get("/{price_list_id}/items", response_model=DataEnvelope[List[PriceListItemResponse]])
async def list_price_list_items(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "read"))),
    price_list_id: int) -> Any:
    """Items of one price list"""
    price_list = await _get_price_list(db, price_list_id)
    return {
        "message": "Price list items retrieved successfully",
        "data": [build_price_list_item_response(i) for i in price_list.items if i.is_active == "Y"],
    }


@router.post("/{price_list_id}/items", response_model=DataEnvelope[PriceListResponse], status_code=201)
async def add_price_list_item(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "update"))),
    price_list_id: int,
    item_in: PriceListItemIn) -> Any:
    """Add an item to a price list"""
    price_list = await _get_price_list(db, price_list_id)
    await _add_items(db, price_list_id, [item_in.model_dump()], current_user.id)
    touch(price_list, current_user.id)
    await db.commit()
    price_list = await db.get(PriceList, price_list_id, populate_existing=True)
    return {"message": "Price list item added successfully", "data": build_price_list_response(price_list)}


@router.post("", response_model=DataEnvelope[PriceListResponse], status_code=201)
async def create_price_list(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "create"))),
    price_list_in: PriceListCreate) -> Any:
    """Create a price list with its items"""
    data = price_list_in.model_dump()
    items = data.pop("items")
    _check_validity(data.get("valid_from"), data.get("valid_to"))

    price_list = PriceList(**data, **stamp_create(current_user.id))
    db.add(price_list)
    await db.flush()
    await _add_items(db, price_list.id, items, current_user.id)
    await db.commit()
    price_list = await db.get(PriceList, price_list.id, populate_existing=True)
    return {"message": "Price list created successfully", "data": build_price_list_response(price_list)}


@router.put("/{price_list_id}", response_model=DataEnvelope[PriceListResponse])
async def update_price_list(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "update"))),
    price_list_id: int,
    price_list_in: PriceListUpdate) -> Any:
    """Update a price list; an items list replaces the current items"""
    price_list = await _get_price_list(db, price_list_id)

    data = price_list_in.model_dump(exclude_unset=True)
    items = data.pop("items", None)
    _check_validity(data.get("valid_from", price_list.valid_from), data.get("valid_to", price_list.valid_to))
    apply_update(price_list, data, current_user.id)
    if items is not None:
        await db.execute(delete(PriceListItem).where(PriceListItem.pricelist_id == price_list_id))
        await _add_items(db, price_list_id, items, current_user.id)
    await db.commit()
    price_list = await db.get(PriceList, price_list_id, populate_existing=True)
    return {"message": "Price list updated successfully", "data": build_price_list_response(price_list)}


@router.delete("/{price_list_id}", response_model=MessageResponse)
async def delete_price_list(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("pricelist", "delete"))),
    price_list_id: int) -> Any:
    """Deactivate a price list"""
    price_list = await _get_price_list(db, price_list_id)
    price_list.is_active = "N"
    touch(price_list, current_user.id)
    await db.commit()
    return {"message": "Price list deleted successfully"}
