"""
Customer group API

A group links customers, depots and zones. The group row and all of its links
are written in one transaction; on update a supplied id list replaces the
current links of that kind.
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import (
    Customer,
    CustomerGroup,
    CustomerGroupDepot,
    CustomerGroupMember,
    CustomerGroupZone,
    Depot,
    Zone,
)
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.customer import CustomerGroupCreate, CustomerGroupResponse, CustomerGroupUpdate
from dcc_sfa.services.audit import apply_update, stamp_create
from dcc_sfa.services.numbering import generate_prefixed_code
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()

# id list field -> (link model, link column, target model, label)
LINKS = {
    "customer_ids": (CustomerGroupMember, "customer_id", Customer, "Customer"),
    "depot_ids": (CustomerGroupDepot, "depot_id", Depot, "Depot"),
    "zone_ids": (CustomerGroupZone, "zone_id", Zone, "Zone"),
}


def build_customer_group_response(group: CustomerGroup) -> CustomerGroupResponse:
    customers = [ref(m.customer) for m in group.members if m.customer]
    return CustomerGroupResponse(
        id=group.id,
        name=group.name,
        code=group.code,
        description=group.description,
        discount_percentage=group.discount_percentage or 0,
        credit_terms=group.credit_terms if group.credit_terms is not None else 30,
        payment_terms=group.payment_terms,
        price_group=group.price_group,
        customers=customers,
        depots=[ref(d.depot) for d in group.depots if d.depot],
        zones=[ref(z.zone) for z in group.zones if z.zone],
        member_count=len(customers),
        **audit_fields(group),
    )


async def _check_targets(db: AsyncSession, target_model, label: str, ids: List[int]):
    ids = sorted(set(ids))
    if not ids:
        return
    result = await db.execute(select(target_model.id).where(target_model.id.in_(ids)))
    missing = set(ids) - set(result.scalars().all())
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"{label} not found: {', '.join(str(i) for i in sorted(missing))}",
        )


def _write_links(db: AsyncSession, group_id: int, field: str, ids: List[int], user_id: int):
    link_model, column, _, _ = LINKS[field]
    for target_id in sorted(set(ids)):
        db.add(link_model(customer_group_id=group_id, **{column: target_id}, **stamp_create(user_id)))


async def _load(db: AsyncSession, group_id: int) -> CustomerGroup:
    return await db.get(CustomerGroup, group_id, populate_existing=True)


@router.get("", response_model=ListEnvelope[CustomerGroupResponse])
async def list_customer_groups(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet-group", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive")) -> Any:
    """List customer groups"""
    conditions = []
    condition = search_filter(search, CustomerGroup.name, CustomerGroup.code, CustomerGroup.description)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(CustomerGroup.is_active == is_active)

    result = await paginate(db, CustomerGroup, conditions, page, limit)
    return {
        "success": True,
        "message": "Customer groups retrieved successfully",
        "data": [build_customer_group_response(g) for g in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, CustomerGroup, "customer_groups"),
    }


@router.get("/{group_id}", response_model=DataEnvelope[CustomerGroupResponse])
async def get_customer_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet-group", "read"))),
    group_id: int) -> Any:
    """Get one customer group with its links"""
    group = await db.get(CustomerGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Customer group not found")
    return {"message": "Customer group fetched successfully", "data": build_customer_group_response(group)}


@router.post("", response_model=DataEnvelope[CustomerGroupResponse], status_code=201)
async def create_customer_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet-group", "create"))),
    group_in: CustomerGroupCreate) -> Any:
    """Create a customer group and its links"""
    data = group_in.model_dump()
    links = {field: data.pop(field) for field in LINKS}
    for field, ids in links.items():
        _, _, target_model, label = LINKS[field]
        await _check_targets(db, target_model, label, ids)

    if data.get("code"):
        existing = await db.execute(select(CustomerGroup.id).where(CustomerGroup.code == data["code"]))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Customer group code already exists")
    else:
        data["code"] = await generate_prefixed_code(db, CustomerGroup, "CG")

    group = CustomerGroup(**data, **stamp_create(current_user.id))
    db.add(group)
    await db.flush()
    for field, ids in links.items():
        _write_links(db, group.id, field, ids, current_user.id)
    await db.commit()

    group = await _load(db, group.id)
    logger.info(f"👥 Customer group {group.code} created with {len(group.members)} member(s)")
    return {"message": "Customer group created successfully", "data": build_customer_group_response(group)}


@router.put("/{group_id}", response_model=DataEnvelope[CustomerGroupResponse])
async def update_customer_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet-group", "update"))),
    group_id: int,
    group_in: CustomerGroupUpdate) -> Any:
    """Update a customer group; supplied id lists replace the current links"""
    group = await db.get(CustomerGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Customer group not found")

    data = group_in.model_dump(exclude_unset=True)
    links = {field: data.pop(field) for field in LINKS if field in data}
    links = {field: ids for field, ids in links.items() if ids is not None}
    for field, ids in links.items():
        _, _, target_model, label = LINKS[field]
        await _check_targets(db, target_model, label, ids)

    if data.get("code") and data["code"] != group.code:
        existing = await db.execute(
            select(CustomerGroup.id).where(CustomerGroup.code == data["code"], CustomerGroup.id != group_id)
        )
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Customer group code already exists")

    apply_update(group, data, current_user.id)
    for field, ids in links.items():
        link_model = LINKS[field][0]
        await db.execute(delete(link_model).where(link_model.customer_group_id == group_id))
        _write_links(db, group_id, field, ids, current_user.id)
    await db.commit()

    group = await _load(db, group_id)
    return {"message": "Customer group updated successfully", "data": build_customer_group_response(group)}


@router.delete("/{group_id}", response_model=MessageResponse)
async def delete_customer_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet-group", "delete"))),
    group_id: int) -> Any:
    """Delete a customer group and all of its links"""
    group = await db.get(CustomerGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Customer group not found")

    for link_model, _, _, _ in LINKS.values():
        await db.execute(delete(link_model).where(link_model.customer_group_id == group_id))
    await db.execute(delete(CustomerGroup).where(CustomerGroup.id == group_id))
    await db.commit()
    logger.info(f"🗑️ Customer group {group_id} deleted by user {current_user.id}")
    return {"message": "Customer group deleted successfully"}
