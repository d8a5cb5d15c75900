"""
Depot API

Depots belong to a company (parent_id). Deleting a depot detaches its zones
(depot_id set to NULL) before the row is removed.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Company, Depot, User, Zone
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.depot import DepotCreate, DepotResponse, DepotUpdate
from dcc_sfa.services.audit import apply_update, create_audit_log, request_ip, stamp_create
from dcc_sfa.services.numbering import generate_name_code
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def build_depot_response(depot: Depot) -> DepotResponse:
    return DepotResponse(
        id=depot.id,
        parent_id=depot.parent_id,
        name=depot.name,
        code=depot.code,
        address=depot.address,
        city=depot.city,
        state=depot.state,
        zipcode=depot.zipcode,
        phone_number=depot.phone_number,
        email=depot.email,
        manager_id=depot.manager_id,
        supervisor_id=depot.supervisor_id,
        coordinator_id=depot.coordinator_id,
        latitude=depot.latitude,
        longitude=depot.longitude,
        company=ref(depot.company),
        manager=ref(depot.manager, code_attr="employee_id"),
        supervisor=ref(depot.supervisor, code_attr="employee_id"),
        coordinator=ref(depot.coordinator, code_attr="employee_id"),
        **audit_fields(depot),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("parent_id") is not None and not await db.get(Company, data["parent_id"]):
        raise HTTPException(status_code=400, detail="Company not found")
    for key in ("manager_id", "supervisor_id", "coordinator_id"):
        if data.get(key) is not None and not await db.get(User, data[key]):
            raise HTTPException(status_code=400, detail=f"User for {key} not found")


@router.get("", response_model=ListEnvelope[DepotResponse])
async def list_depots(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("depot", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    parent_id: Optional[int] = Query(None, description="Company ID")) -> Any:
    """List depots"""
    conditions = []
    condition = search_filter(search, Depot.name, Depot.code, Depot.email, Depot.city)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Depot.is_active == is_active)
    if parent_id:
        conditions.append(Depot.parent_id == parent_id)

    result = await paginate(db, Depot, conditions, page, limit)
    return {
        "success": True,
        "message": "Depots retrieved successfully",
        "data": [build_depot_response(d) for d in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Depot, "depots"),
    }


@router.get("/{depot_id}", response_model=DataEnvelope[DepotResponse])
async def get_depot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("depot", "read"))),
    depot_id: int) -> Any:
    """Get one depot"""
    depot = await db.get(Depot, depot_id)
    if not depot:
        raise HTTPException(status_code=404, detail="Depot not found")
    return {"message": "Depot fetched successfully", "data": build_depot_response(depot)}


@router.post("", response_model=DataEnvelope[DepotResponse], status_code=201)
async def create_depot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("depot", "create"))),
    request: Request,
    depot_in: DepotCreate) -> Any:
    """Create a depot; the code is derived from the name when omitted"""
    data = depot_in.model_dump()
    await _check_references(db, data)
    if data.get("code"):
        existing = await db.execute(select(Depot.id).where(Depot.code == data["code"]))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Depot code already exists")
    else:
        data["code"] = await generate_name_code(db, Depot, data["name"], "DEP")

    depot = Depot(**data, **stamp_create(current_user.id))
    db.add(depot)
    await db.flush()
    await create_audit_log(
        db, current_user.id, "create", "depot",
        resource_id=depot.id, resource_name=depot.name,
        description=f"Created depot {depot.code}",
        new_value=jsonable_encoder(data),
        ip_address=request_ip(request),
    )
    await db.commit()
    depot = await db.get(Depot, depot.id, populate_existing=True)
    logger.info(f"🏭 Depot {depot.code} created by user {current_user.id}")
    return {"message": "Depot created successfully", "data": build_depot_response(depot)}


@router.put("/{depot_id}", response_model=DataEnvelope[DepotResponse])
async def update_depot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("depot", "update"))),
    request: Request,
    depot_id: int,
    depot_in: DepotUpdate) -> Any:
    """Update a depot"""
    depot = await db.get(Depot, depot_id)
    if not depot:
        raise HTTPException(status_code=404, detail="Depot not found")

    data = depot_in.model_dump(exclude_unset=True)
    await _check_references(db, data)
    if data.get("code") and data["code"] != depot.code:
        existing = await db.execute(
            select(Depot.id).where(Depot.code == data["code"], Depot.id != depot_id)
        )
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Depot code already exists")

    old_value = jsonable_encoder(build_depot_response(depot).model_dump(exclude={"company", "manager", "supervisor", "coordinator"}))
    apply_update(depot, data, current_user.id)
    await create_audit_log(
        db, current_user.id, "update", "depot",
        resource_id=depot.id, resource_name=depot.name,
        description=f"Updated depot {depot.code}",
        old_value=old_value,
        new_value=jsonable_encoder(data),
        ip_address=request_ip(request),
    )
    await db.commit()
    depot = await db.get(Depot, depot_id, populate_existing=True)
    return {"message": "Depot updated successfully", "data": build_depot_response(depot)}


@router.delete("/{depot_id}", response_model=MessageResponse)
async def delete_depot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("depot", "delete"))),
    request: Request,
    depot_id: int) -> Any:
    """
    Delete a depot.

    Zones still pointing at the depot are detached and reported as a warning;
    any other reference (users, warehouses ...) makes the delete fail with 400.
    """
    depot = await db.get(Depot, depot_id)
    if not depot:
        raise HTTPException(status_code=404, detail="Depot not found")

    warnings = []
    zone_result = await db.execute(select(Zone.id).where(Zone.depot_id == depot_id))
    zone_ids = list(zone_result.scalars().all())
    if zone_ids:
        await db.execute(update(Zone).where(Zone.depot_id == depot_id).values(depot_id=None))
        warnings.append(f"{len(zone_ids)} zone(s) were unlinked from this depot")

    await create_audit_log(
        db, current_user.id, "delete", "depot",
        resource_id=depot.id, resource_name=depot.name,
        description=f"Deleted depot {depot.code}",
        ip_address=request_ip(request),
    )
    await db.delete(depot)
    await db.commit()
    logger.info(f"🗑️ Depot {depot_id} deleted by user {current_user.id}")
    return {"message": "Depot deleted successfully", "warnings": warnings}
