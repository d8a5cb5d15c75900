"""
Zone API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Company, Depot, User, Zone
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.depot import ZoneCreate, ZoneResponse, ZoneUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.numbering import generate_name_code
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_zone_response(zone: Zone) -> ZoneResponse:
    return ZoneResponse(
        id=zone.id,
        parent_id=zone.parent_id,
        depot_id=zone.depot_id,
        name=zone.name,
        code=zone.code,
        description=zone.description,
        supervisor_id=zone.supervisor_id,
        company=ref(zone.company),
        depot=ref(zone.depot),
        **audit_fields(zone),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("parent_id") is not None and not await db.get(Company, data["parent_id"]):
        raise HTTPException(status_code=400, detail="Company not found")
    if data.get("depot_id") is not None and not await db.get(Depot, data["depot_id"]):
        raise HTTPException(status_code=400, detail="Depot not found")
    if data.get("supervisor_id") is not None and not await db.get(User, data["supervisor_id"]):
        raise HTTPException(status_code=400, detail="Supervisor not found")


@router.get("", response_model=ListEnvelope[ZoneResponse])
async def list_zones(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("zone", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    depot_id: Optional[int] = Query(None)) -> Any:
    """List zones"""
    conditions = []
    condition = search_filter(search, Zone.name, Zone.code, Zone.description)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Zone.is_active == is_active)
    if depot_id:
        conditions.append(Zone.depot_id == depot_id)

    result = await paginate(db, Zone, conditions, page, limit)
    return {
        "success": True,
        "message": "Zones retrieved successfully",
        "data": [build_zone_response(z) for z in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Zone, "zones"),
    }


@router.get("/{zone_id}", response_model=DataEnvelope[ZoneResponse])
async def get_zone(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("zone", "read"))),
    zone_id: int) -> Any:
    """Get one zone"""
    zone = await db.get(Zone, zone_id)
    if not zone:
        raise HTTPException(status_code=404, detail="Zone not found")
    return {"message": "Zone fetched successfully", "data": build_zone_response(zone)}


@router.post("", response_model=DataEnvelope[ZoneResponse], status_code=201)
async def create_zone(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("zone", "create"))),
    zone_in: ZoneCreate) -> Any:
    """Create a zone"""
    data = zone_in.model_dump()
    await _check_references(db, data)
    if data.get("code"):
        existing = await db.execute(select(Zone.id).where(Zone.code == data["code"]))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Zone code already exists")
    else:
        data["code"] = await generate_name_code(db, Zone, data["name"], "ZON")

    zone = Zone(**data, **stamp_create(current_user.id))
    db.add(zone)
    await db.commit()
    zone = await db.get(Zone, zone.id, populate_existing=True)
    return {"message": "Zone created successfully", "data": build_zone_response(zone)}


@router.put("/{zone_id}", response_model=DataEnvelope[ZoneResponse])
async def update_zone(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("zone", "update"))),
    zone_id: int,
    zone_in: ZoneUpdate) -> Any:
    """Update a zone"""
    zone = await db.get(Zone, zone_id)
    if not zone:
        raise HTTPException(status_code=404, detail="Zone not found")
    data = zone_in.model_dump(exclude_unset=True)
    await _check_references(db, data)
    if data.get("code") and data["code"] != zone.code:
        existing = await db.execute(select(Zone.id).where(Zone.code == data["code"], Zone.id != zone_id))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Zone code already exists")
    apply_update(zone, data, current_user.id)
    await db.commit()
    zone = await db.get(Zone, zone_id, populate_existing=True)
    return {"message": "Zone updated successfully", "data": build_zone_response(zone)}


@router.delete("/{zone_id}", response_model=MessageResponse)
async def delete_zone(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("zone", "delete"))),
    zone_id: int) -> Any:
    """Deactivate a zone"""
    zone = await db.get(Zone, zone_id)
    if not zone:
        raise HTTPException(status_code=404, detail="Zone not found")
    zone.is_active = "N"
    touch(zone, current_user.id)
    await db.commit()
    return {"message": "Zone deleted successfully"}
