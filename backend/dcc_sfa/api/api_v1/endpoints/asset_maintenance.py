"""
Asset maintenance API

Maintenance is only recorded for assets with an active warranty claim.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import AssetMaintenance, AssetMaster, User
from dcc_sfa.schemas.asset import MaintenanceCreate, MaintenanceResponse, MaintenanceUpdate
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.import_export.asset_maintenance import has_active_warranty_claim
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_maintenance_response(record: AssetMaintenance) -> MaintenanceResponse:
    return MaintenanceResponse(
        id=record.id,
        asset_id=record.asset_id,
        asset_movement_id=record.asset_movement_id,
        maintenance_date=record.maintenance_date,
        technician_id=record.technician_id,
        issue_reported=record.issue_reported,
        action_taken=record.action_taken,
        cost=record.cost,
        remarks=record.remarks,
        asset=ref(record.asset, name_attr="display_name", code_attr="serial_number"),
        technician=ref(record.technician, code_attr="employee_id"),
        **audit_fields(record),
    )


@router.get("", response_model=ListEnvelope[MaintenanceResponse])
async def list_maintenance(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("maintenance", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    asset_id: Optional[int] = Query(None),
    technician_id: Optional[int] = Query(None)) -> Any:
    """List maintenance records"""
    conditions = []
    condition = search_filter(
        search, AssetMaintenance.issue_reported, AssetMaintenance.action_taken, AssetMaintenance.remarks
    )
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(AssetMaintenance.is_active == is_active)
    if asset_id:
        conditions.append(AssetMaintenance.asset_id == asset_id)
    if technician_id:
        conditions.append(AssetMaintenance.technician_id == technician_id)

    result = await paginate(db, AssetMaintenance, conditions, page, limit)
    return {
        "success": True,
        "message": "Asset maintenance records retrieved successfully",
        "data": [build_maintenance_response(m) for m in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, AssetMaintenance, "maintenance"),
    }


@router.get("/{record_id}", response_model=DataEnvelope[MaintenanceResponse])
async def get_maintenance(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("maintenance", "read"))),
    record_id: int) -> Any:
    """Get one maintenance record"""
    record = await db.get(AssetMaintenance, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Asset maintenance record not found")
    return {"message": "Asset maintenance fetched successfully", "data": build_maintenance_response(record)}


@router.post("", response_model=DataEnvelope[MaintenanceResponse], status_code=201)
async def create_maintenance(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("maintenance", "create"))),
    record_in: MaintenanceCreate) -> Any:
    """Record maintenance for an asset under an active warranty claim"""
    data = record_in.model_dump()
    if not await db.get(AssetMaster, data["asset_id"]):
        raise HTTPException(status_code=404, detail="Asset not found")
    if not await db.get(User, data["technician_id"]):
        raise HTTPException(status_code=400, detail="Technician not found")
    if not await has_active_warranty_claim(db, data["asset_id"]):
        raise HTTPException(
            status_code=400,
            detail="No active warranty claim found for this asset. Create a warranty claim first.",
        )

    record = AssetMaintenance(**data, **stamp_create(current_user.id))
    db.add(record)
    await db.commit()
    record = await db.get(AssetMaintenance, record.id, populate_existing=True)
    return {"message": "Asset maintenance created successfully", "data": build_maintenance_response(record)}


@router.put("/{record_id}", response_model=DataEnvelope[MaintenanceResponse])
async def update_maintenance(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("maintenance", "update"))),
    record_id: int,
    record_in: MaintenanceUpdate) -> Any:
    """Update a maintenance record"""
    record = await db.get(AssetMaintenance, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Asset maintenance record not found")

    data = record_in.model_dump(exclude_unset=True)
    if data.get("technician_id") is not None and not await db.get(User, data["technician_id"]):
        raise HTTPException(status_code=400, detail="Technician not found")
    apply_update(record, data, current_user.id)
    await db.commit()
    record = await db.get(AssetMaintenance, record_id, populate_existing=True)
    return {"message": "Asset maintenance updated successfully", "data": build_maintenance_response(record)}


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_maintenance(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("maintenance", "delete"))),
    record_id: int) -> Any:
    """Deactivate a maintenance record"""
    record = await db.get(AssetMaintenance, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Asset maintenance record not found")
    record.is_active = "N"
    touch(record, current_user.id)
    await db.commit()
    return {"message": "Asset maintenance deleted successfully"}
