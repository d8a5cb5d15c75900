"""
Asset master API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import AssetMaster, AssetType
from dcc_sfa.schemas.asset import AssetMasterCreate, AssetMasterResponse, AssetMasterUpdate
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_asset_response(asset: AssetMaster) -> AssetMasterResponse:
    return AssetMasterResponse(
        id=asset.id,
        asset_type_id=asset.asset_type_id,
        name=asset.name,
        serial_number=asset.serial_number,
        purchase_date=asset.purchase_date,
        warranty_expiry=asset.warranty_expiry,
        current_location=asset.current_location,
        current_status=asset.current_status or "Available",
        assigned_to=asset.assigned_to,
        asset_type=ref(asset.asset_type),
        **audit_fields(asset),
    )


async def _ensure_serial_free(db: AsyncSession, serial_number: str, exclude_id: int = None):
    query = select(AssetMaster.id).where(AssetMaster.serial_number == serial_number)
    if exclude_id:
        query = query.where(AssetMaster.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Serial number already exists")


@router.get("", response_model=ListEnvelope[AssetMasterResponse])
async def list_assets(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    asset_type_id: Optional[int] = Query(None),
    current_status: Optional[str] = Query(None)) -> Any:
    """List assets"""
    conditions = []
    condition = search_filter(search, AssetMaster.name, AssetMaster.serial_number, AssetMaster.current_location)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(AssetMaster.is_active == is_active)
    if asset_type_id:
        conditions.append(AssetMaster.asset_type_id == asset_type_id)
    if current_status:
        conditions.append(AssetMaster.current_status == current_status)

    result = await paginate(db, AssetMaster, conditions, page, limit)
    return {
        "success": True,
        "message": "Assets retrieved successfully",
        "data": [build_asset_response(a) for a in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, AssetMaster, "assets"),
    }


@router.get("/{asset_id}", response_model=DataEnvelope[AssetMasterResponse])
async def get_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "read"))),
    asset_id: int) -> Any:
    """Get one asset"""
    asset = await db.get(AssetMaster, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return {"message": "Asset fetched successfully", "data": build_asset_response(asset)}


@router.post("", response_model=DataEnvelope[AssetMasterResponse], status_code=201)
async def create_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "create"))),
    asset_in: AssetMasterCreate) -> Any:
    """Create an asset"""
    data = asset_in.model_dump()
    if not await db.get(AssetType, data["asset_type_id"]):
        raise HTTPException(status_code=400, detail="Asset type not found")
    await _ensure_serial_free(db, data["serial_number"])

    asset = AssetMaster(**data, **stamp_create(current_user.id))
    db.add(asset)
    await db.commit()
    asset = await db.get(AssetMaster, asset.id, populate_existing=True)
    return {"message": "Asset created successfully", "data": build_asset_response(asset)}


@router.put("/{asset_id}", response_model=DataEnvelope[AssetMasterResponse])
async def update_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "update"))),
    asset_id: int,
    asset_in: AssetMasterUpdate) -> Any:
    """Update an asset"""
    asset = await db.get(AssetMaster, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")

    data = asset_in.model_dump(exclude_unset=True)
    if data.get("asset_type_id") is not None and not await db.get(AssetType, data["asset_type_id"]):
        raise HTTPException(status_code=400, detail="Asset type not found")
    if data.get("serial_number") and data["serial_number"] != asset.serial_number:
        await _ensure_serial_free(db, data["serial_number"], exclude_id=asset_id)
    apply_update(asset, data, current_user.id)
    await db.commit()
    asset = await db.get(AssetMaster, asset_id, populate_existing=True)
    return {"message": "Asset updated successfully", "data": build_asset_response(asset)}


@router.delete("/{asset_id}", response_model=MessageResponse)
async def delete_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "delete"))),
    asset_id: int) -> Any:
    """Deactivate an asset"""
    asset = await db.get(AssetMaster, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    asset.is_active = "N"
    touch(asset, current_user.id)
    await db.commit()
    return {"message": "Asset deleted successfully"}
