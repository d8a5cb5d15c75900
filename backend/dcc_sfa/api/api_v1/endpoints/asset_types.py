"""
Asset type API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import AssetMaster, AssetType
from dcc_sfa.schemas.asset import AssetTypeCreate, AssetTypeResponse, AssetTypeUpdate
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


async def build_asset_type_response(db: AsyncSession, asset_type: AssetType) -> AssetTypeResponse:
    asset_count = (await db.execute(
        select(func.count(AssetMaster.id)).where(
            AssetMaster.asset_type_id == asset_type.id, AssetMaster.is_active == "Y"
        )
    )).scalar() or 0
    return AssetTypeResponse(
        id=asset_type.id,
        name=asset_type.name,
        description=asset_type.description,
        category=asset_type.category,
        brand=asset_type.brand,
        asset_count=asset_count,
        **audit_fields(asset_type),
    )


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: int = None):
    query = select(AssetType.id).where(AssetType.name == name)
    if exclude_id:
        query = query.where(AssetType.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Asset type name already exists")


@router.get("", response_model=ListEnvelope[AssetTypeResponse])
async def list_asset_types(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-type", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive")) -> Any:
    """List asset types"""
    conditions = []
    condition = search_filter(search, AssetType.name, AssetType.category, AssetType.brand)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(AssetType.is_active == is_active)

    result = await paginate(db, AssetType, conditions, page, limit)
    return {
        "success": True,
        "message": "Asset types retrieved successfully",
        "data": [await build_asset_type_response(db, t) for t in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, AssetType, "asset_types"),
    }


@router.get("/{type_id}", response_model=DataEnvelope[AssetTypeResponse])
async def get_asset_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-type", "read"))),
    type_id: int) -> Any:
    """Get one asset type"""
    asset_type = await db.get(AssetType, type_id)
    if not asset_type:
        raise HTTPException(status_code=404, detail="Asset type not found")
    return {"message": "Asset type fetched successfully", "data": await build_asset_type_response(db, asset_type)}


@router.post("", response_model=DataEnvelope[AssetTypeResponse], status_code=201)
async def create_asset_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-type", "create"))),
    type_in: AssetTypeCreate) -> Any:
    """Create an asset type"""
    data = type_in.model_dump()
    await _ensure_name_free(db, data["name"])
    asset_type = AssetType(**data, **stamp_create(current_user.id))
    db.add(asset_type)
    await db.commit()
    await db.refresh(asset_type)
    return {"message": "Asset type created successfully", "data": await build_asset_type_response(db, asset_type)}


@router.put("/{type_id}", response_model=DataEnvelope[AssetTypeResponse])
async def update_asset_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-type", "update"))),
    type_id: int,
    type_in: AssetTypeUpdate) -> Any:
    """Update an asset type"""
    asset_type = await db.get(AssetType, type_id)
    if not asset_type:
        raise HTTPException(status_code=404, detail="Asset type not found")

    data = type_in.model_dump(exclude_unset=True)
    if data.get("name") and data["name"] != asset_type.name:
        await _ensure_name_free(db, data["name"], exclude_id=type_id)
    apply_update(asset_type, data, current_user.id)
    await db.commit()
    await db.refresh(asset_type)
    return {"message": "Asset type updated successfully", "data": await build_asset_type_response(db, asset_type)}


@router.delete("/{type_id}", response_model=MessageResponse)
async def delete_asset_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-type", "delete"))),
    type_id: int) -> Any:
    """Deactivate an asset type"""
    asset_type = await db.get(AssetType, type_id)
    if not asset_type:
        raise HTTPException(status_code=404, detail="Asset type not found")
    asset_type.is_active = "N"
    touch(asset_type, current_user.id)
    await db.commit()
    return {"message": "Asset type deleted successfully"}
