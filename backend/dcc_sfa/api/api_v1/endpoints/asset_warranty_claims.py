"""
Asset warranty claim API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import AssetMaster, AssetWarrantyClaim
from dcc_sfa.schemas.asset import WarrantyClaimCreate, WarrantyClaimResponse, WarrantyClaimUpdate
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_claim_response(claim: AssetWarrantyClaim) -> WarrantyClaimResponse:
    return WarrantyClaimResponse(
        id=claim.id,
        asset_id=claim.asset_id,
        claim_date=claim.claim_date,
        issue_description=claim.issue_description,
        claim_status=claim.claim_status or "pending",
        resolved_date=claim.resolved_date,
        notes=claim.notes,
        asset=ref(claim.asset, name_attr="display_name", code_attr="serial_number"),
        **audit_fields(claim),
    )


@router.get("", response_model=ListEnvelope[WarrantyClaimResponse])
async def list_warranty_claims(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    asset_id: Optional[int] = Query(None),
    claim_status: Optional[str] = Query(None)) -> Any:
    """List warranty claims"""
    conditions = []
    condition = search_filter(search, AssetWarrantyClaim.issue_description, AssetWarrantyClaim.notes)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(AssetWarrantyClaim.is_active == is_active)
    if asset_id:
        conditions.append(AssetWarrantyClaim.asset_id == asset_id)
    if claim_status:
        conditions.append(AssetWarrantyClaim.claim_status == claim_status)

    result = await paginate(db, AssetWarrantyClaim, conditions, page, limit)
    return {
        "success": True,
        "message": "Warranty claims retrieved successfully",
        "data": [build_claim_response(c) for c in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, AssetWarrantyClaim, "claims"),
    }


@router.get("/{claim_id}", response_model=DataEnvelope[WarrantyClaimResponse])
async def get_warranty_claim(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "read"))),
    claim_id: int) -> Any:
    """Get one warranty claim"""
    claim = await db.get(AssetWarrantyClaim, claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Warranty claim not found")
    return {"message": "Warranty claim fetched successfully", "data": build_claim_response(claim)}


@router.post("", response_model=DataEnvelope[WarrantyClaimResponse], status_code=201)
async def create_warranty_claim(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "create"))),
    claim_in: WarrantyClaimCreate) -> Any:
    """Create a warranty claim"""
    data = claim_in.model_dump()
    if not await db.get(AssetMaster, data["asset_id"]):
        raise HTTPException(status_code=404, detail="Asset not found")
    if data.get("claim_date") is None:
        data.pop("claim_date")

    claim = AssetWarrantyClaim(**data, **stamp_create(current_user.id))
    db.add(claim)
    await db.commit()
    claim = await db.get(AssetWarrantyClaim, claim.id, populate_existing=True)
    return {"message": "Warranty claim created successfully", "data": build_claim_response(claim)}


@router.put("/{claim_id}", response_model=DataEnvelope[WarrantyClaimResponse])
async def update_warranty_claim(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "update"))),
    claim_id: int,
    claim_in: WarrantyClaimUpdate) -> Any:
    """Update a warranty claim"""
    claim = await db.get(AssetWarrantyClaim, claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Warranty claim not found")
    apply_update(claim, claim_in.model_dump(exclude_unset=True), current_user.id)
    await db.commit()
    claim = await db.get(AssetWarrantyClaim, claim_id, populate_existing=True)
    return {"message": "Warranty claim updated successfully", "data": build_claim_response(claim)}


@router.delete("/{claim_id}", response_model=MessageResponse)
async def delete_warranty_claim(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-master", "delete"))),
    claim_id: int) -> Any:
    """Deactivate a warranty claim"""
    claim = await db.get(AssetWarrantyClaim, claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Warranty claim not found")
    claim.is_active = "N"
    touch(claim, current_user.id)
    await db.commit()
    return {"message": "Warranty claim deleted successfully"}
