"""
Asset movement API

Movement rules by type:
    transfer              depot -> depot                   asset becomes Available
    maintenance / repair  depot -> customer or back        asset becomes Under Maintenance
    disposal / return     depot -> customer or back        asset becomes Retired

The asset's location and status are updated in the same transaction as the
movement. Approving a movement generates its contract PDF.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import AssetMaintenance, AssetMaster, AssetMovement, Customer, Depot, User
from dcc_sfa.schemas.asset import (
    MOVEMENT_TYPES,
    ContractResponse,
    MovementApprove,
    MovementCreate,
    MovementResponse,
    MovementUpdate,
)
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.services.audit import apply_update, create_audit_log, request_ip, stamp_create, touch
from dcc_sfa.services.contract_generation import (
    ContractGenerationError,
    contract_number,
    generate_contract_on_approval,
    generate_cooler_issuance_contract,
    get_contract_by_asset_movement_id,
)
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_TYPE = {
    "transfer": "Available",
    "maintenance": "Under Maintenance",
    "repair": "Under Maintenance",
    "disposal": "Retired",
    "return": "Retired",
}


def build_contract_response(contract) -> Optional[ContractResponse]:
    if contract is None:
        return None
    return ContractResponse(
        id=contract.id,
        asset_movement_id=contract.asset_movement_id,
        contract_number=contract.contract_number,
        contract_date=contract.contract_date,
        file_name=contract.file_name,
        contract_url=contract.contract_url,
        file_size=contract.file_size,
    )


def build_movement_response(movement: AssetMovement, contract=None) -> MovementResponse:
    return MovementResponse(
        id=movement.id,
        asset_id=movement.asset_id,
        movement_type=movement.movement_type,
        performed_by=movement.performed_by,
        from_depot_id=movement.from_depot_id,
        to_depot_id=movement.to_depot_id,
        from_customer_id=movement.from_customer_id,
        to_customer_id=movement.to_customer_id,
        movement_date=movement.movement_date,
        notes=movement.notes,
        approval_status=movement.approval_status,
        approved_by=movement.approved_by,
        approved_at=movement.approved_at,
        from_location=movement.from_location,
        to_location=movement.to_location,
        asset=ref(movement.asset, name_attr="display_name", code_attr="serial_number"),
        performer=ref(movement.performer, code_attr="employee_id"),
        contract=build_contract_response(contract),
        **audit_fields(movement),
    )


async def _require(db: AsyncSession, model, pk: int, label: str):
    if not await db.get(model, pk):
        raise HTTPException(status_code=400, detail=f"{label} with ID {pk} not found")


async def validate_movement(db: AsyncSession, data: dict) -> str:
    """Check the movement-type rules and referenced rows; returns the resulting asset status"""
    movement_type = (data.get("movement_type") or "").lower()
    if movement_type not in STATUS_BY_TYPE:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid movement type. Valid types are: {', '.join(MOVEMENT_TYPES)}",
        )
    data["movement_type"] = movement_type

    from_depot, to_depot = data.get("from_depot_id"), data.get("to_depot_id")
    from_customer, to_customer = data.get("from_customer_id"), data.get("to_customer_id")

    if movement_type == "transfer":
        if not from_depot or not to_depot:
            raise HTTPException(status_code=400, detail="Transfer requires both from_depot_id and to_depot_id")
        if from_customer or to_customer:
            raise HTTPException(status_code=400, detail="Transfer moves an asset between depots only")
    else:
        depot_to_customer = from_depot and to_customer and not (from_customer or to_depot)
        customer_to_depot = from_customer and to_depot and not (from_depot or to_customer)
        if not (depot_to_customer or customer_to_depot):
            if movement_type in ("maintenance", "repair"):
                detail = (f"{movement_type.capitalize()} must move an asset from a depot to a customer "
                          f"or from a customer to a depot")
            else:
                detail = "Disposal and return movements must be from depot to customer or customer to depot"
            raise HTTPException(status_code=400, detail=detail)

    for key in ("from_depot_id", "to_depot_id"):
        if data.get(key):
            await _require(db, Depot, data[key], "Depot")
    for key in ("from_customer_id", "to_customer_id"):
        if data.get(key):
            await _require(db, Customer, data[key], "Customer")
    return STATUS_BY_TYPE[movement_type]


async def _destination_name(db: AsyncSession, data: dict) -> Optional[str]:
    if data.get("to_depot_id"):
        return (await db.get(Depot, data["to_depot_id"])).name
    if data.get("to_customer_id"):
        return (await db.get(Customer, data["to_customer_id"])).name
    return None


async def _get_movement(db: AsyncSession, movement_id: int) -> AssetMovement:
    movement = await db.get(AssetMovement, movement_id)
    if not movement:
        raise HTTPException(status_code=404, detail="Asset movement not found")
    return movement


@router.get("", response_model=ListEnvelope[MovementResponse])
async def list_movements(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    asset_id: Optional[int] = Query(None),
    movement_type: Optional[str] = Query(None),
    approval_status: Optional[str] = Query(None)) -> Any:
    """List asset movements"""
    conditions = []
    condition = search_filter(search, AssetMovement.movement_type, AssetMovement.notes)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(AssetMovement.is_active == is_active)
    if asset_id:
        conditions.append(AssetMovement.asset_id == asset_id)
    if movement_type:
        conditions.append(AssetMovement.movement_type == movement_type.lower())
    if approval_status:
        conditions.append(AssetMovement.approval_status == approval_status)

    result = await paginate(db, AssetMovement, conditions, page, limit)
    return {
        "success": True,
        "message": "Asset movements retrieved successfully",
        "data": [build_movement_response(m) for m in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, AssetMovement, "movements"),
    }


@router.get("/{movement_id}", response_model=DataEnvelope[MovementResponse])
async def get_movement(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "read"))),
    movement_id: int) -> Any:
    """Get one asset movement with its current contract"""
    movement = await _get_movement(db, movement_id)
    contract = await get_contract_by_asset_movement_id(db, movement_id)
    return {"message": "Asset movement fetched successfully", "data": build_movement_response(movement, contract)}


@router.post("", response_model=DataEnvelope[MovementResponse], status_code=201)
async def create_movement(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "create"))),
    request: Request,
    movement_in: MovementCreate) -> Any:
    """Record an asset movement and move the asset"""
    data = movement_in.model_dump()
    asset = await db.get(AssetMaster, data["asset_id"])
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    if not await db.get(User, data["performed_by"]):
        raise HTTPException(status_code=400, detail="Performing user not found")
    new_status = await validate_movement(db, data)
    if data.get("movement_date") is None:
        data["movement_date"] = datetime.utcnow()

    movement = AssetMovement(**data, **stamp_create(current_user.id))
    db.add(movement)
    await db.flush()

    destination = await _destination_name(db, data)
    if destination:
        asset.current_location = destination
    asset.current_status = new_status
    touch(asset, current_user.id)

    if data["movement_type"] in ("maintenance", "repair"):
        db.add(AssetMaintenance(
            asset_id=asset.id,
            asset_movement_id=movement.id,
            maintenance_date=data["movement_date"],
            technician_id=data["performed_by"],
            issue_reported=data.get("notes"),
            remarks=f"Recorded from asset movement #{movement.id} ({data['movement_type']})",
            **stamp_create(current_user.id),
        ))

    await create_audit_log(
        db, current_user.id, "create", "asset_movement",
        resource_id=movement.id, resource_name=asset.serial_number,
        description=f"{data['movement_type']} of asset {asset.serial_number} to {destination or '-'}",
        new_value={"current_status": new_status, "current_location": asset.current_location},
        ip_address=request_ip(request),
    )
    await db.commit()

    movement = await db.get(AssetMovement, movement.id, populate_existing=True)
    logger.info(f"🚚 Asset {asset.serial_number} {data['movement_type']} recorded, status {new_status}")
    return {"message": "Asset movement created successfully", "data": build_movement_response(movement)}


@router.put("/{movement_id}", response_model=DataEnvelope[MovementResponse])
async def update_movement(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "update"))),
    movement_id: int,
    movement_in: MovementUpdate) -> Any:
    """Update the date or notes of a movement"""
    movement = await _get_movement(db, movement_id)
    apply_update(movement, movement_in.model_dump(exclude_unset=True), current_user.id)
    await db.commit()
    movement = await db.get(AssetMovement, movement_id, populate_existing=True)
    return {"message": "Asset movement updated successfully", "data": build_movement_response(movement)}


@router.delete("/{movement_id}", response_model=MessageResponse)
async def delete_movement(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "delete"))),
    movement_id: int) -> Any:
    """Deactivate a movement"""
    movement = await _get_movement(db, movement_id)
    movement.is_active = "N"
    touch(movement, current_user.id)
    await db.commit()
    return {"message": "Asset movement deleted successfully"}


@router.post("/{movement_id}/approve", response_model=DataEnvelope[MovementResponse])
async def approve_movement(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "update"))),
    request: Request,
    movement_id: int,
    approval_in: MovementApprove) -> Any:
    """Approve or reject a movement; approval generates the contract"""
    movement = await _get_movement(db, movement_id)
    movement.approval_status = approval_in.approval_status
    movement.approved_by = current_user.id
    movement.approved_at = datetime.utcnow()
    if approval_in.notes:
        movement.notes = approval_in.notes
    touch(movement, current_user.id)
    await create_audit_log(
        db, current_user.id, approval_in.approval_status, "asset_movement",
        resource_id=movement.id,
        description=f"Asset movement {movement.id} {approval_in.approval_status}",
        ip_address=request_ip(request),
    )
    await db.commit()

    contract = None
    if approval_in.approval_status == "approved":
        contract = await generate_contract_on_approval(db, movement_id, current_user.id)

    movement = await db.get(AssetMovement, movement_id, populate_existing=True)
    return {
        "message": f"Asset movement {approval_in.approval_status} successfully",
        "data": build_movement_response(movement, contract),
    }


@router.get("/{movement_id}/contract", response_model=DataEnvelope[ContractResponse])
async def get_movement_contract(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "read"))),
    movement_id: int) -> Any:
    """Current contract of a movement"""
    contract = await get_contract_by_asset_movement_id(db, movement_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found for this asset movement")
    return {"message": "Contract fetched successfully", "data": build_contract_response(contract)}


@router.post("/{movement_id}/contract", response_model=DataEnvelope[ContractResponse], status_code=201)
async def regenerate_movement_contract(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "update"))),
    movement_id: int) -> Any:
    """Generate the contract again, replacing the previous file and row"""
    try:
        contract = await generate_contract_on_approval(db, movement_id, current_user.id)
    except ContractGenerationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Contract generated successfully", "data": build_contract_response(contract)}


@router.get("/{movement_id}/contract/preview")
async def preview_movement_contract(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("asset-movement", "read"))),
    movement_id: int) -> Any:
    """Render the contract PDF without storing it"""
    try:
        pdf = await generate_cooler_issuance_contract(db, movement_id)
    except ContractGenerationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{contract_number(movement_id)}.pdf"'},
    )
