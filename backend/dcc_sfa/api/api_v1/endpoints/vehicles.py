"""
Vehicle API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import User, Vehicle
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    return VehicleResponse(
        id=vehicle.id,
        vehicle_number=vehicle.vehicle_number,
        type=vehicle.type,
        make=vehicle.make,
        model=vehicle.model,
        year=vehicle.year,
        capacity=vehicle.capacity,
        fuel_type=vehicle.fuel_type,
        current_latitude=vehicle.current_latitude,
        current_longitude=vehicle.current_longitude,
        last_location_update=vehicle.last_location_update,
        assigned_to=vehicle.assigned_to,
        status=vehicle.status or "available",
        fuel_level=vehicle.fuel_level,
        mileage=vehicle.mileage,
        last_service_date=vehicle.last_service_date,
        next_service_due=vehicle.next_service_due,
        insurance_expiry=vehicle.insurance_expiry,
        registration_expiry=vehicle.registration_expiry,
        driver=ref(vehicle.driver, code_attr="employee_id"),
        **audit_fields(vehicle),
    )


async def _ensure_number_free(db: AsyncSession, number: str, exclude_id: int = None):
    query = select(Vehicle.id).where(Vehicle.vehicle_number == number)
    if exclude_id:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Vehicle number already exists")


@router.get("", response_model=ListEnvelope[VehicleResponse])
async def list_vehicles(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("vehicle", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None)) -> Any:
    """List vehicles"""
    conditions = []
    condition = search_filter(search, Vehicle.vehicle_number, Vehicle.make, Vehicle.model, Vehicle.type)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Vehicle.is_active == is_active)
    if status:
        conditions.append(Vehicle.status == status)
    if type:
        conditions.append(Vehicle.type == type)

    result = await paginate(db, Vehicle, conditions, page, limit)
    return {
        "success": True,
        "message": "Vehicles retrieved successfully",
        "data": [build_vehicle_response(v) for v in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Vehicle, "vehicles"),
    }


@router.get("/{vehicle_id}", response_model=DataEnvelope[VehicleResponse])
async def get_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("vehicle", "read"))),
    vehicle_id: int) -> Any:
    """Get one vehicle"""
    vehicle = await db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return {"message": "Vehicle fetched successfully", "data": build_vehicle_response(vehicle)}


@router.post("", response_model=DataEnvelope[VehicleResponse], status_code=201)
async def create_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("vehicle", "create"))),
    vehicle_in: VehicleCreate) -> Any:
    """Create a vehicle"""
    data = vehicle_in.model_dump()
    await _ensure_number_free(db, data["vehicle_number"])
    if data.get("assigned_to") is not None and not await db.get(User, data["assigned_to"]):
        raise HTTPException(status_code=400, detail="Assigned driver not found")

    vehicle = Vehicle(**data, **stamp_create(current_user.id))
    db.add(vehicle)
    await db.commit()
    vehicle = await db.get(Vehicle, vehicle.id, populate_existing=True)
    return {"message": "Vehicle created successfully", "data": build_vehicle_response(vehicle)}


@router.put("/{vehicle_id}", response_model=DataEnvelope[VehicleResponse])
async def update_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("vehicle", "update"))),
    vehicle_id: int,
    vehicle_in: VehicleUpdate) -> Any:
    """Update a vehicle"""
    vehicle = await db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")

    data = vehicle_in.model_dump(exclude_unset=True)
    if data.get("vehicle_number") and data["vehicle_number"] != vehicle.vehicle_number:
        await _ensure_number_free(db, data["vehicle_number"], exclude_id=vehicle_id)
    if data.get("assigned_to") is not None and not await db.get(User, data["assigned_to"]):
        raise HTTPException(status_code=400, detail="Assigned driver not found")
    apply_update(vehicle, data, current_user.id)
    await db.commit()
    vehicle = await db.get(Vehicle, vehicle_id, populate_existing=True)
    return {"message": "Vehicle updated successfully", "data": build_vehicle_response(vehicle)}


@router.delete("/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("vehicle", "delete"))),
    vehicle_id: int) -> Any:
    """Deactivate a vehicle"""
    vehicle = await db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    vehicle.is_active = "N"
    touch(vehicle, current_user.id)
    await db.commit()
    return {"message": "Vehicle deleted successfully"}
