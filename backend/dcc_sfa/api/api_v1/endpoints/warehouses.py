"""
Warehouse API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Depot, User, Warehouse
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.warehouse import WarehouseCreate, WarehouseResponse, WarehouseUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.numbering import generate_prefixed_code
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_warehouse_response(warehouse: Warehouse) -> WarehouseResponse:
    return WarehouseResponse(
        id=warehouse.id,
        name=warehouse.name,
        code=warehouse.code,
        type=warehouse.type or "main",
        depot_id=warehouse.depot_id,
        manager_id=warehouse.manager_id,
        address=warehouse.address,
        city=warehouse.city,
        state=warehouse.state,
        zipcode=warehouse.zipcode,
        capacity=warehouse.capacity,
        latitude=warehouse.latitude,
        longitude=warehouse.longitude,
        depot=ref(warehouse.depot),
        manager=ref(warehouse.manager, code_attr="employee_id"),
        **audit_fields(warehouse),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("depot_id") is not None and not await db.get(Depot, data["depot_id"]):
        raise HTTPException(status_code=400, detail="Depot not found")
    if data.get("manager_id") is not None and not await db.get(User, data["manager_id"]):
        raise HTTPException(status_code=400, detail="Manager not found")


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int = None):
    query = select(Warehouse.id).where(Warehouse.code == code)
    if exclude_id:
        query = query.where(Warehouse.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Warehouse code already exists")


@router.get("", response_model=ListEnvelope[WarehouseResponse])
async def list_warehouses(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("warehouse", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    depot_id: Optional[int] = Query(None)) -> Any:
    """List warehouses"""
    conditions = []
    condition = search_filter(search, Warehouse.name, Warehouse.code, Warehouse.city)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Warehouse.is_active == is_active)
    if depot_id:
        conditions.append(Warehouse.depot_id == depot_id)

    result = await paginate(db, Warehouse, conditions, page, limit)
    return {
        "success": True,
        "message": "Warehouses retrieved successfully",
        "data": [build_warehouse_response(w) for w in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Warehouse, "warehouses"),
    }


@router.get("/{warehouse_id}", response_model=DataEnvelope[WarehouseResponse])
async def get_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("warehouse", "read"))),
    warehouse_id: int) -> Any:
    """Get one warehouse"""
    warehouse = await db.get(Warehouse, warehouse_id)
    if not warehouse:
        raise HTTPException(status_code=404, detail="Warehouse not found")
    return {"message": "Warehouse fetched successfully", "data": build_warehouse_response(warehouse)}


@router.post("", response_model=DataEnvelope[WarehouseResponse], status_code=201)
async def create_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("warehouse", "create"))),
    warehouse_in: WarehouseCreate) -> Any:
    """Create a warehouse; the code is generated when omitted"""
    data = warehouse_in.model_dump()
    await _check_references(db, data)
    if data.get("code"):
        await _ensure_code_free(db, data["code"])
    else:
        data["code"] = await generate_prefixed_code(db, Warehouse, "WH")

    warehouse = Warehouse(**data, **stamp_create(current_user.id))
    db.add(warehouse)
    await db.commit()
    warehouse = await db.get(Warehouse, warehouse.id, populate_existing=True)
    return {"message": "Warehouse created successfully", "data": build_warehouse_response(warehouse)}


@router.put("/{warehouse_id}", response_model=DataEnvelope[WarehouseResponse])
async def update_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("warehouse", "update"))),
    warehouse_id: int,
    warehouse_in: WarehouseUpdate) -> Any:
    """Update a warehouse"""
    warehouse = await db.get(Warehouse, warehouse_id)
    if not warehouse:
        raise HTTPException(status_code=404, detail="Warehouse not found")

    data = warehouse_in.model_dump(exclude_unset=True)
    if data.get("code") and data["code"] != warehouse.code:
        await _ensure_code_free(db, data["code"], exclude_id=warehouse_id)
    await _check_references(db, data)
    apply_update(warehouse, data, current_user.id)
    await db.commit()
    warehouse = await db.get(Warehouse, warehouse_id, populate_existing=True)
    return {"message": "Warehouse updated successfully", "data": build_warehouse_response(warehouse)}


@router.delete("/{warehouse_id}", response_model=MessageResponse)
async def delete_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("warehouse", "delete"))),
    warehouse_id: int) -> Any:
    """Deactivate a warehouse"""
    warehouse = await db.get(Warehouse, warehouse_id)
    if not warehouse:
        raise HTTPException(status_code=404, detail="Warehouse not found")
    warehouse.is_active = "N"
    touch(warehouse, current_user.id)
    await db.commit()
    return {"message": "Warehouse deleted successfully"}
