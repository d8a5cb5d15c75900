"""
Customer (outlet) API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Customer, User, Zone
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.numbering import generate_prefixed_code
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_customer_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        name=customer.name,
        code=customer.code,
        short_name=customer.short_name,
        zones_id=customer.zones_id,
        type=customer.type,
        contact_person=customer.contact_person,
        phone_number=customer.phone_number,
        email=customer.email,
        address=customer.address,
        city=customer.city,
        state=customer.state,
        zipcode=customer.zipcode,
        latitude=customer.latitude,
        longitude=customer.longitude,
        credit_limit=customer.credit_limit or 0,
        outstanding_amount=customer.outstanding_amount or 0,
        salesperson_id=customer.salesperson_id,
        last_visit_date=customer.last_visit_date,
        zone=ref(customer.zone),
        salesperson=ref(customer.salesperson),
        **audit_fields(customer),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("zones_id") is not None and not await db.get(Zone, data["zones_id"]):
        raise HTTPException(status_code=400, detail="Zone not found")
    if data.get("salesperson_id") is not None and not await db.get(User, data["salesperson_id"]):
        raise HTTPException(status_code=400, detail="Salesperson not found")


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int = None):
    query = select(Customer.id).where(Customer.code == code)
    if exclude_id:
        query = query.where(Customer.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Customer code already exists")


@router.get("", response_model=ListEnvelope[CustomerResponse])
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    zone_id: Optional[int] = Query(None),
    salesperson_id: Optional[int] = Query(None)) -> Any:
    """List customers"""
    conditions = []
    condition = search_filter(
        search, Customer.name, Customer.code, Customer.contact_person, Customer.email, Customer.city
    )
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Customer.is_active == is_active)
    if zone_id:
        conditions.append(Customer.zones_id == zone_id)
    if salesperson_id:
        conditions.append(Customer.salesperson_id == salesperson_id)

    result = await paginate(db, Customer, conditions, page, limit)
    return {
        "success": True,
        "message": "Customers retrieved successfully",
        "data": [build_customer_response(c) for c in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Customer, "customers"),
    }


@router.get("/{customer_id}", response_model=DataEnvelope[CustomerResponse])
async def get_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet", "read"))),
    customer_id: int) -> Any:
    """Get one customer"""
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"message": "Customer fetched successfully", "data": build_customer_response(customer)}


@router.post("", response_model=DataEnvelope[CustomerResponse], status_code=201)
async def create_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet", "create"))),
    customer_in: CustomerCreate) -> Any:
    """Create a customer; the code is generated when omitted"""
    data = customer_in.model_dump()
    await _check_references(db, data)
    if data.get("code"):
        await _ensure_code_free(db, data["code"])
    else:
        data["code"] = await generate_prefixed_code(db, Customer, "CUS")

    customer = Customer(**data, **stamp_create(current_user.id))
    db.add(customer)
    await db.commit()
    customer = await db.get(Customer, customer.id, populate_existing=True)
    return {"message": "Customer created successfully", "data": build_customer_response(customer)}


@router.put("/{customer_id}", response_model=DataEnvelope[CustomerResponse])
async def update_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet", "update"))),
    customer_id: int,
    customer_in: CustomerUpdate) -> Any:
    """Update a customer"""
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    data = customer_in.model_dump(exclude_unset=True)
    if data.get("code") and data["code"] != customer.code:
        await _ensure_code_free(db, data["code"], exclude_id=customer_id)
    await _check_references(db, data)
    apply_update(customer, data, current_user.id)
    await db.commit()
    customer = await db.get(Customer, customer_id, populate_existing=True)
    return {"message": "Customer updated successfully", "data": build_customer_response(customer)}


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("outlet", "delete"))),
    customer_id: int) -> Any:
    """Deactivate a customer"""
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    customer.is_active = "N"
    touch(customer, current_user.id)
    await db.commit()
    return {"message": "Customer deleted successfully"}
