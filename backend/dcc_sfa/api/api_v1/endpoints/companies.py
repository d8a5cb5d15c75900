"""
Company API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Company
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields
from dcc_sfa.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.numbering import generate_prefixed_code
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_company_response(company: Company) -> CompanyResponse:
    return CompanyResponse(
        id=company.id,
        name=company.name,
        code=company.code,
        address=company.address,
        city=company.city,
        state=company.state,
        country=company.country,
        zipcode=company.zipcode,
        phone_number=company.phone_number,
        email=company.email,
        website=company.website,
        **audit_fields(company),
    )


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int = None):
    query = select(Company.id).where(Company.code == code)
    if exclude_id:
        query = query.where(Company.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Company code already exists")


@router.get("", response_model=ListEnvelope[CompanyResponse])
async def list_companies(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("company", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive")) -> Any:
    """List companies"""
    conditions = []
    condition = search_filter(search, Company.name, Company.code, Company.email, Company.city)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Company.is_active == is_active)

    result = await paginate(db, Company, conditions, page, limit)
    return {
        "success": True,
        "message": "Companies retrieved successfully",
        "data": [build_company_response(c) for c in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Company, "companies"),
    }


@router.get("/{company_id}", response_model=DataEnvelope[CompanyResponse])
async def get_company(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("company", "read"))),
    company_id: int) -> Any:
    """Get one company"""
    company = await db.get(Company, company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return {"message": "Company fetched successfully", "data": build_company_response(company)}


@router.post("", response_model=DataEnvelope[CompanyResponse], status_code=201)
async def create_company(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("company", "create"))),
    company_in: CompanyCreate) -> Any:
    """Create a company; the code is generated when omitted"""
    data = company_in.model_dump()
    if data.get("code"):
        await _ensure_code_free(db, data["code"])
    else:
        data["code"] = await generate_prefixed_code(db, Company, "CMP")

    company = Company(**data, **stamp_create(current_user.id))
    db.add(company)
    await db.commit()
    await db.refresh(company)
    return {"message": "Company created successfully", "data": build_company_response(company)}


@router.put("/{company_id}", response_model=DataEnvelope[CompanyResponse])
async def update_company(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("company", "update"))),
    company_id: int,
    company_in: CompanyUpdate) -> Any:
    """Update a company"""
    company = await db.get(Company, company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")

    data = company_in.model_dump(exclude_unset=True)
    if data.get("code") and data["code"] != company.code:
        await _ensure_code_free(db, data["code"], exclude_id=company_id)
    apply_update(company, data, current_user.id)
    await db.commit()
    await db.refresh(company)
    return {"message": "Company updated successfully", "data": build_company_response(company)}


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete_company(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("company", "delete"))),
    company_id: int) -> Any:
    """Deactivate a company"""
    company = await db.get(Company, company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    company.is_active = "N"
    touch(company, current_user.id)
    await db.commit()
    return {"message": "Company deleted successfully"}
