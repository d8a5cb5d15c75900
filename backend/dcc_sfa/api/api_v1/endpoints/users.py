"""
User API
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_current_user, get_db, require_permission
from dcc_sfa.models import Company, Depot, Role, User, Zone
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.user import UserCreate, UserResponse, UserUpdate
from dcc_sfa.services.audit import apply_update, create_audit_log, request_ip, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role_id=user.role_id,
        parent_id=user.parent_id,
        depot_id=user.depot_id,
        zone_id=user.zone_id,
        phone_number=user.phone_number,
        address=user.address,
        employee_id=user.employee_id,
        joining_date=user.joining_date,
        reporting_to=user.reporting_to,
        profile_image=user.profile_image,
        last_login=user.last_login,
        role=ref(user.role),
        company=ref(user.company),
        depot=ref(user.depot),
        zone=ref(user.zone),
        **audit_fields(user),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("role_id") is not None and not await db.get(Role, data["role_id"]):
        raise HTTPException(status_code=400, detail="Role not found")
    if data.get("parent_id") is not None and not await db.get(Company, data["parent_id"]):
        raise HTTPException(status_code=400, detail="Company not found")
    if data.get("depot_id") is not None and not await db.get(Depot, data["depot_id"]):
        raise HTTPException(status_code=400, detail="Depot not found")
    if data.get("zone_id") is not None and not await db.get(Zone, data["zone_id"]):
        raise HTTPException(status_code=400, detail="Zone not found")
    if data.get("reporting_to") is not None and not await db.get(User, data["reporting_to"]):
        raise HTTPException(status_code=400, detail="Reporting manager not found")


async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: int = None):
    query = select(User.id).where(User.email == email)
    if exclude_id:
        query = query.where(User.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Email already exists")


@router.get("/me", response_model=DataEnvelope[UserResponse])
async def read_current_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)) -> Any:
    """The authenticated user, with the permission list used by the dashboard"""
    user = await db.get(User, current_user.id)
    return {"message": "User fetched successfully", "data": build_user_response(user)}


@router.get("/me/permissions")
async def read_current_permissions(
    *,
    current_user: AuthUser = Depends(get_current_user)) -> Any:
    """Permission names of the authenticated user ("*" for administrators)"""
    return {
        "message": "Permissions fetched successfully",
        "data": {"role": current_user.role, "permissions": current_user.permissions},
    }


@router.get("", response_model=ListEnvelope[UserResponse])
async def list_users(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("user", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    role_id: Optional[int] = Query(None),
    depot_id: Optional[int] = Query(None)) -> Any:
    """List users"""
    conditions = []
    condition = search_filter(search, User.name, User.email, User.employee_id, User.phone_number)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(User.is_active == is_active)
    if role_id:
        conditions.append(User.role_id == role_id)
    if depot_id:
        conditions.append(User.depot_id == depot_id)

    result = await paginate(db, User, conditions, page, limit)
    return {
        "success": True,
        "message": "Users retrieved successfully",
        "data": [build_user_response(u) for u in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, User, "users"),
    }


@router.get("/{user_id}", response_model=DataEnvelope[UserResponse])
async def get_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("user", "read"))),
    user_id: int) -> Any:
    """Get one user"""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User fetched successfully", "data": build_user_response(user)}


@router.post("", response_model=DataEnvelope[UserResponse], status_code=201)
async def create_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("user", "create"))),
    request: Request,
    user_in: UserCreate) -> Any:
    """Create a user"""
    data = user_in.model_dump()
    await _ensure_email_free(db, data["email"])
    await _check_references(db, data)

    user = User(**data, **stamp_create(current_user.id))
    db.add(user)
    await db.flush()
    await create_audit_log(
        db, current_user.id, "create", "user",
        resource_id=user.id, resource_name=user.email,
        description=f"Created user {user.email}",
        ip_address=request_ip(request),
    )
    await db.commit()
    user = await db.get(User, user.id, populate_existing=True)
    logger.info(f"👤 User {user.email} created by user {current_user.id}")
    return {"message": "User created successfully", "data": build_user_response(user)}


@router.put("/{user_id}", response_model=DataEnvelope[UserResponse])
async def update_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("user", "update"))),
    request: Request,
    user_id: int,
    user_in: UserUpdate) -> Any:
    """Update a user"""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    data = user_in.model_dump(exclude_unset=True)
    if data.get("email") and data["email"] != user.email:
        await _ensure_email_free(db, data["email"], exclude_id=user_id)
    await _check_references(db, data)
    apply_update(user, data, current_user.id)
    await create_audit_log(
        db, current_user.id, "update", "user",
        resource_id=user.id, resource_name=user.email,
        description=f"Updated user {user.email}: {', '.join(sorted(k for k in data if k != 'log_inst'))}",
        ip_address=request_ip(request),
    )
    await db.commit()
    user = await db.get(User, user_id, populate_existing=True)
    return {"message": "User updated successfully", "data": build_user_response(user)}


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("user", "delete"))),
    request: Request,
    user_id: int) -> Any:
    """Deactivate a user"""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user.is_active = "N"
    touch(user, current_user.id)
    await create_audit_log(
        db, current_user.id, "delete", "user",
        resource_id=user.id, resource_name=user.email,
        description=f"Deactivated user {user.email}",
        ip_address=request_ip(request),
    )
    await db.commit()
    return {"message": "User deleted successfully"}
