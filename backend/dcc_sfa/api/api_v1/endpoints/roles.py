"""
Role and permission API

A role carries a set of permission names; PUT replaces the whole set.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.core.permissions import MODULES
from dcc_sfa.models import Permission, Role, RolePermission, User
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields
from dcc_sfa.schemas.user import PermissionResponse, RoleCreate, RoleResponse, RoleUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()
permissions_router = APIRouter()


async def build_role_response(db: AsyncSession, role: Role) -> RoleResponse:
    user_count = (await db.execute(
        select(func.count(User.id)).where(User.role_id == role.id, User.is_active == "Y")
    )).scalar() or 0
    return RoleResponse(
        id=role.id,
        name=role.name,
        description=role.description,
        permissions=role.permission_names,
        user_count=user_count,
        **audit_fields(role),
    )


async def _resolve_permissions(db: AsyncSession, names: List[str]) -> List[Permission]:
    names = sorted(set(names))
    if not names:
        return []
    result = await db.execute(select(Permission).where(Permission.name.in_(names)))
    found = list(result.scalars().all())
    missing = set(names) - {p.name for p in found}
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown permissions: {', '.join(sorted(missing))}")
    return found


def _link(permissions: List[Permission], user_id: int) -> List[RolePermission]:
    return [
        RolePermission(permission=p, **stamp_create(user_id))
        for p in permissions
    ]


@router.get("", response_model=ListEnvelope[RoleResponse])
async def list_roles(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("role", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive")) -> Any:
    """List roles"""
    conditions = []
    condition = search_filter(search, Role.name, Role.description)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Role.is_active == is_active)

    result = await paginate(db, Role, conditions, page, limit)
    return {
        "success": True,
        "message": "Roles retrieved successfully",
        "data": [await build_role_response(db, r) for r in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Role, "roles"),
    }


@router.get("/{role_id}", response_model=DataEnvelope[RoleResponse])
async def get_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("role", "read"))),
    role_id: int) -> Any:
    """Get one role"""
    role = await db.get(Role, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return {"message": "Role fetched successfully", "data": await build_role_response(db, role)}


@router.post("", response_model=DataEnvelope[RoleResponse], status_code=201)
async def create_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("role", "create"))),
    role_in: RoleCreate) -> Any:
    """Create a role with its permissions"""
    existing = await db.execute(select(Role.id).where(Role.name == role_in.name))
    if existing.scalar():
        raise HTTPException(status_code=409, detail="Role name already exists")
    permissions = await _resolve_permissions(db, role_in.permissions)

    role = Role(
        name=role_in.name,
        description=role_in.description,
        is_active=role_in.is_active,
        role_permissions=_link(permissions, current_user.id),
        **stamp_create(current_user.id),
    )
    db.add(role)
    await db.commit()
    role = await db.get(Role, role.id, populate_existing=True)
    return {"message": "Role created successfully", "data": await build_role_response(db, role)}


@router.put("/{role_id}", response_model=DataEnvelope[RoleResponse])
async def update_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("role", "update"))),
    role_id: int,
    role_in: RoleUpdate) -> Any:
    """Update a role; a permissions list replaces the current set"""
    role = await db.get(Role, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")

    data = role_in.model_dump(exclude_unset=True)
    names = data.pop("permissions", None)
    if data.get("name") and data["name"] != role.name:
        existing = await db.execute(select(Role.id).where(Role.name == data["name"], Role.id != role_id))
        if existing.scalar():
            raise HTTPException(status_code=409, detail="Role name already exists")

    apply_update(role, data, current_user.id)
    if names is not None:
        permissions = await _resolve_permissions(db, names)
        role.role_permissions = _link(permissions, current_user.id)
    await db.commit()
    role = await db.get(Role, role_id, populate_existing=True)
    return {"message": "Role updated successfully", "data": await build_role_response(db, role)}


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("role", "delete"))),
    role_id: int) -> Any:
    """Deactivate a role that no active user holds"""
    role = await db.get(Role, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    in_use = (await db.execute(
        select(func.count(User.id)).where(User.role_id == role_id, User.is_active == "Y")
    )).scalar() or 0
    if in_use:
        raise HTTPException(status_code=400, detail=f"Role is assigned to {in_use} active user(s)")
    role.is_active = "N"
    touch(role, current_user.id)
    await db.commit()
    return {"message": "Role deleted successfully"}


@permissions_router.get("", response_model=DataEnvelope[List[PermissionResponse]])
async def list_permissions(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("role", "read"))),
    module: Optional[str] = Query(None)) -> Any:
    """All permissions, optionally for one module"""
    query = select(Permission).where(Permission.is_active == "Y")
    if module:
        query = query.where(Permission.module == module)
    result = await db.execute(query.order_by(Permission.module, Permission.action))
    return {
        "message": "Permissions retrieved successfully",
        "data": [PermissionResponse.model_validate(p) for p in result.scalars().all()],
    }


@permissions_router.get("/modules")
async def list_permission_modules(
    *,
    current_user: AuthUser = Depends(require_permission(("role", "read")))) -> Any:
    """Module keys and display names"""
    return {
        "message": "Modules retrieved successfully",
        "data": [{"module": key, "name": name} for key, name in MODULES.items()],
    }
