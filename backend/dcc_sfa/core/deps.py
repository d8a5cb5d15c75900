"""
Request dependencies: database session, bearer-token user, permission gates
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncGenerator, List, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.permissions import (
    WILDCARD,
    ModuleAction,
    build_permission_name,
    format_permission_error_message,
    has_all_module_permissions,
    has_any_module_permissions,
    is_admin_role,
)
from dcc_sfa.db.session import SessionLocal
from dcc_sfa.models import ApiToken


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session for one request
    """
    async with SessionLocal() as session:
        yield session


@dataclass
class AuthUser:
    """The authenticated caller attached to a request"""
    id: int
    email: str
    name: str
    role: str
    permissions: List[str] = field(default_factory=list)
    parent_id: Optional[int] = None
    depot_id: Optional[int] = None
    zone_id: Optional[int] = None


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"error": error, "message": message})


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthUser:
    """Resolve the Authorization: Bearer <token> header to an active user"""
    auth_header = request.headers.get("Authorization", "")
    token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else ""
    if not token:
        raise _unauthorized("access_token_missing", "Access token is required")

    result = await db.execute(select(ApiToken).where(ApiToken.token == token))
    api_token = result.scalar_one_or_none()
    if not api_token:
        raise _unauthorized("invalid_token", "Invalid access token")
    if api_token.is_revoked:
        raise _unauthorized("token_revoked", "Token has been revoked")
    if api_token.is_active != "Y":
        raise _unauthorized("token_inactive", "Token is inactive")
    if api_token.expires_at and api_token.expires_at < datetime.utcnow():
        raise _unauthorized("token_expired", "Token has expired")

    user = api_token.user
    if not user or user.is_active != "Y" or not user.role:
        raise _unauthorized("user_not_found_or_inactive", "User not found or inactive")

    permissions = [WILDCARD] if is_admin_role(user.role.name) else user.role.permission_names

    api_token.last_used_at = datetime.utcnow()
    if request.client:
        api_token.ip_address = request.client.host
    await db.commit()

    return AuthUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.name,
        permissions=permissions,
        parent_id=user.parent_id,
        depot_id=user.depot_id,
        zone_id=user.zone_id,
    )


def _forbidden(required) -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={
            "error": "access_denied",
            "message": "Insufficient permissions",
            "description": format_permission_error_message(required),
            "required_permissions": [build_permission_name(m, a) for m, a in required],
        },
    )


def ensure_permission(current_user: AuthUser, *required: ModuleAction) -> None:
    """Any-of check for routes whose module is only known at request time"""
    if not has_any_module_permissions(current_user.permissions, required):
        raise _forbidden(required)


def require_permission(*required: ModuleAction):
    """
    Gate a route on ANY of the (module, action) pairs.

    Usage:
        current_user: AuthUser = Depends(require_permission(("depot", "read")))
    """
    async def checker(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
        ensure_permission(current_user, *required)
        return current_user

    return checker


def require_all_permissions(*required: ModuleAction):
    """Gate a route on ALL of the (module, action) pairs"""
    async def checker(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if not has_all_module_permissions(current_user.permissions, required):
            raise _forbidden(required)
        return current_user

    return checker
