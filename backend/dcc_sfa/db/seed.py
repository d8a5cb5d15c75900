"""
Bootstrap data: the permission catalogue, an admin role, an admin user and
an API token to call the API with.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.config import settings
from dcc_sfa.core.permissions import all_permission_names
from dcc_sfa.models import ApiToken, Permission, Role, RolePermission, User

logger = logging.getLogger(__name__)

SYSTEM_USER_ID = 1


async def ensure_permissions(db: AsyncSession) -> List[Permission]:
    """Create any missing module_action permission"""
    result = await db.execute(select(Permission))
    existing = {p.name: p for p in result.scalars().all()}
    created = 0
    for name, module, action in all_permission_names():
        if name in existing:
            continue
        permission = Permission(
            name=name, module=module, action=action,
            description=f"{action.title()} {module}",
            createdby=SYSTEM_USER_ID,
        )
        db.add(permission)
        existing[name] = permission
        created += 1
    await db.flush()
    if created:
        logger.info(f"🔑 Created {created} permission(s)")
    return list(existing.values())


async def ensure_role(db: AsyncSession, name: str, permission_names: Iterable[str] = (),
                      description: Optional[str] = None) -> Role:
    """Role with exactly the given permissions; created when missing"""
    result = await db.execute(select(Role).where(Role.name == name))
    role = result.scalar_one_or_none()
    wanted = set(permission_names)
    result = await db.execute(select(Permission).where(Permission.name.in_(wanted)))
    links = [
        RolePermission(permission=p, createdby=SYSTEM_USER_ID)
        for p in result.scalars().all()
    ]
    if role is None:
        role = Role(name=name, description=description, createdby=SYSTEM_USER_ID,
                    role_permissions=links)
        db.add(role)
    else:
        role.role_permissions = links
    await db.flush()
    return role


async def ensure_user(db: AsyncSession, email: str, name: str, role: Role) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name, role_id=role.id, createdby=SYSTEM_USER_ID)
        db.add(user)
        await db.flush()
        logger.info(f"👤 Created user {email}")
    return user


async def issue_token(db: AsyncSession, user: User, token: Optional[str] = None,
                      expires_in_days: Optional[int] = None) -> ApiToken:
    days = expires_in_days or settings.API_TOKEN_EXPIRE_DAYS
    api_token = ApiToken(
        user_id=user.id,
        token=token or secrets.token_urlsafe(32),
        issued_at=datetime.utcnow(),
        expires_at=datetime.utcnow() + timedelta(days=days),
        createdby=user.id,
    )
    db.add(api_token)
    await db.flush()
    return api_token


async def seed_admin(db: AsyncSession, email: str = "admin@dcc-sfa.local",
                     name: str = "Administrator", token: Optional[str] = None) -> ApiToken:
    """Permissions + Admin role + admin user + a fresh token, in one commit"""
    await ensure_permissions(db)
    role = await ensure_role(db, "Admin", description="Full access")
    user = await ensure_user(db, email, name, role)
    api_token = await issue_token(db, user, token)
    await db.commit()
    logger.info(f"✅ Admin ready: {email}")
    return api_token
