"""
Audit log API (read-only)
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import AuditLog
from dcc_sfa.schemas.audit_log import AuditLogResponse
from dcc_sfa.schemas.common import ListEnvelope, ref
from dcc_sfa.services.pagination import paginate, search_filter

router = APIRouter()


def build_audit_log_response(log: AuditLog) -> AuditLogResponse:
    return AuditLogResponse(
        id=log.id,
        user_id=log.user_id,
        action=log.action,
        resource_type=log.resource_type,
        resource_id=log.resource_id,
        resource_name=log.resource_name,
        description=log.description,
        old_value=log.old_value,
        new_value=log.new_value,
        ip_address=log.ip_address,
        created_at=log.created_at,
        user=ref(log.user, code_attr="email"),
    )


@router.get("", response_model=ListEnvelope[AuditLogResponse])
async def list_audit_logs(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("setting", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None)) -> Any:
    """List audit log entries, newest first"""
    conditions = []
    condition = search_filter(search, AuditLog.description, AuditLog.resource_name)
    if condition is not None:
        conditions.append(condition)
    if user_id:
        conditions.append(AuditLog.user_id == user_id)
    if action:
        conditions.append(AuditLog.action == action)
    if resource_type:
        conditions.append(AuditLog.resource_type == resource_type)
    if resource_id:
        conditions.append(AuditLog.resource_id == resource_id)
    if start_date:
        conditions.append(AuditLog.created_at >= start_date)
    if end_date:
        conditions.append(AuditLog.created_at <= end_date)

    result = await paginate(
        db, AuditLog, conditions, page, limit,
        order_by=[AuditLog.created_at.desc(), AuditLog.id.desc()],
    )
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    total = (await db.execute(select(func.count(AuditLog.id)))).scalar() or 0
    today_count = (await db.execute(
        select(func.count(AuditLog.id)).where(AuditLog.created_at >= today)
    )).scalar() or 0
    return {
        "success": True,
        "message": "Audit logs retrieved successfully",
        "data": [build_audit_log_response(log) for log in result.data],
        "pagination": result.pagination,
        "stats": {"total_logs": total, "today_logs": today_count},
    }
