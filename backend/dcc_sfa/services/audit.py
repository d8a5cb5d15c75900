"""
Audit columns, revision counter and the audit log
"""
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import AuditLog


def stamp_create(user_id: int) -> dict:
    """Audit columns for a new row"""
    return {
        "createdby": user_id,
        "createdate": datetime.utcnow(),
        "log_inst": 1,
    }


def check_revision(obj, expected_log_inst: Optional[int]) -> None:
    """409 when the caller edited a stale copy of the row"""
    if expected_log_inst is None or obj.log_inst is None:
        return
    if int(expected_log_inst) != int(obj.log_inst):
        raise HTTPException(
            status_code=409,
            detail="Record was modified by another user. Reload it and try again.",
        )


def apply_update(obj, data: dict, user_id: int) -> None:
    """
    Copy changed fields onto a row and bump its revision.

    A log_inst in the payload is the revision the client read; it must still
    be current. Without it the update is applied unconditionally.
    """
    data = dict(data)
    check_revision(obj, data.pop("log_inst", None))
    for field_name, value in data.items():
        setattr(obj, field_name, value)
    touch(obj, user_id)


def touch(obj, user_id: int) -> None:
    obj.updatedate = datetime.utcnow()
    obj.updatedby = user_id
    obj.log_inst = (obj.log_inst or 0) + 1


async def create_audit_log(
    db: AsyncSession,
    user_id: int,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    resource_name: Optional[str] = None,
    description: Optional[str] = None,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
    ip_address: Optional[str] = None) -> AuditLog:
    """Add an audit log row to the current transaction"""
    log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        description=description,
        old_value=old_value,
        new_value=new_value,
        ip_address=ip_address
    )
    db.add(log)
    return log


def request_ip(request) -> Optional[str]:
    return request.client.host if request is not None and request.client else None
