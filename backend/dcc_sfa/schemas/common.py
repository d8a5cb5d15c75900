"""
Shared response pieces
"""
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

ACTIVE_FLAG_PATTERN = "^[YN]$"


class RefBlock(BaseModel):
    """Flattened reference to a related row"""
    id: int
    name: Optional[str] = None
    code: Optional[str] = None


class AuditFields(BaseModel):
    is_active: str = "Y"
    createdate: Optional[datetime] = None
    createdby: Optional[int] = None
    updatedate: Optional[datetime] = None
    updatedby: Optional[int] = None
    log_inst: Optional[int] = None


class Pagination(BaseModel):
    current_page: int
    per_page: int
    total_count: int
    total_pages: int
    has_next: bool
    has_previous: bool


class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: List[T]
    pagination: Pagination
    stats: Dict[str, Any] = Field(default_factory=dict)


class DataEnvelope(BaseModel, Generic[T]):
    message: str
    data: T


class MessageResponse(BaseModel):
    message: str
    warnings: List[str] = Field(default_factory=list)


def naive_utc(value):
    """Aware datetimes to naive UTC, the form the database stores"""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def ref(obj, name_attr: str = "name", code_attr: str = "code") -> Optional[RefBlock]:
    if obj is None:
        return None
    return RefBlock(
        id=obj.id,
        name=getattr(obj, name_attr, None),
        code=getattr(obj, code_attr, None),
    )


def audit_fields(obj) -> dict:
    return {
        "is_active": obj.is_active,
        "createdate": obj.createdate,
        "createdby": obj.createdby,
        "updatedate": obj.updatedate,
        "updatedby": obj.updatedby,
        "log_inst": obj.log_inst,
    }
