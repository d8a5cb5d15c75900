from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from dcc_sfa.schemas.common import RefBlock


class AuditLogResponse(BaseModel):
    id: int
    user_id: int
    action: str
    resource_type: str
    resource_id: Optional[int] = None
    resource_name: Optional[str] = None
    description: Optional[str] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None
    user: Optional[RefBlock] = None

    class Config:
        from_attributes = True
