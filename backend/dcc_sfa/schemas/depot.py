"""
Depot and zone schemas
"""
from typing import Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock


class DepotBase(BaseModel):
    parent_id: int = Field(..., description="Company ID")
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zipcode: Optional[str] = Field(None, max_length=20)
    phone_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    manager_id: Optional[int] = None
    supervisor_id: Optional[int] = None
    coordinator_id: Optional[int] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class DepotCreate(DepotBase):
    code: Optional[str] = Field(None, max_length=50, description="Generated from the name when omitted")
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class DepotUpdate(BaseModel):
    parent_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    manager_id: Optional[int] = None
    supervisor_id: Optional[int] = None
    coordinator_id: Optional[int] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class DepotResponse(DepotBase, AuditFields):
    id: int
    code: str
    company: Optional[RefBlock] = None
    manager: Optional[RefBlock] = None
    supervisor: Optional[RefBlock] = None
    coordinator: Optional[RefBlock] = None


class ZoneBase(BaseModel):
    parent_id: int = Field(..., description="Company ID")
    depot_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    supervisor_id: Optional[int] = None


class ZoneCreate(ZoneBase):
    code: Optional[str] = Field(None, max_length=50)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class ZoneUpdate(BaseModel):
    parent_id: Optional[int] = None
    depot_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    supervisor_id: Optional[int] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class ZoneResponse(ZoneBase, AuditFields):
    id: int
    code: str
    company: Optional[RefBlock] = None
    depot: Optional[RefBlock] = None
