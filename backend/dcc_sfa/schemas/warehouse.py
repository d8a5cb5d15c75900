from typing import Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock


class WarehouseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("main", max_length=50)
    depot_id: Optional[int] = None
    manager_id: Optional[int] = None
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zipcode: Optional[str] = Field(None, max_length=20)
    capacity: Optional[float] = Field(None, ge=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class WarehouseCreate(WarehouseBase):
    code: Optional[str] = Field(None, max_length=50, description="Generated as WH0001 when omitted")
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class WarehouseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    type: Optional[str] = None
    depot_id: Optional[int] = None
    manager_id: Optional[int] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    capacity: Optional[float] = Field(None, ge=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class WarehouseResponse(WarehouseBase, AuditFields):
    id: int
    code: str
    depot: Optional[RefBlock] = None
    manager: Optional[RefBlock] = None
