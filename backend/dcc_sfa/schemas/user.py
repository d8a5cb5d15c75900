"""
User, role and permission schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock


class UserBase(BaseModel):
    email: str = Field(..., max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    role_id: int
    parent_id: Optional[int] = Field(None, description="Company ID")
    depot_id: Optional[int] = None
    zone_id: Optional[int] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    employee_id: Optional[str] = Field(None, max_length=50)
    joining_date: Optional[datetime] = None
    reporting_to: Optional[int] = None

    @validator("email")
    def normalize_email(cls, v):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("must be a valid email address")
        return v


class UserCreate(UserBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class UserUpdate(BaseModel):
    email: Optional[str] = Field(None, max_length=255)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role_id: Optional[int] = None
    parent_id: Optional[int] = None
    depot_id: Optional[int] = None
    zone_id: Optional[int] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    employee_id: Optional[str] = None
    joining_date: Optional[datetime] = None
    reporting_to: Optional[int] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None

    @validator("email")
    def normalize_email(cls, v):
        return v.strip().lower() if v else v


class UserResponse(UserBase, AuditFields):
    id: int
    profile_image: Optional[str] = None
    last_login: Optional[datetime] = None
    role: Optional[RefBlock] = None
    company: Optional[RefBlock] = None
    depot: Optional[RefBlock] = None
    zone: Optional[RefBlock] = None


class PermissionResponse(BaseModel):
    id: int
    name: str
    module: str
    action: str
    description: Optional[str] = None
    is_active: str = "Y"

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list, description="Permission names, e.g. depot_read")
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class RoleResponse(AuditFields):
    id: int
    name: str
    description: Optional[str] = None
    permissions: List[str] = []
    user_count: int = 0
