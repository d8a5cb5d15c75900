"""
Vehicle schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, validator

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock


class VehicleBase(BaseModel):
    vehicle_number: str = Field(..., min_length=1, max_length=50)
    type: str = Field(..., min_length=1, max_length=50, description="truck, van, bike ...")
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1950, le=2100)
    capacity: Optional[float] = Field(None, ge=0)
    fuel_type: Optional[str] = Field(None, max_length=20)
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    last_location_update: Optional[datetime] = None
    assigned_to: Optional[int] = Field(None, description="Driver user ID")
    status: str = Field("available", max_length=20)
    fuel_level: Optional[float] = Field(None, ge=0, le=100)
    mileage: Optional[float] = Field(None, ge=0)
    last_service_date: Optional[datetime] = None
    next_service_due: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    registration_expiry: Optional[datetime] = None

    @validator("vehicle_number")
    def normalize_number(cls, v):
        return v.strip().upper()


class VehicleCreate(VehicleBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class VehicleUpdate(BaseModel):
    vehicle_number: Optional[str] = Field(None, min_length=1, max_length=50)
    type: Optional[str] = Field(None, min_length=1, max_length=50)
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(None, ge=1950, le=2100)
    capacity: Optional[float] = Field(None, ge=0)
    fuel_type: Optional[str] = None
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    last_location_update: Optional[datetime] = None
    assigned_to: Optional[int] = None
    status: Optional[str] = None
    fuel_level: Optional[float] = Field(None, ge=0, le=100)
    mileage: Optional[float] = Field(None, ge=0)
    last_service_date: Optional[datetime] = None
    next_service_due: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    registration_expiry: Optional[datetime] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None

    @validator("vehicle_number")
    def normalize_number(cls, v):
        return v.strip().upper() if v else v


class VehicleResponse(VehicleBase, AuditFields):
    id: int
    driver: Optional[RefBlock] = None
