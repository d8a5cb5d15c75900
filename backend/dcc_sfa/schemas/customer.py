"""
Customer (outlet) and customer group schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, max_length=100)
    zones_id: Optional[int] = None
    type: Optional[str] = Field(None, max_length=50)
    contact_person: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zipcode: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    credit_limit: float = Field(0, ge=0)
    outstanding_amount: float = 0
    salesperson_id: Optional[int] = None
    last_visit_date: Optional[datetime] = None


class CustomerCreate(CustomerBase):
    code: Optional[str] = Field(None, max_length=50, description="Generated as CUS0001 when omitted")
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    short_name: Optional[str] = None
    zones_id: Optional[int] = None
    type: Optional[str] = None
    contact_person: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    credit_limit: Optional[float] = Field(None, ge=0)
    outstanding_amount: Optional[float] = None
    salesperson_id: Optional[int] = None
    last_visit_date: Optional[datetime] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class CustomerResponse(CustomerBase, AuditFields):
    id: int
    code: str
    zone: Optional[RefBlock] = None
    salesperson: Optional[RefBlock] = None


class CustomerGroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    discount_percentage: float = Field(0, ge=0, le=100)
    credit_terms: int = Field(30, ge=0)
    payment_terms: Optional[str] = Field(None, max_length=100)
    price_group: Optional[str] = Field(None, max_length=100)


class CustomerGroupCreate(CustomerGroupBase):
    code: Optional[str] = Field(None, max_length=50, description="Generated as CG0001 when omitted")
    customer_ids: List[int] = Field(default_factory=list)
    depot_ids: List[int] = Field(default_factory=list)
    zone_ids: List[int] = Field(default_factory=list)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class CustomerGroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    credit_terms: Optional[int] = Field(None, ge=0)
    payment_terms: Optional[str] = None
    price_group: Optional[str] = None
    # None keeps the current links; a list replaces them
    customer_ids: Optional[List[int]] = None
    depot_ids: Optional[List[int]] = None
    zone_ids: Optional[List[int]] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class CustomerGroupResponse(CustomerGroupBase, AuditFields):
    id: int
    code: str
    customers: List[RefBlock] = []
    depots: List[RefBlock] = []
    zones: List[RefBlock] = []
    member_count: int = 0
