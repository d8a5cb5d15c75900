from typing import Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zipcode: Optional[str] = Field(None, max_length=20)
    phone_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)


class CompanyCreate(CompanyBase):
    code: Optional[str] = Field(None, max_length=50, description="Generated as CMP0001 when omitted")
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zipcode: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class CompanyResponse(CompanyBase, AuditFields):
    id: int
    code: str

    class Config:
        from_attributes = True
