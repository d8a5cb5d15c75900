"""
Product and price list schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock, naive_utc


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    unit_of_measurement: str = Field("pcs", max_length=20)
    base_price: float = Field(0, ge=0)
    tax_rate: float = Field(0, ge=0, le=100)


class ProductCreate(ProductBase):
    code: str = Field(..., min_length=1, max_length=50)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    unit_of_measurement: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class ProductResponse(ProductBase, AuditFields):
    id: int
    code: str


class PriceListItemIn(BaseModel):
    id: Optional[int] = None
    product_id: int
    unit_price: float = Field(..., ge=0)
    uom: Optional[str] = Field(None, max_length=20)
    discount_percent: float = Field(0, ge=0, le=100)
    effective_from: Optional[datetime] = None
    effective_to: Optional[datetime] = None

    @validator("effective_from", "effective_to")
    def strip_timezone(cls, v):
        return naive_utc(v)


class PriceListItemResponse(PriceListItemIn, AuditFields):
    id: int
    pricelist_id: int
    product: Optional[RefBlock] = None


class PriceListBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    currency_code: str = Field("USD", max_length=10)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    @validator("valid_from", "valid_to")
    def strip_timezone(cls, v):
        return naive_utc(v)


class PriceListCreate(PriceListBase):
    items: List[PriceListItemIn] = Field(default_factory=list)
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class PriceListUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    currency_code: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    # None keeps the current items; a list replaces them
    items: Optional[List[PriceListItemIn]] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None

    @validator("valid_from", "valid_to")
    def strip_timezone(cls, v):
        return naive_utc(v)


class PriceListResponse(PriceListBase, AuditFields):
    id: int
    items: List[PriceListItemResponse] = []
