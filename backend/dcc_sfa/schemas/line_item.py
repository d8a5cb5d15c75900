from typing import Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import RefBlock, ref


class LineItemIn(BaseModel):
    id: Optional[int] = Field(None, description="Existing line to update (upsert only)")
    product_id: int
    product_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    discount_amount: float = Field(0, ge=0)
    tax_amount: float = Field(0, ge=0)
    notes: Optional[str] = None


class LineItemUpdate(BaseModel):
    quantity: Optional[float] = Field(None, gt=0)
    unit_price: Optional[float] = Field(None, ge=0)
    discount_amount: Optional[float] = Field(None, ge=0)
    tax_amount: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class LineItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: float
    unit_price: float
    discount_amount: float = 0
    tax_amount: float = 0
    total_amount: float = 0
    notes: Optional[str] = None
    product: Optional[RefBlock] = None


def line_item_response(item) -> LineItemResponse:
    return LineItemResponse(
        id=item.id,
        product_id=item.product_id,
        product_name=item.product_name,
        unit=item.unit,
        quantity=item.quantity or 0,
        unit_price=item.unit_price or 0,
        discount_amount=item.discount_amount or 0,
        tax_amount=item.tax_amount or 0,
        total_amount=item.total_amount or 0,
        notes=item.notes,
        product=ref(getattr(item, "product", None)),
    )
