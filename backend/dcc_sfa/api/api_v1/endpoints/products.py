"""
Product API
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Product
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields
from dcc_sfa.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from dcc_sfa.services.audit import apply_update, stamp_create, touch
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.stats import status_stats

router = APIRouter()


def build_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        name=product.name,
        code=product.code,
        description=product.description,
        category=product.category,
        brand=product.brand,
        unit_of_measurement=product.unit_of_measurement or "pcs",
        base_price=product.base_price or 0,
        tax_rate=product.tax_rate or 0,
        **audit_fields(product),
    )


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int = None):
    query = select(Product.id).where(Product.code == code)
    if exclude_id:
        query = query.where(Product.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=409, detail="Product code already exists")


@router.get("", response_model=ListEnvelope[ProductResponse])
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("product", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    category: Optional[str] = Query(None)) -> Any:
    """List products"""
    conditions = []
    condition = search_filter(search, Product.name, Product.code, Product.brand, Product.category)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(Product.is_active == is_active)
    if category:
        conditions.append(Product.category == category)

    result = await paginate(db, Product, conditions, page, limit)
    return {
        "success": True,
        "message": "Products retrieved successfully",
        "data": [build_product_response(p) for p in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, Product, "products"),
    }


@router.get("/{product_id}", response_model=DataEnvelope[ProductResponse])
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("product", "read"))),
    product_id: int) -> Any:
    """Get one product"""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"message": "Product fetched successfully", "data": build_product_response(product)}


@router.post("", response_model=DataEnvelope[ProductResponse], status_code=201)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("product", "create"))),
    product_in: ProductCreate) -> Any:
    """Create a product"""
    data = product_in.model_dump()
    await _ensure_code_free(db, data["code"])
    product = Product(**data, **stamp_create(current_user.id))
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return {"message": "Product created successfully", "data": build_product_response(product)}


@router.put("/{product_id}", response_model=DataEnvelope[ProductResponse])
async def update_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("product", "update"))),
    product_id: int,
    product_in: ProductUpdate) -> Any:
    """Update a product"""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    data = product_in.model_dump(exclude_unset=True)
    if data.get("code") and data["code"] != product.code:
        await _ensure_code_free(db, data["code"], exclude_id=product_id)
    apply_update(product, data, current_user.id)
    await db.commit()
    await db.refresh(product)
    return {"message": "Product updated successfully", "data": build_product_response(product)}


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("product", "delete"))),
    product_id: int) -> Any:
    """Deactivate a product"""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    product.is_active = "N"
    touch(product, current_user.id)
    await db.commit()
    return {"message": "Product deleted successfully"}
