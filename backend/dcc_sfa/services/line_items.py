"""
Order / invoice / credit note line items and document totals

    line total     = quantity * unit_price - discount_amount + tax_amount
    document total = subtotal - discount_amount + tax_amount + shipping_amount
"""
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import Product
from dcc_sfa.services.audit import stamp_create


def _num(value) -> float:
    return float(value or 0)


def line_total(quantity, unit_price, discount_amount=0, tax_amount=0) -> float:
    return round(_num(quantity) * _num(unit_price) - _num(discount_amount) + _num(tax_amount), 2)


async def resolve_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail=f"Product with ID {product_id} not found")
    return product


async def line_values(db: AsyncSession, item: dict) -> dict:
    """Column values for one line: product name/unit filled in, total derived"""
    product = await resolve_product(db, item["product_id"])
    values = {
        "product_id": product.id,
        "product_name": item.get("product_name") or product.name,
        "unit": item.get("unit") or product.unit_of_measurement or "pcs",
        "quantity": _num(item.get("quantity", 1)),
        "unit_price": _num(item.get("unit_price")),
        "discount_amount": _num(item.get("discount_amount")),
        "tax_amount": _num(item.get("tax_amount")),
        "notes": item.get("notes"),
    }
    values["total_amount"] = line_total(
        values["quantity"], values["unit_price"], values["discount_amount"], values["tax_amount"]
    )
    return values


async def build_line_items(db: AsyncSession, item_model, parent_key: str, parent_id: int,
                           items: Iterable[dict], user_id: int) -> List:
    """Create line rows for a document (added to the session, not committed)"""
    rows = []
    for item in items:
        values = await line_values(db, item)
        row = item_model(**values, **{parent_key: parent_id}, **stamp_create(user_id))
        db.add(row)
        rows.append(row)
    return rows


def recompute_totals(document, items, settled_field: Optional[str] = None) -> None:
    """
    Derive header totals from active line items.

    settled_field names the amount already settled (amount_paid on invoices,
    amount_applied on credit notes); balance_due = total - settled.
    """
    active = [i for i in items if i.is_active != "N"]
    subtotal = sum(_num(i.quantity) * _num(i.unit_price) for i in active)
    discount = sum(_num(i.discount_amount) for i in active)
    tax = sum(_num(i.tax_amount) for i in active)
    total = subtotal - discount + tax + _num(document.shipping_amount)

    document.subtotal = round(subtotal, 2)
    document.discount_amount = round(discount, 2)
    document.tax_amount = round(tax, 2)
    document.total_amount = round(total, 2)
    if settled_field:
        document.balance_due = round(total - _num(getattr(document, settled_field)), 2)


async def sync_totals(db: AsyncSession, document, item_model, parent_key: str,
                      settled_field: Optional[str] = None, keep_header: bool = True) -> List:
    """
    Flush pending line changes and re-derive the document header from the
    stored lines. With keep_header a document without lines keeps the header
    amounts it was given; only balance_due follows the settled amount.
    """
    await db.flush()
    result = await db.execute(
        select(item_model).where(
            getattr(item_model, parent_key) == document.id,
            item_model.is_active == "Y",
        ).order_by(item_model.id)
    )
    items = list(result.scalars().all())
    if items or not keep_header:
        recompute_totals(document, items, settled_field)
    elif settled_field:
        document.balance_due = round(_num(document.total_amount) - _num(getattr(document, settled_field)), 2)
    return items
