"""
Document numbers and record codes
"""
import re
import time
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


def _trailing_number(value: str) -> int:
    match = re.search(r"(\d+)$", value or "")
    return int(match.group(1)) if match else 0


def name_prefix(name: str, fallback: str) -> str:
    """First three letters/digits of a name, upper-cased"""
    cleaned = re.sub(r"[^A-Za-z0-9]", "", name or "")
    return (cleaned[:3] or fallback).upper()


async def _exists(db: AsyncSession, column, value: str) -> bool:
    result = await db.execute(select(func.count()).where(column == value))
    return (result.scalar() or 0) > 0


async def generate_name_code(db: AsyncSession, model, name: str, fallback: str = "GEN", width: int = 3) -> str:
    """
    Name-derived code: "North Depot" → NOR001, NOR002 ...
    The sequence continues from the trailing digits of the most recent code.
    """
    prefix = name_prefix(name, fallback)
    result = await db.execute(select(model.code).order_by(model.id.desc()).limit(1))
    seq = _trailing_number(result.scalar()) + 1
    code = f"{prefix}{seq:0{width}d}"
    while await _exists(db, model.code, code):
        seq += 1
        code = f"{prefix}{seq:0{width}d}"
    return code


async def generate_prefixed_code(db: AsyncSession, model, prefix: str, width: int = 4) -> str:
    """Fixed prefix code: CMP0001, WH0001, CUS0001"""
    result = await db.execute(
        select(func.max(model.code)).where(model.code.like(f"{prefix}%"))
    )
    max_code = result.scalar()
    if max_code:
        try:
            num = int(max_code[len(prefix):]) + 1
        except ValueError:
            num = 1
    else:
        num = 1
    return f"{prefix}{num:0{width}d}"


async def generate_credit_note_number(db: AsyncSession, model) -> str:
    """CN-00001, CN-00002 ... continuing from the highest CN- number in use"""
    result = await db.execute(
        select(model.credit_note_number).where(model.credit_note_number.like("CN-%"))
    )
    seq = 1
    for number in result.scalars().all():
        match = re.match(r"CN-(\d+)", number or "")
        if match:
            seq = max(seq, int(match.group(1)) + 1)
    number = f"CN-{seq:05d}"
    while await _exists(db, model.credit_note_number, number):
        seq += 1
        number = f"CN-{seq:05d}"
    return number


async def _stamped_number(db: AsyncSession, column, prefix: str) -> str:
    stamp = int(time.time() * 1000)
    number = f"{prefix}-{stamp}"
    while await _exists(db, column, number):
        stamp += 1
        number = f"{prefix}-{stamp}"
    return number


async def generate_invoice_number(db: AsyncSession, model) -> str:
    """INV-<epoch milliseconds>, bumped until unused"""
    return await _stamped_number(db, model.invoice_number, "INV")


async def generate_payment_number(db: AsyncSession, model) -> str:
    """PAY-<epoch milliseconds>, bumped until unused"""
    return await _stamped_number(db, model.payment_number, "PAY")


async def generate_order_number(db: AsyncSession, model) -> str:
    """ORD-20240131-0001, sequence restarts every day"""
    date_str = datetime.now().strftime("%Y%m%d")
    prefix = f"ORD-{date_str}-"
    result = await db.execute(
        select(func.max(model.order_number)).where(model.order_number.like(f"{prefix}%"))
    )
    max_no = result.scalar()
    if max_no:
        try:
            seq = int(max_no[-4:]) + 1
        except ValueError:
            seq = 1
    else:
        seq = 1
    return f"{prefix}{seq:04d}"
