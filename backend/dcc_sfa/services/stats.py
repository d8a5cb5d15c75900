"""
Header counters for list endpoints
"""
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


def month_start(now: datetime = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def status_stats(db: AsyncSession, model, label: str) -> dict:
    """
    total / active / inactive / new-this-month counts, keyed by label:
        {"total_depots": 10, "active_depots": 8, "inactive_depots": 2, "new_depots": 1}
    """
    total = (await db.execute(select(func.count(model.id)))).scalar() or 0
    active = (await db.execute(
        select(func.count(model.id)).where(model.is_active == "Y")
    )).scalar() or 0
    new = (await db.execute(
        select(func.count(model.id)).where(model.createdate >= month_start())
    )).scalar() or 0
    return {
        f"total_{label}": total,
        f"active_{label}": active,
        f"inactive_{label}": total - active,
        f"new_{label}": new,
    }
