"""
Paginated list queries

One COUNT and one OFFSET/LIMIT select; rows inserted between the two can skew
total_pages, which list endpoints accept.
"""
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.config import settings


@dataclass
class Page:
    data: List[Any] = field(default_factory=list)
    pagination: dict = field(default_factory=dict)


def normalize_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """page >= 1, 1 <= limit <= MAX_PAGE_SIZE"""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else settings.DEFAULT_PAGE_SIZE
    return page, min(limit, settings.MAX_PAGE_SIZE)


def build_pagination(page: int, limit: int, total_count: int) -> dict:
    total_pages = math.ceil(total_count / limit) if limit else 0
    return {
        "current_page": page,
        "per_page": limit,
        "total_count": total_count,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }


async def paginate(
    db: AsyncSession,
    model,
    filters: Optional[Sequence] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
    order_by: Optional[Sequence] = None,
    options: Optional[Sequence] = None,
) -> Page:
    page, limit = normalize_page(page, limit)

    query = select(model)
    if filters:
        query = query.where(and_(*filters))

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total_count = count_result.scalar() or 0

    if order_by:
        query = query.order_by(*order_by)
    else:
        query = query.order_by(model.createdate.desc(), model.id.desc())
    if options:
        query = query.options(*options)

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return Page(
        data=list(result.scalars().all()),
        pagination=build_pagination(page, limit, total_count),
    )


def search_filter(search: Optional[str], *columns):
    """Case-insensitive substring match over any of the columns, or None"""
    if not search or not search.strip():
        return None
    pattern = f"%{search.strip()}%"
    return or_(*[column.ilike(pattern) for column in columns])
