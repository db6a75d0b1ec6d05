"""Generic LIMIT/OFFSET pagination with optional search and date-range filtering.

Works on any SQLAlchemy ``select()``:

    result = await paginate(
        db,
        select(User),
        params,
        User.created_at,
        search=lambda stmt, term: stmt.where(User.name.ilike(f"%{term}%")),
        tie_breaker=User.id,
    )
"""
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Generic, Optional, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crud_backend.errors import ValidationError
from crud_backend.schemas.common import DEFAULT_LIMIT, MAX_LIMIT, MAX_PAGE, PaginationParams

T = TypeVar("T")

DATE_FORMAT = "%Y-%m-%d"
DATE_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

SearchFn = Callable[[Select, str], Select]


@dataclass
class PaginationResult(Generic[T]):
    results: list[T] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_LIMIT
    total_pages: int = 0
    total_results: int = 0


def parse_date(value: str, field_name: str) -> date:
    """Parse a zero-padded YYYY-MM-DD string, raising a client error otherwise."""
    if not isinstance(value, str) or not DATE_SHAPE.fullmatch(value):
        raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD")


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def normalize(params: PaginationParams) -> tuple[int, int]:
    """Return (page, limit) with defaults applied and caps enforced."""
    page = params.page if params.page and params.page > 0 else 1
    limit = params.limit if params.limit and params.limit > 0 else DEFAULT_LIMIT
    return min(page, MAX_PAGE), min(limit, MAX_LIMIT)


def apply_date_range(stmt: Select, date_column, params: PaginationParams) -> Select:
    """Narrow by ``start_date <= column < end_date + 1 day``.

    Both bounds are parsed before anything is applied so a bad end_date
    fails even when start_date is fine.
    """
    start = parse_date(params.start_date, "start_date") if params.start_date else None
    end = parse_date(params.end_date, "end_date") if params.end_date else None
    if start is not None:
        stmt = stmt.where(date_column >= _day_start(start))
    if end is not None:
        stmt = stmt.where(date_column < _day_start(end + timedelta(days=1)))
    return stmt


async def paginate(
    db: AsyncSession,
    stmt: Select,
    params: PaginationParams,
    date_column,
    *,
    search: Optional[SearchFn] = None,
    tie_breaker=None,
    mapper: Optional[Callable[[Any], T]] = None,
) -> PaginationResult[T]:
    """Filter, count and fetch one page of ``stmt``, newest first by ``date_column``."""
    page, limit = normalize(params)

    if search is not None and params.search:
        stmt = search(stmt, params.search)
    stmt = apply_date_range(stmt, date_column, params)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total_results = (await db.execute(count_stmt)).scalar_one()

    order = [date_column.desc()]
    if tie_breaker is not None:
        order.append(tie_breaker.desc())
    page_stmt = stmt.order_by(*order).limit(limit).offset((page - 1) * limit)
    rows = (await db.execute(page_stmt)).scalars().all()

    results = [mapper(r) for r in rows] if mapper else list(rows)
    return PaginationResult(
        results=results,
        page=page,
        limit=limit,
        total_pages=math.ceil(total_results / limit),
        total_results=total_results,
    )
