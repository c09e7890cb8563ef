"""Helpers shared by the SQLAlchemy repositories."""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.errors import ConflictError
from attendance_engine.repositories.base import Page

T = TypeVar("T")


async def paginate(session: AsyncSession, stmt: Select[Any], page: int, limit: int) -> Page[Any]:
    """Run a select with offset/limit and a matching total count."""
    page = max(page, 1)
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()
    result = await session.execute(stmt.offset((page - 1) * limit).limit(limit))
    return Page(items=list(result.scalars().all()), total=total, page=page, limit=limit)


async def flush_or_conflict(session: AsyncSession, message: str) -> None:
    """Flush pending writes, reporting constraint violations as conflicts."""
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError(message) from exc
