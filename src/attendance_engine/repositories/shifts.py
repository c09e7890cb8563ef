"""SQLAlchemy shift repository."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.models import Shift
from attendance_engine.repositories._sqlalchemy import flush_or_conflict, paginate
from attendance_engine.repositories.base import Page, ShiftFilter


class SqlShiftRepository:
    """Shift persistence backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, shift_id: UUID) -> Shift | None:
        return await self.session.get(Shift, shift_id)

    async def find_overlapping(
        self,
        employee_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_shift_id: UUID | None = None,
    ) -> list[Shift]:
        stmt = (
            select(Shift)
            .where(
                Shift.employee_id == employee_id,
                Shift.is_active.is_(True),
                Shift.start_time < end_time,
                Shift.end_time > start_time,
            )
            .order_by(Shift.start_time)
        )
        if exclude_shift_id is not None:
            stmt = stmt.where(Shift.shift_id != exclude_shift_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_exact(
        self, employee_id: UUID, start_time: datetime, end_time: datetime
    ) -> Shift | None:
        result = await self.session.execute(
            select(Shift).where(
                Shift.employee_id == employee_id,
                Shift.start_time == start_time,
                Shift.end_time == end_time,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, shift: Shift) -> Shift:
        self.session.add(shift)
        await flush_or_conflict(self.session, "Shift already exists for this employee and time")
        return shift

    async def save(self, shift: Shift) -> Shift:
        await flush_or_conflict(self.session, "Shift already exists for this employee and time")
        return shift

    async def search(self, filters: ShiftFilter, page: int, limit: int) -> Page[Shift]:
        stmt = select(Shift).order_by(Shift.start_time)
        if filters.employee_id is not None:
            stmt = stmt.where(Shift.employee_id == filters.employee_id)
        if filters.start_from is not None:
            stmt = stmt.where(Shift.start_time >= filters.start_from)
        if filters.start_before is not None:
            stmt = stmt.where(Shift.start_time < filters.start_before)
        if filters.status is not None:
            stmt = stmt.where(Shift.status == filters.status)
        if not filters.include_inactive:
            stmt = stmt.where(Shift.is_active.is_(True))
        return await paginate(self.session, stmt, page, limit)
