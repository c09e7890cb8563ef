"""SQLAlchemy time entry repository."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.models import Shift, TimeEntry, TimeEntryStatus
from attendance_engine.repositories._sqlalchemy import flush_or_conflict, paginate
from attendance_engine.repositories.base import Page, TimeEntryFilter

CLOSED_STATUSES = (TimeEntryStatus.CLOCKED_OUT.value, TimeEntryStatus.ADJUSTED.value)


class SqlTimeEntryRepository:
    """Time entry persistence backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, time_entry_id: UUID) -> TimeEntry | None:
        return await self.session.get(TimeEntry, time_entry_id)

    async def get_open(self, employee_id: UUID) -> TimeEntry | None:
        result = await self.session.execute(
            select(TimeEntry).where(
                TimeEntry.employee_id == employee_id,
                TimeEntry.clock_out_time.is_(None),
            )
        )
        return result.scalars().first()

    async def add(self, entry: TimeEntry) -> TimeEntry:
        self.session.add(entry)
        await flush_or_conflict(self.session, "Employee is already clocked in")
        return entry

    async def save(self, entry: TimeEntry) -> TimeEntry:
        await flush_or_conflict(self.session, "Time entry violates a storage constraint")
        return entry

    async def search(self, filters: TimeEntryFilter, page: int, limit: int) -> Page[TimeEntry]:
        # Entries without a shift fall back to their clock-in time
        effective_start = func.coalesce(Shift.start_time, TimeEntry.clock_in_time)
        stmt = (
            select(TimeEntry)
            .outerjoin(Shift, TimeEntry.shift_id == Shift.shift_id)
            .order_by(TimeEntry.clock_in_time.desc())
        )
        if filters.employee_id is not None:
            stmt = stmt.where(TimeEntry.employee_id == filters.employee_id)
        if filters.shift_id is not None:
            stmt = stmt.where(TimeEntry.shift_id == filters.shift_id)
        if filters.start_from is not None:
            stmt = stmt.where(effective_start >= filters.start_from)
        if filters.start_before is not None:
            stmt = stmt.where(effective_start < filters.start_before)
        if filters.statuses:
            stmt = stmt.where(TimeEntry.status.in_(list(filters.statuses)))
        return await paginate(self.session, stmt, page, limit)

    async def list_closed_for_shift_window(
        self, employee_id: UUID, start: datetime, end_exclusive: datetime
    ) -> list[TimeEntry]:
        stmt = (
            select(TimeEntry)
            .join(Shift, TimeEntry.shift_id == Shift.shift_id)
            .where(
                TimeEntry.employee_id == employee_id,
                TimeEntry.status.in_(CLOSED_STATUSES),
                Shift.start_time >= start,
                Shift.start_time < end_exclusive,
            )
            .order_by(Shift.start_time)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_clocked_in_between(
        self, employee_id: UUID, start: datetime, end_exclusive: datetime
    ) -> list[TimeEntry]:
        stmt = (
            select(TimeEntry)
            .where(
                TimeEntry.employee_id == employee_id,
                TimeEntry.clock_in_time >= start,
                TimeEntry.clock_in_time < end_exclusive,
            )
            .order_by(TimeEntry.clock_in_time)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_shifts(self, shift_ids: Sequence[UUID]) -> list[TimeEntry]:
        if not shift_ids:
            return []
        stmt = (
            select(TimeEntry)
            .where(TimeEntry.shift_id.in_(list(shift_ids)))
            .order_by(TimeEntry.clock_in_time)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_open_for_shift_window(self, start: datetime, end_exclusive: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(TimeEntry)
            .join(Shift, TimeEntry.shift_id == Shift.shift_id)
            .where(
                TimeEntry.clock_out_time.is_(None),
                Shift.start_time >= start,
                Shift.start_time < end_exclusive,
            )
        )
        return (await self.session.execute(stmt)).scalar_one()
