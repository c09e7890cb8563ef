"""Repository contracts and shared result types.

Services depend on these protocols rather than on a session, so any
storage that satisfies them can back the engine.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Protocol, Sequence, TypeVar
from uuid import UUID

from attendance_engine.models import Employee, PayPeriod, Shift, TimeEntry

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a filtered listing."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)


@dataclass
class ShiftFilter:
    employee_id: UUID | None = None
    start_from: datetime | None = None
    start_before: datetime | None = None
    status: str | None = None
    include_inactive: bool = False


@dataclass
class TimeEntryFilter:
    employee_id: UUID | None = None
    shift_id: UUID | None = None
    start_from: datetime | None = None
    start_before: datetime | None = None
    statuses: Sequence[str] = field(default_factory=tuple)


class EmployeeRepository(Protocol):
    """Read access to employees."""

    async def get(self, employee_id: UUID) -> Employee | None:
        ...

    async def list_payable(self, employee_ids: Sequence[UUID] | None = None) -> list[Employee]:
        """Active employees with both a pay rate and a pay type."""
        ...

    async def list_active_without_pay(self) -> list[Employee]:
        ...


class ShiftRepository(Protocol):
    """Persistence for scheduled shifts."""

    async def get(self, shift_id: UUID) -> Shift | None:
        ...

    async def find_overlapping(
        self,
        employee_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_shift_id: UUID | None = None,
    ) -> list[Shift]:
        """Active shifts of the employee intersecting [start_time, end_time)."""
        ...

    async def find_exact(
        self, employee_id: UUID, start_time: datetime, end_time: datetime
    ) -> Shift | None:
        ...

    async def add(self, shift: Shift) -> Shift:
        ...

    async def save(self, shift: Shift) -> Shift:
        ...

    async def search(self, filters: ShiftFilter, page: int, limit: int) -> Page[Shift]:
        ...


class TimeEntryRepository(Protocol):
    """Persistence for time entries."""

    async def get(self, time_entry_id: UUID) -> TimeEntry | None:
        ...

    async def get_open(self, employee_id: UUID) -> TimeEntry | None:
        """The employee's entry with no clock-out, if any."""
        ...

    async def add(self, entry: TimeEntry) -> TimeEntry:
        ...

    async def save(self, entry: TimeEntry) -> TimeEntry:
        ...

    async def search(self, filters: TimeEntryFilter, page: int, limit: int) -> Page[TimeEntry]:
        ...

    async def list_closed_for_shift_window(
        self, employee_id: UUID, start: datetime, end_exclusive: datetime
    ) -> list[TimeEntry]:
        """Closed entries whose shift starts in [start, end_exclusive)."""
        ...

    async def list_clocked_in_between(
        self, employee_id: UUID, start: datetime, end_exclusive: datetime
    ) -> list[TimeEntry]:
        ...

    async def list_for_shifts(self, shift_ids: Sequence[UUID]) -> list[TimeEntry]:
        """Every entry linked to one of the shifts, oldest clock-in first."""
        ...

    async def count_open_for_shift_window(self, start: datetime, end_exclusive: datetime) -> int:
        ...


class PayPeriodRepository(Protocol):
    """Persistence for pay periods."""

    async def get(self, pay_period_id: UUID) -> PayPeriod | None:
        ...

    async def find_by_dates(self, start_date: datetime, end_date: datetime) -> PayPeriod | None:
        ...

    async def add(self, period: PayPeriod) -> PayPeriod:
        ...

    async def save(self, period: PayPeriod) -> PayPeriod:
        ...

    async def delete(self, period: PayPeriod) -> None:
        ...

    async def search(
        self,
        start_from: datetime | None,
        start_before: datetime | None,
        status: str | None,
        page: int,
        limit: int,
    ) -> Page[PayPeriod]:
        ...

    async def find_containing(self, instant: datetime) -> PayPeriod | None:
        ...

    async def find_next(self, instant: datetime) -> PayPeriod | None:
        """Earliest period starting after the instant."""
        ...

    async def find_previous(self, instant: datetime) -> PayPeriod | None:
        """Latest period ending before the instant."""
        ...
