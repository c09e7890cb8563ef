"""Shift scheduling service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, NamedTuple, Sequence
from uuid import UUID

from attendance_engine.calculators.conflicts import ScheduleConflictDetector
from attendance_engine.calculators.types import ConflictCheckResult
from attendance_engine.config import Settings, get_settings
from attendance_engine.errors import (
    AttendanceEngineError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from attendance_engine.models import Shift, ShiftStatus
from attendance_engine.pay_calendar import local_day_bounds
from attendance_engine.repositories.base import (
    EmployeeRepository,
    Page,
    ShiftFilter,
    ShiftRepository,
)

logger = logging.getLogger(__name__)

EmployeeLock = Callable[[UUID], Awaitable[None]]

_UNSET = object()


async def no_lock(employee_id: UUID) -> None:
    return None


@dataclass(frozen=True)
class BulkShiftEntry:
    """One row of a bulk schedule: times are HH:MM on the organization clock."""

    employee_id: UUID
    start_time: str
    end_time: str
    break_duration: int = 0
    position: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class BulkShiftError:
    index: int
    employee_id: UUID
    error: str


class BulkCreateResult(NamedTuple):
    created: list[Shift]
    errors: list[BulkShiftError]


@dataclass(frozen=True)
class RosterEntry:
    shift: Shift
    is_currently_working: bool


@dataclass(frozen=True)
class Roster:
    day: date
    entries: list[RosterEntry]

    @property
    def total_scheduled(self) -> int:
        return len(self.entries)


def _require_aware(value: datetime, field: str) -> None:
    if value.tzinfo is None:
        raise ValidationError(f"{field} must be timezone-aware", field=field)


def _validate_times(start_time: datetime, end_time: datetime) -> None:
    _require_aware(start_time, "start_time")
    _require_aware(end_time, "end_time")
    if end_time <= start_time:
        raise ValidationError("Shift end time must be after start time", field="end_time")


def _validate_break(break_duration: int) -> None:
    if break_duration < 0:
        raise ValidationError("Break duration cannot be negative", field="break_duration")


def _conflict_error(result: ConflictCheckResult) -> ConflictError:
    return ConflictError(
        f"Schedule conflict detected: {len(result.conflicts)} overlapping shift(s)",
        conflicts=list(result.conflicts),
    )


class ShiftService:
    """Service for creating and maintaining scheduled shifts.

    Operations:
    - create_shift: Conflict-checked creation under a per-employee lock
    - update_shift: Partial update, re-checked when times change
    - delete_shift: Soft delete
    - bulk_create_shifts: Independent creation of a day's schedule
    - today_roster: Shifts starting on the current local day
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        employees: EmployeeRepository,
        settings: Settings | None = None,
        lock: EmployeeLock | None = None,
    ):
        self.shifts = shifts
        self.employees = employees
        self.settings = settings or get_settings()
        self.lock = lock or no_lock
        self.detector = ScheduleConflictDetector(shifts)

    async def check_conflict(
        self,
        employee_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_shift_id: UUID | None = None,
    ) -> ConflictCheckResult:
        """Report active shifts of the employee that overlap the interval."""
        _validate_times(start_time, end_time)
        return await self.detector.check_conflict(
            employee_id, start_time, end_time, exclude_shift_id
        )

    async def create_shift(
        self,
        employee_id: UUID,
        start_time: datetime,
        end_time: datetime,
        created_by: UUID | None,
        break_duration: int = 0,
        position: str | None = None,
        notes: str | None = None,
    ) -> Shift:
        _validate_times(start_time, end_time)
        _validate_break(break_duration)

        employee = await self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if not employee.is_schedulable:
            raise ValidationError("Only EMPLOYEE and MANAGER roles can have schedules")

        await self.lock(employee_id)
        result = await self.detector.check_conflict(employee_id, start_time, end_time)
        if result.has_conflict:
            raise _conflict_error(result)

        # A soft-deleted shift with identical times still holds the unique key
        existing = await self.shifts.find_exact(employee_id, start_time, end_time)
        if existing is not None:
            existing.is_active = True
            existing.status = ShiftStatus.SCHEDULED.value
            existing.break_duration = break_duration
            existing.position = position
            existing.notes = notes
            existing.created_by = created_by
            shift = await self.shifts.save(existing)
            logger.info("Reactivated shift %s for employee %s", shift.shift_id, employee_id)
            return shift

        shift = await self.shifts.add(
            Shift(
                employee_id=employee_id,
                start_time=start_time,
                end_time=end_time,
                break_duration=break_duration,
                position=position,
                notes=notes,
                status=ShiftStatus.SCHEDULED.value,
                is_active=True,
                created_by=created_by,
            )
        )
        logger.info(
            "Created shift %s for employee %s (%s - %s)",
            shift.shift_id,
            employee_id,
            start_time.isoformat(),
            end_time.isoformat(),
        )
        return shift

    async def get_shift(self, shift_id: UUID) -> Shift:
        shift = await self.shifts.get(shift_id)
        if shift is None:
            raise NotFoundError("Shift", shift_id)
        return shift

    async def update_shift(
        self,
        shift_id: UUID,
        *,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        break_duration: int | None = None,
        position: str | None | object = _UNSET,
        notes: str | None | object = _UNSET,
        status: str | None = None,
        is_active: bool | None = None,
    ) -> Shift:
        """Apply a partial update.

        ``position`` and ``notes`` may be passed as None to clear them.
        """
        shift = await self.get_shift(shift_id)

        new_start = start_time or shift.start_time
        new_end = end_time or shift.end_time
        times_changed = start_time is not None or end_time is not None
        reactivating = is_active is True and not shift.is_active

        if times_changed:
            _validate_times(new_start, new_end)
        if break_duration is not None:
            _validate_break(break_duration)
        if status is not None:
            try:
                status = ShiftStatus(status).value
            except ValueError:
                raise ValidationError(f"Invalid shift status {status!r}", field="status")

        if times_changed or reactivating:
            await self.lock(shift.employee_id)
            result = await self.detector.check_conflict(
                shift.employee_id, new_start, new_end, exclude_shift_id=shift.shift_id
            )
            if result.has_conflict:
                raise _conflict_error(result)

        shift.start_time = new_start
        shift.end_time = new_end
        if break_duration is not None:
            shift.break_duration = break_duration
        if position is not _UNSET:
            shift.position = position  # type: ignore[assignment]
        if notes is not _UNSET:
            shift.notes = notes  # type: ignore[assignment]
        if status is not None:
            shift.status = status
        if is_active is not None:
            shift.is_active = is_active

        return await self.shifts.save(shift)

    async def delete_shift(self, shift_id: UUID) -> Shift:
        """Soft delete: the shift stays for history but no longer schedules anyone."""
        shift = await self.get_shift(shift_id)
        shift.is_active = False
        logger.info("Deactivated shift %s", shift_id)
        return await self.shifts.save(shift)

    async def list_shifts(
        self,
        employee_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
        include_inactive: bool = False,
        page: int = 1,
        limit: int = 50,
    ) -> Page[Shift]:
        """Shifts starting within [start_date, end_date] (local calendar days)."""
        tz = self.settings.tz
        filters = ShiftFilter(
            employee_id=employee_id,
            start_from=local_day_bounds(start_date, tz)[0] if start_date else None,
            start_before=local_day_bounds(end_date, tz)[1] if end_date else None,
            status=status,
            include_inactive=include_inactive,
        )
        return await self.shifts.search(filters, page, limit)

    def _combine(self, work_date: date, hhmm: str, field: str) -> datetime:
        try:
            parsed = datetime.strptime(hhmm, "%H:%M").time()
        except ValueError:
            raise ValidationError(f"Invalid time {hhmm!r}; expected HH:MM", field=field)
        return datetime.combine(work_date, parsed, tzinfo=self.settings.tz)

    def resolve_bulk_times(self, work_date: date, entry: BulkShiftEntry) -> tuple[datetime, datetime]:
        """Absolute start/end for a bulk row; an end not after the start is next day."""
        start = self._combine(work_date, entry.start_time, "start_time")
        end = self._combine(work_date, entry.end_time, "end_time")
        if end <= start:
            end = self._combine(work_date + timedelta(days=1), entry.end_time, "end_time")
        return start, end

    async def bulk_create_shifts(
        self,
        work_date: date,
        entries: Sequence[BulkShiftEntry],
        created_by: UUID | None,
    ) -> BulkCreateResult:
        """Create each row independently; failures are collected, not raised."""
        created: list[Shift] = []
        errors: list[BulkShiftError] = []
        for index, entry in enumerate(entries):
            try:
                start, end = self.resolve_bulk_times(work_date, entry)
                shift = await self.create_shift(
                    entry.employee_id,
                    start,
                    end,
                    created_by,
                    break_duration=entry.break_duration,
                    position=entry.position,
                    notes=entry.notes,
                )
            except AttendanceEngineError as exc:
                logger.warning(
                    "Bulk shift row %d for employee %s rejected: %s",
                    index,
                    entry.employee_id,
                    exc,
                )
                errors.append(BulkShiftError(index, entry.employee_id, str(exc)))
            else:
                created.append(shift)
        return BulkCreateResult(created, errors)

    async def today_roster(self, now: datetime) -> Roster:
        """Active shifts starting on ``now``'s local day."""
        _require_aware(now, "now")
        tz = self.settings.tz
        today = now.astimezone(tz).date()
        day_start, day_end = local_day_bounds(today, tz)
        page = await self.shifts.search(
            ShiftFilter(start_from=day_start, start_before=day_end), page=1, limit=10_000
        )
        entries = [
            RosterEntry(shift, shift.start_time <= now < shift.end_time) for shift in page.items
        ]
        return Roster(day=today, entries=entries)
