"""Attendance clock: clock-in, clock-out and time adjustments.

Punches are reconciled against the shift snapshot taken at clock-in:

    raw punch -> grace snap (adjusted_*) -> quarter-hour rounding -> hours

Only the grace-snapped values are stored; rounding is recomputed whenever
hours are (re)calculated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable
from uuid import UUID

from attendance_engine.calculators.time_rules import apply_grace_period, compute_worked_time
from attendance_engine.calculators.types import ZERO, WorkedTime
from attendance_engine.config import Settings, get_settings
from attendance_engine.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    TooEarlyError,
    ValidationError,
)
from attendance_engine.models import EmployeeRole, Shift, TimeEntry, TimeEntryStatus
from attendance_engine.pay_calendar import local_day_bounds
from attendance_engine.repositories.base import (
    Page,
    ShiftFilter,
    ShiftRepository,
    TimeEntryFilter,
    TimeEntryRepository,
)
from attendance_engine.services.shift_service import EmployeeLock, no_lock
from attendance_engine.services.state_machine import TimeEntryStateMachine

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ClockInResult:
    entry: TimeEntry
    grace_period_applied: bool


@dataclass(frozen=True)
class ClockOutResult:
    entry: TimeEntry
    worked: WorkedTime
    early_departure: bool
    minutes_early: int


@dataclass(frozen=True)
class AdjustmentFact:
    """What an adjustment changed; returned to the caller, never stored."""

    time_entry_id: UUID
    original_clock_in: datetime
    original_clock_out: datetime | None
    new_clock_in: datetime | None
    new_clock_out: datetime | None
    reason: str
    adjusted_by: UUID | None
    adjusted_at: datetime


@dataclass(frozen=True)
class ShiftClockStatus:
    shift: Shift
    can_clock_in: bool
    time_entry_id: UUID | None


@dataclass
class ClockStatus:
    employee_id: UUID
    day: date
    current_entry: TimeEntry | None
    shifts: list[ShiftClockStatus] = field(default_factory=list)
    completed_entries: int = 0
    hours_worked: Decimal = ZERO

    @property
    def is_clocked_in(self) -> bool:
        return self.current_entry is not None


class AttendanceClock:
    """Service for recording and correcting worked time.

    Operations:
    - clock_in: Open an entry against a scheduled shift
    - clock_out: Close the entry and compute hours
    - adjust: Correct punches and recompute hours
    - get_clock_status: The employee's day at a glance
    - list_time_entries: Filtered listing by shift start date
    """

    def __init__(
        self,
        entries: TimeEntryRepository,
        shifts: ShiftRepository,
        settings: Settings | None = None,
        clock: Clock | None = None,
        lock: EmployeeLock | None = None,
    ):
        self.entries = entries
        self.shifts = shifts
        self.settings = settings or get_settings()
        self.clock = clock or utc_now
        self.lock = lock or no_lock

    @property
    def rules(self):
        return self.settings.timeclock

    def _grace(self, actual: datetime, scheduled: datetime | None):
        return apply_grace_period(actual, scheduled, self.rules.grace_period_minutes)

    def _worked(self, start: datetime, end: datetime) -> WorkedTime:
        return compute_worked_time(
            start, end, self.settings.tz, self.rules.overtime_threshold_hours
        )

    async def _get_entry(self, time_entry_id: UUID) -> TimeEntry:
        entry = await self.entries.get(time_entry_id)
        if entry is None:
            raise NotFoundError("TimeEntry", time_entry_id)
        return entry

    async def clock_in(
        self,
        employee_id: UUID,
        shift_id: UUID,
        location: str | None = None,
        ip: str | None = None,
    ) -> ClockInResult:
        """Open a time entry for the employee's shift."""
        shift = await self.shifts.get(shift_id)
        if shift is None:
            raise NotFoundError("Shift", shift_id)
        if not shift.is_active:
            raise StateError("inactive", "clock in", "shift is inactive")
        if shift.employee_id != employee_id:
            raise PermissionDeniedError(
                "Employee does not match shift", owner_id=shift.employee_id
            )

        now = self.clock()
        allowed_at = shift.start_time - timedelta(minutes=self.rules.clock_in_window_minutes)
        if now < allowed_at:
            raise TooEarlyError(allowed_at)

        await self.lock(employee_id)
        open_entry = await self.entries.get_open(employee_id)
        if open_entry is not None:
            raise ConflictError(
                "Employee is already clocked in", conflicts=[open_entry.time_entry_id]
            )

        grace = self._grace(now, shift.start_time)
        entry = await self.entries.add(
            TimeEntry(
                employee_id=employee_id,
                shift_id=shift.shift_id,
                clock_in_time=now,
                clock_in_location=location,
                clock_in_ip=ip,
                scheduled_start_time=shift.start_time,
                scheduled_end_time=shift.end_time,
                adjusted_start_time=grace.adjusted_time,
                grace_period_applied=grace.applied,
                status=TimeEntryStatus.CLOCKED_IN.value,
            )
        )
        logger.info(
            "Employee %s clocked in to shift %s (entry %s, grace=%s)",
            employee_id,
            shift_id,
            entry.time_entry_id,
            grace.applied,
        )
        return ClockInResult(entry=entry, grace_period_applied=grace.applied)

    async def clock_out(
        self,
        time_entry_id: UUID,
        location: str | None = None,
        ip: str | None = None,
        caller_id: UUID | None = None,
        caller_role: str | None = None,
    ) -> ClockOutResult:
        """Close an open entry and compute its hours."""
        entry = await self._get_entry(time_entry_id)
        if not entry.is_open:
            raise StateError(entry.status, "clock out", "already clocked out")
        if caller_role == EmployeeRole.EMPLOYEE and caller_id != entry.employee_id:
            raise PermissionDeniedError(
                "Employees can only clock out their own time entries",
                owner_id=entry.employee_id,
            )
        TimeEntryStateMachine.validate_transition(entry.status, TimeEntryStatus.CLOCKED_OUT)

        now = self.clock()
        grace = self._grace(now, entry.scheduled_end_time)
        start = entry.adjusted_start_time or entry.clock_in_time
        worked = self._worked(start, grace.adjusted_time)

        entry.clock_out_time = now
        entry.clock_out_location = location
        entry.clock_out_ip = ip
        entry.adjusted_end_time = grace.adjusted_time
        entry.grace_period_applied = entry.grace_period_applied or grace.applied
        entry.total_hours = worked.total_hours
        entry.overtime_hours = worked.overtime_hours
        entry.status = TimeEntryStatus.CLOCKED_OUT.value
        await self.entries.save(entry)

        minutes_early = 0
        if entry.scheduled_end_time is not None and now < entry.scheduled_end_time:
            early_by = entry.scheduled_end_time.astimezone(timezone.utc) - now.astimezone(
                timezone.utc
            )
            minutes_early = int(early_by.total_seconds() // 60)
        early = minutes_early > self.rules.early_departure_minutes
        if early:
            logger.warning(
                "Employee %s left %d minutes before scheduled end (entry %s)",
                entry.employee_id,
                minutes_early,
                entry.time_entry_id,
            )
        logger.info(
            "Entry %s clocked out: %s hours (%s overtime)",
            entry.time_entry_id,
            worked.total_hours,
            worked.overtime_hours,
        )
        return ClockOutResult(
            entry=entry, worked=worked, early_departure=early, minutes_early=minutes_early
        )

    async def adjust(
        self,
        time_entry_id: UUID,
        new_clock_in: datetime | None = None,
        new_clock_out: datetime | None = None,
        *,
        reason: str,
        adjusted_by: UUID | None = None,
    ) -> tuple[TimeEntry, AdjustmentFact]:
        """Correct one or both punches of an entry.

        A supplied punch is re-snapped against its scheduled time; the other
        side keeps its stored adjusted value.
        """
        if new_clock_in is None and new_clock_out is None:
            raise ValidationError("At least one of new_clock_in or new_clock_out is required")
        if not reason or not reason.strip():
            raise ValidationError("An adjustment reason is required", field="reason")
        for name, value in (("new_clock_in", new_clock_in), ("new_clock_out", new_clock_out)):
            if value is not None and value.tzinfo is None:
                raise ValidationError(f"{name} must be timezone-aware", field=name)

        entry = await self._get_entry(time_entry_id)
        if entry.is_open and new_clock_out is None:
            raise StateError(entry.status, "adjust", "open entries need a clock-out time")
        TimeEntryStateMachine.validate_transition(entry.status, TimeEntryStatus.ADJUSTED)

        original_in, original_out = entry.clock_in_time, entry.clock_out_time
        final_in = new_clock_in or entry.clock_in_time
        final_out = new_clock_out or entry.clock_out_time
        if final_out is None or final_out <= final_in:
            raise ValidationError("Clock-out must be after clock-in", field="new_clock_out")

        if new_clock_in is not None:
            entry.clock_in_time = new_clock_in
            entry.adjusted_start_time = self._grace(
                new_clock_in, entry.scheduled_start_time
            ).adjusted_time
        if new_clock_out is not None:
            entry.clock_out_time = new_clock_out
            entry.adjusted_end_time = self._grace(
                new_clock_out, entry.scheduled_end_time
            ).adjusted_time

        entry.grace_period_applied = (
            self._grace(entry.clock_in_time, entry.scheduled_start_time).applied
            or self._grace(final_out, entry.scheduled_end_time).applied
        )
        start = entry.adjusted_start_time or entry.clock_in_time
        end = entry.adjusted_end_time or final_out
        worked = self._worked(start, end)
        entry.total_hours = worked.total_hours
        entry.overtime_hours = worked.overtime_hours
        entry.status = TimeEntryStatus.ADJUSTED.value
        await self.entries.save(entry)

        fact = AdjustmentFact(
            time_entry_id=entry.time_entry_id,
            original_clock_in=original_in,
            original_clock_out=original_out,
            new_clock_in=new_clock_in,
            new_clock_out=new_clock_out,
            reason=reason.strip(),
            adjusted_by=adjusted_by,
            adjusted_at=self.clock(),
        )
        logger.info(
            "Entry %s adjusted by %s: %s hours (%s)",
            entry.time_entry_id,
            adjusted_by,
            worked.total_hours,
            fact.reason,
        )
        return entry, fact

    async def get_clock_status(
        self, employee_id: UUID, on_date: date | None = None
    ) -> ClockStatus:
        """Shifts, open entry and hours worked for one local day."""
        tz = self.settings.tz
        now = self.clock()
        day = on_date or now.astimezone(tz).date()
        day_start, day_end = local_day_bounds(day, tz)

        page = await self.shifts.search(
            ShiftFilter(employee_id=employee_id, start_from=day_start, start_before=day_end),
            page=1,
            limit=1_000,
        )
        current = await self.entries.get_open(employee_id)
        day_entries = await self.entries.list_clocked_in_between(employee_id, day_start, day_end)
        # A shift starting at midnight may have been clocked into the day before
        shift_entries = await self.entries.list_for_shifts([s.shift_id for s in page.items])
        entry_by_shift = {e.shift_id: e for e in shift_entries}
        window = timedelta(minutes=self.rules.clock_in_window_minutes)

        shifts = []
        for shift in page.items:
            existing = entry_by_shift.get(shift.shift_id)
            can_clock_in = (
                existing is None
                and current is None
                and now >= shift.start_time - window
            )
            shifts.append(
                ShiftClockStatus(
                    shift=shift,
                    can_clock_in=can_clock_in,
                    time_entry_id=existing.time_entry_id if existing else None,
                )
            )

        completed = [e for e in day_entries if not e.is_open]
        hours = sum((e.total_hours or ZERO for e in completed), ZERO)
        return ClockStatus(
            employee_id=employee_id,
            day=day,
            current_entry=current,
            shifts=shifts,
            completed_entries=len(completed),
            hours_worked=hours,
        )

    async def list_time_entries(
        self,
        employee_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
        shift_id: UUID | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[TimeEntry]:
        """Entries whose shift starts within [start_date, end_date] (local days)."""
        tz = self.settings.tz
        filters = TimeEntryFilter(
            employee_id=employee_id,
            shift_id=shift_id,
            start_from=local_day_bounds(start_date, tz)[0] if start_date else None,
            start_before=local_day_bounds(end_date, tz)[1] if end_date else None,
            statuses=(status,) if status else (),
        )
        return await self.entries.search(filters, page, limit)
