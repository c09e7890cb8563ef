"""Tests for clock-in, clock-out and time adjustments."""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from attendance_engine.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    TooEarlyError,
    ValidationError,
)
from attendance_engine.models import EmployeeRole, TimeEntryStatus
from attendance_engine.services.time_clock_service import AttendanceClock
from tests.helpers import local


@pytest.fixture
def attendance(entry_repo, shift_repo, settings, clock) -> AttendanceClock:
    return AttendanceClock(entry_repo, shift_repo, settings, clock=clock)


@pytest.fixture
async def day_shift(make_shift, test_employee):
    """09:00 to 17:00 on 2024-01-10."""
    return await make_shift(test_employee, local(2024, 1, 10, 9), local(2024, 1, 10, 17))


async def _clocked_in(attendance, clock, employee, shift, at):
    clock.set(at)
    return (await attendance.clock_in(employee.employee_id, shift.shift_id)).entry


class TestClockIn:
    """Test opening time entries."""

    async def test_clock_in_within_grace_snaps_to_start(
        self, attendance, clock, test_employee, day_shift
    ):
        clock.set(local(2024, 1, 10, 8, 58))

        result = await attendance.clock_in(
            test_employee.employee_id, day_shift.shift_id, location="Store 12", ip="10.0.0.5"
        )

        entry = result.entry
        assert result.grace_period_applied is True
        assert entry.status == TimeEntryStatus.CLOCKED_IN
        assert entry.clock_in_time == local(2024, 1, 10, 8, 58)
        assert entry.adjusted_start_time == local(2024, 1, 10, 9, 0)
        assert entry.scheduled_start_time == day_shift.start_time
        assert entry.scheduled_end_time == day_shift.end_time
        assert entry.clock_in_location == "Store 12"
        assert entry.is_open

    async def test_late_clock_in_keeps_actual_time(
        self, attendance, clock, test_employee, day_shift
    ):
        clock.set(local(2024, 1, 10, 9, 10))

        result = await attendance.clock_in(test_employee.employee_id, day_shift.shift_id)

        assert result.grace_period_applied is False
        assert result.entry.adjusted_start_time == local(2024, 1, 10, 9, 10)

    async def test_window_opens_five_minutes_early(
        self, attendance, clock, test_employee, day_shift
    ):
        clock.set(local(2024, 1, 10, 8, 55))

        result = await attendance.clock_in(test_employee.employee_id, day_shift.shift_id)

        assert result.entry.adjusted_start_time == local(2024, 1, 10, 9, 0)

    async def test_too_early(self, attendance, clock, test_employee, day_shift):
        clock.set(local(2024, 1, 10, 8, 54))

        with pytest.raises(TooEarlyError) as exc_info:
            await attendance.clock_in(test_employee.employee_id, day_shift.shift_id)

        assert exc_info.value.allowed_at == local(2024, 1, 10, 8, 55)

    async def test_unknown_shift(self, attendance, test_employee):
        with pytest.raises(NotFoundError):
            await attendance.clock_in(test_employee.employee_id, uuid4())

    async def test_inactive_shift(self, attendance, clock, make_shift, test_employee):
        shift = await make_shift(
            test_employee, local(2024, 1, 10, 9), local(2024, 1, 10, 17), is_active=False
        )
        clock.set(local(2024, 1, 10, 9))

        with pytest.raises(StateError):
            await attendance.clock_in(test_employee.employee_id, shift.shift_id)

    async def test_someone_elses_shift(self, attendance, clock, make_employee, day_shift):
        other = await make_employee(first_name="Other")
        clock.set(local(2024, 1, 10, 9))

        with pytest.raises(PermissionDeniedError) as exc_info:
            await attendance.clock_in(other.employee_id, day_shift.shift_id)

        assert exc_info.value.owner_id == day_shift.employee_id

    async def test_already_clocked_in(
        self, attendance, clock, make_shift, test_employee, day_shift
    ):
        evening = await make_shift(test_employee, local(2024, 1, 10, 18), local(2024, 1, 10, 22))
        first = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 18))

        with pytest.raises(ConflictError) as exc_info:
            await attendance.clock_in(test_employee.employee_id, evening.shift_id)

        assert exc_info.value.conflicts == [first.time_entry_id]

    async def test_lock_taken(
        self, entry_repo, shift_repo, settings, clock, test_employee, day_shift
    ):
        locked = []

        async def lock(employee_id):
            locked.append(employee_id)

        attendance = AttendanceClock(entry_repo, shift_repo, settings, clock=clock, lock=lock)
        clock.set(local(2024, 1, 10, 9))
        await attendance.clock_in(test_employee.employee_id, day_shift.shift_id)

        assert locked == [test_employee.employee_id]


class TestClockOut:
    """Test closing time entries."""

    async def test_clock_out_computes_rounded_hours(
        self, attendance, clock, test_employee, day_shift
    ):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 8, 58)
        )
        clock.set(local(2024, 1, 10, 17, 12))

        result = await attendance.clock_out(entry.time_entry_id, location="Store 12")

        assert result.entry.status == TimeEntryStatus.CLOCKED_OUT
        assert result.entry.clock_out_time == local(2024, 1, 10, 17, 12)
        assert result.entry.adjusted_end_time == local(2024, 1, 10, 17, 12)
        assert result.entry.total_hours == Decimal("8.25")
        assert result.entry.overtime_hours == Decimal("0.25")
        assert result.entry.grace_period_applied is True
        assert result.early_departure is False
        assert result.minutes_early == 0

    async def test_clock_out_within_grace_snaps_to_end(
        self, attendance, clock, test_employee, day_shift
    ):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9, 10)
        )
        clock.set(local(2024, 1, 10, 17, 3))

        result = await attendance.clock_out(entry.time_entry_id)

        assert result.entry.adjusted_end_time == local(2024, 1, 10, 17, 0)
        assert result.entry.grace_period_applied is True
        # 09:10 rounds to 09:15
        assert result.worked.total_hours == Decimal("7.75")
        assert result.entry.overtime_hours == Decimal("0")

    async def test_early_departure_flagged(self, attendance, clock, test_employee, day_shift):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 16, 0))

        result = await attendance.clock_out(entry.time_entry_id)

        assert result.early_departure is True
        assert result.minutes_early == 60
        assert result.entry.total_hours == Decimal("7")

    async def test_short_early_departure_not_flagged(
        self, attendance, clock, test_employee, day_shift
    ):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 16, 40))

        result = await attendance.clock_out(entry.time_entry_id)

        assert result.early_departure is False
        assert result.minutes_early == 20

    async def test_already_clocked_out(self, attendance, clock, test_employee, day_shift):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 17))
        await attendance.clock_out(entry.time_entry_id)

        with pytest.raises(StateError):
            await attendance.clock_out(entry.time_entry_id)

    async def test_unknown_entry(self, attendance):
        with pytest.raises(NotFoundError):
            await attendance.clock_out(uuid4())

    async def test_employee_cannot_clock_out_others(
        self, attendance, clock, make_employee, test_employee, day_shift
    ):
        other = await make_employee(first_name="Other")
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 17))

        with pytest.raises(PermissionDeniedError):
            await attendance.clock_out(
                entry.time_entry_id,
                caller_id=other.employee_id,
                caller_role=EmployeeRole.EMPLOYEE.value,
            )

    async def test_manager_can_clock_out_others(
        self, attendance, clock, make_employee, test_employee, day_shift
    ):
        manager = await make_employee(role=EmployeeRole.MANAGER.value)
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 17))

        result = await attendance.clock_out(
            entry.time_entry_id,
            caller_id=manager.employee_id,
            caller_role=EmployeeRole.MANAGER.value,
        )

        assert result.entry.status == TimeEntryStatus.CLOCKED_OUT

    async def test_clock_in_again_after_clock_out(
        self, attendance, clock, make_shift, test_employee, day_shift
    ):
        evening = await make_shift(test_employee, local(2024, 1, 10, 18), local(2024, 1, 10, 22))
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 17))
        await attendance.clock_out(entry.time_entry_id)

        second = await _clocked_in(
            attendance, clock, test_employee, evening, local(2024, 1, 10, 18)
        )

        assert second.is_open


class TestAdjust:
    """Test manager corrections to punches."""

    async def _closed_entry(self, attendance, clock, employee, shift):
        entry = await _clocked_in(attendance, clock, employee, shift, local(2024, 1, 10, 9, 10))
        clock.set(local(2024, 1, 10, 17, 12))
        await attendance.clock_out(entry.time_entry_id)
        return entry

    async def test_adjust_clock_out(self, attendance, clock, test_employee, day_shift):
        entry = await self._closed_entry(attendance, clock, test_employee, day_shift)
        manager_id = uuid4()

        adjusted, fact = await attendance.adjust(
            entry.time_entry_id,
            new_clock_out=local(2024, 1, 10, 18, 15),
            reason="Stayed for inventory",
            adjusted_by=manager_id,
        )

        assert adjusted.status == TimeEntryStatus.ADJUSTED
        assert adjusted.clock_out_time == local(2024, 1, 10, 18, 15)
        # 09:10 -> 09:15, 18:15 stays
        assert adjusted.total_hours == Decimal("9")
        assert adjusted.overtime_hours == Decimal("1")
        assert fact.time_entry_id == entry.time_entry_id
        assert fact.original_clock_out == local(2024, 1, 10, 17, 12)
        assert fact.new_clock_in is None
        assert fact.adjusted_by == manager_id
        assert fact.reason == "Stayed for inventory"

    async def test_adjust_clock_in_recomputes_grace(
        self, attendance, clock, test_employee, day_shift
    ):
        entry = await self._closed_entry(attendance, clock, test_employee, day_shift)
        assert entry.grace_period_applied is False

        adjusted, fact = await attendance.adjust(
            entry.time_entry_id,
            new_clock_in=local(2024, 1, 10, 9, 2),
            reason="Badge reader was down",
        )

        assert adjusted.adjusted_start_time == local(2024, 1, 10, 9, 0)
        assert adjusted.grace_period_applied is True
        assert adjusted.total_hours == Decimal("8.25")
        assert fact.original_clock_in == local(2024, 1, 10, 9, 10)

    async def test_readjust(self, attendance, clock, test_employee, day_shift):
        entry = await self._closed_entry(attendance, clock, test_employee, day_shift)
        await attendance.adjust(
            entry.time_entry_id, new_clock_out=local(2024, 1, 10, 18), reason="first"
        )

        adjusted, _ = await attendance.adjust(
            entry.time_entry_id, new_clock_out=local(2024, 1, 10, 17), reason="second"
        )

        assert adjusted.status == TimeEntryStatus.ADJUSTED
        assert adjusted.adjusted_end_time == local(2024, 1, 10, 17)

    async def test_open_entry_needs_clock_out(self, attendance, clock, test_employee, day_shift):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )

        with pytest.raises(StateError):
            await attendance.adjust(
                entry.time_entry_id, new_clock_in=local(2024, 1, 10, 8, 30), reason="forgot"
            )

    async def test_open_entry_closed_by_adjustment(
        self, attendance, clock, test_employee, day_shift
    ):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )

        adjusted, _ = await attendance.adjust(
            entry.time_entry_id, new_clock_out=local(2024, 1, 10, 17), reason="forgot to punch"
        )

        assert adjusted.is_open is False
        assert adjusted.status == TimeEntryStatus.ADJUSTED
        assert adjusted.total_hours == Decimal("8")

    async def test_requires_a_new_time(self, attendance):
        with pytest.raises(ValidationError):
            await attendance.adjust(uuid4(), reason="nothing")

    async def test_requires_reason(self, attendance, clock, test_employee, day_shift):
        entry = await self._closed_entry(attendance, clock, test_employee, day_shift)

        with pytest.raises(ValidationError) as exc_info:
            await attendance.adjust(
                entry.time_entry_id, new_clock_out=local(2024, 1, 10, 18), reason="   "
            )

        assert exc_info.value.field == "reason"

    async def test_clock_out_must_follow_clock_in(
        self, attendance, clock, test_employee, day_shift
    ):
        entry = await self._closed_entry(attendance, clock, test_employee, day_shift)

        with pytest.raises(ValidationError):
            await attendance.adjust(
                entry.time_entry_id, new_clock_out=local(2024, 1, 10, 9), reason="typo"
            )

    async def test_naive_time_rejected(self, attendance, clock, test_employee, day_shift):
        entry = await self._closed_entry(attendance, clock, test_employee, day_shift)

        with pytest.raises(ValidationError):
            await attendance.adjust(
                entry.time_entry_id, new_clock_out=datetime(2024, 1, 10, 18), reason="typo"
            )

    async def test_unknown_entry(self, attendance):
        with pytest.raises(NotFoundError):
            await attendance.adjust(uuid4(), new_clock_out=local(2024, 1, 10, 18), reason="x")


class TestClockStatus:
    """Test the employee's day at a glance."""

    async def test_before_clock_in(self, attendance, clock, test_employee, day_shift):
        clock.set(local(2024, 1, 10, 8, 56))

        status = await attendance.get_clock_status(test_employee.employee_id)

        assert status.day == date(2024, 1, 10)
        assert status.is_clocked_in is False
        assert [s.shift.shift_id for s in status.shifts] == [day_shift.shift_id]
        assert status.shifts[0].can_clock_in is True
        assert status.shifts[0].time_entry_id is None

    async def test_too_early_cannot_clock_in(self, attendance, clock, test_employee, day_shift):
        clock.set(local(2024, 1, 10, 7))

        status = await attendance.get_clock_status(test_employee.employee_id)

        assert status.shifts[0].can_clock_in is False

    async def test_while_clocked_in(self, attendance, clock, test_employee, day_shift):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 12))

        status = await attendance.get_clock_status(test_employee.employee_id)

        assert status.is_clocked_in is True
        assert status.current_entry.time_entry_id == entry.time_entry_id
        assert status.shifts[0].can_clock_in is False
        assert status.shifts[0].time_entry_id == entry.time_entry_id

    async def test_after_clock_out(self, attendance, clock, test_employee, day_shift):
        entry = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 17, 12))
        await attendance.clock_out(entry.time_entry_id)

        status = await attendance.get_clock_status(test_employee.employee_id)

        assert status.is_clocked_in is False
        assert status.completed_entries == 1
        assert status.hours_worked == Decimal("8.25")
        assert status.shifts[0].can_clock_in is False

    async def test_midnight_shift_clocked_in_the_night_before(
        self, attendance, clock, make_shift, test_employee
    ):
        overnight = await make_shift(test_employee, local(2024, 1, 11, 0), local(2024, 1, 11, 8))
        entry = await _clocked_in(
            attendance, clock, test_employee, overnight, local(2024, 1, 10, 23, 57)
        )
        clock.set(local(2024, 1, 11, 8))
        await attendance.clock_out(entry.time_entry_id)

        status = await attendance.get_clock_status(test_employee.employee_id)

        assert status.day == date(2024, 1, 11)
        assert [s.shift.shift_id for s in status.shifts] == [overnight.shift_id]
        assert status.shifts[0].time_entry_id == entry.time_entry_id
        assert status.shifts[0].can_clock_in is False


class TestListTimeEntries:
    """Test filtered listing by shift start date."""

    async def test_filters_by_shift_day_and_status(
        self, attendance, clock, make_shift, test_employee, day_shift
    ):
        next_day = await make_shift(test_employee, local(2024, 1, 11, 9), local(2024, 1, 11, 17))
        first = await _clocked_in(
            attendance, clock, test_employee, day_shift, local(2024, 1, 10, 9)
        )
        clock.set(local(2024, 1, 10, 17))
        await attendance.clock_out(first.time_entry_id)
        await _clocked_in(attendance, clock, test_employee, next_day, local(2024, 1, 11, 9))

        on_tenth = await attendance.list_time_entries(
            employee_id=test_employee.employee_id,
            start_date=date(2024, 1, 10),
            end_date=date(2024, 1, 10),
        )
        open_entries = await attendance.list_time_entries(status="CLOCKED_IN")

        assert on_tenth.total == 1
        assert on_tenth.items[0].time_entry_id == first.time_entry_id
        assert open_entries.total == 1
        assert open_entries.items[0].shift_id == next_day.shift_id
