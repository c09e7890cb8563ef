"""Attendance engine facade.

Wires repositories and services over one session so callers get a single
entry point:

    async with get_session() as session:
        engine = AttendanceEngine(session)
        shift = await engine.shifts.create_shift(employee_id, start, end, created_by=admin_id)
        await engine.clock_in(employee_id, shift.shift_id)
        ...
        batch = await engine.calculate_batch_payroll(pay_period_id)

The session's transaction is owned by the caller.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from functools import partial
from typing import Callable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.calculators.aggregator import CancelCheck, PayrollAggregator
from attendance_engine.calculators.types import (
    BatchPayrollResult,
    ConflictCheckResult,
    EmployeePayrollSummary,
    PayrollCalculationResult,
    PayrollValidation,
)
from attendance_engine.config import Settings, get_settings
from attendance_engine.database import lock_employee
from attendance_engine.models import PayPeriod, PeriodHalf, TimeEntry
from attendance_engine.pay_calendar import CompletedPeriodCheck, can_generate_completed_period
from attendance_engine.repositories import (
    SqlEmployeeRepository,
    SqlPayPeriodRepository,
    SqlShiftRepository,
    SqlTimeEntryRepository,
)
from attendance_engine.services.pay_period_service import PayPeriodService
from attendance_engine.services.payroll_run_service import PayrollRunService
from attendance_engine.services.shift_service import ShiftService
from attendance_engine.services.time_clock_service import (
    AdjustmentFact,
    AttendanceClock,
    ClockInResult,
    ClockOutResult,
    utc_now,
)


class AttendanceEngine:
    """Single integration path over scheduling, time clock and payroll."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.now = clock or utc_now

        employees = SqlEmployeeRepository(session)
        shifts = SqlShiftRepository(session)
        entries = SqlTimeEntryRepository(session)
        periods = SqlPayPeriodRepository(session)
        lock = partial(lock_employee, session)

        self.employees = employees
        self.shifts = ShiftService(shifts, employees, self.settings, lock=lock)
        self.clock = AttendanceClock(entries, shifts, self.settings, clock=self.now, lock=lock)
        self.periods = PayPeriodService(periods, self.settings, clock=self.now)
        self.payroll = PayrollAggregator(
            periods, employees, entries, self.settings, clock=self.now
        )
        self.runs = PayrollRunService(self.payroll, self.periods)

    async def check_conflict(
        self,
        employee_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_shift_id: UUID | None = None,
    ) -> ConflictCheckResult:
        return await self.shifts.check_conflict(employee_id, start_time, end_time, exclude_shift_id)

    async def clock_in(
        self,
        employee_id: UUID,
        shift_id: UUID,
        location: str | None = None,
        ip: str | None = None,
    ) -> ClockInResult:
        return await self.clock.clock_in(employee_id, shift_id, location, ip)

    async def clock_out(
        self,
        time_entry_id: UUID,
        location: str | None = None,
        ip: str | None = None,
        caller_id: UUID | None = None,
        caller_role: str | None = None,
    ) -> ClockOutResult:
        return await self.clock.clock_out(time_entry_id, location, ip, caller_id, caller_role)

    async def adjust_time_entry(
        self,
        time_entry_id: UUID,
        new_clock_in: datetime | None = None,
        new_clock_out: datetime | None = None,
        *,
        reason: str,
        adjusted_by: UUID | None = None,
    ) -> tuple[TimeEntry, AdjustmentFact]:
        return await self.clock.adjust(
            time_entry_id, new_clock_in, new_clock_out, reason=reason, adjusted_by=adjusted_by
        )

    async def generate_pay_period(
        self, year: int, month: int, period: PeriodHalf | str
    ) -> PayPeriod:
        return await self.periods.generate_pay_period(year, month, period)

    def can_generate_completed_period(self, today: date | None = None) -> CompletedPeriodCheck:
        return can_generate_completed_period(
            today or self.now().astimezone(self.settings.tz).date()
        )

    async def calculate_employee_payroll(
        self,
        employee_id: UUID,
        pay_period_id: UUID,
        pay_rate: Decimal,
        pay_type: str,
    ) -> PayrollCalculationResult:
        return await self.payroll.calculate_employee_payroll(
            employee_id, pay_period_id, pay_rate, pay_type
        )

    async def employee_payroll_summary(
        self, employee_id: UUID, pay_period_id: UUID | None = None
    ) -> EmployeePayrollSummary:
        return await self.payroll.employee_payroll_summary(employee_id, pay_period_id)

    async def calculate_batch_payroll(
        self,
        pay_period_id: UUID,
        employee_ids: Sequence[UUID] | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> BatchPayrollResult:
        return await self.payroll.calculate_batch_payroll(
            pay_period_id, employee_ids, should_cancel
        )

    async def validate_payroll_calculation(self, pay_period_id: UUID) -> PayrollValidation:
        return await self.payroll.validate_payroll_calculation(pay_period_id)

    async def run_payroll(
        self,
        pay_period_id: UUID,
        employee_ids: Sequence[UUID] | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> BatchPayrollResult:
        return await self.runs.run_payroll(pay_period_id, employee_ids, should_cancel)
