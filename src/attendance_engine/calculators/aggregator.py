"""Payroll aggregation over a pay period."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Sequence
from uuid import UUID

from attendance_engine.calculators.types import (
    ZERO,
    Anomaly,
    BatchPayrollResult,
    BatchSummary,
    EmployeeFailure,
    EmployeePayrollSummary,
    PayrollCalculationResult,
    PayrollValidation,
    TimeEntryDetail,
    quantize,
)
from attendance_engine.config import Settings, get_settings
from attendance_engine.errors import NotFoundError, StateError, ValidationError
from attendance_engine.models import Employee, PayPeriod, PayPeriodStatus, PayType
from attendance_engine.pay_calendar import period_label
from attendance_engine.repositories.base import (
    EmployeeRepository,
    PayPeriodRepository,
    TimeEntryRepository,
)
from attendance_engine.services.state_machine import PayPeriodStateMachine

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PayrollAggregator:
    """Reduces reconciled time entries into per-employee pay.

    Calculation per employee (Decimal throughout, rounded only at the end):
    1) Sum regular and overtime hours of closed entries whose shift starts
       inside the period
    2) Salaried employees with no entries get the default hours (flagged)
    3) regular pay = regular hours x rate
    4) overtime pay = overtime hours x rate x overtime multiplier
    5) deductions = gross x (cpp + ei + tax)
    """

    def __init__(
        self,
        periods: PayPeriodRepository,
        employees: EmployeeRepository,
        entries: TimeEntryRepository,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.periods = periods
        self.employees = employees
        self.entries = entries
        self.settings = settings or get_settings()
        self.clock = clock or _utc_now

    async def _get_period(self, pay_period_id: UUID) -> PayPeriod:
        period = await self.periods.get(pay_period_id)
        if period is None:
            raise NotFoundError("PayPeriod", pay_period_id)
        return period

    @staticmethod
    def _window(period: PayPeriod) -> tuple[datetime, datetime]:
        # end_date is the last second of the period, inclusive
        return period.start_date, period.end_date + timedelta(seconds=1)

    async def calculate_employee_payroll(
        self,
        employee_id: UUID,
        pay_period_id: UUID,
        pay_rate: Decimal,
        pay_type: str,
    ) -> PayrollCalculationResult:
        """Pay for one employee over one period."""
        period = await self._get_period(pay_period_id)
        return await self._calculate(employee_id, period, pay_rate, pay_type)

    async def _calculate(
        self,
        employee_id: UUID,
        period: PayPeriod,
        pay_rate: Decimal,
        pay_type: str,
    ) -> PayrollCalculationResult:
        if pay_rate is None:
            raise ValidationError("Pay rate is required", field="pay_rate")
        # str() first so a float keeps its printed value, not its binary expansion
        rate = pay_rate if isinstance(pay_rate, Decimal) else Decimal(str(pay_rate))
        if rate < 0:
            raise ValidationError(f"Invalid pay rate {pay_rate!r}", field="pay_rate")
        try:
            pay_type = PayType(pay_type).value
        except ValueError:
            raise ValidationError(f"Invalid pay type {pay_type!r}", field="pay_type")

        start, end_exclusive = self._window(period)
        entries = await self.entries.list_closed_for_shift_window(
            employee_id, start, end_exclusive
        )

        regular_hours = ZERO
        overtime_hours = ZERO
        details: list[TimeEntryDetail] = []
        for entry in entries:
            total = entry.total_hours or ZERO
            overtime = entry.overtime_hours or ZERO
            regular_hours += total - overtime
            overtime_hours += overtime
            scheduled = entry.scheduled_start_time or entry.clock_in_time
            details.append(
                TimeEntryDetail(
                    time_entry_id=entry.time_entry_id,
                    clock_in_time=entry.clock_in_time,
                    clock_out_time=entry.clock_out_time,
                    total_hours=total,
                    overtime_hours=overtime,
                    shift_date=scheduled.astimezone(self.settings.tz).date(),
                )
            )

        anomalies: list[str] = []
        if pay_type == PayType.SALARY and not entries:
            regular_hours = self.settings.payroll.salary_default_hours
            overtime_hours = ZERO
            message = (
                f"No time entries in period; salary fallback of {regular_hours} hours applied"
            )
            anomalies.append(message)
            logger.warning("Employee %s: %s", employee_id, message)

        regular_pay = regular_hours * rate
        overtime_pay = overtime_hours * rate * self.settings.payroll.overtime_multiplier
        gross_pay = regular_pay + overtime_pay
        deductions = gross_pay * self.settings.deductions.total

        gross_q = quantize(gross_pay)
        deductions_q = quantize(deductions)
        return PayrollCalculationResult(
            employee_id=employee_id,
            pay_period_id=period.pay_period_id,
            regular_hours=quantize(regular_hours),
            overtime_hours=quantize(overtime_hours),
            total_hours=quantize(regular_hours + overtime_hours),
            regular_pay=quantize(regular_pay),
            overtime_pay=quantize(overtime_pay),
            gross_pay=gross_q,
            deductions=deductions_q,
            net_pay=gross_q - deductions_q,
            time_entries_count=len(entries),
            details=details,
            anomalies=anomalies,
        )

    async def calculate_batch_payroll(
        self,
        pay_period_id: UUID,
        employee_ids: Sequence[UUID] | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> BatchPayrollResult:
        """Best-effort payroll for every eligible employee.

        One employee's failure is recorded and skipped; it never aborts the
        batch. ``should_cancel`` is polled between employees.
        """
        period = await self._get_period(pay_period_id)
        if not PayPeriodStateMachine.can_calculate(period.status):
            raise StateError(period.status, "calculate payroll")

        employee_ids = list(employee_ids) if employee_ids else None
        eligible = await self.employees.list_payable(employee_ids)
        failures: list[EmployeeFailure] = []
        if employee_ids is not None:
            found = {e.employee_id for e in eligible}
            for employee_id in dict.fromkeys(employee_ids):
                if employee_id not in found:
                    failures.append(
                        EmployeeFailure(
                            employee_id,
                            "Employee not found, inactive or missing pay configuration",
                        )
                    )
        if not eligible:
            raise ValidationError("No eligible employees found for payroll calculation")

        results: list[PayrollCalculationResult] = []
        cancelled = False
        for employee in eligible:
            if should_cancel is not None and should_cancel():
                cancelled = True
                logger.info(
                    "Payroll batch for period %s cancelled after %d employee(s)",
                    pay_period_id,
                    len(results) + len(failures),
                )
                break
            try:
                results.append(await self._calculate_for(employee, period))
            except Exception as e:
                logger.exception("Error calculating payroll for employee %s", employee.employee_id)
                failures.append(EmployeeFailure(employee.employee_id, str(e)))

        anomalies = [
            Anomaly(result.employee_id, message)
            for result in results
            for message in result.anomalies
        ]
        return BatchPayrollResult(
            pay_period_id=pay_period_id,
            period_label=period_label(period.start_date, self.settings.tz),
            results=results,
            failures=failures,
            anomalies=anomalies,
            summary=BatchSummary.from_results(results),
            cancelled=cancelled,
            calculated_at=self.clock(),
        )

    async def _calculate_for(self, employee: Employee, period: PayPeriod) -> PayrollCalculationResult:
        if employee.pay_rate is None or employee.pay_type is None:
            raise ValidationError(
                f"Employee {employee.employee_id} does not have pay rate or pay type configured",
                field="pay_rate",
            )
        return await self._calculate(
            employee.employee_id, period, employee.pay_rate, employee.pay_type
        )

    async def employee_payroll_summary(
        self, employee_id: UUID, pay_period_id: UUID | None = None
    ) -> EmployeePayrollSummary:
        """Pay for one employee from their stored pay configuration.

        Without a period id, the period containing the current instant is used.
        """
        employee = await self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        if pay_period_id is not None:
            period = await self._get_period(pay_period_id)
        else:
            now = self.clock()
            found = await self.periods.find_containing(now)
            if found is None:
                raise NotFoundError("PayPeriod", f"containing {now.isoformat()}")
            period = found

        result = await self._calculate_for(employee, period)
        return EmployeePayrollSummary(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            employee_number=employee.employee_number,
            period_label=period_label(period.start_date, self.settings.tz),
            current_period=result,
        )

    async def validate_payroll_calculation(self, pay_period_id: UUID) -> PayrollValidation:
        """Pre-flight checks before running payroll for a period."""
        errors: list[str] = []
        warnings: list[str] = []

        period = await self.periods.get(pay_period_id)
        if period is None:
            errors.append("Pay period not found")
            return PayrollValidation(is_valid=False, errors=errors, warnings=warnings)

        if period.status == PayPeriodStatus.PAID:
            errors.append("Cannot calculate payroll for a paid period")
        elif not PayPeriodStateMachine.can_calculate(period.status):
            errors.append(f"Cannot calculate payroll while period is '{period.status}'")

        missing_pay = await self.employees.list_active_without_pay()
        if missing_pay:
            names = ", ".join(e.employee_number or e.full_name for e in missing_pay)
            warnings.append(
                f"{len(missing_pay)} active employees missing pay configuration: {names}"
            )

        start, end_exclusive = self._window(period)
        open_entries = await self.entries.count_open_for_shift_window(start, end_exclusive)
        if open_entries:
            warnings.append(f"{open_entries} time entries are still clocked in")

        return PayrollValidation(is_valid=not errors, errors=errors, warnings=warnings)
