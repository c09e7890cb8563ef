"""Type definitions for the reconciliation and payroll pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

CENT = Decimal("0.01")
ZERO = Decimal("0")


def quantize(value: Decimal) -> Decimal:
    """Round to two places, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ShiftConflict:
    """An existing shift that intersects a proposed one."""

    shift_id: UUID
    start_time: datetime
    end_time: datetime
    overlap_minutes: int


@dataclass(frozen=True)
class ConflictCheckResult:
    has_conflict: bool
    conflicts: list[ShiftConflict] = field(default_factory=list)


@dataclass(frozen=True)
class GraceResult:
    """Outcome of snapping a punch to its scheduled time."""

    adjusted_time: datetime
    applied: bool


@dataclass(frozen=True)
class WorkedTime:
    """Hours between two rounded punches, split at the overtime threshold."""

    rounded_start: datetime
    rounded_end: datetime
    minutes: int
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal


@dataclass(frozen=True)
class TimeEntryDetail:
    """Per-entry line of a payroll calculation."""

    time_entry_id: UUID
    clock_in_time: datetime
    clock_out_time: datetime | None
    total_hours: Decimal
    overtime_hours: Decimal
    shift_date: date | None


@dataclass
class PayrollCalculationResult:
    """Pay for one employee over one pay period."""

    employee_id: UUID
    pay_period_id: UUID
    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal
    time_entries_count: int
    details: list[TimeEntryDetail] = field(default_factory=list)
    anomalies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "pay_period_id": str(self.pay_period_id),
            "regular_hours": str(self.regular_hours),
            "overtime_hours": str(self.overtime_hours),
            "total_hours": str(self.total_hours),
            "regular_pay": str(self.regular_pay),
            "overtime_pay": str(self.overtime_pay),
            "gross_pay": str(self.gross_pay),
            "deductions": str(self.deductions),
            "net_pay": str(self.net_pay),
            "time_entries_count": self.time_entries_count,
            "anomalies": list(self.anomalies),
        }


@dataclass(frozen=True)
class EmployeePayrollSummary:
    """One employee's pay for a period, computed from their stored rate."""

    employee_id: UUID
    employee_name: str
    employee_number: str | None
    period_label: str
    current_period: PayrollCalculationResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "employee_name": self.employee_name,
            "employee_number": self.employee_number,
            "period": self.period_label,
            "current_period": self.current_period.to_dict(),
        }


@dataclass(frozen=True)
class EmployeeFailure:
    """An employee skipped by a batch calculation."""

    employee_id: UUID
    error: str


@dataclass(frozen=True)
class Anomaly:
    employee_id: UUID
    message: str


@dataclass(frozen=True)
class BatchSummary:
    total_employees: int = 0
    total_regular_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_gross_pay: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    average_hours_per_employee: Decimal = ZERO
    average_pay_per_employee: Decimal = ZERO

    @classmethod
    def from_results(cls, results: list[PayrollCalculationResult]) -> BatchSummary:
        """Totals over already-rounded per-employee figures."""
        count = len(results)
        if count == 0:
            return cls()
        regular = sum((r.regular_hours for r in results), ZERO)
        overtime = sum((r.overtime_hours for r in results), ZERO)
        gross = sum((r.gross_pay for r in results), ZERO)
        return cls(
            total_employees=count,
            total_regular_hours=regular,
            total_overtime_hours=overtime,
            total_gross_pay=gross,
            total_deductions=sum((r.deductions for r in results), ZERO),
            total_net_pay=sum((r.net_pay for r in results), ZERO),
            average_hours_per_employee=quantize((regular + overtime) / count),
            average_pay_per_employee=quantize(gross / count),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_employees": self.total_employees,
            "total_regular_hours": str(self.total_regular_hours),
            "total_overtime_hours": str(self.total_overtime_hours),
            "total_gross_pay": str(self.total_gross_pay),
            "total_deductions": str(self.total_deductions),
            "total_net_pay": str(self.total_net_pay),
            "average_hours_per_employee": str(self.average_hours_per_employee),
            "average_pay_per_employee": str(self.average_pay_per_employee),
        }


@dataclass
class BatchPayrollResult:
    """Outcome of a best-effort payroll run over many employees."""

    pay_period_id: UUID
    period_label: str
    results: list[PayrollCalculationResult]
    failures: list[EmployeeFailure]
    anomalies: list[Anomaly]
    summary: BatchSummary
    cancelled: bool
    calculated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "pay_period_id": str(self.pay_period_id),
            "period": self.period_label,
            "results": [r.to_dict() for r in self.results],
            "failures": [
                {"employee_id": str(f.employee_id), "error": f.error} for f in self.failures
            ],
            "anomalies": [
                {"employee_id": str(a.employee_id), "message": a.message} for a in self.anomalies
            ],
            "summary": self.summary.to_dict(),
            "cancelled": self.cancelled,
            "calculated_at": self.calculated_at.isoformat(),
        }


@dataclass
class PayrollValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"is_valid": self.is_valid, "errors": self.errors, "warnings": self.warnings}
