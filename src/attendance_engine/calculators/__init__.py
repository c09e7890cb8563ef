"""Reconciliation and payroll calculations."""

from attendance_engine.calculators.aggregator import PayrollAggregator
from attendance_engine.calculators.conflicts import (
    ScheduleConflictDetector,
    intervals_overlap,
    overlap_minutes,
)
from attendance_engine.calculators.time_rules import (
    apply_grace_period,
    apply_payroll_rounding,
    compute_worked_time,
    split_overtime,
)
from attendance_engine.calculators.types import (
    BatchPayrollResult,
    ConflictCheckResult,
    EmployeePayrollSummary,
    PayrollCalculationResult,
    PayrollValidation,
)

__all__ = [
    "PayrollAggregator",
    "ScheduleConflictDetector",
    "intervals_overlap",
    "overlap_minutes",
    "apply_grace_period",
    "apply_payroll_rounding",
    "compute_worked_time",
    "split_overtime",
    "BatchPayrollResult",
    "ConflictCheckResult",
    "EmployeePayrollSummary",
    "PayrollCalculationResult",
    "PayrollValidation",
]
