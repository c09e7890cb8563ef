"""Storage access for the engine's aggregates."""

from attendance_engine.repositories.base import (
    EmployeeRepository,
    Page,
    PayPeriodRepository,
    ShiftFilter,
    ShiftRepository,
    TimeEntryFilter,
    TimeEntryRepository,
)
from attendance_engine.repositories.employees import SqlEmployeeRepository
from attendance_engine.repositories.pay_periods import SqlPayPeriodRepository
from attendance_engine.repositories.shifts import SqlShiftRepository
from attendance_engine.repositories.time_entries import SqlTimeEntryRepository

__all__ = [
    "EmployeeRepository",
    "Page",
    "PayPeriodRepository",
    "ShiftFilter",
    "ShiftRepository",
    "TimeEntryFilter",
    "TimeEntryRepository",
    "SqlEmployeeRepository",
    "SqlPayPeriodRepository",
    "SqlShiftRepository",
    "SqlTimeEntryRepository",
]
