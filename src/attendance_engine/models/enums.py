"""Closed status and role vocabularies."""

from __future__ import annotations

from enum import Enum


class EmployeeRole(str, Enum):
    """Employee role values."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class EmployeeStatus(str, Enum):
    """Employment status values."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TERMINATED = "TERMINATED"


class PayType(str, Enum):
    """How an employee is paid."""

    HOURLY = "HOURLY"
    SALARY = "SALARY"


class ShiftStatus(str, Enum):
    """Shift status values."""

    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class TimeEntryStatus(str, Enum):
    """Time entry status values."""

    CLOCKED_IN = "CLOCKED_IN"
    CLOCKED_OUT = "CLOCKED_OUT"
    ADJUSTED = "ADJUSTED"


class PayPeriodStatus(str, Enum):
    """Pay period status values."""

    OPEN = "OPEN"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    PAID = "PAID"


class PeriodHalf(str, Enum):
    """Half of a month covered by a semi-monthly period."""

    A = "A"  # 1st through 15th
    B = "B"  # 16th through last day


def check_values(enum_cls: type[Enum]) -> str:
    """Render enum values for a SQL IN (...) check constraint."""
    return ", ".join(f"'{member.value}'" for member in enum_cls)
