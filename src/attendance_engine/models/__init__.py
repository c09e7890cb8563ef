"""SQLAlchemy ORM models."""

from attendance_engine.models.base import Base, TimestampMixin, UTCDateTime
from attendance_engine.models.employee import Employee
from attendance_engine.models.enums import (
    EmployeeRole,
    EmployeeStatus,
    PayPeriodStatus,
    PayType,
    PeriodHalf,
    ShiftStatus,
    TimeEntryStatus,
)
from attendance_engine.models.pay_period import PayPeriod
from attendance_engine.models.schedule import Shift
from attendance_engine.models.time_entry import TimeEntry

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "Employee",
    "EmployeeRole",
    "EmployeeStatus",
    "PayPeriod",
    "PayPeriodStatus",
    "PayType",
    "PeriodHalf",
    "Shift",
    "ShiftStatus",
    "TimeEntry",
    "TimeEntryStatus",
]
