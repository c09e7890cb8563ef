"""Time and attendance reconciliation engine.

Schedules shifts without overlaps, reconciles clock punches against them
and aggregates the reconciled time into semi-monthly payroll.
"""

from attendance_engine.engine import AttendanceEngine
from attendance_engine.errors import (
    AttendanceEngineError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    TooEarlyError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AttendanceEngine",
    "AttendanceEngineError",
    "ConflictError",
    "InvalidTransitionError",
    "NotFoundError",
    "PermissionDeniedError",
    "StateError",
    "TooEarlyError",
    "ValidationError",
]
