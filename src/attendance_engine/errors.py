"""Error taxonomy for the attendance engine.

Every failure raised to a caller is one of these kinds, so the caller can map
it to a response without parsing messages:

- ValidationError: malformed or out-of-range input
- NotFoundError: shift, time entry, pay period or employee missing
- ConflictError: overlapping shift, duplicate pay period, already clocked in
- StateError: operation invalid for the current status
- TooEarlyError: clock-in before the allowed window
- PermissionDeniedError: caller does not own the record
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID


class AttendanceEngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(AttendanceEngineError):
    """Raised when input is malformed or out of range."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(AttendanceEngineError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ConflictError(AttendanceEngineError):
    """Raised when an operation would violate a uniqueness or overlap rule."""

    def __init__(self, message: str, conflicts: list[Any] | None = None):
        self.conflicts = conflicts or []
        super().__init__(message)


class StateError(AttendanceEngineError):
    """Raised when an operation is invalid for the entity's current status."""

    def __init__(self, current: str, attempted: str, reason: str | None = None):
        self.current = current
        self.attempted = attempted
        self.reason = reason
        msg = f"Cannot {attempted} while '{current}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidTransitionError(StateError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(from_status, f"transition to '{to_status}'", reason)


class TooEarlyError(AttendanceEngineError):
    """Raised when clocking in before the allowed window opens."""

    def __init__(self, allowed_at: datetime):
        self.allowed_at = allowed_at
        super().__init__(f"Too early to clock in; allowed from {allowed_at.isoformat()}")


class PermissionDeniedError(AttendanceEngineError):
    """Raised when the caller is not entitled to act on a record.

    The owning employee is exposed so the caller can apply its own policy.
    """

    def __init__(self, message: str, owner_id: UUID | None = None):
        self.owner_id = owner_id
        super().__init__(message)
