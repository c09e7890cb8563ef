"""Status state machines with transition validation."""

from __future__ import annotations

from attendance_engine.errors import InvalidTransitionError
from attendance_engine.models.enums import PayPeriodStatus, TimeEntryStatus


class PayPeriodStateMachine:
    """State machine for pay period status transitions.

    Allowed transitions:
    - OPEN → PROCESSING (payroll run)
    - PROCESSING → PAID

    COMPLETED is a recognised status with no transition into or out of it.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayPeriodStatus.OPEN: [PayPeriodStatus.PROCESSING],
        PayPeriodStatus.PROCESSING: [PayPeriodStatus.PAID],
        PayPeriodStatus.COMPLETED: [],
        PayPeriodStatus.PAID: [],  # Terminal state
    }

    # Statuses where payroll may be calculated
    CALCULATION_ALLOWED = {
        PayPeriodStatus.OPEN,
        PayPeriodStatus.PROCESSING,
    }

    # Statuses where the period may be deleted
    DELETABLE = {
        PayPeriodStatus.OPEN,
        PayPeriodStatus.PROCESSING,
        PayPeriodStatus.COMPLETED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if from_status not in cls.VALID_TRANSITIONS:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_calculate(cls, status: str) -> bool:
        """Check if payroll calculation is allowed in this status."""
        return status in cls.CALCULATION_ALLOWED

    @classmethod
    def can_delete(cls, status: str) -> bool:
        return status in cls.DELETABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class TimeEntryStateMachine:
    """State machine for time entry status transitions.

    Allowed transitions:
    - CLOCKED_IN → CLOCKED_OUT (clock-out)
    - CLOCKED_IN → ADJUSTED (adjustment that supplies the clock-out)
    - CLOCKED_OUT → ADJUSTED
    - ADJUSTED → ADJUSTED (re-adjustment)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        TimeEntryStatus.CLOCKED_IN: [TimeEntryStatus.CLOCKED_OUT, TimeEntryStatus.ADJUSTED],
        TimeEntryStatus.CLOCKED_OUT: [TimeEntryStatus.ADJUSTED],
        TimeEntryStatus.ADJUSTED: [TimeEntryStatus.ADJUSTED],
    }

    # Statuses that count toward payroll
    CLOSED = {
        TimeEntryStatus.CLOCKED_OUT,
        TimeEntryStatus.ADJUSTED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if from_status not in cls.VALID_TRANSITIONS:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_closed(cls, status: str) -> bool:
        return status in cls.CLOSED
