"""Punch normalization rules.

Every worked interval goes through the same two steps, in this order:

1. Grace: a punch within the grace window of its scheduled time snaps to
   the scheduled time.
2. Payroll rounding: each end of the interval is rounded to the nearest
   quarter hour on the organization's wall clock (7-minute rule).

Hours are then split at the per-shift overtime threshold.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal

from attendance_engine.calculators.types import ZERO, GraceResult, WorkedTime

MINUTES_PER_HOUR = Decimal("60")

# (last minute of bucket, rounded minute); 60 means the next hour
ROUNDING_BUCKETS = ((7, 0), (22, 15), (37, 30), (52, 45), (59, 60))


def apply_grace_period(
    actual: datetime, scheduled: datetime | None, window_minutes: int = 5
) -> GraceResult:
    """Snap ``actual`` to ``scheduled`` when within the window (inclusive)."""
    if scheduled is None:
        return GraceResult(adjusted_time=actual, applied=False)
    if abs(actual - scheduled) <= timedelta(minutes=window_minutes):
        return GraceResult(adjusted_time=scheduled, applied=True)
    return GraceResult(adjusted_time=actual, applied=False)


def round_minute(minute: int) -> int:
    """Map a wall-clock minute to its quarter-hour bucket (0, 15, 30, 45 or 60)."""
    if not 0 <= minute <= 59:
        raise ValueError(f"minute out of range: {minute}")
    for upper, rounded in ROUNDING_BUCKETS:
        if minute <= upper:
            return rounded
    raise AssertionError("unreachable")


def apply_payroll_rounding(ts: datetime, tz: tzinfo) -> datetime:
    """Round a timestamp to the nearest quarter hour in ``tz``.

    Seconds and microseconds are dropped before the minute is bucketed.
    The result is expressed in the input's time zone. Idempotent.
    """
    if ts.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")
    local = ts.astimezone(tz)
    hour_start = local.replace(minute=0, second=0, microsecond=0)
    # Step from the hour start in absolute time so DST gaps don't skew it
    rounded = hour_start.astimezone(timezone.utc) + timedelta(minutes=round_minute(local.minute))
    return rounded.astimezone(ts.tzinfo)


def split_overtime(hours: Decimal, threshold: Decimal) -> tuple[Decimal, Decimal]:
    """Split one shift's hours into (regular, overtime)."""
    hours = max(hours, ZERO)
    regular = min(hours, threshold)
    overtime = max(ZERO, hours - threshold)
    return regular, overtime


def compute_worked_time(
    adjusted_start: datetime,
    adjusted_end: datetime,
    tz: tzinfo,
    overtime_threshold: Decimal,
) -> WorkedTime:
    """Round both ends, measure the interval and split off overtime."""
    rounded_start = apply_payroll_rounding(adjusted_start, tz)
    rounded_end = apply_payroll_rounding(adjusted_end, tz)
    # Aware datetimes sharing a tzinfo subtract as wall time; measure in UTC
    elapsed = rounded_end.astimezone(timezone.utc) - rounded_start.astimezone(timezone.utc)
    minutes = max(0, int(elapsed.total_seconds() // 60))
    total = Decimal(minutes) / MINUTES_PER_HOUR
    regular, overtime = split_overtime(total, overtime_threshold)
    return WorkedTime(
        rounded_start=rounded_start,
        rounded_end=rounded_end,
        minutes=minutes,
        total_hours=total,
        regular_hours=regular,
        overtime_hours=overtime,
    )
