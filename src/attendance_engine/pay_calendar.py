"""Semi-monthly pay calendar.

Period A covers the 1st through the 15th, period B the 16th through the
last day of the month. Boundaries are wall-clock times in the
organization time zone: a period starts at 00:00:00 on its first day and
ends at 23:59:59 on its last day.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from attendance_engine.errors import ValidationError
from attendance_engine.models.enums import PeriodHalf

END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class PeriodDates:
    start_date: datetime
    end_date: datetime
    pay_date: date

    @property
    def end_exclusive(self) -> datetime:
        """First instant after the period."""
        return self.end_date + timedelta(seconds=1)


@dataclass(frozen=True)
class CompletedPeriodCheck:
    """Whether the period that just ended may be generated today."""

    allowed: bool
    year: int | None = None
    month: int | None = None
    period: PeriodHalf | None = None
    reason: str | None = None

    def require(self) -> tuple[int, int, PeriodHalf]:
        """(year, month, half) of the completed period, or ValidationError."""
        if not self.allowed or self.year is None or self.month is None or self.period is None:
            raise ValidationError(self.reason or "No period completed today")
        return self.year, self.month, self.period


def _coerce_half(period: PeriodHalf | str) -> PeriodHalf:
    try:
        return PeriodHalf(period)
    except ValueError:
        raise ValidationError(f"Invalid period {period!r}; expected 'A' or 'B'", field="period")


def generate_period_dates(
    year: int,
    month: int,
    period: PeriodHalf | str,
    tz: tzinfo,
    pay_date_offset_days: int = 5,
) -> PeriodDates:
    """Boundaries and pay date of one semi-monthly period."""
    half = _coerce_half(period)
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month}", field="month")
    if year < 1:
        raise ValidationError(f"Invalid year {year}", field="year")

    if half is PeriodHalf.A:
        first_day, last_day = 1, 15
    else:
        first_day, last_day = 16, calendar.monthrange(year, month)[1]

    start = datetime.combine(date(year, month, first_day), time.min, tzinfo=tz)
    end_day = date(year, month, last_day)
    end = datetime.combine(end_day, END_OF_DAY, tzinfo=tz)
    return PeriodDates(
        start_date=start,
        end_date=end,
        pay_date=end_day + timedelta(days=pay_date_offset_days),
    )


def can_generate_completed_period(today: date) -> CompletedPeriodCheck:
    """Decide which period, if any, closed yesterday.

    On the 16th period A of the current month has just ended; on the 1st
    period B of the previous month has.
    """
    if today.day == 16:
        return CompletedPeriodCheck(
            allowed=True, year=today.year, month=today.month, period=PeriodHalf.A
        )
    if today.day == 1:
        previous = today - timedelta(days=1)
        return CompletedPeriodCheck(
            allowed=True, year=previous.year, month=previous.month, period=PeriodHalf.B
        )
    return CompletedPeriodCheck(
        allowed=False,
        reason=(
            "Completed periods can only be generated on the 1st or 16th of the month "
            f"(today is the {today.day})"
        ),
    )


def period_label(start_date: datetime, tz: tzinfo) -> str:
    """Human label such as ``2024-01-A`` for a period starting at ``start_date``."""
    local = start_date.astimezone(tz)
    half = PeriodHalf.A if local.day == 1 else PeriodHalf.B
    return f"{local.year:04d}-{local.month:02d}-{half.value}"


def upcoming_periods(today: date, months_ahead: int) -> list[tuple[int, int, PeriodHalf]]:
    """(year, month, half) for both halves of each month after ``today``'s."""
    if months_ahead < 0:
        raise ValidationError("months_ahead cannot be negative", field="months_ahead")
    periods: list[tuple[int, int, PeriodHalf]] = []
    for offset in range(1, months_ahead + 1):
        index = today.month - 1 + offset
        year, month = today.year + index // 12, index % 12 + 1
        periods.append((year, month, PeriodHalf.A))
        periods.append((year, month, PeriodHalf.B))
    return periods


def local_day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """[start, next day's start) of a calendar day in ``tz``."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end
