"""Pay period lifecycle service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from attendance_engine.config import Settings, get_settings
from attendance_engine.errors import ConflictError, NotFoundError, StateError, ValidationError
from attendance_engine.models import PayPeriod, PayPeriodStatus, PeriodHalf
from attendance_engine.pay_calendar import (
    can_generate_completed_period,
    generate_period_dates,
    local_day_bounds,
    period_label,
    upcoming_periods,
)
from attendance_engine.repositories.base import Page, PayPeriodRepository
from attendance_engine.services.state_machine import PayPeriodStateMachine
from attendance_engine.services.time_clock_service import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentPeriods:
    current: PayPeriod | None
    next: PayPeriod | None
    previous: PayPeriod | None


class PayPeriodService:
    """Service for managing semi-monthly pay periods.

    Operations:
    - create_period / generate_pay_period: Create one OPEN period
    - create_completed_period: Create the period that ended yesterday
    - generate_upcoming_periods: Pre-create future periods, skipping existing
    - transition_status, begin_processing, mark_paid: Status lifecycle
    """

    def __init__(
        self,
        periods: PayPeriodRepository,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ):
        self.periods = periods
        self.settings = settings or get_settings()
        self.clock = clock or utc_now

    def _today(self) -> date:
        return self.clock().astimezone(self.settings.tz).date()

    def label(self, period: PayPeriod) -> str:
        return period_label(period.start_date, self.settings.tz)

    async def create_period(self, year: int, month: int, period: PeriodHalf | str) -> PayPeriod:
        """Create an OPEN period; a second period with the same bounds is a conflict."""
        dates = generate_period_dates(
            year, month, period, self.settings.tz, self.settings.payroll.pay_date_offset_days
        )
        label = f"{year:04d}-{month:02d}-{PeriodHalf(period).value}"
        existing = await self.periods.find_by_dates(dates.start_date, dates.end_date)
        if existing is not None:
            raise ConflictError(
                f"Pay period {label} already exists", conflicts=[existing.pay_period_id]
            )

        created = await self.periods.add(
            PayPeriod(
                start_date=dates.start_date,
                end_date=dates.end_date,
                pay_date=dates.pay_date,
                status=PayPeriodStatus.OPEN.value,
            )
        )
        logger.info("Created pay period %s (%s)", label, created.pay_period_id)
        return created

    # Exposed name of the creation operation
    generate_pay_period = create_period

    async def create_completed_period(self, today: date | None = None) -> PayPeriod:
        """Create the period that closed yesterday (only on the 1st or 16th)."""
        year, month, half = can_generate_completed_period(today or self._today()).require()
        return await self.create_period(year, month, half)

    async def generate_upcoming_periods(
        self, months_ahead: int = 3, today: date | None = None
    ) -> list[PayPeriod]:
        """Create both halves of the next ``months_ahead`` months that don't exist yet."""
        created: list[PayPeriod] = []
        for year, month, half in upcoming_periods(today or self._today(), months_ahead):
            try:
                created.append(await self.create_period(year, month, half))
            except ConflictError:
                logger.debug("Pay period %04d-%02d-%s already exists", year, month, half.value)
        return created

    async def get_period(self, pay_period_id: UUID) -> PayPeriod:
        period = await self.periods.get(pay_period_id)
        if period is None:
            raise NotFoundError("PayPeriod", pay_period_id)
        return period

    async def list_periods(
        self,
        year: int | None = None,
        month: int | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[PayPeriod]:
        """Periods starting in the given year (and month), newest first."""
        if month is not None and year is None:
            raise ValidationError("month filter requires a year", field="month")
        if month is not None and not 1 <= month <= 12:
            raise ValidationError(f"Invalid month {month}", field="month")
        start_from = start_before = None
        tz = self.settings.tz
        if year is not None and month is not None:
            start_from = local_day_bounds(date(year, month, 1), tz)[0]
            next_month = date(year + month // 12, month % 12 + 1, 1)
            start_before = local_day_bounds(next_month, tz)[0]
        elif year is not None:
            start_from = local_day_bounds(date(year, 1, 1), tz)[0]
            start_before = local_day_bounds(date(year + 1, 1, 1), tz)[0]
        return await self.periods.search(start_from, start_before, status, page, limit)

    async def get_current_periods(self, now: datetime | None = None) -> CurrentPeriods:
        """The period containing ``now`` plus its stored neighbours."""
        now = now or self.clock()
        return CurrentPeriods(
            current=await self.periods.find_containing(now),
            next=await self.periods.find_next(now),
            previous=await self.periods.find_previous(now),
        )

    async def update_pay_date(self, pay_period_id: UUID, pay_date: date) -> PayPeriod:
        period = await self.get_period(pay_period_id)
        if period.status == PayPeriodStatus.PAID:
            raise StateError(period.status, "change pay date", "period is already paid")
        if pay_date < period.end_date.astimezone(self.settings.tz).date():
            raise ValidationError("Pay date cannot precede the period end", field="pay_date")
        period.pay_date = pay_date
        return await self.periods.save(period)

    async def delete_period(self, pay_period_id: UUID) -> None:
        period = await self.get_period(pay_period_id)
        if not PayPeriodStateMachine.can_delete(period.status):
            raise StateError(period.status, "delete pay period", "period is already paid")
        await self.periods.delete(period)
        logger.info("Deleted pay period %s", self.label(period))

    async def transition_status(self, period: PayPeriod, to_status: str) -> PayPeriod:
        """Move a period to a new status.

        Raises InvalidTransitionError if the transition is not allowed.
        """
        from_status = period.status
        PayPeriodStateMachine.validate_transition(from_status, to_status)
        period.status = PayPeriodStatus(to_status).value
        await self.periods.save(period)
        logger.info(
            "Pay period %s: %s -> %s", self.label(period), from_status, period.status
        )
        return period

    async def begin_processing(self, pay_period_id: UUID) -> PayPeriod:
        period = await self.get_period(pay_period_id)
        return await self.transition_status(period, PayPeriodStatus.PROCESSING)

    async def mark_paid(self, pay_period_id: UUID) -> PayPeriod:
        period = await self.get_period(pay_period_id)
        return await self.transition_status(period, PayPeriodStatus.PAID)
