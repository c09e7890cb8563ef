"""Tests for the pay period lifecycle."""

from datetime import date
from uuid import uuid4

import pytest

from attendance_engine.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StateError,
    ValidationError,
)
from attendance_engine.models import PayPeriodStatus
from attendance_engine.services.pay_period_service import PayPeriodService
from tests.helpers import local


@pytest.fixture
def service(period_repo, settings, clock) -> PayPeriodService:
    return PayPeriodService(period_repo, settings, clock=clock)


class TestCreatePeriod:
    """Test pay period creation."""

    async def test_create_period(self, service):
        period = await service.create_period(2024, 1, "A")

        assert period.status == PayPeriodStatus.OPEN
        assert period.start_date == local(2024, 1, 1)
        assert period.end_date == local(2024, 1, 15, 23, 59, 59)
        assert period.pay_date == date(2024, 1, 20)
        assert service.label(period) == "2024-01-A"

    async def test_duplicate_period_conflicts(self, service):
        first = await service.generate_pay_period(2024, 1, "A")

        with pytest.raises(ConflictError) as exc_info:
            await service.generate_pay_period(2024, 1, "A")

        assert str(exc_info.value) == "Pay period 2024-01-A already exists"
        assert exc_info.value.conflicts == [first.pay_period_id]

    async def test_invalid_half(self, service):
        with pytest.raises(ValidationError):
            await service.create_period(2024, 1, "C")

    async def test_create_completed_period_on_the_16th(self, service):
        period = await service.create_completed_period(today=date(2024, 1, 16))

        assert service.label(period) == "2024-01-A"

    async def test_create_completed_period_uses_clock(self, service, clock):
        clock.set(local(2024, 3, 1, 7, 0))

        period = await service.create_completed_period()

        assert service.label(period) == "2024-02-B"

    async def test_create_completed_period_other_day(self, service):
        # Fixture clock is 2024-01-10
        with pytest.raises(ValidationError):
            await service.create_completed_period()

    async def test_generate_upcoming_periods_skips_existing(self, service):
        await service.create_period(2024, 2, "A")

        created = await service.generate_upcoming_periods(months_ahead=2)

        assert [service.label(p) for p in created] == ["2024-02-B", "2024-03-A", "2024-03-B"]


class TestQueries:
    """Test lookups and listings."""

    async def test_get_unknown_period(self, service):
        with pytest.raises(NotFoundError):
            await service.get_period(uuid4())

    async def test_list_periods_by_month_newest_first(self, service):
        await service.create_period(2024, 1, "A")
        await service.create_period(2024, 1, "B")
        await service.create_period(2024, 2, "A")

        page = await service.list_periods(year=2024, month=1)

        assert page.total == 2
        assert [service.label(p) for p in page.items] == ["2024-01-B", "2024-01-A"]

    async def test_list_periods_by_year_and_status(self, service):
        january = await service.create_period(2024, 1, "A")
        await service.create_period(2024, 1, "B")
        await service.create_period(2025, 1, "A")
        await service.begin_processing(january.pay_period_id)

        page = await service.list_periods(year=2024, status="PROCESSING")

        assert [p.pay_period_id for p in page.items] == [january.pay_period_id]

    async def test_list_periods_paginates(self, service):
        for month in range(1, 4):
            await service.create_period(2024, month, "A")

        page = await service.list_periods(page=2, limit=2)

        assert page.total == 3
        assert page.total_pages == 2
        assert len(page.items) == 1

    async def test_month_without_year_rejected(self, service):
        with pytest.raises(ValidationError):
            await service.list_periods(month=1)

    async def test_current_periods(self, service):
        first = await service.create_period(2024, 1, "A")
        second = await service.create_period(2024, 1, "B")
        third = await service.create_period(2024, 2, "A")

        current = await service.get_current_periods(local(2024, 1, 20, 12))

        assert current.current.pay_period_id == second.pay_period_id
        assert current.next.pay_period_id == third.pay_period_id
        assert current.previous.pay_period_id == first.pay_period_id

    async def test_current_periods_with_gap(self, service):
        await service.create_period(2024, 2, "A")

        current = await service.get_current_periods()

        assert current.current is None
        assert current.previous is None
        assert service.label(current.next) == "2024-02-A"


class TestLifecycle:
    """Test status transitions, pay date changes and deletion."""

    async def test_open_processing_paid(self, service):
        period = await service.create_period(2024, 1, "A")

        await service.begin_processing(period.pay_period_id)
        paid = await service.mark_paid(period.pay_period_id)

        assert paid.status == PayPeriodStatus.PAID

    async def test_cannot_skip_processing(self, service):
        period = await service.create_period(2024, 1, "A")

        with pytest.raises(InvalidTransitionError):
            await service.mark_paid(period.pay_period_id)

    async def test_update_pay_date(self, service):
        period = await service.create_period(2024, 1, "A")

        updated = await service.update_pay_date(period.pay_period_id, date(2024, 1, 19))

        assert updated.pay_date == date(2024, 1, 19)

    async def test_pay_date_cannot_precede_period_end(self, service):
        period = await service.create_period(2024, 1, "A")

        with pytest.raises(ValidationError):
            await service.update_pay_date(period.pay_period_id, date(2024, 1, 14))

    async def test_paid_period_pay_date_is_frozen(self, service):
        period = await service.create_period(2024, 1, "A")
        await service.begin_processing(period.pay_period_id)
        await service.mark_paid(period.pay_period_id)

        with pytest.raises(StateError):
            await service.update_pay_date(period.pay_period_id, date(2024, 1, 25))

    async def test_delete_open_period(self, service):
        period = await service.create_period(2024, 1, "A")

        await service.delete_period(period.pay_period_id)

        with pytest.raises(NotFoundError):
            await service.get_period(period.pay_period_id)

    async def test_delete_paid_period_blocked(self, service):
        period = await service.create_period(2024, 1, "A")
        await service.begin_processing(period.pay_period_id)
        await service.mark_paid(period.pay_period_id)

        with pytest.raises(StateError):
            await service.delete_period(period.pay_period_id)
