"""Payroll run: validate, calculate, then advance the period."""

from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

from attendance_engine.calculators.aggregator import CancelCheck, PayrollAggregator
from attendance_engine.calculators.types import BatchPayrollResult
from attendance_engine.errors import StateError
from attendance_engine.models import PayPeriodStatus
from attendance_engine.services.pay_period_service import PayPeriodService

logger = logging.getLogger(__name__)


class PayrollRunService:
    """Runs batch payroll for a period and records the status change.

    The period is read-only during the batch; the OPEN -> PROCESSING write
    happens once, after all employees have been calculated.
    """

    def __init__(self, aggregator: PayrollAggregator, periods: PayPeriodService):
        self.aggregator = aggregator
        self.periods = periods

    async def run_payroll(
        self,
        pay_period_id: UUID,
        employee_ids: Sequence[UUID] | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> BatchPayrollResult:
        validation = await self.aggregator.validate_payroll_calculation(pay_period_id)
        if not validation.is_valid:
            period = await self.periods.get_period(pay_period_id)
            raise StateError(period.status, "run payroll", "; ".join(validation.errors))
        for warning in validation.warnings:
            logger.warning("Payroll period %s: %s", pay_period_id, warning)

        batch = await self.aggregator.calculate_batch_payroll(
            pay_period_id, employee_ids, should_cancel
        )

        if batch.cancelled:
            logger.info("Payroll run for %s cancelled; period status unchanged", batch.period_label)
            return batch
        if not batch.results:
            logger.warning(
                "Payroll run for %s produced no results; period status unchanged",
                batch.period_label,
            )
            return batch

        period = await self.periods.get_period(pay_period_id)
        if period.status == PayPeriodStatus.OPEN:
            await self.periods.transition_status(period, PayPeriodStatus.PROCESSING)
        logger.info(
            "Payroll run for %s: %d calculated, %d failed, gross %s",
            batch.period_label,
            len(batch.results),
            len(batch.failures),
            batch.summary.total_gross_pay,
        )
        return batch
