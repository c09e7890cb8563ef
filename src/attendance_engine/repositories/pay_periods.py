"""SQLAlchemy pay period repository."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.models import PayPeriod
from attendance_engine.repositories._sqlalchemy import flush_or_conflict, paginate
from attendance_engine.repositories.base import Page


class SqlPayPeriodRepository:
    """Pay period persistence backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, pay_period_id: UUID) -> PayPeriod | None:
        return await self.session.get(PayPeriod, pay_period_id)

    async def find_by_dates(self, start_date: datetime, end_date: datetime) -> PayPeriod | None:
        result = await self.session.execute(
            select(PayPeriod).where(
                PayPeriod.start_date == start_date,
                PayPeriod.end_date == end_date,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, period: PayPeriod) -> PayPeriod:
        self.session.add(period)
        await flush_or_conflict(self.session, "Pay period already exists")
        return period

    async def save(self, period: PayPeriod) -> PayPeriod:
        await self.session.flush()
        return period

    async def delete(self, period: PayPeriod) -> None:
        await self.session.delete(period)
        await self.session.flush()

    async def search(
        self,
        start_from: datetime | None,
        start_before: datetime | None,
        status: str | None,
        page: int,
        limit: int,
    ) -> Page[PayPeriod]:
        stmt = select(PayPeriod).order_by(PayPeriod.start_date.desc())
        if start_from is not None:
            stmt = stmt.where(PayPeriod.start_date >= start_from)
        if start_before is not None:
            stmt = stmt.where(PayPeriod.start_date < start_before)
        if status is not None:
            stmt = stmt.where(PayPeriod.status == status)
        return await paginate(self.session, stmt, page, limit)

    async def find_containing(self, instant: datetime) -> PayPeriod | None:
        result = await self.session.execute(
            select(PayPeriod)
            .where(PayPeriod.start_date <= instant, PayPeriod.end_date >= instant)
            .order_by(PayPeriod.start_date)
        )
        return result.scalars().first()

    async def find_next(self, instant: datetime) -> PayPeriod | None:
        result = await self.session.execute(
            select(PayPeriod)
            .where(PayPeriod.start_date > instant)
            .order_by(PayPeriod.start_date)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_previous(self, instant: datetime) -> PayPeriod | None:
        result = await self.session.execute(
            select(PayPeriod)
            .where(PayPeriod.end_date < instant)
            .order_by(PayPeriod.end_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
