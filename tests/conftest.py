"""Pytest fixtures for attendance engine tests."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from attendance_engine.config import Settings
from attendance_engine.models import (
    Base,
    Employee,
    EmployeeRole,
    EmployeeStatus,
    PayType,
    Shift,
    ShiftStatus,
)
from attendance_engine.repositories import (
    SqlEmployeeRepository,
    SqlPayPeriodRepository,
    SqlShiftRepository,
    SqlTimeEntryRepository,
)
from tests.helpers import FrozenClock, local

# Use in-memory SQLite for tests (with async support)
# For advisory locks and partial-index behaviour on Postgres, use a test Postgres database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings() -> Settings:
    """Default rules in the Vancouver time zone."""
    return Settings(database_url=TEST_DATABASE_URL, org_timezone="America/Vancouver")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(local(2024, 1, 10, 8, 0))


@pytest.fixture
async def engine():
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def employee_repo(session: AsyncSession) -> SqlEmployeeRepository:
    return SqlEmployeeRepository(session)


@pytest.fixture
def shift_repo(session: AsyncSession) -> SqlShiftRepository:
    return SqlShiftRepository(session)


@pytest.fixture
def entry_repo(session: AsyncSession) -> SqlTimeEntryRepository:
    return SqlTimeEntryRepository(session)


@pytest.fixture
def period_repo(session: AsyncSession) -> SqlPayPeriodRepository:
    return SqlPayPeriodRepository(session)


@pytest.fixture
def make_employee(session: AsyncSession):
    """Factory for persisted employees."""

    async def _make(
        first_name: str = "Test",
        last_name: str = "Employee",
        role: str = EmployeeRole.EMPLOYEE.value,
        status: str = EmployeeStatus.ACTIVE.value,
        pay_rate: Decimal | None = Decimal("20.00"),
        pay_type: str | None = PayType.HOURLY.value,
        employee_number: str | None = None,
    ) -> Employee:
        employee = Employee(
            employee_id=uuid4(),
            employee_number=employee_number or f"E-{uuid4().hex[:8]}",
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=status,
            pay_rate=pay_rate,
            pay_type=pay_type,
        )
        session.add(employee)
        await session.flush()
        return employee

    return _make


@pytest.fixture
async def test_employee(make_employee) -> Employee:
    """An active hourly employee at $20.00/h."""
    return await make_employee(first_name="Avery", last_name="Chen")


@pytest.fixture
def make_shift(session: AsyncSession):
    """Factory for persisted shifts, bypassing conflict checks."""

    async def _make(
        employee: Employee,
        start_time: datetime,
        end_time: datetime,
        is_active: bool = True,
    ) -> Shift:
        shift = Shift(
            shift_id=uuid4(),
            employee_id=employee.employee_id,
            start_time=start_time,
            end_time=end_time,
            status=ShiftStatus.SCHEDULED.value,
            is_active=is_active,
        )
        session.add(shift)
        await session.flush()
        return shift

    return _make
