"""SQLAlchemy employee repository."""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.models import Employee, EmployeeStatus


class SqlEmployeeRepository:
    """Employee reads backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, employee_id: UUID) -> Employee | None:
        return await self.session.get(Employee, employee_id)

    async def list_payable(self, employee_ids: Sequence[UUID] | None = None) -> list[Employee]:
        stmt = (
            select(Employee)
            .where(
                Employee.status == EmployeeStatus.ACTIVE.value,
                Employee.pay_rate.is_not(None),
                Employee.pay_type.is_not(None),
            )
            .order_by(Employee.last_name, Employee.first_name)
        )
        if employee_ids is not None:
            stmt = stmt.where(Employee.employee_id.in_(list(employee_ids)))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_without_pay(self) -> list[Employee]:
        stmt = select(Employee).where(
            Employee.status == EmployeeStatus.ACTIVE.value,
            (Employee.pay_rate.is_(None)) | (Employee.pay_type.is_(None)),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add(self, employee: Employee) -> Employee:
        self.session.add(employee)
        await self.session.flush()
        return employee
