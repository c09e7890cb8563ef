"""Employee model."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_engine.models.base import Base, TimestampMixin
from attendance_engine.models.enums import (
    EmployeeRole,
    EmployeeStatus,
    PayType,
    check_values,
)

if TYPE_CHECKING:
    from attendance_engine.models.schedule import Shift
    from attendance_engine.models.time_entry import TimeEntry


class Employee(Base, TimestampMixin):
    """A person who can be scheduled, clock in and be paid."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_number: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, default=EmployeeRole.EMPLOYEE.value)
    status: Mapped[str] = mapped_column(String, nullable=False, default=EmployeeStatus.ACTIVE.value)
    pay_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    pay_type: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(f"role IN ({check_values(EmployeeRole)})", name="employee_role_check"),
        CheckConstraint(
            f"status IN ({check_values(EmployeeStatus)})", name="employee_status_check"
        ),
        CheckConstraint(
            f"pay_type IS NULL OR pay_type IN ({check_values(PayType)})",
            name="employee_pay_type_check",
        ),
        CheckConstraint("pay_rate IS NULL OR pay_rate >= 0", name="employee_pay_rate_check"),
    )

    # Relationships
    shifts: Mapped[list[Shift]] = relationship(back_populates="employee")
    time_entries: Mapped[list[TimeEntry]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_schedulable(self) -> bool:
        """Only employees and managers are put on the schedule."""
        return self.role in (EmployeeRole.EMPLOYEE, EmployeeRole.MANAGER)

    @property
    def has_pay_configuration(self) -> bool:
        return self.pay_rate is not None and self.pay_type is not None
