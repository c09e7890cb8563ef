"""Time entry (clock punch) model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_engine.models.base import Base, TimestampMixin
from attendance_engine.models.enums import TimeEntryStatus, check_values

if TYPE_CHECKING:
    from attendance_engine.models.employee import Employee
    from attendance_engine.models.schedule import Shift


class TimeEntry(Base, TimestampMixin):
    """One clock-in/clock-out pair, reconciled against its shift.

    ``clock_in_time``/``clock_out_time`` are the raw punches. The
    ``adjusted_*`` columns hold the grace-snapped values that payroll
    rounding starts from.
    """

    __tablename__ = "time_entry"

    time_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    shift_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("shift.shift_id", ondelete="SET NULL"),
        nullable=True,
    )
    clock_in_time: Mapped[datetime] = mapped_column(nullable=False)
    clock_out_time: Mapped[datetime | None] = mapped_column(nullable=True)
    clock_in_location: Mapped[str | None] = mapped_column(String, nullable=True)
    clock_out_location: Mapped[str | None] = mapped_column(String, nullable=True)
    clock_in_ip: Mapped[str | None] = mapped_column(String, nullable=True)
    clock_out_ip: Mapped[str | None] = mapped_column(String, nullable=True)

    # Schedule snapshot taken at clock-in
    scheduled_start_time: Mapped[datetime | None] = mapped_column(nullable=True)
    scheduled_end_time: Mapped[datetime | None] = mapped_column(nullable=True)

    adjusted_start_time: Mapped[datetime | None] = mapped_column(nullable=True)
    adjusted_end_time: Mapped[datetime | None] = mapped_column(nullable=True)
    grace_period_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    total_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    overtime_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TimeEntryStatus.CLOCKED_IN.value
    )

    __table_args__ = (
        CheckConstraint(
            f"status IN ({check_values(TimeEntryStatus)})", name="time_entry_status_check"
        ),
        CheckConstraint(
            "total_hours IS NULL OR total_hours >= 0", name="time_entry_total_hours_check"
        ),
        CheckConstraint(
            "overtime_hours IS NULL OR overtime_hours >= 0",
            name="time_entry_overtime_hours_check",
        ),
        # At most one open entry per employee
        Index(
            "time_entry_one_open_per_employee",
            "employee_id",
            unique=True,
            postgresql_where=text("clock_out_time IS NULL"),
            sqlite_where=text("clock_out_time IS NULL"),
        ),
        Index("time_entry_employee_clock_in_idx", "employee_id", "clock_in_time"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="time_entries")
    shift: Mapped[Shift | None] = relationship(back_populates="time_entries")

    @property
    def is_open(self) -> bool:
        return self.clock_out_time is None

    @property
    def regular_hours(self) -> Decimal:
        """Hours below the overtime threshold."""
        total = self.total_hours or Decimal("0")
        overtime = self.overtime_hours or Decimal("0")
        return total - overtime
