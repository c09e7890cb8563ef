"""Scheduled shift model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_engine.models.base import Base, TimestampMixin
from attendance_engine.models.enums import ShiftStatus, check_values

if TYPE_CHECKING:
    from attendance_engine.models.employee import Employee
    from attendance_engine.models.time_entry import TimeEntry


class Shift(Base, TimestampMixin):
    """A scheduled block of work for one employee.

    Start and end are absolute instants. Shifts are never hard-deleted;
    ``is_active`` is cleared instead.
    """

    __tablename__ = "shift"

    shift_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    break_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    position: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ShiftStatus.SCHEDULED.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "start_time", "end_time", name="shift_employee_times_unique"
        ),
        CheckConstraint("end_time > start_time", name="shift_times_check"),
        CheckConstraint("break_duration >= 0", name="shift_break_check"),
        CheckConstraint(f"status IN ({check_values(ShiftStatus)})", name="shift_status_check"),
        Index("shift_employee_start_idx", "employee_id", "start_time"),
        Index("shift_start_end_idx", "start_time", "end_time"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="shifts")
    time_entries: Mapped[list[TimeEntry]] = relationship(back_populates="shift")

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)
