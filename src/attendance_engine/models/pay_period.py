"""Pay period model."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from attendance_engine.models.base import Base, TimestampMixin
from attendance_engine.models.enums import PayPeriodStatus, check_values


class PayPeriod(Base, TimestampMixin):
    """Semi-monthly pay period.

    ``start_date`` is 00:00:00 and ``end_date`` 23:59:59 on the wall clock
    of the organization time zone; both are stored as absolute instants.
    """

    __tablename__ = "pay_period"

    pay_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    start_date: Mapped[datetime] = mapped_column(nullable=False)
    end_date: Mapped[datetime] = mapped_column(nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=PayPeriodStatus.OPEN.value
    )

    __table_args__ = (
        UniqueConstraint("start_date", "end_date", name="pay_period_dates_unique"),
        CheckConstraint("end_date > start_date", name="pay_period_dates_check"),
        CheckConstraint(
            f"status IN ({check_values(PayPeriodStatus)})", name="pay_period_status_check"
        ),
    )
