"""Schedule conflict detection.

Shifts are half-open intervals ``[start, end)``: a shift ending at 17:00
does not conflict with one starting at 17:00.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from attendance_engine.calculators.types import ConflictCheckResult, ShiftConflict
from attendance_engine.repositories.base import ShiftRepository

logger = logging.getLogger(__name__)


def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    """True iff [s1, e1) and [s2, e2) share any instant."""
    return s1 < e2 and s2 < e1


def overlap_minutes(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> int:
    """Whole minutes shared by two intervals (floored, never negative)."""
    overlap = min(e1, e2).astimezone(timezone.utc) - max(s1, s2).astimezone(timezone.utc)
    if overlap <= timedelta(0):
        return 0
    return int(overlap.total_seconds() // 60)


class ScheduleConflictDetector:
    """Finds active shifts of an employee that intersect a proposed shift."""

    def __init__(self, shifts: ShiftRepository):
        self.shifts = shifts

    async def check_conflict(
        self,
        employee_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_shift_id: UUID | None = None,
    ) -> ConflictCheckResult:
        candidates = await self.shifts.find_overlapping(
            employee_id, start_time, end_time, exclude_shift_id
        )
        conflicts = [
            ShiftConflict(
                shift_id=shift.shift_id,
                start_time=shift.start_time,
                end_time=shift.end_time,
                overlap_minutes=overlap_minutes(
                    start_time, end_time, shift.start_time, shift.end_time
                ),
            )
            for shift in candidates
            # The repository query is a pre-filter; this test is authoritative
            if intervals_overlap(start_time, end_time, shift.start_time, shift.end_time)
        ]
        if conflicts:
            logger.debug(
                "Employee %s has %d conflicting shift(s) for %s - %s",
                employee_id,
                len(conflicts),
                start_time.isoformat(),
                end_time.isoformat(),
            )
        return ConflictCheckResult(has_conflict=bool(conflicts), conflicts=conflicts)
