"""Pure derived-field computation for attendance records.

Lifecycle operations call ``recompute`` explicitly before persisting; storage never computes anything.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from ..common.datetime_utils import hours_between
from ..core.enums import AttendanceStatus
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, BreakPeriod

OVERRIDE_STATUSES = frozenset({AttendanceStatus.ABSENT, AttendanceStatus.HALF_DAY})


def total_break_hours(breaks: Iterable[BreakPeriod]) -> float:
    return sum(b.duration_hours() for b in breaks)


def worked_hours(record: AttendanceRecord, break_hours: float) -> float:
    if record.clock_out is None:
        return 0.0
    return max(hours_between(record.clock_in, record.clock_out) - break_hours, 0.0)


def derive_status(record: AttendanceRecord) -> AttendanceStatus:
    if record.status in OVERRIDE_STATUSES:
        return record.status
    if record.clock_out is not None:
        return AttendanceStatus.CLOCKED_OUT
    if record.open_break is not None:
        return AttendanceStatus.ON_BREAK
    return AttendanceStatus.LATE if record.is_late else AttendanceStatus.PRESENT


def recompute(record: AttendanceRecord, factory: Optional[AttendanceStrategyFactory] = None) -> AttendanceRecord:
    factory = factory or AttendanceStrategyFactory()
    decision = factory.decide(record.clock_in)
    break_hours = total_break_hours(record.breaks)

    updated = replace(
        record,
        is_late=decision.is_late,
        late_by=decision.late_by,
        total_break_time=break_hours,
        total_worked_hours=worked_hours(record, break_hours),
    )
    return replace(updated, status=derive_status(updated))
