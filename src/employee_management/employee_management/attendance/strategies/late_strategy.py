from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, LatenessDecision


class LateStrategy(AttendanceStrategy):
    """Late clock-in: lateness is measured from the cutoff itself, not from the end of the grace window."""

    def decide_clock_in(self, *, clock_in: datetime, cutoff: datetime) -> LatenessDecision:
        minutes = int((clock_in - cutoff).total_seconds() // 60)
        return LatenessDecision(status=AttendanceStatus.LATE, is_late=True, late_by=max(minutes, 0))
