from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, LatenessDecision


class OnTimeStrategy(AttendanceStrategy):
    """Clock-in at or before the cutoff (plus grace)."""

    def decide_clock_in(self, *, clock_in: datetime, cutoff: datetime) -> LatenessDecision:
        return LatenessDecision(status=AttendanceStatus.PRESENT)
