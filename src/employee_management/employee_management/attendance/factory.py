from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from ..core.constants import DEFAULT_LATE_CUTOFF, DEFAULT_LATE_GRACE_MINUTES
from .strategies.base import AttendanceStrategy, LatenessDecision
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    cutoff: time = DEFAULT_LATE_CUTOFF
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES

    def cutoff_for(self, clock_in: datetime) -> datetime:
        """Same-day cutoff in the clock-in's own timezone."""
        return datetime.combine(clock_in.date(), self.cutoff, tzinfo=clock_in.tzinfo)

    def for_clock_in(self, *, clock_in: datetime) -> AttendanceStrategy:
        if clock_in <= self.cutoff_for(clock_in) + timedelta(minutes=self.grace_minutes):
            return OnTimeStrategy()
        return LateStrategy()

    def decide(self, clock_in: datetime) -> LatenessDecision:
        strategy = self.for_clock_in(clock_in=clock_in)
        return strategy.decide_clock_in(clock_in=clock_in, cutoff=self.cutoff_for(clock_in))
