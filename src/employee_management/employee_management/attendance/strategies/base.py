from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class LatenessDecision:
    status: AttendanceStatus
    is_late: bool = False
    late_by: int = 0


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide punctuality for a clock-in."""

    @abstractmethod
    def decide_clock_in(self, *, clock_in: datetime, cutoff: datetime) -> LatenessDecision:
        raise NotImplementedError
