from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import SlotStatus


@dataclass(frozen=True)
class TimeSlot:
    hour: int
    task: str
    project: Optional[str] = None
    status: SlotStatus = SlotStatus.PLANNED

    def to_dict(self) -> dict:
        return {"hour": self.hour, "task": self.task, "project": self.project, "status": self.status.value}


@dataclass(frozen=True)
class Worksheet:
    """Domain entity: one employee's hour-by-hour plan for a day."""

    worksheet_id: int
    user_id: int
    work_date: date
    time_slots: tuple[TimeSlot, ...] = ()
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "worksheet_id": self.worksheet_id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "time_slots": [s.to_dict() for s in self.time_slots],
            "created_at": isoformat_or_none(self.created_at),
        }
