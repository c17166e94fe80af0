from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_enum, require_non_empty
from ..core.constants import WORKSHEET_FIRST_HOUR, WORKSHEET_LAST_HOUR
from ..core.enums import SlotStatus
from ..core.exceptions import ValidationError
from .model import TimeSlot, Worksheet
from .repository import WorksheetRepository

logger = logging.getLogger(__name__)


def parse_slots(raw: Iterable[Any]) -> tuple[TimeSlot, ...]:
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValidationError("time_slots must be a non-empty list")

    slots: list[TimeSlot] = []
    seen: set[int] = set()
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("each time slot must be an object")
        try:
            hour = int(item.get("hour"))
        except (TypeError, ValueError):
            raise ValidationError("time slot hour must be a number")
        if not WORKSHEET_FIRST_HOUR <= hour <= WORKSHEET_LAST_HOUR:
            raise ValidationError(f"time slot hour must be between {WORKSHEET_FIRST_HOUR} and {WORKSHEET_LAST_HOUR}")
        if hour in seen:
            raise ValidationError(f"duplicate time slot for hour {hour}")
        seen.add(hour)
        slots.append(
            TimeSlot(
                hour=hour,
                task=require_non_empty(item.get("task"), "task"),
                project=(item.get("project") or "").strip() or None,
                status=parse_enum(SlotStatus, item.get("status"), "status", default=SlotStatus.PLANNED),
            )
        )
    return tuple(sorted(slots, key=lambda s: s.hour))


class WorksheetService:
    def __init__(self, worksheets: WorksheetRepository, *, clock: Callable[[], datetime] = now_local):
        self._worksheets = worksheets
        self._clock = clock

    def submit(self, user_id: int, *, work_date: date | None = None, time_slots: Iterable[Any]) -> Worksheet:
        now = self._clock()
        draft = Worksheet(
            worksheet_id=0,
            user_id=int(user_id),
            work_date=work_date or now.date(),
            time_slots=parse_slots(time_slots),
            created_at=now,
        )
        new_id = self._worksheets.insert_if_absent(draft)
        if new_id is None:
            raise ValidationError("A worksheet for this day already exists")
        logger.info("User %s submitted worksheet for %s (%d slots)", user_id, draft.work_date, len(draft.time_slots))
        return replace(draft, worksheet_id=new_id)

    def list_for_user(self, user_id: int, *, start: date, end: date) -> Sequence[Worksheet]:
        if end < start:
            raise ValidationError("end must not be before start")
        return self._worksheets.list_for_user(int(user_id), start=start, end=end)
