from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from .model import Worksheet


class WorksheetRepository(Protocol):
    def insert_if_absent(self, worksheet: Worksheet) -> Optional[int]:
        """Conditional write keyed by (user_id, work_date); None when the day already has a worksheet."""

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, start: date, end: date) -> Sequence[Worksheet]:
        raise NotImplementedError

    def count_by_user(self, *, since: datetime) -> Mapping[int, int]:
        """Worksheets created at or after ``since``, per user."""

        raise NotImplementedError
