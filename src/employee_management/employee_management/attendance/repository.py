from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert_if_absent(self, record: AttendanceRecord) -> Optional[int]:
        """Conditional write keyed by (user_id, work_date).

        Returns the new id, or None when a record for that employee and day already exists.
        Must be atomic: two racing clock-ins may not both succeed.
        """

        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> bool:
        """Persist the mutable fields (clock times, breaks, derived fields, notes)."""

        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records newest first, optionally bounded by work_date (inclusive)."""

        raise NotImplementedError

    def count_clock_ins_by_user(self, *, since: datetime) -> Mapping[int, int]:
        """Clocked-in records created at or after ``since``, per user."""

        raise NotImplementedError

    def delete_for_date(self, work_date: date) -> int:
        """Administrative bulk clear. Returns the number of deleted records."""

        raise NotImplementedError
