from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_enum
from ..core.constants import DEFAULT_STATS_PERIOD_DAYS
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .calculator import OVERRIDE_STATUSES, recompute
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AttendanceStats, BreakPeriod, Location
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Daily clock cycle: NoRecord -> Clocked-In -> {On-Break <-> Clocked-In} -> Clocked-Out.

    Clocked-Out is terminal for the day. Every transition re-runs ``recompute`` before persisting,
    and a rejected transition is never retried here.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    def _require_active_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Employee not found")
        if not user.is_active:
            raise ValidationError("Employee account is inactive")
        return user

    def _require_session(self, user_id: int, today: date) -> AttendanceRecord:
        """Today's record, or the most recent one if it is still open (a session running past midnight)."""
        record = self._attendance.get_for_user_and_date(user_id, today)
        if record is None:
            latest = self._attendance.list_for_user(user_id, end=today, limit=1)
            if latest and latest[0].clock_out is None:
                record = latest[0]
        if not record or not record.clock_in:
            raise ValidationError("You need to clock in first")
        return record

    def _persist(self, record: AttendanceRecord) -> AttendanceRecord:
        record = recompute(record, self._factory)
        if not self._attendance.save(record):
            raise NotFoundError("Attendance record not found")
        return record

    def clock_in(
        self,
        user_id: int,
        *,
        now: datetime | None = None,
        location: Any = None,
        notes: str | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        today = now.date()
        self._require_active_user(user_id)

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing:
            if existing.clock_out is None:
                raise ValidationError("You have already clocked in today")
            raise ValidationError("You have already clocked out today")

        draft = recompute(
            AttendanceRecord(
                attendance_id=0,
                user_id=user_id,
                work_date=today,
                clock_in=now,
                location=Location.from_payload(location),
                notes=(notes or "").strip() or None,
                created_at=now,
            ),
            self._factory,
        )

        new_id = self._attendance.insert_if_absent(draft)
        if new_id is None:
            # Lost the race against a concurrent clock-in for the same day.
            raise ValidationError("You have already clocked in today")

        logger.info("User %s clocked in at %s (status=%s, late_by=%s)", user_id, now, draft.status.value, draft.late_by)
        return replace(draft, attendance_id=new_id)

    def start_break(self, user_id: int, *, now: datetime | None = None, reason: str | None = None) -> AttendanceRecord:
        now = now or self._clock()
        record = self._require_session(user_id, now.date())

        if record.clock_out is not None:
            raise ValidationError("Cannot start break after clocking out")
        if record.open_break is not None:
            raise ValidationError("You are already on a break")
        if now < record.clock_in:
            raise ValidationError("Break cannot start before clock-in")
        if record.breaks and now < record.breaks[-1].end_time:
            raise ValidationError("Break cannot overlap the previous break")

        brk = BreakPeriod(start_time=now, reason=(reason or "").strip() or "Break")
        record = self._persist(replace(record, breaks=record.breaks + (brk,)))
        logger.info("User %s started break at %s", user_id, now)
        return record

    def end_break(self, user_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or self._clock()
        record = self._require_session(user_id, now.date())

        current = record.open_break
        if current is None:
            raise ValidationError("You are not currently on a break")
        if now < current.start_time:
            raise ValidationError("Break cannot end before it started")

        breaks = record.breaks[:-1] + (replace(current, end_time=now),)
        record = self._persist(replace(record, breaks=breaks))
        logger.info("User %s ended break at %s", user_id, now)
        return record

    def clock_out(self, user_id: int, *, now: datetime | None = None, notes: str | None = None) -> AttendanceRecord:
        now = now or self._clock()
        record = self._require_session(user_id, now.date())

        if record.clock_out is not None:
            raise ValidationError("You have already clocked out today")
        if now < record.clock_in:
            raise ValidationError("Clock-out cannot be earlier than clock-in")

        breaks = record.breaks
        if record.open_break is not None:
            breaks = breaks[:-1] + (replace(breaks[-1], end_time=now),)

        record = self._persist(
            replace(record, clock_out=now, breaks=breaks, notes=(notes or "").strip() or record.notes)
        )
        logger.info("User %s clocked out at %s (worked %.2fh)", user_id, now, record.total_worked_hours)
        return record

    def get_today_record(self, user_id: int, today: date | None = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, today or self._clock().date())

    def get_history(self, user_id: int, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        if end < start:
            raise ValidationError("end must not be before start")
        return self._attendance.list_for_user(user_id, start=start, end=end)

    def get_stats(
        self,
        user_id: int,
        *,
        period_days: int = DEFAULT_STATS_PERIOD_DAYS,
        today: date | None = None,
    ) -> AttendanceStats:
        if period_days <= 0:
            raise ValidationError("period must be a positive number of days")
        today = today or self._clock().date()
        records = self._attendance.list_for_user(user_id, start=today - timedelta(days=period_days), end=today)

        total = len(records)
        present = sum(1 for r in records if r.status != AttendanceStatus.ABSENT)
        late = sum(1 for r in records if r.is_late)
        worked = sum(r.total_worked_hours for r in records)
        breaks = sum(r.total_break_time for r in records)

        def pct(part: int) -> float:
            return round(part / total * 100, 2) if total else 0.0

        return AttendanceStats(
            period_days=period_days,
            total_days=total,
            present_days=present,
            absent_days=total - present,
            late_days=late,
            total_worked_hours=round(worked, 2),
            total_break_time=round(breaks, 2),
            average_work_hours=round(worked / total, 2) if total else 0.0,
            average_break_time=round(breaks / total, 2) if total else 0.0,
            attendance_rate=pct(present),
            punctuality_rate=pct(total - late),
        )

    def admin_correct(
        self,
        actor: User,
        attendance_id: int,
        *,
        clock_in: datetime | None = None,
        clock_out: datetime | None = None,
        status: str | AttendanceStatus | None = None,
        notes: str | None = None,
    ) -> AttendanceRecord:
        """Admin override of a record.

        ``status`` may set the Absent / Half Day overrides; any other status value clears an
        override so the status is derived again.
        """

        if not actor.can_manage:
            raise AuthorizationError("Only Admin or HR can correct attendance")

        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")

        new_in = clock_in or record.clock_in
        new_out = clock_out or record.clock_out
        if new_in.date() != record.work_date:
            raise ValidationError(f"Clock-in must stay on the record's work date {record.work_date.isoformat()}")
        if new_out is not None and new_out < new_in:
            raise ValidationError("Clock-out cannot be earlier than clock-in")

        breaks = record.breaks
        if new_out is not None and record.open_break is not None:
            breaks = breaks[:-1] + (replace(breaks[-1], end_time=new_out),)
        for brk in breaks:
            ends_late = new_out is not None and brk.end_time is not None and brk.end_time > new_out
            inverted = brk.end_time is not None and brk.end_time < brk.start_time
            if brk.start_time < new_in or ends_late or inverted:
                raise ValidationError("Breaks must fall between clock-in and clock-out")

        new_status = record.status
        if status is not None:
            parsed = parse_enum(AttendanceStatus, status, "status")
            new_status = parsed if parsed in OVERRIDE_STATUSES else AttendanceStatus.PRESENT

        record = self._persist(
            replace(
                record,
                clock_in=new_in,
                clock_out=new_out,
                breaks=breaks,
                status=new_status,
                notes=notes if notes is not None else record.notes,
            )
        )
        logger.info("Attendance %s corrected by user %s", attendance_id, actor.user_id)
        return record

    def clear_day(self, work_date: date) -> int:
        """Administrative bulk clear of one day's records."""

        deleted = self._attendance.delete_for_date(work_date)
        logger.warning("Cleared %d attendance records for %s", deleted, work_date)
        return deleted
