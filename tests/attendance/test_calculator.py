from datetime import date, datetime

import pytest

from src.employee_management.employee_management.attendance.calculator import recompute
from src.employee_management.employee_management.attendance.model import AttendanceRecord, BreakPeriod
from src.employee_management.employee_management.core.enums import AttendanceStatus


def _record(**kw) -> AttendanceRecord:
    return AttendanceRecord(attendance_id=1, user_id=7, work_date=date(2025, 1, 6), **kw)


def test_worked_hours_subtracts_closed_breaks():
    rec = recompute(
        _record(
            clock_in=datetime(2025, 1, 6, 9, 0),
            clock_out=datetime(2025, 1, 6, 17, 30),
            breaks=(BreakPeriod(datetime(2025, 1, 6, 12, 0), datetime(2025, 1, 6, 12, 45)),),
        )
    )

    assert rec.total_break_time == pytest.approx(0.75)
    assert rec.total_worked_hours == pytest.approx(7.75)
    assert rec.status == AttendanceStatus.CLOCKED_OUT
    assert rec.is_late is False


def test_open_break_counts_as_zero_and_sets_on_break():
    rec = recompute(
        _record(
            clock_in=datetime(2025, 1, 6, 9, 15),
            breaks=(BreakPeriod(datetime(2025, 1, 6, 11, 0)),),
        )
    )

    assert rec.total_break_time == 0.0
    assert rec.total_worked_hours == 0.0
    assert rec.status == AttendanceStatus.ON_BREAK
    assert rec.is_late is True
    assert rec.late_by == 15


def test_still_clocked_in_late_shows_late():
    rec = recompute(_record(clock_in=datetime(2025, 1, 6, 9, 15)))

    assert rec.status == AttendanceStatus.LATE


def test_worked_hours_never_negative():
    rec = recompute(
        _record(
            clock_in=datetime(2025, 1, 6, 9, 0),
            clock_out=datetime(2025, 1, 6, 9, 30),
            breaks=(BreakPeriod(datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 9, 30)),),
        )
    )

    assert rec.total_worked_hours == 0.0


def test_override_status_survives_recompute():
    rec = recompute(
        _record(
            clock_in=datetime(2025, 1, 6, 9, 0),
            clock_out=datetime(2025, 1, 6, 13, 0),
            status=AttendanceStatus.HALF_DAY,
        )
    )

    assert rec.status == AttendanceStatus.HALF_DAY
    assert rec.total_worked_hours == pytest.approx(4.0)
