from __future__ import annotations

from datetime import datetime, timedelta

from src.employee_management.employee_management.attendance.model import AttendanceRecord
from src.employee_management.employee_management.leaderboard.service import (
    LeaderboardService,
    rank_users,
    top_department,
)
from src.employee_management.employee_management.worksheets.model import Worksheet
from fakes import InMemoryAttendance, InMemoryUsers, InMemoryWorksheets, make_user

NOW = datetime(2025, 3, 31, 12, 0)


def test_ties_keep_input_order():
    users = [make_user(1, full_name="A"), make_user(2, full_name="B")]

    ranked = rank_users(users, {1: 5, 2: 2}, {1: 2, 2: 4})

    assert [(e.name, e.score, e.rank) for e in ranked] == [("A", 80, 1), ("B", 80, 2)]


def test_zero_scores_are_excluded():
    users = [make_user(1), make_user(2)]

    ranked = rank_users(users, {1: 1}, {})

    assert [e.user_id for e in ranked] == [1]


def test_scoring_and_badge():
    ranked = rank_users([make_user(1), make_user(2)], {1: 10, 2: 2}, {1: 1, 2: 1})

    first, second = ranked
    assert (first.attendance_score, first.worksheet_score, first.score) == (100, 15, 115)
    assert first.badges == ("Active Employee",)
    assert second.score == 35
    assert second.badges == ()


def test_score_of_exactly_100_gets_no_badge():
    (entry,) = rank_users([make_user(1)], {1: 10}, {})

    assert entry.score == 100
    assert entry.badges == ()


def test_top_department_tie_goes_to_first_in_rank_order():
    ranked = rank_users(
        [make_user(1, department="Sales"), make_user(2, department="Ops")],
        {1: 5, 2: 5},
        {},
    )

    assert top_department(ranked) == "Sales"
    assert top_department([]) == "N/A"


def test_missing_department_is_reported_as_not_specified():
    (entry,) = rank_users([make_user(1, department=None)], {1: 1}, {})

    assert entry.department == "Not specified"


def test_build_counts_only_the_window():
    users = InMemoryUsers([make_user(1, department="Sales"), make_user(2, department="Ops"), make_user(3)])
    attendance = InMemoryAttendance()
    worksheets = InMemoryWorksheets()

    for days_ago in (1, 2, 40):
        clock_in = NOW - timedelta(days=days_ago)
        attendance.insert_if_absent(
            AttendanceRecord(attendance_id=0, user_id=1, work_date=clock_in.date(), clock_in=clock_in, created_at=clock_in)
        )
    worksheets.insert_if_absent(
        Worksheet(worksheet_id=0, user_id=2, work_date=NOW.date(), created_at=NOW - timedelta(hours=1))
    )

    board = LeaderboardService(users, attendance, worksheets, window_days=30).build(now=NOW)

    assert [(e.user_id, e.score) for e in board.overall] == [(1, 20), (2, 15)]
    assert board.total_participants == 2
    assert board.average_score == 18
    assert board.top_department == "Sales"
    assert board.to_dict()["metrics"]["total_participants"] == 2
