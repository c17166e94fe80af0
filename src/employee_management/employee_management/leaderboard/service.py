from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Mapping, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import (
    ACTIVE_EMPLOYEE_BADGE_SCORE,
    ATTENDANCE_POINTS,
    DEPARTMENTAL_TOP,
    LEADERBOARD_WINDOW_DAYS,
    MONTHLY_TOP,
    WORKSHEET_POINTS,
)
from ..users.model import User
from ..users.repository import UserRepository
from ..worksheets.repository import WorksheetRepository

logger = logging.getLogger(__name__)

UNSPECIFIED_DEPARTMENT = "Not specified"


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: int
    name: str
    department: str
    role: str
    attendance_score: int
    worksheet_score: int
    score: int
    rank: int = 0
    badges: tuple[str, ...] = ()


@dataclass(frozen=True)
class Leaderboard:
    overall: list[LeaderboardEntry]
    monthly: list[LeaderboardEntry]
    departmental: list[LeaderboardEntry]
    total_participants: int
    average_score: int
    top_department: str

    def to_dict(self) -> dict:
        return {
            "overall": [asdict(e) for e in self.overall],
            "monthly": [asdict(e) for e in self.monthly],
            "departmental": [asdict(e) for e in self.departmental],
            "metrics": {
                "total_participants": self.total_participants,
                "average_score": self.average_score,
                "top_department": self.top_department,
            },
        }


def rank_users(
    users: Iterable[User],
    attendance_counts: Mapping[int, int],
    worksheet_counts: Mapping[int, int],
) -> list[LeaderboardEntry]:
    """Score, drop zero scores, then stable-sort by score so ties keep ``users`` order."""

    entries: list[LeaderboardEntry] = []
    for u in users:
        if not u.is_active:
            continue
        attendance_score = int(attendance_counts.get(u.user_id, 0)) * ATTENDANCE_POINTS
        worksheet_score = int(worksheet_counts.get(u.user_id, 0)) * WORKSHEET_POINTS
        total = attendance_score + worksheet_score
        if total <= 0:
            continue
        entries.append(
            LeaderboardEntry(
                user_id=u.user_id,
                name=u.full_name,
                department=u.department or UNSPECIFIED_DEPARTMENT,
                role=u.role,
                attendance_score=attendance_score,
                worksheet_score=worksheet_score,
                score=total,
                badges=("Active Employee",) if total > ACTIVE_EMPLOYEE_BADGE_SCORE else (),
            )
        )

    entries.sort(key=lambda e: e.score, reverse=True)
    return [replace(e, rank=i) for i, e in enumerate(entries, start=1)]


def top_department(entries: Iterable[LeaderboardEntry]) -> str:
    """Department with the highest summed score; on a tie the first one met in rank order wins."""

    totals: dict[str, int] = {}
    for e in entries:
        totals[e.department] = totals.get(e.department, 0) + e.score
    if not totals:
        return "N/A"
    # max() keeps the first maximal key, and dicts iterate in insertion order.
    return max(totals, key=totals.__getitem__)


class LeaderboardService:
    def __init__(
        self,
        users: UserRepository,
        attendance: AttendanceRepository,
        worksheets: WorksheetRepository,
        *,
        window_days: int = LEADERBOARD_WINDOW_DAYS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._attendance = attendance
        self._worksheets = worksheets
        self._window_days = int(window_days)
        self._clock = clock

    def build(self, *, now: Optional[datetime] = None) -> Leaderboard:
        now = now or self._clock()
        since = now - timedelta(days=self._window_days)

        ranked = rank_users(
            self._users.list_active(),
            self._attendance.count_clock_ins_by_user(since=since),
            self._worksheets.count_by_user(since=since),
        )

        participants = len(ranked)
        average = round(sum(e.score for e in ranked) / participants) if participants else 0
        logger.debug("Leaderboard built: %d participants since %s", participants, since)

        return Leaderboard(
            overall=ranked,
            monthly=ranked[:MONTHLY_TOP],
            departmental=ranked[:DEPARTMENTAL_TOP],
            total_participants=participants,
            average_score=int(average),
            top_department=top_department(ranked),
        )
