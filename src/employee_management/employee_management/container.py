from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import time
from types import ModuleType
from typing import Optional

from .announcements.mysql_announcement_repository import MySQLAnnouncementRepository
from .announcements.repository import AnnouncementRepository
from .announcements.service import AnnouncementService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import parse_hhmm
from .core.constants import DEFAULT_LATE_CUTOFF, DEFAULT_LATE_GRACE_MINUTES, LEADERBOARD_WINDOW_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .leaderboard.service import LeaderboardService
from .notifications.dispatcher import AnnouncementNotifier
from .notifications.email import EmailDispatcher, LoggingEmailDispatcher, build_email_dispatcher
from .notifications.push import PushBroadcaster
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .worksheets.mysql_worksheet_repository import MySQLWorksheetRepository
from .worksheets.repository import WorksheetRepository
from .worksheets.service import WorksheetService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    announcements_repo: AnnouncementRepository
    worksheets_repo: WorksheetRepository

    push_broadcaster: PushBroadcaster
    email_dispatcher: EmailDispatcher
    notifier: AnnouncementNotifier

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    announcement_service: AnnouncementService
    worksheet_service: WorksheetService
    leaderboard_service: LeaderboardService


def assemble(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    announcements_repo: AnnouncementRepository,
    worksheets_repo: WorksheetRepository,
    conn: Optional[DatabaseConnection] = None,
    email_dispatcher: Optional[EmailDispatcher] = None,
    strategy_factory: Optional[AttendanceStrategyFactory] = None,
    leaderboard_window_days: int = LEADERBOARD_WINDOW_DAYS,
    executor: Optional[Executor] = None,
) -> Container:
    """Wire services on top of already-built repositories."""
    push_broadcaster = PushBroadcaster()
    email_dispatcher = email_dispatcher or LoggingEmailDispatcher()
    notifier = AnnouncementNotifier(
        email_dispatcher,
        push_broadcaster,
        executor=executor,
        on_email_sent=announcements_repo.mark_email_sent,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        announcements_repo=announcements_repo,
        worksheets_repo=worksheets_repo,
        push_broadcaster=push_broadcaster,
        email_dispatcher=email_dispatcher,
        notifier=notifier,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            strategy_factory=strategy_factory or AttendanceStrategyFactory(),
        ),
        announcement_service=AnnouncementService(announcements_repo, users_repo, notifier=notifier),
        worksheet_service=WorksheetService(worksheets_repo),
        leaderboard_service=LeaderboardService(
            users_repo,
            attendance_repo,
            worksheets_repo,
            window_days=leaderboard_window_days,
        ),
    )


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    cutoff: time = DEFAULT_LATE_CUTOFF
    grace = DEFAULT_LATE_GRACE_MINUTES
    window = LEADERBOARD_WINDOW_DAYS
    email_dispatcher: EmailDispatcher = LoggingEmailDispatcher()
    executor: Optional[Executor] = None
    if settings is not None:
        cutoff = parse_hhmm(getattr(settings, "LATE_CUTOFF", "09:00"))
        grace = int(getattr(settings, "LATE_GRACE_MINUTES", grace))
        window = int(getattr(settings, "LEADERBOARD_WINDOW_DAYS", window))
        email_dispatcher = build_email_dispatcher(
            getattr(settings, "EMAIL_BACKEND", "log"),
            region=getattr(settings, "AWS_REGION", ""),
            from_address=getattr(settings, "AWS_SES_FROM_EMAIL", ""),
        )
        if getattr(settings, "NOTIFY_ASYNC", False):
            executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="notify")

    return assemble(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        announcements_repo=MySQLAnnouncementRepository(conn),
        worksheets_repo=MySQLWorksheetRepository(conn),
        email_dispatcher=email_dispatcher,
        strategy_factory=AttendanceStrategyFactory(cutoff=cutoff, grace_minutes=grace),
        leaderboard_window_days=window,
        executor=executor,
    )
