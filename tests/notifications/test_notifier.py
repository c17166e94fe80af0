from __future__ import annotations

from datetime import datetime

import pytest

from src.employee_management.employee_management.announcements.model import Announcement
from src.employee_management.employee_management.announcements.service import AnnouncementService
from src.employee_management.employee_management.core.enums import Priority
from src.employee_management.employee_management.notifications.dispatcher import (
    AnnouncementNotifier,
    preview,
    render_email,
)
from src.employee_management.employee_management.notifications.email import (
    LoggingEmailDispatcher,
    build_email_dispatcher,
)
from src.employee_management.employee_management.notifications.push import PushBroadcaster
from fakes import FixedClock, InMemoryAnnouncements, InMemoryUsers, make_user

NOW = datetime(2025, 3, 3, 10, 0)


class FailingEmail:
    def __init__(self, fail_for: set[str]):
        self.fail_for = fail_for
        self.sent: list[str] = []

    def send(self, *, to_address: str, subject: str, html_body: str) -> None:
        if to_address in self.fail_for:
            raise RuntimeError("smtp down")
        self.sent.append(to_address)


class BrokenPush(PushBroadcaster):
    def broadcast(self, user_ids, event):
        raise RuntimeError("push down")


def _announcement(**kw) -> Announcement:
    fields = {"announcement_id": 5, "title": "Office closed", "content": "x" * 150, **kw}
    return Announcement(**fields)


def test_preview_truncates_long_content():
    assert preview("x" * 150) == "x" * 100 + "..."
    assert preview("short") == "short"


def test_email_html_escapes_content():
    html = render_email(_announcement(priority=Priority.CRITICAL, title="<script>"), "Ada")

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "CRITICAL" in html
    assert "Ada" in html


def test_push_reaches_connected_audience_only():
    push = PushBroadcaster()
    q = push.subscribe(1)
    notifier = AnnouncementNotifier(LoggingEmailDispatcher(), push, clock=FixedClock(NOW))

    report = notifier.deliver(_announcement(send_email=False), [make_user(1), make_user(2)])

    assert report.pushed == 1
    event = q.get_nowait()
    assert event["type"] == "announcement"
    assert event["data"]["announcement_id"] == 5
    assert event["message"].endswith("...")


def test_email_failures_are_counted_not_raised():
    email = FailingEmail(fail_for={"user2@example.com"})
    stamped: list[int] = []
    notifier = AnnouncementNotifier(
        email,
        PushBroadcaster(),
        on_email_sent=lambda aid, at: stamped.append(aid),
        clock=FixedClock(NOW),
    )

    report = notifier.deliver(_announcement(), [make_user(1), make_user(2), make_user(3, email=None)])

    assert report.emailed == 1
    assert report.failed == 1
    assert email.sent == ["user1@example.com"]
    assert stamped == [5]


def test_push_failure_still_sends_email():
    email = LoggingEmailDispatcher()
    notifier = AnnouncementNotifier(email, BrokenPush(), clock=FixedClock(NOW))

    report = notifier.deliver(_announcement(), [make_user(1)])

    assert report.pushed == 0
    assert [m["to"] for m in email.sent] == ["user1@example.com"]


def test_announcement_is_stored_even_when_delivery_fails():
    repo = InMemoryAnnouncements()
    users = InMemoryUsers([make_user(1, role="Admin"), make_user(2)])
    notifier = AnnouncementNotifier(FailingEmail(fail_for={"user1@example.com", "user2@example.com"}), BrokenPush())
    service = AnnouncementService(repo, users, notifier=notifier, clock=FixedClock(NOW))

    created = service.create(users.get_by_id(1), {"title": "t", "content": "c"})

    assert repo.get_by_id(created.announcement_id) is not None


class _ExplodingNotifier:
    def notify(self, *args, **kwargs):
        raise RuntimeError("boom")


def test_notifier_crash_does_not_fail_create():
    repo = InMemoryAnnouncements()
    users = InMemoryUsers([make_user(1, role="Admin")])
    service = AnnouncementService(repo, users, notifier=_ExplodingNotifier(), clock=FixedClock(NOW))

    created = service.create(users.get_by_id(1), {"title": "t", "content": "c"})

    assert created.announcement_id == 1


@pytest.mark.parametrize("backend", ["LOG", "log"])
def test_log_backend_selected(backend):
    assert isinstance(build_email_dispatcher(backend), LoggingEmailDispatcher)
