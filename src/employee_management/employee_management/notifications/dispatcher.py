from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from jinja2 import Environment, select_autoescape

from ..announcements.model import Announcement
from ..common.datetime_utils import now_local
from ..core.constants import PUSH_PREVIEW_CHARS
from ..core.enums import Priority
from ..users.model import User
from .email import EmailDispatcher
from .push import PushBroadcaster

logger = logging.getLogger(__name__)

_PRIORITY_COLORS = {
    Priority.CRITICAL: "#dc3545",
    Priority.HIGH: "#fd7e14",
    Priority.MEDIUM: "#ffc107",
    Priority.LOW: "#28a745",
}

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
_EMAIL_TEMPLATE = _env.from_string(
    """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">{{ a.title }}</h2>
  <p><strong>Priority:</strong>
    <span style="background-color: {{ color }}; color: white; padding: 2px 8px; border-radius: 3px;">
      {{ a.priority.value | upper }}
    </span>
  </p>
  <div style="white-space: pre-wrap; line-height: 1.6;">{{ a.content }}</div>
  {% if a.requires_acknowledgment %}
  <p style="padding: 10px; background-color: #fff3cd; border-left: 4px solid #ffc107;">
    <strong>Action Required:</strong> This announcement requires your acknowledgment.
    Please log in to the system to acknowledge.
  </p>
  {% endif %}
  <p style="color: #666; font-size: 14px;">Sent by: {{ author }}</p>
</div>
"""
)


def preview(text: str, limit: int = PUSH_PREVIEW_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def render_email(announcement: Announcement, author_name: str) -> str:
    return _EMAIL_TEMPLATE.render(
        a=announcement,
        color=_PRIORITY_COLORS.get(announcement.priority, "#28a745"),
        author=author_name,
    )


@dataclass(frozen=True)
class DispatchReport:
    pushed: int = 0
    emailed: int = 0
    failed: int = 0


class AnnouncementNotifier:
    """Delivers a new announcement to its audience: push first, then email when requested.

    Delivery never raises: failures are logged and counted so the announcement write stands regardless.
    With an executor, delivery runs in the background and ``notify`` returns immediately.
    """

    def __init__(
        self,
        email: EmailDispatcher,
        push: PushBroadcaster,
        *,
        executor: Optional[Executor] = None,
        on_email_sent: Optional[Callable[[int, datetime], object]] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._email = email
        self._push = push
        self._executor = executor
        self._on_email_sent = on_email_sent
        self._clock = clock

    def notify(self, announcement: Announcement, audience: Sequence[User], author: Optional[User] = None) -> Optional[DispatchReport]:
        if self._executor is not None:
            self._executor.submit(self.deliver, announcement, list(audience), author)
            return None
        return self.deliver(announcement, audience, author)

    def deliver(self, announcement: Announcement, audience: Sequence[User], author: Optional[User] = None) -> DispatchReport:
        pushed = self._push_all(announcement, audience)
        emailed, failed = 0, 0
        if announcement.send_email:
            emailed, failed = self._email_all(announcement, audience, author)
        report = DispatchReport(pushed=pushed, emailed=emailed, failed=failed)
        logger.info(
            "Announcement %s dispatched to %d users (pushed=%d emailed=%d failed=%d)",
            announcement.announcement_id,
            len(audience),
            report.pushed,
            report.emailed,
            report.failed,
        )
        return report

    def _push_all(self, announcement: Announcement, audience: Sequence[User]) -> int:
        event = {
            "type": "announcement",
            "title": announcement.title,
            "message": preview(announcement.content),
            "data": {
                "announcement_id": announcement.announcement_id,
                "priority": announcement.priority.value,
                "type": announcement.type.value,
                "requires_acknowledgment": announcement.requires_acknowledgment,
            },
            "created_at": self._clock().isoformat(),
        }
        try:
            return self._push.broadcast((u.user_id for u in audience), event)
        except Exception:
            logger.error("Push broadcast failed for announcement %s", announcement.announcement_id, exc_info=True)
            return 0

    def _email_all(self, announcement: Announcement, audience: Sequence[User], author: Optional[User]) -> tuple[int, int]:
        html = render_email(announcement, author.full_name if author else "Administration")
        subject = f"\U0001F4E2 {announcement.title}"
        sent, failed = 0, 0
        for user in audience:
            if not user.email:
                continue
            try:
                self._email.send(to_address=user.email, subject=subject, html_body=html)
                sent += 1
            except Exception:
                failed += 1
                logger.error("Failed to send announcement email to %s", user.email, exc_info=True)

        if self._on_email_sent is not None:
            try:
                self._on_email_sent(announcement.announcement_id, self._clock())
            except Exception:
                logger.error("Could not record email_sent_at for %s", announcement.announcement_id, exc_info=True)
        return sent, failed
