from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.validators import (
    clean_id_list,
    clean_string_list,
    parse_enum,
    require_max_length,
    require_non_empty,
)
from ..core.constants import ANNOUNCEMENT_CONTENT_MAX, ANNOUNCEMENT_TITLE_MAX
from ..core.enums import AnnouncementType, DeliveryStatus, Priority, TargetType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.dispatcher import AnnouncementNotifier
from ..users.model import User
from ..users.repository import UserRepository
from . import targeting
from .model import Announcement
from .repository import AnnouncementFilter, AnnouncementRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {
        "title",
        "content",
        "type",
        "priority",
        "target_type",
        "target_roles",
        "target_departments",
        "target_users",
        "requires_acknowledgment",
        "send_email",
        "expires_at",
        "tags",
        "is_active",
    }
)

STATUS_FILTERS = ("all", "unread", "read", "acknowledged", "pending_ack")


@dataclass(frozen=True)
class UserListing:
    announcements: list[dict]
    stats: dict


@dataclass(frozen=True)
class AdminListing:
    announcements: list[dict]
    stats: dict


def _as_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false", "1", "0"}:
        return value.lower() in {"true", "1"}
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValidationError(f"{field_name} must be a boolean")


def apply_fields(base: Announcement, payload: Mapping[str, Any]) -> Announcement:
    """Validate ``payload`` onto ``base``. Only one targeting list survives: the one matching target_type."""

    unknown = set(payload) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    changes: dict[str, Any] = {}
    if "title" in payload:
        changes["title"] = require_max_length(require_non_empty(payload["title"], "title"), "title", ANNOUNCEMENT_TITLE_MAX)
    if "content" in payload:
        changes["content"] = require_max_length(
            require_non_empty(payload["content"], "content"), "content", ANNOUNCEMENT_CONTENT_MAX
        )
    if "type" in payload:
        changes["type"] = parse_enum(AnnouncementType, payload["type"], "type", default=AnnouncementType.GENERAL)
    if "priority" in payload:
        changes["priority"] = parse_enum(Priority, payload["priority"], "priority", default=Priority.MEDIUM)
    if "target_type" in payload:
        changes["target_type"] = parse_enum(TargetType, payload["target_type"], "target_type", default=TargetType.ALL)
    if "target_roles" in payload:
        changes["target_roles"] = tuple(clean_string_list(payload["target_roles"], "target_roles"))
    if "target_departments" in payload:
        changes["target_departments"] = tuple(clean_string_list(payload["target_departments"], "target_departments"))
    if "target_users" in payload:
        changes["target_users"] = tuple(clean_id_list(payload["target_users"], "target_users"))
    if "requires_acknowledgment" in payload:
        changes["requires_acknowledgment"] = _as_bool(payload["requires_acknowledgment"], "requires_acknowledgment")
    if "send_email" in payload:
        changes["send_email"] = _as_bool(payload["send_email"], "send_email")
    if "is_active" in payload:
        changes["is_active"] = _as_bool(payload["is_active"], "is_active")
    if "expires_at" in payload:
        value = payload["expires_at"]
        changes["expires_at"] = value if isinstance(value, datetime) else parse_iso_datetime(value)
    if "tags" in payload:
        changes["tags"] = tuple(clean_string_list(payload["tags"], "tags"))

    updated = replace(base, **changes)

    mode = updated.target_type
    lists = {
        TargetType.ROLE: ("target_roles", updated.target_roles),
        TargetType.DEPARTMENT: ("target_departments", updated.target_departments),
        TargetType.SPECIFIC: ("target_users", updated.target_users),
    }
    if mode in lists and not lists[mode][1]:
        raise ValidationError(f"{lists[mode][0]} must not be empty when target_type is '{mode.value}'")

    return replace(
        updated,
        target_roles=updated.target_roles if mode == TargetType.ROLE else (),
        target_departments=updated.target_departments if mode == TargetType.DEPARTMENT else (),
        target_users=updated.target_users if mode == TargetType.SPECIFIC else (),
    )


class AnnouncementService:
    def __init__(
        self,
        announcements: AnnouncementRepository,
        users: UserRepository,
        *,
        notifier: Optional[AnnouncementNotifier] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._announcements = announcements
        self._users = users
        self._notifier = notifier
        self._clock = clock

    @staticmethod
    def _require_manager(actor: User) -> None:
        if not actor.can_manage:
            raise AuthorizationError("Only Admin or HR can manage announcements")

    def _require(self, announcement_id: int) -> Announcement:
        announcement = self._announcements.get_by_id(int(announcement_id))
        if not announcement:
            raise NotFoundError("Announcement not found")
        return announcement

    def _require_targeted(self, announcement: Announcement, user: User) -> None:
        if not targeting.is_targeted(announcement, user):
            raise AuthorizationError("Access denied")

    def _require_visible(self, announcement_id: int, user: User) -> Announcement:
        """Expired or deactivated announcements do not exist for their audience; managers still see them."""
        announcement = self._require(announcement_id)
        if not user.can_manage and not announcement.is_live(self._clock()):
            raise NotFoundError("Announcement not found")
        self._require_targeted(announcement, user)
        return announcement

    def create(self, actor: User, payload: Mapping[str, Any]) -> Announcement:
        self._require_manager(actor)
        if "title" not in payload or "content" not in payload:
            raise ValidationError("title and content are required")

        now = self._clock()
        draft = apply_fields(Announcement(announcement_id=0, title="", content=""), payload)
        draft = replace(draft, created_by=actor.user_id, created_at=now)

        announcement = replace(draft, announcement_id=self._announcements.create(draft))
        logger.info(
            "Announcement %s created by user %s (target=%s)",
            announcement.announcement_id,
            actor.user_id,
            announcement.target_type.value,
        )

        self._dispatch(announcement, actor)
        return announcement

    def _dispatch(self, announcement: Announcement, author: User) -> None:
        if self._notifier is None:
            return
        try:
            audience = targeting.resolve_audience(announcement, self._users.list_active())
            self._notifier.notify(announcement, audience, author)
        except Exception:
            logger.error("Notification dispatch failed for announcement %s", announcement.announcement_id, exc_info=True)

    def resolve_audience(self, actor: User, announcement_id: int) -> list[User]:
        self._require_manager(actor)
        return targeting.resolve_audience(self._require(announcement_id), self._users.list_active())

    def list_for_user(
        self,
        user: User,
        *,
        type: Optional[str] = None,
        priority: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> UserListing:
        now = self._clock()
        visible = [a for a in self._announcements.list_live(now) if targeting.is_targeted(a, user)]

        stats = {
            "total": len(visible),
            "unread": sum(1 for a in visible if a.read_entry(user.user_id) is None),
            "pending_ack": sum(
                1 for a in visible if a.requires_acknowledgment and a.ack_entry(user.user_id) is None
            ),
            "urgent": sum(1 for a in visible if a.is_urgent),
        }

        items = visible
        if type and type != "all":
            wanted_type = parse_enum(AnnouncementType, type, "type")
            items = [a for a in items if a.type == wanted_type]
        if priority and priority != "all":
            wanted_priority = parse_enum(Priority, priority, "priority")
            items = [a for a in items if a.priority == wanted_priority]
        if search:
            needle = search.strip().lower()
            items = [a for a in items if needle in a.title.lower() or needle in a.content.lower()]

        views = [targeting.user_view(a, user.user_id) for a in items]
        if status and status != "all":
            if status not in STATUS_FILTERS:
                raise ValidationError(f"status must be one of: {', '.join(STATUS_FILTERS)}")
            predicate = {
                "unread": lambda v: not v["is_read"],
                "read": lambda v: v["is_read"],
                "acknowledged": lambda v: v["is_acknowledged"],
                "pending_ack": lambda v: v["needs_acknowledgment"],
            }[status]
            views = [v for v in views if predicate(v)]

        return UserListing(announcements=views, stats=stats)

    def list_admin(
        self,
        actor: User,
        *,
        type: Optional[str] = None,
        priority: Optional[str] = None,
        target_type: Optional[str] = None,
        is_active: Optional[str | bool] = None,
        search: Optional[str] = None,
    ) -> AdminListing:
        self._require_manager(actor)
        flt = AnnouncementFilter(
            type=parse_enum(AnnouncementType, type, "type") if type else None,
            priority=parse_enum(Priority, priority, "priority") if priority else None,
            target_type=parse_enum(TargetType, target_type, "target_type") if target_type else None,
            is_active=_as_bool(is_active, "is_active") if is_active not in (None, "") else None,
            search=(search or "").strip() or None,
        )
        items = self._announcements.list_all(flt)
        everything = self._announcements.list_all()
        stats = {
            "total": len(everything),
            "active": sum(1 for a in everything if a.is_active),
            "urgent": sum(1 for a in everything if a.priority == Priority.CRITICAL),
            "requires_ack": sum(1 for a in everything if a.requires_acknowledgment),
        }
        return AdminListing(announcements=[a.to_dict() for a in items], stats=stats)

    def get(self, user: User, announcement_id: int) -> dict:
        """Managers see full receipts; a targeted viewer gets their own view and is marked as having read it."""

        if user.can_manage:
            announcement = self._require(announcement_id)
            data = announcement.to_dict()
            data.update(targeting.user_view(announcement, user.user_id))
            return data

        announcement = self._require_visible(announcement_id, user)
        announcement = self._record_read(announcement, user.user_id)
        return targeting.user_view(announcement, user.user_id)

    def _record_read(self, announcement: Announcement, user_id: int) -> Announcement:
        now = self._clock()
        updated = targeting.mark_read(announcement, user_id, now)
        if updated is not announcement:
            self._announcements.add_read(announcement.announcement_id, user_id, now)
        return updated

    def mark_read(self, user: User, announcement_id: int) -> Announcement:
        announcement = self._require_visible(announcement_id, user)
        return self._record_read(announcement, user.user_id)

    def acknowledge(self, user: User, announcement_id: int) -> Announcement:
        announcement = self._require_visible(announcement_id, user)
        if not announcement.requires_acknowledgment:
            raise ValidationError("This announcement does not require acknowledgment")

        now = self._clock()
        updated = targeting.acknowledge(announcement, user.user_id, now)
        if updated is not announcement:
            self._announcements.add_acknowledgment(announcement.announcement_id, user.user_id, now)
            logger.info("User %s acknowledged announcement %s", user.user_id, announcement.announcement_id)
        return updated

    def delivery_status(self, user: User, announcement_id: int) -> DeliveryStatus:
        announcement = self._require(announcement_id)
        self._require_targeted(announcement, user)
        return targeting.delivery_status(announcement, user.user_id)

    def engagement(self, actor: User, announcement_id: int) -> dict:
        """Admin reporting: counts plus who in the current audience has not engaged yet."""

        self._require_manager(actor)
        announcement = self._require(announcement_id)
        audience = targeting.resolve_audience(announcement, self._users.list_active())
        counts = targeting.engagement_counts(announcement)
        pending_ack = (
            [u.user_id for u in audience if announcement.ack_entry(u.user_id) is None]
            if announcement.requires_acknowledgment
            else []
        )
        return {
            "announcement_id": announcement.announcement_id,
            "audience_size": len(audience),
            "read_count": counts.read_count,
            "acknowledgment_count": counts.acknowledgment_count,
            "unread_user_ids": [u.user_id for u in audience if announcement.read_entry(u.user_id) is None],
            "pending_ack_user_ids": pending_ack,
        }

    def update(self, actor: User, announcement_id: int, payload: Mapping[str, Any]) -> Announcement:
        self._require_manager(actor)
        announcement = apply_fields(self._require(announcement_id), payload)
        if not self._announcements.update(announcement):
            raise NotFoundError("Announcement not found")
        logger.info("Announcement %s updated by user %s", announcement_id, actor.user_id)
        return announcement

    def delete(self, actor: User, announcement_id: int) -> None:
        self._require_manager(actor)
        if not self._announcements.delete(int(announcement_id)):
            raise NotFoundError("Announcement not found")
        logger.info("Announcement %s deleted by user %s", announcement_id, actor.user_id)
