from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import AnnouncementType, Priority, TargetType


@dataclass(frozen=True)
class ReadReceipt:
    user_id: int
    read_at: datetime


@dataclass(frozen=True)
class Acknowledgment:
    user_id: int
    acknowledged_at: datetime


@dataclass(frozen=True)
class Announcement:
    """Domain entity: an announcement with its targeting and engagement state.

    ``read_by`` and ``acknowledged_by`` are append-only and hold at most one entry per user.
    Only the target list matching ``target_type`` is populated.
    """

    announcement_id: int
    title: str
    content: str
    type: AnnouncementType = AnnouncementType.GENERAL
    priority: Priority = Priority.MEDIUM
    target_type: TargetType = TargetType.ALL
    target_roles: tuple[str, ...] = ()
    target_departments: tuple[str, ...] = ()
    target_users: tuple[int, ...] = ()
    requires_acknowledgment: bool = False
    send_email: bool = True
    expires_at: Optional[datetime] = None
    tags: tuple[str, ...] = ()
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    is_active: bool = True
    email_sent_at: Optional[datetime] = None
    read_by: tuple[ReadReceipt, ...] = ()
    acknowledged_by: tuple[Acknowledgment, ...] = ()

    def is_live(self, now: datetime) -> bool:
        """Visible to its audience: not deactivated and not expired."""
        return self.is_active and (self.expires_at is None or self.expires_at > now)

    @property
    def read_count(self) -> int:
        return len(self.read_by)

    @property
    def acknowledgment_count(self) -> int:
        return len(self.acknowledged_by)

    @property
    def is_urgent(self) -> bool:
        return self.priority in (Priority.HIGH, Priority.CRITICAL) or self.type == AnnouncementType.URGENT

    def read_entry(self, user_id: int) -> Optional[ReadReceipt]:
        return next((r for r in self.read_by if r.user_id == user_id), None)

    def ack_entry(self, user_id: int) -> Optional[Acknowledgment]:
        return next((a for a in self.acknowledged_by if a.user_id == user_id), None)

    def to_dict(self, *, include_receipts: bool = True) -> dict:
        data = {
            "announcement_id": self.announcement_id,
            "title": self.title,
            "content": self.content,
            "type": self.type.value,
            "priority": self.priority.value,
            "target_type": self.target_type.value,
            "target_roles": list(self.target_roles),
            "target_departments": list(self.target_departments),
            "target_users": list(self.target_users),
            "requires_acknowledgment": self.requires_acknowledgment,
            "send_email": self.send_email,
            "expires_at": isoformat_or_none(self.expires_at),
            "tags": list(self.tags),
            "created_by": self.created_by,
            "created_at": isoformat_or_none(self.created_at),
            "is_active": self.is_active,
            "email_sent_at": isoformat_or_none(self.email_sent_at),
            "read_count": self.read_count,
            "acknowledgment_count": self.acknowledgment_count,
        }
        if include_receipts:
            data["read_by"] = [{"user_id": r.user_id, "read_at": r.read_at.isoformat()} for r in self.read_by]
            data["acknowledged_by"] = [
                {"user_id": a.user_id, "acknowledged_at": a.acknowledged_at.isoformat()} for a in self.acknowledged_by
            ]
        return data


@dataclass(frozen=True)
class EngagementCounts:
    read_count: int
    acknowledgment_count: int
