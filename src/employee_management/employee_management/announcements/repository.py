from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AnnouncementType, Priority, TargetType
from .model import Announcement


@dataclass(frozen=True)
class AnnouncementFilter:
    type: Optional[AnnouncementType] = None
    priority: Optional[Priority] = None
    target_type: Optional[TargetType] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None


class AnnouncementRepository(Protocol):
    def create(self, announcement: Announcement) -> int:
        raise NotImplementedError

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        """Announcement with its read and acknowledgment receipts."""

        raise NotImplementedError

    def list_all(self, flt: AnnouncementFilter | None = None) -> Sequence[Announcement]:
        """Newest first."""

        raise NotImplementedError

    def list_live(self, now: datetime) -> Sequence[Announcement]:
        """Active announcements with no expiry or an expiry after ``now``, newest first."""

        raise NotImplementedError

    def update(self, announcement: Announcement) -> bool:
        """Persist the editable fields (not the receipts)."""

        raise NotImplementedError

    def delete(self, announcement_id: int) -> bool:
        raise NotImplementedError

    def add_read(self, announcement_id: int, user_id: int, read_at: datetime) -> bool:
        """Insert-if-absent. Returns True when a new receipt was written."""

        raise NotImplementedError

    def add_acknowledgment(self, announcement_id: int, user_id: int, acknowledged_at: datetime) -> bool:
        """Insert-if-absent. Returns True when a new receipt was written."""

        raise NotImplementedError

    def mark_email_sent(self, announcement_id: int, sent_at: datetime) -> bool:
        raise NotImplementedError
