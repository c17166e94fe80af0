"""Announcement targeting engine.

Pure functions over ``Announcement`` and ``User`` values: audience resolution, idempotent read/ack
appends and per-user delivery status. Persistence and permissions live in the service.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from ..core.enums import DeliveryStatus, TargetType
from ..users.model import User
from .model import Acknowledgment, Announcement, EngagementCounts, ReadReceipt


def is_targeted(announcement: Announcement, user: User) -> bool:
    mode = announcement.target_type
    if mode == TargetType.ALL:
        return True
    if mode == TargetType.ROLE:
        return user.role in announcement.target_roles
    if mode == TargetType.DEPARTMENT:
        return user.department is not None and user.department in announcement.target_departments
    if mode == TargetType.SPECIFIC:
        return user.user_id in announcement.target_users
    return False


def resolve_audience(announcement: Announcement, candidates: Iterable[User]) -> list[User]:
    """Active candidates selected by the announcement's targeting mode, in candidate order."""
    return [u for u in candidates if u.is_active and is_targeted(announcement, u)]


def mark_read(announcement: Announcement, user_id: int, at: datetime) -> Announcement:
    if announcement.read_entry(user_id) is not None:
        return announcement
    return replace(announcement, read_by=announcement.read_by + (ReadReceipt(user_id=user_id, read_at=at),))


def acknowledge(announcement: Announcement, user_id: int, at: datetime) -> Announcement:
    # Acknowledgment does not require a prior read.
    if announcement.ack_entry(user_id) is not None:
        return announcement
    entry = Acknowledgment(user_id=user_id, acknowledged_at=at)
    return replace(announcement, acknowledged_by=announcement.acknowledged_by + (entry,))


def delivery_status(announcement: Announcement, user_id: int) -> DeliveryStatus:
    acknowledged = announcement.ack_entry(user_id) is not None
    if announcement.requires_acknowledgment and not acknowledged:
        return DeliveryStatus.NEEDS_ACKNOWLEDGMENT
    if announcement.read_entry(user_id) is None:
        return DeliveryStatus.UNREAD
    if acknowledged:
        return DeliveryStatus.ACKNOWLEDGED
    return DeliveryStatus.READ


def engagement_counts(announcement: Announcement) -> EngagementCounts:
    return EngagementCounts(
        read_count=announcement.read_count,
        acknowledgment_count=announcement.acknowledgment_count,
    )


def user_view(announcement: Announcement, user_id: int) -> dict:
    """Announcement as seen by one user, with their engagement flags."""
    read = announcement.read_entry(user_id)
    ack = announcement.ack_entry(user_id)
    data = announcement.to_dict(include_receipts=False)
    data.update(
        {
            "is_read": read is not None,
            "is_acknowledged": ack is not None,
            "read_at": read.read_at.isoformat() if read else None,
            "acknowledged_at": ack.acknowledged_at.isoformat() if ack else None,
            "needs_acknowledgment": announcement.requires_acknowledgment and ack is None,
            "delivery_status": delivery_status(announcement, user_id).value,
        }
    )
    return data
