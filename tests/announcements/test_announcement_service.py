from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.employee_management.employee_management.announcements.service import AnnouncementService
from src.employee_management.employee_management.core.enums import DeliveryStatus, TargetType
from src.employee_management.employee_management.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from fakes import FixedClock, InMemoryAnnouncements, InMemoryUsers, make_user

NOW = datetime(2025, 3, 3, 10, 0)

ADMIN = make_user(1, role="Admin", department="Management")
ANNA = make_user(2, department="Sales")
BOB = make_user(3, department="Engineering")
GONE = make_user(4, department="Sales", is_active=False)


@pytest.fixture
def repo():
    return InMemoryAnnouncements()


@pytest.fixture
def service(repo):
    return AnnouncementService(repo, InMemoryUsers([ADMIN, ANNA, BOB, GONE]), clock=FixedClock(NOW))


def test_only_managers_create(service):
    with pytest.raises(AuthorizationError):
        service.create(ANNA, {"title": "t", "content": "c"})


def test_create_requires_title_and_content(service):
    with pytest.raises(ValidationError):
        service.create(ADMIN, {"title": "Only a title"})
    with pytest.raises(ValidationError):
        service.create(ADMIN, {"title": "   ", "content": "c"})


def test_create_rejects_empty_target_list(service):
    with pytest.raises(ValidationError, match="target_departments"):
        service.create(ADMIN, {"title": "t", "content": "c", "target_type": "department", "target_departments": []})


def test_create_rejects_unknown_enum_values(service):
    with pytest.raises(ValidationError, match="priority"):
        service.create(ADMIN, {"title": "t", "content": "c", "priority": "extreme"})


def test_only_matching_target_list_is_kept(service):
    a = service.create(
        ADMIN,
        {
            "title": "Sales kickoff",
            "content": "Monday 9am",
            "target_type": "department",
            "target_departments": ["Sales", " Sales ", ""],
            "target_roles": ["Manager"],
        },
    )

    assert a.target_type == TargetType.DEPARTMENT
    assert a.target_departments == ("Sales",)
    assert a.target_roles == ()
    assert a.created_by == ADMIN.user_id
    assert a.created_at == NOW


def test_resolve_audience_skips_inactive(service):
    a = service.create(
        ADMIN, {"title": "t", "content": "c", "target_type": "department", "target_departments": ["Sales"]}
    )

    assert [u.user_id for u in service.resolve_audience(ADMIN, a.announcement_id)] == [ANNA.user_id]


def test_untargeted_user_cannot_read_or_acknowledge(service):
    a = service.create(
        ADMIN,
        {
            "title": "t",
            "content": "c",
            "target_type": "department",
            "target_departments": ["Sales"],
            "requires_acknowledgment": True,
        },
    )

    with pytest.raises(AuthorizationError):
        service.mark_read(BOB, a.announcement_id)
    with pytest.raises(AuthorizationError):
        service.acknowledge(BOB, a.announcement_id)


def test_mark_read_twice_keeps_one_receipt(service, repo):
    a = service.create(ADMIN, {"title": "t", "content": "c"})

    service.mark_read(ANNA, a.announcement_id)
    service.mark_read(ANNA, a.announcement_id)

    stored = repo.get_by_id(a.announcement_id)
    assert stored.read_count == 1
    assert stored.read_entry(ANNA.user_id).read_at == NOW


def test_acknowledge_requires_flag(service):
    a = service.create(ADMIN, {"title": "t", "content": "c"})

    with pytest.raises(ValidationError):
        service.acknowledge(ANNA, a.announcement_id)


def test_acknowledge_flow_and_delivery_status(service):
    a = service.create(ADMIN, {"title": "t", "content": "c", "requires_acknowledgment": True})
    assert service.delivery_status(ANNA, a.announcement_id) == DeliveryStatus.NEEDS_ACKNOWLEDGMENT

    service.mark_read(ANNA, a.announcement_id)
    service.acknowledge(ANNA, a.announcement_id)

    assert service.delivery_status(ANNA, a.announcement_id) == DeliveryStatus.ACKNOWLEDGED


def test_user_listing_stats_and_filters(service):
    service.create(ADMIN, {"title": "Policy", "content": "c", "priority": "critical", "requires_acknowledgment": True})
    service.create(ADMIN, {"title": "Party", "content": "cake", "type": "event"})
    service.create(
        ADMIN, {"title": "Eng only", "content": "c", "target_type": "department", "target_departments": ["Engineering"]}
    )
    service.create(ADMIN, {"title": "Old", "content": "c", "expires_at": (NOW - timedelta(days=1)).isoformat()})

    listing = service.list_for_user(ANNA)
    assert listing.stats == {"total": 2, "unread": 2, "pending_ack": 1, "urgent": 1}

    events = service.list_for_user(ANNA, type="event")
    assert [v["title"] for v in events.announcements] == ["Party"]

    pending = service.list_for_user(ANNA, status="pending_ack")
    assert [v["title"] for v in pending.announcements] == ["Policy"]

    found = service.list_for_user(ANNA, search="CAKE")
    assert [v["title"] for v in found.announcements] == ["Party"]


def test_get_marks_viewer_as_read(service, repo):
    a = service.create(ADMIN, {"title": "t", "content": "c"})

    view = service.get(ANNA, a.announcement_id)

    assert view["is_read"] is True
    assert repo.get_by_id(a.announcement_id).read_count == 1


def test_engagement_lists_pending_users(service):
    a = service.create(ADMIN, {"title": "t", "content": "c", "requires_acknowledgment": True})
    service.acknowledge(ANNA, a.announcement_id)

    report = service.engagement(ADMIN, a.announcement_id)

    assert report["audience_size"] == 3
    assert report["acknowledgment_count"] == 1
    assert report["pending_ack_user_ids"] == [ADMIN.user_id, BOB.user_id]


def test_update_and_delete(service):
    a = service.create(ADMIN, {"title": "t", "content": "c"})

    updated = service.update(ADMIN, a.announcement_id, {"title": "New title", "is_active": False})
    assert updated.title == "New title"
    assert service.list_for_user(ANNA).stats["total"] == 0

    with pytest.raises(ValidationError):
        service.update(ADMIN, a.announcement_id, {"read_by": []})

    service.delete(ADMIN, a.announcement_id)
    with pytest.raises(NotFoundError):
        service.get(ADMIN, a.announcement_id)


def test_admin_listing_stats(service):
    service.create(ADMIN, {"title": "a", "content": "c", "priority": "critical"})
    service.create(ADMIN, {"title": "b", "content": "c", "is_active": False})

    listing = service.list_admin(ADMIN, is_active="true")

    assert [a["title"] for a in listing.announcements] == ["a"]
    assert listing.stats == {"total": 2, "active": 1, "urgent": 1, "requires_ack": 0}


def test_expired_announcement_is_hidden_from_its_audience(service, repo):
    a = service.create(
        ADMIN,
        {
            "title": "Last week",
            "content": "c",
            "requires_acknowledgment": True,
            "expires_at": (NOW - timedelta(hours=1)).isoformat(),
        },
    )

    with pytest.raises(NotFoundError):
        service.get(ANNA, a.announcement_id)
    with pytest.raises(NotFoundError):
        service.mark_read(ANNA, a.announcement_id)
    with pytest.raises(NotFoundError):
        service.acknowledge(ANNA, a.announcement_id)

    stored = repo.get_by_id(a.announcement_id)
    assert stored.read_count == 0
    assert stored.acknowledgment_count == 0
    assert service.get(ADMIN, a.announcement_id)["title"] == "Last week"


def test_deactivated_announcement_cannot_be_opened(service):
    a = service.create(ADMIN, {"title": "t", "content": "c", "is_active": False})

    with pytest.raises(NotFoundError):
        service.get(ANNA, a.announcement_id)
