from datetime import datetime

from src.employee_management.employee_management.announcements import targeting
from src.employee_management.employee_management.announcements.model import Announcement
from src.employee_management.employee_management.core.enums import DeliveryStatus, TargetType
from fakes import make_user

T0 = datetime(2025, 3, 3, 10, 0)
T1 = datetime(2025, 3, 3, 11, 0)


def _announcement(**kw) -> Announcement:
    return Announcement(announcement_id=1, title="Heads up", content="Body", **kw)


def test_department_audience_excludes_inactive_and_other_departments():
    a = _announcement(target_type=TargetType.DEPARTMENT, target_departments=("Sales",))
    users = [
        make_user(1, department="Sales"),
        make_user(2, department="Sales", is_active=False),
        make_user(3, department="Engineering"),
        make_user(4, department=None),
    ]

    audience = targeting.resolve_audience(a, users)

    assert [u.user_id for u in audience] == [1]


def test_role_and_specific_targeting():
    by_role = _announcement(target_type=TargetType.ROLE, target_roles=("Manager",))
    specific = _announcement(target_type=TargetType.SPECIFIC, target_users=(3,))

    assert targeting.is_targeted(by_role, make_user(1, role="Manager"))
    assert not targeting.is_targeted(by_role, make_user(2, role="Employee"))
    assert targeting.is_targeted(specific, make_user(3))
    assert not targeting.is_targeted(specific, make_user(4))


def test_all_audience_keeps_candidate_order():
    a = _announcement()
    users = [make_user(5), make_user(2), make_user(9)]

    assert [u.user_id for u in targeting.resolve_audience(a, users)] == [5, 2, 9]


def test_mark_read_is_idempotent_and_keeps_first_timestamp():
    a = _announcement()

    once = targeting.mark_read(a, 7, T0)
    twice = targeting.mark_read(once, 7, T1)

    assert twice is once
    assert twice.read_count == 1
    assert twice.read_entry(7).read_at == T0


def test_acknowledge_does_not_require_read():
    a = _announcement(requires_acknowledgment=True)

    acked = targeting.acknowledge(a, 7, T0)

    assert acked.acknowledgment_count == 1
    assert acked.read_count == 0
    assert targeting.acknowledge(acked, 7, T1) is acked


def test_delivery_status_progression():
    plain = _announcement()
    assert targeting.delivery_status(plain, 7) == DeliveryStatus.UNREAD
    assert targeting.delivery_status(targeting.mark_read(plain, 7, T0), 7) == DeliveryStatus.READ

    needs_ack = _announcement(requires_acknowledgment=True)
    read = targeting.mark_read(needs_ack, 7, T0)
    assert targeting.delivery_status(read, 7) == DeliveryStatus.NEEDS_ACKNOWLEDGMENT
    assert targeting.delivery_status(targeting.acknowledge(read, 7, T1), 7) == DeliveryStatus.ACKNOWLEDGED


def test_engagement_counts():
    a = targeting.mark_read(targeting.mark_read(_announcement(), 1, T0), 2, T0)

    counts = targeting.engagement_counts(a)

    assert counts.read_count == 2
    assert counts.acknowledgment_count == 0
