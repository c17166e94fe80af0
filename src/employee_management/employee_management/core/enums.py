from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles with special permissions. Any other role string is a regular employee."""

    ADMIN = "Admin"
    HR = "HR"
    MANAGER = "Manager"
    TEAM_LEAD = "Team Lead"
    EMPLOYEE = "Employee"


class AttendanceStatus(str, Enum):
    """Display status of an attendance record."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    HALF_DAY = "Half Day"
    ON_BREAK = "On Break"
    CLOCKED_OUT = "Clocked Out"


class LocationType(str, Enum):
    OFFICE = "Office"
    REMOTE = "Remote"
    FIELD = "Field"


class AnnouncementType(str, Enum):
    GENERAL = "general"
    URGENT = "urgent"
    POLICY = "policy"
    EVENT = "event"
    SYSTEM = "system"
    HOLIDAY = "holiday"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TargetType(str, Enum):
    """Audience-selection strategy of an announcement."""

    ALL = "all"
    ROLE = "role"
    DEPARTMENT = "department"
    SPECIFIC = "specific"


class DeliveryStatus(str, Enum):
    """Per-user engagement state of an announcement."""

    NEEDS_ACKNOWLEDGMENT = "Needs Acknowledgment"
    UNREAD = "Unread"
    ACKNOWLEDGED = "Acknowledged"
    READ = "Read"


class SlotStatus(str, Enum):
    PLANNED = "Planned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"


MANAGER_ROLES = frozenset({Role.ADMIN.value, Role.HR.value})
