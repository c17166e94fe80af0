"""In-memory repositories used across the test suite."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from werkzeug.security import generate_password_hash

from src.employee_management.employee_management.announcements.model import (
    Acknowledgment,
    Announcement,
    ReadReceipt,
)
from src.employee_management.employee_management.announcements.repository import AnnouncementFilter
from src.employee_management.employee_management.attendance.model import AttendanceRecord
from src.employee_management.employee_management.users.model import User
from src.employee_management.employee_management.worksheets.model import Worksheet


def make_user(user_id: int, *, role: str = "Employee", department: Optional[str] = "Engineering", **kw) -> User:
    return User(
        user_id=user_id,
        full_name=kw.pop("full_name", f"User {user_id}"),
        username=kw.pop("username", f"user{user_id}"),
        role=role,
        department=department,
        email=kw.pop("email", f"user{user_id}@example.com"),
        password_hash=kw.pop("password_hash", generate_password_hash("secret")),
        **kw,
    )


class InMemoryUsers:
    def __init__(self, users=()):
        self.users_by_id: dict[int, User] = {u.user_id: u for u in users}

    def add(self, user: User) -> None:
        self.users_by_id[user.user_id] = user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users_by_id.values() if u.username == username), None)

    def list_active(self):
        return [u for _, u in sorted(self.users_by_id.items()) if u.is_active]


class InMemoryAttendance:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[int, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._by_id.get(attendance_id)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self._by_id.values() if r.user_id == user_id and r.work_date == work_date), None)

    def insert_if_absent(self, record: AttendanceRecord) -> Optional[int]:
        with self._lock:
            if self.get_for_user_and_date(record.user_id, record.work_date) is not None:
                return None
            self._id += 1
            self._by_id[self._id] = replace(record, attendance_id=self._id)
            return self._id

    def save(self, record: AttendanceRecord) -> bool:
        if record.attendance_id not in self._by_id:
            return False
        self._by_id[record.attendance_id] = record
        return True

    def list_for_user(self, user_id: int, *, start=None, end=None, limit=None):
        items = [
            r
            for r in self._by_id.values()
            if r.user_id == user_id
            and (start is None or r.work_date >= start)
            and (end is None or r.work_date <= end)
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit] if limit else items

    def count_clock_ins_by_user(self, *, since: datetime):
        counts: dict[int, int] = {}
        for r in self._by_id.values():
            if r.clock_in and (r.created_at or r.clock_in) >= since:
                counts[r.user_id] = counts.get(r.user_id, 0) + 1
        return counts

    def delete_for_date(self, work_date: date) -> int:
        ids = [i for i, r in self._by_id.items() if r.work_date == work_date]
        for i in ids:
            del self._by_id[i]
        return len(ids)


class InMemoryAnnouncements:
    def __init__(self):
        self._by_id: dict[int, Announcement] = {}
        self._id = 0
        self.email_sent: dict[int, datetime] = {}

    def create(self, announcement: Announcement) -> int:
        self._id += 1
        self._by_id[self._id] = replace(announcement, announcement_id=self._id)
        return self._id

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        return self._by_id.get(announcement_id)

    def list_all(self, flt: AnnouncementFilter | None = None):
        flt = flt or AnnouncementFilter()
        items = list(self._by_id.values())
        if flt.type is not None:
            items = [a for a in items if a.type == flt.type]
        if flt.priority is not None:
            items = [a for a in items if a.priority == flt.priority]
        if flt.target_type is not None:
            items = [a for a in items if a.target_type == flt.target_type]
        if flt.is_active is not None:
            items = [a for a in items if a.is_active == flt.is_active]
        if flt.search:
            needle = flt.search.lower()
            items = [a for a in items if needle in a.title.lower() or needle in a.content.lower()]
        return sorted(items, key=lambda a: a.announcement_id, reverse=True)

    def list_live(self, now: datetime):
        return [a for a in self.list_all() if a.is_live(now)]

    def update(self, announcement: Announcement) -> bool:
        current = self._by_id.get(announcement.announcement_id)
        if current is None:
            return False
        self._by_id[announcement.announcement_id] = replace(
            announcement, read_by=current.read_by, acknowledged_by=current.acknowledged_by
        )
        return True

    def delete(self, announcement_id: int) -> bool:
        return self._by_id.pop(announcement_id, None) is not None

    def add_read(self, announcement_id: int, user_id: int, read_at: datetime) -> bool:
        a = self._by_id[announcement_id]
        if a.read_entry(user_id) is not None:
            return False
        self._by_id[announcement_id] = replace(a, read_by=a.read_by + (ReadReceipt(user_id, read_at),))
        return True

    def add_acknowledgment(self, announcement_id: int, user_id: int, acknowledged_at: datetime) -> bool:
        a = self._by_id[announcement_id]
        if a.ack_entry(user_id) is not None:
            return False
        entry = Acknowledgment(user_id, acknowledged_at)
        self._by_id[announcement_id] = replace(a, acknowledged_by=a.acknowledged_by + (entry,))
        return True

    def mark_email_sent(self, announcement_id: int, sent_at: datetime) -> bool:
        self.email_sent[announcement_id] = sent_at
        if announcement_id in self._by_id:
            self._by_id[announcement_id] = replace(self._by_id[announcement_id], email_sent_at=sent_at)
        return True


class InMemoryWorksheets:
    def __init__(self):
        self._by_id: dict[int, Worksheet] = {}
        self._id = 0

    def insert_if_absent(self, worksheet: Worksheet) -> Optional[int]:
        if any(w.user_id == worksheet.user_id and w.work_date == worksheet.work_date for w in self._by_id.values()):
            return None
        self._id += 1
        self._by_id[self._id] = replace(worksheet, worksheet_id=self._id)
        return self._id

    def list_for_user(self, user_id: int, *, start: date, end: date):
        return [w for w in self._by_id.values() if w.user_id == user_id and start <= w.work_date <= end]

    def count_by_user(self, *, since: datetime):
        counts: dict[int, int] = {}
        for w in self._by_id.values():
            if w.created_at and w.created_at >= since:
                counts[w.user_id] = counts.get(w.user_id, 0) + 1
        return counts


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
