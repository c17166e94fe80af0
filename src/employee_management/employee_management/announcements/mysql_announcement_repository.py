from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import AnnouncementType, Priority, TargetType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, placeholders
from .model import Acknowledgment, Announcement, ReadReceipt
from .repository import AnnouncementFilter, AnnouncementRepository

_COLUMNS = """
    announcement_id, title, content, type, priority, target_type, target_roles, target_departments,
    target_users, requires_acknowledgment, send_email, is_active, expires_at, email_sent_at, tags,
    created_by, created_at
"""


def _row_to_announcement(r: dict, reads=(), acks=()) -> Announcement:
    return Announcement(
        announcement_id=int(r["announcement_id"]),
        title=r["title"],
        content=r["content"],
        type=AnnouncementType(r["type"]),
        priority=Priority(r["priority"]),
        target_type=TargetType(r["target_type"]),
        target_roles=tuple(load_json(r.get("target_roles"), [])),
        target_departments=tuple(load_json(r.get("target_departments"), [])),
        target_users=tuple(int(u) for u in load_json(r.get("target_users"), [])),
        requires_acknowledgment=bool(r.get("requires_acknowledgment")),
        send_email=bool(r.get("send_email")),
        is_active=bool(r.get("is_active")),
        expires_at=r.get("expires_at"),
        email_sent_at=r.get("email_sent_at"),
        tags=tuple(load_json(r.get("tags"), [])),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
        read_by=tuple(reads),
        acknowledged_by=tuple(acks),
    )


class MySQLAnnouncementRepository(AnnouncementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: Iterable[dict]) -> list[Announcement]:
        rows = list(rows)
        if not rows:
            return []
        ids = [int(r["announcement_id"]) for r in rows]
        marks = placeholders(len(ids))

        reads: dict[int, list[ReadReceipt]] = defaultdict(list)
        cur.execute(
            f"SELECT announcement_id, user_id, read_at FROM announcement_reads "
            f"WHERE announcement_id IN ({marks}) ORDER BY read_at, user_id",
            tuple(ids),
        )
        for r in fetchall(cur):
            reads[int(r["announcement_id"])].append(ReadReceipt(user_id=int(r["user_id"]), read_at=r["read_at"]))

        acks: dict[int, list[Acknowledgment]] = defaultdict(list)
        cur.execute(
            f"SELECT announcement_id, user_id, acknowledged_at FROM announcement_acknowledgments "
            f"WHERE announcement_id IN ({marks}) ORDER BY acknowledged_at, user_id",
            tuple(ids),
        )
        for r in fetchall(cur):
            acks[int(r["announcement_id"])].append(
                Acknowledgment(user_id=int(r["user_id"]), acknowledged_at=r["acknowledged_at"])
            )

        return [_row_to_announcement(r, reads[i], acks[i]) for r, i in zip(rows, ids)]

    def create(self, announcement: Announcement) -> int:
        a = announcement
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO announcements(
                    title, content, type, priority, target_type, target_roles, target_departments, target_users,
                    requires_acknowledgment, send_email, is_active, expires_at, tags, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    a.title,
                    a.content,
                    a.type.value,
                    a.priority.value,
                    a.target_type.value,
                    dump_json(list(a.target_roles)),
                    dump_json(list(a.target_departments)),
                    dump_json(list(a.target_users)),
                    int(a.requires_acknowledgment),
                    int(a.send_email),
                    int(a.is_active),
                    a.expires_at,
                    dump_json(list(a.tags)),
                    a.created_by,
                    a.created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM announcements WHERE announcement_id=%s", (int(announcement_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def list_all(self, flt: AnnouncementFilter | None = None) -> Sequence[Announcement]:
        flt = flt or AnnouncementFilter()
        sql = f"SELECT {_COLUMNS} FROM announcements WHERE 1=1"
        params: list = []
        if flt.type:
            sql += " AND type=%s"
            params.append(flt.type.value)
        if flt.priority:
            sql += " AND priority=%s"
            params.append(flt.priority.value)
        if flt.target_type:
            sql += " AND target_type=%s"
            params.append(flt.target_type.value)
        if flt.is_active is not None:
            sql += " AND is_active=%s"
            params.append(int(flt.is_active))
        if flt.search:
            like = f"%{flt.search}%"
            sql += " AND (title LIKE %s OR content LIKE %s OR JSON_SEARCH(tags, 'one', %s) IS NOT NULL)"
            params.extend([like, like, like])
        sql += " ORDER BY created_at DESC, announcement_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return self._hydrate(cur, fetchall(cur))

    def list_live(self, now: datetime) -> Sequence[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM announcements
                WHERE is_active=1 AND (expires_at IS NULL OR expires_at > %s)
                ORDER BY created_at DESC, announcement_id DESC
                """,
                (now,),
            )
            return self._hydrate(cur, fetchall(cur))

    def update(self, announcement: Announcement) -> bool:
        a = announcement
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE announcements
                SET title=%s, content=%s, type=%s, priority=%s, target_type=%s, target_roles=%s,
                    target_departments=%s, target_users=%s, requires_acknowledgment=%s, send_email=%s,
                    is_active=%s, expires_at=%s, tags=%s
                WHERE announcement_id=%s
                """,
                (
                    a.title,
                    a.content,
                    a.type.value,
                    a.priority.value,
                    a.target_type.value,
                    dump_json(list(a.target_roles)),
                    dump_json(list(a.target_departments)),
                    dump_json(list(a.target_users)),
                    int(a.requires_acknowledgment),
                    int(a.send_email),
                    int(a.is_active),
                    a.expires_at,
                    dump_json(list(a.tags)),
                    a.announcement_id,
                ),
            )
            # MySQL reports 0 affected rows when nothing changed, so check existence separately.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS ok FROM announcements WHERE announcement_id=%s", (a.announcement_id,))
            return fetchone(cur) is not None

    def delete(self, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM announcements WHERE announcement_id=%s", (int(announcement_id),))
            return cur.rowcount > 0

    def add_read(self, announcement_id: int, user_id: int, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO announcement_reads(announcement_id, user_id, read_at) VALUES(%s,%s,%s)",
                (int(announcement_id), int(user_id), read_at),
            )
            return cur.rowcount > 0

    def add_acknowledgment(self, announcement_id: int, user_id: int, acknowledged_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO announcement_acknowledgments(announcement_id, user_id, acknowledged_at)
                VALUES(%s,%s,%s)
                """,
                (int(announcement_id), int(user_id), acknowledged_at),
            )
            return cur.rowcount > 0

    def mark_email_sent(self, announcement_id: int, sent_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE announcements SET email_sent_at=%s WHERE announcement_id=%s",
                (sent_at, int(announcement_id)),
            )
            return cur.rowcount > 0
