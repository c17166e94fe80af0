from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import AttendanceRecord, BreakPeriod, Location
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, clock_in, clock_out, breaks, total_worked_hours,
    total_break_time, status, is_late, late_by, location, notes, created_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        clock_in=r["clock_in"],
        clock_out=r.get("clock_out"),
        breaks=tuple(BreakPeriod.from_dict(b) for b in load_json(r.get("breaks"), [])),
        total_worked_hours=float(r.get("total_worked_hours") or 0),
        total_break_time=float(r.get("total_break_time") or 0),
        status=AttendanceStatus(r["status"]),
        is_late=bool(r.get("is_late")),
        late_by=int(r.get("late_by") or 0),
        location=Location.from_dict(load_json(r.get("location"))),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def insert_if_absent(self, record: AttendanceRecord) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, clock_in, clock_out, breaks, total_worked_hours, total_break_time,
                        status, is_late, late_by, location, notes, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.user_id,
                        record.work_date,
                        record.clock_in,
                        record.clock_out,
                        dump_json([b.to_dict() for b in record.breaks]),
                        record.total_worked_hours,
                        record.total_break_time,
                        record.status.value,
                        int(record.is_late),
                        record.late_by,
                        dump_json(record.location.to_dict()),
                        record.notes,
                        record.created_at or record.clock_in,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def save(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET clock_in=%s, clock_out=%s, breaks=%s, total_worked_hours=%s, total_break_time=%s,
                    status=%s, is_late=%s, late_by=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (
                    record.clock_in,
                    record.clock_out,
                    dump_json([b.to_dict() for b in record.breaks]),
                    record.total_worked_hours,
                    record.total_break_time,
                    record.status.value,
                    int(record.is_late),
                    record.late_by,
                    record.notes,
                    record.attendance_id,
                ),
            )
            return cur.rowcount > 0

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s"
        params: list = [int(user_id)]
        if start:
            sql += " AND work_date >= %s"
            params.append(start)
        if end:
            sql += " AND work_date <= %s"
            params.append(end)
        sql += " ORDER BY work_date DESC"
        if limit:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_clock_ins_by_user(self, *, since: datetime) -> Mapping[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, COUNT(*) AS cnt
                FROM attendance_records
                WHERE clock_in IS NOT NULL AND created_at >= %s
                GROUP BY user_id
                """,
                (since,),
            )
            return {int(r["user_id"]): int(r["cnt"]) for r in fetchall(cur)}

    def delete_for_date(self, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE work_date=%s", (work_date,))
            return int(cur.rowcount)
