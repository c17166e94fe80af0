from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import SlotStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, is_duplicate_key, load_json
from .model import TimeSlot, Worksheet
from .repository import WorksheetRepository


def _row_to_worksheet(r: dict) -> Worksheet:
    return Worksheet(
        worksheet_id=int(r["worksheet_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        time_slots=tuple(
            TimeSlot(
                hour=int(s["hour"]),
                task=s["task"],
                project=s.get("project"),
                status=SlotStatus(s.get("status") or SlotStatus.PLANNED.value),
            )
            for s in load_json(r.get("time_slots"), [])
        ),
        created_at=r.get("created_at"),
    )


class MySQLWorksheetRepository(WorksheetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(self, worksheet: Worksheet) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO worksheets(user_id, work_date, time_slots, created_at) VALUES(%s,%s,%s,%s)",
                    (
                        worksheet.user_id,
                        worksheet.work_date,
                        dump_json([s.to_dict() for s in worksheet.time_slots]),
                        worksheet.created_at,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def list_for_user(self, user_id: int, *, start: date, end: date) -> Sequence[Worksheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT worksheet_id, user_id, work_date, time_slots, created_at
                FROM worksheets
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(user_id), start, end),
            )
            return [_row_to_worksheet(r) for r in fetchall(cur)]

    def count_by_user(self, *, since: datetime) -> Mapping[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, COUNT(*) AS cnt FROM worksheets WHERE created_at >= %s GROUP BY user_id",
                (since,),
            )
            return {int(r["user_id"]): int(r["cnt"]) for r in fetchall(cur)}
