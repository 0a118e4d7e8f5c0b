from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import WorkSchedule
from .repository import ScheduleRepository

_COLUMNS = "schedule_id, user_id, day_of_week, start_time, end_time, grace_minutes, is_active"


def _to_schedule(r: dict) -> WorkSchedule:
    return WorkSchedule(
        schedule_id=int(r["schedule_id"]),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        day_of_week=int(r["day_of_week"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        grace_minutes=int(r.get("grace_minutes") or 0),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active(self, *, user_id: Optional[int], day_of_week: int) -> Optional[WorkSchedule]:
        scope = "user_id=%s" if user_id is not None else "user_id IS NULL"
        params: tuple = (int(user_id), int(day_of_week)) if user_id is not None else (int(day_of_week),)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_schedules
                WHERE {scope} AND day_of_week=%s AND is_active=1
                LIMIT 1
                """,
                params,
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def upsert(
        self,
        *,
        user_id: Optional[int],
        day_of_week: int,
        start_time: time,
        end_time: time,
        grace_minutes: int,
        is_active: bool = True,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_schedules(user_id, day_of_week, start_time, end_time, grace_minutes, is_active)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE start_time=VALUES(start_time), end_time=VALUES(end_time),
                    grace_minutes=VALUES(grace_minutes), is_active=VALUES(is_active)
                """,
                (user_id, int(day_of_week), start_time, end_time, int(grace_minutes), int(bool(is_active))),
            )

            # If it was an update, lastrowid can be 0; fetch schedule_id.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                "SELECT schedule_id FROM work_schedules WHERE scope_key=%s AND day_of_week=%s",
                (int(user_id or 0), int(day_of_week)),
            )
            r = fetchone(cur)
            return int(r["schedule_id"]) if r else 0

    def delete(self, *, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM work_schedules WHERE schedule_id=%s", (int(schedule_id),))
            return cur.rowcount > 0

    def list_all(self, *, user_id: Optional[int] = None) -> Sequence[WorkSchedule]:
        where = "WHERE user_id=%s" if user_id is not None else ""
        params: tuple = (int(user_id),) if user_id is not None else ()

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_schedules {where} ORDER BY scope_key ASC, day_of_week ASC",
                params,
            )
            return [_to_schedule(r) for r in fetchall(cur)]
