from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import QRType, Role
from ..core.exceptions import DuplicateEventError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceEvent, AttendanceEventRow, NewAttendanceEvent
from .repository import AttendanceRepository

_COLUMNS = "ae.event_id, ae.user_id, ae.event_type, ae.qr_code, ae.event_time, ae.is_late, ae.minutes_late"


def _to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        user_id=int(r["user_id"]),
        event_type=QRType(r["event_type"]),
        qr_code=r["qr_code"],
        timestamp=r["event_time"],
        is_late=bool(r.get("is_late")),
        minutes_late=int(r.get("minutes_late") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events ae
                WHERE ae.user_id=%s AND ae.event_time >= %s AND ae.event_time < %s
                ORDER BY ae.event_time ASC
                """,
                (int(user_id), start, end),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def append(self, new: NewAttendanceEvent) -> AttendanceEvent:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_events(user_id, event_type, qr_code, event_time, work_date, is_late, minutes_late)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(new.user_id),
                        new.event_type.value,
                        new.qr_code,
                        new.timestamp,
                        new.work_date,
                        int(new.is_late),
                        int(new.minutes_late),
                    ),
                )
                event_id = int(cur.lastrowid)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateEventError(f"{new.event_type.value} already recorded for {new.work_date}") from exc
            raise

        return AttendanceEvent(
            event_id=event_id,
            user_id=new.user_id,
            event_type=new.event_type,
            qr_code=new.qr_code,
            timestamp=new.timestamp,
            is_late=new.is_late,
            minutes_late=new.minutes_late,
        )

    def list_between_with_users(self, start: datetime, end: datetime) -> Sequence[AttendanceEventRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.first_name, u.last_name, u.email
                FROM attendance_events ae
                JOIN users u ON u.user_id = ae.user_id
                WHERE ae.event_time >= %s AND ae.event_time < %s
                ORDER BY ae.event_time DESC
                """,
                (start, end),
            )
            return [
                AttendanceEventRow(
                    event=_to_event(r),
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                    email=r["email"],
                )
                for r in fetchall(cur)
            ]

    def count_distinct_users(
        self,
        event_type: QRType,
        start: datetime,
        end: datetime,
        *,
        role: Optional[Role] = None,
    ) -> int:
        clauses = ["ae.event_type=%s", "ae.event_time >= %s", "ae.event_time < %s"]
        params: list[object] = [event_type.value, start, end]
        if role is not None:
            clauses.append("u.role=%s")
            params.append(role.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(DISTINCT ae.user_id) AS total
                FROM attendance_events ae
                JOIN users u ON u.user_id = ae.user_id
                WHERE {' AND '.join(clauses)}
                """,
                tuple(params),
            )
            row = fetchone(cur)
            return int(row["total"]) if row else 0
