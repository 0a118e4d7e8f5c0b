from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import QRType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, transaction
from .model import NewQRCode, QRCodeListing, QRCodeRecord, RetireScope
from .repository import QRCodeRepository

_COLUMNS = "q.qr_id, q.code, q.qr_type, q.created_by, q.is_active, q.description, q.created_at"


def _to_record(row: dict) -> QRCodeRecord:
    return QRCodeRecord(
        qr_id=int(row["qr_id"]),
        code=row["code"],
        qr_type=QRType(row["qr_type"]),
        created_by=int(row["created_by"]),
        is_active=bool(row["is_active"]),
        description=row.get("description"),
        created_at=row["created_at"],
    )


class MySQLQRCodeRepository(QRCodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, qr_id: int) -> Optional[QRCodeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM qr_codes q WHERE q.qr_id=%s", (int(qr_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def code_exists(self, code: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM qr_codes WHERE code=%s LIMIT 1", (code,))
            return fetchone(cur) is not None

    def find_active_by_code(self, code: str) -> Optional[QRCodeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM qr_codes q WHERE q.code=%s AND q.is_active=1",
                (code,),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def insert_codes(self, codes: Sequence[NewQRCode], *, retire: Optional[RetireScope] = None) -> list[QRCodeRecord]:
        with transaction(self._conn_factory) as (_, cur):
            if retire is not None:
                clauses = ["created_by=%s", "is_active=1"]
                params: list[object] = [int(retire.issuer_id)]
                if retire.qr_type is not None:
                    clauses.append("qr_type=%s")
                    params.append(retire.qr_type.value)
                where = " AND ".join(clauses)

                # Row locks serialize concurrent rotations for the same issuer.
                cur.execute(f"SELECT qr_id FROM qr_codes WHERE {where} FOR UPDATE", tuple(params))
                fetchall(cur)
                cur.execute(f"UPDATE qr_codes SET is_active=0 WHERE {where}", tuple(params))

            created: list[QRCodeRecord] = []
            for new in codes:
                cur.execute(
                    """
                    INSERT INTO qr_codes(code, qr_type, created_by, is_active, description, created_at)
                    VALUES(%s,%s,%s,1,%s,%s)
                    """,
                    (new.code, new.qr_type.value, int(new.created_by), new.description, new.created_at),
                )
                created.append(
                    QRCodeRecord(
                        qr_id=int(cur.lastrowid),
                        code=new.code,
                        qr_type=new.qr_type,
                        created_by=new.created_by,
                        is_active=True,
                        description=new.description,
                        created_at=new.created_at,
                    )
                )
            return created

    def deactivate(self, qr_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE qr_codes SET is_active=0 WHERE qr_id=%s", (int(qr_id),))
            return cur.rowcount > 0

    def list_active(self, qr_type: Optional[QRType] = None) -> Sequence[QRCodeListing]:
        clauses = ["q.is_active=1"]
        params: list[object] = []
        if qr_type is not None:
            clauses.append("q.qr_type=%s")
            params.append(qr_type.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS},
                       u.user_id AS creator_id, u.first_name, u.last_name, u.email
                FROM qr_codes q
                LEFT JOIN users u ON u.user_id = q.created_by
                WHERE {' AND '.join(clauses)}
                ORDER BY q.created_at DESC, q.qr_id DESC
                """,
                tuple(params),
            )
            out: list[QRCodeListing] = []
            for r in fetchall(cur):
                creator = None
                if r.get("creator_id") is not None:
                    creator = {
                        "id": int(r["creator_id"]),
                        "firstName": r["first_name"],
                        "lastName": r["last_name"],
                        "email": r["email"],
                    }
                out.append(QRCodeListing(record=_to_record(r), creator=creator))
            return out
