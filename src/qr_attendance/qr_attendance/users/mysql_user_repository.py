from __future__ import annotations

from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, first_name, last_name, email, password_hash, role, fcm_token, created_at"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        fcm_token=row.get("fcm_token"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email.lower(),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str,
        role: Role,
        fcm_token: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(first_name, last_name, email, password_hash, role, fcm_token)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (first_name, last_name, email.lower(), password_hash, role.value, fcm_token),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise ConflictError("El email ya está registrado") from exc
            raise

    def update_fcm_token(self, user_id: int, fcm_token: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET fcm_token=%s WHERE user_id=%s", (fcm_token, int(user_id)))
            return cur.rowcount > 0

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY user_id ASC", (role.value,))
            return [_to_user(r) for r in fetchall(cur)]

    def count_by_role(self, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM users WHERE role=%s", (role.value,))
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def list_with_fcm_token(self, *, role: Optional[Role] = None) -> Sequence[User]:
        clauses = ["fcm_token IS NOT NULL", "fcm_token <> ''"]
        params: list[object] = []
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {' AND '.join(clauses)} ORDER BY first_name ASC",
                tuple(params),
            )
            return [_to_user(r) for r in fetchall(cur)]
