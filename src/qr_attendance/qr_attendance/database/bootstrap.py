from __future__ import annotations

import logging
import re
from datetime import time
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

WEEKDAYS = (1, 2, 3, 4, 5)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(_strip_comments(Path(schema_path).read_text(encoding="utf-8")))

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied from %s", schema_path)


def ensure_seed_data(db_config: dict, *, admin_email: str, admin_password: str) -> None:
    """Seed one admin account and an organization-wide Monday-Friday 09:00-18:00 schedule."""

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT user_id FROM users WHERE email=%s", (admin_email.lower(),))
        if not cur.fetchone():
            cur.execute(
                """
                INSERT INTO users (first_name, last_name, email, password_hash, role)
                VALUES (%s, %s, %s, %s, 'admin')
                """,
                ("Admin", "Demo", admin_email.lower(), generate_password_hash(admin_password)),
            )

        for dow in WEEKDAYS:
            cur.execute(
                """
                INSERT IGNORE INTO work_schedules (user_id, day_of_week, start_time, end_time, grace_minutes)
                VALUES (NULL, %s, %s, %s, 15)
                """,
                (dow, time(9, 0), time(18, 0)),
            )

        conn.commit()
    finally:
        conn.close()
    logger.info("seed data ready (admin=%s)", admin_email)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
