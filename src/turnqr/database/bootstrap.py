from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from ..core.constants import SETTINGS_ROW_ID
from ..core.enums import JobTitle, Role
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes
    # and skips '--' line comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    in_comment = False
    escape = False
    prev = ""

    for ch in sql:
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            prev = ch
            continue

        if escape:
            buf.append(ch)
            escape = False
            prev = ch
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            prev = ch
            continue

        if ch == "-" and prev == "-" and not in_single and not in_double:
            buf.pop()
            in_comment = True
            prev = ""
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            prev = ch
            if stmt:
                yield stmt
            continue

        buf.append(ch)
        prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def _apply_sql_file(db_config: dict, path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _apply_sql_file(db_config, schema_path)
    logger.info("schema applied from %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _apply_sql_file(db_config, seed_path)
    logger.info("seed applied from %s", seed_path)


def ensure_demo_accounts(db_config: dict) -> None:
    """Upsert an admin and an employee account with matching employee profiles."""
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT location_id FROM locations ORDER BY name LIMIT 1")
        row = cur.fetchone()
        location_id = row["location_id"] if row else None

        def upsert_account(email: str, password: str, name: str, role: Role, job_title: JobTitle) -> None:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM accounts WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                user_id = existing["user_id"]
                cur.execute(
                    "UPDATE accounts SET password_hash=%s, role=%s, is_active=1 WHERE user_id=%s",
                    (password_hash, role.value, user_id),
                )
            else:
                user_id = str(uuid.uuid4())
                cur.execute(
                    "INSERT INTO accounts (user_id, email, password_hash, role) VALUES (%s, %s, %s, %s)",
                    (user_id, email, password_hash, role.value),
                )
            cur.execute(
                """
                INSERT INTO employees (employee_id, name, job_title, is_active)
                VALUES (%s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE name=VALUES(name), job_title=VALUES(job_title), is_active=1
                """,
                (user_id, name, job_title.value),
            )
            if location_id:
                cur.execute(
                    "INSERT IGNORE INTO employee_locations (employee_id, location_id, position) VALUES (%s, %s, 0)",
                    (user_id, location_id),
                )

        upsert_account("admin@turnqr.local", "admin123", "Admin Demo", Role.ADMIN, JobTitle.SHIFT_MANAGER)
        upsert_account("empleado@turnqr.local", "empleado123", "Lucía Pérez", Role.EMPLOYEE, JobTitle.WAITER)

        cur.execute(
            """
            INSERT INTO app_settings (id, selected_location_id)
            VALUES (%s, %s)
            ON DUPLICATE KEY UPDATE selected_location_id=COALESCE(selected_location_id, VALUES(selected_location_id))
            """,
            (SETTINGS_ROW_ID, location_id),
        )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
