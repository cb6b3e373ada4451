from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AuditAction, SessionStatus
from ..core.exceptions import BackendError, OpenSessionExists
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    require_field,
    to_db_datetime,
)
from .model import SessionAuditEntry, WorkSession
from .repository import SessionAuditRepository, SessionRepository

_COLUMNS = "session_id, employee_id, clock_in, clock_out, status, location_id"


def _to_session(r: Dict[str, Any]) -> WorkSession:
    clock_in = from_db_datetime(require_field(r, "clock_in"))
    clock_out = from_db_datetime(r.get("clock_out"))
    if clock_out is not None and clock_out < clock_in:
        raise BackendError(f"Malformed session {r.get('session_id')!r}: clock_out before clock_in")
    try:
        status = SessionStatus(r.get("status") or (SessionStatus.OPEN if clock_out is None else SessionStatus.CLOSED))
    except ValueError:
        raise BackendError(f"Unknown session status {r.get('status')!r}") from None
    return WorkSession(
        session_id=str(require_field(r, "session_id")),
        employee_id=str(require_field(r, "employee_id")),
        clock_in=clock_in,
        clock_out=clock_out,
        status=status,
        location_id=r.get("location_id") or None,
    )


def _is_open_session_violation(exc: mysql.connector.IntegrityError) -> bool:
    return "uq_sessions_one_open" in str(exc)


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: str) -> Optional[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_open_for_employee(self, employee_id: str) -> Optional[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions
                WHERE employee_id=%s AND clock_out IS NULL
                ORDER BY clock_in DESC
                LIMIT 1
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create(
        self,
        *,
        session_id: str,
        employee_id: str,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: SessionStatus,
        location_id: Optional[str] = None,
    ) -> WorkSession:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"INSERT INTO sessions ({_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s)",
                    (
                        session_id,
                        employee_id,
                        to_db_datetime(clock_in),
                        to_db_datetime(clock_out),
                        status.value,
                        location_id,
                    ),
                )
        except mysql.connector.IntegrityError as exc:
            if _is_open_session_violation(exc):
                raise OpenSessionExists(employee_id) from exc
            raise BackendError(str(exc)) from exc

        return WorkSession(
            session_id=session_id,
            employee_id=employee_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=status,
            location_id=location_id,
        )

    def close(self, session_id: str, *, clock_out: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sessions
                SET clock_out=%s, status=%s
                WHERE session_id=%s AND clock_out IS NULL
                """,
                (to_db_datetime(clock_out), SessionStatus.CLOSED.value, session_id),
            )
            return cur.rowcount > 0

    def update_times(
        self,
        session_id: str,
        *,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: SessionStatus,
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE sessions SET clock_in=%s, clock_out=%s, status=%s WHERE session_id=%s",
                    (to_db_datetime(clock_in), to_db_datetime(clock_out), status.value, session_id),
                )
                # rowcount is 0 when nothing changed, so re-check existence.
                if cur.rowcount > 0:
                    return True
                cur.execute("SELECT 1 AS found FROM sessions WHERE session_id=%s", (session_id,))
                return fetchone(cur) is not None
        except mysql.connector.IntegrityError as exc:
            if _is_open_session_violation(exc):
                raise OpenSessionExists(session_id) from exc
            raise BackendError(str(exc)) from exc

    def delete(self, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sessions WHERE session_id=%s", (session_id,))
            return cur.rowcount > 0

    def list_for_employee(self, employee_id: str, *, limit: int) -> Sequence[WorkSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions
                WHERE employee_id=%s
                ORDER BY clock_in DESC
                LIMIT %s
                """,
                (employee_id, int(limit)),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        start: datetime,
        end: datetime,
        location_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        newest_first: bool = False,
        overlapping: bool = False,
    ) -> Sequence[WorkSession]:
        if overlapping:
            sql = f"SELECT {_COLUMNS} FROM sessions WHERE clock_in <= %s AND (clock_out IS NULL OR clock_out >= %s)"
            params: list[Any] = [to_db_datetime(end), to_db_datetime(start)]
        else:
            sql = f"SELECT {_COLUMNS} FROM sessions WHERE clock_in >= %s AND clock_in <= %s"
            params = [to_db_datetime(start), to_db_datetime(end)]

        if location_id:
            sql += " AND location_id=%s"
            params.append(location_id)
        if employee_id:
            sql += " AND employee_id=%s"
            params.append(employee_id)

        sql += " ORDER BY clock_in " + ("DESC" if newest_first else "ASC")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_session(r) for r in fetchall(cur)]

    def list_open(self, *, location_id: Optional[str] = None) -> Sequence[WorkSession]:
        sql = f"SELECT {_COLUMNS} FROM sessions WHERE clock_out IS NULL"
        params: tuple = ()
        if location_id:
            sql += " AND location_id=%s"
            params = (location_id,)
        sql += " ORDER BY clock_in ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_session(r) for r in fetchall(cur)]


class MySQLSessionAuditRepository(SessionAuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, entry: SessionAuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO session_audit
                    (session_id, employee_id, action, actor_id, reason, clock_in, clock_out, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    entry.session_id,
                    entry.employee_id,
                    entry.action.value,
                    entry.actor_id,
                    entry.reason,
                    to_db_datetime(entry.clock_in),
                    to_db_datetime(entry.clock_out),
                    to_db_datetime(entry.created_at),
                ),
            )
            return int(cur.lastrowid)

    def list_for_session(self, session_id: str) -> Sequence[SessionAuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT entry_id, session_id, employee_id, action, actor_id, reason, clock_in, clock_out, created_at
                FROM session_audit
                WHERE session_id=%s
                ORDER BY created_at ASC, entry_id ASC
                """,
                (session_id,),
            )
            return [
                SessionAuditEntry(
                    entry_id=int(r["entry_id"]),
                    session_id=str(r["session_id"]),
                    employee_id=str(r["employee_id"]),
                    action=AuditAction(r["action"]),
                    actor_id=str(r["actor_id"]),
                    reason=r.get("reason"),
                    clock_in=from_db_datetime(r.get("clock_in")),
                    clock_out=from_db_datetime(r.get("clock_out")),
                    created_at=from_db_datetime(r["created_at"]),
                )
                for r in fetchall(cur)
            ]
