from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import SessionAuditEntry, WorkSession


class SessionRepository(Protocol):
    def get_by_id(self, session_id: str) -> Optional[WorkSession]:
        raise NotImplementedError

    def get_open_for_employee(self, employee_id: str) -> Optional[WorkSession]:
        raise NotImplementedError

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
        """Insert a session.

        Raises ``OpenSessionExists`` when inserting an open session for an
        employee who already has one.
        """
        raise NotImplementedError

    def close(self, session_id: str, *, clock_out: datetime) -> bool:
        """Close the session only if it is still open."""
        raise NotImplementedError

    def update_times(
        self,
        session_id: str,
        *,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: SessionStatus,
    ) -> bool:
        """Admin override. Raises ``OpenSessionExists`` like ``create``."""
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str, *, limit: int) -> Sequence[WorkSession]:
        """Newest first."""
        raise NotImplementedError

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
        """Sessions whose clock-in falls within [start, end].

        With ``overlapping`` also sessions that started earlier and were
        still running at ``start``.
        """
        raise NotImplementedError

    def list_open(self, *, location_id: Optional[str] = None) -> Sequence[WorkSession]:
        raise NotImplementedError


class SessionAuditRepository(Protocol):
    def record(self, entry: SessionAuditEntry) -> int:
        raise NotImplementedError

    def list_for_session(self, session_id: str) -> Sequence[SessionAuditEntry]:
        raise NotImplementedError
