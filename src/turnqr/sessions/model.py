from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AuditAction, ClockAction, SessionStatus


@dataclass(frozen=True)
class WorkSession:
    """Domain entity: one continuous attendance interval.

    All timestamps are aware UTC datetimes.
    """

    session_id: str
    employee_id: str
    clock_in: datetime
    clock_out: Optional[datetime]
    status: SessionStatus
    location_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None


@dataclass(frozen=True)
class SessionAuditEntry:
    """Administrative override recorded against a session."""

    session_id: str
    employee_id: str
    action: AuditAction
    actor_id: str
    created_at: datetime
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    reason: Optional[str] = None
    entry_id: Optional[int] = None


@dataclass(frozen=True)
class ClockResult:
    action: ClockAction
    session: WorkSession
