from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.change_feed import ChangeFeed
from ..common.datetime_utils import now_utc, to_store_precision
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AuditAction, ClockAction, SessionStatus
from ..core.exceptions import NotFoundError, OpenSessionExists, ValidationError
from ..employees.repository import EmployeeRepository
from ..qr.validator import TokenValidator
from .coordinator import EmployeeLocks
from .model import ClockResult, SessionAuditEntry, WorkSession
from .repository import SessionAuditRepository, SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    """Work session lifecycle.

    At most one session per employee has no clock-out. Clock transitions for
    an employee run under that employee's lock, and the store rejects a
    second open row, so a double tap or two devices end up with one session.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        audit: SessionAuditRepository,
        employees: EmployeeRepository,
        *,
        validator: Optional[TokenValidator] = None,
        locks: Optional[EmployeeLocks] = None,
        change_feed: Optional[ChangeFeed] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._sessions = sessions
        self._audit = audit
        self._employees = employees
        self._validator = validator
        self._locks = locks or EmployeeLocks()
        self._feed = change_feed
        self._clock = clock

    def _publish(self, action: str, session_id: str) -> None:
        if self._feed:
            self._feed.publish("sessions", action, session_id)

    # ----- employee actions -----

    def get_current_open_session(self, employee_id: str) -> Optional[WorkSession]:
        return self._sessions.get_open_for_employee(employee_id)

    def get_history(self, employee_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[WorkSession]:
        return self._sessions.list_for_employee(employee_id, limit=limit)

    def clock_in(self, employee_id: str, *, location_id: Optional[str] = None, now: Optional[datetime] = None) -> WorkSession:
        """Open a session, or return the one already open unchanged."""
        with self._locks.hold(employee_id):
            existing = self._sessions.get_open_for_employee(employee_id)
            if existing:
                logger.debug("clock-in for %s: session %s already open", employee_id, existing.session_id)
                return existing

            now = to_store_precision(now or self._clock())
            try:
                created = self._sessions.create(
                    session_id=str(uuid.uuid4()),
                    employee_id=employee_id,
                    clock_in=now,
                    clock_out=None,
                    status=SessionStatus.OPEN,
                    location_id=location_id,
                )
            except OpenSessionExists:
                # Another process won the race; hand back its session.
                existing = self._sessions.get_open_for_employee(employee_id)
                if existing is None:
                    raise
                return existing

        logger.info("clock-in %s session=%s location=%s", employee_id, created.session_id, location_id)
        self._publish("insert", created.session_id)
        return created

    def clock_out(self, employee_id: str, *, now: Optional[datetime] = None) -> Optional[WorkSession]:
        """Close the open session. Returns None when there was nothing to close."""
        with self._locks.hold(employee_id):
            current = self._sessions.get_open_for_employee(employee_id)
            if current is None:
                logger.info("clock-out for %s ignored: no open session", employee_id)
                return None

            now = max(to_store_precision(now or self._clock()), current.clock_in)
            if not self._sessions.close(current.session_id, clock_out=now):
                logger.info("clock-out for %s ignored: session %s closed concurrently", employee_id, current.session_id)
                return None

        closed = WorkSession(
            session_id=current.session_id,
            employee_id=current.employee_id,
            clock_in=current.clock_in,
            clock_out=now,
            status=SessionStatus.CLOSED,
            location_id=current.location_id,
        )
        logger.info("clock-out %s session=%s", employee_id, closed.session_id)
        self._publish("update", closed.session_id)
        return closed

    def clock_with_token(self, employee_id: str, token: Optional[str], *, now: Optional[datetime] = None) -> ClockResult:
        """QR action: validate the token, then clock in or out."""
        if self._validator is None:
            raise RuntimeError("SessionService was built without a TokenValidator")

        employee = self._employees.get_by_id(employee_id)
        if employee is None:
            raise NotFoundError("Empleado no encontrado")

        check = self._validator.require(token, employee=employee)

        with self._locks.hold(employee_id):
            if self._sessions.get_open_for_employee(employee_id):
                closed = self.clock_out(employee_id, now=now)
                if closed is not None:
                    return ClockResult(action=ClockAction.OUT, session=closed)
            session = self.clock_in(employee_id, location_id=check.location_id, now=now)
            return ClockResult(action=ClockAction.IN, session=session)

    # ----- administrator overrides -----

    def list_sessions(
        self,
        *,
        start: datetime,
        end: datetime,
        location_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> Sequence[WorkSession]:
        if end < start:
            raise ValidationError("Rango de fechas invalido.")
        return self._sessions.list_in_range(
            start=start,
            end=end,
            location_id=location_id,
            employee_id=employee_id,
            newest_first=True,
        )

    def list_open_sessions(self, *, location_id: Optional[str] = None) -> Sequence[WorkSession]:
        return self._sessions.list_open(location_id=location_id)

    def audit_trail(self, session_id: str) -> Sequence[SessionAuditEntry]:
        return self._audit.list_for_session(session_id)

    def manual_session(
        self,
        *,
        actor_id: str,
        employee_id: str,
        clock_in: datetime,
        clock_out: datetime,
        location_id: Optional[str],
        reason: Optional[str] = None,
    ) -> WorkSession:
        """Insert a closed session retroactively.

        Overlap with other sessions is allowed; the override is audited.
        """
        if clock_in is None or clock_out is None:
            raise ValidationError("Por favor rellena todos los campos para el fichaje manual.")
        if clock_out < clock_in:
            raise ValidationError("La salida no puede ser anterior a la entrada")
        clock_in, clock_out = to_store_precision(clock_in), to_store_precision(clock_out)
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Empleado no encontrado")

        created = self._sessions.create(
            session_id=str(uuid.uuid4()),
            employee_id=employee_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=SessionStatus.CLOSED,
            location_id=location_id,
        )
        self._record(AuditAction.MANUAL_CREATE, created, actor_id=actor_id, reason=reason)
        logger.info("manual session %s for %s by %s", created.session_id, employee_id, actor_id)
        self._publish("insert", created.session_id)
        return created

    def edit_session(
        self,
        session_id: str,
        *,
        actor_id: str,
        clock_in: datetime,
        clock_out: Optional[datetime],
        reason: Optional[str] = None,
    ) -> WorkSession:
        """Overwrite a session's times; status follows the clock-out."""
        if clock_in is None:
            raise ValidationError("La entrada es obligatoria")
        if clock_out is not None and clock_out < clock_in:
            raise ValidationError("La salida no puede ser anterior a la entrada")
        clock_in, clock_out = to_store_precision(clock_in), to_store_precision(clock_out)

        current = self._sessions.get_by_id(session_id)
        if current is None:
            raise NotFoundError("El fichaje ya no existe")

        status = SessionStatus.OPEN if clock_out is None else SessionStatus.CLOSED

        with self._locks.hold(current.employee_id):
            if clock_out is None:
                other = self._sessions.get_open_for_employee(current.employee_id)
                if other is not None and other.session_id != session_id:
                    raise ValidationError("El empleado ya tiene otra jornada abierta")
            try:
                updated = self._sessions.update_times(session_id, clock_in=clock_in, clock_out=clock_out, status=status)
            except OpenSessionExists:
                raise ValidationError("El empleado ya tiene otra jornada abierta") from None
            if not updated:
                raise NotFoundError("El fichaje ya no existe")

        edited = WorkSession(
            session_id=current.session_id,
            employee_id=current.employee_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=status,
            location_id=current.location_id,
        )
        self._record(AuditAction.EDIT, edited, actor_id=actor_id, reason=reason)
        logger.info("session %s edited by %s", session_id, actor_id)
        self._publish("update", session_id)
        return edited

    def delete_session(self, session_id: str, *, actor_id: str, reason: Optional[str] = None) -> None:
        """Hard delete; the audit entry keeps the removed times."""
        current = self._sessions.get_by_id(session_id)
        if current is None:
            raise NotFoundError("El fichaje ya no existe")
        if not self._sessions.delete(session_id):
            raise NotFoundError("El fichaje ya no existe")

        self._record(AuditAction.DELETE, current, actor_id=actor_id, reason=reason)
        logger.info("session %s deleted by %s", session_id, actor_id)
        self._publish("delete", session_id)

    def _record(self, action: AuditAction, session: WorkSession, *, actor_id: str, reason: Optional[str]) -> None:
        self._audit.record(
            SessionAuditEntry(
                session_id=session.session_id,
                employee_id=session.employee_id,
                action=action,
                actor_id=actor_id,
                created_at=to_store_precision(self._clock()),
                clock_in=session.clock_in,
                clock_out=session.clock_out,
                reason=(reason or "").strip() or None,
            )
        )
