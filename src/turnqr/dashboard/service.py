from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.change_feed import ChangeEvent, ChangeFeed
from ..common.datetime_utils import now_utc
from ..core.constants import DASHBOARD_CACHE_SECONDS, NO_NAME_LABEL
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..sessions.model import WorkSession
from ..sessions.repository import SessionRepository
from ..settings.service import SettingsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveShift:
    session_id: str
    employee_id: str
    employee_name: str
    clock_in: datetime
    elapsed_hours: float
    overdue: bool


@dataclass(frozen=True)
class DashboardOverview:
    location_id: Optional[str]
    total_employees: int
    active_shifts: tuple[ActiveShift, ...]
    max_shift_hours: float

    @property
    def active_count(self) -> int:
        return len(self.active_shifts)

    @property
    def overdue_shifts(self) -> tuple[ActiveShift, ...]:
        """Open longer than the max shift: likely a forgotten clock-out."""
        return tuple(s for s in self.active_shifts if s.overdue)


class DashboardService:
    """Live view of a location: roster size and who is on shift.

    Roster and open sessions are cached per location for ``cache_seconds``
    and dropped whenever the change feed reports a write to ``sessions`` or
    ``employees``. The feed only sees this process, so the lifetime bounds
    how long another worker's writes stay invisible.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        employees: EmployeeRepository,
        settings: SettingsService,
        *,
        change_feed: Optional[ChangeFeed] = None,
        clock: Callable[[], datetime] = now_utc,
        cache_seconds: float = DASHBOARD_CACHE_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._sessions = sessions
        self._employees = employees
        self._settings = settings
        self._clock = clock
        self._cache_seconds = cache_seconds
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._generation = 0
        self._cache: dict[str, tuple[float, tuple[Sequence[Employee], Sequence[WorkSession]]]] = {}
        if change_feed:
            change_feed.subscribe("sessions", self._invalidate)
            change_feed.subscribe("employees", self._invalidate)

    def _invalidate(self, event: ChangeEvent) -> None:
        logger.debug("dashboard cache dropped after %s/%s", event.table, event.action)
        with self._lock:
            self._generation += 1
            self._cache.clear()

    def _load(self, location_id: str) -> tuple[Sequence[Employee], Sequence[WorkSession]]:
        with self._lock:
            entry = self._cache.get(location_id)
            if entry is not None and self._monotonic() - entry[0] < self._cache_seconds:
                return entry[1]
            generation = self._generation

        data = (
            list(self._employees.list_for_location(location_id)),
            list(self._sessions.list_open(location_id=location_id)),
        )
        with self._lock:
            # A write landed while reading; the result may predate it.
            if self._generation == generation:
                self._cache[location_id] = (self._monotonic(), data)
        return data

    def overview(self, *, location_id: Optional[str] = None, now: Optional[datetime] = None) -> DashboardOverview:
        settings = self._settings.get()
        location_id = location_id or self._settings.resolve_active_location_id()
        if not location_id:
            return DashboardOverview(location_id=None, total_employees=0, active_shifts=(), max_shift_hours=settings.max_shift_hours)

        employees, open_sessions = self._load(location_id)
        names = {e.employee_id: e.name for e in employees}
        now = now or self._clock()

        shifts = []
        for s in open_sessions:
            elapsed = max(0.0, (now - s.clock_in).total_seconds() / 3600)
            shifts.append(
                ActiveShift(
                    session_id=s.session_id,
                    employee_id=s.employee_id,
                    employee_name=names.get(s.employee_id) or NO_NAME_LABEL,
                    clock_in=s.clock_in,
                    elapsed_hours=elapsed,
                    overdue=elapsed > settings.max_shift_hours,
                )
            )

        return DashboardOverview(
            location_id=location_id,
            total_employees=len(employees),
            active_shifts=tuple(shifts),
            max_shift_hours=settings.max_shift_hours,
        )
