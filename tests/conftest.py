from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from turnqr.container import wire_container
from turnqr.core.enums import ClipMode, JobTitle, Role, SessionStatus
from turnqr.core.exceptions import OpenSessionExists
from turnqr.employees.model import Employee
from turnqr.locations.model import Location
from turnqr.sessions.model import SessionAuditEntry, WorkSession
from turnqr.settings.model import AppSettings
from turnqr.users.model import Account


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self.rows: dict[str, Employee] = {e.employee_id: e for e in employees}

    def add(self, employee: Employee) -> Employee:
        self.rows[employee.employee_id] = employee
        return employee

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        return self.rows.get(employee_id)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda e: e.name)

    def list_for_location(self, location_id: str):
        return [e for e in self.list_all() if location_id in e.location_ids]

    def create(self, *, employee_id: str, name: str, job_title: JobTitle) -> None:
        self.rows.setdefault(employee_id, Employee(employee_id=employee_id, name=name, job_title=job_title))

    def update_job_title(self, employee_id: str, job_title: JobTitle) -> bool:
        if employee_id not in self.rows:
            return False
        self.rows[employee_id] = dataclasses.replace(self.rows[employee_id], job_title=job_title)
        return True

    def set_active(self, employee_id: str, *, is_active: bool) -> bool:
        if employee_id not in self.rows:
            return False
        self.rows[employee_id] = dataclasses.replace(self.rows[employee_id], is_active=is_active)
        return True

    def set_locations(self, employee_id: str, location_ids) -> None:
        self.rows[employee_id] = dataclasses.replace(self.rows[employee_id], location_ids=tuple(location_ids))

    def delete_by_id(self, employee_id: str) -> bool:
        return self.rows.pop(employee_id, None) is not None


class InMemoryLocations:
    def __init__(self, *locations: Location):
        self.rows: dict[str, Location] = {l.location_id: l for l in locations}

    def get_by_id(self, location_id: str) -> Optional[Location]:
        return self.rows.get(location_id)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda l: l.name)

    def create(self, *, location_id: str, name: str, qr_token: Optional[str]) -> None:
        self.rows[location_id] = Location(location_id=location_id, name=name, qr_token=qr_token)

    def set_token(self, location_id: str, qr_token: Optional[str]) -> bool:
        if location_id not in self.rows:
            return False
        self.rows[location_id] = dataclasses.replace(self.rows[location_id], qr_token=qr_token)
        return True


class InMemorySettings:
    def __init__(self, settings: Optional[AppSettings] = None):
        self.row = settings
        self.saves = 0

    def get(self) -> Optional[AppSettings]:
        return self.row

    def save(self, settings: AppSettings, *, expected_updated_at, updated_at) -> bool:
        stored = self.row.updated_at if self.row else None
        if stored != expected_updated_at:
            return False
        self.row = dataclasses.replace(settings, updated_at=updated_at)
        self.saves += 1
        return True


class InMemoryAccounts:
    def __init__(self, *accounts: Account):
        self.rows: dict[str, Account] = {a.user_id: a for a in accounts}

    def get_by_id(self, user_id: str) -> Optional[Account]:
        return self.rows.get(user_id)

    def get_by_email(self, email: str) -> Optional[Account]:
        return next((a for a in self.rows.values() if a.email == email), None)

    def create(self, *, user_id: str, email: str, password_hash: str, role: Role) -> None:
        self.rows[user_id] = Account(user_id=user_id, email=email, password_hash=password_hash, role=role)


class InMemorySessions:
    """Mirrors the store's one-open-session-per-employee unique index."""

    def __init__(self, *sessions: WorkSession):
        self.rows: dict[str, WorkSession] = {s.session_id: s for s in sessions}

    def _assert_single_open(self, employee_id: str, exclude: Optional[str] = None) -> None:
        for s in self.rows.values():
            if s.employee_id == employee_id and s.clock_out is None and s.session_id != exclude:
                raise OpenSessionExists(employee_id)

    def get_by_id(self, session_id: str) -> Optional[WorkSession]:
        return self.rows.get(session_id)

    def get_open_for_employee(self, employee_id: str) -> Optional[WorkSession]:
        return next((s for s in self.rows.values() if s.employee_id == employee_id and s.clock_out is None), None)

    def create(self, *, session_id, employee_id, clock_in, clock_out, status, location_id=None) -> WorkSession:
        if clock_out is None:
            self._assert_single_open(employee_id)
        session = WorkSession(
            session_id=session_id,
            employee_id=employee_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=status,
            location_id=location_id,
        )
        self.rows[session_id] = session
        return session

    def close(self, session_id: str, *, clock_out: datetime) -> bool:
        current = self.rows.get(session_id)
        if current is None or current.clock_out is not None:
            return False
        self.rows[session_id] = dataclasses.replace(current, clock_out=clock_out, status=SessionStatus.CLOSED)
        return True

    def update_times(self, session_id, *, clock_in, clock_out, status) -> bool:
        current = self.rows.get(session_id)
        if current is None:
            return False
        if clock_out is None:
            self._assert_single_open(current.employee_id, exclude=session_id)
        self.rows[session_id] = dataclasses.replace(current, clock_in=clock_in, clock_out=clock_out, status=status)
        return True

    def delete(self, session_id: str) -> bool:
        return self.rows.pop(session_id, None) is not None

    def list_for_employee(self, employee_id: str, *, limit: int):
        rows = [s for s in self.rows.values() if s.employee_id == employee_id]
        rows.sort(key=lambda s: s.clock_in, reverse=True)
        return rows[:limit]

    def list_in_range(self, *, start, end, location_id=None, employee_id=None, newest_first=False, overlapping=False):
        rows = []
        for s in self.rows.values():
            if overlapping:
                inside = s.clock_in <= end and (s.clock_out is None or s.clock_out >= start)
            else:
                inside = start <= s.clock_in <= end
            if not inside:
                continue
            if location_id and s.location_id != location_id:
                continue
            if employee_id and s.employee_id != employee_id:
                continue
            rows.append(s)
        rows.sort(key=lambda s: s.clock_in, reverse=newest_first)
        return rows

    def list_open(self, *, location_id=None):
        rows = [s for s in self.rows.values() if s.clock_out is None and (not location_id or s.location_id == location_id)]
        return sorted(rows, key=lambda s: s.clock_in)


class InMemoryAudit:
    def __init__(self):
        self.entries: list[SessionAuditEntry] = []

    def record(self, entry: SessionAuditEntry) -> int:
        self.entries.append(dataclasses.replace(entry, entry_id=len(self.entries) + 1))
        return len(self.entries)

    def list_for_session(self, session_id: str):
        return [e for e in self.entries if e.session_id == session_id]


UTC = timezone.utc
MADRID = ZoneInfo("Europe/Madrid")


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 15, 9, 0, tzinfo=UTC)


@pytest.fixture
def centro() -> Location:
    return Location(location_id="loc-centro", name="Centro", qr_token="tok-centro")


@pytest.fixture
def playa() -> Location:
    return Location(location_id="loc-playa", name="Playa", qr_token="tok-playa")


@pytest.fixture
def ana(centro) -> Employee:
    return Employee(employee_id="emp-ana", name="Ana", job_title=JobTitle.COOK, location_ids=(centro.location_id,))


@pytest.fixture
def luis(centro) -> Employee:
    return Employee(employee_id="emp-luis", name="Luis", job_title=JobTitle.WAITER, location_ids=(centro.location_id,))


@pytest.fixture
def employees_repo(ana, luis) -> InMemoryEmployees:
    return InMemoryEmployees(ana, luis)


@pytest.fixture
def locations_repo(centro, playa) -> InMemoryLocations:
    return InMemoryLocations(centro, playa)


@pytest.fixture
def settings_repo(centro) -> InMemorySettings:
    return InMemorySettings(
        AppSettings(
            business_name="Bar Turno",
            selected_location_id=centro.location_id,
            updated_at=datetime(2024, 1, 1, tzinfo=UTC),
        )
    )


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def accounts_repo() -> InMemoryAccounts:
    return InMemoryAccounts()


@pytest.fixture
def container(employees_repo, locations_repo, settings_repo, sessions_repo, audit_repo, accounts_repo, fixed_now):
    return wire_container(
        employees_repo=employees_repo,
        locations_repo=locations_repo,
        settings_repo=settings_repo,
        sessions_repo=sessions_repo,
        audit_repo=audit_repo,
        accounts_repo=accounts_repo,
        tz=MADRID,
        clip_mode=ClipMode.END_ONLY,
        clock=lambda: fixed_now,
    )
