from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from .common.change_feed import ChangeFeed
from .common.datetime_utils import now_utc
from .core.enums import ClipMode
from .dashboard.service import DashboardService
from .database.connection import DatabaseConnection, DBConfig
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .locations.mysql_location_repository import MySQLLocationRepository
from .locations.repository import LocationRepository
from .locations.service import LocationService
from .qr.validator import TokenValidator
from .reports.service import HoursReportService
from .sessions.coordinator import EmployeeLocks
from .sessions.mysql_session_repository import MySQLSessionAuditRepository, MySQLSessionRepository
from .sessions.repository import SessionAuditRepository, SessionRepository
from .sessions.service import SessionService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .users.mysql_account_repository import MySQLAccountRepository
from .users.repository import AccountRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    tz: ZoneInfo
    change_feed: ChangeFeed

    employees_repo: EmployeeRepository
    locations_repo: LocationRepository
    settings_repo: SettingsRepository
    sessions_repo: SessionRepository
    audit_repo: SessionAuditRepository
    accounts_repo: AccountRepository

    token_validator: TokenValidator
    auth_service: AuthService
    employee_service: EmployeeService
    location_service: LocationService
    settings_service: SettingsService
    session_service: SessionService
    report_service: HoursReportService
    dashboard_service: DashboardService


def wire_container(
    *,
    employees_repo: EmployeeRepository,
    locations_repo: LocationRepository,
    settings_repo: SettingsRepository,
    sessions_repo: SessionRepository,
    audit_repo: SessionAuditRepository,
    accounts_repo: AccountRepository,
    tz: ZoneInfo,
    clip_mode: ClipMode = ClipMode.END_ONLY,
    clock: Callable[[], datetime] = now_utc,
) -> Container:
    feed = ChangeFeed()

    validator = TokenValidator(locations_repo, settings_repo)
    employee_service = EmployeeService(employees_repo, locations_repo, change_feed=feed)
    location_service = LocationService(locations_repo, change_feed=feed)
    settings_service = SettingsService(settings_repo, locations_repo, change_feed=feed, clock=clock)
    session_service = SessionService(
        sessions_repo,
        audit_repo,
        employees_repo,
        validator=validator,
        locks=EmployeeLocks(),
        change_feed=feed,
        clock=clock,
    )

    return Container(
        tz=tz,
        change_feed=feed,
        employees_repo=employees_repo,
        locations_repo=locations_repo,
        settings_repo=settings_repo,
        sessions_repo=sessions_repo,
        audit_repo=audit_repo,
        accounts_repo=accounts_repo,
        token_validator=validator,
        auth_service=AuthService(accounts_repo, employee_service),
        employee_service=employee_service,
        location_service=location_service,
        settings_service=settings_service,
        session_service=session_service,
        report_service=HoursReportService(
            sessions_repo,
            employees_repo,
            settings_service,
            tz=tz,
            clip_mode=clip_mode,
            clock=clock,
        ),
        dashboard_service=DashboardService(
            sessions_repo,
            employees_repo,
            settings_service,
            change_feed=feed,
            clock=clock,
        ),
    )


def build_container(*, db_config: dict, tz: ZoneInfo, clip_mode: ClipMode = ClipMode.END_ONLY) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        employees_repo=MySQLEmployeeRepository(conn),
        locations_repo=MySQLLocationRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        audit_repo=MySQLSessionAuditRepository(conn),
        accounts_repo=MySQLAccountRepository(conn),
        tz=tz,
        clip_mode=clip_mode,
    )
