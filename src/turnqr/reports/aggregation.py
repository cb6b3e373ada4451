from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from ..core.constants import IN_PROGRESS_LABEL, NO_NAME_LABEL, NO_ROLE_LABEL
from ..core.enums import ClipMode
from ..core.exceptions import ValidationError
from ..employees.model import Employee
from ..sessions.model import WorkSession
from .calculator.base import DurationCalculator
from .calculator.factory import calculator_for
from .model import EmployeeTotal, HoursReport, ReportRow

_UTC = timezone.utc


def format_hours(hours: float) -> str:
    """Two decimals with a comma separator, e.g. ``8,00``."""
    return f"{hours:.2f}".replace(".", ",")


def format_date(value: datetime, tz: ZoneInfo) -> str:
    return value.astimezone(tz).strftime("%d/%m/%Y")


def format_time(value: datetime, tz: ZoneInfo) -> str:
    return value.astimezone(tz).strftime("%H:%M")


def session_hours(
    session: WorkSession,
    *,
    range_start: datetime,
    range_end: datetime,
    now: datetime,
    clip_mode: ClipMode = ClipMode.END_ONLY,
) -> float:
    return calculator_for(clip_mode).hours(session, range_start=range_start, range_end=range_end, now=now)


def aggregate_hours(
    sessions: Iterable[WorkSession],
    range_start: datetime,
    range_end: datetime,
    *,
    now: datetime,
    employees: Sequence[Employee] = (),
    clip_mode: ClipMode = ClipMode.END_ONLY,
    tz: ZoneInfo = ZoneInfo("UTC"),
    location_id: Optional[str] = None,
    calculator: Optional[DurationCalculator] = None,
) -> HoursReport:
    """Per-session and per-employee worked hours for a report range.

    Rows come out in clock-in order. The average divides the total by every
    employee in scope, including those without sessions.
    """
    if range_end < range_start:
        raise ValidationError("Rango de fechas invalido.")

    calc = calculator or calculator_for(clip_mode)
    by_id = {e.employee_id: e for e in employees}

    rows: list[ReportRow] = []
    per_employee: dict[str, float] = {}
    total = 0.0

    for s in sorted(sessions, key=lambda item: item.clock_in):
        hours = calc.hours(s, range_start=range_start, range_end=range_end, now=now)
        total += hours
        per_employee[s.employee_id] = per_employee.get(s.employee_id, 0.0) + hours

        employee = by_id.get(s.employee_id)
        rows.append(
            ReportRow(
                session_id=s.session_id,
                employee_id=s.employee_id,
                employee_name=(employee.name if employee and employee.name else NO_NAME_LABEL),
                job_title=(employee.job_title.value if employee else NO_ROLE_LABEL),
                work_date=format_date(s.clock_in, tz),
                clock_in=format_time(s.clock_in, tz),
                clock_out=format_time(s.clock_out, tz) if s.clock_out else IN_PROGRESS_LABEL,
                hours=hours,
            )
        )

    totals = tuple(
        EmployeeTotal(
            employee_id=e.employee_id,
            name=e.name or NO_NAME_LABEL,
            job_title=e.job_title.value,
            hours=per_employee.get(e.employee_id, 0.0),
        )
        for e in employees
    )

    average = total / len(employees) if employees else 0.0

    return HoursReport(
        range_start=range_start.astimezone(_UTC),
        range_end=range_end.astimezone(_UTC),
        rows=tuple(rows),
        employee_totals=totals,
        total_hours=total,
        average_hours=average,
        employee_count=len(employees),
        location_id=location_id,
    )
