from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ReportRow:
    """One session in a report, with display-ready date and times."""

    session_id: str
    employee_id: str
    employee_name: str
    job_title: str
    work_date: str
    clock_in: str
    clock_out: str
    hours: float


@dataclass(frozen=True)
class EmployeeTotal:
    employee_id: str
    name: str
    job_title: str
    hours: float


@dataclass(frozen=True)
class HoursReport:
    range_start: datetime
    range_end: datetime
    rows: tuple[ReportRow, ...]
    employee_totals: tuple[EmployeeTotal, ...]
    total_hours: float
    average_hours: float
    employee_count: int
    location_id: Optional[str] = None
