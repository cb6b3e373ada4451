from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..common.datetime_utils import month_range, now_utc, range_bounds
from ..core.enums import ClipMode
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository
from ..sessions.repository import SessionRepository
from ..settings.service import SettingsService
from .aggregation import aggregate_hours
from .model import HoursReport

logger = logging.getLogger(__name__)


class HoursReportService:
    """Build hour reports for the selected location.

    The whole range is loaded and aggregated in memory.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        employees: EmployeeRepository,
        settings: SettingsService,
        *,
        tz: ZoneInfo,
        clip_mode: ClipMode = ClipMode.END_ONLY,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._sessions = sessions
        self._employees = employees
        self._settings = settings
        self._tz = tz
        self._clip_mode = clip_mode
        self._clock = clock

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def quick_range(self, offset_months: int = 0, *, today: Optional[date] = None) -> tuple[date, date]:
        """Current month (0) or a month relative to it (-1 = last month)."""
        today = today or self._clock().astimezone(self._tz).date()
        return month_range(today, offset_months)

    def build(
        self,
        *,
        start: date,
        end: date,
        location_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> HoursReport:
        range_start, range_end = range_bounds(start, end, self._tz)

        location_id = location_id or self._settings.get().selected_location_id
        if not location_id:
            raise ValidationError("Selecciona un local activo en el panel de administrador.")

        employees = list(self._employees.list_for_location(location_id))
        if employee_id:
            employees = [e for e in employees if e.employee_id == employee_id]

        sessions = self._sessions.list_in_range(
            start=range_start,
            end=range_end,
            location_id=location_id,
            employee_id=employee_id,
            overlapping=self._clip_mode == ClipMode.SYMMETRIC,
        )

        report = aggregate_hours(
            sessions,
            range_start,
            range_end,
            now=now or self._clock(),
            employees=employees,
            clip_mode=self._clip_mode,
            tz=self._tz,
            location_id=location_id,
        )
        logger.info(
            "hours report %s..%s location=%s sessions=%d total=%.2f",
            start,
            end,
            location_id,
            len(report.rows),
            report.total_hours,
        )
        return report


def report_filename(start: date, end: date, extension: str) -> str:
    return f"reporte-horas-{start.isoformat()}-a-{end.isoformat()}.{extension}"
