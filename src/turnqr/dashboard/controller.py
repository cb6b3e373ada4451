from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..common.datetime_utils import to_iso
from ..common.web import admin_required
from ..reports.aggregation import format_hours, format_time


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/dashboard", endpoint="dashboard")
    @admin_required
    def dashboard():
        overview = container.dashboard_service.overview(location_id=request.args.get("location_id") or None)
        return jsonify(
            {
                "success": True,
                "location_id": overview.location_id,
                "total_employees": overview.total_employees,
                "active_count": overview.active_count,
                "overdue_count": len(overview.overdue_shifts),
                "max_shift_hours": overview.max_shift_hours,
                "active_shifts": [
                    {
                        "session_id": s.session_id,
                        "employee_id": s.employee_id,
                        "employee_name": s.employee_name,
                        "clock_in": to_iso(s.clock_in),
                        "clock_in_label": format_time(s.clock_in, container.tz),
                        "elapsed_hours": s.elapsed_hours,
                        "elapsed_label": format_hours(s.elapsed_hours),
                        "overdue": s.overdue,
                    }
                    for s in overview.active_shifts
                ],
            }
        )
