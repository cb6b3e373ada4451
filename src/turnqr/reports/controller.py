from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..container import Container
from ..common.datetime_utils import parse_iso_date, to_iso
from ..common.web import admin_required
from .aggregation import format_hours
from .csv_export import render_hours_csv
from .model import HoursReport
from .pdf_export import render_hours_pdf
from .service import report_filename


def _report_json(report: HoursReport) -> dict:
    return {
        "range_start": to_iso(report.range_start),
        "range_end": to_iso(report.range_end),
        "location_id": report.location_id,
        "total_hours": report.total_hours,
        "total_hours_label": format_hours(report.total_hours),
        "average_hours": report.average_hours,
        "average_hours_label": format_hours(report.average_hours),
        "employee_count": report.employee_count,
        "employees": [
            {
                "employee_id": t.employee_id,
                "name": t.name,
                "job_title": t.job_title,
                "hours": t.hours,
                "hours_label": format_hours(t.hours),
            }
            for t in report.employee_totals
        ],
        "rows": [
            {
                "session_id": r.session_id,
                "employee_id": r.employee_id,
                "employee_name": r.employee_name,
                "job_title": r.job_title,
                "date": r.work_date,
                "clock_in": r.clock_in,
                "clock_out": r.clock_out,
                "hours": r.hours,
                "hours_label": format_hours(r.hours),
            }
            for r in report.rows
        ],
    }


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    def _requested_range():
        """Explicit start/end, or a quick range (0 = this month, -1 = last month)."""
        quick = request.args.get("month", type=int)
        if quick is not None:
            return service.quick_range(quick)
        return parse_iso_date(request.args.get("start")), parse_iso_date(request.args.get("end"))

    def _build():
        start, end = _requested_range()
        report = service.build(
            start=start,
            end=end,
            location_id=request.args.get("location_id") or None,
            employee_id=request.args.get("employee_id") or None,
        )
        return start, end, report

    @app.route("/api/admin/reports/hours", endpoint="report_hours")
    @admin_required
    def report_hours():
        start, end, report = _build()
        return jsonify({"success": True, "start": start.isoformat(), "end": end.isoformat(), "report": _report_json(report)})

    @app.route("/api/admin/reports/hours.pdf", endpoint="report_hours_pdf")
    @admin_required
    def report_hours_pdf():
        start, end, report = _build()
        business = container.settings_service.get().business_name
        content = render_hours_pdf(
            report,
            tz=service.tz,
            subtitle=f"{business} · {start.strftime('%d/%m/%Y')} - {end.strftime('%d/%m/%Y')}".lstrip(" ·"),
        )
        return send_file(
            io.BytesIO(content),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=report_filename(start, end, "pdf"),
        )

    @app.route("/api/admin/reports/hours.csv", endpoint="report_hours_csv")
    @admin_required
    def report_hours_csv():
        start, end, report = _build()
        return send_file(
            io.BytesIO(render_hours_csv(report)),
            mimetype="text/csv",
            as_attachment=True,
            download_name=report_filename(start, end, "csv"),
        )
