from __future__ import annotations

import csv
import io

from .aggregation import format_hours
from .model import HoursReport

FIELDNAMES = ["employee", "job_title", "date", "clock_in", "clock_out", "hours"]


def render_hours_csv(report: HoursReport) -> bytes:
    """Detail rows plus a grand-total row, UTF-8 with BOM for spreadsheet apps."""
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=FIELDNAMES)
    writer.writeheader()
    for r in report.rows:
        writer.writerow(
            {
                "employee": r.employee_name,
                "job_title": r.job_title,
                "date": r.work_date,
                "clock_in": r.clock_in,
                "clock_out": r.clock_out,
                "hours": format_hours(r.hours),
            }
        )
    writer.writerow(
        {
            "employee": "TOTAL",
            "job_title": "",
            "date": "",
            "clock_in": "",
            "clock_out": "",
            "hours": format_hours(report.total_hours),
        }
    )
    return out.getvalue().encode("utf-8-sig")
