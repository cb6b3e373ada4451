from __future__ import annotations

from io import BytesIO
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .aggregation import format_date, format_hours
from .model import HoursReport

_MARGIN = 40
_ROW_H = 16


class _TableWriter:
    """Draws simple ruled tables on a canvas, breaking pages as needed."""

    def __init__(self, pdf: canvas.Canvas, *, y: float):
        self._pdf = pdf
        self._width, self._height = A4
        self.y = y

    def _ensure_space(self, needed: float, header: Optional[Sequence[str]], widths: Sequence[float]) -> None:
        if self.y - needed >= _MARGIN:
            return
        self._pdf.showPage()
        self.y = self._height - _MARGIN
        if header:
            self._row(header, widths, bold=True)

    def _row(self, cells: Sequence[str], widths: Sequence[float], *, bold: bool = False) -> None:
        pdf = self._pdf
        if bold:
            pdf.setFillColor(colors.HexColor("#d8834b"))
            pdf.rect(_MARGIN, self.y - 4, sum(widths), _ROW_H, stroke=0, fill=1)
            pdf.setFillColor(colors.white)
            pdf.setFont("Helvetica-Bold", 9.5)
        else:
            pdf.setFillColor(colors.HexColor("#111111"))
            pdf.setFont("Helvetica", 9.5)

        x = _MARGIN
        for cell, width in zip(cells, widths):
            pdf.drawString(x + 4, self.y, str(cell)[:40])
            x += width

        if not bold:
            pdf.setStrokeColor(colors.HexColor("#CFCFCF"))
            pdf.line(_MARGIN, self.y - 4, _MARGIN + sum(widths), self.y - 4)
        self.y -= _ROW_H

    def table(self, header: Sequence[str], rows: Sequence[Sequence[str]], widths: Sequence[float]) -> None:
        self._ensure_space(_ROW_H * 2, None, widths)
        self._row(header, widths, bold=True)
        for row in rows:
            self._ensure_space(_ROW_H, header, widths)
            self._row(row, widths)
        self.y -= _ROW_H / 2


def render_hours_pdf(report: HoursReport, *, tz: ZoneInfo, title: str = "Reporte de horas", subtitle: Optional[str] = None) -> bytes:
    """Render the report as a PDF document (summary, per-employee and detail tables)."""
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    _, height = A4

    y = height - _MARGIN - 8
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(_MARGIN, y, title)
    y -= 20

    pdf.setFont("Helvetica", 11)
    lines = [f"Rango: {format_date(report.range_start, tz)} - {format_date(report.range_end, tz)}"]
    if subtitle:
        lines.append(subtitle)
    lines.append(f"Total horas: {format_hours(report.total_hours)}h")
    lines.append(f"Promedio por empleado: {format_hours(report.average_hours)}h")
    for line in lines:
        pdf.drawString(_MARGIN, y, line)
        y -= 15
    y -= 10

    writer = _TableWriter(pdf, y=y)

    totals = [[t.name, t.job_title, f"{format_hours(t.hours)}h"] for t in report.employee_totals]
    writer.table(
        ["Empleado", "Rol", "Total horas"],
        totals or [["Sin datos", "-", "0,00h"]],
        [220, 170, 125],
    )

    detail = [
        [r.employee_name, r.job_title, r.work_date, r.clock_in, r.clock_out, f"{format_hours(r.hours)}h"]
        for r in report.rows
    ]
    writer.table(
        ["Empleado", "Rol", "Fecha", "Entrada", "Salida", "Horas"],
        detail or [["Sin registros", "-", "-", "-", "-", "0,00h"]],
        [130, 105, 75, 60, 70, 75],
    )

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
