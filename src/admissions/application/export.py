"""CSV and Excel exports of the applicant list for the admin view."""

from __future__ import annotations

import csv
import io
from typing import Any, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

from ..data.models import STREAMS, Applicant
from .merit import MeritEntry, compute_merit_list

CSV_HEADER = ["Rank", "Name", "Email", "Marks", "Stream", "Course", "Status", "Applied At"]
XLSX_HEADER = [
    "Rank", "Stream Rank", "Application ID", "Name", "Email",
    "Marks", "Stream", "Course", "Status", "Applied At",
]


def _applied_at(app: Applicant) -> str:
    return app.created_at.strftime("%Y-%m-%d %H:%M:%S") if app.created_at else "N/A"


def _ranked(applicants: Sequence[Applicant]) -> List[tuple[MeritEntry, Applicant]]:
    """Pair each overall merit entry with its source record."""
    return [(e, applicants[e.position]) for e in compute_merit_list(applicants).overall]


def applicants_to_csv(applicants: Sequence[Applicant]) -> str:
    """Render applicants as CSV in overall merit order.

    :param applicants: Records to export (any order).
    :returns: CSV text with :data:`CSV_HEADER` as the first row.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry, app in _ranked(applicants):
        writer.writerow([
            entry.overall_rank,
            app.name,
            app.email,
            app.marks,
            entry.stream,
            app.course,
            app.status or "pending",
            _applied_at(app),
        ])
    return buf.getvalue()


def _write_sheet(ws, rows: List[List[Any]]) -> None:
    ws.append(XLSX_HEADER)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(row)
    ws.freeze_panes = "A2"


def applicants_to_xlsx(applicants: Sequence[Applicant]) -> bytes:
    """Render an ``.xlsx`` workbook: an "Overall" sheet plus one sheet per stream.

    :param applicants: Records to export (any order).
    :returns: Workbook bytes.
    """
    ranked = _ranked(applicants)

    def _row(entry: MeritEntry, app: Applicant) -> List[Any]:
        return [
            entry.overall_rank, entry.stream_rank, app.application_id or "",
            app.name, app.email, app.marks, entry.stream, app.course,
            app.status or "pending", _applied_at(app),
        ]

    wb = Workbook()
    overall = wb.active
    overall.title = "Overall"
    _write_sheet(overall, [_row(e, a) for e, a in ranked])

    for stream in STREAMS:
        # overall order restricted to one stream is that stream's order
        _write_sheet(wb.create_sheet(stream), [_row(e, a) for e, a in ranked if e.stream == stream])

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()
