"""
analytics.exports — Spreadsheet exports of the crime-data tables.

Two workbooks are produced with **openpyxl**:

``Rekapitulasi GK``
    Title, period line, blank row, header
    ``Kasus | Total | Selesai | Lidik | Sidik | P21 | Diversi | RJ | SP3``,
    one row per case type, then a ``Total`` row.

``Tren Kasus 3 Bulan``
    Title, blank row, header ``Kasus`` followed by ``<month> Total`` and
    ``<month> Selesai`` for each month, category rows, ``Total`` row.

``read_table_rows`` reads a workbook back (header row excluded) so the
numbers can be compared with the in-memory tables.
"""

from __future__ import annotations

from datetime import date
from io import BytesIO
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .summary import CategoryTable, TrendTable

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SUMMARY_SHEET = "Rekapitulasi GK"
SUMMARY_TITLE = "Rekapitulasi Data Gangguan Kamtibmas"
SUMMARY_HEADERS = ["Kasus", "Total", "Selesai", "Lidik", "Sidik", "P21", "Diversi", "RJ", "SP3"]

TREND_SHEET = "Tren Kasus 3 Bulan"
TREND_TITLE = "Tren Kasus 3 Bulan Terakhir"
TREND_FILENAME = "Tren_Kasus_3_Bulan_Terakhir.xlsx"

TOTAL_LABEL = "Total"
FIRST_COLUMN_WIDTH = 30
COLUMN_WIDTH = 10

title_font = Font(bold=True, size=14)
header_font = Font(bold=True)


def period_label(start: date | None, end: date | None) -> str:
    if start and end:
        return f"Periode: {start:%d/%m/%Y} - {end:%d/%m/%Y}"
    return "Periode: Semua Data"


def summary_filename(start: date | None, end: date | None) -> str:
    start_part = start.isoformat() if start else "semua"
    end_part = end.isoformat() if end else "data"
    return f"Rekapitulasi_GK_{start_part}_{end_part}.xlsx"


def _set_widths(ws, column_count: int) -> None:
    ws.column_dimensions["A"].width = FIRST_COLUMN_WIDTH
    for col in range(2, column_count + 1):
        ws.column_dimensions[get_column_letter(col)].width = COLUMN_WIDTH


def _append_bold(ws, values: list[Any]) -> None:
    ws.append(values)
    for cell in ws[ws.max_row]:
        cell.font = header_font


def build_summary_workbook(table: CategoryTable, start: date | None = None, end: date | None = None) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = SUMMARY_SHEET

    ws.append([SUMMARY_TITLE])
    ws["A1"].font = title_font
    ws.append([period_label(start, end)])
    ws.append([])
    _append_bold(ws, SUMMARY_HEADERS)

    for case_type, tally in table.rows.items():
        ws.append([case_type, *tally.values()])
    _append_bold(ws, [TOTAL_LABEL, *table.totals.values()])

    _set_widths(ws, len(SUMMARY_HEADERS))
    return wb


def build_trend_workbook(table: TrendTable) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = TREND_SHEET

    ws.append([TREND_TITLE])
    ws["A1"].font = title_font
    ws.append([])

    headers = ["Kasus"]
    for label in table.months:
        headers += [f"{label} Total", f"{label} Selesai"]
    _append_bold(ws, headers)

    for case_type, counts in table.rows.items():
        row: list[Any] = [case_type]
        for count in counts:
            row += [count.total, count.selesai]
        ws.append(row)

    totals: list[Any] = [TOTAL_LABEL]
    for count in table.totals:
        totals += [count.total, count.selesai]
    _append_bold(ws, totals)

    _set_widths(ws, len(headers))
    return wb


def workbook_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def read_table_rows(content: bytes, header: str = "Kasus") -> list[list[Any]]:
    """
    Return the rows below the header row whose first cell is ``header``.

    Includes the trailing ``Total`` row.
    """
    wb = load_workbook(BytesIO(content), read_only=True)
    try:
        ws = wb.active
        rows: list[list[Any]] = []
        seen_header = False
        for values in ws.iter_rows(values_only=True):
            if not seen_header:
                seen_header = bool(values) and values[0] == header
                continue
            if values and values[0] is not None:
                rows.append(list(values))
        return rows
    finally:
        wb.close()
