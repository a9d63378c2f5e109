"""Excel writer: produces the single-sheet ``transformed.xlsx``."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from forecast_ledger import OUTPUT_COLUMNS
from forecast_ledger.export import records_to_frame
from forecast_ledger.models import OutputRecord

# ── Style constants ──────────────────────────────────────────────

SHEET_TITLE = "Forecast Data"

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

_AUTO_WIDTH_SAMPLE_ROWS = 300


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, 40)


def _write_text_cell(ws: Worksheet, row: int, column: int, value: str) -> Cell:
    cell = ws.cell(row=row, column=column, value=value)
    # Keep values byte-identical to the CSV: "=..." stays text, not a formula.
    if cell.data_type == "f":
        cell.data_type = "s"
    return cell


# ── Public API ───────────────────────────────────────────────────


def write_workbook(path: Path, records: Sequence[OutputRecord]) -> Path:
    """Write *records* to a one-sheet workbook at *path* and return the path.

    Every value is stored as text, in the same column order and with the
    same content as :func:`forecast_ledger.export.render_csv`. Unlike the
    CSV, which is empty for no records, the sheet always keeps its styled
    header row.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = SHEET_TITLE

    for c_idx, name in enumerate(OUTPUT_COLUMNS, 1):
        ws.cell(row=1, column=c_idx, value=name)
    frame = records_to_frame(records)
    for r_idx, values in enumerate(frame.itertuples(index=False, name=None), 2):
        for c_idx, value in enumerate(values, 1):
            _write_text_cell(ws, r_idx, c_idx, str(value))

    _style_header(ws, len(OUTPUT_COLUMNS))
    ws.freeze_panes = "A2"
    if records:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
