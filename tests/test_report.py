"""Tests for the workbook writer and its parity with the CSV output."""

from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from forecast_ledger import OUTPUT_COLUMNS
from forecast_ledger.export import render_csv
from forecast_ledger.models import OutputRecord
from forecast_ledger.report import SHEET_TITLE, write_workbook


def _records() -> list[OutputRecord]:
    return [
        OutputRecord("SEK", "1200.00", "2025-01-01", "ENTITY_ID", "Ads"),
        OutputRecord("SEK", "800.00", "2025-01-02", "ENTITY_ID", "Ads"),
        OutputRecord("EUR", "100.50", "2025-11-09", "E2", "Hosting"),
    ]


def _sheet_rows(path: Path) -> list[list[object]]:
    wb = load_workbook(path)
    ws = wb[SHEET_TITLE]
    return [list(row) for row in ws.iter_rows(values_only=True)]


def test_workbook_has_single_named_sheet(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "transformed.xlsx", _records())

    wb = load_workbook(path)
    assert wb.sheetnames == [SHEET_TITLE]
    ws = wb[SHEET_TITLE]
    assert ws.freeze_panes == "A2"
    assert ws.cell(row=1, column=1).font.bold


def test_workbook_values_match_csv(tmp_path: Path) -> None:
    records = _records()
    path = write_workbook(tmp_path / "transformed.xlsx", records)

    csv_rows = [line.split(",") for line in render_csv(records).split("\n")]

    assert _sheet_rows(path) == csv_rows


def test_workbook_stores_every_value_as_text(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "transformed.xlsx", _records())

    ws = load_workbook(path)[SHEET_TITLE]
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            assert cell.data_type == "s"
            assert isinstance(cell.value, str)


def test_formula_like_description_stays_text(tmp_path: Path) -> None:
    records = [OutputRecord("SEK", "1.00", "2025-01-01", "E1", "=SUM(A1:A2)")]

    path = write_workbook(tmp_path / "transformed.xlsx", records)

    ws = load_workbook(path)[SHEET_TITLE]
    cell = ws.cell(row=2, column=OUTPUT_COLUMNS.index("description") + 1)
    assert cell.value == "=SUM(A1:A2)"
    assert cell.data_type == "s"


def test_empty_records_still_write_header_row(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "transformed.xlsx", [])

    assert _sheet_rows(path) == [OUTPUT_COLUMNS]


def test_write_is_atomic(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "nested" / "transformed.xlsx", _records())

    assert path.exists()
    assert not (path.parent / "transformed.tmp.xlsx").exists()
