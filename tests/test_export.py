from __future__ import annotations

from pathlib import Path

from forecast_ledger import OUTPUT_COLUMNS
from forecast_ledger.export import records_to_frame, render_csv, write_csv
from forecast_ledger.models import OutputRecord
from forecast_ledger.transform import convert

HEADER_LINE = (
    "amount.currency,amount.stringValue,date,parent.id,parent.type,"
    "description,metadata.atlar.category"
)


def _record(**overrides: str) -> OutputRecord:
    values = {
        "currency": "SEK",
        "amount": "1200.00",
        "date": "2025-01-01",
        "parent_id": "ENTITY_ID",
        "description": "Ads",
    }
    values.update(overrides)
    return OutputRecord(**values)


def test_render_csv_exact_text() -> None:
    records, _qc = convert(
        [
            ["Category", "2025-01-01", "2025-01-02"],
            ["Marketing>Ads", "1200", ""],
            ["R&D>Hosting", "", "100,50"],
        ]
    )

    assert render_csv(records) == (
        f"{HEADER_LINE}\n"
        "SEK,1200.00,2025-01-01,ENTITY_ID,ENTITY,Ads,Ads\n"
        "SEK,100.50,2025-01-02,ENTITY_ID,ENTITY,Hosting,Hosting"
    )


def test_render_csv_has_no_trailing_newline_or_bom() -> None:
    text = render_csv([_record()])

    assert not text.endswith("\n")
    assert not text.startswith("\ufeff")
    assert text.splitlines()[0] == HEADER_LINE


def test_render_csv_empty_is_empty_string() -> None:
    assert render_csv([]) == ""


def test_render_csv_quotes_values_with_commas() -> None:
    text = render_csv([_record(description="Rent, office")])

    assert text.splitlines()[1].endswith('"Rent, office","Rent, office"')


def test_records_to_frame_renormalises_dates() -> None:
    frame = records_to_frame([_record(date="03/04/2025"), _record(date="garbage")])

    assert list(frame.columns) == OUTPUT_COLUMNS
    assert list(frame["date"]) == ["2025-03-04", "garbage"]


def test_write_csv_writes_rendered_text(tmp_path: Path) -> None:
    path = write_csv(tmp_path / "out" / "transformed.csv", [_record()])

    assert path.read_text(encoding="utf-8") == render_csv([_record()])
