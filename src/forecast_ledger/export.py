"""Flat-table renderings of output records."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from forecast_ledger import OUTPUT_COLUMNS
from forecast_ledger.dates import resolve_date
from forecast_ledger.io import write_text
from forecast_ledger.models import OutputRecord


def records_to_frame(records: Sequence[OutputRecord]) -> pd.DataFrame:
    """One string column per output field, in :data:`OUTPUT_COLUMNS` order.

    Dates are passed back through the resolver as a final normalisation.
    """
    rows = []
    for record in records:
        row = list(record.to_row())
        row[2] = resolve_date(record.date) or record.date
        rows.append(row)
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS, dtype="string")


def render_csv(records: Sequence[OutputRecord]) -> str:
    """Comma-separated text: header plus one line per record.

    No BOM and no trailing newline; empty input renders as ``""``.
    """
    if not records:
        return ""
    text = records_to_frame(records).to_csv(index=False, lineterminator="\n")
    return text.removesuffix("\n")


def write_csv(path: Path, records: Sequence[OutputRecord]) -> Path:
    return write_text(path, render_csv(records))
