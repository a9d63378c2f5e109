"""I/O helpers: load input files into raw grids, write artifacts."""

from __future__ import annotations

import io
import json
import warnings
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, cast

import pandas as pd

from forecast_ledger.errors import UnsupportedFormatError

CSV_SUFFIXES = (".csv",)
OPENPYXL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
XLRD_SUFFIXES = (".xls",)
SUPPORTED_SUFFIXES = CSV_SUFFIXES + OPENPYXL_SUFFIXES + XLRD_SUFFIXES

_ENCODINGS = ("utf-8-sig", "utf-8", "latin-1")

# Cells come back exactly as typed: "N/A", "NA" or "null" are text, not gaps.
_RAW_CELLS: dict[str, Any] = {"keep_default_na": False, "na_filter": False}

# ── Loading ──────────────────────────────────────────────────────


def _frame_to_grid(df: pd.DataFrame) -> list[list[object]]:
    """Rows of raw cell values, with NaN/NaT gaps turned into ``None``."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(df.notna(), None)
    return [list(row) for row in cleaned.itertuples(index=False, name=None)]


def detect_delimiter(text: str) -> str:
    """Tab when the text has tabs and no commas, comma otherwise."""
    return "\t" if "\t" in text and "," not in text else ","


def _keep_row(fields: list[str]) -> list[str]:
    return fields


def parse_delimited_text(text: str, delimiter: str | None = None) -> list[list[object]]:
    """Split delimited text into a raw grid of strings.

    Blank lines are skipped. Rows wider than the first row are kept and cut
    to its width; shorter rows are padded. Raises ``ValueError`` if the
    text is not well-formed delimited data (e.g. an unclosed quote).
    """
    sep = delimiter or detect_delimiter(text)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                sep=sep,
                header=None,
                dtype=str,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=_keep_row,
                **_RAW_CELLS,
            )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as exc:
        raise ValueError(f"Could not parse delimited text: {exc}") from exc
    return _frame_to_grid(df)


def _read_text(path: Path) -> str:
    raw = path.read_bytes()
    last_exc: Exception | None = None
    for encoding in _ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as exc:
            last_exc = exc
    raise ValueError(f"Could not read CSV {path} (decode failed)") from last_exc


def load_grid(path: Path, delimiter: str | None = None) -> list[list[object]]:
    """Load a CSV or workbook and return its first sheet as a raw grid.

    Workbook cells keep their raw values (numbers stay numbers, so date
    headers stored as serials reach the parser as serials).

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    UnsupportedFormatError
        If the extension is not one of :data:`SUPPORTED_SUFFIXES`.
    ValueError
        If *path* is a directory, or decoding/parsing fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix in CSV_SUFFIXES:
        try:
            return parse_delimited_text(_read_text(path), delimiter)
        except ValueError as exc:
            raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from exc

    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    if suffix in OPENPYXL_SUFFIXES:
        return _frame_to_grid(read_excel(
            path, sheet_name=0, header=None, engine="openpyxl", **_RAW_CELLS
        ))

    if suffix in XLRD_SUFFIXES:
        try:
            df = read_excel(path, sheet_name=0, header=None, engine="xlrd", **_RAW_CELLS)
        except ImportError as exc:
            raise ValueError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc
        return _frame_to_grid(df)

    raise UnsupportedFormatError(suffix)


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_text(path: Path, text: str) -> Path:
    """Write *text* to *path* atomically (no BOM, no newline translation)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    tmp_path.replace(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return write_text(path, payload)
