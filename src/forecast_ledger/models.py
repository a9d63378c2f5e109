"""Data models shared by the parser, transformer and writers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral
from types import MappingProxyType
from typing import Any

from forecast_ledger import OUTPUT_COLUMNS, PARENT_TYPE


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Parsed input ─────────────────────────────────────────────────


@dataclass(frozen=True)
class HeaderSchema:
    """Validated layout of a forecast sheet.

    ``date_columns`` is strictly increasing and starts right of
    ``category_column``. ``expansions`` only has entries for week-range
    columns. ``entity_column``/``currency_column`` are set in multi-entity
    mode only.
    """

    headers: tuple[str, ...]
    category_column: int
    date_columns: tuple[int, ...]
    expansions: Mapping[int, tuple[str, ...]] = field(default_factory=dict)
    entity_column: int | None = None
    currency_column: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "date_columns", tuple(self.date_columns))
        object.__setattr__(
            self,
            "expansions",
            MappingProxyType({k: tuple(v) for k, v in self.expansions.items()}),
        )
        if not 0 <= self.category_column < len(self.headers):
            raise ValueError("category_column is out of range")
        previous = self.category_column
        for index in self.date_columns:
            if index <= previous or index >= len(self.headers):
                raise ValueError("date_columns must be increasing and right of category_column")
            previous = index
        unknown = set(self.expansions) - set(self.date_columns)
        if unknown:
            raise ValueError(f"expansions reference non-date columns: {sorted(unknown)}")

    @property
    def is_multi_entity(self) -> bool:
        return self.entity_column is not None and self.currency_column is not None


@dataclass(frozen=True)
class ParsedTable:
    schema: HeaderSchema
    rows: tuple[tuple[str, ...], ...]


# ── Output ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class OutputRecord:
    """One ledger import row."""

    currency: str
    amount: str
    date: str
    parent_id: str
    description: str
    parent_type: str = PARENT_TYPE

    @property
    def category(self) -> str:
        return self.description

    def to_row(self) -> tuple[str, ...]:
        return (
            self.currency,
            self.amount,
            self.date,
            self.parent_id,
            self.parent_type,
            self.description,
            self.category,
        )

    def to_dict(self) -> dict[str, str]:
        return dict(zip(OUTPUT_COLUMNS, self.to_row()))


# ── Run artifacts ────────────────────────────────────────────────


@dataclass
class QCReport:
    """Quality-control report emitted alongside every run.

    Contract invariant: ``skipped_rows == rows_in - rows_out``.
    """

    rows_in: int = 0
    rows_out: int = 0
    skipped_rows: int = 0
    records_out: int = 0
    date_columns: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.skipped_rows = _to_non_negative_int(self.skipped_rows, "skipped_rows")
        self.records_out = _to_non_negative_int(self.records_out, "records_out")
        self.date_columns = _to_string_list(self.date_columns, "date_columns")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.skipped_rows != self.rows_in - self.rows_out:
            raise ValueError("skipped_rows must equal rows_in - rows_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "skipped_rows": self.skipped_rows,
            "records_out": self.records_out,
            "date_columns": list(self.date_columns),
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single conversion run."""

    tool: str = "forecast-ledger"
    version: str = ""
    run_id: str = ""
    input_path: str = ""
    output_dir: str = ""
    outputs: list[str] = field(default_factory=list)
    created_at_utc: str = ""
    rows_in: int = 0
    records_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.records_out = _to_non_negative_int(self.records_out, "records_out")
        self.outputs = _to_string_list(self.outputs, "outputs")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "run_id": self.run_id,
            "input_path": self.input_path,
            "output_dir": self.output_dir,
            "outputs": list(self.outputs),
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "records_out": self.records_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
