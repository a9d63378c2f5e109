"""Table parser: raw cell grid in, validated schema + data rows out."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from datetime import date, datetime
from numbers import Real

from forecast_ledger.dates import (
    DEFAULT_POLICY,
    SERIAL_HEADER_YEAR_RANGE,
    DatePolicy,
    serial_to_iso,
)
from forecast_ledger.errors import (
    EmptyDatasetError,
    EmptyFileError,
    MissingCategoryColumnError,
    MissingRequiredColumnError,
    NoDateColumnsError,
)
from forecast_ledger.headers import scan_date_columns
from forecast_ledger.models import HeaderSchema, ParsedTable

logger = logging.getLogger(__name__)

RawGrid = Sequence[Sequence[object]]

CATEGORY_LABEL = "category"
ENTITY_ID_LABELS = frozenset({"entity id", "parent.id"})
CURRENCY_LABELS = frozenset({"currency", "amount.currency"})

_LABEL_SEPARATORS_RE = re.compile(r"[\s_]+")


# ── Cell conversion ──────────────────────────────────────────────


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def cell_to_string(value: object) -> str:
    """Render a raw cell the way it reads in the sheet (``1200.0`` -> ``1200``)."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if _is_number(value):
        number = float(value)  # type: ignore[arg-type]
        if math.isnan(number):
            return ""
        if number.is_integer():
            return str(int(number))
        return str(value)
    return str(value)


def header_to_string(value: object) -> str:
    """Like :func:`cell_to_string`, but numeric cells become serial dates when plausible."""
    if _is_number(value) and value:
        iso = serial_to_iso(float(value), year_range=SERIAL_HEADER_YEAR_RANGE)  # type: ignore[arg-type]
        if iso is not None:
            return iso
    return cell_to_string(value)


def _label(header: str) -> str:
    return _LABEL_SEPARATORS_RE.sub(" ", header.strip().lower())


def find_column(headers: Sequence[str], labels: frozenset[str]) -> int | None:
    for index, header in enumerate(headers):
        if _label(header) in labels:
            return index
    return None


def find_category_column(headers: Sequence[str]) -> int | None:
    for index, header in enumerate(headers):
        if header.strip().lower() == CATEGORY_LABEL:
            return index
    return None


def _is_blank_row(row: Sequence[str]) -> bool:
    return all(not cell.strip() for cell in row)


# ── Parsing ──────────────────────────────────────────────────────


def _build_table(
    grid: RawGrid,
    policy: DatePolicy,
    *,
    multi_entity: bool,
) -> ParsedTable:
    if len(grid) == 0:
        raise EmptyFileError()

    headers = [header_to_string(cell) for cell in grid[0]]

    entity_column: int | None = None
    currency_column: int | None = None
    if multi_entity:
        entity_column = find_column(headers, ENTITY_ID_LABELS)
        if entity_column is None:
            raise MissingRequiredColumnError("Entity ID")
        currency_column = find_column(headers, CURRENCY_LABELS)
        if currency_column is None:
            raise MissingRequiredColumnError("Currency")

    category_column = find_category_column(headers)
    if category_column is None:
        raise MissingCategoryColumnError()

    scan = scan_date_columns(headers, category_column, policy)
    if not scan.date_columns:
        raise NoDateColumnsError()

    width = len(headers)
    rows: list[tuple[str, ...]] = []
    for raw_row in grid[1:]:
        cells = [cell_to_string(cell) for cell in list(raw_row)[:width]]
        if _is_blank_row(cells):
            continue
        cells.extend([""] * (width - len(cells)))
        rows.append(tuple(cells))

    dropped = len(grid) - 1 - len(rows)
    if dropped:
        logger.debug("Dropped %d blank rows", dropped)
    if not rows:
        raise EmptyDatasetError()

    schema = HeaderSchema(
        headers=tuple(headers),
        category_column=category_column,
        date_columns=scan.date_columns,
        expansions=scan.expansions,
        entity_column=entity_column,
        currency_column=currency_column,
    )
    logger.debug(
        "Parsed %d data rows; category column %d, %d date columns",
        len(rows),
        category_column,
        len(scan.date_columns),
    )
    return ParsedTable(schema=schema, rows=tuple(rows))


def parse_grid(grid: RawGrid, policy: DatePolicy = DEFAULT_POLICY) -> ParsedTable:
    """Parse a single-entity forecast grid.

    Raises
    ------
    EmptyFileError
        If *grid* has no rows.
    MissingCategoryColumnError
        If no header reads "Category".
    NoDateColumnsError
        If no date header follows the category column.
    EmptyDatasetError
        If every row below the header is blank.
    """
    return _build_table(grid, policy, multi_entity=False)


def parse_grid_multi(grid: RawGrid, policy: DatePolicy = DEFAULT_POLICY) -> ParsedTable:
    """Parse a grid that carries per-row entity id and currency columns.

    Raises :class:`MissingRequiredColumnError` when either column is absent,
    plus everything :func:`parse_grid` raises.
    """
    return _build_table(grid, policy, multi_entity=True)
