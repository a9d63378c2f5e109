"""Row transformer: pair every data cell with its date and amount."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from forecast_ledger.amounts import format_amount, resolve_amount
from forecast_ledger.dates import DEFAULT_POLICY, DatePolicy, resolve_date
from forecast_ledger.headers import normalize_header
from forecast_ledger.models import OutputRecord, ParsedTable, QCReport
from forecast_ledger.parser import RawGrid, parse_grid, parse_grid_multi

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "SEK"
DEFAULT_PARENT_ID = "ENTITY_ID"


def category_leaf(category: str) -> str:
    """Last ``>``-separated segment of a category path, trimmed."""
    return category.split(">")[-1].strip()


def _cell(row: Sequence[str], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index]


def resolve_column_dates(
    table: ParsedTable, policy: DatePolicy = DEFAULT_POLICY
) -> dict[int, str | None]:
    """Representative date for every date column.

    Week-range columns collapse onto the last date of their expansion.
    """
    schema = table.schema
    dates: dict[int, str | None] = {}
    for index in schema.date_columns:
        expansion = schema.expansions.get(index)
        if expansion:
            dates[index] = expansion[-1]
        else:
            dates[index] = resolve_date(normalize_header(schema.headers[index]), policy)
    return dates


def _row_records(
    row: Sequence[str],
    column_dates: dict[int, str | None],
    *,
    category_column: int,
    currency: str,
    parent_id: str,
) -> list[OutputRecord]:
    description = category_leaf(_cell(row, category_column))
    records: list[OutputRecord] = []
    for index, iso_date in column_dates.items():
        amount = resolve_amount(_cell(row, index))
        if amount is None or iso_date is None:
            continue
        records.append(
            OutputRecord(
                currency=currency,
                amount=format_amount(amount),
                date=iso_date,
                parent_id=parent_id,
                description=description,
            )
        )
    return records


def transform_with_report(
    table: ParsedTable,
    *,
    currency: str | None = None,
    parent_id: str | None = None,
    policy: DatePolicy = DEFAULT_POLICY,
) -> tuple[list[OutputRecord], QCReport]:
    """Transform *table* and summarise what was kept and skipped.

    With *currency* and *parent_id* left as ``None`` both are read per row
    from the multi-entity columns.
    """
    schema = table.schema
    column_dates = resolve_column_dates(table, policy)
    unresolved = [schema.headers[i] for i, value in column_dates.items() if value is None]
    per_row_entity = currency is None or parent_id is None
    if per_row_entity and not schema.is_multi_entity:
        raise ValueError("Table was not parsed in multi-entity mode")

    records: list[OutputRecord] = []
    rows_out = 0
    blank_category = 0
    missing_entity = 0

    for row_number, row in enumerate(table.rows, start=1):
        if not _cell(row, schema.category_column).strip():
            blank_category += 1
            logger.debug("Row %d skipped: blank category", row_number)
            continue

        row_currency = currency
        row_parent = parent_id
        if per_row_entity:
            row_currency = _cell(row, schema.currency_column).upper().strip()
            row_parent = _cell(row, schema.entity_column).strip()
            if not row_currency or not row_parent:
                missing_entity += 1
                logger.debug("Row %d skipped: blank currency or entity id", row_number)
                continue

        row_records = _row_records(
            row,
            column_dates,
            category_column=schema.category_column,
            currency=row_currency or "",
            parent_id=row_parent or "",
        )
        if row_records:
            rows_out += 1
        records.extend(row_records)

    rows_in = len(table.rows)
    qc = QCReport(
        rows_in=rows_in,
        rows_out=rows_out,
        skipped_rows=rows_in - rows_out,
        records_out=len(records),
        date_columns=[schema.headers[i] for i in schema.date_columns],
    )
    if blank_category:
        qc.warnings.append(f"Skipped {blank_category} rows with a blank category")
    if missing_entity:
        qc.warnings.append(f"Skipped {missing_entity} rows with a blank currency or entity id")
    if unresolved:
        qc.warnings.append(f"Date headers that resolve to no date: {', '.join(unresolved)}")
    if not records:
        qc.warnings.append("No records produced: every amount cell was blank or unreadable")
    return records, qc


def transform_rows(
    table: ParsedTable,
    *,
    currency: str = DEFAULT_CURRENCY,
    parent_id: str = DEFAULT_PARENT_ID,
    policy: DatePolicy = DEFAULT_POLICY,
) -> list[OutputRecord]:
    """Emit one record per (row, date column) with a readable amount.

    Every record carries the caller's *currency* and *parent_id*.
    """
    records, _qc = transform_with_report(
        table, currency=currency, parent_id=parent_id, policy=policy
    )
    return records


def transform_rows_multi(
    table: ParsedTable, *, policy: DatePolicy = DEFAULT_POLICY
) -> list[OutputRecord]:
    """Like :func:`transform_rows`, reading currency and entity id per row."""
    records, _qc = transform_with_report(table, policy=policy)
    return records


def convert(
    grid: RawGrid,
    *,
    currency: str = DEFAULT_CURRENCY,
    parent_id: str = DEFAULT_PARENT_ID,
    multi_entity: bool = False,
    policy: DatePolicy = DEFAULT_POLICY,
) -> tuple[list[OutputRecord], QCReport]:
    """Parse *grid* and transform it in one step.

    Returns ``(records, qc_report)``. File-level problems raise the
    :mod:`forecast_ledger.errors` exceptions; row-level ones only show up
    as QC warnings.
    """
    if multi_entity:
        table = parse_grid_multi(grid, policy)
        return transform_with_report(table, policy=policy)
    table = parse_grid(grid, policy)
    return transform_with_report(
        table, currency=currency, parent_id=parent_id, policy=policy
    )
