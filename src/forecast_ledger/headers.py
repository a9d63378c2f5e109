"""Header classification: decide which columns after Category hold dates."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from forecast_ledger.dates import (
    DEFAULT_POLICY,
    ISO_DATE_RE,
    MONTH_DAY_RE,
    SERIAL_RE,
    DatePolicy,
    expand_week_range,
    normalize_token,
    resolve_date,
)

logger = logging.getLogger(__name__)

# Classification only accepts the zero-padded slash shape; resolution is looser.
_SLASH_HEADER_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

_SINGLE_DATE_SHAPES = (ISO_DATE_RE, _SLASH_HEADER_RE, SERIAL_RE, MONTH_DAY_RE)


# ── Outcomes ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class DateLike:
    """Header denotes one or more dates.

    ``dates`` holds the resolved ISO dates (empty when the header has a date
    shape but no real date behind it, e.g. ``99/99/2025``). ``is_range``
    marks week-range headers whose dates are an expansion.
    """

    dates: tuple[str, ...] = ()
    is_range: bool = False


@dataclass(frozen=True)
class Blank:
    """Empty header: a gap in the date run, not its end."""


@dataclass(frozen=True)
class Terminator:
    """Non-empty, non-date header: the date run stops here."""

    header: str = ""


HeaderOutcome = DateLike | Blank | Terminator


def normalize_header(header: object) -> str:
    if header is None:
        return ""
    return normalize_token(str(header))


def classify_header(header: object, policy: DatePolicy = DEFAULT_POLICY) -> HeaderOutcome:
    """Classify a single header cell."""
    normalized = normalize_header(header)
    if not normalized:
        return Blank()

    expansion = expand_week_range(normalized, policy)
    if expansion:
        return DateLike(dates=tuple(expansion), is_range=True)

    if any(shape.match(normalized) for shape in _SINGLE_DATE_SHAPES):
        resolved = resolve_date(normalized, policy)
        return DateLike(dates=(resolved,) if resolved else ())

    return Terminator(header=normalized)


# ── Scan ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HeaderScan:
    date_columns: tuple[int, ...]
    expansions: dict[int, tuple[str, ...]]
    terminator_column: int | None = None


def scan_date_columns(
    headers: Sequence[object],
    category_column: int,
    policy: DatePolicy = DEFAULT_POLICY,
) -> HeaderScan:
    """Walk the headers right of *category_column* until a terminator."""
    date_columns: list[int] = []
    expansions: dict[int, tuple[str, ...]] = {}

    for index in range(category_column + 1, len(headers)):
        outcome = classify_header(headers[index], policy)
        if isinstance(outcome, Terminator):
            logger.debug("Date scan stopped at column %d (%r)", index, outcome.header)
            return HeaderScan(tuple(date_columns), expansions, terminator_column=index)
        if isinstance(outcome, Blank):
            logger.debug("Skipping blank header at column %d", index)
            continue
        date_columns.append(index)
        if outcome.is_range:
            expansions[index] = outcome.dates
        logger.debug("Column %d is a date header: %s", index, ", ".join(outcome.dates))

    return HeaderScan(tuple(date_columns), expansions)
