"""Date resolution for forecast headers.

Handles the four single-date encodings seen in forecast sheets (ISO,
slash-delimited, Excel serial, ``Mon D``) plus week-range spans such as
``Oct 27 - Nov 2`` or ``Nov 3-9``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

# ── Policy ───────────────────────────────────────────────────────

DEFAULT_YEAR = 2025
"""Year assumed for ``Mon D`` headers, which carry no year of their own."""

SERIAL_HEADER_YEAR_RANGE: tuple[int, int] = (1900, 2100)
"""Numeric header cells only count as dates when they land in this range."""

EXCEL_EPOCH = datetime(1899, 12, 30)


@dataclass(frozen=True)
class DatePolicy:
    """Tie-break rules for ambiguous header dates.

    ``dayfirst=False`` reads ``03/04/2025`` as March 4th and only falls back
    to day/month when month/day is not a real date. Downstream ledgers
    depend on this order, so it is configurable but never guessed.
    """

    default_year: int = DEFAULT_YEAR
    dayfirst: bool = False


DEFAULT_POLICY = DatePolicy()

# ── Patterns ─────────────────────────────────────────────────────

MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "okt": 10,
    "nov": 11,
    "dec": 12,
}
_MONTH_ALT = "|".join(MONTHS)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
SERIAL_RE = re.compile(r"^\d+$")
MONTH_DAY_RE = re.compile(rf"^({_MONTH_ALT})\s+(\d{{1,2}})$", re.IGNORECASE)

_RANGE_TWO_MONTHS_RE = re.compile(
    rf"^({_MONTH_ALT})\s+(\d{{1,2}})\s*-\s*({_MONTH_ALT})\s+(\d{{1,2}})$",
    re.IGNORECASE,
)
_RANGE_ONE_MONTH_RE = re.compile(
    rf"^({_MONTH_ALT})\s+(\d{{1,2}})\s*-\s*(\d{{1,2}})$",
    re.IGNORECASE,
)

_DASHES = str.maketrans({"–": "-", "—": "-"})
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_token(value: str) -> str:
    """Trim, collapse whitespace runs, and turn en/em dashes into ``-``."""
    return _WHITESPACE_RE.sub(" ", value.translate(_DASHES)).strip()


# ── Single dates ─────────────────────────────────────────────────


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def month_day_to_date(month_name: str, day: int, *, year: int = DEFAULT_YEAR) -> date | None:
    month = MONTHS.get(month_name.lower())
    if month is None:
        return None
    return _safe_date(year, month, day)


def serial_to_iso(
    serial: float, *, year_range: tuple[int, int] | None = None
) -> str | None:
    """Convert an Excel day serial (epoch 1899-12-30) to ``YYYY-MM-DD``.

    Serials <= 0 are rejected. *year_range* is only passed when converting a
    header cell; data-level resolution accepts any representable year.
    """
    try:
        if serial <= 0:
            return None
        resolved = (EXCEL_EPOCH + timedelta(days=serial)).date()
    except (OverflowError, ValueError):
        return None
    if year_range is not None:
        low, high = year_range
        if not low <= resolved.year <= high:
            return None
    return resolved.isoformat()


def _resolve_slash(first: int, second: int, year: int, *, dayfirst: bool) -> date | None:
    month_first = [(first, second), (second, first)]
    for month, day in (month_first[::-1] if dayfirst else month_first):
        resolved = _safe_date(year, month, day)
        if resolved is not None and resolved.year == year:
            return resolved
    return None


def resolve_date(token: str | None, policy: DatePolicy = DEFAULT_POLICY) -> str | None:
    """Resolve one header token to ``YYYY-MM-DD``, or ``None``.

    Rules are tried in order: ISO (returned verbatim), ``A/B/YYYY``,
    ``Mon D`` in ``policy.default_year``, then a bare Excel serial.
    """
    if not token:
        return None
    trimmed = token.strip()
    if not trimmed:
        return None

    if ISO_DATE_RE.match(trimmed):
        return trimmed

    slash = SLASH_DATE_RE.match(trimmed)
    if slash:
        first, second, year = (int(part) for part in slash.groups())
        resolved = _resolve_slash(first, second, year, dayfirst=policy.dayfirst)
        return resolved.isoformat() if resolved else None

    month_day = MONTH_DAY_RE.match(trimmed)
    if month_day:
        resolved = month_day_to_date(
            month_day.group(1), int(month_day.group(2)), year=policy.default_year
        )
        return resolved.isoformat() if resolved else None

    if SERIAL_RE.match(trimmed):
        return serial_to_iso(int(trimmed))

    return None


# ── Week ranges ──────────────────────────────────────────────────


def match_week_range(
    token: str, policy: DatePolicy = DEFAULT_POLICY
) -> tuple[date, date] | None:
    """Return the ``(start, end)`` endpoints of a week-range header."""
    normalized = normalize_token(token)
    year = policy.default_year

    two_months = _RANGE_TWO_MONTHS_RE.match(normalized)
    if two_months:
        start_month, start_day, end_month, end_day = two_months.groups()
        start = month_day_to_date(start_month, int(start_day), year=year)
        end = month_day_to_date(end_month, int(end_day), year=year)
    else:
        one_month = _RANGE_ONE_MONTH_RE.match(normalized)
        if not one_month:
            return None
        month, start_day, end_day = one_month.groups()
        start = month_day_to_date(month, int(start_day), year=year)
        end = month_day_to_date(month, int(end_day), year=year)

    if start is None or end is None:
        return None
    return start, end


def expand_week_range(token: str, policy: DatePolicy = DEFAULT_POLICY) -> list[str]:
    """Every ISO date from the range's start to its end, inclusive.

    Returns an empty list when *token* is not a range or its end precedes
    its start.
    """
    endpoints = match_week_range(token, policy)
    if endpoints is None:
        return []
    start, end = endpoints
    days = (end - start).days
    return [(start + timedelta(days=offset)).isoformat() for offset in range(days + 1)]
