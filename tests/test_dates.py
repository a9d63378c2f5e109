"""Tests for header date resolution and week-range expansion."""

from __future__ import annotations

import calendar

import pytest

from forecast_ledger.dates import (
    DatePolicy,
    expand_week_range,
    match_week_range,
    normalize_token,
    resolve_date,
    serial_to_iso,
)


@pytest.mark.parametrize("token", ["2025-01-01", "1999-12-31", "2025-13-45"])
def test_iso_dates_are_returned_verbatim(token: str) -> None:
    assert resolve_date(token) == token


def test_slash_dates_prefer_month_first() -> None:
    assert resolve_date("03/04/2025") == "2025-03-04"


def test_slash_dates_fall_back_to_day_first() -> None:
    assert resolve_date("25/12/2025") == "2025-12-25"


def test_slash_dates_accept_single_digit_parts() -> None:
    assert resolve_date("1/2/2025") == "2025-01-02"


def test_slash_date_with_no_valid_reading_is_unresolved() -> None:
    assert resolve_date("31/31/2025") is None


def test_dayfirst_policy_flips_the_tie_break() -> None:
    policy = DatePolicy(dayfirst=True)

    assert resolve_date("03/04/2025", policy) == "2025-04-03"
    assert resolve_date("12/25/2025", policy) == "2025-12-25"


def test_every_month_day_pair_resolves_in_2025() -> None:
    names = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    for month, name in enumerate(names, start=1):
        for day in range(1, calendar.monthrange(2025, month)[1] + 1):
            assert resolve_date(f"{name} {day}") == f"2025-{month:02d}-{day:02d}"


def test_month_names_are_case_insensitive_and_accept_okt() -> None:
    assert resolve_date("okt 29") == "2025-10-29"
    assert resolve_date("OKT 1") == "2025-10-01"
    assert resolve_date("oct 30") == "2025-10-30"
    assert resolve_date("NOV 1") == "2025-11-01"


def test_impossible_month_day_is_unresolved() -> None:
    assert resolve_date("Feb 30") is None


def test_month_day_uses_policy_year() -> None:
    assert resolve_date("Mar 1", DatePolicy(default_year=2026)) == "2026-03-01"


def test_serial_resolves_from_1899_epoch() -> None:
    assert resolve_date("45658") == "2025-01-01"
    assert resolve_date("1") == "1899-12-31"


def test_serial_zero_is_rejected() -> None:
    assert resolve_date("0") is None


def test_serial_resolution_skips_header_year_range() -> None:
    # 200000 days after the epoch lands past 2100.
    assert resolve_date("200000") == serial_to_iso(200000)
    assert serial_to_iso(200000) is not None
    assert serial_to_iso(200000, year_range=(1900, 2100)) is None


def test_serial_to_iso_handles_fractional_and_bad_values() -> None:
    assert serial_to_iso(45658.75) == "2025-01-01"
    assert serial_to_iso(-3) is None
    assert serial_to_iso(float("nan")) is None
    assert serial_to_iso(10**12) is None


@pytest.mark.parametrize("token", ["", "   ", "hello", "2025/01/01", "Q1 2025", None])
def test_unrecognised_tokens_are_unresolved(token: str | None) -> None:
    assert resolve_date(token) is None


def test_normalize_token_collapses_space_and_dashes() -> None:
    assert normalize_token("  Oct 27 –  Nov 2 ") == "Oct 27 - Nov 2"
    assert normalize_token("Nov 3—9") == "Nov 3-9"


def test_cross_month_range_expands_to_seven_days() -> None:
    dates = expand_week_range("Oct 27 - Nov 2")

    assert len(dates) == 7
    assert dates[0] == "2025-10-27"
    assert dates[-1] == "2025-11-02"
    assert "2025-10-31" in dates


def test_same_month_range_expands() -> None:
    assert expand_week_range("Nov 3-9") == [f"2025-11-{day:02d}" for day in range(3, 10)]


def test_range_with_en_dash_and_localized_month() -> None:
    assert expand_week_range("okt 27 – nov 2")[-1] == "2025-11-02"


def test_single_day_range() -> None:
    assert expand_week_range("Dec 31-31") == ["2025-12-31"]


def test_backwards_range_is_empty() -> None:
    assert expand_week_range("Nov 9-3") == []
    assert expand_week_range("Dec 29 - Jan 4") == []


def test_range_with_impossible_endpoint_is_not_a_range() -> None:
    assert match_week_range("Feb 27 - Feb 30") is None
    assert expand_week_range("Feb 27 - Feb 30") == []


def test_non_range_tokens_do_not_expand() -> None:
    assert expand_week_range("Oct 27") == []
    assert expand_week_range("2025-01-01") == []
