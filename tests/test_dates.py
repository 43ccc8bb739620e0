"""Tests for canonical date keys."""

from datetime import date, datetime

import pytest

from ai_digest.dates import canonical_date, day_bounds, parse_date_key, resolve_date_key
from ai_digest.errors import InvalidDateError

TODAY = date(2026, 2, 25)


def test_canonical_date_has_no_zero_padding() -> None:
    assert canonical_date(date(2026, 2, 5)) == "February 5, 2026"
    assert canonical_date(date(2025, 12, 31)) == "December 31, 2025"


def test_parse_date_key_roundtrip() -> None:
    assert parse_date_key("February 5, 2026") == date(2026, 2, 5)


@pytest.mark.parametrize("key", ["2026-02-05", "Feb 5 2026", "Februaryish 5, 2026", ""])
def test_parse_date_key_rejects_malformed(key: str) -> None:
    with pytest.raises(InvalidDateError):
        parse_date_key(key)


@pytest.mark.parametrize("key", [None, "", "today", " Today "])
def test_resolve_today_sentinels(key: str | None) -> None:
    assert resolve_date_key(key, today=TODAY) == ("February 25, 2026", TODAY)


def test_resolve_past_day_is_canonicalized() -> None:
    key, day = resolve_date_key("February 05, 2026", today=TODAY)
    assert key == "February 5, 2026"
    assert day == date(2026, 2, 5)


def test_resolve_rejects_future_day() -> None:
    with pytest.raises(InvalidDateError, match="future"):
        resolve_date_key("February 26, 2026", today=TODAY)


def test_day_bounds_cover_one_local_day() -> None:
    start, end = day_bounds(date(2026, 2, 5))
    assert datetime.fromtimestamp(start).date() == date(2026, 2, 5)
    assert datetime.fromtimestamp(end).date() == date(2026, 2, 6)
    assert datetime.fromtimestamp(end - 1).date() == date(2026, 2, 5)
