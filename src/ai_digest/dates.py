"""Canonical date keys.

A date key is a human-readable string such as ``"February 25, 2026"``.
``"today"`` is a sentinel resolved against the server's local calendar day
and is never stored.
"""

from datetime import date, datetime, time, timedelta

from ai_digest.errors import InvalidDateError

TODAY = "today"

_FORMAT = "%B %d, %Y"


def canonical_date(day: date) -> str:
    """Render a day as its canonical key (no zero padding on the day)."""
    return f"{day.strftime('%B')} {day.day}, {day.year}"


def parse_date_key(key: str) -> date:
    """Parse a canonical date key back into a date.

    Raises:
        InvalidDateError: If the key is not a canonical date string.
    """
    try:
        return datetime.strptime(key.strip(), _FORMAT).date()
    except ValueError:
        raise InvalidDateError(f"Invalid date: {key!r}") from None


def resolve_date_key(key: str | None, *, today: date | None = None) -> tuple[str, date]:
    """Resolve a requested key to ``(canonical key, day)``.

    ``None``, an empty string and ``"today"`` all mean the current local day.

    Raises:
        InvalidDateError: If the key is malformed or names a future day.
    """
    today = today or date.today()
    if key is None or not key.strip() or key.strip().lower() == TODAY:
        return canonical_date(today), today

    day = parse_date_key(key)
    if day > today:
        raise InvalidDateError(f"Date is in the future: {key!r}")
    return canonical_date(day), day


def day_bounds(day: date) -> tuple[int, int]:
    """Unix timestamps ``[start, end)`` covering a local calendar day."""
    start = datetime.combine(day, time.min).astimezone()
    end = start + timedelta(days=1)
    return int(start.timestamp()), int(end.timestamp())
