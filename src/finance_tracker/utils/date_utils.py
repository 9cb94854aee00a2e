"""Date parsing and formatting utilities."""

import re
from datetime import date, datetime

# Interchange format used by CSV export: 01/03/2024 10:00:00
CSV_DATETIME_FORMAT = "%d/%m/%Y %H:%M:%S"

# Persisted form: 2024-03-01T10:00:00
ISO_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Slash-separated dates are always day-first (DD/MM/YYYY)
_SLASH_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def to_naive(value: datetime) -> datetime:
    """Drop timezone info, converting aware values to local time first.

    All stored timestamps are naive so they compare by natural ordering.
    """
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_iso_datetime(raw: str) -> datetime:
    """Parse an ISO-like datetime string (2024-03-01T10:00[:00][Z|+hh:mm]).

    Raises:
        ValueError: If the string is not a valid ISO datetime.
    """
    if not raw or not raw.strip():
        raise ValueError("Empty datetime string")
    text = raw.strip()
    # fromisoformat before 3.11 rejects a trailing Z
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_naive(datetime.fromisoformat(text))


def normalize_slash_datetime(raw: str) -> str:
    """Convert "DD/MM/YYYY[ HH:MM:SS]" to "YYYY-MM-DDTHH:MM:SS".

    The time defaults to 00:00:00 when absent.

    Raises:
        ValueError: If the value does not follow the day-first slash layout.
    """
    date_part, _, time_part = raw.strip().partition(" ")
    time_part = time_part.strip()

    match = _SLASH_DATE_PATTERN.match(date_part)
    if not match:
        raise ValueError(f"Cannot parse date: '{raw}'")
    day, month, year = match.groups()

    if not time_part:
        time_part = "00:00:00"
    elif not _TIME_PATTERN.match(time_part):
        raise ValueError(f"Cannot parse time: '{raw}'")

    hours, minutes, *rest = time_part.split(":")
    seconds = rest[0] if rest else "00"
    return f"{year}-{int(month):02d}-{int(day):02d}T{int(hours):02d}:{minutes}:{seconds}"


def format_csv_datetime(value: datetime) -> str:
    """Format a timestamp as DD/MM/YYYY HH:MM:SS (24-hour, zero-padded)."""
    return value.strftime(CSV_DATETIME_FORMAT)


def format_iso_datetime(value: datetime) -> str:
    """Format a timestamp as YYYY-MM-DDTHH:MM:SS."""
    return value.strftime(ISO_DATETIME_FORMAT)


def format_short_date(d: date) -> str:
    """Format a date like "Mar 1"."""
    return f"{d.strftime('%b')} {d.day}"


def is_datetime_in_range(
    value: datetime,
    start: datetime | None = None,
    end: datetime | None = None,
) -> bool:
    """Check if a timestamp is within a range.

    Args:
        value: Timestamp to check.
        start: Start of range (inclusive). None means no lower bound.
        end: End of range (inclusive). None means no upper bound.

    Returns:
        True if the timestamp is within range.
    """
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True
