"""Timestamp and calendar-date utilities."""

import re
from datetime import date, datetime
from typing import Optional, Union

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])")

# Day-first numeric dates (Australian/NZ schedules): 20/03/2024, 20.03.2024, 20-03-2024
_DAY_FIRST = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{4})$")

# Month-name formats tried in order after the numeric patterns
_NAMED_MONTH_FORMATS = (
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d-%b-%Y",
    "%d %b %y",
)


def now() -> str:
    """Current local time as a compact, sortable string for log directory names."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Parse a schedule date into a calendar date.

    Accepts ISO dates (optionally followed by a time component), day-first
    numeric dates and dates with month names. Returns None for anything else,
    including impossible calendar dates like 2024-02-30.

    Examples:
        parse_date("2024-03-20")      # date(2024, 3, 20)
        parse_date("20/03/2024")      # date(2024, 3, 20)
        parse_date("5 Mar 2024")      # date(2024, 3, 5)
        parse_date("not-a-date")      # None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        match = _ISO_PREFIX.match(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)

        match = _DAY_FIRST.match(text)
        if match:
            day, month, year = (int(part) for part in match.groups())
            return date(year, month, day)
    except ValueError:
        return None

    for fmt in _NAMED_MONTH_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


def to_iso_date(value: Union[str, date, None]) -> Optional[str]:
    """ISO string for a parseable date, None otherwise."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None
