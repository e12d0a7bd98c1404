"""
Creative due-date calculation.

Pure functions: the due date is the flight start minus a buffer of calendar
days, recomputed over every candidate whenever the operator changes the buffer.
"""

import os
from dataclasses import replace
from datetime import timedelta
from typing import List, Optional

from dotenv import load_dotenv

from mediabrief.utils.timestamp import parse_date

load_dotenv()

DEFAULT_BUFFER_DAYS = int(os.getenv("DEFAULT_BUFFER_DAYS", "5"))


def due_date(start_date, buffer_days: int) -> Optional[str]:
    """
    Compute a creative submission deadline.

    Args:
        start_date: Flight start (ISO string, day-first string, or date)
        buffer_days: Non-negative number of calendar days before the flight start

    Returns:
        ISO date string, or None when start_date is missing or unparsable, or
        the buffer reaches before the earliest representable date

    Raises:
        ValueError: If buffer_days is not a non-negative integer

    Examples:
        due_date("2024-03-20", 5)   # "2024-03-15"
        due_date(None, 5)           # None
        due_date("not-a-date", 5)   # None
        due_date("2024-03-20", 1_000_000)  # None (before year 1)
    """
    validate_buffer(buffer_days)

    start = parse_date(start_date)
    if start is None:
        return None
    try:
        return (start - timedelta(days=buffer_days)).isoformat()
    except OverflowError:
        # buffer reaches back before date.min
        return None


def validate_buffer(buffer_days) -> int:
    """Return buffer_days unchanged, or raise ValueError if it is not a non-negative int."""
    if isinstance(buffer_days, bool) or not isinstance(buffer_days, int) or buffer_days < 0:
        raise ValueError(f"buffer_days must be a non-negative integer, got: {buffer_days!r}")
    return buffer_days


def apply_buffer(candidates: List, buffer_days: int) -> List:
    """
    Recompute the due date of every candidate.

    Returns new ImportCandidate objects; only due_date differs from the input.
    """
    validate_buffer(buffer_days)
    return [
        replace(candidate, due_date=due_date(candidate.placement.start_date, buffer_days))
        for candidate in candidates
    ]
