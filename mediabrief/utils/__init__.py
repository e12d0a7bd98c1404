"""
Shared utilities for mediabrief.

Common functionality used across contexts:
- Generative-model providers and JSON response parsing
- PDF page rendering
- Date parsing and run timestamps
- Logger configuration
"""

from mediabrief.utils.timestamp import now, parse_date

__all__ = ["now", "parse_date"]
