"""
Intake context logger.

Provides logging interface for intake context with automatic [intake] prefix.
All intake modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[intake]"


def _log_info(message: str) -> None:
    """Log info message with [intake] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [intake] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [intake] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_intake_start(filename: str, size: int, source_format: str) -> None:
    """Log start of content normalization."""
    _log_info(f"Normalizing {filename} as {source_format} ({size} bytes)")


def log_intake_result(content) -> None:
    """Log the shape of normalized content (CanonicalContent)."""
    if content.kind == "images":
        _log_info(f"{content.filename}: rendered {len(content.pages)} page image(s)")
    else:
        _log_info(f"{content.filename}: {len(content.rows)} row(s), {len(content.text)} chars")
