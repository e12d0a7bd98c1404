"""
Staging context logger.

Provides logging interface for staging context with automatic [stage] prefix.
All staging modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[stage]"


def _log_info(message: str) -> None:
    """Log info message with [stage] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [stage] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [stage] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_state_change(session_id: str, old_state, new_state) -> None:
    """Log an import session state transition."""
    _log_debug(f"Session {session_id}: {old_state.value} -> {new_state.value}")


def log_staged(session) -> None:
    """Log a freshly staged session (ImportSession)."""
    _log_info(
        f"Session {session.id}: staged {len(session.candidates)} candidate(s), "
        f"buffer {session.buffer_days} day(s)"
    )


def log_confirmed(session, items: list, cart_size: int) -> None:
    """Log a confirm call and the resulting cart size."""
    _log_success(
        f"Session {session.id}: confirmed {len(items)} of {len(session.candidates)} "
        f"candidate(s) into cart ({cart_size} item(s))"
    )
