"""
Extraction context logger.

Provides logging interface for extraction context with automatic [extract] prefix.
All extraction modules should import from this module, not from loguru directly.
"""

from pathlib import Path

from loguru import logger

from mediabrief.utils.logger import setup_run_logger

CONTEXT_PREFIX = "[extract]"


def setup_extraction_logger(log_dir: Path, provider: str) -> Path:
    """
    Setup logger for an import run.

    Args:
        log_dir: Directory for this import session
        provider: Provider name for provenance (e.g., "openai/gpt-4o-mini")

    Returns:
        Path to log file
    """
    return setup_run_logger("import", log_dir, provenance={"LLM provider": provider})


# Wrapper functions with automatic [extract] prefix


def _log_info(message: str) -> None:
    """Log info message with [extract] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [extract] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [extract] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [extract] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [extract] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level extraction-specific logging helpers


def log_extraction_start(filename: str, provider: str, reinforced: bool) -> None:
    """Log start of one extraction attempt."""
    attempt = "reinforced retry" if reinforced else "initial attempt"
    _log_info(f"Extracting placements from {filename} via {provider} ({attempt})")


def log_extraction_result(result, response) -> None:
    """
    Log a parsed extraction attempt.

    Args:
        result: ExtractionResult
        response: LLMResponse the result was parsed from
    """
    _log_success(
        f"Parsed {len(result.placements)} placement(s), channel: {result.detected_channel}, "
        f"publisher: {result.detected_publisher}"
    )
    _log_debug(f"Tokens in/out: {response.input_tokens}/{response.output_tokens}")


def log_validation_result(validation) -> None:
    """Log a ValidationResult with every issue at warning level."""
    if validation.valid:
        _log_success("Validation passed")
        return

    _log_warning(f"Validation failed with {len(validation.issues)} issue(s)")
    for issue in validation.issues:
        _log_warning(f"  {issue}")
