"""
Bounded retry around extraction + validation.

A second extraction is attempted only when validation fails with a generic
site name issue, and at most once. Other issue classes never trigger a retry.
"""

from typing import Optional, Tuple

from mediabrief.contexts.extraction.extraction_client import ExtractionClient
from mediabrief.contexts.extraction.logger import _log_info, _log_warning, log_validation_result
from mediabrief.contexts.extraction.placement_data_structure import (
    DebugTrail,
    ExtractionResult,
    ValidationResult,
)
from mediabrief.contexts.extraction.validator import is_generic_name_issue, validate_result
from mediabrief.contexts.intake.content_extractor import CanonicalContent
from mediabrief.exceptions import ExtractionError, ModelUnavailable


def should_retry(validation: ValidationResult) -> bool:
    """Retry only for an invalid result with at least one generic-name issue."""
    return not validation.valid and any(is_generic_name_issue(i) for i in validation.issues)


def run_with_retry(
    content: CanonicalContent,
    channel: Optional[str],
    publisher: Optional[str],
    client: Optional[ExtractionClient] = None,
    trail: Optional[DebugTrail] = None,
) -> Tuple[ExtractionResult, ValidationResult]:
    """
    Extract and validate, retrying once with a reinforced instruction on generic names.

    Selection after a retry:
    - the retry's result if it validates
    - otherwise whichever attempt has fewer issues (the first attempt on a tie),
      paired with its own validation

    If the retry call itself fails (ExtractionError / ModelUnavailable), the first
    attempt is returned. Errors from the first call propagate.

    Args:
        content: Canonical schedule content
        channel: Operator's declared channel
        publisher: Operator's declared publisher
        client: ExtractionClient (default: one using the configured provider)
        trail: Session debug trail (default: a fresh one)

    Returns:
        (result, validation) tuple
    """
    client = client or ExtractionClient()
    trail = trail if trail is not None else DebugTrail()

    result = client.extract_placements(content, channel, publisher, trail)
    validation = validate_result(result)
    trail.add(_describe_validation(validation))
    log_validation_result(validation)

    if not should_retry(validation):
        return result, validation

    trail.add("Generic site names detected, retrying once with reinforced instruction")
    _log_info("Generic site names detected, retrying once with reinforced instruction")

    try:
        retry_result = client.extract_placements(content, channel, publisher, trail, reinforced=True)
    except (ExtractionError, ModelUnavailable) as e:
        trail.add(f"Retry failed, keeping first attempt: {str(e).splitlines()[0]}")
        _log_warning(f"Retry failed, keeping first attempt: {e}")
        return result, validation

    retry_validation = validate_result(retry_result)
    trail.add(_describe_validation(retry_validation))
    log_validation_result(retry_validation)

    if retry_validation.valid or len(retry_validation.issues) < len(validation.issues):
        trail.add(
            f"Retry accepted ({len(retry_validation.issues)} issue(s) vs {len(validation.issues)})"
        )
        return retry_result, retry_validation

    trail.add(
        f"Retry not better ({len(retry_validation.issues)} issue(s) vs {len(validation.issues)}), "
        f"keeping first attempt"
    )
    return result, validation


def _describe_validation(validation: ValidationResult) -> str:
    if validation.valid:
        return "Validation passed"
    return f"Validation failed with {len(validation.issues)} issue(s)"
