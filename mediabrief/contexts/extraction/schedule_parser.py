"""
Schedule import pipeline.

Runs intake, extraction (with the bounded retry) and validation for one
uploaded file and produces the response shown to the operator. Every outcome,
success or failure, carries the session's debug trail.
"""

from dataclasses import replace
from typing import Iterable, Optional

from mediabrief.contexts.extraction.extraction_client import ExtractionClient
from mediabrief.contexts.extraction.logger import _log_error, _log_info, _log_success
from mediabrief.contexts.extraction.placement_data_structure import DebugTrail
from mediabrief.contexts.extraction.retry_controller import run_with_retry
from mediabrief.contexts.intake.content_extractor import extract_content
from mediabrief.exceptions import EmptyDocument, ScheduleImportError, UnsupportedFormat

_FORMAT_LABELS = {"spreadsheet": "Spreadsheet", "csv": "CSV"}

# Substring of a lower-cased site name -> publisher, checked in order
_PUBLISHER_HINTS = (
    ("lumo", "LUMO"),
    ("qms", "QMS"),
    ("jcdecaux", "JCDecaux"),
    ("jcd", "JCDecaux"),
    ("ooh", "oOh!"),
    ("bishopp", "Bishopp"),
    ("goa", "GOA"),
)


def infer_publisher(site_names: Iterable[Optional[str]]) -> Optional[str]:
    """
    Guess a publisher from site naming conventions (e.g. "JCD-NSW-01998").

    Returns:
        Publisher name of the first site name with a known hint, else None
    """
    for name in site_names:
        if not name:
            continue
        lowered = name.lower()
        for hint, publisher in _PUBLISHER_HINTS:
            if hint in lowered:
                return publisher
    return None


def parse_schedule(
    data: bytes,
    filename: str,
    declared_channel: Optional[str] = None,
    declared_publisher: Optional[str] = None,
    client: Optional[ExtractionClient] = None,
    session=None,
) -> dict:
    """
    Parse an uploaded media schedule into candidate placements.

    Validation failure is not an error: an invalid result is returned in full
    with its issues so the operator can decide what to keep.

    Args:
        data: Raw file bytes
        filename: Declared filename (extension selects the reader)
        declared_channel: Operator's channel for this import
        declared_publisher: Operator's publisher for this import
        client: ExtractionClient (default: one using the configured provider)
        session: Optional ImportSession, driven through
                 FILE_SELECTED -> EXTRACTING -> VALIDATED | EXTRACTION_FAILED

    Returns:
        On success:
            {"success": True, "detectedChannel", "detectedPublisher",
             "placements": [...], "validation": {"valid", "issues"},
             "debug": {"steps": [...]}}
        On failure:
            {"error": message, "debug": {"steps": [...]}}

    Example:
        >>> response = parse_schedule(Path("schedule.xlsx").read_bytes(), "schedule.xlsx", "ooh", "jcdecaux")
        >>> response["validation"]["valid"]
        True
    """
    trail = DebugTrail()
    trail.add(f"File received: {filename}, size: {len(data)} bytes")
    _start_session(session, filename)

    try:
        content = extract_content(data, filename)
        if content.kind == "images":
            trail.add(f"PDF rendered: {len(content.pages)} page image(s)")
            if content.skipped_pages:
                trail.add(
                    f"PDF has {content.total_pages} pages, rendering first {len(content.pages)}; "
                    f"{content.skipped_pages} page(s) not sent to the model"
                )
        else:
            trail.add(
                f"{_FORMAT_LABELS[content.source_format]} extracted: "
                f"{len(content.rows)} row(s), {len(content.text)} chars"
            )

        result, validation = run_with_retry(
            content, declared_channel, declared_publisher, client=client, trail=trail
        )
    except (UnsupportedFormat, EmptyDocument) as e:
        trail.add(f"Error: {str(e).splitlines()[0]}")
        return _failure(e, filename, trail, session)
    except ScheduleImportError as e:
        # the extraction client has already recorded the failing step
        return _failure(e, filename, trail, session)

    if result.detected_publisher is None:
        inferred = infer_publisher(p.site_name for p in result.placements)
        if inferred:
            result = replace(result, detected_publisher=inferred)
            trail.add(f"Publisher inferred from site names: {inferred}")

    _finish_session(session, failed=False)
    if validation.valid:
        _log_success(f"{filename}: {len(result.placements)} placement(s), validation passed")
    else:
        _log_info(f"{filename}: {len(result.placements)} placement(s), {len(validation.issues)} issue(s)")

    return {
        "success": True,
        "detectedChannel": result.detected_channel,
        "detectedPublisher": result.detected_publisher,
        "placements": [placement.to_dict() for placement in result.placements],
        "validation": validation.to_dict(),
        "debug": trail.to_dict(),
    }


def _failure(error: ScheduleImportError, filename: str, trail: DebugTrail, session) -> dict:
    _log_error(f"{filename}: {str(error).splitlines()[0]}")
    _finish_session(session, failed=True)
    return {"error": str(error), "debug": trail.to_dict()}


def _start_session(session, filename: str) -> None:
    if session is None:
        return
    # imported here: the staging context imports this package
    from mediabrief.contexts.staging.import_session import ImportState

    if session.state in (ImportState.IDLE, ImportState.EXTRACTION_FAILED):
        session.select_file(filename)
    session.transition(ImportState.EXTRACTING)


def _finish_session(session, failed: bool) -> None:
    if session is None:
        return
    from mediabrief.contexts.staging.import_session import ImportState

    session.transition(ImportState.EXTRACTION_FAILED if failed else ImportState.VALIDATED)
