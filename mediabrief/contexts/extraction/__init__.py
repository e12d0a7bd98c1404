"""
Extraction Context

Responsibilities:
- Builds the placement schema instruction sent to the generative model
- Parses and defensively coerces the model's JSON into PlacementRecords
- Validates candidate placements and retries once on generic site names
- Produces the operator response with the session debug trail

Owns: Placement records, extraction results, validation verdicts
Never: Reads files directly or writes to a brief
"""

from mediabrief.contexts.extraction.extraction_client import ExtractionClient
from mediabrief.contexts.extraction.placement_data_structure import (
    CHANNELS,
    DebugTrail,
    ExtractionResult,
    PlacementRecord,
    ValidationResult,
)
from mediabrief.contexts.extraction.retry_controller import run_with_retry
from mediabrief.contexts.extraction.schedule_parser import parse_schedule
from mediabrief.contexts.extraction.validator import validate_result

__all__ = [
    "CHANNELS",
    "DebugTrail",
    "ExtractionClient",
    "ExtractionResult",
    "PlacementRecord",
    "ValidationResult",
    "parse_schedule",
    "run_with_retry",
    "validate_result",
]
