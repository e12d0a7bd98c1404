"""
Quality checks for extracted placements.

Every check runs independently and appends one issue string per failure, so
the operator sees the full list. Generic-name issues carry GENERIC_NAME_MARKER
behind a fixed "Placement N:" prefix, which is_generic_name_issue() matches, so
a real site name containing the word never looks like a generic-name issue.
"""

import re
from typing import List

from mediabrief.contexts.extraction.placement_data_structure import (
    CHANNEL_LABELS,
    ExtractionResult,
    PlacementRecord,
    ValidationResult,
)
from mediabrief.utils.timestamp import parse_date

GENERIC_NAME_MARKER = "generic"

NO_PLACEMENTS_ISSUE = "No placements detected in schedule"

# Placeholder names a model emits when it could not find a real identifier
_PLACEHOLDER_NOUNS = r"(site|placement|panel|location|unit|item|row|screen|billboard|ad|spot|entry)"

# Separators seen between a placeholder word and its number: "Site 1", "Site-1", "Site_01", "Site #4"
_NUMBER_SEPARATOR = r"[\s#_\-.]*"

_GENERIC_NAME_PATTERNS = [
    re.compile(
        rf"^{_PLACEHOLDER_NOUNS}{_NUMBER_SEPARATOR}(no\.?{_NUMBER_SEPARATOR})?\d*$",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^(unnamed|untitled|unknown|n/?a|tbc|tbd|none|null|-+)(\s+{_PLACEHOLDER_NOUNS})?"
        rf"({_NUMBER_SEPARATOR}\d+)?$",
        re.IGNORECASE,
    ),
]

_NUMERIC_NAME = re.compile(r"^[\d\s.,#-]+$")

_GENERIC_ISSUE = re.compile(rf"^Placement \d+: {GENERIC_NAME_MARKER} site name ")

# channel -> field groups; at least one field of each group must be present
_REQUIRED_BY_CHANNEL = {
    "ooh": (("dimensions", "physical_size"),),
    "tv": (("spot_length",),),
    "radio": (("spot_length",),),
    "digital": (("file_format",),),
}

_FIELD_LABELS = {
    "dimensions": "dimensions",
    "physical_size": "physicalSize",
    "spot_length": "spotLength",
    "file_format": "fileFormat",
}


def is_generic_name(name) -> bool:
    """
    Check whether a site name is empty, purely numeric or a known placeholder.

    Examples:
        is_generic_name("Site 1")          # True
        is_generic_name("12345")           # True
        is_generic_name("JCD-NSW-01998")   # False
    """
    if not isinstance(name, str):
        return True
    text = name.strip()
    if not text:
        return True
    if _NUMERIC_NAME.match(text):
        return True
    return any(pattern.match(text) for pattern in _GENERIC_NAME_PATTERNS)


def is_generic_name_issue(issue: str) -> bool:
    """True for issues raised by the generic site name check."""
    return bool(_GENERIC_ISSUE.match(issue))


def validate_result(result: ExtractionResult) -> ValidationResult:
    """
    Validate a candidate placement set.

    Checks (no short-circuiting):
    1. At least one placement
    2. No generic/placeholder site names
    3. Channel-required fields present (OOH: dimensions or physicalSize;
       TV/Radio: spotLength; Digital: fileFormat)
    4. Populated flight dates parse, and start is not after end

    Args:
        result: ExtractionResult; its channel property (declared, else detected)
                selects the required-field rule

    Returns:
        ValidationResult with valid=True iff no issues
    """
    issues: List[str] = []

    if not result.placements:
        issues.append(NO_PLACEMENTS_ISSUE)

    for index, placement in enumerate(result.placements, start=1):
        issues.extend(_check_site_name(placement, index))

    for index, placement in enumerate(result.placements, start=1):
        issues.extend(_check_required_fields(placement, index, result.channel))

    for index, placement in enumerate(result.placements, start=1):
        issues.extend(_check_dates(placement, index))

    return ValidationResult(valid=not issues, issues=issues)


def _describe(placement: PlacementRecord, index: int) -> str:
    name = (placement.site_name or "").strip()
    return f"Placement {index} ({name})" if name else f"Placement {index}"


def _check_site_name(placement: PlacementRecord, index: int) -> List[str]:
    if is_generic_name(placement.site_name):
        return [
            f"Placement {index}: {GENERIC_NAME_MARKER} site name "
            f'"{placement.site_name or ""}" is a placeholder, not a real site identifier'
        ]
    return []


def _check_required_fields(placement: PlacementRecord, index: int, channel) -> List[str]:
    required = _REQUIRED_BY_CHANNEL.get(channel)
    if not required:
        return []

    issues = []
    for group in required:
        if not any(getattr(placement, name) for name in group):
            fields = " or ".join(_FIELD_LABELS[name] for name in group)
            issues.append(
                f"{_describe(placement, index)}: missing {fields} required for "
                f"{CHANNEL_LABELS[channel]}"
            )
    return issues


def _check_dates(placement: PlacementRecord, index: int) -> List[str]:
    issues = []
    parsed = {}
    for name, label in (("start_date", "startDate"), ("end_date", "endDate")):
        value = getattr(placement, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        parsed[name] = parse_date(value)
        if parsed[name] is None:
            issues.append(f"{_describe(placement, index)}: {label} '{value}' is not a valid date")

    start, end = parsed.get("start_date"), parsed.get("end_date")
    if start and end and start > end:
        issues.append(
            f"{_describe(placement, index)}: startDate {start.isoformat()} is after "
            f"endDate {end.isoformat()}"
        )
    return issues
