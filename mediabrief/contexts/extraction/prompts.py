"""
Prompt templates and output-schema contract for placement extraction.

The schema block names every PlacementRecord wire field. All downstream logic
parses the model output field by field, so the instruction insists on a single
JSON object and nothing else.
"""

import json
from typing import Optional

from mediabrief.contexts.extraction.placement_data_structure import CHANNELS

# =============================================================================
# FIELD INSTRUCTIONS
# =============================================================================

_FIELD_INSTRUCTIONS = {
    "siteName": (
        "REQUIRED. The real site, panel, station or unit name exactly as written "
        "(e.g. 'Kings Cross Tunnel Outbound', 'JCD-NSW-01998', '2GB Breakfast')."
    ),
    "location": "Street address or venue.",
    "suburb": "Suburb or city.",
    "state": "State or region abbreviation (NSW, VIC, QLD, WA, SA, TAS, NT, ACT, NZ).",
    "format": "Creative format (e.g. 'Digital Billboard', 'TV Spot', 'Static Image', 'Video').",
    "dimensions": "Pixel dimensions as 'W x H px'. Build it from pixel width/height columns if split.",
    "physicalSize": "Physical face size (e.g. '12m x 3m').",
    "fileFormat": "Accepted file types (e.g. 'JPEG, PNG', 'MP4').",
    "startDate": "Flight start date, YYYY-MM-DD.",
    "endDate": "Flight end date, YYYY-MM-DD.",
    "daypart": "Daypart for broadcast (e.g. 'Breakfast', 'Drive', 'Prime').",
    "spots": "Number of spots as an integer.",
    "station": "Broadcast station or network.",
    "spotLength": "Spot or ad duration (e.g. '30s', '15 seconds').",
    "panelId": "Publisher panel or site identifier code.",
    "direction": "Facing direction or traffic flow (e.g. 'Inbound', 'Northbound').",
    "restrictions": "Content restrictions and prohibitions combined into one string.",
    "notes": "Any other delivery requirement for this placement.",
}

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT_TEMPLATE = """\
You analyze advertising media schedules and booking documents from publishers.

STEP 1: Identify the media channel from the content:
- "ooh" = Out of Home: billboards, digital screens, street furniture, transit (panel names, pixel dimensions, site locations)
- "tv" = Television: broadcast spots, programs, dayparts (networks, spot lengths like 15s/30s)
- "radio" = Radio: station spots, dayparts (station names, Breakfast/Drive)
- "digital" = Digital/Online: banners, social, video ads (platforms, file formats, impressions)

STEP 2: Extract EVERY placement row, even if the same site appears with different date ranges.

Return ONLY a single JSON object, no prose and no markdown, with exactly this shape:
{{
  "detectedChannel": one of {channels} or null,
  "detectedPublisher": publisher name or null,
  "placements": [ {{ ...placement fields... }} ]
}}

Each placement object uses exactly these camelCase field names:
{fields_json}

RULES:
- Use null for any field the schedule does not provide. Never invent values.
- Convert ALL dates to YYYY-MM-DD.
- "spots" is an integer; every other field is a string."""

_REINFORCED_INSTRUCTION = """

IMPORTANT - A previous extraction of this schedule returned placeholder names.
- Generic or placeholder names such as "Site 1", "Placement 3", "Panel", "Unnamed" or bare numbers are NOT acceptable for siteName.
- Use the real site identifier from the document: the panel name, site code, address-based name, station or platform.
- If a row only has a code, use the code (e.g. "JCD-NSW-01998")."""

_TEXT_USER_TEMPLATE = """\
{hints}Extract all placements from this media schedule:

{content}"""

_IMAGE_USER_TEMPLATE = """\
{hints}The attached images are the {page_count} page(s) of a media schedule, in order.
Extract all placements from every page."""


# =============================================================================
# BUILDERS
# =============================================================================


def build_system_prompt(reinforced: bool = False) -> str:
    """
    Build the schema-constrained system instruction.

    Args:
        reinforced: Append emphasis that placeholder/generic site names are unacceptable

    Returns:
        System prompt string for the LLM
    """
    prompt = _SYSTEM_PROMPT_TEMPLATE.format(
        channels=", ".join(f'"{c}"' for c in CHANNELS),
        fields_json=json.dumps(_FIELD_INSTRUCTIONS, indent=2),
    )
    if reinforced:
        prompt += _REINFORCED_INSTRUCTION
    return prompt


def _build_hints(declared_channel: Optional[str], declared_publisher: Optional[str]) -> str:
    hints = []
    if declared_channel:
        hints.append(f"The operator expects channel: {declared_channel}.")
    if declared_publisher:
        hints.append(f"The operator expects publisher: {declared_publisher}.")
    return " ".join(hints) + "\n\n" if hints else ""


def build_text_prompt(
    content: str, declared_channel: Optional[str] = None, declared_publisher: Optional[str] = None
) -> str:
    """User prompt for spreadsheet/CSV text content."""
    return _TEXT_USER_TEMPLATE.format(
        hints=_build_hints(declared_channel, declared_publisher), content=content
    )


def build_image_prompt(
    page_count: int,
    declared_channel: Optional[str] = None,
    declared_publisher: Optional[str] = None,
) -> str:
    """User prompt accompanying rendered PDF page images."""
    return _IMAGE_USER_TEMPLATE.format(
        hints=_build_hints(declared_channel, declared_publisher), page_count=page_count
    )
