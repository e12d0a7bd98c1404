"""
Schema-constrained placement extraction with a generative model.

The model's JSON is treated as untrusted, partially structured data: each
field is type-checked and coerced individually, and anything missing or of an
unexpected type becomes None. The only fatal outcomes are a response that is
not a JSON object at all (ExtractionError) and a provider/transport failure
(ModelUnavailable).
"""

import os
import re
from typing import Iterable, List, Optional

from dotenv import load_dotenv

from mediabrief.contexts.extraction.logger import (
    _log_error,
    _log_warning,
    log_extraction_result,
    log_extraction_start,
)
from mediabrief.contexts.extraction.placement_data_structure import (
    DebugTrail,
    ExtractionResult,
    PlacementRecord,
    normalize_channel,
)
from mediabrief.contexts.extraction.prompts import (
    build_image_prompt,
    build_system_prompt,
    build_text_prompt,
)
from mediabrief.contexts.intake.content_extractor import CanonicalContent
from mediabrief.exceptions import ExtractionError, ModelUnavailable
from mediabrief.utils.llm import LLMProvider, LLMResponse, get_provider, parse_json_object
from mediabrief.utils.timestamp import to_iso_date

load_dotenv()

MAX_CONTENT_CHARS = int(os.getenv("SCHEDULE_MAX_CONTENT_CHARS", "25000"))

PREVIEW_CHARS = 300

_PIPE = re.compile(r"\s*\|\s*")

_NULL_TOKENS = {"", "null", "none", "n/a", "na", "-", "undefined"}

# Name-like fields the model sometimes uses instead of siteName, in priority order
_SITE_NAME_KEYS = (
    "siteName",
    "site_name",
    "panelName",
    "site",
    "name",
    "station",
    "network",
    "publication",
    "platform",
)


class ExtractionClient:
    """
    Sends canonical content plus the placement schema to a model and parses the reply.

    Args:
        provider: LLMProvider to use. Defaults to get_provider() (LLM_PROVIDER env var),
                  created lazily on the first call so a missing API key surfaces as
                  ModelUnavailable inside the pipeline rather than at construction.

    Example:
        >>> client = ExtractionClient()
        >>> trail = DebugTrail()
        >>> result = client.extract_placements(content, "ooh", "jcdecaux", trail)
        >>> len(result.placements)
        12
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider()
        return self._provider

    def extract_placements(
        self,
        content: CanonicalContent,
        declared_channel: Optional[str],
        declared_publisher: Optional[str],
        trail: DebugTrail,
        reinforced: bool = False,
    ) -> ExtractionResult:
        """
        Run one extraction attempt.

        Args:
            content: Normalized schedule content (text rows or page images)
            declared_channel: Operator's channel for this import (sent as a hint)
            declared_publisher: Operator's publisher for this import (sent as a hint)
            trail: Session debug trail; a step is appended for every stage, on
                   success and failure alike
            reinforced: Add the "no generic site names" emphasis to the instruction

        Returns:
            ExtractionResult with coerced placements

        Raises:
            ExtractionError: Response is not a JSON object, or was truncated
            ModelUnavailable: Provider/transport failure or missing credentials
        """
        attempt = "reinforced retry" if reinforced else "initial attempt"

        try:
            provider = self.provider
        except ModelUnavailable as e:
            trail.add(f"Model unavailable: {e}")
            _log_error(f"Model unavailable: {e}")
            raise

        log_extraction_start(content.filename, provider.name, reinforced)
        system_prompt = build_system_prompt(reinforced=reinforced)

        if content.kind == "images":
            images = content.pages
            user_prompt = build_image_prompt(len(images), declared_channel, declared_publisher)
            trail.add(
                f"Calling {provider.name} ({attempt}) with {len(images)} page image(s)"
            )
        else:
            images = []
            text = content.text
            if len(text) > MAX_CONTENT_CHARS:
                text = text[:MAX_CONTENT_CHARS]
                trail.add(f"Content truncated to {MAX_CONTENT_CHARS} chars")
                _log_warning(f"Content truncated to {MAX_CONTENT_CHARS} chars")
            user_prompt = build_text_prompt(text, declared_channel, declared_publisher)
            trail.add(
                f"Calling {provider.name} ({attempt}) with {len(content.rows)} row(s), "
                f"{len(text)} chars"
            )

        try:
            response = provider.generate(system_prompt, user_prompt, images=images)
        except ModelUnavailable as e:
            trail.add(f"Model unavailable: {e.original_error or e}")
            _log_error(f"Model unavailable: {e}")
            raise

        trail.add(
            f"Model responded (finish: {response.finish_reason}, "
            f"tokens in/out: {response.input_tokens}/{response.output_tokens})"
        )

        try:
            result = parse_extraction_response(response, declared_channel, declared_publisher)
        except ExtractionError as e:
            trail.add(f"Extraction error: {str(e).splitlines()[0]}")
            _log_error(str(e))
            raise

        trail.add(
            f"Parsed {len(result.placements)} placement(s), "
            f"detectedChannel: {result.detected_channel}, "
            f"detectedPublisher: {result.detected_publisher}"
        )
        log_extraction_result(result, response)
        return result


# =============================================================================
# RESPONSE PARSING
# =============================================================================


def parse_extraction_response(
    response: LLMResponse,
    declared_channel: Optional[str] = None,
    declared_publisher: Optional[str] = None,
) -> ExtractionResult:
    """
    Parse a model response into an ExtractionResult.

    Raises:
        ExtractionError: Truncated response, or no JSON object recoverable
    """
    preview = (response.content or "")[:PREVIEW_CHARS]

    if response.truncated:
        raise ExtractionError(
            "Response truncated - schedule too large. Try a smaller file.", preview
        )

    parsed = parse_json_object(response.content)
    if parsed is None:
        raise ExtractionError("Model returned a response that is not a JSON object", preview)

    raw_placements = _find_placements(parsed)
    entries = [entry for entry in raw_placements if isinstance(entry, dict)]
    if len(entries) < len(raw_placements):
        _log_warning(f"Skipped {len(raw_placements) - len(entries)} non-object placement entries")

    return ExtractionResult(
        placements=[coerce_placement(entry, index) for index, entry in enumerate(entries)],
        detected_channel=normalize_channel(parsed.get("detectedChannel") or parsed.get("mediaType")),
        detected_publisher=_coerce_text(parsed.get("detectedPublisher")),
        declared_channel=normalize_channel(declared_channel) or _coerce_text(declared_channel),
        declared_publisher=_coerce_text(declared_publisher),
    )


def _find_placements(parsed: dict) -> list:
    """Prefer the 'placements' array, else the first non-empty array in the object."""
    placements = parsed.get("placements")
    if isinstance(placements, list):
        return placements
    for value in parsed.values():
        if isinstance(value, list) and value:
            return value
    return []


def coerce_placement(raw: dict, index: int) -> PlacementRecord:
    """
    Build a PlacementRecord from one untrusted placement object.

    Args:
        raw: Placement object from the model response
        index: Position in the placements array (used for the fallback name)
    """
    site_name = _first_text(raw, _SITE_NAME_KEYS) or f"Placement {index + 1}"

    dimensions = _first_text(raw, ("dimensions",))
    if dimensions is None:
        width = _coerce_text(raw.get("pixelWidth"))
        height = _coerce_text(raw.get("pixelHeight"))
        if width and height:
            dimensions = f"{width}x{height} px"

    return PlacementRecord(
        site_name=site_name,
        location=_first_text(raw, ("location", "address")),
        suburb=_first_text(raw, ("suburb",)),
        state=_first_text(raw, ("state",)),
        format=_first_text(raw, ("format",)),
        dimensions=dimensions,
        physical_size=_first_text(raw, ("physicalSize", "physical_size")),
        file_format=_first_text(raw, ("fileFormat", "file_format")),
        start_date=_coerce_date(raw, ("startDate", "start_date", "start", "airDate")),
        end_date=_coerce_date(raw, ("endDate", "end_date", "end")),
        daypart=_first_text(raw, ("daypart", "dayPart")),
        spots=_coerce_int(raw.get("spots", raw.get("spotCount"))),
        station=_first_text(raw, ("station", "network")),
        spot_length=_first_text(raw, ("spotLength", "spot_length", "duration")),
        panel_id=_first_text(raw, ("panelId", "panel_id")),
        direction=_first_text(raw, ("direction",)),
        restrictions=_coerce_restrictions(raw.get("restrictions"), raw.get("prohibitions")),
        notes=_first_text(raw, ("notes",)),
    )


def _coerce_text(value) -> Optional[str]:
    """Strings and numbers become stripped strings; anything else is absent."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None

    text = " ".join(value.split())
    if text.lower() in _NULL_TOKENS:
        return None
    return text


def _first_text(raw: dict, keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        text = _coerce_text(raw.get(key))
        if text is not None:
            return text
    return None


def _coerce_date(raw: dict, keys: Iterable[str]) -> Optional[str]:
    """ISO date when parseable; an unparseable value is kept verbatim for the validator."""
    text = _first_text(raw, keys)
    if text is None:
        return None
    return to_iso_date(text) or text


def _coerce_int(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        digits = value.strip().replace(",", "")
        if digits.isdigit():
            return int(digits)
    return None


def _coerce_restrictions(*values) -> Optional[str]:
    """Combine restrictions and prohibitions (strings or lists of strings) into one string."""
    parts: List[str] = []
    for value in values:
        items = value if isinstance(value, list) else [value]
        for item in items:
            text = _coerce_text(item)
            if text:
                parts.append(text)

    if not parts:
        return None
    return _PIPE.sub(", ", "; ".join(parts))
