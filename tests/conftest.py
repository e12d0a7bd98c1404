"""Shared fixtures: a scripted model provider and small schedule builders."""

import io
import json
from typing import List, Sequence

import pytest
from openpyxl import Workbook

from mediabrief.contexts.extraction.extraction_client import ExtractionClient
from mediabrief.contexts.extraction.placement_data_structure import PlacementRecord
from mediabrief.contexts.intake.content_extractor import CanonicalContent
from mediabrief.utils.llm import LLMProvider, LLMResponse


class ProviderDown(Exception):
    """Stands in for an SDK's base API error."""


class FakeProvider(LLMProvider):
    """
    Provider that replays scripted replies instead of calling a model.

    Each reply is a dict (sent back as JSON), a raw string, an LLMResponse,
    or an exception instance to raise.
    """

    _provider_prefix = "fake"
    _retryable_exception = TimeoutError
    _unavailable_exception = ProviderDown
    _retry_message = "Fake overloaded"

    def __init__(self, replies: Sequence = ()):
        self.update_model("scripted")
        self.replies = list(replies)
        self.calls: List[dict] = []

    def _call_api(self, system_prompt, user_prompt, images=()):
        self.calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "images": list(images)}
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, LLMResponse):
            return reply
        content = reply if isinstance(reply, str) else json.dumps(reply)
        return LLMResponse(
            content=content,
            model=self.model,
            input_tokens=120,
            output_tokens=80,
            finish_reason="stop",
        )


def make_client(*replies) -> ExtractionClient:
    return ExtractionClient(provider=FakeProvider(replies))


def ooh_payload(*site_names, **overrides) -> dict:
    """Model reply with one fully-specified OOH placement per site name."""
    placements = []
    for name in site_names:
        placement = {
            "siteName": name,
            "state": "NSW",
            "dimensions": "1248 x 320 px",
            "fileFormat": "JPEG",
            "startDate": "2024-03-20",
            "endDate": "2024-04-02",
        }
        placement.update(overrides)
        placements.append(placement)
    return {"detectedChannel": "ooh", "detectedPublisher": "JCDecaux", "placements": placements}


def xlsx_bytes(sheets: dict) -> bytes:
    """Build an .xlsx file in memory from {sheet title: [row tuples]}."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in rows:
            sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def csv_content() -> CanonicalContent:
    rows = [
        "Site,State,Width,Height,Start,End",
        "JCD-NSW-01998,NSW,1248,320,20/03/2024,02/04/2024",
        "Kings Cross Tunnel Outbound,NSW,1248,320,20/03/2024,02/04/2024",
    ]
    return CanonicalContent(kind="text", source_format="csv", filename="schedule.csv", rows=rows)


@pytest.fixture
def placements() -> List[PlacementRecord]:
    return [
        PlacementRecord(
            site_name="JCD-NSW-01998",
            state="NSW",
            dimensions="1248 x 320 px",
            start_date="2024-03-20",
            end_date="2024-04-02",
            restrictions="No alcohol; No religious content",
        ),
        PlacementRecord(site_name="Kings Cross Tunnel Outbound", state="VIC", start_date="2024-04-01"),
        PlacementRecord(site_name="Central Station Concourse", state="New South Wales"),
    ]
