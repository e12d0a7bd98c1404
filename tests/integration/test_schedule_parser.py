"""
Integration tests for the schedule import pipeline.

Drives real intake (CSV and xlsx built in memory), extraction with a scripted
provider, validation, retry, staging and confirmation together.
"""

import pytest
from conftest import FakeProvider, ProviderDown, make_client, ooh_payload, xlsx_bytes

from mediabrief.contexts.extraction import ExtractionClient, PlacementRecord, parse_schedule
from mediabrief.contexts.staging import (
    BriefCart,
    ImportSession,
    ImportStager,
    ImportState,
    InMemoryBriefStore,
)

SCHEDULE_CSV = (
    b"Site,State,Width,Height,Start,End\n"
    b"JCD-NSW-01998,NSW,1248,320,20/03/2024,02/04/2024\n"
    b"JCD-NSW-02011,NSW,1248,320,20/03/2024,02/04/2024\n"
)


@pytest.mark.integration
def test_successful_import_response():
    """Test the full operator response for a clean schedule."""
    client = make_client(ooh_payload("JCD-NSW-01998", "JCD-NSW-02011"))

    response = parse_schedule(SCHEDULE_CSV, "schedule.csv", "ooh", "jcdecaux", client=client)

    assert response["success"] is True
    assert response["detectedChannel"] == "ooh"
    assert response["detectedPublisher"] == "JCDecaux"
    assert [p["siteName"] for p in response["placements"]] == ["JCD-NSW-01998", "JCD-NSW-02011"]
    assert response["placements"][0]["startDate"] == "2024-03-20"
    assert response["validation"] == {"valid": True, "issues": []}

    steps = response["debug"]["steps"]
    assert steps[0] == f"File received: schedule.csv, size: {len(SCHEDULE_CSV)} bytes"
    assert steps[1].startswith("CSV extracted: 3 row(s)")
    assert steps[-1] == "Validation passed"


@pytest.mark.integration
def test_spreadsheet_import():
    """Test that spreadsheet rows reach the model as pipe-delimited text."""
    data = xlsx_bytes({"Flight 1": [("Site", "State"), ("Kings Cross Tunnel Outbound", "NSW")]})
    provider = FakeProvider([ooh_payload("Kings Cross Tunnel Outbound")])

    response = parse_schedule(
        data, "schedule.xlsx", "ooh", "jcdecaux", client=ExtractionClient(provider=provider)
    )

    assert response["success"] is True
    assert "=== Flight 1 ===\nSite | State\nKings Cross Tunnel Outbound | NSW" in provider.calls[0]["user_prompt"]
    assert response["debug"]["steps"][1].startswith("Spreadsheet extracted: 2 row(s)")


@pytest.mark.integration
def test_invalid_result_still_returned():
    """Test that validation issues are reported alongside every parsed placement."""
    client = make_client(ooh_payload("JCD-NSW-01998", dimensions=None))

    response = parse_schedule(SCHEDULE_CSV, "schedule.csv", "ooh", "jcdecaux", client=client)

    assert response["success"] is True
    assert len(response["placements"]) == 1
    assert response["validation"]["valid"] is False
    assert "missing dimensions or physicalSize" in response["validation"]["issues"][0]


@pytest.mark.integration
def test_generic_names_retried_once():
    """Test that the response reflects the reinforced retry."""
    client = make_client(ooh_payload("Site 1", "Site 2"), ooh_payload("JCD-NSW-01998", "JCD-NSW-02011"))

    response = parse_schedule(SCHEDULE_CSV, "schedule.csv", "ooh", "jcdecaux", client=client)

    steps = response["debug"]["steps"]
    assert response["validation"]["valid"] is True
    assert [p["siteName"] for p in response["placements"]] == ["JCD-NSW-01998", "JCD-NSW-02011"]
    assert sum(step.startswith("Calling ") for step in steps) == 2
    assert "Validation failed with 2 issue(s)" in steps


@pytest.mark.integration
def test_unsupported_format_before_model_call():
    """Test that an unknown file type fails without calling the model."""
    provider = FakeProvider([ooh_payload("JCD-1")])

    response = parse_schedule(
        b"...", "schedule.docx", "ooh", "jcdecaux", client=ExtractionClient(provider=provider)
    )

    assert "success" not in response
    assert "Unsupported file type '.docx'" in response["error"]
    assert response["debug"]["steps"][-1].startswith("Error: Unsupported file type")
    assert provider.calls == []


@pytest.mark.integration
def test_empty_document_before_model_call():
    provider = FakeProvider([ooh_payload("JCD-1")])

    response = parse_schedule(b"\n\n", "schedule.csv", client=ExtractionClient(provider=provider))

    assert response["error"].startswith("Could not extract content from schedule.csv.")
    assert len(response["debug"]["steps"]) == 2
    assert provider.calls == []


@pytest.mark.integration
def test_model_unavailable():
    """Test that a provider failure is returned as an error with the trail."""
    client = make_client(ProviderDown("connection refused"))

    response = parse_schedule(SCHEDULE_CSV, "schedule.csv", "ooh", "jcdecaux", client=client)

    assert response["error"].startswith("Model provider request failed")
    assert "Model unavailable: connection refused" in response["debug"]["steps"]


@pytest.mark.integration
def test_unparseable_model_response():
    client = make_client("I could not find any placements.")

    response = parse_schedule(SCHEDULE_CSV, "schedule.csv", "ooh", "jcdecaux", client=client)

    assert response["error"].startswith("Model returned a response that is not a JSON object")
    assert response["debug"]["steps"][-1].startswith("Extraction error:")


@pytest.mark.integration
def test_publisher_inferred_from_site_names():
    """Test the publisher fallback when the model reports none."""
    payload = ooh_payload("LUMO Anzac Ave")
    payload["detectedPublisher"] = None

    response = parse_schedule(SCHEDULE_CSV, "schedule.csv", "ooh", None, client=make_client(payload))

    assert response["detectedPublisher"] == "LUMO"
    assert "Publisher inferred from site names: LUMO" in response["debug"]["steps"]


@pytest.mark.integration
def test_session_states_follow_pipeline():
    """Test that a failed upload can be retried with a new file in the same session."""
    session = ImportSession()

    failed = parse_schedule(b"", "schedule.csv", client=make_client(), session=session)
    assert "error" in failed
    assert session.state == ImportState.EXTRACTION_FAILED

    parse_schedule(
        SCHEDULE_CSV, "schedule_v2.csv", "ooh", "jcdecaux",
        client=make_client(ooh_payload("JCD-NSW-01998")), session=session,
    )
    assert session.state == ImportState.VALIDATED
    assert session.filename == "schedule_v2.csv"


@pytest.mark.integration
def test_import_into_brief():
    """Test parse, stage, partial confirm and hand-off to the brief store."""
    session = ImportSession()
    client = make_client(ooh_payload("JCD-NSW-01998", "JCD-NSW-02011", "JCD-NSW-02012"))
    response = parse_schedule(
        SCHEDULE_CSV, "schedule.csv", "ooh", "jcdecaux", client=client, session=session
    )

    cart = BriefCart()
    stager = ImportStager(cart)
    placements = [PlacementRecord.from_dict(p) for p in response["placements"]]
    stager.stage(placements, buffer_days=5, session=session)
    stager.toggle_selection(session, session.candidates[0].id)
    stager.toggle_selection(session, session.candidates[2].id)
    items = stager.confirm(session, "ooh", "jcdecaux")

    store = InMemoryBriefStore()
    cart.flush(store, "brief-1")

    saved = store.get_items("brief-1")
    assert [item.placement_name for item in saved] == ["JCD-NSW-01998", "JCD-NSW-02012"]
    assert saved == items
    assert all(item.due_date == "2024-03-15" for item in saved)
    assert all(item.publisher_name == "JCDecaux" for item in saved)
    assert session.state == ImportState.CONFIRMED
