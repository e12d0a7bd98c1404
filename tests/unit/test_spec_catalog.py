"""Unit tests for the bundled spec catalog."""

import pytest

from mediabrief.contexts.catalog import (
    channel_name,
    get_placements,
    get_publishers,
    load_catalog,
    normalize_state,
    publisher_name,
    state_name,
)
from mediabrief.contexts.extraction.placement_data_structure import CHANNEL_LABELS, CHANNELS


@pytest.mark.unit
class TestCatalogData:
    """Tests for the shape of the bundled dataset."""

    def test_loaded_once(self):
        """Test that the catalog is cached after the first load."""
        assert load_catalog() is load_catalog()

    def test_versioned(self):
        assert isinstance(load_catalog().version, int)

    def test_channels_match_placement_channels(self):
        """Test that catalog channels and labels agree with extraction channels."""
        catalog = load_catalog()

        assert catalog.channels == list(CHANNELS)
        assert all(channel_name(c) == CHANNEL_LABELS[c] for c in CHANNELS)

    def test_every_publisher_has_known_states(self):
        catalog = load_catalog()

        for channel in catalog.channels:
            for state in catalog.states:
                for publisher in get_publishers(channel, state):
                    assert set(publisher["states"]) <= set(catalog.states)


@pytest.mark.unit
class TestQueries:
    """Tests for catalog lookups."""

    def test_publishers_by_state(self):
        """Test that regional publishers only appear in their states."""
        assert [p["id"] for p in get_publishers("ooh", "nz")] == ["lumo"]
        assert "jcdecaux" in [p["id"] for p in get_publishers("ooh", "nsw")]
        assert "jcdecaux" not in [p["id"] for p in get_publishers("ooh", "tas")]

    def test_national_publishers_everywhere(self):
        assert [p["id"] for p in get_publishers("tv", "tas")] == ["seven", "nine", "ten"]

    def test_placements(self):
        placements = get_placements("ooh", "nsw", "jcdecaux")

        landscape = next(p for p in placements if p["id"] == "jcd-large-landscape")
        assert landscape["specs"]["dimensions"] == "1248 x 320 px"
        assert landscape["restrictions"] == ["No alcohol", "No religious content"]

    def test_placements_outside_publisher_states(self):
        assert get_placements("ooh", "tas", "jcdecaux") == []

    def test_unknown_channel_or_publisher(self):
        assert get_publishers("print", "nsw") == []
        assert get_placements("ooh", "nsw", "acme") == []

    def test_names(self):
        assert channel_name("ooh") == "Out of Home"
        assert state_name("nz") == "New Zealand"
        assert publisher_name("ooh", "lumo") == "LUMO Digital"
        assert publisher_name("tv", "lumo") is None
        assert channel_name(None) is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("NSW", "nsw"),
            (" nsw ", "nsw"),
            ("New South Wales", "nsw"),
            ("new  zealand", "nz"),
            ("Australian Capital Territory", "act"),
            ("National", "national"),
            ("Narnia", None),
            (None, None),
        ],
    )
    def test_normalize_state(self, value, expected):
        assert normalize_state(value) == expected
