"""Unit tests for ImportStager staging, selection and confirmation."""

import pytest

from mediabrief.contexts.catalog import SpecCatalog
from mediabrief.contexts.staging.brief_data_structure import BriefCart, BriefItem
from mediabrief.contexts.staging.import_session import ImportSession, ImportState
from mediabrief.contexts.staging.import_stager import ImportStager
from mediabrief.exceptions import ImportSessionError


def _existing(item_id: str) -> BriefItem:
    return BriefItem(
        id=item_id,
        channel="tv",
        channel_name="TV",
        state="national",
        state_name="National",
        publisher="seven",
        publisher_name="Seven Network",
        placement_name='30" TVC',
    )


@pytest.fixture
def cart():
    return BriefCart([_existing("seven-tvc-30-1700000000"), _existing("import-1-abcdef")])


@pytest.fixture
def stager(cart):
    return ImportStager(cart)


@pytest.mark.unit
class TestStage:
    """Tests for staging extracted placements."""

    def test_candidates(self, stager, cart, placements):
        """Test ids, due dates and empty initial selection."""
        session = stager.stage(placements, buffer_days=5)

        ids = [c.id for c in session.candidates]
        assert session.state == ImportState.STAGED
        assert [c.placement for c in session.candidates] == placements
        assert len(set(ids)) == 3
        assert all(candidate_id.startswith(f"import-{n}-") for n, candidate_id in enumerate(ids, start=1))
        assert not set(ids) & cart.ids
        assert [c.due_date for c in session.candidates] == ["2024-03-15", "2024-03-27", None]
        assert session.selected == set()
        assert session.buffer_days == 5

    def test_stage_into_validated_session(self, stager, placements):
        """Test staging a session that came through the pipeline."""
        session = ImportSession(state=ImportState.VALIDATED)

        assert stager.stage(placements, session=session) is session
        assert session.state == ImportState.STAGED

    def test_stage_requires_validated_session(self, stager, placements):
        with pytest.raises(ImportSessionError):
            stager.stage(placements, session=ImportSession(state=ImportState.EXTRACTING))

    def test_stage_nothing(self, stager):
        """Test that zero placements still make a (empty) staged session."""
        session = stager.stage([])

        assert session.candidates == []

    def test_invalid_buffer(self, stager, placements):
        with pytest.raises(ValueError):
            stager.stage(placements, buffer_days=-1)


@pytest.mark.unit
class TestSelection:
    """Tests for selection and buffer changes."""

    def test_toggle(self, stager, placements):
        session = stager.stage(placements)
        first = session.candidates[0].id

        assert stager.toggle_selection(session, first) is True
        assert session.selected == {first}
        assert stager.toggle_selection(session, first) is False
        assert session.selected == set()

    def test_toggle_unknown_id(self, stager, placements):
        session = stager.stage(placements)

        with pytest.raises(KeyError):
            stager.toggle_selection(session, "import-99-000000")

    def test_select_and_deselect_all(self, stager, placements):
        session = stager.stage(placements)

        stager.select_all(session)
        assert session.selected == {c.id for c in session.candidates}

        stager.deselect_all(session)
        assert session.selected == set()

    def test_set_buffer_recomputes_due_dates_only(self, stager, placements):
        """Test that a buffer change touches due dates and nothing else."""
        session = stager.stage(placements, buffer_days=5)
        stager.toggle_selection(session, session.candidates[1].id)
        before = list(session.candidates)

        stager.set_buffer(session, 10)

        assert [c.due_date for c in session.candidates] == ["2024-03-10", "2024-03-22", None]
        assert [c.id for c in session.candidates] == [c.id for c in before]
        assert [c.placement for c in session.candidates] == [c.placement for c in before]
        assert session.selected == {before[1].id}
        assert session.buffer_days == 10

    def test_huge_buffer(self, stager, placements):
        """Test that a buffer reaching before the earliest date clears due dates without failing."""
        session = stager.stage(placements, buffer_days=1_000_000)
        assert [c.due_date for c in session.candidates] == [None, None, None]

        stager.set_buffer(session, 5)
        assert session.candidates[0].due_date == "2024-03-15"

        stager.set_buffer(session, 1_000_000)
        assert session.candidates[0].due_date is None
        assert session.buffer_days == 1_000_000

    def test_set_invalid_buffer(self, stager, placements):
        session = stager.stage(placements, buffer_days=5)

        with pytest.raises(ValueError):
            stager.set_buffer(session, -2)

        assert session.buffer_days == 5


@pytest.mark.unit
class TestConfirm:
    """Tests for merging the selection into the cart."""

    def test_confirm_selected_subset(self, stager, cart, placements):
        """Test that N of M selected candidates become N new items after the existing ones."""
        existing = cart.items
        session = stager.stage(placements)
        stager.toggle_selection(session, session.candidates[2].id)
        stager.toggle_selection(session, session.candidates[0].id)

        items = stager.confirm(session, "ooh", "jcdecaux")

        assert len(items) == 2
        assert [item.placement_name for item in items] == ["JCD-NSW-01998", "Central Station Concourse"]
        assert cart.items[: len(existing)] == existing
        assert cart.items[len(existing):] == items
        assert len({item.id for item in cart.items}) == len(cart)
        assert session.state == ImportState.CONFIRMED

    def test_item_fields(self, stager, placements):
        """Test the brief item built from a candidate."""
        session = stager.stage(placements, buffer_days=5)
        stager.toggle_selection(session, session.candidates[0].id)

        item = stager.confirm(session, "ooh", "jcdecaux")[0]

        assert item.channel == "ooh"
        assert item.channel_name == "Out of Home"
        assert item.publisher == "jcdecaux"
        assert item.publisher_name == "JCDecaux"
        assert item.state == "nsw"
        assert item.state_name == "NSW"
        assert item.specs == {"dimensions": "1248 x 320 px"}
        assert item.restrictions == ["No alcohol", "No religious content"]
        assert item.due_date == "2024-03-15"
        assert item.flight_start == "2024-03-20"
        assert item.flight_end == "2024-04-02"
        assert item.status == "briefed"

    def test_state_names_resolved(self, stager, placements):
        """Test that full state names map to catalog ids."""
        session = stager.stage(placements)
        stager.select_all(session)

        items = stager.confirm(session, "ooh", "jcdecaux")

        assert [item.state for item in items] == ["nsw", "vic", "nsw"]

    def test_declared_channel_label_accepted(self, stager, placements):
        """Test that a channel label is normalized to its id."""
        session = stager.stage(placements[:1])
        stager.select_all(session)

        assert stager.confirm(session, "Out of Home", "jcdecaux")[0].channel == "ooh"

    def test_unknown_publisher_falls_back_to_id(self, stager, placements):
        session = stager.stage(placements[:1])
        stager.select_all(session)

        item = stager.confirm(session, "ooh", "bishopp")[0]

        assert item.publisher_name == "bishopp"

    def test_custom_catalog(self, cart, placements):
        """Test that display names come from the catalog the stager was given."""
        catalog = SpecCatalog(
            {
                "channels": {"ooh": "Outdoor"},
                "states": {"nsw": {"name": "New South Wales"}},
                "publishers": {"ooh": [{"id": "jcdecaux", "name": "JCD", "states": ["nsw"]}]},
            }
        )
        stager = ImportStager(cart, catalog=catalog)
        session = stager.stage(placements[:1])
        stager.select_all(session)

        item = stager.confirm(session, "ooh", "jcdecaux")[0]

        assert (item.channel_name, item.state_name, item.publisher_name) == ("Outdoor", "New South Wales", "JCD")

    def test_confirm_nothing_selected(self, stager, cart, placements):
        """Test that an empty selection adds nothing."""
        before = cart.items
        session = stager.stage(placements)

        assert stager.confirm(session, "ooh", "jcdecaux") == []
        assert cart.items == before

    def test_second_confirm_rejected(self, stager, cart, placements):
        """Test that a session can only be merged once."""
        session = stager.stage(placements)
        stager.select_all(session)
        stager.confirm(session, "ooh", "jcdecaux")
        size = len(cart)

        with pytest.raises(ImportSessionError):
            stager.confirm(session, "ooh", "jcdecaux")

        assert len(cart) == size

    def test_selection_locked_after_confirm(self, stager, placements):
        session = stager.stage(placements)
        stager.confirm(session, "ooh", "jcdecaux")

        with pytest.raises(ImportSessionError):
            stager.select_all(session)

    def test_ids_stay_unique_across_sessions(self, stager, cart, placements):
        """Test that two imports of the same schedule never collide."""
        for _ in range(2):
            session = stager.stage(placements)
            stager.select_all(session)
            stager.confirm(session, "ooh", "jcdecaux")

        assert len({item.id for item in cart.items}) == len(cart) == 2 + 2 * len(placements)


@pytest.mark.unit
class TestCancel:
    """Tests for cancelling an import."""

    def test_cancel_leaves_cart_untouched(self, stager, cart, placements):
        before = cart.items
        session = stager.stage(placements)
        stager.select_all(session)

        stager.cancel(session)

        assert session.state == ImportState.CANCELLED
        assert cart.items == before
        with pytest.raises(ImportSessionError):
            stager.confirm(session, "ooh", "jcdecaux")

    def test_cancel_after_confirm_rejected(self, stager, placements):
        session = stager.stage(placements)
        stager.confirm(session, "ooh", "jcdecaux")

        with pytest.raises(ImportSessionError):
            stager.cancel(session)
