"""
Import Stager: turns extracted placements into selectable candidates and
merges the operator's selection into a brief cart.

Merging is additive only. Confirm never edits or removes existing cart items,
and every new item gets an id that is unique within the cart.
"""

import uuid
from typing import List, Optional, Sequence

from mediabrief.contexts.catalog import SpecCatalog, load_catalog
from mediabrief.contexts.extraction.placement_data_structure import (
    PlacementRecord,
    normalize_channel,
)
from mediabrief.contexts.staging.brief_data_structure import INITIAL_STATUS, BriefCart, BriefItem
from mediabrief.contexts.staging.due_dates import (
    DEFAULT_BUFFER_DAYS,
    apply_buffer,
    due_date,
    validate_buffer,
)
from mediabrief.contexts.staging.import_session import ImportCandidate, ImportSession, ImportState
from mediabrief.contexts.staging.logger import _log_debug, _log_info, log_confirmed, log_staged
from mediabrief.exceptions import ImportSessionError

# PlacementRecord attribute -> BriefItem specs key
_SPEC_FIELDS = (
    ("dimensions", "dimensions"),
    ("physical_size", "physicalSize"),
    ("file_format", "fileFormat"),
    ("spot_length", "duration"),
    ("daypart", "daypart"),
    ("spots", "spots"),
    ("station", "station"),
    ("panel_id", "panelId"),
    ("direction", "direction"),
)


class ImportStager:
    """
    Stages extracted placements for review and confirms selections into a cart.

    Args:
        cart: BriefCart the confirmed items are appended to
        catalog: SpecCatalog used to resolve display names (default: the bundled catalog)

    Example:
        >>> stager = ImportStager(BriefCart())
        >>> session = stager.stage(result.placements, buffer_days=7)
        >>> stager.select_all(session)
        >>> items = stager.confirm(session, "ooh", "jcdecaux")
    """

    def __init__(self, cart: BriefCart, catalog: Optional[SpecCatalog] = None):
        self.cart = cart
        self.catalog = catalog or load_catalog()

    def stage(
        self,
        placements: Sequence[PlacementRecord],
        buffer_days: int = DEFAULT_BUFFER_DAYS,
        session: Optional[ImportSession] = None,
    ) -> ImportSession:
        """
        Assign candidate ids and due dates to extracted placements.

        Args:
            placements: Placements from the selected extraction attempt
            buffer_days: Due-date buffer in calendar days
            session: Session in VALIDATED state (default: a new one)

        Returns:
            The session, now STAGED, with nothing selected

        Raises:
            ValueError: Invalid buffer_days
            ImportSessionError: Session is not in VALIDATED state
        """
        validate_buffer(buffer_days)
        if session is None:
            session = ImportSession(state=ImportState.VALIDATED)
        session.transition(ImportState.STAGED)

        taken = set(self.cart.ids)
        candidates = []
        for n, placement in enumerate(placements, start=1):
            candidate_id = _unique_id(f"import-{n}", taken)
            taken.add(candidate_id)
            candidates.append(
                ImportCandidate(
                    id=candidate_id,
                    placement=placement,
                    due_date=due_date(placement.start_date, buffer_days),
                )
            )

        session.candidates = candidates
        session.selected = set()
        session.buffer_days = buffer_days
        log_staged(session)
        return session

    def toggle_selection(self, session: ImportSession, candidate_id: str) -> bool:
        """
        Flip one candidate's selection.

        Returns:
            True if the candidate is now selected

        Raises:
            KeyError: Unknown candidate id
        """
        self._require_staged(session)
        session.candidate(candidate_id)
        if candidate_id in session.selected:
            session.selected.discard(candidate_id)
            return False
        session.selected.add(candidate_id)
        return True

    def select_all(self, session: ImportSession) -> None:
        self._require_staged(session)
        session.selected = {c.id for c in session.candidates}

    def deselect_all(self, session: ImportSession) -> None:
        self._require_staged(session)
        session.selected = set()

    def set_buffer(self, session: ImportSession, buffer_days: int) -> None:
        """Change the buffer and recompute every candidate's due date (selection is kept)."""
        self._require_staged(session)
        session.candidates = apply_buffer(session.candidates, buffer_days)
        session.buffer_days = buffer_days
        _log_debug(f"Session {session.id}: buffer set to {buffer_days} day(s)")

    def confirm(
        self,
        session: ImportSession,
        declared_channel: Optional[str],
        declared_publisher: Optional[str],
    ) -> List[BriefItem]:
        """
        Append the selected candidates to the cart as brief items.

        The operator's declared channel and publisher are authoritative over
        anything the model detected.

        Args:
            session: STAGED session
            declared_channel: Channel id chosen by the operator
            declared_publisher: Publisher id chosen by the operator

        Returns:
            The new BriefItems, in staging order (empty if nothing was selected)

        Raises:
            ImportSessionError: Session is not STAGED (e.g., already confirmed)
        """
        self._require_staged(session)

        channel = normalize_channel(declared_channel) or declared_channel
        taken = set(self.cart.ids)
        items = []
        for candidate in session.selected_candidates():
            item_id = candidate.id if candidate.id not in taken else _unique_id(candidate.id, taken)
            taken.add(item_id)
            items.append(self._to_brief_item(item_id, candidate, channel, declared_publisher))

        self.cart.add(items)
        session.transition(ImportState.CONFIRMED)
        log_confirmed(session, items, len(self.cart))
        return items

    def cancel(self, session: ImportSession) -> None:
        """Abandon the session; the cart is untouched."""
        session.transition(ImportState.CANCELLED)
        _log_info(f"Session {session.id}: cancelled")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_staged(self, session: ImportSession) -> None:
        if session.state != ImportState.STAGED:
            raise ImportSessionError(
                f"Session {session.id} is {session.state.value}, expected {ImportState.STAGED.value}"
            )

    def _to_brief_item(
        self,
        item_id: str,
        candidate: ImportCandidate,
        channel: Optional[str],
        publisher: Optional[str],
    ) -> BriefItem:
        placement = candidate.placement
        state = self.catalog.normalize_state(placement.state)

        specs = {}
        for attr, key in _SPEC_FIELDS:
            value = getattr(placement, attr)
            if value is not None:
                specs[key] = value

        return BriefItem(
            id=item_id,
            channel=channel,
            channel_name=self.catalog.channel_name(channel) or channel,
            state=state,
            state_name=self.catalog.state_name(state) or placement.state,
            publisher=publisher,
            publisher_name=self.catalog.publisher_name(channel, publisher) or publisher,
            placement_name=placement.site_name,
            location=_join_location(placement.location, placement.suburb),
            format=placement.format,
            specs=specs,
            notes=placement.notes,
            restrictions=_split_restrictions(placement.restrictions),
            due_date=candidate.due_date,
            flight_start=placement.start_date,
            flight_end=placement.end_date,
            status=INITIAL_STATUS,
        )


def _unique_id(prefix: str, taken) -> str:
    while True:
        candidate_id = f"{prefix}-{uuid.uuid4().hex[:6]}"
        if candidate_id not in taken:
            return candidate_id


def _join_location(location: Optional[str], suburb: Optional[str]) -> Optional[str]:
    if location and suburb and suburb.lower() not in location.lower():
        return f"{location}, {suburb}"
    return location or suburb


def _split_restrictions(restrictions: Optional[str]) -> List[str]:
    if not restrictions:
        return []
    return [part.strip() for part in restrictions.split(";") if part.strip()]
