"""
Import session state machine.

One ImportSession exists per uploaded schedule. It owns the staged candidates
and the operator's selection; nothing in it is shared between sessions.

States:
    IDLE -> FILE_SELECTED -> EXTRACTING -> EXTRACTION_FAILED | VALIDATED
    VALIDATED -> STAGED -> CONFIRMED | CANCELLED
    EXTRACTION_FAILED -> FILE_SELECTED (re-upload)
    any non-terminal state -> CANCELLED
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from mediabrief.contexts.extraction.placement_data_structure import PlacementRecord
from mediabrief.contexts.staging.logger import log_state_change
from mediabrief.exceptions import ImportSessionError


class ImportState(Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    EXTRACTING = "extracting"
    EXTRACTION_FAILED = "extraction_failed"
    VALIDATED = "validated"
    STAGED = "staged"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportState.CONFIRMED, ImportState.CANCELLED)


_TRANSITIONS: Dict[ImportState, Set[ImportState]] = {
    ImportState.IDLE: {ImportState.FILE_SELECTED},
    ImportState.FILE_SELECTED: {ImportState.EXTRACTING},
    ImportState.EXTRACTING: {ImportState.EXTRACTION_FAILED, ImportState.VALIDATED},
    ImportState.EXTRACTION_FAILED: {ImportState.FILE_SELECTED},
    ImportState.VALIDATED: {ImportState.STAGED},
    ImportState.STAGED: {ImportState.CONFIRMED},
    ImportState.CONFIRMED: set(),
    ImportState.CANCELLED: set(),
}


@dataclass(frozen=True)
class ImportCandidate:
    """A placement staged for the operator, with its session-scoped id and due date."""

    id: str
    placement: PlacementRecord
    due_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "dueDate": self.due_date, **self.placement.to_dict()}


@dataclass
class ImportSession:
    """
    Per-upload import state.

    Attributes:
        id: Short random session id (used in logs and candidate ids)
        state: Current ImportState
        filename: Uploaded schedule filename, once selected
        candidates: Staged candidates in extraction order
        selected: Ids of candidates the operator has selected
        buffer_days: Current due-date buffer
    """

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ImportState = ImportState.IDLE
    filename: Optional[str] = None
    candidates: List[ImportCandidate] = field(default_factory=list)
    selected: Set[str] = field(default_factory=set)
    buffer_days: Optional[int] = None

    def can_transition(self, new_state: ImportState) -> bool:
        if new_state == ImportState.CANCELLED:
            return not self.state.is_terminal
        return new_state in _TRANSITIONS[self.state]

    def transition(self, new_state: ImportState) -> None:
        """
        Move to new_state.

        Raises:
            ImportSessionError: If the transition is not allowed from the current state
        """
        if not self.can_transition(new_state):
            raise ImportSessionError(
                f"Session {self.id}: cannot go from {self.state.value} to {new_state.value}"
            )
        old_state = self.state
        self.state = new_state
        log_state_change(self.id, old_state, new_state)

    def select_file(self, filename: str) -> None:
        """Record the uploaded file; also used to re-upload after a failed extraction."""
        self.transition(ImportState.FILE_SELECTED)
        self.filename = filename
        self.candidates = []
        self.selected = set()

    def candidate(self, candidate_id: str) -> ImportCandidate:
        """
        Raises:
            KeyError: If no staged candidate has this id
        """
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        raise KeyError(candidate_id)

    def selected_candidates(self) -> List[ImportCandidate]:
        """Selected candidates in staging order."""
        return [c for c in self.candidates if c.id in self.selected]
