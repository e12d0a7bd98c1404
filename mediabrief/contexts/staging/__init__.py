"""
Staging Context

Responsibilities:
- Computes creative due dates from flight start dates and a buffer
- Stages extracted placements as selectable import candidates
- Confirms the operator's selection into a brief cart (additive only)
- Tracks the per-upload import session state machine

Owns: Import sessions, brief carts, due dates
Never: Calls the generative model or persists briefs itself
"""

from mediabrief.contexts.staging.brief_data_structure import STATUSES, BriefCart, BriefItem
from mediabrief.contexts.staging.brief_store import BriefStore, InMemoryBriefStore
from mediabrief.contexts.staging.due_dates import DEFAULT_BUFFER_DAYS, apply_buffer, due_date
from mediabrief.contexts.staging.import_session import ImportCandidate, ImportSession, ImportState
from mediabrief.contexts.staging.import_stager import ImportStager

__all__ = [
    "STATUSES",
    "BriefCart",
    "BriefItem",
    "BriefStore",
    "InMemoryBriefStore",
    "DEFAULT_BUFFER_DAYS",
    "apply_buffer",
    "due_date",
    "ImportCandidate",
    "ImportSession",
    "ImportState",
    "ImportStager",
]
