"""
Brief-store collaborator interface.

Persistence of briefs lives outside this package. The import pipeline only
ever appends newly confirmed items to an existing brief.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

from mediabrief.contexts.staging.brief_data_structure import BriefItem


class BriefStore(ABC):
    """Opaque destination for confirmed brief items."""

    @abstractmethod
    def append_items(self, brief_id: str, items: Sequence[BriefItem]) -> None:
        """Append items to the brief's deliverable list."""
        pass


class InMemoryBriefStore(BriefStore):
    """Dict-backed store for tests and the command-line tool."""

    def __init__(self):
        self.briefs: Dict[str, List[BriefItem]] = {}

    def append_items(self, brief_id: str, items: Sequence[BriefItem]) -> None:
        self.briefs.setdefault(brief_id, []).extend(items)

    def get_items(self, brief_id: str) -> List[BriefItem]:
        return list(self.briefs.get(brief_id, []))
