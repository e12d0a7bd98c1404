"""
Brief deliverable data structures for the Staging context.

BriefItem is the destination shape of a confirmed placement. BriefCart is the
in-progress deliverable list of one brief; it guarantees id uniqueness and
remembers which items have already been handed to the brief store.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Iterable, List, Optional, Set

STATUSES = ("briefed", "received", "approved", "live")
INITIAL_STATUS = "briefed"

_WIRE_NAMES = {
    "channel_name": "channelName",
    "state_name": "stateName",
    "publisher_name": "publisherName",
    "placement_name": "placementName",
    "due_date": "dueDate",
    "flight_start": "flightStart",
    "flight_end": "flightEnd",
}


@dataclass
class BriefItem:
    """
    One deliverable in a creative brief.

    Status and uploaded files are changed later by external collaborators; the
    id never changes once the item is in a cart.
    """

    id: str
    channel: Optional[str]
    channel_name: Optional[str]
    state: Optional[str]
    state_name: Optional[str]
    publisher: Optional[str]
    publisher_name: Optional[str]
    placement_name: str
    location: Optional[str] = None
    format: Optional[str] = None
    specs: Dict[str, object] = field(default_factory=dict)
    notes: Optional[str] = None
    restrictions: List[str] = field(default_factory=list)
    due_date: Optional[str] = None
    flight_start: Optional[str] = None
    flight_end: Optional[str] = None
    status: str = INITIAL_STATUS

    def __post_init__(self):
        if self.status not in STATUSES:
            raise ValueError(f"Unknown status '{self.status}'. Use one of: {', '.join(STATUSES)}")

    def to_dict(self) -> dict:
        """Wire representation with camelCase keys."""
        return {_WIRE_NAMES.get(key, key): value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict) -> "BriefItem":
        """Rebuild an item from its wire representation (e.g. a saved cart file)."""
        wire_to_attr = {wire: attr for attr, wire in _WIRE_NAMES.items()}
        attributes = {f.name for f in fields(cls)}
        kwargs = {wire_to_attr.get(key, key): value for key, value in data.items()}
        return cls(**{key: value for key, value in kwargs.items() if key in attributes})


class BriefCart:
    """
    Ordered, id-unique list of BriefItems for one brief.

    Args:
        items: Items already in the brief (e.g., loaded from the brief store).
               These count as persisted.
    """

    def __init__(self, items: Iterable[BriefItem] = ()):
        self._items: List[BriefItem] = []
        self._persisted: Set[str] = set()
        self.add(items)
        self._persisted.update(item.id for item in self._items)

    @property
    def items(self) -> List[BriefItem]:
        return list(self._items)

    @property
    def ids(self) -> Set[str]:
        return {item.id for item in self._items}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self._items)

    def add(self, items: Iterable[BriefItem]) -> None:
        """
        Append items.

        Raises:
            ValueError: If any id is already in the cart (or repeated in items);
                        the cart is left unchanged
        """
        items = list(items)
        existing = self.ids
        for item in items:
            if item.id in existing:
                raise ValueError(f"Duplicate brief item id: {item.id}")
            existing.add(item.id)
        self._items.extend(items)

    def remove(self, item_id: str) -> None:
        """
        Remove an item that has not been persisted yet.

        Raises:
            KeyError: If no item has this id
            ValueError: If the item was already handed to the brief store
        """
        if item_id not in self:
            raise KeyError(item_id)
        if item_id in self._persisted:
            raise ValueError(f"Item {item_id} is already persisted; delete it from the brief")
        self._items = [item for item in self._items if item.id != item_id]

    def pending(self) -> List[BriefItem]:
        """Items not yet handed to the brief store, in cart order."""
        return [item for item in self._items if item.id not in self._persisted]

    def flush(self, store, brief_id: str) -> List[BriefItem]:
        """
        Hand pending items to the brief store's append operation.

        Args:
            store: BriefStore collaborator
            brief_id: Destination brief

        Returns:
            The items handed over (empty if nothing was pending)
        """
        pending = self.pending()
        if pending:
            store.append_items(brief_id, pending)
            self._persisted.update(item.id for item in pending)
        return pending
