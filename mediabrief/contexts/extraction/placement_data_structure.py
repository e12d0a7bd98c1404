"""
Placement data structures for the Extraction context.

PlacementRecord is the normalized shape of one schedule row. Field names are
snake_case in Python and camelCase on the wire (model response and operator
response), mapped by WIRE_NAMES.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import List, Optional

CHANNELS = ("tv", "radio", "ooh", "digital")

CHANNEL_LABELS = {
    "tv": "TV",
    "radio": "Radio",
    "ooh": "Out of Home",
    "digital": "Digital",
}

_CHANNEL_ALIASES = {
    "television": "tv",
    "bvod": "tv",
    "audio": "radio",
    "out of home": "ooh",
    "out-of-home": "ooh",
    "outdoor": "ooh",
    "dooh": "ooh",
    "online": "digital",
    "social": "digital",
    "display": "digital",
}


def normalize_channel(value) -> Optional[str]:
    """Map a channel id, label or common alias to a channel id, None if unrecognized."""
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key in CHANNELS:
        return key
    for channel, label in CHANNEL_LABELS.items():
        if key == label.lower():
            return channel
    return _CHANNEL_ALIASES.get(key)


@dataclass(frozen=True)
class PlacementRecord:
    """
    One normalized placement extracted from a schedule.

    Only site_name is required. Every other field is None when the schedule
    (or the model) did not supply it; absence is never an error here.
    """

    site_name: str
    location: Optional[str] = None
    suburb: Optional[str] = None
    state: Optional[str] = None
    format: Optional[str] = None
    dimensions: Optional[str] = None
    physical_size: Optional[str] = None
    file_format: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    daypart: Optional[str] = None
    spots: Optional[int] = None
    station: Optional[str] = None
    spot_length: Optional[str] = None
    panel_id: Optional[str] = None
    direction: Optional[str] = None
    restrictions: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        """Wire representation with camelCase keys."""
        return {WIRE_NAMES[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict) -> "PlacementRecord":
        """Rebuild a record from its wire representation (e.g. an operator-edited row)."""
        return cls(**{name: data.get(wire) for name, wire in WIRE_NAMES.items() if wire in data})


# snake_case attribute -> camelCase wire name
WIRE_NAMES = {
    f.name: "".join(
        part if i == 0 else part.capitalize() for i, part in enumerate(f.name.split("_"))
    )
    for f in fields(PlacementRecord)
}


@dataclass
class ExtractionResult:
    """
    Candidate placements from one extraction attempt.

    The declared channel/publisher are the operator's choices for this import
    run; detected values are whatever the model reported. Where both exist the
    declared value wins.
    """

    placements: List[PlacementRecord] = field(default_factory=list)
    detected_channel: Optional[str] = None
    detected_publisher: Optional[str] = None
    declared_channel: Optional[str] = None
    declared_publisher: Optional[str] = None

    @property
    def channel(self) -> Optional[str]:
        return self.declared_channel or self.detected_channel

    @property
    def publisher(self) -> Optional[str]:
        return self.declared_publisher or self.detected_publisher


@dataclass
class ValidationResult:
    """
    Verdict of the result validator.

    Attributes:
        valid: True iff issues is empty
        issues: One human-readable string per failing check, in check order
    """

    valid: bool
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "issues": list(self.issues)}


class DebugTrail:
    """
    Append-only, human-readable record of pipeline steps for one import session.

    Returned to the operator with every response so failures can be diagnosed
    without server log access.
    """

    def __init__(self):
        self._steps: List[str] = []

    def add(self, step: str) -> None:
        self._steps.append(step)

    @property
    def steps(self) -> List[str]:
        return list(self._steps)

    def to_dict(self) -> dict:
        return {"steps": self.steps}

    def __len__(self) -> int:
        return len(self._steps)
