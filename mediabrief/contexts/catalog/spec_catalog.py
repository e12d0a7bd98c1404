"""
Static spec catalog.

Read-only channel / state / publisher / placement data bundled with the
package as spec_catalog.yaml. The import pipeline never consults it; the
stager uses it to resolve display names for confirmed brief items.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

load_dotenv()

DEFAULT_CATALOG_PATH = Path(__file__).parent / "spec_catalog.yaml"
CATALOG_PATH = Path(os.getenv("SPEC_CATALOG_PATH") or DEFAULT_CATALOG_PATH)


class SpecCatalog:
    """
    Query interface over the catalog data.

    Args:
        data: Plain dict with 'channels', 'states' and 'publishers' keys
              (as produced by OmegaConf.to_container on the YAML)
    """

    def __init__(self, data: Dict[str, Any]):
        self.version = data.get("version")
        self._channels: Dict[str, str] = data.get("channels", {})
        self._states: Dict[str, Dict[str, Any]] = data.get("states", {})
        self._publishers: Dict[str, List[Dict[str, Any]]] = data.get("publishers", {})

        # lookup key -> state id, for ids, display names and aliases
        self._state_lookup: Dict[str, str] = {}
        for state_id, state in self._states.items():
            self._state_lookup[state_id] = state_id
            self._state_lookup[state["name"].lower()] = state_id
            for alias in state.get("aliases", []):
                self._state_lookup[alias.lower()] = state_id

    @classmethod
    def from_yaml(cls, path: Path) -> "SpecCatalog":
        return cls(OmegaConf.to_container(OmegaConf.load(path), resolve=True))

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    @property
    def states(self) -> List[str]:
        return list(self._states)

    def channel_name(self, channel: Optional[str]) -> Optional[str]:
        return self._channels.get(channel)

    def state_name(self, state: Optional[str]) -> Optional[str]:
        entry = self._states.get(state)
        return entry["name"] if entry else None

    def normalize_state(self, value: Optional[str]) -> Optional[str]:
        """
        Map a free-text state to its catalog id.

        Examples:
            normalize_state("NSW")               # "nsw"
            normalize_state("New South Wales")   # "nsw"
            normalize_state("Narnia")            # None
        """
        if not isinstance(value, str):
            return None
        return self._state_lookup.get(" ".join(value.split()).lower())

    def get_publishers(self, channel: str, state: str) -> List[Dict[str, Any]]:
        """Publishers of a channel operating in the state or nationally."""
        return [
            publisher
            for publisher in self._publishers.get(channel, [])
            if state in publisher["states"] or "national" in publisher["states"]
        ]

    def get_publisher(self, channel: Optional[str], publisher_id: Optional[str]) -> Optional[Dict[str, Any]]:
        for publisher in self._publishers.get(channel, []):
            if publisher["id"] == publisher_id:
                return publisher
        return None

    def publisher_name(self, channel: Optional[str], publisher_id: Optional[str]) -> Optional[str]:
        publisher = self.get_publisher(channel, publisher_id)
        return publisher["name"] if publisher else None

    def get_placements(self, channel: str, state: str, publisher_id: str) -> List[Dict[str, Any]]:
        """
        Catalog placements for a channel/state/publisher combination.

        Empty when the publisher is unknown or does not operate in the state
        (publishers listed as 'national' operate everywhere).
        """
        publisher = self.get_publisher(channel, publisher_id)
        if publisher is None:
            return []
        if state not in publisher["states"] and "national" not in publisher["states"]:
            return []
        return publisher.get("placements", [])


@lru_cache(maxsize=None)
def load_catalog(path: Optional[Path] = None) -> SpecCatalog:
    """Load and cache the catalog (default: SPEC_CATALOG_PATH, else the bundled YAML)."""
    return SpecCatalog.from_yaml(path or CATALOG_PATH)


def get_publishers(channel: str, state: str) -> List[Dict[str, Any]]:
    return load_catalog().get_publishers(channel, state)


def get_placements(channel: str, state: str, publisher_id: str) -> List[Dict[str, Any]]:
    return load_catalog().get_placements(channel, state, publisher_id)


def channel_name(channel: Optional[str]) -> Optional[str]:
    return load_catalog().channel_name(channel)


def state_name(state: Optional[str]) -> Optional[str]:
    return load_catalog().state_name(state)


def publisher_name(channel: Optional[str], publisher_id: Optional[str]) -> Optional[str]:
    return load_catalog().publisher_name(channel, publisher_id)


def normalize_state(value: Optional[str]) -> Optional[str]:
    return load_catalog().normalize_state(value)
