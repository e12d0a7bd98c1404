"""
Catalog Context

Responsibilities:
- Loads the bundled channel/state/publisher/placement dataset
- Resolves display names and free-text states

Owns: Static spec catalog
Never: Changes at runtime
"""

from mediabrief.contexts.catalog.spec_catalog import (
    SpecCatalog,
    channel_name,
    get_placements,
    get_publishers,
    load_catalog,
    normalize_state,
    publisher_name,
    state_name,
)

__all__ = [
    "SpecCatalog",
    "channel_name",
    "get_placements",
    "get_publishers",
    "load_catalog",
    "normalize_state",
    "publisher_name",
    "state_name",
]
