"""Central category table: internal ids, display labels and marker styles.

Modify here to reflect across the marker set and the favorites list."""
from __future__ import annotations

from typing import Iterator, Optional

from domain.models import Category

DEFAULT_CATEGORY_ID = "general"

# Ordered; the first entry is the fallback for unknown ids.
CATEGORIES = [
    Category(id="general", label="General", color="#3b82f6", icon="map-pin"),
    Category(id="home", label="Home", color="#22c55e", icon="home"),
    Category(id="work", label="Work", color="#a855f7", icon="briefcase"),
    Category(id="food", label="Food", color="#f97316", icon="utensils"),
    Category(id="leisure", label="Leisure", color="#ec4899", icon="tree-palm"),
]

# Fast lookup dict
_BY_ID = {c.id: c for c in CATEGORIES}


def resolve_category(category_id: Optional[str]) -> Category:
    """Return the category for an id, or the default one when unknown or missing."""
    if not category_id:
        return _BY_ID[DEFAULT_CATEGORY_ID]
    return _BY_ID.get(category_id.strip().lower(), _BY_ID[DEFAULT_CATEGORY_ID])


def normalize_category_id(category_id: Optional[str]) -> str:
    return resolve_category(category_id).id


def iter_categories() -> Iterator[Category]:
    """Yield categories preserving order."""
    yield from CATEGORIES
