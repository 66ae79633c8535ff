"""
Item Catalog
============

Provides convenient access to item tier definitions loaded from config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Optional

from merge_game.merge_core.config_loader import (
    GameConfig,
    ItemConfig,
    get_config
)


@dataclass(frozen=True)
class ItemType:
    """
    Runtime representation of an item tier.

    Wraps ItemConfig with convenience accessors.
    """
    config: ItemConfig

    @property
    def id(self) -> int:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def size(self) -> int:
        return self.config.size

    @property
    def points(self) -> int:
        return self.config.points

    def to_dict(self) -> Dict[str, Any]:
        """Record shape exposed to clients."""
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "points": self.points,
        }

    def __repr__(self) -> str:
        return f"ItemType({self.id}: {self.name})"


class ItemCatalog:
    """
    Ordered, read-only collection of all item tiers.

    Tier k merges into tier k + 1. The last tier is a ceiling: it still
    merges, but the result stays at the same tier.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize catalog from game config.

        Args:
            config: GameConfig instance. If None, loads from default location.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._types: Tuple[ItemType, ...] = tuple(
            ItemType(item_config) for item_config in config.items
        )
        self._droppable_count = config.rng.droppable_count

    def __len__(self) -> int:
        """Total number of tiers."""
        return len(self._types)

    def __getitem__(self, item_id: int) -> ItemType:
        """Get item type by ID."""
        if 0 <= item_id < len(self._types):
            return self._types[item_id]
        raise IndexError(f"Item ID {item_id} out of range [0, {len(self._types)})")

    def __iter__(self):
        """Iterate over all item types."""
        return iter(self._types)

    @property
    def all_types(self) -> Tuple[ItemType, ...]:
        """All item types in order."""
        return self._types

    @property
    def droppable_types(self) -> Tuple[ItemType, ...]:
        """Item types that can be offered for a drop (first N tiers)."""
        return self._types[:self._droppable_count]

    @property
    def droppable_count(self) -> int:
        """Number of droppable tiers."""
        return self._droppable_count

    @property
    def top_tier_id(self) -> int:
        """ID of the ceiling tier."""
        return len(self._types) - 1

    @property
    def top_tier(self) -> ItemType:
        """The ceiling tier (e.g. the watermelon)."""
        return self._types[-1]

    def merge_target(self, item_id: int) -> int:
        """
        Tier produced by merging a group of the given tier.

        Args:
            item_id: Tier of the merging group.

        Returns:
            min(item_id + 1, top tier).
        """
        return min(item_id + 1, self.top_tier_id)

    def merge_points(self, item_id: int, group_size: int) -> int:
        """Points for merging `group_size` items of tier `item_id`."""
        return self[self.merge_target(item_id)].points * group_size

    def is_valid(self, item_id: int) -> bool:
        """Check if an ID names a tier in this catalog."""
        return 0 <= item_id < len(self._types)

    def is_droppable(self, item_id: int) -> bool:
        """Check if an ID is in the droppable subset."""
        return 0 <= item_id < self._droppable_count

    def is_top_tier(self, item_id: int) -> bool:
        """Check if an ID is the ceiling tier."""
        return item_id == self.top_tier_id

    def get_by_name(self, name: str) -> Optional[ItemType]:
        """Get item type by name (case-insensitive)."""
        name_lower = name.lower()
        for item_type in self._types:
            if item_type.name.lower() == name_lower:
                return item_type
        return None

    def to_list(self) -> List[Dict[str, Any]]:
        """All tiers as plain records, in tier order."""
        return [item_type.to_dict() for item_type in self._types]


# Module-level singleton
_cached_catalog: Optional[ItemCatalog] = None


def get_catalog(config: Optional[GameConfig] = None) -> ItemCatalog:
    """
    Get the item catalog singleton.

    Args:
        config: Optional config to use. If None, uses cached or default config.

    Returns:
        ItemCatalog instance.
    """
    global _cached_catalog
    if _cached_catalog is None or (config is not None and config is not _cached_catalog._config):
        _cached_catalog = ItemCatalog(config)
    return _cached_catalog
