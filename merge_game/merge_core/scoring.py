"""
Scoring System
==============

Applies merge scores based on the item catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from merge_game.merge_core.config_loader import GameConfig, get_config
from merge_game.merge_core.item_catalog import get_catalog


@dataclass(frozen=True)
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    item_id: int      # Tier produced by the merge
    group_size: int

    def __repr__(self) -> str:
        return f"ScoreEvent(merge_to_{self.item_id}x{self.group_size}={self.points})"


class ScoreTracker:
    """
    Tracks game score.

    A merge producing tier t from a group of n items is worth
    catalog[t].points * n. The score never decreases.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._catalog = get_catalog(config)
        self._score: int = 0
        self._merges: int = 0

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def merges(self) -> int:
        """Total number of merges performed."""
        return self._merges

    def get_merge_score(self, to_item_id: int, group_size: int) -> int:
        """
        Points for a merge that produces `to_item_id` from `group_size` items.

        Args:
            to_item_id: Tier placed by the merge.
            group_size: Number of items cleared.

        Returns:
            Points awarded.
        """
        return self._catalog[to_item_id].points * group_size

    def apply_merge(self, to_item_id: int, group_size: int) -> ScoreEvent:
        """
        Apply score for a merge and return the event.

        Args:
            to_item_id: Tier placed by the merge.
            group_size: Number of items cleared.

        Returns:
            ScoreEvent describing the points awarded.
        """
        points = self.get_merge_score(to_item_id, group_size)
        self._score += points
        self._merges += 1
        return ScoreEvent(points=points, item_id=to_item_id, group_size=group_size)

    def restore(self, score: int) -> None:
        """Set the score directly (loading a saved layout)."""
        if score < 0:
            raise ValueError(f"Score must be non-negative, got {score}")
        self._score = int(score)

    def reset(self) -> None:
        """Reset score to zero."""
        self._score = 0
        self._merges = 0
