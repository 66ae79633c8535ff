"""
RNG - Next Item Queue
=====================

Provides deterministic next-item draws from the droppable tiers.

Two strategies:
- uniform: every draw is independent and uniform over the droppable tiers.
- bag: weighted shuffle-bag; the bag refills and reshuffles when exhausted,
  which reduces variance while keeping variability.
"""

from __future__ import annotations

import random
from typing import List, Optional

from merge_game.merge_core.config_loader import GameConfig, get_config


class DropQueue:
    """
    Source of the advertised next item.

    `current_item_id` is the item offered for the next drop. `advance()`
    consumes it and draws a replacement.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize drop queue.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._strategy = config.rng.strategy
        self._droppable_count = config.rng.droppable_count
        self._rng = random.Random(seed)

        # Build bag template from weights
        self._bag_template: List[int] = []
        if self._strategy == "bag":
            for item_id, weight in enumerate(config.rng.weights):
                self._bag_template.extend([item_id] * weight)

            target_size = config.rng.bag_size
            if len(self._bag_template) < target_size:
                # Pad with weighted random selections
                while len(self._bag_template) < target_size:
                    self._bag_template.append(self._weighted_choice())
            elif len(self._bag_template) > target_size:
                self._bag_template = self._bag_template[:target_size]

        # Reseed so construction and reset(seed) yield the same sequence
        self._rng = random.Random(seed)
        self._bag: List[int] = []
        self._index: int = 0
        self._current: int = 0
        self._start()

    def _weighted_choice(self) -> int:
        """Choose a random item ID weighted by config weights."""
        weights = self._config.rng.weights
        total = sum(weights)
        r = self._rng.random() * total
        cumulative = 0
        for item_id, weight in enumerate(weights):
            cumulative += weight
            if r < cumulative:
                return item_id
        return len(weights) - 1

    def _refill_bag(self) -> None:
        """Refill and shuffle the bag."""
        self._bag = self._bag_template.copy()
        self._rng.shuffle(self._bag)
        self._index = 0

    def _draw(self) -> int:
        """Draw one item ID with the configured strategy."""
        if self._strategy == "uniform":
            return self._rng.randrange(self._droppable_count)

        if self._index >= len(self._bag):
            self._refill_bag()
        item_id = self._bag[self._index]
        self._index += 1
        return item_id

    def _start(self) -> None:
        if self._strategy == "bag":
            self._refill_bag()
        self._current = self._draw()

    @property
    def current_item_id(self) -> int:
        """ID of the item offered for the next drop."""
        return self._current

    @property
    def strategy(self) -> str:
        return self._strategy

    def advance(self) -> int:
        """
        Consume the current item and draw the next one.

        Returns:
            The item ID that was current (now consumed).
        """
        consumed = self._current
        self._current = self._draw()
        return consumed

    def peek(self, count: int = 2) -> List[int]:
        """
        Peek at upcoming item IDs without consuming.

        The first entry is the current item. Later entries are drawn and
        then the generator state is restored, so they match what
        `advance()` will produce.

        Args:
            count: Number of upcoming items to peek.

        Returns:
            List of upcoming item IDs.
        """
        if count <= 0:
            return []

        saved_rng = self._rng.getstate()
        saved_bag = self._bag.copy()
        saved_index = self._index

        result = [self._current]
        try:
            for _ in range(count - 1):
                result.append(self._draw())
        finally:
            self._rng.setstate(saved_rng)
            self._bag = saved_bag
            self._index = saved_index

        return result

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset the queue with optional new seed.

        Args:
            seed: New random seed. Keeps current generator if None.
        """
        if seed is not None:
            self._rng = random.Random(seed)
        self._start()
