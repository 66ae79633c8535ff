"""
Team Template Agent
===================

Your agent must provide one of:
1. A `MergeAgent` class with an `act(obs) -> column` method
2. A standalone `act(obs) -> column` function

Columns are integers in [0, board width). The dropped item is always the
observation's `next_item`.
"""

from __future__ import annotations

from typing import Dict
import numpy as np


class MergeAgent:
    """
    Your merge game agent implementation.

    Replace the strategy in `act()` with your own logic.
    """

    def __init__(self):
        """Initialize your agent. Load models, set up state, etc."""
        self.rng = np.random.default_rng()

    def act(self, obs: Dict[str, np.ndarray]) -> int:
        """
        Choose a column based on the observation.

        Args:
            obs: Dictionary containing game state (board, next_item, score,
                drops_used, column_heights, game_over).

        Returns:
            Column index to drop into.
        """
        open_columns = np.flatnonzero(obs["column_heights"] < obs["board"].shape[0])
        if len(open_columns) == 0:
            return 0
        return int(self.rng.choice(open_columns))

    def reset(self) -> None:
        """Called when a new episode starts (optional)."""
        pass


def act(obs: Dict[str, np.ndarray]) -> int:
    """Standalone act function (alternative to class-based agent)."""
    return int(np.argmin(obs["column_heights"]))
