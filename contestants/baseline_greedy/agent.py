"""
Baseline Greedy Agent - Drops onto matching items, else onto the lowest column.

This serves as:
1. A working example of how to read observations and return actions
2. A baseline benchmark for teams to compare against
3. A verification that the environment API works correctly

Strategy:
- Look at the top item of every column that still has room
- If some top item equals next_item, drop there (guaranteed merge)
- Otherwise drop into the lowest open column (leftmost on ties)
"""

import numpy as np
from typing import Any, Dict, Optional

EMPTY = -1


class MergeAgent:
    """
    Simple baseline agent that chases immediate merges.
    """

    def __init__(self, debug: bool = False):
        """
        Initialize the agent.

        Args:
            debug: If True, print decisions to stdout.
        """
        self.debug = debug

    def reset(self, seed: Optional[int] = None) -> None:
        """Reset agent state for a new episode (stateless)."""

    @staticmethod
    def top_items(board: np.ndarray) -> np.ndarray:
        """Top item of every column, EMPTY for empty columns."""
        height = board.shape[0]
        occupied = board != EMPTY
        # First occupied row per column; height when the column is empty
        first_row = np.where(occupied.any(axis=0), occupied.argmax(axis=0), height)
        tops = np.full(board.shape[1], EMPTY, dtype=np.int64)
        has_items = first_row < height
        tops[has_items] = board[first_row[has_items], np.flatnonzero(has_items)]
        return tops

    def act(self, observation: Dict[str, Any], debug: bool = False) -> int:
        """
        Choose the column to drop into.

        Args:
            observation: Dict of numpy arrays from the environment.
            debug: If True, print debug info for this step.

        Returns:
            Column index.
        """
        board = np.asarray(observation["board"])
        heights = np.asarray(observation["column_heights"])
        next_item = int(observation["next_item"])
        height = board.shape[0]

        open_columns = np.flatnonzero(heights < height)
        if len(open_columns) == 0:
            return 0

        tops = self.top_items(board)
        matching = [int(c) for c in open_columns if tops[c] == next_item]

        if matching:
            # Prefer the match sitting lowest on the board
            column = min(matching, key=lambda c: (heights[c], c))
            reason = "match"
        else:
            column = int(min(open_columns, key=lambda c: (heights[c], c)))
            reason = "lowest"

        if debug or self.debug:
            print(f"[Greedy Agent] Item={next_item}, Column={column} ({reason}), "
                  f"Heights={heights.tolist()}")

        return column


# Convenience function to create agent (used by evaluation harness)
def create_agent(**kwargs) -> MergeAgent:
    """Factory function to create an agent instance."""
    return MergeAgent(**kwargs)
