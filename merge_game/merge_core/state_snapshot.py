"""
State Snapshot
==============

Read-only view of a game: the board, score, terminal flag and next item.
Packs into numpy arrays for Gymnasium observations or into plain
JSON-ready dictionaries for a transport layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from merge_game.merge_core.board import Board, EMPTY


@dataclass(frozen=True)
class GameSnapshot:
    """
    Complete game state snapshot.

    `board` is an independent (H, W) int16 copy; EMPTY (-1) marks empty cells.
    """
    board: np.ndarray
    score: int
    game_over: bool
    next_item: int
    drops_used: int = 0
    merges: int = 0

    @property
    def height(self) -> int:
        return int(self.board.shape[0])

    @property
    def width(self) -> int:
        return int(self.board.shape[1])

    @property
    def column_heights(self) -> np.ndarray:
        """Occupied cells per column."""
        return np.count_nonzero(self.board != EMPTY, axis=0).astype(np.int32)

    def cell(self, row: int, col: int) -> Optional[int]:
        """Tier at a cell, or None if empty."""
        value = int(self.board[row, col])
        return None if value == EMPTY else value

    def board_lists(self) -> List[List[Optional[int]]]:
        """Rows as nested lists with None for empty cells."""
        return [
            [None if cell == EMPTY else int(cell) for cell in row]
            for row in self.board
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: {board, score, gameOver, nextItem}."""
        return {
            "board": self.board_lists(),
            "score": int(self.score),
            "gameOver": bool(self.game_over),
            "nextItem": int(self.next_item),
        }

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            "board": self.board.astype(np.int16, copy=True),
            "next_item": int(self.next_item),
            "score": np.array(self.score, dtype=np.int64),
            "drops_used": np.array(self.drops_used, dtype=np.int32),
            "column_heights": self.column_heights,
            "game_over": int(self.game_over),
        }


class SnapshotBuilder:
    """Builds snapshots from live game state."""

    @staticmethod
    def build(
        board: Board,
        score: int,
        game_over: bool,
        next_item: int,
        drops_used: int = 0,
        merges: int = 0
    ) -> GameSnapshot:
        array = board.to_array()
        array.setflags(write=False)
        return GameSnapshot(
            board=array,
            score=int(score),
            game_over=bool(game_over),
            next_item=int(next_item),
            drops_used=int(drops_used),
            merges=int(merges)
        )
