"""
Core Game
=========

The board engine: one stateful object per game combining the board, merge
resolution, scoring, next-item queue and termination rules.

`drop()` is the only mutating move and `snapshot()` the only read. The
engine is synchronous and does no locking; callers serialize access to a
given instance (see SessionStore).
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from merge_game.merge_core.board import Board, Position
from merge_game.merge_core.config_loader import GameConfig, get_config
from merge_game.merge_core.item_catalog import ItemCatalog, get_catalog
from merge_game.merge_core.merge_system import MergeSystem, MergeEvent
from merge_game.merge_core.rng import DropQueue
from merge_game.merge_core.rules import GameRules, as_index
from merge_game.merge_core.scoring import ScoreTracker
from merge_game.merge_core.state_snapshot import SnapshotBuilder, GameSnapshot


logger = logging.getLogger(__name__)


class DropError(enum.Enum):
    """Recoverable drop failures."""
    INVALID_MOVE = "Invalid move"
    COLUMN_FULL = "Column is full"

    @property
    def message(self) -> str:
        return self.value


@dataclass
class DropResult:
    """
    Result of a single drop.

    A tagged result: `success` is False exactly when `error` is set. Failed
    drops still report the current score, next item and terminal flag.
    """
    success: bool
    new_score: int
    next_item: int
    game_over: bool
    position: Optional[Position] = None
    merges: List[MergeEvent] = field(default_factory=list)
    points_earned: int = 0
    error: Optional[DropError] = None
    detail: str = ""

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ""

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape of the drop response."""
        if not self.success:
            return {"success": False, "message": self.message}
        row, col = self.position
        return {
            "success": True,
            "position": {"row": row, "column": col},
            "merges": [event.to_dict() for event in self.merges],
            "pointsEarned": self.points_earned,
            "newScore": self.new_score,
            "nextItem": self.next_item,
            "gameOver": self.game_over,
        }


class MergeGame:
    """
    Main game engine.

    Orchestrates:
    - Board placement and gravity
    - Merge detection and resolution
    - Next-item queue (RNG)
    - Scoring
    - Termination rules
    - State snapshots

    One drop = place the item, merge to fixpoint, draw the next item,
    re-check game over.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for the next-item queue. Drawn from the OS
                if None.
        """
        if config is None:
            config = get_config()
        if seed is None:
            seed = random.SystemRandom().randrange(2 ** 31)

        self._config = config
        self._seed = seed

        # Initialize subsystems
        self._catalog = get_catalog(config)
        self._board = Board.from_config(config)
        self._scorer = ScoreTracker(config)
        self._merger = MergeSystem(scorer=self._scorer, config=config)
        self._queue = DropQueue(config, seed)
        self._rules = GameRules(config)

        # Game state
        self._drops_used: int = 0
        self._game_over: bool = False
        self._termination_reason: str = ""

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def seed(self) -> int:
        """Seed of the current episode's next-item queue."""
        return self._seed

    @property
    def catalog(self) -> ItemCatalog:
        """Item catalog (shared, read-only)."""
        return self._catalog

    @property
    def board(self) -> Board:
        """Live board. Treat as read-only; use snapshot() for a copy."""
        return self._board

    @property
    def width(self) -> int:
        return self._board.width

    @property
    def height(self) -> int:
        return self._board.height

    @property
    def score(self) -> int:
        """Current score."""
        return self._scorer.score

    @property
    def merges(self) -> int:
        """Total merge events so far."""
        return self._scorer.merges

    @property
    def drops_used(self) -> int:
        """Number of items placed."""
        return self._drops_used

    @property
    def next_item(self) -> int:
        """Tier advertised for the next drop."""
        return self._queue.current_item_id

    @property
    def game_over(self) -> bool:
        """True once the entry row has been reached. Never reverts."""
        return self._game_over

    @property
    def termination_reason(self) -> str:
        """Reason for game end, or empty string."""
        return self._termination_reason

    def reset(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Reset game to initial state.

        Args:
            seed: New random seed. Uses previous if None.

        Returns:
            Initial game snapshot.
        """
        if seed is not None:
            self._seed = seed

        self._board.reset()
        self._scorer.reset()
        self._queue.reset(self._seed)

        self._drops_used = 0
        self._game_over = False
        self._termination_reason = ""

        return self.snapshot()

    def drop(self, column: Any, item_id: Any) -> DropResult:
        """
        Drop an item into a column and resolve all resulting merges.

        Args:
            column: Target column in [0, width).
            item_id: Tier to place.

        Returns:
            DropResult. INVALID_MOVE after game over or for bad input,
            COLUMN_FULL when the column has no empty cell; neither changes
            the board.
        """
        if self._game_over:
            return self._failure(DropError.INVALID_MOVE, "game is over")

        reason = self._rules.drop.validate(column, item_id, self.next_item)
        if reason is not None:
            return self._failure(DropError.INVALID_MOVE, reason)

        col = as_index(column)
        item = as_index(item_id)

        row = self._board.lowest_empty_row(col)
        if row is None:
            # Stack-out is detected on full-column attempts too
            self._check_game_over()
            return self._failure(DropError.COLUMN_FULL, f"column {col} is full")

        self._board.place(row, col, item)
        self._drops_used += 1

        resolved = self._merger.resolve(self._board)

        self._queue.advance()

        self._check_game_over()

        return DropResult(
            success=True,
            position=(row, col),
            merges=resolved.merges,
            points_earned=resolved.points,
            new_score=self._scorer.score,
            next_item=self.next_item,
            game_over=self._game_over
        )

    def snapshot(self) -> GameSnapshot:
        """Build a read-only copy of the current state."""
        return SnapshotBuilder.build(
            board=self._board,
            score=self._scorer.score,
            game_over=self._game_over,
            next_item=self.next_item,
            drops_used=self._drops_used,
            merges=self._scorer.merges
        )

    def load_board(
        self,
        cells: Union[np.ndarray, Sequence[Sequence[Optional[int]]]],
        score: int = 0
    ) -> None:
        """
        Replace the board with a given layout (puzzles, tools, tests).

        No merges run and game over is not evaluated until the next drop.

        Args:
            cells: Rows of tiers, None or EMPTY for empty cells.
            score: Score to continue from.

        Raises:
            ValueError: If the game is over or the layout is unusable.
        """
        if self._game_over:
            raise ValueError("Cannot load a board into a finished game")

        board = Board.from_cells(cells, num_item_types=len(self._catalog))
        if (board.height, board.width) != (self._board.height, self._board.width):
            raise ValueError(
                f"Board layout is {board.height}x{board.width}, "
                f"expected {self._board.height}x{self._board.width}"
            )

        self._board = board
        self._scorer.restore(score)

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self._scorer.score,
            "drops_used": self._drops_used,
            "total_merges": self._scorer.merges,
            "next_item": self.next_item,
            "terminated_reason": self._termination_reason,
        }

    def _check_game_over(self) -> None:
        if self._game_over:
            return
        result = self._rules.termination.check(self._board)
        if result.terminated:
            self._game_over = True
            self._termination_reason = result.reason
            logger.debug(
                "Game over (%s) after %d drops, score %d",
                result.reason, self._drops_used, self._scorer.score
            )

    def _failure(self, error: DropError, detail: str) -> DropResult:
        logger.debug("Drop rejected: %s (%s)", error.message, detail)
        return DropResult(
            success=False,
            error=error,
            detail=detail,
            new_score=self._scorer.score,
            next_item=self.next_item,
            game_over=self._game_over
        )
