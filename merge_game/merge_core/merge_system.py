"""
Merge System
============

Detects and resolves merge groups until the board reaches a fixpoint.

One pass: scan row-major for the first group of two or more same-tier,
4-connected items; clear it, place the upgraded tier at the group's seed
cell, score it, then apply gravity. Passes repeat until a full scan finds
nothing, so cascades are re-detected from scratch every time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from merge_game.merge_core.board import Board, Position
from merge_game.merge_core.config_loader import GameConfig, get_config
from merge_game.merge_core.item_catalog import get_catalog
from merge_game.merge_core.scoring import ScoreTracker, ScoreEvent


logger = logging.getLogger(__name__)

# Smallest group that merges
MIN_GROUP_SIZE = 2


@dataclass(frozen=True)
class MergeEvent:
    """Result of a single merge operation."""
    positions: Tuple[Position, ...]  # Visit order, seed first
    from_item: int
    to_item: int
    points: int

    @property
    def seed(self) -> Position:
        """Cell that received the upgraded item."""
        return self.positions[0]

    @property
    def group_size(self) -> int:
        return len(self.positions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "positions": [{"row": r, "col": c} for r, c in self.positions],
            "fromItem": self.from_item,
            "toItem": self.to_item,
            "points": self.points,
        }


@dataclass
class ResolveResult:
    """All merges produced by one resolution run."""
    merges: List[MergeEvent]
    points: int

    @property
    def iterations(self) -> int:
        return len(self.merges)


class MergeSystem:
    """
    Runs the merge resolution loop on a board.

    The board is passed per call so one system can serve a game across
    resets without holding stale references.
    """

    def __init__(
        self,
        scorer: ScoreTracker,
        config: Optional[GameConfig] = None
    ):
        """
        Initialize merge system.

        Args:
            scorer: Score tracker credited with every merge.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._scorer = scorer
        self._catalog = get_catalog(config)

    def merge_group(self, board: Board, group: List[Position]) -> MergeEvent:
        """
        Resolve one group atomically (without gravity).

        Args:
            board: Board to mutate.
            group: Member positions, seed first.

        Returns:
            The recorded MergeEvent.
        """
        seed_row, seed_col = group[0]
        from_item = board[seed_row, seed_col]
        to_item = self._catalog.merge_target(from_item)

        score_event: ScoreEvent = self._scorer.apply_merge(to_item, len(group))

        board.clear(group)
        board.place(seed_row, seed_col, to_item)

        return MergeEvent(
            positions=tuple(group),
            from_item=from_item,
            to_item=to_item,
            points=score_event.points
        )

    def resolve(self, board: Board) -> ResolveResult:
        """
        Merge and settle until no eligible group remains.

        Every pass removes at least one item from the board, so the loop
        runs at most width * height times.

        Args:
            board: Board to mutate.

        Returns:
            ResolveResult with the merge events in resolution order.
        """
        merges: List[MergeEvent] = []
        points = 0

        while True:
            group = board.find_first_group(MIN_GROUP_SIZE)
            if group is None:
                break

            event = self.merge_group(board, group)
            merges.append(event)
            points += event.points
            logger.debug(
                "Merged %d x tier %d at %s into tier %d (+%d)",
                event.group_size, event.from_item, event.seed, event.to_item, event.points
            )

            board.apply_gravity()

        if len(merges) > 1:
            logger.debug("Cascade resolved in %d merges (+%d)", len(merges), points)

        return ResolveResult(merges=merges, points=points)
