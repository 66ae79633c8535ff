"""
Game Rules
==========

Handles drop validation and termination conditions.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Optional

from merge_game.merge_core.board import Board
from merge_game.merge_core.config_loader import GameConfig, get_config
from merge_game.merge_core.item_catalog import get_catalog


@dataclass
class TerminationResult:
    """Result of termination check."""
    terminated: bool
    reason: str

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(False, "")

    @staticmethod
    def game_over(reason: str) -> "TerminationResult":
        return TerminationResult(True, reason)


def as_index(value: Any) -> Optional[int]:
    """
    Coerce a caller-supplied column or item ID to int.

    Accepts Python and numpy integers. Rejects bools, floats, strings and
    everything else by returning None.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        return None
    return int(value)


class DropRules:
    """
    Validates drop requests before they touch the board.

    By default the caller's item is trusted even if it differs from the
    advertised next item (see `enforce_next_item`).
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize drop rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._catalog = get_catalog(config)
        self._width = config.board.width
        self._enforce_next_item = config.rules.enforce_next_item

    @property
    def enforce_next_item(self) -> bool:
        return self._enforce_next_item

    def validate(self, column: Any, item_id: Any, next_item: int) -> Optional[str]:
        """
        Check a drop request.

        Args:
            column: Requested column.
            item_id: Requested item tier.
            next_item: Item currently advertised by the game.

        Returns:
            None if the request is acceptable, otherwise a short reason.
        """
        col = as_index(column)
        if col is None:
            return f"column must be an integer, got {column!r}"
        if not 0 <= col < self._width:
            return f"column {col} out of range [0, {self._width})"

        item = as_index(item_id)
        if item is None:
            return f"item must be an integer, got {item_id!r}"
        if not self._catalog.is_valid(item):
            return f"item {item} out of range [0, {len(self._catalog)})"

        if self._enforce_next_item and item != next_item:
            return f"item {item} does not match next item {next_item}"

        return None


class TerminationRules:
    """
    Handles game termination.

    The game is over as soon as any cell of the entry row is occupied.
    """

    TOP_ROW = "top_row"

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._config = config

    def check(self, board: Board) -> TerminationResult:
        """
        Check termination conditions for a board.

        Args:
            board: Current board.

        Returns:
            TerminationResult indicating game state.
        """
        if board.top_row_occupied():
            return TerminationResult.game_over(self.TOP_ROW)
        return TerminationResult.none()


class GameRules:
    """
    Combined interface for all game rules.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize game rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self.drop = DropRules(config)
        self.termination = TerminationRules(config)
