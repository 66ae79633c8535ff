"""
Board
=====

Fixed-size item grid with placement, connected-group search and gravity.

Cells hold a tier index or EMPTY. Row 0 is the entry (top) row and row
height-1 is the floor. After every gravity pass the occupied cells of each
column are contiguous from the floor upward.
"""

from __future__ import annotations

import numbers
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from merge_game.merge_core.config_loader import GameConfig


# Sentinel for an empty cell, distinct from every tier index
EMPTY = -1

CELL_DTYPE = np.int16

Position = Tuple[int, int]  # (row, column)

# Push order for the group search work-list: up, down, left, right
NEIGHBOR_OFFSETS: Tuple[Position, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Board:
    """
    HEIGHT x WIDTH grid backed by a numpy array.

    The board performs no scoring and knows nothing about merge rules
    beyond "same tier, 4-directionally adjacent".
    """

    def __init__(self, width: int, height: int):
        """
        Create an empty board.

        Args:
            width: Number of columns.
            height: Number of rows.
        """
        if width < 1 or height < 1:
            raise ValueError(f"Board must be at least 1x1, got {width}x{height}")
        self._width = width
        self._height = height
        self._cells = np.full((height, width), EMPTY, dtype=CELL_DTYPE)

    @classmethod
    def from_config(cls, config: GameConfig) -> "Board":
        """Create an empty board sized by the game config."""
        return cls(config.board.width, config.board.height)

    @classmethod
    def from_cells(
        cls,
        cells: Union[np.ndarray, Sequence[Sequence[Optional[int]]]],
        num_item_types: Optional[int] = None
    ) -> "Board":
        """
        Build a board from a row-major layout.

        Args:
            cells: Rows of tier indices; None or EMPTY marks an empty cell.
            num_item_types: If given, every tier must be below this.

        Returns:
            New Board holding the layout.

        Raises:
            ValueError: On ragged rows, unknown tiers or floating items.
        """
        rows = [[cls._layout_cell(cell, num_item_types) for cell in row] for row in cells]
        if not rows or not rows[0]:
            raise ValueError("Board layout must have at least one row and column")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("Board layout rows must all have the same length")

        board = cls(width, len(rows))
        array = np.asarray(rows, dtype=CELL_DTYPE)
        board._cells[:, :] = array
        if not board.satisfies_gravity():
            raise ValueError("Board layout has an empty cell beneath an occupied one")
        return board

    @staticmethod
    def _layout_cell(cell: object, num_item_types: Optional[int]) -> int:
        """Validate one layout cell and return it as a tier index or EMPTY."""
        if cell is None:
            return EMPTY
        if isinstance(cell, bool) or not isinstance(cell, numbers.Integral):
            raise ValueError(f"Board layout cell {cell!r} is not an integer tier")
        tier = int(cell)
        if tier == EMPTY:
            return EMPTY
        if tier < 0:
            raise ValueError(f"Board layout contains negative tier index {tier}")
        limit = num_item_types if num_item_types is not None else np.iinfo(CELL_DTYPE).max
        if tier >= limit:
            raise ValueError(f"Board layout contains tier {tier} outside [0, {limit})")
        return tier

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def floor_row(self) -> int:
        """Index of the bottom row."""
        return self._height - 1

    def __getitem__(self, pos: Position) -> int:
        return int(self._cells[pos])

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self._height and 0 <= col < self._width

    def is_empty(self, row: int, col: int) -> bool:
        return self._cells[row, col] == EMPTY

    def lowest_empty_row(self, col: int) -> Optional[int]:
        """
        Scan a column from the floor upward for the first empty cell.

        Returns:
            Row index, or None if the column is full.
        """
        for row in range(self.floor_row, -1, -1):
            if self._cells[row, col] == EMPTY:
                return row
        return None

    def place(self, row: int, col: int, item_id: int) -> None:
        """Write a tier into a cell."""
        self._cells[row, col] = item_id

    def clear(self, positions: Iterable[Position]) -> None:
        """Empty every given cell."""
        for row, col in positions:
            self._cells[row, col] = EMPTY

    def find_group(self, row: int, col: int) -> List[Position]:
        """
        Collect the 4-connected group of same-tier cells containing (row, col).

        Uses an explicit stack and a visited set, so board size never
        affects recursion depth.

        Returns:
            Member positions in visit order; the seed cell comes first.
            Empty if the seed cell is empty.
        """
        item_id = self._cells[row, col]
        if item_id == EMPTY:
            return []

        visited: Set[Position] = set()
        group: List[Position] = []
        stack: List[Position] = [(row, col)]

        while stack:
            r, c = stack.pop()
            if (r, c) in visited:
                continue
            if not self.in_bounds(r, c):
                continue
            if self._cells[r, c] != item_id:
                continue

            visited.add((r, c))
            group.append((r, c))

            for dr, dc in NEIGHBOR_OFFSETS:
                stack.append((r + dr, c + dc))

        return group

    def find_first_group(self, min_size: int = 2) -> Optional[List[Position]]:
        """
        Find the first group of at least `min_size` members in row-major order.

        The seed of the returned group is the earliest occupied cell
        (row 0..H-1, then column 0..W-1) whose group qualifies.

        Returns:
            Member positions (seed first), or None at a fixpoint.
        """
        explored: Set[Position] = set()
        for row in range(self._height):
            for col in range(self._width):
                if self._cells[row, col] == EMPTY or (row, col) in explored:
                    continue
                group = self.find_group(row, col)
                if len(group) >= min_size:
                    return group
                explored.update(group)
        return None

    def apply_gravity(self) -> bool:
        """
        Compact every column downward, preserving vertical order.

        Returns:
            True if any cell moved.
        """
        moved = False
        for col in range(self._width):
            column = self._cells[:, col]
            occupied = column[column != EMPTY]
            count = len(occupied)
            if count == 0:
                continue
            if np.all(column[self._height - count:] != EMPTY):
                continue
            column[:] = EMPTY
            column[self._height - count:] = occupied
            moved = True
        return moved

    def satisfies_gravity(self) -> bool:
        """True if no column has an empty cell strictly below an occupied one."""
        occupied = self._cells != EMPTY
        # Once a column turns occupied going down, it must stay occupied
        return not np.any(occupied[:-1] & ~occupied[1:])

    def top_row_occupied(self) -> bool:
        """True if any cell of the entry row holds an item."""
        return bool(np.any(self._cells[0] != EMPTY))

    def column_full(self, col: int) -> bool:
        return self._cells[0, col] != EMPTY

    def column_heights(self) -> np.ndarray:
        """Number of occupied cells per column."""
        return np.count_nonzero(self._cells != EMPTY, axis=0).astype(np.int32)

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self._cells != EMPTY))

    def max_tier(self) -> int:
        """Highest tier on the board, or EMPTY for an empty board."""
        return int(self._cells.max())

    def to_array(self) -> np.ndarray:
        """Independent copy of the cell array."""
        return self._cells.copy()

    def to_lists(self) -> List[List[Optional[int]]]:
        """Rows as nested lists with None for empty cells."""
        return [
            [None if cell == EMPTY else int(cell) for cell in row]
            for row in self._cells
        ]

    def copy(self) -> "Board":
        board = Board(self._width, self._height)
        board._cells[:, :] = self._cells
        return board

    def reset(self) -> None:
        """Empty every cell."""
        self._cells.fill(EMPTY)

    def render_text(self, cell_width: int = 3) -> str:
        """Plain-text rendering, top row first, with a column index footer."""
        lines = []
        for row in self._cells:
            lines.append("".join(
                ".".rjust(cell_width) if cell == EMPTY else str(int(cell)).rjust(cell_width)
                for cell in row
            ))
        lines.append("-" * (cell_width * self._width))
        lines.append("".join(str(c).rjust(cell_width) for c in range(self._width)))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render_text()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return np.array_equal(self._cells, other._cells)

    __hash__ = None  # mutable
