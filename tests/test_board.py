"""
Tests for the board grid: placement, group search and queries.
"""

import pytest
import numpy as np

from merge_game.merge_core.board import Board, EMPTY
from merge_game.merge_core.game import MergeGame


@pytest.fixture
def board(config):
    return Board.from_config(config)


class TestBoardBasics:
    """Test construction and simple queries."""

    def test_new_board_is_empty(self, board, config):
        """A fresh board has the configured size and no items."""
        assert board.width == config.board.width
        assert board.height == config.board.height
        assert board.occupied_count() == 0
        assert board.max_tier() == EMPTY
        assert not board.top_row_occupied()

    def test_invalid_size_rejected(self):
        """Boards must be at least 1x1."""
        with pytest.raises(ValueError):
            Board(0, 5)

    def test_lowest_empty_row_starts_at_floor(self, board):
        """The first drop into a column lands on the floor row."""
        assert board.lowest_empty_row(3) == board.floor_row
        board.place(board.floor_row, 3, 0)
        assert board.lowest_empty_row(3) == board.floor_row - 1

    def test_lowest_empty_row_full_column(self):
        """A full column has no landing row."""
        board = Board.from_cells([[0], [1], [0]])
        assert board.lowest_empty_row(0) is None
        assert board.column_full(0)

    def test_column_heights(self):
        """Column heights count occupied cells."""
        board = Board.from_cells([
            [None, None, None],
            [0, None, None],
            [1, 2, None],
        ])
        assert board.column_heights().tolist() == [2, 1, 0]

    def test_to_array_is_a_copy(self, board):
        """Mutating an exported array leaves the board alone."""
        array = board.to_array()
        array[0, 0] = 5
        assert board.is_empty(0, 0)

    def test_to_lists_uses_none(self):
        """Nested-list export marks empty cells as None."""
        board = Board.from_cells([[None, None], [3, None]])
        assert board.to_lists() == [[None, None], [3, None]]

    def test_equality_and_copy(self):
        """Copies compare equal and are independent."""
        board = Board.from_cells([[None], [2]])
        clone = board.copy()
        assert clone == board
        clone.place(0, 0, 1)
        assert clone != board

    def test_render_text(self):
        """Text rendering shows tiers, dots for empties and a column footer."""
        board = Board.from_cells([[None, None], [4, None]])
        text = board.render_text()
        lines = text.splitlines()
        assert lines[0].split() == [".", "."]
        assert lines[1].split() == ["4", "."]
        assert lines[-1].split() == ["0", "1"]


class TestFromCells:
    """Test layout validation."""

    def test_ragged_rows_rejected(self):
        """All rows must have the same length."""
        with pytest.raises(ValueError):
            Board.from_cells([[None, None], [0]])

    def test_floating_item_rejected(self):
        """A layout with an empty cell under an item breaks gravity."""
        with pytest.raises(ValueError):
            Board.from_cells([[0], [None]])

    def test_unknown_tier_rejected(self):
        """Tiers must be below the catalog size when one is given."""
        with pytest.raises(ValueError):
            Board.from_cells([[None], [11]], num_item_types=11)

    def test_negative_tier_rejected(self):
        """Only EMPTY may be negative."""
        with pytest.raises(ValueError):
            Board.from_cells([[None], [-3]])

    @pytest.mark.parametrize("cell", [1.7, 2.0, "2", True])
    def test_non_integer_tier_rejected(self, cell):
        """Floats, strings and bools are not coerced into tiers."""
        with pytest.raises(ValueError):
            Board.from_cells([[None], [cell]], num_item_types=11)

    def test_huge_tier_rejected_before_cast(self):
        """Tiers beyond the cell dtype fail the range check, not the cast."""
        with pytest.raises(ValueError):
            Board.from_cells([[None], [40000]], num_item_types=11)
        with pytest.raises(ValueError):
            Board.from_cells([[None], [40000]])

    def test_load_board_rejects_float_tier(self, config, make_cells):
        """The engine refuses a layout with a fractional tier."""
        game = MergeGame(config=config, seed=1)
        floor = config.board.height - 1
        with pytest.raises(ValueError):
            game.load_board(make_cells({(floor, 0): 1.7}))
        assert game.board.occupied_count() == 0

    def test_accepts_numpy_array(self):
        """An int array with EMPTY markers is a valid layout."""
        array = np.array([[EMPTY, EMPTY], [1, 0]])
        board = Board.from_cells(array)
        assert board[1, 0] == 1
        assert board[1, 1] == 0


class TestGroupSearch:
    """Test 4-connected group detection."""

    def test_single_cell_group(self):
        """An isolated item forms a group of one."""
        board = Board.from_cells([[None, None], [0, 1]])
        assert board.find_group(1, 0) == [(1, 0)]

    def test_empty_cell_has_no_group(self):
        """Searching from an empty cell yields nothing."""
        board = Board.from_cells([[None, None], [0, 1]])
        assert board.find_group(0, 0) == []

    def test_group_seed_comes_first(self):
        """The seed cell is the first member in visit order."""
        board = Board.from_cells([
            [None, None, None],
            [0, 0, None],
            [0, 1, None],
        ])
        group = board.find_group(1, 1)
        assert group[0] == (1, 1)
        assert set(group) == {(1, 0), (1, 1), (2, 0)}

    def test_l_shape_is_one_group(self):
        """Bends connect through orthogonal neighbours."""
        board = Board.from_cells([
            [None, None, None],
            [2, None, None],
            [2, 2, 2],
        ])
        assert set(board.find_group(2, 2)) == {(1, 0), (2, 0), (2, 1), (2, 2)}

    def test_diagonals_do_not_connect(self):
        """Diagonal neighbours of the same tier are separate groups."""
        board = Board.from_cells([
            [None, None],
            [None, 0],
            [0, 1],
        ])
        assert board.find_group(2, 0) == [(2, 0)]
        assert board.find_first_group(2) is None

    def test_first_group_is_row_major(self):
        """The first qualifying group is seeded at the earliest cell row by row."""
        board = Board.from_cells([
            [None, None, None, None],
            [None, None, 3, 3],
            [1, 1, 2, 4],
        ])
        group = board.find_first_group(2)
        assert group[0] == (1, 2)
        assert set(group) == {(1, 2), (1, 3)}

    def test_first_group_respects_min_size(self):
        """Pairs are skipped when a larger minimum is requested."""
        board = Board.from_cells([
            [None, None, None],
            [0, None, None],
            [0, 1, 1],
        ])
        assert board.find_first_group(3) is None
        assert len(board.find_first_group(2)) == 2

    def test_large_group_search(self):
        """A board-sized group is found without recursion limits."""
        board = Board.from_cells([[0] * 40 for _ in range(40)])
        assert len(board.find_group(0, 0)) == 1600
