"""
Test suite for verifying snapshot and observation elements.

Ensures snapshots are independent read-only copies, that the wire
dictionaries have the expected shape, and that Gymnasium observations
are correctly shaped and typed.
"""

import numpy as np
import pytest

from merge_game.merge_core.board import EMPTY
from merge_game.merge_core.env_gym import MergeEnv
from merge_game.merge_core.game import MergeGame


class TestSnapshot:
    """Verify engine snapshots."""

    @pytest.fixture
    def game(self, config):
        return MergeGame(config=config, seed=42)

    def test_initial_snapshot(self, game, config):
        """A new game snapshot has an empty board and zero score."""
        snapshot = game.snapshot()

        assert snapshot.board.shape == (config.board.height, config.board.width)
        assert snapshot.board.dtype == np.int16
        assert np.all(snapshot.board == EMPTY)
        assert snapshot.score == 0
        assert snapshot.game_over is False
        assert snapshot.next_item == game.next_item

    def test_snapshot_is_read_only(self, game):
        """Snapshot boards cannot be written to."""
        snapshot = game.snapshot()
        with pytest.raises(ValueError):
            snapshot.board[0, 0] = 3

    def test_snapshot_is_independent(self, game, config):
        """Later drops do not change an earlier snapshot."""
        snapshot = game.snapshot()
        game.drop(2, 1)

        assert snapshot.cell(config.board.height - 1, 2) is None
        assert game.snapshot().cell(config.board.height - 1, 2) == 1

    def test_snapshot_does_not_advance_rng(self, game):
        """Reading state is free of side effects."""
        first = game.snapshot()
        second = game.snapshot()
        assert first.next_item == second.next_item
        assert np.array_equal(first.board, second.board)

    def test_wire_dict(self, game, config):
        """The state record uses board lists with None for empty cells."""
        game.drop(0, 3)
        data = game.snapshot().to_dict()

        assert set(data) == {"board", "score", "gameOver", "nextItem"}
        assert len(data["board"]) == config.board.height
        assert all(len(row) == config.board.width for row in data["board"])
        assert data["board"][config.board.height - 1][0] == 3
        assert data["board"][0][0] is None
        assert data["gameOver"] is False
        assert isinstance(data["nextItem"], int)

    def test_column_heights(self, game):
        """Column heights reflect occupied cells per column."""
        game.drop(1, 0)
        game.drop(1, 1)
        heights = game.snapshot().column_heights
        assert heights[1] == 2
        assert heights.sum() == 2


class TestObservationAPI:
    """Verify all observation space elements."""

    @pytest.fixture
    def env(self):
        """Create fresh environment for each test."""
        env = MergeEnv()
        yield env
        env.close()

    @pytest.fixture
    def obs_after_reset(self, env):
        """Get observation after reset."""
        obs, info = env.reset(seed=42)
        return obs

    @pytest.fixture
    def obs_after_step(self, env):
        """Get observation after one step."""
        env.reset(seed=42)
        obs, _, _, _, _ = env.step(0)
        return obs

    def test_board(self, obs_after_reset, config):
        """board should be an int16 (H, W) grid of EMPTY after reset."""
        board = obs_after_reset["board"]
        assert board.dtype == np.int16
        assert board.shape == (config.board.height, config.board.width)
        assert np.all(board == EMPTY)

    def test_board_is_writable_copy(self, env, obs_after_reset):
        """Agents may scribble on observations without touching the game."""
        obs_after_reset["board"][0, 0] = 7
        assert env.game.board.is_empty(0, 0)

    def test_next_item(self, obs_after_reset, config):
        """next_item should be an int among the droppable tiers."""
        assert 0 <= int(obs_after_reset["next_item"]) < config.rng.droppable_count

    def test_score(self, obs_after_reset):
        """score should be a non-negative int64."""
        assert obs_after_reset["score"].dtype == np.int64
        assert obs_after_reset["score"].shape == ()
        assert int(obs_after_reset["score"]) == 0

    def test_drops_used(self, obs_after_step):
        """drops_used should count successful drops."""
        assert obs_after_step["drops_used"].dtype == np.int32
        assert obs_after_step["drops_used"].shape == ()
        assert int(obs_after_step["drops_used"]) == 1

    def test_column_heights(self, obs_after_step, config):
        """column_heights should be int32 with one entry per column."""
        heights = obs_after_step["column_heights"]
        assert heights.dtype == np.int32
        assert heights.shape == (config.board.width,)
        assert heights[0] == 1

    def test_game_over_flag(self, obs_after_step):
        """game_over should be 0 while the game is running."""
        assert obs_after_step["game_over"] == 0
