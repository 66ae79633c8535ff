"""
Tests for recording and replaying episodes.
"""

import json

import pytest

from merge_game.merge_core.env_gym import MergeEnv
from merge_game.merge_core.replay_recorder import (
    ReplayRecorder,
    compute_config_hash,
    generate_replay_filename,
    load_replay,
    record_episode,
    replay_actions,
)


def leftmost_open(obs):
    """Drop into the first column that still has room."""
    heights = obs["column_heights"]
    for column, height in enumerate(heights):
        if height < obs["board"].shape[0]:
            return column
    return 0


def round_robin():
    """Cycle through the columns."""
    state = {"step": 0}

    def act(obs):
        column = state["step"] % obs["board"].shape[1]
        state["step"] += 1
        return column

    return act


@pytest.fixture
def env():
    env = MergeEnv()
    yield env
    env.close()


class TestReplayRecorder:
    """Test recording."""

    def test_records_every_step(self, env):
        """Actions, items and scores are captured per step."""
        recorder = ReplayRecorder(env, agent_name="tester")
        obs, _ = recorder.reset(seed=3)

        items = []
        for column in [0, 1, 2, 3]:
            items.append(int(obs["next_item"]))
            obs, _, _, _, _ = recorder.step(column)

        data = recorder.get_replay_data()
        assert data["seed"] == 3
        assert data["agent"] == "tester"
        assert data["actions"] == [0, 1, 2, 3]
        assert data["items"] == items
        assert data["total_steps"] == 4
        assert data["final_score"] == data["scores"][-1]
        assert data["config_hash"] == compute_config_hash(env.config)

    def test_reset_clears_recording(self, env):
        """A new episode starts with an empty record."""
        recorder = ReplayRecorder(env)
        recorder.reset(seed=1)
        recorder.step(0)
        recorder.reset(seed=2)

        assert recorder.get_replay_data()["actions"] == []

    def test_unseeded_reset_records_effective_seed(self, env, config):
        """A reset without a seed records the seed the game kept using."""
        recorder = ReplayRecorder(env)
        recorder.reset(seed=7)
        recorder.reset()
        for column in range(8):
            recorder.step(column % env.game.width)

        data = recorder.get_replay_data()
        assert data["seed"] == 7
        assert replay_actions(data, config).score == data["final_score"]

    def test_fresh_env_records_drawn_seed(self, config):
        """A first reset without a seed still produces a replayable record."""
        recorder = ReplayRecorder(MergeEnv(config=config))
        recorder.reset()
        for column in range(6):
            recorder.step(column)

        data = recorder.get_replay_data()
        assert isinstance(data["seed"], int)
        assert replay_actions(data, config).score == data["final_score"]

    def test_save_and_load(self, env, tmp_path):
        """Saved replays round-trip through JSON."""
        data = record_episode(env, round_robin(), seed=11, agent_name="rr")
        recorder = ReplayRecorder(env, agent_name="rr")
        recorder.reset(seed=11)
        for column in data["actions"]:
            recorder.step(column)

        path = recorder.save(tmp_path / "replay.json")
        loaded = load_replay(path)

        assert loaded["actions"] == data["actions"]
        assert loaded["final_score"] == data["final_score"]
        with open(path) as f:
            assert json.load(f)["seed"] == 11

    def test_save_refuses_overwrite(self, env, tmp_path):
        """overwrite=False protects existing files."""
        recorder = ReplayRecorder(env)
        recorder.reset(seed=1)
        path = tmp_path / "replay.json"
        path.write_text("{}")

        with pytest.raises(FileExistsError):
            recorder.save(path, overwrite=False)

    def test_filename_format(self, tmp_path):
        """Generated names carry the agent, a timestamp and the seed."""
        path = generate_replay_filename("greedy", seed=5, directory=tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("greedy_")
        assert path.name.endswith("_s5.json")


class TestReplayActions:
    """Test deterministic re-runs."""

    @pytest.mark.parametrize("seed", [0, 11, 2024])
    def test_replay_reproduces_final_state(self, env, config, seed):
        """Re-running the recorded columns reaches the same score and end state."""
        data = record_episode(env, round_robin(), seed=seed)

        snapshot = replay_actions(data, config)

        assert snapshot.score == data["final_score"]
        assert snapshot.drops_used == env.game.drops_used
        assert snapshot.game_over == env.game.game_over

    def test_replay_detects_config_mismatch(self, env, config):
        """A replay recorded under another config is refused."""
        data = record_episode(env, leftmost_open, seed=1)
        data["config_hash"] = "deadbeef"

        with pytest.raises(ValueError):
            replay_actions(data, config)

    def test_replay_detects_tampered_score(self, env, config):
        """Edited scores are caught as a divergence."""
        data = record_episode(env, leftmost_open, seed=1)
        data["scores"][-1] += 1

        with pytest.raises(ValueError):
            replay_actions(data, config)

    def test_replay_detects_wrong_seed(self, env, config):
        """Replaying with another seed diverges on the item sequence."""
        data = record_episode(env, leftmost_open, seed=1)
        data["seed"] = next(
            s for s in range(2, 100)
            if MergeEnv().reset(seed=s)[0]["next_item"] != data["items"][0]
        )

        with pytest.raises(ValueError):
            replay_actions(data, config)
