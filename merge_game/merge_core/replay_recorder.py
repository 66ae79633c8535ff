"""
Replay Recorder
===============

Records MergeEnv episodes to JSON and plays them back on a fresh engine.

Usage:
    from merge_game.merge_core import MergeEnv, ReplayRecorder

    recorder = ReplayRecorder(MergeEnv(), agent_name="my_agent")
    obs, info = recorder.reset(seed=42)

    done = False
    while not done:
        obs, reward, terminated, truncated, info = recorder.step(your_agent(obs))
        done = terminated or truncated

    recorder.save("my_replay.json")

A replay holds the seed, the chosen columns, the item dropped at each step
and the score after it. Because the engine is deterministic per seed,
`replay_frames()` can rebuild every intermediate board from that alone.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
import gymnasium as gym

from merge_game.merge_core.config_loader import GameConfig, load_config
from merge_game.merge_core.game import DropResult, MergeGame
from merge_game.merge_core.state_snapshot import GameSnapshot


logger = logging.getLogger(__name__)

REPLAY_VERSION = 1


def generate_replay_filename(
    agent_name: str = "replay",
    seed: Optional[int] = None,
    directory: Optional[Union[str, Path]] = None
) -> Path:
    """
    Build a timestamped replay path: {agent}_{YYYYMMDD_HHMMSS}[_s{seed}].json
    """
    stem = f"{agent_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    if seed is not None:
        stem += f"_s{seed}"
    return Path(directory or ".") / f"{stem}.json"


def compute_config_hash(config: Optional[GameConfig] = None) -> str:
    """Short hash of every config value that changes play, for replay validation."""
    if config is None:
        config = load_config()
    hash_data = {
        "board": [config.board.width, config.board.height],
        "points": [item.points for item in config.items],
        "rng": [
            config.rng.droppable_count,
            config.rng.strategy,
            config.rng.bag_size,
            list(config.rng.weights),
        ],
        "enforce_next_item": config.rules.enforce_next_item,
    }
    return hashlib.md5(json.dumps(hash_data, sort_keys=True).encode()).hexdigest()[:8]


@dataclass(frozen=True)
class ReplayStep:
    """One recorded drop."""
    column: int
    item: int
    score: int
    error: Optional[str] = None


class ReplayRecorder(gym.Wrapper):
    """
    Gymnasium wrapper that records every step of a MergeEnv episode.

    Spaces, render and close pass straight through to the wrapped env.
    """

    def __init__(
        self,
        env: gym.Env,
        agent_name: str = "unknown",
        auto_save_path: Optional[str] = None
    ):
        """
        Args:
            env: The MergeEnv (possibly already wrapped).
            agent_name: Stored in the replay metadata.
            auto_save_path: If set, the replay is saved there when an episode ends.
        """
        super().__init__(env)
        self.agent_name = agent_name
        self.auto_save_path = auto_save_path

        self._seed: Optional[int] = None
        self._steps: List[ReplayStep] = []
        self._termination_reason = ""
        self._config_hash = compute_config_hash(self.unwrapped.config)

    @property
    def steps(self) -> Tuple[ReplayStep, ...]:
        return tuple(self._steps)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """Reset the env and start a new recording under the game's effective seed."""
        result = self.env.reset(seed=seed, options=options)
        self._seed = int(self.unwrapped.game.seed)
        self._steps = []
        self._termination_reason = ""
        return result

    def step(self, action):
        """Step the env and append the drop to the recording."""
        if isinstance(action, np.ndarray):
            action = action.item() if action.size == 1 else action.flat[0]
        column = int(action)
        item = int(self.unwrapped.game.next_item)

        obs, reward, terminated, truncated, info = self.env.step(column)

        self._steps.append(ReplayStep(
            column=column,
            item=item,
            score=int(info["score"]),
            error=info.get("error")
        ))
        if terminated or truncated:
            self._termination_reason = info.get("terminated_reason", "")
            if self.auto_save_path:
                self.save(self.auto_save_path)

        return obs, reward, terminated, truncated, info

    def get_replay_data(self) -> Dict[str, Any]:
        """The recording as a JSON-ready dict."""
        return {
            "version": REPLAY_VERSION,
            "seed": self._seed,
            "agent": self.agent_name,
            "config_hash": self._config_hash,
            "actions": [s.column for s in self._steps],
            "items": [s.item for s in self._steps],
            "scores": [s.score for s in self._steps],
            "final_score": self._steps[-1].score if self._steps else 0,
            "total_steps": len(self._steps),
            "termination_reason": self._termination_reason,
        }

    def save(
        self,
        path: Optional[Union[str, Path]] = None,
        overwrite: bool = True,
        directory: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Write the replay as JSON.

        Args:
            path: Target file. Auto-generated from agent name and seed if None.
            overwrite: If False, refuse to replace an existing file.
            directory: Directory for the auto-generated name.

        Returns:
            Path written.

        Raises:
            FileExistsError: If the file exists and overwrite is False.
        """
        path = Path(path) if path is not None else generate_replay_filename(
            self.agent_name, self._seed, directory
        )
        if path.exists() and not overwrite:
            raise FileExistsError(f"Replay file already exists: {path}")
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.get_replay_data()
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

        logger.info(
            "Replay saved to %s (seed %s, %d steps, score %d)",
            path, self._seed, data["total_steps"], data["final_score"]
        )
        return path


def load_replay(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a replay JSON file."""
    with open(path, "r") as f:
        return json.load(f)


def replay_frames(
    replay_data: Dict[str, Any],
    config: Optional[GameConfig] = None
) -> Iterator[Tuple[int, DropResult, GameSnapshot]]:
    """
    Re-run a replay drop by drop on a fresh game.

    Yields:
        (step index, drop result, snapshot after the drop).

    Raises:
        ValueError: If the replay was recorded under a different config or
            the re-run diverges from the recorded items or scores.
    """
    if config is None:
        config = load_config()

    expected = replay_data.get("config_hash")
    actual = compute_config_hash(config)
    if expected and expected != actual:
        raise ValueError(f"Replay config hash {expected} does not match {actual}")

    game = MergeGame(config=config, seed=replay_data.get("seed"))
    columns = replay_data["actions"]
    items = replay_data.get("items") or [None] * len(columns)
    scores = replay_data.get("scores") or [None] * len(columns)

    for index, (column, item, score) in enumerate(zip(columns, items, scores)):
        if item is not None and item != game.next_item:
            raise ValueError(
                f"Replay diverged at step {index}: recorded item {item}, "
                f"game offers {game.next_item}"
            )
        result = game.drop(column, game.next_item)
        if score is not None and score != game.score:
            raise ValueError(
                f"Replay diverged at step {index}: recorded score {score}, got {game.score}"
            )
        yield index, result, game.snapshot()


def replay_actions(
    replay_data: Dict[str, Any],
    config: Optional[GameConfig] = None
) -> GameSnapshot:
    """
    Re-run a whole replay and return the final snapshot.

    Raises:
        ValueError: As for `replay_frames()`.
    """
    if config is None:
        config = load_config()
    snapshot = MergeGame(config=config, seed=replay_data.get("seed")).snapshot()
    for _, _, snapshot in replay_frames(replay_data, config):
        pass
    return snapshot


def record_episode(
    env: gym.Env,
    agent_fn: Callable[[Dict[str, Any]], int],
    seed: int,
    save_path: Optional[str] = None,
    agent_name: str = "unknown"
) -> Dict[str, Any]:
    """
    Play one episode with an agent and return its replay data.

    Args:
        env: The MergeEnv.
        agent_fn: Observation -> column.
        seed: Seed for the episode.
        save_path: If set, also write the replay there.
        agent_name: Stored in the replay metadata.
    """
    recorder = ReplayRecorder(env, agent_name=agent_name)
    obs, _ = recorder.reset(seed=seed)

    terminated = truncated = False
    while not (terminated or truncated):
        obs, _, terminated, truncated, _ = recorder.step(agent_fn(obs))

    if save_path:
        recorder.save(save_path)
    return recorder.get_replay_data()
