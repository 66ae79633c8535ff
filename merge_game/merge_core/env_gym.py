"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the merge game.
Reward is always 0.0 - agents compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from merge_game.merge_core.config_loader import GameConfig, load_config
from merge_game.merge_core.game import MergeGame
from merge_game.merge_core.state_snapshot import GameSnapshot


class MergeEnv(gym.Env):
    """
    Tile-merge grid game as a Gymnasium environment.

    Action Space:
        Discrete(width): the column to drop into. The dropped item is always
        the game's advertised next item.

    Observation Space:
        Dict with the board (int16, -1 for empty), next item, score,
        drops used, column heights and the game-over flag.

    Reward:
        Always 0.0. Agents must compute their own reward from the info dict.

    Termination:
        terminated when the entry row is reached; truncated after
        caps.max_drops drop attempts (successful or not).
    """

    metadata = {
        "render_modes": ["ansi"],
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        debug: bool = False,
    ):
        """
        Initialize the environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            config: Already loaded config; takes precedence over config_path.
            render_mode: "ansi" for a text board, None for headless.
            debug: If True, prints a trace line per step.
        """
        super().__init__()

        self._config = config if config is not None else load_config(config_path)
        self.render_mode = render_mode
        self._debug = debug

        self._game = MergeGame(config=self._config)
        self._attempts: int = 0

        self.action_space = spaces.Discrete(self._config.board.width)
        self.observation_space = self._build_observation_space()

        if self._debug:
            print("[DEBUG] MergeEnv initialized")
            print(f"[DEBUG]   Board: {self._config.board.width}x{self._config.board.height}")
            print(f"[DEBUG]   Tiers: {self._config.num_item_types}")
            print(f"[DEBUG]   Max drops: {self._config.caps.max_drops}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        board = self._config.board
        num_types = self._config.num_item_types

        return spaces.Dict({
            "board": spaces.Box(
                low=-1, high=num_types - 1,
                shape=(board.height, board.width), dtype=np.int16
            ),
            "next_item": spaces.Discrete(num_types),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "drops_used": spaces.Box(
                low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32
            ),
            "column_heights": spaces.Box(
                low=0, high=board.height, shape=(board.width,), dtype=np.int32
            ),
            "game_over": spaces.Discrete(2),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        snapshot = self._game.reset(seed=seed)
        self._attempts = 0

        obs = self._snapshot_to_obs(snapshot)
        info = self._game.get_info()
        info["delta_score"] = 0
        info["merges"] = 0
        info["error"] = None

        return obs, info

    def step(
        self,
        action: Union[int, np.integer, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: Column in [0, width).

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = action.item() if action.ndim == 0 else action[0]

        result = self._game.drop(action, self._game.next_item)
        self._attempts += 1

        obs = self._snapshot_to_obs(self._game.snapshot())

        reward = 0.0
        terminated = self._game.game_over
        truncated = not terminated and self._attempts >= self._config.caps.max_drops

        info = self._game.get_info()
        info["delta_score"] = result.points_earned
        info["merges"] = len(result.merges)
        info["error"] = result.message or None
        if truncated:
            info["terminated_reason"] = "drop_cap"

        if self._debug:
            print(f"[DEBUG] Step: column={action}, delta_score={result.points_earned}, "
                  f"merges={len(result.merges)}, error={info['error']}")
            if terminated:
                print(f"[DEBUG] TERMINATED: {info.get('terminated_reason', 'unknown')}")

        return obs, reward, terminated, truncated, info

    def _snapshot_to_obs(self, snapshot: GameSnapshot) -> Dict[str, np.ndarray]:
        """Convert snapshot to observation dict."""
        return snapshot.to_obs_dict()

    def render(self) -> Optional[str]:
        """
        Render the current game state.

        Returns:
            Text board if render_mode is "ansi", None otherwise.
        """
        if self.render_mode == "ansi":
            return (
                f"{self._game.board.render_text()}\n"
                f"score={self._game.score} next={self._game.next_item}"
            )
        return None

    def close(self) -> None:
        """Nothing to release; present for the Gymnasium API."""

    @property
    def game(self) -> MergeGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
