"""
Merge Core - The heart of the merge game.

This module provides the board engine, the session store, a Gymnasium
environment wrapper and all supporting systems (board, merging, scoring,
next-item RNG).

Main exports:
- MergeGame: The board engine (drop / snapshot)
- SessionStore: Handle -> engine registry with expiry and per-session locks
- MergeEnv: Gymnasium environment for agents
- ItemCatalog: The ordered item tiers
- GameConfig: Configuration loaded from game_config.yaml
"""

from merge_game.merge_core.config_loader import GameConfig, load_config, get_config
from merge_game.merge_core.item_catalog import ItemType, ItemCatalog, get_catalog
from merge_game.merge_core.board import Board, EMPTY
from merge_game.merge_core.merge_system import MergeEvent
from merge_game.merge_core.state_snapshot import GameSnapshot
from merge_game.merge_core.game import MergeGame, DropResult, DropError
from merge_game.merge_core.session_store import SessionStore, SessionNotFound
from merge_game.merge_core.env_gym import MergeEnv
from merge_game.merge_core.replay_recorder import (
    ReplayRecorder,
    record_episode,
    replay_actions,
    replay_frames,
    load_replay,
    generate_replay_filename,
)

__all__ = [
    "GameConfig",
    "load_config",
    "get_config",
    "ItemType",
    "ItemCatalog",
    "get_catalog",
    "Board",
    "EMPTY",
    "MergeEvent",
    "GameSnapshot",
    "MergeGame",
    "DropResult",
    "DropError",
    "SessionStore",
    "SessionNotFound",
    "MergeEnv",
    "ReplayRecorder",
    "record_episode",
    "replay_actions",
    "replay_frames",
    "load_replay",
    "generate_replay_filename",
]
