"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Optional

import yaml


CONFIG_ENV_VAR = "MERGE_GAME_CONFIG"

RNG_STRATEGIES = ("uniform", "bag")


@dataclass(frozen=True)
class BoardConfig:
    """Board geometry."""
    width: int    # Number of columns
    height: int   # Number of rows (row 0 is the entry row)


@dataclass(frozen=True)
class ItemConfig:
    """Configuration for a single item tier."""
    id: int
    name: str
    size: int     # Informational only
    points: int   # Merge reward multiplier for merges producing this tier


@dataclass(frozen=True)
class RngConfig:
    """Next-item generator parameters."""
    droppable_count: int
    strategy: str
    bag_size: int
    weights: Tuple[int, ...]


@dataclass(frozen=True)
class RulesConfig:
    """Drop validation switches."""
    enforce_next_item: bool


@dataclass(frozen=True)
class CapsConfig:
    """Episode limits for agent environments."""
    max_drops: int


@dataclass(frozen=True)
class SessionConfig:
    """Session store limits."""
    max_sessions: int            # 0 = unlimited
    idle_timeout_seconds: float  # 0 = never expire


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable so one instance can be shared by every game.
    """
    board: BoardConfig
    items: Tuple[ItemConfig, ...]
    rng: RngConfig
    rules: RulesConfig
    caps: CapsConfig
    sessions: SessionConfig

    @property
    def num_item_types(self) -> int:
        """Total number of tiers in the ladder."""
        return len(self.items)

    @property
    def top_tier_id(self) -> int:
        """Index of the ceiling tier."""
        return len(self.items) - 1

    def get_item(self, item_id: int) -> ItemConfig:
        """Get item config by ID."""
        if 0 <= item_id < len(self.items):
            return self.items[item_id]
        raise ValueError(f"Invalid item ID: {item_id}")


def _parse_item(item_data: dict) -> ItemConfig:
    """Parse a single item tier from YAML."""
    return ItemConfig(
        id=int(item_data["id"]),
        name=str(item_data["name"]),
        size=int(item_data.get("size", 0)),
        points=int(item_data["points"])
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.board.width < 1 or config.board.height < 1:
        raise ValueError(
            f"Board must be at least 1x1, got {config.board.width}x{config.board.height}"
        )

    if len(config.items) < 2:
        raise ValueError(f"Item ladder needs at least 2 tiers, got {len(config.items)}")

    # Item IDs must be sequential so tier index == catalog index
    for i, item in enumerate(config.items):
        if item.id != i:
            raise ValueError(f"Item ID mismatch: expected {i}, got {item.id}")
        if item.points < 0:
            raise ValueError(f"Item {item.id} has negative points: {item.points}")
        if item.size < 0:
            raise ValueError(f"Item {item.id} has negative size: {item.size}")

    if not 1 <= config.rng.droppable_count <= len(config.items):
        raise ValueError(
            f"droppable_count ({config.rng.droppable_count}) must be in "
            f"[1, {len(config.items)}]"
        )

    if config.rng.strategy not in RNG_STRATEGIES:
        raise ValueError(
            f"rng.strategy must be one of {RNG_STRATEGIES}, got '{config.rng.strategy}'"
        )

    if config.rng.strategy == "bag":
        if len(config.rng.weights) != config.rng.droppable_count:
            raise ValueError(
                f"RNG weights length ({len(config.rng.weights)}) must match "
                f"droppable_count ({config.rng.droppable_count})"
            )
        if any(w < 0 for w in config.rng.weights) or sum(config.rng.weights) == 0:
            raise ValueError("RNG weights must be non-negative with a positive sum")
        if config.rng.bag_size < 2:
            raise ValueError(f"bag_size must be at least 2, got {config.rng.bag_size}")

    if config.caps.max_drops < 1:
        raise ValueError(f"caps.max_drops must be positive, got {config.caps.max_drops}")

    if config.sessions.max_sessions < 0:
        raise ValueError("sessions.max_sessions must be >= 0")
    if config.sessions.idle_timeout_seconds < 0:
        raise ValueError("sessions.idle_timeout_seconds must be >= 0")


def default_config_path() -> Path:
    """Path of the config file used when none is given explicitly."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path(os.path.dirname(os.path.dirname(__file__))) / "game_config.yaml"


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses $MERGE_GAME_CONFIG
            or the file shipped with the package.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    config_path = Path(config_path) if config_path is not None else default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    board_data = raw["board"]
    board = BoardConfig(
        width=int(board_data["width"]),
        height=int(board_data["height"])
    )

    items = tuple(_parse_item(item) for item in raw["items"])

    rng_data = raw["rng"]
    rng = RngConfig(
        droppable_count=int(rng_data["droppable_count"]),
        strategy=str(rng_data.get("strategy", "uniform")),
        bag_size=int(rng_data.get("bag_size", 20)),
        weights=tuple(int(w) for w in rng_data.get("weights", ()))
    )

    # Optional sections
    rules_data = raw.get("rules", {})
    rules = RulesConfig(
        enforce_next_item=bool(rules_data.get("enforce_next_item", False))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_drops=int(caps_data.get("max_drops", 1000))
    )

    sessions_data = raw.get("sessions", {})
    sessions = SessionConfig(
        max_sessions=int(sessions_data.get("max_sessions", 0)),
        idle_timeout_seconds=float(sessions_data.get("idle_timeout_seconds", 0))
    )

    config = GameConfig(
        board=board,
        items=items,
        rng=rng,
        rules=rules,
        caps=caps,
        sessions=sessions
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
