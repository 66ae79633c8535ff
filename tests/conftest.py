"""
Shared fixtures.
"""

from typing import Callable, Dict, Optional

import pytest
import yaml

from merge_game.merge_core.config_loader import default_config_path, load_config, GameConfig
from merge_game.merge_core.board import EMPTY


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def raw_config() -> dict:
    """The shipped game_config.yaml as a plain dict."""
    with open(default_config_path(), "r") as f:
        return yaml.safe_load(f)


@pytest.fixture
def write_config(tmp_path, raw_config) -> Callable[..., GameConfig]:
    """
    Factory: write a modified copy of the default config and load it.

    Usage:
        cfg = write_config(rules={"enforce_next_item": True})
    """
    def _write(**sections) -> GameConfig:
        data = dict(raw_config)
        for name, values in sections.items():
            if isinstance(values, dict):
                merged = dict(data.get(name, {}))
                merged.update(values)
                data[name] = merged
            else:
                data[name] = values
        path = tmp_path / "game_config.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return load_config(str(path))

    return _write


@pytest.fixture
def make_cells(config) -> Callable[..., list]:
    """
    Factory: row-major layout of the configured size with the given
    (row, col) -> tier cells filled.
    """
    def _make(items: Optional[Dict[tuple, int]] = None) -> list:
        cells = [[EMPTY] * config.board.width for _ in range(config.board.height)]
        for (row, col), tier in (items or {}).items():
            cells[row][col] = tier
        return cells

    return _make
