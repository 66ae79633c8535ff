"""
Performance Benchmark
=====================

Measures engine drop throughput and environment step throughput.

Usage:
    python -m tools.benchmark_speed [--steps S] [--seed N]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional
import numpy as np

from merge_game.merge_core.config_loader import load_config
from merge_game.merge_core.game import MergeGame
from merge_game.merge_core.env_gym import MergeEnv


def benchmark_engine(
    num_steps: int = 10000,
    seed: int = 42
) -> dict:
    """
    Benchmark raw MergeGame.drop() calls with random columns.

    Args:
        num_steps: Number of drops to run.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    game = MergeGame(config=config, seed=seed)
    rng = np.random.default_rng(seed)
    width = config.board.width

    merges = 0
    games = 1
    start = time.perf_counter()

    for _ in range(num_steps):
        result = game.drop(int(rng.integers(width)), game.next_item)
        merges += len(result.merges)
        if game.game_over:
            game.reset()
            games += 1

    elapsed = time.perf_counter() - start

    return {
        "mode": "engine",
        "num_steps": num_steps,
        "games": games,
        "merges": merges,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_env(
    num_steps: int = 10000,
    seed: int = 42
) -> dict:
    """
    Benchmark MergeEnv.step() including observation building.

    Args:
        num_steps: Number of steps to run.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    env = MergeEnv()
    rng = np.random.default_rng(seed)

    # Warmup
    obs, _ = env.reset(seed=seed)
    for _ in range(10):
        obs, _, terminated, truncated, _ = env.step(int(rng.integers(env.action_space.n)))
        if terminated or truncated:
            obs, _ = env.reset()

    obs, _ = env.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        obs, _, terminated, truncated, _ = env.step(int(rng.integers(env.action_space.n)))
        if terminated or truncated:
            obs, _ = env.reset()

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": "env",
        "num_steps": num_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def print_result(result: dict) -> None:
    print(f"[{result['mode']}] {result['num_steps']} steps in "
          f"{result['elapsed_seconds']:.3f}s: "
          f"{result['steps_per_second']:.0f} steps/s "
          f"({result['ms_per_step']:.4f} ms/step)")
    if "games" in result:
        print(f"         games={result['games']} merges={result['merges']}")


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Benchmark merge game throughput")
    parser.add_argument("--steps", type=int, default=10000, help="Steps per benchmark")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args(argv)

    print("=" * 50)
    print("MERGE GAME BENCHMARK")
    print("=" * 50)
    print_result(benchmark_engine(args.steps, args.seed))
    print_result(benchmark_env(args.steps, args.seed))
    return 0


if __name__ == "__main__":
    sys.exit(main())
