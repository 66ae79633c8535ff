"""
Evaluation Harness
==================

Runs an agent over the fixed seed bank and reports score statistics.

Usage:
    python -m merge_game.evaluation.run_eval --agent contestants/team_name
    python -m merge_game.evaluation.run_eval --agent contestants/baseline_greedy --limit 5
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import logging
import os
import sys
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import numpy as np

from merge_game.merge_core.config_loader import GameConfig, load_config
from merge_game.merge_core.env_gym import MergeEnv


logger = logging.getLogger(__name__)

ActFn = Callable[[Dict[str, Any]], int]


@dataclass
class AgentEntry:
    """A loaded agent: its act function plus an optional per-episode reset hook."""
    name: str
    act: ActFn
    reset: Optional[Callable[[], None]] = None

    def __call__(self, obs: Dict[str, Any]) -> int:
        return self.act(obs)


@dataclass
class EvalResult:
    """Outcome of one seed."""
    seed: int
    final_score: int
    drops_used: int
    merges: int
    max_tier: int
    termination_reason: str
    elapsed_time: float
    actions: Optional[List[int]] = None


@dataclass
class EvalSummary:
    """Aggregate over all evaluated seeds."""
    mean_score: float
    std_score: float
    min_score: int
    max_score: int
    median_score: float
    mean_drops: float
    total_time: float
    tier_counts: Dict[int, int] = field(default_factory=dict)
    results: List[EvalResult] = field(default_factory=list)


def load_seed_bank(path: Optional[str] = None) -> List[int]:
    """
    Load the evaluation seed bank.

    Args:
        path: Path to a JSON file with a "seeds" list. Uses the bundled
            seed_bank.json if None.

    Returns:
        List of seeds.
    """
    if path is None:
        path = os.path.join(os.path.dirname(__file__), "seed_bank.json")

    with open(path, "r") as f:
        data = json.load(f)

    return [int(seed) for seed in data["seeds"]]


def load_agent(agent_path: str) -> AgentEntry:
    """
    Import an agent from a directory (containing agent.py) or a .py file.

    The module is searched, in order, for a `create_agent()` factory, a
    `MergeAgent` class, or a module-level `act(obs)` function.

    Raises:
        FileNotFoundError: If there is no agent file.
        ImportError: If the file cannot be imported.
        AttributeError: If the module exposes no usable entry point.
    """
    path = Path(agent_path)
    agent_file = path / "agent.py" if path.is_dir() else path
    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    spec = importlib.util.spec_from_file_location("agent_module", agent_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Failed to load agent module from {agent_file}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["agent_module"] = module
    spec.loader.exec_module(module)

    name = agent_file.parent.name if agent_file.name == "agent.py" else agent_file.stem

    if hasattr(module, "create_agent"):
        instance = module.create_agent()
    elif hasattr(module, "MergeAgent"):
        instance = module.MergeAgent()
    elif hasattr(module, "act"):
        return AgentEntry(name=name, act=module.act)
    else:
        raise AttributeError(
            "Agent module must define 'create_agent', a 'MergeAgent' class "
            "or a module-level 'act' function"
        )

    if not callable(getattr(instance, "act", None)):
        raise AttributeError(f"{type(instance).__name__} must have an 'act' method")
    reset = getattr(instance, "reset", None)
    return AgentEntry(name=name, act=instance.act, reset=reset if callable(reset) else None)


def evaluate_single_seed(
    agent_fn: ActFn,
    seed: int,
    config: Optional[GameConfig] = None,
    record_actions: bool = False,
    verbose: bool = False
) -> EvalResult:
    """
    Play one episode to termination or truncation.

    Args:
        agent_fn: Agent (obs) -> column. An AgentEntry's reset hook is
            called before the episode.
        seed: Seed for the game's next-item queue.
        config: Game configuration. Uses default if None.
        record_actions: If True, keep every chosen column.
        verbose: If True, print a line when the episode ends.

    Returns:
        EvalResult for this seed.
    """
    env = MergeEnv(config=config if config is not None else load_config())
    reset = getattr(agent_fn, "reset", None)
    if callable(reset):
        reset()

    obs, info = env.reset(seed=seed)
    actions: Optional[List[int]] = [] if record_actions else None
    start_time = time.perf_counter()

    terminated = truncated = False
    while not (terminated or truncated):
        column = int(agent_fn(obs))
        if actions is not None:
            actions.append(column)
        obs, _, terminated, truncated, info = env.step(column)

    result = EvalResult(
        seed=seed,
        final_score=int(info["score"]),
        drops_used=int(info["drops_used"]),
        merges=int(info["total_merges"]),
        max_tier=env.game.board.max_tier(),
        termination_reason=info["terminated_reason"],
        elapsed_time=time.perf_counter() - start_time,
        actions=actions
    )
    env.close()

    logger.debug("Seed %d finished: %s", seed, result.termination_reason)
    if verbose:
        print(f"  Seed {seed}: score={result.final_score}, drops={result.drops_used}, "
              f"max tier={result.max_tier}, time={result.elapsed_time:.2f}s")

    return result


def summarize(results: List[EvalResult], total_time: float) -> EvalSummary:
    """Compute score statistics and the max-tier histogram."""
    scores = np.array([r.final_score for r in results], dtype=np.int64)
    drops = np.array([r.drops_used for r in results], dtype=np.int64)
    tiers, counts = np.unique([r.max_tier for r in results], return_counts=True)

    return EvalSummary(
        mean_score=float(scores.mean()),
        std_score=float(scores.std()),
        min_score=int(scores.min()),
        max_score=int(scores.max()),
        median_score=float(np.median(scores)),
        mean_drops=float(drops.mean()),
        total_time=total_time,
        tier_counts={int(t): int(c) for t, c in zip(tiers, counts)},
        results=results
    )


def format_summary(summary: EvalSummary) -> List[str]:
    """Human-readable report lines."""
    lines = [
        "=" * 50,
        "EVALUATION SUMMARY",
        "=" * 50,
        f"Seeds evaluated: {len(summary.results)}",
        f"Mean score:      {summary.mean_score:.2f} (std {summary.std_score:.2f})",
        f"Min / max:       {summary.min_score} / {summary.max_score}",
        f"Median score:    {summary.median_score:.2f}",
        f"Mean drops:      {summary.mean_drops:.1f}",
        "Max tier reached:",
    ]
    for tier, count in sorted(summary.tier_counts.items()):
        lines.append(f"  tier {tier:>2}: {count} seed(s)")
    lines.append(f"Total time:      {summary.total_time:.2f}s")
    lines.append("=" * 50)
    return lines


def evaluate_agent(
    agent_fn: ActFn,
    seeds: Optional[List[int]] = None,
    config: Optional[GameConfig] = None,
    record_actions: bool = False,
    verbose: bool = True
) -> EvalSummary:
    """
    Evaluate an agent on every seed.

    Args:
        agent_fn: Agent (obs) -> column.
        seeds: Seeds to play. Uses seed_bank.json if None.
        config: Game configuration. Uses default if None.
        record_actions: If True, keep each episode's columns.
        verbose: If True, print progress and the summary.

    Returns:
        EvalSummary with aggregate statistics.

    Raises:
        ValueError: If the seed list is empty.
    """
    if seeds is None:
        seeds = load_seed_bank()
    if not seeds:
        raise ValueError("Seed list is empty")
    if config is None:
        config = load_config()

    if verbose:
        print(f"Evaluating on {len(seeds)} seeds...")

    start = time.perf_counter()
    results = [
        evaluate_single_seed(agent_fn, seed, config, record_actions, verbose)
        for seed in seeds
    ]
    summary = summarize(results, time.perf_counter() - start)

    if verbose:
        print()
        print("\n".join(format_summary(summary)))

    return summary


def save_results(summary: EvalSummary, agent_name: str, output_path: str) -> None:
    """Write the summary and per-seed results to JSON."""
    data = asdict(summary)
    data["agent"] = agent_name
    data["timestamp"] = time.strftime("%Y-%m-%d %H:%M:%S")
    for result in data["results"]:
        if result["actions"] is None:
            del result["actions"]

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)

    print(f"Results saved to {output_path}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate a merge game agent")
    parser.add_argument("--agent", type=str, required=True,
                        help="Path to agent directory or agent.py file")
    parser.add_argument("--seeds", type=str, default=None,
                        help="Path to seed bank JSON (bundled bank if omitted)")
    parser.add_argument("--limit", type=int, default=None,
                        help="Only play the first N seeds")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to game_config.yaml (bundled config if omitted)")
    parser.add_argument("--output", type=str, default=None,
                        help="Path to save results JSON")
    parser.add_argument("--record", action="store_true",
                        help="Keep each episode's columns in the results")
    parser.add_argument("--quiet", action="store_true",
                        help="Only print errors")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging from the engine")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s")

    try:
        agent = load_agent(args.agent)
    except (FileNotFoundError, ImportError, AttributeError) as e:
        print(f"Error loading agent: {e}")
        return 1

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}")
        return 1

    seeds = load_seed_bank(args.seeds)
    if args.limit is not None:
        seeds = seeds[:args.limit]

    if not args.quiet:
        print(f"Agent: {agent.name}")
    summary = evaluate_agent(
        agent,
        seeds=seeds,
        config=config,
        record_actions=args.record,
        verbose=not args.quiet
    )

    if args.output:
        save_results(summary, agent.name, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
