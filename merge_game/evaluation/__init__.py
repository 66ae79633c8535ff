"""
Evaluation Package
==================

Seed bank and harness for scoring agents on the merge game.
"""

from merge_game.evaluation.run_eval import (
    AgentEntry,
    EvalResult,
    EvalSummary,
    evaluate_agent,
    load_agent,
    load_seed_bank,
)

__all__ = [
    "AgentEntry",
    "EvalResult",
    "EvalSummary",
    "evaluate_agent",
    "load_agent",
    "load_seed_bank",
]
