"""
Baseline Greedy Agent Package

A simple heuristic agent that drops onto a matching item when it can and
otherwise onto the lowest column. Serves as a benchmark and example.
"""

from .agent import MergeAgent, create_agent

__all__ = ["MergeAgent", "create_agent"]
