"""
Baseline Runner Agent Package

A simple heuristic agent that runs right and jumps over gaps and enemies
using the ground_probe observation. Serves as a benchmark and example.
"""

from .agent import PlatformerAgent, create_agent

__all__ = ["PlatformerAgent", "create_agent"]
