"""
Evaluation Package
==================

Contains the seed bank and evaluation harness for scoring agents.
"""

from platformer.evaluation.run_eval import (
    EvalResult,
    EvalSummary,
    evaluate_agent,
    load_agent,
    load_seed_bank,
    summarize,
)

__all__ = [
    "EvalResult",
    "EvalSummary",
    "evaluate_agent",
    "load_agent",
    "load_seed_bank",
    "summarize",
]
