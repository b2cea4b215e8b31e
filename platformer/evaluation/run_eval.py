"""
Evaluation Harness
==================

Plays an agent through the endless world or the level sequence once per
seed and reports how each run ended.

Per seed the harness records the score, distance, stomps, lives lost and
(in levels mode) how many levels were cleared. The summary aggregates
those and counts outcomes: ``game_over``, ``game_won`` or ``max_ticks``.

Usage:
    python -m platformer.evaluation.run_eval --agent agents/baseline_runner
    python -m platformer.evaluation.run_eval --agent agents/baseline_runner --mode levels
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import os
import sys
import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from platformer.core.env_gym import PlatformerEnv
from platformer.core.rules import SessionState


OUTCOME_GAME_OVER = SessionState.GAME_OVER.value
OUTCOME_GAME_WON = SessionState.GAME_WON.value
OUTCOME_MAX_TICKS = "max_ticks"


@dataclass
class EvalResult:
    """How one seeded run ended."""
    seed: int
    mode: str
    outcome: str
    final_score: int
    distance: int
    stomps: int
    lives_lost: int
    levels_completed: int
    ticks: int
    termination_reason: str
    elapsed_time: float
    actions: Optional[List[int]] = None

    @property
    def won(self) -> bool:
        return self.outcome == OUTCOME_GAME_WON


@dataclass
class EvalSummary:
    """Aggregates over every evaluated seed."""
    mode: str
    mean_score: float
    std_score: float
    min_score: int
    max_score: int
    median_score: float
    mean_distance: float
    total_stomps: int
    mean_lives_lost: float
    mean_levels_completed: float
    win_rate: float
    outcomes: Dict[str, int]
    total_time: float
    results: List[EvalResult] = field(default_factory=list)


class LoadedAgent:
    """
    Callable wrapper around an agent module.

    Calling it returns an action. ``reset(seed)`` is forwarded to the agent
    when it has one, so stateful agents start every seed clean.
    """

    def __init__(self, act: Callable, reset: Optional[Callable] = None, name: str = "agent"):
        self._act = act
        self._reset = reset
        self.name = name

    def __call__(self, obs: Dict[str, Any]) -> int:
        return self._act(obs)

    def reset(self, seed: Optional[int] = None) -> None:
        if self._reset is not None:
            self._reset(seed)


def load_seed_bank(path: Optional[str] = None) -> List[int]:
    """
    Load the evaluation seed bank.

    Args:
        path: Path to seed_bank.json. Uses default if None.

    Returns:
        List of seeds.
    """
    if path is None:
        path = os.path.join(os.path.dirname(__file__), "seed_bank.json")

    with open(path, "r") as f:
        data = json.load(f)

    return data["seeds"]


def load_agent(agent_path: str) -> LoadedAgent:
    """
    Load an agent from a directory holding ``agent.py`` or from the file itself.

    The module must define a ``PlatformerAgent`` class with ``act`` (and
    optionally ``reset``), or a module-level ``act`` function.

    Raises:
        FileNotFoundError: If there is no agent file.
        ImportError: If the file cannot be loaded as a module.
        AttributeError: If the module defines neither entry point.
    """
    agent_path = Path(agent_path)
    agent_file = agent_path / "agent.py" if agent_path.is_dir() else agent_path
    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    spec = importlib.util.spec_from_file_location("agent_module", agent_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Failed to load agent module from {agent_file}")
    module = importlib.util.module_from_spec(spec)
    sys.modules["agent_module"] = module
    spec.loader.exec_module(module)

    name = agent_file.parent.name if agent_file.name == "agent.py" else agent_file.stem

    if hasattr(module, "PlatformerAgent"):
        instance = module.PlatformerAgent()
        if not hasattr(instance, "act"):
            raise AttributeError("PlatformerAgent class must have an 'act' method")
        return LoadedAgent(instance.act, getattr(instance, "reset", None), name=name)

    if hasattr(module, "act"):
        return LoadedAgent(module.act, getattr(module, "reset", None), name=name)

    raise AttributeError(
        "Agent module must define a 'PlatformerAgent' class with an 'act' method "
        "or a module-level 'act' function"
    )


def _outcome(info: Dict[str, Any], truncated: bool) -> str:
    if info["state"] == OUTCOME_GAME_WON:
        return OUTCOME_GAME_WON
    if info["state"] == OUTCOME_GAME_OVER:
        return OUTCOME_GAME_OVER
    if truncated:
        return OUTCOME_MAX_TICKS
    raise RuntimeError(f"Run stopped in state {info['state']!r}")


def evaluate_single_seed(
    agent_fn: Callable,
    seed: int,
    mode: str = "endless",
    record_actions: bool = False,
    verbose: bool = False
) -> EvalResult:
    """
    Play one run to game over, victory or the tick cap.

    Args:
        agent_fn: Callable (obs) -> action. A ``reset(seed)`` attribute is
            called before the run when present.
        seed: World seed.
        mode: "endless" or "levels".
        record_actions: If True, keep every action taken.
        verbose: If True, print a one-line result.

    Returns:
        EvalResult for this seed.
    """
    env = PlatformerEnv(mode=mode)
    obs, info = env.reset(seed=seed)

    reset = getattr(agent_fn, "reset", None)
    if callable(reset):
        reset(seed)

    actions: Optional[List[int]] = [] if record_actions else None
    lives_lost = 0
    start_time = time.time()

    terminated = truncated = False
    while not (terminated or truncated):
        action = agent_fn(obs)
        if actions is not None:
            actions.append(int(action))
        obs, _, terminated, truncated, info = env.step(action)
        lives_lost += info["lives_lost_this_step"]

    elapsed = time.time() - start_time
    env.close()

    outcome = _outcome(info, truncated)
    # The env advances past a won level at once, so ``level`` is the one in play
    levels_completed = 0
    if mode == "levels":
        levels_completed = info["level"] if outcome == OUTCOME_GAME_WON else info["level"] - 1

    result = EvalResult(
        seed=seed,
        mode=mode,
        outcome=outcome,
        final_score=info["score"],
        distance=info["distance"],
        stomps=info["stomps"],
        lives_lost=lives_lost,
        levels_completed=levels_completed,
        ticks=info["ticks"],
        termination_reason=info["terminated_reason"],
        elapsed_time=elapsed,
        actions=actions
    )

    if verbose:
        print(f"  Seed {seed}: {outcome} score={result.final_score} "
              f"distance={result.distance} stomps={result.stomps} "
              f"lives_lost={result.lives_lost} time={elapsed:.2f}s")

    return result


def summarize(results: List[EvalResult], mode: str, total_time: float = 0.0) -> EvalSummary:
    """Aggregate per-seed results."""
    if not results:
        raise ValueError("Cannot summarize an empty result list")

    scores = np.array([r.final_score for r in results])
    outcomes = Counter(r.outcome for r in results)

    return EvalSummary(
        mode=mode,
        mean_score=float(np.mean(scores)),
        std_score=float(np.std(scores)),
        min_score=int(scores.min()),
        max_score=int(scores.max()),
        median_score=float(np.median(scores)),
        mean_distance=float(np.mean([r.distance for r in results])),
        total_stomps=sum(r.stomps for r in results),
        mean_lives_lost=float(np.mean([r.lives_lost for r in results])),
        mean_levels_completed=float(np.mean([r.levels_completed for r in results])),
        win_rate=outcomes[OUTCOME_GAME_WON] / len(results),
        outcomes=dict(outcomes),
        total_time=total_time,
        results=list(results)
    )


def print_table(summary: EvalSummary) -> None:
    """Per-seed breakdown followed by the aggregates."""
    levels = summary.mode == "levels"
    header = f"{'seed':>7} {'outcome':>10} {'score':>7} {'dist':>7} {'stomps':>6} {'lost':>4}"
    if levels:
        header += f" {'levels':>6}"
    print(header)
    print("-" * len(header))
    for r in summary.results:
        row = (f"{r.seed:>7} {r.outcome:>10} {r.final_score:>7} {r.distance:>7} "
               f"{r.stomps:>6} {r.lives_lost:>4}")
        if levels:
            row += f" {r.levels_completed:>6}"
        print(row)

    print()
    print("=" * 50)
    print(f"EVALUATION SUMMARY ({summary.mode})")
    print("=" * 50)
    print(f"Seeds evaluated:  {len(summary.results)}")
    print(f"Mean score:       {summary.mean_score:.2f} (std {summary.std_score:.2f})")
    print(f"Min / max score:  {summary.min_score} / {summary.max_score}")
    print(f"Median score:     {summary.median_score:.2f}")
    print(f"Mean distance:    {summary.mean_distance:.1f}")
    print(f"Total stomps:     {summary.total_stomps}")
    print(f"Mean lives lost:  {summary.mean_lives_lost:.2f}")
    if levels:
        print(f"Mean levels:      {summary.mean_levels_completed:.2f}")
        print(f"Win rate:         {summary.win_rate:.0%}")
    outcomes = ", ".join(f"{k}={v}" for k, v in sorted(summary.outcomes.items()))
    print(f"Outcomes:         {outcomes}")
    print(f"Total time:       {summary.total_time:.2f}s")
    print("=" * 50)


def evaluate_agent(
    agent_fn: Callable,
    seeds: Optional[List[int]] = None,
    mode: str = "endless",
    record_actions: bool = False,
    verbose: bool = True
) -> EvalSummary:
    """
    Evaluate an agent on every seed.

    Args:
        agent_fn: Callable (obs) -> action, e.g. from ``load_agent``.
        seeds: Seeds to play. Uses seed_bank.json if None.
        mode: "endless" or "levels".
        record_actions: If True, keep every action per seed.
        verbose: If True, print progress and the per-seed table.

    Returns:
        EvalSummary over all seeds.
    """
    if seeds is None:
        seeds = load_seed_bank()
    if not seeds:
        raise ValueError("At least one seed is required")

    if verbose:
        print(f"Evaluating on {len(seeds)} seeds ({mode})...")

    total_start = time.time()
    results = [
        evaluate_single_seed(agent_fn, seed, mode=mode, record_actions=record_actions, verbose=verbose)
        for seed in seeds
    ]
    summary = summarize(results, mode, total_time=time.time() - total_start)

    if verbose:
        print()
        print_table(summary)

    return summary


def save_results(summary: EvalSummary, agent_name: str, output_path: str) -> None:
    """Write the summary, including every per-seed result, as JSON."""
    data = {
        "agent": agent_name,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        **asdict(summary),
    }
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)

    print(f"Results saved to {output_path}")


def main():
    parser = argparse.ArgumentParser(description="Evaluate a platformer agent")
    parser.add_argument("--agent", type=str, required=True,
                        help="Path to agent directory or agent.py file")
    parser.add_argument("--seeds", type=str, default=None,
                        help="Path to seed bank JSON (uses default if not specified)")
    parser.add_argument("--mode", choices=["endless", "levels"], default="endless",
                        help="World mode")
    parser.add_argument("--output", type=str, default=None,
                        help="Path to save results JSON")
    parser.add_argument("--record", action="store_true", help="Record actions")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")

    args = parser.parse_args()

    print(f"Loading agent from {args.agent}...")
    try:
        agent = load_agent(args.agent)
    except (FileNotFoundError, ImportError, AttributeError) as e:
        print(f"Error loading agent: {e}")
        return 1

    seeds = load_seed_bank(args.seeds) if args.seeds else None

    summary = evaluate_agent(
        agent,
        seeds=seeds,
        mode=args.mode,
        record_actions=args.record,
        verbose=not args.quiet
    )
    if args.quiet:
        print_table(summary)

    if args.output:
        save_results(summary, agent.name, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
