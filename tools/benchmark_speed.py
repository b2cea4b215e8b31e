"""
Performance Benchmark
=====================

Measures tick, chunk-generation and environment step throughput for
performance tuning.

Usage:
    python -m tools.benchmark_speed [--steps S] [--quick]
"""

from __future__ import annotations

import argparse
import sys
import time
import numpy as np

from platformer.core.config_loader import load_config
from platformer.core.chunk_generator import ChunkGenerator
from platformer.core.env_gym import PlatformerEnv
from platformer.core.game import CoreGame
from platformer.core.input_state import IntentSet


def benchmark_single_env(
    num_steps: int = 1000,
    seed: int = 42
) -> dict:
    """
    Benchmark single environment performance.

    Args:
        num_steps: Number of steps to run.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    env = PlatformerEnv()
    rng = np.random.default_rng(seed)

    # Warmup
    obs, _ = env.reset(seed=seed)
    for _ in range(10):
        obs, _, terminated, truncated, _ = env.step(int(rng.integers(0, 6)))
        if terminated or truncated:
            obs, _ = env.reset()

    # Benchmark
    obs, _ = env.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        obs, _, terminated, truncated, _ = env.step(int(rng.integers(0, 6)))
        if terminated or truncated:
            obs, _ = env.reset()

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": "env",
        "num_steps": num_steps,
        "ticks_per_step": env.frame_skip,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_core_game(
    num_steps: int = 1000,
    seed: int = 42
) -> dict:
    """
    Benchmark raw CoreGame ticks without Gym overhead.

    The player holds right and jumps every 30 ticks so the world keeps
    scrolling and generating.

    Args:
        num_steps: Number of ticks.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    game = CoreGame(config=config, seed=seed)
    intents = IntentSet(move_right=True)

    # Warmup
    for i in range(10):
        intents.jump = i % 30 == 0
        game.step(intents)

    # Benchmark
    game.restart(seed=seed)
    chunks = 0
    start = time.perf_counter()

    for i in range(num_steps):
        intents.jump = i % 30 == 0
        result = game.step(intents)
        chunks += result.chunks_generated
        if game.is_over:
            game.restart()

    elapsed = time.perf_counter() - start

    return {
        "mode": "core_game",
        "num_steps": num_steps,
        "chunks_generated": chunks,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_chunk_generation(
    num_chunks: int = 200,
    seed: int = 42
) -> dict:
    """
    Benchmark chunk generation at the highest difficulty.

    Args:
        num_chunks: Number of chunks to generate.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    generator = ChunkGenerator(config, seed=seed)
    difficulty = config.generation.max_difficulty

    start = time.perf_counter()
    for i in range(num_chunks):
        generator.generate_chunk(i * generator.chunk_width, difficulty)
    elapsed = time.perf_counter() - start

    return {
        "mode": "chunk_gen",
        "num_steps": num_chunks,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_chunks / elapsed,
        "ms_per_step": (elapsed * 1000) / num_chunks
    }


def run_all_benchmarks(steps: int = 500) -> list:
    """Run comprehensive benchmarks."""
    results = []

    print("=" * 60)
    print("PLATFORMER PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    print("Benchmarking CoreGame (raw ticks)...")
    result = benchmark_core_game(num_steps=steps * 4)
    results.append(result)
    print(f"  Ticks/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/tick:   {result['ms_per_step']:.3f}")
    print(f"  Chunks:    {result['chunks_generated']}")
    print()

    print("Benchmarking ChunkGenerator (max difficulty)...")
    result = benchmark_chunk_generation(num_chunks=max(10, steps // 5))
    results.append(result)
    print(f"  Chunks/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/chunk:   {result['ms_per_step']:.3f}")
    print()

    print("Benchmarking PlatformerEnv (single)...")
    result = benchmark_single_env(num_steps=steps)
    results.append(result)
    print(f"  Steps/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/step:   {result['ms_per_step']:.3f}")
    print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<20} {'Steps/s':>12} {'ms/step':>10}")
    print("-" * 44)

    for r in results:
        print(f"{r['mode']:<20} {r['steps_per_second']:>12.1f} {r['ms_per_step']:>10.3f}")

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark platformer performance")
    parser.add_argument("--steps", type=int, default=500, help="Steps per benchmark")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer steps)")

    args = parser.parse_args()

    steps = 100 if args.quick else args.steps

    run_all_benchmarks(steps=steps)

    return 0


if __name__ == "__main__":
    sys.exit(main())
