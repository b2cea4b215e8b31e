"""
RNG - Substitutable Random Source
=================================

World generation draws every random number through a ``GenerationRng``.
It wraps anything that exposes ``random() -> float in [0, 1)`` so tests can
inject a seeded ``random.Random`` or a scripted sequence and get the same
world every time.
"""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def random(self) -> float:  # returns in [0.0, 1.0)
        ...


class ScriptedSource:
    """
    Replays a fixed list of values, cycling when exhausted.

    Useful for forcing a particular branch of the generator in tests.
    """

    def __init__(self, values: Iterable[float]):
        self._values: List[float] = [float(v) for v in values]
        if not self._values:
            raise ValueError("ScriptedSource needs at least one value")
        for v in self._values:
            if not 0.0 <= v < 1.0:
                raise ValueError(f"Scripted value {v} outside [0, 1)")
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


class GenerationRng:
    """
    Convenience draws on top of a ``RandomSource``.

    Every helper consumes exactly one value from the source, which keeps
    scripted sequences easy to reason about.
    """

    def __init__(
        self,
        source: Optional[RandomSource] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize the generator.

        Args:
            source: Random source to draw from. If None, a ``random.Random``
                seeded with ``seed`` is created.
            seed: Seed for the default source. Random if None.
        """
        self._source = source if source is not None else random.Random(seed)

    @property
    def source(self) -> RandomSource:
        return self._source

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Re-seed the default source.

        Args:
            seed: New random seed. Only applies to ``random.Random`` sources;
                injected sources are left as they are.
        """
        if isinstance(self._source, random.Random):
            self._source.seed(seed)

    def random(self) -> float:
        return self._source.random()

    def uniform(self, lo: float, hi: float) -> float:
        """Real value in [lo, hi)."""
        return lo + self._source.random() * (hi - lo)

    def below(self, n: int) -> int:
        """Integer in [0, n)."""
        return int(self._source.random() * n)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self._source.random() < probability

    def choice(self, items: Sequence[T]) -> T:
        """Uniform pick from a non-empty sequence."""
        return items[min(self.below(len(items)), len(items) - 1)]
