"""
Chunk Generator
===============

Produces one fixed-width slice of the endless world: ground segments with
gaps, floating platforms and enemies. Difficulty widens the gaps and adds
floating platforms, moving platforms and faster, more numerous enemies.

Placement uses bounded rejection sampling. Running out of attempts simply
yields a sparser chunk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from platformer.core.config_loader import GameConfig, get_config
from platformer.core.entities import Enemy, Platform, PlatformKind
from platformer.core.geometry import overlaps, spans
from platformer.core.rng import GenerationRng


@dataclass
class Chunk:
    """Entities produced by one ``generate_chunk`` call."""
    start_x: float
    width: float
    difficulty: int
    ground: List[Platform] = field(default_factory=list)
    floating: List[Platform] = field(default_factory=list)
    enemies: List[Enemy] = field(default_factory=list)

    @property
    def end_x(self) -> float:
        return self.start_x + self.width

    @property
    def platforms(self) -> List[Platform]:
        """Ground first, then floating platforms, in placement order."""
        return self.ground + self.floating

    @property
    def safe_zone(self) -> Optional[Platform]:
        """The chunk's leading ground segment, kept free of enemies."""
        return self.ground[0] if self.ground else None


class ChunkGenerator:
    """
    Generates world chunks from a substitutable random source.

    The generator is append-only: it reads existing platforms to avoid
    overlaps but never modifies or removes them.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[GenerationRng] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize generator.

        Args:
            config: Game configuration. Uses default if None.
            rng: Random draws. Created from ``seed`` if None.
            seed: Seed for the default rng.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._gen = config.generation
        self._rng = rng if rng is not None else GenerationRng(seed=seed)

    @property
    def rng(self) -> GenerationRng:
        return self._rng

    @property
    def chunk_width(self) -> float:
        return self._gen.chunk_width

    def difficulty_for(self, player_x: float) -> int:
        """Difficulty tier for a player at ``player_x``, capped at the max tier."""
        tier = int(max(0.0, player_x) // self._gen.difficulty_distance)
        return min(self._gen.max_difficulty, tier)

    def generate_chunk(
        self,
        start_x: float,
        difficulty: int,
        existing_platforms: Sequence[Platform] = ()
    ) -> Chunk:
        """
        Generate the chunk spanning [start_x, start_x + chunk_width).

        Args:
            start_x: World x of the chunk's left edge.
            difficulty: Difficulty tier (>= 0).
            existing_platforms: Platforms already in the world. New floating
                platforms and enemies keep clear of them.

        Returns:
            Chunk holding only the newly created entities.
        """
        if difficulty < 0:
            raise ValueError(f"difficulty must be >= 0, got {difficulty}")

        chunk = Chunk(start_x=start_x, width=self._gen.chunk_width, difficulty=difficulty)

        chunk.ground = self._generate_ground(start_x, difficulty)

        placed: List[Platform] = list(existing_platforms) + chunk.ground
        chunk.floating = self._generate_floating(start_x, difficulty, placed)

        chunk.enemies = self._generate_enemies(chunk, placed)
        return chunk

    def _generate_ground(self, start_x: float, difficulty: int) -> List[Platform]:
        """Walk the chunk left to right alternating ground and gaps."""
        gen = self._gen
        platform_cfg = self._config.platform
        end_x = start_x + gen.chunk_width

        gap_lo = gen.gap_length[0] + gen.gap_length_per_difficulty[0] * difficulty
        gap_hi = gen.gap_length[1] + gen.gap_length_per_difficulty[1] * difficulty

        ground: List[Platform] = []
        x = start_x
        while x < end_x:
            if ground:
                x += self._rng.uniform(gap_lo, gap_hi)
                if x >= end_x:
                    break

            length = self._rng.uniform(*gen.ground_length)
            if not ground:
                length = max(length, gen.first_ground_min_length)
            length = min(length, end_x - x)

            ground.append(Platform(
                x=x,
                y=platform_cfg.ground_y,
                width=length,
                height=platform_cfg.ground_height,
                kind=PlatformKind.NORMAL
            ))
            x += length

        return ground

    def _generate_floating(
        self,
        start_x: float,
        difficulty: int,
        placed: List[Platform]
    ) -> List[Platform]:
        """Rejection-sample floating platforms. Appends accepted ones to ``placed``."""
        gen = self._gen
        platform_cfg = self._config.platform

        count = (
            gen.floating_base_count
            + self._rng.below(gen.floating_random_count)
            + int(gen.floating_per_difficulty * difficulty)
        )
        moving_probability = min(
            1.0,
            gen.moving_probability + gen.moving_probability_per_difficulty * difficulty
        )

        floating: List[Platform] = []
        for _ in range(count):
            for _attempt in range(gen.attempts):
                width = self._rng.uniform(*gen.floating_width)
                x = self._rng.uniform(
                    start_x + gen.floating_edge_margin,
                    start_x + gen.chunk_width - gen.floating_edge_margin - width
                )
                y = self._rng.uniform(*gen.floating_y)
                kind = PlatformKind.MOVING if self._rng.chance(moving_probability) else PlatformKind.NORMAL

                candidate = Platform(
                    x=x,
                    y=y,
                    width=width,
                    height=platform_cfg.floating_height,
                    kind=kind,
                    move_speed=platform_cfg.move_speed,
                    move_range=platform_cfg.move_range
                )
                if any(overlaps(candidate, other, gen.floating_padding) for other in placed):
                    continue

                placed.append(candidate)
                floating.append(candidate)
                break

        return floating

    def _generate_enemies(self, chunk: Chunk, placed: Sequence[Platform]) -> List[Enemy]:
        """Place enemies standing on ground segments or floating platforms."""
        gen = self._gen
        enemy_cfg = self._config.enemy
        difficulty = chunk.difficulty

        count = (
            gen.enemy_base_count
            + self._rng.below(gen.enemy_random_count)
            + int(gen.enemy_per_difficulty * difficulty)
        )

        # The leading segment is the chunk's safe landing zone
        ground_pool = chunk.ground[1:]

        enemies: List[Enemy] = []
        for _ in range(count):
            for _attempt in range(gen.attempts):
                x = self._rng.uniform(chunk.start_x, chunk.end_x - enemy_cfg.width)
                pool = ground_pool if self._rng.chance(gen.enemy_ground_probability) else chunk.floating

                candidates = [p for p in pool if spans(p, x, x + enemy_cfg.width)]
                if not candidates:
                    continue
                support = self._rng.choice(candidates)

                enemy = Enemy(
                    x=x,
                    y=support.y - enemy_cfg.height,
                    width=enemy_cfg.width,
                    height=enemy_cfg.height,
                    speed=(
                        enemy_cfg.speed
                        + gen.enemy_speed_per_difficulty * difficulty
                        + self._rng.uniform(0.0, gen.enemy_speed_jitter)
                    ),
                    move_range=enemy_cfg.move_range
                )
                if any(
                    p is not support and overlaps(enemy, p, gen.enemy_padding)
                    for p in placed
                ):
                    continue

                enemies.append(enemy)
                break

        return enemies
