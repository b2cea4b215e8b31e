"""
World Sources
=============

Where terrain comes from. The controller runs the same tick for every
source; a source decides the initial content, how the world grows, where
the player respawns and whether there is a goal.

- EndlessSource: procedurally generated chunks, forever.
- FixedLevelSource: the hand-authored levels from game_config.yaml.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from platformer.core.chunk_generator import Chunk, ChunkGenerator
from platformer.core.config_loader import GameConfig, get_config
from platformer.core.entities import Enemy, Platform, PlatformKind, Player
from platformer.core.geometry import overlaps
from platformer.core.rng import GenerationRng


WORLD_MODES = ("endless", "levels")

# Contact distance at which the player counts as touching the goal platform
GOAL_CONTACT_PADDING = 1.0


class WorldSource(ABC):
    """Strategy interface for world content."""

    # Camera scrolls with the player and off-screen content is discarded
    follows_camera: bool = True
    # Horizontal distance contributes to the score
    tracks_distance: bool = True

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._config = config

    @property
    def right_wall(self) -> Optional[float]:
        """World x the player may not pass, or None for an open world."""
        return None

    @property
    def level(self) -> int:
        """One-based level number (1 for the endless world)."""
        return 1

    @property
    def next_spawn_x(self) -> float:
        """World x up to which content exists."""
        return float("inf")

    def difficulty_for(self, player_x: float) -> int:
        """Difficulty tier reported for a player at ``player_x``."""
        return self.level - 1

    def reset(self, seed: Optional[int] = None) -> None:
        """Return to the first level / an empty world."""

    @abstractmethod
    def populate(self) -> Tuple[List[Platform], List[Enemy]]:
        """Build the initial content of a session or level."""

    def extend(
        self,
        frontier_x: float,
        player_x: float,
        platforms: Sequence[Platform]
    ) -> List[Chunk]:
        """Generate content up to ``frontier_x``. Static worlds return nothing."""
        return []

    def respawn_point(self, checkpoint: Tuple[float, float]) -> Tuple[float, float]:
        """Where a player who lost a life reappears."""
        return checkpoint

    def reached_goal(self, player: Player, platforms: Sequence[Platform]) -> bool:
        return False

    def has_next_level(self) -> bool:
        return False

    def next_level(self) -> None:
        raise ValueError(f"{type(self).__name__} has no further levels")


class EndlessSource(WorldSource):
    """Procedural world grown chunk by chunk ahead of the camera."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[GenerationRng] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize endless source.

        Args:
            config: Game configuration. Uses default if None.
            rng: Random draws for the generator. Created from ``seed`` if None.
            seed: Seed for the default rng.
        """
        super().__init__(config)
        self._generator = ChunkGenerator(self._config, rng=rng, seed=seed)
        self._next_spawn_x = 0.0

    @property
    def generator(self) -> ChunkGenerator:
        return self._generator

    @property
    def next_spawn_x(self) -> float:
        return self._next_spawn_x

    def difficulty_for(self, player_x: float) -> int:
        return self._generator.difficulty_for(player_x)

    def reset(self, seed: Optional[int] = None) -> None:
        self._generator.rng.reset(seed)
        self._next_spawn_x = 0.0

    def populate(self) -> Tuple[List[Platform], List[Enemy]]:
        platforms: List[Platform] = []
        enemies: List[Enemy] = []
        for _ in range(self._config.generation.initial_chunks):
            chunk = self._generate(0, platforms)
            platforms.extend(chunk.platforms)
            enemies.extend(chunk.enemies)
        return platforms, enemies

    def extend(
        self,
        frontier_x: float,
        player_x: float,
        platforms: Sequence[Platform]
    ) -> List[Chunk]:
        chunks: List[Chunk] = []
        known = list(platforms)
        difficulty = self.difficulty_for(player_x)
        while self._next_spawn_x < frontier_x:
            chunk = self._generate(difficulty, known)
            known.extend(chunk.platforms)
            chunks.append(chunk)
        return chunks

    def _generate(self, difficulty: int, known: Sequence[Platform]) -> Chunk:
        chunk = self._generator.generate_chunk(self._next_spawn_x, difficulty, known)
        self._next_spawn_x += self._generator.chunk_width
        return chunk


class FixedLevelSource(WorldSource):
    """
    Hand-authored single-screen levels.

    The camera stays put, the viewport edges are walls, the score only counts
    stomps and level bonuses, and reaching the goal platform ends the level.
    """

    follows_camera = False
    tracks_distance = False

    def __init__(self, config: Optional[GameConfig] = None):
        super().__init__(config)
        if not self._config.levels:
            raise ValueError("Fixed-level mode needs at least one level in the config")
        self._level_index = 0

    @property
    def right_wall(self) -> Optional[float]:
        return float(self._config.viewport.width)

    @property
    def level(self) -> int:
        return self._level_index + 1

    @property
    def level_name(self) -> str:
        return self._config.get_level(self._level_index).name

    def reset(self, seed: Optional[int] = None) -> None:
        self._level_index = 0

    def populate(self) -> Tuple[List[Platform], List[Enemy]]:
        level = self._config.get_level(self._level_index)
        platform_cfg = self._config.platform
        enemy_cfg = self._config.enemy

        platforms = [
            Platform(
                x=p.x,
                y=p.y,
                width=p.width,
                height=p.height,
                kind=PlatformKind(p.kind),
                move_speed=platform_cfg.move_speed,
                move_range=platform_cfg.move_range
            )
            for p in level.platforms
        ]
        enemies = [
            Enemy(
                x=x,
                y=y,
                width=enemy_cfg.width,
                height=enemy_cfg.height,
                speed=enemy_cfg.speed,
                move_range=enemy_cfg.move_range
            )
            for x, y in level.enemies
        ]
        return platforms, enemies

    def respawn_point(self, checkpoint: Tuple[float, float]) -> Tuple[float, float]:
        return (self._config.player.spawn_x, self._config.player.spawn_y)

    def reached_goal(self, player: Player, platforms: Sequence[Platform]) -> bool:
        # Touching counts so that standing on the goal (feet == top) wins
        return any(p.is_goal and overlaps(player, p, GOAL_CONTACT_PADDING) for p in platforms)

    def has_next_level(self) -> bool:
        return self._level_index + 1 < self._config.num_levels

    def next_level(self) -> None:
        if not self.has_next_level():
            raise ValueError("Already on the last level")
        self._level_index += 1


def make_world_source(
    mode: str,
    config: Optional[GameConfig] = None,
    rng: Optional[GenerationRng] = None,
    seed: Optional[int] = None
) -> WorldSource:
    """
    Create the world source for a game mode.

    Args:
        mode: "endless" or "levels".
        config: Game configuration. Uses default if None.
        rng: Random draws for the endless generator.
        seed: Seed for the endless generator when ``rng`` is None.

    Returns:
        A fresh world source.
    """
    if mode == "endless":
        return EndlessSource(config, rng=rng, seed=seed)
    if mode == "levels":
        return FixedLevelSource(config)
    raise ValueError(f"Unknown world mode '{mode}', expected one of {WORLD_MODES}")
