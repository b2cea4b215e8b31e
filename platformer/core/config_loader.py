"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml


PLATFORM_KINDS = ("normal", "moving", "goal")


@dataclass(frozen=True)
class ViewportConfig:
    """Visible play field size in pixels."""
    width: int
    height: int


@dataclass(frozen=True)
class PhysicsConfig:
    """Per-tick kinematics. Speeds are pixels per tick."""
    gravity: float
    jump_strength: float
    max_fall_speed: float
    player_speed: float
    animation_speed: float
    stomp_bounce: float
    landing_tolerance: float   # Band above a surface top that still counts as landing
    fall_limit_y: float        # Player y beyond this is a fall out of the world


@dataclass(frozen=True)
class PlayerConfig:
    """Player geometry and spawn point."""
    width: float
    height: float
    spawn_x: float
    spawn_y: float


@dataclass(frozen=True)
class PlatformConfig:
    """Platform defaults and ground geometry."""
    move_speed: float
    move_range: float
    ground_y: float
    ground_height: float
    floating_height: float


@dataclass(frozen=True)
class EnemyConfig:
    """Enemy geometry and default patrol."""
    width: float
    height: float
    speed: float
    move_range: float


@dataclass(frozen=True)
class GenerationConfig:
    """Chunk generator parameters. Ranges are half-open [lo, hi)."""
    chunk_width: float
    initial_chunks: int
    difficulty_distance: float
    max_difficulty: int
    attempts: int

    ground_length: Tuple[float, float]
    first_ground_min_length: float
    gap_length: Tuple[float, float]
    gap_length_per_difficulty: Tuple[float, float]

    floating_base_count: int
    floating_random_count: int
    floating_per_difficulty: float
    floating_width: Tuple[float, float]
    floating_y: Tuple[float, float]
    floating_edge_margin: float
    floating_padding: float
    moving_probability: float
    moving_probability_per_difficulty: float

    enemy_base_count: int
    enemy_random_count: int
    enemy_per_difficulty: float
    enemy_ground_probability: float
    enemy_padding: float
    enemy_speed_per_difficulty: float
    enemy_speed_jitter: float


@dataclass(frozen=True)
class CameraConfig:
    """Camera follow, generation frontier and cleanup."""
    lead_fraction: float          # Player sits this fraction of the viewport from the left
    lerp: float
    spawn_ahead_viewports: float
    cleanup_margin: float
    checkpoint_tolerance: float


@dataclass(frozen=True)
class SessionConfig:
    """Session parameters."""
    lives: int


@dataclass(frozen=True)
class ScoringConfig:
    """Scoring parameters."""
    distance_divisor: float
    stomp_points: int
    level_bonus: int


@dataclass(frozen=True)
class CapsConfig:
    """Episode limits for the agent environment."""
    max_ticks: int
    frame_skip: int


@dataclass(frozen=True)
class ObservationConfig:
    """Observation space parameters."""
    max_platforms: int
    max_enemies: int
    probe_slices: int
    probe_spacing: float


@dataclass(frozen=True)
class LevelPlatform:
    """A platform in a hand-authored level."""
    x: float
    y: float
    width: float
    height: float
    kind: str


@dataclass(frozen=True)
class LevelConfig:
    """A hand-authored level for the fixed-level mode."""
    name: str
    platforms: Tuple[LevelPlatform, ...]
    enemies: Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    viewport: ViewportConfig
    physics: PhysicsConfig
    player: PlayerConfig
    platform: PlatformConfig
    enemy: EnemyConfig
    generation: GenerationConfig
    camera: CameraConfig
    session: SessionConfig
    scoring: ScoringConfig
    caps: CapsConfig
    observation: ObservationConfig
    levels: Tuple[LevelConfig, ...]

    @property
    def num_levels(self) -> int:
        """Number of hand-authored levels."""
        return len(self.levels)

    def get_level(self, index: int) -> LevelConfig:
        """Get level config by zero-based index."""
        if 0 <= index < len(self.levels):
            return self.levels[index]
        raise ValueError(f"Invalid level index: {index}")


def _parse_range(data: List, name: str) -> Tuple[float, float]:
    """Parse a [lo, hi) range from YAML."""
    if len(data) != 2:
        raise ValueError(f"{name} must have 2 values [lo, hi], got {data}")
    return (float(data[0]), float(data[1]))


def _parse_level(level_data: dict) -> LevelConfig:
    """Parse a single level from YAML."""
    platforms = []
    for entry in level_data["platforms"]:
        if len(entry) != 5:
            raise ValueError(f"Level platform must be [x, y, width, height, kind], got {entry}")
        platforms.append(LevelPlatform(
            x=float(entry[0]),
            y=float(entry[1]),
            width=float(entry[2]),
            height=float(entry[3]),
            kind=str(entry[4]).lower()
        ))

    enemies = []
    for entry in level_data.get("enemies", []):
        if len(entry) != 2:
            raise ValueError(f"Level enemy must be [x, y], got {entry}")
        enemies.append((float(entry[0]), float(entry[1])))

    return LevelConfig(
        name=str(level_data.get("name", "")),
        platforms=tuple(platforms),
        enemies=tuple(enemies)
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    gen = config.generation

    for name in ("ground_length", "gap_length", "floating_width", "floating_y"):
        lo, hi = getattr(gen, name)
        if lo > hi:
            raise ValueError(f"generation.{name} is inverted: [{lo}, {hi})")

    for name in ("moving_probability", "enemy_ground_probability"):
        value = getattr(gen, name)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"generation.{name} must be in [0, 1], got {value}")

    if gen.chunk_width <= 2 * gen.floating_edge_margin + gen.floating_width[1]:
        raise ValueError(
            f"generation.chunk_width ({gen.chunk_width}) leaves no room for floating platforms"
        )

    if gen.first_ground_min_length > gen.chunk_width:
        raise ValueError("generation.first_ground_min_length exceeds chunk_width")

    if gen.initial_chunks < 1:
        raise ValueError(f"generation.initial_chunks must be >= 1, got {gen.initial_chunks}")

    if not 0.0 < config.camera.lerp <= 1.0:
        raise ValueError(f"camera.lerp must be in (0, 1], got {config.camera.lerp}")

    if config.session.lives < 1:
        raise ValueError(f"session.lives must be >= 1, got {config.session.lives}")

    if config.caps.frame_skip < 1:
        raise ValueError(f"caps.frame_skip must be >= 1, got {config.caps.frame_skip}")

    for index, level in enumerate(config.levels):
        for platform in level.platforms:
            if platform.kind not in PLATFORM_KINDS:
                raise ValueError(
                    f"Level {index}: unknown platform kind '{platform.kind}'"
                )
        goals = [p for p in level.platforms if p.kind == "goal"]
        if len(goals) != 1:
            raise ValueError(f"Level {index} must have exactly one goal platform, got {len(goals)}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    viewport_data = raw["viewport"]
    viewport = ViewportConfig(
        width=int(viewport_data["width"]),
        height=int(viewport_data["height"])
    )

    physics_data = raw["physics"]
    physics = PhysicsConfig(
        gravity=float(physics_data["gravity"]),
        jump_strength=float(physics_data["jump_strength"]),
        max_fall_speed=float(physics_data["max_fall_speed"]),
        player_speed=float(physics_data["player_speed"]),
        animation_speed=float(physics_data.get("animation_speed", 0.15)),
        stomp_bounce=float(physics_data.get("stomp_bounce", 10.0)),
        landing_tolerance=float(physics_data.get("landing_tolerance", 10.0)),
        fall_limit_y=float(physics_data.get("fall_limit_y", viewport.height))
    )

    player_data = raw["player"]
    player = PlayerConfig(
        width=float(player_data["width"]),
        height=float(player_data["height"]),
        spawn_x=float(player_data["spawn_x"]),
        spawn_y=float(player_data["spawn_y"])
    )

    platform_data = raw["platform"]
    platform = PlatformConfig(
        move_speed=float(platform_data.get("move_speed", 2.0)),
        move_range=float(platform_data.get("move_range", 100.0)),
        ground_y=float(platform_data["ground_y"]),
        ground_height=float(platform_data["ground_height"]),
        floating_height=float(platform_data.get("floating_height", 20.0))
    )

    enemy_data = raw["enemy"]
    enemy = EnemyConfig(
        width=float(enemy_data.get("width", 32)),
        height=float(enemy_data.get("height", 32)),
        speed=float(enemy_data.get("speed", 2.0)),
        move_range=float(enemy_data.get("move_range", 100.0))
    )

    gen_data = raw["generation"]
    generation = GenerationConfig(
        chunk_width=float(gen_data["chunk_width"]),
        initial_chunks=int(gen_data.get("initial_chunks", 3)),
        difficulty_distance=float(gen_data["difficulty_distance"]),
        max_difficulty=int(gen_data["max_difficulty"]),
        attempts=int(gen_data.get("attempts", 30)),
        ground_length=_parse_range(gen_data["ground_length"], "ground_length"),
        first_ground_min_length=float(gen_data["first_ground_min_length"]),
        gap_length=_parse_range(gen_data["gap_length"], "gap_length"),
        gap_length_per_difficulty=_parse_range(
            gen_data.get("gap_length_per_difficulty", [0.0, 0.0]),
            "gap_length_per_difficulty"
        ),
        floating_base_count=int(gen_data["floating_base_count"]),
        floating_random_count=int(gen_data.get("floating_random_count", 0)),
        floating_per_difficulty=float(gen_data.get("floating_per_difficulty", 0.0)),
        floating_width=_parse_range(gen_data["floating_width"], "floating_width"),
        floating_y=_parse_range(gen_data["floating_y"], "floating_y"),
        floating_edge_margin=float(gen_data.get("floating_edge_margin", 80.0)),
        floating_padding=float(gen_data.get("floating_padding", 6.0)),
        moving_probability=float(gen_data.get("moving_probability", 0.3)),
        moving_probability_per_difficulty=float(
            gen_data.get("moving_probability_per_difficulty", 0.0)
        ),
        enemy_base_count=int(gen_data["enemy_base_count"]),
        enemy_random_count=int(gen_data.get("enemy_random_count", 0)),
        enemy_per_difficulty=float(gen_data.get("enemy_per_difficulty", 0.0)),
        enemy_ground_probability=float(gen_data.get("enemy_ground_probability", 0.7)),
        enemy_padding=float(gen_data.get("enemy_padding", 1.0)),
        enemy_speed_per_difficulty=float(gen_data.get("enemy_speed_per_difficulty", 0.0)),
        enemy_speed_jitter=float(gen_data.get("enemy_speed_jitter", 0.0))
    )

    camera_data = raw["camera"]
    camera = CameraConfig(
        lead_fraction=float(camera_data["lead_fraction"]),
        lerp=float(camera_data["lerp"]),
        spawn_ahead_viewports=float(camera_data.get("spawn_ahead_viewports", 2.0)),
        cleanup_margin=float(camera_data.get("cleanup_margin", 300.0)),
        checkpoint_tolerance=float(camera_data.get("checkpoint_tolerance", 2.0))
    )

    session_data = raw.get("session", {})
    session = SessionConfig(
        lives=int(session_data.get("lives", 3))
    )

    scoring_data = raw["scoring"]
    scoring = ScoringConfig(
        distance_divisor=float(scoring_data.get("distance_divisor", 10.0)),
        stomp_points=int(scoring_data["stomp_points"]),
        level_bonus=int(scoring_data.get("level_bonus", 300))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_ticks=int(caps_data.get("max_ticks", 20000)),
        frame_skip=int(caps_data.get("frame_skip", 4))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_platforms=int(obs_data.get("max_platforms", 32)),
        max_enemies=int(obs_data.get("max_enemies", 16)),
        probe_slices=int(obs_data.get("probe_slices", 20)),
        probe_spacing=float(obs_data.get("probe_spacing", 40.0))
    )

    levels = tuple(_parse_level(level) for level in raw.get("levels", []))

    config = GameConfig(
        viewport=viewport,
        physics=physics,
        player=player,
        platform=platform,
        enemy=enemy,
        generation=generation,
        camera=camera,
        session=session,
        scoring=scoring,
        caps=caps,
        observation=observation,
        levels=levels
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
