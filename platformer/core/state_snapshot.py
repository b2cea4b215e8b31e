"""
State Snapshot
==============

Packs game state into fixed-size numpy arrays for Gymnasium observations.
Positions of nearby platforms and enemies are relative to the player so an
agent sees the same numbers wherever it is in the endless world.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING
import numpy as np

from platformer.core.config_loader import GameConfig, get_config
from platformer.core.entities import Enemy, Platform, PlatformKind, Player

if TYPE_CHECKING:
    from platformer.core.game import CoreGame


# Integer codes used in the platform_kind array
PLATFORM_KIND_CODES = {
    PlatformKind.NORMAL: 0,
    PlatformKind.MOVING: 1,
    PlatformKind.GOAL: 2,
}

# Integer codes used in the "state" observation
STATE_CODES = {
    "running": 0,
    "level_won": 1,
    "game_won": 2,
    "game_over": 3,
}


@dataclass
class GameSnapshot:
    """
    Complete game state snapshot.

    All arrays are fixed-size with masking for variable object counts.
    """
    # Player
    player_x: float
    player_y: float
    player_vx: float
    player_vy: float
    is_jumping: bool
    facing: int

    # Session
    camera_x: float
    score: int
    lives: int
    distance: int
    difficulty: int
    level: int
    state: int
    ticks: int

    # Ground probe (surface y below the feet for each slice ahead, 0 = gap)
    ground_probe: np.ndarray          # (probe_slices,) float32

    # Platform arrays (nearest first, padded)
    platform_dx: np.ndarray           # (MAX_PLATFORMS,) float32
    platform_dy: np.ndarray           # (MAX_PLATFORMS,) float32
    platform_width: np.ndarray        # (MAX_PLATFORMS,) float32
    platform_height: np.ndarray       # (MAX_PLATFORMS,) float32
    platform_kind: np.ndarray         # (MAX_PLATFORMS,) int8, -1 = empty
    platform_mask: np.ndarray         # (MAX_PLATFORMS,) bool

    # Enemy arrays (nearest first, padded)
    enemy_dx: np.ndarray              # (MAX_ENEMIES,) float32
    enemy_dy: np.ndarray              # (MAX_ENEMIES,) float32
    enemy_direction: np.ndarray       # (MAX_ENEMIES,) int8
    enemy_mask: np.ndarray            # (MAX_ENEMIES,) bool

    # Optional image
    frame_rgb: Optional[np.ndarray] = None

    @property
    def platforms_count(self) -> int:
        return int(self.platform_mask.sum())

    @property
    def enemies_count(self) -> int:
        return int(self.enemy_mask.sum())

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        obs = {
            # Player
            "player_x": np.array(self.player_x, dtype=np.float32),
            "player_y": np.array(self.player_y, dtype=np.float32),
            "player_vx": np.array(self.player_vx, dtype=np.float32),
            "player_vy": np.array(self.player_vy, dtype=np.float32),
            "is_jumping": np.array(int(self.is_jumping), dtype=np.int8),
            "facing": np.array(self.facing, dtype=np.int8),

            # Session
            "camera_x": np.array(self.camera_x, dtype=np.float32),
            "score": np.array(self.score, dtype=np.int64),
            "lives": np.array(self.lives, dtype=np.int32),
            "distance": np.array(self.distance, dtype=np.int64),
            "difficulty": np.array(self.difficulty, dtype=np.int32),
            "level": np.array(self.level, dtype=np.int32),
            "state": np.array(self.state, dtype=np.int32),

            "ground_probe": self.ground_probe,

            "platform_dx": self.platform_dx,
            "platform_dy": self.platform_dy,
            "platform_width": self.platform_width,
            "platform_height": self.platform_height,
            "platform_kind": self.platform_kind,
            "platform_mask": self.platform_mask,

            "enemy_dx": self.enemy_dx,
            "enemy_dy": self.enemy_dy,
            "enemy_direction": self.enemy_direction,
            "enemy_mask": self.enemy_mask,
        }

        if self.frame_rgb is not None:
            obs["frame_rgb"] = self.frame_rgb

        return obs


class SnapshotBuilder:
    """Builds game state snapshots with pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_platforms = config.observation.max_platforms
        self._max_enemies = config.observation.max_enemies
        self._probe_slices = config.observation.probe_slices
        self._probe_spacing = config.observation.probe_spacing
        self._landing_tolerance = config.physics.landing_tolerance

        # Pre-allocate arrays
        self._ground_probe = np.zeros(self._probe_slices, dtype=np.float32)
        self._platform_dx = np.zeros(self._max_platforms, dtype=np.float32)
        self._platform_dy = np.zeros(self._max_platforms, dtype=np.float32)
        self._platform_width = np.zeros(self._max_platforms, dtype=np.float32)
        self._platform_height = np.zeros(self._max_platforms, dtype=np.float32)
        self._platform_kind = np.full(self._max_platforms, -1, dtype=np.int8)
        self._platform_mask = np.zeros(self._max_platforms, dtype=bool)
        self._enemy_dx = np.zeros(self._max_enemies, dtype=np.float32)
        self._enemy_dy = np.zeros(self._max_enemies, dtype=np.float32)
        self._enemy_direction = np.zeros(self._max_enemies, dtype=np.int8)
        self._enemy_mask = np.zeros(self._max_enemies, dtype=bool)

    @property
    def max_platforms(self) -> int:
        return self._max_platforms

    @property
    def max_enemies(self) -> int:
        return self._max_enemies

    @property
    def probe_slices(self) -> int:
        return self._probe_slices

    def build(
        self,
        game: "CoreGame",
        frame_rgb: Optional[np.ndarray] = None
    ) -> GameSnapshot:
        """Build a snapshot from current game state."""
        # Reset arrays
        self._ground_probe.fill(0)
        self._platform_dx.fill(0)
        self._platform_dy.fill(0)
        self._platform_width.fill(0)
        self._platform_height.fill(0)
        self._platform_kind.fill(-1)
        self._platform_mask.fill(False)
        self._enemy_dx.fill(0)
        self._enemy_dy.fill(0)
        self._enemy_direction.fill(0)
        self._enemy_mask.fill(False)

        player = game.player
        platforms = game.platforms
        enemies = [e for e in game.enemies if not e.defeated]

        self._fill_ground_probe(player, platforms)

        for i, platform in enumerate(self._nearest_platforms(player, platforms)):
            self._platform_dx[i] = platform.x - player.x
            self._platform_dy[i] = platform.y - player.y
            self._platform_width[i] = platform.width
            self._platform_height[i] = platform.height
            self._platform_kind[i] = PLATFORM_KIND_CODES[platform.kind]
            self._platform_mask[i] = True

        for i, enemy in enumerate(self._nearest_enemies(player, enemies)):
            self._enemy_dx[i] = enemy.x - player.x
            self._enemy_dy[i] = enemy.y - player.y
            self._enemy_direction[i] = enemy.direction
            self._enemy_mask[i] = True

        return GameSnapshot(
            player_x=player.x,
            player_y=player.y,
            player_vx=player.vx,
            player_vy=player.vy,
            is_jumping=player.is_jumping,
            facing=int(player.facing),
            camera_x=game.camera_x,
            score=game.score,
            lives=game.lives,
            distance=game.distance,
            difficulty=game.difficulty,
            level=game.level,
            state=STATE_CODES[game.state.value],
            ticks=game.ticks,
            ground_probe=self._ground_probe.copy(),
            platform_dx=self._platform_dx.copy(),
            platform_dy=self._platform_dy.copy(),
            platform_width=self._platform_width.copy(),
            platform_height=self._platform_height.copy(),
            platform_kind=self._platform_kind.copy(),
            platform_mask=self._platform_mask.copy(),
            enemy_dx=self._enemy_dx.copy(),
            enemy_dy=self._enemy_dy.copy(),
            enemy_direction=self._enemy_direction.copy(),
            enemy_mask=self._enemy_mask.copy(),
            frame_rgb=frame_rgb
        )

    def _fill_ground_probe(self, player: Player, platforms: Sequence[Platform]) -> None:
        """
        Sample the terrain ahead of the player (lidar-style).

        Slice ``i`` looks straight down at ``player.right + i * spacing`` and
        records the top of the highest surface at or below the player's feet,
        or 0 when there is nothing to land on.
        """
        feet = player.y + player.height - self._landing_tolerance
        for s in range(self._probe_slices):
            probe_x = player.x + player.width + s * self._probe_spacing
            best = 0.0
            for platform in platforms:
                if platform.y < feet:
                    continue
                if platform.x <= probe_x <= platform.x + platform.width:
                    if best == 0.0 or platform.y < best:
                        best = platform.y
            self._ground_probe[s] = best

    def _nearest_platforms(
        self,
        player: Player,
        platforms: Sequence[Platform]
    ) -> List[Platform]:
        """Platforms ordered by horizontal gap to the player, truncated."""
        center = player.x + player.width / 2

        def gap(p: Platform) -> float:
            if p.x <= center <= p.x + p.width:
                return 0.0
            return min(abs(p.x - center), abs(p.x + p.width - center))

        return sorted(platforms, key=gap)[:self._max_platforms]

    def _nearest_enemies(self, player: Player, enemies: Sequence[Enemy]) -> List[Enemy]:
        """Enemies ordered by horizontal center distance, truncated."""
        center = player.x + player.width / 2
        return sorted(
            enemies,
            key=lambda e: abs(e.x + e.width / 2 - center)
        )[:self._max_enemies]
