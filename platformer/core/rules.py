"""
Game Rules
==========

Handles checkpoint capture, camera follow, lives and session termination.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from platformer.core.config_loader import GameConfig, get_config
from platformer.core.entities import Platform, Player


class SessionState(str, Enum):
    """Session state machine. GAME_OVER and GAME_WON are terminal."""
    RUNNING = "running"
    LEVEL_WON = "level_won"
    GAME_WON = "game_won"
    GAME_OVER = "game_over"


@dataclass
class TerminationResult:
    """Result of a life-loss check."""
    terminated: bool
    reason: str

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(False, "")

    @staticmethod
    def game_over(reason: str) -> "TerminationResult":
        return TerminationResult(True, reason)


class CheckpointRules:
    """
    Records the last place the player stood safely.

    A checkpoint is captured whenever the player is grounded (``vy == 0``)
    on a platform whose top is within tolerance of the player's feet and
    whose span covers the player.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._tolerance = config.camera.checkpoint_tolerance
        self._spawn = (config.player.spawn_x, config.player.spawn_y)
        self._checkpoint: Tuple[float, float] = self._spawn

    @property
    def checkpoint(self) -> Tuple[float, float]:
        """Last recorded (x, y) respawn position."""
        return self._checkpoint

    def reset(self, position: Optional[Tuple[float, float]] = None) -> None:
        """Reset to ``position`` or the configured spawn point."""
        self._checkpoint = position if position is not None else self._spawn

    def supporting_platform(
        self,
        player: Player,
        platforms: Sequence[Platform]
    ) -> Optional[Platform]:
        """First platform the player is standing on, if any."""
        if player.vy != 0:
            return None
        feet = player.y + player.height
        for platform in platforms:
            if abs(platform.y - feet) > self._tolerance:
                continue
            if platform.x <= player.x and player.x + player.width <= platform.x + platform.width:
                return platform
        return None

    def capture(
        self,
        player: Player,
        platforms: Sequence[Platform]
    ) -> Optional[Tuple[float, float]]:
        """
        Update the checkpoint from the player's stance.

        Args:
            player: The player after this tick's movement.
            platforms: Live platforms (after their own tick).

        Returns:
            The new checkpoint if one was captured, else None.
        """
        platform = self.supporting_platform(player, platforms)
        if platform is None:
            return None
        self._checkpoint = (player.x, platform.y - player.height)
        return self._checkpoint


class CameraRules:
    """
    Horizontal camera follow.

    The camera eases towards a target that keeps the player at
    ``lead_fraction`` of the viewport from the left edge, and never scrolls
    past the world's left wall.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._lerp = config.camera.lerp
        self._lead = config.camera.lead_fraction * config.viewport.width
        self._frontier = config.camera.spawn_ahead_viewports * config.viewport.width
        self._cleanup_margin = config.camera.cleanup_margin

    def target(self, player_x: float) -> float:
        """Camera x that frames ``player_x`` at the lead position."""
        return player_x - self._lead

    def follow(self, camera_x: float, player_x: float) -> float:
        """One smoothing step towards the target."""
        camera_x += (self.target(player_x) - camera_x) * self._lerp
        return max(0.0, camera_x)

    def snap(self, player_x: float) -> float:
        """Camera x placed directly on the target (used after respawn)."""
        return max(0.0, self.target(player_x))

    def frontier(self, camera_x: float) -> float:
        """World x up to which content must exist."""
        return camera_x + self._frontier

    def cleanup_x(self, camera_x: float) -> float:
        """Entities whose right edge is left of this are discarded."""
        return camera_x - self._cleanup_margin


class LifeRules:
    """Counts lives and decides when the session ends."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._initial_lives = config.session.lives
        self._lives = self._initial_lives

    @property
    def lives(self) -> int:
        return self._lives

    def reset(self) -> None:
        self._lives = self._initial_lives

    def lose_life(self, reason: str) -> TerminationResult:
        """
        Take one life.

        Args:
            reason: What cost the life ("hit" or "fell").

        Returns:
            A terminating result once no lives remain.
        """
        self._lives -= 1
        if self._lives <= 0:
            self._lives = 0
            return TerminationResult.game_over(reason)
        return TerminationResult.none()


class GameRules:
    """
    Combined interface for all game rules.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize game rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self.checkpoint = CheckpointRules(config)
        self.camera = CameraRules(config)
        self.lives = LifeRules(config)

    def reset(self) -> None:
        """Reset all rule state."""
        self.checkpoint.reset()
        self.lives.reset()
