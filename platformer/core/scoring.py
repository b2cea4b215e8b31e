"""
Scoring System
==============

Turns distance travelled, stomps and level completions into a score that
never decreases.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from platformer.core.config_loader import GameConfig, get_config


@dataclass
class ScoreEvent:
    """Record of points awarded outside the distance term."""
    points: int
    reason: str

    def __repr__(self) -> str:
        return f"ScoreEvent({self.reason}={self.points})"


class ScoreTracker:
    """
    Tracks the session score.

    The score is the running maximum of
    ``floor(player_x / distance_divisor) + combat + bonus``, so walking
    backwards never costs points. Combat points come from stomps, bonus
    points from completed levels.
    """

    def __init__(self, config: Optional[GameConfig] = None, tracks_distance: bool = True):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
            tracks_distance: Whether horizontal distance contributes points.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._tracks_distance = tracks_distance
        self._score: int = 0
        self._combat: int = 0
        self._bonus: int = 0
        self._stomps: int = 0

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def combat_score(self) -> int:
        """Points earned from stomps."""
        return self._combat

    @property
    def stomps(self) -> int:
        """Number of enemies defeated."""
        return self._stomps

    def distance_points(self, player_x: float) -> int:
        """Points for reaching ``player_x`` (0 when distance is not tracked)."""
        if not self._tracks_distance:
            return 0
        return int(math.floor(max(0.0, player_x) / self._config.scoring.distance_divisor))

    def apply_stomp(self) -> ScoreEvent:
        """Credit one defeated enemy."""
        points = self._config.scoring.stomp_points
        self._combat += points
        self._stomps += 1
        return ScoreEvent(points=points, reason="stomp")

    def apply_level_bonus(self) -> ScoreEvent:
        """Credit a completed level and fold it into the score immediately."""
        points = self._config.scoring.level_bonus
        self._bonus += points
        self._score += points
        return ScoreEvent(points=points, reason="level")

    def update(self, player_x: float) -> int:
        """
        Recompute the score for the player's current position.

        Args:
            player_x: Player's world x.

        Returns:
            Points gained by this update (never negative).
        """
        candidate = self.distance_points(player_x) + self._combat + self._bonus
        gained = max(0, candidate - self._score)
        self._score += gained
        return gained

    def reset(self) -> None:
        """Reset score to zero."""
        self._score = 0
        self._combat = 0
        self._bonus = 0
        self._stomps = 0
