"""
Entities
========

Player, Platform and Enemy with their per-tick update rules.

Entities never touch score or lives. ``Player.tick`` reports what happened
as a list of ``CollisionEvent`` and the game controller decides what the
events are worth.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, Optional, Sequence

from platformer.core.config_loader import PhysicsConfig
from platformer.core.geometry import overlaps


class PlatformKind(str, Enum):
    """Platform behaviour."""
    NORMAL = "normal"
    MOVING = "moving"
    GOAL = "goal"


class Facing(IntEnum):
    """Horizontal facing, usable as a sign."""
    LEFT = -1
    RIGHT = 1


class EventKind(str, Enum):
    """Outcome of a player tick that the controller must act on."""
    STOMP = "stomp"   # Enemy defeated from above
    HIT = "hit"       # Touched an enemy any other way
    FELL = "fell"     # Dropped below the play field


@dataclass
class CollisionEvent:
    """Something the player ran into this tick."""
    kind: EventKind
    enemy: Optional["Enemy"] = None

    @property
    def costs_life(self) -> bool:
        return self.kind in (EventKind.HIT, EventKind.FELL)


@dataclass
class Platform:
    """
    Terrain segment.

    Moving platforms oscillate horizontally around ``origin_x`` and never
    leave ``[origin_x - move_range, origin_x + move_range]``.
    """
    x: float
    y: float
    width: float
    height: float
    kind: PlatformKind = PlatformKind.NORMAL
    move_speed: float = 2.0
    move_range: float = 100.0
    origin_x: Optional[float] = None
    animation_frame: int = 0

    def __post_init__(self) -> None:
        self.kind = PlatformKind(self.kind)
        if self.origin_x is None:
            self.origin_x = self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def is_moving(self) -> bool:
        return self.kind is PlatformKind.MOVING

    @property
    def is_goal(self) -> bool:
        return self.kind is PlatformKind.GOAL

    def tick(self) -> None:
        if self.kind is PlatformKind.MOVING:
            self.x += self.move_speed
            offset = self.x - self.origin_x
            if abs(offset) > self.move_range:
                self.x = self.origin_x + math.copysign(self.move_range, offset)
                self.move_speed = -self.move_speed
        self.animation_frame = (self.animation_frame + 1) % 60


@dataclass
class Enemy:
    """
    Patrolling enemy.

    Once ``defeated`` the enemy is a tombstone: it neither moves nor collides
    and the controller removes it at the end of the tick.
    """
    x: float
    y: float
    width: float = 32.0
    height: float = 32.0
    speed: float = 2.0
    direction: int = 1
    move_range: float = 100.0
    origin_x: Optional[float] = None
    defeated: bool = False
    animation_counter: float = 0.0

    def __post_init__(self) -> None:
        if self.origin_x is None:
            self.origin_x = self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    def tick(self) -> None:
        if self.defeated:
            return
        self.x += self.speed * self.direction
        offset = self.x - self.origin_x
        if abs(offset) > self.move_range:
            self.x = self.origin_x + math.copysign(self.move_range, offset)
            self.direction = -self.direction
        self.animation_counter += 0.1


class Player:
    """
    The player character.

    Velocities are pixels per tick. The platform check is a "landed on top
    this tick" heuristic rather than a swept test: side and underside contacts
    are not resolved, and a very fast fall onto a thin surface can tunnel
    through it.
    """

    def __init__(
        self,
        x: float,
        y: float,
        physics: PhysicsConfig,
        width: float = 32.0,
        height: float = 48.0,
        right_wall: Optional[float] = None
    ):
        """
        Create a player at rest.

        Args:
            x: Left edge in world coordinates.
            y: Top edge in world coordinates.
            physics: Physics constants.
            width: Box width.
            height: Box height.
            right_wall: Optional world x the right edge may not pass.
        """
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.vx = 0.0
        self.vy = 0.0
        self.is_jumping = False
        self.is_moving = False
        self.facing = Facing.RIGHT
        self.animation_counter = 0.0
        self.animation_frame = 0

        self._physics = physics
        self._right_wall = right_wall

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def move_left(self) -> None:
        self.vx = -self._physics.player_speed
        self.facing = Facing.LEFT
        self.is_moving = True

    def move_right(self) -> None:
        self.vx = self._physics.player_speed
        self.facing = Facing.RIGHT
        self.is_moving = True

    def stop(self) -> None:
        self.vx = 0.0
        self.is_moving = False

    def jump(self) -> bool:
        """Start a jump unless one is in progress. Returns True if it took effect."""
        if self.is_jumping:
            return False
        self.vy = -self._physics.jump_strength
        self.is_jumping = True
        return True

    def _came_from_above(self, top: float) -> bool:
        """Falling, and the bottom edge was within tolerance of ``top`` before this tick's move."""
        previous_bottom = self.y + self.height - self.vy
        return self.vy > 0 and previous_bottom <= top + self._physics.landing_tolerance

    def tick(
        self,
        platforms: Sequence[Platform],
        enemies: Sequence[Enemy]
    ) -> List[CollisionEvent]:
        """
        Advance one tick: gravity, integration, landing, enemy contact.

        Args:
            platforms: Live platforms, checked in order.
            enemies: Live enemies, checked in order. Stomped enemies are
                marked defeated in place.

        Returns:
            Events the controller must resolve, in the order they occurred.
        """
        physics = self._physics
        events: List[CollisionEvent] = []

        self.vy = min(self.vy + physics.gravity, physics.max_fall_speed)

        self.x += self.vx
        self.y += self.vy
        self.x = max(self.x, 0.0)
        if self._right_wall is not None:
            self.x = min(self.x, self._right_wall - self.width)

        for platform in platforms:
            if overlaps(self, platform) and self._came_from_above(platform.y):
                self.y = platform.y - self.height
                self.vy = 0.0
                self.is_jumping = False

        for enemy in enemies:
            if enemy.defeated or not overlaps(self, enemy):
                continue
            if self._came_from_above(enemy.y):
                enemy.defeated = True
                self.vy = -physics.stomp_bounce
                self.is_jumping = True
                events.append(CollisionEvent(EventKind.STOMP, enemy))
            else:
                events.append(CollisionEvent(EventKind.HIT, enemy))

        if self.y > physics.fall_limit_y:
            events.append(CollisionEvent(EventKind.FELL))

        if self.is_moving:
            self.animation_counter += physics.animation_speed
            if self.animation_counter >= 1:
                self.animation_counter = 0.0
                self.animation_frame = (self.animation_frame + 1) % 4
        else:
            self.animation_frame = 0

        return events
