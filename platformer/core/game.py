"""
Core Game
=========

The world/session controller: owns every live entity and all score and life
state, and advances the world one tick at a time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from platformer.core.chunk_generator import Chunk
from platformer.core.config_loader import GameConfig, get_config
from platformer.core.entities import CollisionEvent, Enemy, EventKind, Platform, Player
from platformer.core.input_state import IntentSet
from platformer.core.rng import GenerationRng
from platformer.core.rules import GameRules, SessionState
from platformer.core.scoring import ScoreEvent, ScoreTracker
from platformer.core.world_source import WorldSource, make_world_source


@dataclass
class StepResult:
    """Result of a single tick."""
    state: SessionState
    events: List[CollisionEvent] = field(default_factory=list)
    delta_score: int = 0
    lives_lost: int = 0
    chunks: List[Chunk] = field(default_factory=list)
    score_events: List[ScoreEvent] = field(default_factory=list)
    termination_reason: str = ""

    @property
    def life_lost(self) -> bool:
        return self.lives_lost > 0

    @property
    def chunks_generated(self) -> int:
        return len(self.chunks)

    @property
    def terminated(self) -> bool:
        return self.state is SessionState.GAME_OVER

    @property
    def stomps(self) -> int:
        return sum(1 for e in self.events if e.kind is EventKind.STOMP)


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Player, platform and enemy updates
    - World source (endless chunks or fixed levels)
    - Checkpoints, camera and lives
    - Scoring

    One step = one tick = one rendered frame. Entities report collisions as
    events; only this class turns them into score, life loss, respawn or
    game over. Readers (renderer, HUD, snapshots) get read-only views.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        mode: str = "endless",
        rng: Optional[GenerationRng] = None
    ):
        """
        Initialize game and start a session.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for world generation.
            mode: "endless" for the procedural world, "levels" for the
                hand-authored levels.
            rng: Random draws for generation; overrides ``seed``.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed
        self._mode = mode

        # Initialize subsystems
        self._source: WorldSource = make_world_source(mode, config, rng=rng, seed=seed)
        self._scorer = ScoreTracker(config, tracks_distance=self._source.tracks_distance)
        self._rules = GameRules(config)

        # World state
        self._player: Player = self._new_player(config.player.spawn_x, config.player.spawn_y)
        self._platforms: List[Platform] = []
        self._enemies: List[Enemy] = []
        self._camera_x: float = 0.0
        self._state = SessionState.RUNNING
        self._termination_reason: str = ""
        self._ticks: int = 0

        self.start()

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def source(self) -> WorldSource:
        return self._source

    @property
    def player(self) -> Player:
        return self._player

    @property
    def platforms(self) -> Tuple[Platform, ...]:
        """Live platforms in generation order."""
        return tuple(self._platforms)

    @property
    def enemies(self) -> Tuple[Enemy, ...]:
        """Live enemies in generation order."""
        return tuple(self._enemies)

    @property
    def camera_x(self) -> float:
        return self._camera_x

    @property
    def next_spawn_x(self) -> float:
        """Generation frontier (infinite for static worlds)."""
        return self._source.next_spawn_x

    @property
    def checkpoint(self) -> Tuple[float, float]:
        return self._rules.checkpoint.checkpoint

    @property
    def score(self) -> int:
        """Current score."""
        return self._scorer.score

    @property
    def lives(self) -> int:
        return self._rules.lives.lives

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def game_over(self) -> bool:
        return self._state is SessionState.GAME_OVER

    @property
    def is_over(self) -> bool:
        """True if the session can no longer continue without a restart."""
        return self._state in (SessionState.GAME_OVER, SessionState.GAME_WON)

    @property
    def termination_reason(self) -> str:
        """Reason for game over, or empty string."""
        return self._termination_reason

    @property
    def level(self) -> int:
        return self._source.level

    @property
    def distance(self) -> int:
        """Horizontal progress shown in the HUD."""
        return int(math.floor(self._player.x))

    @property
    def difficulty(self) -> int:
        """Difficulty tier for the player's current position."""
        return self._source.difficulty_for(self._player.x)

    @property
    def ticks(self) -> int:
        """Ticks simulated in this session."""
        return self._ticks

    def _new_player(self, x: float, y: float) -> Player:
        return Player(
            x,
            y,
            self._config.physics,
            width=self._config.player.width,
            height=self._config.player.height,
            right_wall=self._source.right_wall
        )

    def start(self, seed: Optional[int] = None) -> None:
        """
        Start a fresh session.

        Args:
            seed: New random seed. Uses previous if None.
        """
        if seed is not None:
            self._seed = seed

        self._source.reset(self._seed)
        self._scorer.reset()
        self._rules.reset()

        self._ticks = 0
        self._state = SessionState.RUNNING
        self._termination_reason = ""
        self._load_world()

    def restart(self, seed: Optional[int] = None) -> None:
        """Reset to a fresh session (from any state, typically GAME_OVER)."""
        self.start(seed)

    def next_level(self) -> None:
        """
        Continue to the next hand-authored level, keeping score and lives.

        Raises:
            ValueError: If the current level has not just been won.
        """
        if self._state is not SessionState.LEVEL_WON:
            raise ValueError(f"next_level() requires state {SessionState.LEVEL_WON.value}, got {self._state.value}")

        self._source.next_level()
        self._rules.checkpoint.reset()
        self._state = SessionState.RUNNING
        self._load_world()

    def _load_world(self) -> None:
        """Populate the world from the source and place the player at spawn."""
        platforms, enemies = self._source.populate()
        self._platforms = list(platforms)
        self._enemies = list(enemies)
        self._player = self._new_player(self._config.player.spawn_x, self._config.player.spawn_y)
        self._camera_x = 0.0

    def step(self, intents: Optional[IntentSet] = None) -> StepResult:
        """
        Advance the world by one tick.

        Args:
            intents: Player intents for this tick. ``intents.jump`` is cleared
                once read. None means no input.

        Returns:
            StepResult describing what happened. Outside RUNNING nothing
            changes and an empty result is returned.
        """
        if self._state is not SessionState.RUNNING:
            return StepResult(state=self._state, termination_reason=self._termination_reason)

        if intents is None:
            intents = IntentSet()

        score_before = self._scorer.score
        player = self._player

        # Controls (right overrides left)
        if intents.move_right:
            player.move_right()
        elif intents.move_left:
            player.move_left()
        else:
            player.stop()
        if intents.consume_jump():
            player.jump()

        events = player.tick(self._platforms, self._enemies)

        for platform in self._platforms:
            platform.tick()
        for enemy in self._enemies:
            enemy.tick()

        self._rules.checkpoint.capture(player, self._platforms)

        self._enemies = [e for e in self._enemies if not e.defeated]

        chunks: List[Chunk] = []
        if self._source.follows_camera:
            self._camera_x = self._rules.camera.follow(self._camera_x, player.x)
            chunks = self._maintain_world()

        score_events = [
            self._scorer.apply_stomp() for e in events if e.kind is EventKind.STOMP
        ]
        self._scorer.update(player.x)

        # Every HIT and FELL costs its own life; respawn once afterwards
        lives_lost = 0
        for event in events:
            if not event.costs_life:
                continue
            lives_lost += 1
            result = self._rules.lives.lose_life(event.kind.value)
            if result.terminated:
                self._state = SessionState.GAME_OVER
                self._termination_reason = result.reason
                break

        if lives_lost:
            if self._state is SessionState.RUNNING:
                chunks += self._respawn()
        elif self._source.reached_goal(player, self._platforms):
            score_events.append(self._scorer.apply_level_bonus())
            if self._source.has_next_level():
                self._state = SessionState.LEVEL_WON
            else:
                self._state = SessionState.GAME_WON

        self._ticks += 1

        return StepResult(
            state=self._state,
            events=events,
            delta_score=self._scorer.score - score_before,
            lives_lost=lives_lost,
            chunks=chunks,
            score_events=score_events,
            termination_reason=self._termination_reason
        )

    def _maintain_world(self) -> List[Chunk]:
        """Generate up to the frontier, then drop content behind the camera."""
        camera = self._rules.camera
        chunks = self._source.extend(
            camera.frontier(self._camera_x),
            self._player.x,
            self._platforms
        )
        for chunk in chunks:
            self._platforms.extend(chunk.platforms)
            self._enemies.extend(chunk.enemies)

        cutoff = camera.cleanup_x(self._camera_x)
        self._platforms = [p for p in self._platforms if p.right >= cutoff]
        self._enemies = [e for e in self._enemies if e.right >= cutoff]
        return chunks

    def _respawn(self) -> List[Chunk]:
        """Replace the player at the respawn point and snap the camera to it."""
        x, y = self._source.respawn_point(self._rules.checkpoint.checkpoint)
        self._player = self._new_player(x, y)
        if not self._source.follows_camera:
            return []
        self._camera_x = self._rules.camera.snap(x)
        return self._maintain_world()

    def status_message(self) -> Tuple[str, str]:
        """Title and message for the end-of-run / level panel, or empty strings."""
        if self._state is SessionState.GAME_OVER:
            return ("Game Over!", f"No lives left! Final Score: {self.score}")
        if self._state is SessionState.LEVEL_WON:
            return (f"Level {self.level} Complete!", "Get ready for the next level!")
        if self._state is SessionState.GAME_WON:
            return ("ALL LEVELS COMPLETE!", f"Final Score: {self.score}")
        return ("", "")

    def get_info(self) -> Dict[str, Any]:
        """Get the values the HUD and agents read every tick."""
        title, message = self.status_message()
        return {
            "score": self.score,
            "lives": self.lives,
            "distance": self.distance,
            "level": self.level,
            "difficulty": self.difficulty,
            "state": self._state.value,
            "game_over": self.game_over,
            "stomps": self._scorer.stomps,
            "ticks": self._ticks,
            "terminated_reason": self._termination_reason,
            "status_title": title,
            "status_message": message,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with camera, entity boxes and HUD values, in world coordinates.
        """
        player = self._player
        info = self.get_info()
        return {
            "viewport_width": self._config.viewport.width,
            "viewport_height": self._config.viewport.height,
            "camera_x": self._camera_x,
            "mode": self._mode,
            "player": {
                "x": player.x,
                "y": player.y,
                "width": player.width,
                "height": player.height,
                "facing": int(player.facing),
                "animation_frame": player.animation_frame,
                "is_jumping": player.is_jumping,
            },
            "platforms": [
                {
                    "x": p.x,
                    "y": p.y,
                    "width": p.width,
                    "height": p.height,
                    "kind": p.kind.value,
                    "animation_frame": p.animation_frame,
                }
                for p in self._platforms
            ],
            "enemies": [
                {
                    "x": e.x,
                    "y": e.y,
                    "width": e.width,
                    "height": e.height,
                    "direction": e.direction,
                    "animation_counter": e.animation_counter,
                }
                for e in self._enemies
                if not e.defeated
            ],
            **info,
        }
