"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the platformer.
Reward is always 0.0 - agents must compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from platformer.core.config_loader import GameConfig, load_config
from platformer.core.game import CoreGame
from platformer.core.input_state import IntentSet
from platformer.core.rules import SessionState
from platformer.core.state_snapshot import GameSnapshot, SnapshotBuilder


# Discrete actions: (move_left, move_right, jump)
ACTIONS = (
    (False, False, False),   # 0 NOOP
    (True, False, False),    # 1 LEFT
    (False, True, False),    # 2 RIGHT
    (False, False, True),    # 3 JUMP
    (True, False, True),     # 4 LEFT_JUMP
    (False, True, True),     # 5 RIGHT_JUMP
)
ACTION_NAMES = ("NOOP", "LEFT", "RIGHT", "JUMP", "LEFT_JUMP", "RIGHT_JUMP")


def action_to_intents(action: int) -> IntentSet:
    """
    Map a discrete action to the intents for one tick.

    Raises:
        ValueError: If the action is out of range.
    """
    if not 0 <= action < len(ACTIONS):
        raise ValueError(f"Invalid action {action}, expected 0..{len(ACTIONS) - 1}")
    move_left, move_right, jump = ACTIONS[action]
    return IntentSet(move_left=move_left, move_right=move_right, jump=jump)


class PlatformerEnv(gym.Env):
    """
    Endless platformer as a Gymnasium environment.

    Action Space:
        Discrete(6): NOOP, LEFT, RIGHT, JUMP, LEFT_JUMP, RIGHT_JUMP.
        Each step holds the movement for ``frame_skip`` ticks and presses
        jump on the first tick only.

    Observation Space:
        Dict containing structured game state and optional RGB image.

    Reward:
        Always 0.0. Agents must compute their own reward from the info dict.

    Info:
        Contains score, delta_score, lives, distance, ticks, terminated_reason, etc.
    """

    metadata = {
        "render_modes": ["human", "rgb_array"],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        render_mode: Optional[str] = None,
        mode: str = "endless",
        frame_skip: Optional[int] = None,
        image_obs: bool = False,
        debug: bool = False,
    ):
        """
        Initialize platformer environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            render_mode: "human" for window, "rgb_array" for numpy, None for headless.
            mode: "endless" or "levels".
            frame_skip: Ticks per step. Uses caps.frame_skip if None.
            image_obs: If True, include frame_rgb in observations.
            debug: If True, enables verbose debug output for agent development.
        """
        super().__init__()

        # Load config
        self._config = load_config(config_path)

        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(f"Unsupported render_mode '{render_mode}'")

        # Store settings
        self.render_mode = render_mode
        self._image_obs = image_obs
        self._debug = debug
        self._frame_skip = frame_skip if frame_skip is not None else self._config.caps.frame_skip
        if self._frame_skip < 1:
            raise ValueError(f"frame_skip must be >= 1, got {self._frame_skip}")
        self._max_ticks = self._config.caps.max_ticks

        # Initialize game
        self._game = CoreGame(config=self._config, mode=mode)
        self._snapshots = SnapshotBuilder(self._config)

        # Initialize renderer (lazy)
        self._renderer = None

        # Define action space
        self.action_space = spaces.Discrete(len(ACTIONS))

        # Define observation space
        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] PlatformerEnv initialized")
            print(f"[DEBUG]   Mode: {mode}")
            print(f"[DEBUG]   Viewport: {self._config.viewport.width}x{self._config.viewport.height}")
            print(f"[DEBUG]   Frame skip: {self._frame_skip}, max ticks: {self._max_ticks}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        obs_cfg = self._config.observation
        max_p = obs_cfg.max_platforms
        max_e = obs_cfg.max_enemies
        vh = float(self._config.viewport.height)
        big = np.iinfo(np.int64).max

        obs_dict = {
            # Player
            "player_x": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "player_y": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "player_vx": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "player_vy": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "is_jumping": spaces.Box(low=0, high=1, shape=(), dtype=np.int8),
            "facing": spaces.Box(low=-1, high=1, shape=(), dtype=np.int8),

            # Session
            "camera_x": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "score": spaces.Box(low=0, high=big, shape=(), dtype=np.int64),
            "lives": spaces.Box(low=0, high=self._config.session.lives, shape=(), dtype=np.int32),
            "distance": spaces.Box(low=0, high=big, shape=(), dtype=np.int64),
            "difficulty": spaces.Box(low=0, high=max(self._config.generation.max_difficulty, self._config.num_levels), shape=(), dtype=np.int32),
            "level": spaces.Box(low=1, high=max(1, self._config.num_levels), shape=(), dtype=np.int32),
            "state": spaces.Box(low=0, high=3, shape=(), dtype=np.int32),

            # Ground probe
            "ground_probe": spaces.Box(low=0, high=vh, shape=(obs_cfg.probe_slices,), dtype=np.float32),

            # Platform arrays
            "platform_dx": spaces.Box(low=-np.inf, high=np.inf, shape=(max_p,), dtype=np.float32),
            "platform_dy": spaces.Box(low=-np.inf, high=np.inf, shape=(max_p,), dtype=np.float32),
            "platform_width": spaces.Box(low=0, high=np.inf, shape=(max_p,), dtype=np.float32),
            "platform_height": spaces.Box(low=0, high=np.inf, shape=(max_p,), dtype=np.float32),
            "platform_kind": spaces.Box(low=-1, high=2, shape=(max_p,), dtype=np.int8),
            "platform_mask": spaces.MultiBinary(max_p),

            # Enemy arrays
            "enemy_dx": spaces.Box(low=-np.inf, high=np.inf, shape=(max_e,), dtype=np.float32),
            "enemy_dy": spaces.Box(low=-np.inf, high=np.inf, shape=(max_e,), dtype=np.float32),
            "enemy_direction": spaces.Box(low=-1, high=1, shape=(max_e,), dtype=np.int8),
            "enemy_mask": spaces.MultiBinary(max_e),
        }

        if self._image_obs:
            obs_dict["frame_rgb"] = spaces.Box(
                low=0,
                high=255,
                shape=(self._config.viewport.height, self._config.viewport.width, 3),
                dtype=np.uint8
            )

        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        # Unseeded resets still get a fresh world, drawn from the env's generator
        if seed is None:
            seed = int(self.np_random.integers(0, 2**31 - 1))
        self._game.restart(seed=seed)

        obs = self._snapshot_to_obs(self._snapshots.build(self._game))
        info = self._game.get_info()
        info["delta_score"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.integer, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: Discrete action index in [0, 6).

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        # Convert action to scalar
        if isinstance(action, np.ndarray):
            action = int(action.item())
        action = int(action)

        intents = action_to_intents(action)
        delta_score = 0
        lives_lost = 0
        stomps = 0

        for _ in range(self._frame_skip):
            result = self._game.step(intents)
            delta_score += result.delta_score
            lives_lost += result.lives_lost
            stomps += result.stomps
            if self._game.state is not SessionState.RUNNING:
                break

        # Fixed-level mode continues straight into the next level
        if self._game.state is SessionState.LEVEL_WON:
            self._game.next_level()

        obs = self._snapshot_to_obs(self._snapshots.build(self._game))

        # Reward is always 0.0 - agents compute their own
        reward = 0.0

        terminated = self._game.is_over
        truncated = not terminated and self._game.ticks >= self._max_ticks

        # Build info
        info = self._game.get_info()
        info["delta_score"] = delta_score
        info["life_lost"] = lives_lost > 0
        info["lives_lost_this_step"] = lives_lost
        info["stomps_this_step"] = stomps
        if truncated:
            info["terminated_reason"] = "max_ticks"

        # Debug output
        if self._debug:
            print(f"[DEBUG] Step: action={ACTION_NAMES[action]}, delta_score={delta_score}, "
                  f"x={self._game.player.x:.1f}, lives={info['lives']}")
            if terminated:
                print(f"[DEBUG] TERMINATED: {info.get('terminated_reason', 'unknown')}")
            elif truncated:
                print(f"[DEBUG] TRUNCATED at {self._game.ticks} ticks")

        return obs, reward, terminated, truncated, info

    def _snapshot_to_obs(self, snapshot: GameSnapshot) -> Dict[str, np.ndarray]:
        """Convert snapshot to observation dict."""
        obs = snapshot.to_obs_dict()

        # Add image if requested
        if self._image_obs:
            obs["frame_rgb"] = self._render_to_array()

        return obs

    def _render_to_array(self) -> np.ndarray:
        """Render the current view to an RGB array."""
        if self._renderer is None:
            self._init_renderer()

        return self._renderer.render(self._game.get_render_data())

    def _init_renderer(self) -> None:
        from platformer.core.render_pygame import PygameRenderer
        self._renderer = PygameRenderer(self._config)

    def render(self) -> Optional[np.ndarray]:
        """
        Render the current game state.

        Returns:
            RGB array if render_mode is "rgb_array", None otherwise.
        """
        if self.render_mode == "rgb_array":
            return self._render_to_array()

        if self.render_mode == "human":
            if self._renderer is None:
                self._init_renderer()

            self._renderer.render_to_screen(self._game.get_render_data())
            import pygame
            pygame.display.flip()
            return None

        return None

    def close(self) -> None:
        """Clean up resources."""
        if self._renderer is not None:
            self._renderer.close()
            self._renderer = None

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def frame_skip(self) -> int:
        return self._frame_skip
