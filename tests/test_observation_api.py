"""
Test suite for verifying all observation and action API elements.

Ensures the environment returns correctly shaped and typed observations,
and that the snapshot arrays describe the world around the player.
"""

import os

import numpy as np
import pytest

from platformer.core.config_loader import load_config
from platformer.core.entities import Enemy, Platform, PlatformKind
from platformer.core.env_gym import PlatformerEnv
from platformer.core.game import CoreGame
from platformer.core.input_state import IntentSet
from platformer.core.state_snapshot import PLATFORM_KIND_CODES, SnapshotBuilder


SCALAR_DTYPES = {
    "player_x": np.float32,
    "player_y": np.float32,
    "player_vx": np.float32,
    "player_vy": np.float32,
    "is_jumping": np.int8,
    "facing": np.int8,
    "camera_x": np.float32,
    "score": np.int64,
    "lives": np.int32,
    "distance": np.int64,
    "difficulty": np.int32,
    "level": np.int32,
    "state": np.int32,
}


class TestObservationAPI:
    """Verify all observation space elements."""

    @pytest.fixture
    def env(self):
        """Create fresh environment for each test."""
        env = PlatformerEnv()
        yield env
        env.close()

    @pytest.fixture
    def obs_after_reset(self, env):
        """Get observation after reset."""
        obs, info = env.reset(seed=42)
        return obs

    @pytest.fixture
    def obs_after_step(self, env):
        """Get observation after one step."""
        env.reset(seed=42)
        obs, _, _, _, _ = env.step(2)
        return obs

    @pytest.mark.parametrize("key", sorted(SCALAR_DTYPES))
    def test_scalar(self, obs_after_reset, key):
        assert key in obs_after_reset
        assert obs_after_reset[key].dtype == SCALAR_DTYPES[key]
        assert obs_after_reset[key].shape == ()

    def test_array_shapes(self, env, obs_after_reset):
        obs_cfg = env.config.observation
        assert obs_after_reset["ground_probe"].shape == (obs_cfg.probe_slices,)
        for key in ("platform_dx", "platform_dy", "platform_width", "platform_height",
                    "platform_kind", "platform_mask"):
            assert obs_after_reset[key].shape == (obs_cfg.max_platforms,), key
        for key in ("enemy_dx", "enemy_dy", "enemy_direction", "enemy_mask"):
            assert obs_after_reset[key].shape == (obs_cfg.max_enemies,), key

    def test_in_observation_space(self, env, obs_after_reset, obs_after_step):
        assert env.observation_space.contains(obs_after_reset)
        assert env.observation_space.contains(obs_after_step)

    def test_initial_values(self, env, obs_after_reset):
        config = env.config
        assert float(obs_after_reset["player_x"]) == config.player.spawn_x
        assert float(obs_after_reset["player_y"]) == config.player.spawn_y
        assert int(obs_after_reset["lives"]) == config.session.lives
        assert int(obs_after_reset["score"]) == 0
        assert int(obs_after_reset["level"]) == 1
        assert int(obs_after_reset["state"]) == 0
        assert int(obs_after_reset["facing"]) == 1

    def test_probe_sees_starting_ground(self, env, obs_after_reset):
        assert obs_after_reset["ground_probe"][0] == env.config.platform.ground_y

    def test_nearest_platform_is_under_player(self, env, obs_after_reset):
        """The starting ground is listed first, relative to the player."""
        config = env.config
        assert obs_after_reset["platform_mask"][0]
        assert obs_after_reset["platform_dx"][0] == -config.player.spawn_x
        assert obs_after_reset["platform_dy"][0] == config.platform.ground_y - config.player.spawn_y
        assert obs_after_reset["platform_kind"][0] == PLATFORM_KIND_CODES[PlatformKind.NORMAL]

    def test_padding(self, obs_after_reset):
        mask = obs_after_reset["platform_mask"]
        assert np.all(obs_after_reset["platform_kind"][~mask] == -1)
        assert np.all(obs_after_reset["platform_width"][~mask] == 0)
        enemy_mask = obs_after_reset["enemy_mask"]
        assert np.all(obs_after_reset["enemy_direction"][~enemy_mask] == 0)

    def test_step_changes_player(self, obs_after_reset, obs_after_step):
        assert float(obs_after_step["player_x"]) > float(obs_after_reset["player_x"])
        assert float(obs_after_step["player_vx"]) > 0

    def test_image_observation(self):
        pytest.importorskip("pygame")
        os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
        env = PlatformerEnv(image_obs=True)
        obs, _ = env.reset(seed=1)
        config = env.config
        assert obs["frame_rgb"].shape == (config.viewport.height, config.viewport.width, 3)
        assert obs["frame_rgb"].dtype == np.uint8
        env.close()


class TestSnapshotBuilder:
    """Snapshot contents on hand-built worlds."""

    @pytest.fixture
    def config(self):
        return load_config()

    @pytest.fixture
    def game(self, config):
        game = CoreGame(config=config, mode="levels")
        # Replace level 1 with a small known world
        game._platforms = [
            Platform(0.0, 550.0, 200.0, 50.0),
            Platform(320.0, 550.0, 200.0, 50.0),
            Platform(120.0, 400.0, 100.0, 20.0, kind=PlatformKind.MOVING),
        ]
        game._enemies = [
            Enemy(400.0, 518.0, 32.0, 32.0, speed=0.0),
            Enemy(90.0, 368.0, 32.0, 32.0, speed=0.0, direction=-1),
        ]
        for _ in range(30):
            game.step(IntentSet())
        return game

    def test_ground_probe_marks_gap(self, config, game):
        snapshot = SnapshotBuilder(config).build(game)
        spacing = config.observation.probe_spacing
        player_right = game.player.x + game.player.width
        for s, value in enumerate(snapshot.ground_probe):
            x = player_right + s * spacing
            if x <= 200.0 or 320.0 <= x <= 520.0:
                assert value == 550.0
            else:
                assert value == 0.0

    def test_probe_ignores_surfaces_above_feet(self, config, game):
        """The floating platform is above the feet and never reported."""
        snapshot = SnapshotBuilder(config).build(game)
        assert 400.0 not in snapshot.ground_probe

    def test_platforms_ordered_by_distance(self, config, game):
        snapshot = SnapshotBuilder(config).build(game)
        assert snapshot.platforms_count == 3
        # Standing on the first ground segment
        assert snapshot.platform_dx[0] == -game.player.x
        assert snapshot.platform_kind[1] == PLATFORM_KIND_CODES[PlatformKind.MOVING]

    def test_enemies_ordered_by_distance(self, config, game):
        snapshot = SnapshotBuilder(config).build(game)
        assert snapshot.enemies_count == 2
        assert snapshot.enemy_direction[0] == -1
        assert snapshot.enemy_dx[0] == pytest.approx(90.0 - game.player.x)
        assert snapshot.enemy_dx[1] == pytest.approx(400.0 - game.player.x)

    def test_truncates_to_capacity(self, config):
        from dataclasses import replace
        small = replace(config, observation=replace(config.observation, max_platforms=2, max_enemies=1))
        game = CoreGame(config=small, seed=3)
        snapshot = SnapshotBuilder(small).build(game)
        assert snapshot.platform_mask.shape == (2,)
        assert snapshot.platforms_count == 2
        assert snapshot.enemies_count <= 1
