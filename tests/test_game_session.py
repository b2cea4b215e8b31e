"""
Tests for the world/session controller: tick order, invariants, lives,
checkpoints, camera and world maintenance.
"""

from dataclasses import replace

import pytest

from platformer.core.config_loader import load_config
from platformer.core.entities import Enemy, EventKind
from platformer.core.game import CoreGame
from platformer.core.input_state import IntentSet
from platformer.core.rules import SessionState


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def flat_config(config):
    """Endless world with unbroken ground and nothing else in it."""
    generation = replace(
        config.generation,
        gap_length=(0.0, 0.0),
        gap_length_per_difficulty=(0.0, 0.0),
        floating_base_count=0,
        floating_random_count=0,
        floating_per_difficulty=0.0,
        enemy_base_count=0,
        enemy_random_count=0,
        enemy_per_difficulty=0.0,
    )
    return replace(config, generation=generation)


@pytest.fixture
def game(config):
    return CoreGame(config=config, seed=42)


@pytest.fixture
def flat_game(flat_config):
    return CoreGame(config=flat_config, seed=7)


def settle(game, ticks=30):
    """Let the freshly spawned player drop onto the ground."""
    for _ in range(ticks):
        game.step(IntentSet())


class TestStart:
    def test_initial_session(self, game, config):
        assert game.state is SessionState.RUNNING
        assert game.lives == 3
        assert game.score == 0
        assert game.camera_x == 0.0
        assert game.ticks == 0
        assert (game.player.x, game.player.y) == (config.player.spawn_x, config.player.spawn_y)
        assert game.checkpoint == (config.player.spawn_x, config.player.spawn_y)

    def test_initial_chunks_pregenerated(self, game, config):
        gen = config.generation
        assert game.next_spawn_x == gen.initial_chunks * gen.chunk_width
        assert len(game.platforms) > 0

    def test_restart_gives_fresh_session(self, game):
        right = IntentSet(move_right=True)
        for _ in range(100):
            game.step(right)
        game.restart()
        assert game.score == 0
        assert game.lives == 3
        assert game.ticks == 0
        assert game.player.x == 50.0

    def test_same_seed_same_world(self, config):
        a = CoreGame(config=config, seed=9)
        b = CoreGame(config=config, seed=9)
        assert [(p.x, p.width) for p in a.platforms] == [(p.x, p.width) for p in b.platforms]

    def test_restart_with_seed_replays_world(self, game):
        first = [(p.x, p.width) for p in game.platforms]
        game.restart(seed=123)
        game.restart(seed=42)
        assert [(p.x, p.width) for p in game.platforms] == first

    def test_unknown_mode(self, config):
        with pytest.raises(ValueError):
            CoreGame(config=config, mode="sideways")


class TestIntents:
    def test_right_overrides_left(self, flat_game):
        settle(flat_game)
        x0 = flat_game.player.x
        flat_game.step(IntentSet(move_left=True, move_right=True))
        assert flat_game.player.x == x0 + flat_game.config.physics.player_speed

    def test_no_intent_stops(self, flat_game):
        settle(flat_game)
        flat_game.step(IntentSet(move_right=True))
        x0 = flat_game.player.x
        flat_game.step(IntentSet())
        assert flat_game.player.x == x0

    def test_jump_is_consumed(self, flat_game):
        settle(flat_game)
        intents = IntentSet(jump=True)
        flat_game.step(intents)
        assert intents.jump is False
        assert flat_game.player.is_jumping
        # Gravity already applied once in the same tick
        assert flat_game.player.vy == -13.0 + 0.5


class TestInvariants:
    """Invariants that must hold after every tick."""

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_tick_invariants(self, config, seed):
        game = CoreGame(config=config, seed=seed)
        vw = config.viewport.width
        intents = IntentSet(move_right=True)
        last_score = game.score

        for tick in range(1500):
            intents.jump = tick % 25 == 0
            result = game.step(intents)

            assert game.score >= last_score
            last_score = game.score
            assert game.camera_x >= 0.0
            assert game.player.x >= 0.0
            assert game.player.vy <= config.physics.max_fall_speed
            assert all(not e.defeated for e in game.enemies)
            if game.state is SessionState.RUNNING or result.life_lost:
                assert game.next_spawn_x >= game.camera_x + 2 * vw

            if game.is_over:
                break

    def test_world_grows_and_is_cleaned(self, flat_game, flat_config):
        vw = flat_config.viewport.width
        right = IntentSet(move_right=True)
        for _ in range(1000):
            flat_game.step(right)
            assert flat_game.next_spawn_x >= flat_game.camera_x + 2 * vw

        assert flat_game.state is SessionState.RUNNING
        assert flat_game.player.x == 50.0 + 6.0 * 1000
        assert flat_game.camera_x > 0.0
        cutoff = flat_game.camera_x - flat_config.camera.cleanup_margin
        assert all(p.right >= cutoff for p in flat_game.platforms)
        assert flat_game.difficulty == 5

    def test_frontier_chunks_use_player_difficulty(self, flat_game, flat_config):
        gen = flat_config.generation
        right = IntentSet(move_right=True)
        seen = []
        for _ in range(1000):
            result = flat_game.step(right)
            expected = min(gen.max_difficulty, int(flat_game.player.x // gen.difficulty_distance))
            for chunk in result.chunks:
                assert chunk.difficulty == expected
                seen.append(chunk.difficulty)

        assert seen == sorted(seen)
        assert max(seen) >= 3

    def test_distance_score(self, flat_game):
        right = IntentSet(move_right=True)
        for _ in range(100):
            flat_game.step(right)
        assert flat_game.player.x == 650.0
        assert flat_game.score == 65
        assert flat_game.distance == 650

    def test_walking_back_keeps_score(self, flat_game):
        for _ in range(100):
            flat_game.step(IntentSet(move_right=True))
        best = flat_game.score
        for _ in range(50):
            flat_game.step(IntentSet(move_left=True))
        assert flat_game.score == best

    def test_camera_trails_player(self, flat_game, flat_config):
        right = IntentSet(move_right=True)
        for _ in range(300):
            flat_game.step(right)
        lead = flat_config.camera.lead_fraction * flat_config.viewport.width
        assert 0.0 < flat_game.camera_x <= flat_game.player.x - lead


class TestCheckpoint:
    def test_checkpoint_captured_when_grounded(self, flat_game):
        settle(flat_game)
        assert flat_game.checkpoint == (50.0, 502.0)

    def test_checkpoint_follows_player(self, flat_game):
        settle(flat_game)
        for _ in range(10):
            flat_game.step(IntentSet(move_right=True))
        assert flat_game.checkpoint == (flat_game.player.x, 502.0)

    def test_no_checkpoint_while_airborne(self, flat_game):
        settle(flat_game)
        flat_game.step(IntentSet(jump=True))
        before = flat_game.checkpoint
        flat_game.step(IntentSet(move_right=True))
        assert flat_game.checkpoint == before


class TestLives:
    def test_fall_costs_a_life_and_respawns(self, flat_game):
        settle(flat_game)
        for _ in range(20):
            flat_game.step(IntentSet(move_right=True))
        checkpoint = flat_game.checkpoint

        flat_game.player.y = 700.0
        result = flat_game.step(IntentSet())

        assert result.life_lost
        assert [e.kind for e in result.events] == [EventKind.FELL]
        assert flat_game.lives == 2
        assert flat_game.state is SessionState.RUNNING
        assert (flat_game.player.x, flat_game.player.y) == checkpoint
        assert flat_game.camera_x == max(0.0, checkpoint[0] - 0.35 * 800)

    def test_hit_and_fall_each_cost_a_life(self, flat_game):
        """A hit and a fall in the same tick are two separate losses."""
        settle(flat_game)
        player = flat_game.player
        player.y = 700.0
        flat_game._enemies.append(Enemy(x=player.x, y=player.y + 10.0))

        result = flat_game.step(IntentSet())

        kinds = {e.kind for e in result.events}
        assert kinds == {EventKind.HIT, EventKind.FELL}
        assert result.lives_lost == 2
        assert flat_game.lives == 1
        assert flat_game.state is SessionState.RUNNING

    def test_two_enemy_hits_cost_two_lives(self, flat_game):
        settle(flat_game)
        checkpoint = flat_game.checkpoint
        player = flat_game.player
        flat_game._enemies.append(Enemy(x=player.x + 10.0, y=player.y + 20.0, speed=0.0))
        flat_game._enemies.append(Enemy(x=player.x - 10.0, y=player.y + 20.0, speed=0.0))

        result = flat_game.step(IntentSet())

        assert [e.kind for e in result.events] == [EventKind.HIT, EventKind.HIT]
        assert result.lives_lost == 2
        assert flat_game.lives == 1
        # One respawn for the whole tick
        assert flat_game.player is not player
        assert (flat_game.player.x, flat_game.player.y) == checkpoint

    def test_losses_stop_at_game_over(self, flat_config):
        config = replace(flat_config, session=replace(flat_config.session, lives=2))
        game = CoreGame(config=config, seed=3)
        settle(game)
        player = game.player
        player.y = 700.0
        game._enemies.append(Enemy(x=player.x, y=player.y + 10.0))

        result = game.step(IntentSet())

        assert result.terminated
        assert result.lives_lost == 2
        assert game.lives == 0
        # The fall took the last life
        assert game.termination_reason == "fell"
        # No respawn once the session is over
        assert game.player is player

    def test_no_losses_counted_after_last_life(self, flat_config):
        config = replace(flat_config, session=replace(flat_config.session, lives=1))
        game = CoreGame(config=config, seed=3)
        settle(game)
        player = game.player
        player.y = 700.0
        game._enemies.append(Enemy(x=player.x, y=player.y + 10.0))

        result = game.step(IntentSet())

        assert len([e for e in result.events if e.costs_life]) == 2
        assert result.lives_lost == 1
        assert game.lives == 0
        assert game.termination_reason == "hit"

    def test_last_life_ends_game(self, flat_config):
        config = replace(flat_config, session=replace(flat_config.session, lives=1))
        game = CoreGame(config=config, seed=3)
        settle(game)
        player = game.player
        game._enemies.append(Enemy(x=player.x + 10.0, y=player.y + 20.0, speed=0.0))

        result = game.step(IntentSet())

        assert result.life_lost
        assert result.terminated
        assert game.lives == 0
        assert game.game_over
        assert game.state is SessionState.GAME_OVER
        assert game.termination_reason == "hit"
        assert "Final Score" in game.get_info()["status_message"]

    def test_game_over_freezes_world(self, flat_config):
        config = replace(flat_config, session=replace(flat_config.session, lives=1))
        game = CoreGame(config=config, seed=3)
        settle(game)
        game.player.y = 700.0
        game.step(IntentSet())
        assert game.game_over

        frozen = (game.player.x, game.player.y, game.score, game.lives, game.camera_x, game.ticks)
        for _ in range(20):
            result = game.step(IntentSet(move_right=True, jump=True))
            assert result.events == []
            assert result.delta_score == 0
        assert (game.player.x, game.player.y, game.score, game.lives, game.camera_x, game.ticks) == frozen

    def test_restart_after_game_over(self, flat_config):
        config = replace(flat_config, session=replace(flat_config.session, lives=1))
        game = CoreGame(config=config, seed=3)
        game.player.y = 700.0
        game.step(IntentSet())
        assert game.game_over

        game.restart()
        assert game.state is SessionState.RUNNING
        assert game.lives == 1
        assert game.score == 0


class TestStomp:
    def test_stomped_enemy_removed_same_tick(self, flat_game):
        settle(flat_game)
        player = flat_game.player
        player.y = 400.0
        player.vy = 5.0
        enemy = Enemy(x=player.x, y=450.0, speed=0.0)
        flat_game._enemies.append(enemy)

        score_before = flat_game.score
        result = flat_game.step(IntentSet())

        assert result.stomps == 1
        assert [(e.reason, e.points) for e in result.score_events] == [("stomp", 100)]
        assert enemy.defeated
        assert enemy not in flat_game.enemies
        assert flat_game.score - score_before >= 100
        assert result.delta_score == flat_game.score - score_before
        assert flat_game.player.vy == -10.0
        assert flat_game.lives == 3


class TestInfo:
    def test_info_keys(self, game):
        info = game.get_info()
        for key in ("score", "lives", "distance", "level", "state", "game_over", "ticks"):
            assert key in info
        assert info["state"] == "running"

    def test_render_data(self, game):
        data = game.get_render_data()
        assert data["viewport_width"] == 800
        assert data["player"]["width"] == 32
        assert len(data["platforms"]) == len(game.platforms)
        assert all(p["kind"] in ("normal", "moving", "goal") for p in data["platforms"])

    def test_views_are_read_only(self, game):
        assert isinstance(game.platforms, tuple)
        assert isinstance(game.enemies, tuple)
