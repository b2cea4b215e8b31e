"""
Tests for procedural chunk generation.
"""

import random
from dataclasses import replace

import pytest

from platformer.core.chunk_generator import ChunkGenerator
from platformer.core.config_loader import load_config
from platformer.core.entities import PlatformKind
from platformer.core.geometry import overlaps, spans
from platformer.core.rng import GenerationRng, ScriptedSource


@pytest.fixture
def config():
    return load_config()


def generate_run(config, seed, num_chunks=6, difficulty=None):
    """Generate consecutive chunks the way the endless world does."""
    generator = ChunkGenerator(config, seed=seed)
    platforms = []
    enemies = []
    chunks = []
    for i in range(num_chunks):
        d = i if difficulty is None else difficulty
        chunk = generator.generate_chunk(i * generator.chunk_width, d, platforms)
        platforms.extend(chunk.platforms)
        enemies.extend(chunk.enemies)
        chunks.append(chunk)
    return chunks, platforms, enemies


class TestFirstChunk:
    """The first chunk must give the player somewhere to stand."""

    @pytest.mark.parametrize("seed", range(20))
    def test_starts_with_long_ground_at_origin(self, config, seed):
        generator = ChunkGenerator(config, seed=seed)
        chunk = generator.generate_chunk(0.0, 0)

        first = chunk.ground[0]
        assert first.x == 0.0
        assert first.width >= 200.0
        assert first.y == config.platform.ground_y
        assert first.kind is PlatformKind.NORMAL

    def test_spawn_point_is_supported(self, config):
        chunk = ChunkGenerator(config, seed=1).generate_chunk(0.0, 0)
        assert spans(chunk.ground[0], config.player.spawn_x, config.player.spawn_x + config.player.width)

    @pytest.mark.parametrize("seed", range(20))
    def test_no_enemy_on_safe_zone(self, config, seed):
        chunk = ChunkGenerator(config, seed=seed).generate_chunk(0.0, 0)
        safe = chunk.safe_zone
        for enemy in chunk.enemies:
            standing_on_safe = (
                spans(safe, enemy.x, enemy.x + enemy.width)
                and enemy.y + enemy.height == pytest.approx(safe.y)
            )
            assert not standing_on_safe


class TestChunkLayout:
    @pytest.mark.parametrize("seed", range(10))
    def test_ground_stays_inside_chunk(self, config, seed):
        chunks, _, _ = generate_run(config, seed)
        for chunk in chunks:
            for platform in chunk.ground:
                assert chunk.start_x <= platform.x
                assert platform.x + platform.width <= chunk.end_x + 1e-9

    @pytest.mark.parametrize("seed", range(10))
    def test_ground_segments_separated_by_gaps(self, config, seed):
        chunks, _, _ = generate_run(config, seed)
        for chunk in chunks:
            for a, b in zip(chunk.ground, chunk.ground[1:]):
                assert b.x - (a.x + a.width) >= config.generation.gap_length[0] - 1e-9

    @pytest.mark.parametrize("seed", range(10))
    def test_gap_length_scales_with_difficulty(self, config, seed):
        gen = config.generation
        chunks, _, _ = generate_run(config, seed, num_chunks=gen.max_difficulty + 1)
        for chunk in chunks:
            d = chunk.difficulty
            lo = gen.gap_length[0] + gen.gap_length_per_difficulty[0] * d
            hi = gen.gap_length[1] + gen.gap_length_per_difficulty[1] * d
            for a, b in zip(chunk.ground, chunk.ground[1:]):
                assert lo - 1e-6 <= b.x - (a.x + a.width) <= hi + 1e-6

    def test_gap_bounds_from_config(self, config):
        """Gaps run from 40 + 6d to 140 + 8d pixels."""
        gen = config.generation
        assert gen.gap_length == (40.0, 140.0)
        assert gen.gap_length_per_difficulty == (6.0, 8.0)

    @pytest.mark.parametrize("seed", range(10))
    def test_floating_platforms_in_band(self, config, seed):
        chunks, _, _ = generate_run(config, seed)
        lo, hi = config.generation.floating_y
        for chunk in chunks:
            for platform in chunk.floating:
                assert lo <= platform.y <= hi
                assert platform.kind in (PlatformKind.NORMAL, PlatformKind.MOVING)
                assert platform.x >= chunk.start_x + config.generation.floating_edge_margin - 1e-9

    @pytest.mark.parametrize("seed", range(10))
    def test_enemies_stand_on_a_platform(self, config, seed):
        chunks, platforms, _ = generate_run(config, seed)
        for chunk in chunks:
            for enemy in chunk.enemies:
                feet = enemy.y + enemy.height
                assert any(
                    p.y == pytest.approx(feet) and spans(p, enemy.x, enemy.x + enemy.width)
                    for p in chunk.platforms
                )

    @pytest.mark.parametrize("seed", range(20))
    @pytest.mark.parametrize("hard", [False, True])
    def test_enemy_box_touches_only_its_support(self, config, seed, hard):
        """With padding, an accepted enemy overlaps nothing but the platform under it."""
        difficulty = config.generation.max_difficulty if hard else None
        chunks, _, _ = generate_run(config, seed, difficulty=difficulty)
        padding = config.generation.enemy_padding
        known = []
        for chunk in chunks:
            known.extend(chunk.platforms)
            for enemy in chunk.enemies:
                touching = [p for p in known if overlaps(enemy, p, padding)]
                assert len(touching) == 1, f"seed {seed}: {enemy} touches {touching}"
                support = touching[0]
                assert support.y == pytest.approx(enemy.y + enemy.height)
                assert spans(support, enemy.x, enemy.x + enemy.width)

    def test_negative_difficulty_rejected(self, config):
        with pytest.raises(ValueError):
            ChunkGenerator(config, seed=0).generate_chunk(0.0, -1)


class TestNoOverlap:
    """No two generated platforms overlap, across many seeds and difficulties."""

    @pytest.mark.parametrize("seed", range(40))
    def test_platforms_never_overlap(self, config, seed):
        _, platforms, _ = generate_run(config, seed, num_chunks=8)
        for i, a in enumerate(platforms):
            for b in platforms[i + 1:]:
                assert not overlaps(a, b), f"seed {seed}: {a} overlaps {b}"

    @pytest.mark.parametrize("seed", range(10))
    def test_floating_keep_padding(self, config, seed):
        chunks, platforms, _ = generate_run(config, seed, difficulty=config.generation.max_difficulty)
        padding = config.generation.floating_padding
        floating = [p for chunk in chunks for p in chunk.floating]
        for a in floating:
            for b in platforms:
                if a is b:
                    continue
                assert not overlaps(a, b, padding)


class TestDifficulty:
    def test_difficulty_tiers(self, config):
        generator = ChunkGenerator(config, seed=0)
        distance = config.generation.difficulty_distance
        assert generator.difficulty_for(0.0) == 0
        assert generator.difficulty_for(distance - 1) == 0
        assert generator.difficulty_for(distance) == 1
        assert generator.difficulty_for(distance * 100) == config.generation.max_difficulty
        assert generator.difficulty_for(-50.0) == 0

    def test_harder_chunks_are_busier_on_average(self, config):
        easy = hard = 0
        for seed in range(30):
            easy += len(ChunkGenerator(config, seed=seed).generate_chunk(0.0, 0).enemies)
            hard += len(ChunkGenerator(config, seed=seed).generate_chunk(0.0, config.generation.max_difficulty).enemies)
        assert hard > easy

    def test_enemy_speed_grows_with_difficulty(self, config):
        gen = config.generation
        base = config.enemy.speed
        for seed in range(10):
            chunk = ChunkGenerator(config, seed=seed).generate_chunk(0.0, 4)
            for enemy in chunk.enemies:
                assert enemy.speed >= base + gen.enemy_speed_per_difficulty * 4
                assert enemy.speed <= base + gen.enemy_speed_per_difficulty * 4 + gen.enemy_speed_jitter


class TestDeterminism:
    def test_same_seed_same_world(self, config):
        a, _, _ = generate_run(config, 1234)
        b, _, _ = generate_run(config, 1234)
        assert [(p.x, p.y, p.width, p.kind) for c in a for p in c.platforms] == \
               [(p.x, p.y, p.width, p.kind) for c in b for p in c.platforms]
        assert [(e.x, e.y, e.speed) for c in a for e in c.enemies] == \
               [(e.x, e.y, e.speed) for c in b for e in c.enemies]

    def test_different_seeds_differ(self, config):
        a, _, _ = generate_run(config, 1)
        b, _, _ = generate_run(config, 2)
        assert [p.x for c in a for p in c.platforms] != [p.x for c in b for p in c.platforms]

    def test_injected_random_source(self, config):
        a = ChunkGenerator(config, rng=GenerationRng(random.Random(99))).generate_chunk(0.0, 2)
        b = ChunkGenerator(config, seed=99).generate_chunk(0.0, 2)
        assert [p.x for p in a.platforms] == [p.x for p in b.platforms]

    def test_rng_reset_replays(self, config):
        generator = ChunkGenerator(config, seed=5)
        first = [p.x for p in generator.generate_chunk(0.0, 0).platforms]
        generator.rng.reset(5)
        again = [p.x for p in generator.generate_chunk(0.0, 0).platforms]
        assert first == again


class TestScriptedSource:
    """A scripted source drives the generator down known branches."""

    def test_constant_zero_gives_minimal_world(self, config):
        """All-zero draws: shortest lengths, no extra platforms, no moving ones."""
        generator = ChunkGenerator(config, rng=GenerationRng(ScriptedSource([0.0])))
        chunk = generator.generate_chunk(0.0, 0)
        gen = config.generation

        assert chunk.ground[0].width == gen.first_ground_min_length
        for platform in chunk.ground[1:-1]:
            assert platform.width == gen.ground_length[0]
        # Every floating candidate lands on the same spot, so only one fits
        assert len(chunk.floating) == 1
        assert chunk.floating[0].kind is PlatformKind.MOVING

    def test_values_must_be_unit_interval(self):
        with pytest.raises(ValueError):
            ScriptedSource([0.5, 1.0])
        with pytest.raises(ValueError):
            ScriptedSource([])

    def test_cycles(self):
        source = ScriptedSource([0.1, 0.2])
        assert [source.random() for _ in range(4)] == [0.1, 0.2, 0.1, 0.2]


class TestSparseConfig:
    def test_no_floating_or_enemies(self, config):
        generation = replace(
            config.generation,
            floating_base_count=0,
            floating_random_count=0,
            floating_per_difficulty=0.0,
            enemy_base_count=0,
            enemy_random_count=0,
            enemy_per_difficulty=0.0,
        )
        sparse = replace(config, generation=generation)
        chunk = ChunkGenerator(sparse, seed=3).generate_chunk(0.0, 3)
        assert chunk.floating == []
        assert chunk.enemies == []
        assert chunk.ground
