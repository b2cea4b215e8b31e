"""
Platformer Core - the game simulation and its agent-facing wrappers.

Main exports:
- PlatformerEnv: Gymnasium environment for single-agent training
- CoreGame: Low-level world/session controller
- ChunkGenerator: Procedural terrain generation
- IntentSet: Per-tick player input
- GameConfig: Configuration loaded from game_config.yaml
"""

from platformer.core.config_loader import GameConfig, load_config, get_config
from platformer.core.entities import Player, Platform, Enemy, PlatformKind, EventKind, CollisionEvent
from platformer.core.rng import GenerationRng, RandomSource, ScriptedSource
from platformer.core.chunk_generator import Chunk, ChunkGenerator
from platformer.core.world_source import WorldSource, EndlessSource, FixedLevelSource, make_world_source
from platformer.core.input_state import IntentSet
from platformer.core.rules import SessionState
from platformer.core.game import CoreGame, StepResult
from platformer.core.state_snapshot import GameSnapshot, SnapshotBuilder
from platformer.core.env_gym import PlatformerEnv

__all__ = [
    "GameConfig",
    "load_config",
    "get_config",
    "Player",
    "Platform",
    "Enemy",
    "PlatformKind",
    "EventKind",
    "CollisionEvent",
    "GenerationRng",
    "RandomSource",
    "ScriptedSource",
    "Chunk",
    "ChunkGenerator",
    "WorldSource",
    "EndlessSource",
    "FixedLevelSource",
    "make_world_source",
    "IntentSet",
    "SessionState",
    "CoreGame",
    "StepResult",
    "GameSnapshot",
    "SnapshotBuilder",
    "PlatformerEnv",
]
