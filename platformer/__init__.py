"""
Platformer Package
==================

A side-scrolling platformer with an endless procedurally generated world and
five hand-authored levels. This package contains:

- The core simulation: entities, chunk generation, camera, checkpoints,
  lives and scoring
- A Gymnasium environment and numpy snapshots for agents
- A pygame renderer for human play
- The evaluation harness

All gameplay tunables are in game_config.yaml.
"""
