"""
Baseline Runner Agent - Runs right, jumps over gaps and enemies.

This is a simple heuristic agent that uses the ground_probe observation
(a 1D "LIDAR" scan of the terrain ahead of the player) and the nearest
enemy arrays to decide when to jump.

This serves as:
1. A working example of how to read observations and return actions
2. A baseline benchmark to compare against
3. A verification that the environment API works correctly

Strategy:
- Always hold RIGHT
- Read the first few ground_probe slices; a 0 means there is nothing to
  land on there, so jump before reaching it
- Jump when an enemy is close ahead at roughly the same height
- Only jump while grounded (a jump in the air is ignored anyway)
"""

import numpy as np
from typing import Any, Dict, Optional


# Discrete actions (see platformer.core.env_gym.ACTIONS)
RIGHT = 2
RIGHT_JUMP = 5

# How many probe slices ahead must be solid before we keep running
LOOKAHEAD_SLICES = 3
# Enemy trigger window relative to the player's left edge
ENEMY_TRIGGER_DX = 110.0
ENEMY_TRIGGER_DY = 60.0


class PlatformerAgent:
    """
    Simple baseline agent that runs right and jumps at gaps and enemies.
    """

    def __init__(self, debug: bool = False, jitter: float = 0.0):
        """
        Initialize the agent.

        Args:
            debug: If True, print decisions to stdout.
            jitter: Probability of an extra random jump each step.
        """
        self.debug = debug
        self._jitter = jitter
        self._rng = np.random.default_rng()

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset agent state for a new episode.

        Args:
            seed: Optional random seed for reproducibility.
        """
        if seed is not None:
            self._rng = np.random.default_rng(seed)

    def act(self, observation: Dict[str, Any], debug: bool = False) -> int:
        """
        Choose between running and jumping.

        Args:
            observation: Dict of numpy arrays from the environment.
            debug: If True, print debug info for this step.

        Returns:
            Discrete action index.
        """
        grounded = int(observation["is_jumping"]) == 0

        # Gap ahead: any of the next few slices has nothing below the feet
        probe = observation["ground_probe"]
        gap_ahead = bool(np.any(probe[1:1 + LOOKAHEAD_SLICES] == 0))

        # Enemy ahead: masked entries with a small positive dx at our height
        mask = observation["enemy_mask"].astype(bool)
        dx = observation["enemy_dx"][mask]
        dy = observation["enemy_dy"][mask]
        enemy_ahead = bool(np.any((dx > 0) & (dx < ENEMY_TRIGGER_DX) & (np.abs(dy) < ENEMY_TRIGGER_DY)))

        random_jump = self._jitter > 0 and self._rng.random() < self._jitter

        jump = grounded and (gap_ahead or enemy_ahead or random_jump)
        action = RIGHT_JUMP if jump else RIGHT

        # Debug output
        if debug or self.debug:
            print(f"[Runner Agent] x={float(observation['player_x']):.0f}, "
                  f"grounded={grounded}, gap={gap_ahead}, enemy={enemy_ahead}, "
                  f"Action={'RIGHT_JUMP' if jump else 'RIGHT'}")

        return action


# Convenience function to create agent (used by evaluation harness)
def create_agent(**kwargs) -> PlatformerAgent:
    """Factory function to create an agent instance."""
    return PlatformerAgent(**kwargs)
