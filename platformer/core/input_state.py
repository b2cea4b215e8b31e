"""
Input State
===========

Per-tick player intents. Input sources fill them in and the controller reads
them once per tick.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class IntentSet:
    """
    Player intents sampled once per tick.

    ``jump`` is edge-triggered: the controller clears it after reading, so a
    held key produces one jump attempt until the input source sets it again.
    """
    move_left: bool = False
    move_right: bool = False
    jump: bool = False

    def consume_jump(self) -> bool:
        pressed = self.jump
        self.jump = False
        return pressed

    def clear(self) -> None:
        self.move_left = False
        self.move_right = False
        self.jump = False
