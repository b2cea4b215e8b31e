"""
Geometry
========

Axis-aligned bounding boxes and the overlap test shared by collision and
world generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class Box(Protocol):
    """Anything with a top-left corner and a size (y grows downward)."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    """Immutable axis-aligned rectangle."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


def overlaps(a: Box, b: Box, padding: float = 0.0) -> bool:
    """
    Test two boxes for intersection with non-zero area.

    With ``padding`` the boxes also count as overlapping when the gap between
    them on both axes is smaller than ``padding``. Touching edges do not
    overlap when ``padding`` is zero.

    Args:
        a: First box.
        b: Second box.
        padding: Extra clearance required between the boxes.

    Returns:
        True if the (padded) boxes intersect.
    """
    return (
        a.x < b.x + b.width + padding
        and a.x + a.width + padding > b.x
        and a.y < b.y + b.height + padding
        and a.y + a.height + padding > b.y
    )


def spans(outer: Box, left: float, right: float) -> bool:
    """True if ``outer`` covers the horizontal interval [left, right]."""
    return outer.x <= left and right <= outer.x + outer.width
