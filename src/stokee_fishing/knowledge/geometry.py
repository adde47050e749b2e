"""Tile coordinates and rectangular areas."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(frozen=True)
class WorldPoint:
    x: int
    y: int
    plane: int = 0

    def distance_to(self, other: "WorldPoint") -> float:
        """Straight-line tile distance. Points on different planes never meet."""
        if self.plane != other.plane:
            return math.inf
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_within(self, other: "WorldPoint", distance: float) -> bool:
        return self.distance_to(other) <= distance

    @classmethod
    def parse(cls, raw: Sequence[int]) -> "WorldPoint":
        """Build from a YAML/JSON ``[x, y]`` or ``[x, y, plane]`` list."""
        if len(raw) not in (2, 3):
            raise ValueError(f"Expected [x, y] or [x, y, plane], got {raw!r}")
        return cls(*(int(v) for v in raw))

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.plane})"


@dataclass(frozen=True)
class WorldArea:
    """Axis-aligned rectangle on one plane. Corners may be given in any order."""
    corner_a: WorldPoint
    corner_b: WorldPoint

    def __post_init__(self) -> None:
        if self.corner_a.plane != self.corner_b.plane:
            raise ValueError("Area corners must share a plane")

    @property
    def plane(self) -> int:
        return self.corner_a.plane

    @property
    def min_x(self) -> int:
        return min(self.corner_a.x, self.corner_b.x)

    @property
    def max_x(self) -> int:
        return max(self.corner_a.x, self.corner_b.x)

    @property
    def min_y(self) -> int:
        return min(self.corner_a.y, self.corner_b.y)

    @property
    def max_y(self) -> int:
        return max(self.corner_a.y, self.corner_b.y)

    @property
    def center(self) -> WorldPoint:
        return WorldPoint(
            (self.min_x + self.max_x) // 2,
            (self.min_y + self.max_y) // 2,
            self.plane,
        )

    def contains(self, point: WorldPoint) -> bool:
        return (
            point.plane == self.plane
            and self.min_x <= point.x <= self.max_x
            and self.min_y <= point.y <= self.max_y
        )

    @classmethod
    def parse(cls, raw: Iterable[Sequence[int]], plane: int = 0) -> "WorldArea":
        corners = [list(c) for c in raw]
        if len(corners) != 2:
            raise ValueError(f"Area needs exactly two corners, got {len(corners)}")
        a, b = (
            WorldPoint.parse(c if len(c) == 3 else [*c, plane])
            for c in corners
        )
        return cls(a, b)
