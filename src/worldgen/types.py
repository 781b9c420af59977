"""Core coordinate types for the world grid."""

import math

from pydantic import BaseModel, Field

from .terrain_types import ResourceType

# Coordinate system: +X is East, +Y is South, grids are indexed [y, x]

# 8-connected neighbour offsets as (dx, dy), clockwise from north
NEIGHBOR_OFFSETS_8: tuple[tuple[int, int], ...] = (
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
)

# 4-connected neighbour offsets used by flood fill
NEIGHBOR_OFFSETS_4: tuple[tuple[int, int], ...] = (
    (1, 0),
    (-1, 0),
    (0, 1),
    (0, -1),
)


class Position(BaseModel, frozen=True):
    """Immutable 2D tile coordinate."""

    x: int
    y: int

    def distance_to(self, other: "Position") -> float:
        """Euclidean distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"

    def __repr__(self) -> str:
        return f"Position(x={self.x}, y={self.y})"


class Bounds(BaseModel, frozen=True):
    """Axis-aligned rectangle in tile coordinates (width/height inclusive counts)."""

    x: int
    y: int
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        """Check whether a cell lies inside the rectangle."""
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


class Resource(BaseModel, frozen=True):
    """A harvestable resource stock on a tile."""

    type: ResourceType
    amount: float = Field(ge=0)
    max_amount: float = Field(ge=0)
    regeneration_rate: float = Field(ge=0)
    last_harvested: int = 0
