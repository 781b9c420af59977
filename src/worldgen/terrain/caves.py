"""Cave systems placed under high ground."""

import logging
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import ResourceType
from ..types import Position

logger = logging.getLogger(__name__)

CAVE_PREFIXES = ("Dark", "Deep", "Ancient", "Mysterious", "Hidden")
CAVE_SUFFIXES = ("Cavern", "Cave", "Grotto", "Chamber")
CHAMBER_TYPES: tuple[str, ...] = ("cavern", "tunnel", "chamber")

ENTRANCE_MIN_ELEVATION = 0.6
ENTRANCE_ATTEMPTS = 100
CHAMBER_SPREAD = 10

ChamberType = Literal["cavern", "tunnel", "chamber"]


@dataclass
class CaveChamber:
    id: int
    center: Position
    radius: float
    height: float
    type: ChamberType


@dataclass
class CaveSystem:
    """An underground feature anchored at a surface entrance."""

    id: int
    name: str
    entrances: list[Position]
    depth: float
    chambers: list[CaveChamber] = field(default_factory=list)
    resources: list[ResourceType] = field(
        default_factory=lambda: [ResourceType.STONE, ResourceType.METAL]
    )


def find_cave_entrance(
    heightmap: NDArray[np.float64],
    sea_level: float,
    rng: np.random.Generator,
) -> Position | None:
    """Sample random cells until one is high dry land, or give up."""
    height, width = heightmap.shape
    for _ in range(ENTRANCE_ATTEMPTS):
        x = int(rng.integers(width))
        y = int(rng.integers(height))
        h = heightmap[y, x]
        if h > ENTRANCE_MIN_ELEVATION and h >= sea_level:
            return Position(x=x, y=y)
    return None


def create_cave_system(
    cave_id: int,
    heightmap: NDArray[np.float64],
    sea_level: float,
    rng: np.random.Generator,
) -> CaveSystem | None:
    """Place one cave system with 2-5 chambers scattered around its entrance."""
    entrance = find_cave_entrance(heightmap, sea_level, rng)
    if entrance is None:
        return None

    height, width = heightmap.shape
    name = (
        f"{CAVE_PREFIXES[int(rng.integers(len(CAVE_PREFIXES)))]} "
        f"{CAVE_SUFFIXES[int(rng.integers(len(CAVE_SUFFIXES)))]}"
    )
    cave = CaveSystem(
        id=cave_id,
        name=name,
        entrances=[entrance],
        depth=10.0 + rng.random() * 20.0,
    )

    for i in range(int(rng.integers(2, 6))):
        cx = entrance.x + (rng.random() - 0.5) * 2 * CHAMBER_SPREAD
        cy = entrance.y + (rng.random() - 0.5) * 2 * CHAMBER_SPREAD
        cave.chambers.append(
            CaveChamber(
                id=i,
                center=Position(
                    x=int(np.clip(round(cx), 0, width - 1)),
                    y=int(np.clip(round(cy), 0, height - 1)),
                ),
                radius=2.0 + rng.random() * 4.0,
                height=3.0 + rng.random() * 5.0,
                type=CHAMBER_TYPES[int(rng.integers(len(CHAMBER_TYPES)))],
            )
        )

    return cave


def generate_caves(
    heightmap: NDArray[np.float64],
    sea_level: float,
    count: int,
    rng: np.random.Generator,
) -> list[CaveSystem]:
    caves: list[CaveSystem] = []
    for _ in range(count):
        cave = create_cave_system(len(caves), heightmap, sea_level, rng)
        if cave is not None:
            caves.append(cave)

    if count and not caves:
        logger.info("No high ground for cave entrances")
    return caves
