"""Landmass extraction: flood-filled continents and islands."""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import IslandType
from ..types import NEIGHBOR_OFFSETS_4, Bounds, Position
from .config import LandmassConfig

logger = logging.getLogger(__name__)

# Ownership grid value for cells outside any kept landmass
NO_OWNER = -1

CONTINENT_PREFIXES = ("Great", "Ancient", "Mysterious", "Vast", "Hidden", "Sacred")
CONTINENT_SUFFIXES = ("Land", "Continent", "Realm", "Domain", "Territory", "Region")
ISLAND_PREFIXES: dict[IslandType, tuple[str, ...]] = {
    IslandType.CONTINENTAL: ("Green", "Fertile", "Peaceful", "Abundant"),
    IslandType.VOLCANIC: ("Fire", "Smoking", "Burning", "Molten"),
    IslandType.CORAL: ("Crystal", "Azure", "Turquoise", "Pearl"),
    IslandType.MOUNTAINOUS: ("Rocky", "Steep", "Craggy", "Alpine"),
}
ISLAND_SUFFIXES = ("Isle", "Island", "Atoll", "Reef", "Cay")


@dataclass
class ElevationStats:
    """Elevation aggregate over a region."""

    min: float
    max: float
    average: float


@dataclass
class ClimateStats:
    """Climate aggregate over a region."""

    temperature: float
    rainfall: float


@dataclass
class RegionCandidate:
    """A 4-connected land component found by flood fill."""

    cells: list[tuple[int, int]]  # (y, x) coordinates
    min_x: int
    max_x: int
    min_y: int
    max_y: int
    elevation_min: float
    elevation_max: float
    elevation_sum: float
    temperature_sum: float
    humidity_sum: float

    @property
    def area(self) -> int:
        return len(self.cells)

    @property
    def bounds(self) -> Bounds:
        return Bounds(
            x=self.min_x,
            y=self.min_y,
            width=self.max_x - self.min_x + 1,
            height=self.max_y - self.min_y + 1,
        )

    @property
    def elevation(self) -> ElevationStats:
        return ElevationStats(
            min=self.elevation_min,
            max=self.elevation_max,
            average=self.elevation_sum / self.area,
        )

    @property
    def climate(self) -> ClimateStats:
        return ClimateStats(
            temperature=self.temperature_sum / self.area,
            rainfall=self.humidity_sum / self.area,
        )


@dataclass
class Continent:
    """One of the largest land components."""

    id: int
    name: str
    bounds: Bounds
    area: int
    elevation: ElevationStats
    climate: ClimateStats
    biomes: list[str] = field(default_factory=list)
    rivers: list[int] = field(default_factory=list)
    lakes: list[int] = field(default_factory=list)


@dataclass
class Island:
    """A small land component kept by island density."""

    id: int
    name: str
    center: Position
    radius: float
    bounds: Bounds
    area: int
    elevation: ElevationStats
    climate: ClimateStats
    type: IslandType
    biomes: list[str] = field(default_factory=list)
    rivers: list[int] = field(default_factory=list)
    lakes: list[int] = field(default_factory=list)


@dataclass
class LandmassResult:
    """Continents, islands and the per-cell ownership grid."""

    continents: list[Continent]
    islands: list[Island]
    ownership: NDArray[np.int32]


def flood_fill(
    start_x: int,
    start_y: int,
    land_mask: NDArray[np.bool_],
    visited: NDArray[np.bool_],
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
) -> RegionCandidate:
    """Collect the 4-connected land component containing (start_x, start_y).

    Iterative BFS; marks every collected cell in ``visited``.
    """
    height, width = land_mask.shape
    queue: deque[tuple[int, int]] = deque([(start_y, start_x)])
    visited[start_y, start_x] = True
    cells: list[tuple[int, int]] = []

    while queue:
        y, x = queue.popleft()
        cells.append((y, x))

        for dx, dy in NEIGHBOR_OFFSETS_4:
            ny, nx = y + dy, x + dx
            if 0 <= ny < height and 0 <= nx < width:
                if land_mask[ny, nx] and not visited[ny, nx]:
                    visited[ny, nx] = True
                    queue.append((ny, nx))

    ys = np.fromiter((c[0] for c in cells), dtype=np.intp, count=len(cells))
    xs = np.fromiter((c[1] for c in cells), dtype=np.intp, count=len(cells))
    elevations = heightmap[ys, xs]

    return RegionCandidate(
        cells=cells,
        min_x=int(xs.min()),
        max_x=int(xs.max()),
        min_y=int(ys.min()),
        max_y=int(ys.max()),
        elevation_min=float(elevations.min()),
        elevation_max=float(elevations.max()),
        elevation_sum=float(elevations.sum()),
        temperature_sum=float(temperature[ys, xs].sum()),
        humidity_sum=float(humidity[ys, xs].sum()),
    )


def find_land_components(
    land_mask: NDArray[np.bool_],
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
) -> list[RegionCandidate]:
    """Flood fill every land component in row-major scan order."""
    height, width = land_mask.shape
    visited = np.zeros((height, width), dtype=bool)
    components: list[RegionCandidate] = []

    for y in range(height):
        for x in range(width):
            if land_mask[y, x] and not visited[y, x]:
                components.append(
                    flood_fill(x, y, land_mask, visited, heightmap, temperature, humidity)
                )

    return components


def classify_island(average_elevation: float) -> IslandType:
    """Derive an island's type from its average elevation."""
    if average_elevation > 0.7:
        return IslandType.MOUNTAINOUS
    if average_elevation > 0.5:
        return IslandType.VOLCANIC
    if average_elevation < 0.3:
        return IslandType.CORAL
    return IslandType.CONTINENTAL


def _pick(options: Sequence[str], rng: np.random.Generator) -> str:
    return options[int(rng.integers(len(options)))]


def _make_island(
    landmass_id: int,
    candidate: RegionCandidate,
    rng: np.random.Generator,
) -> Island:
    """Build an Island from a component: centroid, radius and type."""
    cy = sum(c[0] for c in candidate.cells) // candidate.area
    cx = sum(c[1] for c in candidate.cells) // candidate.area
    radius = max(math.hypot(x - cx, y - cy) for y, x in candidate.cells)

    elevation = candidate.elevation
    island_type = classify_island(elevation.average)
    name = f"{_pick(ISLAND_PREFIXES[island_type], rng)} {_pick(ISLAND_SUFFIXES, rng)}"

    return Island(
        id=landmass_id,
        name=name,
        center=Position(x=cx, y=cy),
        radius=radius,
        bounds=candidate.bounds,
        area=candidate.area,
        elevation=elevation,
        climate=candidate.climate,
        type=island_type,
    )


def identify_landmasses(
    land_mask: NDArray[np.bool_],
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
    continent_count: int,
    island_density: float,
    rng: np.random.Generator,
    config: LandmassConfig,
) -> LandmassResult:
    """Partition land components into continents and islands.

    The ``continent_count`` largest components of at least
    ``continent_min_area`` cells become continents. Remaining components
    whose area lies in the island band are each kept with probability
    ``island_density``. Landmass ids share one integer space: continents
    first, then islands.

    Args:
        land_mask: Boolean mask where True = land.
        heightmap: Elevation field.
        temperature: Temperature field.
        humidity: Humidity field.
        continent_count: Number of continents to keep.
        island_density: Island retention probability.
        rng: Random number generator.
        config: Landmass parameters.

    Returns:
        LandmassResult with continents, islands and ownership grid.
    """
    components = find_land_components(land_mask, heightmap, temperature, humidity)
    logger.debug(f"Found {len(components)} land components")

    large = [c for c in components if c.area >= config.continent_min_area]
    # Stable sort keeps scan order among equal areas
    large.sort(key=lambda c: c.area, reverse=True)
    continent_candidates = large[:continent_count]
    chosen = {id(c) for c in continent_candidates}

    ownership = np.full(land_mask.shape, NO_OWNER, dtype=np.int32)
    continents: list[Continent] = []

    for candidate in continent_candidates:
        landmass_id = len(continents)
        name = f"{_pick(CONTINENT_PREFIXES, rng)} {_pick(CONTINENT_SUFFIXES, rng)}"
        continents.append(
            Continent(
                id=landmass_id,
                name=name,
                bounds=candidate.bounds,
                area=candidate.area,
                elevation=candidate.elevation,
                climate=candidate.climate,
            )
        )
        _mark_owner(ownership, candidate.cells, landmass_id)

    islands: list[Island] = []
    for candidate in components:
        if id(candidate) in chosen:
            continue
        if not (config.island_min_area <= candidate.area <= config.island_max_area):
            continue
        if rng.random() >= island_density:
            continue
        landmass_id = len(continents) + len(islands)
        islands.append(_make_island(landmass_id, candidate, rng))
        _mark_owner(ownership, candidate.cells, landmass_id)

    if not continents:
        logger.info("No land component large enough for a continent")

    return LandmassResult(continents=continents, islands=islands, ownership=ownership)


def _mark_owner(
    ownership: NDArray[np.int32],
    cells: Iterable[tuple[int, int]],
    landmass_id: int,
) -> None:
    for y, x in cells:
        ownership[y, x] = landmass_id


def finalize_landmasses(
    landmasses: LandmassResult,
    biome_labels: NDArray[np.object_],
    land_mask: NDArray[np.bool_],
    river_paths: Sequence[Sequence[Position]],
    lake_centers: Sequence[Position],
) -> None:
    """Fill biome, river and lake membership on every landmass in place.

    Args:
        landmasses: Result of identify_landmasses().
        biome_labels: Per-cell biome label strings after classification.
        land_mask: Final land mask (after hydrology).
        river_paths: Path of each river, indexed by river id.
        lake_centers: Centre of each lake, indexed by lake id.
    """
    ownership = landmasses.ownership
    regions: list[Continent | Island] = [*landmasses.continents, *landmasses.islands]

    for region in regions:
        members = (ownership == region.id) & land_mask
        region.biomes = sorted(set(biome_labels[members].tolist()))

    for river_id, path in enumerate(river_paths):
        owners = {int(ownership[p.y, p.x]) for p in path} - {NO_OWNER}
        for owner in sorted(owners):
            regions[owner].rivers.append(river_id)

    for lake_id, center in enumerate(lake_centers):
        owner = int(ownership[center.y, center.x])
        if owner != NO_OWNER:
            regions[owner].lakes.append(lake_id)
