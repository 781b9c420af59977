"""Hydrology: river sourcing and tracing, carving, tributaries, lakes, erosion.

All carving operates on the shared heightmap in place. Tracing always reads
uncarved heights: a river is carved only after its whole path is known.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from ..terrain_types import RiverKind, WaterType
from ..types import NEIGHBOR_OFFSETS_8, Bounds, Position
from .config import HydrologyConfig

logger = logging.getLogger(__name__)

RIVER_PREFIXES = ("Black", "White", "Red", "Blue", "Green", "Swift", "Deep", "Clear")
RIVER_SUFFIXES = ("River", "Stream", "Creek", "Brook", "Water")
LAKE_PREFIXES = ("Crystal", "Mirror", "Deep", "Clear", "Misty", "Silver")
LAKE_SUFFIXES = ("Lake", "Pond", "Pool", "Waters")

# 8-neighbour ring, centre excluded
_RING = np.ones((3, 3), dtype=bool)
_RING[1, 1] = False


@dataclass
class River:
    """A traced and carved watercourse."""

    id: int
    name: str
    kind: RiverKind
    points: list[Position]
    width: float
    depth: float
    flow: float
    flow_rate: float
    seasonal_variation: float
    length: float
    basin: Bounds
    navigable: bool
    # Elevations along the path before carving
    profile: list[float] = field(default_factory=list)
    tributaries: list[int] = field(default_factory=list)
    parent: int | None = None
    crossings: list[Position] = field(default_factory=list)

    @property
    def source(self) -> Position:
        return self.points[0]

    @property
    def mouth(self) -> Position:
        return self.points[-1]


@dataclass
class Lake:
    """A filled basin."""

    id: int
    name: str
    center: Position
    radius: int
    basin_depth: float
    depth: float
    volume: float
    depth_profile: list[float]
    water_type: WaterType
    seasonal_variation: float
    water_quality: float
    fish_population: float
    recreational_value: float
    inflow: list[int] = field(default_factory=list)
    outflow: int | None = None


@dataclass
class LakeBasin:
    """A qualifying local minimum before it becomes a lake."""

    center: Position
    depth: float
    radius: int


@dataclass
class HydrologyResult:
    """Rivers, lakes and the grids hydrology produced."""

    rivers: list[River]
    lakes: list[Lake]
    river_mask: NDArray[np.bool_]
    lake_mask: NDArray[np.bool_]
    erosion: NDArray[np.float64]


def _pick(options: Sequence[str], rng: np.random.Generator) -> str:
    return options[int(rng.integers(len(options)))]


def _river_name(rng: np.random.Generator) -> str:
    return f"{_pick(RIVER_PREFIXES, rng)} {_pick(RIVER_SUFFIXES, rng)}"


def _disk_window(
    shape: tuple[int, int],
    cx: int,
    cy: int,
    radius: float,
) -> tuple[slice, slice, NDArray[np.float64]]:
    """Clipped window around (cx, cy) and the distance of each window cell."""
    height, width = shape
    r = int(math.ceil(radius))
    y0, y1 = max(0, cy - r), min(height, cy + r + 1)
    x0, x1 = max(0, cx - r), min(width, cx + r + 1)
    ys, xs = np.mgrid[y0:y1, x0:x1]
    return slice(y0, y1), slice(x0, x1), np.hypot(xs - cx, ys - cy)


def find_river_sources(
    heightmap: NDArray[np.float64],
    sea_level: float,
    count: int,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> list[Position]:
    """Pick river sources among high strict local maxima.

    Candidates are land cells above ``source_min_elevation`` that are higher
    than all 8 neighbours. Each is kept with ``source_keep_probability``;
    survivors are ordered by elevation and capped at ``count``.
    """
    neighbor_max = ndimage.maximum_filter(
        heightmap, footprint=_RING, mode="constant", cval=-np.inf
    )
    candidates = (
        (heightmap >= sea_level)
        & (heightmap > config.source_min_elevation)
        & (heightmap > neighbor_max)
    )

    kept: list[Position] = []
    for y, x in zip(*np.nonzero(candidates)):
        if rng.random() < config.source_keep_probability:
            kept.append(Position(x=int(x), y=int(y)))

    kept.sort(key=lambda p: heightmap[p.y, p.x], reverse=True)
    return kept[:count]


def trace_downhill(
    heightmap: NDArray[np.float64],
    start: Position,
    sea_level: float,
    max_steps: int,
) -> list[Position]:
    """Follow steepest descent from ``start``.

    Steps to the lowest unvisited 8-neighbour that is strictly lower than the
    current cell. Stops after entering a cell at or below sea level (that
    cell is included), on reaching the grid border, when no lower neighbour
    exists, or after ``max_steps`` steps.

    Returns:
        Path from source to mouth; every step strictly descends.
    """
    height, width = heightmap.shape
    path = [start]
    visited = {(start.x, start.y)}
    x, y = start.x, start.y

    for _ in range(max_steps):
        current = heightmap[y, x]
        best: tuple[int, int] | None = None
        best_elevation = current

        for dx, dy in NEIGHBOR_OFFSETS_8:
            nx, ny = x + dx, y + dy
            if not (0 <= nx < width and 0 <= ny < height) or (nx, ny) in visited:
                continue
            if heightmap[ny, nx] < best_elevation:
                best_elevation = heightmap[ny, nx]
                best = (nx, ny)

        if best is None:
            break

        x, y = best
        visited.add(best)
        path.append(Position(x=x, y=y))

        if best_elevation <= sea_level:
            break
        if x <= 0 or x >= width - 1 or y <= 0 or y >= height - 1:
            break

    return path


def trace_toward(
    heightmap: NDArray[np.float64],
    start: Position,
    goal: Position,
    sea_level: float,
    max_steps: int,
    snap_distance: float,
) -> list[Position]:
    """Goal-biased trace from ``start`` to ``goal``.

    Each step moves to the unvisited neighbour minimizing
    ``elevation * 2 + distance_to_goal * 0.5``. Within ``snap_distance`` of
    the goal the path jumps onto it. The path may climb.
    """
    height, width = heightmap.shape
    path = [start]
    visited: set[tuple[int, int]] = set()
    x, y = start.x, start.y

    for _ in range(max_steps):
        visited.add((x, y))

        if math.hypot(x - goal.x, y - goal.y) < snap_distance:
            if (x, y) != (goal.x, goal.y):
                path.append(goal)
            break

        best: tuple[int, int] | None = None
        best_score = math.inf
        for dx, dy in NEIGHBOR_OFFSETS_8:
            nx, ny = x + dx, y + dy
            if not (0 <= nx < width and 0 <= ny < height) or (nx, ny) in visited:
                continue
            score = heightmap[ny, nx] * 2.0 + math.hypot(nx - goal.x, ny - goal.y) * 0.5
            if score < best_score:
                best_score = score
                best = (nx, ny)

        if best is None:
            break

        x, y = best
        path.append(Position(x=x, y=y))
        if heightmap[y, x] <= sea_level:
            break

    return path


def river_length(points: Sequence[Position]) -> float:
    """Sum of Euclidean segment lengths."""
    return sum(a.distance_to(b) for a, b in zip(points, points[1:]))


def river_basin(
    points: Sequence[Position],
    width: int,
    height: int,
    margin: int,
) -> Bounds:
    """Path bounding box grown by ``margin`` and clipped to the grid."""
    x0 = max(0, min(p.x for p in points) - margin)
    y0 = max(0, min(p.y for p in points) - margin)
    x1 = min(width - 1, max(p.x for p in points) + margin)
    y1 = min(height - 1, max(p.y for p in points) + margin)
    return Bounds(x=x0, y=y0, width=x1 - x0 + 1, height=y1 - y0 + 1)


def carve_river(
    heightmap: NDArray[np.float64],
    river_mask: NDArray[np.bool_],
    points: Sequence[Position],
    width: float,
    depth: float,
    sea_level: float,
    config: HydrologyConfig,
) -> None:
    """Cut a channel along ``points`` and soften the surrounding valley.

    Channel cells drop by ``depth * 0.1`` but not below
    ``sea - channel_floor_offset``, and always end below sea level. Valley
    cells within ``ceil(width * 2)`` are scaled by ``1 - (d / r) * 0.3`` and
    floored at ``sea - valley_floor_offset``. Neither step raises a cell.
    """
    channel_floor = max(0.0, sea_level - config.channel_floor_offset)
    channel_ceiling = sea_level - config.channel_surface_margin
    valley_floor = max(0.0, sea_level - config.valley_floor_offset)
    valley_radius = math.ceil(width * 2)

    for point in points:
        h = heightmap[point.y, point.x]
        carved = min(max(channel_floor, h - depth * 0.1), channel_ceiling)
        heightmap[point.y, point.x] = max(0.0, min(h, carved))
        river_mask[point.y, point.x] = True

        if valley_radius <= 0:
            continue
        rows, cols, distance = _disk_window(heightmap.shape, point.x, point.y, valley_radius)
        window = heightmap[rows, cols]
        inside = distance <= valley_radius
        factor = 1.0 - (distance / valley_radius) * 0.3
        softened = np.minimum(window, np.maximum(valley_floor, window * factor))
        window[inside] = softened[inside]


def _build_river(
    river_id: int,
    name: str,
    kind: RiverKind,
    path: list[Position],
    heightmap: NDArray[np.float64],
    attributes: dict[str, float],
    config: HydrologyConfig,
) -> River:
    height, width = heightmap.shape
    length = river_length(path)
    return River(
        id=river_id,
        name=name,
        kind=kind,
        points=path,
        length=length,
        basin=river_basin(path, width, height, config.basin_margin),
        navigable=(
            kind is RiverKind.MAIN
            and length > config.navigable_min_length
            and attributes["flow_rate"] > config.navigable_min_flow_rate
        ),
        profile=[float(heightmap[p.y, p.x]) for p in path],
        **attributes,
    )


def generate_rivers(
    heightmap: NDArray[np.float64],
    river_mask: NDArray[np.bool_],
    sea_level: float,
    river_count: int,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> list[River]:
    """Trace and carve main rivers from the selected sources."""
    sources = find_river_sources(heightmap, sea_level, river_count, rng, config)
    if not sources:
        logger.info("No river sources found")
        return []

    rivers: list[River] = []
    for source in sources:
        path = trace_downhill(heightmap, source, sea_level, config.max_trace_steps)
        if len(path) < config.min_river_points:
            continue

        attributes = {
            "width": 1.0 + rng.random() * 2.0,
            "depth": 2.0 + rng.random() * 4.0,
            "flow": 0.5 + rng.random() * 0.5,
            "flow_rate": 10.0 + rng.random() * 20.0,
            "seasonal_variation": 0.1 + rng.random() * 0.3,
        }
        river = _build_river(
            len(rivers), _river_name(rng), RiverKind.MAIN, path, heightmap, attributes, config
        )
        carve_river(
            heightmap, river_mask, path, river.width, river.depth, sea_level, config
        )
        rivers.append(river)

    logger.debug(f"Traced {len(rivers)} of {len(sources)} river sources")
    return rivers


def find_tributary_source(
    heightmap: NDArray[np.float64],
    near: Position,
    sea_level: float,
    config: HydrologyConfig,
) -> Position | None:
    """Highest land cell above the tributary threshold near ``near``.

    Ties in elevation go to the closer cell.
    """
    radius = config.tributary_search_radius
    rows, cols, distance = _disk_window(heightmap.shape, near.x, near.y, radius)
    window = heightmap[rows, cols]
    eligible = (
        (distance <= radius)
        & (window >= sea_level)
        & (window > config.tributary_min_elevation)
    )
    if not eligible.any():
        return None

    ys, xs = np.nonzero(eligible)
    order = np.lexsort((distance[ys, xs], -window[ys, xs]))
    best = order[0]
    return Position(x=int(xs[best]) + cols.start, y=int(ys[best]) + rows.start)


def generate_tributaries(
    rivers: list[River],
    heightmap: NDArray[np.float64],
    river_mask: NDArray[np.bool_],
    sea_level: float,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> None:
    """Add 1-3 goal-traced tributaries to each main river, appending them."""
    mains = [r for r in rivers if r.kind is RiverKind.MAIN]

    for parent in mains:
        wanted = int(rng.integers(config.tributaries_min, config.tributaries_max + 1))
        n = len(parent.points)
        for _ in range(wanted):
            join_index = math.floor(n * 0.3) + math.floor(rng.random() * n * 0.4)
            if join_index >= n:
                continue
            join = parent.points[join_index]

            source = find_tributary_source(heightmap, join, sea_level, config)
            if source is None:
                continue

            path = trace_toward(
                heightmap,
                source,
                join,
                sea_level,
                config.tributary_max_steps,
                config.tributary_snap_distance,
            )
            if len(path) < config.min_tributary_points:
                continue

            attributes = {
                "width": parent.width * 0.6,
                "depth": parent.depth * 0.7,
                "flow": parent.flow * 0.5,
                "flow_rate": parent.flow_rate * 0.4,
                "seasonal_variation": min(1.0, parent.seasonal_variation * 1.2),
            }
            tributary = _build_river(
                len(rivers),
                _river_name(rng),
                RiverKind.TRIBUTARY,
                path,
                heightmap,
                attributes,
                config,
            )
            tributary.parent = parent.id
            carve_river(
                heightmap, river_mask, path, tributary.width, tributary.depth, sea_level, config
            )
            parent.tributaries.append(tributary.id)
            rivers.append(tributary)


def basin_radius(
    heightmap: NDArray[np.float64],
    center: Position,
    max_radius: int,
) -> int:
    """Largest ring radius whose disk lies strictly above the centre.

    The disk must stay inside the grid; the centre itself is excluded.
    """
    height, width = heightmap.shape
    h = heightmap[center.y, center.x]
    radius = 0

    for r in range(1, max_radius + 1):
        if center.x - r < 0 or center.y - r < 0 or center.x + r >= width or center.y + r >= height:
            break
        rows, cols, distance = _disk_window(heightmap.shape, center.x, center.y, r)
        ring = (distance > 0) & (distance <= r)
        if not np.all(heightmap[rows, cols][ring] > h):
            break
        radius = r

    return radius


def find_lake_basins(
    heightmap: NDArray[np.float64],
    sea_level: float,
    count: int,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> list[LakeBasin]:
    """Find meaningful depressions and keep a random subset.

    A candidate is an interior cell with ``sea <= h < lake_max_elevation``
    that is lower than all 8 neighbours by more than ``lake_min_depth``.
    """
    height, width = heightmap.shape
    neighbor_min = ndimage.minimum_filter(
        heightmap, footprint=_RING, mode="constant", cval=np.inf
    )
    interior = np.zeros_like(heightmap, dtype=bool)
    interior[2 : height - 2, 2 : width - 2] = True

    candidates = (
        interior
        & (heightmap >= sea_level)
        & (heightmap < config.lake_max_elevation)
        & (neighbor_min - heightmap > config.lake_min_depth)
    )

    basins: list[LakeBasin] = []
    for y, x in zip(*np.nonzero(candidates)):
        center = Position(x=int(x), y=int(y))
        radius = basin_radius(heightmap, center, config.lake_max_radius)
        if radius < config.lake_min_radius:
            continue
        if rng.random() >= config.lake_keep_probability:
            continue
        depth = float(neighbor_min[y, x] - heightmap[y, x])
        basins.append(LakeBasin(center=center, depth=depth, radius=radius))

    basins.sort(key=lambda b: b.depth, reverse=True)
    return basins[:count]


def create_lake(
    lake_id: int,
    basin: LakeBasin,
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> Lake:
    """Turn a basin into a lake with volume, depth profile and water type."""
    depth = basin.depth * config.lake_depth_scale
    r = basin.radius
    cx, cy = basin.center.x, basin.center.y

    rows, cols, distance = _disk_window(heightmap.shape, cx, cy, r)
    inside = distance <= r
    volume = float(np.sum(depth * (1.0 - distance[inside] / r)))
    depth_profile = [depth * (1.0 - d / r) for d in range(r + 1)]

    if temperature[cy, cx] > 0.8 and humidity[cy, cx] < 0.3:
        water_type = WaterType.SALT
    elif rng.random() < config.magical_lake_probability:
        water_type = WaterType.MAGICAL
    else:
        water_type = WaterType.FRESH

    return Lake(
        id=lake_id,
        name=f"{_pick(LAKE_PREFIXES, rng)} {_pick(LAKE_SUFFIXES, rng)}",
        center=basin.center,
        radius=r,
        basin_depth=basin.depth,
        depth=depth,
        volume=volume,
        depth_profile=depth_profile,
        water_type=water_type,
        seasonal_variation=0.1 + rng.random() * 0.2,
        water_quality=0.7 + rng.random() * 0.3,
        fish_population=float(rng.random()),
        recreational_value=float(rng.random()),
    )


def lowest_perimeter_point(
    heightmap: NDArray[np.float64],
    lake: Lake,
    angle_step: int,
) -> tuple[Position, float] | None:
    """Lowest in-bounds sample on the lake's rim, sampled every ``angle_step`` degrees."""
    height, width = heightmap.shape
    best: tuple[Position, float] | None = None

    for angle in range(0, 360, angle_step):
        rad = math.radians(angle)
        x = math.floor(lake.center.x + math.cos(rad) * lake.radius + 0.5)
        y = math.floor(lake.center.y + math.sin(rad) * lake.radius + 0.5)
        if not (0 <= x < width and 0 <= y < height):
            continue
        elevation = float(heightmap[y, x])
        if best is None or elevation < best[1]:
            best = (Position(x=x, y=y), elevation)

    return best


def create_outflow(
    river_id: int,
    lake: Lake,
    heightmap: NDArray[np.float64],
    river_mask: NDArray[np.bool_],
    sea_level: float,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> River | None:
    """Spill a river from the lake's lowest rim point when it lies below sea level."""
    rim = lowest_perimeter_point(heightmap, lake, config.outflow_angle_step)
    if rim is None:
        return None
    start, elevation = rim
    if elevation >= sea_level:
        return None

    path = trace_downhill(heightmap, start, sea_level, config.max_trace_steps)
    if len(path) < config.outflow_min_points:
        return None

    attributes = {
        "width": 1.0 + rng.random() * 2.0,
        "depth": 2.0 + rng.random() * 3.0,
        "flow": 0.3 + rng.random() * 0.4,
        "flow_rate": 5.0 + rng.random() * 10.0,
        "seasonal_variation": lake.seasonal_variation,
    }
    river = _build_river(
        river_id, f"{lake.name} Outflow", RiverKind.OUTFLOW, path, heightmap, attributes, config
    )
    carve_river(heightmap, river_mask, path, river.width, river.depth, sea_level, config)
    return river


def connect_lake(
    lake: Lake,
    rivers: list[River],
    heightmap: NDArray[np.float64],
    river_mask: NDArray[np.bool_],
    sea_level: float,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> None:
    """Record inflowing rivers and possibly add an outflow river."""
    reach = lake.radius + config.inflow_distance
    lake.inflow = [r.id for r in rivers if r.mouth.distance_to(lake.center) <= reach]
    if not lake.inflow:
        return
    if rng.random() >= config.outflow_probability:
        return

    outflow = create_outflow(
        len(rivers), lake, heightmap, river_mask, sea_level, rng, config
    )
    if outflow is not None:
        lake.outflow = outflow.id
        rivers.append(outflow)


def fill_lake(
    heightmap: NDArray[np.float64],
    lake_mask: NDArray[np.bool_],
    lake: Lake,
    sea_level: float,
    config: HydrologyConfig,
) -> None:
    """Sink every cell of the lake disk below sea level and mark it as lake."""
    rows, cols, distance = _disk_window(heightmap.shape, lake.center.x, lake.center.y, lake.radius)
    inside = distance <= lake.radius
    window = heightmap[rows, cols]
    ceiling = max(0.0, sea_level - config.lake_fill_margin)
    window[inside] = np.minimum(window[inside], ceiling)
    lake_mask[rows, cols] |= inside


def apply_river_erosion(
    heightmap: NDArray[np.float64],
    erosion: NDArray[np.float64],
    rivers: Sequence[River],
    sea_level: float,
    config: HydrologyConfig,
) -> None:
    """Widen valleys around every river point.

    Each cell within ``erosion_radius`` gains ``(1 - d / r) * strength``
    erosion and loses ``erosion_lowering`` times that in elevation, floored
    at ``sea - valley_floor_offset``. Cells already below the floor keep
    their height.
    """
    r = config.erosion_radius
    if r <= 0:
        return
    floor = max(0.0, sea_level - config.valley_floor_offset)

    for river in rivers:
        for point in river.points:
            rows, cols, distance = _disk_window(heightmap.shape, point.x, point.y, r)
            inside = distance <= r
            added = np.where(inside, (1.0 - distance / r) * config.erosion_strength, 0.0)
            erosion[rows, cols] += added

            window = heightmap[rows, cols]
            lowered = np.maximum(floor, window - added * config.erosion_lowering)
            window[:] = np.where(window > floor, lowered, window)


def find_crossings(
    river: River,
    habitable: NDArray[np.bool_],
    max_distance: float,
) -> list[Position]:
    """Habitable tiles within ``max_distance`` of the river path."""
    found: set[tuple[int, int]] = set()
    for point in river.points:
        rows, cols, distance = _disk_window(habitable.shape, point.x, point.y, max_distance)
        near = (distance <= max_distance) & habitable[rows, cols]
        for y, x in zip(*np.nonzero(near)):
            found.add((int(x) + cols.start, int(y) + rows.start))
    return [Position(x=x, y=y) for x, y in sorted(found, key=lambda c: (c[1], c[0]))]


def generate_hydrology(
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
    sea_level: float,
    river_count: int,
    lake_count: int,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> HydrologyResult:
    """Run the full hydrology stage, mutating ``heightmap`` in place.

    Order: main rivers, tributaries, lake basins, lake connections, lake
    fill, erosion.

    Args:
        heightmap: Elevation field (modified in place).
        temperature: Temperature field, for lake water type.
        humidity: Humidity field, for lake water type.
        sea_level: Land/water threshold.
        river_count: Maximum main rivers.
        lake_count: Maximum lakes.
        rng: Random number generator.
        config: Hydrology parameters.

    Returns:
        HydrologyResult with rivers, lakes, masks and the erosion grid.
    """
    river_mask = np.zeros(heightmap.shape, dtype=bool)
    lake_mask = np.zeros(heightmap.shape, dtype=bool)
    erosion = np.zeros(heightmap.shape, dtype=np.float64)

    rivers = generate_rivers(heightmap, river_mask, sea_level, river_count, rng, config)
    generate_tributaries(rivers, heightmap, river_mask, sea_level, rng, config)

    basins = find_lake_basins(heightmap, sea_level, lake_count, rng, config)
    if not basins:
        logger.info("No lake basins found")

    lakes = [
        create_lake(i, basin, heightmap, temperature, humidity, rng, config)
        for i, basin in enumerate(basins)
    ]
    for lake in lakes:
        connect_lake(lake, rivers, heightmap, river_mask, sea_level, rng, config)
    for lake in lakes:
        fill_lake(heightmap, lake_mask, lake, sea_level, config)

    apply_river_erosion(heightmap, erosion, rivers, sea_level, config)

    counts = {kind: sum(r.kind is kind for r in rivers) for kind in RiverKind}
    logger.info(
        f"Hydrology: {counts[RiverKind.MAIN]} rivers, "
        f"{counts[RiverKind.TRIBUTARY]} tributaries, "
        f"{counts[RiverKind.OUTFLOW]} outflows, {len(lakes)} lakes"
    )

    return HydrologyResult(
        rivers=rivers,
        lakes=lakes,
        river_mask=river_mask,
        lake_mask=lake_mask,
        erosion=erosion,
    )
