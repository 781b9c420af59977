"""Heightmap synthesis: diamond-square, normalization, coastal smoothing, resampling."""

import logging
import math

import numpy as np
from numpy.typing import NDArray

from .config import HeightmapConfig, MountainConfig, WorldGenConfig
from .noise import noise_field

logger = logging.getLogger(__name__)


def grid_size_for(width: int, height: int) -> int:
    """Smallest power-of-two-plus-one grid covering the world.

    A dimension that is already ``2^n + 1`` is used as is.
    """
    size = max(width, height, 2)
    return 2 ** math.ceil(math.log2(size - 1)) + 1


def diamond_square(
    grid_size: int,
    rng: np.random.Generator,
    config: HeightmapConfig,
) -> NDArray[np.float64]:
    """Run the diamond-square algorithm on a square grid.

    Args:
        grid_size: Grid dimension, a power of two plus one.
        rng: Random number generator.
        config: Heightmap parameters.

    Returns:
        Raw (unnormalized) height grid of shape (grid_size, grid_size).
    """
    heightmap = np.zeros((grid_size, grid_size), dtype=np.float64)
    last = grid_size - 1

    # Corners
    for y, x in ((0, 0), (0, last), (last, 0), (last, last)):
        heightmap[y, x] = config.corner_min + rng.random() * (
            config.corner_max - config.corner_min
        )

    step = last
    roughness = config.initial_roughness

    while step > 1:
        half = step // 2

        # Diamond step: block centres take the mean of their four corners
        corners = (
            heightmap[0:last:step, 0:last:step]
            + heightmap[0:last:step, step::step]
            + heightmap[step::step, 0:last:step]
            + heightmap[step::step, step::step]
        ) / 4.0
        heightmap[half::step, half::step] = corners + (
            rng.random(corners.shape) - 0.5
        ) * roughness

        # Square step: edge midpoints take the mean of their 2-4 axis neighbours
        lattice = np.arange(0, grid_size, half)
        yy, xx = np.meshgrid(lattice, lattice, indexing="ij")
        edge = ((yy // half + xx // half) % 2) == 1
        ys, xs = yy[edge], xx[edge]

        total = np.zeros(len(ys), dtype=np.float64)
        count = np.zeros(len(ys), dtype=np.int32)
        for dy, dx in ((-half, 0), (half, 0), (0, -half), (0, half)):
            ny, nx = ys + dy, xs + dx
            valid = (ny >= 0) & (ny < grid_size) & (nx >= 0) & (nx < grid_size)
            total[valid] += heightmap[ny[valid], nx[valid]]
            count += valid

        heightmap[ys, xs] = total / count + (rng.random(len(ys)) - 0.5) * roughness

        step = half
        roughness *= 0.5

    return heightmap


def normalize(heightmap: NDArray[np.float64]) -> NDArray[np.float64]:
    """Linearly rescale so the minimum maps to 0 and the maximum to 1.

    A flat input yields a uniform 0.5 field.
    """
    low = float(np.min(heightmap))
    high = float(np.max(heightmap))
    if high - low <= 0.0:
        return np.full_like(heightmap, 0.5)
    return (heightmap - low) / (high - low)


def apply_sea_level(
    heightmap: NDArray[np.float64],
    sea_level: float,
    falloff: float = 0.3,
) -> NDArray[np.float64]:
    """Deepen sub-sea cells in proportion to their depth below sea level.

    Gives a gentle coastal shelf instead of a hard cliff.

    Args:
        heightmap: Normalized heights.
        sea_level: Land/water threshold.
        falloff: Maximum extra depth at the bottom of the range.

    Returns:
        Smoothed heightmap, floored at 0.
    """
    if sea_level <= 0.0:
        return heightmap.copy()

    below = heightmap < sea_level
    depth = (sea_level - heightmap) / sea_level
    result = np.where(below, heightmap - depth * falloff, heightmap)
    return np.maximum(result, 0.0)


def resample(
    heightmap: NDArray[np.float64],
    width: int,
    height: int,
) -> NDArray[np.float64]:
    """Nearest-neighbour resample of a square grid to width x height.

    Output cell ``i`` of ``n`` reads source ``floor(i * (size - 1) / (n - 1))``
    so both end rows/columns map onto the grid edges.
    """
    size = heightmap.shape[0]

    def _indices(n: int) -> NDArray[np.intp]:
        if n <= 1:
            return np.zeros(1, dtype=np.intp)
        return (np.arange(n) * (size - 1)) // (n - 1)

    return heightmap[np.ix_(_indices(height), _indices(width))].copy()


def noise_heightmap(
    width: int,
    height: int,
    seed: int,
    scale: float,
    octaves: int = 4,
) -> NDArray[np.float64]:
    """Fallback elevation from multi-octave hash noise, normalized to [0, 1]."""
    return normalize(noise_field(width, height, seed, scale, octaves))


def raise_mountain_ranges(
    heightmap: NDArray[np.float64],
    count: int,
    rng: np.random.Generator,
    config: MountainConfig,
) -> int:
    """Raise chains of conical peaks into the heightmap in place.

    Each range starts at a random point with a random heading and places a
    peak every ``segment_spacing`` tiles. A peak lifts each cell within its
    radius to at least ``peak_base + (1 - d / r) * peak_height``.

    Returns:
        Number of peaks placed.
    """
    height, width = heightmap.shape
    peaks = 0

    for _ in range(count):
        start_x = rng.random() * width
        start_y = rng.random() * height
        length = rng.uniform(config.length_min, config.length_max)
        direction = rng.random() * 2.0 * math.pi
        segments = int(length // config.segment_spacing)

        for i in range(segments):
            px = start_x + math.cos(direction) * i * config.segment_spacing
            py = start_y + math.sin(direction) * i * config.segment_spacing
            if not (0 <= px < width and 0 <= py < height):
                continue
            radius = rng.uniform(config.peak_radius_min, config.peak_radius_max)
            _raise_peak(heightmap, int(px), int(py), radius, config)
            peaks += 1

    return peaks


def _raise_peak(
    heightmap: NDArray[np.float64],
    cx: int,
    cy: int,
    radius: float,
    config: MountainConfig,
) -> None:
    """Lift a disk of cells around (cx, cy) into a cone."""
    if radius <= 0:
        return
    height, width = heightmap.shape
    r = int(math.ceil(radius))
    y0, y1 = max(0, cy - r), min(height, cy + r + 1)
    x0, x1 = max(0, cx - r), min(width, cx + r + 1)

    ys, xs = np.mgrid[y0:y1, x0:x1]
    distance = np.hypot(xs - cx, ys - cy)
    inside = distance <= radius
    cone = config.peak_base + (1.0 - distance / radius) * config.peak_height

    window = heightmap[y0:y1, x0:x1]
    window[inside] = np.maximum(window[inside], np.minimum(cone[inside], 1.0))


def generate_heightmap(
    config: WorldGenConfig,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Generate the world heightmap at the requested size.

    Args:
        config: World generation configuration.
        rng: Random number generator.

    Returns:
        Heightmap of shape (height, width) with values in [0, 1].
    """
    width, height = config.width, config.height

    if config.heightmap.algorithm == "noise":
        logger.info("Using noise fallback for elevation")
        heightmap = noise_heightmap(
            width,
            height,
            config.seed,
            config.elevation_scale,
            config.heightmap.noise_octaves,
        )
        return apply_sea_level(
            heightmap, config.sea_level, config.heightmap.coastal_falloff
        )

    grid_size = grid_size_for(width, height)
    logger.debug(f"Diamond-square grid size {grid_size} for {width}x{height}")

    raw = diamond_square(grid_size, rng, config.heightmap)
    heightmap = normalize(raw)
    heightmap = apply_sea_level(
        heightmap, config.sea_level, config.heightmap.coastal_falloff
    )
    return resample(heightmap, width, height)
