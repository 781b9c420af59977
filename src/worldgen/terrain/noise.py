"""Deterministic hash noise for climate fields and the elevation fallback.

Values come from a sine-based scramble of ``(x, y, seed)``; there is no
hidden RNG state, so identical inputs always give identical outputs.
"""

import math

import numpy as np
from numpy.typing import NDArray

# Scramble constants for the sine hash
_HASH_X = 12.9898
_HASH_Y = 78.233
_HASH_GAIN = 43758.5453


def noise(x: float, y: float, seed: int) -> float:
    """Sample scalar hash noise.

    Args:
        x: Sample x coordinate.
        y: Sample y coordinate.
        seed: Noise seed.

    Returns:
        Value in [0, 1).
    """
    n = math.sin(x * _HASH_X + y * _HASH_Y + seed) * _HASH_GAIN
    value = n - math.floor(n)
    # Rounding can land exactly on 1.0 for tiny negative n
    return value if value < 1.0 else 0.0


def multi_octave_noise(x: float, y: float, seed: int, octaves: int) -> float:
    """Sum octaves of hash noise at halving amplitude and doubling frequency.

    Args:
        x: Sample x coordinate.
        y: Sample y coordinate.
        seed: Base seed; octave ``i`` uses ``seed + i``.
        octaves: Number of octaves (at least 1).

    Returns:
        Amplitude-normalized value in [0, 1).
    """
    octaves = max(1, octaves)
    value = 0.0
    amplitude = 1.0
    frequency = 1.0
    total_amplitude = 0.0

    for i in range(octaves):
        value += noise(x * frequency, y * frequency, seed + i) * amplitude
        total_amplitude += amplitude
        amplitude *= 0.5
        frequency *= 2.0

    return value / total_amplitude


def _noise_array(
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
    seed: int,
) -> NDArray[np.float64]:
    """Vectorized form of noise()."""
    n = np.sin(xs * _HASH_X + ys * _HASH_Y + seed) * _HASH_GAIN
    value = n - np.floor(n)
    return np.where(value < 1.0, value, 0.0)


def noise_field(
    width: int,
    height: int,
    seed: int,
    scale: float,
    octaves: int = 3,
) -> NDArray[np.float64]:
    """Generate a grid of multi-octave noise.

    Cell ``[y, x]`` samples ``multi_octave_noise(x * scale, y * scale, ...)``.

    Args:
        width: Output width in tiles.
        height: Output height in tiles.
        seed: Base seed.
        scale: Frequency multiplier applied to tile coordinates.
        octaves: Number of octaves.

    Returns:
        2D array of shape (height, width) with values in [0, 1).
    """
    octaves = max(1, octaves)
    ys, xs = np.meshgrid(
        np.arange(height, dtype=np.float64) * scale,
        np.arange(width, dtype=np.float64) * scale,
        indexing="ij",
    )

    result = np.zeros((height, width), dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0
    total_amplitude = 0.0

    for i in range(octaves):
        result += _noise_array(xs * frequency, ys * frequency, seed + i) * amplitude
        total_amplitude += amplitude
        amplitude *= 0.5
        frequency *= 2.0

    result /= total_amplitude
    return result
