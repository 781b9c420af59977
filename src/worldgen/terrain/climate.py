"""Land/water tagging and climate fields (temperature, humidity)."""

import numpy as np
from numpy.typing import NDArray

from .config import ClimateConfig
from .noise import noise_field

# Seed offsets keep the climate noise layers independent
TEMPERATURE_SEED_OFFSET = 1
HUMIDITY_SEED_OFFSET = 2


def is_land(elevation: float, sea_level: float) -> bool:
    """A cell is land when its elevation is at or above sea level."""
    return elevation >= sea_level


def create_land_mask(
    heightmap: NDArray[np.float64],
    sea_level: float,
) -> NDArray[np.bool_]:
    """Create binary land mask from elevation.

    Args:
        heightmap: Elevation field.
        sea_level: Threshold for land vs water.

    Returns:
        Boolean mask where True = land.
    """
    return heightmap >= sea_level


def create_coast_mask(land_mask: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """Land cells with at least one 4-adjacent water cell.

    The grid edge does not count as water.
    """
    water = ~land_mask
    touches_water = np.zeros_like(land_mask)
    touches_water[1:, :] |= water[:-1, :]
    touches_water[:-1, :] |= water[1:, :]
    touches_water[:, 1:] |= water[:, :-1]
    touches_water[:, :-1] |= water[:, 1:]
    return land_mask & touches_water


def latitude_field(height: int, width: int) -> NDArray[np.float64]:
    """Signed latitude per cell, 0 at the equator row and +/-1 at the poles."""
    half = height / 2.0
    rows = (np.arange(height, dtype=np.float64) - half) / half if height > 1 else np.zeros(1)
    return np.repeat(np.clip(rows, -1.0, 1.0)[:, np.newaxis], width, axis=1)


def temperature_field(
    heightmap: NDArray[np.float64],
    seed: int,
    scale: float,
    config: ClimateConfig,
) -> NDArray[np.float64]:
    """Compute temperature from latitude, altitude and seasonal noise.

    Colder towards the poles and at altitude.

    Args:
        heightmap: Elevation field in [0, 1].
        seed: World seed.
        scale: Temperature noise frequency.
        config: Climate weights.

    Returns:
        Temperature field clamped to [0, 1].
    """
    height, width = heightmap.shape
    latitude = latitude_field(height, width)
    seasonal = noise_field(
        width, height, seed + TEMPERATURE_SEED_OFFSET, scale, config.noise_octaves
    )

    base = 1.0 - np.abs(latitude)
    altitude = 1.0 - heightmap * config.altitude_lapse

    temperature = (
        config.latitude_weight * base
        + config.altitude_weight * altitude
        + config.seasonal_weight * seasonal
    )
    return np.clip(temperature, 0.0, 1.0)


def humidity_field(
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    seed: int,
    scale: float,
    config: ClimateConfig,
) -> NDArray[np.float64]:
    """Compute humidity (precipitation) from noise, temperature and elevation.

    The temperature term peaks at ``humidity_peak_temperature``; the
    elevation term penalizes high ground.

    Args:
        heightmap: Elevation field in [0, 1].
        temperature: Temperature field in [0, 1].
        seed: World seed.
        scale: Rainfall noise frequency.
        config: Climate weights.

    Returns:
        Humidity field clamped to [0, 1].
    """
    height, width = heightmap.shape
    moisture = noise_field(
        width, height, seed + HUMIDITY_SEED_OFFSET, scale, config.noise_octaves
    )

    peak = config.humidity_peak_temperature
    proximity = 1.0 - np.abs(temperature - peak) / max(peak, 1.0 - peak)
    elevation_term = 1.0 - heightmap

    humidity = (
        config.humidity_noise_weight * moisture
        + config.humidity_temperature_weight * proximity
        + config.humidity_elevation_weight * elevation_term
    )
    return np.clip(humidity, 0.0, 1.0)


def climate_zone(temperature: float) -> str:
    """Coarse climate label for a temperature."""
    if temperature < 0.3:
        return "polar"
    if temperature < 0.6:
        return "temperate"
    return "tropical"


def terrain_relief(elevation: float) -> str:
    """Coarse relief label for an elevation."""
    if elevation > 0.8:
        return "mountain"
    if elevation > 0.6:
        return "hill"
    if elevation > 0.4:
        return "rolling"
    if elevation > 0.2:
        return "flat"
    return "lowland"
