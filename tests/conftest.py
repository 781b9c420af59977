"""Shared test fixtures for world generation tests."""

import pytest

from worldgen.generator import WorldData, WorldGenerator
from worldgen.state import Tile, TileStateStore
from worldgen.terrain.config import LandmassConfig, MountainConfig, WorldGenConfig
from worldgen.terrain_types import Biome, TileType


def small_world_config(seed: int = 7) -> WorldGenConfig:
    """33x33 world with scaled-down mountains and landmass thresholds."""
    return WorldGenConfig(
        seed=seed,
        width=33,
        height=33,
        mountain_ranges=1,
        river_count=4,
        lake_count=3,
        cave_systems=2,
        mountains=MountainConfig(
            length_min=8,
            length_max=16,
            segment_spacing=4,
            peak_radius_min=2,
            peak_radius_max=4,
        ),
        landmass=LandmassConfig(
            continent_min_area=40,
            island_min_area=3,
            island_max_area=39,
        ),
    )


def make_tile(x: int, y: int, **overrides) -> Tile:
    """Land tile with mid-range properties."""
    fields = {
        "x": x,
        "y": y,
        "elevation": 0.7,
        "temperature": 0.5,
        "humidity": 0.5,
        "fertility": 0.5,
        "soil_quality": 0.5,
        "vegetation_density": 0.5,
        "mineral_content": 0.3,
        "erosion": 0.2,
        "accessibility": 0.5,
        "biome": Biome.TEMPERATE_GRASSLAND,
        "type": TileType.GRASS,
    }
    fields.update(overrides)
    return Tile(**fields)


@pytest.fixture
def small_config() -> WorldGenConfig:
    """Small deterministic world configuration."""
    return small_world_config()


@pytest.fixture(scope="session")
def small_world() -> WorldData:
    """Generated small world, shared read-only across tests."""
    return WorldGenerator(small_world_config()).generate()


@pytest.fixture
def tile_store() -> TileStateStore:
    """3x3 store: land everywhere except an ocean tile at (2, 2)."""
    tiles = [[make_tile(x, y) for x in range(3)] for y in range(3)]
    tiles[2][2] = make_tile(
        2,
        2,
        elevation=0.3,
        vegetation_density=0.0,
        biome=Biome.OCEAN,
        type=TileType.WATER,
    )
    return TileStateStore(tiles, sea_level=0.5)
