"""Tests for landmass extraction."""

import numpy as np
import pytest

from worldgen.terrain.config import LandmassConfig
from worldgen.terrain.landmass import (
    NO_OWNER,
    classify_island,
    finalize_landmasses,
    find_land_components,
    identify_landmasses,
)
from worldgen.terrain_types import IslandType
from worldgen.types import Position


def _fields(land: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    heightmap = np.where(land, 0.6, 0.2)
    temperature = np.full(land.shape, 0.5)
    humidity = np.full(land.shape, 0.4)
    return heightmap, temperature, humidity


@pytest.fixture
def three_blocks() -> np.ndarray:
    """40x40 mask with a 12x12, a 4x4 and a 3x3 land block."""
    land = np.zeros((40, 40), dtype=bool)
    land[2:14, 2:14] = True
    land[20:24, 20:24] = True
    land[30:33, 5:8] = True
    return land


class TestFloodFill:
    """Tests for connected component extraction."""

    def test_component_areas(self, three_blocks: np.ndarray) -> None:
        """Each block is one component with its full area."""
        components = find_land_components(three_blocks, *_fields(three_blocks))
        assert sorted(c.area for c in components) == [9, 16, 144]

    def test_diagonal_not_connected(self) -> None:
        """Diagonal neighbours belong to different components."""
        land = np.array([[True, False], [False, True]])
        components = find_land_components(land, *_fields(land))
        assert len(components) == 2

    def test_bounds_and_stats(self, three_blocks: np.ndarray) -> None:
        """Bounding box and aggregates cover the component."""
        components = find_land_components(three_blocks, *_fields(three_blocks))
        block = next(c for c in components if c.area == 16)
        assert block.bounds.x == 20
        assert block.bounds.width == 4
        assert block.elevation.average == pytest.approx(0.6)
        assert block.climate.rainfall == pytest.approx(0.4)

    def test_large_component(self) -> None:
        """A full-grid component is collected without recursion limits."""
        land = np.ones((200, 200), dtype=bool)
        components = find_land_components(land, *_fields(land))
        assert len(components) == 1
        assert components[0].area == 40_000


class TestIdentifyLandmasses:
    """Tests for continent/island partitioning."""

    def test_partition(self, three_blocks: np.ndarray) -> None:
        """Largest block is a continent, band-sized blocks become islands."""
        result = identify_landmasses(
            three_blocks,
            *_fields(three_blocks),
            continent_count=1,
            island_density=1.0,
            rng=np.random.default_rng(0),
            config=LandmassConfig(),
        )
        assert [c.area for c in result.continents] == [144]
        assert [i.area for i in result.islands] == [16]
        assert result.continents[0].id == 0
        assert result.islands[0].id == 1

    def test_ownership_grid(self, three_blocks: np.ndarray) -> None:
        """Ownership marks members and leaves everything else unowned."""
        result = identify_landmasses(
            three_blocks,
            *_fields(three_blocks),
            continent_count=1,
            island_density=1.0,
            rng=np.random.default_rng(0),
            config=LandmassConfig(),
        )
        assert result.ownership.dtype == np.int32
        assert np.all(result.ownership[2:14, 2:14] == 0)
        assert np.all(result.ownership[20:24, 20:24] == 1)
        # Too small for an island
        assert np.all(result.ownership[30:33, 5:8] == NO_OWNER)
        assert np.all(result.ownership[~three_blocks] == NO_OWNER)

    def test_zero_density_drops_islands(self, three_blocks: np.ndarray) -> None:
        """Island density 0 keeps no islands."""
        result = identify_landmasses(
            three_blocks,
            *_fields(three_blocks),
            continent_count=1,
            island_density=0.0,
            rng=np.random.default_rng(0),
            config=LandmassConfig(),
        )
        assert result.islands == []

    def test_no_land(self) -> None:
        """An all-water grid yields empty collections."""
        land = np.zeros((10, 10), dtype=bool)
        result = identify_landmasses(
            land,
            *_fields(land),
            continent_count=3,
            island_density=1.0,
            rng=np.random.default_rng(0),
            config=LandmassConfig(),
        )
        assert result.continents == []
        assert result.islands == []
        assert np.all(result.ownership == NO_OWNER)

    def test_island_geometry(self, three_blocks: np.ndarray) -> None:
        """Island centre is the floored centroid and radius reaches its farthest cell."""
        result = identify_landmasses(
            three_blocks,
            *_fields(three_blocks),
            continent_count=1,
            island_density=1.0,
            rng=np.random.default_rng(0),
            config=LandmassConfig(),
        )
        island = result.islands[0]
        assert island.center == Position(x=21, y=21)
        assert island.radius == pytest.approx(np.hypot(2, 2))
        assert island.type is IslandType.VOLCANIC


class TestClassifyIsland:
    """Tests for island typing by average elevation."""

    @pytest.mark.parametrize(
        ("elevation", "expected"),
        [
            (0.8, IslandType.MOUNTAINOUS),
            (0.6, IslandType.VOLCANIC),
            (0.4, IslandType.CONTINENTAL),
            (0.2, IslandType.CORAL),
        ],
    )
    def test_thresholds(self, elevation: float, expected: IslandType) -> None:
        """Average elevation picks the island type."""
        assert classify_island(elevation) is expected


class TestFinalize:
    """Tests for post-generation membership."""

    def test_biomes_rivers_lakes(self, three_blocks: np.ndarray) -> None:
        """Landmasses collect biomes of their land cells and intersecting features."""
        result = identify_landmasses(
            three_blocks,
            *_fields(three_blocks),
            continent_count=1,
            island_density=1.0,
            rng=np.random.default_rng(0),
            config=LandmassConfig(),
        )
        labels = np.full(three_blocks.shape, "ocean", dtype=object)
        labels[three_blocks] = "temperate_grassland"
        labels[5, 5] = "temperate_forest"

        finalize_landmasses(
            result,
            labels,
            three_blocks,
            river_paths=[[Position(x=3, y=3), Position(x=30, y=30)]],
            lake_centers=[Position(x=21, y=22), Position(x=0, y=39)],
        )
        continent, island = result.continents[0], result.islands[0]
        assert continent.biomes == ["temperate_forest", "temperate_grassland"]
        assert continent.rivers == [0]
        assert continent.lakes == []
        assert island.lakes == [0]
        assert island.rivers == []
