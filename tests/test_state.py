"""Tests for the tile state store."""

import threading

import pytest

from conftest import make_tile
from worldgen.exceptions import InvalidTileUpdateError
from worldgen.state import Tile, TileStateStore
from worldgen.terrain_types import Biome, FireState, TileType


class TestReads:
    """Tests for tile queries."""

    def test_get_tile(self, tile_store: TileStateStore) -> None:
        tile = tile_store.get_tile_state(1, 2)
        assert tile is not None
        assert (tile.x, tile.y) == (1, 2)

    def test_out_of_bounds(self, tile_store: TileStateStore) -> None:
        """Out-of-bounds reads return None."""
        assert tile_store.get_tile_state(-1, 0) is None
        assert tile_store.get_tile_state(3, 0) is None

    def test_in_bounds(self, tile_store: TileStateStore) -> None:
        assert tile_store.in_bounds(0, 0)
        assert tile_store.in_bounds(2, 2)
        assert not tile_store.in_bounds(3, 2)
        assert not tile_store.in_bounds(0, -1)

    def test_region_clipped(self, tile_store: TileStateStore) -> None:
        """Regions are clipped to the grid and returned row-major."""
        tiles = tile_store.get_tiles_in_region(1, 1, 10, 10)
        assert [(t.x, t.y) for t in tiles] == [(1, 1), (2, 1), (1, 2), (2, 2)]

    def test_world_tiles_copy(self, tile_store: TileStateStore) -> None:
        """The returned grid is a copy of the rows."""
        grid = tile_store.get_world_tiles()
        grid[0].clear()
        assert len(tile_store.get_world_tiles()[0]) == 3


class TestUpdateTileState:
    """Tests for partial updates."""

    def test_round_trip(self, tile_store: TileStateStore) -> None:
        """An update is visible on the next read."""
        tile_store.update_tile_state(0, 0, {"fertility": 0.9})
        assert tile_store.get_tile_state(0, 0).fertility == 0.9

    def test_out_of_bounds_ignored(self, tile_store: TileStateStore) -> None:
        """Writes outside the grid are silently dropped."""
        tile_store.update_tile_state(10, 10, {"fertility": 0.9})
        assert tile_store.get_tile_state(10, 10) is None

    def test_unknown_field(self, tile_store: TileStateStore) -> None:
        with pytest.raises(InvalidTileUpdateError, match="Unknown"):
            tile_store.update_tile_state(0, 0, {"colour": "red"})

    def test_invalid_value(self, tile_store: TileStateStore) -> None:
        """Out-of-range values are rejected and the tile is unchanged."""
        with pytest.raises(InvalidTileUpdateError):
            tile_store.update_tile_state(0, 0, {"fertility": 1.5})
        assert tile_store.get_tile_state(0, 0).fertility == 0.5

    def test_immutable_coordinates(self, tile_store: TileStateStore) -> None:
        with pytest.raises(InvalidTileUpdateError, match="cannot be updated"):
            tile_store.update_tile_state(0, 0, {"x": 2})

    def test_sinking_retags_water(self, tile_store: TileStateStore) -> None:
        """Dropping below sea level turns a tile into water."""
        tile_store.update_tile_state(0, 0, {"elevation": 0.2})
        assert tile_store.get_tile_state(0, 0).type is TileType.WATER

    def test_raising_ocean_gives_grass(self, tile_store: TileStateStore) -> None:
        """Raising a water-biome tile above sea level yields grass."""
        tile_store.update_tile_state(2, 2, {"elevation": 0.7})
        assert tile_store.get_tile_state(2, 2).type is TileType.GRASS

    def test_explicit_type_wins(self, tile_store: TileStateStore) -> None:
        """An explicit type is never re-derived."""
        tile_store.update_tile_state(0, 0, {"elevation": 0.2, "type": TileType.SWAMP})
        assert tile_store.get_tile_state(0, 0).type is TileType.SWAMP

    def test_same_side_keeps_type(self, tile_store: TileStateStore) -> None:
        """Elevation changes on the same side of sea level keep the type."""
        tile_store.update_tile_state(1, 1, {"type": TileType.FOREST})
        tile_store.update_tile_state(1, 1, {"elevation": 0.9})
        assert tile_store.get_tile_state(1, 1).type is TileType.FOREST

    def test_grid_write_through(self, tile_store: TileStateStore) -> None:
        """The cache and the grid hold the same object after a write."""
        tile_store.update_tile_state(1, 0, {"humidity": 0.1})
        assert tile_store.get_world_tiles()[0][1] is tile_store.get_tile_state(1, 0)

    def test_batch(self, tile_store: TileStateStore) -> None:
        """Batch updates apply in order; an invalid entry stops the batch."""
        with pytest.raises(InvalidTileUpdateError):
            tile_store.update_tile_states(
                [
                    (0, 0, {"fertility": 0.1}),
                    (1, 0, {"fertility": 2.0}),
                    (2, 0, {"fertility": 0.1}),
                ]
            )
        assert tile_store.get_tile_state(0, 0).fertility == 0.1
        assert tile_store.get_tile_state(2, 0).fertility == 0.5


class TestDomainOperations:
    """Tests for farming, building, erosion, aging and fire."""

    def test_farming(self, tile_store: TileStateStore) -> None:
        tile_store.apply_farming(0, 0)
        tile = tile_store.get_tile_state(0, 0)
        assert tile.type is TileType.FARM
        assert tile.soil_quality == pytest.approx(0.6)
        assert tile.vegetation_density == pytest.approx(0.3)
        assert tile.elevation == pytest.approx(0.65)

    def test_farming_vegetation_floor(self, tile_store: TileStateStore) -> None:
        """Farming leaves at least 0.1 vegetation."""
        tile_store.update_tile_state(1, 1, {"vegetation_density": 0.15})
        tile_store.apply_farming(1, 1)
        assert tile_store.get_tile_state(1, 1).vegetation_density == pytest.approx(0.1)

    def test_building(self, tile_store: TileStateStore) -> None:
        """Buildings urbanize the tile and accumulate."""
        tile_store.apply_building(1, 1, "house")
        tile_store.apply_building(1, 1, "market")
        tile = tile_store.get_tile_state(1, 1)
        assert tile.type is TileType.URBAN
        assert tile.structures == ("house", "market")
        assert tile.accessibility == 1.0
        assert tile.soil_quality == pytest.approx(0.1)

    def test_erosion_retags(self) -> None:
        """Eroding a coastal tile below sea level makes it water."""
        store = TileStateStore([[make_tile(0, 0, elevation=0.55)]], sea_level=0.5)
        store.apply_erosion(0, 0)
        tile = store.get_tile_state(0, 0)
        assert tile.elevation == pytest.approx(0.45)
        assert tile.erosion == pytest.approx(0.3)
        assert tile.soil_quality == pytest.approx(0.45)
        assert tile.type is TileType.WATER

    def test_age_effects(self, tile_store: TileStateStore) -> None:
        """Aging saturates at 100 years."""
        tile_store.apply_age_effects(0, 0, 500)
        tile = tile_store.get_tile_state(0, 0)
        assert tile.soil_quality == pytest.approx(0.4)
        assert tile.vegetation_density == pytest.approx(0.55)
        assert tile.erosion == pytest.approx(0.22)

    def test_fire(self, tile_store: TileStateStore) -> None:
        """Fire burns vegetation and can be extinguished."""
        tile_store.start_fire(0, 0)
        tile = tile_store.get_tile_state(0, 0)
        assert tile.fire_state is FireState.BURNING
        assert tile.vegetation_density == pytest.approx(0.2)
        assert tile_store.get_world_statistics().burning_tiles == 1

        tile_store.extinguish_fire(0, 0)
        assert tile_store.get_tile_state(0, 0).fire_state is FireState.NONE

    def test_water_does_not_burn(self, tile_store: TileStateStore) -> None:
        before = tile_store.get_tile_state(2, 2)
        tile_store.start_fire(2, 2)
        assert tile_store.get_tile_state(2, 2) is before

    def test_operations_out_of_bounds(self, tile_store: TileStateStore) -> None:
        """Domain operations outside the grid do nothing."""
        tile_store.apply_farming(9, 9)
        tile_store.apply_building(9, 9, "house")
        tile_store.apply_erosion(9, 9)
        tile_store.apply_age_effects(9, 9, 10)
        tile_store.start_fire(9, 9)
        tile_store.extinguish_fire(9, 9)
        assert tile_store.get_world_statistics().cached_tiles == 9


class TestStatistics:
    """Tests for world statistics."""

    def test_counts(self, tile_store: TileStateStore) -> None:
        stats = tile_store.get_world_statistics()
        assert stats.total_tiles == 9
        assert stats.tile_types == {"grass": 8, "water": 1}
        assert stats.biomes == {"temperate_grassland": 8, "ocean": 1}
        assert stats.average_soil_quality == pytest.approx(0.5)
        assert stats.average_vegetation_density == pytest.approx(4.0 / 9.0)

    def test_empty(self) -> None:
        stats = TileStateStore([], sea_level=0.5).get_world_statistics()
        assert stats.total_tiles == 0
        assert stats.average_soil_quality == 0.0


class TestConcurrency:
    """Tests for serialized mutation."""

    def test_parallel_aging(self, tile_store: TileStateStore) -> None:
        """Concurrent read-modify-write operations do not lose updates."""

        def age() -> None:
            for _ in range(50):
                tile_store.apply_age_effects(1, 1, 0.1)

        threads = [threading.Thread(target=age) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tile_store.get_tile_state(1, 1).soil_quality == pytest.approx(0.48)


def test_tile_position() -> None:
    tile = make_tile(4, 5, biome=Biome.DESERT, type=TileType.DESERT)
    assert isinstance(tile, Tile)
    assert (tile.position.x, tile.position.y) == (4, 5)
