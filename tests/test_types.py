"""Tests for core coordinate and resource types."""

import pytest
from pydantic import ValidationError

from worldgen.terrain_types import Biome, ResourceType, TileType
from worldgen.types import Bounds, Position, Resource


class TestPosition:
    """Tests for Position."""

    def test_distance(self) -> None:
        """Distance is Euclidean."""
        assert Position(x=0, y=0).distance_to(Position(x=3, y=4)) == pytest.approx(5.0)

    def test_hashable(self) -> None:
        """Equal positions collapse in a set."""
        assert len({Position(x=1, y=2), Position(x=1, y=2)}) == 1

    def test_frozen(self) -> None:
        """Positions are immutable."""
        with pytest.raises(ValidationError):
            Position(x=1, y=2).x = 5  # type: ignore[misc]

    def test_str(self) -> None:
        assert str(Position(x=1, y=2)) == "(1, 2)"


class TestBounds:
    """Tests for Bounds."""

    def test_contains(self) -> None:
        """Width and height are inclusive counts."""
        bounds = Bounds(x=2, y=3, width=4, height=2)
        assert bounds.contains(2, 3)
        assert bounds.contains(5, 4)
        assert not bounds.contains(6, 4)
        assert not bounds.contains(5, 5)


class TestResource:
    """Tests for Resource."""

    def test_negative_amount_rejected(self) -> None:
        """Amounts cannot be negative."""
        with pytest.raises(ValidationError):
            Resource(type=ResourceType.WOOD, amount=-1.0, max_amount=10.0, regeneration_rate=1.0)

    def test_defaults(self) -> None:
        resource = Resource(
            type=ResourceType.FOOD, amount=5.0, max_amount=10.0, regeneration_rate=1.0
        )
        assert resource.last_harvested == 0


class TestEnums:
    """Tests for enum helpers."""

    def test_water_tile(self) -> None:
        """Only WATER is a water tile type."""
        assert TileType.WATER.is_water
        assert not TileType.SWAMP.is_water

    def test_habitable(self) -> None:
        """Mountains and water are not habitable."""
        assert TileType.GRASS.habitable
        assert not TileType.MOUNTAIN.habitable
        assert not TileType.WATER.habitable

    def test_water_biomes(self) -> None:
        """Ocean, lake and river are water biomes."""
        assert {b for b in Biome if b.is_water} == {Biome.OCEAN, Biome.LAKE, Biome.RIVER}
