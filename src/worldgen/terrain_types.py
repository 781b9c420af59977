"""Tile, biome and resource enumerations and their properties."""

from enum import Enum


class TileType(str, Enum):
    """Coarse terrain classification of a tile."""

    GRASS = "grass"
    FOREST = "forest"
    MOUNTAIN = "mountain"
    HILL = "hill"
    WATER = "water"
    DESERT = "desert"
    TUNDRA = "tundra"
    ALPINE = "alpine"
    SWAMP = "swamp"
    URBAN = "urban"
    FARM = "farm"
    ROAD = "road"

    @property
    def is_water(self) -> bool:
        """Whether this tile type is open water."""
        return self is TileType.WATER

    @property
    def habitable(self) -> bool:
        """Whether settlements can sit on this terrain type."""
        return self in _HABITABLE_TYPES


_HABITABLE_TYPES = frozenset({
    TileType.GRASS,
    TileType.FOREST,
    TileType.HILL,
    TileType.DESERT,
    TileType.FARM,
    TileType.URBAN,
    TileType.ROAD,
})


class FireState(str, Enum):
    """Fire state of a tile."""

    NONE = "none"
    BURNING = "burning"


class Biome(str, Enum):
    """Climate- and elevation-derived biome label."""

    OCEAN = "ocean"
    LAKE = "lake"
    RIVER = "river"
    ALPINE_TUNDRA = "alpine_tundra"
    ALPINE_MEADOW = "alpine_meadow"
    TEMPERATE_FOREST = "temperate_forest"
    TEMPERATE_GRASSLAND = "temperate_grassland"
    TEMPERATE_RAINFOREST = "temperate_rainforest"
    TROPICAL_RAINFOREST = "tropical_rainforest"
    TROPICAL_SAVANNA = "tropical_savanna"
    DESERT = "desert"
    SWAMP = "swamp"
    GRASSLAND = "grassland"

    @property
    def is_water(self) -> bool:
        """Whether this biome is a body of water."""
        return self in _WATER_BIOMES


_WATER_BIOMES = frozenset({Biome.OCEAN, Biome.LAKE, Biome.RIVER})


class ResourceType(str, Enum):
    """Harvestable resource kinds."""

    FOOD = "food"
    WATER = "water"
    WOOD = "wood"
    STONE = "stone"
    METAL = "metal"


class IslandType(str, Enum):
    """Island classification by average elevation."""

    CONTINENTAL = "continental"
    VOLCANIC = "volcanic"
    CORAL = "coral"
    MOUNTAINOUS = "mountainous"


class WaterType(str, Enum):
    """Lake water classification."""

    FRESH = "fresh"
    SALT = "salt"
    MAGICAL = "magical"


class RiverKind(str, Enum):
    """How a river was produced."""

    MAIN = "main"
    TRIBUTARY = "tributary"
    OUTFLOW = "outflow"
