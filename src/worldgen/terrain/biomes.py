"""Biome classification, derived tile properties and resource rolls."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import Biome, ResourceType, TileType
from ..types import Resource
from .config import ResourceConfig

# Stable uint8 code per biome; index into BIOMES
BIOMES: tuple[Biome, ...] = tuple(Biome)
BIOME_CODES: dict[Biome, int] = {biome: i for i, biome in enumerate(BIOMES)}


@dataclass(frozen=True)
class BiomeProfile:
    """Per-biome defaults used when materializing tiles."""

    tile_type: TileType
    fertility_bias: float
    vegetation: float
    mineral_bonus: float
    resources: tuple[ResourceType, ...]


BIOME_PROFILES: dict[Biome, BiomeProfile] = {
    Biome.OCEAN: BiomeProfile(TileType.WATER, 0.0, 0.0, 0.0, ()),
    Biome.LAKE: BiomeProfile(TileType.WATER, 0.0, 0.0, 0.0, (ResourceType.WATER,)),
    Biome.RIVER: BiomeProfile(TileType.WATER, 0.0, 0.0, 0.0, (ResourceType.WATER,)),
    Biome.ALPINE_TUNDRA: BiomeProfile(
        TileType.TUNDRA, -0.2, 0.2, 0.0, (ResourceType.STONE, ResourceType.METAL)
    ),
    Biome.ALPINE_MEADOW: BiomeProfile(
        TileType.ALPINE, -0.1, 0.3, 0.0, (ResourceType.STONE, ResourceType.METAL)
    ),
    Biome.TEMPERATE_FOREST: BiomeProfile(TileType.FOREST, 0.0, 0.7, 0.0, (ResourceType.WOOD,)),
    Biome.TEMPERATE_GRASSLAND: BiomeProfile(
        TileType.GRASS, 0.1, 0.4, 0.0, (ResourceType.FOOD,)
    ),
    Biome.TEMPERATE_RAINFOREST: BiomeProfile(
        TileType.FOREST, 0.0, 0.9, 0.0, (ResourceType.WOOD,)
    ),
    Biome.TROPICAL_RAINFOREST: BiomeProfile(
        TileType.FOREST, 0.0, 0.9, 0.0, (ResourceType.WOOD,)
    ),
    Biome.TROPICAL_SAVANNA: BiomeProfile(TileType.GRASS, 0.0, 0.5, 0.0, (ResourceType.FOOD,)),
    Biome.DESERT: BiomeProfile(TileType.DESERT, -0.2, 0.1, 0.2, ()),
    Biome.SWAMP: BiomeProfile(TileType.SWAMP, -0.1, 0.3, 0.0, ()),
    Biome.GRASSLAND: BiomeProfile(TileType.GRASS, 0.1, 0.3, 0.0, (ResourceType.FOOD,)),
}


@dataclass
class TerrainProperties:
    """Per-cell derived properties, each clamped to [0, 1]."""

    fertility: NDArray[np.float64]
    accessibility: NDArray[np.float64]
    soil_quality: NDArray[np.float64]
    erosion: NDArray[np.float64]
    vegetation_density: NDArray[np.float64]
    mineral_content: NDArray[np.float64]


def classify_biome(elevation: float, temperature: float, humidity: float) -> Biome:
    """Land biome for a single cell.

    Elevation dominates, then temperature, then humidity.
    """
    e, t, r = elevation, temperature, humidity
    if e > 0.8:
        return Biome.ALPINE_TUNDRA if t < 0.3 else Biome.ALPINE_MEADOW
    if e > 0.6:
        return Biome.TEMPERATE_FOREST if r > 0.7 else Biome.TEMPERATE_GRASSLAND
    if e > 0.4:
        if r > 0.8:
            return Biome.TEMPERATE_RAINFOREST
        if r > 0.5:
            return Biome.TEMPERATE_FOREST
        return Biome.TEMPERATE_GRASSLAND
    if e > 0.2:
        if t > 0.7:
            return Biome.TROPICAL_RAINFOREST if r > 0.6 else Biome.TROPICAL_SAVANNA
        return Biome.TEMPERATE_RAINFOREST if r > 0.7 else Biome.TEMPERATE_GRASSLAND
    if t > 0.8:
        return Biome.DESERT if r < 0.3 else Biome.TROPICAL_SAVANNA
    if r < 0.2:
        return Biome.DESERT
    if r > 0.8:
        return Biome.SWAMP
    return Biome.GRASSLAND


def classify_biomes(
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
    sea_level: float,
    lake_mask: NDArray[np.bool_],
    river_mask: NDArray[np.bool_],
) -> NDArray[np.uint8]:
    """Vectorized biome classification.

    Water cells (below sea level) become lake, river or ocean; land cells
    follow the same decision tree as classify_biome().

    Returns:
        2D array of biome codes (see BIOMES).
    """
    e, t, r = heightmap, temperature, humidity
    water = heightmap < sea_level
    high = e > 0.8
    upland = e > 0.6
    mid = e > 0.4
    low = e > 0.2

    rules: list[tuple[NDArray[np.bool_], Biome]] = [
        (water & lake_mask, Biome.LAKE),
        (water & river_mask, Biome.RIVER),
        (water, Biome.OCEAN),
        (high & (t < 0.3), Biome.ALPINE_TUNDRA),
        (high, Biome.ALPINE_MEADOW),
        (upland & (r > 0.7), Biome.TEMPERATE_FOREST),
        (upland, Biome.TEMPERATE_GRASSLAND),
        (mid & (r > 0.8), Biome.TEMPERATE_RAINFOREST),
        (mid & (r > 0.5), Biome.TEMPERATE_FOREST),
        (mid, Biome.TEMPERATE_GRASSLAND),
        (low & (t > 0.7) & (r > 0.6), Biome.TROPICAL_RAINFOREST),
        (low & (t > 0.7), Biome.TROPICAL_SAVANNA),
        (low & (r > 0.7), Biome.TEMPERATE_RAINFOREST),
        (low, Biome.TEMPERATE_GRASSLAND),
        ((t > 0.8) & (r < 0.3), Biome.DESERT),
        (t > 0.8, Biome.TROPICAL_SAVANNA),
        (r < 0.2, Biome.DESERT),
        (r > 0.8, Biome.SWAMP),
    ]
    codes = np.select(
        [cond for cond, _ in rules],
        [BIOME_CODES[biome] for _, biome in rules],
        default=BIOME_CODES[Biome.GRASSLAND],
    )
    return codes.astype(np.uint8)


def biome_labels(codes: NDArray[np.uint8]) -> NDArray[np.object_]:
    """Map biome codes to their string labels."""
    lookup = np.array([b.value for b in BIOMES], dtype=object)
    return lookup[codes]


def _profile_lookup(attribute: str) -> NDArray[np.float64]:
    return np.array([getattr(BIOME_PROFILES[b], attribute) for b in BIOMES], dtype=np.float64)


def tile_types(codes: NDArray[np.uint8]) -> NDArray[np.object_]:
    """Map biome codes to TileType members."""
    lookup = np.array([BIOME_PROFILES[b].tile_type for b in BIOMES], dtype=object)
    return lookup[codes]


def fertility_field(
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Step-function fertility before the biome bias."""
    fertility = np.full_like(elevation, 0.5)
    fertility += np.select([elevation > 0.8, elevation < 0.3], [-0.3, 0.2], 0.0)
    fertility += np.select([humidity > 0.7, humidity < 0.2], [0.3, -0.4], 0.0)
    fertility += np.select(
        [(temperature > 0.7) & (temperature < 0.9), temperature < 0.2], [0.2, -0.3], 0.0
    )
    return fertility


def accessibility_field(
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Ease of travel: penalized by altitude and by extreme temperatures."""
    accessibility = np.ones_like(elevation)
    accessibility += np.select([elevation > 0.7, elevation > 0.5], [-0.4, -0.2], 0.0)
    accessibility += np.select([temperature < 0.2, temperature > 0.8], [-0.3, -0.2], 0.0)
    return np.clip(accessibility, 0.0, 1.0)


def soil_quality_field(
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Blend peaking at elevation 0.3, rainfall 0.6 and temperature 0.5."""
    quality = (
        (1.0 - np.abs(elevation - 0.3))
        + (1.0 - np.abs(humidity - 0.6))
        + (1.0 - np.abs(temperature - 0.5))
    ) / 3.0
    return np.clip(quality, 0.0, 1.0)


def compute_properties(
    codes: NDArray[np.uint8],
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    humidity: NDArray[np.float64],
    hydrology_erosion: NDArray[np.float64],
) -> TerrainProperties:
    """Derive every per-cell tile property from climate and biome.

    Args:
        codes: Biome codes from classify_biomes().
        heightmap: Final elevation field.
        temperature: Temperature field.
        humidity: Humidity field.
        hydrology_erosion: Erosion accumulated by river valley widening.

    Returns:
        TerrainProperties with all fields clamped to [0, 1].
    """
    e, t, r = heightmap, temperature, humidity
    water = np.isin(codes, [BIOME_CODES[b] for b in BIOMES if b.is_water])

    fertility = fertility_field(e, t, r) + _profile_lookup("fertility_bias")[codes]
    vegetation = _profile_lookup("vegetation")[codes] + r * 0.3 + t * 0.2
    vegetation[water] = 0.0
    mineral = e * 0.4 + _profile_lookup("mineral_bonus")[codes]
    erosion = e * 0.4 + r * 0.3 + hydrology_erosion

    return TerrainProperties(
        fertility=np.clip(fertility, 0.0, 1.0),
        accessibility=accessibility_field(e, t),
        soil_quality=soil_quality_field(e, t, r),
        erosion=np.clip(erosion, 0.0, 1.0),
        vegetation_density=np.clip(vegetation, 0.0, 1.0),
        mineral_content=np.clip(mineral, 0.0, 1.0),
    )


def roll_resources(
    codes: NDArray[np.uint8],
    rng: np.random.Generator,
    config: ResourceConfig,
    soil_fertility: float,
    mineral_richness: float,
    water_availability: float,
) -> list[list[list[Resource]]]:
    """Roll the starting resource stock of every tile.

    Wood and food follow the biome's affinity; minerals and water may
    appear anywhere. ``soil_fertility`` scales the food chance (0.5 leaves
    it unchanged), ``mineral_richness`` and ``water_availability`` scale the
    mineral and water chances.

    Returns:
        Nested lists indexed ``[y][x]``.
    """
    height, width = codes.shape
    shape = (height, width)
    wood_roll, food_roll, mineral_roll, water_roll = (rng.random(shape) for _ in range(4))
    amount_roll = rng.random((4, height, width))
    regen_roll = rng.random((4, height, width))
    metal_roll = rng.random(shape)

    has_wood = np.array([ResourceType.WOOD in BIOME_PROFILES[b].resources for b in BIOMES])
    has_food = np.array([ResourceType.FOOD in BIOME_PROFILES[b].resources for b in BIOMES])
    has_stone = np.array([ResourceType.STONE in BIOME_PROFILES[b].resources for b in BIOMES])
    has_water = np.array([ResourceType.WATER in BIOME_PROFILES[b].resources for b in BIOMES])

    wood = has_wood[codes] & (wood_roll < config.wood_chance)
    food = has_food[codes] & (food_roll < config.food_chance * soil_fertility * 2.0)
    # Affinity doubles the mineral and water chances
    mineral = mineral_roll < config.mineral_chance * mineral_richness * (1.0 + has_stone[codes])
    water = water_roll < config.water_chance * water_availability * (1.0 + has_water[codes])

    grid: list[list[list[Resource]]] = [[[] for _ in range(width)] for _ in range(height)]

    for y, x in zip(*np.nonzero(wood)):
        grid[y][x].append(
            Resource(
                type=ResourceType.WOOD,
                amount=100.0 + amount_roll[0, y, x] * 200.0,
                max_amount=300.0,
                regeneration_rate=1.0 + regen_roll[0, y, x] * 2.0,
            )
        )
    for y, x in zip(*np.nonzero(food)):
        grid[y][x].append(
            Resource(
                type=ResourceType.FOOD,
                amount=50.0 + amount_roll[1, y, x] * 100.0,
                max_amount=150.0,
                regeneration_rate=2.0 + regen_roll[1, y, x] * 3.0,
            )
        )
    for y, x in zip(*np.nonzero(mineral)):
        grid[y][x].append(
            Resource(
                type=ResourceType.METAL if metal_roll[y, x] < 0.5 else ResourceType.STONE,
                amount=200.0 + amount_roll[2, y, x] * 300.0,
                max_amount=500.0,
                regeneration_rate=0.1 + regen_roll[2, y, x] * 0.5,
            )
        )
    for y, x in zip(*np.nonzero(water)):
        grid[y][x].append(
            Resource(
                type=ResourceType.WATER,
                amount=1000.0 + amount_roll[3, y, x] * 2000.0,
                max_amount=3000.0,
                regeneration_rate=5.0 + regen_roll[3, y, x] * 10.0,
            )
        )

    return grid
