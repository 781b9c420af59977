"""World generation orchestration."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from .exceptions import WorldNotGeneratedError
from .state import Tile, TileStateStore
from .terrain.biomes import (
    BIOMES,
    biome_labels,
    classify_biomes,
    compute_properties,
    roll_resources,
    tile_types,
)
from .terrain.caves import CaveSystem, generate_caves
from .terrain.climate import (
    climate_zone,
    create_coast_mask,
    create_land_mask,
    humidity_field,
    temperature_field,
    terrain_relief,
)
from .terrain.config import WorldGenConfig
from .terrain.heightmap import generate_heightmap, raise_mountain_ranges
from .terrain.hydrology import Lake, River, find_crossings, generate_hydrology
from .terrain.landmass import (
    NO_OWNER,
    Continent,
    Island,
    finalize_landmasses,
    identify_landmasses,
)
from .terrain.validation import ValidationResult, validate_world

logger = logging.getLogger(__name__)


@dataclass
class WorldData:
    """Everything one generation run produced.

    ``tiles`` is the live grid indexed ``[y][x]``; the TileStateStore writes
    through to it. The numpy fields are generation-time snapshots.
    """

    config: WorldGenConfig
    tiles: list[list[Tile]]
    rivers: list[River]
    lakes: list[Lake]
    continents: list[Continent]
    islands: list[Island]
    caves: list[CaveSystem]
    heightmap: NDArray[np.float64]
    sea_level: float
    temperature: NDArray[np.float64]
    humidity: NDArray[np.float64]
    ownership: NDArray[np.int32]
    river_mask: NDArray[np.bool_]
    lake_mask: NDArray[np.bool_]
    coast_mask: NDArray[np.bool_]
    biomes: NDArray[np.uint8]
    validation: ValidationResult | None = field(default=None, repr=False)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height


class WorldGenerator:
    """Runs the generation pipeline once and caches the result.

    Every random draw comes from one generator seeded with ``config.seed``,
    so two instances with equal configs produce identical worlds.
    """

    def __init__(self, config: WorldGenConfig | None = None) -> None:
        self.config = config or WorldGenConfig()
        self.generation_count = 0
        self._world: WorldData | None = None
        self._store: TileStateStore | None = None

    @property
    def world(self) -> WorldData:
        """Generated world.

        Raises:
            WorldNotGeneratedError: If generate() has not run.
        """
        if self._world is None:
            raise WorldNotGeneratedError("World has not been generated yet")
        return self._world

    @property
    def tile_store(self) -> TileStateStore:
        """Mutation API over the generated tiles.

        Raises:
            WorldNotGeneratedError: If generate() has not run.
        """
        if self._store is None:
            raise WorldNotGeneratedError("World has not been generated yet")
        return self._store

    def generate(self) -> WorldData:
        """Generate the world, or return the cached one."""
        if self._world is not None:
            logger.debug("Returning cached world")
            return self._world

        self._world = self._run_pipeline()
        self._store = TileStateStore(self._world.tiles, self._world.sea_level)
        self.generation_count += 1
        return self._world

    def _run_pipeline(self) -> WorldData:
        config = self.config
        rng = np.random.default_rng(config.seed)
        width, height = config.width, config.height
        sea_level = config.sea_level

        logger.info(f"Generating world {width}x{height} with seed {config.seed}")

        # Stage A: Elevation
        logger.info("Stage A: Generating heightmap...")
        heightmap = generate_heightmap(config, rng)
        peaks = raise_mountain_ranges(heightmap, config.mountain_ranges, rng, config.mountains)
        logger.info(f"Raised {config.mountain_ranges} mountain ranges ({peaks} peaks)")

        # Stage B: Land/water and climate
        logger.info("Stage B: Computing climate...")
        land_mask = create_land_mask(heightmap, sea_level)
        logger.info(f"Sea level: {sea_level:.3f}, land fraction: {np.mean(land_mask):.2%}")
        temperature = temperature_field(
            heightmap, config.seed, config.temperature_scale, config.climate
        )
        humidity = humidity_field(
            heightmap, temperature, config.seed, config.rainfall_scale, config.climate
        )

        # Stage C: Landmasses
        logger.info("Stage C: Identifying landmasses...")
        landmasses = identify_landmasses(
            land_mask,
            heightmap,
            temperature,
            humidity,
            config.continent_count,
            config.island_density,
            rng,
            config.landmass,
        )
        logger.info(
            f"Found {len(landmasses.continents)} continents, {len(landmasses.islands)} islands"
        )

        # Stage D: Hydrology (carves heightmap in place)
        logger.info("Stage D: Computing hydrology...")
        hydrology = generate_hydrology(
            heightmap,
            temperature,
            humidity,
            sea_level,
            config.river_count,
            config.lake_count,
            rng,
            config.hydrology,
        )
        land_mask = create_land_mask(heightmap, sea_level)
        coast_mask = create_coast_mask(land_mask)

        # Stage E: Biomes and derived properties
        logger.info("Stage E: Classifying biomes...")
        codes = classify_biomes(
            heightmap, temperature, humidity, sea_level, hydrology.lake_mask, hydrology.river_mask
        )
        properties = compute_properties(
            codes, heightmap, temperature, humidity, hydrology.erosion
        )

        # Stage F: Caves
        caves = generate_caves(heightmap, sea_level, config.cave_systems, rng)
        logger.info(f"Placed {len(caves)} cave systems")

        # Stage G: Tiles
        logger.info("Stage G: Materializing tiles...")
        resources = roll_resources(
            codes,
            rng,
            config.resources,
            config.soil_fertility,
            config.mineral_richness,
            config.water_availability,
        )
        type_grid = tile_types(codes)
        ownership = landmasses.ownership
        tiles: list[list[Tile]] = []
        for y in range(height):
            row: list[Tile] = []
            for x in range(width):
                owner = int(ownership[y, x])
                row.append(
                    Tile(
                        x=x,
                        y=y,
                        elevation=float(heightmap[y, x]),
                        temperature=float(temperature[y, x]),
                        humidity=float(humidity[y, x]),
                        fertility=float(properties.fertility[y, x]),
                        soil_quality=float(properties.soil_quality[y, x]),
                        vegetation_density=float(properties.vegetation_density[y, x]),
                        mineral_content=float(properties.mineral_content[y, x]),
                        erosion=float(properties.erosion[y, x]),
                        accessibility=float(properties.accessibility[y, x]),
                        biome=BIOMES[codes[y, x]],
                        type=type_grid[y, x],
                        ownership=owner if owner != NO_OWNER and land_mask[y, x] else None,
                        resources=tuple(resources[y][x]),
                        climate=climate_zone(temperature[y, x]),
                        terrain=terrain_relief(heightmap[y, x]),
                        coastal=bool(coast_mask[y, x]),
                    )
                )
            tiles.append(row)

        # Stage H: Finalization
        finalize_landmasses(
            landmasses,
            biome_labels(codes),
            land_mask,
            [river.points for river in hydrology.rivers],
            [lake.center for lake in hydrology.lakes],
        )
        habitable = np.array(
            [[tile.type.habitable for tile in row] for row in tiles], dtype=bool
        ).reshape(height, width)
        for river in hydrology.rivers:
            river.crossings = find_crossings(
                river, habitable, config.hydrology.crossing_distance
            )

        world = WorldData(
            config=config,
            tiles=tiles,
            rivers=hydrology.rivers,
            lakes=hydrology.lakes,
            continents=landmasses.continents,
            islands=landmasses.islands,
            caves=caves,
            heightmap=heightmap,
            sea_level=sea_level,
            temperature=temperature,
            humidity=humidity,
            ownership=ownership,
            river_mask=hydrology.river_mask,
            lake_mask=hydrology.lake_mask,
            coast_mask=coast_mask,
            biomes=codes,
        )

        # Stage I: Validation
        world.validation = validate_world(world)
        _log_world_stats(world)

        # Debug output if enabled
        if config.debug_output_dir:
            _dump_debug_images(
                Path(config.debug_output_dir),
                heightmap=heightmap,
                temperature=temperature,
                humidity=humidity,
                biomes=codes,
                river_mask=hydrology.river_mask,
                lake_mask=hydrology.lake_mask,
                coast_mask=coast_mask,
            )

        return world


def generate_world(config: WorldGenConfig) -> tuple[WorldData, TileStateStore]:
    """Generate a world and its tile store.

    Args:
        config: World generation configuration.

    Returns:
        Tuple of (WorldData, TileStateStore).
    """
    generator = WorldGenerator(config)
    world = generator.generate()
    return world, generator.tile_store


def _log_world_stats(world: WorldData) -> None:
    """Log world generation statistics."""
    total = world.heightmap.size
    land_count = int(np.sum(world.heightmap >= world.sea_level))

    logger.info(f"World stats ({total:,} tiles):")
    logger.info(f"  land: {land_count:,} ({land_count / total * 100:.1f}%)")
    logger.info(f"  continents: {len(world.continents)}, islands: {len(world.islands)}")
    logger.info(f"  rivers: {len(world.rivers)}, lakes: {len(world.lakes)}")

    counts = np.bincount(world.biomes.ravel(), minlength=len(BIOMES))
    for biome, count in zip(BIOMES, counts):
        if count:
            logger.debug(f"  {biome.value}: {count:,} ({count / total * 100:.1f}%)")


def _dump_debug_images(output_dir: Path, **arrays: NDArray) -> None:
    """Save arrays as images for debugging.

    Args:
        output_dir: Directory to save images.
        **arrays: Named arrays to save.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        logger.warning("matplotlib not available, skipping debug images")
        return

    output_dir.mkdir(parents=True, exist_ok=True)

    for name, arr in arrays.items():
        fig, ax = plt.subplots(figsize=(10, 10))

        if arr.dtype == bool:
            ax.imshow(arr, cmap="binary")
        elif arr.dtype == np.uint8:
            ax.imshow(arr, cmap="tab20")
        else:
            ax.imshow(arr, cmap="terrain")

        ax.set_title(name)
        ax.axis("off")

        fig.savefig(output_dir / f"{name}.png", dpi=150, bbox_inches="tight")
        plt.close(fig)

    logger.info(f"Debug images saved to {output_dir}")
