"""Tile records and the runtime tile state store."""

import threading
from typing import Any, Iterable, Mapping

import structlog
from pydantic import BaseModel, Field, ValidationError

from .exceptions import InvalidTileUpdateError
from .terrain.biomes import BIOME_PROFILES
from .terrain_types import Biome, FireState, TileType
from .types import Position, Resource

logger = structlog.get_logger()

# Fields a caller may not overwrite through update_tile_state()
_IMMUTABLE_FIELDS = frozenset({"x", "y"})


class Tile(BaseModel, frozen=True):
    """Immutable snapshot of one grid cell."""

    x: int
    y: int
    elevation: float = Field(ge=0.0, le=1.0)
    temperature: float = Field(ge=0.0, le=1.0)
    humidity: float = Field(ge=0.0, le=1.0)
    fertility: float = Field(default=0.5, ge=0.0, le=1.0)
    soil_quality: float = Field(default=0.5, ge=0.0, le=1.0)
    vegetation_density: float = Field(default=0.0, ge=0.0, le=1.0)
    mineral_content: float = Field(default=0.0, ge=0.0, le=1.0)
    erosion: float = Field(default=0.0, ge=0.0, le=1.0)
    accessibility: float = Field(default=1.0, ge=0.0, le=1.0)
    biome: Biome
    type: TileType
    fire_state: FireState = FireState.NONE
    ownership: int | None = None
    resources: tuple[Resource, ...] = ()
    structures: tuple[str, ...] = ()
    climate: str = ""
    terrain: str = ""
    # Set at generation; not re-derived when elevation changes
    coastal: bool = False

    @property
    def position(self) -> Position:
        return Position(x=self.x, y=self.y)


class WorldStatistics(BaseModel, frozen=True):
    """Aggregate diagnostics over the tile cache."""

    total_tiles: int
    cached_tiles: int
    tile_types: dict[str, int]
    biomes: dict[str, int]
    average_soil_quality: float
    average_vegetation_density: float
    burning_tiles: int


def _clamp01(value: float, low: float = 0.0) -> float:
    return min(1.0, max(low, value))


class TileStateStore:
    """Coordinate-keyed cache over the live tile grid.

    The cache and the grid always hold the same Tile object for a cell;
    every write replaces both. Mutations are serialized through one lock.
    Out-of-bounds coordinates are ignored (reads return None).
    """

    def __init__(self, tiles: list[list[Tile]], sea_level: float) -> None:
        self._grid = tiles
        self._sea_level = sea_level
        self._height = len(tiles)
        self._width = len(tiles[0]) if tiles else 0
        self._cache: dict[tuple[int, int], Tile] = {
            (tile.x, tile.y): tile for row in tiles for tile in row
        }
        self._lock = threading.RLock()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def sea_level(self) -> float:
        return self._sea_level

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    # --- Reads ---

    def get_world_tiles(self) -> list[list[Tile]]:
        """Return the tile grid indexed ``[y][x]`` (rows copied)."""
        with self._lock:
            return [list(row) for row in self._grid]

    def get_tile_state(self, x: int, y: int) -> Tile | None:
        """Get the current tile at (x, y), or None when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        with self._lock:
            return self._cache[(x, y)]

    def get_tiles_in_region(self, x: int, y: int, width: int, height: int) -> list[Tile]:
        """Tiles inside a rectangle, clipped to the grid, in row-major order."""
        with self._lock:
            x0, y0 = max(0, x), max(0, y)
            x1, y1 = min(self._width, x + width), min(self._height, y + height)
            return [self._grid[ty][tx] for ty in range(y0, y1) for tx in range(x0, x1)]

    # --- Writes ---

    def update_tile_state(self, x: int, y: int, updates: Mapping[str, Any]) -> None:
        """Merge a partial record into the tile at (x, y).

        When ``elevation`` changes without an explicit ``type`` and the cell
        crosses sea level, the land/water type is re-derived.

        Raises:
            InvalidTileUpdateError: If a field is unknown or immutable, or a
                value fails validation.
        """
        unknown = set(updates) - set(Tile.model_fields)
        if unknown:
            raise InvalidTileUpdateError(f"Unknown tile fields: {sorted(unknown)}")
        immutable = set(updates) & _IMMUTABLE_FIELDS
        if immutable:
            raise InvalidTileUpdateError(f"Tile fields cannot be updated: {sorted(immutable)}")

        if not self.in_bounds(x, y):
            logger.debug("tile_update_out_of_bounds", x=x, y=y)
            return

        with self._lock:
            current = self._cache[(x, y)]

            merged = current.model_dump()
            merged.update(updates)
            if "elevation" in updates and "type" not in updates:
                merged["type"] = self._retag(current, merged["elevation"])

            try:
                tile = Tile.model_validate(merged)
            except ValidationError as e:
                raise InvalidTileUpdateError(f"Invalid update for tile ({x}, {y}): {e}") from e

            self._cache[(x, y)] = tile
            self._grid[y][x] = tile

        logger.debug("tile_updated", x=x, y=y, fields=sorted(updates))

    def update_tile_states(self, updates: Iterable[tuple[int, int, Mapping[str, Any]]]) -> None:
        """Apply each ``(x, y, updates)`` independently, without rollback."""
        for x, y, partial in updates:
            self.update_tile_state(x, y, partial)

    def _retag(self, tile: Tile, elevation: Any) -> TileType:
        """Tile type after an elevation change that may cross sea level."""
        try:
            is_water = float(elevation) < self._sea_level
        except (TypeError, ValueError):
            # Left for model validation to reject
            return tile.type
        if is_water == tile.type.is_water:
            return tile.type
        if is_water:
            return TileType.WATER
        land_type = BIOME_PROFILES[tile.biome].tile_type
        return TileType.GRASS if land_type.is_water else land_type

    # --- Domain operations ---

    def apply_farming(self, x: int, y: int) -> None:
        """Turn a tile into farmland."""
        with self._lock:
            tile = self.get_tile_state(x, y)
            if tile is None:
                return
            self.update_tile_state(
                x,
                y,
                {
                    "type": TileType.FARM,
                    "soil_quality": _clamp01(tile.soil_quality + 0.1),
                    "vegetation_density": _clamp01(tile.vegetation_density - 0.2, low=0.1),
                    "elevation": _clamp01(tile.elevation - 0.05),
                },
            )

    def apply_building(self, x: int, y: int, building_type: str) -> None:
        """Urbanize a tile and record the building."""
        with self._lock:
            tile = self.get_tile_state(x, y)
            if tile is None:
                return
            self.update_tile_state(
                x,
                y,
                {
                    "type": TileType.URBAN,
                    "elevation": _clamp01(tile.elevation - 0.1),
                    "soil_quality": _clamp01(tile.soil_quality - 0.3, low=0.1),
                    "accessibility": _clamp01(tile.accessibility + 0.5),
                    "structures": (*tile.structures, building_type),
                },
            )

    def apply_erosion(self, x: int, y: int, intensity: float = 0.1) -> None:
        """Wear a tile down by ``intensity``."""
        with self._lock:
            tile = self.get_tile_state(x, y)
            if tile is None:
                return
            self.update_tile_state(
                x,
                y,
                {
                    "elevation": _clamp01(tile.elevation - intensity),
                    "soil_quality": _clamp01(tile.soil_quality - intensity * 0.5),
                    "erosion": _clamp01(tile.erosion + intensity),
                },
            )

    def apply_age_effects(self, x: int, y: int, years: float) -> None:
        """Age a tile: soil depletes, vegetation and erosion grow.

        The effect saturates at 100 years.
        """
        factor = min(1.0, max(0.0, years / 100.0))
        with self._lock:
            tile = self.get_tile_state(x, y)
            if tile is None:
                return
            self.update_tile_state(
                x,
                y,
                {
                    "soil_quality": _clamp01(tile.soil_quality - factor * 0.1),
                    "vegetation_density": _clamp01(tile.vegetation_density + factor * 0.05),
                    "erosion": _clamp01(tile.erosion + factor * 0.02),
                },
            )

    def start_fire(self, x: int, y: int) -> None:
        """Set a land tile burning; water tiles cannot burn."""
        with self._lock:
            tile = self.get_tile_state(x, y)
            if tile is None or tile.type.is_water:
                return
            self.update_tile_state(
                x,
                y,
                {
                    "fire_state": FireState.BURNING,
                    "vegetation_density": _clamp01(tile.vegetation_density - 0.3),
                    "soil_quality": _clamp01(tile.soil_quality - 0.1),
                },
            )
        logger.info("fire_started", x=x, y=y)

    def extinguish_fire(self, x: int, y: int) -> None:
        with self._lock:
            if self.get_tile_state(x, y) is None:
                return
            self.update_tile_state(x, y, {"fire_state": FireState.NONE})

    # --- Diagnostics ---

    def get_world_statistics(self) -> WorldStatistics:
        """Aggregate counts and averages over every cached tile."""
        with self._lock:
            tiles = list(self._cache.values())

        tile_types: dict[str, int] = {}
        biomes: dict[str, int] = {}
        soil = 0.0
        vegetation = 0.0
        burning = 0
        for tile in tiles:
            tile_types[tile.type.value] = tile_types.get(tile.type.value, 0) + 1
            biomes[tile.biome.value] = biomes.get(tile.biome.value, 0) + 1
            soil += tile.soil_quality
            vegetation += tile.vegetation_density
            if tile.fire_state is FireState.BURNING:
                burning += 1

        count = len(tiles)
        return WorldStatistics(
            total_tiles=self._width * self._height,
            cached_tiles=count,
            tile_types=tile_types,
            biomes=biomes,
            average_soil_quality=soil / count if count else 0.0,
            average_vegetation_density=vegetation / count if count else 0.0,
            burning_tiles=burning,
        )
