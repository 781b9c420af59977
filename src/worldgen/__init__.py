"""Procedural world generation core."""

from .config import find_config, list_configs, load_config
from .exceptions import InvalidTileUpdateError, WorldGenError, WorldNotGeneratedError
from .generator import WorldData, WorldGenerator, generate_world
from .state import Tile, TileStateStore, WorldStatistics
from .terrain.config import WorldGenConfig
from .terrain_types import Biome, FireState, ResourceType, TileType
from .types import Bounds, Position, Resource

__all__ = [
    # Types
    "Bounds",
    "Position",
    "Resource",
    "Biome",
    "FireState",
    "ResourceType",
    "TileType",
    # Config
    "WorldGenConfig",
    "find_config",
    "list_configs",
    "load_config",
    # State
    "Tile",
    "TileStateStore",
    "WorldStatistics",
    # Generation
    "WorldData",
    "WorldGenerator",
    "generate_world",
    # Exceptions
    "WorldGenError",
    "InvalidTileUpdateError",
    "WorldNotGeneratedError",
]
