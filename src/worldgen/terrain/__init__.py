"""Procedural terrain stages.

Diamond-square elevation, climate fields, landmass extraction, hydrology
(rivers, tributaries, lakes), biome classification and caves.
"""

from .config import WorldGenConfig
from .hydrology import HydrologyResult, Lake, River, generate_hydrology
from .landmass import Continent, Island, LandmassResult, identify_landmasses
from .validation import ValidationResult, validate_world

__all__ = [
    "Continent",
    "HydrologyResult",
    "Island",
    "Lake",
    "LandmassResult",
    "River",
    "ValidationResult",
    "WorldGenConfig",
    "generate_hydrology",
    "identify_landmasses",
    "validate_world",
]
