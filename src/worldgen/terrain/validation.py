"""Post-generation validation of world invariants."""

import logging
from typing import TYPE_CHECKING

import numpy as np
from scipy import ndimage

from ..terrain_types import RiverKind

if TYPE_CHECKING:
    from ..generator import WorldData

logger = logging.getLogger(__name__)

_UNIT_FIELDS = (
    "elevation",
    "temperature",
    "humidity",
    "fertility",
    "soil_quality",
    "vegetation_density",
    "mineral_content",
    "erosion",
)

# 4-connectivity structure for component labelling
_CROSS = ndimage.generate_binary_structure(2, 1)


class ValidationResult:
    """Result of world validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_world(world: "WorldData") -> ValidationResult:
    """Validate a generated world against its invariants.

    Failures are logged and collected, never raised.

    Args:
        world: Freshly generated world.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    # Check 1: Property ranges
    _check_ranges(world, result)

    # Check 2: Water tiles are exactly the cells below sea level
    _check_land_water(world, result)

    # Check 3: Landmass membership covers only land, one region per tile
    _check_ownership(world, result)

    # Check 4: Landmass areas match their connected components
    _check_landmass_components(world, result)

    # Check 5: Lakes sit below sea level
    _check_lakes(world, result)

    # Check 6: Main rivers and outflows descend
    _check_river_profiles(world, result)

    # Check 7: River paths lie inside their basins
    _check_river_basins(world, result)

    if not world.continents:
        result.add_warning("No continents found")

    if result.passed:
        logger.info("World validation passed")
    else:
        logger.warning(f"World validation failed with {len(result.errors)} errors")
        for error in result.errors:
            logger.error(f"  - {error}")

    for warning in result.warnings:
        logger.warning(f"  - {warning}")

    return result


def _check_ranges(world: "WorldData", result: ValidationResult) -> None:
    for name, field in (
        ("heightmap", world.heightmap),
        ("temperature", world.temperature),
        ("humidity", world.humidity),
    ):
        if field.size and (field.min() < 0.0 or field.max() > 1.0):
            result.add_error(
                f"{name} outside [0, 1]: min={field.min():.3f}, max={field.max():.3f}"
            )

    for row in world.tiles:
        for tile in row:
            for name in _UNIT_FIELDS:
                value = getattr(tile, name)
                if not 0.0 <= value <= 1.0:
                    result.add_error(f"Tile ({tile.x}, {tile.y}) {name}={value} outside [0, 1]")


def _check_land_water(world: "WorldData", result: ValidationResult) -> None:
    mismatched = 0
    for row in world.tiles:
        for tile in row:
            if tile.type.is_water != (tile.elevation < world.sea_level):
                mismatched += 1
    if mismatched:
        result.add_error(f"{mismatched} tiles disagree with sea level on land/water type")


def _check_ownership(world: "WorldData", result: ValidationResult) -> None:
    for row in world.tiles:
        for tile in row:
            if tile.ownership is None:
                continue
            if tile.type.is_water:
                result.add_error(f"Water tile ({tile.x}, {tile.y}) owned by {tile.ownership}")
            elif tile.ownership != world.ownership[tile.y, tile.x]:
                result.add_error(
                    f"Tile ({tile.x}, {tile.y}) ownership {tile.ownership} "
                    f"disagrees with grid {world.ownership[tile.y, tile.x]}"
                )


def _check_landmass_components(world: "WorldData", result: ValidationResult) -> None:
    for region in [*world.continents, *world.islands]:
        members = world.ownership == region.id
        _, count = ndimage.label(members, structure=_CROSS)
        if count != 1:
            result.add_error(f"Landmass {region.id} spans {count} components")
        area = int(np.sum(members))
        if area != region.area:
            result.add_error(f"Landmass {region.id} area {region.area} != {area} cells")


def _check_lakes(world: "WorldData", result: ValidationResult) -> None:
    if world.sea_level <= 0.0:
        return
    for lake in world.lakes:
        elevation = world.heightmap[lake.center.y, lake.center.x]
        if elevation >= world.sea_level:
            result.add_error(
                f"Lake {lake.id} centre at {elevation:.3f} is not below sea level"
            )


def _check_river_profiles(world: "WorldData", result: ValidationResult) -> None:
    for river in world.rivers:
        if river.kind is RiverKind.TRIBUTARY:
            continue
        profile = np.asarray(river.profile)
        if np.any(np.diff(profile) > 0.0):
            result.add_error(f"River {river.id} ({river.kind.value}) climbs along its path")


def _check_river_basins(world: "WorldData", result: ValidationResult) -> None:
    for river in world.rivers:
        outside = [p for p in river.points if not river.basin.contains(p.x, p.y)]
        if outside:
            result.add_error(f"River {river.id} leaves its basin at {outside[0]}")
