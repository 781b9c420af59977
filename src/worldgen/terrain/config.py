"""World generation configuration models."""

import logging
from typing import Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

MIN_SCALE = 1e-4


def _clamp(value: float, low: float, high: float, name: str) -> float:
    """Clamp a configuration value, warning when it was out of range."""
    clamped = min(high, max(low, value))
    if clamped != value:
        logger.warning(f"Config value {name}={value} out of range, clamped to {clamped}")
    return clamped


class HeightmapConfig(BaseModel):
    """Diamond-square heightmap parameters."""

    algorithm: Literal["diamond_square", "noise"] = Field(
        default="diamond_square",
        description="Elevation source; 'noise' is the multi-octave fallback",
    )
    corner_min: float = Field(default=0.2, description="Lower bound for corner seeds")
    corner_max: float = Field(default=0.8, description="Upper bound for corner seeds")
    initial_roughness: float = Field(
        default=0.5, description="Displacement amplitude of the first round"
    )
    coastal_falloff: float = Field(
        default=0.3, description="Extra depth pulled from cells below sea level"
    )
    noise_octaves: int = Field(default=4, description="Octaves for the noise fallback")


class MountainConfig(BaseModel):
    """Mountain range placement parameters."""

    length_min: float = Field(default=50.0, description="Minimum range length in tiles")
    length_max: float = Field(default=150.0, description="Maximum range length in tiles")
    segment_spacing: float = Field(default=10.0, description="Distance between peaks")
    peak_radius_min: float = Field(default=5.0, description="Minimum peak radius")
    peak_radius_max: float = Field(default=15.0, description="Maximum peak radius")
    peak_base: float = Field(default=0.7, description="Elevation at a peak's rim")
    peak_height: float = Field(default=0.3, description="Extra elevation at a peak's centre")


class ClimateConfig(BaseModel):
    """Temperature and humidity blend weights."""

    latitude_weight: float = Field(default=0.5, description="Weight of the latitude term")
    altitude_weight: float = Field(default=0.3, description="Weight of the altitude term")
    seasonal_weight: float = Field(default=0.2, description="Weight of the seasonal noise")
    altitude_lapse: float = Field(
        default=0.7, description="Cooling per unit elevation in the altitude term"
    )
    humidity_noise_weight: float = Field(default=0.4, description="Humidity noise weight")
    humidity_temperature_weight: float = Field(
        default=0.4, description="Weight of the temperature-proximity term"
    )
    humidity_elevation_weight: float = Field(
        default=0.2, description="Weight of the elevation penalty term"
    )
    humidity_peak_temperature: float = Field(
        default=0.6, description="Temperature where the proximity term peaks"
    )
    noise_octaves: int = Field(default=3, description="Octaves for climate noise")


class LandmassConfig(BaseModel):
    """Continent and island extraction parameters."""

    continent_min_area: int = Field(default=100, description="Minimum continent area")
    island_min_area: int = Field(default=10, description="Minimum island area")
    island_max_area: int = Field(default=99, description="Maximum island area")


class HydrologyConfig(BaseModel):
    """River and lake tuning constants."""

    source_min_elevation: float = Field(
        default=0.7, description="Elevation a river source must exceed"
    )
    source_keep_probability: float = Field(
        default=0.3, description="Chance a qualifying peak becomes a source"
    )
    max_trace_steps: int = Field(default=200, description="Step cap for downhill tracing")
    min_river_points: int = Field(default=5, description="Shorter paths are discarded")
    basin_margin: int = Field(default=5, description="Basin expansion around a path")
    navigable_min_length: float = Field(default=20.0, description="Navigable length")
    navigable_min_flow_rate: float = Field(default=15.0, description="Navigable flow rate")
    channel_floor_offset: float = Field(
        default=0.2, description="Channel cells never drop below sea level minus this"
    )
    channel_surface_margin: float = Field(
        default=0.01, description="Channel cells stay at least this far below sea level"
    )
    valley_floor_offset: float = Field(
        default=0.1, description="Valley softening never drops below sea level minus this"
    )
    tributaries_min: int = Field(default=1, description="Minimum tributaries per river")
    tributaries_max: int = Field(default=3, description="Maximum tributaries per river")
    tributary_search_radius: int = Field(default=20, description="Source search radius")
    tributary_min_elevation: float = Field(
        default=0.6, description="Elevation a tributary source must exceed"
    )
    tributary_max_steps: int = Field(default=100, description="Step cap for goal tracing")
    tributary_snap_distance: float = Field(
        default=3.0, description="Distance at which a tributary snaps to its join point"
    )
    min_tributary_points: int = Field(default=3, description="Shorter paths are discarded")
    lake_max_elevation: float = Field(
        default=0.6, description="Basin centres must lie below this elevation"
    )
    lake_min_depth: float = Field(
        default=0.1, description="Minimum neighbour rise above a basin centre"
    )
    lake_max_radius: int = Field(default=10, description="Cap for the expanding ring test")
    lake_min_radius: int = Field(default=2, description="Smaller basins are ignored")
    lake_keep_probability: float = Field(
        default=0.4, description="Chance a qualifying basin becomes a lake"
    )
    lake_depth_scale: float = Field(default=10.0, description="Basin depth to lake depth")
    lake_fill_margin: float = Field(
        default=0.3, description="Filled lake cells sit at least this far below sea level"
    )
    inflow_distance: float = Field(
        default=2.0, description="Extra reach beyond the radius for inflow mouths"
    )
    outflow_probability: float = Field(
        default=0.7, description="Chance a fed lake spills into an outflow river"
    )
    outflow_angle_step: int = Field(default=10, description="Perimeter sampling step (deg)")
    outflow_min_points: int = Field(default=2, description="Shorter outflows are discarded")
    magical_lake_probability: float = Field(default=0.05, description="Magical lake chance")
    erosion_radius: int = Field(default=3, description="Valley widening radius")
    erosion_strength: float = Field(default=0.1, description="Erosion added at a river point")
    erosion_lowering: float = Field(
        default=0.05, description="Elevation removed per unit of added erosion"
    )
    crossing_distance: float = Field(
        default=2.0, description="Max distance from the path for crossing tiles"
    )


class ResourceConfig(BaseModel):
    """Per-tile resource roll parameters."""

    wood_chance: float = Field(default=0.3, description="Wood chance on forest biomes")
    food_chance: float = Field(default=0.4, description="Food chance on grassland biomes")
    mineral_chance: float = Field(
        default=0.1, description="Mineral chance scaled by mineral_richness"
    )
    water_chance: float = Field(
        default=0.2, description="Water chance scaled by water_availability"
    )


class WorldGenConfig(BaseModel):
    """Complete world generation configuration."""

    seed: int = Field(default=42, description="Random seed for reproducibility")
    width: int = Field(default=128, description="World width in tiles")
    height: int = Field(default=128, description="World height in tiles")

    elevation_scale: float = Field(default=0.05, description="Elevation noise frequency")
    temperature_scale: float = Field(default=0.03, description="Temperature noise frequency")
    rainfall_scale: float = Field(default=0.04, description="Rainfall noise frequency")

    sea_level: float = Field(default=0.5, description="Land/water threshold (0-1)")
    continent_count: int = Field(default=3, description="Largest landmasses kept")
    island_density: float = Field(default=0.3, description="Island retention chance")

    mountain_ranges: int = Field(default=3, description="Mountain ranges to raise")
    river_count: int = Field(default=10, description="Maximum main rivers")
    lake_count: int = Field(default=5, description="Maximum lakes")
    cave_systems: int = Field(default=3, description="Cave systems to place")

    # Consumed by external settlement/road collaborators
    civilization_count: int = Field(default=5, description="Civilizations (external)")
    settlement_density: float = Field(default=0.5, description="Settlements (external)")
    road_density: float = Field(default=0.5, description="Roads (external)")

    mineral_richness: float = Field(default=0.5, description="Mineral resource bias")
    soil_fertility: float = Field(default=0.5, description="Food resource bias")
    water_availability: float = Field(default=0.5, description="Water resource bias")

    heightmap: HeightmapConfig = Field(default_factory=HeightmapConfig)
    mountains: MountainConfig = Field(default_factory=MountainConfig)
    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    landmass: LandmassConfig = Field(default_factory=LandmassConfig)
    hydrology: HydrologyConfig = Field(default_factory=HydrologyConfig)
    resources: ResourceConfig = Field(default_factory=ResourceConfig)

    # Debug options
    debug_output_dir: str | None = Field(
        default=None, description="Directory for debug images (None = disabled)"
    )

    @field_validator("width", "height")
    @classmethod
    def _clamp_dimension(cls, value: int, info: ValidationInfo) -> int:
        return int(_clamp(value, 1, float("inf"), info.field_name))

    @field_validator(
        "sea_level",
        "island_density",
        "settlement_density",
        "road_density",
        "mineral_richness",
        "soil_fertility",
        "water_availability",
    )
    @classmethod
    def _clamp_unit_interval(cls, value: float, info: ValidationInfo) -> float:
        return _clamp(value, 0.0, 1.0, info.field_name)

    @field_validator("elevation_scale", "temperature_scale", "rainfall_scale")
    @classmethod
    def _clamp_scale(cls, value: float, info: ValidationInfo) -> float:
        return _clamp(value, MIN_SCALE, float("inf"), info.field_name)

    @field_validator(
        "continent_count",
        "mountain_ranges",
        "river_count",
        "lake_count",
        "cave_systems",
        "civilization_count",
    )
    @classmethod
    def _clamp_count(cls, value: int, info: ValidationInfo) -> int:
        return int(_clamp(value, 0, float("inf"), info.field_name))
