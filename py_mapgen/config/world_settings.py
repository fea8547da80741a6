"""
World generation parameters.

This module defines the settings that drive a single world generation run,
including validation rules, limits, and default values. Field names and
defaults match the TOML format used by existing world configuration files,
so configs round-trip unchanged.
"""

import json
import tomllib
from enum import Enum
from pathlib import Path
from typing import Union

from pydantic import BaseModel, Field, ValidationError

# Sea level is fixed for every world and shared by all stages
SEA_LEVEL = 0.5

MIN_MAP_DIMENSION = 4


class ConfigurationError(ValueError):
    """Raised when a world configuration cannot be loaded or validated."""


class WorldType(str, Enum):
    """Global layout of the generated world."""

    EARTH_LIKE = "EarthLike"
    SUPERCONTINENT = "Supercontinent"
    ARCHIPELAGO = "Archipelago"
    MEDITERRANEAN = "Mediterranean"
    ICE_AGE_EARTH = "IceAgeEarth"
    DESERT_MEDITERRANEAN = "DesertMediterranean"

    def target_land_ratio(self) -> float:
        """Fraction of the map expected above sea level."""
        return _TARGET_LAND_RATIOS[self]

    def noise_octaves(self) -> int:
        """Octave count for the base elevation noise."""
        if self in (WorldType.SUPERCONTINENT, WorldType.MEDITERRANEAN):
            return 3
        if self is WorldType.ARCHIPELAGO:
            return 4
        return 5

    def noise_frequency(self) -> float:
        """Base frequency of the elevation noise (lower = larger landmasses)."""
        if self in (WorldType.SUPERCONTINENT, WorldType.MEDITERRANEAN):
            return 0.002
        return 0.005

    def default_climate(self) -> "ClimateSettings":
        """Climate preset for this world type."""
        if self is WorldType.ICE_AGE_EARTH:
            return ClimateSettings(
                global_temperature_offset=-0.7,
                global_humidity_offset=0.0,
                polar_amplification=1.8,
                climate_latitude_exponent=1.2,
            )
        return ClimateSettings()

    def default_terrain(self) -> "TerrainSettings":
        """Terrain preset for this world type."""
        if self in (WorldType.SUPERCONTINENT, WorldType.MEDITERRANEAN):
            return TerrainSettings(
                elevation_power=0.65,
                smooth_radius=2,
                mountain_compression=0.8,
                total_provinces=80,
            )
        if self is WorldType.ARCHIPELAGO:
            return TerrainSettings(
                elevation_power=0.75,
                smooth_radius=1,
                mountain_compression=0.5,
                total_provinces=120,
            )
        return TerrainSettings()


_TARGET_LAND_RATIOS = {
    WorldType.EARTH_LIKE: 0.30,
    WorldType.SUPERCONTINENT: 0.70,
    WorldType.ARCHIPELAGO: 0.15,
    WorldType.MEDITERRANEAN: 0.25,
    WorldType.ICE_AGE_EARTH: 0.35,  # most of the extra "land" is ice
    WorldType.DESERT_MEDITERRANEAN: 0.20,
}


class ClimateSettings(BaseModel):
    """Global climate modifiers."""

    global_temperature_offset: float = Field(
        default=0.0, ge=-1.0, le=1.0, description="Global temperature shift (-1 very cold, +1 very hot)"
    )
    global_humidity_offset: float = Field(
        default=0.0, ge=-1.0, le=1.0, description="Global humidity shift (-1 very dry, +1 very wet)"
    )
    polar_amplification: float = Field(
        default=1.0, ge=0.0, description="Strength of polar cooling (1.0 = standard)"
    )
    climate_latitude_exponent: float = Field(
        default=0.65, gt=0.0, description="<1 compresses polar bands, >1 widens them"
    )


class IslandSettings(BaseModel):
    """Small ocean island settings."""

    island_density: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Island density (0 = none, 1 = many)"
    )
    min_island_size: int = Field(default=200, ge=0, description="Minimum island size in pixels")


class TerrainSettings(BaseModel):
    """Relief shape and province count."""

    elevation_power: float = Field(
        default=0.8, gt=0.0, description="Elevation exponent (<1 flattens, >1 sharpens)"
    )
    smooth_radius: int = Field(default=1, ge=0, description="Box smoothing radius in pixels")
    mountain_compression: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Mountain zone compression for biome assignment"
    )
    total_provinces: int = Field(default=120, ge=0, description="Total land + sea provinces")


class WorldGenerationParams(BaseModel):
    """Complete parameter set for one world."""

    seed: int = Field(..., ge=0, lt=2**64, description="Generator seed")
    width: int = Field(default=2048, ge=MIN_MAP_DIMENSION, description="Map width in pixels")
    height: int = Field(default=1024, ge=MIN_MAP_DIMENSION, description="Map height in pixels")
    world_type: WorldType = Field(default=WorldType.EARTH_LIKE, description="World layout")
    climate: ClimateSettings = Field(default_factory=ClimateSettings)
    islands: IslandSettings = Field(default_factory=IslandSettings)
    num_regions: int = Field(default=12, ge=0, description="Requested number of regions")
    sea_province_scale: float = Field(
        default=2.5, gt=0.0, description="Sea province size relative to land provinces"
    )
    terrain: TerrainSettings = Field(default_factory=TerrainSettings)
    target_region_size: int = Field(default=8, ge=1, description="Provinces per region")

    def effective_terrain(self) -> TerrainSettings:
        """Terrain settings, falling back to the world type preset when untouched."""
        if self.terrain == TerrainSettings():
            return self.world_type.default_terrain()
        return self.terrain

    def effective_climate(self) -> ClimateSettings:
        """Climate settings, falling back to the world type preset when untouched."""
        if self.climate == ClimateSettings():
            return self.world_type.default_climate()
        return self.climate

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_mapping(cls, data: dict) -> "WorldGenerationParams":
        """Validate a raw mapping, converting validation failures."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid world configuration: {e}") from e

    @classmethod
    def from_toml_file(cls, path: Union[str, Path]) -> "WorldGenerationParams":
        """
        Load parameters from a TOML file.

        Example:
            seed = 42
            width = 1024
            height = 512
            world_type = "Archipelago"

        Raises:
            ConfigurationError: if the file is missing, malformed or invalid
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed TOML in {path}: {e}") from e
        return cls.from_mapping(data)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "WorldGenerationParams":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Malformed JSON in {path}: {e}") from e
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "WorldGenerationParams":
        """Load a TOML or JSON config, chosen by file extension."""
        if Path(path).suffix.lower() == ".json":
            return cls.from_json_file(path)
        return cls.from_toml_file(path)
