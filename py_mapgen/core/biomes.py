"""
Biome classification based on elevation, temperature and humidity.

This module implements:
- Water biomes graded by depth and water temperature
- Mountain biomes by elevation, split into rocky and glacial by temperature
- Climate-zone lookup (temperature bands x humidity sub-bands)
- Noise dithering of zone thresholds so borders are not hard lines

Classification is a pure per-pixel function; the dithering noise uses a
fixed seed so identical inputs always give identical biomes.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional

import numpy as np
import structlog

from ..config.world_settings import SEA_LEVEL
from .noise import DITHER_FREQUENCY, dither_field, dither_noise

logger = structlog.get_logger()


class Biome(IntEnum):
    """Biome types, water first, then land, then mountains."""

    DEEP_OCEAN = 0
    OCEAN = 1
    ICY_OCEAN = 2
    FROZEN_OCEAN = 3
    ICE = 4
    TUNDRA = 5
    TAIGA = 6
    TEMPERATE_FOREST = 7
    TROPICAL_RAINFOREST = 8
    GRASSLAND = 9
    SHRUBLAND = 10
    SAVANNA = 11
    DESERT = 12
    SWAMP = 13
    ROCKY_MOUNTAIN = 14
    GLACIAL_MOUNTAIN = 15


# Biome names for display and export
BIOME_NAMES = {
    Biome.DEEP_OCEAN: "DeepOcean",
    Biome.OCEAN: "Ocean",
    Biome.ICY_OCEAN: "IcyOcean",
    Biome.FROZEN_OCEAN: "FrozenOcean",
    Biome.ICE: "Ice",
    Biome.TUNDRA: "Tundra",
    Biome.TAIGA: "Taiga",
    Biome.TEMPERATE_FOREST: "TemperateForest",
    Biome.TROPICAL_RAINFOREST: "TropicalRainforest",
    Biome.GRASSLAND: "Grassland",
    Biome.SHRUBLAND: "Shrubland",
    Biome.SAVANNA: "Savanna",
    Biome.DESERT: "Desert",
    Biome.SWAMP: "Swamp",
    Biome.ROCKY_MOUNTAIN: "RockyMountain",
    Biome.GLACIAL_MOUNTAIN: "GlacialMountain",
}

BIOME_COLORS = {
    Biome.DEEP_OCEAN: (0, 30, 80),
    Biome.OCEAN: (0, 70, 140),
    Biome.ICY_OCEAN: (120, 180, 220),
    Biome.FROZEN_OCEAN: (180, 200, 220),
    Biome.ICE: (220, 230, 255),
    Biome.TUNDRA: (200, 210, 190),
    Biome.TAIGA: (80, 120, 80),
    Biome.TEMPERATE_FOREST: (60, 140, 60),
    Biome.TROPICAL_RAINFOREST: (30, 100, 30),
    Biome.GRASSLAND: (140, 190, 100),
    Biome.SHRUBLAND: (160, 150, 100),
    Biome.SAVANNA: (190, 170, 100),
    Biome.DESERT: (220, 200, 150),
    Biome.SWAMP: (70, 110, 60),
    Biome.ROCKY_MOUNTAIN: (140, 140, 140),
    Biome.GLACIAL_MOUNTAIN: (200, 220, 240),
}

# Travel cost multipliers; glacial mountains are impassable
MOVEMENT_COSTS = {
    Biome.DEEP_OCEAN: 1.5,
    Biome.ICY_OCEAN: 2.0,
    Biome.SWAMP: 2.0,
    Biome.FROZEN_OCEAN: 3.0,
    Biome.ROCKY_MOUNTAIN: 4.0,
    Biome.GLACIAL_MOUNTAIN: math.inf,
}

OCEAN_BIOMES = frozenset(
    {Biome.DEEP_OCEAN, Biome.OCEAN, Biome.ICY_OCEAN, Biome.FROZEN_OCEAN}
)
MOUNTAIN_BIOMES = frozenset({Biome.ROCKY_MOUNTAIN, Biome.GLACIAL_MOUNTAIN})

# Lookup table indexed by biome value, for painting rasters
BIOME_COLOR_TABLE = np.array([BIOME_COLORS[b] for b in Biome], dtype=np.uint8)


def movement_cost(biome: Biome) -> float:
    return MOVEMENT_COSTS.get(Biome(biome), 1.0)


@dataclass
class BiomeOptions:
    """Biome classification thresholds."""

    deep_ocean_depth: float = 0.1  # Depth below sea level for deep ocean
    mountain_start: float = 0.75  # Elevation where mountains begin
    mountain_peak: float = 0.85  # Elevation of the high peaks
    peak_glacier_temperature: float = 0.3  # Peaks colder than this are glacial
    slope_glacier_temperature: float = 0.25  # Lower mountains colder than this are glacial
    ice_temperature: float = 0.1  # Water freezing point
    boundary_fuzziness: float = 0.15  # Dither amplitude on climate thresholds
    dither_seed: int = 98765
    dither_frequency: float = DITHER_FREQUENCY


def _water_biome(elevation: float, temp: float, sea_level: float, opts: BiomeOptions) -> Biome:
    if temp < opts.ice_temperature - 0.05:
        return Biome.FROZEN_OCEAN
    if temp < opts.ice_temperature + 0.15:
        return Biome.ICY_OCEAN
    if sea_level - elevation > opts.deep_ocean_depth:
        return Biome.DEEP_OCEAN
    return Biome.OCEAN


def _climate_biome(temp: float, humid: float, dither: float) -> Biome:
    """Temperature band first, then humidity within the band."""
    if temp < 0.15 + dither:
        return Biome.ICE
    if temp < 0.3 + dither:
        return Biome.TUNDRA if humid < 0.4 + dither else Biome.TAIGA
    if temp < 0.65 + dither:
        if humid < 0.2 + dither:
            return Biome.SHRUBLAND
        if humid < 0.4 + dither:
            return Biome.GRASSLAND
        if humid < 0.7 + dither:
            return Biome.TEMPERATE_FOREST
        return Biome.SWAMP
    if humid < 0.25 + dither:
        return Biome.DESERT
    if humid < 0.55 + dither:
        return Biome.SAVANNA
    return Biome.TROPICAL_RAINFOREST


def classify_biome(
    elevation: float,
    temp: float,
    humid: float,
    x: float,
    y: float,
    sea_level: float = SEA_LEVEL,
    options: Optional[BiomeOptions] = None,
) -> Biome:
    """
    Classify a single pixel.

    Priority: water, then mountains, then the dithered climate lookup.
    """
    opts = options or BiomeOptions()

    if elevation < sea_level:
        return _water_biome(elevation, temp, sea_level, opts)

    if elevation > opts.mountain_peak:
        return Biome.GLACIAL_MOUNTAIN if temp < opts.peak_glacier_temperature else Biome.ROCKY_MOUNTAIN
    if elevation > opts.mountain_start:
        return Biome.GLACIAL_MOUNTAIN if temp < opts.slope_glacier_temperature else Biome.ROCKY_MOUNTAIN

    dither = dither_noise(opts.dither_seed, x, y, opts.dither_frequency) * opts.boundary_fuzziness
    return _climate_biome(temp, humid, dither)


class BiomeClassifier:
    """Classifies whole rasters of elevation, temperature and humidity."""

    def __init__(self, sea_level: float = SEA_LEVEL, options: Optional[BiomeOptions] = None):
        self.sea_level = sea_level
        self.options = options or BiomeOptions()

    def classify(self, heights: np.ndarray, temperature: np.ndarray, humidity: np.ndarray) -> np.ndarray:
        """
        Classify every pixel.

        Args:
            heights: (height, width) elevation
            temperature: (height, width) temperature
            humidity: (height, width) humidity

        Returns:
            (height, width) uint8 array of Biome values
        """
        opts = self.options
        heights = np.asarray(heights, dtype=np.float64)
        temperature = np.asarray(temperature, dtype=np.float64)
        humidity = np.asarray(humidity, dtype=np.float64)
        if heights.shape != temperature.shape or heights.shape != humidity.shape:
            raise ValueError(
                f"Field shapes differ: heights {heights.shape}, "
                f"temperature {temperature.shape}, humidity {humidity.shape}"
            )

        biomes = np.empty(heights.shape, dtype=np.uint8)
        water = heights < self.sea_level

        # Water
        depth = self.sea_level - heights
        biomes[water] = np.select(
            [
                temperature < opts.ice_temperature - 0.05,
                temperature < opts.ice_temperature + 0.15,
                depth > opts.deep_ocean_depth,
            ],
            [Biome.FROZEN_OCEAN, Biome.ICY_OCEAN, Biome.DEEP_OCEAN],
            default=Biome.OCEAN,
        )[water]

        # Mountains
        peak = ~water & (heights > opts.mountain_peak)
        slope = ~water & ~peak & (heights > opts.mountain_start)
        biomes[peak] = np.where(
            temperature[peak] < opts.peak_glacier_temperature, Biome.GLACIAL_MOUNTAIN, Biome.ROCKY_MOUNTAIN
        )
        biomes[slope] = np.where(
            temperature[slope] < opts.slope_glacier_temperature, Biome.GLACIAL_MOUNTAIN, Biome.ROCKY_MOUNTAIN
        )

        # Climate zones
        lowland = ~water & ~peak & ~slope
        ys, xs = np.nonzero(lowland)
        if len(ys):
            h, w = heights.shape
            field = dither_field(opts.dither_seed, w, h, opts.dither_frequency)
            dither = field[ys, xs] * opts.boundary_fuzziness
            biomes[ys, xs] = _climate_biomes(temperature[ys, xs], humidity[ys, xs], dither)

        logger.info("Biomes classified", lowland_cells=len(ys), water_cells=int(water.sum()))
        return biomes


def _climate_biomes(temp: np.ndarray, humid: np.ndarray, dither: np.ndarray) -> np.ndarray:
    """Vectorized form of _climate_biome."""
    return np.select(
        [
            temp < 0.15 + dither,
            (temp < 0.3 + dither) & (humid < 0.4 + dither),
            temp < 0.3 + dither,
            (temp < 0.65 + dither) & (humid < 0.2 + dither),
            (temp < 0.65 + dither) & (humid < 0.4 + dither),
            (temp < 0.65 + dither) & (humid < 0.7 + dither),
            temp < 0.65 + dither,
            humid < 0.25 + dither,
            humid < 0.55 + dither,
        ],
        [
            Biome.ICE,
            Biome.TUNDRA,
            Biome.TAIGA,
            Biome.SHRUBLAND,
            Biome.GRASSLAND,
            Biome.TEMPERATE_FOREST,
            Biome.SWAMP,
            Biome.DESERT,
            Biome.SAVANNA,
        ],
        default=Biome.TROPICAL_RAINFOREST,
    )


def assign_biomes(
    heights: np.ndarray,
    temperature: np.ndarray,
    humidity: np.ndarray,
    sea_level: float = SEA_LEVEL,
) -> np.ndarray:
    """Classify a full map; see BiomeClassifier.classify."""
    return BiomeClassifier(sea_level).classify(heights, temperature, humidity)


def biome_fractions(biomes: np.ndarray) -> Dict[Biome, float]:
    """Share of each biome present in an array of biome values."""
    values, counts = np.unique(np.asarray(biomes), return_counts=True)
    total = counts.sum()
    if total == 0:
        return {}
    return {Biome(int(v)): float(c) / total for v, c in zip(values, counts)}
