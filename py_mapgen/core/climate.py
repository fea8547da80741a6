"""
Climate calculation system for temperature, wind and humidity.

This module implements:
- Latitude-based temperature bands with adjustable polar compression
- Altitude cooling and extra cooling over water
- A coarse three-band prevailing wind model
- Wind-driven moisture transport with evaporation and orographic rain

All fields are (height, width) arrays aligned with the heightmap.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import structlog

from ..config.world_settings import SEA_LEVEL
from ..utils.random import derive_seed
from .heightmap_generator import smooth_field
from .noise import CylindricalNoise

logger = structlog.get_logger()


@dataclass
class ClimateOptions:
    """Climate model constants."""

    # Temperature settings
    noise_seed_offset: int = 500
    noise_frequency: float = 0.005
    latitude_weight: float = 0.8  # Share of latitude vs local noise
    elevation_cooling: float = 0.4  # Temperature lost at the highest peak
    water_cooling: float = 0.2  # Extra cooling over water, scaled by depth (capped at 0.5)

    # Wind system: tropical/polar bands blow one way, temperate bands the other
    temperate_band: Tuple[float, float] = (0.3, 0.7)  # Latitude factor range

    # Humidity transport
    initial_moisture: float = 0.5
    evaporation_rate: float = 0.15  # Moisture gained per ocean cell
    min_evaporation: float = 0.05
    base_precipitation: float = 0.02  # Rain rate on flat land
    orographic_multiplier: float = 8.0  # Extra rain per unit of uphill slope
    humidity_scale: float = 20.0  # Precipitation -> recorded humidity
    humidity_smooth_radius: int = 3


class Climate:
    """Handles temperature, wind and humidity calculations."""

    def __init__(
        self,
        heights: np.ndarray,
        sea_level: float = SEA_LEVEL,
        options: Optional[ClimateOptions] = None,
    ):
        """
        Initialize climate calculator.

        Args:
            heights: (height, width) normalized elevation
            sea_level: Water threshold
            options: Climate model constants
        """
        self.heights = np.asarray(heights, dtype=np.float64)
        self.height, self.width = self.heights.shape
        self.sea_level = sea_level
        self.options = options or ClimateOptions()

        self.temperatures = None
        self.winds = None
        self.humidity = None

    def latitude_factors(self) -> np.ndarray:
        """Per-row distance from the equator: 0 at the equator, 1 at the poles."""
        rows = np.arange(self.height, dtype=np.float64)
        return np.abs(rows / self.height - 0.5) * 2.0

    def calculate_temperatures(
        self,
        seed: int,
        temperature_offset: float = 0.0,
        polar_amplification: float = 1.0,
        latitude_exponent: float = 0.65,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Calculate temperature in [0, 1] and the prevailing wind per cell.

        Returns:
            Tuple of (temperature, winds); winds holds the horizontal wind
            sign (+1 blows east, -1 blows west)
        """
        logger.info("Calculating temperatures")
        opts = self.options

        noise = CylindricalNoise(derive_seed(seed, opts.noise_seed_offset), opts.noise_frequency)
        local = noise.sample(self.width, self.height)

        lat = self.latitude_factors()[:, None]
        lat_base = 1.0 - np.power(lat, latitude_exponent)
        lat_offset = temperature_offset * (1.0 + lat * polar_amplification)

        temperature = (
            lat_base * opts.latitude_weight
            + local * (1.0 - opts.latitude_weight)
            + lat_offset
            - self.heights * opts.elevation_cooling
        )
        temperature = np.clip(temperature, 0.0, 1.0)

        water = self.heights < self.sea_level
        cooling = np.minimum(1.0 - self.heights, 0.5) * opts.water_cooling
        temperature = np.where(water, np.clip(temperature - cooling, 0.0, 1.0), temperature)

        low, high = opts.temperate_band
        temperate = (lat > low) & (lat < high)
        winds = np.broadcast_to(np.where(temperate, 1.0, -1.0), self.heights.shape).copy()

        self.temperatures = temperature
        self.winds = winds
        return temperature, winds

    def calculate_humidity(self, winds: np.ndarray, humidity_offset: float = 0.0) -> np.ndarray:
        """
        Carry moisture along each row in the wind direction.

        Every row is swept twice around the full width so the air moisture has
        wrapped around the seam before anything is recorded. Ocean cells add
        moisture; land cells rain out moisture * (base + uphill slope *
        multiplier). Humidity is recorded on the second pass only and then
        smoothed to remove banding.

        Args:
            winds: (height, width) wind sign per cell (row direction is read from column 0)
            humidity_offset: Global humidity shift

        Returns:
            (height, width) humidity in [0, 1]
        """
        logger.info("Calculating humidity")
        opts = self.options
        h, w = self.height, self.width
        heights = self.heights
        humidity = np.zeros((h, w), dtype=np.float64)

        rows = np.arange(h)
        blows_east = np.asarray(winds)[:, 0] > 0.0
        moisture = np.full(h, float(np.clip(opts.initial_moisture + humidity_offset, 0.0, 1.0)))
        evaporation = max(opts.evaporation_rate + humidity_offset * 0.1, opts.min_evaporation)

        # All rows advance together; each row walks in its own direction
        for step in range(2 * w):
            col = step % w
            xs = np.where(blows_east, col, w - 1 - col)
            next_xs = np.where(blows_east, (xs + 1) % w, (xs - 1) % w)

            current = heights[rows, xs]
            ahead = heights[rows, next_xs]
            water = current < self.sea_level

            slope = np.maximum(ahead - current, 0.0)
            precipitation = moisture * (opts.base_precipitation + slope * opts.orographic_multiplier)
            precipitation = np.maximum(precipitation + humidity_offset * 0.05, 0.0)

            moisture = np.where(
                water,
                np.minimum(moisture + evaporation, 1.0),
                np.maximum(moisture - precipitation, 0.0),
            )

            if step >= w:
                land_humidity = np.clip(precipitation * opts.humidity_scale + humidity_offset, 0.0, 1.0)
                humidity[rows, xs] = np.where(water, 1.0, land_humidity)

        humidity = smooth_field(humidity, opts.humidity_smooth_radius)
        self.humidity = humidity
        return humidity


def generate_climate_maps(
    seed: int,
    width: int,
    height: int,
    heights: np.ndarray,
    temperature_offset: float = 0.0,
    polar_amplification: float = 1.0,
    latitude_exponent: float = 0.65,
    sea_level: float = SEA_LEVEL,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Derive temperature and wind fields from the heightmap.

    Returns:
        Tuple of (temperature, winds) arrays of shape (height, width)
    """
    heights = np.asarray(heights, dtype=np.float64).reshape(height, width)
    climate = Climate(heights, sea_level)
    return climate.calculate_temperatures(
        seed, temperature_offset, polar_amplification, latitude_exponent
    )


def calculate_humidity(
    width: int,
    height: int,
    heights: np.ndarray,
    winds: np.ndarray,
    sea_level: float = SEA_LEVEL,
    humidity_offset: float = 0.0,
) -> np.ndarray:
    """
    Derive humidity by advecting moisture along the wind.

    Returns:
        (height, width) humidity in [0, 1]
    """
    heights = np.asarray(heights, dtype=np.float64).reshape(height, width)
    winds = np.asarray(winds, dtype=np.float64).reshape(height, width)
    return Climate(heights, sea_level).calculate_humidity(winds, humidity_offset)
