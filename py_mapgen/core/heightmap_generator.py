"""
Heightmap generation module for seamless world maps.

This module synthesizes elevation on a cylindrical projection (east-west
wrapping), using NumPy for vectorized operations:
- Base fBm noise with octave/frequency presets per world type
- Small-island noise overlay
- Seam-correct box smoothing
- Nonlinear contrast (elevation power)
- Thermal and hydraulic erosion
- Normalization and sea level calibration to a target land ratio
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog
from scipy.ndimage import uniform_filter1d

from ..config.world_settings import (
    MIN_MAP_DIMENSION,
    SEA_LEVEL,
    ConfigurationError,
    TerrainSettings,
    WorldType,
)
from ..utils.random import derive_seed, get_rng
from .noise import CylindricalNoise

logger = structlog.get_logger()

ISLAND_SEED_OFFSET = 2_000_000
ISLAND_FREQUENCY = 0.015

# 4-neighbourhood as (dx, dy); order decides ties
DIRECTIONS_4 = ((0, 1), (1, 0), (0, -1), (-1, 0))


@dataclass
class HeightmapConfig:
    """Configuration for heightmap generation."""

    width: int
    height: int
    world_type: WorldType = WorldType.EARTH_LIKE
    island_density: float = 0.2
    elevation_power: float = 0.8
    smooth_radius: int = 1
    thermal_iterations: int = 3
    talus_angle: float = 0.015
    thermal_transfer: float = 0.3  # Fraction of excess slope moved per step
    droplet_divisor: int = 80  # One droplet per this many pixels
    droplet_steps: int = 30
    erosion_power: float = 0.01
    calibration_steps: int = 100
    sea_level: float = SEA_LEVEL

    @classmethod
    def from_terrain(
        cls,
        width: int,
        height: int,
        world_type: WorldType,
        island_density: float,
        terrain: TerrainSettings,
    ) -> "HeightmapConfig":
        return cls(
            width=width,
            height=height,
            world_type=world_type,
            island_density=island_density,
            elevation_power=terrain.elevation_power,
            smooth_radius=terrain.smooth_radius,
        )


@dataclass
class Heightmap:
    """
    Normalized elevation raster.

    data has shape (height, width); 0.0 is the deepest point, 1.0 the highest
    peak. Downstream stages treat it as read-only.
    """

    width: int
    height: int
    data: np.ndarray

    @classmethod
    def flat(cls, width: int, height: int, value: float = 0.0) -> "Heightmap":
        return cls(width, height, np.full((height, width), value, dtype=np.float64))

    def get(self, x: int, y: int) -> float:
        return float(self.data[y, x])

    def set(self, x: int, y: int, value: float) -> None:
        self.data[y, x] = value

    def land_ratio(self, sea_level: float = SEA_LEVEL) -> float:
        """Fraction of cells strictly above sea level."""
        return float(np.count_nonzero(self.data > sea_level)) / self.data.size

    def to_grayscale_image(self) -> np.ndarray:
        """Heights as a (height, width) uint8 array."""
        return (np.clip(self.data, 0.0, 1.0) * 255.0).astype(np.uint8)

    def generate_normals(self, height_scale: float = 1.0) -> np.ndarray:
        """
        Encode surface normals as RGB.

        Horizontal differences wrap around the seam; vertical differences are
        clamped at the poles.

        Returns:
            (height, width, 3) uint8 array
        """
        left = np.roll(self.data, 1, axis=1)
        right = np.roll(self.data, -1, axis=1)
        top = np.vstack([self.data[:1], self.data[:-1]])
        bottom = np.vstack([self.data[1:], self.data[-1:]])

        nx = -(right - left) * height_scale
        ny = -(bottom - top) * height_scale
        nz = np.ones_like(nx)
        length = np.maximum(np.sqrt(nx * nx + ny * ny + nz * nz), np.finfo(np.float64).eps)

        normals = np.stack([nx / length, ny / length, nz / length], axis=-1)
        return ((normals * 0.5 + 0.5) * 255.0).astype(np.uint8)

    def apply_thermal_erosion(
        self, iterations: int, talus_angle: float, transfer: float = 0.3
    ) -> None:
        """
        Move material from steep slopes to the steepest downhill neighbour.

        Each cell whose drop to its lowest 4-neighbour exceeds the talus angle
        hands (drop - talus) * transfer to that neighbour. Material is moved,
        never deleted, so the total is conserved.
        """
        h, w = self.data.shape
        ys, xs = np.indices((h, w))
        dxs = np.array([d[0] for d in DIRECTIONS_4])
        dys = np.array([d[1] for d in DIRECTIONS_4])

        for _ in range(iterations):
            current = self.data
            diffs = np.full((4, h, w), -np.inf)
            for k, (dx, dy) in enumerate(DIRECTIONS_4):
                shifted = np.roll(current, -dx, axis=1)
                if dy == 1:
                    diffs[k, :-1] = current[:-1] - shifted[1:]
                elif dy == -1:
                    diffs[k, 1:] = current[1:] - shifted[:-1]
                else:
                    diffs[k] = current - shifted

            best = np.argmax(diffs, axis=0)
            max_diff = np.take_along_axis(diffs, best[None], axis=0)[0]
            moving = max_diff > talus_angle
            if not np.any(moving):
                break

            amount = (max_diff[moving] - talus_angle) * transfer
            target_y = ys[moving] + dys[best[moving]]
            target_x = (xs[moving] + dxs[best[moving]]) % w

            updated = current.copy()
            updated[moving] -= amount
            np.add.at(updated, (target_y, target_x), amount)
            self.data = updated

    def apply_hydraulic_erosion(self, seed: int, drops: int, erosion_power: float, max_steps: int = 30) -> None:
        """
        Simulate water droplets carving the terrain.

        Each droplet starts at a random cell and walks to its lowest
        4-neighbour, picking up sediment proportional to its speed (with 0.9
        inertia) and dropping some when it slows below 0.1. Whatever is still
        carried is deposited where the droplet stops.
        """
        h, w = self.data.shape
        rng = get_rng(seed)
        flat = self.data.ravel().tolist()

        for _ in range(drops):
            x = int(rng.integers(0, w))
            y = int(rng.integers(0, h))
            sediment = 0.0
            speed = 0.0

            for _ in range(max_steps):
                idx = y * w + x
                min_height = flat[idx]
                next_x, next_y = x, y

                for dx, dy in DIRECTIONS_4:
                    ny = y + dy
                    if ny < 0 or ny >= h:
                        continue
                    nx = (x + dx) % w
                    neighbor = flat[ny * w + nx]
                    if neighbor < min_height:
                        min_height = neighbor
                        next_x, next_y = nx, ny

                # Local minimum
                if next_x == x and next_y == y:
                    break

                speed = speed * 0.9 + (flat[idx] - min_height)
                erosion = min(speed * erosion_power, flat[idx] * 0.5)
                flat[idx] -= erosion
                sediment += erosion

                if speed < 0.1 and sediment > 0.0:
                    deposit = sediment * 0.1
                    flat[idx] += deposit
                    sediment -= deposit

                x, y = next_x, next_y

            if sediment > 0.0:
                flat[y * w + x] += sediment

        self.data = np.asarray(flat, dtype=np.float64).reshape(h, w)


def smooth_field(data: np.ndarray, radius: int) -> np.ndarray:
    """
    Two-pass box blur that respects the map topology.

    The horizontal pass wraps around the seam; the vertical pass clamps at
    the poles. Both passes are sliding-window sums, so the cost does not
    depend on the radius.

    Args:
        data: (height, width) field
        radius: Window radius in pixels (0 disables smoothing)

    Returns:
        Smoothed copy, or the input unchanged when the radius is degenerate
    """
    h, w = data.shape
    if radius <= 0 or radius >= w or radius >= h:
        return data

    size = 2 * radius + 1
    horizontal = uniform_filter1d(data, size=size, axis=1, mode="wrap")
    return uniform_filter1d(horizontal, size=size, axis=0, mode="nearest")


class HeightmapGenerator:
    """
    Generates seamless heightmaps from noise plus erosion.

    Fully deterministic: the same seed and config give the same raster.
    """

    def __init__(self, config: HeightmapConfig):
        """
        Initialize the heightmap generator.

        Args:
            config: Heightmap configuration
        """
        if config.width < MIN_MAP_DIMENSION or config.height < MIN_MAP_DIMENSION:
            raise ConfigurationError(
                f"Map must be at least {MIN_MAP_DIMENSION}x{MIN_MAP_DIMENSION}, got {config.width}x{config.height}"
            )
        self.config = config

    def generate(self, seed: int) -> Heightmap:
        """
        Run the full heightmap pipeline.

        Args:
            seed: World seed

        Returns:
            Normalized, sea-level-calibrated Heightmap
        """
        cfg = self.config
        world_type = cfg.world_type
        logger.info(
            "Generating heightmap",
            width=cfg.width,
            height=cfg.height,
            world_type=world_type.value,
        )

        base = CylindricalNoise(
            seed, world_type.noise_frequency(), octaves=world_type.noise_octaves()
        )
        data = base.sample(cfg.width, cfg.height)
        if world_type is WorldType.ARCHIPELAGO:
            data = data * data

        if cfg.island_density > 0.1:
            data = self._add_islands(seed, data)

        data = smooth_field(data, cfg.smooth_radius)
        data = np.power(np.clip(data, 0.0, None), cfg.elevation_power)

        heightmap = Heightmap(cfg.width, cfg.height, data)
        heightmap.apply_thermal_erosion(cfg.thermal_iterations, cfg.talus_angle, cfg.thermal_transfer)
        drops = (cfg.width * cfg.height) // cfg.droplet_divisor
        heightmap.apply_hydraulic_erosion(seed, drops, cfg.erosion_power, cfg.droplet_steps)

        heightmap.data = self._normalize(heightmap.data)
        offset = self._calibrate_sea_level(heightmap.data)
        heightmap.data = np.clip(heightmap.data + offset, 0.0, 1.0)

        logger.info(
            "Heightmap generated",
            offset=round(offset, 4),
            land_ratio=round(heightmap.land_ratio(cfg.sea_level), 4),
            target_land_ratio=world_type.target_land_ratio(),
        )
        return heightmap

    def _add_islands(self, seed: int, data: np.ndarray) -> np.ndarray:
        """Overlay small-island noise, weighted towards low ground."""
        islands = CylindricalNoise(derive_seed(seed, ISLAND_SEED_OFFSET), ISLAND_FREQUENCY)
        island_values = islands.sample(self.config.width, self.config.height)
        lowland = np.clip(1.0 - data, 0.0, 1.0)
        return data + island_values * self.config.island_density * 0.25 * lowland

    def _normalize(self, data: np.ndarray) -> np.ndarray:
        """Min-max normalize into [0, 1]; a flat world is left untouched."""
        min_h = float(data.min())
        max_h = float(data.max())
        if max_h <= min_h:
            logger.warning("Flat heightmap, skipping normalization", value=min_h)
            return data
        return (data - min_h) / (max_h - min_h)

    def _calibrate_sea_level(self, data: np.ndarray) -> float:
        """
        Find the offset that best matches the world type's land ratio.

        A coarse grid over [-0.5, 0.5) is followed by a finer grid around the
        best coarse candidate.

        Returns:
            Offset to add to every cell (before clamping)
        """
        target = self.config.world_type.target_land_ratio()
        sea_level = self.config.sea_level
        steps = self.config.calibration_steps
        ordered = np.sort(data, axis=None)
        n = ordered.size

        def land_ratio(offset: float) -> float:
            # h + offset > sea_level, clamping to [0, 1] does not change the count
            above = n - np.searchsorted(ordered, sea_level - offset, side="right")
            return above / n

        coarse = [i / steps - 0.5 for i in range(steps)]
        best_offset = _best_offset(coarse, land_ratio, target)

        step = 1.0 / steps
        fine = [best_offset + (i / steps - 0.5) * 2.0 * step for i in range(steps + 1)]
        return _best_offset([best_offset] + fine, land_ratio, target)


def _best_offset(candidates, land_ratio, target: float) -> float:
    best_offset = candidates[0]
    best_diff = math.inf
    for offset in candidates:
        diff = abs(land_ratio(offset) - target)
        if diff < best_diff:
            best_diff = diff
            best_offset = offset
    return best_offset


def generate_heightmap(
    seed: int,
    width: int,
    height: int,
    world_type: WorldType,
    island_density: float,
    terrain: Optional[TerrainSettings] = None,
) -> Heightmap:
    """
    Generate a seamless, eroded, calibrated heightmap.

    Args:
        seed: World seed
        width: Map width in pixels
        height: Map height in pixels
        world_type: World layout preset
        island_density: Small island density (0..1)
        terrain: Terrain settings (elevation power, smoothing radius)

    Returns:
        Heightmap with values in [0, 1]
    """
    terrain = terrain or TerrainSettings()
    config = HeightmapConfig.from_terrain(width, height, world_type, island_density, terrain)
    return HeightmapGenerator(config).generate(seed)
