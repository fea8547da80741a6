"""
Coherent noise sampling for seamless world maps.

This module implements:
- Cylindrical 3D noise sampling so the map wraps east-west without a seam
- Fractal Brownian motion (fBm) octave stacking
- Stateless 2D dither noise for softening biome boundaries

The map's x axis is wrapped around a cylinder:
    (x, y) -> (r*cos(theta), y, r*sin(theta)),  theta = 2*pi*x/width,  r = width/(2*pi)
so x=0 and x=width map to the same point in noise space.

Whole-map sampling runs in numba kernels, one row per parallel iteration,
calling the jitted OpenSimplex primitives directly.
"""

import math
from functools import lru_cache
from typing import Tuple

import numpy as np
from numba import njit, prange
from opensimplex.internals import _init, _noise2, _noise3

# Default frequency of the biome dither noise
DITHER_FREQUENCY = 0.01


@lru_cache(maxsize=32)
def _permutation_tables(seed: int) -> Tuple[np.ndarray, np.ndarray]:
    """OpenSimplex permutation tables per seed; read-only once built."""
    return _init(seed)


def cylindrical_coordinates(width: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Noise-space x/z coordinates for every map column.

    Args:
        width: Map width in pixels

    Returns:
        Tuple of (cx, cz) arrays of length width
    """
    radius = width / (2.0 * math.pi)
    angles = np.arange(width, dtype=np.float64) / width * 2.0 * math.pi
    return radius * np.cos(angles), radius * np.sin(angles)


@njit(cache=True, parallel=True)
def _fbm_cylinder(cx, cz, height, frequency, octaves, lacunarity, gain, bounding, perm, perm_grad_index3):
    width = cx.size
    output = np.empty((height, width), dtype=np.float64)
    for y in prange(height):
        for x in range(width):
            value = 0.0
            amplitude = 1.0
            freq = frequency
            for _ in range(octaves):
                value += amplitude * _noise3(cx[x] * freq, y * freq, cz[x] * freq, perm, perm_grad_index3)
                amplitude *= gain
                freq *= lacunarity
            output[y, x] = (value * bounding + 1.0) * 0.5
    return output


@njit(cache=True, parallel=True)
def _noise2_grid(width, height, frequency, perm):
    output = np.empty((height, width), dtype=np.float64)
    for y in prange(height):
        fy = y * frequency
        for x in range(width):
            output[y, x] = _noise2(x * frequency, fy, perm)
    return output


class CylindricalNoise:
    """Seeded fBm noise sampled on a cylinder wrapped around the map's x axis."""

    def __init__(
        self,
        seed: int,
        frequency: float,
        octaves: int = 1,
        lacunarity: float = 2.0,
        gain: float = 0.5,
    ):
        """
        Args:
            seed: Noise seed
            frequency: Base frequency applied to noise-space coordinates
            octaves: Number of fBm octaves (1 = plain noise)
            lacunarity: Frequency multiplier per octave
            gain: Amplitude multiplier per octave
        """
        self.seed = seed
        self.frequency = frequency
        self.octaves = max(1, int(octaves))
        self.lacunarity = lacunarity
        self.gain = gain

        # Normalise the octave sum back into [-1, 1]
        amplitude = 1.0
        total = 0.0
        for _ in range(self.octaves):
            total += amplitude
            amplitude *= gain
        self._bounding = 1.0 / total

    def sample(self, width: int, height: int) -> np.ndarray:
        """
        Sample the full map.

        Returns:
            (height, width) float64 array mapped into [0, 1]
        """
        cx, cz = cylindrical_coordinates(width)
        perm, perm_grad_index3 = _permutation_tables(self.seed)
        return _fbm_cylinder(
            cx,
            cz,
            height,
            float(self.frequency),
            self.octaves,
            float(self.lacunarity),
            float(self.gain),
            self._bounding,
            perm,
            perm_grad_index3,
        )


def dither_noise(seed: int, x: float, y: float, frequency: float = DITHER_FREQUENCY) -> float:
    """
    Pure 2D noise value in [-1, 1] for biome boundary dithering.

    Same (seed, x, y) always gives the same value.
    """
    perm, _ = _permutation_tables(seed)
    return _noise2(x * frequency, y * frequency, perm)


def dither_field(seed: int, width: int, height: int, frequency: float = DITHER_FREQUENCY) -> np.ndarray:
    """Dither noise for every pixel as a (height, width) array in [-1, 1]."""
    perm, _ = _permutation_tables(seed)
    return _noise2_grid(width, height, float(frequency), perm)
