"""
Hydrology system for drainage and river rendering.

This module implements:
- Steepest-descent drainage over the 8-neighbourhood (seam-wrapped)
- Flow accumulation processed from the highest cell to the lowest
- Biome effects: ice blocks flow, deserts evaporate half of it, oceans absorb it
- River raster rendering with flow-dependent width
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog
from scipy import ndimage

from .biomes import OCEAN_BIOMES, Biome

logger = structlog.get_logger()

# Neighbour scan order; the first strictly lowest neighbour wins ties
DIRECTIONS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))


@dataclass
class HydrologyOptions:
    """River model parameters."""

    flow_threshold: float = 400.0  # Minimum flow for a visible river
    max_flow_thickness: float = 3000.0  # Flow at which rivers reach full width
    max_thickness: float = 5.0  # Widest river radius in pixels
    desert_flow_loss: float = 0.5  # Share of flow kept when leaving a desert cell
    width_scale: str = "linear"  # "linear" or "log"


@dataclass
class RiverMap:
    """River raster (0 = no river, 255 = river) plus the raw accumulated flow."""

    width: int
    height: int
    data: np.ndarray  # (height, width) uint8
    flow: np.ndarray  # (height, width) float64

    def river_cells(self) -> int:
        return int(np.count_nonzero(self.data))


class Hydrology:
    """Computes drainage and renders rivers for one heightmap."""

    def __init__(self, heights: np.ndarray, biomes: np.ndarray, options: Optional[HydrologyOptions] = None):
        """
        Initialize hydrology calculator.

        Args:
            heights: (height, width) elevation
            biomes: (height, width) Biome values
            options: River model parameters
        """
        self.heights = np.asarray(heights, dtype=np.float64)
        self.biomes = np.asarray(biomes)
        if self.heights.shape != self.biomes.shape:
            raise ValueError(f"Heightmap {self.heights.shape} and biome map {self.biomes.shape} differ in shape")
        self.height, self.width = self.heights.shape
        self.options = options or HydrologyOptions()

        self.flow = None

    def downhill_receivers(self) -> np.ndarray:
        """
        Flat index of each cell's steepest downhill neighbour, -1 for sinks.

        Columns wrap around the seam; rows stop at the poles.
        """
        h, w = self.height, self.width
        neighbour_heights = np.full((len(DIRECTIONS), h, w), np.inf)
        neighbour_index = np.full((len(DIRECTIONS), h, w), -1, dtype=np.int64)
        index = np.arange(h * w, dtype=np.int64).reshape(h, w)

        for k, (dx, dy) in enumerate(DIRECTIONS):
            shifted_heights = np.roll(self.heights, -dx, axis=1)
            shifted_index = np.roll(index, -dx, axis=1)
            if dy == 0:
                neighbour_heights[k] = shifted_heights
                neighbour_index[k] = shifted_index
            elif dy > 0:
                neighbour_heights[k, :-1] = shifted_heights[1:]
                neighbour_index[k, :-1] = shifted_index[1:]
            else:
                neighbour_heights[k, 1:] = shifted_heights[:-1]
                neighbour_index[k, 1:] = shifted_index[:-1]

        # argmin keeps the first direction among equal minima
        best = np.argmin(neighbour_heights, axis=0)
        lowest = np.take_along_axis(neighbour_heights, best[None], axis=0)[0]
        receivers = np.take_along_axis(neighbour_index, best[None], axis=0)[0]
        receivers[lowest >= self.heights] = -1
        return receivers.ravel()

    def accumulate_flow(self) -> np.ndarray:
        """
        Route one unit of water per cell downhill, highest cells first.

        Returns:
            (height, width) accumulated flow; ice cells hold 0
        """
        logger.info("Accumulating flow")
        opts = self.options
        receivers = self.downhill_receivers().tolist()
        biomes = self.biomes.ravel().tolist()
        order = np.argsort(-self.heights.ravel(), kind="stable").tolist()
        flow = [1.0] * (self.width * self.height)

        ice = int(Biome.ICE)
        desert = int(Biome.DESERT)
        oceans = {int(b) for b in OCEAN_BIOMES}

        for idx in order:
            biome = biomes[idx]
            if biome == ice:
                flow[idx] = 0.0
                continue
            if biome in oceans:
                # Oceans collect runoff but do not pass it on
                continue
            target = receivers[idx]
            if target < 0:
                continue
            keep = opts.desert_flow_loss if biome == desert else 1.0
            flow[target] += flow[idx] * keep

        self.flow = np.array(flow, dtype=np.float64).reshape(self.height, self.width)
        return self.flow

    def river_thickness(self, flow: np.ndarray) -> np.ndarray:
        """Rounded river radius in pixels for each flow value above the threshold."""
        opts = self.options
        flow = np.asarray(flow, dtype=np.float64)
        if opts.width_scale == "log":
            span = math.log(opts.max_flow_thickness / opts.flow_threshold)
            scaled = np.log(np.maximum(flow, opts.flow_threshold) / opts.flow_threshold) / span
        else:
            scaled = flow / opts.max_flow_thickness
        return np.rint(np.minimum(1.0 + scaled * 4.0, opts.max_thickness)).astype(np.int64)

    def render_rivers(self, flow: Optional[np.ndarray] = None) -> RiverMap:
        """
        Draw every river cell as a filled disk sized by its flow.

        Only cells above the flow threshold that are neither ice nor ocean
        start a disk; disks wrap across the seam.
        """
        opts = self.options
        if flow is None:
            flow = self.flow if self.flow is not None else self.accumulate_flow()

        blocked = np.isin(self.biomes, [int(Biome.ICE)] + [int(b) for b in OCEAN_BIOMES])
        sources = (flow > opts.flow_threshold) & ~blocked
        radii = np.zeros(flow.shape, dtype=np.int64)
        radii[sources] = self.river_thickness(flow[sources])

        rivers = np.zeros((self.height, self.width), dtype=bool)
        for radius in np.unique(radii[sources]).tolist():
            centers = radii == radius
            rivers |= _dilate_wrapped(centers, radius)

        data = np.where(rivers, 255, 0).astype(np.uint8)
        logger.info("Rivers rendered", river_sources=int(sources.sum()), river_cells=int(rivers.sum()))
        return RiverMap(width=self.width, height=self.height, data=data, flow=flow)


def _disk(radius: int) -> np.ndarray:
    span = np.arange(-radius, radius + 1)
    return (span[None, :] ** 2 + span[:, None] ** 2) <= radius * radius


def _dilate_wrapped(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    Binary dilation by a disk, wrapping columns and clipping rows.

    The wrapped padding holds copies of the cells across the seam, so their
    disks reach into the visible columns without any folding back.
    """
    if radius <= 0:
        return mask.copy()
    width = mask.shape[1]
    padded = np.pad(mask, ((0, 0), (radius, radius)), mode="wrap")
    grown = ndimage.binary_dilation(padded, structure=_disk(radius))
    return grown[:, radius : radius + width]


def generate_rivers(
    heights: np.ndarray, biomes: np.ndarray, options: Optional[HydrologyOptions] = None
) -> RiverMap:
    """Accumulate flow and render the river raster."""
    hydrology = Hydrology(heights, biomes, options)
    flow = hydrology.accumulate_flow()
    return hydrology.render_rivers(flow)
