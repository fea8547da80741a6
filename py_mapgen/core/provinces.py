"""
Province generation from weighted seeds.

This module implements:
- Land seed placement by stratified sampling over a habitability ranking
- Sea seed placement by random sampling of ocean cells
- Multi-source flood fill growth restricted to the seed's surface type
- Province statistics (area, centroid, biome composition, coastal flag)
- Nearest-centroid assignment of pixels the flood fill never reached

Provinces are kept in a list indexed by id; the pixel -> province id raster
is the only link between pixels and provinces.
"""

import hashlib
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

import numpy as np
import structlog
from scipy.spatial import cKDTree

from ..utils.random import get_rng
from .biomes import Biome
from .features import WaterType

logger = structlog.get_logger()

# Neighbour order for flood fill growth (dx, dy)
DIRECTIONS_4 = ((0, 1), (1, 0), (0, -1), (-1, 0))

# Coastal land provinces smaller than this are islands
ISLAND_MAX_AREA = 500

# Share of provinces placed on land by default
LAND_PROVINCE_SHARE = 0.7

# Habitability weight of each biome for land seed ranking
_SEED_HUMIDITY = {
    Biome.SWAMP: 1.0,
    Biome.TROPICAL_RAINFOREST: 1.0,
    Biome.GRASSLAND: 0.7,
    Biome.TEMPERATE_FOREST: 0.7,
}
_DEFAULT_SEED_HUMIDITY = 0.3


class ProvinceType(str, Enum):
    CONTINENTAL = "continental"
    ISLAND = "island"
    OCEANIC = "oceanic"


@dataclass
class ProvinceSeed:
    """Starting pixel of a province."""

    x: int
    y: int
    weight: float
    is_land: bool


@dataclass
class Province:
    """A contiguous administrative area of one surface type."""

    id: int
    is_land: bool
    province_type: ProvinceType = ProvinceType.CONTINENTAL
    coastal: bool = False
    center: Tuple[float, float] = (0.0, 0.0)
    area: int = 0
    biomes: Dict[Biome, float] = field(default_factory=dict)
    name: str = ""
    color: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = f"Prov_{self.id}"
        if not self.color:
            self.color = hash_to_color(self.id)
        if not self.is_land:
            self.province_type = ProvinceType.OCEANIC


def hash_to_color(value: int) -> str:
    """
    Deterministic display color for an id.

    Each channel lies in 50..205 so colors stay clear of black and white.
    """
    digest = hashlib.blake2b(int(value).to_bytes(8, "little", signed=False), digest_size=8).digest()
    h = int.from_bytes(digest, "little")
    r = (h >> 16) % 156 + 50
    g = (h >> 8) % 156 + 50
    b = h % 156 + 50
    return f"#{r:02x}{g:02x}{b:02x}"


def classify_province_type(is_land: bool, coastal: bool, area: int) -> ProvinceType:
    if not is_land:
        return ProvinceType.OCEANIC
    if coastal and area < ISLAND_MAX_AREA:
        return ProvinceType.ISLAND
    return ProvinceType.CONTINENTAL


def split_province_counts(total_provinces: int, land_ratio: float) -> Tuple[int, int]:
    """
    Split the requested province count into (land, sea).

    70% of provinces go to land and each side gets at least one; on mostly
    water worlds (land ratio below 0.3) the split becomes half and half.
    """
    total = max(int(total_provinces), 0)
    num_land = int(total * LAND_PROVINCE_SHARE + 0.5)
    num_sea = max(total - num_land, 0)
    num_land = max(num_land, 1)
    num_sea = max(num_sea, 1)

    if land_ratio < 0.3:
        num_sea = int(total * 0.5 + 0.5)
        num_land = max(total - num_sea, 0)

    return num_land, num_sea


def seed_weights(heights: np.ndarray, biomes: np.ndarray) -> np.ndarray:
    """Land seed ranking weight: moderate elevation and humid biomes score high."""
    humidity = np.full(biomes.shape, _DEFAULT_SEED_HUMIDITY, dtype=np.float64)
    for biome, value in _SEED_HUMIDITY.items():
        humidity[biomes == biome] = value
    closeness = 1.0 - np.abs(heights)
    return closeness * closeness * humidity


def generate_province_seeds(
    heights: np.ndarray,
    biomes: np.ndarray,
    water: np.ndarray,
    num_land: int,
    num_sea: int,
    seed: int,
) -> List[ProvinceSeed]:
    """
    Place province seeds, land seeds first.

    Land candidates are ranked by weight (descending, stable) and num_land
    seeds are taken at an even stride through the ranking, which spreads
    seeds over the whole range instead of clustering them at the top.
    Sea seeds are drawn from ocean cells without replacement.

    When a surface type is present but was given no seeds, it still gets one
    so that every pixel can be reached by a same-type province.
    """
    heights = np.asarray(heights, dtype=np.float64)
    biomes = np.asarray(biomes)
    water = np.asarray(water)
    width = heights.shape[1]

    land_flat = np.flatnonzero(water.ravel() == WaterType.LAND)
    ocean_flat = np.flatnonzero(water.ravel() == WaterType.OCEAN)

    if len(land_flat) and num_land <= 0:
        logger.warning("No land provinces requested, placing one", land_cells=len(land_flat))
        num_land = 1
    if len(ocean_flat) and num_sea <= 0:
        logger.warning("No sea provinces requested, placing one", ocean_cells=len(ocean_flat))
        num_sea = 1

    seeds: List[ProvinceSeed] = []

    if len(land_flat) and num_land > 0:
        weights = seed_weights(heights.ravel()[land_flat], biomes.ravel()[land_flat])
        order = np.argsort(-weights, kind="stable")
        step = (len(order) - 1) // num_land
        for i in range(num_land):
            rank = min(i * step, len(order) - 1)
            flat = int(land_flat[order[rank]])
            y, x = divmod(flat, width)
            seeds.append(ProvinceSeed(x=x, y=y, weight=float(weights[order[rank]]), is_land=True))
    elif num_land > 0:
        logger.warning("No land cells for province seeds", requested=num_land)

    if len(ocean_flat) and num_sea > 0:
        rng = get_rng(seed)
        count = min(num_sea, len(ocean_flat))
        picks = rng.choice(len(ocean_flat), size=count, replace=False)
        for pick in picks.tolist():
            y, x = divmod(int(ocean_flat[pick]), width)
            seeds.append(ProvinceSeed(x=x, y=y, weight=0.5, is_land=False))
    elif num_sea > 0:
        logger.warning("No ocean cells for province seeds", requested=num_sea)

    logger.info("Province seeds placed", land=sum(s.is_land for s in seeds), sea=sum(not s.is_land for s in seeds))
    return seeds


def generate_provinces_from_seeds(
    heights: np.ndarray,
    biomes: np.ndarray,
    water: np.ndarray,
    seeds: List[ProvinceSeed],
) -> Tuple[List[Province], np.ndarray]:
    """
    Grow provinces from their seeds and label every pixel.

    All seeds grow together through one FIFO queue, so a pixel reachable from
    two seeds in the same number of steps goes to the seed listed first.
    A province only absorbs pixels of its own surface type (land vs
    non-land). Columns wrap across the seam; rows clamp at the poles.

    Pixels left unreached (lakes cut off from the ocean, land pockets with
    no land seed) are assigned afterwards to the province with the nearest
    centroid, which adds to that province's area.

    Returns:
        Tuple of (provinces, pixel_to_id) where pixel_to_id is a
        (height, width) int32 array
    """
    heights = np.asarray(heights)
    biomes = np.asarray(biomes)
    water = np.asarray(water)
    height, width = heights.shape
    total = width * height

    is_land_px = (water.ravel() == WaterType.LAND).tolist()
    ids = [-1] * total
    provinces: List[Province] = []
    queue = deque()

    # Step 1: one province per distinct, in-bounds seed pixel
    for seed in seeds:
        x, y = int(seed.x), int(seed.y)
        if not (0 <= x < width and 0 <= y < height):
            logger.warning("Province seed outside map, skipped", x=x, y=y)
            continue
        idx = y * width + x
        if ids[idx] >= 0:
            logger.debug("Duplicate province seed skipped", x=x, y=y)
            continue
        pid = len(provinces)
        ids[idx] = pid
        provinces.append(Province(id=pid, is_land=seed.is_land))
        queue.append(idx)

    # Step 2: flood fill
    land_of = [p.is_land for p in provinces]
    last_row = height - 1
    while queue:
        idx = queue.popleft()
        pid = ids[idx]
        wants_land = land_of[pid]
        y, x = divmod(idx, width)
        for dx, dy in DIRECTIONS_4:
            nx = (x + dx) % width
            ny = min(max(y + dy, 0), last_row)
            nidx = ny * width + nx
            if ids[nidx] < 0 and is_land_px[nidx] == wants_land:
                ids[nidx] = pid
                queue.append(nidx)

    pixel_to_id = np.array(ids, dtype=np.int32).reshape(height, width)

    # Step 3: statistics over the grown area
    _finalize_provinces(provinces, pixel_to_id, biomes, water)

    # Step 4: gap filling by nearest centroid
    missing = pixel_to_id < 0
    if missing.any() and provinces:
        _fill_gaps(provinces, pixel_to_id, missing)

    logger.info(
        "Provinces generated",
        provinces=len(provinces),
        land=sum(p.is_land for p in provinces),
        gap_filled=int(missing.sum()),
    )
    return provinces, pixel_to_id


def coastal_pixels(water: np.ndarray) -> np.ndarray:
    """Land pixels with at least one non-land 4-neighbour (seam wrapped, poles clamped)."""
    land = np.asarray(water) == WaterType.LAND
    not_land = ~land
    touches = np.roll(not_land, 1, axis=1) | np.roll(not_land, -1, axis=1)
    touches[1:] |= not_land[:-1]
    touches[:-1] |= not_land[1:]
    return land & touches


def _finalize_provinces(
    provinces: List[Province], pixel_to_id: np.ndarray, biomes: np.ndarray, water: np.ndarray
) -> None:
    """Compute area, centroid, biome fractions, coastal flag and type from the id raster."""
    count = len(provinces)
    if count == 0:
        return

    height, width = pixel_to_id.shape
    ids = pixel_to_id.ravel()
    assigned = ids >= 0
    pid = ids[assigned]
    ys, xs = np.divmod(np.flatnonzero(assigned), width)

    areas = np.bincount(pid, minlength=count)
    sum_x = np.bincount(pid, weights=xs, minlength=count)
    sum_y = np.bincount(pid, weights=ys, minlength=count)

    n_biomes = len(Biome)
    biome_counts = np.bincount(
        pid * n_biomes + biomes.ravel()[assigned].astype(np.int64), minlength=count * n_biomes
    ).reshape(count, n_biomes)

    coast = coastal_pixels(water).ravel()[assigned]
    coastal_counts = np.bincount(pid, weights=coast.astype(np.float64), minlength=count)

    for province in provinces:
        i = province.id
        area = int(areas[i])
        province.area = area
        if area == 0:
            continue
        province.center = (float(sum_x[i] / area), float(sum_y[i] / area))
        province.biomes = {
            Biome(b): float(c) / area for b, c in enumerate(biome_counts[i].tolist()) if c > 0
        }
        province.coastal = bool(province.is_land and coastal_counts[i] > 0)
        province.province_type = classify_province_type(province.is_land, province.coastal, area)


def _fill_gaps(provinces: List[Province], pixel_to_id: np.ndarray, missing: np.ndarray) -> None:
    centers = np.array([p.center for p in provinces], dtype=np.float64)
    tree = cKDTree(centers)
    ys, xs = np.nonzero(missing)
    _, nearest = tree.query(np.column_stack([xs, ys]).astype(np.float64))
    nearest = np.asarray(nearest, dtype=np.int32)
    pixel_to_id[ys, xs] = nearest

    added = np.bincount(nearest, minlength=len(provinces))
    for province in provinces:
        province.area += int(added[province.id])
