"""
Province adjacency graph and small province merging.

The graph has one node per live province id and an undirected edge between
two provinces that share at least one 4-connected pixel border (seam
wrapped, poles clamped). It is derived from the pixel -> province id raster
and must be rebuilt whenever that raster changes.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np
import structlog

from .provinces import Province, classify_province_type

logger = structlog.get_logger()

# Provinces smaller than this (in pixels) are merged into a neighbour
MIN_AREA_THRESHOLD = 50


@dataclass
class ProvinceGraph:
    """Undirected province adjacency, keyed by province id."""

    adjacency: Dict[int, Set[int]] = field(default_factory=dict)

    @property
    def node_ids(self) -> List[int]:
        return sorted(self.adjacency)

    def neighbors(self, province_id: int) -> Set[int]:
        return self.adjacency.get(province_id, set())

    def has_edge(self, a: int, b: int) -> bool:
        return b in self.adjacency.get(a, ())

    def edges(self) -> List[Tuple[int, int]]:
        """Each unordered pair once, as (low id, high id)."""
        return sorted((a, b) for a, ns in self.adjacency.items() for b in ns if a < b)

    def edge_count(self) -> int:
        return sum(len(ns) for ns in self.adjacency.values()) // 2

    def __contains__(self, province_id: int) -> bool:
        return province_id in self.adjacency

    def __len__(self) -> int:
        return len(self.adjacency)


def adjacent_pairs(pixel_to_id: np.ndarray) -> np.ndarray:
    """
    Distinct (low, high) province id pairs sharing a pixel border.

    Returns:
        (n, 2) int64 array of normalized pairs
    """
    ids = np.asarray(pixel_to_id, dtype=np.int64)
    horizontal = (ids, np.roll(ids, -1, axis=1))
    vertical = (ids[:-1], ids[1:])

    pairs = []
    for a, b in (horizontal, vertical):
        a = a.ravel()
        b = b.ravel()
        keep = (a != b) & (a >= 0) & (b >= 0)
        if keep.any():
            pairs.append(np.column_stack([np.minimum(a[keep], b[keep]), np.maximum(a[keep], b[keep])]))

    if not pairs:
        return np.empty((0, 2), dtype=np.int64)
    return np.unique(np.concatenate(pairs), axis=0)


def build_province_graph(pixel_to_id: np.ndarray, province_ids: Optional[Iterable[int]] = None) -> ProvinceGraph:
    """
    Build the adjacency graph from the pixel -> province id raster.

    Args:
        pixel_to_id: (height, width) province ids
        province_ids: Live province ids; every one becomes a node even if it
            has no neighbours. Defaults to the ids present in the raster.
    """
    if province_ids is None:
        ids = np.unique(np.asarray(pixel_to_id))
        province_ids = ids[ids >= 0].tolist()

    adjacency: Dict[int, Set[int]] = {int(pid): set() for pid in province_ids}
    for a, b in adjacent_pairs(pixel_to_id).tolist():
        if a in adjacency and b in adjacency:
            adjacency[a].add(b)
            adjacency[b].add(a)

    graph = ProvinceGraph(adjacency)
    logger.debug("Province graph built", nodes=len(graph), edges=graph.edge_count())
    return graph


def _absorb(large: Province, small: Province) -> None:
    """Fold small into large with area-weighted center and biome mix."""
    total = large.area + small.area
    if total == 0:
        return
    wl = large.area / total
    ws = small.area / total

    large.center = (
        large.center[0] * wl + small.center[0] * ws,
        large.center[1] * wl + small.center[1] * ws,
    )
    mixed = {biome: share * wl for biome, share in large.biomes.items()}
    for biome, share in small.biomes.items():
        mixed[biome] = mixed.get(biome, 0.0) + share * ws
    large.biomes = mixed
    large.coastal = large.coastal or small.coastal
    large.area = total
    large.province_type = classify_province_type(large.is_land, large.coastal, large.area)


def merge_small_provinces(
    provinces: List[Province],
    pixel_to_id: np.ndarray,
    graph: Optional[ProvinceGraph] = None,
    min_area: int = MIN_AREA_THRESHOLD,
) -> Tuple[List[Province], np.ndarray, ProvinceGraph]:
    """
    Merge provinces below min_area into their largest same-type neighbour.

    The smallest candidate is handled first (ties by id). A province without
    a same-type neighbour is left as it is and the next candidate is tried;
    the loop ends when no candidate can be merged. Absorbed ids disappear from
    the province list and from the raster; absorbing provinces are updated
    in place.

    Returns:
        Tuple of (provinces, pixel_to_id, graph) where graph is rebuilt from
        the updated raster
    """
    if graph is None:
        graph = build_province_graph(pixel_to_id, [p.id for p in provinces])

    by_id: Dict[int, Province] = {p.id: p for p in provinces}
    adjacency = {pid: set(ns) & by_id.keys() for pid, ns in graph.adjacency.items() if pid in by_id}
    for pid in by_id:
        adjacency.setdefault(pid, set())

    max_id = max(by_id, default=-1)
    lut = np.arange(max_id + 2, dtype=np.int64)
    unmergeable: Set[int] = set()
    merged = 0

    while True:
        candidates = [p for p in by_id.values() if p.area < min_area and p.id not in unmergeable]
        if not candidates:
            break
        small = min(candidates, key=lambda p: (p.area, p.id))

        options = [
            by_id[n] for n in adjacency[small.id] if n in by_id and by_id[n].is_land == small.is_land
        ]
        if not options:
            unmergeable.add(small.id)
            continue
        large = max(options, key=lambda p: (p.area, -p.id))

        _absorb(large, small)

        for n in adjacency.pop(small.id):
            adjacency[n].discard(small.id)
            if n != large.id:
                adjacency[n].add(large.id)
                adjacency[large.id].add(n)

        lut[small.id] = large.id
        del by_id[small.id]
        merged += 1

    # Follow merge chains (a -> b -> c) to their final id
    while True:
        resolved = lut[lut]
        if np.array_equal(resolved, lut):
            break
        lut = resolved

    ids = np.asarray(pixel_to_id, dtype=np.int64)
    # Index -1 maps to the last, unused lut slot, which keeps it -1
    lut[-1] = -1
    remapped = lut[ids].astype(np.int32)

    survivors = [p for p in provinces if p.id in by_id]
    new_graph = build_province_graph(remapped, [p.id for p in survivors])

    if unmergeable:
        logger.warning("Small provinces without a same-type neighbour", count=len(unmergeable))
    logger.info("Small provinces merged", merged=merged, remaining=len(survivors))
    return survivors, remapped, new_graph
