"""
Region grouping: greedy clustering of neighbouring provinces.

Regions never mix land and sea provinces, and every province ends up in
exactly one region.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import structlog

from .province_graph import ProvinceGraph
from .provinces import Province, hash_to_color

logger = structlog.get_logger()

DEFAULT_TARGET_SIZE = 8


@dataclass
class Region:
    id: int
    name: str
    color: str
    is_land: bool
    province_ids: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.province_ids)


def group_provinces_into_regions(
    provinces: List[Province],
    graph: ProvinceGraph,
    target_size: int = DEFAULT_TARGET_SIZE,
) -> List[Region]:
    """
    Group provinces into regions of up to target_size provinces.

    Provinces are visited in list order; each one not yet assigned starts a
    region, which grows breadth-first through unassigned same-type
    neighbours (lowest id first) until it is full or nothing is left to add.
    """
    if target_size < 1:
        logger.warning("Region target size below 1, using 1", target_size=target_size)
        target_size = 1

    by_id: Dict[int, Province] = {p.id: p for p in provinces}
    assigned = set()
    regions: List[Region] = []

    for province in provinces:
        if province.id in assigned:
            continue

        is_land = province.is_land
        members = [province.id]
        assigned.add(province.id)
        queue = deque([province.id])

        while len(members) < target_size and queue:
            current = queue.popleft()
            for neighbor in sorted(graph.neighbors(current)):
                other = by_id.get(neighbor)
                if other is None or neighbor in assigned or other.is_land != is_land:
                    continue
                assigned.add(neighbor)
                members.append(neighbor)
                queue.append(neighbor)
                if len(members) >= target_size:
                    break

        region_id = len(regions)
        regions.append(
            Region(
                id=region_id,
                name=f"{'Land' if is_land else 'Sea'}_{region_id}",
                color=hash_to_color(region_id),
                is_land=is_land,
                province_ids=members,
            )
        )

    logger.info(
        "Regions grouped",
        regions=len(regions),
        land_regions=sum(r.is_land for r in regions),
        target_size=target_size,
    )
    return regions


def province_to_region(regions: List[Region]) -> Dict[int, int]:
    return {pid: region.id for region in regions for pid in region.province_ids}


def build_region_map(pixel_to_id: np.ndarray, regions: List[Region]) -> np.ndarray:
    """
    Pixel -> region id raster.

    Pixels whose province belongs to no region are -1.
    """
    ids = np.asarray(pixel_to_id, dtype=np.int64)
    mapping = province_to_region(regions)
    size = max(int(ids.max(initial=-1)), max(mapping, default=-1)) + 2
    lut = np.full(size, -1, dtype=np.int32)
    for pid, rid in mapping.items():
        lut[pid] = rid
    # The final slot stays -1 so unassigned (-1) pixels map to -1
    return lut[ids]
