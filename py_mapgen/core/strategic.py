"""
Strategic point detection for land provinces.

A coastal province with a river is an estuary, any other coastal province
is a port, and an inland province with mountains is a pass. Each province
gets at most one classification.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

import numpy as np
import structlog

from .biomes import MOUNTAIN_BIOMES
from .provinces import Province

logger = structlog.get_logger()


class StrategicPointKind(str, Enum):
    PORT = "Port"
    ESTUARY = "Estuary"
    PASS = "Pass"
    # Reserved; nothing classifies provinces as straits yet
    STRAIT = "Strait"


@dataclass(frozen=True)
class StrategicPoint:
    kind: StrategicPointKind
    province_id: int


def _province_flags(pixel_to_id: np.ndarray, mask: np.ndarray) -> set:
    """Ids of provinces with at least one pixel where mask is set."""
    ids = np.unique(np.asarray(pixel_to_id)[np.asarray(mask, dtype=bool)])
    return set(ids[ids >= 0].tolist())


def find_strategic_points(
    provinces: List[Province],
    rivers: np.ndarray,
    biomes: np.ndarray,
    pixel_to_id: np.ndarray,
) -> List[StrategicPoint]:
    """
    Classify land provinces as estuary, port or pass.

    Args:
        provinces: Live provinces
        rivers: (height, width) river raster, non-zero where a river is drawn
        biomes: (height, width) Biome values
        pixel_to_id: (height, width) province ids

    Returns:
        Strategic points in province order
    """
    with_river = _province_flags(pixel_to_id, np.asarray(rivers) > 0)
    with_mountain = _province_flags(pixel_to_id, np.isin(biomes, [int(b) for b in MOUNTAIN_BIOMES]))

    points = []
    for province in provinces:
        if not province.is_land:
            continue
        if province.coastal and province.id in with_river:
            kind = StrategicPointKind.ESTUARY
        elif province.coastal:
            kind = StrategicPointKind.PORT
        elif province.id in with_mountain:
            kind = StrategicPointKind.PASS
        else:
            continue
        points.append(StrategicPoint(kind=kind, province_id=province.id))

    logger.info(
        "Strategic points found",
        total=len(points),
        **{kind.value.lower(): sum(p.kind is kind for p in points) for kind in StrategicPointKind},
    )
    return points
