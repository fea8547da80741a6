"""
Water body classification.

Below-sea-level cells connected (4-neighbour) to any map edge are ocean;
enclosed below-sea-level cells are lakes; everything else is land.
"""

from enum import IntEnum

import numpy as np
import structlog
from scipy import ndimage

from ..config.world_settings import SEA_LEVEL

logger = structlog.get_logger()

# 4-connectivity structuring element
_CROSS = ndimage.generate_binary_structure(2, 1)


class WaterType(IntEnum):
    LAND = 0
    OCEAN = 1
    LAKE = 2


def classify_water(heights: np.ndarray, sea_level: float = SEA_LEVEL) -> np.ndarray:
    """
    Classify every cell as land, ocean or lake.

    Every border cell is a flood source: the top and bottom rows for the poles
    and the first and last columns for the seam. Because both seam columns
    are sources, any water body touching the seam is already ocean, so the
    east-west wrap never changes the result and plain connected-component
    labelling is exact.

    Args:
        heights: (height, width) elevation
        sea_level: Water threshold

    Returns:
        (height, width) uint8 array of WaterType values
    """
    heights = np.asarray(heights)
    water = heights < sea_level
    labels, count = ndimage.label(water, structure=_CROSS)

    border = np.concatenate([labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]])
    ocean_labels = np.unique(border[border > 0])

    result = np.full(heights.shape, WaterType.LAND, dtype=np.uint8)
    is_ocean = np.isin(labels, ocean_labels) & water
    result[is_ocean] = WaterType.OCEAN
    result[water & ~is_ocean] = WaterType.LAKE

    logger.info(
        "Water classified",
        water_bodies=count,
        ocean_cells=int(is_ocean.sum()),
        lake_cells=int((water & ~is_ocean).sum()),
    )
    return result
