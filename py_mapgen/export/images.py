"""
PNG rendering of world rasters.

Each render function returns a PIL image; export_images writes the full set
for a generated world.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Union

import numpy as np
import structlog
from PIL import Image

from ..core.biomes import BIOME_COLOR_TABLE
from ..core.heightmap_generator import Heightmap
from ..core.pipeline import GeneratedWorld

logger = structlog.get_logger()

# Pixels outside any province or region
BACKGROUND = (0, 0, 0)
REGION_BACKGROUND = (20, 20, 60)


class RasterShapeError(ValueError):
    """Raised when a raster buffer does not match the expected map size."""


def _check_shape(name: str, array: np.ndarray, width: int, height: int) -> np.ndarray:
    array = np.asarray(array)
    if array.size != width * height:
        raise RasterShapeError(
            f"{name} raster has {array.size} cells, expected {width}x{height}={width * height}"
        )
    return array.reshape(height, width)


def hex_to_rgb(color: str) -> tuple:
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex color: {color!r}")
    return tuple(int(value[i : i + 2], 16) for i in (0, 2, 4))


def _palette_image(ids: np.ndarray, colors: Dict[int, str], background: Sequence[int]) -> Image.Image:
    """Paint an id raster through an id -> hex color table."""
    ids = np.asarray(ids, dtype=np.int64)
    size = max(int(ids.max(initial=-1)), max(colors, default=-1)) + 2
    table = np.tile(np.array(background, dtype=np.uint8), (size, 1))
    for key, color in colors.items():
        table[key] = hex_to_rgb(color)
    # -1 indexes the final slot, which keeps the background color
    return Image.fromarray(table[ids])


def render_heightmap(heightmap: Heightmap) -> Image.Image:
    gray = _check_shape("heightmap", heightmap.to_grayscale_image(), heightmap.width, heightmap.height)
    return Image.fromarray(gray)


def render_normals(heightmap: Heightmap, height_scale: float = 50.0) -> Image.Image:
    return Image.fromarray(heightmap.generate_normals(height_scale))


def render_biomes(biomes: np.ndarray, width: int, height: int) -> Image.Image:
    biomes = _check_shape("biome", biomes, width, height)
    return Image.fromarray(BIOME_COLOR_TABLE[biomes.astype(np.int64)])


def render_rivers(rivers: np.ndarray, width: int, height: int) -> Image.Image:
    rivers = _check_shape("river", rivers, width, height)
    return Image.fromarray(rivers.astype(np.uint8))


def render_provinces(pixel_to_id: np.ndarray, provinces: Iterable, width: int, height: int) -> Image.Image:
    ids = _check_shape("province", pixel_to_id, width, height)
    return _palette_image(ids, {p.id: p.color for p in provinces}, BACKGROUND)


def render_regions(region_map: np.ndarray, regions: Iterable, width: int, height: int) -> Image.Image:
    ids = _check_shape("region", region_map, width, height)
    return _palette_image(ids, {r.id: r.color for r in regions}, REGION_BACKGROUND)


def export_images(world: GeneratedWorld, output_dir: Union[str, Path]) -> List[Path]:
    """
    Write heightmap, normals, biomes, rivers, provinces and regions PNGs.

    Raises:
        RasterShapeError: if any raster does not match the world size
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    w, h = world.width, world.height

    images = {
        "heightmap.png": render_heightmap(world.heightmap),
        "normals.png": render_normals(world.heightmap),
        "biomes.png": render_biomes(world.biomes, w, h),
        "rivers.png": render_rivers(world.rivers.data, w, h),
        "provinces.png": render_provinces(world.pixel_to_id, world.provinces, w, h),
        "regions.png": render_regions(world.region_map, world.regions, w, h),
    }

    written = []
    for name, image in images.items():
        path = output_dir / name
        image.save(path)
        written.append(path)

    logger.info("Images exported", output_dir=str(output_dir), files=len(written))
    return written
