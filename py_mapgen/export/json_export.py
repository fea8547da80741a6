"""
JSON export of generated worlds.

Biome keys are turned into display names here and nowhere else.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import structlog

from ..core.biomes import BIOME_NAMES
from ..core.pipeline import GeneratedWorld
from ..core.provinces import Province
from ..core.regions import Region
from ..core.strategic import StrategicPoint

logger = structlog.get_logger()


def province_to_dict(province: Province) -> Dict[str, Any]:
    return {
        "id": province.id,
        "name": province.name,
        "color": province.color,
        "center": [round(province.center[0], 2), round(province.center[1], 2)],
        "area": province.area,
        "type": province.province_type.value,
        "coastal": province.coastal,
        "biomes": {
            BIOME_NAMES[biome]: round(share, 4)
            for biome, share in sorted(province.biomes.items(), key=lambda item: -item[1])
        },
    }


def region_to_dict(region: Region) -> Dict[str, Any]:
    return {
        "id": region.id,
        "name": region.name,
        "color": region.color,
        "province_ids": list(region.province_ids),
    }


def strategic_point_to_dict(point: StrategicPoint) -> Dict[str, Any]:
    return {"kind": point.kind.value, "province_id": point.province_id}


def world_to_dict(world: GeneratedWorld) -> Dict[str, Any]:
    """Effective parameters and summary statistics."""
    params = world.params.model_dump(mode="json")
    params["terrain"] = world.params.effective_terrain().model_dump(mode="json")
    params["climate"] = world.params.effective_climate().model_dump(mode="json")
    return {"params": params, "stats": world.stats()}


def _write(path: Path, payload: Union[List, Dict]) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    return path


def export_json(world: GeneratedWorld, output_dir: Union[str, Path]) -> List[Path]:
    """
    Write provinces.json, regions.json, strategic_points.json and world.json.

    Returns:
        Paths of the written files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = [
        _write(output_dir / "provinces.json", [province_to_dict(p) for p in world.provinces]),
        _write(output_dir / "regions.json", [region_to_dict(r) for r in world.regions]),
        _write(
            output_dir / "strategic_points.json",
            [strategic_point_to_dict(p) for p in world.strategic_points],
        ),
        _write(output_dir / "world.json", world_to_dict(world)),
    ]
    logger.info("JSON exported", output_dir=str(output_dir), files=len(written))
    return written
