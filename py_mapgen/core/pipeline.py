"""
Full world generation pipeline.

Runs every stage in order (heightmap, climate, biomes, water, rivers,
provinces, merging, regions, strategic points) and collects the results in
a GeneratedWorld.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import structlog

from ..config.world_settings import SEA_LEVEL, WorldGenerationParams
from .biomes import assign_biomes, biome_fractions
from .climate import calculate_humidity, generate_climate_maps
from .features import WaterType, classify_water
from .heightmap_generator import Heightmap, generate_heightmap
from .hydrology import HydrologyOptions, RiverMap, generate_rivers
from .province_graph import ProvinceGraph, build_province_graph, merge_small_provinces
from .provinces import (
    Province,
    generate_province_seeds,
    generate_provinces_from_seeds,
    split_province_counts,
)
from .regions import Region, build_region_map, group_provinces_into_regions
from .strategic import StrategicPoint, StrategicPointKind, find_strategic_points

logger = structlog.get_logger()


@dataclass
class GeneratedWorld:
    """Every raster and entity produced for one world."""

    params: WorldGenerationParams
    heightmap: Heightmap
    temperature: np.ndarray
    winds: np.ndarray
    humidity: np.ndarray
    biomes: np.ndarray
    water: np.ndarray
    rivers: RiverMap
    provinces: List[Province]
    pixel_to_id: np.ndarray
    graph: ProvinceGraph
    regions: List[Region]
    region_map: np.ndarray
    strategic_points: List[StrategicPoint]
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.heightmap.width

    @property
    def height(self) -> int:
        return self.heightmap.height

    def province(self, province_id: int) -> Optional[Province]:
        for province in self.provinces:
            if province.id == province_id:
                return province
        return None

    def stats(self) -> Dict[str, Any]:
        """Summary counts for logs and exports."""
        total = self.water.size
        return {
            "seed": self.params.seed,
            "width": self.width,
            "height": self.height,
            "world_type": self.params.world_type.value,
            "land_ratio": round(self.heightmap.land_ratio(SEA_LEVEL), 4),
            "ocean_ratio": round(float(np.count_nonzero(self.water == WaterType.OCEAN)) / total, 4),
            "lake_ratio": round(float(np.count_nonzero(self.water == WaterType.LAKE)) / total, 4),
            "river_cells": self.rivers.river_cells(),
            "provinces": len(self.provinces),
            "land_provinces": sum(p.is_land for p in self.provinces),
            "sea_provinces": sum(not p.is_land for p in self.provinces),
            "regions": len(self.regions),
            "strategic_points": {
                kind.value: sum(p.kind is kind for p in self.strategic_points)
                for kind in StrategicPointKind
            },
            "biomes": {b.name: round(share, 4) for b, share in biome_fractions(self.biomes).items()},
            "timings": {name: round(seconds, 3) for name, seconds in self.timings.items()},
        }


class WorldGenerator:
    """Generates a complete world from WorldGenerationParams."""

    def __init__(self, params: WorldGenerationParams, hydrology_options: Optional[HydrologyOptions] = None):
        self.params = params
        self.hydrology_options = hydrology_options or HydrologyOptions()
        self.timings: Dict[str, float] = {}

    @contextmanager
    def _stage(self, name: str):
        start = time.perf_counter()
        logger.debug("Stage started", stage=name)
        yield
        elapsed = time.perf_counter() - start
        self.timings[name] = elapsed
        logger.info("Stage completed", stage=name, seconds=round(elapsed, 3))

    def run(self) -> GeneratedWorld:
        p = self.params
        terrain = p.effective_terrain()
        climate = p.effective_climate()
        self.timings = {}

        logger.info(
            "Generating world",
            seed=p.seed,
            width=p.width,
            height=p.height,
            world_type=p.world_type.value,
        )

        with self._stage("heightmap"):
            heightmap = generate_heightmap(
                p.seed, p.width, p.height, p.world_type, p.islands.island_density, terrain
            )

        with self._stage("climate"):
            temperature, winds = generate_climate_maps(
                p.seed,
                p.width,
                p.height,
                heightmap.data,
                climate.global_temperature_offset,
                climate.polar_amplification,
                climate.climate_latitude_exponent,
                SEA_LEVEL,
            )
            humidity = calculate_humidity(
                p.width, p.height, heightmap.data, winds, SEA_LEVEL, climate.global_humidity_offset
            )

        with self._stage("biomes"):
            biomes = assign_biomes(heightmap.data, temperature, humidity, SEA_LEVEL)

        with self._stage("water"):
            water = classify_water(heightmap.data, SEA_LEVEL)

        with self._stage("rivers"):
            rivers = generate_rivers(heightmap.data, biomes, self.hydrology_options)

        with self._stage("provinces"):
            land_ratio = float(np.count_nonzero(water == WaterType.LAND)) / water.size
            num_land, num_sea = split_province_counts(terrain.total_provinces, land_ratio)
            seeds = generate_province_seeds(heightmap.data, biomes, water, num_land, num_sea, p.seed)
            provinces, pixel_to_id = generate_provinces_from_seeds(heightmap.data, biomes, water, seeds)

        with self._stage("merge"):
            graph = build_province_graph(pixel_to_id, [pr.id for pr in provinces])
            provinces, pixel_to_id, graph = merge_small_provinces(provinces, pixel_to_id, graph)

        with self._stage("regions"):
            regions = group_provinces_into_regions(provinces, graph, p.target_region_size)
            region_map = build_region_map(pixel_to_id, regions)

        with self._stage("strategic"):
            strategic_points = find_strategic_points(provinces, rivers.data, biomes, pixel_to_id)

        world = GeneratedWorld(
            params=p,
            heightmap=heightmap,
            temperature=temperature,
            winds=winds,
            humidity=humidity,
            biomes=biomes,
            water=water,
            rivers=rivers,
            provinces=provinces,
            pixel_to_id=pixel_to_id,
            graph=graph,
            regions=regions,
            region_map=region_map,
            strategic_points=strategic_points,
            timings=dict(self.timings),
        )
        logger.info(
            "World generated",
            provinces=len(provinces),
            regions=len(regions),
            strategic_points=len(strategic_points),
            total_seconds=round(sum(self.timings.values()), 3),
        )
        return world


def generate_world(params: WorldGenerationParams) -> GeneratedWorld:
    return WorldGenerator(params).run()
