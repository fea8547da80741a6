"""
Core world generation functionality.
"""

from .heightmap_generator import Heightmap, HeightmapConfig, HeightmapGenerator, generate_heightmap
from .climate import Climate, ClimateOptions, calculate_humidity, generate_climate_maps
from .biomes import Biome, BiomeClassifier, assign_biomes
from .features import WaterType, classify_water
from .hydrology import Hydrology, HydrologyOptions, RiverMap, generate_rivers
from .provinces import Province, ProvinceSeed, ProvinceType
from .province_graph import ProvinceGraph, build_province_graph, merge_small_provinces
from .regions import Region, group_provinces_into_regions
from .strategic import StrategicPoint, StrategicPointKind, find_strategic_points
from .pipeline import GeneratedWorld, WorldGenerator, generate_world

__all__ = ['Heightmap', 'HeightmapConfig', 'HeightmapGenerator', 'generate_heightmap',
           'Climate', 'ClimateOptions', 'calculate_humidity', 'generate_climate_maps',
           'Biome', 'BiomeClassifier', 'assign_biomes', 'WaterType', 'classify_water',
           'Hydrology', 'HydrologyOptions', 'RiverMap', 'generate_rivers',
           'Province', 'ProvinceSeed', 'ProvinceType',
           'ProvinceGraph', 'build_province_graph', 'merge_small_provinces',
           'Region', 'group_provinces_into_regions',
           'StrategicPoint', 'StrategicPointKind', 'find_strategic_points',
           'GeneratedWorld', 'WorldGenerator', 'generate_world']
