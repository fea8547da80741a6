"""
Configuration modules for world generation.
"""

from .config import Settings, settings
from .world_settings import (
    SEA_LEVEL,
    ClimateSettings,
    ConfigurationError,
    IslandSettings,
    TerrainSettings,
    WorldGenerationParams,
    WorldType,
)

__all__ = ['Settings', 'settings', 'SEA_LEVEL', 'ClimateSettings', 'ConfigurationError',
           'IslandSettings', 'TerrainSettings', 'WorldGenerationParams', 'WorldType']
