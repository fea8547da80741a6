"""Shared fixtures for world generation tests."""

import pytest

from py_mapgen.config.world_settings import TerrainSettings, WorldGenerationParams, WorldType
from py_mapgen.core.pipeline import WorldGenerator


@pytest.fixture
def small_params():
    """Parameters for a small, fast world."""
    return WorldGenerationParams(
        seed=7,
        width=64,
        height=32,
        world_type=WorldType.EARTH_LIKE,
        terrain=TerrainSettings(total_provinces=20),
    )


@pytest.fixture(scope="session")
def small_world():
    """A complete small world, generated once per test session."""
    params = WorldGenerationParams(
        seed=7,
        width=64,
        height=32,
        world_type=WorldType.EARTH_LIKE,
        terrain=TerrainSettings(total_provinces=20),
    )
    return WorldGenerator(params).run()
