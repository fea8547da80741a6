"""Tests for heightmap generation."""

import numpy as np
import pytest

from py_mapgen.config.world_settings import ConfigurationError, TerrainSettings, WorldType
from py_mapgen.core.heightmap_generator import (
    Heightmap,
    HeightmapConfig,
    HeightmapGenerator,
    generate_heightmap,
    smooth_field,
)


class TestHeightmap:
    """Test the Heightmap raster type."""

    def test_flat_and_accessors(self):
        hm = Heightmap.flat(8, 4, 0.25)
        assert hm.data.shape == (4, 8)
        assert hm.get(3, 2) == 0.25

        hm.set(3, 2, 0.9)
        assert hm.get(3, 2) == 0.9
        assert hm.data[2, 3] == 0.9

    def test_land_ratio_is_strict(self):
        hm = Heightmap.flat(4, 4, 0.5)
        assert hm.land_ratio(0.5) == 0.0

        hm.data[:2] = 0.7
        assert hm.land_ratio(0.5) == 0.5

    def test_grayscale(self):
        hm = Heightmap.flat(4, 4, 1.0)
        hm.data[0, 0] = 0.0
        gray = hm.to_grayscale_image()
        assert gray.dtype == np.uint8
        assert gray[0, 0] == 0
        assert gray[1, 1] == 255

    def test_flat_normals_point_up(self):
        normals = Heightmap.flat(6, 4, 0.4).generate_normals(50.0)
        assert normals.shape == (4, 6, 3)
        assert (normals == [127, 127, 255]).all()

    def test_normals_wrap_at_seam(self):
        """A ridge at column 0 tilts the normals of the last column."""
        hm = Heightmap.flat(8, 4, 0.0)
        hm.data[:, 0] = 1.0
        normals = hm.generate_normals(1.0)
        # Rising to the east: the x component leans west
        assert normals[1, 7, 0] < 127
        assert normals[1, 1, 0] > 127


class TestErosion:
    """Test thermal and hydraulic erosion."""

    @pytest.fixture
    def spike(self):
        hm = Heightmap.flat(10, 10, 0.2)
        hm.data[5, 5] = 1.0
        return hm

    def test_thermal_erosion_conserves_material(self, spike):
        total = spike.data.sum()
        spike.apply_thermal_erosion(iterations=5, talus_angle=0.015, transfer=0.3)
        assert spike.data.sum() == pytest.approx(total, abs=1e-9)

    def test_thermal_erosion_lowers_spike(self, spike):
        spike.apply_thermal_erosion(iterations=1, talus_angle=0.015, transfer=0.3)
        assert spike.data[5, 5] < 1.0
        assert spike.data[6, 5] > 0.2

    def test_thermal_erosion_ignores_gentle_slopes(self):
        hm = Heightmap.flat(8, 8, 0.0)
        hm.data[:] = np.linspace(0.0, 0.01, 8)[None, :]
        before = hm.data.copy()
        hm.apply_thermal_erosion(iterations=3, talus_angle=0.5)
        assert np.array_equal(hm.data, before)

    def test_thermal_erosion_wraps(self):
        """Material at the last column can move across the seam."""
        hm = Heightmap.flat(6, 3, 0.0)
        hm.data[:, 4:] = 1.0
        hm.apply_thermal_erosion(iterations=1, talus_angle=0.0, transfer=0.5)
        assert hm.data[1, 0] > 0.0
        assert hm.data[1, 3] > 0.0

    def test_hydraulic_erosion_conserves_material(self):
        rng = np.random.default_rng(3)
        hm = Heightmap(16, 16, rng.random((16, 16)))
        total = hm.data.sum()
        hm.apply_hydraulic_erosion(seed=11, drops=50, erosion_power=0.01)
        assert hm.data.sum() == pytest.approx(total, rel=1e-9)

    def test_hydraulic_erosion_deterministic(self):
        rng = np.random.default_rng(3)
        data = rng.random((16, 16))
        a = Heightmap(16, 16, data.copy())
        b = Heightmap(16, 16, data.copy())
        a.apply_hydraulic_erosion(seed=11, drops=50, erosion_power=0.01)
        b.apply_hydraulic_erosion(seed=11, drops=50, erosion_power=0.01)
        assert np.array_equal(a.data, b.data)


class TestSmoothField:
    """Test the topology-aware box blur."""

    def test_zero_radius_is_identity(self):
        data = np.random.default_rng(0).random((8, 8))
        assert smooth_field(data, 0) is data

    def test_degenerate_radius_is_identity(self):
        data = np.random.default_rng(0).random((4, 8))
        assert smooth_field(data, 4) is data

    def test_constant_field_unchanged(self):
        data = np.full((8, 16), 0.3)
        assert np.allclose(smooth_field(data, 2), 0.3)

    def test_wraps_horizontally(self):
        data = np.zeros((6, 12))
        data[:, 0] = 1.0
        smoothed = smooth_field(data, 1)
        assert smoothed[3, 11] == pytest.approx(smoothed[3, 1])
        assert smoothed[3, 11] > 0.0

    def test_clamps_vertically(self):
        data = np.zeros((6, 12))
        data[0, :] = 1.0
        smoothed = smooth_field(data, 1)
        assert smoothed[5, 0] == 0.0
        # Top row sees itself twice through the clamped edge
        assert smoothed[0, 0] == pytest.approx(2.0 / 3.0)


class TestHeightmapGenerator:
    """Test the complete heightmap pipeline."""

    def test_rejects_tiny_maps(self):
        with pytest.raises(ConfigurationError):
            HeightmapGenerator(HeightmapConfig(width=3, height=8))

    def test_output_range(self):
        hm = generate_heightmap(42, 64, 32, WorldType.EARTH_LIKE, 0.2)
        assert hm.data.shape == (32, 64)
        assert hm.data.min() >= 0.0
        assert hm.data.max() <= 1.0

    def test_deterministic(self):
        a = generate_heightmap(42, 48, 24, WorldType.ARCHIPELAGO, 0.5)
        b = generate_heightmap(42, 48, 24, WorldType.ARCHIPELAGO, 0.5)
        assert np.array_equal(a.data, b.data)

    def test_seed_changes_terrain(self):
        a = generate_heightmap(1, 48, 24, WorldType.EARTH_LIKE, 0.2)
        b = generate_heightmap(2, 48, 24, WorldType.EARTH_LIKE, 0.2)
        assert not np.array_equal(a.data, b.data)

    @pytest.mark.parametrize("world_type", list(WorldType))
    def test_land_ratio_calibrated(self, world_type):
        hm = generate_heightmap(42, 128, 64, world_type, 0.2)
        assert hm.land_ratio() == pytest.approx(world_type.target_land_ratio(), abs=0.01)

    def test_terrain_settings_applied(self):
        config = HeightmapConfig.from_terrain(
            32, 16, WorldType.EARTH_LIKE, 0.0, TerrainSettings(elevation_power=1.2, smooth_radius=0)
        )
        assert config.elevation_power == 1.2
        assert config.smooth_radius == 0
        assert config.island_density == 0.0

    def test_normalize_flat_world(self):
        generator = HeightmapGenerator(HeightmapConfig(width=8, height=8))
        data = np.full((8, 8), 0.4)
        assert np.array_equal(generator._normalize(data), data)
