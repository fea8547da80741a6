"""Tests for JSON and PNG export."""

import json

import numpy as np
import pytest
from PIL import Image

from py_mapgen.core.biomes import BIOME_NAMES, Biome
from py_mapgen.core.provinces import Province
from py_mapgen.export import RasterShapeError, export_images, export_json
from py_mapgen.export.images import hex_to_rgb, render_biomes, render_provinces, render_regions
from py_mapgen.export.json_export import province_to_dict


class TestJsonExport:
    """Test JSON files written for a world."""

    def test_files_written(self, small_world, tmp_path):
        written = export_json(small_world, tmp_path / "out")
        names = sorted(p.name for p in written)
        assert names == ["provinces.json", "regions.json", "strategic_points.json", "world.json"]
        assert all(p.exists() for p in written)

    def test_provinces_json(self, small_world, tmp_path):
        export_json(small_world, tmp_path)
        data = json.loads((tmp_path / "provinces.json").read_text())

        assert len(data) == len(small_world.provinces)
        first = data[0]
        assert set(first) == {"id", "name", "color", "center", "area", "type", "coastal", "biomes"}
        assert first["type"] in {"continental", "island", "oceanic"}
        assert set(first["biomes"]) <= set(BIOME_NAMES.values())

    def test_regions_and_points_json(self, small_world, tmp_path):
        export_json(small_world, tmp_path)
        regions = json.loads((tmp_path / "regions.json").read_text())
        points = json.loads((tmp_path / "strategic_points.json").read_text())

        assert [r["province_ids"] for r in regions] == [r.province_ids for r in small_world.regions]
        assert len(points) == len(small_world.strategic_points)
        assert all(p["kind"] in {"Port", "Estuary", "Pass"} for p in points)

    def test_world_json(self, small_world, tmp_path):
        export_json(small_world, tmp_path)
        data = json.loads((tmp_path / "world.json").read_text())
        assert data["params"]["seed"] == 7
        assert data["params"]["world_type"] == "EarthLike"
        assert data["stats"]["provinces"] == len(small_world.provinces)

    def test_biomes_sorted_by_share(self):
        province = Province(id=0, is_land=True, biomes={Biome.TAIGA: 0.2, Biome.TUNDRA: 0.8})
        data = province_to_dict(province)
        assert list(data["biomes"]) == ["Tundra", "Taiga"]


class TestImageExport:
    """Test PNG rendering."""

    def test_images_written(self, small_world, tmp_path):
        written = export_images(small_world, tmp_path)
        assert len(written) == 6
        for path in written:
            with Image.open(path) as image:
                assert image.size == (64, 32)

    def test_biome_colors(self, small_world):
        image = np.asarray(render_biomes(small_world.biomes, 64, 32))
        assert image.shape == (32, 64, 3)

    def test_province_colors(self):
        provinces = [Province(id=0, is_land=True), Province(id=1, is_land=False)]
        ids = np.array([[0, 1], [1, -1]])
        image = np.asarray(render_provinces(ids, provinces, 2, 2))

        assert tuple(image[0, 0]) == hex_to_rgb(provinces[0].color)
        assert tuple(image[0, 1]) == hex_to_rgb(provinces[1].color)
        assert tuple(image[1, 1]) == (0, 0, 0)

    def test_shape_mismatch(self, small_world):
        with pytest.raises(RasterShapeError):
            render_regions(small_world.region_map, small_world.regions, 10, 10)

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#ff8000") == (255, 128, 0)
        with pytest.raises(ValueError):
            hex_to_rgb("#fff")
