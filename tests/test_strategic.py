"""Tests for strategic point detection."""

import numpy as np

from py_mapgen.core.biomes import Biome
from py_mapgen.core.provinces import Province
from py_mapgen.core.strategic import (
    StrategicPoint,
    StrategicPointKind,
    find_strategic_points,
)


class TestStrategicPoints:
    """Test port, estuary and pass classification."""

    def _layout(self):
        # Province ids laid out in five columns, one per province
        ids = np.array([[0, 1, 2, 3, 4]] * 3, dtype=np.int32)
        biomes = np.full(ids.shape, Biome.GRASSLAND, dtype=np.uint8)
        rivers = np.zeros(ids.shape, dtype=np.uint8)
        return ids, biomes, rivers

    def test_classification(self):
        ids, biomes, rivers = self._layout()
        rivers[1, 1] = 255  # river in the coastal province 1
        biomes[0, 2] = Biome.ROCKY_MOUNTAIN  # mountain in the inland province 2
        provinces = [
            Province(id=0, is_land=True, coastal=True),
            Province(id=1, is_land=True, coastal=True),
            Province(id=2, is_land=True),
            Province(id=3, is_land=True),
            Province(id=4, is_land=False),
        ]

        points = find_strategic_points(provinces, rivers, biomes, ids)

        assert points == [
            StrategicPoint(StrategicPointKind.PORT, 0),
            StrategicPoint(StrategicPointKind.ESTUARY, 1),
            StrategicPoint(StrategicPointKind.PASS, 2),
        ]

    def test_sea_provinces_ignored(self):
        ids, biomes, rivers = self._layout()
        rivers[:] = 255
        biomes[:] = Biome.GLACIAL_MOUNTAIN
        provinces = [Province(id=i, is_land=False) for i in range(5)]
        assert find_strategic_points(provinces, rivers, biomes, ids) == []

    def test_coastal_mountain_is_port(self):
        ids, biomes, rivers = self._layout()
        biomes[:, 0] = Biome.GLACIAL_MOUNTAIN
        provinces = [Province(id=0, is_land=True, coastal=True)]
        points = find_strategic_points(provinces, rivers, biomes, ids)
        assert points == [StrategicPoint(StrategicPointKind.PORT, 0)]

    def test_strait_never_produced(self, small_world):
        kinds = {p.kind for p in small_world.strategic_points}
        assert StrategicPointKind.STRAIT not in kinds
        land = {p.id for p in small_world.provinces if p.is_land}
        seen = [p.province_id for p in small_world.strategic_points]
        assert len(seen) == len(set(seen))
        assert set(seen) <= land
