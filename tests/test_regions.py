"""Tests for region grouping."""

import numpy as np
import pytest

from py_mapgen.core.province_graph import ProvinceGraph
from py_mapgen.core.provinces import Province
from py_mapgen.core.regions import (
    build_region_map,
    group_provinces_into_regions,
    province_to_region,
)


def _graph(edges, nodes):
    adjacency = {n: set() for n in nodes}
    for a, b in edges:
        adjacency[a].add(b)
        adjacency[b].add(a)
    return ProvinceGraph(adjacency)


class TestRegionGrouping:
    """Test greedy region growth."""

    @pytest.fixture
    def chain(self):
        """Five land provinces in a line: 0-1-2-3-4."""
        provinces = [Province(id=i, is_land=True, area=100) for i in range(5)]
        graph = _graph([(0, 1), (1, 2), (2, 3), (3, 4)], range(5))
        return provinces, graph

    def test_chain_split(self, chain):
        regions = group_provinces_into_regions(*chain, target_size=2)
        assert [r.province_ids for r in regions] == [[0, 1], [2, 3], [4]]
        assert [r.name for r in regions] == ["Land_0", "Land_1", "Land_2"]

    def test_single_region(self, chain):
        regions = group_provinces_into_regions(*chain, target_size=8)
        assert len(regions) == 1
        assert regions[0].province_ids == [0, 1, 2, 3, 4]

    def test_target_below_one(self, chain):
        regions = group_provinces_into_regions(*chain, target_size=0)
        assert [len(r) for r in regions] == [1] * 5

    def test_land_and_sea_never_mix(self):
        provinces = [
            Province(id=0, is_land=True),
            Province(id=1, is_land=False),
            Province(id=2, is_land=True),
        ]
        graph = _graph([(0, 1), (1, 2), (0, 2)], range(3))
        regions = group_provinces_into_regions(provinces, graph, target_size=3)

        assert [r.province_ids for r in regions] == [[0, 2], [1]]
        assert regions[1].name == "Sea_1"
        assert not regions[1].is_land

    def test_neighbours_visited_lowest_id_first(self):
        provinces = [Province(id=i, is_land=True) for i in range(4)]
        graph = _graph([(0, 3), (0, 2), (0, 1)], range(4))
        regions = group_provinces_into_regions(provinces, graph, target_size=3)
        assert regions[0].province_ids == [0, 1, 2]
        assert regions[1].province_ids == [3]

    def test_world_regions_partition_provinces(self, small_world):
        owner = province_to_region(small_world.regions)
        assert set(owner) == {p.id for p in small_world.provinces}
        total = sum(len(r) for r in small_world.regions)
        assert total == len(small_world.provinces)

        target = small_world.params.target_region_size
        by_id = {p.id: p for p in small_world.provinces}
        for region in small_world.regions:
            assert 1 <= len(region) <= target
            assert all(by_id[pid].is_land == region.is_land for pid in region.province_ids)


class TestRegionMap:
    """Test the pixel -> region raster."""

    def test_build_region_map(self):
        provinces = [Province(id=i, is_land=True) for i in range(3)]
        graph = _graph([(0, 1)], range(3))
        regions = group_provinces_into_regions(provinces, graph, target_size=2)
        ids = np.array([[0, 1, 2, -1]])

        region_map = build_region_map(ids, regions)
        assert region_map.tolist() == [[0, 0, 1, -1]]

    def test_unlisted_province_is_unassigned(self):
        provinces = [Province(id=0, is_land=True)]
        regions = group_provinces_into_regions(provinces, _graph([], [0]))
        region_map = build_region_map(np.array([[0, 4]]), regions)
        assert region_map.tolist() == [[0, -1]]
