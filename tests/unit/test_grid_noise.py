"""Grid geometry and value noise."""

import numpy as np
import pytest

from nemeths.utils.grid import (
    chebyshev_distance,
    coord_to_id,
    edge_distance,
    id_to_coord,
    is_near_edge,
    manhattan_distance,
    neighbors4,
    neighbors8,
)
from nemeths.utils.noise import ValueNoise


def test_distances():
    assert chebyshev_distance(0, 0, 3, -5) == 5
    assert manhattan_distance(0, 0, 3, -5) == 8
    assert chebyshev_distance(4, 4, 4, 4) == 0


def test_neighbour_order_is_north_south_west_east():
    assert list(neighbors4(5, 5, 10)) == [(5, 4), (5, 6), (4, 5), (6, 5)]


def test_neighbours_clipped_at_corner():
    assert list(neighbors4(0, 0, 10)) == [(0, 1), (1, 0)]
    assert sorted(neighbors8(0, 0, 10)) == [(0, 1), (1, 0), (1, 1)]


def test_edge_helpers():
    assert edge_distance(2, 50, 100) == 2
    assert edge_distance(99, 50, 100) == 0
    assert is_near_edge(2, 50, 100, 3)
    assert not is_near_edge(3, 50, 100, 3)
    assert not is_near_edge(0, 0, 100, 0)


def test_territory_ids_are_dense():
    size = 7
    ids = [coord_to_id(x, y, size) for x in range(size) for y in range(size)]
    assert ids == list(range(size * size))
    assert all(coord_to_id(*id_to_coord(tid, size), size) == tid for tid in ids)


class TestValueNoise:
    def test_same_seed_same_grid(self):
        first = ValueNoise(5).sample_grid(20, 20, 15.0)
        second = ValueNoise(5).sample_grid(20, 20, 15.0)
        assert np.array_equal(first, second)

    def test_different_seeds_differ(self):
        assert not np.array_equal(
            ValueNoise(5).sample_grid(20, 20, 4.0), ValueNoise(6).sample_grid(20, 20, 4.0)
        )

    def test_values_in_unit_interval(self):
        grid = ValueNoise(11, octaves=3).sample_grid(64, 48, 7.5)
        assert grid.shape == (64, 48)
        assert grid.min() >= 0.0
        assert grid.max() < 1.0

    def test_smaller_block_is_a_prefix_of_larger(self):
        noise = ValueNoise(3, octaves=2)
        small = noise.sample_grid(10, 6, 4.0)
        large = noise.sample_grid(25, 30, 4.0)
        assert np.allclose(large[:10, :6], small)

    def test_lattice_points_are_exact(self):
        noise = ValueNoise(8)
        grid = noise.sample_grid(4, 4, 1.0)
        assert grid[2, 3] == pytest.approx(noise._lattices[0][2, 3])

    @pytest.mark.parametrize("scale", [0.0, -1.0])
    def test_non_positive_scale_rejected(self, scale):
        with pytest.raises(ValueError):
            ValueNoise(1).sample_grid(4, 4, scale)

    def test_octaves_must_be_positive(self):
        with pytest.raises(ValueError):
            ValueNoise(1, octaves=0)
