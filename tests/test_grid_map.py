"""
Tests for the occupancy grid model
"""

import pytest
import numpy as np
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from navigation.grid_map import GridMap, NEIGHBOR_OFFSETS


class TestGridMapConstruction:
    """Test grid creation"""

    def test_empty_grid(self):
        """Test that a new grid is entirely free"""
        grid_map = GridMap(5, 3)
        assert grid_map.width_cells == 5
        assert grid_map.height_cells == 3
        assert grid_map.obstacle_count() == 0

    @pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 3)])
    def test_invalid_dimensions(self, width, height):
        """Test that non-positive dimensions are rejected"""
        with pytest.raises(ValueError):
            GridMap(width, height)

    def test_from_rows(self):
        """Test row-major construction (rows[y][x])"""
        grid_map = GridMap.from_rows([
            [0, 1, 0],
            [0, 0, 0],
        ])
        assert grid_map.width_cells == 3
        assert grid_map.height_cells == 2
        assert grid_map.is_blocked((1, 0))
        assert not grid_map.is_blocked((0, 1))

    def test_from_rows_ragged(self):
        """Test that rows of different length are rejected"""
        with pytest.raises(ValueError):
            GridMap.from_rows([[0, 0, 0], [0, 0]])

    def test_from_config(self):
        """Test construction from a config section"""
        grid_map = GridMap.from_config({
            'width': 4,
            'height': 4,
            'obstacles': [[1, 1], [2, 3]],
        })
        assert grid_map.obstacle_count() == 2
        assert grid_map.is_blocked((2, 3))

    def test_to_rows_round_trip(self):
        """Test exporting back to rows"""
        rows = [[0, 1], [1, 0], [0, 0]]
        assert GridMap.from_rows(rows).to_rows() == rows


class TestGridMapQueries:
    """Test bounds checks and neighbor expansion"""

    def test_out_of_bounds_is_blocked(self):
        """Test that cells outside the grid are reported as blocked, not raised"""
        grid_map = GridMap(3, 3)
        assert grid_map.is_blocked((-1, 0))
        assert grid_map.is_blocked((0, 3))
        assert grid_map.is_blocked((3, 3))
        assert grid_map.is_free((2, 2))

    def test_neighbor_order(self):
        """Test that neighbors come back as up, right, down, left"""
        grid_map = GridMap(3, 3)
        assert grid_map.neighbors4((1, 1)) == [(1, 0), (2, 1), (1, 2), (0, 1)]
        assert NEIGHBOR_OFFSETS == ((0, -1), (1, 0), (0, 1), (-1, 0))

    def test_neighbors_at_corner(self):
        """Test that out-of-bounds neighbors are dropped"""
        grid_map = GridMap(3, 3)
        assert grid_map.neighbors4((0, 0)) == [(1, 0), (0, 1)]

    def test_neighbors_skip_blocked(self):
        """Test that blocked neighbors are dropped"""
        grid_map = GridMap(3, 3)
        grid_map.set_blocked((2, 1), True)
        grid_map.set_blocked((1, 0), True)
        assert grid_map.neighbors4((1, 1)) == [(1, 2), (0, 1)]

    def test_require_in_bounds(self):
        """Test contract checks on cells"""
        grid_map = GridMap(3, 3)
        assert grid_map.require_in_bounds((2, 1)) == (2, 1)
        with pytest.raises(ValueError):
            grid_map.require_in_bounds(None)
        with pytest.raises(ValueError):
            grid_map.require_in_bounds((3, 0))


class TestGridMapEdits:
    """Test grid mutation"""

    def test_toggle(self):
        """Test that toggling flips occupancy"""
        grid_map = GridMap(3, 3)
        assert grid_map.toggle((1, 1)) is True
        assert grid_map.is_blocked((1, 1))
        assert grid_map.toggle((1, 1)) is False
        assert grid_map.is_free((1, 1))

    def test_toggle_out_of_bounds(self):
        """Test that editing outside the grid raises"""
        grid_map = GridMap(3, 3)
        with pytest.raises(ValueError):
            grid_map.toggle((5, 5))

    def test_copy_is_independent(self):
        """Test that a copy does not share storage"""
        grid_map = GridMap(3, 3)
        clone = grid_map.copy()
        clone.set_blocked((0, 0), True)
        assert grid_map.is_free((0, 0))
        assert clone.is_blocked((0, 0))

    def test_randomize_keeps_endpoints_clear(self):
        """Test that random terrain never blocks start or target"""
        grid_map = GridMap(10, 10)
        rng = np.random.default_rng(7)
        grid_map.randomize(1.0, rng, keep_clear=[(0, 0), (9, 9), None])

        assert grid_map.obstacle_count() == 98
        assert grid_map.is_free((0, 0))
        assert grid_map.is_free((9, 9))

    def test_randomize_is_reproducible(self):
        """Test that the same seed gives the same terrain"""
        a = GridMap(8, 8)
        b = GridMap(8, 8)
        a.randomize(0.3, np.random.default_rng(42))
        b.randomize(0.3, np.random.default_rng(42))
        assert a.to_rows() == b.to_rows()

    def test_randomize_invalid_density(self):
        """Test that densities outside [0, 1] are rejected"""
        with pytest.raises(ValueError):
            GridMap(3, 3).randomize(1.5, np.random.default_rng(0))

    def test_free_cells(self):
        """Test listing free cells"""
        grid_map = GridMap(2, 2)
        grid_map.set_blocked((1, 0), True)
        assert grid_map.free_cells() == [(0, 0), (0, 1), (1, 1)]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
