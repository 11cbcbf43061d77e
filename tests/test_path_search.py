"""
Tests for A* and Dijkstra grid search
"""

import pytest
import numpy as np
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from navigation.grid_map import GridMap
from navigation.path_search import (
    PathPlanner,
    SearchAlgorithm,
    SearchNode,
    find_path_astar,
    find_path_dijkstra,
    manhattan,
)

SEARCHES = [find_path_astar, find_path_dijkstra]


def trace(search, grid_map, start, target):
    """Run a search and collect its exploration order"""
    explored = []
    path = search(grid_map, start, target, explored.append)
    return path, explored


def assert_valid_path(grid_map, path, start, target):
    """Path must be contiguous, free and run start -> target"""
    assert path[0] == start
    assert path[-1] == target
    for a, b in zip(path, path[1:]):
        assert manhattan(a, b) == 1
    for cell in path:
        assert grid_map.is_free(cell)


@pytest.fixture
def gap_grid():
    """5x5 grid with row y=2 blocked except (4, 2)"""
    grid_map = GridMap(5, 5)
    for x in range(4):
        grid_map.set_blocked((x, 2), True)
    return grid_map


@pytest.fixture
def walled_target_grid():
    """5x5 grid with all 8 cells around (2, 2) blocked"""
    grid_map = GridMap(5, 5)
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            if dx or dy:
                grid_map.set_blocked((2 + dx, 2 + dy), True)
    return grid_map


class TestSearchNode:
    """Test the per-search node record"""

    def test_f_cost(self):
        """Test that f = g + h"""
        node = SearchNode((1, 1), g_cost=3, h_cost=4)
        assert node.f_cost == 7
        assert node.parent is None


class TestOpenGrid:
    """Searches on grids without obstacles"""

    @pytest.mark.parametrize("search", SEARCHES)
    @pytest.mark.parametrize("start,target", [
        ((0, 0), (4, 4)),
        ((4, 0), (0, 4)),
        ((2, 3), (2, 0)),
        ((1, 1), (3, 1)),
    ])
    def test_path_length_is_manhattan_plus_one(self, search, start, target):
        """Test that open-grid paths are optimal"""
        grid_map = GridMap(5, 5)
        path = search(grid_map, start, target)
        assert len(path) == manhattan(start, target) + 1
        assert_valid_path(grid_map, path, start, target)

    def test_astar_scenario(self):
        """Test 5x5 corner to corner with A*"""
        grid_map = GridMap(5, 5)
        path, explored = trace(find_path_astar, grid_map, (0, 0), (4, 4))
        assert len(path) == 9
        assert len(explored) <= 25

    def test_dijkstra_exact_trace(self):
        """Test the exact exploration order on a 3x3 grid"""
        grid_map = GridMap(3, 3)
        path, explored = trace(find_path_dijkstra, grid_map, (0, 0), (2, 2))

        assert explored == [
            (0, 0), (1, 0), (0, 1), (2, 0), (1, 1),
            (0, 2), (2, 1), (1, 2), (2, 2),
        ]
        assert path == [(0, 0), (1, 0), (2, 0), (2, 1), (2, 2)]

    def test_astar_stays_on_straight_line(self):
        """Test that A* only finalizes cells with minimal f on a straight run"""
        grid_map = GridMap(10, 10)
        _, astar_explored = trace(find_path_astar, grid_map, (0, 0), (9, 0))
        _, dijkstra_explored = trace(find_path_dijkstra, grid_map, (0, 0), (9, 0))

        assert astar_explored == [(x, 0) for x in range(10)]
        assert len(dijkstra_explored) > len(astar_explored)

    @pytest.mark.parametrize("search", SEARCHES)
    def test_start_equals_target(self, search):
        """Test that a zero-length mission returns the single cell"""
        grid_map = GridMap(5, 5)
        path, explored = trace(search, grid_map, (3, 3), (3, 3))
        assert path == [(3, 3)]
        assert explored == [(3, 3)]


class TestObstacles:
    """Searches around static obstacles"""

    @pytest.mark.parametrize("search", SEARCHES)
    def test_detour_through_gap(self, search, gap_grid):
        """Test that the only gap in a wall is used"""
        path = search(gap_grid, (0, 0), (0, 4))

        # 12 moves, 13 cells including both endpoints
        assert len(path) == 13
        assert (4, 2) in path
        assert_valid_path(gap_grid, path, (0, 0), (0, 4))

    @pytest.mark.parametrize("search", SEARCHES)
    def test_walled_in_target(self, search, walled_target_grid):
        """Test that an enclosed target yields no path and explores every reachable cell once"""
        path, explored = trace(search, walled_target_grid, (0, 0), (2, 2))

        assert path == []
        assert len(explored) == 16
        assert len(set(explored)) == len(explored)
        assert (2, 2) not in explored

    @pytest.mark.parametrize("search", SEARCHES)
    def test_blocked_target(self, search):
        """Test that a blocked target is unreachable"""
        grid_map = GridMap(3, 3)
        grid_map.set_blocked((2, 2), True)
        assert search(grid_map, (0, 0), (2, 2)) == []

    @pytest.mark.parametrize("seed", range(8))
    def test_astar_matches_dijkstra_length(self, seed):
        """Test that both algorithms agree on optimal length over random terrain"""
        rng = np.random.default_rng(seed)
        grid_map = GridMap(12, 12)
        grid_map.randomize(0.3, rng, keep_clear=[(0, 0), (11, 11)])

        astar_path = find_path_astar(grid_map, (0, 0), (11, 11))
        dijkstra_path = find_path_dijkstra(grid_map, (0, 0), (11, 11))

        assert len(astar_path) == len(dijkstra_path)
        if astar_path:
            assert_valid_path(grid_map, astar_path, (0, 0), (11, 11))
            assert_valid_path(grid_map, dijkstra_path, (0, 0), (11, 11))

    @pytest.mark.parametrize("search", SEARCHES)
    def test_repeatable(self, search):
        """Test that identical inputs give identical path and trace order"""
        grid_map = GridMap(10, 10)
        grid_map.randomize(0.25, np.random.default_rng(3), keep_clear=[(0, 0), (9, 9)])

        first = trace(search, grid_map, (0, 0), (9, 9))
        second = trace(search, grid_map, (0, 0), (9, 9))
        assert first == second


class TestContract:
    """Contract violations raise"""

    @pytest.mark.parametrize("search", SEARCHES)
    def test_out_of_bounds_endpoint(self, search):
        """Test that out-of-range cells are rejected"""
        with pytest.raises(ValueError):
            search(GridMap(3, 3), (0, 0), (5, 5))

    def test_planner_requires_endpoints(self):
        """Test that planning without start or target raises"""
        planner = PathPlanner()
        with pytest.raises(ValueError):
            planner.plan_path(GridMap(3, 3), None, (1, 1))


class TestPathPlanner:
    """Test the planner wrapper"""

    def test_parse_algorithm(self):
        """Test algorithm parsing from strings"""
        assert SearchAlgorithm.parse("astar") is SearchAlgorithm.ASTAR
        assert SearchAlgorithm.parse("Dijkstra") is SearchAlgorithm.DIJKSTRA
        assert SearchAlgorithm.parse(SearchAlgorithm.ASTAR) is SearchAlgorithm.ASTAR
        with pytest.raises(ValueError):
            SearchAlgorithm.parse("bfs")

    def test_plan_path_result(self):
        """Test that the result carries path, trace and timing"""
        planner = PathPlanner("dijkstra")
        result = planner.plan_path(GridMap(5, 5), (0, 0), (4, 4))

        assert result.found
        assert result.algorithm is SearchAlgorithm.DIJKSTRA
        assert len(result.path) == 9
        assert result.explored[0] == (0, 0)
        assert result.explored[-1] == (4, 4)
        assert result.elapsed_ms >= 0.0

    def test_plan_path_no_route(self, walled_target_grid):
        """Test that an unreachable target is a normal, empty result"""
        result = PathPlanner("astar").plan_path(walled_target_grid, (0, 0), (2, 2))
        assert not result.found
        assert len(result.explored) == 16


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
