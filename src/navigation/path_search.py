"""
Grid Graph Search
A* and Dijkstra shortest-path search over a 4-connected occupancy grid,
with an ordered exploration trace for visualization pacing.
"""

import heapq
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .grid_map import Cell, GridMap

logger = logging.getLogger(__name__)

ExploreCallback = Callable[[Cell], None]


class SearchAlgorithm(Enum):
    """Available shortest-path algorithms"""
    ASTAR = "astar"
    DIJKSTRA = "dijkstra"

    @classmethod
    def parse(cls, value) -> "SearchAlgorithm":
        """Accept an enum member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown search algorithm: {value}") from None


@dataclass
class SearchNode:
    """Per-search bookkeeping for one cell; parent is a cell coordinate, not a reference"""
    position: Cell
    g_cost: int
    h_cost: int = 0
    parent: Optional[Cell] = None

    @property
    def f_cost(self) -> int:
        return self.g_cost + self.h_cost


@dataclass
class SearchResult:
    """Outcome of a single search call"""
    algorithm: SearchAlgorithm
    path: List[Cell] = field(default_factory=list)
    explored: List[Cell] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def found(self) -> bool:
        return len(self.path) > 0


def manhattan(a: Cell, b: Cell) -> int:
    """Manhattan distance heuristic."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def _zero_heuristic(a: Cell, b: Cell) -> int:
    return 0


def _best_first_search(grid_map: GridMap, start: Cell, target: Cell,
                       heuristic: Callable[[Cell, Cell], int],
                       on_explore: Optional[ExploreCallback]) -> List[Cell]:
    """
    Shared frontier loop for A* and Dijkstra.

    The frontier is a binary heap of (priority, counter, cell). Entries are
    never invalidated in place; an entry whose cell is already closed is
    skipped when popped. The counter keeps ties in insertion order.
    """
    start = grid_map.require_in_bounds(start)
    target = grid_map.require_in_bounds(target)

    nodes: Dict[Cell, SearchNode] = {
        start: SearchNode(start, 0, heuristic(start, target))
    }
    closed = set()

    counter = 0
    open_set = [(nodes[start].f_cost, counter, start)]
    counter += 1

    while open_set:
        _, _, current = heapq.heappop(open_set)

        if current in closed:
            continue

        closed.add(current)
        if on_explore is not None:
            on_explore(current)

        # Goal finalized
        if current == target:
            return _reconstruct_path(nodes, current)

        current_g = nodes[current].g_cost
        for neighbor in grid_map.neighbors4(current):
            if neighbor in closed:
                continue

            tentative_g = current_g + 1
            known = nodes.get(neighbor)

            if known is None or tentative_g < known.g_cost:
                node = SearchNode(neighbor, tentative_g, heuristic(neighbor, target), current)
                nodes[neighbor] = node
                heapq.heappush(open_set, (node.f_cost, counter, neighbor))
                counter += 1

    # No path found
    return []


def _reconstruct_path(nodes: Dict[Cell, SearchNode], current: Cell) -> List[Cell]:
    """Walk parent coordinates from target back to start."""
    path = [current]
    parent = nodes[current].parent
    while parent is not None:
        path.append(parent)
        parent = nodes[parent].parent
    path.reverse()
    return path


def find_path_astar(grid_map: GridMap, start: Cell, target: Cell,
                    on_explore: Optional[ExploreCallback] = None) -> List[Cell]:
    """
    A* search with Manhattan heuristic.

    Args:
        grid_map: Occupancy grid (read only)
        start: Start cell
        target: Target cell
        on_explore: Called once per cell in finalization order

    Returns:
        Cells from start to target inclusive, or an empty list if unreachable
    """
    return _best_first_search(grid_map, start, target, manhattan, on_explore)


def find_path_dijkstra(grid_map: GridMap, start: Cell, target: Cell,
                       on_explore: Optional[ExploreCallback] = None) -> List[Cell]:
    """Uniform-cost search; same contract as find_path_astar."""
    return _best_first_search(grid_map, start, target, _zero_heuristic, on_explore)


SEARCH_FUNCTIONS = {
    SearchAlgorithm.ASTAR: find_path_astar,
    SearchAlgorithm.DIJKSTRA: find_path_dijkstra,
}


class PathPlanner:
    """
    Runs one of the search algorithms and records its exploration trace and timing.
    """

    def __init__(self, algorithm=SearchAlgorithm.ASTAR):
        """
        Initialize the planner.

        Args:
            algorithm: SearchAlgorithm or its string value ("astar" / "dijkstra")
        """
        self.algorithm = SearchAlgorithm.parse(algorithm)

    def plan_path(self, grid_map: GridMap, start: Cell, target: Cell) -> SearchResult:
        """
        Plan a path from start to target.

        Returns:
            SearchResult with path (empty if none), exploration trace and elapsed time
        """
        if start is None or target is None:
            raise ValueError("Start and target must both be set before planning")

        result = SearchResult(algorithm=self.algorithm)
        search = SEARCH_FUNCTIONS[self.algorithm]

        start_time = time.time()
        result.path = search(grid_map, start, target, result.explored.append)
        result.elapsed_ms = (time.time() - start_time) * 1000  # Convert to ms

        if result.found:
            logger.debug(
                f"{self.algorithm.value} path {start} -> {target}: "
                f"{len(result.path)} cells, {len(result.explored)} explored, "
                f"{result.elapsed_ms:.1f}ms"
            )
        else:
            logger.debug(
                f"{self.algorithm.value} found no path {start} -> {target} "
                f"after exploring {len(result.explored)} cells"
            )

        return result
