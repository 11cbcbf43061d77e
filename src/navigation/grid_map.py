"""
Occupancy Grid Model
Static obstacle map with bounds checks and 4-connected neighbor expansion
for drone navigation on a discrete grid.
"""

import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

# (x, y) integer cell coordinates
Cell = Tuple[int, int]

FREE = 0
BLOCKED = 1

# Neighbor enumeration order: up, right, down, left (y grows downward)
NEIGHBOR_OFFSETS: Tuple[Cell, ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


class GridMap:
    """
    Grid-based occupancy map for obstacle representation and traversal checks.

    Cells are indexed as grid[x, y] with 0 = free and 1 = blocked.
    """

    def __init__(self, width: int, height: int):
        """
        Initialize an empty grid.

        Args:
            width: Number of columns (x dimension)
            height: Number of rows (y dimension)
        """
        if int(width) <= 0 or int(height) <= 0:
            raise ValueError(f"Invalid grid dimensions: {width}x{height}")

        self.width_cells = int(width)
        self.height_cells = int(height)
        self.grid = np.zeros((self.width_cells, self.height_cells), dtype=np.uint8)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "GridMap":
        """
        Build a grid from row-major 0/1 values (rows[y][x]).

        Raises:
            ValueError: If there are no rows or the rows have different lengths
        """
        if len(rows) == 0 or len(rows[0]) == 0:
            raise ValueError("Grid rows must not be empty")

        width = len(rows[0])
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {y} has length {len(row)}, expected {width}"
                )

        grid_map = cls(width, len(rows))
        grid_map.grid = (np.asarray(rows, dtype=np.uint8).T != FREE).astype(np.uint8)
        return grid_map

    @classmethod
    def from_config(cls, config: Dict) -> "GridMap":
        """
        Build a grid from the 'grid' configuration section.

        Args:
            config: Dictionary containing:
                - width: Number of columns
                - height: Number of rows
                - obstacles: List of [x, y] blocked cells
        """
        grid_map = cls(config.get('width', 20), config.get('height', 20))
        for cell in config.get('obstacles', []) or []:
            grid_map.set_blocked((int(cell[0]), int(cell[1])), True)
        return grid_map

    def copy(self) -> "GridMap":
        """Return an independent copy of this grid."""
        clone = GridMap(self.width_cells, self.height_cells)
        clone.grid = self.grid.copy()
        return clone

    def in_bounds(self, cell: Cell) -> bool:
        """Check whether a cell lies inside the grid."""
        x, y = cell
        return 0 <= x < self.width_cells and 0 <= y < self.height_cells

    def require_in_bounds(self, cell: Optional[Cell]) -> Cell:
        """Return the cell as an (int, int) tuple, raising for None or out-of-range cells."""
        if cell is None:
            raise ValueError("Cell must not be None")
        x, y = int(cell[0]), int(cell[1])
        if not self.in_bounds((x, y)):
            raise ValueError(
                f"Cell {cell} is outside the {self.width_cells}x{self.height_cells} grid"
            )
        return x, y

    def is_blocked(self, cell: Cell) -> bool:
        """
        Check if a cell is not traversable.

        Out-of-bounds cells are reported as blocked.
        """
        if not self.in_bounds(cell):
            return True
        return self.grid[cell[0], cell[1]] == BLOCKED

    def is_free(self, cell: Cell) -> bool:
        """Inverse of is_blocked."""
        return not self.is_blocked(cell)

    def neighbors4(self, cell: Cell) -> List[Cell]:
        """
        Get free orthogonal neighbors in fixed order (up, right, down, left).

        Args:
            cell: (x, y) cell to expand

        Returns:
            List of in-bounds, free neighbor cells
        """
        neighbors = []
        x, y = cell

        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy

            if (0 <= nx < self.width_cells and
                0 <= ny < self.height_cells and
                self.grid[nx, ny] == FREE):
                neighbors.append((nx, ny))

        return neighbors

    def set_blocked(self, cell: Cell, blocked: bool):
        """Mark a cell as blocked or free."""
        x, y = self.require_in_bounds(cell)
        self.grid[x, y] = BLOCKED if blocked else FREE

    def toggle(self, cell: Cell) -> bool:
        """
        Flip the occupancy of a cell.

        Returns:
            True if the cell is blocked after the toggle
        """
        x, y = self.require_in_bounds(cell)
        self.grid[x, y] = FREE if self.grid[x, y] == BLOCKED else BLOCKED
        return bool(self.grid[x, y] == BLOCKED)

    def randomize(self, density: float, rng: np.random.Generator,
                  keep_clear: Sequence[Optional[Cell]] = ()):
        """
        Replace the map with random terrain.

        Args:
            density: Probability that each cell is blocked (0.0 - 1.0)
            rng: Random generator used to draw the terrain
            keep_clear: Cells forced free afterwards (start/target)
        """
        if not 0.0 <= density <= 1.0:
            raise ValueError(f"Invalid obstacle density: {density}")

        self.grid = (rng.random((self.width_cells, self.height_cells)) < density).astype(np.uint8)

        for cell in keep_clear:
            if cell is not None:
                self.set_blocked(cell, False)

    def free_cells(self) -> List[Cell]:
        """List all free cells in row-major order."""
        return [
            (x, y)
            for y in range(self.height_cells)
            for x in range(self.width_cells)
            if self.grid[x, y] == FREE
        ]

    def obstacle_count(self) -> int:
        """Number of statically blocked cells."""
        return int(np.count_nonzero(self.grid))

    def to_rows(self) -> List[List[int]]:
        """Export as row-major 0/1 lists (rows[y][x])."""
        return self.grid.T.astype(int).tolist()
