"""
Collision Predictor
Point-in-time overlap check between moving obstacles and the remaining
portion of a planned path. Obstacle motion is not projected forward.
"""

from typing import Iterable, List, Sequence, Tuple

from .grid_map import Cell
from .moving_obstacles import MovingObstacle


def find_conflicts(obstacles: Iterable[MovingObstacle],
                   remaining_path: Sequence[Cell]) -> List[Tuple[str, Cell]]:
    """
    List every obstacle currently sitting on the remaining path.

    Returns:
        (obstacle id, cell) pairs in obstacle order
    """
    path_cells = set(remaining_path)
    return [
        (obstacle.id, obstacle.position)
        for obstacle in obstacles
        if obstacle.position in path_cells
    ]


def will_collide(obstacles: Iterable[MovingObstacle], remaining_path: Sequence[Cell]) -> bool:
    """True if any obstacle occupies any cell of the not-yet-traversed path."""
    path_cells = set(remaining_path)
    return any(obstacle.position in path_cells for obstacle in obstacles)
