"""
Moving Obstacle Simulator
Transient obstacles (cars, birds, other drones) that wander the grid one
cell per tick and re-roll their heading when they hit a wall or static obstacle.
"""

import logging
import numpy as np
from enum import Enum
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from .grid_map import Cell, GridMap

logger = logging.getLogger(__name__)


class Heading(Enum):
    """Movement direction of a moving obstacle (y grows downward)"""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def offset(self) -> Cell:
        return HEADING_OFFSETS[self]


HEADING_OFFSETS = {
    Heading.UP: (0, -1),
    Heading.DOWN: (0, 1),
    Heading.LEFT: (-1, 0),
    Heading.RIGHT: (1, 0),
}


class ObstacleKind(Enum):
    """Cosmetic obstacle type, no effect on motion"""
    CAR = "car"
    BIRD = "bird"
    DRONE = "drone"


@dataclass(frozen=True)
class MovingObstacle:
    """A transient obstacle; id is stable across ticks"""
    id: str
    position: Cell
    heading: Heading
    kind: ObstacleKind
    speed: int = 1


class MovingObstacleSimulator:
    """
    Generates and advances moving obstacles.

    All randomness comes from a numpy Generator so that runs can be reproduced
    from a seed.
    """

    HEADINGS = list(Heading)
    KINDS = list(ObstacleKind)

    def __init__(self, rng: Optional[np.random.Generator] = None,
                 min_count: int = 3, max_count: int = 5):
        """
        Initialize the simulator.

        Args:
            rng: Random generator (a fresh unseeded one if None)
            min_count: Minimum batch size for random_count()
            max_count: Maximum batch size for random_count()
        """
        if min_count < 0 or max_count < min_count:
            raise ValueError(f"Invalid obstacle count range: {min_count}..{max_count}")

        self.rng = rng if rng is not None else np.random.default_rng()
        self.min_count = min_count
        self.max_count = max_count

    def random_count(self) -> int:
        """Draw a batch size uniformly from [min_count, max_count]."""
        return int(self.rng.integers(self.min_count, self.max_count + 1))

    def _random_heading(self) -> Heading:
        return self.HEADINGS[int(self.rng.integers(len(self.HEADINGS)))]

    def generate(self, grid_map: GridMap, start: Optional[Cell], target: Optional[Cell],
                 count: int) -> List[MovingObstacle]:
        """
        Place obstacles uniformly at random on free cells.

        Start, target and already placed obstacles are excluded. If fewer
        eligible cells exist than requested, every eligible cell is used.

        Args:
            grid_map: Static occupancy grid
            start: Start cell to keep clear
            target: Target cell to keep clear
            count: Number of obstacles requested

        Returns:
            List of new MovingObstacle instances
        """
        excluded = {c for c in (start, target) if c is not None}
        candidates = [c for c in grid_map.free_cells() if c not in excluded]

        if count > len(candidates):
            logger.warning(
                f"Requested {count} moving obstacles but only {len(candidates)} free cells available"
            )
            count = len(candidates)

        chosen = self.rng.choice(len(candidates), size=count, replace=False) if count > 0 else []

        obstacles = []
        for i, index in enumerate(chosen):
            obstacles.append(MovingObstacle(
                id=f"obstacle-{i}",
                position=candidates[int(index)],
                heading=self._random_heading(),
                kind=self.KINDS[int(self.rng.integers(len(self.KINDS)))],
            ))

        logger.debug(f"Generated {len(obstacles)} moving obstacles")
        return obstacles

    def step_obstacle(self, grid_map: GridMap, obstacle: MovingObstacle) -> MovingObstacle:
        """
        Advance a single obstacle by one tick.

        If the next cell along the heading is out of bounds or statically
        blocked, the obstacle stays in place and picks a new random heading.
        """
        dx, dy = obstacle.heading.offset
        destination = (obstacle.position[0] + dx * obstacle.speed,
                       obstacle.position[1] + dy * obstacle.speed)

        if grid_map.is_blocked(destination):
            return replace(obstacle, heading=self._random_heading())

        return replace(obstacle, position=destination)

    def tick(self, grid_map: GridMap, obstacles: Iterable[MovingObstacle]) -> List[MovingObstacle]:
        """
        Advance all obstacles by one tick.

        Obstacles do not interact; overlaps between them are allowed.

        Returns:
            New list of updated obstacles in the same order
        """
        return [self.step_obstacle(grid_map, obstacle) for obstacle in obstacles]
