"""
Navigation primitives for the drone path planning simulator.
Provides the occupancy grid, A*/Dijkstra search, moving obstacles and collision prediction.
"""

from .grid_map import Cell, GridMap, NEIGHBOR_OFFSETS
from .path_search import (
    SearchAlgorithm,
    SearchNode,
    SearchResult,
    PathPlanner,
    find_path_astar,
    find_path_dijkstra,
    manhattan,
)
from .moving_obstacles import Heading, ObstacleKind, MovingObstacle, MovingObstacleSimulator
from .collision_predictor import will_collide, find_conflicts

__all__ = [
    'Cell',
    'GridMap',
    'NEIGHBOR_OFFSETS',
    'SearchAlgorithm',
    'SearchNode',
    'SearchResult',
    'PathPlanner',
    'find_path_astar',
    'find_path_dijkstra',
    'manhattan',
    'Heading',
    'ObstacleKind',
    'MovingObstacle',
    'MovingObstacleSimulator',
    'will_collide',
    'find_conflicts',
]
