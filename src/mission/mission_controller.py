"""
Mission Controller

Drives a single drone across the grid: initial plan, exploration playback,
stepwise flight, moving obstacle updates, collision checks and replanning.
The controller never sleeps; an external pacer calls tick() and may use
tick_interval() to decide how long to wait between ticks.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from navigation.grid_map import Cell, GridMap
from navigation.path_search import PathPlanner, SearchAlgorithm, SearchResult
from navigation.moving_obstacles import MovingObstacle, MovingObstacleSimulator
from navigation.collision_predictor import find_conflicts, will_collide

from .config_loader import DEFAULT_CONFIG, load_config, merge_config
from .mission_state_machine import MissionState, MissionStateMachine

STATUS_WAITING = "Waiting for input..."
STATUS_COMPUTING = "Computing path..."
STATUS_PATH_FOUND = "Path found! Executing flight..."
STATUS_IN_FLIGHT = "Drone in flight..."
STATUS_OBSTACLE = "Obstacle detected! Recalculating..."
STATUS_NEW_PATH = "Following new path..."
STATUS_COMPLETE = "Mission complete!"
STATUS_NO_PATH = "No path found!"
STATUS_NO_ALTERNATIVE = "No alternative path!"
STATUS_CANCELLED = "Mission cancelled"


@dataclass(frozen=True)
class MissionSnapshot:
    """Observable mission state after a controller call"""
    state: MissionState
    paused: bool
    status: str
    agent_position: Optional[Cell]
    path: Tuple[Cell, ...]
    exploration: Tuple[Cell, ...]
    revealed_count: int
    obstacles: Tuple[MovingObstacle, ...]
    last_replanned_path: Tuple[Cell, ...]
    path_length: int
    explored_count: int
    obstacle_count: int
    moving_obstacle_count: int
    replan_count: int
    elapsed_search_ms: float
    tick_count: int
    failure_reason: Optional[str] = None

    @property
    def revealed_exploration(self) -> Tuple[Cell, ...]:
        return self.exploration[:self.revealed_count]


class MissionController:
    """
    Mission controller for autonomous grid navigation with dynamic replanning.

    Inputs (grid edits, endpoints, algorithm, dynamic mode, speed, pause,
    start/stop/reset) are plain method calls. Rejected requests return False,
    leave state unchanged and record the reason in last_rejection.
    """

    SPEED_MULTIPLIERS = (0.5, 1, 2)

    def __init__(self, config: Optional[Dict] = None,
                 grid_map: Optional[GridMap] = None,
                 simulator: Optional[MovingObstacleSimulator] = None):
        """
        Initialize the controller.

        Args:
            config: Configuration dictionary, merged over the defaults
            grid_map: Grid to use instead of building one from config['grid']
            simulator: Moving obstacle simulator (built from config if None)
        """
        self.logger = logging.getLogger("MissionController")
        self.config = merge_config(DEFAULT_CONFIG, config or {})

        grid_config = self.config['grid']
        mission_config = self.config['mission']
        obstacle_config = self.config['moving_obstacles']

        self.grid_map = grid_map if grid_map is not None else GridMap.from_config(grid_config)
        self.rng = np.random.default_rng(obstacle_config.get('seed'))
        self.simulator = simulator if simulator is not None else MovingObstacleSimulator(
            rng=self.rng,
            min_count=obstacle_config.get('min_count', 3),
            max_count=obstacle_config.get('max_count', 5),
        )

        self.state_machine = MissionStateMachine()
        self.planner = PathPlanner(mission_config.get('algorithm', 'astar'))
        self.dynamic_mode = bool(mission_config.get('dynamic_mode', False))
        self.speed = mission_config.get('speed', 1)
        if isinstance(self.speed, bool) or self.speed not in self.SPEED_MULTIPLIERS:
            raise ValueError(f"Invalid speed multiplier: {self.speed}")

        self.exploration_batch = max(1, int(mission_config.get('exploration_batch', 3)))
        self.avoid_moving_obstacles_on_replan = bool(
            mission_config.get('avoid_moving_obstacles_on_replan', False)
        )
        self.random_density = grid_config.get('random_density', 0.3)
        self.timing = self.config['timing']

        self.start_cell: Optional[Cell] = None
        self.target_cell: Optional[Cell] = None
        self.last_rejection: Optional[str] = None
        self.snapshot_listeners: List[Callable[[MissionSnapshot], None]] = []
        self._cancel_requested = False

        self._clear_mission_data()

        self._apply_configured_endpoint('start', mission_config.get('start'))
        self._apply_configured_endpoint('end', mission_config.get('end'))

    # ------------------------------------------------------------------
    # Mission data
    # ------------------------------------------------------------------

    def _clear_mission_data(self):
        """Drop path, trace, obstacles and counters (grid and endpoints are kept)"""
        self.path: List[Cell] = []
        self.path_index = 0
        self.agent_position: Optional[Cell] = None
        self.exploration: List[Cell] = []
        self.revealed_count = 0
        self.obstacles: List[MovingObstacle] = []
        self.last_replanned_path: List[Cell] = []
        self.replan_count = 0
        self.elapsed_search_ms = 0.0
        self.tick_count = 0
        self.status = STATUS_WAITING
        self._interval_key = 'flight_step'

    def _apply_configured_endpoint(self, which: str, value):
        if value is None:
            return
        cell = (int(value[0]), int(value[1]))
        if not self.grid_map.in_bounds(cell):
            self.logger.warning(f"Configured {which} {cell} is outside the grid, ignoring")
            return
        if which == 'start':
            self.set_start(cell)
        else:
            self.set_end(cell)

    @property
    def state(self) -> MissionState:
        return self.state_machine.current_state

    @property
    def paused(self) -> bool:
        return self.state_machine.paused

    @property
    def algorithm(self) -> SearchAlgorithm:
        return self.planner.algorithm

    @property
    def revealed_exploration(self) -> List[Cell]:
        return self.exploration[:self.revealed_count]

    # ------------------------------------------------------------------
    # Request validation
    # ------------------------------------------------------------------

    def _reject(self, reason: str) -> bool:
        self.last_rejection = reason
        self.logger.warning(f"Request rejected: {reason}")
        return False

    def _check_editable(self, action: str) -> bool:
        if self.state_machine.is_active():
            return self._reject(f"Cannot {action} while mission is {self.state.value}")
        return True

    # ------------------------------------------------------------------
    # Grid and endpoint edits
    # ------------------------------------------------------------------

    def toggle_obstacle(self, cell: Cell) -> bool:
        """
        Flip a static obstacle.

        Rejected while a mission is active, and on the current start or target cell.
        """
        if not self._check_editable("edit the grid"):
            return False

        cell = self.grid_map.require_in_bounds(cell)
        if cell == self.start_cell or cell == self.target_cell:
            return self._reject(f"Cannot place an obstacle on the start or target cell {cell}")

        blocked = self.grid_map.toggle(cell)
        self.logger.debug(f"Cell {cell} {'blocked' if blocked else 'cleared'}")
        self._notify()
        return True

    def set_start(self, cell: Cell) -> bool:
        """Place the start point, clearing any obstacle under it."""
        if not self._check_editable("move the start point"):
            return False

        cell = self.grid_map.require_in_bounds(cell)
        self.grid_map.set_blocked(cell, False)
        self.start_cell = cell
        self.logger.info(f"Start point set to {cell}")
        self._notify()
        return True

    def set_end(self, cell: Cell) -> bool:
        """Place the target point, clearing any obstacle under it."""
        if not self._check_editable("move the target point"):
            return False

        cell = self.grid_map.require_in_bounds(cell)
        self.grid_map.set_blocked(cell, False)
        self.target_cell = cell
        self.logger.info(f"Target point set to {cell}")
        self._notify()
        return True

    def randomize_grid(self, density: Optional[float] = None) -> bool:
        """Replace the terrain with random obstacles, keeping start and target free."""
        if not self._check_editable("randomize the terrain"):
            return False

        density = self.random_density if density is None else density
        self.grid_map.randomize(density, self.rng, keep_clear=(self.start_cell, self.target_cell))
        self.logger.info(
            f"Terrain randomized: {self.grid_map.obstacle_count()} obstacles (density {density})"
        )
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Mission settings
    # ------------------------------------------------------------------

    def set_algorithm(self, algorithm) -> bool:
        """Select "astar" or "dijkstra" for the next mission."""
        parsed = SearchAlgorithm.parse(algorithm)
        if not self._check_editable("change the algorithm"):
            return False
        self.planner = PathPlanner(parsed)
        self.logger.info(f"Algorithm set to {parsed.value}")
        return True

    def set_dynamic_mode(self, enabled: bool) -> bool:
        """Enable or disable moving obstacles for the next mission."""
        if not self._check_editable("change dynamic mode"):
            return False
        self.dynamic_mode = bool(enabled)
        self.logger.info(f"Dynamic mode {'enabled' if self.dynamic_mode else 'disabled'}")
        return True

    def set_speed_multiplier(self, speed) -> bool:
        """Set the pacing multiplier (0.5, 1 or 2); has no effect on planning."""
        if isinstance(speed, bool) or speed not in self.SPEED_MULTIPLIERS:
            return self._reject(f"Unsupported speed multiplier {speed}")
        self.speed = speed
        return True

    def pause(self) -> bool:
        """Freeze flight progression without changing state."""
        self.state_machine.paused = True
        self.logger.info("Mission paused")
        self._notify()
        return True

    def resume(self) -> bool:
        """Continue flight progression from where it was paused."""
        self.state_machine.paused = False
        self.logger.info("Mission resumed")
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Mission lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Start a mission: plan from start to target and begin exploration playback.

        The initial search runs to completion inside this call, so the
        controller leaves it either EXPLORING or FAILED.

        Returns:
            True if the request was accepted (check state for the outcome)
        """
        if self.state != MissionState.IDLE:
            return self._reject(
                f"Cannot start a mission from {self.state.value}, reset first"
            )
        if self.start_cell is None or self.target_cell is None:
            return self._reject("Please set both start and target points")

        self._clear_mission_data()
        self._cancel_requested = False
        self.state_machine.paused = False
        self.last_rejection = None

        self.state_machine.start_mission()
        self.state_machine.transition_to(MissionState.PLANNING, reason="simulate requested")
        self.status = STATUS_COMPUTING

        result = self._run_search(self.grid_map, self.start_cell)

        if not result.found:
            self.status = STATUS_NO_PATH
            self.state_machine.fail_mission("No path found")
            self._notify()
            return True

        self.path = list(result.path)
        self.path_index = 0

        if self.dynamic_mode:
            self.obstacles = self.simulator.generate(
                self.grid_map, self.start_cell, self.target_cell, self.simulator.random_count()
            )
        else:
            self.obstacles = []

        self.state_machine.transition_to(
            MissionState.EXPLORING,
            reason=f"path of {len(self.path)} cells found"
        )
        self.status = STATUS_PATH_FOUND
        self._interval_key = 'exploration_step'
        self._notify()
        return True

    def stop(self) -> bool:
        """
        Request cancellation; honoured at the top of the next tick.
        """
        if not self.state_machine.is_active():
            return self._reject(f"No active mission to stop (state {self.state.value})")
        self._cancel_requested = True
        self.logger.info("Stop requested")
        return True

    def reset(self) -> bool:
        """
        Cancel any active mission and return to IDLE.

        Clears path, exploration trace, obstacles and counters; the grid and
        the start/target points are kept.
        """
        if self.state_machine.is_active():
            self._cancel()

        self._cancel_requested = False
        self.state_machine.reset()
        self._clear_mission_data()
        self.logger.info("Mission reset")
        self._notify()
        return True

    def _cancel(self):
        self.state_machine.cancel_mission(reason="stop requested")
        self.status = STATUS_CANCELLED

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> MissionSnapshot:
        """
        Advance the mission by one discrete step.

        Returns:
            Snapshot of the state after the step
        """
        if self._cancel_requested:
            self._cancel_requested = False
            if self.state_machine.is_active():
                self._cancel()
                self._notify()
            return self.get_snapshot()

        state = self.state

        if state == MissionState.EXPLORING:
            self.tick_count += 1
            self._advance_exploration()
            self._notify()
        elif state == MissionState.FLYING:
            if self.paused:
                return self.get_snapshot()
            self.tick_count += 1
            self._advance_flight()
            self._notify()

        return self.get_snapshot()

    def _advance_exploration(self):
        """Reveal the next batch of the exploration trace."""
        self.revealed_count = min(self.revealed_count + self.exploration_batch, len(self.exploration))
        self._interval_key = 'exploration_step'

        if self.revealed_count >= len(self.exploration):
            self.agent_position = self.path[0]
            self.state_machine.transition_to(MissionState.FLYING, reason="exploration playback finished")
            self.status = STATUS_IN_FLIGHT
            self._interval_key = 'path_reveal_pause'

    def _advance_flight(self):
        """Move the agent one cell, updating obstacles on even path indices."""
        current = self.path[self.path_index]
        self.agent_position = current
        self._interval_key = 'flight_step'

        if self.dynamic_mode and self.path_index % 2 == 0:
            self.obstacles = self.simulator.tick(self.grid_map, self.obstacles)
            remaining = self.path[self.path_index + 1:]

            if will_collide(self.obstacles, remaining):
                self._replan(current, remaining)
                return

        self.path_index += 1

        if self.path_index >= len(self.path):
            self.status = STATUS_COMPLETE
            self.state_machine.transition_to(MissionState.COMPLETED, reason="target reached")

    def _replan(self, origin: Cell, remaining: List[Cell]):
        """Single replanning attempt from the agent's current cell."""
        conflicts = find_conflicts(self.obstacles, remaining)
        self.state_machine.transition_to(
            MissionState.REPLANNING,
            reason=f"obstacle on path at {[cell for _, cell in conflicts]}"
        )
        self.status = STATUS_OBSTACLE
        self.replan_count += 1

        result = self._run_search(self._replan_grid(origin), origin)
        self.revealed_count = len(self.exploration)

        if not result.found:
            self.status = STATUS_NO_ALTERNATIVE
            self.state_machine.fail_mission(f"No alternative path from {origin}")
            return

        self.path = list(result.path)
        self.path_index = 0
        self.last_replanned_path = list(result.path)
        self.state_machine.transition_to(
            MissionState.FLYING,
            reason=f"replan #{self.replan_count}: {len(self.path)} cells"
        )
        self.status = STATUS_NEW_PATH
        self._interval_key = 'replan_pause'

    def _replan_grid(self, origin: Cell) -> GridMap:
        """Static grid, with moving obstacle cells blocked if configured."""
        if not self.avoid_moving_obstacles_on_replan:
            return self.grid_map

        snapshot = self.grid_map.copy()
        for obstacle in self.obstacles:
            if obstacle.position != origin and obstacle.position != self.target_cell:
                snapshot.set_blocked(obstacle.position, True)
        return snapshot

    def _run_search(self, grid_map: GridMap, origin: Cell) -> SearchResult:
        result = self.planner.plan_path(grid_map, origin, self.target_cell)
        self.exploration.extend(result.explored)
        self.elapsed_search_ms += result.elapsed_ms
        return result

    def run(self, max_ticks: int = 100000) -> MissionSnapshot:
        """
        Tick until the mission reaches a terminal state or max_ticks is hit.

        Returns:
            Final snapshot
        """
        for _ in range(max_ticks):
            if not self.state_machine.is_active():
                break
            self.tick()
        return self.get_snapshot()

    def tick_interval(self) -> float:
        """
        Seconds an external pacer should wait before the next tick.

        Depends on what the last tick did and is divided by the speed multiplier.
        """
        return self.timing.get(self._interval_key, 0.1) / self.speed

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def register_snapshot_listener(self, callback: Callable[[MissionSnapshot], None]):
        """
        Register a callback that receives a snapshot after every state-changing call.

        Args:
            callback: Function taking a MissionSnapshot
        """
        self.snapshot_listeners.append(callback)

    def _notify(self):
        if not self.snapshot_listeners:
            return
        snapshot = self.get_snapshot()
        for callback in self.snapshot_listeners:
            try:
                callback(snapshot)
            except Exception as e:
                self.logger.error(f"Error in snapshot listener: {e}")

    def get_snapshot(self) -> MissionSnapshot:
        """Immutable view of the current mission state."""
        return MissionSnapshot(
            state=self.state,
            paused=self.paused,
            status=self.status,
            agent_position=self.agent_position,
            path=tuple(self.path),
            exploration=tuple(self.exploration),
            revealed_count=self.revealed_count,
            obstacles=tuple(self.obstacles),
            last_replanned_path=tuple(self.last_replanned_path),
            path_length=len(self.path),
            explored_count=len(self.exploration),
            obstacle_count=self.grid_map.obstacle_count(),
            moving_obstacle_count=len(self.obstacles),
            replan_count=self.replan_count,
            elapsed_search_ms=self.elapsed_search_ms,
            tick_count=self.tick_count,
            failure_reason=self.state_machine.failure_reason,
        )

    def get_mission_status(self) -> dict:
        """
        Get summary status information about the mission.

        Returns:
            Dictionary containing state, status text and counters
        """
        status = self.state_machine.get_mission_status()
        status.update({
            "status": self.status,
            "algorithm": self.algorithm.value,
            "dynamic_mode": self.dynamic_mode,
            "speed": self.speed,
            "agent_position": self.agent_position,
            "path_length": len(self.path),
            "explored_count": len(self.exploration),
            "obstacle_count": self.grid_map.obstacle_count(),
            "moving_obstacle_count": len(self.obstacles),
            "replan_count": self.replan_count,
            "elapsed_search_ms": round(self.elapsed_search_ms, 3),
        })
        return status


def create_mission_controller(config_path: Optional[str] = None) -> MissionController:
    """
    Factory function to create a mission controller from a YAML config file.

    Args:
        config_path: Path to configuration file (defaults if None)

    Returns:
        Configured MissionController instance
    """
    return MissionController(config=load_config(config_path))
