"""
Headless mission runner.

Loads a configuration, starts a mission and paces ticks in real time (or
as fast as possible with --no-delay), logging every status change.
"""

import argparse
import logging
import time
from typing import List, Optional

from .config_loader import DEFAULT_CONFIG_PATH, load_config
from .mission_controller import MissionController, MissionSnapshot

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drone path planning mission simulator")
    parser.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH,
                        help="Path to mission YAML configuration")
    parser.add_argument("--algorithm", choices=["astar", "dijkstra"],
                        help="Override the search algorithm")
    parser.add_argument("--dynamic", action="store_true",
                        help="Enable moving obstacles")
    parser.add_argument("--seed", type=int, help="Random seed for terrain and obstacles")
    parser.add_argument("--randomize", action="store_true",
                        help="Randomize the terrain before flying")
    parser.add_argument("--speed", type=float, choices=[0.5, 1, 2],
                        help="Pacing speed multiplier")
    parser.add_argument("--no-delay", action="store_true",
                        help="Run ticks back to back without sleeping")
    parser.add_argument("--max-ticks", type=int, default=100000,
                        help="Give up after this many ticks")
    return parser.parse_args(argv)


def build_controller(args: argparse.Namespace) -> MissionController:
    """Create a controller from the config file and command-line overrides."""
    config = load_config(args.config)

    if args.algorithm:
        config['mission']['algorithm'] = args.algorithm
    if args.dynamic:
        config['mission']['dynamic_mode'] = True
    if args.seed is not None:
        config['moving_obstacles']['seed'] = args.seed
    if args.speed is not None:
        config['mission']['speed'] = args.speed

    controller = MissionController(config=config)

    if args.randomize:
        controller.randomize_grid()

    return controller


def run_mission(controller: MissionController, delay: bool = True,
                max_ticks: int = 100000) -> MissionSnapshot:
    """
    Start the mission and tick it to a terminal state.

    Args:
        controller: Configured controller in IDLE
        delay: Sleep tick_interval() seconds between ticks
        max_ticks: Upper bound on the number of ticks

    Returns:
        Final snapshot
    """
    last_status = {"value": None}

    def log_status(snapshot: MissionSnapshot):
        if snapshot.status != last_status["value"]:
            last_status["value"] = snapshot.status
            logger.info(f"[{snapshot.state.value}] {snapshot.status}")

    controller.register_snapshot_listener(log_status)

    if not controller.start():
        logger.error(f"Mission not started: {controller.last_rejection}")
        return controller.get_snapshot()

    for _ in range(max_ticks):
        if not controller.state_machine.is_active():
            break
        if delay:
            time.sleep(controller.tick_interval())
        controller.tick()
    else:
        logger.warning(f"Mission still {controller.state.value} after {max_ticks} ticks")

    return controller.get_snapshot()


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    args = parse_args(argv)
    controller = build_controller(args)
    snapshot = run_mission(controller, delay=not args.no_delay, max_ticks=args.max_ticks)

    print("\n=== Mission Summary ===")
    for key, value in controller.get_mission_status().items():
        print(f"{key}: {value}")

    return 0 if snapshot.status == "Mission complete!" else 1


if __name__ == '__main__':
    raise SystemExit(main())
