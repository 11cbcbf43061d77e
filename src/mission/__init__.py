"""
Mission package

This package contains the mission layer of the drone path planning simulator:
- State machine for mission phases
- Mission controller with dynamic replanning
- YAML configuration loading
- Headless command-line runner
"""

from .mission_state_machine import MissionState, MissionStateMachine, StateTransition, TERMINAL_STATES
from .mission_controller import MissionController, MissionSnapshot, create_mission_controller
from .config_loader import DEFAULT_CONFIG, load_config, merge_config

__all__ = [
    'MissionState',
    'MissionStateMachine',
    'StateTransition',
    'TERMINAL_STATES',
    'MissionController',
    'MissionSnapshot',
    'create_mission_controller',
    'DEFAULT_CONFIG',
    'load_config',
    'merge_config',
]
