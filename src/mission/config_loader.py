"""
Mission configuration loading.

Reads a YAML file and merges it over the built-in defaults so that a
partial file only needs the keys it changes.
"""

import copy
import logging
import os
from typing import Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(__file__),
    'config', 'mission_config.yaml'
)

DEFAULT_CONFIG = {
    'grid': {
        'width': 20,
        'height': 20,
        'obstacles': [],
        'random_density': 0.3,
    },
    'mission': {
        'start': [2, 2],
        'end': [17, 17],
        'algorithm': 'astar',
        'dynamic_mode': False,
        'speed': 1,
        'exploration_batch': 3,
        'avoid_moving_obstacles_on_replan': False,
    },
    'moving_obstacles': {
        'min_count': 3,
        'max_count': 5,
        'seed': None,
    },
    # Base intervals in seconds, divided by the speed multiplier
    'timing': {
        'exploration_step': 0.01,
        'path_reveal_pause': 0.3,
        'flight_step': 0.1,
        'replan_pause': 0.5,
    },
}


def merge_config(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Optional[str] = None) -> Dict:
    """
    Load configuration from YAML file

    Args:
        config_path: Path to config file (defaults only if None or missing)

    Returns:
        Configuration dictionary

    Raises:
        ValueError: If the file does not contain a YAML mapping
    """
    if config_path is None or not os.path.exists(config_path):
        if config_path is not None:
            logger.warning(f"Config file not found: {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, 'r') as f:
        user_config = yaml.safe_load(f)

    if user_config is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(user_config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    logger.info(f"Loaded configuration from {config_path}")
    return merge_config(DEFAULT_CONFIG, user_config)
