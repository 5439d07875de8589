"""
Avoid - Configuration loader.

Loads settings from .env file with sensible defaults. Positions and sizes
are in the normalized 0-100 arena.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from game directory
_env_path = Path(__file__).parent / '.env'
load_dotenv(_env_path)


def _get_float(key: str, default: float) -> float:
    """Get float from environment."""
    return float(os.getenv(key, str(default)))


# Arena
ARENA_SIZE = 100.0

# Entity sizes
PLAYER_WIDTH = _get_float('AVOID_PLAYER_WIDTH', 7.0)
PLAYER_HEIGHT = _get_float('AVOID_PLAYER_HEIGHT', 13.0)
OBSTACLE_WIDTH = _get_float('AVOID_OBSTACLE_WIDTH', 9.0)
OBSTACLE_HEIGHT = _get_float('AVOID_OBSTACLE_HEIGHT', 17.0)

# Motion (units per frame)
PLAYER_SPEED = _get_float('AVOID_PLAYER_SPEED', 1.2)
MIN_OBSTACLE_SPEED = _get_float('AVOID_MIN_OBSTACLE_SPEED', 0.2)
MAX_OBSTACLE_SPEED = _get_float('AVOID_MAX_OBSTACLE_SPEED', 0.4)
CORNER_INSET = 5.0  # obstacles start this far in from each corner

# Timing
GAME_DURATION = _get_float('AVOID_GAME_DURATION', 8.0)  # seconds survived to win
TIMER_STEP = 0.1  # countdown bar update interval (seconds)

# Visual
BACKGROUND_COLOR = (26, 26, 46)
PLAYER_COLOR = (233, 69, 96)
OBSTACLE_COLOR = (240, 227, 227)
TIMER_COLOR = (76, 175, 80)
TIMER_TRACK_COLOR = (0, 0, 0, 77)
TIMER_HEIGHT = 8  # pixels
OVERLAY_COLOR = (0, 0, 0, 178)
TEXT_COLOR = (255, 255, 255)
