"""
Macrogame engine configuration.

Values come from the environment (optionally a .env file at the project root)
with sensible defaults. Phase timings that are part of the session contract
are fixed constants and cannot be overridden.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent

# Load .env from project root
_env_path = PROJECT_ROOT / '.env'
load_dotenv(_env_path)


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment."""
    val = os.getenv(key, str(default)).lower()
    return val in ('true', '1', 'yes')


def _get_int(key: str, default: int) -> int:
    """Get integer from environment."""
    return int(os.getenv(key, str(default)))


def _get_float(key: str, default: float) -> float:
    """Get float from environment."""
    return float(os.getenv(key, str(default)))


# Display
SCREEN_WIDTH = _get_int('MACROGAME_SCREEN_WIDTH', 1280)
SCREEN_HEIGHT = _get_int('MACROGAME_SCREEN_HEIGHT', 720)
FPS = _get_int('MACROGAME_FPS', 60)

# Phase timing (seconds unless noted)
RESULT_SCREEN_DURATION = 1.5          # fixed
COMBINED_SCREEN_FALLBACK_MS = 2000    # used when titleScreenDuration is unset
DEFAULT_INTRO_DURATION = _get_float('MACROGAME_DEFAULT_INTRO_DURATION', 3.0)
DEFAULT_PROMO_DURATION = _get_float('MACROGAME_DEFAULT_PROMO_DURATION', 5.0)

# Audio
AUDIO_ENABLED = _get_bool('MACROGAME_AUDIO_ENABLED', True)
MUSIC_VOLUME = _get_float('MACROGAME_MUSIC_VOLUME', 0.5)
SFX_VOLUME = _get_float('MACROGAME_SFX_VOLUME', 0.8)
SOUNDS_DIR = Path(os.getenv('MACROGAME_SOUNDS_DIR', str(PROJECT_ROOT / 'sounds')))

# One-shot UI sound effects played on minigame termination
UI_SOUND_EFFECTS = {
    'win': SOUNDS_DIR / 'success.wav',
    'lose': SOUNDS_DIR / 'lose.wav',
}

# Colors
BACKGROUND_COLOR = (26, 26, 46)
TEXT_COLOR = (255, 255, 255)
WIN_COLOR = (46, 204, 113)
LOSE_COLOR = (231, 76, 60)
HUD_TEXT_COLOR = (255, 255, 255)
ERROR_TEXT_COLOR = (255, 120, 120)

# UI Settings
FONT_SIZE_SMALL = 24
FONT_SIZE_MEDIUM = 36
FONT_SIZE_LARGE = 56
FONT_SIZE_HUGE = 110
