"""
Minigame Registry - Auto-discovery of minigame plugins.

Minigames are discovered by scanning the games/ directory for subdirectories
containing a game_mode.py with a class inheriting from Minigame. Each class
is registered under its GAME_ID, which flow entries reference by id.

Usage:
    from games.registry import MinigameRegistry

    registry = MinigameRegistry()
    available = registry.list_games()  # ['avoid', ...]

    info = registry.get_game_info('avoid')
    game = registry.create('avoid', host, scheduler)
"""

import importlib
import inspect
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Type

from macrogame.errors import MinigameNotFoundError
from macrogame.host import Minigame, MinigameHost
from macrogame.logging import get_logger
from macrogame.scheduler import Scheduler

log = get_logger('registry')

GAMES_DIR = Path(__file__).parent


@dataclass
class GameInfo:
    """Information about a registered minigame."""
    game_id: str
    name: str
    description: str
    version: str
    author: str
    controls: str
    module_path: str  # e.g., 'games.Avoid'


class MinigameRegistry:
    """
    Registry of minigame plugins keyed by id.

    Discovery works by:
    1. Looking for game_mode.py in each game directory
    2. Finding classes defined there that inherit from Minigame
    3. Reading metadata from class attributes (GAME_ID, NAME, ...)

    Args:
        games_dir: Directory to scan, or None to skip discovery
    """

    def __init__(self, games_dir: Optional[Path] = GAMES_DIR):
        self._games: Dict[str, GameInfo] = {}
        self._classes: Dict[str, Type[Minigame]] = {}
        if games_dir is not None:
            self._discover_games(games_dir)

    def _discover_games(self, games_dir: Path) -> None:
        """Register every minigame found under games_dir."""
        skip_dirs = {'tests', '__pycache__'}

        for game_dir in sorted(games_dir.iterdir()):
            if not game_dir.is_dir():
                continue
            if game_dir.name.startswith('_') or game_dir.name.startswith('.'):
                continue
            if game_dir.name.lower() in skip_dirs:
                continue
            if (game_dir / 'game_mode.py').exists():
                self._register_game_dir(game_dir)

    def _register_game_dir(self, game_dir: Path) -> None:
        module_path = f"games.{game_dir.name}"
        try:
            module = importlib.import_module(f"{module_path}.game_mode")
        except Exception as e:
            # Skip games that fail to load
            log.warning("Failed to load game from %s: %s", game_dir, e)
            return

        for _, obj in inspect.getmembers(module, inspect.isclass):
            # Only classes defined in this module
            if obj.__module__ != module.__name__:
                continue
            if issubclass(obj, Minigame) and obj is not Minigame and obj.GAME_ID:
                self.register(obj, module_path=module_path)

    def register(self, game_class: Type[Minigame], module_path: str = '') -> None:
        """
        Register a minigame class under its GAME_ID.

        Raises:
            ValueError: If the class has no GAME_ID
        """
        game_id = game_class.GAME_ID.lower()
        if not game_id:
            raise ValueError(f"{game_class.__name__} has no GAME_ID")
        if game_id in self._classes and self._classes[game_id] is not game_class:
            log.warning("Replacing minigame '%s' (%s -> %s)", game_id,
                        self._classes[game_id].__name__, game_class.__name__)

        self._classes[game_id] = game_class
        self._games[game_id] = GameInfo(
            game_id=game_id,
            name=game_class.NAME,
            description=game_class.DESCRIPTION,
            version=game_class.VERSION,
            author=game_class.AUTHOR,
            controls=game_class.CONTROLS,
            module_path=module_path or game_class.__module__,
        )
        log.debug("Registered minigame '%s' (%s)", game_id, game_class.__name__)

    def __contains__(self, game_id: object) -> bool:
        return isinstance(game_id, str) and game_id.lower() in self._classes

    def list_games(self) -> List[str]:
        """
        Get list of available game ids.

        Returns:
            Sorted list of game ids
        """
        return sorted(self._games.keys())

    def get_game_info(self, game_id: str) -> Optional[GameInfo]:
        return self._games.get(game_id.lower())

    def get_game_class(self, game_id: str) -> Type[Minigame]:
        """
        Get the class registered under game_id.

        Raises:
            MinigameNotFoundError: If no game has that id
        """
        game_class = self._classes.get(game_id.lower())
        if game_class is None:
            raise MinigameNotFoundError(game_id)
        return game_class

    def create(self, game_id: str, host: MinigameHost, scheduler: Scheduler, **kwargs) -> Minigame:
        """
        Create a fresh minigame instance for one flow slot.

        Args:
            game_id: Flow entry id
            host: Contract for this instance
            scheduler: Clock for the instance's timers and frame tasks
            **kwargs: Additional game-specific arguments

        Raises:
            MinigameNotFoundError: If no game has that id
        """
        return self.get_game_class(game_id)(host, scheduler, **kwargs)


_registry: Optional[MinigameRegistry] = None


def get_registry() -> MinigameRegistry:
    """Get the shared registry, discovering games on first use."""
    global _registry
    if _registry is None:
        _registry = MinigameRegistry()
    return _registry
