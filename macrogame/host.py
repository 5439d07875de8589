"""
Minigame host contract.

A minigame never sees the FlowController. When the session enters the game
phase it is handed a MinigameHost: a small capability object with the slot's
data, the skin, the overlay gate and three callbacks. The host enforces the
lifecycle rules at the boundary:

- on_end is honored at most once; repeats are logged and dropped
- events reported after the game ended (or after teardown) are dropped
- on_interaction fires once, on the first qualifying input behind the overlay

Minigame plugins subclass Minigame. Metadata lives in class attributes so the
registry can list games without instantiating them.

Usage:
    class MyGame(Minigame):
        GAME_ID = "mygame"
        NAME = "My Game"

        def start(self):
            self._track(self._scheduler.call_later(5.0, self._win))

        def _win(self):
            self._host.on_report_event('win')
            self._host.on_end(MinigameResult(win=True))
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

import pygame

from models import FlowEntry, MinigameResult, SkinConfig
from macrogame.input import InputEvent
from macrogame.logging import get_logger
from macrogame.scheduler import Scheduler, TaskHandle

log = get_logger('host')


class MinigameHost:
    """Capability object handed to one minigame instance.

    Args:
        game_data: The active flow entry
        skin_config: Visual assets for this slot
        is_overlay_visible: Whether the game starts behind the overlay gate
        on_end: Receives the single MinigameResult
        on_report_event: Receives reported event names
        on_interaction: Called when the overlay gate is dismissed
    """

    def __init__(
        self,
        game_data: FlowEntry,
        skin_config: SkinConfig,
        is_overlay_visible: bool,
        on_end: Callable[[MinigameResult], Any],
        on_report_event: Callable[[str], Any],
        on_interaction: Optional[Callable[[], Any]] = None,
    ):
        self._game_data = game_data
        self._skin_config = skin_config
        self._overlay = is_overlay_visible
        self._end_callback = on_end
        self._event_callback = on_report_event
        self._interaction_callback = on_interaction

        self._result: Optional[MinigameResult] = None
        self._interacted = False
        self._revoked = False

    @property
    def game_data(self) -> FlowEntry:
        return self._game_data

    @property
    def skin_config(self) -> SkinConfig:
        return self._skin_config

    @property
    def is_overlay_visible(self) -> bool:
        """True while the overlay gate is up (Overlay flow, no interaction yet)."""
        return self._overlay and not self._interacted and not self._revoked

    @property
    def ended(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> Optional[MinigameResult]:
        return self._result

    @property
    def revoked(self) -> bool:
        return self._revoked

    def on_end(self, result: MinigameResult) -> None:
        """Report the terminal result. Only the first call counts."""
        if self._revoked or self._result is not None:
            log.warning("Ignoring on_end(%s) from '%s': already %s",
                        result, self._game_data.id, 'torn down' if self._revoked else 'ended')
            return
        self._result = result
        log.debug("'%s' ended: win=%s", self._game_data.id, result.win)
        self._end_callback(result)

    def on_report_event(self, event_name: str) -> None:
        """Report a named scoring event. Dropped after the game ended."""
        if self._revoked or self._result is not None:
            log.warning("Ignoring event '%s' from '%s' after it ended", event_name, self._game_data.id)
            return
        self._event_callback(event_name)

    def on_interaction(self) -> None:
        """Signal the first qualifying input behind the overlay gate."""
        if self._interacted or self._revoked:
            return
        self._interacted = True
        log.debug("Overlay dismissed for '%s'", self._game_data.id)
        if self._interaction_callback is not None:
            self._interaction_callback()

    def revoke(self) -> None:
        """Disconnect the contract. Every later call is a no-op."""
        self._revoked = True


class Minigame(ABC):
    """Base class for minigame plugins.

    Class Attributes (metadata):
        GAME_ID: Registry id, matched against FlowEntry.id
        NAME: Display name
        DESCRIPTION: Short description of gameplay
        VERSION: Semantic version string
        AUTHOR: Author/team name
        CONTROLS: Controls hint, used when the flow entry gives none

    Subclasses must implement:
        - start(): Begin the simulation (schedule timers and frame tasks)
        - handle_input(events): Process input events
        - render(surface): Draw the game into the game area

    Timers and frame tasks registered through _track() are cancelled by
    dispose(), which the host calls when the game ends or is unmounted.
    """

    GAME_ID: str = ""
    NAME: str = "Unnamed Game"
    DESCRIPTION: str = "No description"
    VERSION: str = "1.0.0"
    AUTHOR: str = "Unknown"
    CONTROLS: str = ""

    def __init__(self, host: MinigameHost, scheduler: Scheduler, **kwargs):
        self._host = host
        self._scheduler = scheduler
        self._handles: List[TaskHandle] = []
        self._disposed = False

    @classmethod
    def get_info(cls) -> Dict[str, Any]:
        """Get game metadata as a dictionary."""
        return {
            'id': cls.GAME_ID,
            'name': cls.NAME,
            'description': cls.DESCRIPTION,
            'version': cls.VERSION,
            'author': cls.AUTHOR,
            'controls': cls.CONTROLS,
        }

    @property
    def host(self) -> MinigameHost:
        return self._host

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _track(self, handle: TaskHandle) -> TaskHandle:
        """Own a scheduler handle so dispose() cancels it."""
        self._handles.append(handle)
        return handle

    @abstractmethod
    def start(self) -> None:
        """Begin the simulation."""
        pass

    @abstractmethod
    def handle_input(self, events: Sequence[InputEvent]) -> None:
        """Process input events."""
        pass

    @abstractmethod
    def render(self, surface: pygame.Surface) -> None:
        """Draw the game into the game area."""
        pass

    def dispose(self) -> None:
        """Cancel every owned timer and frame task. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()


class MinigameMount:
    """A mounted minigame and the host it was given."""

    def __init__(self, host: MinigameHost, minigame: Minigame):
        self.host = host
        self.minigame = minigame
        self._torn_down = False

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def teardown(self) -> None:
        """Revoke the contract and dispose the minigame. Idempotent."""
        if self._torn_down:
            return
        self._torn_down = True
        self.host.revoke()
        self.minigame.dispose()
