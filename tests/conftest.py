"""Pytest fixtures for engine tests."""
from typing import Any, Dict, List, Optional, Sequence

import pytest

from games.registry import MinigameRegistry
from models import (
    FlowEntry,
    MacrogameConfig,
    MacrogameSession,
    MinigameResult,
    ScreenConfig,
    ScreenFlowType,
)
from macrogame.audio import NullAudioBackend
from macrogame.flow import FlowController
from macrogame.host import Minigame, MinigameHost
from macrogame.input import InputEvent
from macrogame.music import MusicResolver
from macrogame.scheduler import Scheduler


class ScriptedGame(Minigame):
    """Minigame that reports scripted events and ends after a fixed delay.

    Args:
        events: Event names reported just before ending
        win: Result to report
        end_after: Seconds until the game ends (None = never)
        end_twice: Call on_end a second time right after the first
    """

    GAME_ID = "scripted"
    NAME = "Scripted"

    def __init__(
        self,
        host: MinigameHost,
        scheduler: Scheduler,
        events: Sequence[str] = ('win',),
        win: bool = True,
        end_after: Optional[float] = 1.0,
        end_twice: bool = False,
        **kwargs,
    ):
        super().__init__(host, scheduler, **kwargs)
        self.events = tuple(events)
        self.win = win
        self.end_after = end_after
        self.end_twice = end_twice
        self.started = False
        self.inputs: List[InputEvent] = []

    def start(self) -> None:
        self.started = True
        if self.end_after is not None:
            self._track(self._scheduler.call_later(self.end_after, self.finish, label='scripted-end'))

    def finish(self) -> None:
        for event in self.events:
            self._host.on_report_event(event)
        self._host.on_end(MinigameResult(win=self.win))
        if self.end_twice:
            self._host.on_end(MinigameResult(win=not self.win))

    def handle_input(self, events) -> None:
        self.inputs.extend(events)

    def render(self, surface) -> None:
        pass


class ScriptedRegistry(MinigameRegistry):
    """Registry of ScriptedGame variants, one per id, recording every instance."""

    def __init__(self):
        super().__init__(games_dir=None)
        self.plans: Dict[str, Dict[str, Any]] = {}
        self.created: List[ScriptedGame] = []
        self.add('scripted')

    def add(self, game_id: str, **plan) -> None:
        game_class = type(f"Scripted_{game_id}", (ScriptedGame,), {'GAME_ID': game_id})
        self.register(game_class)
        self.plans[game_id] = plan

    def create(self, game_id: str, host: MinigameHost, scheduler: Scheduler, **kwargs) -> Minigame:
        plan = dict(self.plans.get(game_id.lower(), {}))
        plan.update(kwargs)
        game = super().create(game_id, host, scheduler, **plan)
        self.created.append(game)
        return game


def build_session(
    games: int = 1,
    flow_type: ScreenFlowType = ScreenFlowType.SEPARATE,
    title_ms: int = 1000,
    controls_ms: int = 1000,
    intro: Optional[ScreenConfig] = None,
    promo: Optional[ScreenConfig] = None,
    game_id: str = 'scripted',
    point_rules: Optional[Dict[str, int]] = None,
    **kwargs,
) -> MacrogameSession:
    """Session with `games` identical flow entries."""
    rules = {'win': 100} if point_rules is None else point_rules
    flow = [
        FlowEntry(id=game_id, name=f"Game {i + 1}", controls="Press keys", point_rules=rules)
        for i in range(games)
    ]
    return MacrogameSession(
        id='test',
        name='Test Session',
        config=MacrogameConfig(
            screen_flow_type=flow_type,
            title_screen_duration=title_ms,
            controls_screen_duration=controls_ms,
            background_music_url=kwargs.pop('background_music_url', None),
        ),
        intro_screen=intro or ScreenConfig(),
        promo_screen=promo or ScreenConfig(),
        flow=flow,
        **kwargs,
    )


class PhaseRecorder:
    """Listener that records every PhaseView."""

    def __init__(self):
        self.views = []

    def __call__(self, view) -> None:
        self.views.append(view)

    @property
    def phases(self):
        return [view.phase for view in self.views]


@pytest.fixture
def session_factory():
    return build_session


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def registry():
    return ScriptedRegistry()


@pytest.fixture
def audio():
    return NullAudioBackend()


@pytest.fixture
def make_controller(scheduler, registry, audio):
    """Factory: controller for a session, with a NullAudioBackend resolver and a recorder."""

    def _make(session: MacrogameSession, with_music: bool = True):
        music = MusicResolver(session, audio) if with_music else None
        controller = FlowController(session, scheduler, registry, music=music)
        recorder = PhaseRecorder()
        controller.add_listener(recorder)
        return controller, recorder

    return _make
