"""
FlowController - the macrogame session state machine.

Drives one session through its phases:

    loading -> [intro] -> per slot: (title -> controls | combined)? -> game
            -> result -> ... -> [promo] -> end

Each phase owns at most one timer. Entering any phase first cancels the
previous phase's timer and tears down a mounted minigame, so a stale callback
can never act on a newer state. Time only moves when the caller advances the
Scheduler.

Usage:
    controller = FlowController(session, scheduler, registry, music=resolver)
    controller.add_listener(lambda view: print(view.phase, view.progress_text))
    controller.start()
    while running:
        controller.handle_input(events)
        scheduler.advance(dt)
"""
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence

from models import (
    FlowEntry,
    MacrogameSession,
    MinigameResult,
    Phase,
    ScreenFlowType,
    SessionState,
)
from macrogame import config
from macrogame.errors import SessionConfigError
from macrogame.host import Minigame, MinigameHost, MinigameMount
from macrogame.input import InputEvent
from macrogame.logging import get_logger
from macrogame.music import MusicResolver
from macrogame.scheduler import Scheduler, TaskHandle
from macrogame.scoring import ScoringLedger

log = get_logger('flow')


class MinigameFactory(Protocol):
    """What the controller needs from a minigame registry."""

    def __contains__(self, game_id: object) -> bool: ...

    def create(self, game_id: str, host: MinigameHost, scheduler: Scheduler) -> Minigame: ...


@dataclass(frozen=True)
class PhaseView:
    """Snapshot handed to listeners on every phase entry.

    Attributes:
        phase: Phase just entered
        game_index: Flow index at entry
        progress_text: 'Introduction', 'Game k of N', 'Promotion', 'Reward' or ''
        active_entry: Flow entry shown by this phase (for result, the one just played)
        result: Result of the last finished minigame
        score: Ledger score at entry
        muted: Session mute flag
        is_overlay_visible: Whether the game starts behind the overlay gate
    """
    phase: Phase
    game_index: int
    progress_text: str
    active_entry: Optional[FlowEntry]
    result: Optional[MinigameResult]
    score: int
    muted: bool
    is_overlay_visible: bool


Listener = Callable[[PhaseView], Any]


class FlowController:
    """State machine for one macrogame session.

    Args:
        session: Validated session document
        scheduler: Clock driving every timer
        registry: Creates minigames by flow entry id
        music: Music resolver, or None for a silent session

    Raises:
        SessionConfigError: A flow entry names a minigame the registry lacks
    """

    def __init__(
        self,
        session: MacrogameSession,
        scheduler: Scheduler,
        registry: MinigameFactory,
        music: Optional[MusicResolver] = None,
    ):
        missing = [entry.id for entry in session.flow if entry.id not in registry]
        if missing:
            raise SessionConfigError(f"Unknown minigame id(s) in flow: {', '.join(missing)}")

        self._session = session
        self._scheduler = scheduler
        self._registry = registry
        self._music = music
        self._ledger = ScoringLedger(session.flow, lambda: self._index)

        self._view = Phase.LOADING
        self._index = 0
        self._result: Optional[MinigameResult] = None
        self._muted = False
        self._progress_text = ''
        self._timer: Optional[TaskHandle] = None
        self._mount: Optional[MinigameMount] = None
        self._listeners: List[Listener] = []
        self._entry_count = 0

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def session(self) -> MacrogameSession:
        return self._session

    @property
    def view(self) -> Phase:
        return self._view

    @property
    def game_index(self) -> int:
        return self._index

    @property
    def state(self) -> SessionState:
        """Immutable snapshot of the session state."""
        return SessionState(view=self._view, game_index=self._index,
                            score=self._ledger.score, muted=self._muted)

    @property
    def ledger(self) -> ScoringLedger:
        return self._ledger

    @property
    def score(self) -> int:
        return self._ledger.score

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def result(self) -> Optional[MinigameResult]:
        return self._result

    @property
    def progress_text(self) -> str:
        return self._progress_text

    @property
    def active_entry(self) -> Optional[FlowEntry]:
        """Flow entry the current phase is about."""
        index = self._index - 1 if self._view == Phase.RESULT else self._index
        if self._view in (Phase.TITLE, Phase.CONTROLS, Phase.COMBINED, Phase.GAME, Phase.RESULT):
            if 0 <= index < len(self._session.flow):
                return self._session.flow[index]
        return None

    @property
    def minigame(self) -> Optional[Minigame]:
        """The mounted minigame, if the session is in the game phase."""
        return self._mount.minigame if self._mount is not None else None

    @property
    def is_overlay_visible(self) -> bool:
        """True while the mounted minigame waits behind the overlay gate."""
        return self._mount is not None and self._mount.host.is_overlay_visible

    def add_listener(self, listener: Listener) -> None:
        """Receive a PhaseView on every phase entry."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # =========================================================================
    # Commands
    # =========================================================================

    def start(self) -> None:
        """Start (or restart) the session from the top. Mute is kept."""
        self._cancel_timer()
        self._teardown_mount()
        self._ledger.reset()
        self._index = 0
        self._result = None
        log.info("Starting session '%s' (%d games, %s flow)",
                 self._session.name or self._session.id, len(self._session.flow),
                 self._session.config.screen_flow_type.value)

        if self._session.intro_screen.enabled:
            self._enter(Phase.INTRO)
        else:
            self._start_flow()

    def advance_from_intro(self) -> None:
        """Leave the intro screen early. No-op in any other phase."""
        if self._view == Phase.INTRO:
            self._start_flow()

    def advance_from_promo(self) -> None:
        """Leave the promo screen early. No-op in any other phase."""
        if self._view == Phase.PROMO:
            self._enter(Phase.END)

    def handle_input(self, events: Sequence[InputEvent]) -> None:
        """Forward input to the mounted minigame."""
        if self._mount is not None and events:
            self._mount.minigame.handle_input(events)

    def toggle_mute(self) -> bool:
        """Flip the mute flag. Returns the new value."""
        self.set_muted(not self._muted)
        return self._muted

    def set_muted(self, muted: bool) -> None:
        self._muted = muted
        log.debug("Muted: %s", muted)
        if self._music is not None:
            self._music.set_muted(muted)

    def redeem(self, amount: int, label: str = 'redeem') -> None:
        """Debit the score (reward purchases)."""
        self._ledger.redeem(amount, label)

    def close(self) -> None:
        """Unmount: cancel the phase timer, tear down the minigame, stop music."""
        self._cancel_timer()
        self._teardown_mount()
        if self._music is not None:
            self._music.stop()

    # =========================================================================
    # Transitions
    # =========================================================================

    def _start_flow(self) -> None:
        if self._index < len(self._session.flow):
            self._enter_slot()
        else:
            self._finish_flow()

    def _enter_slot(self) -> None:
        flow_type = self._session.config.screen_flow_type
        if flow_type == ScreenFlowType.SEPARATE:
            self._enter(Phase.TITLE)
        elif flow_type == ScreenFlowType.COMBINED:
            self._enter(Phase.COMBINED)
        else:
            self._enter(Phase.GAME)

    def _finish_flow(self) -> None:
        if self._session.promo_screen.enabled:
            self._enter(Phase.PROMO)
        else:
            self._enter(Phase.END)

    def _after_result(self) -> None:
        self._start_flow()

    def _enter(self, phase: Phase) -> None:
        self._cancel_timer()
        self._teardown_mount()

        self._entry_count += 1
        entry_seq = self._entry_count
        previous = self._view
        self._view = phase
        self._progress_text = self._compute_progress_text()
        log.info("%s -> %s (game %d/%d)", previous.value, phase.value,
                 self._index, len(self._session.flow))

        if self._music is not None:
            music_index = self._index - 1 if phase == Phase.RESULT else self._index
            self._music.on_phase(phase, music_index)

        view = self._snapshot()
        for listener in list(self._listeners):
            listener(view)
        if self._entry_count != entry_seq:
            # A listener moved the session on
            return

        if phase == Phase.GAME:
            self._mount_game()
        else:
            self._schedule_phase_timer(phase)

    def _schedule_phase_timer(self, phase: Phase) -> None:
        session = self._session
        cfg = session.config

        if phase == Phase.INTRO:
            if not session.intro_screen.click_to_continue:
                duration = session.intro_screen.duration or config.DEFAULT_INTRO_DURATION
                self._set_timer(duration, self._start_flow, 'intro')
        elif phase == Phase.TITLE:
            self._set_timer(cfg.title_screen_duration / 1000.0, self._enter, 'title', Phase.CONTROLS)
        elif phase == Phase.CONTROLS:
            self._set_timer(cfg.controls_screen_duration / 1000.0, self._enter, 'controls', Phase.GAME)
        elif phase == Phase.COMBINED:
            duration_ms = cfg.title_screen_duration or config.COMBINED_SCREEN_FALLBACK_MS
            self._set_timer(duration_ms / 1000.0, self._enter, 'combined', Phase.GAME)
        elif phase == Phase.RESULT:
            self._set_timer(config.RESULT_SCREEN_DURATION, self._after_result, 'result')
        elif phase == Phase.PROMO:
            if not session.promo_screen.click_to_continue:
                duration = session.promo_screen.duration or config.DEFAULT_PROMO_DURATION
                self._set_timer(duration, self._enter, 'promo', Phase.END)

    def _set_timer(self, delay: float, callback: Callable, label: str, *args) -> None:
        log.debug("Phase timer '%s' in %.3fs", label, delay)
        self._timer = self._scheduler.call_later(delay, callback, *args, label=label)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # =========================================================================
    # Minigame lifecycle
    # =========================================================================

    def _mount_game(self) -> None:
        entry = self._session.flow[self._index]
        host = MinigameHost(
            game_data=entry,
            skin_config=self._session.skin.merged(entry.skin_data),
            is_overlay_visible=self._session.config.screen_flow_type == ScreenFlowType.OVERLAY,
            on_end=self._on_game_end,
            on_report_event=self._on_report_event,
            on_interaction=self._on_interaction,
        )
        minigame = self._registry.create(entry.id, host, self._scheduler)
        self._mount = MinigameMount(host, minigame)
        log.debug("Mounted '%s' at index %d", entry.id, self._index)
        minigame.start()

    def _teardown_mount(self) -> None:
        if self._mount is not None:
            mount, self._mount = self._mount, None
            mount.teardown()

    def _on_report_event(self, event_name: str) -> None:
        if self._view != Phase.GAME:
            return
        self._ledger.report_event(event_name)

    def _on_interaction(self) -> None:
        log.debug("Overlay gate dismissed")

    def _on_game_end(self, result: MinigameResult) -> None:
        if self._view != Phase.GAME:
            log.warning("Ignoring game end outside the game phase (%s)", self._view.value)
            return
        log.info("Game %d finished: %s", self._index + 1, 'win' if result.win else 'lose')
        if self._music is not None:
            self._music.play_effect('win' if result.win else 'lose')
        self._result = result
        self._index += 1
        self._enter(Phase.RESULT)

    # =========================================================================
    # Derived values
    # =========================================================================

    def _compute_progress_text(self) -> str:
        total = len(self._session.flow)
        if self._view == Phase.INTRO:
            return "Introduction"
        if self._view in (Phase.TITLE, Phase.CONTROLS, Phase.GAME, Phase.COMBINED):
            return f"Game {self._index + 1} of {total}"
        if self._view == Phase.RESULT:
            return f"Game {self._index} of {total}"
        if self._view == Phase.PROMO:
            return "Promotion"
        if self._view == Phase.END:
            return "Reward"
        return ""

    def _snapshot(self) -> PhaseView:
        return PhaseView(
            phase=self._view,
            game_index=self._index,
            progress_text=self._progress_text,
            active_entry=self.active_entry,
            result=self._result,
            score=self._ledger.score,
            muted=self._muted,
            is_overlay_visible=(self._view == Phase.GAME and
                                self._session.config.screen_flow_type == ScreenFlowType.OVERLAY),
        )
