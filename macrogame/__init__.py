"""
Macrogame orchestration engine.

Sequences short minigames into one timed session:

- FlowController: the phase state machine (intro, title, controls, game,
  result, promo, end)
- MusicResolver: per-phase background music without restart glitches
- ScoringLedger: event-based scoring with per-game point rules
- MinigameHost / Minigame: the contract between the engine and a minigame
- Scheduler: the virtual clock every timer runs on

Usage:
    from macrogame import FlowController, Scheduler, load_session
    from games.registry import get_registry

    session = load_session('sessions/demo.yaml')
    scheduler = Scheduler()
    controller = FlowController(session, scheduler, get_registry())
    controller.start()
"""

from macrogame.errors import MacrogameError, MinigameNotFoundError, SessionConfigError
from macrogame.scheduler import Scheduler, TaskHandle
from macrogame.scoring import ScoreEntry, ScoringLedger
from macrogame.audio import AudioBackend, NullAudioBackend, PygameAudioBackend
from macrogame.music import MUSIC_LIBRARY, MusicResolver, MusicTrack
from macrogame.input import InputEvent, InputKind
from macrogame.host import Minigame, MinigameHost
from macrogame.flow import FlowController, PhaseView
from macrogame.rewards import MethodStatus, RewardBoard
from macrogame.session import load_session, session_from_dict

__all__ = [
    # Errors
    'MacrogameError',
    'MinigameNotFoundError',
    'SessionConfigError',
    # Clock
    'Scheduler',
    'TaskHandle',
    # Scoring
    'ScoreEntry',
    'ScoringLedger',
    # Audio
    'AudioBackend',
    'NullAudioBackend',
    'PygameAudioBackend',
    'MUSIC_LIBRARY',
    'MusicResolver',
    'MusicTrack',
    # Minigames
    'InputEvent',
    'InputKind',
    'Minigame',
    'MinigameHost',
    # Session
    'FlowController',
    'PhaseView',
    'MethodStatus',
    'RewardBoard',
    'load_session',
    'session_from_dict',
]
