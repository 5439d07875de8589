"""
Background music selection per phase.

Each phase maps to a phase key (flow_<n>, intro, promo, conversion). The
session's audio_config may override the music for a key: pick a track from
the music library, force silence with 'none', or turn music off for the
phase. Without an override the macrogame's background music plays.

The resolver owns the one playing track. A track keeps playing across phases
as long as the next phase resolves to the same track identity, so moving from
title to controls to game does not restart the music.

Usage:
    resolver = MusicResolver(session, NullAudioBackend())
    resolver.on_phase(Phase.TITLE, 0)
    resolver.set_muted(True)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence

from models import AudioConfigEntry, MacrogameSession, Phase
from macrogame import config
from macrogame.audio import AudioBackend, AudioPlaybackError, EffectHandle, TrackHandle
from macrogame.logging import get_logger

log = get_logger('music')

# Music id that always means silence
SILENCE_ID = 'none'

# Phases that belong to a flow slot and use the flow_<n> key
_FLOW_PHASES = (Phase.TITLE, Phase.CONTROLS, Phase.GAME, Phase.RESULT)


@dataclass(frozen=True)
class MusicTrack:
    """Entry of the music library. A track without a path is silence."""
    id: str
    name: str
    path: Optional[str] = None


MUSIC_LIBRARY = (
    MusicTrack(id=SILENCE_ID, name='None'),
    MusicTrack(id='default', name='Default 8-Bit', path=str(config.SOUNDS_DIR / 'background.wav')),
)


@dataclass(frozen=True)
class TrackRef:
    """A resolved target track.

    Attributes:
        identity: Canonical locator; two refs name the same track iff equal
        path: What the audio backend loads
    """
    identity: str
    path: str


def canonical_locator(path: str) -> str:
    """Full canonical form of a track location, used as its identity."""
    if '://' in path:
        return path
    return Path(path).expanduser().resolve().as_posix()


def resolve_phase_key(
    phase: Phase,
    index: int,
    flow_length: int,
    has_conversion_screen: bool = False,
) -> Optional[str]:
    """Audio config key for a phase, or None when the phase has no music.

    Args:
        phase: Phase being entered
        index: Flow index for the phase (for RESULT, the game just finished)
        flow_length: Number of flow entries
        has_conversion_screen: Whether the end phase shows a conversion screen
    """
    if phase in _FLOW_PHASES:
        return f"flow_{index}" if 0 <= index < flow_length else None
    if phase == Phase.INTRO:
        return 'intro'
    if phase == Phase.PROMO:
        return 'promo'
    if phase == Phase.END and has_conversion_screen:
        return 'conversion'
    return None


def resolve_track(
    entry: AudioConfigEntry,
    base_url: Optional[str],
    library: Sequence[MusicTrack] = MUSIC_LIBRARY,
) -> Optional[TrackRef]:
    """Target track for an audio config entry, or None for silence.

    An unknown music id falls back to the base url.
    """
    location = base_url
    if entry.music_id == SILENCE_ID:
        return None
    if entry.music_id:
        track = next((t for t in library if t.id == entry.music_id), None)
        if track is not None:
            location = track.path
        else:
            log.warning("Unknown music id '%s', using background music", entry.music_id)

    if not location:
        return None
    return TrackRef(identity=canonical_locator(location), path=location)


class MusicResolver:
    """Owns the playing background track and the UI sound effects.

    Args:
        session: Session whose audio_config and background music are used
        backend: Audio backend that creates track and effect handles
        library: Music library for music_id overrides
    """

    def __init__(
        self,
        session: MacrogameSession,
        backend: AudioBackend,
        library: Sequence[MusicTrack] = MUSIC_LIBRARY,
    ):
        self._session = session
        self._backend = backend
        self._library = tuple(library)
        self._current: Optional[TrackHandle] = None
        self._effects: Dict[str, Optional[EffectHandle]] = {}
        self._muted = False

    @property
    def current(self) -> Optional[TrackHandle]:
        """Handle of the current track (playing or paused), if any."""
        return self._current

    @property
    def muted(self) -> bool:
        return self._muted

    def on_phase(self, phase: Phase, index: int) -> None:
        """Select music for a newly entered phase."""
        key = resolve_phase_key(
            phase, index, len(self._session.flow),
            has_conversion_screen=bool(self._session.conversion_screen_id),
        )
        entry = self._session.audio_config.get(key, AudioConfigEntry()) if key else None

        if entry is None or not entry.play_music:
            log.debug("No music for %s (key=%s)", phase.value, key)
            self._pause_current()
            return

        target = resolve_track(entry, self._session.config.background_music_url, self._library)
        if target is None:
            log.debug("Silence for %s (key=%s)", phase.value, key)
            self._release_current()
            return

        current = self._current
        if current is not None and current.is_playing and current.identity == target.identity:
            log.trace("Keeping %s for %s", target.identity, key)
            return

        self._release_current()
        log.debug("Switching to %s for %s", target.identity, key)
        try:
            track = self._backend.create_track(target.path, target.identity)
            track.set_muted(self._muted)
            self._current = track
            track.play()
        except (AudioPlaybackError, OSError):
            log.exception("Background music failed for %s", target.identity)

    def set_muted(self, muted: bool) -> None:
        """Mute or unmute the current track and every UI effect in place."""
        self._muted = muted
        if self._current is not None:
            self._current.set_muted(muted)
        for effect in self._effects.values():
            if effect is not None:
                effect.set_muted(muted)

    def play_effect(self, name: str) -> None:
        """Play a one-shot UI effect ('win' or 'lose'). Failures are logged."""
        if name not in self._effects:
            self._effects[name] = self._load_effect(name)
        effect = self._effects[name]
        if effect is None:
            return
        try:
            effect.play()
        except (AudioPlaybackError, OSError):
            log.exception("Sound effect '%s' failed", name)

    def _load_effect(self, name: str) -> Optional[EffectHandle]:
        try:
            effect = self._backend.create_effect(name, config.UI_SOUND_EFFECTS.get(name))
        except (AudioPlaybackError, OSError):
            log.exception("Could not load sound effect '%s'", name)
            return None
        effect.set_muted(self._muted)
        return effect

    def stop(self) -> None:
        """Stop and release the current track."""
        self._release_current()

    def _pause_current(self) -> None:
        if self._current is not None:
            self._current.pause()

    def _release_current(self) -> None:
        """Stop the current track and drop it; its mixer channel is freed."""
        if self._current is not None:
            track, self._current = self._current, None
            track.stop()
