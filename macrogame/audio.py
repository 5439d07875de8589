"""
Audio backends for background music and UI sound effects.

The MusicResolver decides what should play; a backend turns that decision
into playing sounds. PygameAudioBackend plays through pygame.mixer and
synthesizes placeholder tones when an effect file is missing.
NullAudioBackend keeps the same bookkeeping without producing sound, for
headless runs and tests.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import numpy as np
import pygame

from macrogame import config
from macrogame.errors import MacrogameError
from macrogame.logging import get_logger

log = get_logger('audio')


class AudioPlaybackError(MacrogameError):
    """A track or effect could not be loaded or started."""


class TrackHandle(ABC):
    """A looping background track.

    Attributes:
        identity: Token naming the track; equal tokens mean the same track
    """

    def __init__(self, identity: str):
        self.identity = identity

    @abstractmethod
    def play(self) -> None:
        """Start (or resume) looping playback. Raises AudioPlaybackError."""

    @abstractmethod
    def pause(self) -> None:
        """Pause playback, keeping position."""

    @abstractmethod
    def stop(self) -> None:
        """Stop playback for good and give up the mixer channel."""

    @abstractmethod
    def set_muted(self, muted: bool) -> None:
        """Silence or restore the track without touching its position."""

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        """True while started and not paused."""


class EffectHandle(ABC):
    """A one-shot UI sound effect."""

    @abstractmethod
    def play(self) -> None:
        """Play the effect once. Raises AudioPlaybackError."""

    @abstractmethod
    def set_muted(self, muted: bool) -> None:
        """Silence or restore the effect."""


class AudioBackend(ABC):
    """Factory for track and effect handles."""

    @abstractmethod
    def create_track(self, path: str, identity: str) -> TrackHandle:
        """Load a looping track. Raises AudioPlaybackError."""

    @abstractmethod
    def create_effect(self, name: str, path: Optional[Path]) -> EffectHandle:
        """Load a one-shot effect. Raises AudioPlaybackError."""


# =============================================================================
# Null backend
# =============================================================================

class NullTrack(TrackHandle):
    """Track that tracks its state but makes no sound."""

    def __init__(self, identity: str):
        super().__init__(identity)
        self.muted = False
        self.play_count = 0
        self.stopped = False
        self._playing = False

    def play(self) -> None:
        self.play_count += 1
        self.stopped = False
        self._playing = True

    def pause(self) -> None:
        self._playing = False

    def stop(self) -> None:
        self.stopped = True
        self._playing = False

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    @property
    def is_playing(self) -> bool:
        return self._playing


class NullEffect(EffectHandle):
    """Effect that counts plays but makes no sound."""

    def __init__(self, name: str):
        self.name = name
        self.muted = False
        self.play_count = 0

    def play(self) -> None:
        self.play_count += 1

    def set_muted(self, muted: bool) -> None:
        self.muted = muted


class NullAudioBackend(AudioBackend):
    """Backend for headless runs. Keeps every handle it creates."""

    def __init__(self):
        self.tracks = []
        self.effects = {}

    def create_track(self, path: str, identity: str) -> TrackHandle:
        track = NullTrack(identity)
        self.tracks.append(track)
        return track

    def create_effect(self, name: str, path: Optional[Path]) -> EffectHandle:
        effect = NullEffect(name)
        self.effects[name] = effect
        return effect


# =============================================================================
# pygame backend
# =============================================================================

class PygameTrack(TrackHandle):
    """Looping track on its own mixer channel."""

    def __init__(self, sound: pygame.mixer.Sound, identity: str, volume: float):
        super().__init__(identity)
        self._sound = sound
        self._volume = volume
        self._channel: Optional[pygame.mixer.Channel] = None
        self._paused = False
        self._sound.set_volume(volume)

    def play(self) -> None:
        if self._channel is not None and self._paused:
            self._channel.unpause()
            self._paused = False
            return
        try:
            channel = self._sound.play(loops=-1)
        except pygame.error as e:
            raise AudioPlaybackError(f"Could not start {self.identity}: {e}") from e
        if channel is None:
            raise AudioPlaybackError(f"No free mixer channel for {self.identity}")
        self._channel = channel
        self._paused = False

    def pause(self) -> None:
        if self._channel is not None and not self._paused:
            self._channel.pause()
            self._paused = True

    def stop(self) -> None:
        # A paused channel still counts as busy, so it must be stopped to be reused
        if self._channel is not None:
            self._channel.stop()
        self._channel = None
        self._paused = False

    @property
    def channel(self) -> Optional[pygame.mixer.Channel]:
        """Mixer channel while started, None once stopped."""
        return self._channel

    def set_muted(self, muted: bool) -> None:
        self._sound.set_volume(0.0 if muted else self._volume)

    @property
    def is_playing(self) -> bool:
        return self._channel is not None and not self._paused and self._channel.get_busy()


class PygameEffect(EffectHandle):
    """One-shot sound effect."""

    def __init__(self, sound: pygame.mixer.Sound, volume: float):
        self._sound = sound
        self._volume = volume
        self._sound.set_volume(volume)

    def play(self) -> None:
        try:
            channel = self._sound.play()
        except pygame.error as e:
            raise AudioPlaybackError(f"Could not play effect: {e}") from e
        if channel is None:
            raise AudioPlaybackError("No free mixer channel for effect")

    def set_muted(self, muted: bool) -> None:
        self._sound.set_volume(0.0 if muted else self._volume)


# Placeholder tones for effects without a file: (start Hz, end Hz, seconds)
_PLACEHOLDER_TONES = {
    'win': (523.25, 783.99, 0.35),   # C5 -> G5, rising
    'lose': (392.00, 196.00, 0.40),  # G4 -> G3, falling
}


class PygameAudioBackend(AudioBackend):
    """Plays audio through pygame.mixer.

    Args:
        music_volume: Volume for background tracks (0.0 - 1.0)
        sfx_volume: Volume for UI effects (0.0 - 1.0)
    """

    def __init__(
        self,
        music_volume: float = config.MUSIC_VOLUME,
        sfx_volume: float = config.SFX_VOLUME,
    ):
        self._music_volume = music_volume
        self._sfx_volume = sfx_volume
        self._available = True
        if not pygame.mixer.get_init():
            try:
                pygame.mixer.init(frequency=22050, size=-16, channels=2, buffer=512)
            except pygame.error as e:
                log.error("Audio initialization failed: %s", e)
                self._available = False

    @property
    def available(self) -> bool:
        return self._available

    def _load(self, path: str) -> pygame.mixer.Sound:
        if not self._available:
            raise AudioPlaybackError("Audio is not available")
        try:
            return pygame.mixer.Sound(str(path))
        except (pygame.error, FileNotFoundError) as e:
            raise AudioPlaybackError(f"Could not load {path}: {e}") from e

    def create_track(self, path: str, identity: str) -> TrackHandle:
        return PygameTrack(self._load(path), identity, self._music_volume)

    def create_effect(self, name: str, path: Optional[Path]) -> EffectHandle:
        if path is not None and Path(path).exists():
            return PygameEffect(self._load(str(path)), self._sfx_volume)
        if name not in _PLACEHOLDER_TONES or not self._available:
            raise AudioPlaybackError(f"No sound for effect '{name}'")
        log.debug("Synthesizing placeholder for effect '%s'", name)
        start, end, duration = _PLACEHOLDER_TONES[name]
        return PygameEffect(self._generate_sweep(start, end, duration), self._sfx_volume)

    def _generate_sweep(self, frequency_start: float, frequency_end: float, duration: float) -> pygame.mixer.Sound:
        """Generate a short frequency sweep with fade in/out."""
        sample_rate, _, channels = pygame.mixer.get_init()
        num_samples = int(sample_rate * duration)

        frequencies = np.linspace(frequency_start, frequency_end, num_samples)
        phase = np.cumsum(2.0 * np.pi * frequencies / sample_rate)
        wave = np.sin(phase)

        envelope = np.ones(num_samples)
        fade_samples = int(num_samples * 0.1)
        envelope[:fade_samples] = np.linspace(0, 1, fade_samples)
        envelope[-fade_samples:] = np.linspace(1, 0, fade_samples)
        wave *= envelope

        wave = (wave * 32767 * 0.3).astype(np.int16)
        if channels > 1:
            wave = np.column_stack([wave] * channels)

        try:
            return pygame.sndarray.make_sound(np.ascontiguousarray(wave))
        except (pygame.error, ValueError) as e:
            raise AudioPlaybackError(f"Could not synthesize effect: {e}") from e
