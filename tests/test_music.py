"""Tests for per-phase music selection."""

import wave
from unittest.mock import Mock

import pygame
import pytest

from models import AudioConfigEntry, MacrogameConfig, MacrogameSession, FlowEntry, Phase
from macrogame.audio import AudioBackend, AudioPlaybackError, NullAudioBackend, PygameAudioBackend
from macrogame.music import (
    MusicResolver,
    MusicTrack,
    TrackRef,
    canonical_locator,
    resolve_phase_key,
    resolve_track,
)


LIBRARY = (
    MusicTrack(id='none', name='None'),
    MusicTrack(id='arcade', name='Arcade', path='/music/arcade.ogg'),
    MusicTrack(id='chill', name='Chill', path='/music/chill.ogg'),
)


def make_session(audio_config=None, base_url='/music/base.ogg', games=2, conversion=None):
    return MacrogameSession(
        config=MacrogameConfig(background_music_url=base_url),
        flow=[FlowEntry(id='avoid', name=f"Game {i}") for i in range(games)],
        audio_config=audio_config or {},
        conversion_screen_id=conversion,
    )


class TestPhaseKey:
    @pytest.mark.parametrize("phase", [Phase.TITLE, Phase.CONTROLS, Phase.GAME, Phase.RESULT])
    def test_flow_phases_use_index(self, phase):
        assert resolve_phase_key(phase, 1, 3) == 'flow_1'

    def test_flow_phase_past_end_has_no_key(self):
        assert resolve_phase_key(Phase.GAME, 3, 3) is None

    def test_screen_phases(self):
        assert resolve_phase_key(Phase.INTRO, 0, 3) == 'intro'
        assert resolve_phase_key(Phase.PROMO, 3, 3) == 'promo'

    def test_end_needs_conversion_screen(self):
        assert resolve_phase_key(Phase.END, 3, 3, has_conversion_screen=True) == 'conversion'
        assert resolve_phase_key(Phase.END, 3, 3, has_conversion_screen=False) is None

    @pytest.mark.parametrize("phase", [Phase.LOADING, Phase.COMBINED])
    def test_other_phases_have_no_key(self, phase):
        assert resolve_phase_key(phase, 0, 3) is None


class TestResolveTrack:
    def test_no_override_uses_base_url(self):
        ref = resolve_track(AudioConfigEntry(), '/music/base.ogg', LIBRARY)
        assert ref == TrackRef(identity=canonical_locator('/music/base.ogg'), path='/music/base.ogg')

    def test_library_override(self):
        ref = resolve_track(AudioConfigEntry(music_id='chill'), '/music/base.ogg', LIBRARY)
        assert ref.path == '/music/chill.ogg'

    def test_none_override_is_silence(self):
        assert resolve_track(AudioConfigEntry(music_id='none'), '/music/base.ogg', LIBRARY) is None

    def test_unknown_id_falls_back_to_base(self):
        ref = resolve_track(AudioConfigEntry(music_id='missing'), '/music/base.ogg', LIBRARY)
        assert ref.path == '/music/base.ogg'

    def test_no_base_url_is_silence(self):
        assert resolve_track(AudioConfigEntry(), None, LIBRARY) is None

    def test_identity_is_exact_not_suffix(self):
        """Tracks sharing a file name in different folders are different tracks."""
        a = resolve_track(AudioConfigEntry(), '/music/a/theme.ogg', LIBRARY)
        b = resolve_track(AudioConfigEntry(), '/music/b/theme.ogg', LIBRARY)
        assert a.identity != b.identity

    def test_urls_keep_their_form(self):
        assert canonical_locator('https://cdn.example.com/theme.ogg') == 'https://cdn.example.com/theme.ogg'


class TestMusicResolver:
    def test_same_track_across_phases_not_recreated(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(), backend, LIBRARY)

        for phase in (Phase.TITLE, Phase.CONTROLS, Phase.GAME):
            resolver.on_phase(phase, 0)
        resolver.on_phase(Phase.RESULT, 0)
        resolver.on_phase(Phase.TITLE, 1)

        assert len(backend.tracks) == 1
        assert backend.tracks[0].is_playing
        assert backend.tracks[0].play_count == 1

    def test_switches_on_override(self):
        backend = NullAudioBackend()
        session = make_session({'flow_1': AudioConfigEntry(music_id='arcade')})
        resolver = MusicResolver(session, backend, LIBRARY)

        resolver.on_phase(Phase.GAME, 0)
        resolver.on_phase(Phase.GAME, 1)

        first, second = backend.tracks
        assert first.is_playing is False
        assert first.stopped is True
        assert second.is_playing is True
        assert second.identity == canonical_locator('/music/arcade.ogg')
        assert resolver.current is second

    def test_none_leaves_nothing_playing(self):
        backend = NullAudioBackend()
        session = make_session({'flow_1': AudioConfigEntry(music_id='none')})
        resolver = MusicResolver(session, backend, LIBRARY)

        resolver.on_phase(Phase.GAME, 0)
        resolver.on_phase(Phase.GAME, 1)

        assert not any(track.is_playing for track in backend.tracks)
        assert resolver.current is None

    def test_play_music_false_pauses_and_resumes_with_new_track(self):
        backend = NullAudioBackend()
        session = make_session({'flow_1': AudioConfigEntry(play_music=False)})
        resolver = MusicResolver(session, backend, LIBRARY)

        resolver.on_phase(Phase.GAME, 0)
        resolver.on_phase(Phase.GAME, 1)
        assert backend.tracks[0].is_playing is False

        resolver.on_phase(Phase.PROMO, 2)
        assert len(backend.tracks) == 2
        assert backend.tracks[1].is_playing is True

    def test_end_without_conversion_screen_is_silent(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(), backend, LIBRARY)

        resolver.on_phase(Phase.PROMO, 2)
        resolver.on_phase(Phase.END, 2)

        assert backend.tracks[0].is_playing is False

    def test_end_with_conversion_screen_plays(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(conversion='rewards'), backend, LIBRARY)

        resolver.on_phase(Phase.END, 2)

        assert backend.tracks[0].is_playing is True

    def test_new_track_inherits_mute(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(), backend, LIBRARY)
        resolver.set_muted(True)

        resolver.on_phase(Phase.INTRO, 0)

        assert backend.tracks[0].muted is True
        assert backend.tracks[0].is_playing is True

    def test_mute_does_not_interrupt_playback(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(), backend, LIBRARY)
        resolver.on_phase(Phase.INTRO, 0)

        resolver.set_muted(True)
        resolver.set_muted(False)

        track = backend.tracks[0]
        assert track.muted is False
        assert track.is_playing is True
        assert track.play_count == 1

    def test_playback_failure_is_not_fatal(self):
        backend = Mock(spec=AudioBackend)
        backend.create_track.side_effect = AudioPlaybackError("no device")
        resolver = MusicResolver(make_session(), backend, LIBRARY)

        resolver.on_phase(Phase.INTRO, 0)

        assert resolver.current is None

    def test_play_failure_keeps_session_running(self):
        backend = Mock(spec=AudioBackend)
        track = Mock()
        track.play.side_effect = AudioPlaybackError("busy")
        backend.create_track.return_value = track
        resolver = MusicResolver(make_session(), backend, LIBRARY)

        resolver.on_phase(Phase.INTRO, 0)

        track.set_muted.assert_called_once_with(False)

    def test_effects_loaded_once_and_muted(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(), backend, LIBRARY)

        resolver.play_effect('win')
        resolver.play_effect('win')
        resolver.set_muted(True)

        assert backend.effects['win'].play_count == 2
        assert backend.effects['win'].muted is True

    def test_missing_effect_is_skipped(self):
        backend = Mock(spec=AudioBackend)
        backend.create_effect.side_effect = AudioPlaybackError("missing")
        resolver = MusicResolver(make_session(), backend, LIBRARY)

        resolver.play_effect('lose')
        resolver.play_effect('lose')

        backend.create_effect.assert_called_once()

    def test_stop_releases_track(self):
        backend = NullAudioBackend()
        resolver = MusicResolver(make_session(), backend, LIBRARY)
        resolver.on_phase(Phase.INTRO, 0)

        resolver.stop()

        assert backend.tracks[0].is_playing is False
        assert backend.tracks[0].stopped is True
        assert resolver.current is None

    def test_silence_releases_track(self):
        backend = NullAudioBackend()
        session = make_session({'flow_1': AudioConfigEntry(music_id='none')})
        resolver = MusicResolver(session, backend, LIBRARY)

        resolver.on_phase(Phase.GAME, 0)
        resolver.on_phase(Phase.GAME, 1)

        assert backend.tracks[0].stopped is True

    def test_play_music_false_only_pauses(self):
        backend = NullAudioBackend()
        session = make_session({'flow_1': AudioConfigEntry(play_music=False)})
        resolver = MusicResolver(session, backend, LIBRARY)

        resolver.on_phase(Phase.GAME, 0)
        resolver.on_phase(Phase.GAME, 1)

        assert backend.tracks[0].stopped is False
        assert resolver.current is backend.tracks[0]


def write_tone(path, seconds=0.5, rate=22050):
    """Write a short silent 16-bit stereo WAV file."""
    with wave.open(str(path), 'wb') as f:
        f.setnchannels(2)
        f.setsampwidth(2)
        f.setframerate(rate)
        f.writeframes(b'\x00\x00' * 2 * int(rate * seconds))
    return path


class TestPygameBackend:
    """Runs against pygame.mixer on the SDL dummy audio driver."""

    @pytest.fixture
    def backend(self):
        backend = PygameAudioBackend(music_volume=0.5, sfx_volume=0.5)
        if not backend.available:
            pytest.skip("pygame.mixer could not start")
        yield backend
        pygame.mixer.quit()

    @staticmethod
    def busy_channels():
        return sum(1 for i in range(pygame.mixer.get_num_channels()) if pygame.mixer.Channel(i).get_busy())

    def test_track_switches_do_not_exhaust_channels(self, backend, tmp_path):
        switches = pygame.mixer.get_num_channels() + 3
        library = [MusicTrack(id=f"t{i}", name=f"Track {i}", path=str(write_tone(tmp_path / f"t{i}.wav")))
                   for i in range(switches)]
        session = make_session(
            {f"flow_{i}": AudioConfigEntry(music_id=f"t{i}") for i in range(switches)},
            games=switches,
        )
        resolver = MusicResolver(session, backend, library)

        for i in range(switches):
            resolver.on_phase(Phase.GAME, i)

            assert resolver.current is not None
            assert resolver.current.identity == canonical_locator(library[i].path)
            assert resolver.current.is_playing
            assert self.busy_channels() == 1

        resolver.play_effect('win')
        resolver.stop()
        assert resolver.current is None

    def test_stop_frees_paused_channel(self, backend, tmp_path):
        track = backend.create_track(str(write_tone(tmp_path / 'a.wav')), 'a')
        track.play()
        track.pause()
        assert track.channel.get_busy()

        track.stop()

        assert track.channel is None
        assert track.is_playing is False
        assert self.busy_channels() == 0

    def test_pause_then_resume_keeps_channel(self, backend, tmp_path):
        track = backend.create_track(str(write_tone(tmp_path / 'a.wav')), 'a')
        track.play()
        channel = track.channel

        track.pause()
        track.play()

        assert track.channel is channel
        assert track.is_playing

    def test_missing_file(self, backend, tmp_path):
        with pytest.raises(AudioPlaybackError):
            backend.create_track(str(tmp_path / 'missing.wav'), 'missing')

    def test_placeholder_effects(self, backend):
        effect = backend.create_effect('lose', None)
        effect.play()
        effect.set_muted(True)

        with pytest.raises(AudioPlaybackError):
            backend.create_effect('fanfare', None)
