"""Tests for session loading and flow hydration."""

import json
from pathlib import Path

import pytest
import yaml

from models import CustomMicrogame, MicrogameInfo, ScreenFlowType
from macrogame.errors import SessionConfigError
from macrogame.session import hydrate_flow, load_session, session_from_dict


CATALOG = [
    {
        'id': 'avoid',
        'name': 'Avoid',
        'controls': 'Arrow keys',
        'length': 8,
        'trackableEvents': [
            {'eventId': 'win', 'defaultPoints': 100},
            {'eventId': 'lose', 'defaultPoints': 0},
        ],
    },
    {'id': 'retired', 'name': 'Retired', 'isActive': False},
]

VARIANTS = [
    {
        'id': 'avoid-night',
        'name': 'Avoid: Night',
        'baseMicrogameId': 'avoid',
        'skinData': {'background': {'url': 'night.png', 'fileName': 'night.png'}},
    },
]


def document(**macrogame):
    base = {
        'name': 'Demo',
        'config': {'screenFlowType': 'Overlay', 'titleScreenDuration': 1500},
        'flow': [{'microgameId': 'avoid'}],
    }
    base.update(macrogame)
    return {
        'macrogame': base,
        'skin': {'player': 'hero.png'},
        'microgames': CATALOG,
        'customMicrogames': VARIANTS,
    }


class TestSessionFromDict:
    def test_camel_case_document(self):
        session = session_from_dict(document())

        assert session.name == 'Demo'
        assert session.config.screen_flow_type == ScreenFlowType.OVERLAY
        assert session.config.title_screen_duration == 1500
        assert session.skin.player == 'hero.png'

    def test_reference_uses_catalog_defaults(self):
        session = session_from_dict(document())

        entry = session.flow[0]
        assert entry.id == 'avoid'
        assert entry.name == 'Avoid'
        assert entry.length == 8
        assert entry.point_rules == {'win': 100, 'lose': 0}

    def test_explicit_point_rules_win(self):
        session = session_from_dict(document(flow=[{'microgameId': 'avoid', 'pointRules': {'win': 5}}]))
        assert session.flow[0].point_rules == {'win': 5}

    def test_variant_skin_merged(self):
        session = session_from_dict(document(flow=[{'microgameId': 'avoid', 'variantId': 'avoid-night'}]))

        entry = session.flow[0]
        assert entry.name == 'Avoid: Night'
        assert entry.skin_data == {'background': 'night.png'}
        assert session.skin.merged(entry.skin_data).get('background') == 'night.png'
        assert session.skin.merged(entry.skin_data).get('player') == 'hero.png'

    def test_missing_and_inactive_microgames_dropped(self):
        flow = [{'microgameId': 'retired'}, {'microgameId': 'ghost'}, {'microgameId': 'avoid'}]
        session = session_from_dict(document(flow=flow))

        assert [entry.id for entry in session.flow] == ['avoid']

    def test_inline_entries_pass_through(self):
        flow = [{'id': 'custom', 'name': 'Custom', 'pointRules': {'win': 1}}]
        session = session_from_dict(document(flow=flow))

        assert session.flow[0].id == 'custom'
        assert session.flow[0].point_rules == {'win': 1}

    def test_audio_config_and_conversion(self):
        data = document(audioConfig={'flow_0': {'musicId': 'none'}}, conversionScreenId='rewards')
        data['conversionScreens'] = [{'id': 'rewards', 'headline': 'Hi', 'methods': []}]
        data['pointCosts'] = {'coupon': 100}

        session = session_from_dict(data)

        assert session.audio_config['flow_0'].music_id == 'none'
        assert session.audio_config['flow_0'].play_music is True
        assert session.conversion_screen.headline == 'Hi'
        assert session.point_costs == {'coupon': 100}

    def test_missing_macrogame_is_fatal(self):
        with pytest.raises(SessionConfigError, match='macrogame'):
            session_from_dict({'skin': {}})

    def test_missing_skin_is_fatal(self):
        with pytest.raises(SessionConfigError, match='skin'):
            session_from_dict({'macrogame': {}})

    def test_invalid_document_is_fatal(self):
        with pytest.raises(SessionConfigError):
            session_from_dict(document(config={'screenFlowType': 'Sideways'}))

    def test_negative_length_rejected(self):
        with pytest.raises(SessionConfigError):
            session_from_dict(document(flow=[{'id': 'x', 'name': 'X', 'length': -1}]))


class TestHydrateFlow:
    def test_unknown_variant_falls_back_to_base(self):
        microgames = [MicrogameInfo.model_validate(m) for m in CATALOG]
        variants = [CustomMicrogame.model_validate(v) for v in VARIANTS]

        entries = hydrate_flow([{'microgameId': 'avoid', 'variantId': 'nope'}], microgames, variants)

        assert entries[0].name == 'Avoid'
        assert entries[0].skin_data == {}


class TestLoadSession:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / 'session.yaml'
        data = document(config={'backgroundMusicUrl': 'theme.ogg'})
        path.write_text(yaml.safe_dump(data))

        session = load_session(path)

        assert session.name == 'Demo'
        assert Path(session.config.background_music_url) == (tmp_path / 'theme.ogg').resolve()
        assert Path(session.skin.player) == (tmp_path / 'hero.png').resolve()

    def test_load_json(self, tmp_path):
        path = tmp_path / 'session.json'
        path.write_text(json.dumps(document()))

        session = load_session(path)

        assert len(session.flow) == 1

    def test_urls_are_not_rewritten(self, tmp_path):
        path = tmp_path / 'session.yaml'
        data = document(config={'backgroundMusicUrl': 'https://cdn.example.com/theme.ogg'})
        path.write_text(yaml.safe_dump(data))

        session = load_session(path)

        assert session.config.background_music_url == 'https://cdn.example.com/theme.ogg'

    def test_missing_file(self, tmp_path):
        with pytest.raises(SessionConfigError, match='not found'):
            load_session(tmp_path / 'nope.yaml')

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / 'broken.yaml'
        path.write_text("macrogame: [unclosed")
        with pytest.raises(SessionConfigError):
            load_session(path)

    def test_demo_session_loads(self):
        demo = Path(__file__).parent.parent / 'sessions' / 'demo.yaml'

        session = load_session(demo)

        assert [entry.id for entry in session.flow] == ['avoid', 'avoid', 'avoid']
        assert session.flow[1].point_rules == {'win': 150, 'lose': -20}
        assert session.conversion_screen is not None
