"""
Session loading.

A session document bundles everything a run needs: the macrogame (config,
flow, intro/promo screens, audio overrides), the skin, and optionally the
microgame catalog, conversion screens and point costs.

Example session.yaml:
    macrogame:
      name: "Summer Promo"
      config:
        screenFlowType: Separate
        titleScreenDuration: 1500
        controlsScreenDuration: 1500
        backgroundMusicUrl: sounds/background.wav
      flow:
        - microgameId: avoid
          pointRules: {win: 100}
    skin:
      background: images/beach.png
    microgames:
      - id: avoid
        name: Avoid
        length: 8
        controls: Arrow keys / WASD
        trackableEvents:
          - {eventId: win, defaultPoints: 100}

Flow items are either inline flow entries (with id and name) or references
(microgameId, optional variantId and pointRules) resolved against the
catalog. References to unknown or inactive microgames are dropped.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from models import (
    CustomMicrogame,
    FlowEntry,
    FlowItem,
    MacrogameSession,
    MicrogameInfo,
)
from macrogame.errors import SessionConfigError
from macrogame.logging import get_logger

log = get_logger('session')


def _load_data_file(path: Path) -> Dict[str, Any]:
    """Load data from a YAML or JSON file."""
    if not path.exists():
        raise SessionConfigError(f"Session file not found: {path}")
    try:
        with open(path, 'r') as f:
            if path.suffix == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SessionConfigError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise SessionConfigError(f"Session file {path} must contain a mapping")
    return data


def _pick(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    """Read a key that may be written camelCase or snake_case."""
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _is_reference(item: Mapping[str, Any]) -> bool:
    return 'microgameId' in item or 'microgame_id' in item


def hydrate_flow(
    items: List[Mapping[str, Any]],
    microgames: List[MicrogameInfo],
    custom_microgames: List[CustomMicrogame],
) -> List[FlowEntry]:
    """Resolve flow items into flow entries.

    Inline entries pass through. References are looked up in the catalog;
    unknown or inactive microgames are dropped with a warning. A variant's
    skin assets are attached to the entry; missing point rules default to
    the catalog's trackable events.
    """
    catalog = {game.id: game for game in microgames}
    variants = {variant.id: variant for variant in custom_microgames}
    entries: List[FlowEntry] = []

    for position, raw in enumerate(items):
        if not _is_reference(raw):
            entries.append(FlowEntry.model_validate(raw))
            continue

        item = FlowItem.model_validate(raw)
        base = catalog.get(item.microgame_id)
        if base is None:
            log.warning("Dropping flow item %d: microgame '%s' not in catalog", position, item.microgame_id)
            continue
        if not base.is_active:
            log.warning("Dropping flow item %d: microgame '%s' is inactive", position, item.microgame_id)
            continue

        name = base.name
        skin_data: Dict[str, str] = {}
        if item.variant_id:
            variant = variants.get(item.variant_id)
            if variant is None:
                log.warning("Variant '%s' of '%s' not found, using base game", item.variant_id, base.id)
            else:
                name = variant.name or base.name
                skin_data = {key: asset.url for key, asset in variant.skin_data.items()}

        point_rules = item.point_rules if item.point_rules is not None else base.default_point_rules()
        entries.append(FlowEntry(
            id=base.id,
            name=name,
            length=base.length,
            controls=base.controls,
            point_rules=point_rules,
            description=base.description,
            skin_data=skin_data,
        ))

    return entries


def session_from_dict(data: Mapping[str, Any]) -> MacrogameSession:
    """Build a validated session from a parsed document.

    Raises:
        SessionConfigError: The macrogame or skin is missing, or the document
            does not validate
    """
    macrogame = data.get('macrogame')
    if not isinstance(macrogame, Mapping):
        raise SessionConfigError("Session document has no 'macrogame' section")
    skin = data.get('skin')
    if not isinstance(skin, Mapping):
        raise SessionConfigError("Session document has no 'skin' section")

    try:
        microgames = [MicrogameInfo.model_validate(m) for m in data.get('microgames') or []]
        custom = [CustomMicrogame.model_validate(c)
                  for c in _pick(data, 'customMicrogames', 'custom_microgames') or []]
        flow = hydrate_flow(macrogame.get('flow') or [], microgames, custom)

        return MacrogameSession.model_validate({
            'id': macrogame.get('id', ''),
            'name': macrogame.get('name', ''),
            'config': macrogame.get('config') or {},
            'intro_screen': _pick(macrogame, 'introScreen', 'intro_screen') or {},
            'promo_screen': _pick(macrogame, 'promoScreen', 'promo_screen') or {},
            'flow': flow,
            'conversion_screen_id': _pick(macrogame, 'conversionScreenId', 'conversion_screen_id'),
            'conversion_screens': _pick(data, 'conversionScreens', 'conversion_screens') or [],
            'audio_config': _pick(macrogame, 'audioConfig', 'audio_config') or {},
            'skin': skin,
            'point_costs': _pick(data, 'pointCosts', 'point_costs') or {},
        })
    except ValidationError as e:
        raise SessionConfigError(f"Invalid session document: {e}") from e


def _resolve_local(path: Optional[str], base_dir: Path) -> Optional[str]:
    """Make a relative file path absolute against the session file's directory."""
    if not path or '://' in path or Path(path).is_absolute():
        return path
    return str((base_dir / path).resolve())


def load_session(path: Union[str, Path]) -> MacrogameSession:
    """Load a session document from YAML or JSON.

    Relative background music and skin paths are resolved against the
    directory holding the document.

    Raises:
        SessionConfigError: The file is missing, unreadable or invalid
    """
    path = Path(path)
    session = session_from_dict(_load_data_file(path))
    base_dir = path.parent

    music_url = _resolve_local(session.config.background_music_url, base_dir)
    skin_data = {key: _resolve_local(value, base_dir)
                 for key, value in session.skin.model_dump().items() if isinstance(value, str)}
    flow = [entry.model_copy(update={
        'skin_data': {key: _resolve_local(value, base_dir) for key, value in entry.skin_data.items()},
    }) for entry in session.flow]

    log.info("Loaded session '%s' from %s (%d games)", session.name or session.id, path, len(flow))
    return session.model_copy(update={
        'config': session.config.model_copy(update={'background_music_url': music_url}),
        'skin': session.skin.merged(skin_data),
        'flow': flow,
    })
