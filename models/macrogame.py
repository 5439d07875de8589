"""
Pydantic v2 models for macrogame sessions.

These models describe one playable session: the macrogame configuration, the
ordered flow of minigame slots, per-phase audio overrides, intro/promo screens
and the skin bundle handed to minigames. Documents exported by the authoring
tool use camelCase keys; both camelCase and snake_case are accepted.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .conversion import ConversionScreen


_FROZEN = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Phase(str, Enum):
    """Views of the session state machine."""
    LOADING = "loading"
    INTRO = "intro"
    TITLE = "title"
    CONTROLS = "controls"
    GAME = "game"
    RESULT = "result"
    PROMO = "promo"
    END = "end"
    COMBINED = "combined"


class ScreenFlowType(str, Enum):
    """How the pre-game screens of each flow slot are presented.

    SEPARATE: title screen, then controls screen, then the game
    SKIP: straight into the game
    OVERLAY: straight into the game, frozen behind a "press any key" overlay
    COMBINED: one title+controls screen, then the game
    """
    SEPARATE = "Separate"
    SKIP = "Skip"
    OVERLAY = "Overlay"
    COMBINED = "Combined"


class MacrogameConfig(BaseModel):
    """Session-wide configuration. Durations are in milliseconds."""
    model_config = _FROZEN

    screen_flow_type: ScreenFlowType = ScreenFlowType.SEPARATE
    title_screen_duration: int = Field(default=0, ge=0)
    controls_screen_duration: int = Field(default=0, ge=0)
    background_music_url: Optional[str] = None
    show_points: bool = False
    show_progress: bool = False


class ScreenConfig(BaseModel):
    """Intro or promo screen. Duration is in seconds."""
    model_config = _FROZEN

    enabled: bool = False
    text: str = ""
    duration: float = Field(default=0, ge=0)
    click_to_continue: bool = False
    background_image_url: Optional[str] = None
    spotlight_image_url: Optional[str] = None
    spotlight_image_layout: Optional[Literal["left", "right", "top", "bottom"]] = None


class FlowEntry(BaseModel):
    """One minigame slot of the flow.

    Attributes:
        id: Minigame id, used to pick the plugin from the registry
        name: Display name shown on title screens
        length: Nominal length in seconds
        controls: Controls hint shown before the game
        point_rules: Event name -> score delta for this slot
        description: Optional blurb shown with the controls
        skin_data: Asset key -> image path, overriding the session skin
    """
    model_config = _FROZEN

    id: str = Field(min_length=1)
    name: str
    length: float = Field(default=0, ge=0)
    controls: str = ""
    point_rules: Dict[str, int] = Field(default_factory=dict)
    description: Optional[str] = None
    skin_data: Dict[str, str] = Field(default_factory=dict)


class AudioConfigEntry(BaseModel):
    """Audio override for one phase key (flow_<n>, intro, promo, conversion).

    music_id is a music library id, 'none' for silence, or None to use the
    macrogame's background music.
    """
    model_config = _FROZEN

    play_music: bool = True
    music_id: Optional[str] = None


class SkinConfig(BaseModel):
    """Visual asset bundle handed to minigames. Purely cosmetic.

    Minigames may define extra asset keys; they are kept as extra fields.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra='allow')

    background: Optional[str] = None
    player: Optional[str] = None
    obstacle: Optional[str] = None
    font_url: Optional[str] = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up an asset by key, including extra keys."""
        value = getattr(self, key, None)
        if value is None and self.model_extra:
            value = self.model_extra.get(key)
        return value if value is not None else default

    def merged(self, overrides: Mapping[str, str]) -> 'SkinConfig':
        """Return a copy with per-slot assets layered on top."""
        if not overrides:
            return self
        data: Dict[str, Any] = self.model_dump()
        data.update(overrides)
        return SkinConfig.model_validate(data)


class MinigameResult(BaseModel):
    """Terminal value a minigame reports exactly once."""
    model_config = _FROZEN

    win: bool


class SessionState(BaseModel):
    """Snapshot of the running session, owned by the FlowController."""
    model_config = _FROZEN

    view: Phase = Phase.LOADING
    game_index: int = Field(default=0, ge=0)
    score: int = 0
    muted: bool = False


class MacrogameSession(BaseModel):
    """Everything a session needs at bootstrap. Immutable for its lifetime."""
    model_config = _FROZEN

    id: str = ""
    name: str = ""
    config: MacrogameConfig = Field(default_factory=MacrogameConfig)
    intro_screen: ScreenConfig = Field(default_factory=ScreenConfig)
    promo_screen: ScreenConfig = Field(default_factory=ScreenConfig)
    flow: List[FlowEntry] = Field(default_factory=list)
    conversion_screen_id: Optional[str] = None
    conversion_screens: List[ConversionScreen] = Field(default_factory=list)
    audio_config: Dict[str, AudioConfigEntry] = Field(default_factory=dict)
    skin: SkinConfig = Field(default_factory=SkinConfig)
    point_costs: Dict[str, int] = Field(default_factory=dict)

    @property
    def conversion_screen(self) -> Optional[ConversionScreen]:
        """The conversion screen configured for the end phase, if any."""
        if not self.conversion_screen_id:
            return None
        for screen in self.conversion_screens:
            if screen.id == self.conversion_screen_id:
                return screen
        return None
