"""
Microgame catalog models.

Session documents may reference minigames by id instead of spelling out each
flow entry. References are resolved against a catalog of base microgames and
user-created variants (reskins) by the session loader.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


_CATALOG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class TrackableEvent(BaseModel):
    """An event a microgame can report, with its default point value."""
    model_config = _CATALOG

    event_id: str
    label: str = ""
    default_points: int = 0


class MicrogameInfo(BaseModel):
    """Base microgame as stored in the catalog."""
    model_config = _CATALOG

    id: str
    name: str
    controls: str = ""
    length: float = Field(default=0, ge=0)
    is_active: bool = True
    description: Optional[str] = None
    trackable_events: List[TrackableEvent] = Field(default_factory=list)

    def default_point_rules(self) -> Dict[str, int]:
        """Point rules used when a flow item defines none."""
        return {event.event_id: event.default_points for event in self.trackable_events}


class SkinAsset(BaseModel):
    """Uploaded asset of a custom variant."""
    model_config = _CATALOG

    url: str
    file_name: str = ""


class CustomMicrogame(BaseModel):
    """User-created reskin of a base microgame."""
    model_config = _CATALOG

    id: str
    name: str = ""
    base_microgame_id: str
    skin_data: Dict[str, SkinAsset] = Field(default_factory=dict)


class FlowItem(BaseModel):
    """Flow slot that references the catalog."""
    model_config = _CATALOG

    microgame_id: str
    variant_id: Optional[str] = None
    point_rules: Optional[Dict[str, int]] = None
