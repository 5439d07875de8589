"""
Conversion screen models.

A conversion screen is shown at the end of a session and lists reward methods
(coupon, email capture, link, ...). A method may be gated: hidden until
another method on the screen is completed, or locked behind a point cost.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GateType(str, Enum):
    """How a method on the conversion screen is unlocked."""
    ON_SUCCESS = "on_success"            # another method must be completed first
    ON_POINTS = "on_points"              # bought with points (debits the score)
    POINT_THRESHOLD = "point_threshold"  # shown once the score reaches the cost


class RewardGate(BaseModel):
    """Gate on a single screen method."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    type: GateType
    method_instance_id: Optional[str] = None


class ScreenMethod(BaseModel):
    """One reward method placed on a conversion screen."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    instance_id: str = Field(min_length=1)
    method_id: str
    name: str = ""
    gate: Optional[RewardGate] = None


class ConversionScreen(BaseModel):
    """End-of-session reward screen."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str = ""
    headline: str = ""
    body_text: str = ""
    methods: List[ScreenMethod] = Field(default_factory=list)
