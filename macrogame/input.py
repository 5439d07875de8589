"""
Input Event - Keyboard and mouse input handed to minigames.

The launcher converts pygame events into InputEvent models; minigames and the
overlay gate only ever see InputEvent, so tests can build input directly.
"""
import time
from enum import Enum
from typing import Iterable, List, Optional

import pygame
from pydantic import BaseModel, ConfigDict, field_validator

from models import Point2D


class InputKind(str, Enum):
    """Kind of input action."""
    KEY_DOWN = "key_down"
    KEY_UP = "key_up"
    MOUSE_DOWN = "mouse_down"


class InputEvent(BaseModel):
    """Immutable input event.

    Attributes:
        kind: What happened
        key: Key name as reported by pygame.key.name ('left', 'w', 'space'),
            None for mouse input
        position: Pointer position for mouse input (screen coordinates)
        timestamp: Time when the event occurred (seconds, monotonic clock)
    """
    kind: InputKind
    key: Optional[str] = None
    position: Optional[Point2D] = None
    timestamp: float = 0.0

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v: float) -> float:
        """Validate timestamp is non-negative."""
        if v < 0:
            raise ValueError(f'Timestamp must be non-negative, got {v}')
        return v

    model_config = ConfigDict(frozen=True)

    @property
    def is_qualifying(self) -> bool:
        """Whether this input dismisses an overlay gate (any press)."""
        return self.kind in (InputKind.KEY_DOWN, InputKind.MOUSE_DOWN)

    @classmethod
    def key_down(cls, key: str, timestamp: float = 0.0) -> 'InputEvent':
        return cls(kind=InputKind.KEY_DOWN, key=key, timestamp=timestamp)

    @classmethod
    def key_up(cls, key: str, timestamp: float = 0.0) -> 'InputEvent':
        return cls(kind=InputKind.KEY_UP, key=key, timestamp=timestamp)

    def __str__(self) -> str:
        """String representation for debugging."""
        target = self.key if self.key is not None else self.position
        return f"InputEvent({self.kind.value}, {target}, t={self.timestamp:.3f})"


def from_pygame(event: pygame.event.Event, timestamp: Optional[float] = None) -> Optional[InputEvent]:
    """Convert one pygame event, or return None for events minigames ignore."""
    if timestamp is None:
        timestamp = time.monotonic()

    if event.type == pygame.KEYDOWN:
        return InputEvent(kind=InputKind.KEY_DOWN, key=pygame.key.name(event.key), timestamp=timestamp)
    if event.type == pygame.KEYUP:
        return InputEvent(kind=InputKind.KEY_UP, key=pygame.key.name(event.key), timestamp=timestamp)
    if event.type == pygame.MOUSEBUTTONDOWN:
        pos_x, pos_y = event.pos
        return InputEvent(
            kind=InputKind.MOUSE_DOWN,
            position=Point2D(x=float(pos_x), y=float(pos_y)),
            timestamp=timestamp,
        )
    return None


def convert_events(events: Iterable[pygame.event.Event]) -> List[InputEvent]:
    """Convert a batch of pygame events, dropping the ones minigames ignore."""
    timestamp = time.monotonic()
    converted = (from_pygame(event, timestamp) for event in events)
    return [event for event in converted if event is not None]
