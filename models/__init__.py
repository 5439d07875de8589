"""
Unified models library for the macrogame engine.

This package provides all Pydantic data models used across the system:
- Primitives: Geometric types (Point2D, Rectangle) in the normalized arena
- Macrogame: Session configuration, flow entries, phases and results
- Conversion: End-of-session reward screens and their gates
- Catalog: Microgame catalog entries referenced by session documents

Usage:
    >>> from models import FlowEntry, MacrogameSession, Phase
    >>> from models.primitives import Rectangle
"""

# ============================================================================
# Primitives (basic types used everywhere)
# ============================================================================
from .primitives import (
    Point2D,
    Rectangle,
)

# ============================================================================
# Conversion screen models
# ============================================================================
from .conversion import (
    GateType,
    RewardGate,
    ScreenMethod,
    ConversionScreen,
)

# ============================================================================
# Session models
# ============================================================================
from .macrogame import (
    Phase,
    ScreenFlowType,
    MacrogameConfig,
    ScreenConfig,
    FlowEntry,
    AudioConfigEntry,
    SkinConfig,
    MinigameResult,
    SessionState,
    MacrogameSession,
)

# ============================================================================
# Catalog models
# ============================================================================
from .catalog import (
    TrackableEvent,
    MicrogameInfo,
    SkinAsset,
    CustomMicrogame,
    FlowItem,
)

__all__ = [
    # Primitives
    "Point2D",
    "Rectangle",
    # Conversion
    "GateType",
    "RewardGate",
    "ScreenMethod",
    "ConversionScreen",
    # Session
    "Phase",
    "ScreenFlowType",
    "MacrogameConfig",
    "ScreenConfig",
    "FlowEntry",
    "AudioConfigEntry",
    "SkinConfig",
    "MinigameResult",
    "SessionState",
    "MacrogameSession",
    # Catalog
    "TrackableEvent",
    "MicrogameInfo",
    "SkinAsset",
    "CustomMicrogame",
    "FlowItem",
]
