"""
Ride Session Module.

Real-time calorie estimation and adaptive fueling alerts for a single ride,
with voice or manual confirmation of each fueling event.
"""

from .engine import RideSessionEngine
from .errors import InvalidTransitionError, RideSessionError
from .interfaces import RecognitionError, UtteranceQueue
from .models import (
    INTENSITY_PRESETS,
    FuelingAlert,
    IntensityPreset,
    RideType,
    SessionConfig,
    SessionState,
    SessionStatus,
)
from .summary import RideSummary

__all__ = [
    "RideSessionEngine",
    "InvalidTransitionError",
    "RideSessionError",
    "RecognitionError",
    "UtteranceQueue",
    "INTENSITY_PRESETS",
    "FuelingAlert",
    "IntensityPreset",
    "RideType",
    "SessionConfig",
    "SessionState",
    "SessionStatus",
    "RideSummary",
]
