"""Pydantic models for ride API requests and responses."""
from .session import (
    StartSessionRequest,
    IntensityPresetModel,
    FuelingAlertModel,
    SessionStateResponse,
    ConfirmFuelingResponse,
    RideSummaryResponse,
)
from .sensors import HeartRateSample, UtteranceRequest, HeartRateAccepted, UtteranceAccepted

__all__ = [
    "StartSessionRequest",
    "IntensityPresetModel",
    "FuelingAlertModel",
    "SessionStateResponse",
    "ConfirmFuelingResponse",
    "RideSummaryResponse",
    "HeartRateSample",
    "UtteranceRequest",
    "HeartRateAccepted",
    "UtteranceAccepted",
]
