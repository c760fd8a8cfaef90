"""Heart-rate and voice input models."""
from pydantic import BaseModel, Field, model_validator
from typing import Optional


class HeartRateSample(BaseModel):
    """A heart-rate reading, decoded or as the raw BLE characteristic."""

    bpm: Optional[int] = Field(default=None, ge=0, le=250, description="0 means no reading")
    measurement: Optional[str] = Field(
        default=None, description="Heart Rate Measurement characteristic as hex"
    )

    @model_validator(mode="after")
    def _require_one(self):
        if self.bpm is None and not self.measurement:
            raise ValueError("Either bpm or measurement is required")
        return self


class UtteranceRequest(BaseModel):
    """A transcript (or recognizer error) from the rider's device."""

    transcript: Optional[str] = None
    error: Optional[str] = Field(default=None, description="Recognizer error code, e.g. no-speech")
    detail: str = ""

    @model_validator(mode="after")
    def _require_one(self):
        if self.transcript is None and not self.error:
            raise ValueError("Either transcript or error is required")
        return self


class HeartRateAccepted(BaseModel):
    """Acknowledgement of an ingested heart-rate sample."""

    bpm: int


class UtteranceAccepted(BaseModel):
    """Acknowledgement of a queued utterance."""

    queued: bool
    is_confirmation: bool = False
