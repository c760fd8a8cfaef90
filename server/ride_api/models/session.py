"""Ride session request and response models."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional

from ride_session import RideType, SessionConfig


class StartSessionRequest(BaseModel):
    """Settings chosen on the setup screen."""

    weight_kg: float = Field(default=75.0, ge=40, le=150, description="Body weight in kg")
    ride_type: RideType = RideType.MODERATE
    pre_ride_calories: float = Field(default=0.0, ge=0, description="Calories eaten before the ride")
    voice_alerts_enabled: bool = True
    voice_commands_enabled: bool = True

    def to_config(self) -> SessionConfig:
        return SessionConfig(
            weight_kg=self.weight_kg,
            ride_type=self.ride_type,
            pre_ride_calories=self.pre_ride_calories,
            voice_alerts_enabled=self.voice_alerts_enabled,
            voice_commands_enabled=self.voice_commands_enabled,
        )


class IntensityPresetModel(BaseModel):
    """Ride intensity preset."""

    ride_type: RideType
    name: str
    met: float
    hr_percent: int


class FuelingAlertModel(BaseModel):
    """A pending fueling recommendation."""

    id: str
    calories: int
    carbs: int
    message: str
    elapsed_seconds: int
    created_at: str


class SessionStateResponse(BaseModel):
    """Live ride state, as shown on the riding screen."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["setup", "running", "paused", "ended"]
    ride_type: RideType
    preset_name: str
    elapsed_seconds: int
    elapsed: str
    heart_rate: int
    avg_heart_rate: int
    calories_burned: int
    calories_consumed: int
    calorie_deficit: int
    next_fueling_in: Optional[int] = None
    countdown_phase: Optional[Literal["first_alert", "next_alert"]] = None
    pending_alert: Optional[FuelingAlertModel] = None
    alerts_fired: int = 0
    fuelings_confirmed: int = 0
    listening: bool = False


class ConfirmFuelingResponse(BaseModel):
    """Result of a manual "mark as consumed"."""

    confirmed: bool
    alert: Optional[FuelingAlertModel] = None
    calories_consumed: int


class RideSummaryResponse(BaseModel):
    """End-of-ride totals and recovery guidance."""

    duration_seconds: int
    duration: str
    avg_heart_rate: int
    calories_burned: int
    pre_ride_calories: int
    during_ride_calories: int
    total_intake: int
    net_deficit: int
    alerts_fired: int
    fuelings_confirmed: int
    recovery_calories_low: int
    recovery_calories_high: int
