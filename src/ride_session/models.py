"""
Ride Session Data Model.

Holds the session configuration, the intensity presets and the single
mutable SessionState record that the clock, the fueling scheduler and the
voice confirmation loop all share.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .heart_rate import HeartRateWindow


class RideType(str, Enum):
    """Intensity preset keys, ordered from easiest to hardest."""

    RECOVERY = "recovery"
    MODERATE = "moderate"
    TEMPO = "tempo"
    HARD = "hard"
    RACE = "race"


@dataclass(frozen=True)
class IntensityPreset:
    """Workload definition for a ride type."""

    met: float
    name: str
    hr_percent: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"met": self.met, "name": self.name, "hr_percent": self.hr_percent}


INTENSITY_PRESETS: Dict[RideType, IntensityPreset] = {
    RideType.RECOVERY: IntensityPreset(met=4.0, name="Recovery", hr_percent=60),
    RideType.MODERATE: IntensityPreset(met=8.0, name="Moderate", hr_percent=70),
    RideType.TEMPO: IntensityPreset(met=10.0, name="Tempo", hr_percent=80),
    RideType.HARD: IntensityPreset(met=12.0, name="Hard", hr_percent=85),
    RideType.RACE: IntensityPreset(met=14.0, name="Race", hr_percent=90),
}


class SessionStatus(str, Enum):
    """Lifecycle status of a ride session."""

    SETUP = "setup"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class CountdownPhase(str, Enum):
    """Which threshold the fueling countdown is measured against."""

    FIRST_ALERT = "first_alert"
    NEXT_ALERT = "next_alert"


@dataclass(frozen=True)
class SessionConfig:
    """
    Settings chosen before the ride starts.

    The weight is expected to be in the 40-150 kg range; the engine does not
    enforce it, callers validate their own input.
    """

    weight_kg: float = 75.0
    ride_type: RideType = RideType.MODERATE
    pre_ride_calories: float = 0.0
    voice_alerts_enabled: bool = True
    voice_commands_enabled: bool = True

    @property
    def preset(self) -> IntensityPreset:
        return INTENSITY_PRESETS[RideType(self.ride_type)]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "weight_kg": self.weight_kg,
            "ride_type": RideType(self.ride_type).value,
            "pre_ride_calories": self.pre_ride_calories,
            "voice_alerts_enabled": self.voice_alerts_enabled,
            "voice_commands_enabled": self.voice_commands_enabled,
        }


@dataclass
class FuelingAlert:
    """A recommendation to eat, created when the fueling threshold fires."""

    calories: int  # calories burned since the previous fueling event, rounded
    carbs: int
    message: str
    elapsed_seconds: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "calories": self.calories,
            "carbs": self.carbs,
            "message": self.message,
            "elapsed_seconds": self.elapsed_seconds,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class SessionState:
    """
    The one mutable record of a ride.

    All writers (clock tick, heart-rate ingestion, fueling resolution and
    lifecycle transitions) hold ``lock`` while mutating, and readers take a
    consistent copy through ``snapshot()``.
    """

    config: SessionConfig = field(default_factory=SessionConfig)
    status: SessionStatus = SessionStatus.SETUP
    elapsed_seconds: int = 0
    heart_rate: HeartRateWindow = field(default_factory=HeartRateWindow)
    avg_heart_rate: int = 0
    calories_burned: float = 0.0
    calories_consumed: float = 0.0
    last_fueling_calories: float = 0.0
    next_fueling_in: Optional[float] = None
    countdown_phase: Optional[CountdownPhase] = None
    fueling_alerts: List[FuelingAlert] = field(default_factory=list)
    alert_history: List[FuelingAlert] = field(default_factory=list)
    fuelings_confirmed: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def pending_alert(self) -> Optional[FuelingAlert]:
        """The most recent unresolved alert, if any."""
        return self.fueling_alerts[-1] if self.fueling_alerts else None

    def begin(self, config: SessionConfig) -> None:
        """Reset the counters for a fresh ride with the given config."""
        self.config = config
        self.elapsed_seconds = 0
        self.avg_heart_rate = 0
        self.calories_burned = 0.0
        self.calories_consumed = float(config.pre_ride_calories)
        self.last_fueling_calories = 0.0
        self.next_fueling_in = None
        self.countdown_phase = None
        self.fueling_alerts.clear()
        self.alert_history.clear()
        self.fuelings_confirmed = 0
        self.heart_rate.clear_window()

    def clear(self) -> None:
        """Return every field to its setup value."""
        self.begin(SessionConfig(
            weight_kg=self.config.weight_kg,
            ride_type=self.config.ride_type,
            voice_alerts_enabled=self.config.voice_alerts_enabled,
            voice_commands_enabled=self.config.voice_commands_enabled,
        ))
        self.heart_rate.clear()
        self.status = SessionStatus.SETUP

    def resolve_pending_alert(self) -> Optional[FuelingAlert]:
        """
        Consume the pending alert.

        Removes the tail alert and credits ``carbs * 4`` calories. Does
        nothing when no alert is pending.

        Returns:
            The resolved alert, or None if nothing was pending
        """
        with self.lock:
            if not self.fueling_alerts:
                return None
            alert = self.fueling_alerts.pop()
            self.calories_consumed += alert.carbs * 4
            self.fuelings_confirmed += 1
            return alert

    def snapshot(self) -> Dict[str, Any]:
        """Get a consistent copy of the state for readers."""
        with self.lock:
            pending = self.pending_alert
            return {
                "status": self.status.value,
                "config": self.config.to_dict(),
                "preset": self.config.preset.to_dict(),
                "elapsed_seconds": self.elapsed_seconds,
                "heart_rate": self.heart_rate.latest,
                "avg_heart_rate": self.avg_heart_rate,
                "calories_burned": self.calories_burned,
                "calories_consumed": self.calories_consumed,
                "calorie_deficit": max(0.0, self.calories_burned - self.calories_consumed),
                "last_fueling_calories": self.last_fueling_calories,
                "next_fueling_in": self.next_fueling_in,
                "countdown_phase": (
                    self.countdown_phase.value if self.countdown_phase else None
                ),
                "pending_alert": pending.to_dict() if pending else None,
                "fueling_alerts": [a.to_dict() for a in self.fueling_alerts],
                "alerts_fired": len(self.alert_history),
                "fuelings_confirmed": self.fuelings_confirmed,
            }
