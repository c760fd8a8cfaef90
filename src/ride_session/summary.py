"""End-of-ride summary."""

from dataclasses import dataclass
from typing import Any, Dict

from .energy_model import recovery_calorie_range
from .fueling_scheduler import round_half_up
from .models import SessionState


def format_duration(seconds: int) -> str:
    """Format seconds as ``M:SS``, or ``H:MM:SS`` from one hour up."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@dataclass
class RideSummary:
    """Totals shown after the ride ends."""

    duration_seconds: int
    avg_heart_rate: int
    calories_burned: float
    pre_ride_calories: float
    during_ride_calories: float
    total_intake: float
    net_deficit: float
    alerts_fired: int
    fuelings_confirmed: int
    recovery_calories_low: int
    recovery_calories_high: int

    @property
    def duration(self) -> str:
        return format_duration(self.duration_seconds)

    @classmethod
    def from_state(cls, state: SessionState) -> "RideSummary":
        with state.lock:
            pre_ride = float(state.config.pre_ride_calories)
            low, high = recovery_calorie_range(state.calories_burned)
            return cls(
                duration_seconds=state.elapsed_seconds,
                avg_heart_rate=state.avg_heart_rate,
                calories_burned=state.calories_burned,
                pre_ride_calories=pre_ride,
                during_ride_calories=state.calories_consumed - pre_ride,
                total_intake=state.calories_consumed,
                net_deficit=state.calories_burned - state.calories_consumed,
                alerts_fired=len(state.alert_history),
                fuelings_confirmed=state.fuelings_confirmed,
                recovery_calories_low=low,
                recovery_calories_high=high,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "duration_seconds": self.duration_seconds,
            "duration": self.duration,
            "avg_heart_rate": self.avg_heart_rate,
            "calories_burned": round_half_up(self.calories_burned),
            "pre_ride_calories": round_half_up(self.pre_ride_calories),
            "during_ride_calories": round_half_up(self.during_ride_calories),
            "total_intake": round_half_up(self.total_intake),
            "net_deficit": round_half_up(self.net_deficit),
            "alerts_fired": self.alerts_fired,
            "fuelings_confirmed": self.fuelings_confirmed,
            "recovery_calories_low": self.recovery_calories_low,
            "recovery_calories_high": self.recovery_calories_high,
        }
