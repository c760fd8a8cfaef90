"""
Energy Model.

MET-based calorie burn estimate, modulated by heart-rate reserve when a
heart-rate reading is available.
"""

from typing import Tuple

from .fueling_scheduler import round_half_up

DEFAULT_RESTING_HR = 60
DEFAULT_MAX_HR = 190

# Multiplier applied at resting HR, and its span up to max HR
HR_MULTIPLIER_FLOOR = 0.7
HR_MULTIPLIER_SPAN = 0.6

# Post-ride replenishment window, as fractions of calories burned
RECOVERY_FRACTION_LOW = 0.3
RECOVERY_FRACTION_HIGH = 0.5


def base_calories_per_minute(met: float, weight_kg: float) -> float:
    """Workload-only burn rate in kcal/min."""
    return met * weight_kg * 3.5 / 200


def hr_adjusted_calories_per_minute(
    base_rate: float,
    current_hr: int,
    resting_hr: int = DEFAULT_RESTING_HR,
    max_hr: int = DEFAULT_MAX_HR,
) -> float:
    """
    Scale the base burn rate by heart-rate reserve.

    Missing (0) or sub-resting readings leave the base rate unchanged. The
    multiplier runs from 0.7x at resting HR to 1.3x at max HR and keeps
    growing above max HR.

    Args:
        base_rate: Workload-only rate from base_calories_per_minute
        current_hr: Latest heart-rate sample in bpm (0 = unknown)
        resting_hr: Resting heart rate in bpm
        max_hr: Maximum heart rate in bpm

    Returns:
        Adjusted burn rate in kcal/min
    """
    if not current_hr or current_hr < resting_hr:
        return base_rate

    reserve_fraction = (current_hr - resting_hr) / (max_hr - resting_hr)
    return base_rate * (HR_MULTIPLIER_FLOOR + reserve_fraction * HR_MULTIPLIER_SPAN)


def recovery_calorie_range(calories_burned: float) -> Tuple[int, int]:
    """Calories to replenish within 30 minutes after the ride."""
    return (
        round_half_up(calories_burned * RECOVERY_FRACTION_LOW),
        round_half_up(calories_burned * RECOVERY_FRACTION_HIGH),
    )
