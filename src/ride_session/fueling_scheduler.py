"""
Fueling Scheduler.

Decides, once per tick, whether enough calories have been burned since the
last fueling event to recommend eating again, and how much.

Thresholds are linear in the preset's MET, anchored at the moderate preset
(8 MET): 150 kcal before the first alert and 200 kcal between alerts. Harder
presets fuel later but more often; recovery rides fuel earlier.
"""

import logging
import math
from typing import Optional, Tuple

from .models import CountdownPhase, FuelingAlert, SessionState

logger = logging.getLogger(__name__)

ANCHOR_MET = 8.0
INITIAL_THRESHOLD_BASE = 150.0
INITIAL_THRESHOLD_PER_MET = 50.0
INTERVAL_BASE = 200.0
INTERVAL_PER_MET = 25.0

CARB_REPLACEMENT_FRACTION = 0.55
KCAL_PER_GRAM_CARB = 4
MIN_CARBS = 30
MAX_CARBS = 80


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def fueling_thresholds(met: float) -> Tuple[float, float]:
    """
    Get the first-alert threshold and the inter-alert interval for a MET.

    Returns:
        Tuple of (initial_threshold, interval) in kcal
    """
    initial_threshold = INITIAL_THRESHOLD_BASE + (met - ANCHOR_MET) * INITIAL_THRESHOLD_PER_MET
    interval = INTERVAL_BASE + (met - ANCHOR_MET) * INTERVAL_PER_MET
    return initial_threshold, interval


def carbs_needed(calories_since_last: float) -> int:
    """Grams of carbohydrate replacing ~55% of the calories, clamped to 30-80."""
    raw = round_half_up(calories_since_last * CARB_REPLACEMENT_FRACTION / KCAL_PER_GRAM_CARB)
    return min(MAX_CARBS, max(MIN_CARBS, raw))


class FuelingScheduler:
    """
    Fueling policy applied to a SessionState.

    The reference point (``state.last_fueling_calories``) lives on the
    session state so that every component reads the same value.
    """

    def check(self, state: SessionState) -> Optional[FuelingAlert]:
        """
        Update the countdown and fire an alert if the interval has elapsed.

        Callers must hold ``state.lock``.

        Args:
            state: The running session state

        Returns:
            The newly appended FuelingAlert, or None
        """
        burned = state.calories_burned
        initial_threshold, interval = fueling_thresholds(state.config.preset.met)

        if burned < initial_threshold:
            state.next_fueling_in = initial_threshold - burned
            state.countdown_phase = CountdownPhase.FIRST_ALERT
            return None

        since_last = burned - state.last_fueling_calories
        state.countdown_phase = CountdownPhase.NEXT_ALERT

        if since_last < interval:
            state.next_fueling_in = interval - since_last
            return None

        carbs = carbs_needed(since_last)
        alert = FuelingAlert(
            calories=round_half_up(since_last),
            carbs=carbs,
            message=f"Time to fuel! Take {carbs}g carbs",
            elapsed_seconds=state.elapsed_seconds,
        )
        state.fueling_alerts.append(alert)
        state.alert_history.append(alert)
        state.last_fueling_calories = burned
        state.next_fueling_in = interval

        logger.info(
            f"[FUELING] Alert fired at {burned:.1f} kcal: "
            f"{alert.calories} kcal since last fuel, {carbs}g carbs"
        )
        return alert
