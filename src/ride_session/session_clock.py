"""
Session Clock.

The one-second periodic driver of a ride. Each tick advances elapsed time,
converts the current effort into burned calories and hands the new total to
the fueling scheduler, all under the session state lock so readers never see
a half-applied tick.
"""

import asyncio
import logging
from typing import Callable, Optional

from .energy_model import (
    DEFAULT_MAX_HR,
    DEFAULT_RESTING_HR,
    base_calories_per_minute,
    hr_adjusted_calories_per_minute,
)
from .fueling_scheduler import FuelingScheduler, round_half_up
from .models import FuelingAlert, SessionState, SessionStatus

logger = logging.getLogger(__name__)

AlertCallback = Callable[[FuelingAlert], None]
TickCallback = Callable[[SessionState], None]


class SessionClock:
    """Periodic tick task bound to one SessionState."""

    def __init__(
        self,
        state: SessionState,
        scheduler: Optional[FuelingScheduler] = None,
        interval_seconds: float = 1.0,
        resting_hr: int = DEFAULT_RESTING_HR,
        max_hr: int = DEFAULT_MAX_HR,
        on_alert: Optional[AlertCallback] = None,
        on_tick: Optional[TickCallback] = None,
    ):
        self.state = state
        self.scheduler = scheduler or FuelingScheduler()
        self.interval_seconds = interval_seconds
        self.resting_hr = resting_hr
        self.max_hr = max_hr
        self.on_alert = on_alert
        self.on_tick = on_tick
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> Optional[FuelingAlert]:
        """
        Apply one simulated second.

        Does nothing unless the session is running.

        Returns:
            The FuelingAlert fired on this tick, or None
        """
        state = self.state
        with state.lock:
            if state.status is not SessionStatus.RUNNING:
                return None

            state.elapsed_seconds += 1

            current_hr = state.heart_rate.latest
            base_rate = base_calories_per_minute(
                state.config.preset.met, state.config.weight_kg
            )
            adjusted_rate = hr_adjusted_calories_per_minute(
                base_rate, current_hr, self.resting_hr, self.max_hr
            )
            state.calories_burned += adjusted_rate / 60

            if len(state.heart_rate) > 0:
                state.avg_heart_rate = round_half_up(state.heart_rate.average())

            alert = self.scheduler.check(state)

        if alert is not None and self.on_alert is not None:
            self.on_alert(alert)
        if self.on_tick is not None:
            self.on_tick(state)
        return alert

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        logger.info(f"[CLOCK] Started (interval={self.interval_seconds}s)")

    def stop(self) -> None:
        """Cancel the tick task. Safe to call when not running."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info(f"[CLOCK] Stopped at {self.state.elapsed_seconds}s")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.tick()
            except Exception as e:
                logger.error(f"[CLOCK] Tick failed: {e}")
