"""
Unit tests for the Session Clock.

These tests verify:
1. Each tick advances time and burns calories from the energy model
2. Heart-rate samples modulate the burn and feed the rolling average
3. Ticks are ignored outside the running status
4. End-to-end fueling over a simulated ride

Usage:
    pytest tests/test_session_clock.py -v
"""
import asyncio
import pytest
from unittest.mock import MagicMock

from ride_session.models import CountdownPhase, SessionStatus
from ride_session.session_clock import SessionClock


class TestTick:
    """Single-tick behaviour."""

    def test_tick_advances_elapsed_and_burn(self, running_state):
        clock = SessionClock(running_state)
        clock.tick()

        assert running_state.elapsed_seconds == 1
        assert running_state.calories_burned == pytest.approx(10.5 / 60)

    def test_sixty_ticks_without_heart_rate(self, running_state):
        """75 kg, moderate, no HR: 60 ticks burn exactly 10.5 kcal, no alert."""
        clock = SessionClock(running_state)
        for _ in range(60):
            clock.tick()

        assert running_state.elapsed_seconds == 60
        assert running_state.calories_burned == pytest.approx(10.5)
        assert running_state.fueling_alerts == []
        assert running_state.countdown_phase == CountdownPhase.FIRST_ALERT
        assert running_state.next_fueling_in == pytest.approx(139.5)

    def test_heart_rate_raises_burn(self, running_state):
        """At max HR the burn is 1.3x the workload estimate."""
        running_state.heart_rate.add_sample(190)
        clock = SessionClock(running_state)
        for _ in range(60):
            clock.tick()

        assert running_state.calories_burned == pytest.approx(10.5 * 1.3)

    def test_low_heart_rate_ignored(self, running_state):
        running_state.heart_rate.add_sample(50)
        clock = SessionClock(running_state)
        for _ in range(60):
            clock.tick()

        assert running_state.calories_burned == pytest.approx(10.5)

    def test_average_heart_rate_updates(self, running_state):
        for bpm in (120, 131, 140):
            running_state.heart_rate.add_sample(bpm)

        SessionClock(running_state).tick()
        assert running_state.avg_heart_rate == 130

    def test_average_kept_when_no_samples(self, running_state):
        running_state.avg_heart_rate = 0
        SessionClock(running_state).tick()
        assert running_state.avg_heart_rate == 0

    @pytest.mark.parametrize("status", [SessionStatus.SETUP, SessionStatus.PAUSED, SessionStatus.ENDED])
    def test_tick_ignored_when_not_running(self, running_state, status):
        running_state.status = status
        clock = SessionClock(running_state)

        assert clock.tick() is None
        assert running_state.elapsed_seconds == 0
        assert running_state.calories_burned == 0.0

    def test_burned_never_decreases(self, running_state):
        clock = SessionClock(running_state)
        previous = 0.0
        for bpm in (0, 190, 0, 100, 55, 160):
            running_state.heart_rate.add_sample(bpm)
            clock.tick()
            assert running_state.calories_burned >= previous
            previous = running_state.calories_burned


class TestFuelingOverARide:
    """Clock and scheduler together."""

    def test_first_alert_at_two_hundred_kcal(self, running_state):
        """0.175 kcal/tick: tick 1142 is at 199.85 kcal, tick 1143 crosses 200."""
        on_alert = MagicMock()
        clock = SessionClock(running_state, on_alert=on_alert)

        for _ in range(1142):
            assert clock.tick() is None
        assert running_state.countdown_phase == CountdownPhase.NEXT_ALERT

        alert = clock.tick()
        assert alert is not None
        assert alert.carbs == 30
        assert alert.elapsed_seconds == 1143
        on_alert.assert_called_once_with(alert)
        assert running_state.last_fueling_calories == pytest.approx(200.025)

    def test_interval_countdown_starts_at_initial_threshold(self, running_state):
        """150 kcal is crossed on tick 858 (150.15 kcal)."""
        clock = SessionClock(running_state)
        for _ in range(857):
            clock.tick()
        assert running_state.countdown_phase == CountdownPhase.FIRST_ALERT

        clock.tick()
        assert running_state.countdown_phase == CountdownPhase.NEXT_ALERT
        assert running_state.fueling_alerts == []

    def test_one_alert_per_interval(self, running_state):
        clock = SessionClock(running_state)
        for _ in range(3 * 1143 + 10):
            clock.tick()

        assert len(running_state.alert_history) == 3

    def test_on_tick_called(self, running_state):
        on_tick = MagicMock()
        SessionClock(running_state, on_tick=on_tick).tick()
        on_tick.assert_called_once_with(running_state)


class TestClockTask:
    """The asyncio driver."""

    @pytest.mark.asyncio
    async def test_task_ticks_periodically(self, running_state):
        clock = SessionClock(running_state, interval_seconds=0.01)
        clock.start()
        await asyncio.sleep(0.1)
        clock.stop()

        assert running_state.elapsed_seconds >= 3
        assert not clock.is_running

    @pytest.mark.asyncio
    async def test_no_tick_after_stop(self, running_state):
        clock = SessionClock(running_state, interval_seconds=0.01)
        clock.start()
        await asyncio.sleep(0.05)
        clock.stop()
        elapsed = running_state.elapsed_seconds

        await asyncio.sleep(0.05)
        assert running_state.elapsed_seconds == elapsed

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, running_state):
        clock = SessionClock(running_state, interval_seconds=0.01)
        clock.start()
        task = clock._task
        clock.start()
        assert clock._task is task
        clock.stop()

    @pytest.mark.asyncio
    async def test_tick_error_does_not_stop_task(self, running_state):
        on_tick = MagicMock(side_effect=[RuntimeError("boom"), None, None, None, None, None])
        clock = SessionClock(running_state, interval_seconds=0.01, on_tick=on_tick)
        clock.start()
        await asyncio.sleep(0.08)
        clock.stop()

        assert on_tick.call_count >= 2
