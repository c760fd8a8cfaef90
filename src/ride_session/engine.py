"""
Ride Session Engine.

Owns the session state machine (setup -> running <-> paused -> ended ->
setup) and wires the session clock, the fueling scheduler, the voice
confirmation loop and the announcer around one shared SessionState.

Running is the only status in which the clock ticks and the voice loop
listens. Pausing or ending flips the status under the state lock before the
tasks are cancelled, so no tick is applied after the transition.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from .announcer import TEST_SPEECH, FuelingAnnouncer
from .config import EngineSettings, get_engine_settings
from .errors import InvalidTransitionError
from .fueling_scheduler import FuelingScheduler
from .heart_rate import HeartRateWindow
from .interfaces import AudioCueSink, SpeechInputSource, SpeechOutputSink
from .models import FuelingAlert, SessionConfig, SessionState, SessionStatus
from .session_clock import SessionClock
from .summary import RideSummary
from .voice_confirmation import VoiceConfirmationLoop

logger = logging.getLogger(__name__)

EngineListener = Callable[[str, Dict[str, Any]], None]

# Event types delivered to listeners
EVENT_FUELING_ALERT = "fueling_alert"
EVENT_FUELING_CONFIRMED = "fueling_confirmed"
EVENT_SESSION_STATUS = "session_status"
EVENT_CAPABILITY = "capability"


class RideSessionEngine:
    """
    Real-time fueling engine for a single ride.

    Every collaborator is optional: without an audio or speech sink the
    engine stays silent, without a speech source the voice loop never starts,
    and without heart-rate samples the burn estimate uses the workload alone.
    Missing collaborators are reported once through ``capabilities``.
    """

    def __init__(
        self,
        audio_sink: Optional[AudioCueSink] = None,
        speech_sink: Optional[SpeechOutputSink] = None,
        speech_source: Optional[SpeechInputSource] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.settings = settings or get_engine_settings()
        self.state = SessionState(
            heart_rate=HeartRateWindow(window_size=self.settings.heart_rate_window)
        )
        self.announcer = FuelingAnnouncer(audio_sink=audio_sink, speech_sink=speech_sink)
        self.clock = SessionClock(
            self.state,
            scheduler=FuelingScheduler(),
            interval_seconds=self.settings.tick_interval_seconds,
            resting_hr=self.settings.resting_heart_rate,
            max_hr=self.settings.max_heart_rate,
            on_alert=self._on_fueling_alert,
        )
        self.voice_loop: Optional[VoiceConfirmationLoop] = None
        if speech_source is not None:
            self.voice_loop = VoiceConfirmationLoop(
                speech_source,
                on_confirm=self._confirm_by_voice,
                start_delay=self.settings.voice_start_delay_seconds,
                restart_backoff=self.settings.voice_restart_backoff_seconds,
            )

        self._listeners: List[EngineListener] = []
        self._capabilities: Dict[str, bool] = {}
        self._capability_reasons: Dict[str, str] = {}
        self.report_capability("audio_cue", audio_sink is not None, "no audio sink configured")
        self.report_capability("voice_output", speech_sink is not None, "no speech output configured")
        self.report_capability("voice_input", speech_source is not None, "no speech input configured")
        self._capabilities["heart_rate"] = False

    # ------------------------------------------------------------------
    # Listeners and capabilities
    # ------------------------------------------------------------------

    def add_listener(self, listener: EngineListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EngineListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event_type, payload)
            except Exception as e:
                logger.error(f"[ENGINE] Listener failed on {event_type}: {e}")

    @property
    def capabilities(self) -> Dict[str, Any]:
        return {
            **self._capabilities,
            "unavailable_reasons": dict(self._capability_reasons),
        }

    def report_capability(self, name: str, available: bool, reason: str = "") -> None:
        """
        Record whether a collaborator is usable.

        Unavailability is logged once per change; it is never an error.
        """
        previous = self._capabilities.get(name)
        self._capabilities[name] = available
        if available:
            self._capability_reasons.pop(name, None)
        else:
            self._capability_reasons[name] = reason
        if previous == available:
            return

        if not available:
            logger.warning(f"[ENGINE] {name} unavailable: {reason}")
        self._emit(EVENT_CAPABILITY, {"name": name, "available": available, "reason": reason})

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    def start_session(self, config: SessionConfig) -> None:
        """Begin a new ride from the setup status."""
        asyncio.get_running_loop()
        with self.state.lock:
            self._require("start", SessionStatus.SETUP)
            self.state.begin(config)
            self.state.status = SessionStatus.RUNNING

        logger.info(
            f"[ENGINE] Ride started: {config.preset.name}, "
            f"{config.weight_kg}kg, pre-ride {config.pre_ride_calories} kcal"
        )
        self._start_tasks()
        self._emit_status()

    def pause_session(self) -> None:
        with self.state.lock:
            self._require("pause", SessionStatus.RUNNING)
            self.state.status = SessionStatus.PAUSED
        self._stop_tasks()
        logger.info(f"[ENGINE] Ride paused at {self.state.elapsed_seconds}s")
        self._emit_status()

    def resume_session(self) -> None:
        """Continue a paused ride; elapsed time and totals carry over."""
        asyncio.get_running_loop()
        with self.state.lock:
            self._require("resume", SessionStatus.PAUSED)
            self.state.status = SessionStatus.RUNNING
        self._start_tasks()
        logger.info(f"[ENGINE] Ride resumed at {self.state.elapsed_seconds}s")
        self._emit_status()

    def end_session(self) -> RideSummary:
        with self.state.lock:
            self._require("end", SessionStatus.RUNNING, SessionStatus.PAUSED)
            self.state.status = SessionStatus.ENDED
        self._stop_tasks()

        summary = self.summary()
        logger.info(
            f"[ENGINE] Ride ended: {summary.duration}, "
            f"{summary.calories_burned:.0f} kcal burned, "
            f"{summary.alerts_fired} fueling alerts"
        )
        self._emit_status()
        return summary

    def reset_session(self) -> None:
        """Return an ended ride to setup; a no-op reset is allowed in setup."""
        with self.state.lock:
            self._require("reset", SessionStatus.ENDED, SessionStatus.SETUP)
            self.state.clear()
        self._stop_tasks()
        logger.info("[ENGINE] Session reset")
        self._emit_status()

    def shutdown(self) -> None:
        """Stop the background tasks without changing the session status."""
        self._stop_tasks()

    def _require(self, operation: str, *allowed: SessionStatus) -> None:
        if self.state.status not in allowed:
            raise InvalidTransitionError(operation, self.state.status.value)

    def _start_tasks(self) -> None:
        self.clock.start()
        if self.voice_loop is not None and self.state.config.voice_commands_enabled:
            self.voice_loop.start()

    def _stop_tasks(self) -> None:
        self.clock.stop()
        if self.voice_loop is not None:
            self.voice_loop.stop()

    def _emit_status(self) -> None:
        self._emit(EVENT_SESSION_STATUS, {"status": self.state.status.value})

    # ------------------------------------------------------------------
    # Fueling
    # ------------------------------------------------------------------

    def confirm_fueling(self) -> Optional[FuelingAlert]:
        """
        Mark the pending alert as consumed.

        Safe to call when nothing is pending; the call is then a no-op.
        """
        alert = self.state.resolve_pending_alert()
        if alert is not None:
            logger.info(f"[FUELING] Manually confirmed {alert.carbs}g carbs")
            self._emit_confirmed(alert, "manual")
        return alert

    def _confirm_by_voice(self) -> Optional[FuelingAlert]:
        alert = self.state.resolve_pending_alert()
        if alert is not None:
            self.announcer.announce_confirmation(self.state.config.voice_alerts_enabled)
            self._emit_confirmed(alert, "voice")
        return alert

    def _emit_confirmed(self, alert: FuelingAlert, source: str) -> None:
        self._emit(
            EVENT_FUELING_CONFIRMED,
            {
                "alert": alert.to_dict(),
                "source": source,
                "calories_consumed": self.state.calories_consumed,
            },
        )

    def _on_fueling_alert(self, alert: FuelingAlert) -> None:
        self.announcer.announce_alert(alert, self.state.config.voice_alerts_enabled)
        self._emit(EVENT_FUELING_ALERT, {"alert": alert.to_dict()})

    def test_voice_alert(self) -> None:
        """Speak a sample alert so the athlete can check the volume."""
        self.announcer.speak(TEST_SPEECH)

    # ------------------------------------------------------------------
    # Heart rate and readers
    # ------------------------------------------------------------------

    def ingest_heart_rate(self, bpm: int) -> None:
        """Buffer a heart-rate sample; accepted in any session status."""
        with self.state.lock:
            self.state.heart_rate.add_sample(bpm)
        if bpm > 0 and not self._capabilities.get("heart_rate"):
            self.report_capability("heart_rate", True)

    def snapshot(self) -> Dict[str, Any]:
        """Consistent view of the session for the presentation layer."""
        snapshot = self.state.snapshot()
        snapshot["listening"] = bool(self.voice_loop and self.voice_loop.listening)
        snapshot["capabilities"] = self.capabilities
        return snapshot

    def summary(self) -> RideSummary:
        return RideSummary.from_state(self.state)
