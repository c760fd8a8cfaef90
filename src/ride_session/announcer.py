"""
Fueling Announcer.

Turns fueling events into an alert tone and spoken prompts. Sink failures
are logged and swallowed: a broken speaker never interrupts the ride.
"""

import logging
from typing import Optional

from .interfaces import AudioCueSink, SpeechOutputSink
from .models import FuelingAlert

logger = logging.getLogger(__name__)

CONFIRMATION_SPEECH = "Confirmed. Fueling logged."
TEST_SPEECH = "Time to fuel. Take 50 grams of carbs."


def alert_speech(alert: FuelingAlert) -> str:
    return f"Time to fuel. Take {alert.carbs} grams of carbs."


class FuelingAnnouncer:
    """Routes announcements to whichever output sinks are available."""

    def __init__(
        self,
        audio_sink: Optional[AudioCueSink] = None,
        speech_sink: Optional[SpeechOutputSink] = None,
    ):
        self.audio_sink = audio_sink
        self.speech_sink = speech_sink

    def play_tone(self) -> None:
        if self.audio_sink is None:
            return
        try:
            self.audio_sink.play_alert_tone()
        except Exception as e:
            logger.warning(f"[AUDIO] Failed to play alert tone: {e}")

    def speak(self, text: str) -> None:
        """Speak ``text``, superseding anything still being spoken."""
        if self.speech_sink is None:
            return
        try:
            self.speech_sink.cancel()
            self.speech_sink.speak(text)
        except Exception as e:
            logger.warning(f"[SPEECH] Failed to speak '{text}': {e}")

    def announce_alert(self, alert: FuelingAlert, voice_alerts_enabled: bool) -> None:
        """Tone, then the spoken carb recommendation if voice alerts are on."""
        self.play_tone()
        if voice_alerts_enabled:
            self.speak(alert_speech(alert))

    def announce_confirmation(self, voice_alerts_enabled: bool) -> None:
        """Audible cue for a voice-confirmed fueling."""
        self.play_tone()
        if voice_alerts_enabled:
            self.speak(CONFIRMATION_SPEECH)
