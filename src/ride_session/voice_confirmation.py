"""
Voice Confirmation Loop.

Listens for "topped up" style phrases and resolves the pending fueling
alert. The listener is expected to drop out now and then (recognizer
timeouts, closed transports); while the session keeps running it is
restarted after a short backoff.
"""

import asyncio
import logging
from typing import Callable, Optional

from .interfaces import RecognitionError, SpeechInputSource, Utterance
from .models import FuelingAlert

logger = logging.getLogger(__name__)

CONFIRMATION_PHRASES = ("topped up", "top up", "topped", "top it up")


def normalize_transcript(text: str) -> str:
    return text.lower().strip()


def is_confirmation_phrase(text: str) -> bool:
    """Check whether a transcript contains one of the confirmation phrases."""
    normalized = normalize_transcript(text)
    return any(phrase in normalized for phrase in CONFIRMATION_PHRASES)


class VoiceConfirmationLoop:
    """
    Self-restarting listener task.

    Args:
        source: Speech input source to consume
        on_confirm: Called when a confirmation phrase is heard; returns the
            resolved alert or None when nothing was pending
        start_delay: Seconds to wait after start() before listening
        restart_backoff: Seconds to wait before re-listening after the
            source stream ends
    """

    def __init__(
        self,
        source: SpeechInputSource,
        on_confirm: Callable[[], Optional[FuelingAlert]],
        start_delay: float = 1.0,
        restart_backoff: float = 1.0,
    ):
        self.source = source
        self.on_confirm = on_confirm
        self.start_delay = start_delay
        self.restart_backoff = restart_backoff
        self.listening = False
        self.restart_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the listener on the running event loop."""
        if self.is_active:
            return
        loop = asyncio.get_running_loop()
        self.source.clear()
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        """
        Cancel the listener, including any pending delay or backoff.

        Utterances heard before the stop are discarded so they cannot confirm
        an alert fired after a later start.
        """
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.listening = False
        self.source.clear()

    def handle_utterance(self, item: Utterance) -> Optional[FuelingAlert]:
        """
        Act on one recognized utterance.

        Returns:
            The alert resolved by this utterance, or None
        """
        if isinstance(item, RecognitionError):
            if not item.is_no_speech:
                logger.warning(f"[VOICE] Recognition error: {item.code} {item.detail}".rstrip())
            return None

        if not is_confirmation_phrase(item):
            logger.debug(f"[VOICE] Ignoring: {item!r}")
            return None

        alert = self.on_confirm()
        if alert is None:
            logger.debug("[VOICE] Confirmation heard with no pending alert")
        else:
            logger.info(f"[VOICE] Confirmed fueling: {alert.carbs}g carbs")
        return alert

    async def _run(self) -> None:
        await asyncio.sleep(self.start_delay)
        while True:
            self.listening = True
            try:
                async for item in self.source.listen():
                    self.handle_utterance(item)
                logger.debug("[VOICE] Listener ended, restarting")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"[VOICE] Listener failed: {e}")
            finally:
                self.listening = False

            self.restart_count += 1
            await asyncio.sleep(self.restart_backoff)
