"""Protocol interfaces for the audio, speech and sensor collaborators."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

NO_SPEECH = "no-speech"


@dataclass(frozen=True)
class RecognitionError:
    """Error marker emitted by a speech input source in place of a transcript."""

    code: str
    detail: str = ""

    @property
    def is_no_speech(self) -> bool:
        return self.code == NO_SPEECH


Utterance = Union[str, RecognitionError]


@runtime_checkable
class AudioCueSink(Protocol):
    """Plays short notification sounds."""

    def play_alert_tone(self) -> None:
        """Play the short alert tone (fire-and-forget)."""


@runtime_checkable
class SpeechOutputSink(Protocol):
    """Renders text as spoken audio."""

    def speak(self, text: str) -> None:
        """Start speaking ``text``."""

    def cancel(self) -> None:
        """Stop any utterance currently being spoken."""


@runtime_checkable
class SpeechInputSource(Protocol):
    """Produces recognized utterances while listening is active."""

    def listen(self) -> AsyncIterator[Utterance]:
        """Yield transcripts (or error markers) until the transport ends."""

    def clear(self) -> None:
        """Discard anything heard but not yet consumed."""


class UtteranceQueue:
    """
    SpeechInputSource fed by pushed transcripts.

    Used when speech recognition happens elsewhere (e.g. in the browser) and
    transcripts are posted in. ``close()`` ends the current listening
    session, the way a recognizer transport drops; the next ``listen()``
    call starts a fresh one.
    """

    _END = object()

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def push(self, transcript: str) -> bool:
        """Queue a transcript. Returns False if the queue is full."""
        return self._put(transcript)

    def push_error(self, code: str, detail: str = "") -> bool:
        """Queue a recognition error marker."""
        return self._put(RecognitionError(code=code, detail=detail))

    def close(self) -> None:
        """End the current listening session."""
        self._put(self._END)

    def clear(self) -> None:
        """Drop queued transcripts and end markers."""
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            dropped += 1
        if dropped:
            logger.debug(f"[VOICE] Discarded {dropped} queued utterance(s)")

    def _put(self, item) -> bool:
        try:
            self._queue.put_nowait(item)
            return True
        except asyncio.QueueFull:
            logger.warning("[VOICE] Utterance queue full, dropping item")
            return False

    async def listen(self) -> AsyncIterator[Utterance]:
        while True:
            item = await self._queue.get()
            if item is self._END:
                return
            yield item
