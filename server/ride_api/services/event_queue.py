"""Thread-safe in-memory ride event queue for real-time notifications.

Fueling alerts, confirmations, session status changes and audio/speech
requests are published here and streamed to the rider's screen via SSE. The
screen renders the tone and the speech; the queue-backed sinks below are how
the engine reaches it.
"""
import asyncio
import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of ride events."""
    FUELING_ALERT = "fueling_alert"
    FUELING_CONFIRMED = "fueling_confirmed"
    SESSION_STATUS = "session_status"
    CAPABILITY = "capability"
    AUDIO_CUE = "audio_cue"
    SPEECH = "speech"
    SPEECH_CANCEL = "speech_cancel"


@dataclass
class RideEvent:
    """Real-time event from the ride session engine."""

    event_type: EventType
    payload: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "payload": self.payload,
        }


class RideEventQueue:
    """Thread-safe in-memory queue for real-time ride events.

    Supports multiple SSE subscribers and maintains a history buffer
    for new connections to catch up on recent events.
    """

    def __init__(self, max_history: int = 100):
        """Initialize the event queue.

        Args:
            max_history: Maximum number of events to keep in history buffer.
        """
        self._history: deque[RideEvent] = deque(maxlen=max_history)
        # Each subscriber queue is paired with the event loop that reads it
        self._subscribers: list[tuple[asyncio.Queue, asyncio.AbstractEventLoop]] = []
        self._lock = threading.Lock()
        self._stats = {
            "total_published": 0,
            "total_subscribers": 0,
            "events_by_type": {},
        }

    def publish(self, event: RideEvent) -> None:
        """Publish an event to all subscribers.

        Thread-safe method that can be called from any thread. Subscribers
        whose event loop is not running in the calling thread are handed the
        event through ``call_soon_threadsafe``.

        Args:
            event: The ride event to publish.
        """
        with self._lock:
            self._history.append(event)

            self._stats["total_published"] += 1
            event_type = event.event_type.value
            self._stats["events_by_type"][event_type] = \
                self._stats["events_by_type"].get(event_type, 0) + 1

            subscribers = list(self._subscribers)

        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        # Notify all subscribers
        for queue, loop in subscribers:
            if loop is current_loop:
                self._deliver(queue, event)
                continue
            try:
                loop.call_soon_threadsafe(self._deliver, queue, event)
            except RuntimeError:
                # Subscriber's loop is closed
                self._drop_subscriber(queue)

    def _deliver(self, queue: asyncio.Queue, event: RideEvent) -> None:
        """Put an event on a subscriber queue; runs on the subscriber's loop."""
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("[EVENTS] Subscriber queue full, disconnecting it")
            self._drop_subscriber(queue)

    def _drop_subscriber(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = [
                (q, loop) for q, loop in self._subscribers if q is not queue
            ]

    async def subscribe(
        self,
        include_history: bool = True,
        history_count: int = 10
    ) -> AsyncIterator[RideEvent]:
        """Subscribe to real-time events via async generator.

        Args:
            include_history: Whether to yield recent events first.
            history_count: Number of recent events to include from history.

        Yields:
            RideEvent objects as they arrive.
        """
        queue: asyncio.Queue[RideEvent] = asyncio.Queue(maxsize=100)
        loop = asyncio.get_running_loop()

        with self._lock:
            self._subscribers.append((queue, loop))
            self._stats["total_subscribers"] += 1

            if include_history and history_count > 0:
                recent = list(self._history)[-history_count:]
                for event in recent:
                    queue.put_nowait(event)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            self._drop_subscriber(queue)

    def get_history(
        self, count: int = 50, event_type: Optional[EventType] = None
    ) -> list[RideEvent]:
        """Get recent events from history.

        Args:
            count: Maximum number of events to return.
            event_type: Only return events of this type.

        Returns:
            List of recent events, newest first.
        """
        with self._lock:
            events = list(self._history)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events[-count:][::-1]

    def get_stats(self) -> dict:
        """Get queue statistics."""
        with self._lock:
            return {
                **self._stats,
                "current_subscribers": len(self._subscribers),
                "history_size": len(self._history),
            }

    def publish_engine_event(self, event_type: str, payload: dict) -> None:
        """Engine listener: forward engine events to subscribers."""
        self.publish(RideEvent(event_type=EventType(event_type), payload=payload))


class QueueAudioSink:
    """AudioCueSink that asks the connected screen to play the alert tone."""

    def __init__(self, event_queue: RideEventQueue):
        self.event_queue = event_queue

    def play_alert_tone(self) -> None:
        self.event_queue.publish(RideEvent(
            event_type=EventType.AUDIO_CUE,
            payload={"cue": "alert_tone", "frequency_hz": 800, "duration_s": 0.5},
        ))


class QueueSpeechSink:
    """SpeechOutputSink that asks the connected screen to speak text."""

    def __init__(self, event_queue: RideEventQueue, rate: float = 0.9, lang: str = "en-US"):
        self.event_queue = event_queue
        self.rate = rate
        self.lang = lang

    def speak(self, text: str) -> None:
        self.event_queue.publish(RideEvent(
            event_type=EventType.SPEECH,
            payload={"text": text, "rate": self.rate, "lang": self.lang},
        ))

    def cancel(self) -> None:
        self.event_queue.publish(RideEvent(event_type=EventType.SPEECH_CANCEL))
