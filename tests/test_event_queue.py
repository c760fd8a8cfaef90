"""
Unit tests for the ride event queue and the queue-backed sinks.

Usage:
    pytest tests/test_event_queue.py -v
"""
import asyncio
import threading
import pytest

from conftest import wait_for
from server.ride_api.services.event_queue import (
    EventType,
    QueueAudioSink,
    QueueSpeechSink,
    RideEvent,
    RideEventQueue,
)
from server.ride_api.services.session import build_ride_services


class TestRideEventQueue:
    """History, filtering and subscriptions."""

    def test_publish_records_history_and_stats(self):
        queue = RideEventQueue()
        queue.publish(RideEvent(event_type=EventType.SESSION_STATUS, payload={"status": "running"}))
        queue.publish(RideEvent(event_type=EventType.FUELING_ALERT, payload={"alert": {"carbs": 30}}))

        history = queue.get_history()
        assert [e.event_type for e in history] == [EventType.FUELING_ALERT, EventType.SESSION_STATUS]

        stats = queue.get_stats()
        assert stats["total_published"] == 2
        assert stats["events_by_type"] == {"session_status": 1, "fueling_alert": 1}
        assert stats["history_size"] == 2

    def test_history_filter_and_count(self):
        queue = RideEventQueue()
        for status in ("running", "paused", "running"):
            queue.publish(RideEvent(event_type=EventType.SESSION_STATUS, payload={"status": status}))
        queue.publish(RideEvent(event_type=EventType.SPEECH, payload={"text": "hi"}))

        statuses = queue.get_history(count=2, event_type=EventType.SESSION_STATUS)
        assert [e.payload["status"] for e in statuses] == ["running", "paused"]

    def test_history_is_bounded(self):
        queue = RideEventQueue(max_history=3)
        for i in range(5):
            queue.publish(RideEvent(event_type=EventType.SPEECH, payload={"n": i}))
        assert [e.payload["n"] for e in queue.get_history()] == [4, 3, 2]

    def test_to_dict(self):
        event = RideEvent(event_type=EventType.AUDIO_CUE, payload={"cue": "alert_tone"})
        data = event.to_dict()
        assert data["event_type"] == "audio_cue"
        assert data["payload"] == {"cue": "alert_tone"}
        assert data["id"] == event.id

    def test_engine_event_adapter(self):
        queue = RideEventQueue()
        queue.publish_engine_event("fueling_confirmed", {"source": "voice"})
        event = queue.get_history()[0]
        assert event.event_type == EventType.FUELING_CONFIRMED
        assert event.payload == {"source": "voice"}

    @pytest.mark.asyncio
    async def test_subscribe_gets_history_then_live_events(self):
        queue = RideEventQueue()
        queue.publish(RideEvent(event_type=EventType.SESSION_STATUS, payload={"status": "running"}))

        stream = queue.subscribe(include_history=True, history_count=5)
        first = await asyncio.wait_for(stream.__anext__(), timeout=1.0)
        assert first.payload == {"status": "running"}

        queue.publish(RideEvent(event_type=EventType.FUELING_ALERT))
        second = await asyncio.wait_for(stream.__anext__(), timeout=1.0)
        assert second.event_type == EventType.FUELING_ALERT
        assert queue.get_stats()["current_subscribers"] == 1

        await stream.aclose()
        assert queue.get_stats()["current_subscribers"] == 0

    @pytest.mark.asyncio
    async def test_publish_from_another_thread_wakes_subscriber(self):
        queue = RideEventQueue()
        stream = queue.subscribe(include_history=False)
        pending = asyncio.ensure_future(stream.__anext__())
        assert await wait_for(lambda: queue.get_stats()["current_subscribers"] == 1)
        asyncio.get_running_loop().set_debug(True)

        errors = []

        def publish_from_worker():
            try:
                queue.publish(RideEvent(event_type=EventType.CAPABILITY, payload={"name": "heart_rate"}))
            except Exception as e:
                errors.append(e)

        worker = threading.Thread(target=publish_from_worker)
        worker.start()
        worker.join()

        event = await asyncio.wait_for(pending, timeout=1.0)
        assert errors == []
        assert event.payload == {"name": "heart_rate"}
        await stream.aclose()

    def test_publish_without_running_loop_skips_closed_subscriber_loop(self):
        queue = RideEventQueue()
        loop = asyncio.new_event_loop()
        loop.close()
        queue._subscribers.append((asyncio.Queue(), loop))

        queue.publish(RideEvent(event_type=EventType.SPEECH))

        assert queue.get_stats()["current_subscribers"] == 0
        assert len(queue.get_history()) == 1


class TestQueueSinks:
    """Audio and speech requests for the rider's screen."""

    def test_audio_sink(self):
        queue = RideEventQueue()
        QueueAudioSink(queue).play_alert_tone()

        event = queue.get_history()[0]
        assert event.event_type == EventType.AUDIO_CUE
        assert event.payload["frequency_hz"] == 800
        assert event.payload["duration_s"] == 0.5

    def test_speech_sink(self):
        queue = RideEventQueue()
        sink = QueueSpeechSink(queue)
        sink.cancel()
        sink.speak("Time to fuel. Take 30 grams of carbs.")

        cancel, speech = queue.get_history()[::-1]
        assert cancel.event_type == EventType.SPEECH_CANCEL
        assert speech.payload == {
            "text": "Time to fuel. Take 30 grams of carbs.",
            "rate": 0.9,
            "lang": "en-US",
        }


class TestRideServices:
    """Engine wiring used by the API."""

    @pytest.mark.asyncio
    async def test_engine_events_reach_queue(self, manual_settings):
        services = build_ride_services(manual_settings)
        services.engine.start_session(services.engine.state.config)
        services.engine.test_voice_alert()

        types = [e.event_type for e in services.event_queue.get_history()][::-1]
        assert EventType.SESSION_STATUS in types
        assert types[-2:] == [EventType.SPEECH_CANCEL, EventType.SPEECH]

        capabilities = services.engine.capabilities
        assert capabilities["audio_cue"] and capabilities["voice_output"] and capabilities["voice_input"]
        services.engine.shutdown()
