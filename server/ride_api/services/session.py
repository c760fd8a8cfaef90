"""Construction and lookup of the per-application ride services."""
from dataclasses import dataclass

from fastapi import Request

from ride_session import RideSessionEngine, UtteranceQueue
from ride_session.config import EngineSettings

from .event_queue import QueueAudioSink, QueueSpeechSink, RideEventQueue


@dataclass
class RideServices:
    """Everything a running API instance shares between requests."""

    engine: RideSessionEngine
    event_queue: RideEventQueue
    utterances: UtteranceQueue


def build_ride_services(engine_settings: EngineSettings | None = None) -> RideServices:
    """Create the engine wired to the SSE event queue and transcript queue."""
    event_queue = RideEventQueue()
    utterances = UtteranceQueue()
    engine = RideSessionEngine(
        audio_sink=QueueAudioSink(event_queue),
        speech_sink=QueueSpeechSink(event_queue),
        speech_source=utterances,
        settings=engine_settings,
    )
    engine.add_listener(event_queue.publish_engine_event)
    return RideServices(engine=engine, event_queue=event_queue, utterances=utterances)


def get_services(request: Request) -> RideServices:
    return request.app.state.ride


def get_engine(request: Request) -> RideSessionEngine:
    return request.app.state.ride.engine


def get_event_queue(request: Request) -> RideEventQueue:
    return request.app.state.ride.event_queue


def get_utterances(request: Request) -> UtteranceQueue:
    return request.app.state.ride.utterances
