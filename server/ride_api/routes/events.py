"""Real-time ride events API routes (SSE)."""
import json
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from typing import Optional

from ..services.event_queue import EventType, RideEventQueue
from ..services.session import get_event_queue

router = APIRouter(prefix="/api/ride", tags=["Events"])


@router.get("/events/stream")
async def stream_ride_events(
    include_history: bool = Query(True, description="Include recent events on connect"),
    history_count: int = Query(10, ge=0, le=50, description="Number of historical events"),
    event_queue: RideEventQueue = Depends(get_event_queue),
):
    """
    Stream real-time ride events via Server-Sent Events (SSE).

    Events include fueling alerts and confirmations, session status changes,
    and audio/speech requests the rider's screen should play.

    The stream never closes - clients should handle reconnection.

    Usage with curl:
        curl -N http://localhost:8083/api/ride/events/stream
    """
    async def event_generator():
        async for event in event_queue.subscribe(
            include_history=include_history,
            history_count=history_count
        ):
            data = json.dumps(event.to_dict())
            yield f"event: {event.event_type.value}\ndata: {data}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/events/history")
async def get_event_history(
    count: int = Query(50, ge=1, le=100, description="Number of events to return"),
    event_type: Optional[EventType] = Query(None, description="Filter by event type"),
    event_queue: RideEventQueue = Depends(get_event_queue),
):
    """Get recent ride events, newest first."""
    events = event_queue.get_history(count=count, event_type=event_type)
    return {
        "events": [e.to_dict() for e in events],
        "count": len(events),
        "stats": event_queue.get_stats(),
    }
