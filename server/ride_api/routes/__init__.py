"""API route modules."""
from .session import router as session_router
from .sensors import router as sensors_router
from .events import router as events_router

__all__ = [
    "session_router",
    "sensors_router",
    "events_router",
]
