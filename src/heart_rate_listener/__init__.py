"""
Heart-Rate Listener Module.

Streams heart-rate samples from wearable devices via the Solace event mesh
into the ride session engine.
"""

from .lifecycle import (
    initialize_heart_rate_listener,
    cleanup_heart_rate_listener,
    get_heart_rate_listener_status,
    process_heart_rate_event,
    extract_heart_rate,
)

__all__ = [
    "initialize_heart_rate_listener",
    "cleanup_heart_rate_listener",
    "get_heart_rate_listener_status",
    "process_heart_rate_event",
    "extract_heart_rate",
]
