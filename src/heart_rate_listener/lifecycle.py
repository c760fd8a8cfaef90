"""
Heart-Rate Listener Lifecycle Module.

Manages the Solace subscription to wearable heart-rate events and feeds each
sample into the ride session engine.

If the broker cannot be reached the listener reports the heart-rate
capability as unavailable and the engine keeps estimating from workload
alone.
"""

import os
import json
import logging
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from solace.messaging.messaging_service import MessagingService
from solace.messaging.resources.topic_subscription import TopicSubscription
from solace.messaging.receiver.message_receiver import MessageHandler, InboundMessage
from solace.messaging.config.transport_security_strategy import TLS

from ride_session.heart_rate import parse_heart_rate_measurement

logger = logging.getLogger(__name__)

DEFAULT_TOPIC_PREFIX = "ride/events"


class HeartRateListenerState:
    """Holds the state of the heart-rate listener."""

    def __init__(self):
        self.messaging_service: Optional[MessagingService] = None
        self.receiver = None
        self.running = False
        self.engine = None
        self.topic_pattern: Optional[str] = None
        self.event_count = 0
        self.rejected_count = 0
        self.last_event_time: Optional[datetime] = None
        self.last_bpm: int = 0
        self.error: Optional[str] = None


# Global state for the heart-rate listener
_state = HeartRateListenerState()


def extract_heart_rate(event: Dict[str, Any]) -> Optional[int]:
    """
    Pull a bpm value out of a wearable event.

    Accepts either a decoded value (``{"data_type": "heart_rate", "value":
    142}``) or the raw BLE characteristic as hex (``{"measurement":
    "0e8e"}``).

    Returns:
        Heart rate in bpm, or None if the event carries no heart rate
    """
    measurement = event.get("measurement")
    if measurement:
        try:
            return parse_heart_rate_measurement(measurement)
        except ValueError:
            logger.debug(f"[HR] Invalid measurement payload: {measurement!r}")
            return None

    if event.get("data_type", "heart_rate") != "heart_rate":
        return None

    try:
        value = int(float(event["value"]))
    except (KeyError, ValueError, TypeError):
        return None
    return max(value, 0)


class HeartRateHandler(MessageHandler):
    """Handles incoming heart-rate messages."""

    def __init__(self, engine):
        self.engine = engine

    def on_message(self, message: InboundMessage):
        """Process an incoming heart-rate event."""
        global _state

        try:
            payload = message.get_payload_as_string()
            event = json.loads(payload)
        except (json.JSONDecodeError, TypeError) as e:
            _state.rejected_count += 1
            logger.error(f"[HR] Failed to parse heart-rate event: {e}")
            return

        process_heart_rate_event(event, self.engine)


def process_heart_rate_event(event: Dict[str, Any], engine) -> Optional[int]:
    """
    Feed one heart-rate event into the engine.

    Returns:
        The bpm ingested, or None if the event was ignored
    """
    global _state

    bpm = extract_heart_rate(event)
    if bpm is None:
        _state.rejected_count += 1
        logger.debug(f"[HR] Ignoring event without heart rate: {event}")
        return None

    _state.event_count += 1
    _state.last_event_time = datetime.now(timezone.utc)
    _state.last_bpm = bpm

    try:
        engine.ingest_heart_rate(bpm)
    except Exception as e:
        logger.error(f"[HR] Failed to ingest sample {bpm}: {e}")
        return None

    logger.debug(f"[HR] {bpm} bpm from {event.get('source_device', 'wearable')}")
    return bpm


def initialize_heart_rate_listener(engine, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Initialize the heart-rate listener.

    Connects to the Solace broker and subscribes to heart-rate updates.
    Failure is not fatal: the heart-rate capability is reported unavailable
    on the engine and a status dict describing the error is returned.

    Args:
        engine: The RideSessionEngine receiving samples
        config: Optional overrides (topic_prefix, topic_pattern)

    Returns:
        Dict with initialization status and metadata
    """
    global _state

    config = config or {}
    logger.info("[INIT] Initializing Heart-Rate Listener...")

    _state.engine = engine
    _state.error = None

    broker_url = os.getenv("SOLACE_BROKER_URL", "ws://localhost:8008")
    vpn_name = os.getenv("SOLACE_BROKER_VPN", "default")
    username = os.getenv("SOLACE_BROKER_USERNAME", "default")
    password = os.getenv("SOLACE_BROKER_PASSWORD", "default")

    topic_prefix = config.get("topic_prefix", os.getenv("RIDE_TOPIC_PREFIX", DEFAULT_TOPIC_PREFIX))
    topic_pattern = config.get("topic_pattern", f"{topic_prefix}/heart_rate/update")
    _state.topic_pattern = topic_pattern

    logger.info(f"[INIT] Connecting to: {broker_url}")
    logger.info(f"[INIT] Subscribing to: {topic_pattern}")

    try:
        broker_props = {
            "solace.messaging.transport.host": broker_url,
            "solace.messaging.service.vpn-name": vpn_name,
            "solace.messaging.authentication.scheme.basic.username": username,
            "solace.messaging.authentication.scheme.basic.password": password,
        }

        builder = MessagingService.builder().from_properties(broker_props)

        # For Solace Cloud (wss://), configure TLS
        if broker_url.startswith("wss://"):
            tls_strategy = TLS.create().without_certificate_validation()
            builder = builder.with_transport_security_strategy(tls_strategy)
            logger.info("[INIT] TLS enabled (development mode)")

        _state.messaging_service = builder.build()
        _state.messaging_service.connect()
        logger.info("[INIT] Connected to Solace broker")

        subscription = TopicSubscription.of(topic_pattern)
        _state.receiver = (
            _state.messaging_service.create_direct_message_receiver_builder()
            .with_subscriptions([subscription])
            .build()
        )

        # Start receiver first, then register handler
        _state.receiver.start()
        _state.receiver.receive_async(HeartRateHandler(engine))
        _state.running = True

        logger.info(f"[INIT] Heart-rate listener started, subscribed to: {topic_pattern}")

        return {
            "status": "initialized",
            "broker_url": broker_url,
            "topic_pattern": topic_pattern,
            "message": "Heart-rate listener ready to receive samples",
        }

    except Exception as e:
        _state.running = False
        _state.error = str(e)
        logger.error(f"[INIT ERROR] Failed to initialize heart-rate listener: {e}")
        engine.report_capability("heart_rate", False, f"heart-rate transport unavailable: {e}")
        return {
            "status": "unavailable",
            "error": str(e),
            "message": "Heart-rate listener unavailable; using workload-only estimate",
        }


def cleanup_heart_rate_listener() -> None:
    """Terminate the receiver and disconnect from the broker."""
    global _state

    logger.info("[CLEANUP] Shutting down Heart-Rate Listener...")

    _state.running = False

    try:
        if _state.receiver:
            _state.receiver.terminate()
            logger.info("[CLEANUP] Receiver terminated")

        if _state.messaging_service:
            _state.messaging_service.disconnect()
            logger.info("[CLEANUP] Disconnected from Solace broker")

    except Exception as e:
        logger.error(f"[CLEANUP ERROR] {e}")

    finally:
        _state.receiver = None
        _state.messaging_service = None
        _state.engine = None

    logger.info(f"[CLEANUP] Complete. Total samples processed: {_state.event_count}")


def get_heart_rate_listener_status() -> Dict[str, Any]:
    """Get the current status of the heart-rate listener."""
    global _state

    return {
        "running": _state.running,
        "topic_pattern": _state.topic_pattern,
        "event_count": _state.event_count,
        "rejected_count": _state.rejected_count,
        "last_bpm": _state.last_bpm,
        "last_event_time": (
            _state.last_event_time.isoformat() if _state.last_event_time else None
        ),
        "error": _state.error,
    }


def reset_heart_rate_listener_state() -> None:
    """Forget counters and connections (used between tests)."""
    global _state
    _state = HeartRateListenerState()
