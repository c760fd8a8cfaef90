#!/usr/bin/env python3
"""
Heart-Rate Simulator for Ride Fuel.

Publishes a simulated ride's heart-rate stream to the Solace broker so the
ride API's heart-rate listener has something to consume.
Uses the Solace PubSub+ Python SDK for direct messaging.

Usage:
    python scripts/heart_rate_simulator.py --ride-type tempo --duration 60
    python scripts/heart_rate_simulator.py --ride-type hard --profile intervals
    python scripts/heart_rate_simulator.py --once --value 142
    python scripts/heart_rate_simulator.py --once --value 142 --ble
"""

import os
import sys
import json
import time
import uuid
import random
import argparse
from datetime import datetime, timezone
from dotenv import load_dotenv

from solace.messaging.messaging_service import MessagingService
from solace.messaging.resources.topic import Topic
from solace.messaging.publisher.direct_message_publisher import PublishFailureListener
from solace.messaging.config.transport_security_strategy import TLS


# Load environment variables
load_dotenv()

# Wearable device sources
HR_DEVICES = ["Coros Dura", "Garmin HRM-Pro", "Polar H10", "Wahoo TICKR"]

RESTING_HR = 60
MAX_HR = 190

# Target share of max HR for each ride type
RIDE_TYPE_HR_PERCENT = {
    "recovery": 60,
    "moderate": 70,
    "tempo": 80,
    "hard": 85,
    "race": 90,
}

WARMUP_SECONDS = 300
INTERVAL_ON_SECONDS = 240
INTERVAL_OFF_SECONDS = 180


class EventPublishFailureListener(PublishFailureListener):
    """Handler for publish failures."""

    def on_failed_publish(self, failed_publish_event):
        print(f"[ERROR] Failed to publish: {failed_publish_event}")


def create_messaging_service():
    """Create and connect to Solace broker messaging service."""
    broker_url = os.getenv("SOLACE_BROKER_URL", "ws://localhost:8008")
    vpn_name = os.getenv("SOLACE_BROKER_VPN", "default")
    username = os.getenv("SOLACE_BROKER_USERNAME", "default")
    password = os.getenv("SOLACE_BROKER_PASSWORD", "default")

    print(f"[INFO] Connecting to Solace broker: {broker_url}")

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
        print("[INFO] TLS enabled (development mode)")

    messaging_service = builder.build()
    messaging_service.connect()
    print("[INFO] Connected to Solace broker successfully!")

    return messaging_service


def target_heart_rate(ride_type: str) -> int:
    """Steady-state heart rate for a ride type."""
    return round(MAX_HR * RIDE_TYPE_HR_PERCENT[ride_type] / 100)


def heart_rate_at(second: int, ride_type: str, profile: str = "steady", jitter: int = 3) -> int:
    """
    Simulated heart rate at a point in the ride.

    Ramps linearly from resting to the target over the warm-up, then holds
    the target (steady) or alternates above/below it (intervals), with a
    little random noise.
    """
    target = target_heart_rate(ride_type)

    if second < WARMUP_SECONDS:
        value = RESTING_HR + (target - RESTING_HR) * second / WARMUP_SECONDS
    elif profile == "intervals":
        cycle = (second - WARMUP_SECONDS) % (INTERVAL_ON_SECONDS + INTERVAL_OFF_SECONDS)
        value = target + 10 if cycle < INTERVAL_ON_SECONDS else target - 15
    else:
        value = target

    if jitter:
        value += random.randint(-jitter, jitter)

    return max(int(round(value)), RESTING_HR - 10)


def encode_heart_rate_measurement(bpm: int) -> str:
    """Encode bpm as a BLE Heart Rate Measurement characteristic (hex)."""
    if bpm > 255:
        return bytes([0x01]).hex() + bpm.to_bytes(2, byteorder="little").hex()
    return bytes([0x00, bpm]).hex()


def create_heart_rate_event(bpm: int, source_device: str = None, ble: bool = False) -> dict:
    """Create a heart-rate event payload."""
    if source_device is None:
        source_device = random.choice(HR_DEVICES)

    event = {
        "event_id": f"HR-{uuid.uuid4().hex[:8].upper()}",
        "event_type": "wearable_data",
        "data_type": "heart_rate",
        "unit": "bpm",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "source_device": source_device,
        "source": "simulator",
    }

    if ble:
        event["measurement"] = encode_heart_rate_measurement(bpm)
    else:
        event["value"] = bpm

    return event


def publish_event(publisher, event: dict, topic_prefix: str = "ride/events") -> str:
    """Publish an event to the heart-rate topic."""
    topic_string = f"{topic_prefix}/heart_rate/update"
    publisher.publish(destination=Topic.of(topic_string), message=json.dumps(event))
    return topic_string


def run_ride(publisher, ride_type: str, profile: str, duration_minutes: int,
             interval: float, topic_prefix: str, ble: bool = False):
    """Publish one sample per interval for the length of the ride."""
    device = random.choice(HR_DEVICES)
    total_seconds = duration_minutes * 60
    step = max(int(interval), 1)

    print(f"[INFO] Simulating {duration_minutes} min {ride_type} ride ({profile}) from {device}")

    for second in range(0, total_seconds, step):
        bpm = heart_rate_at(second, ride_type, profile)
        publish_event(publisher, create_heart_rate_event(bpm, device, ble), topic_prefix)
        print(f"[PUBLISH] t={second:>5}s  {bpm} bpm")
        time.sleep(interval)


def main():
    parser = argparse.ArgumentParser(
        description="Heart-Rate Simulator for Ride Fuel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--ride-type",
        choices=list(RIDE_TYPE_HR_PERCENT.keys()),
        default="moderate",
        help="Ride intensity to simulate (default: moderate)",
    )
    parser.add_argument(
        "--profile",
        choices=["steady", "intervals"],
        default="steady",
        help="Heart-rate shape after warm-up (default: steady)",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=60,
        help="Ride duration in minutes (default: 60)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Seconds between samples (default: 1)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Send a single sample and exit",
    )
    parser.add_argument(
        "--value",
        type=int,
        help="Heart rate for a single sample (use with --once)",
    )
    parser.add_argument(
        "--ble",
        action="store_true",
        help="Send raw BLE Heart Rate Measurement bytes instead of a decoded value",
    )
    parser.add_argument(
        "--topic-prefix",
        default=os.getenv("RIDE_TOPIC_PREFIX", "ride/events"),
        help="Topic prefix for events (default: ride/events)",
    )

    args = parser.parse_args()

    if args.once and args.value is None:
        parser.error("--once requires --value")

    print("=" * 60)
    print("Ride Fuel Heart-Rate Simulator")
    print("=" * 60)

    messaging_service = None
    publisher = None

    try:
        messaging_service = create_messaging_service()

        publisher = (
            messaging_service.create_direct_message_publisher_builder()
            .on_back_pressure_reject(buffer_capacity=100)
            .build()
        )
        publisher.set_publish_failure_listener(EventPublishFailureListener())
        publisher.start()

        print("[INFO] Publisher started")

        if args.once:
            topic = publish_event(
                publisher, create_heart_rate_event(args.value, ble=args.ble), args.topic_prefix
            )
            print(f"[PUBLISH] {topic}: {args.value} bpm")
        else:
            run_ride(
                publisher, args.ride_type, args.profile, args.duration,
                args.interval, args.topic_prefix, args.ble,
            )

        print("\n[INFO] Simulation complete")

    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        print(f"\n[ERROR] {e}")
        sys.exit(1)
    finally:
        if publisher:
            publisher.terminate()
            print("[INFO] Publisher terminated")
        if messaging_service:
            messaging_service.disconnect()
            print("[INFO] Disconnected from Solace broker")


if __name__ == "__main__":
    main()
