"""
Pytest fixtures for Ride Fuel tests.
"""
import sys
import asyncio
import pytest
import pytest_asyncio
from pathlib import Path
from unittest.mock import MagicMock
from dotenv import load_dotenv

# Ensure src/ and the repo root are on sys.path so tests can import
# ride_session, heart_rate_listener and server.ride_api.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from ride_session import RideSessionEngine, SessionConfig, SessionState, SessionStatus  # noqa: E402
from ride_session.config import EngineSettings  # noqa: E402

# Load environment variables
load_dotenv()


# ============================================================================
# Collaborator doubles
# ============================================================================

class ScriptedSpeechSource:
    """
    SpeechInputSource that replays one script per listen() call.

    Each script is either a list of utterances or an exception to raise.
    Once the scripts run out, listen() blocks until cancelled.
    """

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.listen_calls = 0
        self.clear_calls = 0

    def clear(self):
        self.clear_calls += 1

    async def listen(self):
        self.listen_calls += 1
        if not self.scripts:
            await asyncio.Event().wait()
            return
        script = self.scripts.pop(0)
        if isinstance(script, Exception):
            raise script
        for item in script:
            await asyncio.sleep(0)
            yield item


async def wait_for(predicate, timeout: float = 1.0, interval: float = 0.005) -> bool:
    """Poll ``predicate`` until it is truthy or the timeout passes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return bool(predicate())


# ============================================================================
# Engine fixtures
# ============================================================================

@pytest.fixture
def manual_settings():
    """Settings with a clock that never fires on its own and fast voice timings."""
    return EngineSettings(
        tick_interval_seconds=3600,
        voice_start_delay_seconds=0.01,
        voice_restart_backoff_seconds=0.01,
    )


@pytest.fixture
def audio_sink():
    return MagicMock(spec=["play_alert_tone"])


@pytest.fixture
def speech_sink():
    return MagicMock(spec=["speak", "cancel"])


@pytest.fixture
def moderate_config():
    """75 kg rider, moderate preset, no pre-ride intake."""
    return SessionConfig(weight_kg=75, ride_type="moderate")


@pytest.fixture
def running_state(moderate_config):
    """A SessionState already in the running status."""
    state = SessionState()
    state.begin(moderate_config)
    state.status = SessionStatus.RUNNING
    return state


@pytest_asyncio.fixture
async def engine(manual_settings, audio_sink, speech_sink):
    """Engine with mock sinks and no speech input; ticks are driven by hand."""
    engine = RideSessionEngine(
        audio_sink=audio_sink,
        speech_sink=speech_sink,
        settings=manual_settings,
    )
    yield engine
    engine.shutdown()
