"""Engine configuration loaded from environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Timings and physiology defaults for the ride session engine."""

    model_config = SettingsConfigDict(env_prefix="RIDE_")

    # Periodic tasks
    tick_interval_seconds: float = 1.0
    voice_start_delay_seconds: float = 1.0
    voice_restart_backoff_seconds: float = 1.0

    # Heart-rate reserve bounds used by the energy model
    resting_heart_rate: int = 60
    max_heart_rate: int = 190
    heart_rate_window: int = 20


@lru_cache
def get_engine_settings() -> EngineSettings:
    return EngineSettings()
