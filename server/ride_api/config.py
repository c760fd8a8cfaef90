"""Application configuration loaded from environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_prefix="RIDE_API_")

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8083

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Heart-rate listener (Solace event mesh)
    heart_rate_listener_enabled: bool = False
    topic_prefix: str = "ride/events"


@lru_cache
def get_settings() -> Settings:
    return Settings()
