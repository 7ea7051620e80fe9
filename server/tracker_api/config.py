"""API configuration loaded from environment variables."""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """HTTP server settings. Engine tunables live in TrackerSettings."""

    model_config = SettingsConfigDict(env_prefix="TRACKER_API_")

    api_host: str = "127.0.0.1"
    api_port: int = 8083

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Keep the session in memory only (no SQLite file)
    in_memory: bool = False


@lru_cache
def get_api_settings() -> ApiSettings:
    return ApiSettings()
