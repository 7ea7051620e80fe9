"""Engine configuration loaded from environment variables."""
import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """Tunable constants for the tracking engine.

    Engine entry points receive an instance explicitly; get_settings() is
    only meant for the application edge (API startup, scripts).
    """

    model_config = SettingsConfigDict(env_prefix="TRACKER_")

    # Search debounce quiescence window
    debounce_seconds: float = Field(default=0.3, ge=0)

    # Trend classification
    trend_threshold_points: float = Field(default=10.0, ge=0, le=100)
    trend_min_entries: int = Field(default=4, ge=2)
    trend_window_days: int = Field(default=30, ge=1)

    # Recent searches list
    recent_search_cap: int = Field(default=5, ge=1)

    # Persistence retry policy
    persist_max_attempts: int = Field(default=3, ge=1)
    persist_backoff_seconds: float = Field(default=0.05, ge=0)

    # 0 = Monday ... 6 = Sunday
    first_weekday: int = Field(default=0, ge=0, le=6)

    data_path: str = os.getenv(
        "DATA_PATH", os.path.join(os.path.expanduser("~"), ".devotion_tracker")
    )

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_path, "entries.db")


@lru_cache
def get_settings() -> TrackerSettings:
    return TrackerSettings()
