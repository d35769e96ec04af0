# backend/cleanbook/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str
    redis_url: str = "redis://localhost:6379/0"

    # Shared secret issued by the external auth provider for admin calls.
    # Admin endpoints answer 403 while it is unset.
    admin_api_token: Optional[str] = None

    default_time_zone: str = "America/New_York"
    slot_step_minutes: int = 30
    booking_horizon_days: int = 90
    availability_cache_ttl: int = 60

    booking_rate_limit: int = 5
    booking_rate_window: int = 3600

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite paths are resolved against the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
