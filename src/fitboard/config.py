from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    strava_access_token: str = ""
    strava_api_base: str = "https://www.strava.com/api/v3"
    database_url: str = "sqlite:///./fitboard.db"

    # Sync tuning
    sync_page_size: int = 30  # Strava's default per_page
    sync_default_max_count: int = 200
    sync_freshness_minutes: int = 5
    sync_request_timeout_seconds: float = 15.0

    # Scheduled sync (runs inside the API process so it shares the single-flight guard)
    sync_schedule_enabled: bool = False
    sync_hour: int = 3

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
