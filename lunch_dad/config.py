"""Application configuration pulled from environment variables via pydantic."""
import datetime as dt
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

# 2025-26 winter break
DEFAULT_HOLIDAYS = [
    "2025-12-23", "2025-12-24", "2025-12-25", "2025-12-26", "2025-12-27",
    "2025-12-30", "2025-12-31", "2026-01-01", "2026-01-02",
]


class Settings(BaseSettings):
    """Environment-driven configuration for the lunch-dad service."""
    model_config = SettingsConfigDict(env_prefix="LUNCH_", extra="ignore")

    # menu provider
    menu_base_url: str = "https://d45.nutrislice.com/menu"
    school_id: str = "westmore-elementary-school-2"
    meal_type: str = "lunch"
    menu_timeout_seconds: float = 5.0

    # weather.gov
    weather_base_url: str = "https://api.weather.gov"
    weather_lat: str = "39.0997"
    weather_lon: str = "-77.0941"
    weather_timeout_seconds: float = 3.0
    weather_user_agent: str = "LunchDad/1.0"

    # cache TTLs, in seconds
    cache_ttl_menu: int = 86400
    cache_ttl_weather: int = 600
    cache_ttl_grid_info: int = 2592000

    school_timezone: str = "America/New_York"
    holidays: Annotated[List[str], NoDecode] = list(DEFAULT_HOLIDAYS)

    max_menu_items: int = 5
    calendar_days: int = 5

    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.1

    log_level: str = "INFO"

    @field_validator("menu_base_url", "weather_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("holidays", mode="before")
    @classmethod
    def split_holidays(cls, v):
        """Accept a comma-separated string (as set in the environment) or a list."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("holidays", mode="after")
    @classmethod
    def check_holiday_dates(cls, v: List[str]) -> List[str]:
        """Reject holiday entries that are not ISO calendar dates."""
        for day in v:
            try:
                valid = dt.date.fromisoformat(day).isoformat() == day
            except ValueError:
                valid = False
            if not valid:
                raise ValueError(f"holiday '{day}' is not a YYYY-MM-DD date")
        return v


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
