"""Construct the cache and fetchers once and expose the four core entry points."""

from __future__ import annotations

import datetime as dt
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from lunch_dad import config
from lunch_dad.cache import TTLCache
from lunch_dad.data_sources import HttpSession, build_session
from lunch_dad.menu_classifier import rank_main_items
from lunch_dad.menu_service import MenuService
from lunch_dad.models import ForecastPeriod, MenuItem, MenuRecord, WeatherRecord
from lunch_dad.retry_policy import RetryPolicy
from lunch_dad.school_calendar import next_school_day
from lunch_dad.weather_service import WeatherService
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="services")


@dataclass
class LunchServices:
    """One process's cache, menu service and weather service."""
    settings: config.Settings
    cache: TTLCache
    menus: MenuService
    weather: WeatherService

    def fetch_menu(self, day: object) -> MenuRecord:
        """Menu for a date; raises on provider outage."""
        return self.menus.get_menu_for_date(day)

    def fetch_today_weather(self) -> WeatherRecord:
        """Today's weather; returns the fallback record instead of raising."""
        return self.weather.get_today_weather()

    def fetch_morning_forecast(self) -> List[ForecastPeriod]:
        """Morning hourly periods; empty instead of raising."""
        return self.weather.get_morning_forecast()

    def next_school_day(self, start: object, count: int = 1) -> dt.date:
        """Advance `count` school days using the configured holidays."""
        return next_school_day(start, count, self.settings.holidays)

    def rank_main_items(self, raw_items: Any, max_items: Optional[int] = None) -> List[MenuItem]:
        """Rank main items, defaulting the cap to max_menu_items."""
        limit = self.settings.max_menu_items if max_items is None else max_items
        return rank_main_items(raw_items, limit)


def build_services(
    settings: config.Settings | None = None,
    *,
    cache: Optional[TTLCache] = None,
    session: Optional[HttpSession] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> LunchServices:
    """Wire the services together; omitted collaborators get their production defaults."""
    settings = settings or config.settings
    if cache is None:
        cache = TTLCache()
    if session is None:
        session = build_session(settings.weather_user_agent)
    policy = RetryPolicy.from_settings(settings, sleep=sleep)

    logger.info(
        "Building lunch services",
        extra={"school_id": settings.school_id, "max_attempts": policy.max_attempts},
    )
    return LunchServices(
        settings=settings,
        cache=cache,
        menus=MenuService(settings, cache, session, retry_policy=policy),
        weather=WeatherService(settings, cache, session, retry_policy=policy),
    )
