"""Today's weather from weather.gov, cached and retried, with a fallback record.

Weather is optional context: get_today_weather and get_morning_forecast never
raise. Any failure, including exhausted retries, yields WeatherRecord.fallback()
(or no morning periods) and callers decide from `is_fallback` whether to
mention weather at all. An hourly forecast without periods is rejected before
it reaches the cache.

Cached data:
- grid coordinates per lat/lon (long TTL, they practically never change)
- hourly forecast per grid cell (short TTL)
The daily forecast is fetched on every call.
"""
from __future__ import annotations

import datetime as dt
from typing import Callable, List, Optional

from lunch_dad.cache import TTLCache
from lunch_dad.config import Settings
from lunch_dad.data_sources import HttpSession, fetch_daily_forecast, fetch_grid_point, fetch_hourly_forecast
from lunch_dad.errors import DataContractError, InvalidInputError
from lunch_dad.models import Forecast, ForecastPeriod, GridCoordinate, WeatherRecord
from lunch_dad.retry_policy import RetryPolicy, call_with_retry
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_service")

MORNING_START_HOUR = 7
MORNING_END_HOUR = 8  # inclusive; periods starting 07:00-08:59


def grid_cache_key(latitude: str, longitude: str) -> str:
    """Cache key for the grid cell of a lat/lon pair."""
    return f"weather:grid:{latitude}:{longitude}"


def hourly_cache_key(grid: GridCoordinate) -> str:
    """Cache key for the hourly forecast of a grid cell."""
    return f"weather:hourly:{grid.grid_id}:{grid.grid_x}:{grid.grid_y}"


def filter_morning_hours(forecast: Optional[Forecast]) -> List[ForecastPeriod]:
    """Return daytime periods that start between 7 and 9 AM local time."""
    if forecast is None:
        return []
    return [
        period
        for period in forecast.periods
        if period.is_daytime and MORNING_START_HOUR <= period.start_time.hour <= MORNING_END_HOUR
    ]


def _todays_period(daily: Forecast) -> ForecastPeriod:
    """Pick today's daytime period ("Today", not "Tonight") from a daily forecast."""
    for period in daily.periods:
        if period.name == "Today" or period.is_daytime:
            return period
    return daily.periods[0]


def _strip_quotes(text: str) -> str:
    """Remove quote characters so the text is safe to embed in speech markup."""
    return text.replace('"', "").replace("'", "")


class WeatherService:
    """weather.gov access for one fixed location."""

    def __init__(
        self,
        settings: Settings,
        cache: TTLCache,
        session: HttpSession,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        grid_fetcher: Callable[..., GridCoordinate] = fetch_grid_point,
        hourly_fetcher: Callable[..., Forecast] = fetch_hourly_forecast,
        daily_fetcher: Callable[..., Forecast] = fetch_daily_forecast,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.session = session
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self._grid_fetcher = grid_fetcher
        self._hourly_fetcher = hourly_fetcher
        self._daily_fetcher = daily_fetcher

    def get_grid_info(self, latitude: str, longitude: str) -> GridCoordinate:
        """Resolve (and cache) the forecast grid cell for a location."""
        if not str(latitude).strip() or not str(longitude).strip():
            raise InvalidInputError("Invalid coordinates")

        key = grid_cache_key(latitude, longitude)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        grid = call_with_retry(
            self._grid_fetcher,
            self.session,
            latitude,
            longitude,
            base_url=self.settings.weather_base_url,
            timeout=self.settings.weather_timeout_seconds,
            policy=self.retry_policy,
            operation=f"fetch grid info for {latitude},{longitude}",
        )
        self.cache.set(key, grid, self.settings.cache_ttl_grid_info)
        return grid

    def get_hourly_forecast(self, grid: GridCoordinate) -> Forecast:
        """Return the (cached) hourly forecast for a grid cell."""
        key = hourly_cache_key(grid)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        forecast = call_with_retry(
            self._hourly_fetcher,
            self.session,
            grid,
            base_url=self.settings.weather_base_url,
            timeout=self.settings.weather_timeout_seconds,
            policy=self.retry_policy,
            operation=f"fetch hourly forecast for {grid.grid_id}",
        )
        if not forecast.periods:
            raise DataContractError("hourly forecast has no periods")
        self.cache.set(key, forecast, self.settings.cache_ttl_weather)
        return forecast

    def get_daily_forecast(self, grid: GridCoordinate) -> Forecast:
        """Return the daily forecast for a grid cell (not cached)."""
        return call_with_retry(
            self._daily_fetcher,
            self.session,
            grid,
            base_url=self.settings.weather_base_url,
            timeout=self.settings.weather_timeout_seconds,
            policy=self.retry_policy,
            operation=f"fetch daily forecast for {grid.grid_id}",
        )

    def _build_today_weather(self) -> WeatherRecord:
        grid = self.get_grid_info(self.settings.weather_lat, self.settings.weather_lon)
        hourly = self.get_hourly_forecast(grid)
        daily = self.get_daily_forecast(grid)
        if not daily.periods:
            raise DataContractError("daily forecast has no periods")

        current = hourly.periods[0]
        today = _todays_period(daily)
        return WeatherRecord(
            temperature=current.temperature,
            temperature_unit=current.temperature_unit,
            conditions=current.short_forecast,
            is_daytime=current.is_daytime,
            high=today.temperature,
            short_forecast=today.short_forecast,
            detailed_forecast=_strip_quotes(today.detailed_forecast),
            is_fallback=False,
            fetched_at=dt.datetime.now(dt.timezone.utc),
        )

    def get_today_weather(self) -> WeatherRecord:
        """Current conditions plus today's forecast, or the fallback record on any failure."""
        try:
            return self._build_today_weather()
        except Exception as exc:
            logger.warning("Weather unavailable; using fallback", extra={"error": str(exc)})
            return WeatherRecord.fallback()

    def get_morning_forecast(self) -> List[ForecastPeriod]:
        """Hourly periods for the school-run window; empty when weather is unavailable."""
        try:
            grid = self.get_grid_info(self.settings.weather_lat, self.settings.weather_lon)
            return filter_morning_hours(self.get_hourly_forecast(grid))
        except Exception as exc:
            logger.warning("Morning forecast unavailable", extra={"error": str(exc)})
            return []
