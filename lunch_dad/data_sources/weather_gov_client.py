"""Helpers for fetching grid points and forecasts from the weather.gov API."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from lunch_dad.data_sources.base import HttpSession, decode_json, validate_payload
from lunch_dad.models import Forecast, GridCoordinate
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_gov_client")


class _PointsPayload(BaseModel):
    """`/points/{lat},{lon}` body; only the grid cell is used."""
    model_config = ConfigDict(extra="ignore")
    properties: GridCoordinate


class _ForecastPayload(BaseModel):
    """`/gridpoints/.../forecast[/hourly]` body."""
    model_config = ConfigDict(extra="ignore")
    properties: Forecast


def fetch_grid_point(
    session: HttpSession,
    latitude: str,
    longitude: str,
    *,
    base_url: str,
    timeout: float = 3.0,
) -> GridCoordinate:
    """Resolve a lat/lon pair to its forecast grid cell."""
    url = f"{base_url.rstrip('/')}/points/{latitude},{longitude}"
    resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    context = f"grid point {latitude},{longitude}"
    payload = validate_payload(_PointsPayload, decode_json(resp, context=context), context=context)
    logger.debug(
        "Resolved grid point",
        extra={"grid_id": payload.properties.grid_id, "grid_x": payload.properties.grid_x,
               "grid_y": payload.properties.grid_y},
    )
    return payload.properties


def _fetch_forecast(session: HttpSession, url: str, *, timeout: float, context: str) -> Forecast:
    resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    payload = validate_payload(_ForecastPayload, decode_json(resp, context=context), context=context)
    return payload.properties


def fetch_hourly_forecast(
    session: HttpSession,
    grid: GridCoordinate,
    *,
    base_url: str,
    timeout: float = 3.0,
) -> Forecast:
    """Fetch the hourly forecast periods for a grid cell."""
    url = f"{base_url.rstrip('/')}/gridpoints/{grid.grid_id}/{grid.grid_x},{grid.grid_y}/forecast/hourly"
    return _fetch_forecast(session, url, timeout=timeout, context=f"hourly forecast {grid.grid_id}")


def fetch_daily_forecast(
    session: HttpSession,
    grid: GridCoordinate,
    *,
    base_url: str,
    timeout: float = 3.0,
) -> Forecast:
    """Fetch the twelve-hour (day/night) forecast periods for a grid cell."""
    url = f"{base_url.rstrip('/')}/gridpoints/{grid.grid_id}/{grid.grid_x},{grid.grid_y}/forecast"
    return _fetch_forecast(session, url, timeout=timeout, context=f"daily forecast {grid.grid_id}")
