"""HTTP clients for the menu provider and weather.gov."""

from .base import HttpSession, build_session
from .nutrislice_client import build_menu_url, fetch_menu
from .weather_gov_client import fetch_daily_forecast, fetch_grid_point, fetch_hourly_forecast

__all__ = [
    "HttpSession",
    "build_session",
    "build_menu_url",
    "fetch_menu",
    "fetch_grid_point",
    "fetch_hourly_forecast",
    "fetch_daily_forecast",
]
