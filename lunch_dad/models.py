"""Domain records produced by the fetchers and consumed by response builders.

Menu items keep the provider's shape apart from field renaming (the provider's
`protein` becomes `protein_grams`). Weather records are either live or the
fallback sentinel; callers must check `is_fallback` before using any field.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WEATHER_UNAVAILABLE = "Weather unavailable"
NO_MENU_MESSAGE = "No menu available for this date"
EMPTY_MENU_MESSAGE = "No menu items were listed for this date"
MENU_UNAVAILABLE = "Menu unavailable"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Nutrients(BaseModel):
    """Per-serving nutrition facts reported by the menu provider."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    calories: Optional[float] = None
    protein_grams: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("protein_grams", "proteinGrams", "protein"),
    )


class MenuItem(BaseModel):
    """A single raw menu entry."""
    model_config = ConfigDict(extra="ignore")

    name: str
    category: Optional[str] = None
    nutrients: Optional[Nutrients] = None
    description: Optional[str] = None
    allergens: List[str] = Field(default_factory=list)


class MenuRecord(BaseModel):
    """Menu for one calendar date. Empty items plus a message is a normal "no menu" outcome."""
    date: dt.date
    items: List[MenuItem] = Field(default_factory=list)
    fetched_at: dt.datetime = Field(default_factory=_utcnow)
    message: Optional[str] = None


class GridCoordinate(BaseModel):
    """weather.gov forecast office grid cell for a lat/lon pair."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    grid_id: str = Field(min_length=1)
    grid_x: int
    grid_y: int


class ForecastPeriod(BaseModel):
    """One period of a weather.gov hourly or daily forecast."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str = ""
    start_time: dt.datetime
    is_daytime: bool
    temperature: float
    temperature_unit: str
    short_forecast: str = ""
    detailed_forecast: str = ""
    wind_speed: Optional[str] = None
    wind_direction: Optional[str] = None
    icon: Optional[str] = None


class Forecast(BaseModel):
    """Ordered forecast periods for a grid cell."""
    periods: List[ForecastPeriod] = Field(default_factory=list)


class WeatherRecord(BaseModel):
    """Today's weather, or the fallback sentinel when it could not be fetched."""
    temperature: Optional[float] = None
    temperature_unit: str = "F"
    conditions: str = WEATHER_UNAVAILABLE
    is_daytime: Optional[bool] = None
    high: Optional[float] = None
    short_forecast: Optional[str] = None
    detailed_forecast: Optional[str] = None
    is_fallback: bool = True
    fetched_at: dt.datetime = Field(default_factory=_utcnow)

    @classmethod
    def fallback(cls) -> "WeatherRecord":
        """Return the sentinel used when weather is unavailable."""
        return cls()


class CalendarDay(BaseModel):
    """Main menu items for one school day of the multi-day calendar."""
    date: dt.date
    day_of_week: str
    menu_items: List[str] = Field(default_factory=list)
