"""HTTP API for the school lunch and weather service."""

import datetime as dt
from typing import Callable, List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel

from .errors import (
    DataContractError,
    ExhaustedRetriesError,
    ExhaustedSearchError,
    InvalidInputError,
    UpstreamRequestError,
)
from .menu_classifier import format_menu_items
from .models import CalendarDay, ForecastPeriod, MenuItem, MenuRecord, WeatherRecord
from .school_calendar import parse_calendar_date
from .services import LunchServices
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")

MENU_OUTAGE_MESSAGE = "I'm having trouble getting the menu right now. Please try again later."

T = TypeVar("T")


class MenuResponse(BaseModel):
    """Ranked main items for one date."""
    date: dt.date
    main_items: List[MenuItem]
    summary: str = ""
    message: Optional[str] = None
    fetched_at: Optional[dt.datetime] = None


class CalendarResponse(BaseModel):
    """Main items for the next few school days."""
    days: List[CalendarDay]


class SchoolDayResponse(BaseModel):
    """Result of advancing a number of school days."""
    start: dt.date
    count: int
    date: dt.date
    day_of_week: str


class CacheStatsResponse(BaseModel):
    """Cache counters."""
    hits: int
    misses: int
    hit_rate: float
    size: int


def get_services(request: Request) -> LunchServices:
    """Return the LunchServices built during application startup."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("LunchServices not initialized. Check lifespan setup.")
    return services


router = APIRouter()


def _core_call(fn: Callable[[], T]) -> T:
    """Run a core operation, translating its errors into HTTP errors."""
    try:
        return fn()
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except (ExhaustedRetriesError, DataContractError, UpstreamRequestError) as exc:
        logger.error("Menu provider unavailable", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=MENU_OUTAGE_MESSAGE)
    except ExhaustedSearchError as exc:
        logger.error("School calendar search exhausted", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _menu_response(services: LunchServices, record: MenuRecord) -> MenuResponse:
    """Shape a MenuRecord into its ranked API form."""
    main_items = services.rank_main_items(record)
    return MenuResponse(
        date=record.date,
        main_items=main_items,
        summary=format_menu_items(main_items),
        message=record.message,
        fetched_at=record.fetched_at,
    )


@router.get("/menu/today", response_model=MenuResponse)
def menu_today(services: LunchServices = Depends(get_services)):
    """Main items on today's menu."""
    record = _core_call(services.menus.get_menu_for_today)
    return _menu_response(services, record)


@router.get("/menu/tomorrow", response_model=MenuResponse)
def menu_tomorrow(services: LunchServices = Depends(get_services)):
    """Main items on the next school day's menu."""
    record = _core_call(services.menus.get_menu_for_tomorrow)
    return _menu_response(services, record)


@router.get("/menu/calendar", response_model=CalendarResponse)
def menu_calendar(
    days: Optional[int] = Query(default=None, ge=1, le=20),
    services: LunchServices = Depends(get_services),
):
    """Main items for each of the next few school days."""
    calendar = _core_call(lambda: services.menus.get_menu_calendar(days))
    return CalendarResponse(days=calendar)


@router.get("/menu/{day}", response_model=MenuResponse)
def menu_for_date(day: str, services: LunchServices = Depends(get_services)):
    """Main items on the menu for a YYYY-MM-DD date."""
    record = _core_call(lambda: services.fetch_menu(day))
    return _menu_response(services, record)


@router.get("/weather/today", response_model=WeatherRecord)
def weather_today(services: LunchServices = Depends(get_services)):
    """Today's weather; `is_fallback` is true when it could not be fetched."""
    return services.fetch_today_weather()


@router.get("/weather/morning", response_model=List[ForecastPeriod])
def weather_morning(services: LunchServices = Depends(get_services)):
    """Daytime hourly periods between 7 and 9 AM; empty when weather is unavailable."""
    return services.fetch_morning_forecast()


@router.get("/school-days/next", response_model=SchoolDayResponse)
def school_days_next(
    start: str,
    count: int = Query(default=1, ge=0),
    services: LunchServices = Depends(get_services),
):
    """Advance `count` school days from `start`."""
    target = _core_call(lambda: services.next_school_day(start, count))
    return SchoolDayResponse(
        start=parse_calendar_date(start),
        count=count,
        date=target,
        day_of_week=target.strftime("%A"),
    )


@router.get("/cache/stats", response_model=CacheStatsResponse)
def cache_stats(services: LunchServices = Depends(get_services)):
    """Cache hit/miss counters and size."""
    stats = services.cache.stats()
    return CacheStatsResponse(hits=stats.hits, misses=stats.misses, hit_rate=stats.hit_rate, size=stats.size)
