"""Cache-first, retrying menu retrieval plus the multi-day menu calendar."""
from __future__ import annotations

import datetime as dt
from typing import Callable, List, Optional

from lunch_dad.cache import TTLCache
from lunch_dad.config import Settings
from lunch_dad.data_sources import HttpSession, fetch_menu
from lunch_dad.errors import LunchServiceError
from lunch_dad.menu_classifier import rank_main_items
from lunch_dad.models import MENU_UNAVAILABLE, NO_MENU_MESSAGE, CalendarDay, MenuRecord
from lunch_dad.retry_policy import RetryPolicy, call_with_retry
from lunch_dad.school_calendar import (
    next_school_day,
    parse_calendar_date,
    today_in_timezone,
    upcoming_school_days,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="menu_service")

MenuFetcher = Callable[..., Optional[MenuRecord]]


def menu_cache_key(school_id: str, day: dt.date) -> str:
    """Cache key for one school's menu on one date."""
    return f"menu:{school_id}:{day.isoformat()}"


class MenuService:
    """Fetch menus through the cache, retrying transient provider failures.

    A 404 from the provider becomes an empty MenuRecord that is not cached,
    so a menu published later is picked up on the next call. Exhausted
    retries and data-contract failures propagate to the caller.
    """

    def __init__(
        self,
        settings: Settings,
        cache: TTLCache,
        session: HttpSession,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        fetcher: MenuFetcher = fetch_menu,
        today: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.session = session
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self._fetcher = fetcher
        self._today = today or (lambda: today_in_timezone(settings.school_timezone))

    def get_menu_for_date(self, day: object) -> MenuRecord:
        """Return the menu for a date (date object or YYYY-MM-DD string)."""
        menu_day = parse_calendar_date(day)
        key = menu_cache_key(self.settings.school_id, menu_day)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        record = call_with_retry(
            self._fetcher,
            self.session,
            menu_day,
            base_url=self.settings.menu_base_url,
            school_id=self.settings.school_id,
            meal_type=self.settings.meal_type,
            timeout=self.settings.menu_timeout_seconds,
            policy=self.retry_policy,
            operation=f"fetch menu for {menu_day.isoformat()}",
        )
        if record is None:
            return MenuRecord(date=menu_day, items=[], message=NO_MENU_MESSAGE)

        self.cache.set(key, record, self.settings.cache_ttl_menu)
        logger.info("Fetched menu", extra={"date": menu_day.isoformat(), "items": len(record.items)})
        return record

    def get_menu_for_today(self) -> MenuRecord:
        """Return today's menu in the school's timezone."""
        return self.get_menu_for_date(self._today())

    def get_menu_for_tomorrow(self) -> MenuRecord:
        """Return the menu for the next school day after today."""
        target = next_school_day(self._today(), 1, self.settings.holidays)
        return self.get_menu_for_date(target)

    def get_menu_calendar(self, days: Optional[int] = None) -> List[CalendarDay]:
        """Return ranked main-item names for the next `days` school days, starting today.

        A day whose fetch fails is shown as unavailable rather than failing
        the whole calendar.
        """
        count = self.settings.calendar_days if days is None else days
        calendar: List[CalendarDay] = []
        for school_day in upcoming_school_days(self._today(), count, self.settings.holidays):
            try:
                record = self.get_menu_for_date(school_day)
                names = [item.name for item in rank_main_items(record, self.settings.max_menu_items)]
            except LunchServiceError as exc:
                logger.warning(
                    "Menu unavailable for calendar day",
                    extra={"date": school_day.isoformat(), "error": str(exc)},
                )
                names = [MENU_UNAVAILABLE]
            calendar.append(
                CalendarDay(date=school_day, day_of_week=school_day.strftime("%A"), menu_items=names)
            )
        return calendar
