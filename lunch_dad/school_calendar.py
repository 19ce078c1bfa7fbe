"""School-day arithmetic: weekends, holidays, and walking forward N school days.

Holidays are an arbitrary set of ISO date strings, so finding the next school
day is a forward scan rather than a closed-form calculation. The scan is capped
at MAX_SEARCH_DAYS calendar days so a holiday list covering the whole horizon
fails loudly instead of looping.
"""

from __future__ import annotations

import datetime as dt
from typing import Collection, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lunch_dad.errors import ExhaustedSearchError, InvalidInputError

MAX_SEARCH_DAYS = 365

# date.weekday(): Monday == 0 ... Sunday == 6
WEEKEND_DAYS = frozenset({5, 6})


def parse_calendar_date(value: object) -> dt.date:
    """Coerce a date, datetime, or YYYY-MM-DD string into a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            parsed = dt.date.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(f"Invalid date: {value!r}") from None
        if parsed.isoformat() != text:
            raise InvalidInputError(f"Date must be YYYY-MM-DD: {value!r}")
        return parsed
    raise InvalidInputError(f"Invalid date: {value!r}")


def format_calendar_date(value: object) -> str:
    """Return the zero-padded YYYY-MM-DD form of a date."""
    return parse_calendar_date(value).isoformat()


def today_in_timezone(tz_name: str) -> dt.date:
    """Return the current local calendar date in the given IANA timezone."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidInputError(f"Invalid timezone: {tz_name}") from None
    return dt.datetime.now(tz).date()


def is_school_day(
    value: object,
    holidays: Collection[str] = (),
    *,
    weekend: Collection[int] = WEEKEND_DAYS,
) -> bool:
    """Return True when the date is neither a weekend day nor a listed holiday."""
    day = parse_calendar_date(value)
    if day.weekday() in weekend:
        return False
    return day.isoformat() not in holidays


def next_school_day(
    start: object,
    count: int = 1,
    holidays: Collection[str] = (),
    *,
    weekend: Collection[int] = WEEKEND_DAYS,
) -> dt.date:
    """Advance `count` school days past `start`; `count == 0` returns `start` unchanged."""
    day = parse_calendar_date(start)
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidInputError(f"count must be an integer, got {count!r}")
    if count < 0:
        raise InvalidInputError("count must be non-negative")
    if count == 0:
        return day

    holiday_set = frozenset(holidays)
    found = 0
    for _ in range(MAX_SEARCH_DAYS):
        day += dt.timedelta(days=1)
        if is_school_day(day, holiday_set, weekend=weekend):
            found += 1
            if found == count:
                return day

    raise ExhaustedSearchError(
        f"Could not find {count} school days within {MAX_SEARCH_DAYS} days of {format_calendar_date(start)}"
    )


def upcoming_school_days(
    start: object,
    count: int,
    holidays: Collection[str] = (),
    *,
    weekend: Collection[int] = WEEKEND_DAYS,
) -> List[dt.date]:
    """Return the first `count` school days on or after `start`."""
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise InvalidInputError(f"count must be a non-negative integer, got {count!r}")
    if count == 0:
        return []
    first = parse_calendar_date(start)
    holiday_set = frozenset(holidays)
    if not is_school_day(first, holiday_set, weekend=weekend):
        first = next_school_day(first, 1, holiday_set, weekend=weekend)
    days = [first]
    while len(days) < count:
        days.append(next_school_day(days[-1], 1, holiday_set, weekend=weekend))
    return days
