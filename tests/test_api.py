import datetime as dt
import unittest

import requests
from fastapi.testclient import TestClient

from lunch_dad.api import MENU_OUTAGE_MESSAGE, get_services
from lunch_dad.cache import TTLCache
from lunch_dad.config import Settings
from lunch_dad.main import app as fastapi_app
from lunch_dad.menu_service import MenuService
from lunch_dad.models import MENU_UNAVAILABLE, Forecast, ForecastPeriod, GridCoordinate
from lunch_dad.retry_policy import RetryPolicy
from lunch_dad.services import LunchServices
from lunch_dad.weather_service import WeatherService

WEDNESDAY = dt.date(2025, 10, 22)

MENU_PAYLOAD = {
    "items": [
        {"name": "Chicken Nuggets", "category": "Entree", "nutrients": {"calories": 300, "protein": 15}},
        {"name": "Cheese Pizza", "category": "Pizza"},
        {"name": "Milk", "category": "Beverage"},
    ]
}


class DummyResp:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return self._payload


class DummySession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


def _failing_fetcher(*args, **kwargs):
    raise requests.ConnectionError("weather down")


def _make_services(session, today=WEDNESDAY):
    settings = Settings(school_id="test-school", holidays=["2025-10-23"])
    cache = TTLCache()
    policy = RetryPolicy(max_attempts=3, base_delay_seconds=0.1, sleep=lambda _: None)
    return LunchServices(
        settings=settings,
        cache=cache,
        menus=MenuService(settings, cache, session, retry_policy=policy, today=lambda: today),
        weather=WeatherService(
            settings,
            cache,
            session,
            retry_policy=policy,
            grid_fetcher=_failing_fetcher,
            hourly_fetcher=lambda *a, **k: Forecast(),
            daily_fetcher=lambda *a, **k: Forecast(),
        ),
    )


class TestApi(unittest.TestCase):
    def setUp(self):
        self.session = DummySession(DummyResp(MENU_PAYLOAD))
        self.services = _make_services(self.session)
        fastapi_app.dependency_overrides[get_services] = lambda: self.services
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        fastapi_app.dependency_overrides.clear()

    def test_menu_for_date_ranks_main_items(self):
        resp = self.client.get("/v1/menu/2025-10-22")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["date"], "2025-10-22")
        self.assertEqual([item["name"] for item in data["main_items"]], ["Chicken Nuggets", "Cheese Pizza"])
        self.assertEqual(data["summary"], "Chicken Nuggets and Cheese Pizza")
        self.assertIsNone(data["message"])

    def test_menu_for_invalid_date_400(self):
        resp = self.client.get("/v1/menu/2025-02-30")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.session.calls, 0)

    def test_menu_not_found_returns_message(self):
        self.session.outcome = DummyResp(status_code=404)
        resp = self.client.get("/v1/menu/2025-10-22")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["main_items"], [])
        self.assertEqual(data["summary"], "")
        self.assertEqual(data["message"], "No menu available for this date")

    def test_menu_outage_503_with_generic_message(self):
        self.session.outcome = requests.Timeout("slow")
        resp = self.client.get("/v1/menu/today")
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["detail"], MENU_OUTAGE_MESSAGE)
        self.assertEqual(self.session.calls, 3)

    def test_menu_client_error_503(self):
        self.session.outcome = DummyResp(status_code=403)
        resp = self.client.get("/v1/menu/2025-10-22")
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(self.session.calls, 1)

    def test_menu_tomorrow_skips_holiday(self):
        resp = self.client.get("/v1/menu/tomorrow")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["date"], "2025-10-24")

    def test_menu_calendar(self):
        resp = self.client.get("/v1/menu/calendar", params={"days": 2})
        self.assertEqual(resp.status_code, 200)
        days = resp.json()["days"]
        self.assertEqual([d["date"] for d in days], ["2025-10-22", "2025-10-24"])
        self.assertEqual(days[1]["day_of_week"], "Friday")
        self.assertEqual(days[0]["menu_items"], ["Chicken Nuggets", "Cheese Pizza"])

    def test_menu_calendar_marks_unavailable_days(self):
        self.session.outcome = requests.ConnectionError("down")
        resp = self.client.get("/v1/menu/calendar", params={"days": 1})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["days"][0]["menu_items"], [MENU_UNAVAILABLE])

    def test_menu_calendar_rejects_bad_days(self):
        self.assertEqual(self.client.get("/v1/menu/calendar", params={"days": 0}).status_code, 422)

    def test_weather_today_fallback(self):
        resp = self.client.get("/v1/weather/today")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["is_fallback"])
        self.assertIsNone(data["temperature"])
        self.assertEqual(data["conditions"], "Weather unavailable")

    def test_weather_morning_empty_when_unavailable(self):
        resp = self.client.get("/v1/weather/morning")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), [])

    def test_weather_morning_returns_periods(self):
        period = ForecastPeriod(
            start_time=dt.datetime(2025, 10, 22, 7, 0),
            is_daytime=True,
            temperature=48,
            temperature_unit="F",
        )
        self.services.weather._grid_fetcher = lambda *a, **k: GridCoordinate(grid_id="LWX", grid_x=1, grid_y=2)
        self.services.weather._hourly_fetcher = lambda *a, **k: Forecast(periods=[period])
        resp = self.client.get("/v1/weather/morning")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), 1)
        self.assertEqual(resp.json()[0]["temperature"], 48)

    def test_next_school_day(self):
        resp = self.client.get("/v1/school-days/next", params={"start": "2025-10-22", "count": 1})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["date"], "2025-10-24")
        self.assertEqual(data["day_of_week"], "Friday")
        self.assertEqual(data["start"], "2025-10-22")

    def test_next_school_day_zero_count(self):
        resp = self.client.get("/v1/school-days/next", params={"start": "2025-10-25", "count": 0})
        self.assertEqual(resp.json()["date"], "2025-10-25")

    def test_next_school_day_errors(self):
        self.assertEqual(
            self.client.get("/v1/school-days/next", params={"start": "bogus"}).status_code, 400
        )
        self.assertEqual(
            self.client.get("/v1/school-days/next", params={"start": "2025-10-22", "count": -1}).status_code, 422
        )
        self.assertEqual(
            self.client.get("/v1/school-days/next", params={"start": "2025-10-22", "count": 1000}).status_code, 500
        )

    def test_cache_stats(self):
        self.client.get("/v1/menu/2025-10-22")
        self.client.get("/v1/menu/2025-10-22")
        resp = self.client.get("/v1/cache/stats")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual((data["hits"], data["misses"], data["size"]), (1, 1, 1))
        self.assertAlmostEqual(data["hit_rate"], 0.5)


class TestGetServices(unittest.TestCase):
    def test_missing_services_raises(self):
        request = type("R", (), {"app": type("A", (), {"state": type("St", (), {})()})()})()
        with self.assertRaises(RuntimeError):
            get_services(request)


if __name__ == "__main__":
    unittest.main()
