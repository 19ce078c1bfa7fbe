import datetime as dt
import unittest

from lunch_dad.cache import TTLCache
from lunch_dad.config import Settings
from lunch_dad.services import LunchServices, build_services


class DummyResp:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


class TestBuildServices(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(holidays=["2025-10-23"], max_menu_items=2, retry_base_delay_seconds=0.5)

    def test_shares_one_cache(self):
        cache = TTLCache()
        services = build_services(self.settings, cache=cache, session=object())
        self.assertIsInstance(services, LunchServices)
        self.assertIs(services.cache, cache)
        self.assertIs(services.menus.cache, cache)
        self.assertIs(services.weather.cache, cache)

    def test_retry_policy_from_settings(self):
        sleeps = []
        services = build_services(self.settings, session=object(), sleep=sleeps.append)
        self.assertEqual(services.menus.retry_policy.base_delay_seconds, 0.5)
        self.assertIs(services.weather.retry_policy, services.menus.retry_policy)

    def test_next_school_day_uses_configured_holidays(self):
        services = build_services(self.settings, session=object())
        self.assertEqual(services.next_school_day("2025-10-22"), dt.date(2025, 10, 24))
        self.assertEqual(services.next_school_day("2025-10-22", 0), dt.date(2025, 10, 22))

    def test_rank_main_items_defaults_to_configured_cap(self):
        services = build_services(self.settings, session=object())
        raw = [{"name": f"Entree {i}", "category": "Entree"} for i in range(4)]
        self.assertEqual(len(services.rank_main_items(raw)), 2)
        self.assertEqual(len(services.rank_main_items(raw, 3)), 3)

    def test_weather_entry_points_never_raise(self):
        services = build_services(self.settings, session=object())
        self.assertTrue(services.fetch_today_weather().is_fallback)
        self.assertEqual(services.fetch_morning_forecast(), [])

    def test_fetch_menu_uses_session(self):
        payload = {"items": [{"name": "Tacos", "category": "Entree"}]}
        session = type("S", (), {"get": lambda *a, **k: DummyResp(payload)})()
        services = build_services(self.settings, session=session)
        record = services.fetch_menu("2025-10-22")
        self.assertEqual([item.name for item in record.items], ["Tacos"])


if __name__ == "__main__":
    unittest.main()
