import datetime as dt
import unittest

import requests

from lunch_dad.data_sources.nutrislice_client import build_menu_url, fetch_menu
from lunch_dad.errors import DataContractError
from lunch_dad.models import EMPTY_MENU_MESSAGE

BASE_URL = "https://menus.example.com/menu"
DAY = dt.date(2025, 10, 22)


class DummyResp:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class RecordingSession:
    def __init__(self, resp):
        self.resp = resp
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.resp


def _fetch(session):
    return fetch_menu(session, DAY, base_url=BASE_URL, school_id="test-school", meal_type="lunch", timeout=5.0)


class TestNutrisliceClient(unittest.TestCase):
    def test_build_menu_url(self):
        self.assertEqual(
            build_menu_url(BASE_URL + "/", "test-school", "lunch", DAY),
            "https://menus.example.com/menu/test-school/lunch/2025-10-22",
        )

    def test_fetch_menu_parses_items(self):
        payload = {
            "items": [
                {"name": "Chicken Nuggets", "category": "Entree", "nutrients": {"calories": 300, "protein": 15},
                 "allergens": ["wheat"]},
                {"name": "Milk", "category": "Beverage"},
            ]
        }
        session = RecordingSession(DummyResp(payload))
        record = _fetch(session)

        self.assertEqual(record.date, DAY)
        self.assertEqual([item.name for item in record.items], ["Chicken Nuggets", "Milk"])
        self.assertEqual(record.items[0].nutrients.protein_grams, 15)
        self.assertIsNone(record.message)
        url, kwargs = session.calls[0]
        self.assertEqual(url, "https://menus.example.com/menu/test-school/lunch/2025-10-22")
        self.assertEqual(kwargs["timeout"], 5.0)

    def test_404_returns_none(self):
        self.assertIsNone(_fetch(RecordingSession(DummyResp(status_code=404))))

    def test_server_error_raises_http_error(self):
        with self.assertRaises(requests.HTTPError):
            _fetch(RecordingSession(DummyResp(status_code=502)))

    def test_invalid_json_is_data_contract_error(self):
        with self.assertRaises(DataContractError):
            _fetch(RecordingSession(DummyResp(bad_json=True)))

    def test_wrong_shape_is_data_contract_error(self):
        for payload in ({"items": "nope"}, ["not", "an", "object"], {"items": [{"name": "X", "allergens": 5}]}):
            with self.subTest(payload=payload):
                with self.assertRaises(DataContractError):
                    _fetch(RecordingSession(DummyResp(payload)))

    def test_nameless_items_are_dropped_and_names_trimmed(self):
        payload = {"items": [{"name": ""}, {"name": "   "}, {"category": "Entree"}, {"name": " Tacos "}]}
        record = _fetch(RecordingSession(DummyResp(payload)))
        self.assertEqual([item.name for item in record.items], ["Tacos"])

    def test_empty_menu_gets_message(self):
        record = _fetch(RecordingSession(DummyResp({"items": []})))
        self.assertEqual(record.items, [])
        self.assertEqual(record.message, EMPTY_MENU_MESSAGE)


if __name__ == "__main__":
    unittest.main()
