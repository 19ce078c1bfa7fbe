"""Client for the school menu provider (Nutrislice)."""
from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lunch_dad.data_sources.base import HttpSession, decode_json, validate_payload
from lunch_dad.models import EMPTY_MENU_MESSAGE, MenuItem, MenuRecord
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="nutrislice_client")


class MenuPayload(BaseModel):
    """Body of a successful menu response: `{"items": [...]}`."""
    model_config = ConfigDict(extra="ignore")

    items: List[MenuItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def drop_nameless_items(cls, v: Any) -> Any:
        """Skip entries without a usable name; the provider pads menus with blank rows."""
        if not isinstance(v, list):
            return v
        kept = []
        for entry in v:
            if isinstance(entry, dict):
                name = entry.get("name")
                if not isinstance(name, str) or not name.strip():
                    continue
                kept.append({**entry, "name": name.strip()})
            else:
                kept.append(entry)
        return kept


def build_menu_url(base_url: str, school_id: str, meal_type: str, day: dt.date) -> str:
    """Return the provider URL for one school's menu on one date."""
    return f"{base_url.rstrip('/')}/{school_id}/{meal_type}/{day.isoformat()}"


def fetch_menu(
    session: HttpSession,
    day: dt.date,
    *,
    base_url: str,
    school_id: str,
    meal_type: str = "lunch",
    timeout: float = 5.0,
) -> Optional[MenuRecord]:
    """Fetch and validate the menu for `day`.

    Returns None when the provider answers 404 (no menu for that date).
    Raises requests exceptions for transport/status failures and
    DataContractError when a 200 body cannot be read.
    """
    url = build_menu_url(base_url, school_id, meal_type, day)
    logger.debug("Requesting menu", extra={"url": url})
    resp = session.get(url, timeout=timeout)
    if resp.status_code == 404:
        logger.info("No menu published", extra={"date": day.isoformat()})
        return None
    resp.raise_for_status()

    context = f"menu {school_id} {day.isoformat()}"
    payload = validate_payload(MenuPayload, decode_json(resp, context=context), context=context)
    return MenuRecord(
        date=day,
        items=payload.items,
        fetched_at=dt.datetime.now(dt.timezone.utc),
        message=None if payload.items else EMPTY_MENU_MESSAGE,
    )
