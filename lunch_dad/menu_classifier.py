"""Pick the likely entrées out of a noisy list of menu entries.

Ambiguous items default to exclusion: an uncategorized entry only survives if
its nutrition looks like a meal and nothing in its text marks it as a side.
"""

from __future__ import annotations

import unicodedata
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from lunch_dad.models import MenuItem, MenuRecord
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="menu_classifier")

DEFAULT_MAX_ITEMS = 5

MAIN_CATEGORIES = frozenset({"entree", "main dish", "pizza", "sandwich", "burger"})

EXCLUDE_KEYWORDS = (
    "side",
    "drink",
    "beverage",
    "milk",
    "juice",
    "dessert",
    "fruit cup",
    "vegetable",
)

MIN_MAIN_CALORIES = 250
MIN_MAIN_PROTEIN_GRAMS = 10

CATEGORY_SCORES = {
    "entree": 100,
    "pizza": 80,
    "burger": 80,
    "sandwich": 70,
    "main dish": 70,
}
NUTRITION_BONUS = 20
ALLERGEN_BONUS = 10


def _normalize_category(category: Optional[str]) -> str:
    """Lowercase, trim, and fold accents so 'Entrée' compares equal to 'entree'."""
    if not category:
        return ""
    folded = unicodedata.normalize("NFKD", category)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return folded.strip().lower()


def is_main_category(category: Optional[str]) -> bool:
    """Return True for categories that always count as a main item."""
    return _normalize_category(category) in MAIN_CATEGORIES


def looks_like_main_item(item: MenuItem) -> bool:
    """Keyword and nutrition heuristic for items without a useful category."""
    text = f"{item.name or ''} {item.description or ''}".lower()
    if any(keyword in text for keyword in EXCLUDE_KEYWORDS):
        return False
    if item.nutrients is None:
        return False
    calories = item.nutrients.calories or 0
    protein = item.nutrients.protein_grams or 0
    return calories >= MIN_MAIN_CALORIES and protein >= MIN_MAIN_PROTEIN_GRAMS


def _is_uncategorized(category: Optional[str]) -> bool:
    normalized = _normalize_category(category)
    return normalized in ("", "other")


def remove_duplicates(items: Iterable[MenuItem]) -> List[MenuItem]:
    """Drop repeated names (case-insensitive, trimmed), keeping the first occurrence."""
    seen: set[str] = set()
    unique: List[MenuItem] = []
    for item in items:
        key = (item.name or "").strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def relevance_score(item: MenuItem) -> int:
    """Score an item by category priority and how detailed its data is."""
    score = CATEGORY_SCORES.get(_normalize_category(item.category), 0)
    if item.nutrients is not None and (item.nutrients.calories or 0) > 0:
        score += NUTRITION_BONUS
    if item.allergens:
        score += ALLERGEN_BONUS
    return score


def _coerce_items(raw_items: Any) -> List[MenuItem]:
    """Pull a list of MenuItem out of a record, mapping, or sequence; anything else is empty."""
    if raw_items is None:
        return []
    if isinstance(raw_items, MenuRecord):
        candidates: Any = raw_items.items
    elif isinstance(raw_items, Mapping):
        candidates = raw_items.get("items")
    else:
        candidates = raw_items
    if isinstance(candidates, (str, bytes)) or not isinstance(candidates, Sequence):
        return []

    items: List[MenuItem] = []
    for candidate in candidates:
        if isinstance(candidate, MenuItem):
            items.append(candidate)
        elif isinstance(candidate, Mapping):
            try:
                items.append(MenuItem.model_validate(candidate))
            except ValidationError:
                logger.debug("Skipping unreadable menu item", extra={"item": dict(candidate)})
    return items


def rank_main_items(raw_items: Any, max_items: int = DEFAULT_MAX_ITEMS) -> List[MenuItem]:
    """Filter, deduplicate, score and truncate menu entries to the likely main items.

    Accepts a MenuRecord, a mapping with an ``items`` list, or a plain sequence
    of items (MenuItem or mappings). Malformed input yields an empty list.
    """
    items = _coerce_items(raw_items)

    candidates: List[MenuItem] = []
    for item in items:
        if is_main_category(item.category):
            candidates.append(item)
        elif _is_uncategorized(item.category) and looks_like_main_item(item):
            candidates.append(item)

    unique = remove_duplicates(candidates)
    # sorted() is stable, so equal scores keep their menu order
    ranked = sorted(unique, key=relevance_score, reverse=True)
    if max_items <= 0:
        return []
    return ranked[:max_items]


def format_menu_items(items: Optional[Sequence[MenuItem]]) -> str:
    """Join item names for speech: 'A', 'A and B', 'A, B, and C'."""
    if not items:
        return ""
    names = [item.name for item in items]
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{', '.join(names[:-1])}, and {names[-1]}"
