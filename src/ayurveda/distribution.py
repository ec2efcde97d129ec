"""
Food Property Distributions.

One grouping count serves taste, temperature and digestibility summaries.
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterable

from .foods import Food

UNKNOWN_TAG = "unknown"


def _tag(value: Any) -> str:
    if value is None or value == "":
        return UNKNOWN_TAG
    if isinstance(value, Enum):
        return value.value
    return str(value)


def distribution(foods: Iterable[Food], key: Callable[[Food], Any]) -> Dict[str, int]:
    """Count foods by the tag returned from ``key``."""
    counts: Dict[str, int] = {}
    for food in foods:
        tag = _tag(key(food))
        counts[tag] = counts.get(tag, 0) + 1
    return counts


def profile_summary(foods: Iterable[Food]) -> Dict[str, Dict[str, int]]:
    """Taste, temperature and digestibility distributions for a food list."""
    foods = list(foods)
    return {
        "taste": distribution(foods, lambda food: food.primary_taste),
        "temperature": distribution(foods, lambda food: food.temperature),
        "digestibility": distribution(foods, lambda food: food.digestibility),
    }
