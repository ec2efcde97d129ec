"""
Nutrient Aggregation.

Totals macro nutrients over (food, quantity) pairs. Food values are per
100g, so each item contributes ``value * quantity_grams / 100``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, List, Optional, Tuple

from .foods import Food

logger = logging.getLogger(__name__)

NUTRIENT_FIELDS = {
    "calories": "calories_per_100g",
    "protein": "protein_g",
    "carbs": "carbs_g",
    "fat": "fat_g",
    "fiber": "fiber_g",
}


@dataclass(frozen=True)
class NutrientTotals:
    """Summed macro nutrients."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0

    def __add__(self, other: "NutrientTotals") -> "NutrientTotals":
        if not isinstance(other, NutrientTotals):
            return NotImplemented
        return NutrientTotals(
            **{name: getattr(self, name) + getattr(other, name) for name in NUTRIENT_FIELDS}
        )

    def scaled(self, factor: float) -> "NutrientTotals":
        return NutrientTotals(**{name: getattr(self, name) * factor for name in NUTRIENT_FIELDS})

    def rounded(self, ndigits: int = 1) -> "NutrientTotals":
        return NutrientTotals(**{name: round(getattr(self, name), ndigits) for name in NUTRIENT_FIELDS})

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in NUTRIENT_FIELDS}


def item_nutrients(food: Food, quantity_grams: float) -> NutrientTotals:
    """Nutrients contributed by one portion. Missing values count as zero."""
    multiplier = quantity_grams / 100
    return NutrientTotals(
        **{
            name: multiplier * (getattr(food, attr) or 0)
            for name, attr in NUTRIENT_FIELDS.items()
        }
    )


def aggregate_nutrients(items: Iterable[Tuple[Optional[Food], float]]) -> NutrientTotals:
    """
    Sum nutrients across portions.

    Args:
        items: (food, quantity_grams) pairs. A food of None is a reference
            that could not be resolved and contributes nothing.

    Returns:
        NutrientTotals (all zero for an empty input)
    """
    totals = NutrientTotals()
    for food, quantity_grams in items:
        if food is None:
            logger.debug("[NUTRITION] Skipping unresolved food reference")
            continue
        totals = totals + item_nutrients(food, quantity_grams)
    return totals


def resolve_items(
    items: Iterable[Tuple[str, float]],
    foods_by_id: Mapping[str, Food],
) -> List[Tuple[Optional[Food], float]]:
    """Resolve (food_id, quantity) pairs against a food lookup."""
    return [(foods_by_id.get(food_id), quantity) for food_id, quantity in items]
