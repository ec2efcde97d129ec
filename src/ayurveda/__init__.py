"""
Ayurvedic Diet Planning Core.

Derived-state logic shared by the practice API: nutrient totals, dosha
tallies, food property distributions, the weekly meal calendar and the
recommendation stream decoder.
"""

from .foods import (
    Digestibility,
    Dosha,
    DoshaEffect,
    DoshaEffects,
    Food,
    Taste,
    Temperature,
    classify_effect,
)
from .nutrition import NutrientTotals, aggregate_nutrients, resolve_items
from .dosha import (
    DOSHA_GUIDANCE,
    QUIZ_QUESTIONS,
    DoshaTally,
    aggregate_dosha_effects,
    balancing_foods,
    dominant_dosha,
    score_quiz,
)
from .distribution import distribution, profile_summary
from .meal_calendar import (
    MEAL_TYPES,
    CalendarOwner,
    CalendarStoreError,
    TemplateItem,
    WeekGrid,
    week_dates,
)
from .stream_decoder import ChatStreamDecoder

__all__ = [
    "Digestibility",
    "Dosha",
    "DoshaEffect",
    "DoshaEffects",
    "Food",
    "Taste",
    "Temperature",
    "classify_effect",
    "NutrientTotals",
    "aggregate_nutrients",
    "resolve_items",
    "DOSHA_GUIDANCE",
    "QUIZ_QUESTIONS",
    "DoshaTally",
    "aggregate_dosha_effects",
    "balancing_foods",
    "dominant_dosha",
    "score_quiz",
    "distribution",
    "profile_summary",
    "MEAL_TYPES",
    "CalendarOwner",
    "CalendarStoreError",
    "TemplateItem",
    "WeekGrid",
    "week_dates",
    "ChatStreamDecoder",
]
