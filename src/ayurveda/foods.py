"""
Food Property Records.

Typed representation of rows from the food-property database. Dosha
effects are parsed into a tagged value so that "neutral because the
data says so" and "neutral because nothing was recorded" stay distinct.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

logger = logging.getLogger(__name__)


class Dosha(str, Enum):
    """The three constitutional categories."""

    VATA = "vata"
    PITTA = "pitta"
    KAPHA = "kapha"


class Taste(str, Enum):
    """Rasa: the six tastes."""

    SWEET = "sweet"
    SOUR = "sour"
    SALTY = "salty"
    BITTER = "bitter"
    PUNGENT = "pungent"
    ASTRINGENT = "astringent"


class Temperature(str, Enum):
    """Virya: a food's heating or cooling potency."""

    HOT = "hot"
    COLD = "cold"
    NEUTRAL = "neutral"


class Digestibility(str, Enum):
    """How heavy a food is on agni."""

    EASY = "easy"
    MODERATE = "moderate"
    DIFFICULT = "difficult"


class DoshaEffect(str, Enum):
    """Effect of a food on one dosha.

    UNKNOWN marks a food that carries no effect mapping at all. It tallies
    as neutral but is never produced from an explicit value.
    """

    INCREASE = "increase"
    DECREASE = "decrease"
    NEUTRAL = "neutral"
    UNKNOWN = "unknown"


# Both encodings appear in the food data
_INCREASE_LITERALS = frozenset({"increase", "+"})
_DECREASE_LITERALS = frozenset({"decrease", "-"})


def classify_effect(raw: Any) -> DoshaEffect:
    """Classify a raw effect literal.

    "increase" and "+" both mean INCREASE, "decrease" and "-" both mean
    DECREASE. Anything else is NEUTRAL.
    """
    if isinstance(raw, DoshaEffect):
        return DoshaEffect.NEUTRAL if raw == DoshaEffect.UNKNOWN else raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in _INCREASE_LITERALS:
            return DoshaEffect.INCREASE
        if value in _DECREASE_LITERALS:
            return DoshaEffect.DECREASE
    return DoshaEffect.NEUTRAL


@dataclass(frozen=True)
class DoshaEffects:
    """Per-dosha effects of a food, or the absence of any mapping."""

    vata: DoshaEffect = DoshaEffect.UNKNOWN
    pitta: DoshaEffect = DoshaEffect.UNKNOWN
    kapha: DoshaEffect = DoshaEffect.UNKNOWN

    @property
    def is_known(self) -> bool:
        return any(effect != DoshaEffect.UNKNOWN for effect in (self.vata, self.pitta, self.kapha))

    def get(self, dosha: Dosha) -> DoshaEffect:
        return getattr(self, Dosha(dosha).value)

    @classmethod
    def absent(cls) -> "DoshaEffects":
        return cls()

    @classmethod
    def parse(cls, raw: Any) -> "DoshaEffects":
        """Build from a JSON mapping (or JSON text). Non-mappings are absent."""
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug(f"[FOODS] Unparseable dosha_effects: {raw!r}")
                return cls.absent()
        if not isinstance(raw, Mapping):
            return cls.absent()
        return cls(
            vata=classify_effect(raw.get("vata")),
            pitta=classify_effect(raw.get("pitta")),
            kapha=classify_effect(raw.get("kapha")),
        )

    def to_dict(self) -> Optional[Dict[str, str]]:
        if not self.is_known:
            return None
        return {
            "vata": self.vata.value,
            "pitta": self.pitta.value,
            "kapha": self.kapha.value,
        }


def _optional_enum(enum_cls, value):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"[FOODS] Unknown {enum_cls.__name__} value: {value!r}")
        return None


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True)
class Food:
    """A food item with per-100g macros and Ayurvedic properties."""

    id: str
    name: str
    category: str = ""
    primary_taste: Optional[Taste] = None
    secondary_tastes: FrozenSet[Taste] = field(default_factory=frozenset)
    temperature: Optional[Temperature] = None
    digestibility: Optional[Digestibility] = None
    calories_per_100g: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fat_g: Optional[float] = None
    fiber_g: Optional[float] = None
    dosha_effects: DoshaEffects = field(default_factory=DoshaEffects.absent)
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Food":
        """Build a Food from a database row or JSON object."""
        keys = set(row.keys())

        def pick(name, default=None):
            return row[name] if name in keys else default

        secondary = pick("secondary_tastes") or []
        if isinstance(secondary, str):
            secondary = json.loads(secondary) if secondary.startswith("[") else secondary.split(",")
        tastes = frozenset(
            taste for taste in (_optional_enum(Taste, s.strip()) for s in secondary) if taste
        )

        return cls(
            id=str(pick("id", "")),
            name=pick("name", ""),
            category=pick("category") or "",
            primary_taste=_optional_enum(Taste, pick("primary_taste")),
            secondary_tastes=tastes,
            temperature=_optional_enum(Temperature, pick("temperature")),
            digestibility=_optional_enum(Digestibility, pick("digestibility")),
            calories_per_100g=_optional_float(pick("calories_per_100g")),
            protein_g=_optional_float(pick("protein_g")),
            carbs_g=_optional_float(pick("carbs_g")),
            fat_g=_optional_float(pick("fat_g")),
            fiber_g=_optional_float(pick("fiber_g")),
            dosha_effects=DoshaEffects.parse(pick("dosha_effects")),
            is_active=bool(pick("is_active", True)),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "primary_taste": self.primary_taste.value if self.primary_taste else None,
            "secondary_tastes": sorted(t.value for t in self.secondary_tastes),
            "temperature": self.temperature.value if self.temperature else None,
            "digestibility": self.digestibility.value if self.digestibility else None,
            "calories_per_100g": self.calories_per_100g,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "fiber_g": self.fiber_g,
            "dosha_effects": self.dosha_effects.to_dict(),
            "is_active": self.is_active,
        }
