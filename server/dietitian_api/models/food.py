"""Food database models."""
from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal

Taste = Literal["sweet", "sour", "salty", "bitter", "pungent", "astringent"]
Temperature = Literal["hot", "cold", "neutral"]
Digestibility = Literal["easy", "moderate", "difficult"]
EffectValue = Literal["increase", "decrease", "neutral"]


class DoshaEffectsOut(BaseModel):
    """Effect of a food on each dosha."""

    vata: EffectValue
    pitta: EffectValue
    kapha: EffectValue


class Food(BaseModel):
    """Food item with per-100g nutrition and Ayurvedic properties."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    category: str
    description: Optional[str] = None
    cuisine_type: Optional[str] = None
    primary_taste: Optional[Taste] = None
    secondary_tastes: list[Taste] = []
    temperature: Optional[Temperature] = None
    digestibility: Optional[Digestibility] = None
    calories_per_100g: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fat_g: Optional[float] = None
    fiber_g: Optional[float] = None
    calcium_mg: Optional[float] = None
    iron_mg: Optional[float] = None
    vitamin_a_mcg: Optional[float] = None
    vitamin_c_mg: Optional[float] = None
    dosha_effects: Optional[DoshaEffectsOut] = None
    is_active: bool = True


class DoshaTallyOut(BaseModel):
    increase: int
    decrease: int
    neutral: int


class FoodProfileSummary(BaseModel):
    """Distributions of food properties across a set of foods."""

    total: int
    taste: dict[str, int]
    temperature: dict[str, int]
    digestibility: dict[str, int]
    dosha: dict[str, DoshaTallyOut]
