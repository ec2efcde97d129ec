"""Diet chart models."""
from datetime import date
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

from .food import Food, DoshaTallyOut
from .patient import Patient


class DietChartItemCreate(BaseModel):
    """One food line on a new diet chart."""

    food_id: str = Field(min_length=1)
    meal_type: str = "breakfast"
    quantity_grams: float = Field(default=100, gt=0)
    meal_time: Optional[str] = None
    special_instructions: Optional[str] = None


class DietChartCreate(BaseModel):
    """New diet chart with its items."""

    patient_id: str = ""
    title: str = Field(min_length=1)
    notes: Optional[str] = None
    chart_date: date = Field(default_factory=date.today)
    items: list[DietChartItemCreate] = []


class NutrientTotalsOut(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float


class DietChart(BaseModel):
    """Stored diet chart header."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    practitioner_id: str
    chart_date: str
    title: str
    notes: Optional[str] = None
    total_calories: Optional[float] = None
    created_at: str
    updated_at: str


class DietChartItem(BaseModel):
    """Stored diet chart line with its food, if the food still exists."""

    id: str
    food_id: str
    meal_type: str
    quantity_grams: float
    meal_time: Optional[str] = None
    special_instructions: Optional[str] = None
    sort_order: Optional[int] = None
    food: Optional[Food] = None


class MealGroup(BaseModel):
    meal_type: str
    items: list[DietChartItem]


class DietChartDetail(BaseModel):
    """Diet chart with items grouped by meal and derived totals."""

    model_config = ConfigDict(populate_by_name=True)

    chart: DietChart
    patient: Optional[Patient] = None
    meals: list[MealGroup]
    nutrients: NutrientTotalsOut
    dosha: dict[str, DoshaTallyOut]
    total_is_stale: bool = Field(serialization_alias="totalIsStale")
