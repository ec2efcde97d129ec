"""Meal calendar and template models."""
from datetime import date
from pydantic import BaseModel, Field
from typing import Optional, Literal

CalendarMealType = Literal["breakfast", "lunch", "dinner", "snacks"]
TargetDosha = Literal["vata", "pitta", "kapha"]


class PlaceEntryRequest(BaseModel):
    """Drop a food into a meal slot."""

    entry_date: date
    meal_type: CalendarMealType
    food_id: str
    quantity_grams: float = Field(default=100, gt=0)
    patient_id: Optional[str] = None


class TemplateItemIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    meal_type: CalendarMealType
    food_id: str
    quantity_grams: float = Field(default=100, gt=0)
    sort_order: int = 0


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    target_dosha: Optional[TargetDosha] = None
    items: list[TemplateItemIn] = []


class TemplateFromWeek(BaseModel):
    """Save the visible week of a calendar as a template."""

    name: str = Field(min_length=1)
    description: Optional[str] = None
    target_dosha: Optional[TargetDosha] = None
    patient_id: Optional[str] = None
    offset: int = 0
    today: Optional[date] = None


class TemplateItem(TemplateItemIn):
    id: str


class Template(BaseModel):
    id: str
    practitioner_id: str
    name: str
    description: Optional[str] = None
    target_dosha: Optional[TargetDosha] = None
    created_at: str
    items: list[TemplateItem] = []


class ApplyTemplateRequest(BaseModel):
    patient_id: Optional[str] = None
    offset: int = 0
    today: Optional[date] = None
