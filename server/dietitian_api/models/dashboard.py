"""Dashboard and dosha quiz models."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional

from .diet_chart import DietChart, DietChartItem
from .patient import Patient

DoshaName = Literal["vata", "pitta", "kapha"]


class DietitianStats(BaseModel):
    """Counts shown on the dietitian dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    patients: int
    diet_charts: int = Field(serialization_alias="dietCharts")
    foods: int


class AdminStats(BaseModel):
    """Counts shown on the admin dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(serialization_alias="totalUsers")
    total_dietitians: int = Field(serialization_alias="totalDietitians")
    total_patients: int = Field(serialization_alias="totalPatients")
    total_foods: int = Field(serialization_alias="totalFoods")
    total_diet_charts: int = Field(serialization_alias="totalDietCharts")


class PatientChart(DietChart):
    items: list[DietChartItem] = []


class PatientHome(BaseModel):
    """What a signed-in patient sees."""

    full_name: str
    patient: Optional[Patient] = None
    diet_charts: list[PatientChart] = []


class QuizSubmission(BaseModel):
    answers: dict[str, DoshaName]


class QuizResult(BaseModel):
    scores: dict[str, int]
    percentages: dict[str, int]
    dominant_dosha: str
    description: str
    recommended_foods: list[str]
