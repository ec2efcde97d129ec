"""Patient models."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal

Gender = Literal["male", "female", "other"]
DietaryHabit = Literal["vegetarian", "non_vegetarian", "vegan", "eggetarian"]


class PatientCreate(BaseModel):
    """New patient intake form."""

    full_name: str = Field(min_length=1)
    age: int = Field(ge=0, le=130)
    gender: Gender
    email: Optional[str] = None
    contact_number: Optional[str] = None
    dietary_habit: DietaryHabit = "vegetarian"
    meal_frequency: int = Field(default=3, ge=1)
    water_intake_liters: float = Field(default=2.0, ge=0)
    bowel_movements_per_day: int = Field(default=1, ge=0)
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    current_medications: Optional[str] = None
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)


class Patient(PatientCreate):
    """Stored patient record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    practitioner_id: str
    meal_frequency: Optional[int] = None
    water_intake_liters: Optional[float] = None
    bowel_movements_per_day: Optional[int] = None
    created_at: str
    updated_at: str

    @property
    def bmi(self) -> Optional[float]:
        if not self.height_cm or not self.weight_kg:
            return None
        return round(self.weight_kg / (self.height_cm / 100) ** 2, 1)


class DietChartSummary(BaseModel):
    """Diet chart as listed on a patient's page."""

    id: str
    title: str
    chart_date: str
    notes: Optional[str] = None
    total_calories: Optional[float] = None
    created_at: str


class PatientDetail(BaseModel):
    """Patient with derived stats and their diet charts."""

    patient: Patient
    bmi: Optional[float] = None
    diet_charts: list[DietChartSummary] = []
