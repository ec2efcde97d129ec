"""Pydantic models for practice API requests and responses."""
from .food import Food, FoodProfileSummary
from .patient import Patient, PatientCreate, PatientDetail
from .diet_chart import DietChart, DietChartCreate, DietChartDetail, DietChartItem
from .meal_calendar import PlaceEntryRequest, Template, TemplateCreate
from .assistant import AssistantRequest, RecommendationResponse
from .dashboard import AdminStats, DietitianStats, PatientHome, QuizResult

__all__ = [
    "Food",
    "FoodProfileSummary",
    "Patient",
    "PatientCreate",
    "PatientDetail",
    "DietChart",
    "DietChartCreate",
    "DietChartDetail",
    "DietChartItem",
    "PlaceEntryRequest",
    "Template",
    "TemplateCreate",
    "AssistantRequest",
    "RecommendationResponse",
    "AdminStats",
    "DietitianStats",
    "PatientHome",
    "QuizResult",
]
