"""API route modules."""
from .foods import router as foods_router
from .patients import router as patients_router
from .diet_charts import router as diet_charts_router
from .meal_calendar import router as meal_calendar_router
from .dosha_quiz import router as dosha_quiz_router
from .dashboard import router as dashboard_router
from .assistant import router as assistant_router

__all__ = [
    "foods_router",
    "patients_router",
    "diet_charts_router",
    "meal_calendar_router",
    "dosha_quiz_router",
    "dashboard_router",
    "assistant_router",
]
