"""AI recommendation request/response models."""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Any, Optional, Literal

RequestType = Literal["meal_planning", "dosha_recommendation"]


class AssistantRequest(BaseModel):
    """Body accepted by the recommendation proxy."""

    model_config = ConfigDict(populate_by_name=True)

    type: RequestType
    dosha: Optional[str] = None
    meal_type: Optional[str] = Field(default=None, alias="mealType")
    preferences: Optional[str] = None
    available_foods: list[dict[str, Any]] = Field(default_factory=list, alias="availableFoods")

    @model_validator(mode="after")
    def _dosha_required_for_recommendation(self):
        if self.type == "dosha_recommendation" and not self.dosha:
            raise ValueError("Please select a dosha first")
        return self


class RecommendationResponse(BaseModel):
    """Complete recommendation text collected from the stream."""

    content: str
    generated_at: str
