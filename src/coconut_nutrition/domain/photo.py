"""Models for meal photo analysis results."""

from pydantic import BaseModel, ConfigDict, Field

from coconut_nutrition.domain.nutrition import HealthLabel


class PhotoAnalysisResult(BaseModel):
    """Structured output for a single analyzed meal photo.

    ``calories_kcal`` is ``None`` when the photo does not show food or the
    amount cannot be estimated.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    dish_name: str
    portion_guess: str
    calories_kcal: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    health_score_0_10: float
    health_label: HealthLabel
    why_short: str
    tips: list[str] = Field(default_factory=list)
