"""Nutrition estimate models produced by the generative service."""

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

HEALTH_SCORE_MIN = 0.0
HEALTH_SCORE_MAX = 10.0


class HealthLabel(StrEnum):
    """Coarse healthiness verdict."""

    FAVORABLE = "favorable"
    NEUTRAL = "neutral"
    UNFAVORABLE = "unfavorable"


class NutritionEstimate(BaseModel):
    """Per-serving nutrition estimate for a recipe.

    Macro values are ``None`` when the model could not estimate them. The
    health score is kept exactly as returned; consumers clamp it before display.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    calories_kcal: float | None
    protein_g: float | None
    carbs_g: float | None
    fat_g: float | None
    health_score_0_10: float
    health_label: HealthLabel
    notes_short: str


def clamp_health_score(raw: float) -> float:
    """Clamp a raw health score into the displayable 0-10 range.

    ``NaN`` maps to the minimum.
    """
    value = float(raw)
    if math.isnan(value):
        return HEALTH_SCORE_MIN
    return max(HEALTH_SCORE_MIN, min(HEALTH_SCORE_MAX, value))
