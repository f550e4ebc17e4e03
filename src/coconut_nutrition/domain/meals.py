"""Domain models for the meal diary."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class Meal:
    """A logged meal with its macros."""

    id: int
    name: str
    time: str
    calories: float
    protein: float
    carbs: float
    fat: float
    emoji: str


@dataclass(frozen=True)
class DailyGoals:
    """Daily macro targets."""

    calories: float = 2200
    protein: float = 150
    carbs: float = 250
    fat: float = 70


@dataclass(frozen=True)
class MacroProgress:
    """Progress toward one macro goal."""

    current: float
    goal: float
    percentage: float


@dataclass(frozen=True)
class DiarySummary:
    """Totals for the day against the configured goals."""

    consumed_calories: float
    remaining_calories: float
    calories_fraction: float
    protein: MacroProgress
    carbs: MacroProgress
    fat: MacroProgress
    meal_count: int


class SmartMealResult(BaseModel):
    """Meal recognized from a free-text description."""

    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    emoji: str
