"""Daily meal diary with goal tracking."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from coconut_nutrition.domain.meals import DailyGoals, DiarySummary, MacroProgress, Meal
from coconut_nutrition.services.generative import GenerativeAI

DEFAULT_MEAL_NAME = "Dish"
DEFAULT_MEAL_EMOJI = "🍴"

SAMPLE_MEALS: tuple[dict[str, object], ...] = (
    {
        "name": "Oatmeal with berries",
        "time": "08:30",
        "calories": 350,
        "protein": 12,
        "carbs": 55,
        "fat": 8,
        "emoji": "🥣",
    },
    {
        "name": "Chicken with rice",
        "time": "13:00",
        "calories": 520,
        "protein": 42,
        "carbs": 48,
        "fat": 14,
        "emoji": "🍗",
    },
    {
        "name": "Greek salad",
        "time": "16:30",
        "calories": 280,
        "protein": 8,
        "carbs": 12,
        "fat": 22,
        "emoji": "🥗",
    },
)


def _current_time() -> str:
    return datetime.now().strftime("%H:%M")


@dataclass
class MealDiaryService:
    """In-memory meal diary for the current day."""

    ai: GenerativeAI
    goals: DailyGoals = field(default_factory=DailyGoals)
    clock: Callable[[], str] = _current_time
    _meals: list[Meal] = field(default_factory=list)
    _next_id: int = 1

    def seed_samples(self) -> None:
        """Populate the diary with the sample meals."""
        for sample in SAMPLE_MEALS:
            self._append(**sample)  # type: ignore[arg-type]

    def list_meals(self) -> list[Meal]:
        """Return logged meals in insertion order."""
        return list(self._meals)

    def add_meal(  # noqa: PLR0913
        self,
        *,
        name: str | None,
        calories: float,
        protein: float,
        carbs: float,
        fat: float,
        emoji: str | None = None,
    ) -> Meal:
        """Log a manually entered meal stamped with the current time."""
        return self._append(
            name=(name or "").strip() or DEFAULT_MEAL_NAME,
            time=self.clock(),
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            emoji=emoji or DEFAULT_MEAL_EMOJI,
        )

    async def add_smart_meal(self, description: str) -> Meal | None:
        """Recognize a meal from text and log it; None when recognition fails."""
        result = await self.ai.describe_meal(description)
        if result is None:
            return None
        return self.add_meal(
            name=result.name,
            calories=result.calories,
            protein=result.protein,
            carbs=result.carbs,
            fat=result.fat,
            emoji=result.emoji,
        )

    def summary(self) -> DiarySummary:
        """Return totals and goal progress for the logged meals."""
        calories = sum(meal.calories for meal in self._meals)
        protein = sum(meal.protein for meal in self._meals)
        carbs = sum(meal.carbs for meal in self._meals)
        fat = sum(meal.fat for meal in self._meals)
        return DiarySummary(
            consumed_calories=calories,
            remaining_calories=max(0.0, self.goals.calories - calories),
            calories_fraction=_fraction(calories, self.goals.calories),
            protein=_progress(protein, self.goals.protein),
            carbs=_progress(carbs, self.goals.carbs),
            fat=_progress(fat, self.goals.fat),
            meal_count=len(self._meals),
        )

    def _append(  # noqa: PLR0913
        self,
        *,
        name: str,
        time: str,
        calories: float,
        protein: float,
        carbs: float,
        fat: float,
        emoji: str,
    ) -> Meal:
        meal = Meal(
            id=self._next_id,
            name=name,
            time=time,
            calories=float(calories),
            protein=float(protein),
            carbs=float(carbs),
            fat=float(fat),
            emoji=emoji,
        )
        self._next_id += 1
        self._meals.append(meal)
        return meal


def _fraction(current: float, goal: float) -> float:
    """Share of a goal reached, capped at 1."""
    if goal <= 0:
        return 1.0
    return min(current / goal, 1.0)


def _progress(current: float, goal: float) -> MacroProgress:
    return MacroProgress(
        current=current,
        goal=goal,
        percentage=round(_fraction(current, goal) * 100, 1),
    )
