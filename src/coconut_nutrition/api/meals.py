"""Meal diary endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from coconut_nutrition.api.views import MealCreateRequest, SmartMealRequest

if TYPE_CHECKING:
    from coconut_nutrition.containers import AppContainer

router = APIRouter(prefix="/meals", tags=["meals"])

SMART_MEAL_FAILED = (
    "Could not recognize the dish. Try again or enter the values manually."
)


@router.get("")
async def list_meals(request: Request) -> dict[str, object]:
    """Return today's logged meals."""
    container: AppContainer = request.app.state.container
    return {"meals": [asdict(meal) for meal in container.meal_diary.list_meals()]}


@router.get("/summary")
async def meals_summary(request: Request) -> dict[str, object]:
    """Return totals and progress toward the daily goals."""
    container: AppContainer = request.app.state.container
    diary = container.meal_diary
    return {"goals": asdict(diary.goals), "summary": asdict(diary.summary())}


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_meal(payload: MealCreateRequest, request: Request) -> dict[str, object]:
    """Log a manually entered meal."""
    container: AppContainer = request.app.state.container
    meal = container.meal_diary.add_meal(
        name=payload.name,
        calories=payload.calories,
        protein=payload.protein,
        carbs=payload.carbs,
        fat=payload.fat,
        emoji=payload.emoji,
    )
    return asdict(meal)


@router.post("/smart", status_code=status.HTTP_201_CREATED)
async def add_smart_meal(
    payload: SmartMealRequest, request: Request
) -> dict[str, object]:
    """Log a meal recognized from a text description."""
    container: AppContainer = request.app.state.container
    meal = await container.meal_diary.add_smart_meal(payload.description)
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=SMART_MEAL_FAILED
        )
    return asdict(meal)
