"""Pydantic request and response models with display formatting."""

import math

from pydantic import BaseModel, Field

from coconut_nutrition.domain.nutrition import NutritionEstimate, clamp_health_score
from coconut_nutrition.domain.photo import PhotoAnalysisResult
from coconut_nutrition.domain.recipes import Recipe
from coconut_nutrition.services.enrichment import EnrichmentStatus

UNKNOWN_VALUE = "—"
CALCULATING = "Calculating..."
QUOTA_BANNER = "AI limit reached, try again later"
ESTIMATE_DISCLAIMER = (
    "* Estimates are approximate. Accuracy needs the weight and exact composition."
)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_calories(value: float | None) -> str:
    """Render calories as a whole number, or a dash when unknown."""
    if value is None or not math.isfinite(value):
        return UNKNOWN_VALUE
    return str(_round_half_up(value))


def format_grams(value: float | None) -> str:
    """Render a macro amount in grams, or a dash when unknown."""
    if value is None or not math.isfinite(value):
        return UNKNOWN_VALUE
    return f"{round(value, 1):g} g"


def format_health_score(raw: float) -> str:
    """Render a health score clamped to 0-10 as ``N/10``."""
    return f"{_round_half_up(clamp_health_score(raw))}/10"


class NutritionView(BaseModel):
    """Display-ready nutrition for a recipe."""

    calories: str
    protein: str
    carbs: str
    fat: str
    health_score: float
    health_score_display: str
    health_label: str
    notes: str

    @classmethod
    def from_estimate(cls, estimate: NutritionEstimate) -> "NutritionView":
        """Build the view, clamping the health score."""
        return cls(
            calories=format_calories(estimate.calories_kcal),
            protein=format_grams(estimate.protein_g),
            carbs=format_grams(estimate.carbs_g),
            fat=format_grams(estimate.fat_g),
            health_score=clamp_health_score(estimate.health_score_0_10),
            health_score_display=format_health_score(estimate.health_score_0_10),
            health_label=estimate.health_label.value,
            notes=estimate.notes_short,
        )


class CategoryView(BaseModel):
    """Category tab."""

    key: str
    label: str


class RecipeCard(BaseModel):
    """Recipe list entry."""

    id: str
    title: str
    category: str
    category_label: str
    image_url: str | None
    calories: str | None
    health_score_display: str

    @classmethod
    def build(
        cls, recipe: Recipe, estimate: NutritionEstimate | None, has_image: bool
    ) -> "RecipeCard":
        """Build a card from a recipe and its enrichment state."""
        return cls(
            id=recipe.id,
            title=recipe.title,
            category=recipe.category,
            category_label=recipe.category_label,
            image_url=_image_url(recipe) if has_image else None,
            calories=format_calories(estimate.calories_kcal) if estimate else None,
            health_score_display=(
                format_health_score(estimate.health_score_0_10)
                if estimate
                else CALCULATING
            ),
        )


class RecipeDetail(BaseModel):
    """Full recipe view."""

    id: str
    title: str
    category: str
    category_label: str
    image_url: str | None
    nutrition: NutritionView | None
    ingredients: list[str]
    steps: list[str]
    source_page: int

    @classmethod
    def build(
        cls, recipe: Recipe, estimate: NutritionEstimate | None, has_image: bool
    ) -> "RecipeDetail":
        """Build the detail view from a recipe and its enrichment state."""
        return cls(
            id=recipe.id,
            title=recipe.title,
            category=recipe.category,
            category_label=recipe.category_label,
            image_url=_image_url(recipe) if has_image else None,
            nutrition=NutritionView.from_estimate(estimate) if estimate else None,
            ingredients=list(recipe.ingredients),
            steps=list(recipe.steps),
            source_page=recipe.source_page,
        )


class PhotoAnalysisView(BaseModel):
    """Display-ready photo analysis."""

    dish_name: str
    portion_guess: str
    calories: str
    protein: str
    carbs: str
    fat: str
    health_score: float
    health_score_display: str
    health_label: str
    why_short: str
    tips: list[str]
    disclaimer: str = ESTIMATE_DISCLAIMER

    @classmethod
    def from_result(cls, result: PhotoAnalysisResult) -> "PhotoAnalysisView":
        """Build the view; unknown values render as a dash."""
        return cls(
            dish_name=result.dish_name,
            portion_guess=result.portion_guess,
            calories=format_calories(result.calories_kcal),
            protein=format_grams(result.protein_g),
            carbs=format_grams(result.carbs_g),
            fat=format_grams(result.fat_g),
            health_score=clamp_health_score(result.health_score_0_10),
            health_score_display=format_health_score(result.health_score_0_10),
            health_label=result.health_label.value,
            why_short=result.why_short,
            tips=result.tips,
        )


class EnrichmentStatusView(BaseModel):
    """Background enrichment progress with the quota banner."""

    quota_exceeded: bool
    banner: str | None
    running: bool
    recipes_total: int
    nutrition_ready: int
    images_ready: int
    pending_nutrition: list[str]
    pending_images: list[str]

    @classmethod
    def from_status(cls, status: EnrichmentStatus) -> "EnrichmentStatusView":
        """Build the view from a worker status snapshot."""
        return cls(
            quota_exceeded=status.quota_exceeded,
            banner=QUOTA_BANNER if status.quota_exceeded else None,
            running=status.running,
            recipes_total=status.recipes_total,
            nutrition_ready=status.nutrition_ready,
            images_ready=status.images_ready,
            pending_nutrition=status.pending_nutrition,
            pending_images=status.pending_images,
        )


class MealCreateRequest(BaseModel):
    """Manually entered meal."""

    name: str | None = None
    calories: float = Field(ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    emoji: str | None = None


class SmartMealRequest(BaseModel):
    """Free-text meal description."""

    description: str = Field(min_length=1)


def _image_url(recipe: Recipe) -> str:
    return f"/recipes/{recipe.id}/image"
