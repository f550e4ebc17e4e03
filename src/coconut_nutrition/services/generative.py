"""Generative AI service for nutrition, images and photo analysis."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from coconut_nutrition.domain.meals import SmartMealResult
from coconut_nutrition.domain.nutrition import HealthLabel, NutritionEstimate
from coconut_nutrition.domain.photo import PhotoAnalysisResult

_logger = logging.getLogger(__name__)

_HTTP_TOO_MANY_REQUESTS = 429
_QUOTA_MARKERS = ("429", "quota")

_NULLABLE_NUMBER: dict[str, object] = {"anyOf": [{"type": "number"}, {"type": "null"}]}
_HEALTH_LABEL: dict[str, object] = {
    "type": "string",
    "enum": [label.value for label in HealthLabel],
}

NUTRITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "calories_kcal": _NULLABLE_NUMBER,
        "protein_g": _NULLABLE_NUMBER,
        "carbs_g": _NULLABLE_NUMBER,
        "fat_g": _NULLABLE_NUMBER,
        "health_score_0_10": {"type": "number"},
        "health_label": _HEALTH_LABEL,
        "notes_short": {"type": "string"},
    },
    "required": [
        "calories_kcal",
        "protein_g",
        "carbs_g",
        "fat_g",
        "health_score_0_10",
        "health_label",
        "notes_short",
    ],
    "additionalProperties": False,
}

PHOTO_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "dish_name": {"type": "string"},
        "portion_guess": {"type": "string"},
        "calories_kcal": _NULLABLE_NUMBER,
        "protein_g": _NULLABLE_NUMBER,
        "carbs_g": _NULLABLE_NUMBER,
        "fat_g": _NULLABLE_NUMBER,
        "health_score_0_10": {"type": "number"},
        "health_label": _HEALTH_LABEL,
        "why_short": {"type": "string"},
        "tips": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "dish_name",
        "portion_guess",
        "calories_kcal",
        "protein_g",
        "carbs_g",
        "fat_g",
        "health_score_0_10",
        "health_label",
        "why_short",
        "tips",
    ],
    "additionalProperties": False,
}

SMART_MEAL_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "calories": {"type": "number"},
        "protein": {"type": "number"},
        "carbs": {"type": "number"},
        "fat": {"type": "number"},
        "emoji": {"type": "string"},
    },
    "required": ["name", "calories", "protein", "carbs", "fat", "emoji"],
    "additionalProperties": False,
}

PHOTO_PROMPT = (
    "Analyze this image of food. Estimate the calories, the portion size and "
    "how healthy it is. Be CAUTIOUS with estimates, make no medical claims and "
    "account for uncertainty. If the photo does not show food, set "
    "calories_kcal to null. Health scale: 0-3 unfavorable, 4-6 neutral, "
    "7-10 favorable."
)

IMAGE_STYLE_GUIDE = """Style and presentation:
- realistic food photography (NOT an illustration)
- soft natural light
- looks like a modern healthy cafe
- neat, minimalist plating
- neutral or light background (wood / stone)
- camera angle 30-45 degrees or a slight top-down
- focus on texture and appetite appeal
- natural, not oversaturated colors

Restrictions:
- no people, hands or faces
- no text, logos or watermarks
- no extra props
- a single dish in frame

Technical requirements:
- square image (1:1)
- high detail, sharp focus
- one consistent style for the whole menu"""


class QuotaExceededError(RuntimeError):
    """Raised when the provider reports rate-limit or usage exhaustion."""


class GenerativeClient(Protocol):
    """Interface for the hosted generative model."""

    async def generate_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return a JSON object matching the given schema."""

    async def generate_image(self, *, model: str, prompt: str) -> tuple[str, str]:
        """Return a generated image as a base64 payload and its MIME type."""


@dataclass
class GenerativeAI:
    """Service that builds prompts and validates generative results."""

    client: GenerativeClient
    model: str
    image_model: str
    reasoning_effort: str | None = None
    store: bool = False

    async def estimate_nutrition(
        self,
        title: str,
        ingredients: list[str] | tuple[str, ...],
        steps: list[str] | tuple[str, ...] | None = None,
    ) -> NutritionEstimate | None:
        """Estimate per-serving nutrition for a recipe.

        Raises QuotaExceededError when the provider signals exhaustion; every
        other failure, including a malformed response, yields None.
        """
        prompt = _nutrition_prompt(title, ingredients, steps)
        try:
            raw = await self._generate_json(prompt, NUTRITION_SCHEMA, "recipe_nutrition")
            return NutritionEstimate.model_validate(raw)
        except Exception as exc:
            if is_quota_error(exc):
                raise QuotaExceededError(str(exc)) from exc
            _logger.warning("Nutrition estimate failed for %s: %s", title, exc)
            return None

    async def generate_image(
        self,
        title: str,
        category_label: str,
        ingredients: list[str] | tuple[str, ...],
    ) -> str | None:
        """Generate a food photo for a recipe and return it as a data URI."""
        prompt = _image_prompt(title, category_label, ingredients)
        try:
            payload, mime_type = await self.client.generate_image(
                model=self.image_model, prompt=prompt
            )
        except Exception as exc:
            _logger.warning("Image generation failed for %s: %s", title, exc)
            return None
        if not payload:
            return None
        return f"data:{mime_type};base64,{payload}"

    async def analyze_photo(
        self, image_bytes: bytes, media_type: str | None = None
    ) -> PhotoAnalysisResult | None:
        """Analyze a meal photo; None when the call or parsing fails."""
        data_url = to_data_url(image_bytes, media_type)
        try:
            raw = await self._generate_json(
                PHOTO_PROMPT, PHOTO_SCHEMA, "meal_photo", image_data_url=data_url
            )
            return PhotoAnalysisResult.model_validate(raw)
        except Exception as exc:
            _logger.warning("Photo analysis failed: %s", exc)
            return None

    async def describe_meal(self, description: str) -> SmartMealResult | None:
        """Recognize a meal and its macros from a short text description."""
        prompt = (
            "Estimate the nutrition of this meal for one serving. "
            "Pick a short dish name and a single fitting food emoji.\n"
            f"Meal: {description}"
        )
        try:
            raw = await self._generate_json(prompt, SMART_MEAL_SCHEMA, "smart_meal")
            return SmartMealResult.model_validate(raw)
        except Exception as exc:
            _logger.warning("Meal description analysis failed: %s", exc)
            return None

    async def _generate_json(
        self,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        return await self.client.generate_json(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=prompt,
            schema=schema,
            schema_name=schema_name,
            image_data_url=image_data_url,
        )


def is_quota_error(exc: BaseException) -> bool:
    """Return True when an exception signals rate-limit or quota exhaustion."""
    if isinstance(exc, ValidationError):
        return False
    status_code = getattr(exc, "status_code", None)
    if status_code is None:
        status_code = getattr(getattr(exc, "response", None), "status_code", None)
    if status_code == _HTTP_TOO_MANY_REQUESTS:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)


def to_data_url(image_bytes: bytes, media_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = media_type if media_type and media_type.startswith("image/") else None
    mime_type = mime_type or _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def _nutrition_prompt(
    title: str,
    ingredients: list[str] | tuple[str, ...],
    steps: list[str] | tuple[str, ...] | None,
) -> str:
    lines = [
        "Analyze this recipe and estimate its nutrition for ONE serving.",
        f"Title: {title}",
        f"Ingredients: {', '.join(ingredients)}",
    ]
    if steps:
        lines.append(f"Steps: {' '.join(steps)}")
    lines.append(
        "Estimate cautiously. Use null for values you cannot estimate. "
        "Health scale: 0-3 unfavorable, 4-6 neutral, 7-10 favorable."
    )
    return "\n".join(lines)


def _image_prompt(
    title: str, category_label: str, ingredients: list[str] | tuple[str, ...]
) -> str:
    return (
        "Photorealistic food photo of a single finished dish.\n\n"
        f"Dish name: {title}\n"
        f"Category: {category_label}\n"
        f"Key ingredients: {', '.join(ingredients)}\n\n"
        f"{IMAGE_STYLE_GUIDE}"
    )
