"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from coconut_nutrition.config import Settings
from coconut_nutrition.containers import AppContainer
from coconut_nutrition.services.cache import ImageCache, KeyValueStore, NutritionCache
from coconut_nutrition.services.enrichment import EnrichmentWorker
from coconut_nutrition.services.generative import GenerativeAI, GenerativeClient
from coconut_nutrition.services.meals import MealDiaryService
from coconut_nutrition.services.photo import PhotoAnalysisService
from coconut_nutrition.services.recipes import RecipeStore

NUTRITION_PAYLOAD: dict[str, object] = {
    "calories_kcal": 420,
    "protein_g": 31,
    "carbs_g": 38,
    "fat_g": 12.5,
    "health_score_0_10": 8,
    "health_label": "favorable",
    "notes_short": "Balanced meal with lean protein.",
}

PHOTO_PAYLOAD: dict[str, object] = {
    "dish_name": "Caesar salad",
    "portion_guess": "About 300 g",
    "calories_kcal": 380,
    "protein_g": 22,
    "carbs_g": 14,
    "fat_g": 26,
    "health_score_0_10": 6,
    "health_label": "neutral",
    "why_short": "Good protein, heavy dressing.",
    "tips": ["Ask for dressing on the side."],
}

SMART_MEAL_PAYLOAD: dict[str, object] = {
    "name": "Banana smoothie",
    "calories": 250,
    "protein": 9,
    "carbs": 45,
    "fat": 4,
    "emoji": "🍌",
}

RECIPE_RECORDS: list[dict[str, object]] = [
    {
        "id": "r1",
        "category": "breakfast",
        "title": "Berry oatmeal",
        "ingredients": ["oats", "milk", "berries"],
        "steps": ["Cook oats in milk.", "Top with berries."],
        "image_file": "r1.jpg",
        "source_page": 3,
    },
    {
        "id": "r2",
        "category": "lunch",
        "title": "Lentil soup",
        "ingredients": ["red lentils", "onion", "carrot"],
        "steps": ["Simmer everything.", "Blend."],
        "image_file": "r2.jpg",
        "source_page": 12,
    },
    {
        "id": "r3",
        "category": "dinner",
        "title": "Baked salmon",
        "ingredients": ["salmon", "lemon"],
        "steps": ["Bake for 15 minutes."],
        "image_file": "r3.jpg",
        "source_page": 20,
    },
]


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    values: dict[str, str] = field(default_factory=dict)
    writes: int = 0

    def get_text(self, key: str) -> str | None:
        return self.values.get(key)

    def set_text(self, key: str, value: str) -> None:
        self.writes += 1
        self.values[key] = value


@dataclass
class FakeGenerativeClient(GenerativeClient):
    """Fake generative client with per-title failures and call recording."""

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "recipe_nutrition": dict(NUTRITION_PAYLOAD),
            "meal_photo": dict(PHOTO_PAYLOAD),
            "smart_meal": dict(SMART_MEAL_PAYLOAD),
        }
    )
    json_failures: dict[str, Exception] = field(default_factory=dict)
    image_failures: dict[str, Exception] = field(default_factory=dict)
    json_calls: list[tuple[str, str]] = field(default_factory=list)
    image_calls: list[str] = field(default_factory=list)
    image_data_urls: list[str | None] = field(default_factory=list)
    image_payload: str = "aW1hZ2U="

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
        self.json_calls.append((schema_name, prompt))
        self.image_data_urls.append(image_data_url)
        await asyncio.sleep(0)
        for title, exc in self.json_failures.items():
            if f"Title: {title}" in prompt:
                raise exc
        if schema_name not in self.payloads:
            raise RuntimeError(f"no payload for {schema_name}")
        return self.payloads[schema_name]

    async def generate_image(self, *, model: str, prompt: str) -> tuple[str, str]:
        self.image_calls.append(prompt)
        await asyncio.sleep(0)
        for title, exc in self.image_failures.items():
            if f"Dish name: {title}" in prompt:
                raise exc
        return self.image_payload, "image/png"

    def nutrition_titles(self) -> list[str]:
        """Titles of recipes for which nutrition was requested, in order."""
        titles = []
        for schema_name, prompt in self.json_calls:
            if schema_name == "recipe_nutrition":
                titles.append(prompt.split("Title: ", 1)[1].split("\n", 1)[0])
        return titles

    def image_titles(self) -> list[str]:
        """Titles of recipes for which an image was requested, in order."""
        return [
            prompt.split("Dish name: ", 1)[1].split("\n", 1)[0]
            for prompt in self.image_calls
        ]


@dataclass
class RecordingDelay:
    """Records requested delays and yields control without sleeping."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        storage_path=tmp_path / "storage.json",
        enrichment_enabled=False,
        seed_sample_meals=False,
    )


@pytest.fixture
def recipe_store() -> RecipeStore:
    return RecipeStore.from_records(RECIPE_RECORDS)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def generative_client() -> FakeGenerativeClient:
    return FakeGenerativeClient()


@pytest.fixture
def generative_ai(generative_client: FakeGenerativeClient) -> GenerativeAI:
    return GenerativeAI(
        client=generative_client, model="gpt-5.2", image_model="gpt-image-1"
    )


@pytest.fixture
def delay() -> RecordingDelay:
    return RecordingDelay()


@pytest.fixture
def worker(
    recipe_store: RecipeStore,
    kv_store: InMemoryKeyValueStore,
    generative_ai: GenerativeAI,
    delay: RecordingDelay,
) -> EnrichmentWorker:
    return EnrichmentWorker(
        recipes=recipe_store,
        nutrition_cache=NutritionCache.load(kv_store),
        image_cache=ImageCache(),
        ai=generative_ai,
        delay=delay,
    )


@pytest.fixture
def container(
    settings: Settings,
    recipe_store: RecipeStore,
    worker: EnrichmentWorker,
    generative_ai: GenerativeAI,
) -> AppContainer:
    async def close_resources() -> None:
        await worker.stop()

    return AppContainer(
        settings=settings,
        recipe_store=recipe_store,
        nutrition_cache=worker.nutrition_cache,
        image_cache=worker.image_cache,
        generative_ai=generative_ai,
        enrichment_worker=worker,
        photo_service=PhotoAnalysisService(generative_ai),
        meal_diary=MealDiaryService(ai=generative_ai, clock=lambda: "12:00"),
        close_resources=close_resources,
    )
