"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from coconut_nutrition.adapters.file_store import FileKeyValueStore
from coconut_nutrition.adapters.openai_client import OpenAIGenerativeClient
from coconut_nutrition.adapters.supabase_store import SupabaseKeyValueStore
from coconut_nutrition.config import Settings, parse_storage_backend
from coconut_nutrition.services.cache import ImageCache, KeyValueStore, NutritionCache
from coconut_nutrition.services.enrichment import EnrichmentWorker
from coconut_nutrition.services.generative import GenerativeAI
from coconut_nutrition.services.meals import MealDiaryService
from coconut_nutrition.services.photo import PhotoAnalysisService
from coconut_nutrition.services.recipes import RecipeStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    recipe_store: RecipeStore
    nutrition_cache: NutritionCache
    image_cache: ImageCache
    generative_ai: GenerativeAI
    enrichment_worker: EnrichmentWorker
    photo_service: PhotoAnalysisService
    meal_diary: MealDiaryService
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> KeyValueStore:
    """Create the durable key-value store selected in settings."""
    backend = parse_storage_backend(settings.storage_backend)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage requires SUPABASE_URL and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseKeyValueStore(client)
    return FileKeyValueStore(settings.storage_path)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    recipe_store = RecipeStore.from_path(resolved_settings.recipes_path)
    nutrition_cache = NutritionCache.load(build_store(resolved_settings))
    image_cache = ImageCache()
    openai_client = OpenAIGenerativeClient.create(resolved_settings.openai_api_key)
    generative_ai = GenerativeAI(
        client=openai_client,
        model=resolved_settings.openai_model,
        image_model=resolved_settings.openai_image_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    enrichment_worker = EnrichmentWorker(
        recipes=recipe_store,
        nutrition_cache=nutrition_cache,
        image_cache=image_cache,
        ai=generative_ai,
        nutrition_delay_range=(
            resolved_settings.nutrition_delay_min_seconds,
            resolved_settings.nutrition_delay_max_seconds,
        ),
        image_delay_seconds=resolved_settings.image_delay_seconds,
        idle_seconds=resolved_settings.enrichment_idle_seconds,
    )
    meal_diary = MealDiaryService(ai=generative_ai)
    if resolved_settings.seed_sample_meals:
        meal_diary.seed_samples()

    async def close_resources() -> None:
        await enrichment_worker.stop()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        recipe_store=recipe_store,
        nutrition_cache=nutrition_cache,
        image_cache=image_cache,
        generative_ai=generative_ai,
        enrichment_worker=enrichment_worker,
        photo_service=PhotoAnalysisService(generative_ai),
        meal_diary=meal_diary,
        close_resources=close_resources,
    )
