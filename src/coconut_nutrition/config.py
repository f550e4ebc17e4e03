"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_RECIPES_PATH = Path(__file__).resolve().parent / "data" / "recipes.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    storage_backend: str = "file"
    storage_path: Path = Path("coconut_storage.json")
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    recipes_path: Path = DEFAULT_RECIPES_PATH
    enrichment_enabled: bool = True
    nutrition_delay_min_seconds: float = 1.5
    nutrition_delay_max_seconds: float = 2.5
    image_delay_seconds: float = 0.5
    enrichment_idle_seconds: float = 30.0
    seed_sample_meals: bool = True
    log_level: str = "INFO"
    library_log_level: str = "WARNING"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_storage_backend(raw: str) -> str:
    """Normalize the configured storage backend name."""
    cleaned = raw.strip().lower()
    if cleaned not in {"file", "supabase"}:
        raise ValueError(f"Unsupported storage backend: {raw!r}")
    return cleaned
