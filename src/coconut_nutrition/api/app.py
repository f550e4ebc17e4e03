"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import Response

from coconut_nutrition.api.meals import router as meals_router
from coconut_nutrition.api.views import (
    CategoryView,
    EnrichmentStatusView,
    PhotoAnalysisView,
    RecipeCard,
    RecipeDetail,
)
from coconut_nutrition.app_logging import configure_logging
from coconut_nutrition.containers import AppContainer
from coconut_nutrition.domain.recipes import category_label
from coconut_nutrition.services.photo import EmptyPhotoError

PHOTO_ANALYSIS_FAILED = "Could not analyze the dish."


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(
        container.settings.log_level, container.settings.library_log_level
    )
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        if state_container.settings.enrichment_enabled:
            state_container.enrichment_worker.start()
        else:
            logger.info("Background enrichment disabled")
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(meals_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/categories")
    async def list_categories(request: Request) -> list[CategoryView]:
        """Return recipe categories in tab order."""
        state_container: AppContainer = request.app.state.container
        return [
            CategoryView(key=key, label=category_label(key))
            for key in state_container.recipe_store.categories()
        ]

    @app.get("/recipes")
    async def list_recipes(
        request: Request, category: str | None = None, q: str = ""
    ) -> list[RecipeCard]:
        """Return recipes in a category filtered by a title search."""
        state_container: AppContainer = request.app.state.container
        recipes = state_container.recipe_store.filter(category=category, query=q)
        return [
            RecipeCard.build(
                recipe,
                state_container.nutrition_cache.get(recipe.id),
                recipe.id in state_container.image_cache,
            )
            for recipe in recipes
        ]

    @app.get("/recipes/{recipe_id}")
    async def recipe_detail(recipe_id: str, request: Request) -> RecipeDetail:
        """Return a recipe with its nutrition when available."""
        state_container: AppContainer = request.app.state.container
        recipe = state_container.recipe_store.get(recipe_id)
        if recipe is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return RecipeDetail.build(
            recipe,
            state_container.nutrition_cache.get(recipe.id),
            recipe.id in state_container.image_cache,
        )

    @app.get("/recipes/{recipe_id}/image")
    async def recipe_image(recipe_id: str, request: Request) -> Response:
        """Return the generated image for a recipe."""
        state_container: AppContainer = request.app.state.container
        image_ref = state_container.image_cache.get(recipe_id)
        if image_ref is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        decoded = _decode_data_url(image_ref)
        if decoded is None:
            logger.warning("Cached image for %s is not a valid data URI", recipe_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        content, media_type = decoded
        return Response(content=content, media_type=media_type)

    @app.get("/enrichment/status")
    async def enrichment_status(request: Request) -> EnrichmentStatusView:
        """Return background enrichment progress and the quota banner."""
        state_container: AppContainer = request.app.state.container
        return EnrichmentStatusView.from_status(
            state_container.enrichment_worker.status()
        )

    @app.post("/photo/analyze")
    async def analyze_photo(request: Request) -> PhotoAnalysisView:
        """Analyze a raw meal photo sent as the request body."""
        state_container: AppContainer = request.app.state.container
        image_bytes = await request.body()
        media_type = request.headers.get("content-type")
        try:
            result = await state_container.photo_service.analyze(
                image_bytes, media_type
            )
        except EmptyPhotoError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        if result is None:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=PHOTO_ANALYSIS_FAILED
            )
        return PhotoAnalysisView.from_result(result)

    return app


def _decode_data_url(data_url: str) -> tuple[bytes, str] | None:
    """Split a base64 data URI into raw bytes and its media type."""
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or not header.endswith(";base64"):
        return None
    media_type = header[len("data:") : -len(";base64")] or "application/octet-stream"
    try:
        return base64.b64decode(payload, validate=True), media_type
    except (binascii.Error, ValueError):
        return None
