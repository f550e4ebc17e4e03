"""Meal photo analysis flow."""

import logging
from dataclasses import dataclass

from coconut_nutrition.domain.photo import PhotoAnalysisResult
from coconut_nutrition.services.generative import GenerativeAI

_logger = logging.getLogger(__name__)


class EmptyPhotoError(ValueError):
    """Raised when an analysis is requested without image bytes."""


@dataclass
class PhotoAnalysisService:
    """Runs one-shot analysis of user submitted meal photos.

    Results are not cached or retried, and failures never touch the
    enrichment quota state.
    """

    ai: GenerativeAI

    async def analyze(
        self, image_bytes: bytes, media_type: str | None = None
    ) -> PhotoAnalysisResult | None:
        """Analyze a captured photo, returning None when analysis fails."""
        if not image_bytes:
            raise EmptyPhotoError("No image data provided")
        result = await self.ai.analyze_photo(image_bytes, media_type)
        if result is None:
            _logger.info("Photo analysis returned no result (%s bytes)", len(image_bytes))
        return result
