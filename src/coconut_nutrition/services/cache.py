"""Recipe enrichment caches."""

import json
import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from coconut_nutrition.domain.nutrition import NutritionEstimate

NUTRITION_STORAGE_KEY = "nutritionById"

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Durable storage holding raw text under string keys."""

    def get_text(self, key: str) -> str | None:
        """Return the stored text for a key, if any."""

    def set_text(self, key: str, value: str) -> None:
        """Replace the stored text for a key."""


@dataclass
class NutritionCache:
    """Recipe id to nutrition estimate mapping persisted in a key-value store.

    Entries never expire. Every write re-serializes the full mapping under a
    single storage key.
    """

    store: KeyValueStore
    storage_key: str = NUTRITION_STORAGE_KEY
    _entries: dict[str, NutritionEstimate] = field(default_factory=dict)

    @classmethod
    def load(
        cls, store: KeyValueStore, storage_key: str = NUTRITION_STORAGE_KEY
    ) -> "NutritionCache":
        """Restore the cache from storage, starting empty on unreadable data."""
        cache = cls(store=store, storage_key=storage_key)
        cache._entries = _parse_entries(store.get_text(storage_key))
        return cache

    def get(self, recipe_id: str) -> NutritionEstimate | None:
        """Return the cached estimate for a recipe."""
        return self._entries.get(recipe_id)

    def set(self, recipe_id: str, estimate: NutritionEstimate) -> None:
        """Store an estimate and persist the whole mapping."""
        self._entries[recipe_id] = estimate
        self.store.set_text(self.storage_key, self._serialize())

    def snapshot(self) -> dict[str, NutritionEstimate]:
        """Return a shallow copy of all entries."""
        return dict(self._entries)

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _serialize(self) -> str:
        payload = {
            recipe_id: estimate.model_dump(mode="json")
            for recipe_id, estimate in self._entries.items()
        }
        return json.dumps(payload, ensure_ascii=False)


@dataclass
class ImageCache:
    """In-memory recipe id to image data URI mapping."""

    _entries: dict[str, str] = field(default_factory=dict)

    def get(self, recipe_id: str) -> str | None:
        """Return the cached image reference for a recipe."""
        return self._entries.get(recipe_id)

    def set(self, recipe_id: str, image_ref: str) -> None:
        """Store an image reference."""
        self._entries[recipe_id] = image_ref

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _parse_entries(raw: str | None) -> dict[str, NutritionEstimate]:
    """Parse persisted cache text into estimates, skipping anything invalid."""
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        _logger.warning("Stored nutrition cache is not valid JSON; starting empty")
        return {}
    if not isinstance(payload, dict):
        _logger.warning("Stored nutrition cache is not a mapping; starting empty")
        return {}
    entries: dict[str, NutritionEstimate] = {}
    for recipe_id, value in payload.items():
        try:
            entries[str(recipe_id)] = NutritionEstimate.model_validate(value)
        except ValidationError:
            _logger.warning("Dropping invalid stored nutrition for %s", recipe_id)
    return entries
