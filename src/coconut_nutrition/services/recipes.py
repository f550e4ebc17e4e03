"""Recipe store backed by the bundled dataset."""

import json
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from coconut_nutrition.domain.recipes import CATEGORY_LABELS, Recipe


@dataclass(frozen=True)
class RecipeStore:
    """Immutable, ordered collection of recipes."""

    recipes: tuple[Recipe, ...]

    @classmethod
    def from_path(cls, path: Path) -> "RecipeStore":
        """Load recipes from a JSON list on disk."""
        payload = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_records(payload)

    @classmethod
    def from_records(cls, records: list[dict[str, object]]) -> "RecipeStore":
        """Build a store from raw recipe dictionaries, keeping their order."""
        recipes = tuple(_recipe_from_record(record) for record in records)
        seen: set[str] = set()
        for recipe in recipes:
            if recipe.id in seen:
                raise ValueError(f"Duplicate recipe id: {recipe.id}")
            seen.add(recipe.id)
        return cls(recipes=recipes)

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self.recipes)

    def __len__(self) -> int:
        return len(self.recipes)

    def get(self, recipe_id: str) -> Recipe | None:
        """Return a recipe by id."""
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None

    def categories(self) -> list[str]:
        """Return known categories in display order, then any extras."""
        present = {recipe.category for recipe in self.recipes}
        ordered = [key for key in CATEGORY_LABELS if key in present]
        extras = sorted(present - set(CATEGORY_LABELS))
        return ordered + extras

    def filter(self, category: str | None = None, query: str = "") -> list[Recipe]:
        """Return recipes in a category whose title contains the query."""
        needle = query.strip().lower()
        return [
            recipe
            for recipe in self.recipes
            if (category is None or recipe.category == category)
            and (not needle or needle in recipe.title.lower())
        ]


def _recipe_from_record(record: dict[str, object]) -> Recipe:
    return Recipe(
        id=str(record["id"]),
        category=str(record["category"]),
        title=str(record["title"]),
        ingredients=tuple(str(item) for item in record.get("ingredients", [])),
        steps=tuple(str(step) for step in record.get("steps", [])),
        image_file=str(record.get("image_file", "")),
        source_page=int(record.get("source_page", 0)),
    )
