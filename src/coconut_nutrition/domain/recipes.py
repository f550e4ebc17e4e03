"""Domain models for the recipe book."""

from dataclasses import dataclass

CATEGORY_LABELS: dict[str, str] = {
    "breakfast": "Breakfasts",
    "lunch": "Lunches",
    "dinner": "Dinners",
    "snack": "Snacks",
}


@dataclass(frozen=True)
class Recipe:
    """Static recipe record from the bundled dataset."""

    id: str
    category: str
    title: str
    ingredients: tuple[str, ...]
    steps: tuple[str, ...]
    image_file: str
    source_page: int

    @property
    def category_label(self) -> str:
        """Display label for the recipe category."""
        return category_label(self.category)


def category_label(category: str) -> str:
    """Return the display label for a category, falling back to the raw key."""
    return CATEGORY_LABELS.get(category, category)
