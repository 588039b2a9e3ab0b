"""Read-only recipe catalog, loaded once at startup and injected into every consumer."""

import json
from pathlib import Path
from typing import Iterator, Optional, Sequence

from pydantic import ValidationError

from src.models.models import Recipe
from src.utils.logger import logger


class CatalogError(ValueError):
    """Raised when the catalog source cannot be loaded or is inconsistent."""


class RecipeCatalog:
    """Immutable, ordered collection of recipes.

    Iteration yields recipes in catalog order, which is also the order used to
    pad short match results. Nothing mutates a catalog after construction, so a
    single instance is safely shared by concurrent requests.
    """

    def __init__(self, recipes: Sequence[Recipe]) -> None:
        self._recipes: tuple[Recipe, ...] = tuple(recipes)
        self._by_id: dict[str, Recipe] = {}
        for recipe in self._recipes:
            if recipe.id in self._by_id:
                raise CatalogError(f"Duplicate recipe id: {recipe.id}")
            self._by_id[recipe.id] = recipe

    @classmethod
    def from_records(cls, records: list[dict]) -> "RecipeCatalog":
        """Build a catalog from raw camelCase records.

        Raises:
            CatalogError: If ``records`` is not a list or a record fails validation.
        """
        if not isinstance(records, list):
            raise CatalogError(f"Catalog must be a list of recipes, got {type(records).__name__}")

        recipes = []
        for index, record in enumerate(records):
            try:
                recipes.append(Recipe.model_validate(record))
            except ValidationError as e:
                raise CatalogError(f"Invalid recipe at index {index}: {e}") from e
        return cls(recipes)

    @classmethod
    def from_file(cls, path: str | Path) -> "RecipeCatalog":
        """Load a catalog from a JSON file.

        Args:
            path: Location of the JSON catalog (a list of recipe records).

        Returns:
            Loaded catalog.

        Raises:
            CatalogError: If the file is missing, unreadable, not JSON, or invalid.
        """
        catalog_path = Path(path)
        try:
            records = json.loads(catalog_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise CatalogError(f"Catalog file not found: {catalog_path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Could not read catalog {catalog_path}: {e}") from e

        catalog = cls.from_records(records)
        logger.info(f"Loaded {len(catalog)} recipes from {catalog_path}", extra={"recipe_count": len(catalog)})
        return catalog

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self._recipes)

    def __len__(self) -> int:
        return len(self._recipes)

    def __getitem__(self, index):
        return self._recipes[index]

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._by_id

    @property
    def recipes(self) -> tuple[Recipe, ...]:
        return self._recipes

    def get(self, recipe_id: str) -> Optional[Recipe]:
        """Look up a recipe by id, or None when unknown."""
        return self._by_id.get(recipe_id)

    def cuisines(self) -> list[str]:
        """Distinct cuisine labels, sorted."""
        return sorted({recipe.cuisine for recipe in self._recipes})

    def categories(self) -> list[str]:
        """Distinct category labels, sorted."""
        return sorted({recipe.category for recipe in self._recipes})

    def meal_types(self) -> list[str]:
        return sorted({meal for recipe in self._recipes for meal in recipe.meal_type})
