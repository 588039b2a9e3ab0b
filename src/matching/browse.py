"""Facet filters and sort orders for browsing recipe lists.

Works on plain catalog recipes (browse-all view) and on annotated match
results alike. Inputs are never mutated; every call returns a new list.
"""

import unicodedata
from typing import Sequence, TypeVar, Union

from src.models.models import DIFFICULTY_ORDER, AnnotatedRecipe, FilterCriteria, Recipe, SortKey

RecipeLike = TypeVar("RecipeLike", Recipe, AnnotatedRecipe)


def _unwrap(item: Union[Recipe, AnnotatedRecipe]) -> Recipe:
    return item.recipe if isinstance(item, AnnotatedRecipe) else item


def _matches_search(recipe: Recipe, query: str) -> bool:
    needle = query.lower()
    if needle in recipe.name.lower():
        return True
    if any(needle in tag.lower() for tag in recipe.tags):
        return True
    return any(needle in ingredient.item.lower() for ingredient in recipe.ingredients)


def matches_criteria(recipe: Recipe, criteria: FilterCriteria) -> bool:
    """True when every criterion that is set holds for ``recipe``."""
    if criteria.cuisine is not None and recipe.cuisine != criteria.cuisine:
        return False
    if criteria.category is not None and recipe.category != criteria.category:
        return False
    if criteria.difficulty is not None and recipe.difficulty != criteria.difficulty:
        return False
    if criteria.max_cook_time is not None and recipe.total_time > criteria.max_cook_time:
        return False
    if criteria.min_rating is not None:
        # Unrated recipes never pass an active rating filter
        if recipe.rating is None or recipe.rating < criteria.min_rating:
            return False
    if criteria.meal_type is not None and criteria.meal_type not in recipe.meal_type:
        return False
    if criteria.search_query is not None and not _matches_search(recipe, criteria.search_query):
        return False
    return True


def name_sort_key(name: str) -> tuple[str, str]:
    """Collation key that ignores accents and case, so "Éclairs" sorts with "E".

    Ties on the folded form fall back to the case-folded original, keeping the
    order deterministic between e.g. "Creme" and "Crème".
    """
    decomposed = unicodedata.normalize("NFKD", name)
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    return folded.casefold(), name.casefold()


def filter_recipes(recipes: Sequence[RecipeLike], criteria: FilterCriteria) -> list[RecipeLike]:
    """Keep the recipes that satisfy all of ``criteria``, preserving order."""
    return [item for item in recipes if matches_criteria(_unwrap(item), criteria)]


_SORT_KEYS = {
    SortKey.RATING: lambda recipe: -(recipe.rating or 0.0),
    SortKey.TIME_ASC: lambda recipe: recipe.total_time,
    SortKey.TIME_DESC: lambda recipe: -recipe.total_time,
    SortKey.DIFFICULTY_ASC: lambda recipe: DIFFICULTY_ORDER[recipe.difficulty],
    SortKey.DIFFICULTY_DESC: lambda recipe: -DIFFICULTY_ORDER[recipe.difficulty],
    SortKey.NAME: lambda recipe: name_sort_key(recipe.name),
}


def sort_recipes(recipes: Sequence[RecipeLike], key: Union[SortKey, str] = SortKey.MATCH) -> list[RecipeLike]:
    """Stable sort by one of the browse orders.

    Args:
        recipes: Recipes or annotated results.
        key: A ``SortKey`` or its string value. ``match`` keeps the incoming
            order, which is already ranked for match results.

    Returns:
        New sorted list.

    Raises:
        ValueError: If ``key`` is not a known sort order.
    """
    sort_key = SortKey(key)
    if sort_key is SortKey.MATCH:
        return list(recipes)
    extract = _SORT_KEYS[sort_key]
    return sorted(recipes, key=lambda item: extract(_unwrap(item)))
