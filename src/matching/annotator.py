"""Turn a ranked match into a full, annotated result page.

Short match lists are padded with the rest of the catalog so the caller always
sees a full page. Every returned recipe, ranked or padded, is re-scored against
the current request so its displayed percentage is honest.
"""

import math
from typing import Optional, Sequence

from src.matching.fuzzy import is_satisfied
from src.matching.matcher import match_recipes
from src.models.models import AnnotatedIngredient, AnnotatedRecipe, Recipe
from src.utils.config import config
from src.utils.logger import logger


def _percentage(matched: int, required: int) -> int:
    # Half-up rounding, so 12.5% displays as 13
    if required == 0:
        return 0
    return math.floor(100 * matched / required + 0.5)


def annotate_recipe(recipe: Recipe, available: Sequence[str]) -> AnnotatedRecipe:
    """Flag every ingredient line and compute the displayable match.

    Args:
        recipe: Catalog recipe to decorate.
        available: Ingredient names the caller has on hand.

    Returns:
        Fresh AnnotatedRecipe wrapping ``recipe``. Optional lines get an
        ``available`` flag but never count toward the percentage or the
        missing list.
    """
    lines = []
    missing = []
    required_count = 0
    for ingredient in recipe.ingredients:
        available_flag = is_satisfied(ingredient.item, available)
        lines.append(AnnotatedIngredient(**ingredient.model_dump(), available=available_flag))
        if ingredient.optional:
            continue
        required_count += 1
        if not available_flag:
            missing.append(ingredient.item)

    return AnnotatedRecipe(
        recipe=recipe,
        ingredients=tuple(lines),
        match_percentage=_percentage(required_count - len(missing), required_count),
        missing_ingredients=tuple(missing),
    )


def build_results(
    catalog: Sequence[Recipe],
    available: Sequence[str],
    max_results: Optional[int] = None,
    min_match: Optional[float] = None,
) -> list[AnnotatedRecipe]:
    """Match, pad or truncate to ``max_results``, annotate, and order by percentage.

    Args:
        catalog: Recipes to draw from, in catalog order.
        available: Ingredient names the caller has on hand.
        max_results: Page size. Defaults to ``config.MAX_RESULTS``.
        min_match: Matcher threshold. Defaults to ``config.MIN_MATCH_PERCENTAGE``.

    Returns:
        At most ``max_results`` annotated recipes, highest percentage first.
        Equal percentages keep their matched-then-padded order.
    """
    limit = config.MAX_RESULTS if max_results is None else max_results

    ranked = match_recipes(catalog, available, min_match=min_match)
    if len(ranked) < limit:
        seen = {recipe.id for recipe in ranked}
        padding = [recipe for recipe in catalog if recipe.id not in seen]
        selected = ranked + padding[: limit - len(ranked)]
    else:
        selected = ranked[:limit]

    annotated = [annotate_recipe(recipe, available) for recipe in selected]
    annotated.sort(key=lambda item: -item.match_percentage)

    logger.debug(f"Built {len(annotated)} results ({len(ranked)} matched, limit {limit})")
    return annotated
