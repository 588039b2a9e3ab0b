"""Rank catalog recipes by how much of their required ingredients the caller has."""

from typing import Iterable, NamedTuple, Optional, Sequence

from src.matching.fuzzy import is_satisfied
from src.models.models import Recipe
from src.utils.config import config
from src.utils.logger import logger


class MatchScore(NamedTuple):
    """Coverage of one recipe's required ingredients."""

    match_count: int
    required_count: int

    @property
    def fraction(self) -> float:
        """Share of required ingredients on hand (0.0 - 1.0); 0 when nothing is required."""
        if self.required_count == 0:
            return 0.0
        return self.match_count / self.required_count

    @property
    def missing_count(self) -> int:
        return self.required_count - self.match_count


def score_recipe(recipe: Recipe, available: Sequence[str]) -> MatchScore:
    """Count the recipe's required ingredients satisfied by ``available``."""
    required = recipe.required_ingredients
    matched = sum(1 for ingredient in required if is_satisfied(ingredient.item, available))
    return MatchScore(match_count=matched, required_count=len(required))


def match_recipes(
    catalog: Iterable[Recipe],
    available: Sequence[str],
    min_match: Optional[float] = None,
) -> list[Recipe]:
    """Return recipes covering at least ``min_match`` of their requirements, best first.

    Ordered by coverage descending, then by fewest missing ingredients. Recipes
    equal on both keys keep catalog order.

    Args:
        catalog: Recipes to rank.
        available: Ingredient names the caller has on hand.
        min_match: Inclusive coverage threshold (0.0 - 1.0).
            Defaults to ``config.MIN_MATCH_PERCENTAGE``.

    Returns:
        New list of matching recipes, possibly empty.
    """
    threshold = config.MIN_MATCH_PERCENTAGE if min_match is None else min_match

    scored = []
    for recipe in catalog:
        score = score_recipe(recipe, available)
        if score.fraction >= threshold:
            scored.append((recipe, score))

    scored.sort(key=lambda pair: (-pair[1].fraction, pair[1].missing_count))

    logger.debug(f"Matched {len(scored)} recipes at threshold {threshold} against {len(available)} ingredients")
    return [recipe for recipe, _ in scored]
