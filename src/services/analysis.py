"""Request-level orchestration: recognize ingredients, match, annotate.

The matching core never raises for business reasons. Recognition failures are
absorbed here by substituting the configured fallback ingredient list, so the
caller always gets a page of suggestions.
"""

from typing import Awaitable, Callable, Optional, Sequence, Union

from src.catalog.catalog import RecipeCatalog
from src.catalog.dietary import dietary_report
from src.catalog.ingredient_info import recipe_info, recipe_substitutes
from src.catalog.servings import scale_recipe
from src.matching.annotator import build_results
from src.matching.browse import filter_recipes, sort_recipes
from src.models.models import (
    AnalysisResult,
    AnalyzeRequest,
    FilterCriteria,
    Recipe,
    RecipeDetail,
    ServiceStatus,
    SortKey,
)
from src.recognizer.ingredients import IngredientRecognitionError, recognize_ingredients
from src.utils.config import config
from src.utils.logger import logger

Recognizer = Callable[..., Awaitable[list[str]]]


def match_ingredients(
    catalog: RecipeCatalog,
    available: Sequence[str],
    max_results: Optional[int] = None,
) -> AnalysisResult:
    """Build the annotated result page for a known ingredient list."""
    recipes = build_results(catalog, available, max_results=max_results)
    return AnalysisResult(found_ingredients=list(available), recipes=recipes)


async def analyze(
    request: AnalyzeRequest,
    catalog: RecipeCatalog,
    recognizer: Recognizer = recognize_ingredients,
    request_id: Optional[str] = None,
) -> AnalysisResult:
    """Answer one analyze request.

    Order of precedence:
    1. ``use_mock`` serves MOCK_INGREDIENTS without calling the recognizer.
    2. No API key and no ``ingredients`` field at all also serves MOCK_INGREDIENTS.
       An explicit empty list is matched as-is and yields a 0% page.
    3. Otherwise the recognizer runs. If it raises IngredientRecognitionError,
       FALLBACK_INGREDIENTS are matched with the default page size and the
       result is flagged ``fallback`` with the error message.

    Args:
        request: Validated request body.
        catalog: Loaded recipe catalog.
        recognizer: Async callable ``(image=..., ingredients=...) -> list[str]``.
        request_id: Correlation id for log lines.

    Returns:
        AnalysisResult with the ingredients used and the annotated recipes.
    """
    log_extra = {"request_id": request_id} if request_id else {}

    if request.use_mock or (not config.GEMINI_API_KEY and request.ingredients is None):
        logger.info("Serving mock ingredients", extra=log_extra)
        return match_ingredients(catalog, config.MOCK_INGREDIENTS, request.max_results)

    try:
        found = await recognizer(image=request.image, ingredients=request.ingredients)
    except IngredientRecognitionError as e:
        logger.warning(f"Recognition failed, using fallback ingredients: {e}", extra=log_extra)
        result = match_ingredients(catalog, config.FALLBACK_INGREDIENTS)
        return result.model_copy(update={"fallback": True, "error": str(e)})

    result = match_ingredients(catalog, found, request.max_results)
    logger.info(
        f"Matched {len(found)} ingredients to {len(result.recipes)} recipes",
        extra={**log_extra, "ingredient_count": len(found), "recipe_count": len(result.recipes)},
    )
    return result


def service_status(catalog: RecipeCatalog) -> ServiceStatus:
    return ServiceStatus(has_gemini_key=bool(config.GEMINI_API_KEY), recipe_count=len(catalog))


def browse(
    catalog: RecipeCatalog,
    criteria: Optional[FilterCriteria] = None,
    sort_key: Union[SortKey, str] = SortKey.MATCH,
) -> list[Recipe]:
    """Browse-all view: filter the whole catalog, then sort it."""
    recipes = list(catalog) if criteria is None else filter_recipes(list(catalog), criteria)
    return sort_recipes(recipes, sort_key)


def recipe_detail(
    recipe: Recipe,
    servings: Optional[int] = None,
    allergies: Sequence[str] = (),
    diets: Sequence[str] = (),
) -> RecipeDetail:
    """One recipe, optionally rescaled, with cost, substitutes and diet checks.

    Nutrition is computed after scaling, so per-serving figures stay comparable.

    Raises:
        ValueError: If ``servings`` is outside 1-20.
    """
    if servings is not None:
        recipe = scale_recipe(recipe, servings)
    return RecipeDetail(
        recipe=recipe,
        nutrition=recipe_info(recipe),
        substitutes=recipe_substitutes(recipe),
        dietary=dietary_report(recipe, allergies, diets),
    )
