"""HTTP surface for Gap Chef.

Routes:
- POST /api/analyze: ingredients or photo in, annotated recipe page out
- GET  /api/analyze: service status
- GET  /api/recipes: browse the catalog with facet filters and a sort order
- GET  /api/recipes/{recipe_id}: one recipe, optionally rescaled to ``servings``,
  with cost/nutrition estimates, substitutes, and allergen/diet checks
- GET  /api/facets: filter and sort vocabulary for the UI
- GET  /health: liveness
"""

import uuid
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request

from src.catalog.catalog import RecipeCatalog
from src.catalog.dietary import ALLERGENS, DIETS
from src.catalog.servings import MAX_SERVINGS, MIN_SERVINGS
from src.models.models import AnalyzeRequest, CatalogFacets, Difficulty, FilterCriteria, SortKey
from src.services.analysis import analyze, browse, recipe_detail, service_status
from src.utils.logger import logger


def get_catalog(request: Request) -> RecipeCatalog:
    """Catalog injected at app construction time."""
    return request.app.state.catalog


def create_app(catalog: RecipeCatalog) -> FastAPI:
    """Build the API around an already-loaded catalog.

    Args:
        catalog: Recipe catalog shared read-only by all requests.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Gap Chef API",
        description="Match the ingredients you have to recipes you can cook",
    )
    app.state.catalog = catalog

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/api/analyze")
    async def analyze_ingredients(payload: AnalyzeRequest, catalog: RecipeCatalog = Depends(get_catalog)):
        request_id = uuid.uuid4().hex[:8]
        logger.info(
            f"Analyze request (image={'yes' if payload.image else 'no'}, "
            f"ingredients={len(payload.ingredients or [])}, mock={payload.use_mock})",
            extra={"request_id": request_id},
        )
        result = await analyze(payload, catalog, request_id=request_id)
        return result.to_payload()

    @app.get("/api/analyze")
    def status(catalog: RecipeCatalog = Depends(get_catalog)):
        return service_status(catalog).model_dump(by_alias=True)

    @app.get("/api/recipes")
    def list_recipes(
        cuisine: Optional[str] = None,
        category: Optional[str] = None,
        difficulty: Optional[Difficulty] = None,
        max_cook_time: Optional[int] = Query(None, alias="maxCookTime", ge=0, description="Minutes, prep + cook"),
        min_rating: Optional[float] = Query(None, alias="minRating", ge=0.0, le=5.0),
        meal_type: Optional[str] = Query(None, alias="mealType"),
        q: Optional[str] = Query(None, description="Search in name, tags, and ingredients"),
        sort: SortKey = SortKey.MATCH,
        catalog: RecipeCatalog = Depends(get_catalog),
    ):
        criteria = FilterCriteria(
            cuisine=cuisine,
            category=category,
            difficulty=difficulty,
            max_cook_time=max_cook_time,
            min_rating=min_rating,
            meal_type=meal_type,
            search_query=q,
        )
        recipes = browse(catalog, criteria, sort)
        return {
            "total": len(recipes),
            "recipes": [recipe.model_dump(mode="json", by_alias=True) for recipe in recipes],
        }

    @app.get("/api/recipes/{recipe_id}")
    def get_recipe(
        recipe_id: str,
        servings: Optional[int] = Query(None, ge=MIN_SERVINGS, le=MAX_SERVINGS),
        allergies: list[str] = Query([], description="Allergen labels to warn about, e.g. Milk"),
        diets: list[str] = Query([], description="Diet labels to check, e.g. Vegan"),
        catalog: RecipeCatalog = Depends(get_catalog),
    ):
        recipe = catalog.get(recipe_id)
        if recipe is None:
            raise HTTPException(status_code=404, detail="Recipe not found")
        return recipe_detail(recipe, servings, allergies, diets).to_payload()

    @app.get("/api/facets")
    def facets(catalog: RecipeCatalog = Depends(get_catalog)):
        return CatalogFacets(
            cuisines=catalog.cuisines(),
            categories=catalog.categories(),
            meal_types=catalog.meal_types(),
            allergens=ALLERGENS,
            diets=DIETS,
        ).model_dump(by_alias=True)

    return app
