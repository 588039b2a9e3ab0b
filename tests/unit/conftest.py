"""Shared fixtures for unit tests."""

import pytest

from src.catalog.catalog import RecipeCatalog
from src.models.models import Recipe, RecipeIngredient
from src.utils.config import config


def make_recipe(recipe_id, required=(), optional=(), **fields):
    """Build a Recipe with the given required and optional ingredient names."""
    ingredients = [RecipeIngredient(item=item, amount="1") for item in required]
    ingredients += [RecipeIngredient(item=item, amount="1", optional=True) for item in optional]
    data = {
        "id": recipe_id,
        "name": fields.pop("name", recipe_id.replace("-", " ").title()),
        "difficulty": fields.pop("difficulty", "Easy"),
        "cuisine": fields.pop("cuisine", "American"),
        "ingredients": ingredients,
    }
    data.update(fields)
    return Recipe(**data)


@pytest.fixture
def recipe_factory():
    return make_recipe


@pytest.fixture
def sample_catalog():
    """Small catalog covering the documented matching scenarios."""
    return RecipeCatalog(
        [
            make_recipe("r1", ["chicken breast", "garlic", "olive oil"], cuisine="Italian", cook_time=25),
            make_recipe("r2", ["flour", "sugar", "eggs", "butter", "vanilla"], cuisine="French", cook_time=40),
            make_recipe(
                "r3",
                ["flour", "sugar", "eggs", "butter", "vanilla", "baking powder"],
                cuisine="American",
                cook_time=30,
            ),
            make_recipe("r4", ["rice", "soy sauce"], optional=["scallions"], cuisine="Chinese", cook_time=15),
        ]
    )


@pytest.fixture
def default_matching_config(monkeypatch):
    """Pin matching defaults regardless of the local environment."""
    monkeypatch.setattr(config, "MIN_MATCH_PERCENTAGE", 0.2)
    monkeypatch.setattr(config, "MAX_RESULTS", 50)
    return config
