"""Data models and schemas for the Gap Chef recipe matching service.

Defines Pydantic models for the static recipe catalog, per-request match
annotations, browse filters, and the HTTP request/response contracts.
Catalog and wire formats use camelCase keys; Python attributes are snake_case.
"""

from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Difficulty = Literal["Easy", "Medium", "Hard"]

# Easy < Medium < Hard, used by the difficulty sort orders
DIFFICULTY_ORDER: dict[str, int] = {"Easy": 0, "Medium": 1, "Hard": 2}


class RecipeIngredient(BaseModel):
    """One ingredient line of a recipe."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    item: Annotated[str, Field(min_length=1, max_length=200, description="Free-text ingredient name")]
    amount: Annotated[str, Field("", max_length=100, description="Free-text quantity, e.g. '2 cups'")]
    optional: Annotated[bool, Field(False, description="Optional lines never count toward matching")]


class Recipe(BaseModel):
    """Immutable catalog record.

    Loaded once at startup and shared read-only by every request. Fields mirror
    the catalog file (camelCase keys such as ``prepTime``, ``reviewCount``,
    ``mealType``); Python code uses the snake_case attribute names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    id: Annotated[str, Field(min_length=1, max_length=100, description="Opaque id, unique across the catalog")]
    name: Annotated[str, Field(min_length=1, max_length=200)]
    description: Annotated[str, Field("", max_length=2000)]
    image: Annotated[str, Field("", max_length=500, description="Image URL or asset reference")]
    prep_time: Annotated[int, Field(0, ge=0, le=1440, description="Prep time in minutes")]
    cook_time: Annotated[int, Field(0, ge=0, le=1440, description="Cook time in minutes")]
    servings: Annotated[int, Field(1, ge=1, le=100)]
    difficulty: Difficulty
    cuisine: Annotated[str, Field(min_length=1, max_length=100)]
    category: Annotated[str, Field("Other", min_length=1, max_length=100)]
    ingredients: Annotated[tuple[RecipeIngredient, ...], Field(default_factory=tuple, max_length=100)]
    instructions: Annotated[tuple[str, ...], Field(default_factory=tuple, max_length=100)]
    tags: Annotated[tuple[str, ...], Field(default_factory=tuple)]
    tips: Annotated[tuple[str, ...], Field(default_factory=tuple)]
    youtube_url: Optional[str] = None
    rating: Annotated[Optional[float], Field(None, ge=0.0, le=5.0)]
    review_count: Annotated[Optional[int], Field(None, ge=0)]
    calories: Annotated[Optional[int], Field(None, ge=0)]
    meal_type: Annotated[tuple[str, ...], Field(default_factory=tuple)]

    @property
    def total_time(self) -> int:
        """Prep plus cook time in minutes."""
        return self.prep_time + self.cook_time

    @property
    def required_ingredients(self) -> list[RecipeIngredient]:
        return [ingredient for ingredient in self.ingredients if not ingredient.optional]


class AnnotatedIngredient(RecipeIngredient):
    """Ingredient line flagged with whether the caller has it."""

    available: bool


class AnnotatedRecipe(BaseModel):
    """A catalog recipe decorated for one matching request.

    Wraps the shared ``Recipe`` instead of copying it. Built fresh per request
    and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    recipe: Recipe
    ingredients: tuple[AnnotatedIngredient, ...]
    match_percentage: Annotated[int, Field(ge=0, le=100, description="Rounded share of required ingredients on hand")]
    missing_ingredients: tuple[str, ...]

    @property
    def id(self) -> str:
        return self.recipe.id

    @property
    def name(self) -> str:
        return self.recipe.name

    def to_payload(self) -> dict:
        """Flatten into the wire record: recipe fields plus match annotations."""
        payload = self.recipe.model_dump(mode="json", by_alias=True)
        payload["ingredients"] = [ingredient.model_dump(mode="json") for ingredient in self.ingredients]
        payload["matchPercentage"] = self.match_percentage
        payload["missingIngredients"] = list(self.missing_ingredients)
        return payload


class SortKey(str, Enum):
    """Browse sort orders offered to the presentation layer."""

    MATCH = "match"
    RATING = "rating"
    TIME_ASC = "time-asc"
    TIME_DESC = "time-desc"
    DIFFICULTY_ASC = "difficulty-asc"
    DIFFICULTY_DESC = "difficulty-desc"
    NAME = "name"


class FilterCriteria(BaseModel):
    """User facet selections. ``None`` (or an empty string) means "not filtering"."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    cuisine: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    max_cook_time: Annotated[Optional[int], Field(None, ge=0, description="Upper bound on prep + cook minutes")]
    min_rating: Annotated[Optional[float], Field(None, ge=0.0, le=5.0)]
    meal_type: Optional[str] = None
    search_query: Optional[str] = None

    @field_validator("cuisine", "category", "difficulty", "meal_type", "search_query", mode="before")
    @classmethod
    def blank_as_absent(cls, value):
        """Treat empty form values as an unset filter."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class AnalyzeRequest(BaseModel):
    """Body of ``POST /api/analyze``.

    Either typed ``ingredients`` or an ``image`` (URL, data URL or base64) drives
    the match. Neither is required: with no vision key configured an empty
    request is answered from the mock ingredient list, otherwise it matches
    against nothing and gets a padded 0% page.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    image: Annotated[Optional[str], Field(None, description="Image URL, data URL, or base64 payload")]
    ingredients: Annotated[
        Optional[list[str]], Field(None, max_length=100, description="Manually entered ingredient names")
    ]
    use_mock: Annotated[bool, Field(False, description="Skip recognition and use the mock ingredient list")]
    max_results: Annotated[Optional[int], Field(None, ge=1, le=500, description="Result page size")]

    @field_validator("ingredients", mode="before")
    @classmethod
    def clean_ingredients(cls, value):
        """Drop blank entries; an empty list behaves like no ingredients."""
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    @field_validator("image")
    @classmethod
    def validate_image(cls, value: Optional[str]) -> Optional[str]:
        """Accept http(s) URLs, data URLs, or plain base64."""
        if not value:
            return None
        if value.startswith(("http://", "https://", "data:")):
            return value
        alphabet = set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=\n")
        if set(value) <= alphabet:
            return value
        raise ValueError(f"Invalid image: must be a URL (http/https) or base64-encoded data. Got: {value[:50]}...")


class AnalysisResult(BaseModel):
    """Outcome of one matching request."""

    found_ingredients: list[str]
    recipes: list[AnnotatedRecipe] = Field(default_factory=list)
    fallback: bool = Field(False, description="True when the fallback ingredient list replaced a failed recognition")
    error: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {
            "found_ingredients": list(self.found_ingredients),
            "recipes": [recipe.to_payload() for recipe in self.recipes],
        }
        if self.fallback:
            payload["_fallback"] = True
            payload["_error"] = self.error or "Unknown error"
        return payload


class ServiceStatus(BaseModel):
    """Body of ``GET /api/analyze``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "ok"
    message: str = "Gap Chef Analysis API"
    has_gemini_key: bool
    recipe_count: Annotated[int, Field(ge=0)]


class CatalogFacets(BaseModel):
    """Facet vocabulary a UI may offer, derived from the loaded catalog."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cuisines: list[str]
    categories: list[str]
    meal_types: list[str]
    difficulties: list[str] = Field(default_factory=lambda: list(DIFFICULTY_ORDER))
    sort_options: list[str] = Field(default_factory=lambda: [key.value for key in SortKey])
    allergens: list[str] = Field(default_factory=list)
    diets: list[str] = Field(default_factory=list)


class IngredientInfo(BaseModel):
    """Price and nutrition estimate for one ingredient, per ``unit``."""

    model_config = ConfigDict(frozen=True)

    price: Annotated[float, Field(ge=0.0, description="Average USD per unit")]
    unit: str
    calories: Annotated[float, Field(ge=0.0)]
    protein: Annotated[float, Field(ge=0.0, description="Grams per unit")]
    carbs: Annotated[float, Field(ge=0.0, description="Grams per unit")]
    fat: Annotated[float, Field(ge=0.0, description="Grams per unit")]
    substitutes: tuple[str, ...] = ()


class RecipeNutrition(BaseModel):
    """Estimated cost and per-serving nutrition of a recipe's required lines."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_cost: float
    cost_per_serving: float
    calories: int
    protein: int
    carbs: int
    fat: int
    is_under_five_dollars: bool


class DietaryReport(BaseModel):
    """Allergen and diet checks for one recipe against a user's profile."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    allergens: list[str] = Field(default_factory=list, description="Requested allergens the recipe appears to contain")
    not_suitable_for: list[str] = Field(default_factory=list)
    suitable_for: list[str] = Field(default_factory=list)


class RecipeDetail(BaseModel):
    """Body of ``GET /api/recipes/{id}``: the recipe plus shopping and diet hints."""

    recipe: Recipe
    nutrition: RecipeNutrition
    substitutes: dict[str, list[str]] = Field(default_factory=dict)
    dietary: DietaryReport = Field(default_factory=DietaryReport)

    def to_payload(self) -> dict:
        payload = self.recipe.model_dump(mode="json", by_alias=True)
        payload["nutrition"] = self.nutrition.model_dump(by_alias=True)
        payload["substitutes"] = {item: list(options) for item, options in self.substitutes.items()}
        payload["dietary"] = self.dietary.model_dump(by_alias=True)
        return payload


class IngredientDetectionOutput(BaseModel):
    """Output of the vision recognizer.

    Contains detected ingredients with confidence scores and description.
    Enforces strict validation on confidence scores and ingredient format.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    ingredients: Annotated[
        list[str], Field(min_length=1, max_length=100, description="List of detected ingredients (1-100 items)")
    ]
    confidence_scores: Annotated[
        dict[str, float], Field(description="Confidence scores for each ingredient (0.0 < score <= 1.0)")
    ]
    image_description: Annotated[
        Optional[str],
        Field(None, max_length=500, description="Natural language description of the image (max 500 chars)"),
    ]

    @field_validator("ingredients", mode="before")
    @classmethod
    def normalize_ingredients(cls, v):
        """Lowercase names so they line up with confidence score keys."""
        if not isinstance(v, list):
            raise ValueError("ingredients must be a list")
        return [str(item).strip().lower() for item in v if str(item).strip()]

    @field_validator("confidence_scores", mode="before")
    @classmethod
    def validate_confidence_scores(cls, v: dict) -> dict:
        """Validate confidence scores: each value must be 0.0 < score <= 1.0."""
        if not isinstance(v, dict):
            raise ValueError("confidence_scores must be a dictionary")

        validated = {}
        for ingredient, score in v.items():
            if not isinstance(ingredient, str):
                raise ValueError("Confidence score keys must be strings")

            try:
                f = float(score)
            except (ValueError, TypeError):
                raise ValueError(f"Confidence score must be numeric for {ingredient}")

            if not (0.0 < f <= 1.0):
                raise ValueError(f"Confidence score must be 0.0 < score <= 1.0, got {f} for {ingredient}")

            validated[ingredient.strip().lower()] = f

        return validated

    @model_validator(mode="after")
    def validate_scores_match_ingredients(self) -> "IngredientDetectionOutput":
        """Validate that all ingredients have confidence scores."""
        missing_scores = set(self.ingredients) - set(self.confidence_scores)
        if missing_scores:
            raise ValueError(f"Missing confidence scores for: {missing_scores}")

        return self
