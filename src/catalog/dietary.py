"""Keyword-based allergen and diet checks.

A recipe "contains" a keyword when it appears anywhere in its lowercased
ingredient items (optional lines included) or tags. Substring matching is
coarse: "eggplant" trips the Eggs keyword. Results are hints for
the UI, not medical advice.
"""

from typing import Iterable

from src.models.models import DietaryReport, Recipe

ALLERGEN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Peanuts": ("peanut", "groundnut"),
    "Tree Nuts": (
        "almond", "walnut", "cashew", "pecan", "pistachio", "hazelnut", "macadamia", "pine nut", "brazil nut",
    ),
    "Milk": (
        "milk", "cream", "butter", "cheese", "yogurt", "whey", "casein", "ghee", "half-and-half",
        "ricotta", "mozzarella", "parmesan", "cheddar", "feta",
    ),
    "Eggs": ("egg", "mayonnaise", "mayo", "meringue", "custard"),
    "Wheat": (
        "flour", "bread", "pasta", "noodle", "wheat", "cracker", "tortilla", "bun", "roll", "croissant",
        "pita", "couscous", "bulgur", "seitan",
    ),
    "Soy": ("soy", "soya", "tofu", "tempeh", "edamame", "miso", "tamari"),
    "Fish": (
        "fish", "salmon", "tuna", "cod", "halibut", "tilapia", "trout", "bass", "anchov", "sardine", "mackerel",
    ),
    "Shellfish": (
        "shrimp", "prawn", "crab", "lobster", "clam", "mussel", "oyster", "scallop", "crawfish", "crayfish",
        "shellfish",
    ),
    "Sesame": ("sesame", "tahini"),
}

_MEAT_AND_FISH = (
    "chicken", "beef", "pork", "lamb", "fish", "salmon", "tuna", "shrimp", "bacon", "ham", "sausage", "meat",
    "turkey", "duck", "veal", "steak", "prawn", "crab", "lobster", "anchov",
)
_DAIRY = (
    "milk", "cream", "butter", "cheese", "yogurt", "whey", "casein", "ghee", "half-and-half",
    "ricotta", "mozzarella", "parmesan", "cheddar", "feta",
)
_STARCHES = ("sugar", "flour", "bread", "pasta", "rice", "potato", "corn", "beans")

# A diet is satisfied when none of its excluded keywords appear
DIET_EXCLUSIONS: dict[str, tuple[str, ...]] = {
    "Vegetarian": _MEAT_AND_FISH,
    "Vegan": _MEAT_AND_FISH + ("egg", "honey", "mayo") + _DAIRY,
    "Gluten-Free": (
        "flour", "bread", "pasta", "noodle", "wheat", "barley", "rye", "cracker", "couscous", "bulgur",
        "seitan", "soy sauce",
    ),
    "Dairy-Free": _DAIRY,
    "Keto": _STARCHES + ("oats", "honey", "maple syrup", "banana", "apple", "orange"),
    "Low-Carb": _STARCHES,
}

ALLERGENS = list(ALLERGEN_KEYWORDS)
DIETS = list(DIET_EXCLUSIONS)


def _recipe_text(recipe: Recipe) -> str:
    items = " ".join(ingredient.item.lower() for ingredient in recipe.ingredients)
    return f"{items} {' '.join(recipe.tags).lower()}"


def _canonical(names: Iterable[str], vocabulary: Iterable[str]) -> list[str]:
    """Map user-supplied names onto known labels, ignoring case; unknown names drop out."""
    known = {label.casefold(): label for label in vocabulary}
    resolved = []
    for name in names:
        label = known.get(name.strip().casefold())
        if label and label not in resolved:
            resolved.append(label)
    return resolved


def dietary_report(recipe: Recipe, allergies: Iterable[str] = (), diets: Iterable[str] = ()) -> DietaryReport:
    """Check a recipe against a user's allergies and dietary restrictions.

    Args:
        recipe: Recipe to inspect.
        allergies: Allergen labels, e.g. "Milk" or "tree nuts".
        diets: Diet labels, e.g. "Vegan".

    Returns:
        DietaryReport listing matched allergens, and the requested diets the
        recipe fails or appears to satisfy, each in request order.
    """
    text = _recipe_text(recipe)
    report = DietaryReport()

    for allergen in _canonical(allergies, ALLERGEN_KEYWORDS):
        if any(keyword in text for keyword in ALLERGEN_KEYWORDS[allergen]):
            report.allergens.append(allergen)

    for diet in _canonical(diets, DIET_EXCLUSIONS):
        if any(keyword in text for keyword in DIET_EXCLUSIONS[diet]):
            report.not_suitable_for.append(diet)
        else:
            report.suitable_for.append(diet)

    return report
