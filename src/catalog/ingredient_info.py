"""Ingredient price, nutrition and substitute lookups.

Figures are rough grocery averages: price in USD and nutrition per the row's
``unit``. Lookups use the same containment rule as matching, so "boneless
chicken breast" finds the "chicken breast" row.
"""

import math
from typing import Mapping, Optional, Sequence

from src.catalog.servings import parse_amount
from src.matching.fuzzy import normalize
from src.models.models import IngredientInfo, Recipe, RecipeIngredient, RecipeNutrition

# Total recipe cost at or below this earns the budget badge
BUDGET_LIMIT_USD = 5.0

# (recipe unit, table unit) -> multiplier; other unit pairs are taken as-is
UNIT_CONVERSIONS = {
    ("cup", "oz"): 8,
    ("tbsp", "cup"): 1 / 16,
    ("tsp", "tbsp"): 1 / 3,
    ("lb", "oz"): 16,
}

# name: (price, unit, calories, protein, carbs, fat, substitutes)
# Order matters: partial lookups return the first row containing (or contained in) the name.
_TABLE = {
    # Proteins
    "chicken breast": (3.50, "lb", 165, 31, 0, 3.6, ["turkey breast", "tofu", "tempeh"]),
    "chicken thighs": (2.50, "lb", 209, 26, 0, 10.9, ["chicken breast", "turkey thighs"]),
    "chicken": (3.00, "lb", 187, 28, 0, 7, ["turkey", "tofu"]),
    "ground beef": (5.00, "lb", 250, 26, 0, 15, ["ground turkey", "ground chicken", "plant-based ground"]),
    "beef": (6.00, "lb", 250, 26, 0, 15, ["pork", "lamb", "mushrooms"]),
    "steak": (10.00, "lb", 271, 26, 0, 18, ["portobello mushroom", "cauliflower steak"]),
    "pork": (4.00, "lb", 242, 27, 0, 14, ["chicken", "turkey"]),
    "bacon": (6.00, "lb", 541, 37, 1, 42, ["turkey bacon", "tempeh bacon", "coconut bacon"]),
    "salmon": (10.00, "lb", 208, 20, 0, 13, ["trout", "arctic char", "tofu"]),
    "shrimp": (9.00, "lb", 99, 24, 0, 0.3, ["scallops", "tofu", "hearts of palm"]),
    "fish": (8.00, "lb", 136, 24, 0, 4, ["tofu", "tempeh"]),
    "tofu": (2.50, "lb", 76, 8, 2, 4.5, ["tempeh", "seitan", "paneer"]),
    "eggs": (0.25, "each", 72, 6, 0.4, 5, ["flax egg", "chia egg", "applesauce", "mashed banana"]),
    "egg": (0.25, "each", 72, 6, 0.4, 5, ["flax egg", "chia egg", "applesauce"]),

    # Dairy
    "milk": (0.50, "cup", 149, 8, 12, 8, ["oat milk", "almond milk", "soy milk", "coconut milk"]),
    "butter": (0.50, "tbsp", 102, 0, 0, 12, ["olive oil", "coconut oil", "margarine", "applesauce"]),
    "cream": (0.40, "tbsp", 52, 0.4, 0.4, 5.5, ["coconut cream", "cashew cream"]),
    "heavy cream": (0.40, "tbsp", 52, 0.4, 0.4, 5.5, ["coconut cream", "cashew cream"]),
    "cheese": (0.50, "oz", 113, 7, 0.4, 9, ["nutritional yeast", "vegan cheese", "cashew cheese"]),
    "cheddar cheese": (0.50, "oz", 113, 7, 0.4, 9, ["gouda", "colby", "vegan cheddar"]),
    "parmesan": (0.75, "oz", 111, 10, 1, 7, ["nutritional yeast", "pecorino", "vegan parmesan"]),
    "parmesan cheese": (0.75, "oz", 111, 10, 1, 7, ["nutritional yeast", "pecorino"]),
    "mozzarella": (0.40, "oz", 85, 6, 1, 6, ["provolone", "vegan mozzarella"]),
    "cream cheese": (0.30, "oz", 99, 2, 1, 10, ["cashew cream cheese", "vegan cream cheese"]),
    "sour cream": (0.20, "tbsp", 23, 0.3, 0.5, 2.3, ["greek yogurt", "cashew cream", "coconut cream"]),
    "yogurt": (0.30, "oz", 18, 1, 1.5, 1, ["coconut yogurt", "soy yogurt"]),
    "greek yogurt": (0.35, "oz", 17, 3, 1, 0.2, ["regular yogurt", "coconut yogurt"]),

    # Grains & Pasta
    "rice": (0.15, "cup", 206, 4, 45, 0.4, ["quinoa", "cauliflower rice", "couscous"]),
    "pasta": (0.25, "oz", 75, 3, 15, 0.4, ["zucchini noodles", "rice noodles", "gluten-free pasta"]),
    "spaghetti": (0.25, "oz", 75, 3, 15, 0.4, ["linguine", "zucchini noodles", "rice noodles"]),
    "bread": (0.20, "slice", 79, 3, 15, 1, ["lettuce wrap", "gluten-free bread", "tortilla"]),
    "flour": (0.05, "tbsp", 28, 1, 6, 0, ["almond flour", "coconut flour", "oat flour"]),
    "all-purpose flour": (0.05, "tbsp", 28, 1, 6, 0, ["whole wheat flour", "almond flour"]),
    "breadcrumbs": (0.10, "tbsp", 30, 1, 5, 0.5, ["crushed crackers", "panko", "almond flour"]),
    "tortilla": (0.25, "each", 90, 2, 15, 2.5, ["lettuce wrap", "corn tortilla"]),
    "noodles": (0.30, "oz", 70, 2, 14, 0.3, ["rice noodles", "zucchini noodles"]),

    # Vegetables
    "onion": (0.50, "each", 44, 1, 10, 0, ["shallot", "leek", "scallions"]),
    "garlic": (0.10, "clove", 4, 0.2, 1, 0, ["garlic powder", "shallot"]),
    "tomato": (0.50, "each", 22, 1, 5, 0.2, ["canned tomatoes", "sun-dried tomatoes"]),
    "tomatoes": (0.50, "each", 22, 1, 5, 0.2, ["canned tomatoes", "red bell pepper"]),
    "potato": (0.30, "each", 161, 4, 37, 0.2, ["sweet potato", "cauliflower"]),
    "potatoes": (0.30, "each", 161, 4, 37, 0.2, ["sweet potato", "turnip"]),
    "carrot": (0.15, "each", 25, 0.6, 6, 0.1, ["parsnip", "sweet potato"]),
    "carrots": (0.15, "each", 25, 0.6, 6, 0.1, ["parsnip", "butternut squash"]),
    "celery": (0.10, "stalk", 6, 0.3, 1, 0.1, ["fennel", "bok choy"]),
    "bell pepper": (0.75, "each", 31, 1, 6, 0.3, ["poblano", "anaheim pepper"]),
    "broccoli": (0.50, "cup", 31, 2.5, 6, 0.3, ["cauliflower", "broccolini"]),
    "spinach": (0.30, "cup", 7, 1, 1, 0.1, ["kale", "swiss chard", "arugula"]),
    "lettuce": (0.20, "cup", 5, 0.5, 1, 0.1, ["spinach", "arugula", "cabbage"]),
    "mushrooms": (0.40, "cup", 15, 2, 2, 0.2, ["zucchini", "eggplant"]),
    "zucchini": (0.40, "each", 33, 2, 6, 0.6, ["yellow squash", "cucumber"]),
    "cucumber": (0.50, "each", 16, 0.7, 4, 0.1, ["zucchini", "celery"]),
    "avocado": (1.50, "each", 234, 3, 12, 21, ["hummus", "mashed banana"]),
    "corn": (0.30, "ear", 77, 3, 17, 1, ["peas", "edamame"]),
    "peas": (0.25, "cup", 62, 4, 11, 0.3, ["edamame", "green beans"]),
    "green beans": (0.30, "cup", 31, 2, 7, 0.1, ["asparagus", "snap peas"]),
    "cabbage": (0.20, "cup", 17, 1, 4, 0.1, ["lettuce", "brussels sprouts"]),
    "cauliflower": (0.40, "cup", 25, 2, 5, 0.1, ["broccoli", "rice"]),

    # Fruits
    "lemon": (0.35, "each", 17, 0.6, 5, 0.2, ["lime", "vinegar"]),
    "lime": (0.30, "each", 11, 0.2, 4, 0.1, ["lemon", "orange"]),
    "apple": (0.50, "each", 95, 0.5, 25, 0.3, ["pear", "peach"]),
    "banana": (0.25, "each", 105, 1, 27, 0.4, ["plantain", "mango"]),
    "orange": (0.50, "each", 62, 1, 15, 0.2, ["tangerine", "grapefruit"]),
    "berries": (1.00, "cup", 84, 1, 21, 0.5, ["frozen berries", "grapes"]),

    # Oils & Fats
    "olive oil": (0.15, "tbsp", 119, 0, 0, 14, ["avocado oil", "vegetable oil", "coconut oil"]),
    "vegetable oil": (0.08, "tbsp", 120, 0, 0, 14, ["canola oil", "olive oil"]),
    "coconut oil": (0.20, "tbsp", 121, 0, 0, 13, ["butter", "vegetable oil"]),
    "sesame oil": (0.25, "tbsp", 120, 0, 0, 14, ["peanut oil", "vegetable oil"]),

    # Seasonings & Spices
    "salt": (0.01, "tsp", 0, 0, 0, 0, ["sea salt", "kosher salt", "soy sauce"]),
    "pepper": (0.02, "tsp", 2, 0.1, 0.5, 0, ["white pepper", "cayenne"]),
    "black pepper": (0.02, "tsp", 2, 0.1, 0.5, 0, ["white pepper"]),
    "paprika": (0.05, "tsp", 6, 0.3, 1, 0.3, ["cayenne", "chili powder"]),
    "cumin": (0.05, "tsp", 8, 0.4, 1, 0.5, ["coriander", "caraway"]),
    "oregano": (0.05, "tsp", 3, 0.1, 0.7, 0.1, ["basil", "thyme", "marjoram"]),
    "basil": (0.10, "tbsp", 1, 0.1, 0.1, 0, ["oregano", "parsley"]),
    "thyme": (0.05, "tsp", 1, 0, 0.2, 0, ["oregano", "rosemary"]),
    "rosemary": (0.05, "tsp", 1, 0, 0.2, 0, ["thyme", "sage"]),
    "cinnamon": (0.05, "tsp", 6, 0.1, 2, 0, ["nutmeg", "allspice"]),
    "ginger": (0.15, "tbsp", 5, 0.1, 1, 0, ["ground ginger", "galangal"]),
    "chili powder": (0.05, "tsp", 8, 0.3, 1.4, 0.4, ["cayenne + cumin", "paprika"]),
    "curry powder": (0.10, "tsp", 7, 0.3, 1.2, 0.3, ["garam masala", "individual spices"]),

    # Sauces & Condiments
    "soy sauce": (0.10, "tbsp", 9, 1, 1, 0, ["tamari", "coconut aminos", "worcestershire"]),
    "tomato sauce": (0.15, "oz", 8, 0.3, 2, 0, ["crushed tomatoes", "tomato paste + water"]),
    "ketchup": (0.05, "tbsp", 19, 0.2, 5, 0, ["tomato paste + vinegar + sugar"]),
    "mustard": (0.05, "tsp", 3, 0.2, 0.3, 0.2, ["horseradish", "wasabi"]),
    "mayonnaise": (0.10, "tbsp", 94, 0.1, 0, 10, ["greek yogurt", "avocado", "hummus"]),
    "honey": (0.15, "tbsp", 64, 0, 17, 0, ["maple syrup", "agave", "brown sugar"]),
    "maple syrup": (0.25, "tbsp", 52, 0, 13, 0, ["honey", "agave", "brown sugar syrup"]),
    "vinegar": (0.05, "tbsp", 3, 0, 0, 0, ["lemon juice", "lime juice"]),
    "worcestershire": (0.10, "tsp", 4, 0, 1, 0, ["soy sauce + vinegar", "fish sauce"]),

    # Canned & Pantry
    "canned tomatoes": (0.15, "oz", 5, 0.2, 1, 0, ["fresh tomatoes", "tomato sauce"]),
    "tomato paste": (0.20, "tbsp", 13, 0.7, 3, 0.1, ["tomato sauce (reduced)", "ketchup"]),
    "chicken broth": (0.10, "oz", 1, 0.2, 0, 0, ["vegetable broth", "water + bouillon"]),
    "vegetable broth": (0.10, "oz", 2, 0.1, 0.5, 0, ["chicken broth", "water + miso"]),
    "coconut milk": (0.20, "oz", 30, 0.3, 0.5, 3, ["heavy cream", "cashew cream"]),
    "beans": (0.10, "oz", 21, 1.4, 4, 0.1, ["lentils", "chickpeas"]),
    "chickpeas": (0.10, "oz", 23, 1.5, 4, 0.4, ["white beans", "lentils"]),
    "lentils": (0.08, "oz", 20, 1.6, 3.5, 0.1, ["beans", "split peas"]),

    # Baking
    "sugar": (0.02, "tbsp", 48, 0, 12, 0, ["honey", "maple syrup", "stevia"]),
    "brown sugar": (0.03, "tbsp", 52, 0, 13, 0, ["white sugar + molasses", "coconut sugar"]),
    "baking powder": (0.02, "tsp", 2, 0, 1, 0, ["baking soda + cream of tartar"]),
    "baking soda": (0.01, "tsp", 0, 0, 0, 0, ["baking powder (3x amount)"]),
    "vanilla": (0.30, "tsp", 12, 0, 0.5, 0, ["vanilla bean", "almond extract"]),
    "vanilla extract": (0.30, "tsp", 12, 0, 0.5, 0, ["vanilla bean paste", "maple syrup"]),
    "chocolate chips": (0.20, "oz", 70, 0.8, 9, 4, ["chopped chocolate bar", "carob chips"]),
    "cocoa powder": (0.15, "tbsp", 12, 1, 3, 0.7, ["carob powder", "chocolate"]),

    # Nuts & Seeds
    "almonds": (0.50, "oz", 164, 6, 6, 14, ["cashews", "sunflower seeds"]),
    "walnuts": (0.60, "oz", 185, 4, 4, 18, ["pecans", "almonds"]),
    "peanuts": (0.30, "oz", 161, 7, 5, 14, ["sunflower seeds", "soy nuts"]),
    "peanut butter": (0.15, "tbsp", 94, 4, 3, 8, ["almond butter", "sunflower seed butter", "tahini"]),
    "sesame seeds": (0.10, "tbsp", 52, 2, 2, 4.5, ["hemp seeds", "poppy seeds"]),
}

INGREDIENT_DATABASE: dict[str, IngredientInfo] = {
    name: IngredientInfo(
        price=price,
        unit=unit,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        substitutes=tuple(substitutes),
    )
    for name, (price, unit, calories, protein, carbs, fat, substitutes) in _TABLE.items()
}


def find_ingredient(name: str, database: Optional[Mapping[str, IngredientInfo]] = None) -> Optional[IngredientInfo]:
    """Look up an ingredient by exact name, then by containment either way.

    Args:
        name: Free-text ingredient name.
        database: Table to search. Defaults to ``INGREDIENT_DATABASE``.

    Returns:
        The matching row, or None for blank or unknown names.
    """
    table = INGREDIENT_DATABASE if database is None else database
    needle = normalize(name)
    if not needle:
        return None
    if needle in table:
        return table[needle]
    for key, info in table.items():
        if key in needle or needle in key:
            return info
    return None


def get_substitutes(name: str, database: Optional[Mapping[str, IngredientInfo]] = None) -> list[str]:
    info = find_ingredient(name, database)
    return list(info.substitutes) if info else []


def recipe_substitutes(recipe: Recipe) -> dict[str, list[str]]:
    """Substitutes for every ingredient line that has any, keyed by the line's item."""
    substitutes = {}
    for ingredient in recipe.ingredients:
        options = get_substitutes(ingredient.item)
        if options:
            substitutes[ingredient.item] = options
    return substitutes


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def calculate_recipe_info(
    ingredients: Sequence[RecipeIngredient],
    servings: int,
    database: Optional[Mapping[str, IngredientInfo]] = None,
) -> RecipeNutrition:
    """Estimate cost and per-serving nutrition.

    Optional lines and ingredients missing from the table are skipped. Each
    line contributes ``quantity`` table units, after the rough conversions in
    ``UNIT_CONVERSIONS``.

    Args:
        ingredients: Recipe ingredient lines.
        servings: Servings the amounts are written for (at least 1).
        database: Table to price against. Defaults to ``INGREDIENT_DATABASE``.

    Returns:
        RecipeNutrition with costs rounded to cents and nutrition to whole units.

    Raises:
        ValueError: If ``servings`` is less than 1.
    """
    if servings < 1:
        raise ValueError(f"Servings must be at least 1, got: {servings}")

    cost = calories = protein = carbs = fat = 0.0
    for ingredient in ingredients:
        if ingredient.optional:
            continue
        info = find_ingredient(ingredient.item, database)
        if info is None:
            continue

        quantity, unit = parse_amount(ingredient.amount)
        multiplier = quantity * UNIT_CONVERSIONS.get((unit, info.unit), 1)

        cost += info.price * multiplier
        calories += info.calories * multiplier
        protein += info.protein * multiplier
        carbs += info.carbs * multiplier
        fat += info.fat * multiplier

    return RecipeNutrition(
        total_cost=_round_half_up(cost, 2),
        cost_per_serving=_round_half_up(cost / servings, 2),
        calories=int(_round_half_up(calories / servings)),
        protein=int(_round_half_up(protein / servings)),
        carbs=int(_round_half_up(carbs / servings)),
        fat=int(_round_half_up(fat / servings)),
        is_under_five_dollars=cost <= BUDGET_LIMIT_USD,
    )


def recipe_info(recipe: Recipe) -> RecipeNutrition:
    return calculate_recipe_info(recipe.ingredients, recipe.servings)
