"""Scale recipe ingredient amounts to a different number of servings."""

import re

from src.models.models import Recipe

MIN_SERVINGS = 1
MAX_SERVINGS = 20

FRACTION_GLYPHS = {
    "¼": 0.25,
    "½": 0.5,
    "¾": 0.75,
    "⅓": 1 / 3,
    "⅔": 2 / 3,
    "⅛": 0.125,
}

# Leading quantity: optional whole number, then a glyph or slash fraction, or a decimal
_QUANTITY_RE = re.compile(
    r"^\s*(?:(?P<whole>\d+)\s*)?(?:(?P<glyph>[¼½¾⅓⅔⅛])|(?P<num>\d+)\s*/\s*(?P<den>\d+))"
    r"|^\s*(?P<decimal>\d+(?:\.\d+)?)"
)

_UNIT_RE = re.compile(
    r"\b(cups?|tbsps?|tablespoons?|tsps?|teaspoons?|oz|ounces?|lbs?|pounds?|cloves?"
    r"|slices?|pieces?|cans?|each|large|medium|small)\b"
)

_UNIT_ALIASES = (
    (("tbsp", "tablespoon"), "tbsp"),
    (("tsp", "teaspoon"), "tsp"),
    (("cup",), "cup"),
    (("oz", "ounce"), "oz"),
    (("lb", "pound"), "lb"),
    (("clove",), "clove"),
)


def _normalize_unit(unit: str) -> str:
    for prefixes, canonical in _UNIT_ALIASES:
        if unit.startswith(prefixes):
            return canonical
    return unit


def _leading_quantity(text: str):
    match = _QUANTITY_RE.match(text)
    if not match:
        return None
    if match.group("decimal"):
        return float(match.group("decimal"))

    whole = int(match.group("whole") or 0)
    if match.group("glyph"):
        return whole + FRACTION_GLYPHS[match.group("glyph")]
    denominator = int(match.group("den"))
    if denominator == 0:
        return float(whole) if match.group("whole") else None
    return whole + int(match.group("num")) / denominator


def parse_amount(text: str) -> tuple[float, str]:
    """Split a free-text amount into quantity and normalized unit.

    Handles unicode fractions ("½ cup"), slash fractions ("1/4 tsp"), mixed
    numbers ("1 ½ cups", "2 1/2 lbs") and decimals. Amounts without a leading
    number count as 1; amounts without a known unit use "each".

    Args:
        text: Amount as written in the recipe, e.g. "2 tablespoons".

    Returns:
        Tuple of (quantity, unit), e.g. (2.0, "tbsp").
    """
    amount = text.lower().strip()
    quantity = _leading_quantity(amount)
    if quantity is None:
        quantity = 1.0

    unit_match = _UNIT_RE.search(amount)
    unit = _normalize_unit(unit_match.group(1)) if unit_match else "each"
    return quantity, unit


def format_quantity(quantity: float) -> str:
    """Render a quantity: whole numbers plain, common fractions as glyphs, else one decimal."""
    if abs(quantity - round(quantity)) < 0.01:
        return str(int(round(quantity)))
    for glyph, value in (("¼", 0.25), ("½", 0.5), ("¾", 0.75)):
        if abs(quantity - value) < 0.01:
            return glyph
    for glyph, value in (("⅓", 1 / 3), ("⅔", 2 / 3)):
        if abs(quantity - value) < 0.05:
            return glyph
    formatted = f"{quantity:.1f}"
    return formatted[:-2] if formatted.endswith(".0") else formatted


def _check_servings(servings: int) -> None:
    if not MIN_SERVINGS <= servings <= MAX_SERVINGS:
        raise ValueError(f"Servings must be between {MIN_SERVINGS} and {MAX_SERVINGS}, got: {servings}")


def scale_amount(text: str, original_servings: int, new_servings: int) -> str:
    """Rescale one amount string from ``original_servings`` to ``new_servings``.

    Amounts with no leading number ("to taste", "") are returned unchanged.

    Raises:
        ValueError: If ``new_servings`` is outside 1-20 or ``original_servings`` < 1.
    """
    _check_servings(new_servings)
    if original_servings < 1:
        raise ValueError(f"Original servings must be positive, got: {original_servings}")

    if _leading_quantity(text.lower().strip()) is None:
        return text

    quantity, unit = parse_amount(text)
    scaled = format_quantity(quantity * new_servings / original_servings)
    return scaled if unit == "each" else f"{scaled} {unit}"


def scale_recipe(recipe: Recipe, servings: int) -> Recipe:
    """Return a copy of ``recipe`` with every amount rescaled to ``servings``.

    The catalog record itself is left untouched.

    Raises:
        ValueError: If ``servings`` is outside 1-20.
    """
    _check_servings(servings)
    if servings == recipe.servings:
        return recipe

    ingredients = tuple(
        ingredient.model_copy(update={"amount": scale_amount(ingredient.amount, recipe.servings, servings)})
        for ingredient in recipe.ingredients
    )
    return recipe.model_copy(update={"ingredients": ingredients, "servings": servings})
