"""Fuzzy ingredient predicate shared by the matcher and the annotator.

Recipe lines ("boneless skinless chicken breast") and user input ("chicken")
are both free text, so a requirement counts as satisfied when either side
contains the other, or when a long-enough word of one side appears inside the
other. Every caller goes through ``is_satisfied`` so match percentages and the
set of matched recipes never disagree.
"""

from typing import Iterable

# Shortest word that counts on its own, so "oil" and "the" never do
MIN_TOKEN_LENGTH = 4


def normalize(text: str) -> str:
    """Lowercase and trim. No stemming, no stop words."""
    return text.strip().lower()


def _long_tokens(text: str) -> list[str]:
    return [token for token in text.split() if len(token) >= MIN_TOKEN_LENGTH]


def matches_candidate(required: str, candidate: str) -> bool:
    """Check one normalized requirement against one normalized candidate.

    An empty candidate never satisfies anything.
    """
    if not candidate:
        return False
    if candidate in required or required in candidate:
        return True
    if any(token in candidate for token in _long_tokens(required)):
        return True
    return any(token in required for token in _long_tokens(candidate))


def is_satisfied(required: str, available: Iterable[str]) -> bool:
    """Decide whether a required ingredient is covered by the available list.

    Args:
        required: Ingredient name from a recipe line.
        available: Ingredient names the caller has on hand.

    Returns:
        True on the first candidate that satisfies the requirement.
    """
    needle = normalize(required)
    return any(matches_candidate(needle, normalize(candidate)) for candidate in available)
