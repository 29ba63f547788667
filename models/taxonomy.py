"""Canonical taxonomy definitions for closet items.

Categories are the fixed set a clothing item can belong to. Helper functions
keep validation consistent across the models, the store and the HTTP layer.
"""

from typing import Iterable, List


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


CATEGORIES: List[str] = [
    "tops",
    "bottoms",
    "dresses",
    "outerwear",
    "shoes",
    "accessories",
    "undergarments",
    "activewear",
]

_CATEGORY_ALIASES = {
    "top": "tops",
    "bottom": "bottoms",
    "dress": "dresses",
    "accessory": "accessories",
    "undergarment": "undergarments",
}


def validate_category(value: str) -> str:
    """Validate and normalise a category value.

    Singular spellings are accepted and mapped to the canonical plural. Raises a
    :class:`ValueError` if the category is not part of the taxonomy.
    """

    key = _normalize_key(value)
    key = _CATEGORY_ALIASES.get(key, key)
    if key not in CATEGORIES:
        raise ValueError(f"Unsupported category '{value}'. Allowed: {sorted(CATEGORIES)}")
    return key


def normalise_tags(values: Iterable[str]) -> List[str]:
    """Normalise and deduplicate free-form tags, keeping first-seen order."""

    normalised = []
    seen = set()
    for value in values:
        key = _normalize_key(str(value))
        if key and key not in seen:
            normalised.append(key)
            seen.add(key)
    return normalised


__all__ = ["CATEGORIES", "validate_category", "normalise_tags"]
