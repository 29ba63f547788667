"""Which categories complete an outfit for a given base category."""

from typing import Dict, List

OUTFIT_RULES: Dict[str, List[str]] = {
    "tops": ["bottoms", "shoes"],
    "bottoms": ["tops", "shoes"],
    "dresses": ["shoes", "accessories"],
    "outerwear": ["tops", "bottoms", "shoes"],
    "shoes": ["tops", "bottoms"],
    "accessories": ["tops", "bottoms", "shoes"],
    "undergarments": [],
    "activewear": ["shoes"],
}


def complementary_categories(category: str) -> List[str]:
    """Return the complement list for ``category``; unknown categories get none."""

    return list(OUTFIT_RULES.get(category, []))


__all__ = ["OUTFIT_RULES", "complementary_categories"]
