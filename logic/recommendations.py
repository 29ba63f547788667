"""Recommendation builder: rank complementary items for a base item."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional

from logic.category_rules import complementary_categories
from logic.errors import MissingEmbeddingError, NotFoundError
from logic.outfit_scoring import ScoredItem, calculate_outfit_score
from models.clothing_item import ClothingItem
from tools.closet_store import ClosetStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3


@dataclass(frozen=True)
class CategoryRecommendation:
    category: str
    items: List[ScoredItem] = field(default_factory=list)


@dataclass(frozen=True)
class OutfitRecommendation:
    base_item: ClothingItem
    recommendations: List[CategoryRecommendation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "base_item": self.base_item.to_dict(),
            "recommendations": [
                {"category": rec.category, "items": [item.to_dict() for item in rec.items]}
                for rec in self.recommendations
            ],
        }


def load_base_item(store: ClosetStore, user_id: str, base_item_id: str) -> ClothingItem:
    """Fetch the anchor item, requiring it to exist and carry an embedding."""

    base_item = store.get_item(user_id, base_item_id)
    if base_item is None:
        raise NotFoundError("Base item not found")
    if not base_item.v_image:
        raise MissingEmbeddingError(
            "Base item has no embedding. Please wait for processing or re-upload the image."
        )
    return base_item


def rank_candidates(
    candidates: Iterable[ClothingItem],
    base_item: ClothingItem,
    top_k: int = DEFAULT_TOP_K,
    weights: Optional[Mapping[str, float]] = None,
) -> List[ScoredItem]:
    """Score candidates and keep the ``top_k`` best; ties keep input order."""

    scored = calculate_outfit_score(candidates, base_item, weights)
    scored.sort(key=lambda item: item.final_score, reverse=True)
    return scored[:top_k]


def build_outfit_from_base(
    store: ClosetStore,
    user_id: str,
    base_item_id: str,
    exclude_ids: Iterable[str] = (),
    top_k: int = DEFAULT_TOP_K,
    weights: Optional[Mapping[str, float]] = None,
) -> OutfitRecommendation:
    """Recommend up to ``top_k`` items per complementary category.

    Categories are reported in complement-list order and a category with no
    remaining candidates is left out entirely.
    """

    base_item = load_base_item(store, user_id, base_item_id)
    pool = store.list_items_with_embeddings(user_id)
    excluded = set(exclude_ids)
    needed = complementary_categories(base_item.category)
    logger.info(
        "Building recommendations base_category=%s needed=%s pool=%s excluded=%s",
        base_item.category,
        needed,
        len(pool),
        len(excluded),
    )

    recommendations: List[CategoryRecommendation] = []
    for category in needed:
        category_items = [
            item
            for item in pool
            if item.category == category
            and item.item_id != base_item.item_id
            and item.item_id not in excluded
            and item.v_image
        ]
        if not category_items:
            logger.info("No candidates left for category %s", category)
            continue
        top_items = rank_candidates(category_items, base_item, top_k, weights)
        recommendations.append(CategoryRecommendation(category=category, items=top_items))

    return OutfitRecommendation(base_item=base_item, recommendations=recommendations)


__all__ = [
    "DEFAULT_TOP_K",
    "CategoryRecommendation",
    "OutfitRecommendation",
    "build_outfit_from_base",
    "load_base_item",
    "rank_candidates",
]
