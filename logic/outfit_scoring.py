"""Weighted scoring of candidate items against a base item."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Mapping, Optional

from logic.color_harmony import compare_colors
from logic.vector_similarity import cosine_similarity
from models.clothing_item import ClothingItem

logger = logging.getLogger(__name__)

# "occasion" is reserved: no occasion signal feeds final_score yet.
WEIGHTS: Dict[str, float] = {
    "color": 0.7,
    "embedding": 0.2,
    "occasion": 0.5,
}


@dataclass
class ScoredItem(ClothingItem):
    """A candidate item carrying its weighted score contributions."""

    cosine_similarity: float = 0.0
    color_cohesion: float = 0.0
    final_score: float = 0.0

    @classmethod
    def from_item(cls, item: ClothingItem, cosine: float, cohesion: float) -> "ScoredItem":
        values = {f.name: getattr(item, f.name) for f in fields(ClothingItem)}
        return cls(
            **values,
            cosine_similarity=cosine,
            color_cohesion=cohesion,
            final_score=cosine + cohesion,
        )


def is_scorable(item: ClothingItem) -> bool:
    """Items need both a visual embedding and a palette to be scored."""

    return bool(item.v_image) and item.palette is not None


def calculate_outfit_score(
    candidates: Iterable[ClothingItem],
    base_item: ClothingItem,
    weights: Optional[Mapping[str, float]] = None,
) -> List[ScoredItem]:
    """Score candidates against ``base_item`` keeping input order.

    Candidates without ``v_image`` or ``palette`` are dropped silently.
    """

    active = {**WEIGHTS, **(weights or {})}
    scored: List[ScoredItem] = []
    skipped = 0
    for item in candidates:
        if not is_scorable(item):
            skipped += 1
            continue
        cosine = cosine_similarity(base_item.v_image, item.v_image) * active["embedding"]
        cohesion = compare_colors(base_item.palette, item.palette).verdict * active["color"]
        scored.append(ScoredItem.from_item(item, cosine, cohesion))
    if skipped:
        logger.info("Skipped %s candidates lacking an embedding or palette", skipped)
    return scored


__all__ = ["WEIGHTS", "ScoredItem", "calculate_outfit_score", "is_scorable"]
