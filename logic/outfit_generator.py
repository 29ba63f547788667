"""Compose complete outfits that do not repeat a saved outfit."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from logic.recommendations import DEFAULT_TOP_K, OutfitRecommendation, build_outfit_from_base
from models.clothing_item import ClothingItem
from models.outfit import OutfitSignature, generate_outfit_signature
from tools.closet_store import ClosetStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 25


def compose_outfit(recommendation: OutfitRecommendation) -> List[ClothingItem]:
    """Base item followed by the best item of each recommended category."""

    outfit: List[ClothingItem] = [recommendation.base_item]
    for rec in recommendation.recommendations:
        if rec.items:
            outfit.append(rec.items[0])
    return outfit


def _find_collision(signature: str, stored: Iterable[OutfitSignature]) -> Optional[OutfitSignature]:
    for entry in stored:
        if entry.signature == signature:
            return entry
    return None


def generate_complete_outfit(
    store: ClosetStore,
    user_id: str,
    base_item_id: str,
    exclude_ids: Iterable[str] = (),
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    top_k: int = DEFAULT_TOP_K,
    weights: Optional[Mapping[str, float]] = None,
) -> List[ClothingItem]:
    """Build an outfit around ``base_item_id`` whose signature is new.

    Stored signatures are read once. Each collision adds the colliding outfit's
    members to the exclusion set and the outfit is rebuilt. The search stops
    with the last outfit built when a collision adds nothing new or after
    ``max_attempts`` builds.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    stored = store.list_outfit_signatures(user_id)
    # dict keeps first-seen order, which keeps exclusion logs stable
    excluded: Dict[str, None] = dict.fromkeys(str(item_id) for item_id in exclude_ids)
    outfit: List[ClothingItem] = []

    for attempt in range(1, max_attempts + 1):
        recommendation = build_outfit_from_base(
            store, user_id, base_item_id, list(excluded), top_k=top_k, weights=weights
        )
        outfit = compose_outfit(recommendation)
        signature = generate_outfit_signature(item.item_id for item in outfit)

        collision = _find_collision(signature, stored)
        if collision is None:
            logger.info("Built unique outfit of %s items after %s attempt(s)", len(outfit), attempt)
            return outfit

        before = len(excluded)
        excluded.update(dict.fromkeys(collision.member_ids))
        logger.info(
            "Outfit duplicates saved outfit %s, retrying with %s excluded ids",
            collision.outfit_id,
            len(excluded),
        )
        if len(excluded) == before:
            logger.warning("Candidate pool exhausted; returning duplicate of outfit %s", collision.outfit_id)
            return outfit

    logger.warning("No unique outfit within %s attempts; returning last build", max_attempts)
    return outfit


__all__ = ["DEFAULT_MAX_ATTEMPTS", "compose_outfit", "generate_complete_outfit"]
