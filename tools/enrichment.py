"""Populate embeddings and palettes on stored clothing items."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from logic.errors import NotFoundError, ProviderError
from models.clothing_item import ClothingItem
from models.palette import Palette
from tools.closet_store import ClosetStore
from tools.color_extraction import ColorExtractor
from tools.embeddings import ImageEmbeddingProvider, TextEmbeddingProvider

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


@dataclass
class ItemEnrichment:
    """Whatever the providers managed to produce for one item."""

    v_image: Optional[List[float]] = None
    v_text: Optional[List[float]] = None
    palette: Optional[Palette] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.v_image and not self.v_text and self.palette is None

    def as_update(self) -> Dict[str, Any]:
        update: Dict[str, Any] = {}
        if self.v_image:
            update["v_image"] = self.v_image
        if self.v_text:
            update["v_text"] = self.v_text
        if self.palette is not None:
            update["palette"] = self.palette
        return update


def create_item_search_text(item: ClothingItem) -> str:
    """Join the descriptive fields of an item into one searchable string."""

    parts = [item.name, item.category, item.brand, item.material, item.color, *item.tags, item.notes]
    return " ".join(str(part) for part in parts if part).strip()


class ItemEnrichmentService:
    """Runs the image, color and text providers for items and saves results.

    A failing provider is logged and skipped so the other results still land.
    """

    def __init__(
        self,
        store: ClosetStore,
        image_provider: ImageEmbeddingProvider,
        text_provider: TextEmbeddingProvider,
        color_extractor: ColorExtractor,
    ) -> None:
        self.store = store
        self.image_provider = image_provider
        self.text_provider = text_provider
        self.color_extractor = color_extractor

    def generate_item_embeddings(self, item: ClothingItem) -> ItemEnrichment:
        enrichment = ItemEnrichment()

        if item.image_url:
            try:
                enrichment.v_image = self.image_provider.embed_image(item.image_url)
            except (ProviderError, ValueError) as exc:
                LOGGER.error("Failed to generate image embedding", extra={"item_id": item.item_id}, exc_info=exc)
                enrichment.errors.append(f"image: {exc}")
            try:
                enrichment.palette = self.color_extractor.extract_palette(item.image_url)
            except (ProviderError, ValueError) as exc:
                LOGGER.error("Failed to generate color palette", extra={"item_id": item.item_id}, exc_info=exc)
                enrichment.errors.append(f"palette: {exc}")

        search_text = create_item_search_text(item)
        if search_text:
            try:
                enrichment.v_text = self.text_provider.embed_text(search_text)
            except (ProviderError, ValueError) as exc:
                LOGGER.error("Failed to generate text embedding", extra={"item_id": item.item_id}, exc_info=exc)
                enrichment.errors.append(f"text: {exc}")

        return enrichment

    def enrich_item(self, user_id: str, item_id: str) -> ItemEnrichment:
        """Enrich one stored item; raises ProviderError when nothing was produced."""

        item = self.store.get_item(user_id, item_id)
        if item is None:
            raise NotFoundError("Item not found")

        LOGGER.info("Generating embeddings", extra={"item_id": item_id})
        enrichment = self.generate_item_embeddings(item)
        if enrichment.is_empty:
            raise ProviderError("Failed to generate any embeddings")

        self.store.update_item(user_id, item_id, enrichment.as_update())
        LOGGER.info(
            "Stored embeddings",
            extra={
                "item_id": item_id,
                "has_image_embedding": bool(enrichment.v_image),
                "has_text_embedding": bool(enrichment.v_text),
            },
        )
        return enrichment

    def enrich_pending(self, limit: int = DEFAULT_BATCH_SIZE) -> List[Dict[str, Any]]:
        """Process up to ``limit`` items still missing an embedding."""

        results: List[Dict[str, Any]] = []
        for item in self.store.list_items_pending_enrichment(limit):
            result: Dict[str, Any]
            try:
                enrichment = self.enrich_item(item.user_id, item.item_id)
                result = {
                    "id": item.item_id,
                    "success": True,
                    "has_image_embedding": bool(enrichment.v_image),
                    "has_text_embedding": bool(enrichment.v_text),
                }
            except ProviderError as exc:
                result = {"id": item.item_id, "success": False, "error": str(exc)}
            self.store.record_enrichment_attempt(item.user_id, item.item_id)
            results.append(result)
        return results


__all__ = ["DEFAULT_BATCH_SIZE", "ItemEnrichment", "ItemEnrichmentService", "create_item_search_text"]
