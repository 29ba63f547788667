"""Closet service bootstrap."""

import logging
from typing import Any, Dict, List, Optional

from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event
from logic.outfit_generator import generate_complete_outfit
from logic.recommendations import OutfitRecommendation, build_outfit_from_base
from logic.validation import EnrichmentInput, RecommendationInput
from models.clothing_item import ClothingItem
from tools.closet_store import ClosetStore, SQLiteClosetStore
from tools.color_extraction import ColorExtractor, VibrantColorExtractor
from tools.embeddings import (
    GeminiTextEmbeddingProvider,
    HashingEmbeddingProvider,
    ImageEmbeddingProvider,
    ReplicateClipEmbeddingProvider,
    TextEmbeddingProvider,
)
from tools.enrichment import DEFAULT_BATCH_SIZE, ItemEnrichment, ItemEnrichmentService
from tools.observability import instrument_operation

LOGGER = get_logger(__name__)


class ClosetApp:
    """Wires together the store, providers and recommendation engine."""

    def __init__(
        self,
        config: ClosetConfig | None = None,
        store: ClosetStore | None = None,
        image_provider: ImageEmbeddingProvider | None = None,
        text_provider: TextEmbeddingProvider | None = None,
        color_extractor: ColorExtractor | None = None,
    ) -> None:
        self.config = config or ClosetConfig.from_env()
        configure_logging()

        self.store = store or SQLiteClosetStore(self.config.database_path)
        self.image_provider = image_provider or self._build_image_provider()
        self.text_provider = text_provider or self._build_text_provider()
        self.color_extractor = color_extractor or VibrantColorExtractor(
            timeout_seconds=self.config.http_timeout_seconds
        )
        self.enrichment = ItemEnrichmentService(
            store=self.store,
            image_provider=self.image_provider,
            text_provider=self.text_provider,
            color_extractor=self.color_extractor,
        )
        log_event(
            LOGGER,
            logging.INFO,
            "app_initialised",
            environment=self.config.environment or "local",
            image_provider=type(self.image_provider).__name__,
            text_provider=type(self.text_provider).__name__,
        )

    def _build_image_provider(self) -> ImageEmbeddingProvider:
        if self.config.replicate_api_token:
            return ReplicateClipEmbeddingProvider(
                api_token=self.config.replicate_api_token,
                version=self.config.replicate_clip_version,
                timeout_seconds=self.config.http_timeout_seconds,
            )
        log_event(LOGGER, logging.WARNING, "offline_image_embeddings", reason="missing_replicate_token")
        return HashingEmbeddingProvider(self.config.hashing_dimension)

    def _build_text_provider(self) -> TextEmbeddingProvider:
        if self.config.google_api_key:
            return GeminiTextEmbeddingProvider(
                api_key=self.config.google_api_key,
                model=self.config.text_embedding_model,
                dimension=self.config.text_embedding_dimension,
            )
        log_event(LOGGER, logging.WARNING, "offline_text_embeddings", reason="missing_google_api_key")
        return HashingEmbeddingProvider(self.config.hashing_dimension)

    @instrument_operation(
        "recommend_items",
        input_model=RecommendationInput,
        summarise=lambda result: {"categories": len(result.recommendations)},
    )
    def recommend_items(self, user_id: str, base_item_id: str, exclude_ids: List[str]) -> OutfitRecommendation:
        """Ranked complementary items per category for a base item."""

        return build_outfit_from_base(
            self.store,
            user_id,
            base_item_id,
            exclude_ids,
            top_k=self.config.recommendations_per_category,
            weights=self.config.score_weights(),
        )

    @instrument_operation(
        "generate_outfit",
        input_model=RecommendationInput,
        summarise=lambda outfit: {"outfit_size": len(outfit)},
    )
    def generate_outfit(self, user_id: str, base_item_id: str, exclude_ids: List[str]) -> List[ClothingItem]:
        """A complete outfit around the base item that is not already saved."""

        return generate_complete_outfit(
            self.store,
            user_id,
            base_item_id,
            exclude_ids,
            max_attempts=self.config.max_generation_attempts,
            top_k=self.config.recommendations_per_category,
            weights=self.config.score_weights(),
        )

    @instrument_operation(
        "enrich_item",
        input_model=EnrichmentInput,
        summarise=lambda enrichment: {"provider_errors": len(enrichment.errors)},
    )
    def enrich_item(self, user_id: str, item_id: str) -> ItemEnrichment:
        return self.enrichment.enrich_item(user_id, item_id)

    @instrument_operation("enrich_pending", summarise=lambda results: {"processed": len(results)})
    def enrich_pending(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.enrichment.enrich_pending(limit or DEFAULT_BATCH_SIZE)


__all__ = ["ClosetApp"]
