"""Pydantic schemas for validating service and HTTP payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class RecommendationInput(BaseModel):
    """Input contract for outfit generation."""

    user_id: str = Field(min_length=1)
    base_item_id: str = Field(min_length=1)
    exclude_ids: List[str] = Field(default_factory=list)

    @field_validator("exclude_ids", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class EnrichmentInput(BaseModel):
    """Input contract for enriching a single item."""

    user_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)


class OutfitResponse(BaseModel):
    success: bool = True
    outfit: List[Dict[str, Any]]


class EnrichmentResponse(BaseModel):
    success: bool = True
    item_id: str
    has_image_embedding: bool
    has_text_embedding: bool
    has_palette: bool


class BatchEnrichmentResponse(BaseModel):
    processed: int = 0
    results: List[Dict[str, Any]] = []
    message: Optional[str] = None


__all__ = [
    "RecommendationInput",
    "EnrichmentInput",
    "OutfitResponse",
    "EnrichmentResponse",
    "BatchEnrichmentResponse",
]
