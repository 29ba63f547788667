"""Embedding providers turning item images and text into feature vectors."""

from __future__ import annotations

import hashlib
import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import google.generativeai as genai
import requests
from pydantic import BaseModel, ValidationError

from logic.errors import ProviderError

LOGGER = logging.getLogger(__name__)

REPLICATE_PREDICTIONS_URL = "https://api.replicate.com/v1/predictions"


class ImageEmbeddingProvider(ABC):
    """Turns an image URL into a fixed-length visual feature vector."""

    @abstractmethod
    def embed_image(self, image_url: str) -> List[float]:
        """Return the visual embedding for ``image_url``."""


class TextEmbeddingProvider(ABC):
    """Turns free text into a fixed-length text feature vector."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Return the text embedding for ``text``."""


class _ClipFeatures(BaseModel):
    embedding: List[float]


class _ReplicatePrediction(BaseModel):
    status: str
    output: Optional[List[_ClipFeatures]] = None
    error: Optional[str] = None


class ReplicateClipEmbeddingProvider(ImageEmbeddingProvider):
    """CLIP ViT-L/14 image features (768 values) served by Replicate."""

    def __init__(self, api_token: str, version: str, timeout_seconds: float = 30.0) -> None:
        if not api_token:
            raise ValueError("A Replicate API token is required")
        self.api_token = api_token
        self.version = version
        self.timeout_seconds = timeout_seconds

    def embed_image(self, image_url: str) -> List[float]:
        if not image_url:
            raise ValueError("image_url is required for image embeddings")

        LOGGER.info("Requesting CLIP features", extra={"version": self.version})
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Prefer": "wait",
        }
        payload = {"version": self.version, "input": {"inputs": image_url}}
        try:
            response = requests.post(
                REPLICATE_PREDICTIONS_URL,
                json=payload,
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            prediction = _ReplicatePrediction.model_validate(response.json())
        except requests.RequestException as exc:
            raise ProviderError(f"Replicate request failed: {exc}") from exc
        except ValidationError as exc:
            raise ProviderError("Invalid CLIP response format") from exc

        if prediction.status != "succeeded" or not prediction.output:
            raise ProviderError(prediction.error or f"CLIP prediction {prediction.status}")
        return prediction.output[0].embedding


class GeminiTextEmbeddingProvider(TextEmbeddingProvider):
    """Text embeddings from the Google Generative AI embedding endpoint."""

    def __init__(self, api_key: str, model: str, dimension: int = 512) -> None:
        if not api_key:
            raise ValueError("A Google API key is required")
        self.model = model
        self.dimension = dimension
        genai.configure(api_key=api_key)

    def embed_text(self, text: str) -> List[float]:
        if not text:
            raise ValueError("text is required for text embeddings")
        try:
            result = genai.embed_content(
                model=self.model,
                content=text,
                task_type="semantic_similarity",
                output_dimensionality=self.dimension,
            )
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"Text embedding failed: {exc}") from exc
        embedding = result.get("embedding") if isinstance(result, dict) else None
        if not embedding:
            raise ProviderError("Text embedding response had no embedding")
        return [float(value) for value in embedding]


class HashingEmbeddingProvider(ImageEmbeddingProvider, TextEmbeddingProvider):
    """Deterministic offline embeddings built from hashed tokens.

    Used when no provider credentials are configured and in tests. Vectors are
    repeatable for the same input, so identical images and texts score a
    cosine similarity of 1.
    """

    def __init__(self, dimension: int = 128) -> None:
        if dimension <= 0:
            raise ValueError("Embedding dimension must be positive")
        self.dimension = dimension

    @staticmethod
    def _tokenise(text: str) -> List[str]:
        return [token for token in re.split(r"[^a-zA-Z0-9]+", text.lower()) if token]

    def _hash_to_index(self, token: str) -> int:
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "big") % self.dimension

    def _accumulate_tokens(self, tokens: Iterable[str]) -> List[float]:
        vector = [0.0] * self.dimension
        for token in tokens:
            vector[self._hash_to_index(token)] += 1.0
        return vector

    def embed_text(self, text: str) -> List[float]:
        if not text:
            return [0.0] * self.dimension
        return self._accumulate_tokens(self._tokenise(text))

    def embed_image(self, image_url: str) -> List[float]:
        if not image_url:
            return [0.0] * self.dimension
        return self._accumulate_tokens(self._tokenise(image_url))


__all__ = [
    "ImageEmbeddingProvider",
    "TextEmbeddingProvider",
    "ReplicateClipEmbeddingProvider",
    "GeminiTextEmbeddingProvider",
    "HashingEmbeddingProvider",
]
