"""Tests for embedding providers, color extraction and item enrichment."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest
import requests
from PIL import Image

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.color_math import rgb_to_hsl
from logic.errors import NotFoundError, ProviderError
from logic.recommendations import build_outfit_from_base
from models.clothing_item import ClothingItem
from models.palette import Palette, Swatch
from tools import embeddings as embeddings_module
from tools.closet_store import SQLiteClosetStore
from tools.color_extraction import StaticColorExtractor, VibrantColorExtractor, generate_palette
from tools.embeddings import (
    GeminiTextEmbeddingProvider,
    HashingEmbeddingProvider,
    ImageEmbeddingProvider,
    ReplicateClipEmbeddingProvider,
)
from tools.enrichment import ItemEnrichmentService, create_item_search_text

RED = Palette(vibrant=Swatch(rgb=(200, 30, 30)))


class _FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self) -> Any:
        return self._payload


class _FailingImageProvider(ImageEmbeddingProvider):
    def embed_image(self, image_url: str) -> List[float]:
        raise ProviderError("CLIP unavailable")


def _make_item(item_id: str = "item-1", **overrides) -> ClothingItem:
    base = dict(
        item_id=item_id,
        user_id="user-1",
        name="Linen shirt",
        category="tops",
        brand="Acme",
        color="white",
        material="linen",
        tags=["summer"],
        image_url=f"https://example.com/{item_id}.jpg",
    )
    base.update(overrides)
    return ClothingItem(**base)


@pytest.fixture()
def store(tmp_path: Path) -> SQLiteClosetStore:
    return SQLiteClosetStore(tmp_path / "closet.db")


def _service(store: SQLiteClosetStore, image_provider: ImageEmbeddingProvider | None = None) -> ItemEnrichmentService:
    hashing = HashingEmbeddingProvider(16)
    return ItemEnrichmentService(
        store=store,
        image_provider=image_provider or hashing,
        text_provider=hashing,
        color_extractor=StaticColorExtractor(default=RED),
    )


def test_search_text_joins_descriptive_fields() -> None:
    text = create_item_search_text(_make_item(notes="Loose fit"))
    assert text == "Linen shirt tops Acme linen white summer Loose fit"


def test_hashing_provider_is_deterministic() -> None:
    provider = HashingEmbeddingProvider(8)
    assert provider.embed_text("blue denim") == provider.embed_text("Blue Denim")
    assert len(provider.embed_image("https://example.com/a.jpg")) == 8
    assert provider.embed_text("") == [0.0] * 8
    with pytest.raises(ValueError):
        HashingEmbeddingProvider(0)


def test_enrich_item_writes_back_vectors_and_palette(store: SQLiteClosetStore) -> None:
    store.create_item(_make_item())

    enrichment = _service(store).enrich_item("user-1", "item-1")

    stored = store.get_item("user-1", "item-1")
    assert stored.v_image == enrichment.v_image
    assert stored.v_text == enrichment.v_text
    assert stored.palette == RED
    assert store.list_items_with_embeddings("user-1") == [stored]


def test_failing_provider_does_not_block_others(store: SQLiteClosetStore) -> None:
    store.create_item(_make_item())

    enrichment = _service(store, _FailingImageProvider()).enrich_item("user-1", "item-1")

    assert enrichment.v_image is None
    assert enrichment.v_text
    assert enrichment.errors == ["image: CLIP unavailable"]
    stored = store.get_item("user-1", "item-1")
    assert stored.v_image is None
    assert stored.palette == RED


def test_nothing_generated_is_an_error(store: SQLiteClosetStore) -> None:
    store.create_item(_make_item())

    class _Silent(HashingEmbeddingProvider):
        def embed_text(self, text: str) -> List[float]:
            raise ProviderError("down")

    service = ItemEnrichmentService(
        store=store,
        image_provider=_FailingImageProvider(),
        text_provider=_Silent(4),
        color_extractor=StaticColorExtractor(),
    )
    with pytest.raises(ProviderError):
        service.enrich_item("user-1", "item-1")


def test_enrich_missing_item(store: SQLiteClosetStore) -> None:
    with pytest.raises(NotFoundError):
        _service(store).enrich_item("user-1", "nope")


def test_enrich_pending_processes_batch(store: SQLiteClosetStore) -> None:
    store.create_item(_make_item("a"))
    store.create_item(_make_item("b"))

    results = _service(store).enrich_pending(limit=1)

    assert len(results) == 1
    assert results[0]["success"] is True
    assert len(store.list_items_pending_enrichment()) == 1


def test_replicate_provider_parses_clip_output(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []

    def fake_post(url: str, **kwargs: Any) -> _FakeResponse:
        calls.append({"url": url, **kwargs})
        return _FakeResponse({"status": "succeeded", "output": [{"embedding": [0.1, 0.2]}]})

    monkeypatch.setattr(embeddings_module.requests, "post", fake_post)
    provider = ReplicateClipEmbeddingProvider(api_token="token", version="v1")

    assert provider.embed_image("https://example.com/a.jpg") == [0.1, 0.2]
    assert calls[0]["json"] == {"version": "v1", "input": {"inputs": "https://example.com/a.jpg"}}
    assert calls[0]["headers"]["Authorization"] == "Bearer token"


@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse({"status": "failed", "error": "boom"}),
        _FakeResponse({"status": "succeeded", "output": [{"vector": [1]}]}),
        _FakeResponse({}, status_code=500),
    ],
)
def test_replicate_provider_failures(monkeypatch: pytest.MonkeyPatch, response: _FakeResponse) -> None:
    monkeypatch.setattr(embeddings_module.requests, "post", lambda *_, **__: response)
    provider = ReplicateClipEmbeddingProvider(api_token="token", version="v1")

    with pytest.raises(ProviderError):
        provider.embed_image("https://example.com/a.jpg")


def test_gemini_provider_requests_dimension(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: Dict[str, Any] = {}
    monkeypatch.setattr(embeddings_module.genai, "configure", lambda **kwargs: captured.update(kwargs))

    def fake_embed(**kwargs: Any) -> Dict[str, Any]:
        captured.update(kwargs)
        return {"embedding": [0.5, 0.25]}

    monkeypatch.setattr(embeddings_module.genai, "embed_content", fake_embed)
    provider = GeminiTextEmbeddingProvider(api_key="key", model="models/text-embedding-004", dimension=2)

    assert provider.embed_text("linen shirt") == [0.5, 0.25]
    assert captured["api_key"] == "key"
    assert captured["output_dimensionality"] == 2


def test_generate_palette_assigns_slots() -> None:
    swatches = [
        Swatch(rgb=(230, 20, 20), population=50),
        Swatch(rgb=(120, 120, 120), population=80),
        Swatch(rgb=(60, 10, 10), population=10),
    ]

    palette = generate_palette(swatches)

    assert palette.vibrant == swatches[0]
    assert palette.muted == swatches[1]
    assert palette.dark_vibrant == swatches[2]
    assert generate_palette([]) == Palette()


def test_vibrant_extractor_reads_local_image(tmp_path: Path) -> None:
    image = Image.new("RGB", (40, 40), (128, 128, 128))
    image.paste((220, 20, 30), (0, 0, 20, 40))
    path = tmp_path / "shirt.png"
    image.save(path)

    palette = VibrantColorExtractor().extract_palette(str(path))

    assert palette.vibrant is not None
    vibrant = rgb_to_hsl(*palette.vibrant.rgb)
    assert vibrant.s > 70
    assert vibrant.h < 10 or vibrant.h > 350
    assert palette.muted is not None
    assert rgb_to_hsl(*palette.muted.rgb).s < 10


def test_vibrant_extractor_wraps_bad_input(tmp_path: Path) -> None:
    bad = tmp_path / "not-an-image.png"
    bad.write_text("nope")

    with pytest.raises(ProviderError):
        VibrantColorExtractor().extract_palette(str(bad))


@pytest.mark.parametrize("rgb", [(40, 40, 40), (128, 128, 128), (250, 250, 250), (0, 0, 0)])
def test_neutral_swatch_still_yields_neutral_vibrant(rgb) -> None:
    palette = generate_palette([Swatch(rgb=rgb, population=100)])

    assert palette.vibrant is not None
    vibrant = rgb_to_hsl(*palette.vibrant.rgb)
    assert vibrant.s == 0
    assert vibrant.l == pytest.approx(50, abs=0.5)
    assert palette.muted is not None
    assert rgb_to_hsl(*palette.muted.rgb).s == 0


def test_dark_colored_swatch_fills_vibrant_at_normal_lightness() -> None:
    navy = Swatch(rgb=(10, 20, 70), population=10)

    palette = generate_palette([navy])

    assert palette.dark_vibrant == navy
    vibrant = rgb_to_hsl(*palette.vibrant.rgb)
    assert vibrant.h == pytest.approx(rgb_to_hsl(*navy.rgb).h, abs=1)
    assert vibrant.l == pytest.approx(50, abs=0.5)


def test_gray_garment_can_be_recommended(tmp_path: Path, store: SQLiteClosetStore) -> None:
    path = tmp_path / "charcoal-trousers.png"
    Image.new("RGB", (64, 64), (40, 40, 40)).save(path)
    charcoal = VibrantColorExtractor().extract_palette(str(path))

    store.create_item(_make_item("shirt", v_image=[1.0, 0.0], palette=RED))
    store.create_item(
        _make_item("trousers", name="Charcoal trousers", category="bottoms", v_image=[1.0, 0.0], palette=charcoal)
    )

    outfit = build_outfit_from_base(store, "user-1", "shirt")

    assert [rec.category for rec in outfit.recommendations] == ["bottoms"]
    trousers = outfit.recommendations[0].items[0]
    assert trousers.item_id == "trousers"
    assert trousers.color_cohesion == pytest.approx(0.5 * 0.7)


def test_items_without_photo_do_not_block_the_batch(store: SQLiteClosetStore) -> None:
    store.create_item(_make_item("a-no-photo", image_url=None, created_at="2024-01-01T00:00:00+00:00"))
    store.create_item(_make_item("b-photo", created_at="2024-01-02T00:00:00+00:00"))
    service = _service(store)

    first = service.enrich_pending(limit=1)
    second = service.enrich_pending(limit=1)

    assert [result["id"] for result in first] == ["a-no-photo"]
    assert first[0]["has_image_embedding"] is False
    assert [result["id"] for result in second] == ["b-photo"]
    assert [item.item_id for item in store.list_items_pending_enrichment()] == ["a-no-photo"]
