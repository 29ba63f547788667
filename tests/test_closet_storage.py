"""Closet storage, taxonomy and model tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.errors import StoreFailureError
from models import taxonomy
from models.clothing_item import ClothingItem, from_raw_metadata
from models.outfit import Outfit
from models.palette import Palette, Swatch
from tools.closet_store import SQLiteClosetStore


@pytest.fixture()
def sample_metadata() -> Dict[str, object]:
    return {
        "item_id": "item-1",
        "user_id": "user-123",
        "name": "Navy blazer",
        "category": "Tops",
        "subcategory": "blazer",
        "brand": "Example",
        "color": "navy",
        "size": "M",
        "material": "wool",
        "price": "129.5",
        "tags": ["Business", "business", "Cold Weather"],
        "notes": "A smart navy blazer.",
        "image_url": "https://example.com/image.jpg",
        "v_image": [0.1, 0.2, 0.3],
        "v_text": [1, 0],
        "palette": {"Vibrant": {"rgb": [20, 40, 120], "population": 12}, "Muted": None},
    }


@pytest.fixture()
def store(tmp_path: Path) -> SQLiteClosetStore:
    return SQLiteClosetStore(tmp_path / "closet.db")


def test_taxonomy_contains_expected_categories() -> None:
    assert taxonomy.CATEGORIES == [
        "tops",
        "bottoms",
        "dresses",
        "outerwear",
        "shoes",
        "accessories",
        "undergarments",
        "activewear",
    ]
    assert taxonomy.validate_category(" Outerwear ") == "outerwear"
    assert taxonomy.validate_category("dress") == "dresses"
    with pytest.raises(ValueError):
        taxonomy.validate_category("hats")


def test_clothing_item_normalisation(sample_metadata: Dict[str, object]) -> None:
    item = from_raw_metadata(sample_metadata)

    assert item.category == "tops"
    assert item.tags == ["business", "cold_weather"]
    assert item.price == 129.5
    assert item.v_text == [1.0, 0.0]
    assert isinstance(item.palette, Palette)
    assert item.palette.vibrant == Swatch(rgb=(20, 40, 120), population=12)
    assert item.palette.muted is None
    assert item.has_image_embedding


def test_from_raw_metadata_requires_identity() -> None:
    with pytest.raises(ValueError):
        from_raw_metadata({"item_id": "x", "user_id": "u", "category": "tops"})


def test_empty_vector_means_no_embedding(sample_metadata: Dict[str, object]) -> None:
    item = from_raw_metadata({**sample_metadata, "v_image": []})
    assert item.v_image is None
    assert not item.has_image_embedding


def test_palette_serialisation() -> None:
    palette = Palette(vibrant=Swatch(rgb=(300, -4, 12.6), population=3))

    assert palette.vibrant.rgb == (255, 0, 13)
    assert palette.vibrant.hex == "#ff000d"
    assert Palette.from_dict(palette.to_dict()) == palette
    assert palette.to_dict()["DarkMuted"] is None
    with pytest.raises(ValueError):
        Swatch(rgb=(1, 2))


def test_store_round_trip(store: SQLiteClosetStore, sample_metadata: Dict[str, object]) -> None:
    item = from_raw_metadata(sample_metadata)
    store.create_item(item)

    assert store.get_item(item.user_id, item.item_id) == item
    assert store.list_items_for_user(item.user_id) == [item]
    assert store.get_item("someone-else", item.item_id) is None


def test_items_with_embeddings_skip_unprocessed_rows(
    store: SQLiteClosetStore, sample_metadata: Dict[str, object]
) -> None:
    ready = from_raw_metadata(sample_metadata)
    pending = from_raw_metadata({**sample_metadata, "item_id": "item-2", "v_image": None, "palette": None})
    store.create_item(ready)
    store.create_item(pending)

    assert store.list_items_with_embeddings("user-123") == [ready]
    assert store.list_items_pending_enrichment() == [pending]
    assert store.list_items_by_category("user-123", "top") == [ready, pending]
    assert store.list_items_by_category("user-123", "shoes") == []


def test_attempted_items_move_behind_fresh_ones(
    store: SQLiteClosetStore, sample_metadata: Dict[str, object]
) -> None:
    older = from_raw_metadata(
        {**sample_metadata, "item_id": "p1", "v_image": None, "created_at": "2024-01-01T00:00:00+00:00"}
    )
    newer = from_raw_metadata(
        {**sample_metadata, "item_id": "p2", "v_image": None, "created_at": "2024-02-01T00:00:00+00:00"}
    )
    store.create_item(older)
    store.create_item(newer)

    store.record_enrichment_attempt("user-123", "p1")
    assert [item.item_id for item in store.list_items_pending_enrichment()] == ["p2", "p1"]
    assert [item.item_id for item in store.list_items_pending_enrichment(limit=1)] == ["p2"]

    store.update_item("user-123", "p1", {"image_url": "https://example.com/p1-retake.jpg"})
    assert [item.item_id for item in store.list_items_pending_enrichment()] == ["p1", "p2"]

def test_update_and_delete_item(store: SQLiteClosetStore, sample_metadata: Dict[str, object]) -> None:
    item = from_raw_metadata(sample_metadata)
    store.create_item(item)

    updated = store.update_item(
        item.user_id,
        item.item_id,
        {"brand": "Updated", "palette": {"Vibrant": {"rgb": [1, 2, 3]}}, "item_id": "ignored"},
    )
    assert updated is not None
    assert updated.brand == "Updated"
    assert updated.item_id == "item-1"
    assert updated.palette.vibrant.rgb == (1, 2, 3)
    assert store.get_item(item.user_id, item.item_id) == updated

    assert store.update_item(item.user_id, "missing", {"brand": "x"}) is None
    assert store.delete_item(item.user_id, item.item_id) is True
    assert store.get_item(item.user_id, item.item_id) is None
    assert store.delete_item(item.user_id, item.item_id) is False


def test_outfit_signature_is_persisted(store: SQLiteClosetStore) -> None:
    outfit = Outfit(outfit_id="o1", user_id="user-123", name="Friday", clothing_item_ids=["c", "a", "b"])
    store.create_outfit(outfit)

    fetched = store.get_outfit("user-123", "o1")
    assert fetched is not None
    assert fetched.clothing_item_ids == ["c", "a", "b"]
    assert fetched.signature == "a,b,c"
    assert store.find_outfit_by_signature("user-123", "a,b,c") == fetched
    assert store.find_outfit_by_signature("user-123", "a,b") is None

    (signature,) = store.list_outfit_signatures("user-123")
    assert signature.outfit_id == "o1"
    assert signature.signature == "a,b,c"
    assert signature.member_ids == ["a", "b", "c"]
    assert store.list_outfit_signatures("other-user") == []


def test_updating_members_refreshes_signature(store: SQLiteClosetStore) -> None:
    store.create_outfit(Outfit(outfit_id="o1", user_id="user-123", name="Friday", clothing_item_ids=["a", "b"]))

    updated = store.update_outfit("user-123", "o1", {"clothing_item_ids": ["z", "a"], "is_favorite": True})

    assert updated is not None
    assert updated.signature == "a,z"
    assert store.list_outfit_signatures("user-123")[0].signature == "a,z"
    assert store.get_outfit("user-123", "o1").is_favorite is True
    assert store.delete_outfit("user-123", "o1") is True
    assert store.list_outfits_for_user("user-123") == []


def test_sqlite_errors_become_store_failures(tmp_path: Path) -> None:
    with pytest.raises(StoreFailureError):
        SQLiteClosetStore(tmp_path)
