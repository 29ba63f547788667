"""Closet storage abstractions and SQLite implementation."""
from __future__ import annotations

import contextlib
import json
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from logic.errors import StoreFailureError
from models.clothing_item import ClothingItem
from models.outfit import Outfit, OutfitSignature, generate_outfit_signature, parse_outfit_signature
from models.palette import Palette
from models.taxonomy import validate_category

_ITEM_COLUMNS = (
    "user_id",
    "item_id",
    "name",
    "category",
    "subcategory",
    "brand",
    "color",
    "size",
    "material",
    "price",
    "purchase_date",
    "tags",
    "notes",
    "image_url",
    "image_path",
    "v_image",
    "v_text",
    "palette",
    "is_favorite",
    "wear_count",
    "created_at",
    "updated_at",
)

_OUTFIT_COLUMNS = (
    "user_id",
    "outfit_id",
    "name",
    "description",
    "image_url",
    "image_path",
    "clothing_item_ids",
    "outfit_signature",
    "tags",
    "occasion",
    "season",
    "is_favorite",
    "wear_count",
    "created_at",
    "updated_at",
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ClosetStore:
    """Persistence interface for clothing items and outfits."""

    def create_item(self, item: ClothingItem) -> ClothingItem:
        raise NotImplementedError

    def get_item(self, user_id: str, item_id: str) -> Optional[ClothingItem]:
        raise NotImplementedError

    def list_items_for_user(self, user_id: str) -> List[ClothingItem]:
        raise NotImplementedError

    def list_items_with_embeddings(self, user_id: str) -> List[ClothingItem]:
        raise NotImplementedError

    def list_items_by_category(self, user_id: str, category: str) -> List[ClothingItem]:
        raise NotImplementedError

    def list_items_pending_enrichment(self, limit: int = 10) -> List[ClothingItem]:
        raise NotImplementedError

    def record_enrichment_attempt(self, user_id: str, item_id: str) -> None:
        raise NotImplementedError

    def update_item(self, user_id: str, item_id: str, updated_fields: Dict[str, object]) -> Optional[ClothingItem]:
        raise NotImplementedError

    def delete_item(self, user_id: str, item_id: str) -> bool:
        raise NotImplementedError

    def create_outfit(self, outfit: Outfit) -> Outfit:
        raise NotImplementedError

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[Outfit]:
        raise NotImplementedError

    def list_outfits_for_user(self, user_id: str) -> List[Outfit]:
        raise NotImplementedError

    def list_outfit_signatures(self, user_id: str) -> List[OutfitSignature]:
        raise NotImplementedError

    def find_outfit_by_signature(self, user_id: str, signature: str) -> Optional[Outfit]:
        raise NotImplementedError

    def update_outfit(self, user_id: str, outfit_id: str, updated_fields: Dict[str, object]) -> Optional[Outfit]:
        raise NotImplementedError

    def delete_outfit(self, user_id: str, outfit_id: str) -> bool:
        raise NotImplementedError


class SQLiteClosetStore(ClosetStore):
    """Local SQLite-backed store for clothing items and outfits.

    Every ``sqlite3.Error`` surfaces as :class:`StoreFailureError` with the
    driver's message.
    """

    def __init__(self, database_path: str | Path = "data/closet.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
            try:
                with conn:
                    yield conn
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreFailureError(str(exc)) from exc

    def _ensure_tables(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS clothing_items (
                    user_id TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    subcategory TEXT,
                    brand TEXT,
                    color TEXT,
                    size TEXT,
                    material TEXT,
                    price REAL,
                    purchase_date TEXT,
                    tags TEXT,
                    notes TEXT,
                    image_url TEXT,
                    image_path TEXT,
                    v_image TEXT,
                    v_text TEXT,
                    palette TEXT,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    wear_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT,
                    updated_at TEXT,
                    enrichment_attempted_at TEXT,
                    PRIMARY KEY (user_id, item_id)
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS outfits (
                    user_id TEXT NOT NULL,
                    outfit_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    image_url TEXT,
                    image_path TEXT,
                    clothing_item_ids TEXT,
                    outfit_signature TEXT NOT NULL DEFAULT '',
                    tags TEXT,
                    occasion TEXT,
                    season TEXT,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    wear_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT,
                    updated_at TEXT,
                    PRIMARY KEY (user_id, outfit_id)
                );
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_outfits_signature ON outfits (user_id, outfit_signature)"
            )
            item_columns = {row["name"] for row in conn.execute("PRAGMA table_info(clothing_items)")}
            if "enrichment_attempted_at" not in item_columns:
                conn.execute("ALTER TABLE clothing_items ADD COLUMN enrichment_attempted_at TEXT")

    @staticmethod
    def _serialise_list(values: Optional[List[Any]]) -> str:
        return json.dumps(values or [])

    @staticmethod
    def _deserialise_list(raw: Optional[str]) -> List[Any]:
        return json.loads(raw) if raw else []

    @staticmethod
    def _serialise_vector(values: Optional[List[float]]) -> Optional[str]:
        return json.dumps(values) if values else None

    @staticmethod
    def _serialise_palette(palette: Optional[Palette]) -> Optional[str]:
        return json.dumps(palette.to_dict()) if palette else None

    # Clothing items

    def _item_values(self, item: ClothingItem) -> tuple:
        return (
            item.user_id,
            item.item_id,
            item.name,
            item.category,
            item.subcategory,
            item.brand,
            item.color,
            item.size,
            item.material,
            item.price,
            item.purchase_date,
            self._serialise_list(item.tags),
            item.notes,
            item.image_url,
            item.image_path,
            self._serialise_vector(item.v_image),
            self._serialise_vector(item.v_text),
            self._serialise_palette(item.palette),
            int(item.is_favorite),
            item.wear_count,
            item.created_at,
            item.updated_at,
        )

    def _row_to_item(self, row: sqlite3.Row) -> ClothingItem:
        palette_raw = row["palette"]
        return ClothingItem(
            item_id=row["item_id"],
            user_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            subcategory=row["subcategory"],
            brand=row["brand"],
            color=row["color"],
            size=row["size"],
            material=row["material"],
            price=row["price"],
            purchase_date=row["purchase_date"],
            tags=self._deserialise_list(row["tags"]),
            notes=row["notes"],
            image_url=row["image_url"],
            image_path=row["image_path"],
            v_image=self._deserialise_list(row["v_image"]) or None,
            v_text=self._deserialise_list(row["v_text"]) or None,
            palette=Palette.from_dict(json.loads(palette_raw)) if palette_raw else None,
            is_favorite=bool(row["is_favorite"]),
            wear_count=row["wear_count"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def create_item(self, item: ClothingItem) -> ClothingItem:
        placeholders = ", ".join("?" for _ in _ITEM_COLUMNS)
        with self._transaction() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO clothing_items ({', '.join(_ITEM_COLUMNS)}) VALUES ({placeholders})",
                self._item_values(item),
            )
        return item

    def _select_items(self, where: str, params: tuple) -> List[ClothingItem]:
        with self._transaction() as conn:
            cursor = conn.execute(f"SELECT * FROM clothing_items WHERE {where} ORDER BY item_id", params)
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def get_item(self, user_id: str, item_id: str) -> Optional[ClothingItem]:
        items = self._select_items("user_id = ? AND item_id = ?", (user_id, item_id))
        return items[0] if items else None

    def list_items_for_user(self, user_id: str) -> List[ClothingItem]:
        return self._select_items("user_id = ?", (user_id,))

    def list_items_with_embeddings(self, user_id: str) -> List[ClothingItem]:
        return self._select_items("user_id = ? AND v_image IS NOT NULL", (user_id,))

    def list_items_by_category(self, user_id: str, category: str) -> List[ClothingItem]:
        return self._select_items("user_id = ? AND category = ?", (user_id, validate_category(category)))

    def list_items_pending_enrichment(self, limit: int = 10) -> List[ClothingItem]:
        """Items missing an embedding, never-attempted ones first.

        Rows that were tried and are still incomplete go to the back, oldest
        attempt first, so they cannot hold the front of every batch.
        """

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM clothing_items
                WHERE v_image IS NULL OR v_text IS NULL
                ORDER BY enrichment_attempted_at IS NOT NULL, enrichment_attempted_at, created_at, item_id
                LIMIT ?
                """,
                (limit,),
            )
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def record_enrichment_attempt(self, user_id: str, item_id: str) -> None:
        # INSERT OR REPLACE in create_item clears this, so editing an item requeues it
        with self._transaction() as conn:
            conn.execute(
                "UPDATE clothing_items SET enrichment_attempted_at = ? WHERE user_id = ? AND item_id = ?",
                (_utc_now(), user_id, item_id),
            )

    def update_item(self, user_id: str, item_id: str, updated_fields: Dict[str, object]) -> Optional[ClothingItem]:
        current = self.get_item(user_id, item_id)
        if not current:
            return None

        changes = {
            key: value
            for key, value in updated_fields.items()
            if key not in {"user_id", "item_id", "created_at"} and hasattr(current, key)
        }
        changes["updated_at"] = _utc_now()
        return self.create_item(replace(current, **changes))

    def delete_item(self, user_id: str, item_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM clothing_items WHERE user_id = ? AND item_id = ?",
                (user_id, item_id),
            )
            return cursor.rowcount > 0

    # Outfits

    def _outfit_values(self, outfit: Outfit) -> tuple:
        return (
            outfit.user_id,
            outfit.outfit_id,
            outfit.name,
            outfit.description,
            outfit.image_url,
            outfit.image_path,
            self._serialise_list(outfit.clothing_item_ids),
            generate_outfit_signature(outfit.clothing_item_ids),
            self._serialise_list(outfit.tags),
            outfit.occasion,
            outfit.season,
            int(outfit.is_favorite),
            outfit.wear_count,
            outfit.created_at,
            outfit.updated_at,
        )

    def _row_to_outfit(self, row: sqlite3.Row) -> Outfit:
        return Outfit(
            outfit_id=row["outfit_id"],
            user_id=row["user_id"],
            name=row["name"],
            clothing_item_ids=self._deserialise_list(row["clothing_item_ids"]),
            description=row["description"],
            image_url=row["image_url"],
            image_path=row["image_path"],
            tags=self._deserialise_list(row["tags"]),
            occasion=row["occasion"],
            season=row["season"],
            is_favorite=bool(row["is_favorite"]),
            wear_count=row["wear_count"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def create_outfit(self, outfit: Outfit) -> Outfit:
        placeholders = ", ".join("?" for _ in _OUTFIT_COLUMNS)
        with self._transaction() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO outfits ({', '.join(_OUTFIT_COLUMNS)}) VALUES ({placeholders})",
                self._outfit_values(outfit),
            )
        return outfit

    def _select_outfits(self, where: str, params: tuple) -> List[Outfit]:
        with self._transaction() as conn:
            cursor = conn.execute(
                f"SELECT * FROM outfits WHERE {where} ORDER BY created_at DESC, outfit_id",
                params,
            )
            return [self._row_to_outfit(row) for row in cursor.fetchall()]

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[Outfit]:
        outfits = self._select_outfits("user_id = ? AND outfit_id = ?", (user_id, outfit_id))
        return outfits[0] if outfits else None

    def list_outfits_for_user(self, user_id: str) -> List[Outfit]:
        return self._select_outfits("user_id = ?", (user_id,))

    def list_outfit_signatures(self, user_id: str) -> List[OutfitSignature]:
        with self._transaction() as conn:
            cursor = conn.execute(
                "SELECT outfit_id, outfit_signature FROM outfits WHERE user_id = ? ORDER BY outfit_id",
                (user_id,),
            )
            return [
                OutfitSignature(
                    outfit_id=row["outfit_id"],
                    signature=row["outfit_signature"],
                    member_ids=parse_outfit_signature(row["outfit_signature"]),
                )
                for row in cursor.fetchall()
            ]

    def find_outfit_by_signature(self, user_id: str, signature: str) -> Optional[Outfit]:
        outfits = self._select_outfits("user_id = ? AND outfit_signature = ?", (user_id, signature))
        return outfits[0] if outfits else None

    def update_outfit(self, user_id: str, outfit_id: str, updated_fields: Dict[str, object]) -> Optional[Outfit]:
        current = self.get_outfit(user_id, outfit_id)
        if not current:
            return None

        for key, value in updated_fields.items():
            if key in {"user_id", "outfit_id", "created_at", "signature"}:
                continue
            if key == "clothing_item_ids":
                current.set_members(value)  # type: ignore[arg-type]
            elif hasattr(current, key):
                setattr(current, key, value)
        current.updated_at = _utc_now()
        return self.create_outfit(current)

    def delete_outfit(self, user_id: str, outfit_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM outfits WHERE user_id = ? AND outfit_id = ?",
                (user_id, outfit_id),
            )
            return cursor.rowcount > 0


__all__ = ["ClosetStore", "SQLiteClosetStore"]
