"""Clothing item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models.palette import Palette, coerce_palette
from models.taxonomy import normalise_tags, validate_category


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _as_vector(value: Any) -> Optional[List[float]]:
    if value is None:
        return None
    vector = [float(component) for component in value]
    return vector or None


@dataclass
class ClothingItem:
    """Represents a piece of clothing in the user's closet.

    ``v_image`` and ``v_text`` are filled in after creation by the enrichment
    step, together with ``palette``. Until ``v_image`` is present the item is
    neither a recommendation anchor nor a candidate.
    """

    item_id: str
    user_id: str
    name: str
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    price: Optional[float] = None
    purchase_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    v_image: Optional[List[float]] = None
    v_text: Optional[List[float]] = None
    palette: Optional[Palette] = None
    is_favorite: bool = False
    wear_count: int = 0
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.category = validate_category(self.category)
        self.tags = normalise_tags(_ensure_list(self.tags))
        self.v_image = _as_vector(self.v_image)
        self.v_text = _as_vector(self.v_text)
        self.palette = coerce_palette(self.palette)
        if self.price is not None:
            self.price = float(self.price)
        self.is_favorite = bool(self.is_favorite)
        self.wear_count = int(self.wear_count or 0)

    @property
    def has_image_embedding(self) -> bool:
        return bool(self.v_image)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON friendly representation."""

        payload = {name: getattr(self, name) for name in self.__dataclass_fields__}
        payload["palette"] = self.palette.to_dict() if self.palette else None
        return payload


def from_raw_metadata(metadata: Dict[str, Any]) -> ClothingItem:
    """Factory to build a :class:`ClothingItem` from loose row or request data."""

    required_fields = ["item_id", "user_id", "name", "category"]
    missing = [name for name in required_fields if not metadata.get(name)]
    if missing:
        raise ValueError(f"Missing required fields for ClothingItem: {missing}")

    known = {name: metadata[name] for name in ClothingItem.__dataclass_fields__ if name in metadata}
    known["item_id"] = str(metadata["item_id"])
    known["user_id"] = str(metadata["user_id"])
    known["tags"] = _ensure_list(metadata.get("tags"))
    return ClothingItem(**known)


__all__ = ["ClothingItem", "from_raw_metadata"]
