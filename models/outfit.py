"""Outfit model and order-independent outfit signatures.

A signature is the sorted member ids joined by commas. Two outfits with the
same members always share a signature, whatever order the ids were added in,
which lets duplicates be found with a plain string comparison.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

SIGNATURE_DELIMITER = ","
_SIGNATURE_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+(,[a-zA-Z0-9_-]+)*$")


def generate_outfit_signature(clothing_item_ids: Iterable[str]) -> str:
    """Return the canonical signature for a set of item ids.

    >>> generate_outfit_signature(["id3", "id1", "id2"])
    'id1,id2,id3'
    """

    ids = [str(item_id) for item_id in clothing_item_ids or []]
    if not ids:
        return ""
    return SIGNATURE_DELIMITER.join(sorted(ids))


def parse_outfit_signature(signature: str) -> List[str]:
    """Split a signature back into member ids."""

    if not signature or not signature.strip():
        return []
    return signature.split(SIGNATURE_DELIMITER)


def is_valid_outfit_signature(signature: str) -> bool:
    """Check a stored signature is non-empty comma separated ids."""

    if not signature or not signature.strip():
        return False
    return bool(_SIGNATURE_PATTERN.match(signature))


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Outfit:
    """A saved combination of clothing items."""

    outfit_id: str
    user_id: str
    name: str
    clothing_item_ids: List[str] = field(default_factory=list)
    description: Optional[str] = None
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    occasion: Optional[str] = None
    season: Optional[str] = None
    is_favorite: bool = False
    wear_count: int = 0
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)
    signature: str = field(init=False, default="")

    def __post_init__(self) -> None:
        self.clothing_item_ids = [str(item_id) for item_id in self.clothing_item_ids or []]
        self.tags = list(self.tags or [])
        self.signature = generate_outfit_signature(self.clothing_item_ids)

    def set_members(self, clothing_item_ids: Iterable[str]) -> None:
        """Replace the member ids and refresh the signature."""

        self.clothing_item_ids = [str(item_id) for item_id in clothing_item_ids]
        self.signature = generate_outfit_signature(self.clothing_item_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class OutfitSignature:
    """Signature row used for duplicate detection."""

    outfit_id: str
    signature: str
    member_ids: List[str] = field(default_factory=list)


__all__ = [
    "Outfit",
    "OutfitSignature",
    "SIGNATURE_DELIMITER",
    "generate_outfit_signature",
    "parse_outfit_signature",
    "is_valid_outfit_signature",
]
