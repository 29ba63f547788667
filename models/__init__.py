"""Model package exports."""

from models.clothing_item import ClothingItem, from_raw_metadata
from models.outfit import Outfit, OutfitSignature, generate_outfit_signature
from models.palette import Palette, Swatch

__all__ = [
    "ClothingItem",
    "Outfit",
    "OutfitSignature",
    "Palette",
    "Swatch",
    "from_raw_metadata",
    "generate_outfit_signature",
]
