"""Color palette types produced by the color extraction step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# Serialised key -> attribute name, in the order swatches are reported.
SWATCH_KEYS: Dict[str, str] = {
    "Vibrant": "vibrant",
    "Muted": "muted",
    "DarkVibrant": "dark_vibrant",
    "DarkMuted": "dark_muted",
    "LightVibrant": "light_vibrant",
    "LightMuted": "light_muted",
}


def _clamp_channel(value: Any) -> int:
    return max(0, min(255, int(round(float(value)))))


@dataclass(frozen=True)
class Swatch:
    """A single representative color with the pixel population behind it."""

    rgb: Tuple[int, int, int]
    population: int = 0

    def __post_init__(self) -> None:
        if len(self.rgb) != 3:
            raise ValueError(f"Swatch rgb needs three channels, got {self.rgb!r}")
        object.__setattr__(self, "rgb", tuple(_clamp_channel(channel) for channel in self.rgb))

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.rgb)

    def to_dict(self) -> Dict[str, Any]:
        return {"rgb": list(self.rgb), "population": self.population}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Swatch":
        return cls(rgb=tuple(raw["rgb"]), population=int(raw.get("population") or 0))


@dataclass(frozen=True)
class Palette:
    """Named swatches extracted from an item image.

    Any swatch may be missing. Scoring only reads ``vibrant`` and treats its
    absence as an error rather than substituting another swatch.
    """

    vibrant: Optional[Swatch] = None
    muted: Optional[Swatch] = None
    dark_vibrant: Optional[Swatch] = None
    dark_muted: Optional[Swatch] = None
    light_vibrant: Optional[Swatch] = None
    light_muted: Optional[Swatch] = None

    def to_dict(self) -> Dict[str, Optional[Dict[str, Any]]]:
        payload: Dict[str, Optional[Dict[str, Any]]] = {}
        for key, attribute in SWATCH_KEYS.items():
            swatch = getattr(self, attribute)
            payload[key] = swatch.to_dict() if swatch else None
        return payload

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Palette":
        """Build a palette from ``{"Vibrant": {"rgb": [...]}, ...}`` payloads."""

        swatches: Dict[str, Optional[Swatch]] = {}
        for key, attribute in SWATCH_KEYS.items():
            value = raw.get(key, raw.get(attribute))
            swatches[attribute] = Swatch.from_dict(value) if value else None
        return cls(**swatches)


def coerce_palette(value: Any) -> Optional[Palette]:
    """Accept a Palette, a serialised mapping or None."""

    if value is None or isinstance(value, Palette):
        return value
    if isinstance(value, dict):
        return Palette.from_dict(value)
    raise TypeError(f"Cannot build a Palette from {type(value).__name__}")


__all__ = ["Palette", "Swatch", "SWATCH_KEYS", "coerce_palette"]
