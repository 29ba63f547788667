"""Extract a named color palette from an item image."""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

import requests
from PIL import Image, UnidentifiedImageError

from logic.color_math import hsl_to_rgb, rgb_to_hsl
from logic.errors import ProviderError
from models.palette import Palette, Swatch

LOGGER = logging.getLogger(__name__)

_WEIGHT_SATURATION = 3.0
_WEIGHT_LUMA = 6.5
_WEIGHT_POPULATION = 0.5

_TARGET_DARK_LUMA = 0.26
_TARGET_NORMAL_LUMA = 0.5
_TARGET_LIGHT_LUMA = 0.74
_TARGET_MUTED_SATURATION = 0.3


@dataclass(frozen=True)
class _SwatchTarget:
    attribute: str
    target_luma: float
    min_luma: float
    max_luma: float
    target_saturation: float
    min_saturation: float
    max_saturation: float


# Vibrant swatches are picked first so muted ones cannot claim their colors.
_TARGETS: Sequence[_SwatchTarget] = (
    _SwatchTarget("vibrant", 0.5, 0.3, 0.7, 1.0, 0.35, 1.0),
    _SwatchTarget("light_vibrant", 0.74, 0.55, 1.0, 1.0, 0.35, 1.0),
    _SwatchTarget("dark_vibrant", 0.26, 0.0, 0.45, 1.0, 0.35, 1.0),
    _SwatchTarget("muted", 0.5, 0.3, 0.7, 0.3, 0.0, 0.4),
    _SwatchTarget("light_muted", 0.74, 0.55, 1.0, 0.3, 0.0, 0.4),
    _SwatchTarget("dark_muted", 0.26, 0.0, 0.45, 0.3, 0.0, 0.4),
)


def _invert_diff(value: float, target: float) -> float:
    return 1 - abs(value - target)


def _score(saturation: float, luma: float, population: int, max_population: int, target: _SwatchTarget) -> float:
    population_share = population / max_population if max_population else 0.0
    weighted = (
        _invert_diff(saturation, target.target_saturation) * _WEIGHT_SATURATION
        + _invert_diff(luma, target.target_luma) * _WEIGHT_LUMA
        + population_share * _WEIGHT_POPULATION
    )
    return weighted / (_WEIGHT_SATURATION + _WEIGHT_LUMA + _WEIGHT_POPULATION)


def generate_palette(swatches: Sequence[Swatch]) -> Palette:
    """Assign quantized swatches to the six named palette slots.

    Each slot takes the best scoring swatch whose saturation and lightness fall
    inside the slot's range, and a swatch fills at most one slot. Empty slots
    are then derived from filled ones, so any non-empty input has a vibrant
    swatch.
    """

    if not swatches:
        return Palette()
    max_population = max(swatch.population for swatch in swatches)
    hsl_values = [rgb_to_hsl(*swatch.rgb) for swatch in swatches]
    used: Set[int] = set()
    chosen: Dict[str, Optional[Swatch]] = {}

    for target in _TARGETS:
        best_index: Optional[int] = None
        best_score = -1.0
        for index, (swatch, hsl) in enumerate(zip(swatches, hsl_values)):
            if index in used:
                continue
            saturation, luma = hsl.s / 100, hsl.l / 100
            if not (target.min_saturation <= saturation <= target.max_saturation):
                continue
            if not (target.min_luma <= luma <= target.max_luma):
                continue
            score = _score(saturation, luma, swatch.population, max_population, target)
            if score > best_score:
                best_index, best_score = index, score
        if best_index is not None:
            used.add(best_index)
            chosen[target.attribute] = swatches[best_index]

    _fill_missing_swatches(chosen)
    return Palette(**chosen)


def _derive(source: Swatch, saturation: float | None = None, luma: float | None = None) -> Swatch:
    hsl = rgb_to_hsl(*source.rgb)
    # derived muted swatches never gain saturation over their source
    s = hsl.s if saturation is None else min(hsl.s, saturation * 100)
    l = hsl.l if luma is None else luma * 100  # noqa: E741
    return Swatch(rgb=hsl_to_rgb(hsl.h, s, l), population=0)


def _fill_missing_swatches(chosen: Dict[str, Optional[Swatch]]) -> None:
    """Derive empty slots from filled ones, the way node-vibrant does.

    Neutral images only fill muted slots, so the vibrant slots are rebuilt
    from them with lightness moved to the slot target. A mid-tone neutral
    with no dark or light swatch falls back to ``muted``.
    """

    if not any(chosen.get(key) for key in ("vibrant", "dark_vibrant", "light_vibrant")):
        if chosen.get("dark_muted"):
            chosen["dark_vibrant"] = _derive(chosen["dark_muted"], luma=_TARGET_DARK_LUMA)
        if chosen.get("light_muted"):
            chosen["light_vibrant"] = _derive(chosen["light_muted"], luma=_TARGET_LIGHT_LUMA)

    if not chosen.get("vibrant"):
        source = chosen.get("dark_vibrant") or chosen.get("light_vibrant") or chosen.get("muted")
        if source:
            chosen["vibrant"] = _derive(source, luma=_TARGET_NORMAL_LUMA)

    vibrant = chosen.get("vibrant")
    if vibrant:
        if not chosen.get("dark_vibrant"):
            chosen["dark_vibrant"] = _derive(vibrant, luma=_TARGET_DARK_LUMA)
        if not chosen.get("light_vibrant"):
            chosen["light_vibrant"] = _derive(vibrant, luma=_TARGET_LIGHT_LUMA)
        if not chosen.get("muted"):
            chosen["muted"] = _derive(vibrant, saturation=_TARGET_MUTED_SATURATION)
    if not chosen.get("dark_muted") and chosen.get("dark_vibrant"):
        chosen["dark_muted"] = _derive(chosen["dark_vibrant"], saturation=_TARGET_MUTED_SATURATION)
    if not chosen.get("light_muted") and chosen.get("light_vibrant"):
        chosen["light_muted"] = _derive(chosen["light_vibrant"], saturation=_TARGET_MUTED_SATURATION)


class ColorExtractor(ABC):
    """Extracts a palette from an image reference."""

    @abstractmethod
    def extract_palette(self, image_url: str) -> Palette:
        """Return the palette for ``image_url``."""


class VibrantColorExtractor(ColorExtractor):
    """Quantizes an image with Pillow and picks vibrant/muted swatches."""

    def __init__(self, color_count: int = 64, thumbnail_size: int = 128, timeout_seconds: float = 10.0) -> None:
        self.color_count = color_count
        self.thumbnail_size = thumbnail_size
        self.timeout_seconds = timeout_seconds

    def _load_image(self, image_url: str) -> Image.Image:
        try:
            if image_url.lower().startswith(("http://", "https://")):
                response = requests.get(image_url, timeout=self.timeout_seconds)
                response.raise_for_status()
                return Image.open(io.BytesIO(response.content))
            return Image.open(image_url)
        except requests.RequestException as exc:
            raise ProviderError(f"Could not download image: {exc}") from exc
        except (OSError, UnidentifiedImageError) as exc:
            raise ProviderError(f"Could not read image: {exc}") from exc

    def quantize(self, image: Image.Image) -> List[Swatch]:
        """Reduce an image to at most ``color_count`` weighted swatches."""

        thumbnail = image.convert("RGB")
        thumbnail.thumbnail((self.thumbnail_size, self.thumbnail_size))
        quantized = thumbnail.quantize(colors=self.color_count)
        flat_palette = quantized.getpalette() or []
        swatches = []
        for count, index in quantized.getcolors(maxcolors=256) or []:
            rgb = tuple(flat_palette[index * 3 : index * 3 + 3])
            if len(rgb) == 3:
                swatches.append(Swatch(rgb=rgb, population=count))
        return swatches

    def palette_from_image(self, image: Image.Image) -> Palette:
        return generate_palette(self.quantize(image))

    def extract_palette(self, image_url: str) -> Palette:
        if not image_url:
            raise ValueError("image_url is required for color extraction")
        image = self._load_image(image_url)
        palette = self.palette_from_image(image)
        LOGGER.info(
            "Extracted palette",
            extra={"vibrant": palette.vibrant.hex if palette.vibrant else None},
        )
        return palette


class StaticColorExtractor(ColorExtractor):
    """Returns preset palettes keyed by image URL; used offline and in tests."""

    def __init__(self, palettes: Dict[str, Palette] | None = None, default: Palette | None = None) -> None:
        self.palettes = dict(palettes or {})
        self.default = default

    def extract_palette(self, image_url: str) -> Palette:
        palette = self.palettes.get(image_url, self.default)
        if palette is None:
            raise ProviderError(f"No palette configured for {image_url}")
        return palette


__all__ = [
    "ColorExtractor",
    "VibrantColorExtractor",
    "StaticColorExtractor",
    "generate_palette",
]
