"""Pairwise color harmony scoring between two item palettes."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from logic.color_math import hue_distance_degrees, is_neutral_pair, is_warm_color, rgb_to_hsl
from logic.errors import InvalidPaletteError
from models.palette import Palette, Swatch

logger = logging.getLogger(__name__)

NEUTRAL_VERDICT = 0.5
HUE_DECAY_DEGREES = 60.0
CLASH_THRESHOLD_DEGREES = 60.0
CLASH_PENALTY = 0.3


@dataclass(frozen=True)
class ColorMatchReport:
    """Comparison of two vibrant swatches; ``verdict`` is a score in [0, 1]."""

    hue_deg: float
    sat_diff: float
    light_diff: float
    neutral_pair: bool
    warm_cool_clash: bool
    verdict: float


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _vibrant_swatch(palette: Optional[Palette]) -> Swatch:
    if palette is None or palette.vibrant is None:
        raise InvalidPaletteError("No vibrant color found")
    return palette.vibrant


def harmony_verdict(hue_deg: float, neutral_pair: bool, warm_cool_clash: bool) -> float:
    """Turn hue distance and pair flags into a compatibility score.

    Adjacent hues score close to 1 and opposite hues close to 0. Neutral pairs
    sit at 0.5. A warm/cool clash wider than 60 degrees costs up to 0.3 more.
    """

    if neutral_pair:
        return NEUTRAL_VERDICT
    score = math.exp(-hue_deg / HUE_DECAY_DEGREES)
    if warm_cool_clash and hue_deg > CLASH_THRESHOLD_DEGREES:
        score -= CLASH_PENALTY * (hue_deg - CLASH_THRESHOLD_DEGREES) / 120
    return _clamp(score)


def compare_colors(palette_a: Optional[Palette], palette_b: Optional[Palette]) -> ColorMatchReport:
    """Compare the vibrant swatches of two palettes."""

    hsl1 = rgb_to_hsl(*_vibrant_swatch(palette_a).rgb)
    hsl2 = rgb_to_hsl(*_vibrant_swatch(palette_b).rgb)

    hue_deg = hue_distance_degrees(hsl1.h, hsl2.h)
    neutral_pair = is_neutral_pair(hsl1.s) or is_neutral_pair(hsl2.s)
    warm_cool_clash = is_warm_color(hsl1.h) != is_warm_color(hsl2.h)
    verdict = harmony_verdict(hue_deg, neutral_pair, warm_cool_clash)

    report = ColorMatchReport(
        hue_deg=hue_deg,
        sat_diff=abs(hsl1.s - hsl2.s),
        light_diff=abs(hsl1.l - hsl2.l),
        neutral_pair=neutral_pair,
        warm_cool_clash=warm_cool_clash,
        verdict=verdict,
    )
    logger.debug("compare_colors %s vs %s -> %s", hsl1, hsl2, report)
    return report


__all__ = ["ColorMatchReport", "compare_colors", "harmony_verdict"]
