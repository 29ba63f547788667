"""RGB to HSL conversion and hue wheel helpers used by color harmony."""

from __future__ import annotations

import colorsys
from typing import NamedTuple, Tuple

NEUTRAL_SATURATION_THRESHOLD = 12.0


class HSL(NamedTuple):
    """Hue in degrees [0, 360), saturation and lightness in percent."""

    h: float
    s: float
    l: float  # noqa: E741


def rgb_to_hsl(r: float, g: float, b: float) -> HSL:
    """Convert 8-bit RGB channels to HSL.

    Grayscale input (all channels equal) yields a hue and saturation of zero.
    """

    r, g, b = r / 255, g / 255, b / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    h = 0.0
    s = 0.0
    l = (max_c + min_c) / 2  # noqa: E741

    if max_c != min_c:
        d = max_c - min_c
        s = d / (2 - max_c - min_c) if l > 0.5 else d / (max_c + min_c)
        if max_c == r:
            h = ((g - b) / d + (6 if g < b else 0)) / 6
        elif max_c == g:
            h = ((b - r) / d + 2) / 6
        else:
            h = ((r - g) / d + 4) / 6

    return HSL(h=h * 360, s=s * 100, l=l * 100)


def hsl_to_rgb(h: float, s: float, l: float) -> Tuple[int, int, int]:  # noqa: E741
    """Inverse of :func:`rgb_to_hsl`, rounding to 8-bit channels."""

    r, g, b = colorsys.hls_to_rgb((h % 360) / 360, l / 100, s / 100)
    return round(r * 255), round(g * 255), round(b * 255)


def is_neutral_pair(saturation: float, threshold: float = NEUTRAL_SATURATION_THRESHOLD) -> bool:
    """Return True when a saturation is low enough to read as a neutral."""

    return saturation < threshold


def hue_distance_degrees(hue1: float, hue2: float) -> float:
    """Circular distance between two hues, always in [0, 180]."""

    distance = abs(hue1 - hue2) % 360
    return 360 - distance if distance > 180 else distance


def is_warm_color(hue: float) -> bool:
    return 0 <= hue <= 60 or 300 <= hue <= 360


__all__ = [
    "HSL",
    "NEUTRAL_SATURATION_THRESHOLD",
    "rgb_to_hsl",
    "hsl_to_rgb",
    "is_neutral_pair",
    "hue_distance_degrees",
    "is_warm_color",
]
