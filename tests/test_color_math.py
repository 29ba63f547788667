"""Tests for RGB to HSL conversion and hue wheel helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.color_math import hue_distance_degrees, is_neutral_pair, is_warm_color, rgb_to_hsl


@pytest.mark.parametrize(
    "rgb, expected",
    [
        ((255, 0, 0), (0, 100, 50)),
        ((0, 255, 0), (120, 100, 50)),
        ((0, 0, 255), (240, 100, 50)),
        ((0, 255, 255), (180, 100, 50)),
        ((255, 0, 255), (300, 100, 50)),
        ((255, 255, 0), (60, 100, 50)),
        ((255, 165, 0), (38.82, 100, 50)),
        ((255, 192, 203), (349.52, 100, 87.65)),
        ((0, 0, 128), (240, 100, 25.1)),
        ((128, 128, 0), (60, 100, 25.1)),
    ],
)
def test_rgb_to_hsl_known_colors(rgb, expected) -> None:
    h, s, l = rgb_to_hsl(*rgb)
    assert h == pytest.approx(expected[0], abs=0.01)
    assert s == pytest.approx(expected[1], abs=0.01)
    assert l == pytest.approx(expected[2], abs=0.01)


def test_rgb_to_hsl_exact_extremes() -> None:
    assert tuple(rgb_to_hsl(255, 0, 0)) == (0, 100, 50)
    assert tuple(rgb_to_hsl(0, 0, 0)) == (0, 0, 0)
    assert tuple(rgb_to_hsl(255, 255, 255)) == (0, 0, 100)


@pytest.mark.parametrize("value", [0, 64, 128, 192, 255])
def test_grayscale_has_no_hue_or_saturation(value: int) -> None:
    hsl = rgb_to_hsl(value, value, value)
    assert hsl.h == 0
    assert hsl.s == 0
    assert hsl.l == pytest.approx(value / 255 * 100)


def test_rgb_to_hsl_stays_in_range() -> None:
    channels = range(0, 256, 17)
    for r in channels:
        for g in channels:
            for b in channels:
                h, s, l = rgb_to_hsl(r, g, b)
                assert 0 <= h < 360
                assert 0 <= s <= 100
                assert 0 <= l <= 100


def test_hue_distance_is_circular_and_symmetric() -> None:
    assert hue_distance_degrees(10, 350) == 20
    assert hue_distance_degrees(350, 10) == 20
    assert hue_distance_degrees(0, 180) == 180
    assert hue_distance_degrees(90, 90) == 0
    for a in range(0, 360, 15):
        for b in range(0, 360, 25):
            distance = hue_distance_degrees(a, b)
            assert distance == hue_distance_degrees(b, a)
            assert 0 <= distance <= 180


def test_neutral_threshold_is_strict() -> None:
    assert is_neutral_pair(11.9) is True
    assert is_neutral_pair(12) is False
    assert is_neutral_pair(0) is True
    assert is_neutral_pair(20, threshold=25) is True


def test_warm_and_cool_hues() -> None:
    assert is_warm_color(0)
    assert is_warm_color(60)
    assert is_warm_color(300)
    assert is_warm_color(359.9)
    assert not is_warm_color(60.1)
    assert not is_warm_color(180)
    assert not is_warm_color(299.9)
