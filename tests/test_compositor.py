"""Test diff image compositing.

Tests for pixelmatch.core.compositor:
    - Per-class output colors, diff_color_alt by delta sign
    - diff_mask leaves matches and anti-aliasing transparent
    - Faded grayscale background value
    - Vectorized composite() agrees with per-pixel output_color()
"""

import numpy as np
import pytest

from pixelmatch.core.buffer import PixelBuffer
from pixelmatch.core.compositor import (
    TRANSPARENT,
    Classification,
    composite,
    draw_pixel,
    gray_value,
    output_color,
)
from pixelmatch.utils.validators import build_options


@pytest.fixture
def defaults():
    return build_options()


def test_diff_uses_diff_color(defaults):
    assert output_color(Classification.DIFF, (0, 0, 0, 255), 500.0, defaults) == (255, 0, 0, 255)
    assert output_color(Classification.DIFF, (0, 0, 0, 255), -500.0, defaults) == (255, 0, 0, 255)


def test_diff_color_alt_for_darker_pixels():
    opts = build_options(diff_color_alt=(0, 255, 0))
    assert output_color(Classification.DIFF, (0, 0, 0, 255), -500.0, opts) == (0, 255, 0, 255)
    assert output_color(Classification.DIFF, (0, 0, 0, 255), 500.0, opts) == (255, 0, 0, 255)


def test_antialiased_uses_aa_color(defaults):
    assert output_color(Classification.ANTI_ALIASED, (9, 9, 9, 255), 500.0, defaults) == (255, 255, 0, 255)


def test_match_is_faded_gray(defaults):
    # black at alpha 0.1: 255 - 25.5, truncated; the gray value doubles as alpha
    assert output_color(Classification.MATCH, (0, 0, 0, 255), 0.0, defaults) == (229, 229, 229, 229)
    assert output_color(Classification.MATCH, (255, 255, 255, 255), 0.0, defaults) == (255, 255, 255, 255)


def test_gray_value_respects_pixel_alpha():
    assert gray_value((0, 0, 0, 0), 0.1) == 255
    assert gray_value((0, 0, 0, 255), 1.0) == 0


def test_diff_mask_hides_matches_and_antialiasing():
    opts = build_options(diff_mask=True)
    assert output_color(Classification.MATCH, (0, 0, 0, 255), 0.0, opts) == TRANSPARENT
    assert output_color(Classification.ANTI_ALIASED, (0, 0, 0, 255), 900.0, opts) == TRANSPARENT
    assert output_color(Classification.DIFF, (0, 0, 0, 255), 900.0, opts) == (255, 0, 0, 255)


def test_draw_pixel_writes_one_pixel(defaults):
    out = PixelBuffer.blank(3, 3)
    draw_pixel(out, 1, 2, Classification.DIFF, (0, 0, 0, 255), 1.0, defaults)
    assert out.pixel(1, 2) == (255, 0, 0, 255)
    assert out.pixel(0, 0) == (0, 0, 0, 0)


@pytest.mark.parametrize("overrides", [
    {},
    {"diff_mask": True},
    {"diff_color_alt": (0, 0, 255), "alpha": 0.5},
    {"aa_color": (0, 192, 0), "diff_color": (255, 0, 255), "alpha": 0.0},
])
def test_composite_matches_output_color(overrides):
    opts = build_options(**overrides)
    rng = np.random.default_rng(17)
    expected = rng.integers(0, 256, size=(8, 9, 4), dtype=np.uint8)
    classes = rng.integers(0, 3, size=(8, 9)).astype(np.uint8)
    deltas = rng.normal(0.0, 1000.0, size=(8, 9))

    out = PixelBuffer.blank(9, 8)
    out.data[:] = 77
    composite(out, expected, classes, deltas, opts)

    for y in range(8):
        for x in range(9):
            want = output_color(
                Classification(int(classes[y, x])), expected[y, x].tolist(), float(deltas[y, x]), opts
            )
            assert out.pixel(x, y) == want
