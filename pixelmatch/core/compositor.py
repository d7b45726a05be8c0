"""Diff image compositing.

Maps each pixel's classification to an output color:

    MATCH        faded grayscale of the expected pixel (alpha = gray value),
                 or transparent (diff_mask)
    ANTI_ALIASED aa_color, or transparent (diff_mask); never counted
    DIFF         diff_color, or diff_color_alt when the pixel got darker

``output_color`` is the per-pixel rule; ``composite`` applies the same rule
to a whole classification map with numpy and is what the orchestrator uses.
"""

import enum
from typing import Sequence

import numpy as np

from pixelmatch.core.buffer import RGBA, PixelBuffer
from pixelmatch.utils.color import blend, rgb2y
from pixelmatch.utils.validators import Options

TRANSPARENT: RGBA = (0, 0, 0, 0)


class Classification(enum.IntEnum):
    """Outcome of comparing one pixel pair."""
    MATCH = 0
    ANTI_ALIASED = 1
    DIFF = 2


def gray_value(rgba: Sequence[int], alpha: float) -> int:
    """Luma of ``rgba`` faded toward white by ``alpha`` and the pixel's own opacity."""
    r, g, b, a = rgba
    return int(blend(rgb2y(float(r), float(g), float(b)), alpha * a / 255.0))


def diff_color_for(delta: float, options: Options) -> RGBA:
    """diff_color_alt for pixels that got darker (negative delta), else diff_color."""
    color = options.diff_color
    if delta < 0 and options.diff_color_alt is not None:
        color = options.diff_color_alt
    return (*color, 255)


def output_color(
    classification: Classification,
    rgba: Sequence[int],
    delta: float,
    options: Options
) -> RGBA:
    """Output color for one compared pixel.

    Parameters
    ----------
    classification : Classification
        Pixel outcome; with ``options.include_aa`` the orchestrator never
        produces ANTI_ALIASED
    rgba : sequence of 4 ints
        The expected image's pixel (background source)
    delta : float
        Signed delta from core.delta.color_delta
    options : Options
        Colors, alpha, diff_mask
    """
    if classification == Classification.DIFF:
        return diff_color_for(delta, options)
    if options.diff_mask:
        return TRANSPARENT
    if classification == Classification.ANTI_ALIASED:
        return (*options.aa_color, 255)
    val = gray_value(rgba, options.alpha)
    return (val, val, val, val)


def draw_pixel(
    output: PixelBuffer,
    x: int,
    y: int,
    classification: Classification,
    rgba: Sequence[int],
    delta: float,
    options: Options
) -> None:
    output.put_pixel(x, y, output_color(classification, rgba, delta, options))


def gray_background(img: np.ndarray, alpha: float) -> np.ndarray:
    """(H, W) uint8 faded-grayscale values for an (H, W, 4) uint8 image."""
    rgb = img[..., :3].astype(np.float64)
    a = img[..., 3].astype(np.float64)
    y = rgb2y(rgb[..., 0], rgb[..., 1], rgb[..., 2])
    val = blend(y, alpha * a / 255.0)
    return np.trunc(np.clip(val, 0.0, 255.0)).astype(np.uint8)


def composite(
    output: PixelBuffer,
    expected: np.ndarray,
    classes: np.ndarray,
    deltas: np.ndarray,
    options: Options
) -> None:
    """Write every pixel of ``output`` from a classification map.

    Parameters
    ----------
    output : PixelBuffer
        Writable buffer, same size as ``expected``; fully overwritten
    expected : np.ndarray
        (H, W, 4) uint8 expected image
    classes : np.ndarray
        (H, W) Classification values
    deltas : np.ndarray
        (H, W) signed deltas (only the sign of DIFF pixels is used)
    options : Options
        Colors, alpha, diff_mask
    """
    out = output.as_array()

    if options.diff_mask:
        out[...] = 0
    else:
        val = gray_background(expected, options.alpha)
        out[..., 0] = val
        out[..., 1] = val
        out[..., 2] = val
        out[..., 3] = val
        out[classes == Classification.ANTI_ALIASED] = (*options.aa_color, 255)

    diff = classes == Classification.DIFF
    if options.diff_color_alt is not None:
        darker = diff & (deltas < 0)
        out[diff & ~darker] = (*options.diff_color, 255)
        out[darker] = (*options.diff_color_alt, 255)
    else:
        out[diff] = (*options.diff_color, 255)
