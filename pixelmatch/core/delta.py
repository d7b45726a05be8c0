"""Perceptual color delta between two RGBA pixels.

YIQ-weighted squared distance after blending semi-transparent pixels over
white, so a transparent pixel compares as the white it renders to rather
than matching anything automatically.

Sign convention:
    - Full delta: negative when the first pixel is brighter (Y1 > Y2),
      positive otherwise. Callers use it to pick the "got darker" color.
    - Brightness-only delta (y_only=True): the signed luma difference
      Y1 - Y2; only its sign, zero-ness and ordering matter.

Two forms of the same arithmetic:
    - color_delta(): one pixel pair (anti-aliasing classifier, tests)
    - color_delta_map(): every pixel pair of two images at once (numpy)
Both evaluate the identical float64 expression, so a pixel gets the same
delta from either.
"""

from typing import Sequence

import numpy as np

from pixelmatch.utils.color import DELTA_WEIGHTS, MAX_YIQ_DELTA, blend, rgb2i, rgb2q, rgb2y


def max_delta_for(threshold: float) -> float:
    """Squared-distance cutoff for a user threshold in [0, 1]."""
    return MAX_YIQ_DELTA * threshold * threshold


def color_delta(rgba1: Sequence[int], rgba2: Sequence[int], y_only: bool = False) -> float:
    """Signed perceptual delta between two RGBA pixels.

    Parameters
    ----------
    rgba1, rgba2 : sequence of 4 ints
        Pixels, channels in [0, 255]
    y_only : bool
        Return the brightness difference only (anti-aliasing detection)

    Returns
    -------
    float
        0.0 for byte-identical pixels; otherwise see module docstring

    Examples
    --------
    >>> color_delta((0, 0, 0, 255), (0, 0, 0, 255))
    0.0
    >>> color_delta((255, 255, 255, 255), (0, 0, 0, 255)) < 0
    True
    """
    r1, g1, b1, a1 = rgba1
    r2, g2, b2, a2 = rgba2

    if r1 == r2 and g1 == g2 and b1 == b2 and a1 == a2:
        return 0.0

    r1, g1, b1 = float(r1), float(g1), float(b1)
    r2, g2, b2 = float(r2), float(g2), float(b2)

    if a1 < 255:
        k = a1 / 255.0
        r1, g1, b1 = blend(r1, k), blend(g1, k), blend(b1, k)

    if a2 < 255:
        k = a2 / 255.0
        r2, g2, b2 = blend(r2, k), blend(g2, k), blend(b2, k)

    y1 = rgb2y(r1, g1, b1)
    y2 = rgb2y(r2, g2, b2)
    y = y1 - y2

    if y_only:
        return y

    i = rgb2i(r1, g1, b1) - rgb2i(r2, g2, b2)
    q = rgb2q(r1, g1, b1) - rgb2q(r2, g2, b2)

    delta = DELTA_WEIGHTS[0] * y * y + DELTA_WEIGHTS[1] * i * i + DELTA_WEIGHTS[2] * q * q

    return -delta if y1 > y2 else delta


def _blended_channels(img: np.ndarray):
    """Split (..., 4) uint8 pixels into float64 channels blended over white."""
    rgb = img[..., :3].astype(np.float64)
    a = img[..., 3]
    k = a.astype(np.float64) / 255.0
    opaque = a == 255
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    r = np.where(opaque, r, blend(r, k))
    g = np.where(opaque, g, blend(g, k))
    b = np.where(opaque, b, blend(b, k))
    return r, g, b


def color_delta_map(img1: np.ndarray, img2: np.ndarray) -> np.ndarray:
    """Signed perceptual delta for every pixel pair of two images.

    Parameters
    ----------
    img1, img2 : np.ndarray
        (H, W, 4) uint8 RGBA arrays of equal shape

    Returns
    -------
    np.ndarray
        (H, W) float64 deltas; exactly 0.0 where the pixels are byte-identical

    Raises
    ------
    ValueError
        If shapes differ
    """
    if img1.shape != img2.shape:
        raise ValueError(f"Shape mismatch: {img1.shape} vs {img2.shape}")

    r1, g1, b1 = _blended_channels(img1)
    r2, g2, b2 = _blended_channels(img2)

    y1 = rgb2y(r1, g1, b1)
    y2 = rgb2y(r2, g2, b2)
    y = y1 - y2
    i = rgb2i(r1, g1, b1) - rgb2i(r2, g2, b2)
    q = rgb2q(r1, g1, b1) - rgb2q(r2, g2, b2)

    delta = DELTA_WEIGHTS[0] * y * y + DELTA_WEIGHTS[1] * i * i + DELTA_WEIGHTS[2] * q * q
    delta = np.where(y1 > y2, -delta, delta)

    identical = np.all(img1 == img2, axis=-1)
    delta[identical] = 0.0
    return delta
