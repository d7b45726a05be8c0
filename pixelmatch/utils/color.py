"""Color space conversions for perceptual pixel comparison.

Provides:
    - RGB → YIQ (NTSC transmission color space) per channel: Y, I, Q
    - Alpha blending of a semi-transparent channel over a white background

Used by:
    - core.delta: perceptual squared distance between two pixels
    - core.compositor: grayscale luma for the faded diff background

All functions are plain arithmetic and accept either Python floats or numpy
arrays (broadcast elementwise), so the same code serves the per-pixel path
and the whole-image vectorized path.

Invariants:
    - Channel inputs are in [0, 255] (uint8 domain, promoted to float)
    - Y of pure white is ≈255, of pure black 0
    - MAX_YIQ_DELTA is the largest value of the weighted YIQ delta
"""

from typing import Tuple, Union

import numpy as np

Channel = Union[float, np.ndarray]

# Kotsarenko & Ramos, "Measuring perceived color difference using YIQ NTSC
# transmission color space in mobile applications"
Y_COEFFS = (0.29889531, 0.58662247, 0.11448223)
I_COEFFS = (0.59597799, -0.27417610, -0.32180189)
Q_COEFFS = (0.21147017, -0.52261711, 0.31114694)

# Weights of the squared Y/I/Q differences in the perceptual delta
DELTA_WEIGHTS = (0.5053, 0.299, 0.1957)

# Maximum possible value of the weighted YIQ delta
MAX_YIQ_DELTA = 35215.0

WHITE = 255.0


def rgb2y(r: Channel, g: Channel, b: Channel) -> Channel:
    """Luma component."""
    return r * Y_COEFFS[0] + g * Y_COEFFS[1] + b * Y_COEFFS[2]


def rgb2i(r: Channel, g: Channel, b: Channel) -> Channel:
    """In-phase chroma component."""
    return r * I_COEFFS[0] + g * I_COEFFS[1] + b * I_COEFFS[2]


def rgb2q(r: Channel, g: Channel, b: Channel) -> Channel:
    """Quadrature chroma component."""
    return r * Q_COEFFS[0] + g * Q_COEFFS[1] + b * Q_COEFFS[2]


def rgb_to_yiq(r: Channel, g: Channel, b: Channel) -> Tuple[Channel, Channel, Channel]:
    """Convert RGB [0, 255] to YIQ.

    Parameters
    ----------
    r, g, b : float or np.ndarray
        Channel values in [0, 255]

    Returns
    -------
    tuple
        (Y, I, Q); Y in [0, 255], I and Q signed

    Examples
    --------
    >>> y, i, q = rgb_to_yiq(255.0, 255.0, 255.0)
    >>> round(y)
    255
    """
    return rgb2y(r, g, b), rgb2i(r, g, b), rgb2q(r, g, b)


def blend(c: Channel, a: Channel) -> Channel:
    """Blend channel value ``c`` with opacity ``a`` ∈ [0, 1] over white.

    Fully transparent (a=0) yields 255, fully opaque (a=1) yields ``c``.
    """
    return WHITE + (c - WHITE) * a


def blend_rgb(
    r: Channel,
    g: Channel,
    b: Channel,
    a: Channel
) -> Tuple[Channel, Channel, Channel]:
    """Blend an RGBA pixel (all channels [0, 255]) over white.

    Parameters
    ----------
    r, g, b : float or np.ndarray
        Color channels in [0, 255]
    a : float or np.ndarray
        Alpha channel in [0, 255]

    Returns
    -------
    tuple
        Visible (r, g, b) over a white background

    Notes
    -----
    Opaque inputs come back unchanged; callers on the scalar path skip the
    call for a == 255.
    """
    k = a / 255.0
    return blend(r, k), blend(g, k), blend(b, k)
