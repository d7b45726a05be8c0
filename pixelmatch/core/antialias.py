"""Anti-aliased pixel detection.

Based on "Anti-aliased Pixel and Intensity Slope Detector" (V. Vysniauskas,
2009). A pixel that differs between two renderings is treated as edge
smoothing, not a content change, when it sits on a brightness slope between
a darker and a brighter neighbor and at least one of those extremes lies in
a flat region in both images.

Window rules:
    - 3×3 neighborhood; out-of-bounds neighbors are skipped
    - A pixel on the image border starts with one "equal" neighbor counted,
      standing in for the missing ring
    - Ties between neighbors with the same extreme delta go to the first one
      visited (column-major: x outer, y inner)
"""

from typing import Optional, Tuple

from pixelmatch.core.buffer import PixelBuffer
from pixelmatch.core.delta import color_delta

# More equal neighbors than this marks a flat region
MAX_EQUAL_SIBLINGS = 2


def _window(x: int, y: int, width: int, height: int) -> Tuple[int, int, int, int]:
    """Clamped (x0, y0, x2, y2) bounds of the 3×3 window around (x, y)."""
    return max(x - 1, 0), max(y - 1, 0), min(x + 1, width - 1), min(y + 1, height - 1)


def _border_zeroes(x: int, y: int, x0: int, y0: int, x2: int, y2: int) -> int:
    return 1 if (x == x0 or x == x2 or y == y0 or y == y2) else 0


def has_many_siblings(img: PixelBuffer, x: int, y: int) -> bool:
    """True if (x, y) has more than two byte-identical neighbors."""
    x0, y0, x2, y2 = _window(x, y, img.width, img.height)
    zeroes = _border_zeroes(x, y, x0, y0, x2, y2)
    center = img.pixel(x, y)

    for nx in range(x0, x2 + 1):
        for ny in range(y0, y2 + 1):
            if nx == x and ny == y:
                continue
            if img.pixel(nx, ny) == center:
                zeroes += 1
                if zeroes > MAX_EQUAL_SIBLINGS:
                    return True
    return False


def antialiased(img: PixelBuffer, x: int, y: int, other: PixelBuffer) -> bool:
    """Check if pixel (x, y) of ``img`` is likely part of anti-aliasing.

    Parameters
    ----------
    img : PixelBuffer
        Image whose neighborhood is examined
    x, y : int
        Pixel coordinate
    other : PixelBuffer
        The other image of the pair, same size; used for the sibling check

    Returns
    -------
    bool
        True if the pixel looks like edge smoothing
    """
    x0, y0, x2, y2 = _window(x, y, img.width, img.height)
    zeroes = _border_zeroes(x, y, x0, y0, x2, y2)
    center = img.pixel(x, y)

    min_delta = 0.0
    max_delta = 0.0
    min_xy: Optional[Tuple[int, int]] = None
    max_xy: Optional[Tuple[int, int]] = None

    for nx in range(x0, x2 + 1):
        for ny in range(y0, y2 + 1):
            if nx == x and ny == y:
                continue

            # brightness delta between the center pixel and adjacent one
            delta = color_delta(center, img.pixel(nx, ny), y_only=True)

            if delta == 0:
                zeroes += 1
                # flat region, definitely not anti-aliasing
                if zeroes > MAX_EQUAL_SIBLINGS:
                    return False
            elif delta < min_delta:
                # brightest neighbor so far
                min_delta = delta
                min_xy = (nx, ny)
            elif delta > max_delta:
                # darkest neighbor so far
                max_delta = delta
                max_xy = (nx, ny)

    # need both a darker and a brighter neighbor
    if min_xy is None or max_xy is None:
        return False

    return (
        (has_many_siblings(img, *min_xy) and has_many_siblings(other, *min_xy))
        or (has_many_siblings(img, *max_xy) and has_many_siblings(other, *max_xy))
    )


def is_anti_aliased(expected: PixelBuffer, actual: PixelBuffer, x: int, y: int) -> bool:
    """Anti-aliasing in either rendering of the pair at (x, y)."""
    return antialiased(expected, x, y, actual) or antialiased(actual, x, y, expected)
