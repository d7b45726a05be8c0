"""Pixel-level image comparison (the ``pixelmatch`` entry point).

Pipeline per call:
    1. Coerce inputs to PixelBuffers, validate options and dimensions (fail fast)
    2. Whole-image fast path: byte-identical inputs → 0, no deltas computed
    3. Delta map for all pixels at once (numpy), cutoff = 35215 * threshold²
    4. Pixels above the cutoff are classified one by one (anti-aliasing check)
       in row bands, optionally on a thread pool
    5. Counts are summed; the diff output (if any) is composited in one pass

Every pixel's classification depends only on the two read-only inputs, so
bands are independent and the merged result does not depend on ``workers``.
The per-pixel classification loop is pure Python and holds the GIL, so on
CPython extra threads do not make a comparison faster; the delta map (numpy)
is computed once, before banding.

Usage:
    from pixelmatch.core.match import compare

    result = compare(expected, actual, diff_output=PixelBuffer.blank(w, h), threshold=0.05)
    if result.differing_pixels:
        result.diff_output.save("diff.png")
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from pixelmatch.core.antialias import is_anti_aliased
from pixelmatch.core.buffer import PixelBuffer, check_dimensions
from pixelmatch.core.compositor import Classification, composite
from pixelmatch.core.delta import color_delta, color_delta_map, max_delta_for
from pixelmatch.utils.validators import InvalidOptionError, Options, build_options

logger = logging.getLogger(__name__)

ImageSource = Union[PixelBuffer, np.ndarray, Image.Image, bytes]


@dataclass(frozen=True)
class DiffResult:
    """Outcome of one comparison.

    Attributes
    ----------
    differing_pixels : int
        Pixels counted as differences
    anti_aliased_pixels : int
        Pixels above the threshold but classified as anti-aliasing (not counted)
    total_pixels : int
        width * height
    diff_output : PixelBuffer, optional
        The composited diff image, when one was requested
    """
    differing_pixels: int
    anti_aliased_pixels: int
    total_pixels: int
    diff_output: Optional[PixelBuffer] = None

    @property
    def identical(self) -> bool:
        return self.differing_pixels == 0

    @property
    def error_percent(self) -> float:
        """Share of differing pixels, in percent."""
        return 100.0 * self.differing_pixels / self.total_pixels


def _as_buffer(source: ImageSource) -> PixelBuffer:
    if isinstance(source, PixelBuffer):
        return source
    if isinstance(source, np.ndarray):
        return PixelBuffer.from_array(source)
    if isinstance(source, Image.Image):
        return PixelBuffer.from_image(source)
    if isinstance(source, (bytes, bytearray)):
        return PixelBuffer.decode(bytes(source))
    raise TypeError(f"Unsupported image source: {type(source).__name__}")


def _resolve_options(options: Optional[Options], overrides: dict) -> Options:
    if options is None or overrides:
        return build_options(options, **overrides)
    return options


def classify_pixel(
    expected: PixelBuffer,
    actual: PixelBuffer,
    x: int,
    y: int,
    max_delta: float,
    include_aa: bool = False
) -> Tuple[Classification, float]:
    """Classify one pixel pair.

    Parameters
    ----------
    expected, actual : PixelBuffer
        Same-size input images
    x, y : int
        Pixel coordinate
    max_delta : float
        Squared-distance cutoff (see core.delta.max_delta_for)
    include_aa : bool
        Skip anti-aliasing detection; everything above the cutoff is DIFF

    Returns
    -------
    tuple
        (classification, signed delta)
    """
    rgba1 = expected.pixel(x, y)
    rgba2 = actual.pixel(x, y)
    if rgba1 == rgba2:
        return Classification.MATCH, 0.0

    delta = color_delta(rgba1, rgba2)
    if abs(delta) <= max_delta:
        return Classification.MATCH, delta

    if not include_aa and is_anti_aliased(expected, actual, x, y):
        return Classification.ANTI_ALIASED, delta
    return Classification.DIFF, delta


def _classify_band(
    expected: PixelBuffer,
    actual: PixelBuffer,
    deltas: np.ndarray,
    rows: Tuple[int, int],
    max_delta: float,
    include_aa: bool
) -> np.ndarray:
    """Classification map for rows [start, stop)."""
    start, stop = rows
    classes = np.zeros((stop - start, expected.width), dtype=np.uint8)
    candidates = np.abs(deltas[start:stop]) > max_delta

    for by, x in zip(*np.nonzero(candidates)):
        cls, _ = classify_pixel(expected, actual, int(x), start + int(by), max_delta, include_aa)
        classes[by, x] = cls

    return classes


def _row_bands(height: int, workers: int) -> List[Tuple[int, int]]:
    """Split [0, height) into up to ``workers`` contiguous, near-equal bands."""
    n = min(workers, height)
    step, extra = divmod(height, n)
    bands = []
    start = 0
    for i in range(n):
        stop = start + step + (1 if i < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


def compare(
    expected: ImageSource,
    actual: ImageSource,
    diff_output: Optional[PixelBuffer] = None,
    options: Optional[Options] = None,
    *,
    workers: int = 1,
    **overrides: Any
) -> DiffResult:
    """Compare two equally sized images pixel by pixel.

    Parameters
    ----------
    expected, actual : PixelBuffer, np.ndarray, PIL.Image.Image or bytes
        Input images; arrays are (H, W, 4) uint8, bytes are encoded images
    diff_output : PixelBuffer, optional
        Writable buffer of the same size; every pixel is overwritten with
        the diff visualization
    options : Options, optional
        Comparison options; defaults when None
    workers : int
        Threads classifying row bands, default 1 (no pool). Results are
        identical for any value; the loop is GIL-bound, so this is not a
        speedup on CPython
    **overrides
        Option fields replacing those of ``options`` (e.g., threshold=0.05)

    Returns
    -------
    DiffResult
        Differing/anti-aliased pixel counts and the diff output

    Raises
    ------
    InvalidOptionError
        If an option (or ``workers``) is out of range; raised before any
        pixel is processed
    DimensionMismatchError
        If input or output sizes disagree
    ValueError
        If ``diff_output`` is read-only

    Examples
    --------
    >>> img = PixelBuffer.blank(4, 4)
    >>> compare(img, img).differing_pixels
    0
    """
    options = _resolve_options(options, overrides)
    if workers < 1:
        raise InvalidOptionError(f"workers must be >= 1, got {workers}")

    expected = _as_buffer(expected)
    actual = _as_buffer(actual)
    check_dimensions(expected, actual, diff_output)
    if diff_output is not None and diff_output.readonly:
        raise ValueError("diff_output buffer is read-only")

    width, height = expected.size
    total = width * height
    exp_arr = expected.as_array()

    if np.array_equal(expected.data, actual.data):
        logger.debug(f"Images identical ({width}x{height}), skipping delta computation")
        if diff_output is not None:
            classes = np.zeros((height, width), dtype=np.uint8)
            composite(diff_output, exp_arr, classes, np.zeros((height, width)), options)
        return DiffResult(0, 0, total, diff_output)

    max_delta = max_delta_for(options.threshold)
    deltas = color_delta_map(exp_arr, actual.as_array())
    bands = _row_bands(height, workers)
    logger.debug(
        f"Comparing {width}x{height}: threshold={options.threshold} max_delta={max_delta:.2f} "
        f"bands={len(bands)}"
    )

    def run(rows: Tuple[int, int]) -> np.ndarray:
        return _classify_band(expected, actual, deltas, rows, max_delta, options.include_aa)

    if len(bands) == 1:
        parts = [run(bands[0])]
    else:
        with ThreadPoolExecutor(max_workers=len(bands)) as pool:
            parts = list(pool.map(run, bands))
    classes = np.concatenate(parts, axis=0)

    diff_count = int(np.count_nonzero(classes == Classification.DIFF))
    aa_count = int(np.count_nonzero(classes == Classification.ANTI_ALIASED))

    if diff_output is not None:
        composite(diff_output, exp_arr, classes, deltas, options)

    logger.debug(f"Different pixels: {diff_count}, anti-aliased: {aa_count}")
    return DiffResult(diff_count, aa_count, total, diff_output)


def pixelmatch(
    expected: ImageSource,
    actual: ImageSource,
    output: Optional[PixelBuffer] = None,
    options: Optional[Options] = None,
    **overrides: Any
) -> int:
    """Number of differing pixels; ``output`` (if given) receives the diff image."""
    return compare(expected, actual, output, options, **overrides).differing_pixels


def compare_files(
    expected_path,
    actual_path,
    diff_path=None,
    options: Optional[Options] = None,
    *,
    workers: int = 1,
    **overrides: Any
) -> DiffResult:
    """Decode two image files, compare them, and write the diff image.

    Parameters
    ----------
    expected_path, actual_path : str or Path
        Input images (any format Pillow decodes)
    diff_path : str or Path, optional
        Where to write the diff PNG; no diff image is produced when None
    options : Options, optional
        Comparison options
    workers : int
        Threads classifying row bands (see ``compare``)
    **overrides
        Option fields replacing those of ``options``

    Raises
    ------
    FileNotFoundError
        If an input is missing
    DimensionMismatchError
        If the images differ in size (checked before the output is allocated)
    InvalidOptionError
        If an option is out of range
    """
    options = _resolve_options(options, overrides)
    expected = PixelBuffer.open(expected_path)
    actual = PixelBuffer.open(actual_path)
    check_dimensions(expected, actual)

    diff_output = PixelBuffer.blank(expected.width, expected.height) if diff_path else None
    result = compare(expected, actual, diff_output, options, workers=workers)

    if diff_output is not None:
        diff_output.save(diff_path)
        logger.info(f"Diff image written to {diff_path}")
    return result
