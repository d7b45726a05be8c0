"""pixelmatch: perceptual pixel-level image comparison.

Compares two equally sized RGBA images, classifying each pixel pair as a
match, anti-aliasing, or a real difference, and optionally renders a diff
image highlighting the differences. Built for visual-regression testing.

Architecture layers (strict one-way dependency):
    cli → core/ → utils/

Key invariants:
    - Inputs are never aligned, cropped or resized; sizes must match
    - Perceptual distance is YIQ-weighted; threshold t maps to 35215 * t²
    - No state survives between calls
"""

from .core import (
    Classification,
    DiffResult,
    DimensionMismatchError,
    PixelBuffer,
    compare,
    compare_files,
    pixelmatch,
)
from .utils.validators import InvalidOptionError, Options

__version__ = "0.4.0"

__all__ = [
    'Classification',
    'DiffResult',
    'DimensionMismatchError',
    'InvalidOptionError',
    'Options',
    'PixelBuffer',
    'compare',
    'compare_files',
    'pixelmatch',
]
