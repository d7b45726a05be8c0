"""Per-pixel comparison core.

Data flows strictly downward:
    match → delta → utils.color
    match → antialias (brightness-only delta)
    match → compositor

Only match holds iteration state; every other module is pure functions
over read-only buffers, plus writes into a caller-supplied output buffer.
"""

from .antialias import antialiased, has_many_siblings, is_anti_aliased
from .buffer import DimensionMismatchError, PixelBuffer
from .match import DiffResult, classify_pixel, compare, compare_files, pixelmatch
from .compositor import Classification
from .delta import color_delta, color_delta_map, max_delta_for

__all__ = [
    'antialiased',
    'has_many_siblings',
    'is_anti_aliased',
    'DimensionMismatchError',
    'PixelBuffer',
    'DiffResult',
    'classify_pixel',
    'compare',
    'compare_files',
    'pixelmatch',
    'Classification',
    'color_delta',
    'color_delta_map',
    'max_delta_for',
]
