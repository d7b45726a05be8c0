"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Color science: RGB → YIQ, alpha blending (color)
    - Options schema and YAML config loading (validators)
    - Image decode/encode and atomic I/O (fs)
    - Unified logging (logging_config)

No module in utils/ may import from pixelmatch.core.

Convenience imports:
    from pixelmatch.utils import color, fs, validators
    from pixelmatch.utils.logging_config import setup_logging, push_context
"""

from . import color
from . import fs
from . import logging_config
from . import validators

from .logging_config import pop_context, push_context, setup_logging

__all__ = [
    'color',
    'fs',
    'logging_config',
    'validators',
    'setup_logging',
    'pop_context',
    'push_context',
]
