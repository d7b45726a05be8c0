"""Synthetic images shared across tests.

All images are (H, W, 4) uint8 RGBA numpy arrays or PixelBuffers built
from them. Nothing here touches the filesystem. Also a fixture undoing
setup_logging() for tests that configure logging.
"""

import logging

import numpy as np
import pytest

from pixelmatch.core.buffer import PixelBuffer
from pixelmatch.utils import logging_config

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def solid(width: int, height: int, rgba=BLACK) -> np.ndarray:
    img = np.empty((height, width, 4), dtype=np.uint8)
    img[...] = rgba
    return img


def diagonal_edge(size: int, gray: int) -> np.ndarray:
    """Black below the main diagonal, white above, ``gray`` on it.

    The diagonal is a one-pixel anti-aliased line between two flat regions.
    """
    img = solid(size, size, BLACK)
    ys, xs = np.mgrid[0:size, 0:size]
    img[xs > ys] = WHITE
    img[xs == ys] = (gray, gray, gray, 255)
    return img


def noise(width: int, height: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    img = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    img[..., 3] = 255
    return img


@pytest.fixture
def diagonal_pair():
    """Expected/actual that differ only along an anti-aliased diagonal."""
    return PixelBuffer.from_array(diagonal_edge(10, 128)), PixelBuffer.from_array(diagonal_edge(10, 96))


@pytest.fixture
def noise_pair():
    """Two noisy 23x17 images sharing roughly half of their pixels."""
    a = noise(23, 17, seed=7)
    b = a.copy()
    rng = np.random.default_rng(11)
    mask = rng.random((17, 23)) < 0.5
    b[mask] = noise(23, 17, seed=13)[mask]
    return PixelBuffer.from_array(a), PixelBuffer.from_array(b)


@pytest.fixture
def clean_logging():
    """Remove handlers and context installed by setup_logging() after the test."""
    yield
    logging_config.pop_context()
    root = logging.getLogger()
    for handler in logging_config._installed:
        root.removeHandler(handler)
        handler.close()
    logging_config._installed.clear()
    logging.captureWarnings(False)
