"""RGBA pixel buffer: a flat, row-major arena of 8-bit channels.

A PixelBuffer owns one contiguous uint8 array of ``width * height * 4``
bytes. Pixels are addressed through ``index(x, y)``, which bounds-checks the
coordinate and returns the offset of the pixel's R channel; there are no
per-row structures.

Input buffers are read-only (``readonly=True``, the default for all
constructors except ``blank``); diff output buffers are writable.

Invariants:
    - len(data) == width * height * 4, width >= 1, height >= 1
    - Channel order R, G, B, A
"""

from typing import Tuple, Union

import numpy as np
from PIL import Image

from pixelmatch.utils import fs

RGBA = Tuple[int, int, int, int]


class DimensionMismatchError(ValueError):
    """Raised when buffer sizes disagree with each other or with their data."""

    pass


class PixelBuffer:
    """Row-major RGBA8 image in a flat numpy arena.

    Attributes
    ----------
    width : int
        Pixels per row
    height : int
        Number of rows
    data : np.ndarray
        Flat uint8 array, length width * height * 4
    """

    def __init__(
        self,
        width: int,
        height: int,
        data: Union[bytes, bytearray, memoryview, np.ndarray],
        readonly: bool = True
    ):
        if width <= 0 or height <= 0:
            raise DimensionMismatchError(f"Image dimensions must be positive, got {width}x{height}")

        arr = np.frombuffer(data, dtype=np.uint8) if not isinstance(data, np.ndarray) else data
        arr = np.array(arr, dtype=np.uint8).reshape(-1)
        expected_len = width * height * 4
        if arr.size != expected_len:
            raise DimensionMismatchError(
                f"Image data size does not match width/height: "
                f"{arr.size} bytes for {width}x{height} (expected {expected_len})"
            )
        arr.flags.writeable = not readonly

        self.width = width
        self.height = height
        self.data = arr

    def __repr__(self) -> str:
        mode = "ro" if self.readonly else "rw"
        return f"PixelBuffer({self.width}x{self.height}, {mode})"

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        """Writable, fully transparent buffer (diff output)."""
        return cls(width, height, np.zeros(width * height * 4, dtype=np.uint8), readonly=False)

    @classmethod
    def from_array(cls, arr: np.ndarray, readonly: bool = True) -> "PixelBuffer":
        """Build from an (H, W, 4) uint8 array (copied)."""
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise DimensionMismatchError(f"Expected array of shape (H, W, 4), got {arr.shape}")
        if arr.dtype != np.uint8:
            raise TypeError(f"Expected uint8 array, got {arr.dtype}")
        h, w = arr.shape[:2]
        return cls(w, h, arr, readonly=readonly)

    @classmethod
    def from_image(cls, img: Image.Image, readonly: bool = True) -> "PixelBuffer":
        """Build from a Pillow image of any mode (converted to RGBA)."""
        if img.mode == "RGBA":
            return cls.from_array(np.asarray(img, dtype=np.uint8), readonly=readonly)
        rgba = img.convert("RGBA")
        try:
            return cls.from_array(np.asarray(rgba, dtype=np.uint8), readonly=readonly)
        finally:
            rgba.close()

    @classmethod
    def decode(cls, data: bytes) -> "PixelBuffer":
        """Build from encoded image bytes (PNG or any format Pillow reads)."""
        return cls.from_array(fs.decode_rgba(data))

    @classmethod
    def open(cls, path) -> "PixelBuffer":
        """Load an image file."""
        return cls.from_array(fs.load_rgba(path))

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def readonly(self) -> bool:
        return not self.data.flags.writeable

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return self.width, self.height

    def same_size(self, other: "PixelBuffer") -> bool:
        return self.width == other.width and self.height == other.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        """Offset of pixel (x, y)'s R channel in ``data``.

        Raises
        ------
        IndexError
            If (x, y) is outside the image
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"Pixel ({x}, {y}) out of bounds for {self.width}x{self.height} image")
        return (y * self.width + x) * 4

    def pixel(self, x: int, y: int) -> RGBA:
        i = self.index(x, y)
        r, g, b, a = self.data[i:i + 4].tolist()
        return r, g, b, a

    def put_pixel(self, x: int, y: int, rgba: RGBA) -> None:
        i = self.index(x, y)
        self.data[i:i + 4] = rgba

    def as_array(self) -> np.ndarray:
        """(H, W, 4) view sharing memory with ``data``."""
        return self.data.reshape(self.height, self.width, 4)

    def to_image(self) -> Image.Image:
        """RGBA Pillow image (copy of the pixels)."""
        return Image.fromarray(self.as_array().copy())

    def encode_png(self) -> bytes:
        return fs.encode_png(self.as_array())

    def save(self, path) -> None:
        """Write atomically; format from the file extension."""
        fs.atomic_save_image(self.as_array(), path)

    def copy(self, readonly: bool = False) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy(), readonly=readonly)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.same_size(other) and np.array_equal(self.data, other.data)

    __hash__ = None  # mutable when writable


def check_dimensions(expected: PixelBuffer, actual: PixelBuffer, output=None) -> None:
    """Fail fast unless all supplied buffers share width and height.

    Raises
    ------
    DimensionMismatchError
        On any width/height disagreement
    """
    if not expected.same_size(actual):
        raise DimensionMismatchError(
            f"Image sizes do not match: {expected.width}x{expected.height} "
            f"vs {actual.width}x{actual.height}"
        )
    if output is not None and not expected.same_size(output):
        raise DimensionMismatchError(
            f"Output size does not match input: {output.width}x{output.height} "
            f"vs {expected.width}x{expected.height}"
        )
