"""Filesystem helpers: image decode/encode, atomic writes, YAML loading.

Provides:
    - Image loading into (H, W, 4) uint8 RGBA arrays (any format Pillow reads)
    - Atomic image writes: tmp file → rename (no partial diffs)
    - YAML load for options files

The comparison core never touches files; the CLI and ``compare_files`` use
this module to produce and consume raw pixel arrays.

All paths use pathlib.Path.

Usage:
    from pixelmatch.utils import fs
    rgba = fs.load_rgba("expected.png")
    fs.atomic_save_image(diff_rgba, "out/diff.png")
"""

import io
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml
from PIL import Image


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory (and parents) if missing, return Path object."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def decode_rgba(data: bytes) -> np.ndarray:
    """Decode encoded image bytes to an (H, W, 4) uint8 RGBA array.

    Raises
    ------
    PIL.UnidentifiedImageError
        If the bytes are not a recognized image format
    """
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        rgba = img.convert("RGBA")
    try:
        return np.array(rgba, dtype=np.uint8)
    finally:
        rgba.close()


def load_rgba(path: Union[str, Path]) -> np.ndarray:
    """Load an image file as an (H, W, 4) uint8 RGBA array.

    Parameters
    ----------
    path : Union[str, Path]
        Image path (PNG, JPEG, ... anything Pillow decodes)

    Returns
    -------
    np.ndarray
        RGBA pixels, shape (H, W, 4), dtype uint8

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    PIL.UnidentifiedImageError
        If the file is not a recognized image
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    return decode_rgba(path.read_bytes())


def encode_png(img: np.ndarray, pil_kwargs: Optional[Dict[str, Any]] = None) -> bytes:
    """Encode an (H, W, 4) or (H, W, 3) uint8 array as PNG bytes."""
    pil_kwargs = pil_kwargs or {}
    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    buf = io.BytesIO()
    pil_img = Image.fromarray(img)
    try:
        pil_img.save(buf, format="PNG", **pil_kwargs)
    finally:
        pil_img.close()
    return buf.getvalue()


def atomic_save_image(
    img: np.ndarray,
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save an RGBA/RGB uint8 array atomically.

    Parameters
    ----------
    img : np.ndarray
        (H, W, 4) or (H, W, 3) array; non-uint8 input is clipped to [0, 255]
    path : Union[str, Path]
        Target file path (extension determines format)
    pil_kwargs : Optional[Dict[str, Any]]
        Additional kwargs for PIL.Image.save (e.g., compress_level=9)

    Notes
    -----
    Tmp file keeps the target extension so Pillow picks the same format.
    """
    path = Path(path)
    pil_kwargs = pil_kwargs or {}
    ensure_dir(path.parent)

    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    pil_img = Image.fromarray(img)
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        pil_img.save(tmp_path, **pil_kwargs)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e
    finally:
        pil_img.close()


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
