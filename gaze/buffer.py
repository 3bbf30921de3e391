"""RGBA pixel buffers backed by numpy arrays.

A buffer is an ``(H, W, 4)`` uint8 array in RGBA order whose origin is the
top-left pixel.
"""

from __future__ import annotations

import numpy as np
from PIL import Image

from gaze.errors import InvalidDimensions


def new_buffer(width: int, height: int) -> np.ndarray:
    """Allocate a transparent black buffer."""
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"cannot allocate a {width}x{height} buffer")
    return np.zeros((height, width, 4), dtype=np.uint8)


def solid(width: int, height: int, rgba: tuple[int, ...]) -> np.ndarray:
    """A buffer filled with one colour; RGB tuples get an opaque alpha."""
    if len(rgba) == 3:
        rgba = (*rgba, 255)
    buf = new_buffer(width, height)
    buf[:, :] = rgba
    return buf


def from_image(img: Image.Image) -> np.ndarray:
    """Copy a Pillow image into a buffer, converting to RGBA."""
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def to_image(buffer: np.ndarray) -> Image.Image:
    return Image.fromarray(as_rgba(buffer))


def as_rgba(buffer: np.ndarray) -> np.ndarray:
    """Validate *buffer* and return it as a contiguous RGBA uint8 array."""
    if buffer.ndim != 3 or buffer.shape[2] != 4:
        raise InvalidDimensions(
            f"expected an (H, W, 4) buffer, got shape {buffer.shape}"
        )
    return np.ascontiguousarray(buffer, dtype=np.uint8)


def size(buffer: np.ndarray) -> tuple[int, int]:
    """Return ``(width, height)``."""
    h, w = buffer.shape[:2]
    return w, h
