"""Trimming and resampling that make tiles of different sizes comparable."""

from __future__ import annotations

import numpy as np
from PIL import Image

from gaze.buffer import as_rgba, from_image, size, to_image
from gaze.errors import InvalidDimensions

_FILTERS = {
    "nearest": Image.NEAREST,
    "bilinear": Image.BILINEAR,
    "bicubic": Image.BICUBIC,
    "lanczos": Image.LANCZOS,
}


def resolve_filter(name: str) -> int:
    """Map an interpolation policy name to a Pillow resampling filter."""
    try:
        return _FILTERS[name.lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unknown interpolation '{name}'. Choose from {sorted(_FILTERS)}"
        ) from exc


def trim(buffer: np.ndarray, n: int) -> np.ndarray:
    """Drop trailing rows and columns so both sides divide evenly by *n*.

    The top-left origin is preserved and a new array is returned.
    """
    if n <= 0:
        raise InvalidDimensions(f"trim factor must be positive, got {n}")
    w, h = size(buffer)
    return buffer[: h - h % n, : w - w % n].copy()


def resample(
    buffer: np.ndarray,
    target_w: int,
    target_h: int,
    policy: str = "bilinear",
) -> np.ndarray:
    """Resize *buffer* to exactly ``target_w x target_h``.

    Args:
        buffer:   (H, W, 4) uint8 RGBA.
        target_w: Output width in pixels.
        target_h: Output height in pixels.
        policy:   ``"nearest"``, ``"bilinear"``, ``"bicubic"`` or ``"lanczos"``.

    Returns:
        (target_h, target_w, 4) uint8 array.
    """
    if target_w <= 0 or target_h <= 0:
        raise InvalidDimensions(
            f"cannot resample to {target_w}x{target_h}"
        )
    resample_filter = resolve_filter(policy)
    if size(buffer) == (target_w, target_h):
        return as_rgba(buffer).copy()
    img = to_image(buffer).resize((target_w, target_h), resample_filter)
    return from_image(img)


def aspect_ratio(buffer: np.ndarray) -> float:
    w, h = size(buffer)
    if h == 0:
        raise InvalidDimensions("buffer has zero height")
    return w / h
