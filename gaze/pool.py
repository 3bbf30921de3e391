"""Loading and filtering the pool of candidate tile images."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from gaze.errors import (
    DecodeError,
    DirectoryUnreadable,
    EmptyPool,
    InvalidSplitFactor,
    NotFound,
)
from gaze.image_io import decode_image
from gaze.node import MosaicNode
from gaze.normalize import aspect_ratio, resample, trim

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolCandidate:
    """A pool image already resampled to the leaf tile size."""

    buffer: np.ndarray
    source_id: str


def _list_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        raise DirectoryUnreadable(f"Pool directory `{directory}` does not exist")
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise DirectoryUnreadable(
            f"Can't list pool directory `{directory}`: {exc}"
        ) from exc
    return [p for p in entries if p.is_file()]


def aspect_matches(
    candidate: float,
    target: float,
    tolerance: float | None = None,
) -> bool:
    """Compare two aspect ratios.

    Without a *tolerance* both are rounded to one decimal place and must be
    equal; with one, the raw ratios may differ by at most *tolerance*.
    """
    if tolerance is None:
        return round(candidate, 1) == round(target, 1)
    return abs(candidate - target) <= tolerance


def load_pool(
    directory: str | Path,
    target: MosaicNode,
    policy: str = "bilinear",
    aspect_tolerance: float | None = None,
    allow_empty: bool = False,
) -> list[PoolCandidate]:
    """Scan *directory* and keep the images shaped like *target*.

    Args:
        directory:        Folder of candidate images (not recursive).
        target:           An already split node; its ``split_factor`` sets
                          both the trim factor and the tile size.
        policy:           Interpolation used to shrink candidates.
        aspect_tolerance: See :func:`aspect_matches`.
        allow_empty:      Return ``[]`` instead of raising :class:`EmptyPool`.

    Returns:
        Candidates in file-name order, each sized
        ``target.width // n x target.height // n``.
    """
    n = target.split_factor
    if n <= 0:
        raise InvalidSplitFactor("the target must be split before loading a pool")

    directory = Path(directory)
    files = _list_files(directory)

    tile_w, tile_h = target.width // n, target.height // n
    target_ratio = aspect_ratio(target.buffer)

    pool: list[PoolCandidate] = []
    skipped = 0
    t0 = time.perf_counter()
    for path in files:
        try:
            buffer = decode_image(path)
        except (DecodeError, NotFound) as exc:
            logger.debug("Skipping %s: %s", path.name, exc)
            skipped += 1
            continue

        if buffer.shape[0] < n or buffer.shape[1] < n:
            logger.debug("Skipping %s: smaller than the split factor", path.name)
            skipped += 1
            continue

        buffer = trim(buffer, n)
        ratio = aspect_ratio(buffer)
        if not aspect_matches(ratio, target_ratio, aspect_tolerance):
            logger.debug(
                "Skipping %s: aspect %.2f does not match %.2f",
                path.name, ratio, target_ratio,
            )
            skipped += 1
            continue

        pool.append(PoolCandidate(
            buffer=resample(buffer, tile_w, tile_h, policy),
            source_id=path.name,
        ))

    logger.info(
        "Loaded %d files into the image pool (%d skipped, %.1f s)",
        len(pool), skipped, time.perf_counter() - t0,
    )
    if not pool and not allow_empty:
        raise EmptyPool(
            f"No images in `{directory}` match the target's aspect ratio"
        )
    return pool
