"""Brute-force similarity search of a leaf against the pool."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

import numpy as np
from scipy.spatial.distance import cdist

from gaze.errors import EmptyPool, InvalidDimensions
from gaze.node import MosaicNode
from gaze.normalize import resample
from gaze.pool import PoolCandidate

logger = logging.getLogger(__name__)


def _rgb_row(buffer: np.ndarray) -> np.ndarray:
    """Flatten the RGB channels of *buffer* into one float64 row."""
    return buffer[..., :3].reshape(1, -1).astype(np.float64)


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Average per-pixel sum of absolute R, G and B differences.

    Alpha is ignored. Both buffers must have the same dimensions.
    """
    if a.shape[:2] != b.shape[:2]:
        raise InvalidDimensions(
            f"cannot compare {a.shape[1]}x{a.shape[0]} with "
            f"{b.shape[1]}x{b.shape[0]}"
        )
    pixels = a.shape[0] * a.shape[1]
    diff = np.abs(a[..., :3].astype(np.int32) - b[..., :3].astype(np.int32))
    return float(diff.sum()) / pixels


class ResampleCache:
    """The pool resampled once per target size and shared across leaves.

    Leaves at the same tree depth share dimensions, so a single-depth mosaic
    resamples every candidate exactly once. Safe to share between threads.
    """

    def __init__(self, pool: Sequence[PoolCandidate], policy: str = "bilinear") -> None:
        self.pool = pool
        self.policy = policy
        self._stacks: dict[tuple[int, int], tuple[list[np.ndarray], np.ndarray]] = {}
        self._lock = threading.Lock()

    def get(self, width: int, height: int) -> tuple[list[np.ndarray], np.ndarray]:
        """Return (resampled buffers, stacked RGB rows) for ``width x height``."""
        key = (width, height)
        with self._lock:
            if key not in self._stacks:
                logger.debug(
                    "Resampling %d pool images to %dx%d", len(self.pool), width, height,
                )
                self._stacks[key] = _resample_pool(self.pool, width, height, self.policy)
            return self._stacks[key]


def _resample_pool(
    pool: Sequence[PoolCandidate],
    width: int,
    height: int,
    policy: str,
) -> tuple[list[np.ndarray], np.ndarray]:
    tiles = [resample(c.buffer, width, height, policy) for c in pool]
    rows = np.vstack([_rgb_row(t) for t in tiles])
    return tiles, rows


def score_pool(
    leaf: MosaicNode,
    pool: Sequence[PoolCandidate],
    policy: str = "bilinear",
    cache: ResampleCache | None = None,
) -> tuple[np.ndarray, list[np.ndarray]]:
    """Distance of every candidate against *leaf*.

    Returns:
        (scores, tiles) where ``scores[i]`` is the :func:`distance` between
        ``leaf.buffer`` and candidate *i* resampled to the leaf's size, and
        ``tiles[i]`` is that resampled candidate.
    """
    if not pool:
        raise EmptyPool("cannot match against an empty pool")
    w, h = leaf.width, leaf.height
    if cache is not None:
        tiles, rows = cache.get(w, h)
    else:
        tiles, rows = _resample_pool(pool, w, h, policy)
    # cityblock over the flattened RGB channels == sum of absolute differences
    scores = cdist(_rgb_row(leaf.buffer), rows, metric="cityblock")[0] / (w * h)
    return scores, tiles


def match(
    leaf: MosaicNode,
    pool: Sequence[PoolCandidate],
    policy: str = "bilinear",
    cache: ResampleCache | None = None,
) -> int:
    """Resolve *leaf* to its closest pool candidate.

    The lowest score wins; on ties the earliest candidate is kept.

    Returns:
        Index of the chosen candidate in *pool*.
    """
    if not leaf.is_leaf:
        raise ValueError("only leaf nodes are matched against the pool")
    scores, tiles = score_pool(leaf, pool, policy, cache)
    best = int(np.argmin(scores))
    leaf.resolve(tiles[best].copy())
    logger.debug(
        "Leaf (%d, %d) -> %s  score=%.2f",
        leaf.grid_x, leaf.grid_y, pool[best].source_id, scores[best],
    )
    return best
