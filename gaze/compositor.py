"""Reassembling matched tiles into their parents, from the leaves up."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from gaze.errors import EmptyPool, Unresolved
from gaze.matcher import ResampleCache, match
from gaze.node import MosaicNode, tile_box
from gaze.normalize import resample
from gaze.pool import PoolCandidate

logger = logging.getLogger(__name__)


def assemble(node: MosaicNode) -> np.ndarray:
    """Build the composite buffer for *node* from its children.

    Each child contributes its ``matched`` buffer, or its raw ``buffer`` if
    it was never resolved, at the grid cell the splitter cut it from. A
    child tile whose size differs from its cell (possible when a child was
    split, and therefore trimmed, on its own) is scaled to fit.

    A leaf simply returns its ``matched`` buffer.
    """
    if node.is_leaf:
        if node.matched is None:
            raise Unresolved(
                f"leaf ({node.grid_x}, {node.grid_y}) has not been matched"
            )
        return node.matched

    n = node.split_factor
    out = np.zeros_like(node.buffer)
    x_step, y_step = node.width // n, node.height // n

    for child in node.children:
        tile = child.matched if child.matched is not None else child.buffer
        if tile.shape[:2] != (y_step, x_step):
            tile = resample(tile, x_step, y_step, "nearest")
        rows, cols = tile_box(child.grid_x, child.grid_y, x_step, y_step)
        out[rows, cols] = tile
    return out


def _pending_leaves(node: MosaicNode) -> Iterator[MosaicNode]:
    """Unresolved leaves, skipping subtrees whose root is already resolved."""
    if node.matched is not None:
        return
    if node.is_leaf:
        yield node
        return
    for child in node.children:
        yield from _pending_leaves(child)


def _assemble_up(node: MosaicNode) -> None:
    if node.matched is not None:
        return
    for child in node.children:
        _assemble_up(child)
    node.resolve(assemble(node))


def gaze(
    node: MosaicNode,
    pool: Sequence[PoolCandidate],
    policy: str = "bilinear",
    workers: int = 1,
    cache: bool = True,
) -> np.ndarray:
    """Resolve *node* and everything below it.

    Every unresolved leaf is matched against *pool* first, optionally on a
    thread pool, then interior nodes are assembled deepest first so each
    parent only sees resolved children. Nodes already resolved are left
    untouched.

    Args:
        node:    Root of the (sub)tree to gaze on.
        pool:    Candidates from :func:`gaze.pool.load_pool`.
        policy:  Interpolation used to fit candidates to leaf tiles.
        workers: Threads used for leaf matching.
        cache:   Resample the pool once per leaf size instead of per leaf.

    Returns:
        ``node.matched``.
    """
    if not pool:
        raise EmptyPool("cannot gaze with an empty pool")

    resample_cache = ResampleCache(pool, policy) if cache else None
    leaves = list(_pending_leaves(node))

    logger.info(
        "Matching %d leaves against %d candidates (%d worker%s) …",
        len(leaves), len(pool), workers, "" if workers == 1 else "s",
    )
    t0 = time.perf_counter()
    if workers > 1 and len(leaves) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(match, leaf, pool, policy, resample_cache)
                for leaf in leaves
            ]
            for future in futures:
                future.result()
    else:
        for leaf in leaves:
            match(leaf, pool, policy, resample_cache)
    logger.info("Leaves matched  (%.1f s)", time.perf_counter() - t0)

    _assemble_up(node)
    return node.matched
