"""The recursive mosaic tree and the grid splitter that builds it.

A :class:`MosaicNode` owns its pixel buffer and its children. The parent
link is a weak reference, so the tree has a single owner chain from the
root downwards.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from gaze.buffer import as_rgba, size
from gaze.errors import AlreadyResolved, InvalidDimensions, InvalidSplitFactor
from gaze.normalize import trim

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MosaicNode:
    """A rectangular region of the target, possibly subdivided.

    Attributes:
        buffer:       Raw pixels of this region (RGBA).
        matched:      Resolved output, ``None`` until gazed.
        children:     Child nodes in row-major grid order.
        grid_x:       Column within the parent's grid.
        grid_y:       Row within the parent's grid.
        split_factor: N of this node's own N x N grid (0 for a leaf).
    """

    buffer: np.ndarray
    matched: np.ndarray | None = None
    children: list[MosaicNode] = field(default_factory=list)
    grid_x: int = 0
    grid_y: int = 0
    split_factor: int = 0
    _parent: weakref.ref | None = field(default=None, repr=False)

    @property
    def parent(self) -> MosaicNode | None:
        return self._parent() if self._parent is not None else None

    @property
    def width(self) -> int:
        return size(self.buffer)[0]

    @property
    def height(self) -> int:
        return size(self.buffer)[1]

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def depth(self) -> int:
        """Distance from the root (the root is 0)."""
        d, node = 0, self.parent
        while node is not None:
            d += 1
            node = node.parent
        return d

    def leaves(self) -> Iterator[MosaicNode]:
        """Yield every leaf below (or equal to) this node in storage order."""
        if self.is_leaf:
            yield self
            return
        for child in self.children:
            yield from child.leaves()

    def walk(self) -> Iterator[MosaicNode]:
        """Post-order traversal: every child before its parent."""
        for child in self.children:
            yield from child.walk()
        yield self

    def resolve(self, buffer: np.ndarray) -> None:
        """Set :attr:`matched`; a node can only be resolved once."""
        if self.matched is not None:
            raise AlreadyResolved(
                f"node ({self.grid_x}, {self.grid_y}) is already resolved"
            )
        self.matched = buffer


def tile_box(
    grid_x: int, grid_y: int, x_step: int, y_step: int,
) -> tuple[slice, slice]:
    """Row and column slices of grid cell (grid_x, grid_y)."""
    return (
        slice(grid_y * y_step, (grid_y + 1) * y_step),
        slice(grid_x * x_step, (grid_x + 1) * x_step),
    )


def split(node: MosaicNode, n: int) -> None:
    """Split *node* into an n x n grid of children.

    The node's buffer is first trimmed so both sides divide by *n*. Children
    are created row by row (``y`` outer, ``x`` inner) and each holds its own
    copy of the pixels it covers. Nothing is modified if validation fails.
    """
    if n <= 0:
        raise InvalidSplitFactor(f"split factor must be positive, got {n}")
    if not node.is_leaf:
        raise InvalidSplitFactor(
            f"node is already split {node.split_factor}x{node.split_factor}"
        )
    if node.width < n or node.height < n:
        raise InvalidDimensions(
            f"a {node.width}x{node.height} buffer cannot be split {n}x{n}"
        )

    buffer = trim(as_rgba(node.buffer), n)
    h, w = buffer.shape[:2]
    x_step, y_step = w // n, h // n

    children = []
    parent_ref = weakref.ref(node)
    for y in range(n):
        for x in range(n):
            rows, cols = tile_box(x, y, x_step, y_step)
            children.append(MosaicNode(
                buffer=buffer[rows, cols].copy(),
                grid_x=x,
                grid_y=y,
                _parent=parent_ref,
            ))

    node.buffer = buffer
    node.children = children
    node.split_factor = n
    logger.debug("Split %dx%d node into %d tiles of %dx%d", w, h, n * n, x_step, y_step)


def split_recursive(node: MosaicNode, n: int, depth: int = 1) -> None:
    """Split *node* and then every resulting leaf, *depth* levels deep.

    The buffer is trimmed to a multiple of ``n ** depth`` up front so every
    level divides evenly and children fill their grid cells exactly.
    """
    if depth < 1:
        raise InvalidSplitFactor(f"depth must be at least 1, got {depth}")
    if n <= 0:
        raise InvalidSplitFactor(f"split factor must be positive, got {n}")
    if not node.is_leaf:
        raise InvalidSplitFactor("node is already split")
    cell = n ** depth
    if node.width < cell or node.height < cell:
        raise InvalidDimensions(
            f"a {node.width}x{node.height} buffer cannot be split {n}x{n} "
            f"{depth} levels deep"
        )
    node.buffer = trim(as_rgba(node.buffer), cell)
    _split_levels(node, n, depth)


def _split_levels(node: MosaicNode, n: int, depth: int) -> None:
    split(node, n)
    if depth > 1:
        for child in node.children:
            _split_levels(child, n, depth - 1)
