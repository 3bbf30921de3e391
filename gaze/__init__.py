"""
Gaze Photomosaic Engine
=======================

Split a target image into a grid of tiles, find the closest image in a
pool of candidates for each tile, and reassemble the matches into a
mosaic that looks like the target from afar.

Grids can be nested: any tile can be split again, and the mosaic is
resolved from the leaves up to the root.
"""

__version__ = "0.2.0"

from gaze.compositor import assemble, gaze
from gaze.config import GazeConfig
from gaze.errors import (
    AlreadyResolved,
    DecodeError,
    DirectoryUnreadable,
    EmptyPool,
    FetchError,
    GazeError,
    InvalidDimensions,
    InvalidSplitFactor,
    NotFound,
    Unresolved,
)
from gaze.image_io import load_target, make_comparison_grid, save
from gaze.matcher import ResampleCache, distance, match
from gaze.node import MosaicNode, split, split_recursive
from gaze.normalize import resample, trim
from gaze.pool import PoolCandidate, load_pool

__all__ = [
    "AlreadyResolved",
    "DecodeError",
    "DirectoryUnreadable",
    "EmptyPool",
    "FetchError",
    "GazeConfig",
    "GazeError",
    "InvalidDimensions",
    "InvalidSplitFactor",
    "MosaicNode",
    "NotFound",
    "PoolCandidate",
    "ResampleCache",
    "Unresolved",
    "assemble",
    "distance",
    "gaze",
    "load_pool",
    "load_target",
    "make_comparison_grid",
    "match",
    "resample",
    "save",
    "split",
    "split_recursive",
    "trim",
]
