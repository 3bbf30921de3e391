"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class GazeConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        split_factor:     Grid divisions per axis at each level.
        depth:            How many levels the target is split into.
        interpolation:    Resampling filter (see SUPPORTED_FILTERS).
        aspect_tolerance: Max aspect-ratio difference for pool images
                          (None = compare ratios rounded to one decimal).
        workers:          Threads used to match leaves (1 = sequential).
        cache_resampled:  Reuse the resampled pool across equal-size leaves.
        pool_dir:         Folder of candidate tile images.
        output_prefix:    Outputs are written as {prefix}_orig.png etc.
        save_comparison:  Also write an Original | Gazed comparison panel.
        fetch_workers:    Concurrent downloads when fetching a pool.
    """

    # Grid
    split_factor: int = 10
    depth: int = 1

    # Matching
    interpolation: str = "bilinear"
    aspect_tolerance: float | None = None
    workers: int = 1
    cache_resampled: bool = True

    # Paths
    pool_dir: Path = field(default_factory=lambda: Path("pool"))
    output_prefix: Path = field(default_factory=lambda: Path("output/full"))

    # Output
    save_comparison: bool = False

    # Fetch
    fetch_workers: int = 4

    SUPPORTED_FILTERS: frozenset[str] = frozenset(
        {"nearest", "bilinear", "bicubic", "lanczos"}
    )
