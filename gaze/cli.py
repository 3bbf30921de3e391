"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from gaze.compositor import gaze
from gaze.config import GazeConfig
from gaze.errors import GazeError
from gaze.fetch import fetch_pool, load_photosets
from gaze.image_io import load_target, make_comparison_grid, save
from gaze.node import split_recursive
from gaze.pool import load_pool

app = typer.Typer(
    name="gaze",
    help="Build photomosaics out of a pool of images.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _quality_metric(original: np.ndarray, gazed: np.ndarray) -> float:
    t = original[..., :3].reshape(-1, 3).astype(np.float64)
    m = gazed[..., :3].reshape(-1, 3).astype(np.float64)
    return float(np.mean(np.sqrt(np.sum((t - m) ** 2, axis=1))))


# Defaults come from GazeConfig - single source of truth
_DEFAULTS = GazeConfig()


# -- run command -------------------------------------------------------

@app.command()
def run(
    image: Path = typer.Argument(..., help="The image that should be processed"),
    pool_dir: Path = typer.Option(
        _DEFAULTS.pool_dir, "--pool", "-p", help="Folder of images used for tiling",
    ),
    splits: int = typer.Option(
        _DEFAULTS.split_factor, "--splits", "-n",
        help="Number of tiles along each dimension",
    ),
    depth: int = typer.Option(
        _DEFAULTS.depth, "--depth", "-d", help="Levels of nested splitting",
    ),
    interpolation: str = typer.Option(
        _DEFAULTS.interpolation, "--filter",
        help="'nearest', 'bilinear', 'bicubic' or 'lanczos'",
    ),
    tolerance: float | None = typer.Option(
        _DEFAULTS.aspect_tolerance, "--tolerance",
        help="Aspect-ratio tolerance (default: equal when rounded to 0.1)",
    ),
    workers: int = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Threads used for matching",
    ),
    output: Path = typer.Option(
        _DEFAULTS.output_prefix, "--output", "-o",
        help="Output prefix; writes PREFIX_orig.png and PREFIX_gazed.png",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Also write PREFIX_comparison.png",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Split IMAGE into tiles and rebuild it from the closest pool images."""
    _setup_logging(verbose)
    logger = logging.getLogger("gaze")

    if interpolation.lower() not in _DEFAULTS.SUPPORTED_FILTERS:
        console.print(f"[red]Unknown filter '{interpolation}'[/red]")
        raise typer.Exit(2)

    cfg = GazeConfig(
        split_factor=splits,
        depth=depth,
        interpolation=interpolation.lower(),
        aspect_tolerance=tolerance,
        workers=workers,
        pool_dir=pool_dir,
        output_prefix=output,
        save_comparison=comparison,
    )

    console.print(Panel.fit(
        f"[bold]GAZE[/bold]\n"
        f"Splits: {cfg.split_factor}  |  Depth: {cfg.depth}\n"
        f"Filter: {cfg.interpolation}  |  Workers: {cfg.workers}\n"
        f"Pool: {cfg.pool_dir}",
        border_style="cyan",
    ))
    t_total = time.perf_counter()

    try:
        root = load_target(image)
        first_w, first_h = root.width, root.height
        split_recursive(root, cfg.split_factor, cfg.depth)
        logger.info(
            "Starting dimensions: %dx%d  Trimmed dimensions: %dx%d",
            first_w, first_h, root.width, root.height,
        )

        pool = load_pool(
            cfg.pool_dir, root,
            policy=cfg.interpolation,
            aspect_tolerance=cfg.aspect_tolerance,
        )
        gazed = gaze(
            root, pool,
            policy=cfg.interpolation,
            workers=cfg.workers,
            cache=cfg.cache_resampled,
        )
    except GazeError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from exc

    written = save(root, cfg.output_prefix)
    if cfg.save_comparison:
        comp_path = Path(f"{cfg.output_prefix}_comparison.png")
        make_comparison_grid(root, comp_path)
        written.append(comp_path)

    err = _quality_metric(root.buffer, gazed)
    elapsed = time.perf_counter() - t_total
    leaves = cfg.split_factor ** (2 * cfg.depth)
    console.print(
        f"  [green]✓[/green] {written[-1].name}  "
        f"[dim]{root.width}x{root.height}  {leaves} tiles  "
        f"pool={len(pool)}  error={err:.1f}  time={elapsed:.1f}s[/dim]"
    )
    console.print(Panel.fit(
        "[bold green]ALL DONE[/bold green] - "
        + ", ".join(str(p) for p in written),
        border_style="green",
    ))


# -- fetch command -----------------------------------------------------

@app.command()
def fetch(
    photosets: Path = typer.Argument(
        Path("photosets"), help="File with one Flickr photoset id per line",
    ),
    pool_dir: Path = typer.Option(
        _DEFAULTS.pool_dir, "--pool", "-p", help="Folder to download into",
    ),
    api_key: str = typer.Option(
        ..., "--api-key", envvar="FLICKR_API_KEY", help="Flickr API key",
    ),
    workers: int = typer.Option(
        _DEFAULTS.fetch_workers, "--workers", "-w", help="Concurrent downloads",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Download the photos of Flickr photosets into the pool folder."""
    _setup_logging(verbose)

    try:
        ids = load_photosets(photosets)
        if not ids:
            console.print(f"\n[yellow]No photoset ids found in {photosets}[/yellow]\n")
            raise typer.Exit(0)
        saved = fetch_pool(ids, pool_dir, api_key, workers=workers)
    except GazeError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from exc

    console.print(
        f"[green]✓[/green] {len(saved)} photos in {pool_dir}  "
        f"[dim]{len(ids)} photosets[/dim]"
    )


if __name__ == "__main__":
    app()
