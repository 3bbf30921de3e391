"""Image loading, saving, and comparison-grid generation."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from gaze.buffer import from_image, to_image
from gaze.errors import DecodeError, NotFound
from gaze.node import MosaicNode

logger = logging.getLogger(__name__)


def decode_image(path: str | Path) -> np.ndarray:
    """Decode any Pillow-readable file into an (H, W, 4) RGBA buffer."""
    try:
        with Image.open(path) as img:
            return from_image(img)
    except FileNotFoundError as exc:
        raise NotFound(f"Can't open image file `{path}`; does it exist?") from exc
    except (
        UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError,
    ) as exc:
        raise DecodeError(
            f"Couldn't decode image file `{path}`; is it a valid image file?"
        ) from exc


def load_target(path: str | Path) -> MosaicNode:
    """Read the target image into a root :class:`MosaicNode`."""
    path = Path(path)
    if not path.is_file():
        raise NotFound(f"Can't open image file `{path}`; does it exist?")
    node = MosaicNode(buffer=decode_image(path))
    logger.info("Working image is `%s` (%dx%d)", path, node.width, node.height)
    return node


def output_paths(destination_prefix: str | Path) -> tuple[Path, Path]:
    """Return the ``{prefix}_orig.png`` and ``{prefix}_gazed.png`` paths."""
    prefix = str(destination_prefix)
    return Path(f"{prefix}_orig.png"), Path(f"{prefix}_gazed.png")


def save(node: MosaicNode, destination_prefix: str | Path) -> list[Path]:
    """Write the node's original buffer and, if resolved, its gazed buffer.

    Returns:
        The paths written.
    """
    orig_path, gazed_path = output_paths(destination_prefix)
    orig_path.parent.mkdir(parents=True, exist_ok=True)

    to_image(node.buffer).save(orig_path)
    written = [orig_path]
    if node.matched is not None:
        to_image(node.matched).save(gazed_path)
        written.append(gazed_path)

    for p in written:
        logger.info("Saved %s", p)
    return written


def _label_font(size: int = 18) -> ImageFont.ImageFont:
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default()


def make_comparison_grid(
    node: MosaicNode,
    output_path: str | Path,
    max_panel_side: int = 512,
) -> None:
    """Create a 2-panel comparison: Original | Gazed.

    Both panels are scaled so their longest side is *max_panel_side*. An
    unresolved node gets only the Original panel.
    """
    h, w = node.buffer.shape[:2]
    scale = max_panel_side / max(w, h)
    panel_size = (max(1, round(w * scale)), max(1, round(h * scale)))
    label_height, gap = 36, 8

    entries = [(node.buffer, f"Original {w}x{h}")]
    if node.matched is not None:
        n = node.split_factor
        entries.append((node.matched, f"Gazed {n}x{n}"))

    pw, ph = panel_size
    canvas = Image.new(
        "RGB", (len(entries) * (pw + gap) - gap, ph + label_height), (30, 30, 30),
    )
    draw = ImageDraw.Draw(canvas)
    font = _label_font()

    for i, (buffer, label) in enumerate(entries):
        left = i * (pw + gap)
        panel = to_image(buffer).convert("RGB").resize(panel_size, Image.LANCZOS)
        canvas.paste(panel, (left, label_height))
        x0, _, x1, _ = draw.textbbox((0, 0), label, font=font)
        draw.text(
            (left + (pw - (x1 - x0)) // 2, 6), label, fill=(220, 220, 220), font=font,
        )

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    canvas.save(output_path)
