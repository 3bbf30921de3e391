"""
Gaze — Gallery Edition

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import tempfile
import time
from pathlib import Path

import numpy as np
import streamlit as st
from PIL import Image, ImageDraw

from gaze.buffer import from_image, to_image
from gaze.compositor import gaze
from gaze.config import GazeConfig
from gaze.errors import GazeError
from gaze.node import MosaicNode, split_recursive
from gaze.pool import load_pool

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Gaze",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = GazeConfig()

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    .gallery-title {
        font-family: Georgia, serif;
        font-size: 2.6rem;
        text-align: center;
        border-bottom: 1px solid #1a1a1a;
        margin-bottom: 0.5rem;
    }
    .gallery-subtitle {
        font-size: 0.8rem;
        line-height: 1.7;
        margin-bottom: 3rem;
    }
    .catalogue-detail {
        font-style: italic;
        text-align: center;
        color: #6b6b6b;
    }
</style>
""", unsafe_allow_html=True)


# -- Helpers -----------------------------------------------------------

def _add_passepartout(img: Image.Image, border: int = 20) -> Image.Image:
    w, h = img.size
    bg = (250, 249, 246)
    canvas = Image.new("RGB", (w + border * 2, h + border * 2), bg)
    canvas.paste(img, (border, border))
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [border - 1, border - 1, border + w, border + h],
        outline=(224, 222, 216), width=1,
    )
    return canvas


def _write_uploads(files, folder: Path) -> None:
    for f in files:
        (folder / Path(f.name).name).write_bytes(f.getvalue())


# -- Title -------------------------------------------------------------
st.markdown('<div class="gallery-title">Gaze</div>', unsafe_allow_html=True)
st.markdown(
    '<div class="gallery-subtitle">'
    "Upload a picture and a handful of tile images. The picture is cut into a "
    "grid, every cell is replaced by the tile that resembles it most, and the "
    "tiles are stitched back together. Step back and you see the picture; "
    "step closer and you see the pool."
    "</div>",
    unsafe_allow_html=True,
)

# -- Controls ----------------------------------------------------------
ctrl1, ctrl2, ctrl3 = st.columns(3)
with ctrl1:
    splits = st.slider("Splits", 2, 40, _DEFAULTS.split_factor)
with ctrl2:
    depth = st.slider("Depth", 1, 3, _DEFAULTS.depth)
with ctrl3:
    interpolation = st.selectbox(
        "Filter",
        sorted(_DEFAULTS.SUPPORTED_FILTERS),
        index=sorted(_DEFAULTS.SUPPORTED_FILTERS).index(_DEFAULTS.interpolation),
    )

st.markdown("---")

# -- Upload ------------------------------------------------------------
uploaded = st.file_uploader(
    "Select artwork", type=["jpg", "jpeg", "png", "webp", "bmp", "gif"],
)
pool_files = st.file_uploader(
    "Select pool images",
    type=["jpg", "jpeg", "png", "webp", "bmp", "gif"],
    accept_multiple_files=True,
)
pool_dir = st.text_input("…or a pool folder", str(_DEFAULTS.pool_dir))

if uploaded is not None and st.button("COMPOSE", type="primary", use_container_width=True):
    original = Image.open(io.BytesIO(uploaded.getvalue()))
    root = MosaicNode(buffer=from_image(original))

    progress = st.empty()
    progress.markdown("Composing …")
    t0 = time.perf_counter()
    try:
        split_recursive(root, splits, depth)
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(pool_dir)
            if pool_files:
                source = Path(tmp)
                _write_uploads(pool_files, source)
            pool = load_pool(source, root, policy=interpolation)
            gazed = gaze(root, pool, policy=interpolation)
    except GazeError as exc:
        progress.empty()
        st.error(str(exc))
        st.stop()
    elapsed = time.perf_counter() - t0
    progress.empty()

    t_f = root.buffer[..., :3].reshape(-1, 3).astype(np.float64)
    m_f = gazed[..., :3].reshape(-1, 3).astype(np.float64)
    error = float(np.mean(np.sqrt(np.sum((t_f - m_f) ** 2, axis=1))))

    mosaic_display = to_image(gazed)
    st.image(_add_passepartout(mosaic_display.convert("RGB"), border=28), use_container_width=True)
    st.markdown(
        f'<div class="catalogue-detail">'
        f"{root.width} &times; {root.height}, {splits}&times;{splits} grid, "
        f"{len(pool)} pool images"
        f"</div>",
        unsafe_allow_html=True,
    )

    buf = io.BytesIO()
    mosaic_display.save(buf, format="PNG")
    _, dl_col, _ = st.columns([1, 2, 1])
    with dl_col:
        st.download_button(
            "SAVE ART",
            data=buf.getvalue(),
            file_name="gazed.png",
            mime="image/png",
            use_container_width=True,
        )

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Resolution", f"{root.width} × {root.height}")
    m2.metric("Tiles", f"{splits ** (2 * depth):,}")
    m3.metric("Time", f"{elapsed:.1f} s")
    m4.metric("Avg Error", f"{error:.1f}")
