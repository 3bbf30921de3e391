"""Populate a pool directory with the photos of Flickr photosets."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

import requests

from gaze.errors import FetchError, NotFound

logger = logging.getLogger(__name__)

API_URL = "https://api.flickr.com/services/rest/"
REQUEST_TIMEOUT = 30


def load_photosets(path: str | Path) -> list[int]:
    """Read photoset ids, one per line. Invalid lines are skipped."""
    path = Path(path)
    try:
        text = path.read_text()
    except FileNotFoundError as exc:
        raise NotFound(f"Photoset file `{path}` doesn't exist") from exc

    ids = []
    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            ids.append(int(line))
        except ValueError:
            logger.warning("Invalid data in photoset file (line %d): %r", lineno, line)
    return ids


def photo_filename(photo: dict[str, Any]) -> str:
    """``{id}-{secret}-{server}.{ext}``, with the extension taken from the URL."""
    ext = photo["url_l"].rsplit(".", 1)[-1]
    return f"{photo['id']}-{photo['secret']}-{photo['server']}.{ext}"


def list_photos(
    session: requests.Session,
    api_key: str,
    photoset_id: int,
) -> list[dict[str, Any]]:
    """Ask the Flickr API for the photos of one photoset."""
    params = {
        "method": "flickr.photosets.getPhotos",
        "api_key": api_key,
        "photoset_id": photoset_id,
        "extras": "url_l,license",
        "media": "photos",
        "format": "json",
        "nojsoncallback": 1,
    }
    try:
        resp = session.get(API_URL, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        raise FetchError(f"Couldn't fetch photoset {photoset_id}: {exc}") from exc

    if payload.get("stat") == "fail":
        raise FetchError(
            f"Flickr refused photoset {photoset_id}: {payload.get('message')}"
        )
    return payload.get("photoset", {}).get("photo", [])


def download_photo(
    session: requests.Session,
    photo: dict[str, Any],
    pool_dir: Path,
) -> Path | None:
    """Save one photo into *pool_dir*.

    Returns ``None`` for photos without a large URL. Existing files are kept.
    """
    url = photo.get("url_l")
    if not url:
        return None

    dest = pool_dir / photo_filename(photo)
    if dest.exists():
        logger.debug("Already have %s", dest.name)
        return dest

    tmp = dest.with_name(dest.name + ".part")
    try:
        with session.get(url, stream=True, timeout=REQUEST_TIMEOUT) as resp:
            resp.raise_for_status()
            with open(tmp, "wb") as fp:
                for chunk in resp.iter_content(chunk_size=64 * 1024):
                    fp.write(chunk)
            tmp.replace(dest)
    except (requests.RequestException, OSError) as exc:
        tmp.unlink(missing_ok=True)
        raise FetchError(f"Couldn't save image from URL {url}: {exc}") from exc

    logger.info("Saved %s", dest)
    return dest


def fetch_pool(
    photosets: list[int],
    pool_dir: str | Path,
    api_key: str,
    workers: int = 4,
    session: requests.Session | None = None,
) -> list[Path]:
    """Download every photo of *photosets* into *pool_dir*.

    Returns:
        Paths of the files now present in the pool, in completion order.
    """
    pool_dir = Path(pool_dir)
    pool_dir.mkdir(parents=True, exist_ok=True)
    session = session or requests.Session()

    photos = []
    for psid in photosets:
        logger.info("Fetching photoset %d", psid)
        found = list_photos(session, api_key, psid)
        logger.info("  %d photos", len(found))
        photos.extend(found)

    saved: list[Path] = []
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(download_photo, session, photo, pool_dir)
            for photo in photos
        ]
        for future in as_completed(futures):
            path = future.result()
            if path is not None:
                saved.append(path)

    logger.info("Pool `%s` now holds %d fetched photos", pool_dir, len(saved))
    return saved
