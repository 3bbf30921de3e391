"""Tests for the command line and the Flickr pool fetcher."""

from __future__ import annotations

from pathlib import Path

import pytest
import requests
from PIL import Image
from typer.testing import CliRunner

from gaze.cli import app
from gaze.errors import FetchError, NotFound
from gaze.fetch import (
    download_photo,
    fetch_pool,
    list_photos,
    load_photosets,
    photo_filename,
)

runner = CliRunner()


def _write(path: Path, w: int, h: int, rgb: tuple[int, int, int]) -> Path:
    Image.new("RGB", (w, h), rgb).save(path)
    return path


# -- Fakes -------------------------------------------------------------

class FakeResponse:
    def __init__(self, payload=None, content: bytes = b"", status: int = 200) -> None:
        self.payload = payload
        self.content = content
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None


class FakeSession:
    """Serves a canned photoset listing and image bodies."""

    def __init__(self, photos: list[dict], status: int = 200) -> None:
        self.photos = photos
        self.status = status
        self.calls: list[str] = []

    def get(self, url, params=None, stream=False, timeout=None):
        self.calls.append(url)
        if params is not None:
            return FakeResponse(
                {"photoset": {"photo": self.photos}, "stat": "ok"},
                status=self.status,
            )
        return FakeResponse(content=url.encode(), status=self.status)


PHOTOS = [
    {"id": "1", "secret": "s1", "server": "9", "url_l": "https://x/1_s1.jpg"},
    {"id": "2", "secret": "s2", "server": "9", "url_l": ""},
    {"id": "3", "secret": "s3", "server": "8", "url_l": "https://x/3_s3.png"},
]


# -- run ---------------------------------------------------------------

class TestRun:
    def _setup(self, tmp_path: Path) -> tuple[Path, Path]:
        target = _write(tmp_path / "target.png", 100, 100, (255, 0, 0))
        pool = tmp_path / "pool"
        pool.mkdir()
        _write(pool / "red.png", 50, 50, (255, 0, 0))
        _write(pool / "blue.png", 50, 50, (0, 0, 255))
        return target, pool

    def test_writes_outputs(self, tmp_path: Path) -> None:
        target, pool = self._setup(tmp_path)
        prefix = tmp_path / "out" / "full"
        result = runner.invoke(app, [
            "run", str(target), "--pool", str(pool), "--splits", "2",
            "--output", str(prefix), "--comparison",
        ])
        assert result.exit_code == 0, result.output
        for suffix in ("orig", "gazed", "comparison"):
            assert (tmp_path / "out" / f"full_{suffix}.png").exists()

        gazed = Image.open(tmp_path / "out" / "full_gazed.png").convert("RGB")
        assert gazed.size == (100, 100)
        assert gazed.getcolors() == [(100 * 100, (255, 0, 0))]

    def test_empty_pool_writes_nothing(self, tmp_path: Path) -> None:
        target, _ = self._setup(tmp_path)
        pool = tmp_path / "tall"
        pool.mkdir()
        _write(pool / "tall.png", 30, 60, (0, 0, 255))
        prefix = tmp_path / "out" / "full"

        result = runner.invoke(app, [
            "run", str(target), "--pool", str(pool), "--splits", "2",
            "--output", str(prefix),
        ])
        assert result.exit_code == 1
        assert not (tmp_path / "out").exists()

    def test_missing_target(self, tmp_path: Path) -> None:
        _, pool = self._setup(tmp_path)
        result = runner.invoke(app, [
            "run", str(tmp_path / "nope.png"), "--pool", str(pool),
        ])
        assert result.exit_code == 1

    def test_oversized_target(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        target, pool = self._setup(tmp_path)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)
        result = runner.invoke(app, [
            "run", str(target), "--pool", str(pool), "--splits", "2",
            "--output", str(tmp_path / "out" / "full"),
        ])
        assert result.exit_code == 1
        assert not (tmp_path / "out").exists()

    def test_unknown_filter(self, tmp_path: Path) -> None:
        target, pool = self._setup(tmp_path)
        result = runner.invoke(app, [
            "run", str(target), "--pool", str(pool), "--filter", "sinc",
        ])
        assert result.exit_code == 2


# -- fetch -------------------------------------------------------------

class TestFetch:
    def test_load_photosets(self, tmp_path: Path) -> None:
        f = tmp_path / "photosets"
        f.write_text("72157600000000001\n\nnot-a-number\n42\n")
        assert load_photosets(f) == [72157600000000001, 42]

    def test_load_photosets_missing(self, tmp_path: Path) -> None:
        with pytest.raises(NotFound):
            load_photosets(tmp_path / "photosets")

    def test_photo_filename(self) -> None:
        assert photo_filename(PHOTOS[0]) == "1-s1-9.jpg"
        assert photo_filename(PHOTOS[2]) == "3-s3-8.png"

    def test_list_photos(self) -> None:
        assert list_photos(FakeSession(PHOTOS), "key", 7) == PHOTOS

    def test_list_photos_http_error(self) -> None:
        with pytest.raises(FetchError):
            list_photos(FakeSession(PHOTOS, status=500), "key", 7)

    def test_download_skips_missing_url(self, tmp_path: Path) -> None:
        assert download_photo(FakeSession([]), PHOTOS[1], tmp_path) is None
        assert list(tmp_path.iterdir()) == []

    def test_download_keeps_existing(self, tmp_path: Path) -> None:
        existing = tmp_path / "1-s1-9.jpg"
        existing.write_bytes(b"old")
        session = FakeSession([])
        assert download_photo(session, PHOTOS[0], tmp_path) == existing
        assert existing.read_bytes() == b"old"
        assert session.calls == []

    def test_fetch_pool(self, tmp_path: Path) -> None:
        pool = tmp_path / "pool"
        saved = fetch_pool([7], pool, "key", workers=2, session=FakeSession(PHOTOS))
        assert sorted(p.name for p in saved) == ["1-s1-9.jpg", "3-s3-8.png"]
        assert (pool / "1-s1-9.jpg").read_bytes() == b"https://x/1_s1.jpg"
        assert not list(pool.glob("*.part"))

    def test_interrupted_download_leaves_no_part_file(self, tmp_path: Path) -> None:
        class DroppedResponse(FakeResponse):
            def iter_content(self, chunk_size: int = 1):
                yield b"partial"
                raise requests.ConnectionError("connection reset")

        class DroppingSession(FakeSession):
            def get(self, url, params=None, stream=False, timeout=None):
                return DroppedResponse()

        with pytest.raises(FetchError):
            download_photo(DroppingSession([]), PHOTOS[0], tmp_path)
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_pool_dir(self, tmp_path: Path) -> None:
        with pytest.raises(FetchError):
            download_photo(FakeSession([]), PHOTOS[0], tmp_path / "missing")
