"""
Shared fixtures: an in-memory store directory, a scripted image fetcher and
PNG bytes generated with Pillow.
"""

from __future__ import annotations

import io
import time

import pytest
from PIL import Image

from store_monitor.config import Settings
from store_monitor.errors import ImageFetchError
from store_monitor.images import ImageDimensions
from store_monitor.store_directory import StoreDirectory, StoreRecord


def make_image_bytes(width: int, height: int, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


class FakeFetcher:
    """Returns scripted dimensions or raises ImageFetchError for known urls."""

    def __init__(self, images: dict | None = None, failures: dict | None = None):
        self.images = images or {}
        self.failures = failures or {}
        self.calls: list[str] = []

    def fetch_dimensions(self, url: str) -> ImageDimensions:
        self.calls.append(url)
        if url in self.failures:
            raise ImageFetchError(self.failures[url])
        if url in self.images:
            width, height = self.images[url]
            return ImageDimensions(width=width, height=height)
        raise ImageFetchError("failed to download image: 404 Not Found")


@pytest.fixture()
def directory() -> StoreDirectory:
    return StoreDirectory({
        "S1": StoreRecord(store_name="Corner Mart", area_code="7100"),
        "S2": StoreRecord(store_name="Daily Needs", area_code="7200"),
    })


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher(
        images={
            "http://x/a.png": (100, 50),
            "http://x/b.png": (10, 10),
            "http://x/c.png": (640, 480),
        },
        failures={"http://x/broken.png": "image: unknown format"},
    )


@pytest.fixture()
def fast_settings(tmp_path) -> Settings:
    return Settings(
        store_master_path=str(tmp_path / "stores.csv"),
        delay_min_ms=0,
        delay_max_ms=0,
    )


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        value = predicate()
        if value:
            return value
        time.sleep(interval)
    raise AssertionError("condition not met before timeout")
