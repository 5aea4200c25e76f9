# store_monitor/images.py
import io
from dataclasses import dataclass
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from .errors import ImageFetchError

# formats the store cameras upload
SUPPORTED_FORMATS = ("JPEG", "PNG")


def compute_perimeter(width: int, height: int) -> int:
    return 2 * (width + height)


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    @property
    def perimeter(self) -> int:
        return compute_perimeter(self.width, self.height)


class ImageFetcher:
    """Downloads an image over HTTP and decodes it to get its pixel size."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def fetch_dimensions(self, url: str) -> ImageDimensions:
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImageFetchError(str(e)) from e

        if resp.status_code != 200:
            raise ImageFetchError(f"failed to download image: {resp.status_code} {resp.reason}")

        return decode_dimensions(resp.content)


def decode_dimensions(data: bytes) -> ImageDimensions:
    try:
        with Image.open(io.BytesIO(data), formats=SUPPORTED_FORMATS) as img:
            # force a full decode so truncated files fail here
            img.load()
            width, height = img.size
    except UnidentifiedImageError as e:
        raise ImageFetchError("image: unknown format") from e
    except (Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise ImageFetchError(str(e)) from e
    return ImageDimensions(width=width, height=height)
