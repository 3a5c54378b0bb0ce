from __future__ import annotations

import base64
import binascii
import logging
import os
from http.client import HTTPException
from io import BytesIO
from typing import Optional, Union
from urllib.error import URLError
from urllib.request import Request, urlopen

from PIL import Image, ImageOps

log = logging.getLogger(__name__)

ImageRef = Union[bytes, bytearray, str, "os.PathLike[str]"]

# What reading a capture source can raise: bad base64, bad URL, network and file errors.
DECODE_ERRORS = (ValueError, URLError, OSError, HTTPException, binascii.Error)


def decode_data_uri(payload: str) -> bytes:
    raw = payload
    if "," in payload and payload.strip().startswith("data:image"):
        raw = payload.split(",", 1)[1]
    return base64.b64decode(raw)


def is_remote_url(ref: str) -> bool:
    return ref.strip().lower().startswith(("http://", "https://"))


def _fetch_url_image(url: str, timeout: float) -> bytes:
    req = Request(url, headers={"User-Agent": "selfie-quality-gate/1.0"})
    with urlopen(req, timeout=timeout) as response:
        return response.read()


def read_image_source(ref: ImageRef, fetch_timeout: float = 15.0) -> bytes:
    """Resolve an image reference to encoded bytes.

    Accepts raw bytes, a ``data:image/...;base64,`` URI, an http(s) URL or a
    local path. Raises one of ``DECODE_ERRORS`` when the source cannot be read.
    """
    if isinstance(ref, (bytes, bytearray)):
        return bytes(ref)
    if isinstance(ref, str):
        stripped = ref.strip()
        if stripped.startswith("data:image"):
            return decode_data_uri(stripped)
        if is_remote_url(stripped):
            return _fetch_url_image(stripped, fetch_timeout)
    with open(ref, "rb") as handle:
        return handle.read()


def open_image(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    # Applies EXIF orientation so statistics match what the user saw.
    image = ImageOps.exif_transpose(image)
    return image.convert("RGB")


def load_image(ref: Optional[ImageRef], fetch_timeout: float = 15.0) -> Optional[Image.Image]:
    """Read and decode ``ref`` once at full resolution, or ``None`` when that fails."""
    if ref is None:
        return None
    try:
        data = read_image_source(ref, fetch_timeout=fetch_timeout)
        if not data:
            return None
        return open_image(data)
    except Exception as exc:
        # Pillow plugins and http.client raise assorted exception types on bad input.
        log.warning("image_load_failed error=%s", exc)
        return None


def downscale(image: Image.Image, long_edge: int) -> Image.Image:
    width, height = image.size
    longest = max(width, height)
    if long_edge <= 0 or longest <= long_edge:
        return image
    scale = float(long_edge) / float(longest)
    new_w = max(1, int(round(width * scale)))
    new_h = max(1, int(round(height * scale)))
    return image.resize((new_w, new_h), resample=Image.Resampling.BILINEAR)
