"""Decode image references into RGBA pixel grids."""

from __future__ import annotations

import base64
import logging
from io import BytesIO
from pathlib import Path
from threading import Lock
from typing import Union
from urllib.parse import unquote_to_bytes

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError
from requests import Session
from tenacity import (  # type: ignore[import-untyped]
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import DecodeError
from ..io.models import ImageSample

try:  # pragma: no cover - optional dependency
    import cairosvg  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    cairosvg = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

ImageRef = Union[str, Path, bytes, bytearray, ImageSample]

_DEFAULT_TIMEOUT = 10.0
_USER_AGENT = "drawing-grader/1.0 (+https://pypi.org/project/drawing-grader/)"
_SVG_MIME_TYPES = {"image/svg+xml", "image/svg", "text/svg"}

_session_lock = Lock()
_session: Session | None = None


class RetryableHTTPStatusError(Exception):
    """Raised for HTTP status codes that should trigger a retry."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned status {status_code}")
        self.status_code = status_code


def _get_session() -> Session:
    """Return a shared requests session configured with default headers."""
    global _session
    if _session is None:
        with _session_lock:
            if _session is None:
                session = requests.Session()
                session.headers.update(
                    {"User-Agent": _USER_AGENT, "Accept": "image/*,*/*;q=0.8"}
                )
                _session = session
    return _session


_retryer = Retrying(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(
        (requests.Timeout, requests.ConnectionError, RetryableHTTPStatusError)
    ),
    before_sleep=before_sleep_log(logger, logging.DEBUG),
    reraise=True,
)


def _download_once(url: str, timeout: float) -> tuple[bytes, str | None]:
    response = _get_session().get(url, timeout=timeout, allow_redirects=True)
    if 500 <= response.status_code < 600:
        raise RetryableHTTPStatusError(response.status_code)
    response.raise_for_status()
    return response.content, response.headers.get("Content-Type")


def fetch_image_bytes(url: str, timeout: float = _DEFAULT_TIMEOUT) -> tuple[bytes, str | None]:
    """Download *url*, retrying transient failures, and return bytes plus MIME type."""
    try:
        return _retryer(lambda: _download_once(url, timeout))
    except RetryableHTTPStatusError as exc:
        raise DecodeError(url, str(exc)) from exc
    except requests.RequestException as exc:
        raise DecodeError(url, f"request failed ({exc})") from exc


def decode_data_url(url: str) -> tuple[bytes, str | None]:
    """Return the payload and MIME type of a ``data:`` URL."""
    header, sep, payload = url.partition(",")
    if not sep:
        raise DecodeError(_short(url), "malformed data URL")
    meta = header[len("data:"):]
    mime = meta.split(";", 1)[0] or None
    if meta.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False), mime
        except ValueError as exc:
            raise DecodeError(_short(url), "invalid base64 payload") from exc
    return unquote_to_bytes(payload), mime


def decode_image_bytes(image_bytes: bytes, mime_hint: str | None = None, label: str = "<bytes>") -> ImageSample:
    """Decode *image_bytes* into an RGBA ``ImageSample``, rasterising SVG when possible."""
    if not image_bytes:
        raise DecodeError(label, "empty image payload")

    data = bytes(image_bytes)
    mime = (mime_hint or "").split(";", 1)[0].strip().lower()
    if mime in _SVG_MIME_TYPES or _looks_like_svg(data):
        if cairosvg is None:
            raise DecodeError(label, "SVG input requires the optional cairosvg package")
        try:
            data = cairosvg.svg2png(bytestring=data)  # type: ignore[attr-defined]
        except Exception as exc:
            raise DecodeError(label, f"SVG rasterisation failed ({exc})") from exc

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return ImageSample.from_pil(img)
    except (UnidentifiedImageError, DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(label, f"not a decodable image ({exc})") from exc


def load_image(ref: ImageRef) -> ImageSample:
    """Load *ref* (path, URL, ``data:`` URL, raw bytes or sample) as an ``ImageSample``.

    Every failure is reported as :class:`~drawing_grader.errors.DecodeError`.
    """
    if isinstance(ref, ImageSample):
        return ref
    if isinstance(ref, (bytes, bytearray)):
        return decode_image_bytes(bytes(ref))

    text = str(ref)
    if text.startswith("data:"):
        payload, mime = decode_data_url(text)
        return decode_image_bytes(payload, mime, label=_short(text))
    if text.startswith(("http://", "https://")):
        payload, mime = fetch_image_bytes(text)
        logger.debug("Fetched %d bytes from %s", len(payload), text)
        return decode_image_bytes(payload, mime, label=text)

    path = Path(text)
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise DecodeError(text, f"cannot read file ({exc.strerror or exc})") from exc
    mime = "image/svg+xml" if path.suffix.lower() == ".svg" else None
    return decode_image_bytes(payload, mime, label=text)


def resample(sample: ImageSample, width: int, height: int, smooth: bool = True) -> ImageSample:
    """Return *sample* resized to ``width`` x ``height``.

    ``smooth`` selects bilinear filtering; otherwise nearest-neighbour is used.
    Both are deterministic for identical input.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Target size must be positive")
    if sample.size == (width, height):
        return sample

    resample_filter = Image.Resampling.BILINEAR if smooth else Image.Resampling.NEAREST
    img = sample.to_pil()
    try:
        resized = img.resize((width, height), resample_filter)
        try:
            return ImageSample(np.asarray(resized))
        finally:
            resized.close()
    finally:
        img.close()


def _looks_like_svg(image_bytes: bytes) -> bool:
    snippet = image_bytes[:1024].lstrip().lower()
    return snippet.startswith(b"<svg") or (
        snippet.startswith(b"<?xml") and b"<svg" in snippet
    )


def _short(value: str, limit: int = 48) -> str:
    return value if len(value) <= limit else f"{value[:limit]}..."
