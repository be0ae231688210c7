from __future__ import annotations

import base64
import io
import logging
import mimetypes
from pathlib import Path
from urllib.parse import urlparse
from xml.etree import ElementTree

import requests
from PIL import Image, UnidentifiedImageError

from .errors import EmptyAttachmentPayloadError, InvalidAttachmentError
from .types import MediaFetcher

logger = logging.getLogger("vcardio")


def is_url(source: str) -> bool:
    parsed = urlparse(str(source))
    return bool(parsed.scheme and parsed.netloc)


def sniff_content_type(content: bytes) -> str | None:
    """Guess the MIME type of an in-memory image by decoding its header."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def _is_svg(path: Path) -> bool:
    try:
        root = ElementTree.parse(path).getroot()
    except ElementTree.ParseError:
        return False
    return root.tag.rsplit("}", 1)[-1] == "svg"


class HttpMediaFetcher:
    """Default fetcher: ``requests`` for URLs, the filesystem for paths."""

    def __init__(self, timeout: float = 10) -> None:
        self.timeout = timeout

    def content_type(self, source: str) -> str | None:
        if is_url(source):
            return self._remote_content_type(source)
        path = Path(source)
        try:
            with Image.open(path) as img:
                return Image.MIME.get(img.format or "")
        except UnidentifiedImageError:
            pass
        guessed = mimetypes.guess_type(path.name)[0]
        if guessed == "image/svg+xml":
            return guessed if _is_svg(path) else None
        if guessed and guessed.startswith("image/"):
            # extension claims an image Pillow could not decode
            return None
        return guessed

    def _remote_content_type(self, url: str) -> str | None:
        resp = requests.head(url, timeout=self.timeout, allow_redirects=True)
        content_type = resp.headers.get("Content-Type") if resp.ok else None
        if content_type:
            return content_type
        # some hosts reject HEAD or omit the header on it
        with requests.get(url, timeout=self.timeout, stream=True) as resp:
            resp.raise_for_status()
            return resp.headers.get("Content-Type")

    def read(self, source: str) -> bytes:
        if is_url(source):
            resp = requests.get(source, timeout=self.timeout)
            resp.raise_for_status()
            return resp.content
        return Path(source).read_bytes()


def image_subtype(mime_type: str | None) -> str:
    """Return the upper-cased image subtype or raise InvalidAttachmentError."""
    if not mime_type:
        raise InvalidAttachmentError()
    mime_type = mime_type.split(";", 1)[0].strip()
    if not mime_type.lower().startswith("image/"):
        raise InvalidAttachmentError()
    return mime_type[len("image/"):].upper()


class MediaResolver:
    """Turns an image source into a ``(key, value)`` pair for PHOTO or LOGO."""

    def __init__(self, fetcher: MediaFetcher | None = None) -> None:
        self.fetcher = fetcher or HttpMediaFetcher()

    def resolve(self, prop: str, source: str, include: bool = True) -> tuple[str, str]:
        try:
            mime_type = self.fetcher.content_type(source)
        except (OSError, requests.RequestException) as exc:
            raise InvalidAttachmentError(f"Could not inspect {source}: {exc}") from exc
        file_type = image_subtype(mime_type)

        if include:
            try:
                payload = self.fetcher.read(source)
            except (OSError, requests.RequestException) as exc:
                raise EmptyAttachmentPayloadError(f"Could not read {source}: {exc}") from exc
            if not payload:
                raise EmptyAttachmentPayloadError()
            logger.debug("Inlined %d bytes of %s for %s", len(payload), file_type, prop)
            return (
                f"{prop};ENCODING=b;TYPE={file_type}",
                base64.b64encode(payload).decode("ascii"),
            )
        if is_url(source):
            return f"{prop};VALUE=URL;TYPE={file_type}", source
        return prop, source

    def resolve_content(self, prop: str, content: bytes) -> tuple[str, str]:
        file_type = image_subtype(sniff_content_type(content))
        return (
            f"{prop};ENCODING=b;TYPE={file_type}",
            base64.b64encode(content).decode("ascii"),
        )


__all__ = [
    "HttpMediaFetcher",
    "MediaResolver",
    "image_subtype",
    "is_url",
    "sniff_content_type",
]
